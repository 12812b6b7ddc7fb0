"""
Core services package.

Chart projection and export services for the item statistics view.
"""

from .chart_data_service import ChartDataService, DisplaySeries
from .export_service import ExportService, ExportResult

__all__ = ["ChartDataService", "DisplaySeries", "ExportService", "ExportResult"]
