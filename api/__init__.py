"""
api - FastAPI backend for Goldboard Admin.

Provides RESTful API endpoints for:
- Pass-through proxies to the upstream admin API
- System-status dashboard
- Item price statistics and CSV export
"""

__version__ = "1.0.0"
