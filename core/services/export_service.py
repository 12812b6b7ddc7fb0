"""
Export service for price history downloads.

Produces the CSV offered by the statistics view's "Export" action.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional
from urllib.parse import quote

from core.constants import CSV_FILENAME_SUFFIX, CSV_HEADER
from core.pricing.models import PricePoint

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[\\/\x00-\x1f\x7f]+")
_NON_ASCII_HEADER_CHARS = re.compile(r"[^\x20-\x7e]|[\"\\]")


@dataclass
class ExportResult:
    """Result of an export operation."""
    success: bool
    file_path: Optional[Path] = None
    record_count: int = 0
    error: Optional[str] = None


def export_filename(item_name: str) -> str:
    """
    Download name: whitespace runs in the item name become underscores.

    Path separators and control characters also become underscores and
    leading dots are dropped, so the result is always a bare file name.
    """
    name = re.sub(r"\s+", "_", item_name)
    name = _UNSAFE_NAME_CHARS.sub("_", name).lstrip(".")
    return (name or "item") + CSV_FILENAME_SUFFIX


def content_disposition(filename: str) -> str:
    """
    ``attachment`` header value for a download (RFC 6266).

    Header values travel as Latin-1, so ``filename`` carries an ASCII
    stand-in and ``filename*`` the percent-encoded UTF-8 name.
    """
    fallback = _NON_ASCII_HEADER_CHARS.sub("_", filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def _price_text(price: float) -> str:
    # 250.0 -> "250", 250.5 -> "250.5"
    if price.is_integer():
        return str(int(price))
    return repr(price)


def _row(point: PricePoint) -> List[str]:
    return [point.labels.date, point.labels.time, _price_text(point.price)]


def render_price_csv(points: Iterable[PricePoint], quote_fields: bool = False) -> str:
    """
    Render points as CSV text.

    By default fields are comma-joined without quoting, which is what
    existing consumers of the export parse. ``quote_fields=True`` switches
    to RFC 4180 quoting for values that contain delimiters.
    """
    if quote_fields:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        writer.writerows(_row(p) for p in points)
        return buffer.getvalue().rstrip("\n")

    lines = [",".join(CSV_HEADER)]
    lines.extend(",".join(_row(p)) for p in points)
    return "\n".join(lines)


class ExportService:
    """Service for exporting price history to disk."""

    SUPPORTED_FORMATS = ["csv"]

    def write_price_history(
        self,
        points: List[PricePoint],
        directory: Path,
        item_name: str,
        quote_fields: bool = False,
    ) -> ExportResult:
        """
        Write the filtered series to ``<directory>/<item>_price_history.csv``.

        Args:
            points: Period-filtered points (not the down-sampled display set)
            directory: Output directory (created if missing)
            item_name: Item name used for the file name
            quote_fields: Apply CSV quoting

        Returns:
            ExportResult with success status
        """
        if not points:
            return ExportResult(success=False, error="No data to export")

        directory = Path(directory)
        file_path = directory / export_filename(item_name)
        if file_path.resolve().parent != directory.resolve():
            logger.error(f"Refusing to export {item_name!r} outside {directory}")
            return ExportResult(success=False, error=f"Export path escapes {directory}")

        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, "w", encoding="utf-8", newline="") as f:
                f.write(render_price_csv(points, quote_fields=quote_fields))

            logger.info(f"Exported {len(points)} price points to {file_path}")
            return ExportResult(
                success=True,
                file_path=file_path,
                record_count=len(points),
            )

        except OSError as e:
            logger.error(f"Failed to export price history: {e}")
            return ExportResult(success=False, error=str(e))
