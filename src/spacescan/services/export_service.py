"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/export_service.py
Renders a scan listing as CSV or as a plain-text report and writes it to disk.
"""
import csv
import io
import os
import tempfile
import time
import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

from spacescan.core.models import FileRecord
from spacescan.utils.convert_utils import ConvertUtils

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Large Files"

CSV_HEADER = ["Name", "Path", "Size (bytes)", "Size", "Type", "Modified"]


class ExportFormat(Enum):
    CSV = "csv"
    TEXT = "text"

    @property
    def suffix(self) -> str:
        return ".csv" if self == ExportFormat.CSV else ".txt"


class ExportService:
    @staticmethod
    def render(records: List[FileRecord],
               fmt: ExportFormat = ExportFormat.CSV,
               title: str = DEFAULT_TITLE) -> bytes:
        """
        Returns the encoded document (UTF-8) for the given records, in listing order.
        Names that were not valid UTF-8 on disk are written back as their original bytes.
        """
        if fmt == ExportFormat.CSV:
            text = ExportService._render_csv(records)
        else:
            text = ExportService._render_text(records, title)
        return text.encode("utf-8", "surrogateescape")

    @staticmethod
    def write(records: List[FileRecord],
              fmt: ExportFormat = ExportFormat.CSV,
              destination: Optional[str] = None,
              title: str = DEFAULT_TITLE) -> Path:
        """
        Writes the rendered document and returns its path.
        Without a destination a timestamped file named after the title
        (e.g. storage_overview_20250101-120000.csv) is created in the temp directory.
        Raises RuntimeError if the file cannot be written.
        """
        if destination is None:
            stamp = time.strftime("%Y%m%d-%H%M%S")
            stem = "_".join(title.lower().split())
            destination = os.path.join(tempfile.gettempdir(), f"{stem}_{stamp}{fmt.suffix}")

        path = Path(destination).expanduser()
        try:
            path.write_bytes(ExportService.render(records, fmt, title))
        except (OSError, UnicodeError) as e:
            raise RuntimeError(f"Failed to export to {path}: {e}") from e

        logger.debug(f"Exported {len(records)} records to {path}")
        return path

    @staticmethod
    def _render_csv(records: List[FileRecord]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for record in records:
            writer.writerow([
                record.name,
                record.path,
                record.size,
                ConvertUtils.bytes_to_human(record.size),
                record.file_type.display_name,
                ConvertUtils.timestamp_to_human(record.modified_at),
            ])
        return buffer.getvalue()

    @staticmethod
    def _render_text(records: List[FileRecord], title: str) -> str:
        total_size = sum(r.size for r in records)
        lines = [
            f"{title} Report",
            f"Generated: {ConvertUtils.timestamp_to_human(time.time())}",
            f"Total: {len(records)} files, {ConvertUtils.bytes_to_human(total_size)}",
            "",
        ]
        for index, record in enumerate(records, start=1):
            lines.append(
                f"{index:>4}. {ConvertUtils.bytes_to_human(record.size):>10}  "
                f"[{record.file_type.display_name}] {record.path}"
            )
        return "\n".join(lines) + "\n"
