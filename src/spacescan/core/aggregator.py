"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/aggregator.py
Incremental totals over a stream of FileRecords: overall, per FileType and per
top-level subdirectory of the scan root. Records themselves are not retained.
"""

import os
from typing import Dict, List, Optional, Tuple

from spacescan.core.models import FileRecord, FileType, TypeStats, ScanSummary, DirectorySize

ROOT_DIRECTORY_NAME = "Root"


class ScanAggregator:
    def __init__(self, root_dir: str):
        self.root_dir = os.path.abspath(root_dir)
        self.total_files = 0
        self.total_size = 0
        self._by_type: Dict[FileType, TypeStats] = {}
        # None collects files sitting directly under the root
        self._by_directory: Dict[Optional[str], Tuple[int, int]] = {}

    def add(self, record: FileRecord) -> None:
        self.total_files += 1
        self.total_size += record.size

        stats = self._by_type.setdefault(record.file_type, TypeStats())
        stats.count += 1
        stats.size += record.size

        key = self.top_level_directory(record.path)
        size, count = self._by_directory.get(key, (0, 0))
        self._by_directory[key] = (size + record.size, count + 1)

    def top_level_directory(self, path: str) -> Optional[str]:
        """
        First path segment of `path` relative to the root, or None when the
        file sits directly under the root.
        """
        relative_parent = os.path.relpath(os.path.dirname(path), self.root_dir)
        if relative_parent in (os.curdir, ""):
            return None
        return relative_parent.split(os.sep, 1)[0]

    def summary(self) -> ScanSummary:
        return ScanSummary(
            total_files=self.total_files,
            total_size=self.total_size,
            by_type={t: TypeStats(s.count, s.size) for t, s in self._by_type.items()},
        )

    def directory_sizes(self, limit: Optional[int] = None) -> List[DirectorySize]:
        """Sorted by size descending, name ascending on ties. `limit` is presentational only."""
        entries = []
        for key, (size, count) in self._by_directory.items():
            if key is None:
                entries.append(DirectorySize(ROOT_DIRECTORY_NAME, self.root_dir, size, count))
            else:
                entries.append(DirectorySize(key, os.path.join(self.root_dir, key), size, count))

        entries.sort(key=lambda d: (-d.size, d.name))
        return entries[:limit] if limit is not None else entries
