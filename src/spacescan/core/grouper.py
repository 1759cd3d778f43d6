"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/grouper.py
Implements file grouping strategies using FileRecord objects and a Hasher.
"""

import logging
from typing import List, Dict, Any, Callable, Optional
from collections import defaultdict

from spacescan.core.interfaces import FileGrouper, Hasher
from spacescan.core.models import FileRecord
from spacescan.core.hasher import HasherImpl

logger = logging.getLogger(__name__)


def member_order(file: FileRecord):
    """Deterministic order inside a group: name, then full path."""
    return file.name, file.path


class FileGrouperImpl(FileGrouper):
    """
    Groups records by size or by content fingerprint.
    Uses an injected Hasher instance for flexibility and testability.
    """

    def __init__(self, hasher: Optional[Hasher] = None):
        self.hasher = hasher or HasherImpl()

    def group_by_size(self, files: List[FileRecord]) -> Dict[int, List[FileRecord]]:
        """Groups files by their size."""
        return self._group_by(files, lambda f: f.size)

    def group_by_prefix_hash(self, files: List[FileRecord],
                             stopped_flag: Optional[Callable[[], bool]] = None,
                             on_file_done: Optional[Callable[[FileRecord], None]] = None
                             ) -> Dict[bytes, List[FileRecord]]:
        """Groups files by prefix fingerprint."""
        return self._group_by(files, self.hasher.compute_prefix_hash, stopped_flag, on_file_done)

    def group_by_full_hash(self, files: List[FileRecord],
                           stopped_flag: Optional[Callable[[], bool]] = None,
                           on_file_done: Optional[Callable[[FileRecord], None]] = None
                           ) -> Dict[bytes, List[FileRecord]]:
        """Groups files by full content hash."""
        return self._group_by(files, self.hasher.compute_full_hash, stopped_flag, on_file_done)

    @staticmethod
    def _group_by(files: List[FileRecord],
                  key_func: Callable[[FileRecord], Any],
                  stopped_flag: Optional[Callable[[], bool]] = None,
                  on_file_done: Optional[Callable[[FileRecord], None]] = None) -> Dict[Any, List[FileRecord]]:
        """
        Helper method to group files by any computed key.
        Files whose key cannot be computed are left out of every group.
        Args:
            files: List of files to group
            key_func: Function that computes a hashable key from a FileRecord
            stopped_flag: Checked before each file; a stop returns no groups
            on_file_done: Called after each file, whether or not it was grouped
        Returns:
            Dict[key, List[FileRecord]] holding only groups of 2+ files
        """
        groups = defaultdict(list)
        skipped_files = 0
        for file in files:
            if stopped_flag and stopped_flag():
                return {}
            try:
                key = key_func(file)
                if key is not None:
                    groups[key].append(file)
            except OSError as e:
                logger.debug(f"Error processing {file.path}: {e}")
                skipped_files += 1
            if on_file_done:
                on_file_done(file)

        if skipped_files > 0:
            logger.info(f"Skipped {skipped_files} unreadable files")

        result = {}
        for key, group in groups.items():
            if len(group) >= 2:  # Avoid groups with less than 2 files
                result[key] = sorted(group, key=member_order)

        return result
