"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the scan and duplicate engine.

Key Components:
---------------
- HashAlgorithm: Standardized interface for hash functions (SHA-256, xxHash).
- Hasher: Interface for computing prefix and full content fingerprints of files.
- DirectoryWalker: Interface for lazily walking a tree and yielding file records.
- FileGrouper: Interface for grouping records by size or fingerprint.
- SizeStage / HashStage: Interfaces for individual stages in the detection pipeline.
- DuplicateDetector: Interface for the detection engine coordinating all stages.
"""

from typing import Protocol, List, Dict, Tuple, Optional, Callable, Iterator
from spacescan.core.models import FileRecord, DuplicateGroup, DetectionStats, DetectionMode


class HashAlgorithm(Protocol):
    """
    Interface for generic hash algorithms.

    Incremental, hashlib-style objects are returned by `new()` so that large
    files can be streamed in chunks.
    """
    name: str

    def new(self):
        """Returns a fresh hash object exposing update() and digest()."""
        ...


class Hasher(Protocol):
    """Interface for fingerprinting file contents."""
    def compute_prefix_hash(self, file: FileRecord) -> bytes: ...
    def compute_full_hash(self, file: FileRecord) -> bytes: ...


class DirectoryWalker(Protocol):
    def walk(
        self,
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[int], None]] = None
    ) -> Iterator[FileRecord]:
        """
        Walk the configured root and lazily yield one record per regular file.

        Args:
            stopped_flag: Function that returns True if the walk should stop.
            progress_callback: Called with the number of visited entries every batch.
        """
        ...


class FileGrouper(Protocol):
    def group_by_size(self, files: List[FileRecord]) -> Dict[int, List[FileRecord]]:
        """Group files by their size in bytes."""
        ...

    def group_by_prefix_hash(self, files: List[FileRecord]) -> Dict[bytes, List[FileRecord]]:
        """Group files by their prefix fingerprint."""
        ...

    def group_by_full_hash(self, files: List[FileRecord]) -> Dict[bytes, List[FileRecord]]:
        """Group files by their full content hash."""
        ...


# =============================
# Stage Interfaces
# =============================

class SizeStage(Protocol):
    def process(
        self,
        files: List[FileRecord],
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[DuplicateGroup]:
        """
        Group files by size to find initial duplicate candidates.

        Returns:
            List of groups where each contains 2+ files of the same size.
        """
        ...


class HashStage(Protocol):
    def get_stage_name(self) -> str:
        """Return the name of this stage (used in logging and stats)."""
        ...

    def process(
        self,
        groups: List[DuplicateGroup],
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[DuplicateGroup]:
        """
        Split candidate groups by a content fingerprint.

        Returns:
            Refined groups of 2+ files sharing size and fingerprint.
        """
        ...


class DuplicateDetector(Protocol):
    def find_duplicates(
        self,
        files: List[FileRecord],
        mode: DetectionMode = DetectionMode.PREFIX,
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> Tuple[List[DuplicateGroup], DetectionStats]:
        """
        Run the detection pipeline on a finished file listing.

        Returns:
            A tuple containing:
                - Duplicate groups ordered by reclaimable space
                - Statistics collected during processing
        """
        ...
