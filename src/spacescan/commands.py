"""
Unified command orchestrator for one scan.
This is the single source of truth for the scan pipeline, shared by the
coordinator, the Qt bridge and the CLI. No Qt/PySide6 dependencies.
"""
import time
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Callable

from spacescan.core.models import (
    FileRecord, FileType, FileSortOption, ScanParams, ScanSummary, DirectorySize,
)
from spacescan.core.walker import DirectoryWalkerImpl
from spacescan.core.aggregator import ScanAggregator
from spacescan.core.estimator import estimate_entry_count

logger = logging.getLogger(__name__)

# (visited_entries, estimated_entries, files_retained)
ScanProgressCb = Callable[[int, int, int], None]


def listing_order(record: FileRecord):
    """Largest first; name then path on ties."""
    return -record.size, record.name, record.path


_SORT_KEYS = {
    FileSortOption.SIZE: listing_order,
    FileSortOption.NAME: lambda r: (r.name.casefold(), r.name, r.path),
    FileSortOption.DATE: lambda r: (-r.modified_at, r.name, r.path),
    FileSortOption.TYPE: lambda r: (r.file_type.display_name,) + listing_order(r),
}


def arrange_listing(
        records: List[FileRecord],
        sort_by: FileSortOption = FileSortOption.SIZE,
        file_type: Optional[FileType] = None
) -> List[FileRecord]:
    """
    Returns a new list holding the records of `file_type` (all when None),
    ordered by `sort_by`. Name order ignores case, date order is newest first
    and type order groups by type name, largest first within a type.
    """
    selected = [r for r in records if file_type is None or r.file_type == file_type]
    return sorted(selected, key=_SORT_KEYS[sort_by])


@dataclass
class ScanResult:
    summary: ScanSummary
    listing: List[FileRecord] = field(default_factory=list)
    directory_sizes: List[DirectorySize] = field(default_factory=list)
    visited_entries: int = 0
    elapsed_sec: float = 0.0


class ScanCommand:
    """
    Orchestrates one walk end-to-end:
    1. Estimate the number of entries for progress
    2. Walk the tree, feeding every record to the aggregator
    3. Retain records at or above the minimum size
    4. Finalize into summary, sorted listing and directory sizes

    Usage:
        result = ScanCommand().execute(
            ScanParams.for_mode("/home/me", ScanMode.STORAGE_OVERVIEW),
            stopped_flag=cancel_event.is_set,
            progress_callback=on_progress,
        )
    """

    def execute(
            self,
            params: ScanParams,
            stopped_flag: Optional[Callable[[], bool]] = None,
            progress_callback: Optional[ScanProgressCb] = None
    ) -> Optional[ScanResult]:
        """
        Run the scan.

        Returns:
            ScanResult, or None if stopped_flag fired before the walk finished.

        Raises:
            ScanRootError: If the root cannot be walked at all
        """
        start_time = time.time()
        walker = DirectoryWalkerImpl(params.root_dir, params.walk_options)
        aggregator = ScanAggregator(walker.root_dir)
        listing: List[FileRecord] = []

        estimate = estimate_entry_count(walker.root_dir)

        def on_visited(visited: int) -> None:
            if progress_callback:
                progress_callback(visited, estimate, len(listing))

        records = walker.walk(stopped_flag=stopped_flag, progress_callback=on_visited)
        for record in records:
            aggregator.add(record)
            if record.size >= params.min_size_bytes:
                listing.append(record)

        if stopped_flag and stopped_flag():
            logger.debug("Scan stopped, discarding partial results")
            return None

        listing.sort(key=listing_order)
        elapsed = time.time() - start_time
        logger.debug(
            f"Scan of {walker.root_dir} finished: {aggregator.total_files} files, "
            f"{len(listing)} retained, {walker.visited_entries} entries in {elapsed:.2f}s"
        )

        return ScanResult(
            summary=aggregator.summary(),
            listing=listing,
            directory_sizes=aggregator.directory_sizes(),
            visited_entries=walker.visited_entries,
            elapsed_sec=elapsed,
        )
