"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

deduplicator.py
Pipeline-based duplicate detection over a finished file listing.
Supports two modes:
    - prefix:   size → prefix hash
    - verified: size → prefix hash → full hash (files larger than the prefix)
"""
import time
import logging
from typing import List, Tuple, Optional, Callable

from spacescan.core.models import FileRecord, DuplicateGroup, DetectionStats, DetectionMode
from spacescan.core.grouper import FileGrouperImpl
from spacescan.core.hasher import DetectionConfig
from spacescan.core.interfaces import DuplicateDetector, HashStage
from spacescan.core.stages import SizeStageImpl, PrefixHashStage, FullHashStage

logger = logging.getLogger(__name__)


def group_order(group: DuplicateGroup):
    """Most reclaimable space first; ties by the first member's name, then path."""
    first = group.files[0] if group.files else None
    return (
        -group.reclaimable_bytes,
        first.name if first else "",
        first.path if first else "",
    )


def potential_savings(groups: List[DuplicateGroup]) -> int:
    """Bytes freed if every group kept exactly one copy."""
    return sum(g.reclaimable_bytes for g in groups)


class DuplicateDetectorImpl(DuplicateDetector):
    """
    Implements multi-stage duplicate detection using a pipeline architecture.
    """
    def __init__(self, grouper: Optional[FileGrouperImpl] = None):
        self.grouper = grouper or FileGrouperImpl()

    def find_duplicates(
        self,
        files: List[FileRecord],
        mode: DetectionMode = DetectionMode.PREFIX,
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> Tuple[List[DuplicateGroup], DetectionStats]:
        """
        Main detection pipeline.
        Args:
            files: Listing produced by a completed scan
            mode: Detection depth ('prefix' or 'verified')
            stopped_flag: Function that returns True if operation should be stopped.
            progress_callback: Reports (stage, processed, total) per stage.
        Returns:
            Tuple[List[DuplicateGroup], DetectionStats]; no groups if stopped.
        """
        stats = DetectionStats()
        total_start_time = time.time()

        size_stage = SizeStageImpl(self.grouper)
        start_time = time.time()
        groups = size_stage.process(files, stopped_flag=stopped_flag, progress_callback=progress_callback)
        DuplicateDetectorImpl._update_stats(stats, "size", time.time() - start_time, groups)
        stats.candidates = sum(len(g.files) for g in groups)

        for stage_name, stage in self._build_pipeline(mode):
            if stopped_flag and stopped_flag():
                break
            start_time = time.time()
            groups = stage.process(groups, stopped_flag=stopped_flag, progress_callback=progress_callback)
            DuplicateDetectorImpl._update_stats(stats, stage_name, time.time() - start_time, groups)

        if stopped_flag and stopped_flag():
            logger.debug("Duplicate detection cancelled")
            groups = []

        groups.sort(key=group_order)

        stats.potential_savings = potential_savings(groups)
        stats.total_time = time.time() - total_start_time
        logger.debug(f"Found {len(groups)} duplicate groups in {stats.total_time:.3f}s")

        return groups, stats

    def _build_pipeline(self, mode: DetectionMode) -> List[Tuple[str, HashStage]]:
        """Builds the appropriate pipeline based on detection mode."""
        pipeline = [("prefix", PrefixHashStage(self.grouper))]
        if mode == DetectionMode.VERIFIED:
            threshold = getattr(self.grouper.hasher, "prefix_bytes", DetectionConfig.PREFIX_BYTES)
            pipeline.append(("full", FullHashStage(self.grouper, threshold)))
        return pipeline

    @staticmethod
    def _update_stats(
        stats: DetectionStats,
        stage: str,
        duration: float,
        groups: List[DuplicateGroup],
    ):
        stats.update_stage(
            stage_name=stage,
            groups_found=len(groups),
            files_processed=sum(len(g.files) for g in groups),
            duration=duration
        )
