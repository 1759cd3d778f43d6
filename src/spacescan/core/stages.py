"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/stages.py
Pipeline stages for the duplicate detector.

STAGE CONTRACTS
---------------
SizeStageImpl    : groups a flat listing by exact size, singletons dropped
PrefixHashStage  : splits size groups by the fingerprint of the first 64 KiB
FullHashStage    : re-splits groups larger than the prefix by full content

Each hash stage:
  • Accepts candidate groups from the previous stage
  • Returns groups of 2+ records sharing size and fingerprint
  • Reports progress after every file as (stage name, processed, total)
  • Checks stopped_flag before every file and returns [] once stopped
"""

from typing import List, Optional, Callable

from spacescan.core.models import FileRecord, DuplicateGroup, Stage
from spacescan.core.grouper import FileGrouperImpl
from spacescan.core.hasher import DetectionConfig
from spacescan.core.interfaces import SizeStage, HashStage


class SizeStageImpl(SizeStage):
    def __init__(self, grouper: FileGrouperImpl):
        self.grouper = grouper

    def process(
            self,
            files: List[FileRecord],
            stopped_flag: Optional[Callable[[], bool]] = None,
            progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[DuplicateGroup]:
        """
        Group by file size.
        Returns list of DuplicateGroups with 2+ files of same size.
        """
        if stopped_flag and stopped_flag():
            return []

        size_groups = self.grouper.group_by_size(files)
        groups = [
            DuplicateGroup(size=size, files=files_list)
            for size, files_list in size_groups.items()
        ]

        if progress_callback:
            total_files = len(files)
            progress_callback(Stage.SIZE.value, total_files, total_files)

        return groups


class HashStageBase(HashStage):
    """
    Shared loop for stages that split groups by a content digest.
    """

    def __init__(self, grouper: FileGrouperImpl):
        self.grouper = grouper

    def get_stage_name(self) -> str:
        raise NotImplementedError

    def _needs_hashing(self, group: DuplicateGroup) -> bool:
        return True

    def _group_files(self, files: List[FileRecord], stopped_flag, on_file_done):
        raise NotImplementedError

    def process(
        self,
        groups: List[DuplicateGroup],
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[DuplicateGroup]:
        if stopped_flag and stopped_flag():
            return []

        pending = [g for g in groups if self._needs_hashing(g)]
        refined = [g for g in groups if not self._needs_hashing(g)]
        total_files = sum(len(group.files) for group in pending)
        processed_files = 0

        def on_file_done(_file: FileRecord) -> None:
            nonlocal processed_files
            processed_files += 1
            if progress_callback:
                progress_callback(self.get_stage_name(), processed_files, total_files)

        for group in pending:
            if stopped_flag and stopped_flag():
                return []

            hash_groups = self._group_files(group.files, stopped_flag, on_file_done)
            if stopped_flag and stopped_flag():
                return []

            for digest, files_in_group in hash_groups.items():
                refined.append(DuplicateGroup(size=group.size, files=files_in_group, fingerprint=digest))

        return refined


class PrefixHashStage(HashStageBase):
    def get_stage_name(self) -> str:
        return Stage.PREFIX.value

    def _group_files(self, files, stopped_flag, on_file_done):
        return self.grouper.group_by_prefix_hash(files, stopped_flag, on_file_done)


class FullHashStage(HashStageBase):
    """
    Confirms groups whose files are larger than the prefix; smaller files are
    already fully covered by the prefix fingerprint and pass through.
    """

    def __init__(self, grouper: FileGrouperImpl, threshold: int = DetectionConfig.PREFIX_BYTES):
        super().__init__(grouper)
        self.threshold = threshold

    def get_stage_name(self) -> str:
        return Stage.FULL.value

    def _needs_hashing(self, group: DuplicateGroup) -> bool:
        return group.size > self.threshold

    def _group_files(self, files, stopped_flag, on_file_done):
        return self.grouper.group_by_full_hash(files, stopped_flag, on_file_done)
