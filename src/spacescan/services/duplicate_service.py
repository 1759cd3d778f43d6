"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/duplicate_service.py
Pure list transformations applied after files were removed outside the engine.
"""
from typing import Iterable, List, Tuple

from spacescan.core.models import DuplicateGroup, FileRecord


class DuplicateService:
    @staticmethod
    def remove_files_from_groups(groups: List[DuplicateGroup], file_paths: Iterable[str]) -> List[DuplicateGroup]:
        """
        Removes files with the specified paths from all duplicate groups.

        Groups left with fewer than 2 files are discarded; the remaining groups
        keep their order, fingerprint and member order.
        """
        removed = set(file_paths)
        updated_groups = []
        for group in groups:
            filtered_files = [f for f in group.files if f.path not in removed]
            if len(filtered_files) >= 2:
                updated_groups.append(
                    DuplicateGroup(size=group.size, files=filtered_files, fingerprint=group.fingerprint)
                )
        return updated_groups

    @staticmethod
    def remove_files_from_listing(files: List[FileRecord], file_paths: Iterable[str]) -> List[FileRecord]:
        """Returns a new listing without the given paths."""
        removed = set(file_paths)
        return [f for f in files if f.path not in removed]

    @staticmethod
    def keep_only_one_file_per_group(groups: List[DuplicateGroup]) -> Tuple[List[str], List[DuplicateGroup]]:
        """
        Keeps the first file of every group and marks the rest for deletion.
        Returns:
            - List of file paths to be deleted
            - Updated list of duplicate groups (empty once every group is resolved)
        """
        files_to_delete = []
        for group in groups:
            if len(group.files) > 1:
                for file in group.files[1:]:
                    files_to_delete.append(file.path)

        updated_groups = DuplicateService.remove_files_from_groups(groups, files_to_delete)
        return files_to_delete, updated_groups

    @staticmethod
    def calculate_space_savings(groups: List[DuplicateGroup]) -> Tuple[int, int]:
        """Returns (bytes reclaimable, number of files that would be removed)."""
        total_bytes = 0
        total_files = 0
        for group in groups:
            extra = max(0, len(group.files) - 1)
            total_files += extra
            total_bytes += group.size * extra
        return total_bytes, total_files
