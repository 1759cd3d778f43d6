"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/walker.py
Lazy, cancellable directory traversal producing one FileRecord per regular file.
Features:
- Uses os.walk with in-place pruning of subdirectories before descent
- Never follows symbolic links and never yields them
- Optional skipping of hidden entries and package bundle interiors
- Optional depth bound measured in path segments relative to the root
- Per-entry failures are skipped; only an unusable root raises
"""

import os
import stat
import logging
from typing import Iterator, Optional, Callable

from spacescan.core.models import FileRecord, WalkOptions
from spacescan.core.interfaces import DirectoryWalker
from spacescan.core.classifier import classify

logger = logging.getLogger(__name__)

PROGRESS_BATCH = 100  # Report progress every N visited entries

PACKAGE_EXTENSIONS = frozenset({
    ".app", ".bundle", ".framework", ".plugin", ".kext", ".photoslibrary",
    ".xcodeproj", ".xcworkspace", ".pkg", ".mpkg", ".lproj", ".sparsebundle",
    ".musiclibrary", ".tvlibrary", ".imovielibrary", ".fcpbundle",
})


class ScanRootError(RuntimeError):
    """The scan root does not exist, is not a directory or cannot be opened."""


class DirectoryWalkerImpl(DirectoryWalker):
    """
    Walks a directory tree and yields FileRecord objects.

    Attributes:
        root_dir: Absolute root directory to walk
        options: Traversal switches (hidden entries, packages, depth)
        visited_entries: Entries (files and directories) seen by the last walk
    """

    def __init__(self, root_dir: str, options: Optional[WalkOptions] = None):
        self.root_dir = os.path.abspath(root_dir)
        self.options = options or WalkOptions()
        self.visited_entries = 0

    def walk(self,
             stopped_flag: Optional[Callable[[], bool]] = None,
             progress_callback: Optional[Callable[[int], None]] = None) -> Iterator[FileRecord]:
        """
        Validates the root eagerly, then returns a fresh lazy iterator.
        Raises ScanRootError before any record is produced.
        """
        self._validate_root()
        self.visited_entries = 0
        return self._iter_records(stopped_flag, progress_callback)

    def _validate_root(self) -> None:
        try:
            root_stat = os.stat(self.root_dir)
        except FileNotFoundError as e:
            error_msg = f"Directory does not exist: {self.root_dir}"
            logger.error(error_msg)
            raise ScanRootError(error_msg) from e
        except OSError as e:
            error_msg = f"Cannot access directory: {self.root_dir} ({e.strerror or e})"
            logger.error(error_msg)
            raise ScanRootError(error_msg) from e

        if not stat.S_ISDIR(root_stat.st_mode):
            error_msg = f"Not a directory: {self.root_dir}"
            logger.error(error_msg)
            raise ScanRootError(error_msg)
        try:
            with os.scandir(self.root_dir):
                pass
        except OSError as e:
            error_msg = f"Cannot access directory: {self.root_dir} ({e.strerror or e})"
            logger.error(error_msg)
            raise ScanRootError(error_msg) from e

    def _iter_records(self,
                      stopped_flag: Optional[Callable[[], bool]],
                      progress_callback: Optional[Callable[[int], None]]) -> Iterator[FileRecord]:
        logger.debug(f"Walking directory: {self.root_dir}")
        logger.debug(f"Options: {self.options}")

        progress_counter = 0
        root_depth = self.root_dir.rstrip(os.sep).count(os.sep)

        for dirpath, dirs, files in os.walk(self.root_dir, followlinks=False):
            if stopped_flag and stopped_flag():
                logger.debug("Walk interrupted")
                return

            # Depth of the entries inside dirpath, counted in path segments from root
            depth = dirpath.rstrip(os.sep).count(os.sep) - root_depth + 1

            self.visited_entries += len(dirs)
            progress_counter += len(dirs)
            dirs[:] = sorted(d for d in dirs if self._should_descend(dirpath, d, depth))

            for filename in sorted(files):
                if stopped_flag and stopped_flag():
                    logger.debug("Walk interrupted")
                    return

                self.visited_entries += 1
                progress_counter += 1
                if progress_callback and progress_counter >= PROGRESS_BATCH:
                    progress_callback(self.visited_entries)
                    progress_counter = 0

                if self.options.skip_hidden and filename.startswith("."):
                    continue

                record = self._process_file(os.path.join(dirpath, filename))
                if record is not None:
                    yield record

            if progress_callback and progress_counter >= PROGRESS_BATCH:
                progress_callback(self.visited_entries)
                progress_counter = 0

    def _should_descend(self, parent: str, name: str, depth: int) -> bool:
        """Pre-filter subdirectories before os.walk enters them."""
        if self.options.skip_hidden and name.startswith("."):
            return False

        if self.options.max_depth is not None and depth >= self.options.max_depth:
            # Its contents would sit deeper than max_depth
            return False

        if self.options.skip_package_interiors and os.path.splitext(name)[1].lower() in PACKAGE_EXTENSIONS:
            logger.debug(f"Skipping package interior: {os.path.join(parent, name)}")
            return False

        path = os.path.join(parent, name)
        try:
            if os.path.islink(path):
                logger.debug(f"Skipping symbolic link: {path}")
                return False
        except OSError:
            return False
        return True

    @staticmethod
    def _process_file(path: str) -> Optional[FileRecord]:
        """
        Stat one entry without following links.
        Returns None for symlinks, special files and anything that fails to stat.
        """
        try:
            st = os.lstat(path)
        except OSError as e:
            logger.debug(f"Could not stat {path}: {e}")
            return None

        if not stat.S_ISREG(st.st_mode):
            logger.debug(f"Skipping non-regular entry: {path}")
            return None

        return FileRecord(
            name=os.path.basename(path),
            path=path,
            size=st.st_size,
            modified_at=st.st_mtime,
            file_type=classify(path),
        )

