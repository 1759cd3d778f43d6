"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/coordinator.py
Background owners for long-running work:

ScanCoordinator  : one walk at a time, phased ScanState publishing, result fields
DuplicateSearch  : one duplicate detection pass at a time, independent of scans

Both follow the same rules:
  • Each start gets a new generation and a fresh cancel Event
  • Starting again cancels the previous run
  • Every publish happens under one lock and re-checks generation and cancel
    Event immediately before notifying, so stale updates are dropped and
    listeners never see interleaved transitions
"""

import dataclasses
import logging
import threading
from typing import Callable, List, Optional, Tuple

from spacescan.commands import ScanCommand, arrange_listing
from spacescan.core.deduplicator import DuplicateDetectorImpl, potential_savings
from spacescan.core.estimator import progress_fraction, MAX_PROGRESS
from spacescan.core.interfaces import DuplicateDetector
from spacescan.core.models import (
    FileRecord, DirectorySize, ScanSummary, ScanState, ScanParams,
    DuplicateGroup, DetectionStats, DetectionMode, Stage, FileType, FileSortOption,
)
from spacescan.core.walker import ScanRootError

logger = logging.getLogger(__name__)

StateListener = Callable[[ScanState], None]


class ScanCoordinator:
    """
    Owns the state and results of directory scans. Plain object: create one per
    host and inject it where needed.

    State machine:
        Idle --start_scan--> Scanning --> Complete | Error
        Scanning --cancel_scan / start_scan--> Idle (partial results discarded)
    """

    def __init__(self, command_factory: Callable[[], ScanCommand] = ScanCommand):
        self._command_factory = command_factory
        self._lock = threading.RLock()
        self._listeners: List[StateListener] = []

        self._generation = 0
        self._cancel_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

        self._state = ScanState.idle()
        self._params: Optional[ScanParams] = None
        self._summary = ScanSummary.empty()
        self._listing: List[FileRecord] = []
        self._directory_sizes: List[DirectorySize] = []

    # ---- observers ----

    def add_listener(self, listener: StateListener) -> None:
        """Listener is called with every published ScanState, in order."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    # ---- commands ----

    def start_scan(self, root_dir: str, params: Optional[ScanParams] = None) -> int:
        """
        Starts a scan in the background and returns its generation.
        Any scan still running is cancelled and its results discarded.
        """
        if params is None:
            params = ScanParams.for_mode(root_dir)
        elif params.root_dir != root_dir:
            params = dataclasses.replace(params, root_dir=root_dir)

        with self._lock:
            self._stop_active_scan()
            self._generation += 1
            generation = self._generation
            cancel_event = threading.Event()
            self._cancel_event = cancel_event

            self._params = params
            self._summary = ScanSummary.empty()
            self._listing = []
            self._directory_sizes = []
            self._set_state(ScanState.scanning(0.0, 0))

            logger.debug(f"Starting scan #{generation} of {params.root_dir}")
            self._thread = threading.Thread(
                target=self._run,
                args=(generation, cancel_event, params),
                name=f"spacescan-scan-{generation}",
                daemon=True,
            )
            self._thread.start()
        return generation

    def cancel_scan(self) -> None:
        """Idempotent. Returns a running scan to Idle; does nothing otherwise."""
        with self._lock:
            if self._stop_active_scan():
                logger.debug(f"Scan #{self._generation} cancelled")
                self._generation += 1
                self._set_state(ScanState.idle())

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Blocks until the most recent scan thread exits. True if it has."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def remove_from_listing(self, path: str) -> bool:
        """
        Drops a record after a collaborator confirmed it was deleted externally.
        The summary is left as scanned.
        """
        with self._lock:
            remaining = [r for r in self._listing if r.path != path]
            removed = len(remaining) != len(self._listing)
            self._listing = remaining
            return removed

    # ---- point-in-time reads ----

    def current_state(self) -> ScanState:
        with self._lock:
            return self._state

    @property
    def is_scanning(self) -> bool:
        return self.current_state().is_scanning

    def current_params(self) -> Optional[ScanParams]:
        with self._lock:
            return self._params

    def current_summary(self) -> ScanSummary:
        with self._lock:
            return self._summary.copy()

    def current_listing(self,
                        sort_by: FileSortOption = FileSortOption.SIZE,
                        file_type: Optional[FileType] = None) -> List[FileRecord]:
        """A fresh list, optionally narrowed to one type and re-ordered."""
        with self._lock:
            listing = list(self._listing)
        return arrange_listing(listing, sort_by, file_type)

    def current_directory_sizes(self, limit: Optional[int] = None) -> List[DirectorySize]:
        with self._lock:
            sizes = [dataclasses.replace(d) for d in self._directory_sizes]
        return sizes[:limit] if limit is not None else sizes

    # ---- worker side ----

    def _run(self, generation: int, cancel_event: threading.Event, params: ScanParams) -> None:
        def on_progress(visited: int, estimate: int, retained: int) -> None:
            self._publish(generation, cancel_event, ScanState.scanning(progress_fraction(visited, estimate), retained))

        try:
            result = self._command_factory().execute(
                params,
                stopped_flag=cancel_event.is_set,
                progress_callback=on_progress,
            )
        except ScanRootError as e:
            self._publish(generation, cancel_event, ScanState.error(str(e)), final=True)
            return
        except Exception as e:
            logger.exception("Unexpected error during scan")
            self._publish(generation, cancel_event, ScanState.error(f"{type(e).__name__}: {e}"), final=True)
            return

        if result is None:
            return

        with self._lock:
            if not self._is_current(generation, cancel_event):
                return
            self._summary = result.summary
            self._listing = result.listing
            self._directory_sizes = result.directory_sizes
            self._cancel_event = None
            self._set_state(ScanState.complete(len(result.listing)))

    def _publish(self, generation: int, cancel_event: threading.Event, state: ScanState, final: bool = False) -> None:
        with self._lock:
            if not self._is_current(generation, cancel_event):
                return
            if final:
                self._cancel_event = None
            self._set_state(state)

    def _is_current(self, generation: int, cancel_event: threading.Event) -> bool:
        return generation == self._generation and not cancel_event.is_set()

    def _stop_active_scan(self) -> bool:
        if self._cancel_event is None:
            return False
        self._cancel_event.set()
        self._cancel_event = None
        return True

    def _set_state(self, state: ScanState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Error in scan state listener")


class DuplicateSearch:
    """
    Runs DuplicateDetector passes on a background thread.

    Listeners mirror a worker's signals:
        progress(stage, current, total), finished(groups, stats), error(message)
    """

    def __init__(self,
                 detector_factory: Callable[[], DuplicateDetector] = DuplicateDetectorImpl,
                 mode: DetectionMode = DetectionMode.PREFIX):
        self._detector_factory = detector_factory
        self.mode = mode
        self._lock = threading.RLock()
        self._progress_listeners: List[Callable[[str, int, object], None]] = []
        self._finished_listeners: List[Callable[[List[DuplicateGroup], DetectionStats], None]] = []
        self._error_listeners: List[Callable[[str], None]] = []

        self._generation = 0
        self._cancel_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

        self._progress = 0.0
        self._groups: List[DuplicateGroup] = []
        self._stats: Optional[DetectionStats] = None

    def add_progress_listener(self, listener: Callable[[str, int, object], None]) -> None:
        with self._lock:
            self._progress_listeners.append(listener)

    def add_finished_listener(self, listener: Callable[[List[DuplicateGroup], DetectionStats], None]) -> None:
        with self._lock:
            self._finished_listeners.append(listener)

    def add_error_listener(self, listener: Callable[[str], None]) -> None:
        with self._lock:
            self._error_listeners.append(listener)

    def start(self, files: List[FileRecord]) -> int:
        """Starts a detection pass over a snapshot of `files`; cancels any running pass."""
        snapshot = list(files)
        with self._lock:
            self.cancel()
            self._generation += 1
            generation = self._generation
            cancel_event = threading.Event()
            self._cancel_event = cancel_event
            self._progress = 0.0
            self._groups = []
            self._stats = None

            self._thread = threading.Thread(
                target=self._run,
                args=(generation, cancel_event, snapshot),
                name=f"spacescan-duplicates-{generation}",
                daemon=True,
            )
            self._thread.start()
        return generation

    def cancel(self) -> None:
        with self._lock:
            if self._cancel_event is not None:
                self._cancel_event.set()
                self._cancel_event = None
                self._progress = 0.0

    def wait(self, timeout: Optional[float] = None) -> bool:
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._cancel_event is not None

    @property
    def progress(self) -> float:
        with self._lock:
            return self._progress

    @property
    def groups(self) -> List[DuplicateGroup]:
        with self._lock:
            return list(self._groups)

    @property
    def stats(self) -> Optional[DetectionStats]:
        with self._lock:
            return self._stats

    @property
    def potential_savings(self) -> int:
        with self._lock:
            return potential_savings(self._groups)

    def _run(self, generation: int, cancel_event: threading.Event, files: List[FileRecord]) -> None:
        def on_progress(stage: str, current: int, total=None) -> None:
            with self._lock:
                if not self._is_current(generation, cancel_event):
                    return
                if stage == Stage.PREFIX.value and total:
                    self._progress = min(current / total, MAX_PROGRESS)
                self._notify(self._progress_listeners, stage, current, total)

        try:
            groups, stats = self._detector_factory().find_duplicates(
                files,
                self.mode,
                stopped_flag=cancel_event.is_set,
                progress_callback=on_progress,
            )
        except Exception as e:
            logger.exception("Unexpected error during duplicate detection")
            with self._lock:
                if self._is_current(generation, cancel_event):
                    self._cancel_event = None
                    self._notify(self._error_listeners, f"{type(e).__name__}: {e}")
            return

        with self._lock:
            if not self._is_current(generation, cancel_event):
                return
            self._groups = groups
            self._stats = stats
            self._progress = 1.0
            self._cancel_event = None
            self._notify(self._finished_listeners, list(groups), stats)

    def _is_current(self, generation: int, cancel_event: threading.Event) -> bool:
        return generation == self._generation and not cancel_event.is_set()

    @staticmethod
    def _notify(listeners: List[Callable], *args: Tuple) -> None:
        for listener in list(listeners):
            try:
                listener(*args)
            except Exception:
                logger.exception("Error in duplicate search listener")
