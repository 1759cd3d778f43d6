"""
Qt integration for hosts built on PySide6.

ScanStateBridge   : re-emits ScanCoordinator states as a Qt signal, so slots run on the GUI thread
DuplicateWorker   : QRunnable for QThreadPool running one duplicate detection pass
"""
from typing import List, Optional

from PySide6.QtCore import QRunnable, QObject, Signal, QMutex, QMutexLocker

from spacescan.core.coordinator import ScanCoordinator
from spacescan.core.deduplicator import DuplicateDetectorImpl
from spacescan.core.interfaces import DuplicateDetector
from spacescan.core.models import FileRecord, DetectionMode, ScanState


class ScanStateBridge(QObject):
    """
    Listens to a coordinator from its worker thread and re-emits each state.
    Queued connections deliver them to receivers in the receiver's thread.
    """
    state_changed = Signal(object)  # ScanState

    def __init__(self, coordinator: ScanCoordinator, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.coordinator = coordinator
        coordinator.add_listener(self._on_state)

    def _on_state(self, state: ScanState) -> None:
        self.state_changed.emit(state)

    def disconnect_coordinator(self) -> None:
        self.coordinator.remove_listener(self._on_state)


class WorkerSignals(QObject):
    """Separate QObject to hold signals (QRunnable cannot emit signals directly)."""
    progress = Signal(str, int, object)  # stage, current, total
    finished = Signal(list, object)      # duplicate_groups, stats
    error = Signal(str)


class DuplicateWorker(QRunnable):
    """
    Worker runnable that finds duplicates among a finished scan listing.
    Automatically deleted after execution (setAutoDelete=True).
    """
    def __init__(self, files: List[FileRecord],
                 mode: DetectionMode = DetectionMode.PREFIX,
                 detector: Optional[DuplicateDetector] = None):
        super().__init__()
        self.files = list(files)
        self.mode = mode
        self.detector = detector or DuplicateDetectorImpl()
        self.signals = WorkerSignals()
        self._stopped = False
        self._mutex = QMutex()
        self.setAutoDelete(True)

    def stop(self):
        """Sets the stopped flag to signal the worker to terminate gracefully."""
        with QMutexLocker(self._mutex):
            self._stopped = True

    def is_stopped(self) -> bool:
        """Returns True if the worker has been requested to stop."""
        with QMutexLocker(self._mutex):
            return self._stopped

    def safe_progress_emit(self, stage: str, current: int, total=None):
        """Emits progress signal safely with mutex protection."""
        with QMutexLocker(self._mutex):
            if not self._stopped:
                try:
                    self.signals.progress.emit(stage, current, total)
                except RuntimeError:
                    # Receiver already destroyed
                    pass

    def run(self):
        """Main execution method. Runs in thread pool thread."""
        try:
            if self.is_stopped():
                return

            groups, stats = self.detector.find_duplicates(
                self.files,
                self.mode,
                stopped_flag=self.is_stopped,
                progress_callback=self.safe_progress_emit
            )

            if not self.is_stopped():
                self.signals.finished.emit(groups, stats)
        except Exception as e:
            if not self.is_stopped():
                self.signals.error.emit(f"{type(e).__name__}: {str(e)}")
