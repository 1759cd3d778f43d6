from spacescan.gui.worker import ScanStateBridge, DuplicateWorker, WorkerSignals

__all__ = ["ScanStateBridge", "DuplicateWorker", "WorkerSignals"]
