"""
Core scan engine — walker, aggregator, coordinator and duplicate detector.

This package contains the pure-Python foundation of spacescan:
- DirectoryWalkerImpl: lazy, cancellable traversal yielding FileRecords
- ScanAggregator: totals by FileType and by top-level directory
- ScanCoordinator: background scan with a phased ScanState
- DuplicateDetectorImpl + DuplicateSearch: size → prefix hash (→ full hash) pipeline
- Models: FileRecord, DuplicateGroup, ScanSummary and configuration objects

No GUI dependencies — suitable for CLI and server usage.
"""

from .models import (
    FileRecord, FileType, DirectorySize, TypeStats, ScanSummary, ScanState, ScanPhase,
    ScanMode, ScanParams, WalkOptions, DuplicateGroup, DetectionMode, DetectionStats,
    FileSortOption,
)
from .classifier import classify
from .hasher import HasherImpl, Sha256AlgorithmImpl, XXHashAlgorithmImpl
from .walker import DirectoryWalkerImpl, ScanRootError
from .aggregator import ScanAggregator
from .grouper import FileGrouperImpl
from .deduplicator import DuplicateDetectorImpl, potential_savings
from .coordinator import ScanCoordinator, DuplicateSearch

__all__ = [
    "FileRecord",
    "FileType",
    "DirectorySize",
    "TypeStats",
    "ScanSummary",
    "ScanState",
    "ScanPhase",
    "ScanMode",
    "ScanParams",
    "WalkOptions",
    "DuplicateGroup",
    "DetectionMode",
    "DetectionStats",
    "FileSortOption",
    "classify",
    "HasherImpl",
    "Sha256AlgorithmImpl",
    "XXHashAlgorithmImpl",
    "DirectoryWalkerImpl",
    "ScanRootError",
    "ScanAggregator",
    "FileGrouperImpl",
    "DuplicateDetectorImpl",
    "potential_savings",
    "ScanCoordinator",
    "DuplicateSearch",
]
