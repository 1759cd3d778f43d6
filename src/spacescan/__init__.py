"""
SpaceScan — large file finder, storage overview and duplicate detector.

Core features:
- Lazy, cancellable directory walks with a phased scan state
- Storage totals by file type and by top-level directory
- Duplicate detection: size → prefix hash, optionally verified by full hash
- Safe deletion to system trash (via send2trash)
- Optional Qt bridge with PySide6 (install with [gui] extra)
- CLI interface for headless usage
"""
from importlib.metadata import version as _version, PackageNotFoundError

try:
    __version__ = _version("spacescan")
except PackageNotFoundError:
    __version__ = "0.0.0"

# Public API: core first, commands depends on it
from spacescan.core import (
    ScanCoordinator, DuplicateSearch, ScanParams, ScanMode, ScanState, ScanPhase,
    FileRecord, FileType, FileSortOption, DuplicateGroup, DetectionMode,
)
from spacescan.commands import ScanCommand, arrange_listing
from spacescan.utils.convert_utils import ConvertUtils
from spacescan.services import DuplicateService, FileService, ExportService, ExportFormat

__all__ = [
    "ScanCoordinator",
    "DuplicateSearch",
    "ScanCommand",
    "arrange_listing",
    "ScanParams",
    "ScanMode",
    "ScanState",
    "ScanPhase",
    "FileRecord",
    "FileType",
    "FileSortOption",
    "DuplicateGroup",
    "DetectionMode",
    "ConvertUtils",
    "DuplicateService",
    "FileService",
    "ExportService",
    "ExportFormat",
    "__version__",
]
