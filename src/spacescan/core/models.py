"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models for directory scanning, storage aggregation and duplicate detection.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Union
from enum import Enum

from spacescan.utils.convert_utils import ConvertUtils


# =============================
# Enums
# =============================

class FileType(Enum):
    """
    Semantic category of a file, derived from its extension or path.
    """
    VIDEO = "video"
    IMAGE = "image"
    AUDIO = "audio"
    DOCUMENT = "document"
    ARCHIVE = "archive"
    APPLICATION = "application"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        """Human-readable name for UI display."""
        return self.value.capitalize()

    def __repr__(self) -> str:
        return self.value


class ScanMode(Enum):
    """
    Preset scan configurations sharing the same walker and aggregator.
    """
    LARGE_FILES = "large-files"
    STORAGE_OVERVIEW = "overview"

    @property
    def display_name(self) -> str:
        mapping = {
            ScanMode.LARGE_FILES: "Large Files",
            ScanMode.STORAGE_OVERVIEW: "Storage Overview",
        }
        return mapping.get(self, self.value)

    @property
    def description(self) -> str:
        mapping = {
            ScanMode.LARGE_FILES:
                "Keep only files above the minimum size (default 100MB), hidden entries skipped",
            ScanMode.STORAGE_OVERVIEW:
                "Keep every file, hidden entries included",
        }
        return mapping.get(self, self.value)

    def __repr__(self) -> str:
        return self.value


class FileSortOption(Enum):
    """
    Orderings offered for a finished listing. SIZE is the order a scan produces.
    """
    SIZE = "size"
    NAME = "name"
    DATE = "date"
    TYPE = "type"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    def __repr__(self) -> str:
        return self.value


class DetectionMode(Enum):
    """
    Depth of duplicate confirmation.
    """
    PREFIX = "prefix"
    VERIFIED = "verified"

    @property
    def description(self) -> str:
        mapping = {
            DetectionMode.PREFIX:
                "Size → Prefix Hash (fast, large files sharing only a header may be reported)",
            DetectionMode.VERIFIED:
                "Size → Prefix Hash → Full Hash for files larger than the prefix",
        }
        return mapping.get(self, self.value)

    def __repr__(self) -> str:
        return self.value


class Stage(str, Enum):
    SIZE = "Size grouping"
    PREFIX = "Prefix Hash"
    FULL = "Full Hash"


class ScanPhase(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    COMPLETE = "complete"
    ERROR = "error"


# ======================
#  Core Data Models
# ======================

@dataclass(frozen=True)
class FileRecord:
    """
    Immutable snapshot of one regular file taken when the walker visited it.
    """
    name: str
    path: str
    size: int  # in bytes
    modified_at: float
    file_type: FileType = FileType.OTHER

    def __repr__(self):
        return f"<FileRecord path={self.path}, size={self.size}>"


@dataclass
class DirectorySize:
    """Cumulative size of one top-level child of the scan root."""
    name: str
    path: str
    size: int
    file_count: int = 0


@dataclass
class TypeStats:
    count: int = 0
    size: int = 0


@dataclass
class ScanSummary:
    """
    Aggregate snapshot of a completed scan. Regenerated wholesale on each scan.
    """
    total_files: int = 0
    total_size: int = 0
    by_type: Dict[FileType, TypeStats] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "ScanSummary":
        return cls()

    def copy(self) -> "ScanSummary":
        """Independent copy, per-type stats included."""
        return ScanSummary(
            total_files=self.total_files,
            total_size=self.total_size,
            by_type={t: TypeStats(s.count, s.size) for t, s in self.by_type.items()},
        )


@dataclass(frozen=True)
class ScanState:
    """
    Tagged scan state. Only `SCANNING` carries progress, only `ERROR` a message.
    """
    phase: ScanPhase = ScanPhase.IDLE
    progress: float = 0.0
    files_found: int = 0
    message: Optional[str] = None

    @classmethod
    def idle(cls) -> "ScanState":
        return cls(ScanPhase.IDLE)

    @classmethod
    def scanning(cls, progress: float, files_found: int) -> "ScanState":
        return cls(ScanPhase.SCANNING, progress=progress, files_found=files_found)

    @classmethod
    def complete(cls, files_found: int) -> "ScanState":
        return cls(ScanPhase.COMPLETE, progress=1.0, files_found=files_found)

    @classmethod
    def error(cls, message: str) -> "ScanState":
        return cls(ScanPhase.ERROR, message=message)

    @property
    def is_scanning(self) -> bool:
        return self.phase == ScanPhase.SCANNING

    def __repr__(self):
        if self.phase == ScanPhase.SCANNING:
            return f"<ScanState scanning progress={self.progress:.2f}, found={self.files_found}>"
        if self.phase == ScanPhase.ERROR:
            return f"<ScanState error message={self.message!r}>"
        return f"<ScanState {self.phase.value}>"


@dataclass
class DuplicateGroup:
    """
    A group of files sharing size and content fingerprint.
    Holds references to the scan's records, never copies of them.
    """
    size: int
    files: List[FileRecord]
    fingerprint: bytes = b""

    @property
    def duplicate_count(self) -> int:
        """How many files are in this group."""
        return len(self.files)

    @property
    def reclaimable_bytes(self) -> int:
        """Space freed if all but one copy were removed."""
        return self.size * max(0, self.duplicate_count - 1)

    def is_duplicate(self) -> bool:
        """True if this group contains at least two files."""
        return self.duplicate_count >= 2

    def __repr__(self):
        return f"<DuplicateGroup size={self.size}, count={len(self.files)}>"


class DetectionStats:
    """
    Statistics collected during a duplicate detection pass.
    """
    def __init__(self):
        self.total_time: float = 0.0
        self.candidates: int = 0
        self.potential_savings: int = 0
        self.stage_stats: Dict[str, Dict[str, Union[int, float]]] = {}

    def update_stage(
            self,
            stage_name: str,
            groups_found: int,
            files_processed: int,
            duration: float
    ) -> None:
        if stage_name not in self.stage_stats:
            self.stage_stats[stage_name] = {
                "groups": 0,
                "files": 0,
                "time": 0.0
            }
        self.stage_stats[stage_name]["groups"] += groups_found
        self.stage_stats[stage_name]["files"] += files_processed
        self.stage_stats[stage_name]["time"] += duration

    def print_summary(self) -> str:
        labels = {
            "size": "📁 Size Groups",
            "prefix": "📄 Prefix Hash Groups",
            "full": "🔍 Full Content Hash Groups",
        }

        lines = [
            "📊 Duplicate Detection Statistics:",
            f"Total Execution Time: {self.total_time:.3f}s",
            f"Candidates: {self.candidates}\n",
            "Stage: GROUPS / FILES / TIME"
        ]

        for stage, data in self.stage_stats.items():
            label = labels.get(stage.lower(), stage.title())
            if data["groups"] > 0 or data["time"] > 0:
                lines.append(f"{label}: {data['groups']} / {data['files']} / {data['time']:.3f}s")

        return "\n".join(lines)


# ======================
#  Parameters
# ======================

LARGE_FILE_THRESHOLD = 100 * 1024 * 1024


@dataclass
class WalkOptions:
    """Traversal switches for the directory walker."""
    skip_hidden: bool = True
    skip_package_interiors: bool = True
    max_depth: Optional[int] = None

    def __post_init__(self):
        if self.max_depth is not None and self.max_depth < 1:
            raise ValueError("Maximum depth must be at least 1")


@dataclass
class ScanParams:
    """Parameters for one scan with built-in validation."""
    root_dir: str
    min_size_bytes: int = LARGE_FILE_THRESHOLD
    skip_hidden: bool = True
    skip_package_interiors: bool = True
    max_depth: Optional[int] = None
    mode: ScanMode = ScanMode.LARGE_FILES

    def __post_init__(self):
        """Validate parameters immediately after creation."""
        if not self.root_dir:
            raise ValueError("Root directory cannot be empty")

        if self.min_size_bytes < 0:
            raise ValueError("Minimum size cannot be negative")

        if self.max_depth is not None and self.max_depth < 1:
            raise ValueError("Maximum depth must be at least 1")

    @property
    def walk_options(self) -> WalkOptions:
        return WalkOptions(
            skip_hidden=self.skip_hidden,
            skip_package_interiors=self.skip_package_interiors,
            max_depth=self.max_depth,
        )

    @staticmethod
    def for_mode(root_dir: str, mode: ScanMode = ScanMode.LARGE_FILES, **overrides) -> 'ScanParams':
        """
        Preset factory. Both modes skip package interiors; the storage overview
        retains every file and includes hidden entries.
        """
        if mode == ScanMode.STORAGE_OVERVIEW:
            defaults = dict(min_size_bytes=0, skip_hidden=False)
        else:
            defaults = dict(min_size_bytes=LARGE_FILE_THRESHOLD, skip_hidden=True)
        defaults.update(overrides)
        return ScanParams(root_dir=root_dir, mode=mode, **defaults)

    @staticmethod
    def from_human_readable(
            root_dir: str,
            min_size_str: str,
            mode: ScanMode = ScanMode.LARGE_FILES,
            max_depth: Optional[int] = None,
            include_hidden: Optional[bool] = None,
            include_packages: bool = False,
    ) -> 'ScanParams':
        """
        Factory method to create params from human-readable inputs.
        Useful for CLI argument parsing or GUI input conversion.
        """
        overrides = dict(
            min_size_bytes=ConvertUtils.human_to_bytes(min_size_str),
            max_depth=max_depth,
            skip_package_interiors=not include_packages,
        )
        if include_hidden is not None:
            overrides["skip_hidden"] = not include_hidden
        return ScanParams.for_mode(root_dir, mode, **overrides)
