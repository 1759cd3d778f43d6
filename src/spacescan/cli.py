#!/usr/bin/env python3
"""
SpaceScan CLI — Command line interface for large file search and storage overview.
Drives the same ScanCoordinator and duplicate detector a GUI host would use.
All deletions move files to the system trash, never permanent erase.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import sys
import os
import time
from pathlib import Path
from typing import List, Optional, NoReturn, Tuple
import logging

logging.basicConfig(
    level=logging.ERROR,
    format="%(levelname)-8s | %(name)-25s | %(message)s"
)

# === EARLY DEPENDENCY VALIDATION ===
_MISSING_DEPS = []
try:
    from send2trash import send2trash
except ImportError:
    _MISSING_DEPS.append("send2trash")

try:
    import xxhash
except ImportError:
    _MISSING_DEPS.append("xxhash")

if _MISSING_DEPS:
    print("❌ Missing required dependencies:", file=sys.stderr)
    print(f"   pip install {' '.join(_MISSING_DEPS)}", file=sys.stderr)
    sys.exit(1)

# === NORMAL IMPORTS (after validation) ===
from spacescan.core.models import (
    ScanParams, ScanState, ScanPhase, ScanMode, DetectionMode, DuplicateGroup, FileRecord,
    FileSortOption, FileType,
)
from spacescan.core.coordinator import ScanCoordinator
from spacescan.core.deduplicator import DuplicateDetectorImpl
from spacescan.core.grouper import FileGrouperImpl
from spacescan.core.hasher import HasherImpl, HASH_ALGORITHMS
from spacescan.utils.convert_utils import ConvertUtils
from spacescan.services.file_service import FileService
from spacescan.services.duplicate_service import DuplicateService
from spacescan.services.export_service import ExportService, ExportFormat
from spacescan.aliases import (
    LOCATION_ALIASES, MODE_ALIASES, MODE_CHOICES, MODE_HELP_TEXT,
    HASH_CHOICES, EXPORT_CHOICES, SORT_CHOICES, SORT_HELP_TEXT, TYPE_CHOICES, EPILOG_TEXT,
)

WAIT_INTERVAL = 0.1  # seconds between checks for Ctrl+C while a scan runs


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False

        # Fix encoding for Windows consoles to prevent UnicodeEncodeError
        sys.stdout.reconfigure(encoding='utf-8', errors='replace')
        sys.stderr.reconfigure(encoding='utf-8', errors='replace')

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse command-line arguments."""
        parser = argparse.ArgumentParser(
            description="SpaceScan — Find large files, see where space goes, remove duplicates safely",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        parser.add_argument(
            "--input", "-i",
            required=True,
            type=str,
            help="Directory to scan, or one of: " + ", ".join(LOCATION_ALIASES)
        )

        # Scan options
        parser.add_argument(
            "--mode",
            choices=MODE_CHOICES,
            default="large-files",
            type=str,
            help=MODE_HELP_TEXT
        )
        parser.add_argument(
            "--min-size", "-m",
            default=None,
            type=str,
            metavar='',
            help="Minimum size of listed files (e.g., 500MB, 1G).\n"
                 "Default: 100MB for large-files, 0 for overview"
        )
        parser.add_argument(
            "--max-depth", "-d",
            default=None,
            type=int,
            metavar='',
            dest="max_depth",
            help="Do not descend deeper than N path segments below the root (N >= 1)"
        )
        parser.add_argument(
            "--include-hidden",
            action="store_true",
            help="Scan hidden files and directories (always on in overview mode)"
        )
        parser.add_argument(
            "--include-packages",
            action="store_true",
            help="Descend into package bundles such as .app or .photoslibrary"
        )
        parser.add_argument(
            "--top", "-t",
            default=10,
            type=int,
            metavar='',
            help="How many files and top-level directories to print. Default: 10"
        )
        parser.add_argument(
            "--sort", "-s",
            choices=SORT_CHOICES,
            default=FileSortOption.SIZE.value,
            type=str,
            help=SORT_HELP_TEXT
        )
        parser.add_argument(
            "--type",
            choices=TYPE_CHOICES,
            default=None,
            type=str,
            dest="file_type",
            help="Only list, export and compare files of this type"
        )

        # Duplicate options
        parser.add_argument(
            "--duplicates",
            action="store_true",
            help="Find byte-identical duplicates among the listed files"
        )
        parser.add_argument(
            "--verify",
            action="store_true",
            help="Confirm duplicates larger than 64KB with a full-content hash"
        )
        parser.add_argument(
            "--hash",
            choices=HASH_CHOICES,
            default="sha256",
            type=str,
            help="Fingerprint algorithm. Default: sha256"
        )

        # Export
        parser.add_argument(
            "--export",
            choices=EXPORT_CHOICES,
            default=None,
            type=str,
            help="Write the full listing as CSV or as a text report"
        )
        parser.add_argument(
            "--output", "-o",
            default=None,
            type=str,
            metavar='',
            help="Export destination. Default: timestamped file in the temp directory"
        )

        # Actions
        parser.add_argument(
            "--keep-one",
            action="store_true",
            help="Keep one file per duplicate group and move the rest to trash.\n"
                 "Implies --duplicates. Always shows preview before deletion for safety."
        )

        # Output options
        parser.add_argument(
            "--force",
            action="store_true",
            help="Skip confirmation prompt when used with --keep-one (for automation/scripts)"
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show detailed statistics and progress"
        )

        return parser.parse_args(args)

    @staticmethod
    def resolve_input(value: str) -> Path:
        """Expands location aliases (home, downloads, ...) and '~'."""
        raw = LOCATION_ALIASES.get(value.strip().lower(), value)
        return Path(raw).expanduser().resolve()

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before execution."""
        if args.force and not args.keep_one:
            self.error_exit("--force can only be used with --keep-one")

        # Prevent interactive confirmation in non-TTY environments
        if args.keep_one and not args.force:
            if not sys.stdin.isatty() or not sys.stdout.isatty():
                self.error_exit(
                    "Cannot request interactive confirmation in non-interactive session.\n"
                    "Use --force flag to proceed without confirmation when piping output or running in scripts."
                )

        if args.output and not args.export:
            self.error_exit("--output can only be used with --export")

        root_path = self.resolve_input(args.input)
        if not root_path.exists():
            self.error_exit(f"Directory not found: {args.input}")
        if not root_path.is_dir():
            self.error_exit(f"Path is not a directory: {args.input}")

        if args.min_size is not None:
            try:
                ConvertUtils.human_to_bytes(args.min_size)
            except ValueError as e:
                self.error_exit(f"Invalid size format: {e}")

        if args.max_depth is not None and args.max_depth < 1:
            self.error_exit("Maximum depth must be at least 1")

        if args.top < 0:
            self.error_exit("--top cannot be negative")

        if args.verify and not (args.duplicates or args.keep_one):
            self.warning("--verify has no effect without --duplicates or --keep-one")

    def create_params(self, args: argparse.Namespace) -> ScanParams:
        """Create ScanParams from CLI arguments."""
        mode = MODE_ALIASES.get(args.mode, ScanMode.LARGE_FILES)
        root_dir = str(self.resolve_input(args.input))
        try:
            overrides = dict(
                max_depth=args.max_depth,
                skip_package_interiors=not args.include_packages,
            )
            if args.include_hidden:
                overrides["skip_hidden"] = False
            if args.min_size is not None:
                overrides["min_size_bytes"] = ConvertUtils.human_to_bytes(args.min_size)
            return ScanParams.for_mode(root_dir, mode, **overrides)
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    def on_scan_state(self, state: ScanState) -> None:
        """CLI scan listener - shows progress in console."""
        if not self.verbose or state.phase != ScanPhase.SCANNING:
            return
        sys.stderr.write(f"\r  [Scanning] {state.progress * 100:.1f}% | {state.files_found} files kept")
        sys.stderr.flush()

    def progress_callback(self, stage: str, current: int, total: Optional[int]) -> None:
        """CLI duplicate progress callback."""
        if not self.verbose:
            return

        if total and total > 0:
            percent = (current / total) * 100
            sys.stderr.write(f"\r  [{stage}] {current}/{total} ({percent:.1f}%)")
        else:
            sys.stderr.write(f"\r  [{stage}] {current} files processed...")
        sys.stderr.flush()

    def run_scan(self, params: ScanParams, coordinator: Optional[ScanCoordinator] = None) -> ScanCoordinator:
        """Runs one scan to completion. Ctrl+C cancels it and exits with 130."""
        coordinator = coordinator or ScanCoordinator()
        coordinator.add_listener(self.on_scan_state)
        coordinator.start_scan(params.root_dir, params)

        try:
            while not coordinator.wait(WAIT_INTERVAL):
                pass
        except KeyboardInterrupt:
            coordinator.cancel_scan()
            print("\n⚠️  Scan cancelled by user (Ctrl+C)", file=sys.stderr)
            sys.exit(130)

        if self.verbose:
            sys.stderr.write("\n")

        state = coordinator.current_state()
        if state.phase == ScanPhase.ERROR:
            self.error_exit(f"Scan failed: {state.message}")
        return coordinator

    def output_scan(self,
                    coordinator: ScanCoordinator,
                    params: ScanParams,
                    listing: List[FileRecord],
                    top: int,
                    file_type: Optional[FileType] = None) -> None:
        """Prints totals, per-type breakdown, largest directories and the arranged listing."""
        if self.quiet:
            return

        summary = coordinator.current_summary()

        print(f"\nScanned {summary.total_files} files, {ConvertUtils.bytes_to_human(summary.total_size)} total")

        if summary.by_type:
            print("\nBy type:")
            for file_type, stats in sorted(summary.by_type.items(), key=lambda kv: -kv[1].size):
                print(f"   {file_type.display_name:<12} {stats.count:>8} files  "
                      f"{ConvertUtils.bytes_to_human(stats.size):>10}  "
                      f"{ConvertUtils.share_of(stats.size, summary.total_size):>6}")

        directories = coordinator.current_directory_sizes(top)
        if directories:
            print("\nLargest directories:")
            for entry in directories:
                print(f"   {ConvertUtils.bytes_to_human(entry.size):>10}  {ConvertUtils.printable(entry.name)} ({entry.file_count} files)")

        threshold = ConvertUtils.bytes_to_human(params.min_size_bytes)
        label = f"{file_type.value} files" if file_type else "files"
        if not listing:
            print(f"\nNo {label} of {threshold} or more found.")
            return

        listed_size = sum(r.size for r in listing)
        print(f"\n{len(listing)} {label} of {threshold} or more ({ConvertUtils.bytes_to_human(listed_size)}):")
        for record in listing[:top]:
            print(f"   {ConvertUtils.bytes_to_human(record.size):>10}  [{record.file_type.display_name}] {ConvertUtils.printable(record.path)}")
        if len(listing) > top:
            print(f"   ...and {len(listing) - top} more files")

    def export_listing(self,
                       listing: List[FileRecord],
                       fmt_name: str,
                       output: Optional[str],
                       title: str) -> None:
        fmt = ExportFormat(fmt_name)
        try:
            path = ExportService.write(listing, fmt, output, title)
        except RuntimeError as e:
            self.error_exit(str(e))
        if not self.quiet:
            print(f"\n📄 Exported {len(listing)} files to {path}")

    def run_duplicates(self, listing: List[FileRecord], mode: DetectionMode, hash_name: str) -> List[DuplicateGroup]:
        """Execute the duplicate detection workflow over the scan listing."""
        hasher = HasherImpl(HASH_ALGORITHMS[hash_name]())
        detector = DuplicateDetectorImpl(FileGrouperImpl(hasher))
        if self.verbose:
            print(f"Finding duplicates among {len(listing)} files (mode: {mode.value}, hash: {hash_name})...")

        groups, stats = detector.find_duplicates(
            listing,
            mode,
            progress_callback=self.progress_callback if self.verbose else None,
        )

        if self.verbose:
            sys.stderr.write("\n")
            print("\nDuplicate Detection Statistics:")
            print(stats.print_summary())
        return groups

    def output_duplicates(self, groups: List[DuplicateGroup]) -> None:
        if self.quiet:
            return

        if not groups:
            print("\nNo duplicate groups found.")
            return

        total_files = sum(len(g.files) for g in groups)
        savings, _ = DuplicateService.calculate_space_savings(groups)
        print(f"\nFound {len(groups)} duplicate groups ({total_files} files), "
              f"{ConvertUtils.bytes_to_human(savings)} reclaimable")

        for idx, group in enumerate(groups, 1):
            size_str = ConvertUtils.bytes_to_human(group.size)
            print(f"\n📁 Group {idx} | Size: {size_str} | Files: {len(group.files)}")
            for file in group.files:
                print(f"   {ConvertUtils.printable(file.path)}")

    def execute_keep_one(self, groups: List[DuplicateGroup], force: bool = False) -> None:
        """Keeps the first member of every group and trashes the rest after showing the plan."""
        if not groups:
            if not self.quiet:
                print("\nNo duplicate groups found.")
            return

        files_to_delete, _ = DuplicateService.keep_only_one_file_per_group(groups)
        self.print_keep_one_plan(groups, len(files_to_delete))

        if force:
            print("⚠️  WARNING: --force flag skips confirmation. Proceeding with deletion...")
        else:
            if not sys.stdin.isatty() or not sys.stdout.isatty():
                self.error_exit(
                    "Lost interactive terminal during operation. "
                    "Use --force to proceed in non-interactive environments."
                )
            response = input(f"Move {len(files_to_delete)} duplicates to trash? [y/N]: ")
            if response.strip().lower() not in ("y", "yes"):
                print("Deletion cancelled by user.")
                return

        sizes = {f.path: f.size for g in groups for f in g.files}
        trashed, failures = self.trash_files(files_to_delete)
        freed = ConvertUtils.bytes_to_human(sum(sizes[p] for p in trashed))

        if failures:
            print(f"\n⚠️  Partial success: {len(trashed)}/{len(files_to_delete)} files moved to trash ({freed} freed).")
            for path, error in failures[:5]:
                print(f"  • {ConvertUtils.printable(os.path.basename(path))}: {error.split(':')[-1].strip()}")
            if len(failures) > 5:
                print(f"  ...and {len(failures) - 5} more files")
        else:
            print(f"✅ Moved {len(trashed)} duplicates to trash, {freed} freed.")

    @staticmethod
    def print_keep_one_plan(groups: List[DuplicateGroup], delete_count: int) -> None:
        reclaimable, _ = DuplicateService.calculate_space_savings(groups)
        print()
        for idx, group in enumerate(groups, 1):
            print(f"📁 Group {idx} | {len(group.files)} x {ConvertUtils.bytes_to_human(group.size)} | "
                  f"reclaims {ConvertUtils.bytes_to_human(group.reclaimable_bytes)}")
            print(f"   [KEEP] {ConvertUtils.printable(group.files[0].path)}")
            for file in group.files[1:]:
                print(f"   [DEL]  {ConvertUtils.printable(file.path)}")
        print("=" * 60)
        print(f"Plan: keep {len(groups)} files, trash {delete_count}, "
              f"reclaim {ConvertUtils.bytes_to_human(reclaimable)}")
        print()

    def trash_files(self, paths: List[str]) -> Tuple[List[str], List[Tuple[str, str]]]:
        """Trashes each path independently. Returns (trashed, [(path, error)])."""
        trashed, failures = [], []
        for i, path in enumerate(paths, 1):
            if self.verbose:
                print(f"  [{i}/{len(paths)}] {ConvertUtils.printable(os.path.basename(path))}")
            try:
                FileService.move_to_trash(path)
                trashed.append(path)
            except (FileNotFoundError, RuntimeError) as e:
                failures.append((path, str(e)))
                self.warning(f"Failed to delete {ConvertUtils.printable(path)}: {e}")
        return trashed, failures

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv=None) -> None:
        """Main entry point with conditional output behavior."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        if self.verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        self.validate_args(args)
        params = self.create_params(args)

        if not self.quiet:
            print(f"Scanning directory: {params.root_dir} ({params.mode.display_name})")

        coordinator = self.run_scan(params)
        file_type = FileType(args.file_type) if args.file_type else None
        listing = coordinator.current_listing(FileSortOption(args.sort), file_type)
        self.output_scan(coordinator, params, listing, args.top, file_type)

        if args.export:
            self.export_listing(listing, args.export, args.output, params.mode.display_name)

        if args.duplicates or args.keep_one:
            mode = DetectionMode.VERIFIED if args.verify else DetectionMode.PREFIX
            groups = self.run_duplicates(listing, mode, args.hash)
            if args.keep_one:
                self.execute_keep_one(groups, force=args.force)
            else:
                self.output_duplicates(groups)

        elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"\n✅ Completed in {elapsed:.2f} seconds")


def main() -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        app.run()
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)")
        sys.exit(130)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
