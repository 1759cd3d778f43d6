from spacescan.core.models import ScanMode, FileSortOption, FileType

LOCATION_ALIASES = {
    "home": "~",
    "downloads": "~/Downloads",
    "documents": "~/Documents",
    "desktop": "~/Desktop",
}

MODE_ALIASES = {
    "large-files": ScanMode.LARGE_FILES,
    "large": ScanMode.LARGE_FILES,
    "overview": ScanMode.STORAGE_OVERVIEW,
}

MODE_CHOICES = list(MODE_ALIASES.keys())

MODE_HELP_TEXT = (
    "Scan mode:\n"
    "  large-files : Keep files of at least --min-size (default 100MB), skip hidden entries\n"
    "  overview    : Keep every file, include hidden entries\n"
    "Example:\n"
    "  %(prog)s -i ~/Downloads --mode overview --top 5"
)

HASH_CHOICES = ["sha256", "xxhash"]

EXPORT_CHOICES = ["csv", "text"]

SORT_CHOICES = [option.value for option in FileSortOption]

TYPE_CHOICES = [file_type.value for file_type in FileType]

SORT_HELP_TEXT = (
    "Order of the printed and exported listing:\n"
    "  size : Largest first (default)\n"
    "  name : Alphabetical, case-insensitive\n"
    "  date : Most recently modified first\n"
    "  type : Grouped by file type, largest first within a type"
)

EPILOG_TEXT = """
Examples:
  Find files of 100MB or more in your home directory
  %(prog)s -i home

  Storage overview of Documents: totals by type and the 5 largest folders
  %(prog)s -i documents --mode overview --top 5

  Only videos in Downloads, newest first
  %(prog)s -i downloads --type video --sort date

  Files of 500MB or more in Downloads, exported to CSV
  %(prog)s -i downloads -m 500MB --export csv --output ~/large.csv

  Same scan + find byte-identical duplicates among the large files
  %(prog)s -i downloads -m 500MB --duplicates --verify

  Same as above + move duplicates to trash (with confirmation prompt)
  %(prog)s -i downloads -m 500MB --keep-one

  Same as above but without confirmation (for scripts)
  %(prog)s -i downloads -m 500MB --keep-one --force > ~/report.txt
"""
