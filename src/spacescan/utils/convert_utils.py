"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/convert_utils.py
Size, share and time formatting for reports, exports and CLI filters.
All sizes use binary (1024-based) units.
"""
import re
import time

# (suffix, multiplier), largest first
SIZE_UNITS = [
    ("PB", 1024 ** 5),
    ("TB", 1024 ** 4),
    ("GB", 1024 ** 3),
    ("MB", 1024 ** 2),
    ("KB", 1024),
]

_SIZE_PATTERN = re.compile(r"^(?P<sign>-?)(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>[PTGMK]B?|B)?$")


class ConvertUtils:
    @staticmethod
    def bytes_to_human(size_bytes: int) -> str:
        """
        Convert bytes to a short string: 512B, 1.46KB, 3.00GB.
        Negative sizes render as 0B.
        """
        if size_bytes < 1024:
            return f"{max(int(size_bytes), 0)}B"

        for suffix, multiplier in SIZE_UNITS:
            if size_bytes >= multiplier:
                return f"{size_bytes / multiplier:.2f}{suffix}"
        return f"{size_bytes}B"

    @staticmethod
    def human_to_bytes(size_str: str) -> int:
        """
        Parse '1.5GB', '2048KB', '500 MB', '1000', '1K', '1G' into bytes.
        Single-letter suffixes are the same binary units as their 'B' forms.

        Raises:
            ValueError: For negative sizes or unrecognised formats
        """
        normalized = size_str.strip().upper()
        match = _SIZE_PATTERN.match(normalized)
        if not match:
            raise ValueError(
                f"Invalid size format: '{size_str.strip()}'. "
                f"Supported formats: 1.5GB, 2048KB, 500 MB, 1000, 1K, 1M, etc."
            )
        if match.group("sign"):
            raise ValueError(f"Negative size not allowed: '{size_str.strip()}'")

        unit = match.group("unit") or "B"
        if unit != "B" and not unit.endswith("B"):
            unit += "B"
        multiplier = dict(SIZE_UNITS).get(unit, 1)
        return int(float(match.group("value")) * multiplier)

    @staticmethod
    def share_of(part: int, total: int) -> str:
        """Percentage of `total` taken by `part`, e.g. '42.5%'. Empty totals give '0.0%'."""
        if total <= 0:
            return "0.0%"
        return f"{part / total * 100:.1f}%"

    @staticmethod
    def printable(text: str) -> str:
        """
        Filesystem text safe to print: bytes that were not valid UTF-8
        (kept by os.walk as surrogate escapes) become U+FFFD.
        """
        return text.encode("utf-8", "surrogateescape").decode("utf-8", "replace")

    @staticmethod
    def timestamp_to_human(timestamp: float, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
        """Unix timestamp in local time; 'Invalid timestamp' if it cannot be represented."""
        try:
            return time.strftime(fmt, time.localtime(timestamp))
        except (OverflowError, OSError, ValueError):
            return "Invalid timestamp"
