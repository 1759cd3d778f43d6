"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/classifier.py
Maps a file path to its semantic FileType category by extension.
"""

import os
from spacescan.core.models import FileType

VIDEO_EXTENSIONS = frozenset({"mp4", "mov", "avi", "mkv", "wmv", "flv", "webm", "m4v"})
IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "bmp", "tiff", "heic", "webp", "svg", "raw", "psd"})
AUDIO_EXTENSIONS = frozenset({"mp3", "wav", "aac", "flac", "m4a", "ogg", "wma", "aiff"})
DOCUMENT_EXTENSIONS = frozenset({
    "pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "txt", "rtf", "pages", "numbers", "key"
})
ARCHIVE_EXTENSIONS = frozenset({"zip", "rar", "7z", "tar", "gz", "dmg", "iso", "pkg"})

# Checked in order: the first matching set wins
_EXTENSION_TABLE = (
    (VIDEO_EXTENSIONS, FileType.VIDEO),
    (IMAGE_EXTENSIONS, FileType.IMAGE),
    (AUDIO_EXTENSIONS, FileType.AUDIO),
    (DOCUMENT_EXTENSIONS, FileType.DOCUMENT),
    (ARCHIVE_EXTENSIONS, FileType.ARCHIVE),
)


def classify(path: str) -> FileType:
    """
    Returns the FileType for a path. Anything inside an `.app` bundle, or the
    bundle itself, is an application.
    """
    ext = os.path.splitext(path)[1].lower().lstrip(".")

    for extensions, file_type in _EXTENSION_TABLE:
        if ext in extensions:
            return file_type

    if ext == "app" or ".app/" in path.replace(os.sep, "/"):
        return FileType.APPLICATION

    return FileType.OTHER
