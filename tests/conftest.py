"""
Shared fixtures for scan engine tests.
Creates isolated temporary directories with controlled file trees.
"""
import os
import sys
import tempfile
from pathlib import Path
from typing import Dict, Callable

import pytest

# Make the src/ layout importable without an editable install
project_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(project_src))

from spacescan.core.models import FileRecord, FileType  # noqa: E402


@pytest.fixture
def temp_dir():
    """Creates isolated temporary directory, auto-cleanup after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def make_file(temp_dir) -> Callable[..., Path]:
    """Writes a file relative to temp_dir, creating parent directories."""
    def _make(relative: str, content: bytes = b"") -> Path:
        path = temp_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path
    return _make


@pytest.fixture
def abc_tree(make_file) -> Dict[str, Path]:
    """
    Duplicate scenario:
    - A and B: identical 1000 bytes
    - C: same size, different content
    """
    payload = b"x" * 1000
    return {
        "a": make_file("A.bin", payload),
        "b": make_file("sub/B.bin", payload),
        "c": make_file("C.bin", b"y" * 1000),
    }


@pytest.fixture
def mixed_tree(make_file) -> Dict[str, Path]:
    """
    Typed files spread over two top-level directories plus the root:
    - root/readme.txt          100 B  document
    - root/Movies/clip.mp4    5000 B  video
    - root/Movies/old/a.mkv   3000 B  video
    - root/Photos/p1.jpg      2000 B  image
    - root/Photos/p2.png       500 B  image
    - root/.hidden/secret.zip 4000 B  archive (hidden)
    - root/.dotfile             50 B  other (hidden)
    """
    return {
        "readme": make_file("readme.txt", b"r" * 100),
        "clip": make_file("Movies/clip.mp4", b"v" * 5000),
        "old": make_file("Movies/old/a.mkv", b"w" * 3000),
        "p1": make_file("Photos/p1.jpg", b"i" * 2000),
        "p2": make_file("Photos/p2.png", b"j" * 500),
        "secret": make_file(".hidden/secret.zip", b"z" * 4000),
        "dotfile": make_file(".dotfile", b"d" * 50),
    }


@pytest.fixture
def undecodable_file(temp_dir) -> str:
    """
    A 2048-byte file named b"caf\\xe9.bin", which is not valid UTF-8.
    Returns its str path as os.walk reports it (surrogate-escaped).
    """
    if sys.platform == "win32":
        pytest.skip("Windows file names are always Unicode")
    raw = os.path.join(os.fsencode(str(temp_dir)), b"caf\xe9.bin")
    try:
        with open(raw, "wb") as fh:
            fh.write(b"n" * 2048)
    except OSError:
        pytest.skip("Filesystem rejects file names that are not valid UTF-8")
    return os.fsdecode(raw)


def record_for(path: Path) -> FileRecord:
    """FileRecord built from a real file on disk."""
    st = os.stat(path)
    return FileRecord(name=path.name, path=str(path), size=st.st_size, modified_at=st.st_mtime)


def fake_record(path: str, size: int, file_type: FileType = FileType.OTHER) -> FileRecord:
    """FileRecord that does not need to exist on disk."""
    return FileRecord(name=os.path.basename(path), path=path, size=size, modified_at=0.0, file_type=file_type)
