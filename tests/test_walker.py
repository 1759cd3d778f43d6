"""
Unit tests for DirectoryWalkerImpl.
Verifies traversal, hidden/package/depth pruning, symlink handling,
root validation and cancellation.
"""
import os
import sys
from unittest import mock

import pytest

from spacescan.core.models import WalkOptions, FileType
from spacescan.core.walker import DirectoryWalkerImpl, ScanRootError, PROGRESS_BATCH


def walk_names(root, **options):
    walker = DirectoryWalkerImpl(str(root), WalkOptions(**options))
    return sorted(r.name for r in walker.walk())


class TestDirectoryWalkerBasics:
    """Regular files are yielded once with exact metadata."""

    def test_yields_regular_files_recursively(self, mixed_tree, temp_dir):
        names = walk_names(temp_dir, skip_hidden=False)
        assert names == sorted(["readme.txt", "clip.mp4", "a.mkv", "p1.jpg", "p2.png", "secret.zip", ".dotfile"])

    def test_record_metadata(self, make_file, temp_dir):
        path = make_file("docs/report.pdf", b"p" * 1234)
        records = list(DirectoryWalkerImpl(str(temp_dir)).walk())

        assert len(records) == 1
        record = records[0]
        assert record.name == "report.pdf"
        assert record.path == str(path)
        assert os.path.isabs(record.path)
        assert record.size == 1234
        assert record.modified_at == pytest.approx(os.stat(path).st_mtime)
        assert record.file_type == FileType.DOCUMENT

    def test_empty_directory_yields_nothing(self, temp_dir):
        assert list(DirectoryWalkerImpl(str(temp_dir)).walk()) == []

    def test_directories_are_never_yielded(self, temp_dir):
        (temp_dir / "a" / "b" / "c").mkdir(parents=True)
        assert list(DirectoryWalkerImpl(str(temp_dir)).walk()) == []

    def test_each_walk_starts_from_scratch(self, mixed_tree, temp_dir):
        walker = DirectoryWalkerImpl(str(temp_dir))
        first = [r.path for r in walker.walk()]
        second = [r.path for r in walker.walk()]
        assert first == second
        assert len(first) == 5

    def test_zero_byte_files_are_included(self, make_file, temp_dir):
        make_file("empty.txt")
        records = list(DirectoryWalkerImpl(str(temp_dir)).walk())
        assert [r.size for r in records] == [0]


class TestDirectoryWalkerFiltering:
    def test_hidden_entries_skipped_by_default(self, mixed_tree, temp_dir):
        names = walk_names(temp_dir)
        assert "secret.zip" not in names
        assert ".dotfile" not in names
        assert len(names) == 5

    def test_package_interiors_skipped(self, make_file, temp_dir):
        make_file("Apps/Tool.app/Contents/MacOS/tool", b"t" * 10)
        make_file("Apps/readme.txt", b"r")
        assert walk_names(temp_dir) == ["readme.txt"]

    def test_package_interiors_included_on_request(self, make_file, temp_dir):
        make_file("Apps/Tool.app/Contents/MacOS/tool", b"t" * 10)
        records = list(DirectoryWalkerImpl(str(temp_dir), WalkOptions(skip_package_interiors=False)).walk())
        assert [r.name for r in records] == ["tool"]
        assert records[0].file_type == FileType.APPLICATION

    def test_max_depth_one_only_lists_root_files(self, mixed_tree, temp_dir):
        assert walk_names(temp_dir, max_depth=1) == ["readme.txt"]

    def test_max_depth_two(self, mixed_tree, temp_dir):
        """root/Movies/clip.mp4 has depth 2; root/Movies/old/a.mkv has depth 3."""
        names = walk_names(temp_dir, max_depth=2)
        assert names == sorted(["readme.txt", "clip.mp4", "p1.jpg", "p2.png"])

    def test_deep_hierarchy_bounded(self, temp_dir):
        """200 nested levels with max_depth=2 yields only depth 1 and 2 files and terminates."""
        current = temp_dir
        for level in range(200):
            current = current / f"d{level}"
            current.mkdir()
            (current / f"f{level}.txt").write_bytes(b"x")
        (temp_dir / "top.txt").write_bytes(b"x")

        names = walk_names(temp_dir, max_depth=2)
        assert names == ["f0.txt", "top.txt"]

    def test_invalid_max_depth_rejected(self):
        with pytest.raises(ValueError):
            WalkOptions(max_depth=0)


@pytest.mark.skipif(sys.platform == "win32", reason="Symlinks need privileges on Windows")
class TestDirectoryWalkerSymlinks:
    def test_symlinked_file_not_yielded(self, make_file, temp_dir):
        target = make_file("real.txt", b"data")
        os.symlink(target, temp_dir / "link.txt")
        assert walk_names(temp_dir) == ["real.txt"]

    def test_symlinked_directory_not_followed(self, make_file, temp_dir, tmp_path_factory):
        outside = tmp_path_factory.mktemp("outside")
        (outside / "elsewhere.txt").write_bytes(b"e")
        os.symlink(outside, temp_dir / "linked_dir")
        make_file("own.txt", b"o")
        assert walk_names(temp_dir) == ["own.txt"]

    def test_symlink_loop_terminates(self, make_file, temp_dir):
        make_file("loop/file.txt", b"f")
        os.symlink(temp_dir, temp_dir / "loop" / "back")
        assert walk_names(temp_dir) == ["file.txt"]


class TestDirectoryWalkerRoot:
    def test_missing_root_raises(self, temp_dir):
        walker = DirectoryWalkerImpl(str(temp_dir / "missing"))
        with pytest.raises(ScanRootError, match="does not exist"):
            walker.walk()

    def test_file_root_raises(self, make_file):
        path = make_file("plain.txt", b"x")
        with pytest.raises(ScanRootError, match="Not a directory"):
            DirectoryWalkerImpl(str(path)).walk()

    @pytest.mark.skipif(sys.platform == "win32" or os.geteuid() == 0, reason="Needs POSIX permissions as non-root")
    def test_unreadable_root_raises(self, temp_dir):
        locked = temp_dir / "locked"
        locked.mkdir()
        os.chmod(locked, 0)
        try:
            with pytest.raises(ScanRootError, match="Cannot access"):
                DirectoryWalkerImpl(str(locked)).walk()
        finally:
            os.chmod(locked, 0o755)

    def test_root_stat_permission_error_raises_root_error(self, temp_dir):
        denied = PermissionError(13, "Permission denied")
        with mock.patch("spacescan.core.walker.os.stat", side_effect=denied):
            with pytest.raises(ScanRootError, match="Cannot access.*Permission denied"):
                DirectoryWalkerImpl(str(temp_dir)).walk()

    @pytest.mark.skipif(sys.platform == "win32" or os.geteuid() == 0, reason="Needs POSIX permissions as non-root")
    def test_root_below_unsearchable_parent_raises(self, temp_dir):
        (temp_dir / "parent" / "child").mkdir(parents=True)
        os.chmod(temp_dir / "parent", 0)
        try:
            with pytest.raises(ScanRootError, match="Cannot access"):
                DirectoryWalkerImpl(str(temp_dir / "parent" / "child")).walk()
        finally:
            os.chmod(temp_dir / "parent", 0o755)

    @pytest.mark.skipif(sys.platform == "win32" or os.geteuid() == 0, reason="Needs POSIX permissions as non-root")
    def test_unreadable_subdirectory_skipped(self, make_file, temp_dir):
        make_file("ok/a.txt", b"a")
        make_file("locked/b.txt", b"b")
        os.chmod(temp_dir / "locked", 0)
        try:
            assert walk_names(temp_dir) == ["a.txt"]
        finally:
            os.chmod(temp_dir / "locked", 0o755)


class TestDirectoryWalkerProgressAndCancel:
    def test_progress_reported_every_batch(self, temp_dir):
        for i in range(PROGRESS_BATCH * 2 + 10):
            (temp_dir / f"f{i:04d}.txt").write_bytes(b"x")

        reports = []
        walker = DirectoryWalkerImpl(str(temp_dir))
        list(walker.walk(progress_callback=reports.append))

        assert reports == [PROGRESS_BATCH, PROGRESS_BATCH * 2]
        assert walker.visited_entries == PROGRESS_BATCH * 2 + 10

    def test_directories_count_as_visited(self, temp_dir):
        for i in range(PROGRESS_BATCH):
            (temp_dir / f"d{i:03d}").mkdir()

        reports = []
        walker = DirectoryWalkerImpl(str(temp_dir))
        list(walker.walk(progress_callback=reports.append))

        assert reports == [PROGRESS_BATCH]

    def test_stop_flag_halts_iteration(self, temp_dir):
        for i in range(50):
            (temp_dir / f"f{i:02d}.txt").write_bytes(b"x")

        seen = []
        walker = DirectoryWalkerImpl(str(temp_dir))
        for record in walker.walk(stopped_flag=lambda: len(seen) >= 3):
            seen.append(record)

        assert len(seen) == 3

    def test_stopped_before_start_yields_nothing(self, mixed_tree, temp_dir):
        walker = DirectoryWalkerImpl(str(temp_dir))
        assert list(walker.walk(stopped_flag=lambda: True)) == []
