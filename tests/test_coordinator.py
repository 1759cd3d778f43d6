"""
Tests for ScanCoordinator and DuplicateSearch: background lifecycle,
state publishing, cancellation and stale-update suppression.
"""
import threading
import time

import pytest

from spacescan.commands import ScanCommand, ScanResult
from spacescan.core.coordinator import ScanCoordinator, DuplicateSearch
from spacescan.core.models import (
    ScanParams, ScanMode, ScanPhase, ScanState, ScanSummary, FileType, DetectionMode, FileSortOption,
)
from conftest import record_for

TIMEOUT = 10


class BlockingCommand:
    """Runs until cancelled, then tries to publish late progress and a result."""

    def __init__(self):
        self.started = threading.Event()

    def execute(self, params, stopped_flag=None, progress_callback=None):
        self.started.set()
        while not stopped_flag():
            time.sleep(0.01)
        progress_callback(500, 1000, 3)
        return ScanResult(summary=ScanSummary(total_files=99, total_size=99))


class FailingCommand:
    def execute(self, params, stopped_flag=None, progress_callback=None):
        raise ValueError("boom")


def run_scan(coordinator, root, params=None):
    coordinator.start_scan(str(root), params)
    assert coordinator.wait(TIMEOUT)


class TestScanLifecycle:
    def test_initial_state_is_idle(self):
        coordinator = ScanCoordinator()
        assert coordinator.current_state().phase == ScanPhase.IDLE
        assert coordinator.current_listing() == []
        assert coordinator.is_scanning is False

    def test_empty_directory_completes(self, temp_dir):
        coordinator = ScanCoordinator()
        run_scan(coordinator, temp_dir)

        state = coordinator.current_state()
        assert state.phase == ScanPhase.COMPLETE
        assert state.progress == 1.0
        assert state.files_found == 0
        assert coordinator.current_summary().total_files == 0
        assert coordinator.current_listing() == []

    def test_published_sequence(self, mixed_tree, temp_dir):
        states = []
        coordinator = ScanCoordinator()
        coordinator.add_listener(states.append)

        run_scan(coordinator, temp_dir, ScanParams.for_mode(str(temp_dir), ScanMode.STORAGE_OVERVIEW))

        assert states[0] == ScanState.scanning(0.0, 0)
        assert states[-1] == ScanState.complete(7)
        for state in states[1:-1]:
            assert state.phase == ScanPhase.SCANNING
            assert 0.0 <= state.progress <= 0.99

    def test_generation_increments(self, temp_dir):
        coordinator = ScanCoordinator()
        first = coordinator.start_scan(str(temp_dir))
        coordinator.wait(TIMEOUT)
        second = coordinator.start_scan(str(temp_dir))
        coordinator.wait(TIMEOUT)
        assert second == first + 1

    def test_params_root_follows_argument(self, make_file, temp_dir):
        make_file("other/big.bin", b"b" * 10)
        coordinator = ScanCoordinator()
        params = ScanParams(root_dir="/does/not/matter", min_size_bytes=0)

        run_scan(coordinator, temp_dir / "other", params)

        assert [r.name for r in coordinator.current_listing()] == ["big.bin"]
        assert coordinator.current_params().root_dir == str(temp_dir / "other")


class TestScanResults:
    def test_total_size_independent_of_threshold(self, mixed_tree, temp_dir):
        totals = []
        for threshold in (0, 1000, 10 ** 9):
            coordinator = ScanCoordinator()
            run_scan(coordinator, temp_dir, ScanParams(root_dir=str(temp_dir), min_size_bytes=threshold))
            totals.append(coordinator.current_summary().total_size)
        assert len(set(totals)) == 1

    def test_by_type_sums_match_totals(self, mixed_tree, temp_dir):
        coordinator = ScanCoordinator()
        run_scan(coordinator, temp_dir, ScanParams.for_mode(str(temp_dir), ScanMode.STORAGE_OVERVIEW))

        summary = coordinator.current_summary()
        assert sum(s.size for s in summary.by_type.values()) == summary.total_size
        assert sum(s.count for s in summary.by_type.values()) == summary.total_files
        assert summary.by_type[FileType.ARCHIVE].size == 4000

    def test_idempotent_rescan(self, mixed_tree, temp_dir):
        coordinator = ScanCoordinator()
        params = ScanParams(root_dir=str(temp_dir), min_size_bytes=0)
        run_scan(coordinator, temp_dir, params)
        first = (coordinator.current_summary(), coordinator.current_listing())
        run_scan(coordinator, temp_dir, params)
        second = (coordinator.current_summary(), coordinator.current_listing())
        assert first == second

    def test_deep_hierarchy_with_max_depth(self, temp_dir):
        current = temp_dir
        for level in range(200):
            current = current / f"level{level}"
            current.mkdir()
            (current / "file.bin").write_bytes(b"x" * 10)

        coordinator = ScanCoordinator()
        run_scan(coordinator, temp_dir, ScanParams(root_dir=str(temp_dir), min_size_bytes=0, max_depth=2))

        assert coordinator.current_state().phase == ScanPhase.COMPLETE
        assert coordinator.current_summary().total_files == 1

    def test_directory_sizes_limit(self, mixed_tree, temp_dir):
        coordinator = ScanCoordinator()
        run_scan(coordinator, temp_dir, ScanParams(root_dir=str(temp_dir), min_size_bytes=0))
        assert [d.name for d in coordinator.current_directory_sizes(1)] == ["Movies"]
        assert len(coordinator.current_directory_sizes()) == 3

    def test_listing_is_a_copy(self, mixed_tree, temp_dir):
        coordinator = ScanCoordinator()
        run_scan(coordinator, temp_dir, ScanParams(root_dir=str(temp_dir), min_size_bytes=0))
        coordinator.current_listing().clear()
        assert len(coordinator.current_listing()) == 5

    def test_listing_sorted_and_filtered_on_request(self, mixed_tree, temp_dir):
        coordinator = ScanCoordinator()
        run_scan(coordinator, temp_dir, ScanParams(root_dir=str(temp_dir), min_size_bytes=0))

        by_name = [r.name for r in coordinator.current_listing(FileSortOption.NAME)]
        assert by_name == ["a.mkv", "clip.mp4", "p1.jpg", "p2.png", "readme.txt"]
        images = coordinator.current_listing(FileSortOption.NAME, FileType.IMAGE)
        assert [r.name for r in images] == ["p1.jpg", "p2.png"]
        assert coordinator.current_listing()[0].name == "clip.mp4"

    def test_summary_is_a_copy(self, mixed_tree, temp_dir):
        coordinator = ScanCoordinator()
        run_scan(coordinator, temp_dir, ScanParams(root_dir=str(temp_dir), min_size_bytes=0))

        summary = coordinator.current_summary()
        summary.total_files = 0
        summary.by_type[FileType.VIDEO].size = 0
        summary.by_type.clear()

        fresh = coordinator.current_summary()
        assert fresh.total_files == 5
        assert fresh.by_type[FileType.VIDEO].size == 8000

    def test_directory_sizes_are_copies(self, mixed_tree, temp_dir):
        coordinator = ScanCoordinator()
        run_scan(coordinator, temp_dir, ScanParams(root_dir=str(temp_dir), min_size_bytes=0))

        coordinator.current_directory_sizes()[0].size = 0
        assert coordinator.current_directory_sizes()[0].size == 8000

    def test_remove_from_listing(self, mixed_tree, temp_dir):
        coordinator = ScanCoordinator()
        run_scan(coordinator, temp_dir, ScanParams(root_dir=str(temp_dir), min_size_bytes=0))
        total_before = coordinator.current_summary().total_size

        assert coordinator.remove_from_listing(str(mixed_tree["clip"])) is True
        assert coordinator.remove_from_listing(str(mixed_tree["clip"])) is False
        assert str(mixed_tree["clip"]) not in [r.path for r in coordinator.current_listing()]
        assert coordinator.current_summary().total_size == total_before


class TestScanErrors:
    def test_missing_root_publishes_error(self, temp_dir):
        coordinator = ScanCoordinator()
        run_scan(coordinator, temp_dir / "missing")

        state = coordinator.current_state()
        assert state.phase == ScanPhase.ERROR
        assert "does not exist" in state.message
        assert coordinator.current_listing() == []

    def test_unexpected_exception_is_reported(self, temp_dir):
        coordinator = ScanCoordinator(command_factory=FailingCommand)
        run_scan(coordinator, temp_dir)
        assert coordinator.current_state() == ScanState.error("ValueError: boom")

    def test_listener_failure_does_not_break_scan(self, temp_dir):
        coordinator = ScanCoordinator()

        def bad_listener(state):
            raise RuntimeError("listener bug")

        coordinator.add_listener(bad_listener)
        run_scan(coordinator, temp_dir)
        assert coordinator.current_state().phase == ScanPhase.COMPLETE


class TestScanCancellation:
    def test_cancel_when_idle_is_noop(self):
        states = []
        coordinator = ScanCoordinator()
        coordinator.add_listener(states.append)
        coordinator.cancel_scan()
        assert states == []

    def test_cancel_returns_to_idle_and_drops_late_updates(self, temp_dir):
        command = BlockingCommand()
        states = []
        coordinator = ScanCoordinator(command_factory=lambda: command)
        coordinator.add_listener(states.append)

        coordinator.start_scan(str(temp_dir))
        assert command.started.wait(TIMEOUT)
        coordinator.cancel_scan()
        assert coordinator.wait(TIMEOUT)

        assert states == [ScanState.scanning(0.0, 0), ScanState.idle()]
        assert coordinator.current_state() == ScanState.idle()
        assert coordinator.current_summary().total_files == 0

    def test_cancel_is_idempotent(self, temp_dir):
        command = BlockingCommand()
        states = []
        coordinator = ScanCoordinator(command_factory=lambda: command)
        coordinator.add_listener(states.append)

        coordinator.start_scan(str(temp_dir))
        assert command.started.wait(TIMEOUT)
        coordinator.cancel_scan()
        coordinator.cancel_scan()
        coordinator.wait(TIMEOUT)

        assert states.count(ScanState.idle()) == 1

    def test_restart_supersedes_running_scan(self, mixed_tree, temp_dir):
        blocking = BlockingCommand()
        commands = iter([blocking, ScanCommand()])
        states = []
        coordinator = ScanCoordinator(command_factory=lambda: next(commands))
        coordinator.add_listener(states.append)

        coordinator.start_scan(str(temp_dir))
        assert blocking.started.wait(TIMEOUT)
        first_thread = coordinator._thread

        run_scan(coordinator, temp_dir, ScanParams(root_dir=str(temp_dir), min_size_bytes=0))
        first_thread.join(TIMEOUT)

        assert ScanState.idle() not in states
        assert coordinator.current_state() == ScanState.complete(5)
        assert coordinator.current_summary().total_files == 5


class TestDuplicateSearch:
    def test_finds_groups_in_background(self, abc_tree):
        records = [record_for(p) for p in abc_tree.values()]
        finished = []
        search = DuplicateSearch()
        search.add_finished_listener(lambda groups, stats: finished.append(groups))

        search.start(records)
        assert search.wait(TIMEOUT)

        assert len(finished) == 1
        assert [f.name for f in search.groups[0].files] == ["A.bin", "B.bin"]
        assert search.potential_savings == 1000
        assert search.progress == 1.0
        assert search.stats.candidates == 3
        assert search.is_running is False

    def test_progress_listener(self, abc_tree):
        records = [record_for(p) for p in abc_tree.values()]
        reports = []
        search = DuplicateSearch()
        search.add_progress_listener(lambda *args: reports.append(args))

        search.start(records)
        search.wait(TIMEOUT)

        assert ("Prefix Hash", 3, 3) in reports

    def test_error_listener(self):
        class BrokenDetector:
            def find_duplicates(self, *args, **kwargs):
                raise RuntimeError("disk gone")

        errors = []
        search = DuplicateSearch(detector_factory=BrokenDetector)
        search.add_error_listener(errors.append)

        search.start([])
        search.wait(TIMEOUT)

        assert errors == ["RuntimeError: disk gone"]

    def test_cancel_discards_results(self, abc_tree):
        records = [record_for(p) for p in abc_tree.values()]
        gate = threading.Event()

        class SlowDetector:
            def find_duplicates(self, files, mode, stopped_flag=None, progress_callback=None):
                gate.wait(TIMEOUT)
                return [], None

        finished = []
        search = DuplicateSearch(detector_factory=SlowDetector)
        search.add_finished_listener(lambda *args: finished.append(args))

        search.start(records)
        search.cancel()
        gate.set()
        search.wait(TIMEOUT)

        assert finished == []
        assert search.progress == 0.0
        assert search.is_running is False

    def test_verified_mode(self, abc_tree):
        records = [record_for(p) for p in abc_tree.values()]
        search = DuplicateSearch(mode=DetectionMode.VERIFIED)
        search.start(records)
        search.wait(TIMEOUT)
        assert len(search.groups) == 1


class TestScanThenDetect:
    def test_large_file_duplicate_scenario(self, make_file, temp_dir):
        """Three 10 MiB files, two identical; minimum size 5 MiB."""
        mib = 1024 * 1024
        payload = b"A" * (10 * mib)
        make_file("A.bin", payload)
        make_file("B.bin", payload)
        make_file("C.bin", b"C" * (10 * mib))

        coordinator = ScanCoordinator()
        run_scan(coordinator, temp_dir, ScanParams(root_dir=str(temp_dir), min_size_bytes=5 * mib))
        listing = coordinator.current_listing()
        assert sorted(r.name for r in listing) == ["A.bin", "B.bin", "C.bin"]

        search = DuplicateSearch()
        search.start(listing)
        assert search.wait(TIMEOUT)

        assert [[f.name for f in g.files] for g in search.groups] == [["A.bin", "B.bin"]]
        assert search.potential_savings == 10 * mib
