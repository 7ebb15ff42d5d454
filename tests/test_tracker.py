from lyrica.core.models import LyricLine
from lyrica.core.tracker import PositionTracker, find_active_index

LINES = [LyricLine(0, "a"), LyricLine(5000, "b"), LyricLine(10000, "c")]


def test_find_active_index_between_lines():
    assert find_active_index(LINES, 7000) == 1


def test_find_active_index_before_first_line():
    assert find_active_index(LINES, -1) == -1
    late_start = [LyricLine(3000, "x")]
    assert find_active_index(late_start, 2999) == -1


def test_find_active_index_on_and_after_last_line():
    assert find_active_index(LINES, 10000) == 2
    assert find_active_index(LINES, 999999) == 2


def test_find_active_index_exact_boundary():
    assert find_active_index(LINES, 5000) == 1
    assert find_active_index(LINES, 4999) == 0


def test_find_active_index_empty():
    assert find_active_index([], 1234) == -1


def test_tracker_reports_only_changes():
    seen = []
    tracker = PositionTracker(LINES, on_change=seen.append)
    assert tracker.update(1000) is True
    assert tracker.update(2000) is False
    assert tracker.update(4999) is False
    assert tracker.update(5000) is True
    assert tracker.update(12000) is True
    assert seen == [0, 1, 2]


def test_tracker_load_resets_without_event():
    seen = []
    tracker = PositionTracker(LINES, on_change=seen.append)
    tracker.update(6000)
    tracker.load([LyricLine(20000, "later")])
    assert tracker.index == -1
    assert tracker.update(6000) is False
    assert seen == [1]
