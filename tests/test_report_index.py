"""Unit tests for the function report index."""

import random
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from calltui.graph import GraphNode  # noqa: E402
from calltui.report import ReportIndex  # noqa: E402

def _occurrence(index: ReportIndex, name: str, time: int, child_time: int = 0, calls: int = 1) -> GraphNode:
    node = GraphNode(name)
    node.time = time
    node.child_time = child_time
    node.nr_calls = calls
    index.find_or_create(name).add_occurrence(node)
    return node

def test_ReportIndex_find_or_create_should_return_same_node_per_name() -> None:
    index = ReportIndex()
    first = index.find_or_create("foo")
    assert index.find_or_create("foo") is first
    assert len(index) == 1
    assert "foo" in index
    assert index.get("bar") is None
    assert len(index) == 1

def test_ReportIndex_walk_names_should_be_in_name_order() -> None:
    index = ReportIndex()
    for name in ("delta", "alpha", "charlie", "bravo"):
        index.find_or_create(name)
    assert [node.name for node in index.walk_names()] == ["alpha", "bravo", "charlie", "delta"]

def test_ReportIndex_finalize_and_sort_should_rank_by_total_time() -> None:
    index = ReportIndex()
    _occurrence(index, "small", 5)
    _occurrence(index, "big", 50, child_time=20)
    _occurrence(index, "medium", 10)
    _occurrence(index, "medium", 15, calls=2)

    index.finalize_and_sort()

    assert [node.name for node in index.ranked] == ["big", "medium", "small"]
    medium = index.get("medium")
    assert medium.time == 25
    assert medium.calls == 3
    assert index.get("big").self_time == 30

def test_ReportIndex_finalize_and_sort_should_keep_equal_totals() -> None:
    index = ReportIndex()
    for name in ("b", "a", "c"):
        _occurrence(index, name, 7)
    index.finalize_and_sort()
    ranked = index.ranked
    assert len(ranked) == 3
    assert [node.name for node in ranked] == ["a", "b", "c"]

def test_ReportIndex_finalize_and_sort_should_be_idempotent() -> None:
    index = ReportIndex()
    _occurrence(index, "x", 3)
    _occurrence(index, "y", 9)
    index.finalize_and_sort()
    index.finalize_and_sort()
    assert [node.name for node in index.ranked] == ["y", "x"]
    assert index.get("x").time == 3

def test_ReportIndex_prev_next_should_walk_the_ranking() -> None:
    index = ReportIndex()
    _occurrence(index, "x", 3)
    _occurrence(index, "y", 9)
    _occurrence(index, "z", 6)
    index.finalize_and_sort()

    first = index.first()
    assert first.name == "y"
    assert index.prev(first) is None
    second = index.next(first)
    assert second.name == "z"
    assert index.prev(second) is first
    assert index.next(index.next(second)) is None

def test_ReportNode_add_occurrence_should_link_once() -> None:
    index = ReportIndex()
    node = _occurrence(index, "f", 4)
    report = index.get("f")
    report.add_occurrence(node)
    assert report.occurrences == [node]
    assert node.report is report

def test_ReportNode_record_call_should_track_min_and_max() -> None:
    node = ReportIndex().find_or_create("f")
    for total, self_time in ((10, 4), (3, 3), (25, 1)):
        node.record_call(total, self_time)
    assert (node.min_time, node.max_time) == (3, 25)
    assert (node.min_self_time, node.max_self_time) == (1, 4)

def test_ReportIndex_first_should_be_none_when_empty() -> None:
    index = ReportIndex()
    index.finalize_and_sort()
    assert index.first() is None
    assert index.ranked == []

def test_ReportIndex_finalize_and_sort_should_rank_many_functions() -> None:
    index = ReportIndex()
    count = 20_000
    times = list(range(count))
    random.Random(7).shuffle(times)
    for i, time in enumerate(times):
        # every time value appears twice, under two names
        _occurrence(index, f"fn{i:05d}", time // 2 + 1)

    index.finalize_and_sort()

    ranked = index.ranked
    assert len(ranked) == count
    keys = [(-node.time, node.name) for node in ranked]
    assert keys == sorted(keys)
    assert [node.rank for node in ranked] == list(range(count))
    assert ranked[0].time == count // 2
    assert [node.name for node in index.walk_names()] == sorted(f"fn{i:05d}" for i in range(count))
