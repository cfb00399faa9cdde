"""Unit tests for the call-graph model and its construction from records."""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))
TESTS_PATH = PROJECT_ROOT / "tests"
if str(TESTS_PATH) not in sys.path:
    sys.path.insert(0, str(TESTS_PATH))

from atf_helpers import (  # noqa: E402
    ENTER,
    EVENT,
    EXIT,
    CallScript,
    address_of,
    base_manifest,
    build_graphs,
    default_symbols,
    sample_script,
)
from calltui.graph import CallGraph, GraphNode  # noqa: E402
from interfaces import SessionInfo  # noqa: E402

KERNEL_ADDR = 0xFFFFFFFF81000010

def test_GraphNode_add_child_should_keep_insertion_order_and_links() -> None:
    graph = CallGraph(SessionInfo("s", 1, "/bin/app"))
    root = graph.root
    a = root.add_child("a", addr=0x10)
    b = root.add_child("b")
    c = root.add_child("c")

    assert [child.name for child in root.children] == ["a", "b", "c"]
    assert a.parent is root and a.graph is graph
    assert root.find_child("b") is b
    assert root.find_child("missing") is None
    assert root.is_first_child(a) and root.is_last_child(c)
    assert b.prev_sibling() is a and b.next_sibling() is c
    assert a.prev_sibling() is None and c.next_sibling() is None

def test_GraphNode_find_child_should_return_first_match_for_duplicates() -> None:
    root = GraphNode("root")
    first = root.add_child("dup")
    root.add_child("dup")
    assert root.find_child("dup") is first
    assert len(root.children) == 2

def test_GraphNode_addr_should_be_truncated_to_48_bits() -> None:
    node = GraphNode("k", addr=KERNEL_ADDR)
    assert node.addr == KERNEL_ADDR & 0xFFFFFFFFFFFF

def test_GraphNode_walk_and_height_should_cover_subtree() -> None:
    root = GraphNode("root")
    a = root.add_child("a")
    a.add_child("a1").add_child("a11")
    root.add_child("b")
    assert [node.name for node in root.walk()] == ["root", "a", "a1", "a11", "b"]
    assert root.height() == 3
    assert a.height() == 2

def test_CallGraph_root_should_be_named_after_executable() -> None:
    graph = CallGraph(SessionInfo("s", 1, "/usr/local/bin/server"))
    assert graph.root.name == "server"
    assert graph.mask_size == 2
    assert CallGraph(None).root.name == "(unknown)"

def test_GraphBuilder_should_build_call_paths_with_time_accounting() -> None:
    graphs, report, builder = build_graphs(sample_script().records)

    assert len(graphs) == 1
    graph = graphs[0]
    root = graph.root
    assert root.name == "demo"
    assert root.nr_calls == 1

    main = root.find_child("main")
    assert (main.time, main.child_time, main.nr_calls) == (34, 33, 1)
    assert root.time == 34
    assert root.child_time == root.time

    foo = main.find_child("foo")
    assert (foo.time, foo.child_time, foo.nr_calls) == (26, 6, 2)
    assert foo.find_child("bar").nr_calls == 2

    baz = main.find_child("baz")
    assert [child.name for child in main.children] == ["foo", "baz"]
    assert baz.find_child("bar").time == 5

    assert graph.max_depth == 3
    assert builder.dropped == 0
    assert report.nr_sessions == 1

def test_GraphBuilder_should_keep_child_time_within_total_time() -> None:
    graphs, _, _ = build_graphs(sample_script().records)
    for node in graphs[0].walk():
        assert 0 <= node.child_time <= node.time

def test_GraphBuilder_should_link_report_nodes_to_every_occurrence() -> None:
    graphs, report, _ = build_graphs(sample_script().records)
    bar = report.get("bar")

    assert bar.calls == 3
    assert bar.time == 11
    assert bar.self_time == 11
    assert (bar.min_time, bar.max_time) == (3, 5)
    assert len(bar.occurrences) == 2
    for node in bar.occurrences:
        assert node.report is bar
        assert node.graph is graphs[0]

    assert report.get("main").self_time == 1

def test_GraphBuilder_should_not_double_count_recursive_calls() -> None:
    script = CallScript()
    script.call("main", 1, lambda s: s.call("foo", 1, lambda s: s.call("foo", 1, lambda s: s.call("foo", 1))))
    graphs, report, _ = build_graphs(script.records)

    outer = graphs[0].root.find_child("main").find_child("foo")
    assert outer.time == 3
    foo = report.get("foo")
    assert foo.recursive_time == 3
    assert foo.time == 3
    assert foo.calls == 3

def test_GraphBuilder_should_drop_records_without_session_or_symbol() -> None:
    records = [
        (10, 99, ENTER, address_of("main"), 0),
        (20, 99, EXIT, address_of("main"), 0),
        (30, 7, ENTER, 0x9000, 0),
        (40, 7, EXIT, 0x9000, 0),
    ]
    graphs, report, builder = build_graphs(records)
    assert builder.dropped == 4
    assert graphs[0].root.children == []
    assert len(report) == 0

def test_GraphBuilder_should_ignore_event_records() -> None:
    script = CallScript()
    script.call("main", 5, lambda s: s.event(1))
    graphs, _, builder = build_graphs(script.records)
    main = graphs[0].root.find_child("main")
    assert main.nr_calls == 1
    assert main.children == []
    assert builder.dropped == 0

def test_GraphBuilder_should_drop_exit_that_crosses_a_session_change() -> None:
    sessions = [
        {"sid": "aaaa", "pid": 7, "exename": "/bin/old", "start_ns": 0, "symbols": default_symbols()},
        {"sid": "bbbb", "pid": 7, "exename": "/bin/new", "start_ns": 200, "symbols": default_symbols()},
    ]
    records = [
        (100, 7, ENTER, address_of("main"), 0),
        (300, 7, ENTER, address_of("foo"), 0),
        (310, 7, EXIT, address_of("foo"), 0),
        (320, 7, EXIT, address_of("main"), 0),
    ]
    graphs, _, builder = build_graphs(records, base_manifest(sessions=sessions))

    assert [graph.root.name for graph in graphs] == ["old", "new"]
    assert graphs[0].root.find_child("main").nr_calls == 0
    assert graphs[1].root.find_child("foo").nr_calls == 1
    assert builder.dropped == 1

def _kernel_records():
    return [
        (10, 7, ENTER, KERNEL_ADDR, 0),
        (15, 7, EXIT, KERNEL_ADDR, 0),
        (20, 7, ENTER, address_of("main"), 0),
        (21, 7, ENTER, KERNEL_ADDR, 0),
        (25, 7, EXIT, KERNEL_ADDR, 0),
        (26, 7, EVENT, 0, 0),
        (30, 7, EXIT, address_of("main"), 0),
        (31, 7, EVENT, 0, 0),
    ]

def test_GraphBuilder_kernel_only_should_keep_kernel_functions() -> None:
    graphs, _, builder = build_graphs(_kernel_records(), kernel_only=True)
    root = graphs[0].root
    assert [child.name for child in root.children] == ["sys_read"]
    assert root.find_child("sys_read").nr_calls == 2
    assert builder.filtered == 4

def test_GraphBuilder_kernel_skip_out_should_skip_kernel_calls_outside_user_code() -> None:
    graphs, _, builder = build_graphs(_kernel_records(), kernel_skip_out=True)
    root = graphs[0].root
    assert [child.name for child in root.children] == ["main"]
    assert root.find_child("main").find_child("sys_read").nr_calls == 1
    assert builder.filtered == 2

def test_GraphBuilder_event_skip_out_should_skip_events_outside_user_code() -> None:
    _, _, builder = build_graphs(_kernel_records(), event_skip_out=True)
    assert builder.filtered == 1
