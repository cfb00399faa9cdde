"""Dashboard key handling, driven through a scripted text screen."""

import curses
import io
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))
TESTS_PATH = PROJECT_ROOT / "tests"
if str(TESTS_PATH) not in sys.path:
    sys.path.insert(0, str(TESTS_PATH))

from atf_helpers import ENTER, EXIT, address_of, base_manifest, build_graphs, default_symbols, sample_script  # noqa: E402
from calltui.dashboard import Dashboard  # noqa: E402
from calltui.fields import setup_fields  # noqa: E402
from calltui.screen import KEY_ESCAPE, TextScreen  # noqa: E402

def _dashboard() -> Dashboard:
    graphs, report, _ = build_graphs(sample_script().records)
    return Dashboard(graphs, report, setup_fields(), "demo")

def _keys(text: str):
    return [ord(c) for c in text]

def _run(dashboard: Dashboard, keys, answers=(), lines=20, cols=80) -> TextScreen:
    screen = TextScreen(lines, cols, keys=keys, answers=answers)
    dashboard.run(screen)
    return screen

def test_Dashboard_run_should_stop_on_quit() -> None:
    dashboard = _dashboard()
    screen = _run(dashboard, [])
    assert "(1) main" in screen.text()
    assert dashboard.handle_key(ord("q"), screen) is False

def test_Dashboard_should_move_cursor_with_keys() -> None:
    dashboard = _dashboard()
    _run(dashboard, _keys("jjj") + [curses.KEY_UP])
    assert dashboard.window.curr.name == "foo"

    _run(dashboard, [curses.KEY_END])
    assert dashboard.window.curr.name == "bar"
    assert dashboard.window.curr.parent.name == "baz"

    _run(dashboard, [curses.KEY_HOME])
    assert dashboard.window.curr is dashboard.graph.root

def test_Dashboard_should_move_between_siblings_and_parent() -> None:
    dashboard = _dashboard()
    _run(dashboard, _keys("jjn"))
    assert dashboard.window.curr.name == "baz"
    _run(dashboard, _keys("p"))
    assert dashboard.window.curr.name == "foo"
    _run(dashboard, _keys("ju"))
    assert dashboard.window.curr.name == "foo"

def test_Dashboard_enter_should_toggle_fold() -> None:
    dashboard = _dashboard()
    screen = _run(dashboard, _keys("jj\n"))
    foo = dashboard.window.curr
    assert foo.folded
    assert "▶(2) foo" in screen.text()

    _run(dashboard, [curses.KEY_ENTER])
    assert not foo.folded

def test_Dashboard_collapse_and_expand_should_fold_children() -> None:
    dashboard = _dashboard()
    _run(dashboard, _keys("jc"))
    main = dashboard.window.curr
    assert all(child.folded for child in main.children)
    _run(dashboard, _keys("e"))
    assert not any(child.folded for child in main.children)

def test_Dashboard_should_switch_to_report_and_back() -> None:
    dashboard = _dashboard()
    screen = _run(dashboard, _keys("r"))
    assert dashboard.window is dashboard.report_window
    assert dashboard.window.curr.name == "main"
    text = screen.text()
    assert "Total Time" in text
    assert "calltui report: demo (1 sessions, 4 functions)" in text

    _run(dashboard, _keys("G"))
    assert dashboard.window is dashboard.graph_window

def test_Dashboard_g_should_pivot_from_graph_node() -> None:
    dashboard = _dashboard()
    screen = _run(dashboard, _keys("jjjg"))
    assert dashboard.window is dashboard.partial_window
    assert dashboard.partial.root.name == "=== Function Call Graph for 'bar' ==="
    assert dashboard.window.curr is dashboard.partial.root
    assert "Back-trace" in screen.text()

def test_Dashboard_g_should_pivot_from_report_row() -> None:
    dashboard = _dashboard()
    _run(dashboard, _keys("rjg"))
    assert dashboard.partial.root.name == "=== Function Call Graph for 'foo' ==="

def test_Dashboard_g_should_pivot_again_from_partial_graph() -> None:
    dashboard = _dashboard()
    _run(dashboard, _keys("jjjg"))
    # back-trace title, bar, then its caller
    _run(dashboard, _keys("jjjg"))
    assert dashboard.partial.root.name == "=== Function Call Graph for 'foo' ==="

def test_Dashboard_g_on_session_root_should_give_empty_back_trace() -> None:
    dashboard = _dashboard()
    _run(dashboard, _keys("g"))
    backtrace, callgraph = dashboard.partial.root.children
    assert backtrace.children == []
    assert callgraph.children[0].name == "demo"

def test_Dashboard_search_should_prompt_and_step_matches() -> None:
    dashboard = _dashboard()
    screen = _run(dashboard, _keys("/>"), answers=["ba"])
    assert dashboard.ctx.search == "ba"
    assert dashboard.window.curr.name == "bar"
    assert dashboard.window.search_count == 3
    assert 'searching "ba"' in screen.text()

    _run(dashboard, _keys(">>N<"))
    assert dashboard.window.curr.name == "baz"

    _run(dashboard, [KEY_ESCAPE])
    assert dashboard.ctx.search is None

def test_Dashboard_search_prompt_cancel_should_clear_search() -> None:
    dashboard = _dashboard()
    _run(dashboard, _keys("/x") + [KEY_ESCAPE])
    assert dashboard.ctx.search is None

def test_Dashboard_search_count_should_follow_window_changes() -> None:
    dashboard = _dashboard()
    _run(dashboard, _keys("/r"), answers=["ba"])
    assert dashboard.report_window.search_count == 2

def test_Dashboard_v_should_toggle_debug_footer() -> None:
    dashboard = _dashboard()
    screen = _run(dashboard, _keys("v"))
    assert dashboard.ctx.debug
    assert screen.rows[-1].startswith("calltui graph: top: 0")

def test_Dashboard_resize_should_redraw_everything() -> None:
    dashboard = _dashboard()
    screen = TextScreen(20, 80, keys=[curses.KEY_RESIZE])
    dashboard.run(screen)
    assert "(1) main" in screen.text()
    dashboard.handle_key(curses.KEY_RESIZE, screen)
    assert dashboard.full_redraw

def test_Dashboard_s_should_cycle_session_graphs() -> None:
    sessions = [
        {"sid": "aaaa", "pid": 7, "exename": "/bin/first", "start_ns": 0, "symbols": default_symbols()},
        {"sid": "bbbb", "pid": 8, "exename": "/bin/second", "start_ns": 0, "symbols": default_symbols()},
    ]
    records = [
        (1, 7, ENTER, address_of("main"), 0),
        (2, 7, EXIT, address_of("main"), 0),
        (3, 8, ENTER, address_of("foo"), 0),
        (4, 8, EXIT, address_of("foo"), 0),
    ]
    manifest = base_manifest(sessions=sessions, tasks=[{"tid": 7, "pid": 7}, {"tid": 8, "pid": 8}])
    graphs, report, _ = build_graphs(records, manifest)
    dashboard = Dashboard(graphs, report, setup_fields(), "demo")

    screen = _run(dashboard, _keys("s"))
    assert dashboard.graph.root.name == "second"
    assert "session bbbb (/bin/second)" in screen.text()

    _run(dashboard, _keys("s"))
    assert dashboard.graph.root.name == "first"

def test_Dashboard_dump_should_write_every_view() -> None:
    dashboard = _dashboard()
    stream = io.StringIO()
    dashboard.dump(stream, cols=100)
    text = stream.getvalue()
    assert text.index("(1) main") < text.index("Total Time")
    assert "  └─(1) baz" in text

def test_Dashboard_should_accept_empty_trace() -> None:
    graphs, report, _ = build_graphs([])
    dashboard = Dashboard(graphs, report, setup_fields(), "empty")
    _run(dashboard, _keys("jrjgGq"))
    assert dashboard.window is dashboard.graph_window

def test_Dashboard_fold_should_recount_search_matches() -> None:
    dashboard = _dashboard()
    _run(dashboard, _keys("/"), answers=["ba"])
    assert dashboard.window.search_count == 3

    screen = _run(dashboard, _keys("jj\n"))
    assert dashboard.window.curr.folded
    assert dashboard.window.search_count == 2
    assert "2 match" in screen.text()

    _run(dashboard, _keys("\n"))
    assert dashboard.window.search_count == 3

    _run(dashboard, _keys("kc"))
    assert dashboard.window.search_count == 1
    _run(dashboard, _keys("e"))
    assert dashboard.window.search_count == 3
