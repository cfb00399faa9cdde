"""Interactive dashboard: owns the windows and maps keys to operations."""

from __future__ import annotations

import curses
import logging
from typing import List, TextIO

from .fields import DisplayField
from .graph import CallGraph, GraphNode
from .graph_view import GraphView
from .partial import build_partial_graph
from .report import ReportIndex, ReportNode
from .report_view import ReportView
from .screen import KEY_ESCAPE, Screen, TextScreen
from .window import DisplayContext, WindowEngine

logger = logging.getLogger(__name__)

HELP = (
    "j/k or arrows: move  PgUp/PgDn/Home/End: scroll  Enter: fold  c/e: collapse/expand  "
    "p/n: sibling  u: parent  G: graph  g: partial graph  r: report  s: next session  "
    "/: search  </>: prev/next match  v: debug  q: quit"
)

class Dashboard:
    """The control loop state: one window per session graph, the report
    window, the partial-graph window and the shared display context."""

    def __init__(
        self,
        graphs: List[CallGraph],
        report: ReportIndex,
        fields: List[DisplayField],
        trace_name: str = "",
    ) -> None:
        if not graphs:
            graphs = [CallGraph(None)]
        self.graphs = graphs
        self.report = report
        self.ctx = DisplayContext(trace_name=trace_name)

        self.graph_windows = [WindowEngine(GraphView(graph, fields)) for graph in graphs]
        self.report_window = WindowEngine(ReportView(report))

        self.partial = CallGraph(graphs[0].session, "=== Function Call Graph ===")
        self.partial.root.special = True
        self.partial_view = GraphView(self.partial, fields)
        self.partial_window = WindowEngine(self.partial_view)

        self.session_index = 0
        self.window = self.graph_windows[0]
        self.full_redraw = True
        self._old_top = self.window.top

    @property
    def graph(self) -> CallGraph:
        return self.graphs[self.session_index]

    @property
    def graph_window(self) -> WindowEngine:
        return self.graph_windows[self.session_index]

    @property
    def windows(self) -> List[WindowEngine]:
        return [*self.graph_windows, self.report_window, self.partial_window]

    # ------------------------------------------------------------------
    # View switching
    # ------------------------------------------------------------------

    def change_window(self, window: WindowEngine) -> bool:
        if window is self.window:
            return False
        window.update_search_count(self.ctx.search)
        self.window = window
        self.full_redraw = True
        return True

    def next_session(self) -> bool:
        if len(self.graphs) < 2:
            return False
        self.session_index = (self.session_index + 1) % len(self.graphs)
        return self.change_window(self.graph_window)

    def _graph_of(self, window: WindowEngine) -> CallGraph:
        if window is self.partial_window:
            sid = self.partial.session.sid if self.partial.session else None
            for graph in self.graphs:
                if graph.session is not None and graph.session.sid == sid:
                    return graph
        return self.graph

    def pivot(self, func: ReportNode, target: CallGraph) -> None:
        """Show the partial graph of ``func`` within the session of ``target``."""
        build_partial_graph(func, target, self.partial)
        self.partial_view.reset_masks()
        self.partial_window.reset()
        self.partial_window.invalidate_search()

        self.window = self.partial_window
        self.window.move_home()
        self.window.update_search_count(self.ctx.search)
        self.full_redraw = True

    def pivot_current(self) -> bool:
        window = self.window
        curr = window.curr
        if curr is None:
            return False

        if window is self.report_window:
            func = curr
        else:
            node: GraphNode = curr
            if node.special:
                return False
            func = self.report.get(node.name)
            if func is None:
                # nothing was recorded for it (e.g. the session root)
                func = ReportNode(node.name)

        self.pivot(func, self._graph_of(window))
        return True

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def start_search(self, screen: Screen) -> None:
        if not self.window.view.can_search():
            return
        self.ctx.search = screen.prompt("Search function:", "(press ESC to exit)")
        for window in self.windows:
            window.invalidate_search()
        self.window.update_search_count(self.ctx.search)
        self.full_redraw = True

    def cancel_search(self) -> None:
        self.ctx.search = None

    def _rows_changed(self, win: WindowEngine) -> None:
        # match counts cover visible rows only
        win.invalidate_search()
        win.update_search_count(self.ctx.search)
        self.full_redraw = True

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def handle_key(self, key: int, screen: Screen) -> bool:
        """Apply one key press; ``False`` means quit."""
        win = self.window
        win.height = max(screen.lines - 2, 1)

        if key == curses.KEY_RESIZE:
            self.full_redraw = True
        elif key in (curses.KEY_UP, ord("k")):
            win.move_up()
        elif key in (curses.KEY_DOWN, ord("j")):
            win.move_down()
        elif key == curses.KEY_PPAGE:
            win.page_up()
        elif key == curses.KEY_NPAGE:
            win.page_down()
        elif key == curses.KEY_HOME:
            win.move_home()
        elif key == curses.KEY_END:
            win.move_end()
        elif key in (curses.KEY_ENTER, ord("\n")):
            if win.enter():
                self._rows_changed(win)
        elif key == KEY_ESCAPE:
            self.cancel_search()
        elif key == ord("G"):
            self.change_window(self.graph_window)
        elif key == ord("g"):
            self.pivot_current()
        elif key in (ord("R"), ord("r")):
            self.change_window(self.report_window)
        elif key == ord("s"):
            self.next_session()
        elif key == ord("c"):
            if win.collapse():
                self._rows_changed(win)
        elif key == ord("e"):
            if win.expand():
                self._rows_changed(win)
        elif key == ord("p"):
            win.move_prev()
        elif key == ord("n"):
            win.move_next()
        elif key == ord("u"):
            win.move_parent()
        elif key == ord("/"):
            self.start_search(screen)
        elif key in (ord("<"), ord("P")):
            win.search_prev(self.ctx.search)
        elif key in (ord(">"), ord("N")):
            win.search_next(self.ctx.search)
        elif key == ord("v"):
            self.ctx.debug = not self.ctx.debug
        elif key == ord("q"):
            return False

        return True

    def draw(self, screen: Screen) -> None:
        win = self.window
        if win.top is not self._old_top:
            self.full_redraw = True
        if self.full_redraw:
            screen.clear()

        win.display(screen, self.ctx, self.full_redraw)
        screen.refresh()

        self.full_redraw = False
        win.old = win.curr
        self._old_top = win.top

    def run(self, screen: Screen) -> None:
        """Block on key presses until quit."""
        key = 0
        while self.handle_key(key, screen):
            self.draw(screen)
            key = screen.getch()
        logger.debug("dashboard loop finished")

    # ------------------------------------------------------------------
    # Non-interactive output
    # ------------------------------------------------------------------

    def _count_rows(self, window: WindowEngine) -> int:
        view = window.view
        node = view.top(False)
        rows = 0
        while node is not None:
            next_node = view.next(node, False)
            rows += 1
            if next_node is not None and view.needs_blank(node, next_node):
                rows += 1
            node = next_node
        return rows

    def dump(self, stream: TextIO, cols: int = 120) -> None:
        """Write every session graph and the report as plain text."""
        for window in [*self.graph_windows, self.report_window]:
            screen = TextScreen(self._count_rows(window) + 2, cols)
            window.move_home()
            window.display(screen, self.ctx, True)
            stream.write(screen.text())
            stream.write("\n\n")
