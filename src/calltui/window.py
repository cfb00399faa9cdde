"""Cursor, scrolling, folding and search shared by every dashboard view.

A :class:`WindowEngine` keeps two cursors into a view: ``top`` is the node
on the first visible row and ``curr`` the selected node.  Both carry a
logical row index counting blank separator rows, so the engine can tell when
the selection leaves the viewport.  All traversal goes through the
:class:`WindowView` capabilities; the engine never looks at node types.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from .screen import Color, Screen, Segment

logger = logging.getLogger(__name__)

@dataclass
class DisplayContext:
    """UI state shared by all views for the lifetime of the dashboard."""

    search: Optional[str] = None
    debug: bool = False
    trace_name: str = ""

class WindowView:
    """Capabilities a view provides to the engine.

    ``update`` asks the view to also advance whatever per-row state it keeps
    for the top of the viewport (the graph view's indent mask).
    """

    def top(self, update: bool) -> Any:
        raise NotImplementedError

    def prev(self, node: Any, update: bool) -> Any:
        raise NotImplementedError

    def next(self, node: Any, update: bool) -> Any:
        raise NotImplementedError

    def parent(self, node: Any) -> Any:
        return None

    def sibling_prev(self, node: Any) -> Any:
        return self.prev(node, False)

    def sibling_next(self, node: Any) -> Any:
        return self.next(node, False)

    def needs_blank(self, prev: Any, next: Any) -> bool:
        return False

    def enter(self, node: Any) -> bool:
        return False

    def collapse(self, node: Any) -> int:
        return 0

    def expand(self, node: Any) -> int:
        return 0

    def can_search(self) -> bool:
        return True

    def search(self, node: Any, text: str) -> bool:
        return False

    def header(self, engine: "WindowEngine", ctx: DisplayContext, cols: int) -> str:
        return ""

    def footer(self, engine: "WindowEngine", ctx: DisplayContext, cols: int) -> str:
        return ""

    def render(self, node: Any, cols: int) -> List[Segment]:
        raise NotImplementedError

class WindowEngine:
    """Navigation state machine over a :class:`WindowView`."""

    def __init__(self, view: WindowView, height: int = 22) -> None:
        self.view = view
        self.height = height
        self.top: Any = None
        self.curr: Any = None
        self.old: Any = None
        self.top_index = 0
        self.curr_index = 0
        self.search_count = -1
        self.reset()

    def __repr__(self) -> str:
        return (f"WindowEngine({type(self.view).__name__}, top={self.top_index}, "
                f"curr={self.curr_index})")

    def reset(self) -> None:
        top = self.view.top(True)
        self.top = self.curr = self.old = top
        self.top_index = self.curr_index = 0

    def _rows(self, prev: Any, next: Any) -> int:
        return 2 if self.view.needs_blank(prev, next) else 1

    def _scroll_down(self) -> None:
        while self.curr_index - self.top_index >= self.height:
            node = self.view.next(self.top, True)
            if node is None:
                break
            self.top_index += self._rows(self.top, node)
            self.top = node

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------

    def move_up(self) -> None:
        if self.curr is None:
            return
        node = self.view.prev(self.curr, False)
        if node is None:
            return
        self.curr_index -= self._rows(node, self.curr)

        if self.curr_index < self.top_index:
            self.top = self.view.prev(self.top, True)
            self.top_index = self.curr_index
        self.curr = node

    def move_down(self) -> None:
        if self.curr is None:
            return
        node = self.view.next(self.curr, False)
        if node is None:
            return
        self.curr_index += self._rows(self.curr, node)
        self.curr = node
        self._scroll_down()

    def page_up(self) -> None:
        if self.curr is None:
            return
        if self.curr is not self.top:
            self.curr = self.top
            self.curr_index = self.top_index
            return

        while self.top_index - self.curr_index < self.height:
            node = self.view.prev(self.top, True)
            if node is None:
                break
            self.curr_index -= self._rows(node, self.top)
            self.top = node
        self.curr = self.top
        self.top_index = self.curr_index

    def page_down(self) -> None:
        if self.curr is None:
            return
        orig_index = self.top_index
        node = self.view.next(self.curr, False)
        if node is None:
            return
        next_index = self.curr_index + self._rows(self.curr, node)

        if next_index - self.top_index >= self.height:
            # already at the bottom row: page from the next row on
            orig_index = next_index

        while True:
            self.curr = node
            self.curr_index = next_index

            node = self.view.next(self.curr, False)
            if node is None:
                break
            next_index += self._rows(self.curr, node)
            if next_index - orig_index >= self.height:
                break

        self._scroll_down()

    def move_home(self) -> None:
        self.top = self.curr = self.view.top(True)
        self.top_index = self.curr_index = 0

    def move_end(self) -> None:
        if self.curr is None:
            return
        while True:
            node = self.view.next(self.curr, False)
            if node is None:
                break
            self.curr_index += self._rows(self.curr, node)
            self.curr = node
        self._scroll_down()

    def move_prev(self) -> None:
        """Move to the previous sibling."""
        if self.curr is None:
            return
        target = self.view.sibling_prev(self.curr)
        if target is None:
            return
        while self.curr is not target:
            before = self.curr
            self.move_up()
            if self.curr is before:
                break

    def move_next(self) -> None:
        """Move to the next sibling."""
        if self.curr is None:
            return
        target = self.view.sibling_next(self.curr)
        if target is None:
            return
        while self.curr is not target:
            before = self.curr
            self.move_down()
            if self.curr is before:
                break

    def move_parent(self) -> None:
        if self.curr is None:
            return
        target = self.view.parent(self.curr)
        if target is None:
            return
        while self.curr is not target:
            before = self.curr
            self.move_up()
            if self.curr is before:
                break

    # ------------------------------------------------------------------
    # Folding
    # ------------------------------------------------------------------

    def enter(self) -> bool:
        if self.curr is None:
            return False
        return self.view.enter(self.curr)

    def collapse(self) -> int:
        if self.curr is None:
            return 0
        return self.view.collapse(self.curr)

    def expand(self) -> int:
        if self.curr is None:
            return 0
        return self.view.expand(self.curr)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def invalidate_search(self) -> None:
        self.search_count = -1

    def update_search_count(self, text: Optional[str]) -> int:
        """Count matches over the visible rows if the count is stale."""
        if text is None or not self.view.can_search():
            return self.search_count
        if self.search_count != -1:
            return self.search_count

        count = 0
        node = self.view.top(False)
        while node is not None:
            if self.view.search(node, text):
                count += 1
            node = self.view.next(node, False)
        self.search_count = count
        return count

    def search_prev(self, text: Optional[str]) -> bool:
        if text is None or self.curr is None or not self.view.can_search():
            return False
        node = self.curr
        while True:
            node = self.view.prev(node, False)
            if node is None:
                return False
            if self.view.search(node, text):
                break
        while self.curr is not node:
            self.move_up()
        return True

    def search_next(self, text: Optional[str]) -> bool:
        if text is None or self.curr is None or not self.view.can_search():
            return False
        node = self.curr
        while True:
            node = self.view.next(node, False)
            if node is None:
                return False
            if self.view.search(node, text):
                break
        while self.curr is not node:
            self.move_down()
        return True

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def display(self, screen: Screen, ctx: DisplayContext, full_redraw: bool) -> None:
        """Draw header, visible rows and footer.

        Without ``full_redraw`` only the rows of the old and the new current
        node are repainted.
        """
        lines, cols = screen.lines, screen.cols
        if lines <= 2:
            return
        self.height = lines - 2

        screen.draw(0, [(self.view.header(self, ctx, cols), Color.HEADER)],
                    bold=True, color=Color.HEADER)

        node = self.top
        count = 0
        while node is not None and count < self.height:
            if full_redraw or node is self.curr or node is self.old:
                screen.draw(count + 1, self.view.render(node, cols), reverse=node is self.curr)

            next_node = self.view.next(node, False)
            if next_node is None:
                break
            if self.view.needs_blank(node, next_node):
                count += 1
                if count < self.height:
                    screen.draw(count + 1, self.view.render(None, cols))
            node = next_node
            count += 1

        screen.draw(lines - 1, [(self.view.footer(self, ctx, cols), Color.HEADER)],
                    bold=True, color=Color.HEADER)
