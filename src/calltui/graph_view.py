"""Tree view of a call graph for the window engine."""

from __future__ import annotations

from typing import List, Optional, Tuple

from .fields import DisplayField, fields_width, render_fields, render_header
from .graph import CallGraph, GraphNode
from .screen import Color, Segment
from .window import DisplayContext, WindowEngine, WindowView

SESSION_ID_LEN = 16

Mask = List[bool]

def _single(node: GraphNode) -> bool:
    return len(node.children) == 1

def prev_node(node: GraphNode, depth: int, mask: Optional[Mask]) -> Tuple[Optional[GraphNode], int]:
    """Row before ``node``, threading the indent depth and mask.

    Depth only changes where a node has more than one child, so call chains
    without branches are drawn without extra indentation.
    """
    parent = node.parent
    if parent is None:
        return None, 0

    if parent.is_first_child(node):
        if not _single(parent) and depth > 0:
            depth -= 1
            if mask is not None:
                mask[depth] = False
        n = parent
    else:
        n = node.prev_sibling()
        # descend to the last visible row of the previous sibling
        while n.children and not n.folded:
            if not _single(n):
                if mask is not None:
                    mask[depth] = False
                depth += 1
            n = n.children[-1]

    if n.parent is not None and not _single(n.parent):
        if mask is not None and depth > 0:
            mask[depth - 1] = True

    return n, depth

def next_node(node: GraphNode, depth: int, mask: Optional[Mask]) -> Tuple[Optional[GraphNode], int]:
    """Row after ``node``; folded nodes are not descended into."""
    parent = node.parent
    if (parent is not None and not _single(parent) and parent.is_last_child(node)
            and mask is not None and depth > 0):
        mask[depth - 1] = False

    if node.children and (parent is None or not node.folded):
        if not _single(node):
            if mask is not None:
                mask[depth] = True
            depth += 1
        n = node.children[0]
        if n.special:
            depth = 0
        return n, depth

    n = node
    while n.parent is not None:
        sibling = n.next_sibling()
        if sibling is not None:
            if sibling.special:
                depth = 0
            return sibling, depth

        n = n.parent
        if not _single(n) and depth > 0:
            depth -= 1
            if mask is not None:
                mask[depth] = False

    return None, depth

def fold_node(node: GraphNode, fold: bool) -> int:
    """Set the fold flag on ``node`` and its subtree; leaves stay unfolded."""
    count = 0
    stack = [node]
    while stack:
        n = stack.pop()
        if not n.children:
            continue
        if n.folded != fold:
            n.folded = fold
            count += 1
        stack.extend(n.children)
    return count

class GraphView(WindowView):
    """Graph window: indentation-aware traversal, folding and row rendering."""

    label = "graph"

    def __init__(self, graph: CallGraph, fields: List[DisplayField]) -> None:
        self.graph = graph
        self.fields = fields
        self.width = fields_width(fields)
        self.top_depth = 0
        self.disp: Optional[GraphNode] = None
        self.disp_depth = 0
        self.disp_update = False
        self.top_mask: Mask = []
        self.disp_mask: Mask = []
        self.reset_masks()

    def reset_masks(self) -> None:
        size = max(self.graph.mask_size, self.graph.root.height() + 1)
        self.top_mask = [False] * size
        self.disp_mask = [False] * size
        self.top_depth = 0
        self.disp_depth = 0

    # traversal

    def top(self, update: bool) -> GraphNode:
        if update:
            self.top_depth = 0
        return self.graph.root

    def prev(self, node: GraphNode, update: bool) -> Optional[GraphNode]:
        if update:
            prev, self.top_depth = prev_node(node, self.top_depth, self.top_mask)
            return prev
        return prev_node(node, 0, None)[0]

    def next(self, node: GraphNode, update: bool) -> Optional[GraphNode]:
        if update:
            # the top row moved to a new page
            nxt, self.top_depth = next_node(node, self.top_depth, self.top_mask)
            return nxt
        if self.disp_update:
            nxt, self.disp_depth = next_node(node, self.disp_depth, self.disp_mask)
            self.disp = nxt
            return nxt
        return next_node(node, 0, None)[0]

    def needs_blank(self, prev: GraphNode, next: GraphNode) -> bool:
        return not prev.is_first_child(next)

    def parent(self, node: GraphNode) -> Optional[GraphNode]:
        return node.parent

    def sibling_prev(self, node: GraphNode) -> Optional[GraphNode]:
        return node.prev_sibling()

    def sibling_next(self, node: GraphNode) -> Optional[GraphNode]:
        return node.next_sibling()

    # folding

    def enter(self, node: GraphNode) -> bool:
        # the root cannot be folded
        if node.parent is None or not node.children:
            return False
        node.folded = not node.folded
        return True

    def collapse(self, node: GraphNode) -> int:
        return sum(fold_node(child, True) for child in node.children)

    def expand(self, node: GraphNode) -> int:
        return sum(fold_node(child, False) for child in node.children)

    def search(self, node: GraphNode, text: str) -> bool:
        return text in node.name

    # drawing

    def header(self, engine: WindowEngine, ctx: DisplayContext, cols: int) -> str:
        # rows are drawn from the top row's indent state onwards
        self.disp = engine.top
        self.disp_depth = self.top_depth
        self.disp_mask[:] = self.top_mask
        self.disp_update = True

        if not self.fields:
            return "calltui graph TUI"
        return render_header(self.fields)

    def footer(self, engine: WindowEngine, ctx: DisplayContext, cols: int) -> str:
        self.disp_update = False
        session = self.graph.session

        if ctx.debug:
            return (f"calltui graph: top: {engine.top_index} depth: {self.top_depth}, "
                    f"curr: {engine.curr_index}")
        if ctx.search is not None:
            return (f'calltui graph: searching "{ctx.search}"  ({engine.search_count} match, '
                    f"use '<' and '>' keys to navigate)")
        if session is None:
            return "calltui graph"
        return f"calltui graph: session {session.sid[:SESSION_ID_LEN]} ({session.exename})"

    def _indent(self, node: GraphNode, depth: int, single_child: bool) -> str:
        parent = node.parent
        parts = []
        for i in range(depth):
            if not self.disp_mask[i]:
                parts.append("   ")
            elif i < depth - 1 or single_child:
                parts.append("  │")
            elif parent is not None and parent.is_last_child(node):
                parts.append("  └")
            else:
                parts.append("  ├")
        return "".join(parts)

    def render(self, node: Optional[GraphNode], cols: int) -> List[Segment]:
        depth = self.disp_depth
        if node is None:
            # blank separator before self.disp
            row = render_fields(self.fields, None)
            if self.disp is not None:
                row.append((self._indent(self.disp, depth, True), Color.NORMAL))
            return row

        fold_sign = "▶" if node.folded else "─"
        single_child = False
        parent = node.parent
        if parent is None:
            fold_sign = " "
        elif _single(parent):
            single_child = True
            if not node.folded:
                fold_sign = " "

        row = render_fields(self.fields, node)
        row.append((self._indent(node, depth, single_child), Color.NORMAL))
        if node.special:
            row.append((node.name, Color.NORMAL))
        else:
            row.append((f"{fold_sign}({node.nr_calls}) {node.name}", Color.NORMAL))
        return row
