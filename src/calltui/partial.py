"""Partial call graph of one function: its back-traces and its merged callees."""

from __future__ import annotations

import logging

from .graph import CallGraph, GraphNode
from .report import ReportNode

logger = logging.getLogger(__name__)

BACKTRACE_TITLE = "========== Back-trace =========="
CALLGRAPH_TITLE = "========== Call Graph =========="

def merge_graph_node(dst: GraphNode, src: GraphNode) -> None:
    """Add the subtree below ``src`` into ``dst``, matching children by name."""
    pending = [(dst, src)]
    while pending:
        into, origin = pending.pop()
        for child in origin.children:
            node = into.find_child(child.name)
            if node is None:
                node = into.add_child(child.name, addr=child.addr)
            node.time += child.time
            node.child_time += child.child_time
            node.nr_calls += child.nr_calls
            pending.append((node, child))

def build_partial_graph(pivot: ReportNode, target: CallGraph, partial: CallGraph) -> CallGraph:
    """Rebuild ``partial`` around ``pivot`` for the session of ``target``.

    Only occurrences that belong to ``target`` are used.  Each one adds a
    back-trace path (the function, its caller, and so on up to the top-level
    call) and is merged into the single call-graph node below the second
    section.
    """
    root = partial.reset(target.session, f"=== Function Call Graph for '{pivot.name}' ===")
    root.special = True

    occurrences = [node for node in pivot.occurrences if node.graph is target]
    logger.debug("partial graph for %s: %d occurrences", pivot.name, len(occurrences))

    section = root.add_child(BACKTRACE_TITLE, special=True)
    for node in occurrences:
        tmp = section
        levels = 0
        parent = node
        while parent.parent is not None:
            tmp = tmp.add_child(parent.name, addr=parent.addr)
            tmp.time = node.time
            tmp.child_time = node.child_time
            tmp.nr_calls = node.nr_calls

            # fold the path at the caller
            if levels == 1:
                tmp.folded = True
            levels += 1
            parent = parent.parent

        # a two-level path ends at the caller: nothing to hide
        if levels == 2:
            tmp.folded = False

    section = root.add_child(CALLGRAPH_TITLE, special=True)
    func = section.add_child(pivot.name)
    for node in occurrences:
        func.addr = node.addr
        func.time += node.time
        func.child_time += node.child_time
        func.nr_calls += node.nr_calls
        merge_graph_node(func, node)

    partial.max_depth = root.height()
    return partial
