"""Call-graph model and its incremental construction from trace records."""

from __future__ import annotations

import logging
import os
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from atf.sessions import ADDRESS_MASK
from interfaces import EventType, SessionInfo, SessionResolver, TaskView, TraceRecord
from .report import ReportIndex, ReportNode

logger = logging.getLogger(__name__)

class GraphNode:
    """One call path of a session, with the statistics of every call made through it.

    A node owns its ``children``; ``parent``, ``graph`` and ``report`` are
    back-references.  Children are kept in first-seen order.
    """

    __slots__ = (
        "name",
        "addr",
        "time",
        "child_time",
        "nr_calls",
        "folded",
        "special",
        "parent",
        "graph",
        "report",
        "children",
        "_slot",
        "_lookup",
    )

    def __init__(
        self,
        name: str,
        parent: Optional["GraphNode"] = None,
        *,
        addr: int = 0,
        graph: Optional["CallGraph"] = None,
        special: bool = False,
    ) -> None:
        self.name = name
        self.addr = addr & ADDRESS_MASK
        self.time = 0
        self.child_time = 0
        self.nr_calls = 0
        self.folded = False
        self.special = special
        self.parent = parent
        self.graph = graph
        self.report: Optional[ReportNode] = None
        self.children: List[GraphNode] = []
        self._slot = 0
        self._lookup: Dict[str, GraphNode] = {}

    def __repr__(self) -> str:
        return f"GraphNode({self.name!r}, time={self.time}, calls={self.nr_calls})"

    @property
    def self_time(self) -> int:
        return self.time - self.child_time

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def find_child(self, name: str) -> Optional["GraphNode"]:
        return self._lookup.get(name)

    def add_child(self, name: str, *, addr: int = 0, special: bool = False) -> "GraphNode":
        """Append a new child, even if one with the same name exists."""
        child = GraphNode(name, self, addr=addr, graph=self.graph, special=special)
        child._slot = len(self.children)
        self.children.append(child)
        self._lookup.setdefault(name, child)
        return child

    def is_first_child(self, child: "GraphNode") -> bool:
        return bool(self.children) and self.children[0] is child

    def is_last_child(self, child: "GraphNode") -> bool:
        return bool(self.children) and self.children[-1] is child

    def prev_sibling(self) -> Optional["GraphNode"]:
        if self.parent is None or self._slot == 0:
            return None
        return self.parent.children[self._slot - 1]

    def next_sibling(self) -> Optional["GraphNode"]:
        if self.parent is None or self._slot + 1 >= len(self.parent.children):
            return None
        return self.parent.children[self._slot + 1]

    def walk(self) -> Iterator["GraphNode"]:
        """Pre-order walk of this subtree, ignoring fold flags."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def height(self) -> int:
        """Number of levels below this node."""
        deepest = 0
        stack = [(self, 0)]
        while stack:
            node, level = stack.pop()
            deepest = max(deepest, level)
            stack.extend((child, level + 1) for child in node.children)
        return deepest

class CallGraph:
    """The call graph of one session, rooted at an artificial node."""

    def __init__(self, session: Optional[SessionInfo], name: Optional[str] = None) -> None:
        self.session = session
        self.root = GraphNode(name or self._default_name(session), graph=self)
        self.max_depth = 0

    @staticmethod
    def _default_name(session: Optional[SessionInfo]) -> str:
        if session is None or not session.exename:
            return "(unknown)"
        return os.path.basename(session.exename)

    @property
    def mask_size(self) -> int:
        return max(self.max_depth, 1) + 1

    def walk(self) -> Iterator[GraphNode]:
        return self.root.walk()

    def finish(self) -> None:
        """Fill the artificial root with the sum of the top-level calls."""
        root = self.root
        root.name = self._default_name(self.session)
        root.nr_calls = 1
        root.time = sum(child.time for child in root.children)
        root.child_time = root.time

    def reset(self, session: Optional[SessionInfo], name: str) -> GraphNode:
        """Drop the whole tree and start over with an empty root."""
        self.destroy()
        self.session = session
        self.root = GraphNode(name, graph=self)
        return self.root

    def destroy(self) -> None:
        for node in list(self.root.walk()):
            node.children = []
            node._lookup = {}
            node.parent = None
        self.root = GraphNode(self.root.name, graph=self)
        self.max_depth = 0

class TaskGraph:
    """Cursor of one task into the graph it is currently building."""

    __slots__ = ("node", "graph", "depth")

    def __init__(self) -> None:
        self.node: Optional[GraphNode] = None
        self.graph: Optional[CallGraph] = None
        self.depth = 0

class GraphBuilder:
    """Builds per-session call graphs and the report index from task records."""

    def __init__(
        self,
        sessions: SessionResolver,
        report: ReportIndex,
        session_list: Iterable[SessionInfo] = (),
        *,
        kernel_only: bool = False,
        kernel_skip_out: bool = False,
        event_skip_out: bool = False,
    ) -> None:
        self._sessions = sessions
        self.report = report
        self.kernel_only = kernel_only
        self.kernel_skip_out = kernel_skip_out
        self.event_skip_out = event_skip_out
        self.graphs: Dict[str, CallGraph] = {}
        for session in session_list:
            self.graph_for(session)
        self._task_graphs: Dict[int, TaskGraph] = {}
        self.dropped = 0
        self.filtered = 0

    def graph_for(self, session: SessionInfo) -> CallGraph:
        graph = self.graphs.get(session.sid)
        if graph is None:
            logger.debug("create graph for session %s (%s)", session.sid, session.exename)
            graph = CallGraph(session)
            self.graphs[session.sid] = graph
            self.report.nr_sessions += 1
        return graph

    def ingest(self, stream: Iterable[Tuple[TaskView, TraceRecord]]) -> None:
        for task, record in stream:
            if self._filtered(task, record):
                self.filtered += 1
                continue
            self.add_record(task, record)

    def finish(self) -> List[CallGraph]:
        """Complete the graph roots and rank the report; run once after ingest."""
        for graph in self.graphs.values():
            graph.finish()
        self.report.finalize_and_sort()
        logger.info(
            "built %d graphs, %d functions (%d records dropped, %d filtered)",
            len(self.graphs),
            len(self.report),
            self.dropped,
            self.filtered,
        )
        return list(self.graphs.values())

    def _filtered(self, task: TaskView, record: TraceRecord) -> bool:
        is_event = record.event_type is EventType.EVENT
        kernel = not is_event and self._sessions.is_kernel_address(None, record.address)
        user_depth = task.user_stack_count

        if self.kernel_only and not kernel:
            return True
        if self.kernel_skip_out and kernel and user_depth == 0:
            return True
        if self.event_skip_out and is_event and user_depth == 0:
            return True
        return False

    def _drop(self, reason: str, record: TraceRecord) -> bool:
        self.dropped += 1
        logger.debug("drop %s record of task %d at %d: %s",
                     record.event_type.value, record.thread_id, record.timestamp_ns, reason)
        return False

    def add_record(self, task: TaskView, record: TraceRecord) -> bool:
        """Apply one record to its session graph; ``False`` if it was dropped."""
        session = self._sessions.find_record_session(
            task.tid, task.pid, record.timestamp_ns, record.address
        )
        if session is None:
            return self._drop("no session", record)
        if record.event_type is EventType.EVENT:
            return False

        graph = self.graph_for(session)
        name = self._sessions.resolve_name(session, task, record.timestamp_ns, record.address)
        if name is None:
            return self._drop("no symbol", record)

        tg = self._task_graphs.get(task.tid)
        if tg is None:
            tg = self._task_graphs[task.tid] = TaskGraph()
        if tg.node is None or tg.graph is not graph:
            tg.node = graph.root
            tg.depth = 0
        tg.graph = graph

        if record.event_type is EventType.FUNCTION_ENTER:
            node = tg.node.find_child(name)
            if node is None:
                node = tg.node.add_child(name, addr=record.address)
            tg.node = node
            tg.depth += 1
            if tg.depth > graph.max_depth:
                graph.max_depth = tg.depth
            return True

        node = tg.node
        frame = task.frame
        if node is graph.root or frame is None:
            return self._drop("exit above graph root", record)

        total_time = frame.total_time
        child_time = min(frame.child_time, total_time)

        # report nodes are built on exit only
        report_node = self.report.find_or_create(name)
        report_node.add_occurrence(node)
        report_node.record_call(total_time, total_time - child_time)
        for outer in task.stack:
            if outer.address == frame.address:
                report_node.recursive_time += total_time
                break

        node.time += total_time
        node.child_time += child_time
        node.nr_calls += 1

        tg.node = node.parent
        tg.depth -= 1
        return True
