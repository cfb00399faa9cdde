"""Per-function statistics aggregated over every call site of a trace."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

if TYPE_CHECKING:
    from .graph import GraphNode

class ReportNode:
    """Statistics of one function name across all sessions.

    ``time`` and ``self_time`` are filled in by
    :meth:`ReportIndex.finalize_and_sort`; the min/max values and the
    recursive time are gathered call by call while the trace is ingested.
    """

    __slots__ = (
        "name",
        "time",
        "min_time",
        "max_time",
        "self_time",
        "min_self_time",
        "max_self_time",
        "recursive_time",
        "calls",
        "occurrences",
        "rank",
    )

    def __init__(self, name: str) -> None:
        self.name = name
        self.time = 0
        self.min_time = 0
        self.max_time = 0
        self.self_time = 0
        self.min_self_time = 0
        self.max_self_time = 0
        self.recursive_time = 0
        self.calls = 0
        self.occurrences: List["GraphNode"] = []
        self.rank = -1

    def __repr__(self) -> str:
        return f"ReportNode({self.name!r}, time={self.time}, calls={self.calls})"

    def add_occurrence(self, node: "GraphNode") -> None:
        """Link a call-graph node to this function, once."""
        if node.report is None:
            node.report = self
            self.occurrences.append(node)

    def record_call(self, total_time: int, self_time: int) -> None:
        if self.max_time < total_time:
            self.max_time = total_time
        if self.min_time == 0 or self.min_time > total_time:
            self.min_time = total_time
        if self.max_self_time < self_time:
            self.max_self_time = self_time
        if self.min_self_time == 0 or self.min_self_time > self_time:
            self.min_self_time = self_time

    def prepare(self) -> None:
        """Aggregate the linked occurrences into total/self time and calls."""
        total = 0
        self_total = 0
        calls = 0
        for node in self.occurrences:
            total += node.time
            self_total += node.time - node.child_time
            calls += node.nr_calls
        self.time = total - self.recursive_time
        self.self_time = self_total
        self.calls = calls

def _rank_key(node: ReportNode):
    return (-node.time, node.name)

class ReportIndex:
    """Function statistics indexed by name and ranked by total time.

    Names live in a dict; name order and the ranking are produced by one
    sort each, the ranking on ``(-time, name)`` so equal totals are broken
    by name.
    """

    def __init__(self) -> None:
        self._by_name: Dict[str, ReportNode] = {}
        self._ranked: List[ReportNode] = []
        self.nr_sessions = 0

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def get(self, name: str) -> Optional[ReportNode]:
        return self._by_name.get(name)

    def find_or_create(self, name: str) -> ReportNode:
        node = self._by_name.get(name)
        if node is None:
            node = ReportNode(name)
            self._by_name[name] = node
        return node

    def walk_names(self) -> Iterator[ReportNode]:
        for name in sorted(self._by_name):
            yield self._by_name[name]

    def finalize_and_sort(self) -> None:
        """Aggregate every node and rebuild the ranking from scratch."""
        for node in self._by_name.values():
            node.prepare()
        self._ranked = sorted(self._by_name.values(), key=_rank_key)
        for rank, node in enumerate(self._ranked):
            node.rank = rank

    # ranking traversal

    @property
    def ranked(self) -> List[ReportNode]:
        return list(self._ranked)

    def first(self) -> Optional[ReportNode]:
        return self._ranked[0] if self._ranked else None

    def _ranked_at(self, rank: int) -> Optional[ReportNode]:
        if 0 <= rank < len(self._ranked):
            return self._ranked[rank]
        return None

    def prev(self, node: ReportNode) -> Optional[ReportNode]:
        if node.rank < 0:
            return None
        return self._ranked_at(node.rank - 1)

    def next(self, node: ReportNode) -> Optional[ReportNode]:
        if node.rank < 0:
            return None
        return self._ranked_at(node.rank + 1)
