"""Flat view of the function report, ranked by total time."""

from __future__ import annotations

from typing import List, Optional

from .fields import format_time
from .report import ReportIndex, ReportNode
from .screen import Color, Segment
from .window import DisplayContext, WindowEngine, WindowView

class ReportView(WindowView):
    label = "report"

    def __init__(self, report: ReportIndex) -> None:
        self.report = report

    def top(self, update: bool) -> Optional[ReportNode]:
        return self.report.first()

    def prev(self, node: ReportNode, update: bool) -> Optional[ReportNode]:
        return self.report.prev(node)

    def next(self, node: ReportNode, update: bool) -> Optional[ReportNode]:
        return self.report.next(node)

    def search(self, node: ReportNode, text: str) -> bool:
        return text in node.name

    def header(self, engine: WindowEngine, ctx: DisplayContext, cols: int) -> str:
        return f"  {'Total Time':>10s}  {'Self Time':>10s}  {'Calls':>10s}  Function"

    def footer(self, engine: WindowEngine, ctx: DisplayContext, cols: int) -> str:
        if ctx.debug:
            return f"calltui report: top: {engine.top_index}, curr: {engine.curr_index}"
        if ctx.search is not None:
            return (f'calltui report: searching "{ctx.search}"  ({engine.search_count} match, '
                    f"use '<' and '>' keys to navigate)")
        return (f"calltui report: {ctx.trace_name} ({self.report.nr_sessions} sessions, "
                f"{len(self.report)} functions)")

    def render(self, node: Optional[ReportNode], cols: int) -> List[Segment]:
        if node is None:
            return []
        row: List[Segment] = [("  ", Color.NORMAL)]
        row.extend(format_time(node.time))
        row.append(("  ", Color.NORMAL))
        row.extend(format_time(node.self_time))
        row.append((f"  {node.calls:10d}  {node.name}", Color.NORMAL))
        return row
