"""Interactive call graph dashboard for ATF call traces."""

from .errors import CallTuiError, ConfigError, IngestError
from .config import TuiOptions
from .graph import CallGraph, GraphBuilder, GraphNode
from .report import ReportIndex, ReportNode
from .window import DisplayContext, WindowEngine, WindowView
from .graph_view import GraphView
from .report_view import ReportView
from .partial import build_partial_graph
from .fields import DisplayField, format_time, setup_fields
from .screen import Color, CursesScreen, TextScreen
from .dashboard import Dashboard
from .ingest import LoadedTrace, load_trace

__all__ = [
    "CallTuiError",
    "ConfigError",
    "IngestError",
    "TuiOptions",
    "CallGraph",
    "GraphBuilder",
    "GraphNode",
    "ReportIndex",
    "ReportNode",
    "DisplayContext",
    "WindowEngine",
    "WindowView",
    "GraphView",
    "ReportView",
    "build_partial_graph",
    "DisplayField",
    "format_time",
    "setup_fields",
    "Color",
    "CursesScreen",
    "TextScreen",
    "Dashboard",
    "LoadedTrace",
    "load_trace",
]
