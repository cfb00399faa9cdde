"""Numeric columns shown in front of each call-graph row."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

from .errors import ConfigError
from .screen import Color, Segment

if TYPE_CHECKING:
    from .graph import GraphNode

FIELD_SPACE = 2
FIELD_SEP = " :"

_TIME_UNITS = ("us", "ms", " s", " m", " h")
_TIME_COLORS = (Color.NORMAL, Color.GREEN, Color.YELLOW, Color.RED, Color.RED)
_TIME_LIMITS = (1000, 1000, 1000, 60, 24, 2**31 - 1)

def format_time(ntime: int) -> List[Segment]:
    """Render nanoseconds as ``"nnn.fff uu"`` with a coloured unit.

    Zero renders blank.  Values too large for the biggest unit are clamped
    to ``999.999``.
    """
    if ntime <= 0:
        return [(f"{'':7s} {'':2s}", Color.NORMAL)]

    fract = 0
    idx = 0
    for idx in range(len(_TIME_UNITS)):
        fract = ntime % _TIME_LIMITS[idx]
        ntime = ntime // _TIME_LIMITS[idx]
        if ntime < _TIME_LIMITS[idx + 1]:
            break

    if ntime > 999:
        ntime = fract = 999

    return [
        (f"{ntime:3d}.{fract:03d} ", Color.NORMAL),
        (f"{_TIME_UNITS[idx]:>2s}", _TIME_COLORS[idx]),
    ]

@dataclass(frozen=True)
class DisplayField:
    name: str
    alias: str
    header: str
    length: int
    formatter: Callable[["GraphNode"], List[Segment]]

def _print_total(node: "GraphNode") -> List[Segment]:
    return format_time(node.time)

def _print_self(node: "GraphNode") -> List[Segment]:
    return format_time(node.time - node.child_time)

def _print_addr(node: "GraphNode") -> List[Segment]:
    # addresses are recorded truncated to 48 bits
    return [(f"{node.addr:12x}", Color.NORMAL)]

FIELD_TOTAL_TIME = DisplayField("total-time", "total", "TOTAL TIME", 10, _print_total)
FIELD_SELF_TIME = DisplayField("self-time", "self", " SELF TIME", 10, _print_self)
FIELD_ADDR = DisplayField("address", "addr", "   ADDRESS  ", 12, _print_addr)

GRAPH_FIELDS: Tuple[DisplayField, ...] = (FIELD_TOTAL_TIME, FIELD_SELF_TIME, FIELD_ADDR)
DEFAULT_FIELDS: Tuple[DisplayField, ...] = (FIELD_TOTAL_TIME,)

_FIELDS_BY_NAME: Dict[str, DisplayField] = {}
for _field in GRAPH_FIELDS:
    _FIELDS_BY_NAME[_field.name] = _field
    _FIELDS_BY_NAME[_field.alias] = _field

def _lookup(name: str) -> DisplayField:
    try:
        return _FIELDS_BY_NAME[name]
    except KeyError:
        known = ", ".join(field.name for field in GRAPH_FIELDS)
        raise ConfigError(f"unknown field '{name}' (known fields: {known})") from None

def setup_fields(field_list: Optional[str] = None) -> List[DisplayField]:
    """Parse a field list such as ``"total,self"``, ``"+addr"`` or ``"none"``.

    A leading ``+`` appends to the default columns instead of replacing them.
    """
    if field_list is None:
        return list(DEFAULT_FIELDS)

    field_list = field_list.strip()
    if field_list == "none":
        return []

    fields: List[DisplayField] = []
    if field_list.startswith("+"):
        fields.extend(DEFAULT_FIELDS)
        field_list = field_list[1:]

    for name in field_list.split(","):
        name = name.strip()
        if not name:
            continue
        field = _lookup(name)
        if field not in fields:
            fields.append(field)
    return fields

def fields_width(fields: List[DisplayField]) -> int:
    """Width of the column block, separator included."""
    if not fields:
        return 0
    return sum(field.length + FIELD_SPACE for field in fields) + len(FIELD_SEP)

def render_fields(fields: List[DisplayField], node: Optional["GraphNode"]) -> List[Segment]:
    """Column segments for ``node``, or blank columns for a separator row."""
    if not fields:
        return []
    segments: List[Segment] = []
    for field in fields:
        segments.append((" " * FIELD_SPACE, Color.NORMAL))
        if node is None:
            segments.append((" " * field.length, Color.NORMAL))
        else:
            segments.extend(field.formatter(node))
    segments.append((FIELD_SEP, Color.NORMAL))
    return segments

def render_header(fields: List[DisplayField]) -> str:
    return "".join(" " * FIELD_SPACE + field.header for field in fields) + f"{FIELD_SEP} FUNCTION"
