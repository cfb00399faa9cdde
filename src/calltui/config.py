"""Dashboard options and the parsers for their command-line values."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import ConfigError

TimeBounds = Tuple[Optional[int], Optional[int]]

_TIME_UNITS = {"ns": 1, "us": 1_000, "ms": 1_000_000, "s": 1_000_000_000}
_TIME_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ns|us|ms|s)?\s*$")

@dataclass
class TuiOptions:
    """Options collected from the command line.

    ``output_fields`` uses the field-list syntax of ``fields.setup_fields``.
    The three skip flags mirror the record filters applied while the call
    graphs are built.  ``tids`` and ``time_range`` select which records are
    read at all; either bound of ``time_range`` may be open.
    """

    trace: Path
    output_fields: Optional[str] = None
    kernel_only: bool = False
    kernel_skip_out: bool = False
    event_skip_out: bool = False
    tids: Optional[List[int]] = None
    time_range: Optional[TimeBounds] = None
    verbose: bool = False
    log_file: Optional[str] = None
    dump: bool = False

def parse_time(text: str) -> int:
    """``"1500"``, ``"1.5us"`` or ``"2ms"`` to nanoseconds; bare numbers are ns."""
    match = _TIME_RE.match(text)
    if match is None:
        raise ConfigError(f"invalid time '{text}'")
    value, unit = match.groups()
    return int(float(value) * _TIME_UNITS[unit or "ns"])

def parse_time_range(text: str) -> TimeBounds:
    """Parse ``START~END``; an empty side leaves that bound open."""
    start, sep, end = text.partition("~")
    if not sep:
        raise ConfigError(f"invalid time range '{text}' (expected START~END)")
    start_ns = parse_time(start) if start.strip() else None
    end_ns = parse_time(end) if end.strip() else None
    if start_ns is not None and end_ns is not None and start_ns > end_ns:
        raise ConfigError(f"time range '{text}' ends before it starts")
    return start_ns, end_ns

def parse_tids(text: str) -> List[int]:
    """Parse a comma-separated thread id list."""
    tids: List[int] = []
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            tids.append(int(item))
        except ValueError:
            raise ConfigError(f"invalid thread id '{item}'") from None
    if not tids:
        raise ConfigError("empty thread id list")
    return tids
