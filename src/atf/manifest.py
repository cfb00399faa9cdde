"""Manifest parsing helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from interfaces import SessionInfo, TimeRange
from .errors import ManifestError
from .symbols import Symbol, SymbolTable

try:  # Prefer orjson for performance when available
    import orjson
except ModuleNotFoundError:  # pragma: no cover - fallback path
    orjson = None  # type: ignore

if orjson is not None:  # pragma: no cover - exercised when orjson available
    def _loads(data: bytes) -> Dict[str, Any]:
        try:
            return orjson.loads(data)
        except orjson.JSONDecodeError as exc:  # type: ignore[attr-defined]
            raise ManifestError(f"Failed to parse manifest JSON: {exc}") from exc
else:
    import json

    def _loads(data: bytes) -> Dict[str, Any]:
        try:
            return json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ManifestError(f"Failed to parse manifest JSON: {exc}") from exc

# kernel text starts here on x86_64 and aarch64
DEFAULT_KERNEL_BASE = 0xFFFF800000000000

def _parse_int(value: Any, what: str) -> int:
    try:
        if isinstance(value, str):
            return int(value, 0)
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ManifestError(f"Invalid {what}: {value!r}") from exc

def _parse_symbols(raw: Any, what: str) -> SymbolTable:
    if raw is None:
        return SymbolTable()
    if not isinstance(raw, list):
        raise ManifestError(f"Manifest {what} must be a list")
    symbols = []
    for entry in raw:
        if not isinstance(entry, dict) or "name" not in entry:
            raise ManifestError(f"Manifest {what} entries must be objects with a name")
        symbols.append(
            Symbol(
                address=_parse_int(entry.get("address"), "symbol address"),
                size=_parse_int(entry.get("size", 0), "symbol size"),
                name=str(entry["name"]),
            )
        )
    return SymbolTable(symbols)

@dataclass(frozen=True)
class ManifestInfo:
    """Parsed manifest information for an ATF trace."""

    metadata: Dict[str, Any]
    time_range: TimeRange
    sessions: List[SessionInfo]
    symbols: Dict[str, SymbolTable]
    tasks: Dict[int, int]
    event_count: int
    kernel_base: int = DEFAULT_KERNEL_BASE
    kernel_symbols: SymbolTable = field(default_factory=SymbolTable)

    @property
    def thread_ids(self) -> List[int]:
        return sorted(self.tasks)

    @classmethod
    def from_bytes(cls, payload: bytes) -> "ManifestInfo":
        """Parse manifest bytes into a structured object."""
        if not payload:
            raise ManifestError("Manifest payload is empty")

        manifest_dict = _loads(payload)
        if not isinstance(manifest_dict, dict):
            raise ManifestError("Manifest must be a JSON object")

        metadata = manifest_dict.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise ManifestError("Manifest metadata must be an object")

        time_range_dict = manifest_dict.get("time_range") or {}
        start_ns = _parse_int(time_range_dict.get("start_ns", 0), "time range")
        end_ns = _parse_int(time_range_dict.get("end_ns", start_ns), "time range")
        if end_ns < start_ns:
            raise ManifestError("Manifest end time precedes start time")

        sessions_raw = manifest_dict.get("sessions") or []
        if not isinstance(sessions_raw, list):
            raise ManifestError("Manifest sessions must be a list")
        sessions: List[SessionInfo] = []
        symbols: Dict[str, SymbolTable] = {}
        for entry in sessions_raw:
            if not isinstance(entry, dict) or "sid" not in entry:
                raise ManifestError("Manifest sessions must be objects with a sid")
            session = SessionInfo(
                sid=str(entry["sid"]),
                pid=_parse_int(entry.get("pid"), "session pid"),
                exename=str(entry.get("exename", "")),
                start_ns=_parse_int(entry.get("start_ns", 0), "session start"),
            )
            sessions.append(session)
            symbols[session.sid] = _parse_symbols(entry.get("symbols"), "session symbols")

        tasks_raw = manifest_dict.get("tasks") or []
        if not isinstance(tasks_raw, list):
            raise ManifestError("Manifest tasks must be a list")
        tasks: Dict[int, int] = {}
        for entry in tasks_raw:
            if not isinstance(entry, dict):
                raise ManifestError("Manifest tasks must be objects")
            tid = _parse_int(entry.get("tid"), "task tid")
            tasks[tid] = _parse_int(entry.get("pid", tid), "task pid")

        event_count = _parse_int(manifest_dict.get("event_count") or 0, "event count")
        if event_count < 0:
            raise ManifestError("Manifest event_count must be non-negative")

        kernel_base_raw = manifest_dict.get("kernel_base")
        kernel_base = (
            DEFAULT_KERNEL_BASE
            if kernel_base_raw is None
            else _parse_int(kernel_base_raw, "kernel base")
        )

        return cls(
            metadata=metadata,
            time_range=TimeRange(start_ns=start_ns, end_ns=end_ns),
            sessions=sessions,
            symbols=symbols,
            tasks=tasks,
            event_count=event_count,
            kernel_base=kernel_base,
            kernel_symbols=_parse_symbols(manifest_dict.get("kernel_symbols"), "kernel symbols"),
        )
