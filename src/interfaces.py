"""Shared record types and collaborator protocols for the trace dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Protocol

class EventType(Enum):
    """Kinds of records found in a function-call trace."""

    FUNCTION_ENTER = "function_enter"
    FUNCTION_EXIT = "function_exit"
    EVENT = "event"

@dataclass(frozen=True)
class TimeRange:
    """Inclusive nanosecond time window."""

    start_ns: int
    end_ns: int

    def contains(self, timestamp_ns: int) -> bool:
        return self.start_ns <= timestamp_ns <= self.end_ns

@dataclass(frozen=True)
class TraceRecord:
    """One entry, exit or event record of a traced task."""

    timestamp_ns: int
    thread_id: int
    address: int
    event_type: EventType
    flags: int = 0

@dataclass(frozen=True)
class SessionInfo:
    """A traced process image: one executable run under one pid."""

    sid: str
    pid: int
    exename: str
    start_ns: int = 0

@dataclass
class Frame:
    """A live (or just returned) call-stack frame of a task."""

    address: int
    start_ns: int
    total_time: int = 0
    child_time: int = 0
    kernel: bool = False

class TaskView(Protocol):
    """Per-task state handed to consumers along with each record."""

    tid: int
    pid: int
    stack: List[Frame]
    frame: Optional[Frame]
    user_stack_count: int

class SessionResolver(Protocol):
    """Resolves records to sessions and symbolic names."""

    def find_record_session(
        self, tid: int, pid: int, timestamp_ns: int, address: int
    ) -> Optional[SessionInfo]:
        ...

    def is_kernel_address(self, session: Optional[SessionInfo], address: int) -> bool:
        ...

    def resolve_name(
        self,
        session: SessionInfo,
        task: Optional[TaskView],
        timestamp_ns: int,
        address: int,
    ) -> Optional[str]:
        ...

class TraceReader(Protocol):
    """Read-only access to a recorded trace."""

    def open(self, path: Path) -> None:
        ...

    def close(self) -> None:
        ...

    def get_metadata(self) -> Dict[str, object]:
        ...

    def get_time_range(self) -> TimeRange:
        ...

    def get_thread_ids(self) -> List[int]:
        ...

    def read_records(
        self,
        time_range: Optional[TimeRange] = None,
        thread_ids: Optional[List[int]] = None,
    ) -> Iterator[TraceRecord]:
        ...

__all__ = [
    "EventType",
    "TimeRange",
    "TraceRecord",
    "SessionInfo",
    "Frame",
    "TaskView",
    "SessionResolver",
    "TraceReader",
]
