"""Iterators over ATF index records."""

from __future__ import annotations

import struct
from typing import Iterable, Iterator, Optional, Set

from interfaces import EventType, TimeRange, TraceRecord
from .errors import RecordDecodingError, MemoryMapError
from .memory_map import MemoryMap

# timestamp, thread id, type code, address, flags
INDEX_STRUCT = struct.Struct("<QIIQI")
INDEX_RECORD_SIZE = INDEX_STRUCT.size

_EVENT_TYPE_BY_CODE = {
    0: EventType.FUNCTION_ENTER,
    1: EventType.FUNCTION_EXIT,
    2: EventType.EVENT,
}

class RecordIterator(Iterator[TraceRecord]):
    """Iterator over index records with optional time and thread filters."""

    __slots__ = (
        "_memory_map",
        "_index_offset",
        "_count",
        "_position",
        "_time_range",
        "_thread_filter",
    )

    def __init__(
        self,
        memory_map: MemoryMap,
        index_offset: int,
        count: int,
        *,
        time_range: Optional[TimeRange] = None,
        thread_ids: Optional[Iterable[int]] = None,
    ) -> None:
        self._memory_map = memory_map
        self._index_offset = index_offset
        self._count = max(count, 0)
        self._position = 0
        self._time_range = time_range
        self._thread_filter: Optional[Set[int]] = None
        if thread_ids is not None:
            self._thread_filter = {int(thread_id) for thread_id in thread_ids}

    def __iter__(self) -> "RecordIterator":
        return self

    def __next__(self) -> TraceRecord:
        while self._position < self._count:
            current_offset = self._index_offset + self._position * INDEX_RECORD_SIZE
            self._position += 1
            try:
                (
                    timestamp_ns,
                    thread_id,
                    type_code,
                    address,
                    flags,
                ) = self._memory_map.unpack(INDEX_STRUCT, current_offset)
            except (struct.error, MemoryMapError) as exc:
                raise RecordDecodingError(f"Malformed index record at offset {current_offset}") from exc

            event_type = _EVENT_TYPE_BY_CODE.get(type_code)
            if event_type is None:
                raise RecordDecodingError(
                    f"Unknown record type code {type_code} at offset {current_offset}"
                )

            if self._time_range and not self._time_range.contains(timestamp_ns):
                continue
            if self._thread_filter and thread_id not in self._thread_filter:
                continue
            return TraceRecord(
                timestamp_ns=timestamp_ns,
                thread_id=thread_id,
                address=address,
                event_type=event_type,
                flags=flags,
            )

        raise StopIteration

__all__ = ["RecordIterator", "INDEX_RECORD_SIZE", "INDEX_STRUCT", "_EVENT_TYPE_BY_CODE"]
