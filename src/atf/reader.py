"""Memory-mapped reader for ADA Trace Format call traces."""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from interfaces import (
    EventType,
    TimeRange,
    TraceReader as TraceReaderProtocol,
    TraceRecord,
)
from .errors import HeaderValidationError, ReaderClosedError
from .iterator import INDEX_RECORD_SIZE, RecordIterator
from .manifest import ManifestInfo
from .memory_map import MemoryMap
from .sessions import SessionMap

# magic, version, flags, manifest length, index offset, index count
HEADER_STRUCT = struct.Struct("<4sHHQQQ")
HEADER_SIZE = HEADER_STRUCT.size
MAGIC = b"ATF0"
VERSION = 2

EVENT_TYPE_TO_CODE: Dict[EventType, int] = {
    EventType.FUNCTION_ENTER: 0,
    EventType.FUNCTION_EXIT: 1,
    EventType.EVENT: 2,
}
CODE_TO_EVENT_TYPE: Dict[int, EventType] = {code: event for event, code in EVENT_TYPE_TO_CODE.items()}

class ATFReader(TraceReaderProtocol):
    """Read-only ATF reader backed by memory mapping."""

    __slots__ = (
        "_memory_map",
        "_manifest",
        "_index_offset",
        "_index_count",
        "_metadata_cache",
        "_path",
    )

    def __init__(self) -> None:
        self._memory_map = MemoryMap()
        self._manifest: Optional[ManifestInfo] = None
        self._index_offset = 0
        self._index_count = 0
        self._metadata_cache: Optional[Dict[str, object]] = None
        self._path: Optional[Path] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self, path: Path) -> None:
        """Open the requested ATF file."""
        self._memory_map.open(path)
        self._path = path
        if self._memory_map.size < HEADER_SIZE:
            raise HeaderValidationError("ATF file is smaller than its header")
        (
            magic,
            version,
            _flags,
            manifest_length,
            index_offset,
            index_count,
        ) = self._memory_map.unpack(HEADER_STRUCT, 0)

        if magic != MAGIC:
            raise HeaderValidationError("ATF file magic does not match")
        if version != VERSION:
            raise HeaderValidationError(
                f"Unsupported ATF version {version}, expected {VERSION}"
            )
        if manifest_length == 0:
            raise HeaderValidationError("Manifest length is zero")

        if index_offset != HEADER_SIZE + manifest_length:
            raise HeaderValidationError("Index offset does not follow manifest")
        if index_offset + index_count * INDEX_RECORD_SIZE > self._memory_map.size:
            raise HeaderValidationError("Index section extends beyond file")

        manifest_bytes = self._memory_map.read(HEADER_SIZE, manifest_length)
        manifest = ManifestInfo.from_bytes(manifest_bytes)
        if manifest.event_count == 0:
            manifest = ManifestInfo(
                metadata=manifest.metadata,
                time_range=manifest.time_range,
                sessions=manifest.sessions,
                symbols=manifest.symbols,
                tasks=manifest.tasks,
                event_count=index_count,
                kernel_base=manifest.kernel_base,
                kernel_symbols=manifest.kernel_symbols,
            )

        self._manifest = manifest
        self._index_offset = index_offset
        self._index_count = index_count
        self._metadata_cache = None

    def close(self) -> None:
        """Close the underlying file and release resources."""
        self._memory_map.close()
        self._manifest = None
        self._metadata_cache = None
        self._index_offset = 0
        self._index_count = 0
        self._path = None

    def __enter__(self) -> "ATFReader":
        return self

    def __exit__(self, *_) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def _ensure_open(self) -> ManifestInfo:
        if self._manifest is None:
            raise ReaderClosedError("ATF reader is not open")
        return self._manifest

    @property
    def manifest(self) -> ManifestInfo:
        return self._ensure_open()

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def get_metadata(self) -> Dict[str, object]:
        manifest = self._ensure_open()
        if self._metadata_cache is None:
            self._metadata_cache = dict(manifest.metadata)
            if self._path is not None:
                self._metadata_cache.setdefault("path", str(self._path))
            self._metadata_cache.setdefault("event_count", self._index_count)
        return dict(self._metadata_cache)

    def get_time_range(self) -> TimeRange:
        return self._ensure_open().time_range

    def get_thread_ids(self) -> List[int]:
        return self._ensure_open().thread_ids

    def sessions(self) -> SessionMap:
        return SessionMap.from_manifest(self._ensure_open())

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------

    def read_records(
        self,
        time_range: Optional[TimeRange] = None,
        thread_ids: Optional[List[int]] = None,
    ) -> Iterator[TraceRecord]:
        self._ensure_open()
        return RecordIterator(
            self._memory_map,
            self._index_offset,
            self._index_count,
            time_range=time_range,
            thread_ids=thread_ids,
        )

    def estimate_record_count(self) -> int:
        self._ensure_open()
        return int(self._index_count)

__all__ = [
    "ATFReader",
    "EVENT_TYPE_TO_CODE",
    "CODE_TO_EVENT_TYPE",
    "HEADER_STRUCT",
    "MAGIC",
    "VERSION",
]
