"""ATF reader module for ADA call traces."""

from .errors import (
    ATFError,
    ManifestError,
    MemoryMapError,
    RecordDecodingError,
    ReaderClosedError,
    HeaderValidationError,
)
from .manifest import ManifestInfo
from .memory_map import MemoryMap
from .iterator import RecordIterator, INDEX_RECORD_SIZE
from .reader import ATFReader, EVENT_TYPE_TO_CODE, CODE_TO_EVENT_TYPE
from .sessions import SessionMap
from .symbols import Symbol, SymbolTable
from .tasks import TaskHandle, TaskTracker

__all__ = [
    "ATFError",
    "ManifestError",
    "MemoryMapError",
    "RecordDecodingError",
    "ReaderClosedError",
    "HeaderValidationError",
    "ManifestInfo",
    "MemoryMap",
    "RecordIterator",
    "INDEX_RECORD_SIZE",
    "ATFReader",
    "EVENT_TYPE_TO_CODE",
    "CODE_TO_EVENT_TYPE",
    "SessionMap",
    "Symbol",
    "SymbolTable",
    "TaskHandle",
    "TaskTracker",
]
