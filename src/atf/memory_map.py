"""Read-only memory mapping of trace files."""

from __future__ import annotations

import mmap
import os
import struct
from pathlib import Path
from typing import BinaryIO, Optional, Tuple

from .errors import MemoryMapError, ReaderClosedError

class MemoryMap:
    """Owns an open trace file and its read-only ``mmap``."""

    __slots__ = ("_file", "_mmap", "path", "size")

    def __init__(self) -> None:
        self._file: Optional[BinaryIO] = None
        self._mmap: Optional[mmap.mmap] = None
        self.path: Optional[Path] = None
        self.size: int = 0

    @property
    def is_open(self) -> bool:
        return self._mmap is not None

    def open(self, path: Path) -> None:
        """Map ``path``; any previously mapped file is released first."""
        self.close()
        try:
            file_handle = path.open("rb")
        except OSError as exc:
            raise MemoryMapError(f"Unable to open trace file {path}: {exc}") from exc

        try:
            size = os.fstat(file_handle.fileno()).st_size
            if size == 0:
                raise MemoryMapError(f"Trace file {path} is empty")
            mapped = mmap.mmap(file_handle.fileno(), 0, access=mmap.ACCESS_READ)
        except (BufferError, OSError) as exc:
            file_handle.close()
            raise MemoryMapError(f"Unable to memory-map trace file {path}: {exc}") from exc
        except MemoryMapError:
            file_handle.close()
            raise

        self._file = file_handle
        self._mmap = mapped
        self.size = size
        self.path = path

    def close(self) -> None:
        if self._mmap is not None:
            self._mmap.close()
            self._mmap = None
        if self._file is not None:
            try:
                self._file.close()
            finally:
                self._file = None
        self.size = 0
        self.path = None

    def _mapped(self) -> mmap.mmap:
        if self._mmap is None:
            raise ReaderClosedError("Trace file is not open")
        return self._mmap

    def _check_range(self, offset: int, size: int) -> None:
        if size < 0 or offset < 0:
            raise MemoryMapError("Negative offset or size requested")
        if offset + size > self.size:
            raise MemoryMapError(
                f"Read of {size} bytes at offset {offset} exceeds file size {self.size}"
            )

    def read(self, offset: int, size: int) -> bytes:
        """Copy ``size`` bytes starting at ``offset``."""
        mapped = self._mapped()
        self._check_range(offset, size)
        return mapped[offset:offset + size]

    def unpack(self, layout: struct.Struct, offset: int) -> Tuple:
        """Decode one ``layout`` record in place, without copying."""
        mapped = self._mapped()
        self._check_range(offset, layout.size)
        return layout.unpack_from(mapped, offset)

    def __enter__(self) -> "MemoryMap":
        self._mapped()
        return self

    def __exit__(self, *_) -> None:
        self.close()
