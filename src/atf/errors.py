"""Exceptions raised while reading ATF call traces."""

from __future__ import annotations

class ATFError(Exception):
    """Base class for trace reader errors."""

class ManifestError(ATFError):
    """Raised when the manifest is missing fields or is not valid JSON."""

class MemoryMapError(ATFError):
    """Raised when the trace file cannot be mapped or read."""

class RecordDecodingError(ATFError):
    """Raised when an index record cannot be decoded."""

class ReaderClosedError(ATFError):
    """Raised when a closed reader or mapping is used."""

class HeaderValidationError(ATFError):
    """Raised when the ATF header is invalid or inconsistent with the file."""
