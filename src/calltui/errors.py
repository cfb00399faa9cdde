"""Exceptions raised by the call-graph dashboard."""

from __future__ import annotations

class CallTuiError(Exception):
    """Base class for dashboard errors."""

class IngestError(CallTuiError):
    """Raised when the trace cannot be read; fatal before the UI starts."""

class ConfigError(CallTuiError):
    """Raised for invalid command-line or field configuration."""
