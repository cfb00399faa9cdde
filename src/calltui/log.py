"""Logging setup for the dashboard.

The terminal belongs to curses while the dashboard runs, so console output
is kept to warnings unless ``--verbose`` is given.  A log file receives
everything at DEBUG level.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

logger = logging.getLogger("calltui")

def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Configure the ``calltui`` and ``atf`` loggers once."""
    if logger.handlers:
        return

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        level = logging.DEBUG
    else:
        level = logging.INFO if verbose else logging.WARNING
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter("calltui: %(message)s"))

    for name in ("calltui", "atf"):
        target = logging.getLogger(name)
        target.setLevel(level)
        target.addHandler(handler)
        target.propagate = False
