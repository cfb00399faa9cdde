"""Load an ATF trace into per-session call graphs and the report index."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from atf import ATFError, ATFReader, TaskTracker
from interfaces import TimeRange
from .config import TimeBounds, TuiOptions
from .errors import IngestError
from .graph import CallGraph, GraphBuilder
from .report import ReportIndex

logger = logging.getLogger(__name__)

# largest timestamp an index record can hold
MAX_TIMESTAMP_NS = (1 << 64) - 1

@dataclass
class LoadedTrace:
    graphs: List[CallGraph]
    report: ReportIndex
    name: str

def _record_window(bounds: Optional[TimeBounds]) -> Optional[TimeRange]:
    if bounds is None:
        return None
    start_ns, end_ns = bounds
    return TimeRange(
        start_ns=0 if start_ns is None else start_ns,
        end_ns=MAX_TIMESTAMP_NS if end_ns is None else end_ns,
    )

def load_trace(options: TuiOptions) -> LoadedTrace:
    """Read the whole trace and build everything the dashboard shows.

    Runs to completion before the terminal is taken over, so any failure is
    reported as :class:`IngestError` on a normal console.
    """
    path = Path(options.trace)
    reader = ATFReader()
    try:
        reader.open(path)
        manifest = reader.manifest
        sessions = reader.sessions()
        span = reader.get_time_range()
        logger.info("%s: %d records, %d..%d ns",
                    path, reader.estimate_record_count(), span.start_ns, span.end_ns)

        if options.tids:
            unknown = sorted(set(options.tids) - set(reader.get_thread_ids()))
            if unknown:
                logger.warning("threads not listed in the trace: %s",
                               ", ".join(str(tid) for tid in unknown))

        report = ReportIndex()
        builder = GraphBuilder(
            sessions,
            report,
            manifest.sessions,
            kernel_only=options.kernel_only,
            kernel_skip_out=options.kernel_skip_out,
            event_skip_out=options.event_skip_out,
        )

        selected = reader.read_records(
            time_range=_record_window(options.time_range),
            thread_ids=options.tids,
        )
        # records of different threads may be interleaved out of order
        records = sorted(selected, key=lambda record: record.timestamp_ns)
        logger.info("read %d records from %s", len(records), path)

        tracker = TaskTracker(
            manifest.tasks,
            lambda address: sessions.is_kernel_address(None, address),
        )
        builder.ingest(tracker.replay(records))
        if tracker.dropped:
            logger.debug("%d exit records had no matching entry", tracker.dropped)

        graphs = builder.finish()
        name = str(manifest.metadata.get("name") or path.stem)
    except (ATFError, OSError) as exc:
        raise IngestError(f"cannot load trace {path}: {exc}") from exc
    finally:
        reader.close()

    return LoadedTrace(graphs=graphs, report=report, name=name)
