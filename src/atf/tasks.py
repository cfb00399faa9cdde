"""Per-task call-stack replay over an ordered record stream."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from interfaces import EventType, Frame, TraceRecord

logger = logging.getLogger(__name__)

class TaskHandle:
    """Call-stack state of one traced thread.

    ``stack`` holds the frames that are still running and
    ``user_stack_count`` how many of them are user frames.  ``frame`` is the
    frame the current record belongs to: the frame just pushed on entry, or
    the frame just popped (with its times filled in) on exit.
    """

    __slots__ = ("tid", "pid", "stack", "frame", "user_stack_count")

    def __init__(self, tid: int, pid: int) -> None:
        self.tid = tid
        self.pid = pid
        self.stack: List[Frame] = []
        self.frame: Optional[Frame] = None
        self.user_stack_count = 0

    @property
    def stack_count(self) -> int:
        return len(self.stack)

    def __repr__(self) -> str:
        return f"TaskHandle(tid={self.tid}, pid={self.pid}, depth={len(self.stack)})"

class TaskTracker:
    """Replays records into per-task call stacks.

    ``is_kernel`` classifies addresses so that kernel frames can be told
    apart from user frames by the ingest filters.
    """

    def __init__(
        self,
        task_pids: Optional[Dict[int, int]] = None,
        is_kernel: Optional[Callable[[int], bool]] = None,
    ) -> None:
        self._task_pids = dict(task_pids or {})
        self._is_kernel = is_kernel or (lambda address: False)
        self.tasks: Dict[int, TaskHandle] = {}
        self.dropped = 0

    def task(self, tid: int) -> TaskHandle:
        handle = self.tasks.get(tid)
        if handle is None:
            handle = TaskHandle(tid, self._task_pids.get(tid, tid))
            self.tasks[tid] = handle
        return handle

    def update(self, record: TraceRecord) -> Optional[TaskHandle]:
        """Apply ``record`` to its task; ``None`` means the record is unusable."""
        task = self.task(record.thread_id)

        if record.event_type is EventType.FUNCTION_ENTER:
            frame = Frame(
                address=record.address,
                start_ns=record.timestamp_ns,
                kernel=self._is_kernel(record.address),
            )
            task.stack.append(frame)
            if not frame.kernel:
                task.user_stack_count += 1
            task.frame = frame
        elif record.event_type is EventType.FUNCTION_EXIT:
            if not task.stack:
                self.dropped += 1
                logger.debug("exit without entry on task %d at %d", task.tid, record.timestamp_ns)
                return None
            frame = task.stack.pop()
            if not frame.kernel:
                task.user_stack_count -= 1
            frame.total_time = max(record.timestamp_ns - frame.start_ns, 0)
            if task.stack:
                task.stack[-1].child_time += frame.total_time
            task.frame = frame
        else:
            task.frame = None

        return task

    def replay(self, records: Iterable[TraceRecord]) -> Iterator[Tuple[TaskHandle, TraceRecord]]:
        for record in records:
            task = self.update(record)
            if task is not None:
                yield task, record

__all__ = ["TaskHandle", "TaskTracker"]
