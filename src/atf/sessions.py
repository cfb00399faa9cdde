"""Session and symbol resolution for trace records."""

from __future__ import annotations

from typing import Dict, List, Optional

from interfaces import SessionInfo, TaskView
from .manifest import DEFAULT_KERNEL_BASE, ManifestInfo
from .symbols import SymbolTable

ADDRESS_BITS = 48
ADDRESS_MASK = (1 << ADDRESS_BITS) - 1

def real_address(address: int) -> int:
    """Sign-extend a recorded (48-bit truncated) address."""
    address &= ADDRESS_MASK
    if address & (1 << (ADDRESS_BITS - 1)):
        address |= ~ADDRESS_MASK & 0xFFFFFFFFFFFFFFFF
    return address

class SessionMap:
    """Maps tasks to the sessions they ran in and addresses to names."""

    __slots__ = ("_sessions", "_by_pid", "_symbols", "_kernel_symbols", "kernel_base")

    def __init__(
        self,
        sessions: List[SessionInfo],
        symbols: Optional[Dict[str, SymbolTable]] = None,
        *,
        kernel_base: int = DEFAULT_KERNEL_BASE,
        kernel_symbols: Optional[SymbolTable] = None,
    ) -> None:
        self._sessions = list(sessions)
        self._by_pid: Dict[int, List[SessionInfo]] = {}
        for session in self._sessions:
            self._by_pid.setdefault(session.pid, []).append(session)
        for candidates in self._by_pid.values():
            candidates.sort(key=lambda sess: sess.start_ns)
        self._symbols = dict(symbols or {})
        self._kernel_symbols = kernel_symbols or SymbolTable()
        self.kernel_base = kernel_base

    @classmethod
    def from_manifest(cls, manifest: ManifestInfo) -> "SessionMap":
        return cls(
            manifest.sessions,
            manifest.symbols,
            kernel_base=manifest.kernel_base,
            kernel_symbols=manifest.kernel_symbols,
        )

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self):
        return iter(self._sessions)

    @property
    def first(self) -> Optional[SessionInfo]:
        return self._sessions[0] if self._sessions else None

    def find_task_session(self, task_id: int, timestamp_ns: int) -> Optional[SessionInfo]:
        """Return the latest session of ``task_id`` started at or before ``timestamp_ns``."""
        found = None
        for session in self._by_pid.get(task_id, ()):
            if session.start_ns > timestamp_ns:
                break
            found = session
        return found

    def find_record_session(
        self, tid: int, pid: int, timestamp_ns: int, address: int
    ) -> Optional[SessionInfo]:
        session = self.find_task_session(tid, timestamp_ns)
        if session is None:
            session = self.find_task_session(pid, timestamp_ns)
        if session is None:
            first = self.first
            if first is not None and self.is_kernel_address(first, address):
                session = first
        return session

    def is_kernel_address(self, session: Optional[SessionInfo], address: int) -> bool:
        return real_address(address) >= self.kernel_base

    def resolve_name(
        self,
        session: SessionInfo,
        task: Optional[TaskView],
        timestamp_ns: int,
        address: int,
    ) -> Optional[str]:
        if self.is_kernel_address(session, address):
            return self._kernel_symbols.find_name(real_address(address))
        table = self._symbols.get(session.sid)
        if table is None:
            return None
        return table.find_name(address & ADDRESS_MASK)

__all__ = ["SessionMap", "real_address", "ADDRESS_BITS", "ADDRESS_MASK"]
