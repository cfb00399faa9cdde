"""Address to symbol-name lookup."""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Iterable, List, Optional

@dataclass(frozen=True)
class Symbol:
    address: int
    size: int
    name: str

    def covers(self, address: int) -> bool:
        if self.size <= 0:
            return address == self.address
        return self.address <= address < self.address + self.size

class SymbolTable:
    """Symbols sorted by start address; lookups are range based."""

    __slots__ = ("_symbols", "_starts")

    def __init__(self, symbols: Iterable[Symbol] = ()) -> None:
        self._symbols: List[Symbol] = sorted(symbols, key=lambda sym: sym.address)
        self._starts: List[int] = [sym.address for sym in self._symbols]

    def __len__(self) -> int:
        return len(self._symbols)

    def __iter__(self):
        return iter(self._symbols)

    def find(self, address: int) -> Optional[Symbol]:
        idx = bisect.bisect_right(self._starts, address) - 1
        if idx < 0:
            return None
        symbol = self._symbols[idx]
        if symbol.covers(address):
            return symbol
        return None

    def find_name(self, address: int) -> Optional[str]:
        symbol = self.find(address)
        return symbol.name if symbol is not None else None

__all__ = ["Symbol", "SymbolTable"]
