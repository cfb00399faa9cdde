"""Character-grid display surfaces: curses for the terminal, text for dumps."""

from __future__ import annotations

import curses
from enum import IntEnum
from typing import List, Optional, Protocol, Sequence, Tuple

KEY_ESCAPE = 27

class Color(IntEnum):
    """Colour pair numbers; ``NORMAL`` is the terminal default pair."""

    NORMAL = 0
    HEADER = 1
    GREEN = 2
    YELLOW = 3
    RED = 4

Segment = Tuple[str, Color]

class Screen(Protocol):
    lines: int
    cols: int

    def draw(
        self,
        y: int,
        segments: Sequence[Segment],
        *,
        reverse: bool = False,
        bold: bool = False,
        color: Color = Color.NORMAL,
    ) -> None:
        ...

    def clear(self) -> None:
        ...

    def refresh(self) -> None:
        ...

    def getch(self) -> int:
        ...

    def prompt(self, title: str, hint: str) -> Optional[str]:
        ...

class LineEditor:
    """Key-by-key editing of a one-line prompt.

    ``feed`` returns ``True`` once editing is over; ``value`` is then the
    accepted text, or ``None`` when the prompt was cancelled.
    """

    __slots__ = ("buffer", "value", "done")

    def __init__(self) -> None:
        self.buffer = ""
        self.value: Optional[str] = None
        self.done = False

    def feed(self, key: int) -> bool:
        if key == KEY_ESCAPE:
            self.done = True
        elif key in (curses.KEY_BACKSPACE, curses.KEY_DC, 127, ord("\b")):
            self.buffer = self.buffer[:-1]
        elif key in (curses.KEY_ENTER, ord("\n"), ord("\r")):
            self.value = self.buffer
            self.done = True
        elif 32 <= key <= 126:
            self.buffer += chr(key)
        return self.done

class TextScreen:
    """In-memory character grid; also feeds scripted keys to the dashboard."""

    def __init__(self, lines: int = 24, cols: int = 80, keys: Sequence[int] = (),
                 answers: Sequence[Optional[str]] = ()) -> None:
        self.lines = lines
        self.cols = cols
        self.rows: List[str] = [""] * lines
        self.reverse_rows: set = set()
        self._keys = list(keys)
        self._answers = list(answers)
        self.draw_count = 0

    def resize(self, lines: int, cols: int) -> None:
        self.lines = lines
        self.cols = cols
        self.rows = (self.rows + [""] * lines)[:lines]

    def draw(self, y, segments, *, reverse=False, bold=False, color=Color.NORMAL) -> None:
        if not 0 <= y < self.lines:
            return
        text = "".join(text for text, _ in segments)
        self.rows[y] = text[:self.cols].ljust(self.cols)
        if reverse:
            self.reverse_rows.add(y)
        else:
            self.reverse_rows.discard(y)
        self.draw_count += 1

    def clear(self) -> None:
        self.rows = [""] * self.lines
        self.reverse_rows = set()

    def refresh(self) -> None:
        pass

    def getch(self) -> int:
        if not self._keys:
            return ord("q")
        return self._keys.pop(0)

    def prompt(self, title: str, hint: str) -> Optional[str]:
        if self._answers:
            return self._answers.pop(0)
        editor = LineEditor()
        while not editor.feed(self.getch()):
            pass
        return editor.value

    def text(self) -> str:
        return "\n".join(row.rstrip() for row in self.rows).rstrip("\n")

class CursesScreen:
    """Screen backed by a curses window (normally ``stdscr``)."""

    def __init__(self, stdscr) -> None:
        self._win = stdscr
        self._win.keypad(True)
        curses.noecho()
        self._init_colors()

    @staticmethod
    def _init_colors() -> None:
        if not curses.has_colors():
            return
        curses.start_color()
        curses.init_pair(Color.HEADER, curses.COLOR_WHITE, curses.COLOR_BLUE)
        curses.init_pair(Color.GREEN, curses.COLOR_GREEN, curses.COLOR_BLACK)
        curses.init_pair(Color.YELLOW, curses.COLOR_YELLOW, curses.COLOR_BLACK)
        curses.init_pair(Color.RED, curses.COLOR_RED, curses.COLOR_BLACK)

    @property
    def lines(self) -> int:
        return self._win.getmaxyx()[0]

    @property
    def cols(self) -> int:
        return self._win.getmaxyx()[1]

    def draw(self, y, segments, *, reverse=False, bold=False, color=Color.NORMAL) -> None:
        base = curses.color_pair(color)
        if reverse:
            base |= curses.A_REVERSE
        if bold:
            base |= curses.A_BOLD
        width = self.cols
        x = 0
        try:
            self._win.move(y, 0)
            for text, seg_color in segments:
                if x >= width - 1:
                    break
                attr = base
                if seg_color != Color.NORMAL and color == Color.NORMAL:
                    attr |= curses.color_pair(seg_color)
                self._win.addnstr(y, x, text, width - 1 - x, attr)
                x += len(text)
            if x < width - 1:
                self._win.addnstr(y, x, " " * (width - 1 - x), width - 1 - x, base)
        except curses.error:
            # writing into the bottom-right cell always fails
            pass

    def clear(self) -> None:
        self._win.clear()

    def refresh(self) -> None:
        self._win.move(self.lines - 1, self.cols - 1)
        self._win.refresh()

    def getch(self) -> int:
        return self._win.getch()

    def prompt(self, title: str, hint: str) -> Optional[str]:
        """Boxed one-line prompt in the middle of the screen."""
        width = max(self.cols // 2, 20)
        height = 8
        win = curses.newwin(height, width, (self.lines - height) // 2, (self.cols - width) // 2)
        win.keypad(True)
        win.box()
        win.addnstr(1, 1, title, width - 2)
        win.addnstr(2, 2, hint, width - 3)

        editor = LineEditor()
        try:
            while True:
                win.addnstr(5, 3, editor.buffer.ljust(width - 5), width - 5)
                win.move(5, 3 + min(len(editor.buffer), width - 6))
                win.refresh()
                if editor.feed(win.getch()):
                    break
        finally:
            del win
            self._win.touchwin()
        return editor.value
