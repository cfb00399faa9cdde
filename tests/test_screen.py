"""Unit tests for the text screen and the prompt line editor."""

import curses
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from calltui.screen import KEY_ESCAPE, Color, LineEditor, TextScreen  # noqa: E402

def _feed(editor: LineEditor, keys) -> bool:
    done = False
    for key in keys:
        done = editor.feed(key)
    return done

def test_LineEditor_should_accept_typed_text_on_enter() -> None:
    editor = LineEditor()
    assert _feed(editor, [ord(c) for c in "fob"]) is False
    assert _feed(editor, [curses.KEY_BACKSPACE, ord("o"), ord("\n")]) is True
    assert editor.value == "foo"

def test_LineEditor_should_cancel_on_escape() -> None:
    editor = LineEditor()
    assert _feed(editor, [ord("x"), KEY_ESCAPE]) is True
    assert editor.value is None

def test_LineEditor_should_ignore_non_printable_keys() -> None:
    editor = LineEditor()
    _feed(editor, [curses.KEY_LEFT, ord("a"), 127, 127, ord("b"), ord("\r")])
    assert editor.value == "b"

def test_TextScreen_draw_should_clip_and_pad_rows() -> None:
    screen = TextScreen(3, 5)
    screen.draw(0, [("abc", Color.NORMAL), ("defgh", Color.RED)], reverse=True)
    screen.draw(1, [("x", Color.NORMAL)])
    screen.draw(7, [("ignored", Color.NORMAL)])

    assert screen.rows[0] == "abcde"
    assert screen.rows[1] == "x    "
    assert screen.reverse_rows == {0}
    assert screen.text() == "abcde\nx"

def test_TextScreen_getch_should_quit_after_scripted_keys() -> None:
    screen = TextScreen(keys=[ord("j")])
    assert screen.getch() == ord("j")
    assert screen.getch() == ord("q")

def test_TextScreen_prompt_should_use_answers_then_keys() -> None:
    screen = TextScreen(keys=[ord("h"), ord("i"), ord("\n")], answers=["first"])
    assert screen.prompt("Search", "") == "first"
    assert screen.prompt("Search", "") == "hi"
