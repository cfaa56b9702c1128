"""
Terminal backend

Paints cell Frames with rich and reads keys from a cbreak-mode tty.

Key bindings:
    →  l  space      next slide
    ←  h             previous slide
    ↓  j             scroll down
    ↑  k             scroll up
    d  PgDn          page down
    u  PgUp          page up
    q  Esc  Ctrl-C   quit
"""

import os
import select
import sys
import termios
import tty
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.control import Control
from rich.style import Style as RichStyle
from rich.text import Text

from ..models.render import Frame, Style
from ..models.session import NavEvent
from .images import ImageHandle
from .log import LOG


KEYMAP: Dict[str, NavEvent] = {
    "\x1b[C": NavEvent.NEXT,
    "\x1bOC": NavEvent.NEXT,
    "l": NavEvent.NEXT,
    " ": NavEvent.NEXT,
    "\x1b[D": NavEvent.PREVIOUS,
    "\x1bOD": NavEvent.PREVIOUS,
    "h": NavEvent.PREVIOUS,
    "\x1b[B": NavEvent.SCROLL_DOWN,
    "\x1bOB": NavEvent.SCROLL_DOWN,
    "j": NavEvent.SCROLL_DOWN,
    "\x1b[A": NavEvent.SCROLL_UP,
    "\x1bOA": NavEvent.SCROLL_UP,
    "k": NavEvent.SCROLL_UP,
    "d": NavEvent.PAGE_DOWN,
    "\x1b[6~": NavEvent.PAGE_DOWN,
    "u": NavEvent.PAGE_UP,
    "\x1b[5~": NavEvent.PAGE_UP,
    "q": NavEvent.QUIT,
    "\x1b": NavEvent.QUIT,
    "\x03": NavEvent.QUIT,
}


def escape_end(data: str, start: int) -> int:
    """
    Index just past the escape sequence starting at data[start]

    A lone ESC (nothing or another ESC after it) is one character long.
    """
    if start + 1 >= len(data):
        return start + 1
    follower = data[start + 1]
    if follower == "O":
        return min(start + 3, len(data))
    if follower != "[":
        return start + 1
    end = start + 2
    while end < len(data) and not "\x40" <= data[end] <= "\x7e":
        end += 1
    return min(end + 1, len(data))


def keys_decode(data: str) -> List[NavEvent]:
    """
    Decode raw terminal input into NavEvents, in arrival order

    Unbound keys and escape sequences are skipped.

    Example:
        >>> keys_decode("l\\x1b[Cq")
        [<NavEvent.NEXT: 'next'>, <NavEvent.NEXT: 'next'>, <NavEvent.QUIT: 'quit'>]
    """
    events: List[NavEvent] = []
    position = 0
    while position < len(data):
        if data[position] == "\x1b":
            end = escape_end(data, position)
        else:
            end = position + 1
        event = KEYMAP.get(data[position:end])
        if event is not None:
            events.append(event)
        else:
            LOG(f"Unbound key {data[position:end]!r}", level=3)
        position = end
    return events


@lru_cache(maxsize=4096)
def style_rich(style: Style) -> RichStyle:
    return RichStyle(
        color=style.fg,
        bgcolor=style.bg,
        bold=style.bold,
        italic=style.italic,
        strike=style.strike,
        dim=style.dim,
    )


def frame_texts(frame: Frame) -> List[Text]:
    """One rich Text per frame row, consecutive same-style cells merged"""
    texts = []
    for row in frame.rows:
        text = Text(no_wrap=True, overflow="crop", end="")
        run, style = "", None
        for cell in row:
            if cell.style != style and run:
                text.append(run, style_rich(style))
                run = ""
            style = cell.style
            run += cell.char
        if run:
            text.append(run, style_rich(style))
        texts.append(text)
    return texts


class RichTerminal:
    """
    Full-screen terminal: alternate screen, hidden cursor, cbreak input

    Use as a context manager; the tty mode is restored on exit.
    """

    def __init__(self, console: Optional[Console] = None, stdin: Any = None) -> None:
        self.console = console or Console(highlight=False)
        self.stdin = stdin or sys.stdin
        self.fd = self.stdin.fileno()
        self.saved_mode: Optional[list] = None
        self.screen: Any = None

    def __enter__(self) -> "RichTerminal":
        self.saved_mode = termios.tcgetattr(self.fd)
        tty.setcbreak(self.fd)
        self.screen = self.console.screen(hide_cursor=True)
        self.screen.__enter__()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self.screen is not None:
            self.screen.__exit__(*exc_info)
            self.screen = None
        if self.saved_mode is not None:
            termios.tcsetattr(self.fd, termios.TCSADRAIN, self.saved_mode)
            self.saved_mode = None

    def size(self) -> Tuple[int, int]:
        width, height = self.console.size
        return (width, height)

    def keys_read(self, timeout: float) -> List[NavEvent]:
        """Wait up to timeout seconds for input and decode what arrived"""
        ready, _, _ = select.select([self.fd], [], [], max(0.0, timeout))
        if not ready:
            return []
        data = os.read(self.fd, 1024)
        return keys_decode(data.decode("utf-8", errors="ignore"))

    def frame_paint(self, frame: Frame) -> None:
        with self.console:
            for y, text in enumerate(frame_texts(frame)):
                self.console.control(Control.move_to(0, y))
                self.console.print(text, end="", soft_wrap=True)

    def images_draw(self, handles: Sequence[ImageHandle], clear: str = "") -> None:
        """Write image escape sequences at their placements"""
        stream = self.console.file
        if clear:
            stream.write(clear)
        for handle in handles:
            self.console.control(Control.move_to(handle.rect.x, handle.rect.y))
            stream.write(handle.sequence)
        stream.flush()
