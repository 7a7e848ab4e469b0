#!/usr/bin/env python3
"""Incremental terminal renderer for the todo monitor.

The screen is split into a header block, drawn once, and a body that is
redrawn in place on every refresh:

    row 1 .. H        header (fixed after the first draw)
    row H+1           status line (rewritten by countdown ticks)
    row H+2 ..        projects, sessions and todos

Each body line is written with absolute cursor addressing and the line is
cleared before it is written, so a shorter line never leaves the tail of
a longer previous one behind. When the new body is shorter than the last
one, the surplus rows are cleared too. Rows that fall below the bottom of
the viewport are never written, which keeps the terminal from scrolling
and shifting the rows already drawn.
"""

import os
import shutil
import sys
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, TextIO

CLEAR_SCREEN = "\x1b[2J"
CURSOR_HOME = "\x1b[H"
CLEAR_LINE = "\x1b[2K"


def move_to(row: int, column: int = 1) -> str:
    """ANSI sequence moving the cursor to a 1-based row and column."""
    return f"\x1b[{row};{column}H"


class RenderPhase(Enum):
    UNINITIALIZED = "uninitialized"
    HEADER_DRAWN = "header_drawn"
    BODY_DRAWN = "body_drawn"


@dataclass
class RenderState:
    """Everything the renderer remembers between redraws."""

    phase: RenderPhase = RenderPhase.UNINITIALIZED
    header_lines: int = 0
    body_lines: int = 0
    last_redraw: Optional[float] = None
    last_forced_refresh: Optional[float] = None

    @property
    def body_start_row(self) -> int:
        return self.header_lines + 1


class TerminalRenderer:
    """Draws header and body lines to a terminal stream without flicker.

    Args:
        stream: Output stream, stdout by default.
        debounce_window: Minimum seconds between two non-forced redraws.
        clock: Monotonic time source, in seconds.
        terminal_size: Returns the current viewport size.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        debounce_window: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        terminal_size: Callable[[], os.terminal_size] = shutil.get_terminal_size,
    ):
        self.stream = stream if stream is not None else sys.stdout
        self.debounce_window = debounce_window
        self.clock = clock
        self.terminal_size = terminal_size
        self.state = RenderState()

    @property
    def width(self) -> int:
        return self.terminal_size().columns

    @property
    def height(self) -> int:
        return self.terminal_size().lines

    def _write_row(self, row: int, text: str, height: int) -> bool:
        """Clear one row and write text into it. Rows off screen are skipped."""
        if row < 1 or row > height:
            return False
        self.stream.write(f"{move_to(row)}{CLEAR_LINE}{text}")
        return True

    def _park_cursor(self, height: int) -> None:
        # The next cycle starts from the body offset
        row = min(self.state.body_start_row, height)
        self.stream.write(move_to(max(row, 1)))

    def draw_header(self, lines: list[str]) -> None:
        """Clear the screen and draw the header block. Only the first call draws."""
        if self.state.phase is not RenderPhase.UNINITIALIZED:
            return
        height = self.height
        self.stream.write(f"{CLEAR_SCREEN}{CURSOR_HOME}")
        for index, line in enumerate(lines):
            self._write_row(index + 1, line, height)
        self.state.header_lines = len(lines)
        self.state.phase = RenderPhase.HEADER_DRAWN
        self._park_cursor(height)
        self.stream.flush()

    def should_redraw(self, forced: bool = False) -> bool:
        """Whether a redraw requested now would pass the debounce window."""
        if forced or self.state.last_redraw is None:
            return True
        return self.clock() - self.state.last_redraw >= self.debounce_window

    def render(self, lines: list[str], forced: bool = False) -> bool:
        """Redraw the body in place.

        Returns:
            True if the body was redrawn, False if the request was debounced.
        """
        if self.state.phase is RenderPhase.UNINITIALIZED:
            self.draw_header([])
        if not self.should_redraw(forced):
            return False

        now = self.clock()
        height = self.height
        start = self.state.body_start_row

        for index, line in enumerate(lines):
            self._write_row(start + index, line, height)
        for index in range(len(lines), self.state.body_lines):
            self._write_row(start + index, "", height)

        self._park_cursor(height)
        self.stream.flush()

        self.state.body_lines = len(lines)
        self.state.last_redraw = now
        if forced:
            self.state.last_forced_refresh = now
        self.state.phase = RenderPhase.BODY_DRAWN
        return True

    def update_status(self, text: str) -> bool:
        """Rewrite only the status line, leaving every other row untouched."""
        if self.state.phase is not RenderPhase.BODY_DRAWN:
            return False
        height = self.height
        written = self._write_row(self.state.body_start_row, text, height)
        self._park_cursor(height)
        self.stream.flush()
        return written

    def finish(self, message: str) -> None:
        """Move below the drawn content and print a final line."""
        height = self.height
        row = min(self.state.header_lines + self.state.body_lines + 1, height)
        self._write_row(max(row, 1), message, height)
        self.stream.write("\n")
        self.stream.flush()
