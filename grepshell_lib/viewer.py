#!/usr/bin/env python3
"""
Highlight Viewer - Page through a file with search terms highlighted.

Keys (read one at a time, no Enter needed on Unix terminals):
    n   next line
    m   next `scroll_distance` lines
    a   the rest of the file
    q   back to the shell

Under the text a status line (or a progress bar, with progress_bar = 1)
shows how far through the file the reader is.

Usage:
    from grepshell_lib.viewer import HighlightViewer

    HighlightViewer("/tmp/notes.txt", ["Rabbit"], config).run()
"""

import logging
import sys
import time
from contextlib import contextmanager
from typing import Callable, Optional

from grepshell_lib.annotate import highlight
from grepshell_lib.colors import format_num, kcolor
from grepshell_lib.config import ShellConfig

try:
    import termios
    import tty
except ImportError:
    termios = None
    tty = None

logger = logging.getLogger(__name__)

BAR_WIDTH = 50
SCROLL_DELAY = 0.025  # seconds between lines on "m"
CLEAR_LINE = "\x1b[K"
QUIT_KEY = "q"


def _shade(progress: float) -> int:
    """Highlight color index for a fraction of the file read."""
    if progress > 0.75:
        return 1
    if progress > 0.5:
        return 3
    if progress > 0.25:
        return 0
    return 4


def status_line(line_count: int, total: int) -> str:
    progress = line_count / total if total else 1.0
    count = kcolor(_shade(progress), line_count)
    return (
        f"On line {count}/{kcolor(1, total)}, "
        f"{kcolor(0, 'n')}/{kcolor(0, 'm')}/{kcolor(0, 'a')} to continue, "
        f"{kcolor(0, 'q')} to quit"
    )


def progress_bar(line_count: int, total: int, char: str = "#") -> str:
    progress = line_count / total if total else 1.0
    done = int(progress * BAR_WIDTH)
    if progress > 0.75:
        shade = 4
    elif progress > 0.5:
        shade = 0
    elif progress > 0.25:
        shade = 3
    else:
        shade = 1
    bar = kcolor(shade, char * done) if done else ""
    bar += kcolor(2, char * (BAR_WIDTH - done))
    return f"{bar} {line_count}/{total}"


@contextmanager
def cbreak_keys():
    """
    Yield a function that reads single keypresses.

    The terminal is put in cbreak mode for the duration and restored on
    exit. Without a terminal, keys are read a line at a time.
    """
    if termios is None or not sys.stdin.isatty():
        yield lambda: (sys.stdin.readline() or QUIT_KEY)[:1]
        return

    fd = sys.stdin.fileno()
    old_settings = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield lambda: sys.stdin.read(1) or QUIT_KEY
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)


class ViewerError(Exception):
    """File could not be opened for viewing."""
    pass


class HighlightViewer:
    """Line-at-a-time pager with term highlighting."""

    def __init__(
        self,
        path: str,
        terms: list[str],
        config: Optional[ShellConfig] = None,
        key_reader: Optional[Callable[[], str]] = None,
        delay: float = SCROLL_DELAY,
    ):
        self.path = path
        self.terms = terms
        self.config = config or ShellConfig()
        self.key_reader = key_reader
        self.delay = delay
        self.shown = 0
        self.lines: list[str] = []

    def _load(self) -> None:
        try:
            with open(self.path, errors="replace") as f:
                self.lines = f.read().splitlines()
        except OSError as e:
            raise ViewerError(f"Failed to open file: {self.path} ({e})")

    def _progress(self) -> str:
        if self.config.progress_bar:
            return progress_bar(self.shown, len(self.lines), self.config.progress_char)
        return status_line(self.shown, len(self.lines))

    def step(self) -> bool:
        """Show the next line; False once the file is exhausted."""
        if self.shown >= len(self.lines):
            return False
        text = highlight(self.lines[self.shown], self.terms)
        self.shown += 1
        print(f"{CLEAR_LINE}{format_num(self.shown)}  {text}")
        print(self._progress(), end="\r", flush=True)
        return True

    def _run_keys(self, read_key: Callable[[], str]) -> int:
        while True:
            key = read_key()
            if key == QUIT_KEY:
                print()
                return self.shown

            if key == "n":
                count = 1
            elif key == "m":
                count = self.config.scroll_distance
            elif key == "a":
                count = len(self.lines) + 1
            else:
                continue

            for _ in range(count):
                if not self.step():
                    print(f"{CLEAR_LINE}Finished!")
                    return self.shown
                if key == "m" and self.delay:
                    time.sleep(self.delay)

    def run(self) -> int:
        """
        Page through the file until it ends or the user quits.

        Returns:
            Number of lines shown

        Raises:
            ViewerError: If the file cannot be read
        """
        self._load()
        print(self.path)
        logger.debug(f"Viewing {self.path} ({len(self.lines)} lines)")

        if self.key_reader is not None:
            return self._run_keys(self.key_reader)
        with cbreak_keys() as read_key:
            return self._run_keys(read_key)
