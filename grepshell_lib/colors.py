#!/usr/bin/env python3
"""
Colors - Terminal decoration for shell output.

Pure string formatting on top of colorama constants. Nothing here prints;
every helper returns the decorated string so callers can store rendered
lines (search results are persisted with their escape sequences intact).

Usage:
    from grepshell_lib.colors import format_num, format_file, kcolor

    print(format_num(0) + "  " + format_file("/tmp/notes.txt"))
    print(kcolor(1, "needle"))
"""

from typing import Any

from colorama import Fore, Style

# Highlight palette, indexed by term position modulo its length
HIGHLIGHT_COLORS = [
    Fore.GREEN,
    Fore.BLUE,
    Fore.MAGENTA,
    Fore.CYAN,
    Fore.YELLOW,
    Fore.RED,
]

FILE_COLOR = Fore.LIGHTBLUE_EX
NUM_COLOR = Fore.LIGHTGREEN_EX
PROMPT_COLOR = Fore.LIGHTMAGENTA_EX
TEXT_COLOR = Fore.BLUE
ERR_COLOR = Fore.LIGHTRED_EX

# Recency shades used by ls, newest first
RECENCY_COLORS = [
    Fore.LIGHTCYAN_EX,
    Fore.CYAN,
    Fore.LIGHTBLUE_EX,
    Fore.BLUE,
    Fore.LIGHTBLACK_EX,
]

PROMPT = "grepshell: "


def colorize(color: str, text: Any) -> str:
    """Wrap text in a color code and a trailing reset."""
    return f"{color}{text}{Style.RESET_ALL}"


def kcolor(index: int, text: Any) -> str:
    """Color text with the highlight color for term number ``index``."""
    return colorize(HIGHLIGHT_COLORS[index % len(HIGHLIGHT_COLORS)], text)


def format_file(text: Any) -> str:
    return colorize(FILE_COLOR, text)


def format_num(text: Any) -> str:
    return colorize(NUM_COLOR, text)


def format_text(text: Any) -> str:
    return colorize(TEXT_COLOR, text)


def format_err(text: Any) -> str:
    return colorize(ERR_COLOR, text)


def format_prompt() -> str:
    return colorize(PROMPT_COLOR, PROMPT)


def format_recency(days_old: int, text: Any) -> str:
    """
    Shade a file name by how recently it was modified.

    Args:
        days_old: Whole days since last modification
        text: File name to color

    Returns:
        Colored string: today, within a week, within two weeks,
        within a month, anything older
    """
    if days_old <= 0:
        shade = 0
    elif days_old <= 7:
        shade = 1
    elif days_old <= 14:
        shade = 2
    elif days_old <= 31:
        shade = 3
    else:
        shade = 4
    return colorize(RECENCY_COLORS[shade], text)
