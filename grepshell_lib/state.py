#!/usr/bin/env python3
"""
State - Save and restore file lists between single-command invocations.

`grepshell s Rabbit` followed by `grepshell fl` only works if the lists
survive the process. They are written to <state dir>/tmpKgrep.txt as tagged
lines:

    KGPFILE: 0:/home/alice/notes.txt:0       file 0 of the primary list
    KGPRESULT: <rendered result line>        belongs to the KGPFILE above
    KGPFILE2: 0:/etc/hosts:0                 file 0 of list 2

The index is repeated at both ends of a file line as a consistency check.
Lines that do not fit the format are skipped on load. Result lines keep
their color escapes, so the file is not meant to be read by people.

Usage:
    from grepshell_lib.state import save_state, load_state

    save_state(store, state_dir)
    load_state(store, state_dir)   # False if nothing was saved yet
"""

import logging
import re
from pathlib import Path
from typing import Optional

from grepshell_lib.filelists import PRIMARY, FileListStore, SearchResultSet

logger = logging.getLogger(__name__)

STATE_FILENAME = "tmpKgrep.txt"

PRIMARY_LINE_RE = re.compile(r"^KGPFILE: (\d+):(.*):\1$")
LIST_LINE_RE = re.compile(r"^KGPFILE(\d+): (\d+):(.*):\2$")
RESULT_LINE_RE = re.compile(r"^KGPRESULT: (.*)$")


class StateFileError(Exception):
    """State file could not be read or written."""
    pass


def state_path(state_dir: Path) -> Path:
    return Path(state_dir).expanduser().absolute() / STATE_FILENAME


def format_state(store: FileListStore) -> list[str]:
    """Serialize every list, and the primary list's results, to tagged lines."""
    lines = []
    snapshot = store.snapshot()

    primary = snapshot[PRIMARY] if snapshot and snapshot[PRIMARY] is not None else []
    for index, path in enumerate(primary):
        lines.append(f"KGPFILE: {index}:{path}:{index}")
        for result_line in store.results.lines(index):
            lines.append(f"KGPRESULT: {result_line}")

    for list_index in range(1, len(snapshot)):
        entries = snapshot[list_index]
        if entries is None:
            continue
        for index, path in enumerate(entries):
            lines.append(f"KGPFILE{list_index}: {index}:{path}:{index}")

    return lines


def parse_state(lines: list[str]) -> tuple[list[Optional[list[str]]], SearchResultSet]:
    """
    Rebuild list slots and results from tagged lines.

    Gaps in saved indices are closed up, keeping the saved order; results
    follow their file to its new position.

    Returns:
        Tuple of (list slots, result set)
    """
    primary: dict[int, str] = {}
    primary_results: dict[int, list[str]] = {}
    others: dict[int, dict[int, str]] = {}
    current: Optional[int] = None
    saw_results = False
    skipped = 0

    for raw in lines:
        line = raw.rstrip("\r\n")

        match = PRIMARY_LINE_RE.match(line)
        if match:
            current = int(match.group(1))
            primary[current] = match.group(2)
            primary_results[current] = []
            continue

        match = LIST_LINE_RE.match(line)
        if match and int(match.group(1)) != PRIMARY:
            others.setdefault(int(match.group(1)), {})[int(match.group(2))] = match.group(3)
            current = None
            continue

        match = RESULT_LINE_RE.match(line)
        if match and current is not None:
            primary_results[current].append(match.group(1))
            saw_results = True
            continue

        skipped += 1

    if skipped:
        logger.debug(f"Skipped {skipped} malformed state line(s)")

    highest = max(others, default=PRIMARY)
    slots: list[Optional[list[str]]] = [None] * (highest + 1)
    slots[PRIMARY] = [primary[index] for index in sorted(primary)]
    for list_index, entries in others.items():
        slots[list_index] = [entries[index] for index in sorted(entries)]

    results = SearchResultSet()
    if saw_results:
        for position, index in enumerate(sorted(primary)):
            results.start(position)
            for result_line in primary_results[index]:
                results.add_line(position, result_line)

    return slots, results


def save_state(store: FileListStore, state_dir: Path) -> Path:
    """
    Write the store to the state file, replacing what was there.

    Raises:
        StateFileError: If the file cannot be written
    """
    path = state_path(state_dir)
    lines = format_state(store)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            for line in lines:
                f.write(line + "\n")
    except OSError as e:
        raise StateFileError(f"Failed to open {path} for writing: {e}")

    logger.debug(f"Saved {len(lines)} state line(s) to {path}")
    return path


def load_state(store: FileListStore, state_dir: Path) -> bool:
    """
    Replace every list and the result set with the saved state.

    Returns:
        False if there is no state file (nothing changes), True otherwise

    Raises:
        StateFileError: If the file exists but cannot be read
    """
    path = state_path(state_dir)
    if not path.exists():
        return False

    try:
        with open(path, errors="replace") as f:
            lines = f.readlines()
    except OSError as e:
        raise StateFileError(f"Failed to open {path}: {e}")

    slots, results = parse_state(lines)
    store.restore(slots)
    store.results.clear()
    for index, record in results.items():
        store.results.start(index)
        for result_line in record.lines:
            store.results.add_line(index, result_line)

    logger.debug(f"Loaded {len(slots)} list slot(s) from {path}")
    return True
