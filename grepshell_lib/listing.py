#!/usr/bin/env python3
"""
Listing - Directory listing colored by how recently files changed.

Each entry shows its modification date and name. Names are shaded from
bright (changed today) to grey (older than a month); directories get a
trailing slash. Files that are in the primary list have their date
highlighted so they stand out among their neighbours.

Usage:
    from grepshell_lib.listing import cmd_ls

    cmd_ls(store, config)          # columns from config ("auto" by default)
    cmd_ls(store, config, "2")     # two columns
"""

import logging
import os
import re
import shutil
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from grepshell_lib.colors import format_recency, format_text, kcolor
from grepshell_lib.config import ShellConfig
from grepshell_lib.filelists import PRIMARY, FileListStore, is_number

logger = logging.getLogger(__name__)

COLUMN_WIDTH = 30
MAX_AUTO_COLUMNS = 4


@dataclass
class ListingEntry:
    name: str
    path: str
    modified: datetime
    is_dir: bool = False
    in_primary: bool = False

    @property
    def display_name(self) -> str:
        return self.name + "/" if self.is_dir else self.name


def scan_directory(directory: str, store: Optional[FileListStore] = None) -> list[ListingEntry]:
    """Visible entries of ``directory``, sorted by name."""
    entries = []
    with os.scandir(directory) as it:
        for item in it:
            if item.name.startswith("."):
                continue
            try:
                stat = item.stat()
                is_dir = item.is_dir()
            except OSError as e:
                logger.debug(f"Cannot stat {item.path}: {e}")
                continue
            path = os.path.abspath(item.path)
            in_primary = False
            if store is not None and not is_dir:
                in_primary = store.contains_path(PRIMARY, f"^{re.escape(path)}$")
            entries.append(ListingEntry(
                name=item.name,
                path=path,
                modified=datetime.fromtimestamp(stat.st_mtime),
                is_dir=is_dir,
                in_primary=in_primary,
            ))
    return sorted(entries, key=lambda entry: entry.name)


def column_count(requested=None, configured="auto") -> int:
    """Columns for this listing: the argument, else the configured value."""
    if requested is not None and is_number(requested) and float(requested) >= 1:
        return int(float(requested))
    if configured != "auto":
        return int(configured)
    width = shutil.get_terminal_size().columns
    return max(1, min(MAX_AUTO_COLUMNS, width // COLUMN_WIDTH))


def format_entry(entry: ListingEntry, now: datetime) -> str:
    date = f"{entry.modified:%b} {entry.modified.day:2d}"
    date = kcolor(0, date) if entry.in_primary else date
    name = entry.display_name
    padding = " " * max(1, COLUMN_WIDTH - len(name) - 2)
    if entry.is_dir:
        return f"{date}  {format_text(name)}{padding}"
    days_old = (now.date() - entry.modified.date()).days
    return f"{date}  {format_recency(days_old, name)}{padding}"


def cmd_ls(
    store: FileListStore,
    config: Optional[ShellConfig] = None,
    columns=None,
    directory: str = ".",
) -> int:
    """
    Print the listing.

    Returns:
        Number of entries listed
    """
    config = config or ShellConfig()
    entries = scan_directory(directory, store)
    per_row = column_count(columns, config.columns)
    now = datetime.now()

    for start in range(0, len(entries), per_row):
        row = entries[start:start + per_row]
        print("".join(format_entry(entry, now) for entry in row).rstrip())
    return len(entries)
