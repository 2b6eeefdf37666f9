#!/usr/bin/env python3
"""
File Lists - Numbered collections of file references.

The store holds any number of file lists addressed by a non-negative list
index. List 0 is the primary list: searches and finds rebuild it, and most
shell commands act on it unless told otherwise. Within a list, position i is
"file i" and stays that way until the list is edited.

Command arguments are either list references ("3" means file 3 of a list) or
literal paths. parse_ref() makes that decision once, at the argument
boundary, so the store never has to guess again.

Usage:
    from grepshell_lib.filelists import FileListStore

    store = FileListStore()
    store.create_primary("notes.txt", "todo.md")
    store.create_at(2, "0", "/etc/hosts")     # file 0 of list 0, plus a path
    failed = store.remove_from(2, "1", "7")   # -> ["7"]
    store.swap_primary(2)
"""

import logging
import math
import os
import re
from dataclasses import dataclass, field
from typing import Optional, Union

logger = logging.getLogger(__name__)

PRIMARY = 0


class FileListError(Exception):
    """Base exception for file list errors."""
    pass


class NoListsAvailableError(FileListError):
    """No file list has been created yet."""

    def __init__(self):
        super().__init__("No file lists are available")


class InvalidListIndexError(FileListError):
    """List index is not a number or falls outside the known lists."""

    def __init__(self, given, valid_range: tuple[int, int]):
        self.given = given
        self.valid_range = valid_range
        super().__init__(
            f"File list index provided ({given}) is out of range "
            f"({valid_range[0]} to {valid_range[1]})"
        )


class ListDoesNotExistError(FileListError):
    """List index is in range but that list was never created."""

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"File list {index} does not exist")


class InvalidFileIndexError(FileListError):
    """File index does not address an entry of the list."""

    def __init__(self, given, valid_range: tuple[int, int]):
        self.given = given
        self.valid_range = valid_range
        super().__init__(
            f"File index provided ({given}) is out of range "
            f"({valid_range[0]} to {valid_range[1]})"
        )


class MissingArgumentsError(FileListError):
    """Too few arguments for an operation."""

    def __init__(self, required: int, got: int, hint: str = ""):
        self.required = required
        self.got = got
        message = f"Expected at least {required} argument(s), got {got}"
        if hint:
            message = f"{message}: {hint}"
        super().__init__(message)


class UnresolvedReferenceError(FileListError):
    """A numeric reference has nothing to resolve against."""

    def __init__(self, message: str = "Primary file list is uninitialized"):
        super().__init__(message)


# =============================================================================
# Argument references
# =============================================================================

@dataclass(frozen=True)
class FileIndex:
    """Reference to a position in a file list, as typed by the user."""
    value: float
    text: str

    @property
    def index(self) -> Optional[int]:
        """The position, or None when the number cannot be a position."""
        if self.value.is_integer() and self.value >= 0:
            return int(self.value)
        return None

    def within(self, length: int) -> bool:
        index = self.index
        return index is not None and index < length


@dataclass(frozen=True)
class FilePath:
    """A raw filesystem path, trusted without being checked."""
    path: str


FileRef = Union[FileIndex, FilePath]


def is_number(token) -> bool:
    """True for finite numbers; "inf", "infinity" and "nan" are not numbers."""
    try:
        value = float(token)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value)


def parse_ref(token) -> FileRef:
    """
    Decide whether an argument is a list reference or a literal path.

    Args:
        token: Command argument (str) or an already-numeric value

    Returns:
        FileIndex for numeric tokens, FilePath for everything else
    """
    if isinstance(token, (FileIndex, FilePath)):
        return token
    if is_number(token):
        return FileIndex(float(token), str(token))
    return FilePath(str(token))


def absolute_path(path: str) -> str:
    """Absolute form of a path, without touching the filesystem."""
    return os.path.abspath(os.path.expanduser(path))


def _coerce_list_index(value) -> Optional[int]:
    ref = parse_ref(value)
    if isinstance(ref, FileIndex) and ref.value.is_integer():
        return int(ref.value)
    return None


# =============================================================================
# Search results
# =============================================================================

@dataclass
class FileResults:
    """Annotated lines recorded for one file of the primary list."""
    lines: list[str] = field(default_factory=list)

    @property
    def tally(self) -> int:
        return len(self.lines)


class SearchResultSet:
    """
    Annotated search lines keyed by file index in the primary list.

    Rebuilt by every search; never re-keyed when the primary list is edited.
    """

    def __init__(self):
        self._files: dict[int, FileResults] = {}

    def clear(self) -> None:
        self._files.clear()

    def start(self, file_index: int) -> FileResults:
        """Begin an empty record for a file, replacing any previous one."""
        record = FileResults()
        self._files[file_index] = record
        return record

    def add_line(self, file_index: int, line: str) -> int:
        """Append a rendered line and return the file's new tally."""
        record = self._files.get(file_index)
        if record is None:
            record = self.start(file_index)
        record.lines.append(line)
        return record.tally

    def get(self, file_index: int) -> Optional[FileResults]:
        return self._files.get(file_index)

    def lines(self, file_index: int) -> list[str]:
        record = self._files.get(file_index)
        return list(record.lines) if record else []

    def tally(self, file_index: int) -> int:
        record = self._files.get(file_index)
        return record.tally if record else 0

    def tallies(self) -> list[int]:
        """Tallies in file index order."""
        return [self._files[i].tally for i in sorted(self._files)]

    def items(self):
        return sorted(self._files.items())

    def copy(self) -> "SearchResultSet":
        duplicate = SearchResultSet()
        for file_index, record in self._files.items():
            duplicate._files[file_index] = FileResults(list(record.lines))
        return duplicate

    def __contains__(self, file_index) -> bool:
        return file_index in self._files

    def __len__(self) -> int:
        return len(self._files)


@dataclass
class FileReport:
    """One row of a filespecific request."""
    token: str
    position: Optional[int] = None
    path: Optional[str] = None
    lines: Optional[list[str]] = None  # None when no search has been recorded

    @property
    def valid(self) -> bool:
        return self.position is not None


# =============================================================================
# Store
# =============================================================================

class FileListStore:
    """
    Numbered file lists plus the search results of the primary list.

    A slot holding None was never created; an empty list is a created list
    with no files in it.
    """

    def __init__(self, results: Optional[SearchResultSet] = None):
        self._lists: list[Optional[list[str]]] = []
        self.results = results if results is not None else SearchResultSet()

    # -- existence checks ---------------------------------------------------

    def _list_range(self) -> tuple[int, int]:
        return (0, len(self._lists) - 1)

    def check_list(self, list_index) -> int:
        """
        Validate a list index.

        Returns:
            The list index as an int

        Raises:
            NoListsAvailableError, InvalidListIndexError, ListDoesNotExistError
        """
        if not self._lists:
            raise NoListsAvailableError()
        index = _coerce_list_index(list_index)
        if index is None or index < 0 or index >= len(self._lists):
            raise InvalidListIndexError(list_index, self._list_range())
        if self._lists[index] is None:
            raise ListDoesNotExistError(index)
        return index

    def list_exists(self, list_index) -> bool:
        try:
            self.check_list(list_index)
        except FileListError:
            return False
        return True

    def check_files(self, list_index, *file_refs) -> int:
        """
        Validate a list index and file references into that list.

        Numeric references must address an entry; literal paths are
        accepted as they are.
        """
        if not file_refs:
            raise MissingArgumentsError(2, 1, "a file list and one or more files")
        index = self.check_list(list_index)
        entries = self._lists[index]
        for ref in map(parse_ref, file_refs):
            if isinstance(ref, FileIndex) and not ref.within(len(entries)):
                raise InvalidFileIndexError(ref.text, (0, len(entries) - 1))
        return index

    def file_exists(self, list_index, *file_refs) -> bool:
        try:
            self.check_files(list_index, *file_refs)
        except FileListError:
            return False
        return True

    # -- internal helpers ---------------------------------------------------

    def _ensure_slot(self, index: int) -> None:
        while len(self._lists) <= index:
            self._lists.append(None)

    def _entries(self, list_index) -> list[str]:
        return self._lists[self.check_list(list_index)]

    def _resolve(self, ref: FileRef, source: list[str]) -> str:
        if isinstance(ref, FilePath):
            return absolute_path(ref.path)
        if not ref.within(len(source)):
            raise InvalidFileIndexError(ref.text, (0, len(source) - 1))
        return source[ref.index]

    # -- creation -----------------------------------------------------------

    def create_primary(self, *entries) -> list[str]:
        """
        Rebuild the primary list from references and paths.

        Numeric entries copy from the primary list as it was before the
        call and bring that file's search results along. A bad reference
        stops the rebuild where it is; the old list is not restored.

        Returns:
            The new primary list
        """
        if not entries:
            raise MissingArgumentsError(1, 0, "one or more files")
        refs = [parse_ref(entry) for entry in entries]

        previous = list(self._lists[PRIMARY] or []) if self._lists else []
        previous_results = self.results.copy()

        self._ensure_slot(PRIMARY)
        primary: list[str] = []
        self._lists[PRIMARY] = primary
        self.results.clear()

        for ref in refs:
            if isinstance(ref, FileIndex):
                if not previous:
                    raise UnresolvedReferenceError()
                primary.append(self._resolve(ref, previous))
                if len(previous_results):
                    position = len(primary) - 1
                    self.results.start(position)
                    carried = previous_results.get(ref.index)
                    if carried:
                        for line in carried.lines:
                            self.results.add_line(position, line)
            else:
                primary.append(absolute_path(ref.path))

        logger.debug(f"Primary list rebuilt with {len(primary)} file(s)")
        return list(primary)

    def create_at(self, list_index, *entries) -> list[str]:
        """
        Create (or recreate) list ``list_index`` from references and paths.

        Numeric entries resolve against the current primary list. List 0
        is handed to create_primary().
        """
        index = _coerce_list_index(list_index)
        if index is None or index < 0:
            raise InvalidListIndexError(list_index, self._list_range())
        if index == PRIMARY:
            return self.create_primary(*entries)
        if not entries:
            raise MissingArgumentsError(2, 1, "a file list index and one or more files")
        refs = [parse_ref(entry) for entry in entries]

        self._ensure_slot(index)
        target: list[str] = []
        self._lists[index] = target
        for ref in refs:
            if isinstance(ref, FileIndex):
                target.append(self._resolve(ref, self._entries(PRIMARY)))
            else:
                target.append(absolute_path(ref.path))

        logger.debug(f"List {index} created with {len(target)} file(s)")
        return list(target)

    def clear_primary(self) -> None:
        self._ensure_slot(PRIMARY)
        self._lists[PRIMARY] = []

    def replace_primary(self, paths) -> list[str]:
        """Make ``paths`` the primary list and drop all search results."""
        self._ensure_slot(PRIMARY)
        self._lists[PRIMARY] = [absolute_path(path).rstrip() for path in paths]
        self.results.clear()
        return list(self._lists[PRIMARY])

    # -- editing ------------------------------------------------------------

    def add_to(self, list_index, *entries) -> list[str]:
        """
        Append files to an existing list.

        Numeric entries always copy from the primary list, whichever list
        is being extended. Nothing is appended unless every entry resolves.

        Returns:
            The paths appended
        """
        index = self.check_list(list_index)
        if not entries:
            raise MissingArgumentsError(2, 1, "a file list index and one or more files")

        added = []
        for ref in map(parse_ref, entries):
            if isinstance(ref, FileIndex):
                added.append(self._resolve(ref, self._entries(PRIMARY)))
            else:
                added.append(absolute_path(ref.path))

        self._lists[index].extend(added)
        return added

    def remove_from(self, list_index, *indices) -> list[str]:
        """
        Remove files from a list by position.

        Every position is looked up against the list as it was before the
        call. Positions that are missing, repeated, or not numbers are
        collected instead of aborting the rest of the removal.

        Returns:
            The tokens that could not be removed
        """
        index = self.check_list(list_index)
        if not indices:
            raise MissingArgumentsError(2, 1, "one or more files")

        entries = self._lists[index]
        slots: list[Optional[int]] = list(range(len(entries)))
        failed = []
        for token in indices:
            ref = parse_ref(token)
            position = ref.index if isinstance(ref, FileIndex) else None
            if position is not None and position < len(slots) and slots[position] is not None:
                slots[position] = None
            else:
                failed.append(str(token))

        entries[:] = [entries[slot] for slot in slots if slot is not None]
        if failed:
            logger.debug(f"List {index}: could not remove {failed}")
        return failed

    def swap_primary(self, list_index) -> None:
        """Exchange the contents of list ``list_index`` and the primary list."""
        index = self.check_list(list_index)
        if self._lists[PRIMARY] is None:
            self._lists[PRIMARY] = []
        primary = self._lists[PRIMARY]
        other = self._lists[index]
        primary_items = list(primary)
        primary[:] = other
        other[:] = primary_items

    def set_entry(self, list_index: int, file_index: int, value: str) -> None:
        """Set one slot of a list; ``file_index`` may be one past the end."""
        self._ensure_slot(list_index)
        if self._lists[list_index] is None:
            self._lists[list_index] = []
        entries = self._lists[list_index]
        if file_index == len(entries):
            entries.append(value)
        elif 0 <= file_index < len(entries):
            entries[file_index] = value
        else:
            raise InvalidFileIndexError(file_index, (0, len(entries)))

    def clear_trailing_whitespace(self, list_index: int, file_index: int) -> None:
        entries = self._entries(list_index)
        if not 0 <= file_index < len(entries):
            raise InvalidFileIndexError(file_index, (0, len(entries) - 1))
        entries[file_index] = entries[file_index].rstrip()

    # -- queries ------------------------------------------------------------

    def contains_path(self, list_index, pattern: str) -> bool:
        """True if any path in the list matches ``pattern`` (regex, else substring)."""
        if not self.list_exists(list_index):
            return False
        try:
            regex = re.compile(pattern)
        except re.error:
            regex = re.compile(re.escape(pattern))
        return any(regex.search(absolute_path(path)) for path in self._entries(list_index))

    def list_all_lists(self) -> list[tuple[int, int]]:
        """(list index, file count) for every created list."""
        return [
            (index, len(entries))
            for index, entries in enumerate(self._lists)
            if entries is not None
        ]

    def list_one(self, list_index) -> list[tuple[int, str]]:
        return list(enumerate(self._entries(list_index)))

    def file_specific(self, *tokens) -> list[FileReport]:
        """
        Recorded search lines for files of the primary list.

        ``*`` selects every file. Tokens that do not address a file are
        returned as invalid reports rather than failing the whole request.
        """
        if not tokens:
            raise MissingArgumentsError(1, 0, "file numbers")
        entries = self._entries(PRIMARY)
        if tokens[0] == "*":
            tokens = tuple(str(i) for i in range(len(entries)))

        reports = []
        for token in tokens:
            ref = parse_ref(token)
            if isinstance(ref, FileIndex) and ref.within(len(entries)):
                lines = self.results.lines(ref.index) if len(self.results) else None
                reports.append(FileReport(str(token), ref.index, entries[ref.index], lines))
            else:
                reports.append(FileReport(str(token)))
        return reports

    @property
    def primary(self) -> list[str]:
        if not self._lists or self._lists[PRIMARY] is None:
            return []
        return list(self._lists[PRIMARY])

    def snapshot(self) -> list[Optional[list[str]]]:
        """Copy of every slot, for persistence."""
        return [list(entries) if entries is not None else None for entries in self._lists]

    def restore(self, lists: list[Optional[list[str]]]) -> None:
        self._lists = [list(entries) if entries is not None else None for entries in lists]
