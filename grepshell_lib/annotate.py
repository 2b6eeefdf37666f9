#!/usr/bin/env python3
"""
Search Result Annotator - Turn raw grep output into numbered, highlighted results.

grep -nZ prints one line per hit, grouped by file. The path ends at a NUL
byte (shown here as <NUL>), so dashes and digits in file names are never
mistaken for the line number:

    ./notes.txt<NUL>12:the White Rabbit     (match)
    ./notes.txt<NUL>13-with pink eyes       (context, with -C)
    --                                     (group separator)

Output without NUL bytes (grep -n alone) is still understood.

A single forward pass groups consecutive lines by path. Each new path gets
the next index in the primary list and every content line is stored, with
its highlighting, under that index so `filespecific` can replay it later.

Usage:
    from grepshell_lib.annotate import SearchResultAnnotator

    annotator = SearchResultAnnotator(store)
    annotator.annotate(raw_lines, ["Rabbit", "eyes"])
"""

import itertools
import logging
import re
from typing import Optional

from grepshell_lib.colors import format_file, format_num, format_text, kcolor
from grepshell_lib.filelists import PRIMARY, FileListStore, absolute_path

logger = logging.getLogger(__name__)

NO_FILES_MESSAGE = "No files found."
GROUP_SEPARATOR = "--"

PATH_END = "\0"

# Older grep prints the first form on stdout, newer grep the second on stderr
BINARY_NOTICE_RE = re.compile(r"^(Binary file .+ matches|grep: .+: binary file matches)$")
GREP_LINE_RE = re.compile(r"^(.*?)[:-](\d+)[:-](.*)$")
LINE_TAIL_RE = re.compile(r"^[:-](\d+)[:-](.*)$")
NUMBERED_TEXT_RE = re.compile(r"^(\d+)[:-](.*)$")


def compile_term(term: str) -> re.Pattern:
    """Compile a highlight term, falling back to a literal match."""
    try:
        return re.compile(term)
    except re.error:
        return re.compile(re.escape(term))


def highlight(text: str, terms: list[str]) -> str:
    """
    Color every occurrence of each term in ``text``.

    Terms are applied in order over character spans. Where matches of two
    terms overlap, the later term owns the overlapping characters.
    """
    if not terms or not text:
        return text

    owners: list[Optional[int]] = [None] * len(text)
    for term_index, term in enumerate(terms):
        if not term:
            continue
        for match in compile_term(term).finditer(text):
            for position in range(match.start(), match.end()):
                owners[position] = term_index

    pieces = []
    for owner, run in itertools.groupby(zip(owners, text), key=lambda pair: pair[0]):
        chunk = "".join(char for _, char in run)
        pieces.append(chunk if owner is None else kcolor(owner, chunk))
    return "".join(pieces)


def render_line(line_number, text: str, terms: list[str]) -> str:
    """Stored and echoed form of one result line."""
    return f"\t{format_num(line_number)}\t{highlight(text, terms)}"


def parse_grep_line(line: str, current_file: Optional[str] = None) -> Optional[tuple[str, int, str]]:
    """
    Split a grep -n line into (path, line number, text).

    With grep -Z the path ends at the NUL byte. Without it, the file
    currently being grouped is tried first, then the leftmost
    "<sep><digits><sep>" is taken as the line number.

    Returns:
        Tuple of path, line number and text, or None if the line is not
        in grep's path/number/text form
    """
    path, nul, rest = line.partition(PATH_END)
    if nul:
        numbered = NUMBERED_TEXT_RE.match(rest)
        if not numbered:
            return None
        return path, int(numbered.group(1)), numbered.group(2)

    if current_file and line.startswith(current_file):
        tail = LINE_TAIL_RE.match(line[len(current_file):])
        if tail:
            return current_file, int(tail.group(1)), tail.group(2)

    match = GREP_LINE_RE.match(line)
    if not match:
        return None
    return match.group(1), int(match.group(2)), match.group(3)


class SearchResultAnnotator:
    """Feeds search and find output into the primary list and result set."""

    def __init__(self, store: FileListStore):
        self.store = store

    def annotate(self, raw_lines: list[str], terms: list[str]) -> int:
        """
        Rebuild the primary list and result set from grep output.

        Args:
            raw_lines: grep -n output, one entry per line
            terms: Highlight terms, in the order they were typed

        Returns:
            Number of files found
        """
        results = self.store.results
        self.store.clear_primary()
        results.clear()

        if not raw_lines:
            print(format_text(NO_FILES_MESSAGE))
            return 0

        current_file: Optional[str] = None
        file_index = -1
        skipped = 0

        for raw in raw_lines:
            line = raw.rstrip("\r\n")
            if line == GROUP_SEPARATOR:
                print()
                continue
            if PATH_END not in line and BINARY_NOTICE_RE.match(line):
                skipped += 1
                continue

            parsed = parse_grep_line(line, current_file)
            if parsed is None:
                skipped += 1
                continue
            path, line_number, text = parsed

            if path != current_file:
                file_index += 1
                self.store.set_entry(PRIMARY, file_index, absolute_path(path))
                self.store.clear_trailing_whitespace(PRIMARY, file_index)
                results.start(file_index)
                print(f"{format_num(file_index)}  {format_file(path)}")
                current_file = path

            rendered = render_line(line_number, text, terms)
            results.add_line(file_index, rendered)
            print(rendered)

        if skipped:
            logger.debug(f"Skipped {skipped} unparseable or binary line(s)")
        logger.debug(f"Annotated {file_index + 1} file(s)")
        return file_index + 1

    def record_find_results(self, paths: list[str]) -> int:
        """
        Make find output the new primary list.

        The result set is emptied; find has no lines to replay.
        """
        paths = [path.rstrip("\r\n") for path in paths if path.strip()]
        if not paths:
            print(format_text(NO_FILES_MESSAGE))

        entries = self.store.replace_primary(paths)
        for index, path in enumerate(entries):
            print(f"{format_num(index)}.\t{format_file(path)}")
        return len(entries)
