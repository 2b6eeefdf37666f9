from __future__ import annotations

import os
import re

import pytest

from grepshell_lib.filelists import FileListStore

ANSI_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")

ALICE_FILES = ("alice.txt", "hatter.txt", "queen.txt")


@pytest.fixture
def store() -> FileListStore:
    return FileListStore()


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """A current directory holding three small text files."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "alice.txt").write_text("the White Rabbit\nran past\nrabbit hole\n", encoding="utf-8")
    (tmp_path / "hatter.txt").write_text("tea party\nwhite rabbit late\n", encoding="utf-8")
    (tmp_path / "queen.txt").write_text("off with their heads\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def paths(workdir) -> list[str]:
    return [os.path.abspath(name) for name in ALICE_FILES]


@pytest.fixture
def populated(store, paths) -> FileListStore:
    """Primary list of three files, each with stored result lines."""
    store.create_primary(*ALICE_FILES)
    for index in range(len(paths)):
        store.results.start(index)
        store.results.add_line(index, f"\t1\tfirst line of file {index}")
        store.results.add_line(index, f"\t2\tsecond line of file {index}")
    return store


@pytest.fixture
def strip_ansi():
    return lambda text: ANSI_RE.sub("", text)
