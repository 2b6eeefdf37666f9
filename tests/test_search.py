from __future__ import annotations

import os
import shutil
import threading

import pytest

from grepshell_lib import search
from grepshell_lib.annotate import SearchResultAnnotator
from grepshell_lib.search import (
    EmptyQueryError,
    SearchError,
    build_pattern,
    files_of_type,
    grep_args,
    run_find,
    run_grep,
    run_in_background,
    run_shell,
    validate_terms,
)

needs_grep = pytest.mark.skipif(shutil.which("grep") is None, reason="grep not installed")
needs_find = pytest.mark.skipif(shutil.which("find") is None, reason="find not installed")


def test_terms_are_joined_as_alternation() -> None:
    assert build_pattern(["Rabbit"]) == "Rabbit"
    assert build_pattern(["Rabbit", "Hatter"]) == "Rabbit\\|Hatter"


def test_grep_args_recursive_and_file_list() -> None:
    assert grep_args(["a", "b"], 2) == ["grep", "-n", "-Z", "-s", "-C", "2", "-e", "a\\|b", "-r", "."]
    assert grep_args(["a"], 0, ["/x", "-odd"]) == [
        "grep", "-n", "-Z", "-s", "-C", "0", "-e", "a", "-H", "--", "/x", "-odd",
    ]


def test_validate_terms_rejects_empty_queries() -> None:
    assert validate_terms(["", "Rabbit", "  "]) == ["Rabbit"]
    with pytest.raises(EmptyQueryError):
        validate_terms([])
    with pytest.raises(EmptyQueryError):
        validate_terms(["  "])


def test_run_in_background_uses_a_worker_and_returns_its_value() -> None:
    seen = {}

    def work(value):
        seen["thread"] = threading.current_thread()
        return value * 2

    waited = []
    assert run_in_background(work, 21, on_wait=lambda: waited.append(True)) == 42
    assert waited == [True]
    assert seen["thread"] is not threading.main_thread()


def test_run_in_background_propagates_errors() -> None:
    def fail():
        raise EmptyQueryError("nothing to do")

    with pytest.raises(EmptyQueryError, match="nothing to do"):
        run_in_background(fail)


@needs_grep
def test_run_grep_recursive(workdir) -> None:
    lines = run_grep(["heads", "party"])

    # grep separates non-adjacent groups with "--" whenever -C is given
    matches = sorted(line for line in lines if line != "--")
    assert matches == ["./hatter.txt\x001:tea party", "./queen.txt\x001:off with their heads"]


@needs_grep
def test_run_grep_in_files_with_context(workdir) -> None:
    lines = run_grep(["ran"], context=1, files=["alice.txt"])

    assert lines == [
        "alice.txt\x001-the White Rabbit",
        "alice.txt\x002:ran past",
        "alice.txt\x003-rabbit hole",
    ]


@needs_grep
def test_run_grep_no_match_is_empty(workdir) -> None:
    assert run_grep(["xyzzy"]) == []


@needs_find
def test_run_find(workdir) -> None:
    assert run_find("queen.*") == ["./queen.txt"]
    with pytest.raises(EmptyQueryError):
        run_find("")


def test_files_of_type(workdir) -> None:
    (workdir / "notes.md").write_text("# notes\n", encoding="utf-8")
    (workdir / "dir.md").mkdir()

    assert files_of_type(["txt", ".md"]) == ["alice.txt", "hatter.txt", "queen.txt", "notes.md"]
    assert files_of_type(["csv"]) == []


def test_run_shell_returns_stdout() -> None:
    assert run_shell("echo through the looking glass") == "through the looking glass\n"


@needs_grep
def test_dashed_and_dated_file_names_reach_the_primary_list(store, workdir) -> None:
    (workdir / "log-2024-01.txt").write_text("the White Rabbit\n", encoding="utf-8")
    (workdir / "my-file-2-notes.txt").write_text("a\nRabbit hole\n", encoding="utf-8")

    recursive = run_grep(["Rabbit"], context=1)
    SearchResultAnnotator(store).annotate(recursive, ["Rabbit"])
    assert os.path.abspath("log-2024-01.txt") in store.primary
    assert os.path.abspath("my-file-2-notes.txt") in store.primary

    listed = run_grep(["Rabbit"], files=["./log-2024-01.txt"])
    SearchResultAnnotator(store).annotate(listed, ["Rabbit"])
    assert store.primary == [os.path.abspath("log-2024-01.txt")]
    assert store.results.tallies() == [1]


def test_files_of_type_reports_bad_patterns(workdir, monkeypatch) -> None:
    def reject(self, pattern):
        raise ValueError(f"Invalid pattern: {pattern}")

    monkeypatch.setattr(search.Path, "glob", reject)

    with pytest.raises(SearchError, match="Invalid file extension"):
        files_of_type(["**"])
