from __future__ import annotations

import os

import pytest

from grepshell_lib.filelists import (
    FileIndex,
    FilePath,
    InvalidFileIndexError,
    InvalidListIndexError,
    ListDoesNotExistError,
    MissingArgumentsError,
    NoListsAvailableError,
    UnresolvedReferenceError,
    is_number,
    parse_ref,
)


def test_parse_ref_splits_numbers_from_paths() -> None:
    assert parse_ref("3") == FileIndex(3.0, "3")
    assert parse_ref("3").index == 3
    assert parse_ref("notes.txt") == FilePath("notes.txt")
    assert parse_ref(2).index == 2


def test_parse_ref_treats_infinity_and_nan_as_paths() -> None:
    for token in ("inf", "infinity", "-inf", "nan"):
        assert not is_number(token)
        assert isinstance(parse_ref(token), FilePath)


def test_non_whole_and_negative_numbers_are_not_positions() -> None:
    assert parse_ref("1.5").index is None
    assert parse_ref("-1").index is None
    assert not parse_ref("1.5").within(10)
    assert parse_ref("2.0").within(3)


def test_empty_store_has_no_lists(store) -> None:
    assert not store.list_exists(0)
    with pytest.raises(NoListsAvailableError):
        store.check_list(0)


def test_create_at_with_literal_entries_lists_absolute_paths_in_order(store, workdir) -> None:
    store.create_primary("alice.txt")
    store.create_at(2, "queen.txt", "sub/dir/../hatter.txt", "/etc/hosts")

    assert store.list_one(2) == [
        (0, os.path.abspath("queen.txt")),
        (1, os.path.abspath("sub/hatter.txt")),
        (2, "/etc/hosts"),
    ]


def test_create_at_grows_slots_without_creating_them(store, workdir) -> None:
    store.create_at(3, "alice.txt")

    assert store.list_exists(3)
    assert not store.list_exists(0)
    assert not store.list_exists(2)
    with pytest.raises(ListDoesNotExistError, match="File list 2 does not exist"):
        store.check_list(2)
    assert store.list_all_lists() == [(3, 1)]


def test_check_list_reports_given_value_and_range(populated) -> None:
    with pytest.raises(InvalidListIndexError, match=r"\(5\) is out of range \(0 to 0\)") as excinfo:
        populated.check_list("5")
    assert excinfo.value.given == "5"
    assert excinfo.value.valid_range == (0, 0)

    with pytest.raises(InvalidListIndexError):
        populated.check_list("abc")
    with pytest.raises(InvalidListIndexError):
        populated.check_list("-1")


def test_file_exists_checks_numbers_and_trusts_paths(populated) -> None:
    assert populated.file_exists(0, "0", "2")
    assert populated.file_exists(0, "/no/such/file")
    assert not populated.file_exists(0, "3")
    assert not populated.file_exists(1, "0")
    with pytest.raises(InvalidFileIndexError, match=r"\(3\) is out of range \(0 to 2\)"):
        populated.check_files(0, "1", "3")


def test_empty_list_is_distinct_from_missing_list(populated) -> None:
    populated.remove_from(0, "0", "1", "2")

    assert populated.list_exists(0)
    assert populated.list_one(0) == []
    assert populated.list_all_lists() == [(0, 0)]


def test_remove_same_index_twice_fails_second_time(populated, paths) -> None:
    assert populated.remove_from(0, "2") == []
    assert populated.primary == paths[:2]

    assert populated.remove_from(0, "2") == ["2"]
    assert populated.primary == paths[:2]


def test_remove_from_reports_each_bad_token_and_removes_the_rest(populated, paths) -> None:
    failed = populated.remove_from(0, "0", "7", "x", "0", "1.5")

    assert failed == ["7", "x", "0", "1.5"]
    assert populated.primary == paths[1:]


def test_remove_from_uses_positions_from_before_the_call(populated, paths) -> None:
    assert populated.remove_from(0, "0", "1") == []
    assert populated.primary == [paths[2]]


def test_remove_from_requires_indices(populated) -> None:
    with pytest.raises(MissingArgumentsError):
        populated.remove_from(0)


def test_swap_primary_twice_restores_both_lists(populated, paths) -> None:
    populated.create_at(1, "/etc/hosts")

    populated.swap_primary(1)
    assert populated.primary == ["/etc/hosts"]
    assert [path for _, path in populated.list_one(1)] == paths

    populated.swap_primary(1)
    assert populated.primary == paths
    assert populated.list_one(1) == [(0, "/etc/hosts")]


def test_swap_primary_with_itself_changes_nothing(populated, paths) -> None:
    populated.swap_primary(0)
    assert populated.primary == paths


def test_add_to_out_of_range_number_leaves_list_unchanged(store, workdir) -> None:
    store.create_primary("alice.txt", "hatter.txt")
    store.create_at(1, "queen.txt")
    before = store.list_one(1)

    with pytest.raises(InvalidFileIndexError):
        store.add_to(1, "/etc/hosts", "3")

    assert store.list_one(1) == before


def test_add_to_resolves_numbers_against_primary(populated, paths) -> None:
    populated.create_at(4, "/etc/hosts")

    added = populated.add_to(4, "2", "/tmp/notes.txt")

    assert added == [paths[2], "/tmp/notes.txt"]
    assert [path for _, path in populated.list_one(4)] == ["/etc/hosts", paths[2], "/tmp/notes.txt"]


def test_add_to_missing_list_fails(populated) -> None:
    with pytest.raises(InvalidListIndexError):
        populated.add_to(3, "/etc/hosts")


def test_create_primary_carries_results_with_copied_files(populated, paths) -> None:
    old_lines = {index: populated.results.lines(index) for index in range(3)}

    populated.create_primary("2", "/etc/hosts", "0")

    assert populated.primary == [paths[2], "/etc/hosts", paths[0]]
    assert populated.results.lines(0) == old_lines[2]
    assert populated.results.lines(1) == []
    assert populated.results.lines(2) == old_lines[0]
    assert populated.results.tally(0) == 2


def test_create_primary_without_previous_list_cannot_resolve_numbers(store) -> None:
    with pytest.raises(UnresolvedReferenceError):
        store.create_primary("0")


def test_create_primary_bad_number_aborts_without_restoring(populated, paths) -> None:
    with pytest.raises(InvalidFileIndexError):
        populated.create_primary("0", "9")

    assert populated.primary == [paths[0]]


def test_create_at_resolves_against_current_primary_without_touching_results(populated, paths) -> None:
    tallies = populated.results.tallies()

    populated.create_at(1, "1", "0")

    assert [path for _, path in populated.list_one(1)] == [paths[1], paths[0]]
    assert populated.results.tallies() == tallies


def test_create_at_zero_rebuilds_primary(populated, paths) -> None:
    populated.create_at(0, "1")
    assert populated.primary == [paths[1]]


def test_results_go_stale_after_list_edits(populated, paths) -> None:
    # Results stay keyed by position; edits to the primary list do not touch them.
    lines_before = [populated.results.lines(index) for index in range(3)]
    populated.create_at(1, "/etc/hosts")

    populated.add_to(0, "/tmp/extra.txt")
    populated.remove_from(0, "0")
    assert populated.results.lines(0) == lines_before[0]
    assert populated.primary[0] == paths[1]

    populated.swap_primary(1)
    assert [populated.results.lines(index) for index in range(3)] == lines_before
    assert populated.primary == ["/etc/hosts"]


def test_contains_path_matches_regex_or_substring(populated, paths) -> None:
    assert populated.contains_path(0, r"hatter\.txt$")
    assert populated.contains_path(0, "queen")
    assert not populated.contains_path(0, "march-hare")
    # Not a valid regular expression, so matched literally
    assert not populated.contains_path(0, "[alice")
    populated.add_to(0, "/tmp/[alice].txt")
    assert populated.contains_path(0, "[alice")
    assert not populated.contains_path(5, "alice")


def test_file_specific_reports_each_token(populated, paths) -> None:
    reports = populated.file_specific("1", "7", "x")

    assert reports[0].valid
    assert reports[0].path == paths[1]
    assert reports[0].lines == populated.results.lines(1)
    assert not reports[1].valid
    assert reports[1].token == "7"
    assert not reports[2].valid


def test_file_specific_star_selects_every_file(populated, paths) -> None:
    reports = populated.file_specific("*")
    assert [report.path for report in reports] == paths


def test_file_specific_without_any_search_has_no_lines(store, workdir) -> None:
    store.create_primary("alice.txt")
    (report,) = store.file_specific("0")
    assert report.valid
    assert report.lines is None


def test_set_entry_appends_or_replaces(store) -> None:
    store.set_entry(0, 0, "/a  ")
    store.set_entry(0, 1, "/b")
    store.set_entry(0, 0, "/a \n")
    store.clear_trailing_whitespace(0, 0)

    assert store.primary == ["/a", "/b"]
    with pytest.raises(InvalidFileIndexError):
        store.set_entry(0, 5, "/c")


def test_snapshot_and_restore(populated, paths) -> None:
    populated.create_at(2, "/etc/hosts")
    snapshot = populated.snapshot()
    assert snapshot == [paths, None, ["/etc/hosts"]]

    snapshot[0].append("/mutated")
    assert populated.primary == paths

    populated.restore([["/x"], ["/y"]])
    assert populated.list_all_lists() == [(0, 1), (1, 1)]
