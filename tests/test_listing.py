from __future__ import annotations

import os
from datetime import datetime

from grepshell_lib.listing import ListingEntry, cmd_ls, column_count, format_entry, scan_directory


def test_scan_skips_hidden_and_marks_directories(workdir) -> None:
    (workdir / "garden").mkdir()
    (workdir / ".hidden").write_text("secret", encoding="utf-8")

    entries = scan_directory(".")

    assert [entry.display_name for entry in entries] == ["alice.txt", "garden/", "hatter.txt", "queen.txt"]
    assert entries[0].path == os.path.abspath("alice.txt")


def test_scan_flags_primary_files(store, workdir) -> None:
    store.create_primary("hatter.txt")

    flagged = {entry.name: entry.in_primary for entry in scan_directory(".", store)}

    assert flagged == {"alice.txt": False, "hatter.txt": True, "queen.txt": False}


def test_column_count() -> None:
    assert column_count("2", "auto") == 2
    assert column_count(None, 3) == 3
    assert column_count("0", 3) == 3
    assert column_count("wide", 1) == 1
    assert 1 <= column_count(None, "auto") <= 4


def test_format_entry(strip_ansi) -> None:
    now = datetime(2026, 3, 20)
    entry = ListingEntry("notes.txt", "/tmp/notes.txt", datetime(2026, 3, 5))
    folder = ListingEntry("garden", "/tmp/garden", datetime(2026, 3, 5), is_dir=True)

    assert strip_ansi(format_entry(entry, now)).startswith("Mar  5  notes.txt ")
    assert strip_ansi(format_entry(folder, now)).startswith("Mar  5  garden/ ")


def test_primary_files_have_their_date_highlighted() -> None:
    now = datetime(2026, 3, 20)
    plain = ListingEntry("notes.txt", "/tmp/notes.txt", datetime(2026, 3, 5))
    marked = ListingEntry("notes.txt", "/tmp/notes.txt", datetime(2026, 3, 5), in_primary=True)

    assert format_entry(plain, now).startswith("Mar")
    assert not format_entry(marked, now).startswith("Mar")


def test_cmd_ls_rows(store, workdir, capsys, strip_ansi) -> None:
    assert cmd_ls(store, columns="1") == 3
    one_per_row = strip_ansi(capsys.readouterr().out).splitlines()
    assert [line.split()[-1] for line in one_per_row] == ["alice.txt", "hatter.txt", "queen.txt"]

    cmd_ls(store, columns="3")
    rows = strip_ansi(capsys.readouterr().out).splitlines()
    assert len(rows) == 1
    assert "queen.txt" in rows[0]
