#!/usr/bin/env python3
"""
Editor - Open files in the user's editor.

Terminal editors take over the terminal, so the shell waits for them to
exit before showing the prompt again.

Usage:
    from grepshell_lib.editor import cmd_open

    result = cmd_open("/tmp/notes.txt", line=12)
    if not result["success"]:
        print(result["error"])
"""

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional

from grepshell_lib.config import EDITOR_CANDIDATES

logger = logging.getLogger(__name__)


class EditorError(Exception):
    """Editor launch failed."""
    pass


def find_editor() -> list[str]:
    """
    $EDITOR split into words, or the first fallback editor on PATH.

    Raises:
        EditorError: If neither is available
    """
    editor = os.environ.get("EDITOR", "").strip()
    if editor:
        return editor.split()
    for name in EDITOR_CANDIDATES:
        if shutil.which(name):
            return [name]
    raise EditorError("No editor found. Set $EDITOR")


def goto_line_args(editor: str, filepath: Path, line: Optional[int]) -> list[str]:
    """Arguments that open ``filepath`` at ``line`` in ``editor``."""
    if not line:
        return [str(filepath)]
    if Path(editor).name.lower() == "code":
        return ["--wait", "-g", f"{filepath}:{line}"]
    # vi, emacs, nano and most terminal editors understand +N
    return [f"+{line}", str(filepath)]


def get_editor_command(filepath: Path, line: Optional[int] = None) -> list[str]:
    """
    Build editor command with line number support.

    Args:
        filepath: Path to file
        line: Optional line number

    Returns:
        Command list for subprocess

    Raises:
        EditorError: If no editor can be found
    """
    parts = find_editor()
    return parts + goto_line_args(parts[0], filepath, line)


def cmd_open(filepath: str, line: Optional[int] = None) -> dict:
    """
    Open a file in the editor and wait for it to exit.

    The file does not have to exist; editors create new files.

    Returns:
        Dictionary with:
        - success: bool
        - filepath: str
        - editor: str or None
        - line: int or None
        - error: str or None
    """
    path = Path(filepath).expanduser()

    try:
        cmd = get_editor_command(path, line)
    except EditorError as e:
        return {
            "success": False,
            "filepath": str(path),
            "editor": None,
            "line": line,
            "error": str(e),
        }

    logger.debug(f"Running editor: {cmd}")
    try:
        subprocess.run(cmd)
    except OSError as e:
        return {
            "success": False,
            "filepath": str(path),
            "editor": cmd[0],
            "line": line,
            "error": f"Editor launch failed: {e}",
        }

    return {
        "success": True,
        "filepath": str(path),
        "editor": cmd[0],
        "line": line,
        "error": None,
    }
