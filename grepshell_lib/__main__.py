#!/usr/bin/env python3
"""
grepshell entry point.

With no command, starts the interactive shell. With a command, runs just
that command against the lists saved by earlier runs and saves them again,
so grepshell can be used straight from the host shell:

    grepshell s Rabbit        # search, number the files found
    grepshell fs 0            # show file 0's results again
    grepshell v 0             # open it in $EDITOR
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from colorama import just_fix_windows_console

from grepshell_lib import __version__
from grepshell_lib.colors import format_err
from grepshell_lib.config import (
    STATE_DIR_ENV,
    ShellConfig,
    check_dependencies,
    ensure_state_dir,
    load_config,
    resolve_state_dir,
)
from grepshell_lib.filelists import FileListStore
from grepshell_lib.shell import GrepShell
from grepshell_lib.state import StateFileError, load_state, save_state

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grepshell",
        description="Interactive grep/find shell with numbered file lists",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
    # Start the shell
    grepshell

    # Run one command and keep the results for the next one
    grepshell s "White Rabbit" Hatter
    grepshell fl

    # Keep state somewhere else (or set ${STATE_DIR_ENV})
    grepshell --state-dir /tmp/gs s Rabbit
        """,
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command and arguments to run once instead of starting the shell",
    )
    parser.add_argument(
        "--state-dir",
        default=None,
        help=f"Directory for saved lists and config.json (default: ${STATE_DIR_ENV} or ~/.grepshell)",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Check that grep, find and an editor are available",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def join_command(words: list[str], delimiter: str) -> str:
    """Rebuild a command line, re-delimiting arguments the host shell grouped."""
    parts = []
    for word in words:
        if any(char.isspace() for char in word) and delimiter not in word:
            word = f"{delimiter}{word}{delimiter}"
        parts.append(word)
    return " ".join(parts)


def run_single(words: list[str], config: ShellConfig, state_dir: Path) -> int:
    """
    Load state, run one command, save state.

    Returns:
        Exit status: 1 if the state file cannot be written, else 0
    """
    store = FileListStore()
    shell = GrepShell(store, config, state_dir, single_command=True)

    try:
        load_state(store, state_dir)
    except StateFileError as e:
        print(format_err(str(e)))

    shell.onecmd(join_command(words, config.delimiter))

    try:
        save_state(store, state_dir)
    except StateFileError as e:
        print(format_err(str(e)))
        return 1
    return 0


def print_dependencies() -> int:
    deps = check_dependencies()
    print("\n=== Dependency Check ===")
    print(f"All satisfied: {deps['all_satisfied']}")
    if deps["missing"]:
        print(f"Missing tools: {', '.join(deps['missing'])}")
    for name, status in deps["details"].items():
        symbol = "[OK]" if status["installed"] else "[MISSING]"
        print(f"  {symbol} {name} ({status['used_by']})")
    print(f"  Editor: {deps['editor'] or '[NONE] set $EDITOR'}")
    return 0 if deps["all_satisfied"] else 1


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s"
    )
    just_fix_windows_console()

    if args.check:
        return print_dependencies()

    state_dir = resolve_state_dir(args.state_dir)
    ensure_state_dir(state_dir)
    config = load_config(state_dir)

    if args.command:
        return run_single(args.command, config, state_dir)

    shell = GrepShell(config=config, state_dir=state_dir)
    try:
        shell.cmdloop()
    except KeyboardInterrupt:
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
