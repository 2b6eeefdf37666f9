"""
Process Invocation - Run grep, find and host shell commands.

Every external tool is called with an argument list (never a shell string,
except for commands the user typed for the host shell) and its stdout is
returned as a list of lines. Nothing in this module touches the file lists.

Searches run on a single worker thread while the prompt waits:

    lines = run_in_background(run_grep, ["Rabbit"], 2, on_wait=show_dots)

Search pattern: all terms are joined with grep's basic-regex alternation,
so `s Rabbit Hatter` finds lines matching either term.
"""

import logging
import subprocess
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# Constants
DEFAULT_TIMEOUT = 300  # seconds, for grep and find
SHELL_TIMEOUT = 600
BRE_ALTERNATION = "\\|"


class SearchError(Exception):
    """Base exception for search errors."""
    pass


class GrepNotFoundError(SearchError):
    """grep binary not found in PATH."""
    pass


class EmptyQueryError(SearchError):
    """No usable search terms were given."""
    pass


def check_tool(binary: str) -> bool:
    """Check if a tool is installed and answers --version."""
    try:
        subprocess.run(
            [binary, "--version"],
            capture_output=True,
            check=True,
            timeout=5
        )
        return True
    except (subprocess.CalledProcessError, FileNotFoundError, subprocess.TimeoutExpired):
        return False


def check_grep() -> bool:
    return check_tool("grep")


def validate_terms(terms: list[str]) -> list[str]:
    """
    Drop empty terms.

    Raises:
        EmptyQueryError: If nothing is left
    """
    terms = [term for term in terms if term and term.strip()]
    if not terms:
        raise EmptyQueryError("No search parameters provided.")
    return terms


def build_pattern(terms: list[str]) -> str:
    return BRE_ALTERNATION.join(terms)


def grep_args(terms: list[str], context: int = 0, files: Optional[list[str]] = None) -> list[str]:
    """
    Build the grep command line.

    Without ``files`` grep recurses from the current directory; with them
    it searches only those files and always prints file names. -Z ends
    each file name with a NUL byte so the annotator can split it off.
    """
    args = ["grep", "-n", "-Z", "-s", "-C", str(context), "-e", build_pattern(terms)]
    if files:
        args.extend(["-H", "--"])
        args.extend(files)
    else:
        args.extend(["-r", "."])
    return args


def run_command(args: list[str], timeout: int = DEFAULT_TIMEOUT) -> list[str]:
    """
    Run a tool and return its stdout lines.

    grep and find use non-zero exit codes for "nothing found"; only a
    missing binary or a timeout is an error here.
    """
    logger.debug(f"Running: {args}")
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout
        )
    except FileNotFoundError:
        raise SearchError(f"{args[0]} not found in PATH")
    except subprocess.TimeoutExpired:
        raise SearchError(f"{args[0]} timed out after {timeout} seconds")

    if result.returncode > 1:
        logger.debug(f"{args[0]} exited with {result.returncode}: {result.stderr.strip()}")
    return result.stdout.splitlines()


def run_grep(
    terms: list[str],
    context: int = 0,
    files: Optional[list[str]] = None,
    timeout: int = DEFAULT_TIMEOUT,
) -> list[str]:
    """
    Search for any of ``terms`` with grep -n.

    Args:
        terms: Search terms, joined into one alternation
        context: Lines of context around each match
        files: Restrict the search to these files
        timeout: Seconds before giving up

    Returns:
        Raw grep output lines

    Raises:
        GrepNotFoundError: If grep is not installed
        EmptyQueryError: If no terms are given
    """
    terms = validate_terms(terms)
    if not check_grep():
        raise GrepNotFoundError("grep not found. Install it with your package manager")
    return run_command(grep_args(terms, context, files), timeout)


def run_find(name: str, timeout: int = DEFAULT_TIMEOUT) -> list[str]:
    """find . -name NAME"""
    if not name:
        raise EmptyQueryError("No search parameters provided.")
    return run_command(["find", ".", "-name", name], timeout)


def files_of_type(extensions: list[str], directory: str = ".") -> list[str]:
    """
    Files named *.EXT in ``directory`` (not recursive), sorted per extension.

    Raises:
        SearchError: If an extension is not a usable glob pattern
    """
    found = []
    for extension in extensions:
        extension = extension.lstrip(".")
        if not extension:
            continue
        try:
            matches = sorted(Path(directory).glob(f"*.{extension}"))
        except ValueError as e:
            raise SearchError(f"Invalid file extension {extension!r}: {e}")
        found.extend(str(path) for path in matches if path.is_file())
    return found


def run_in_background(func: Callable, *args, on_wait: Optional[Callable] = None):
    """
    Run ``func`` on one worker thread and block until it returns.

    ``on_wait`` runs on the calling thread once the work is submitted.
    Exceptions raised by ``func`` propagate to the caller.
    """
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(func, *args)
        if on_wait is not None:
            on_wait()
        return future.result()


def run_shell(command: str, timeout: int = SHELL_TIMEOUT) -> str:
    """
    Pass a line the shell did not recognise to the host shell.

    stdout is captured and returned; stderr goes straight to the terminal.
    """
    logger.debug(f"Host shell: {command}")
    try:
        result = subprocess.run(
            command,
            shell=True,
            stdout=subprocess.PIPE,
            text=True,
            errors="replace",
            timeout=timeout
        )
    except subprocess.TimeoutExpired:
        raise SearchError(f"Command timed out after {timeout} seconds")
    return result.stdout
