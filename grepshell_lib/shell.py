#!/usr/bin/env python3
"""
Shell - The interactive grepshell command loop.

Each input line is a verb plus arguments. Verbs come in a long and a short
form (`search`/`s`, `filelist`/`fl`, ...). Anything that is not a known
verb is handed to the host shell and its output printed, so `make` or
`git status` keep working from the grepshell prompt.

Arguments are split on whitespace; the configured delimiter (a double quote
by default) joins several words into one argument.

Every error raised by a command is caught here, printed in the error color,
and the loop carries on. Only `quit` or end of input leaves the shell.

Usage:
    from grepshell_lib.shell import GrepShell

    GrepShell().cmdloop()

    shell = GrepShell(single_command=True)
    shell.onecmd("s Rabbit")
"""

import glob
import logging
import os
import re
from cmd import Cmd
from pathlib import Path
from typing import Optional

from grepshell_lib.annotate import SearchResultAnnotator
from grepshell_lib.arguments import DelimiterImbalanceError, group_arguments
from grepshell_lib.colors import (
    format_err,
    format_file,
    format_num,
    format_prompt,
    format_text,
)
from grepshell_lib.config import ShellConfig, resolve_state_dir
from grepshell_lib.editor import cmd_open
from grepshell_lib.filelists import (
    PRIMARY,
    FileListError,
    FileListStore,
    FilePath,
    MissingArgumentsError,
    NoListsAvailableError,
    is_number,
    parse_ref,
)
from grepshell_lib.listing import cmd_ls
from grepshell_lib.search import (
    SearchError,
    files_of_type,
    run_find,
    run_grep,
    run_in_background,
    run_shell,
    validate_terms,
)
from grepshell_lib.state import StateFileError, load_state, save_state
from grepshell_lib.viewer import CLEAR_LINE, HighlightViewer, ViewerError

try:
    import readline
except ImportError:
    readline = None

logger = logging.getLogger(__name__)

HISTORY_FILENAME = "history"
REPLAY_RE = re.compile(r"^r\s+(\d+)$")

# Short form -> command name
ALIASES = {
    "s": "search",
    "sl": "searchlist",
    "f": "find",
    "fl": "filelist",
    "fls": "filelistnonprimary",
    "fll": "filelistlist",
    "fc": "filelistcreate",
    "fcs": "filelistcreatenonprimary",
    "fa": "filelistadd",
    "fas": "filelistaddnonprimary",
    "fr": "filelistremove",
    "frs": "filelistremovenonprimary",
    "ft": "filelisttype",
    "fs": "filespecific",
    "us": "usenonprimary",
    "ef": "fileexists",
    "el": "filelistexists",
    "v": "vim",
    "hcat": "highlightcat",
    "list": "ls",
    "con": "constants",
    "c": "commandlist",
    "h": "help",
    "?": "help",
    "q": "quit",
}

# Command name -> (short form, one-line description)
COMMAND_HELP = {
    "search": ("s", "Search recursively for any of the terms and number the files found."),
    "searchlist": ("sl", "Search only the files of list L: searchlist L term..."),
    "find": ("f", "find . -name PATTERN; the files found become the primary list."),
    "filelist": ("fl", "Show the primary list with file numbers."),
    "filelistnonprimary": ("fls", "Show list L."),
    "filelistlist": ("fll", "Show every file list and how many files it holds."),
    "filelistcreate": ("fc", "Rebuild the primary list from file numbers and paths."),
    "filelistcreatenonprimary": ("fcs", "Create list L from file numbers and paths."),
    "filelistadd": ("fa", "Add files to the primary list."),
    "filelistaddnonprimary": ("fas", "Add files to list L."),
    "filelistremove": ("fr", "Remove file numbers from the primary list."),
    "filelistremovenonprimary": ("frs", "Remove file numbers from list L."),
    "filelisttype": ("ft", "Make the primary list every *.EXT file in this directory."),
    "filespecific": ("fs", "Show the search results for file numbers again (* for all)."),
    "usenonprimary": ("us", "Swap list L with the primary list. Results are not updated."),
    "fileexists": ("ef", "Check that files exist in list L."),
    "filelistexists": ("el", "Check that list L exists."),
    "vim": ("v", "Open a file number or path in $EDITOR, optionally at a line."),
    "highlightcat": ("hcat", "Page through a file with terms highlighted (n/m/a/q)."),
    "ls": ("list", "List this directory, colored by modification date."),
    "cd": ("", "Change directory."),
    "pwd": ("", "Print the current directory."),
    "constants": ("con", "Change a session constant: constants KEY VALUE."),
    "commandlist": ("c", "Show recent commands; rerun one with r N."),
    "save": ("", "Save the file lists to the state directory."),
    "load": ("", "Load the file lists from the state directory."),
    "help": ("h", "Show this help, or help COMMAND for details."),
    "quit": ("q", "Leave the shell."),
}

COMMAND_DETAILS = {
    "search": (
        "Every term is searched for at once and highlighted in its own color:\n"
        "\n"
        "    s Rabbit \"pink eyes\"\n"
        "    0  ./alice.txt\n"
        "        12  the White Rabbit with pink eyes\n"
        "\n"
        "File numbers stay valid until the next search, find or filelistcreate."
    ),
    "filelistcreate": (
        "Numbers copy files from the current primary list, along with their\n"
        "search results; anything else is taken as a path:\n"
        "\n"
        "    fc 2 0 ~/todo.txt"
    ),
    "filelistcreatenonprimary": (
        "Numbers copy files from the primary list; anything else is a path:\n"
        "\n"
        "    fcs 3 0 1 /etc/hosts"
    ),
    "usenonprimary": (
        "The stored search results stay keyed by file number, so after a\n"
        "swap filespecific may show results for the previous primary list."
    ),
    "constants": (
        "Keys: context, scroll_distance (mDist), progress_bar (progressBar),\n"
        "progress_char (progressChar), delimiter (delineationChar),\n"
        "history_max (lineHistMax), columns."
    ),
    "highlightcat": (
        "hcat FILE term...  FILE is a file number or a path.\n"
        "n shows one line, m a screenful, a the rest of the file, q quits."
    ),
}

FILE_COMMANDS = {
    "vim", "highlightcat", "filelistcreate", "filelistcreatenonprimary",
    "filelistadd", "filelistaddnonprimary", "ls",
}

COMMAND_ERRORS = (
    FileListError,
    SearchError,
    StateFileError,
    ViewerError,
    DelimiterImbalanceError,
)


def resolve_verb(verb: str) -> Optional[str]:
    """Command name for a verb or short form, None if it is not a command."""
    name = ALIASES.get(verb, verb)
    return name if name in COMMAND_HELP else None


class GrepShell(Cmd):
    """Command loop over a FileListStore."""

    intro = "\n".join([
        format_text("Welcome to the grepshell console."),
        format_text("Remember, s to search, and c and r to view and redo commands."),
        format_text("And of course, help to get more detailed instructions."),
    ])

    def __init__(
        self,
        store: Optional[FileListStore] = None,
        config: Optional[ShellConfig] = None,
        state_dir: Optional[Path] = None,
        single_command: bool = False,
    ):
        super().__init__()
        self.prompt = format_prompt()
        self.store = store if store is not None else FileListStore()
        self.config = config or ShellConfig()
        self.state_dir = Path(state_dir) if state_dir else resolve_state_dir()
        self.single_command = single_command
        self.annotator = SearchResultAnnotator(self.store)
        self.history: list[str] = []

    # -- dispatch -----------------------------------------------------------

    def onecmd(self, line: str) -> bool:
        line = line.strip()
        if not line:
            return False
        if line == "EOF":
            return self.do_EOF("")

        verb, _, rest = line.partition(" ")
        name = resolve_verb(verb)
        if name is None:
            if self.single_command:
                logger.info(f"Ignoring unknown command: {verb}")
                return False
            return self.default(line)

        self.add_history(line)
        logger.debug(f"Dispatching {name} {rest!r}")
        try:
            return bool(getattr(self, f"do_{name}")(rest))
        except COMMAND_ERRORS as e:
            print(format_err(str(e)))
            return False

    def precmd(self, line: str) -> str:
        """Expand `r N` into history entry N."""
        match = REPLAY_RE.match(line.strip())
        if not match:
            return line
        number = int(match.group(1))
        position = len(self.history) - number - 1
        if not 0 <= position < len(self.history):
            print(format_err(f"No command numbered {number} in history."))
            return ""
        line = self.history[position]
        print(self.prompt + format_text(line))
        return line

    def emptyline(self) -> bool:
        return False

    def default(self, line: str) -> bool:
        """Anything unrecognised runs in the host shell."""
        try:
            output = run_shell(line)
        except SearchError as e:
            print(format_err(str(e)))
            return False
        if output:
            print(output.rstrip("\n"))
        return False

    def add_history(self, line: str) -> None:
        self.history.append(line)
        limit = self.config.history_max
        self.history = self.history[-limit:] if limit else []

    def _args(self, arg: str) -> list[str]:
        return group_arguments(arg.split(), self.config.delimiter)

    # -- readline -----------------------------------------------------------

    def preloop(self) -> None:
        if readline is None:
            return
        readline.parse_and_bind("tab: complete")
        try:
            readline.read_history_file(str(self.state_dir / HISTORY_FILENAME))
        except OSError:
            pass

    def postloop(self) -> None:
        if readline is None:
            return
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            readline.write_history_file(str(self.state_dir / HISTORY_FILENAME))
        except OSError as e:
            logger.debug(f"Could not write readline history: {e}")

    def completenames(self, text, *ignored):
        names = set(COMMAND_HELP) | set(ALIASES)
        return sorted(name for name in names if name.startswith(text))

    def completedefault(self, text, line, begidx, endidx):
        name = resolve_verb(line.split()[0]) if line.split() else None
        if name == "cd":
            return [path + "/" for path in glob.glob(text + "*") if os.path.isdir(path)]
        if name in FILE_COMMANDS:
            return [path + "/" if os.path.isdir(path) else path for path in glob.glob(text + "*")]
        return []

    # -- output helpers -----------------------------------------------------

    def _print_list(self, list_index) -> None:
        entries = self.store.list_one(list_index)
        if not entries:
            print(format_text(f"File list {list_index} is empty."))
        for index, path in entries:
            print(f"{format_num(f'{index}.')}\t{format_file(path)}")

    def _waiting(self) -> None:
        print(format_text("Searching..."), end="", flush=True)

    def _done_waiting(self) -> None:
        print(f"\r{CLEAR_LINE}", end="")

    def _resolve_primary(self, token: str) -> str:
        """Path for a primary-list file number, or the token itself as a path."""
        ref = parse_ref(token)
        if isinstance(ref, FilePath):
            return ref.path
        self.store.check_files(PRIMARY, token)
        return self.store.primary[ref.index]

    # -- search -------------------------------------------------------------

    def do_search(self, arg: str) -> None:
        terms = validate_terms(self._args(arg))
        try:
            raw = run_in_background(run_grep, terms, self.config.context, on_wait=self._waiting)
        finally:
            self._done_waiting()
        self.annotator.annotate(raw, terms)

    def do_searchlist(self, arg: str) -> None:
        args = self._args(arg)
        if len(args) < 2:
            raise MissingArgumentsError(2, len(args), "a file list index and search terms")
        files = [path for _, path in self.store.list_one(args[0])]
        if not files:
            print(format_err("No files in file list."))
            return
        terms = validate_terms(args[1:])
        try:
            raw = run_in_background(run_grep, terms, self.config.context, files, on_wait=self._waiting)
        finally:
            self._done_waiting()
        self.annotator.annotate(raw, terms)

    def do_find(self, arg: str) -> None:
        args = self._args(arg)
        paths = run_find(args[0] if args else "")
        self.annotator.record_find_results(paths)

    # -- file lists ---------------------------------------------------------

    def do_filelist(self, arg: str) -> None:
        self._print_list(PRIMARY)

    def do_filelistnonprimary(self, arg: str) -> None:
        args = self._args(arg)
        if not args:
            raise MissingArgumentsError(1, 0, "a file list index")
        self._print_list(self.store.check_list(args[0]))

    def do_filelistlist(self, arg: str) -> None:
        lists = self.store.list_all_lists()
        if not lists:
            raise NoListsAvailableError()
        for list_index, length in lists:
            print(
                format_text("File list ") + format_num(list_index)
                + format_text(" has ") + format_num(length) + format_text(" files.")
            )

    def do_filelistcreate(self, arg: str) -> None:
        self.store.create_primary(*self._args(arg))
        self._print_list(PRIMARY)

    def do_filelistcreatenonprimary(self, arg: str) -> None:
        args = self._args(arg)
        if len(args) < 2:
            raise MissingArgumentsError(2, len(args), "a file list index and one or more files")
        self.store.create_at(args[0], *args[1:])
        self._print_list(args[0])

    def do_filelistadd(self, arg: str) -> None:
        args = self._args(arg)
        if not args:
            raise MissingArgumentsError(1, 0, "one or more files")
        self.store.add_to(PRIMARY, *args)
        self._print_list(PRIMARY)

    def do_filelistaddnonprimary(self, arg: str) -> None:
        args = self._args(arg)
        if len(args) < 2:
            raise MissingArgumentsError(2, len(args), "a file list index and one or more files")
        self.store.add_to(args[0], *args[1:])
        self._print_list(args[0])

    def _remove(self, list_index, indices: list[str]) -> None:
        for token in self.store.remove_from(list_index, *indices):
            print(format_err(f"File {token} is not in file list {list_index}."))

    def do_filelistremove(self, arg: str) -> None:
        args = self._args(arg)
        if not args:
            raise MissingArgumentsError(1, 0, "one or more file numbers")
        self._remove(PRIMARY, args)

    def do_filelistremovenonprimary(self, arg: str) -> None:
        args = self._args(arg)
        if len(args) < 2:
            raise MissingArgumentsError(2, len(args), "a file list index and one or more file numbers")
        self._remove(args[0], args[1:])

    def do_filelisttype(self, arg: str) -> None:
        extensions = self._args(arg)
        if not extensions:
            raise MissingArgumentsError(1, 0, "one or more file extensions")
        self.store.replace_primary(files_of_type(extensions))
        self._print_list(PRIMARY)

    def do_filespecific(self, arg: str) -> None:
        args = self._args(arg)
        if not args:
            print(format_err("Supply file numbers for details."))
            return
        for report in self.store.file_specific(*args):
            if not report.valid:
                print(format_err(f"File number {report.token} is invalid."))
                continue
            print(format_num("File: ") + format_file(report.path))
            if report.lines is None:
                print(format_text("No results."))
                continue
            for line in report.lines:
                print(line)

    def do_usenonprimary(self, arg: str) -> None:
        args = self._args(arg)
        if not args:
            raise MissingArgumentsError(1, 0, "a file list index")
        self.store.swap_primary(args[0])
        self._print_list(PRIMARY)

    def do_fileexists(self, arg: str) -> None:
        args = self._args(arg)
        if len(args) < 2:
            raise MissingArgumentsError(2, len(args), "a file list index and one or more files")
        list_index = self.store.check_files(args[0], *args[1:])
        print(format_text(f"All files exist in file list {list_index}."))

    def do_filelistexists(self, arg: str) -> None:
        args = self._args(arg)
        if not args:
            raise MissingArgumentsError(1, 0, "a file list index")
        list_index = self.store.check_list(args[0])
        print(format_text(f"File list {list_index} exists."))

    # -- files --------------------------------------------------------------

    def do_vim(self, arg: str) -> None:
        args = self._args(arg)
        if not args:
            print(format_text("Supply a file/file number."))
            return
        path = self._resolve_primary(args[0])
        line = None
        if len(args) > 1 and is_number(args[1]) and float(args[1]).is_integer():
            line = int(float(args[1]))
        result = cmd_open(path, line)
        if not result["success"]:
            print(format_err(result["error"]))

    def do_highlightcat(self, arg: str) -> None:
        args = self._args(arg)
        if len(args) < 2:
            raise MissingArgumentsError(2, len(args), "a file and one or more terms")
        path = self._resolve_primary(args[0])
        HighlightViewer(path, args[1:], self.config).run()

    def do_ls(self, arg: str) -> None:
        args = self._args(arg)
        cmd_ls(self.store, self.config, args[0] if args else None)

    def do_cd(self, arg: str) -> None:
        args = self._args(arg)
        target = os.path.expanduser(args[0] if args else "~")
        try:
            os.chdir(target)
        except OSError as e:
            print(format_err(f"cd: {e}"))
            return
        self.do_pwd("")

    def do_pwd(self, arg: str) -> None:
        print(format_file(os.getcwd()))

    # -- session ------------------------------------------------------------

    def do_constants(self, arg: str) -> None:
        args = self._args(arg)
        if len(args) < 2:
            print(format_err("Need more parameters."))
            print(format_text("Available options are: " + ", ".join(self.config.to_dict()) + "."))
            return
        result = self.config.set(args[0], args[1])
        if not result["success"]:
            print(format_err(result["error"]))
            return
        print(format_text(f"{result['key']} set to ") + format_num(result["value"]))

    def do_commandlist(self, arg: str) -> None:
        number = len(self.history) - 1
        for line in self.history:
            print(f"{format_num(number)}.\t{format_file(line)}")
            number -= 1

    def do_save(self, arg: str) -> None:
        path = save_state(self.store, self.state_dir)
        print(format_text("Saved to ") + format_file(path))

    def do_load(self, arg: str) -> None:
        if load_state(self.store, self.state_dir):
            print(format_text("Loaded file lists."))
        else:
            print(format_text("No saved state to load."))

    def do_help(self, arg: str) -> None:
        args = arg.split()
        if args:
            name = resolve_verb(args[0])
            if name is None:
                print(format_err(f"No help for {args[0]}."))
                return
            short, summary = COMMAND_HELP[name]
            print(f"\n     {format_text(name)}" + (f" ({format_text(short)})" if short else ""))
            print(f"     {summary}")
            detail = COMMAND_DETAILS.get(name)
            if detail:
                print()
                for text in detail.splitlines():
                    print(f"     {text}")
            print()
            return

        print("\n     Each command works from the current directory.")
        print("     Command (short form): description. 'help COMMAND' for details.\n")
        for name, (short, summary) in COMMAND_HELP.items():
            label = format_text(name) + (f"({format_text(short)})" if short else "")
            print(f"     {label}: {summary}")
        print()

    def do_quit(self, arg: str) -> bool:
        return True

    def do_EOF(self, arg: str) -> bool:
        print()
        return True
