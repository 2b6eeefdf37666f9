#!/usr/bin/env python3
"""
Config module for the grepshell session.

Handles:
- Session constants (context lines, hcat pacing, delimiter, history depth)
- Per-key validation for the `constants` command
- State directory resolution and creation
- Optional overrides from <state dir>/config.json
- External tool checking (grep, find, an editor)

Usage:
    from grepshell_lib.config import ShellConfig, load_config, resolve_state_dir

    state_dir = resolve_state_dir()
    config = load_config(state_dir)
    result = config.set("context", "2")
    if not result["success"]:
        print(result["error"])
"""

import json
import logging
import os
import shutil
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional, Union

from grepshell_lib.filelists import is_number

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.json"
STATE_DIR_ENV = "GREPSHELL_STATE_DIR"
DEFAULT_STATE_DIR = "~/.grepshell"

# Default session constants
DEFAULT_CONFIG = {
    "context": 0,            # grep -C
    "scroll_distance": 20,   # lines per "m" in hcat
    "progress_bar": 0,       # hcat: 0 = status line, 1 = bar
    "progress_char": "#",
    "delimiter": '"',        # groups multi-word arguments
    "history_max": 16,
    "columns": "auto",       # ls columns
}

# Names used by older kgrep setups
KEY_ALIASES = {
    "mDist": "scroll_distance",
    "progressBar": "progress_bar",
    "progressChar": "progress_char",
    "delineationChar": "delimiter",
    "lineHistMax": "history_max",
}

# Binary name -> what it is used for
REQUIRED_TOOLS = {
    "grep": "search and searchlist",
    "find": "find",
}
EDITOR_CANDIDATES = ["vim", "nvim", "nano", "emacs"]


class ConfigError(Exception):
    """A constant was given a value it cannot take."""
    pass


def _whole_number(key: str, value: Any, minimum: int) -> int:
    if isinstance(value, bool) or not is_number(value):
        raise ConfigError(f"{key} must be set to a numeric value")
    number = float(value)
    if not number.is_integer() or number < minimum:
        raise ConfigError(f"{key} must be a whole number no smaller than {minimum}")
    return int(number)


def _non_negative(key: str, value: Any) -> int:
    return _whole_number(key, value, 0)


def _positive(key: str, value: Any) -> int:
    return _whole_number(key, value, 1)


def _flag(key: str, value: Any) -> int:
    if is_number(value) and float(value) in (0.0, 1.0):
        return int(float(value))
    raise ConfigError(f"{key} must be set to either 1 (enabled) or 0 (disabled)")


def _single_char(key: str, value: Any) -> str:
    if not isinstance(value, str) or len(value) != 1:
        raise ConfigError(f"{key} must be a single character")
    return value


def _columns(key: str, value: Any) -> Union[int, str]:
    if value == "auto":
        return value
    try:
        return _positive(key, value)
    except ConfigError:
        raise ConfigError(f'{key} must be set to either "auto" or a positive number')


VALIDATORS = {
    "context": _non_negative,
    "scroll_distance": _positive,
    "progress_bar": _flag,
    "progress_char": _single_char,
    "delimiter": _single_char,
    "history_max": _non_negative,
    "columns": _columns,
}


@dataclass
class ShellConfig:
    """Mutable session constants."""
    context: int = DEFAULT_CONFIG["context"]
    scroll_distance: int = DEFAULT_CONFIG["scroll_distance"]
    progress_bar: int = DEFAULT_CONFIG["progress_bar"]
    progress_char: str = DEFAULT_CONFIG["progress_char"]
    delimiter: str = DEFAULT_CONFIG["delimiter"]
    history_max: int = DEFAULT_CONFIG["history_max"]
    columns: Union[int, str] = DEFAULT_CONFIG["columns"]

    def set(self, key: str, value: Any) -> dict:
        """
        Validate and store one constant.

        Args:
            key: Constant name (or one of its older aliases)
            value: New value, usually the string typed at the prompt

        Returns:
            Dictionary with:
            - success: bool
            - key: canonical key name
            - value: stored value (or the rejected input)
            - error: str or None
        """
        name = KEY_ALIASES.get(key, key)
        result = {"success": False, "key": name, "value": value, "error": None}

        validator = VALIDATORS.get(name)
        if validator is None:
            result["error"] = f"Not a valid parameter: {key}"
            return result

        try:
            parsed = validator(name, value)
        except ConfigError as e:
            result["error"] = str(e)
            return result

        setattr(self, name, parsed)
        logger.debug(f"Constant {name} set to {parsed!r}")
        result["success"] = True
        result["value"] = parsed
        return result

    def to_dict(self) -> dict:
        return asdict(self)


def resolve_state_dir(cli_value: Optional[str] = None) -> Path:
    """--state-dir, then $GREPSHELL_STATE_DIR, then ~/.grepshell."""
    raw = cli_value or os.environ.get(STATE_DIR_ENV) or DEFAULT_STATE_DIR
    return Path(raw).expanduser()


def ensure_state_dir(state_dir: Path) -> bool:
    """
    Create the state directory and a default config.json.

    An existing config.json is never overwritten.

    Returns:
        True if the directory is usable, False otherwise
    """
    try:
        state_dir.mkdir(parents=True, exist_ok=True)
        config_path = state_dir / CONFIG_FILENAME
        if not config_path.exists():
            with open(config_path, "w") as f:
                json.dump(DEFAULT_CONFIG, f, indent=2)
        return True
    except OSError as e:
        logger.warning(f"Could not prepare state directory {state_dir}: {e}")
        return False


def load_config(state_dir: Optional[Path] = None) -> ShellConfig:
    """
    Build a ShellConfig, applying overrides from config.json if present.

    Entries that fail validation are logged and skipped.
    """
    config = ShellConfig()
    if state_dir is None:
        return config

    config_path = Path(state_dir) / CONFIG_FILENAME
    if not config_path.exists():
        return config

    try:
        with open(config_path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Ignoring unreadable {config_path}: {e}")
        return config

    if not isinstance(data, dict):
        logger.warning(f"Ignoring {config_path}: expected a JSON object")
        return config

    for key, value in data.items():
        result = config.set(key, value)
        if not result["success"]:
            logger.warning(f"Skipping config entry {key}: {result['error']}")

    return config


def check_dependencies() -> dict:
    """
    Check the external tools the shell drives.

    Returns:
        Dictionary with:
        - all_satisfied: bool - True if grep and find are available
        - missing: list - required binaries that were not found
        - editor: str or None - editor that `vim` would launch
        - details: dict - path of each checked binary
    """
    result = {
        "all_satisfied": True,
        "missing": [],
        "editor": None,
        "details": {},
    }

    for binary, purpose in REQUIRED_TOOLS.items():
        path = shutil.which(binary)
        result["details"][binary] = {"installed": path is not None, "path": path, "used_by": purpose}
        if not path:
            result["missing"].append(binary)
            result["all_satisfied"] = False

    editor = os.environ.get("EDITOR", "").strip()
    if editor:
        result["editor"] = editor
    else:
        for candidate in EDITOR_CANDIDATES:
            if shutil.which(candidate):
                result["editor"] = candidate
                break

    return result
