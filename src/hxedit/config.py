"""
Configuration loading.

Settings come from a TOML file merged over built-in defaults. Problems with
the file (missing, unreadable, malformed, bad values) are logged and the
defaults are used instead; loading never raises.
"""

import copy
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Final, Optional

import toml

from .app.modes import EditMode, ViewMode
from .core.encoding import CharEncoding

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR: Final[str] = "HXEDIT_CONFIG"
DEFAULT_CONFIG_PATH: Final[str] = os.path.join("~", ".config", "hxedit", "config.toml")
DEFAULT_LOG_FILE: Final[str] = os.path.join("~", ".cache", "hxedit", "hxedit.log")

DEFAULTS: Final[Dict[str, Dict[str, Any]]] = {
    "editor": {
        "bytes_per_row": 16,
        "encoding": "UTF-8",
        "edit_mode": "overwrite",
        "view": "hex",
        "clipboard": True,
    },
    "logging": {
        "level": "INFO",
        "file": DEFAULT_LOG_FILE,
        "max_bytes": 1024 * 1024,
        "backup_count": 3,
    },
}

DEFAULTS_FOR: Final[Dict[str, Any]] = {
    key: value for section in DEFAULTS.values() for key, value in section.items()
}

LOG_LEVELS: Final = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class EditorConfig:
    """Resolved editor settings."""
    bytes_per_row: int = 16
    encoding: CharEncoding = CharEncoding.UTF8
    edit_mode: EditMode = EditMode.OVERWRITE
    view_mode: ViewMode = ViewMode.HEX
    clipboard: bool = True
    log_level: str = "INFO"
    log_file: str = DEFAULT_LOG_FILE
    log_max_bytes: int = 1024 * 1024
    log_backup_count: int = 3


def resolve_config_path(path: Optional[str] = None) -> str:
    """Pick the config file: explicit path, then $HXEDIT_CONFIG, then the user default."""

    chosen = path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    return os.path.expanduser(chosen)


def merge_config(defaults: Dict[str, Dict[str, Any]], user: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Overlay known sections of ``user`` onto a copy of ``defaults``."""

    merged = copy.deepcopy(defaults)
    for section, values in user.items():
        if section not in merged:
            logger.warning("Ignoring unknown config section [%s]", section)
            continue
        if not isinstance(values, dict):
            logger.warning("Config section [%s] is not a table", section)
            continue
        merged[section].update(values)

    return merged


def _pick(section: Dict[str, Any], key: str, check, convert=lambda value: value) -> Any:
    """Convert a config value, falling back to the default when it is invalid."""

    value = section.get(key)
    try:
        if check(value):
            return convert(value)
    except (TypeError, ValueError):
        pass

    logger.warning("Invalid config value %s=%r, using default", key, value)
    return convert(DEFAULTS_FOR[key])


def build_config(data: Dict[str, Dict[str, Any]]) -> EditorConfig:
    editor = data["editor"]
    logging_section = data["logging"]

    return EditorConfig(
        bytes_per_row=_pick(editor, "bytes_per_row", lambda v: isinstance(v, int) and 1 <= v <= 64),
        encoding=_pick(editor, "encoding", lambda v: isinstance(v, str), CharEncoding.from_name),
        edit_mode=_pick(
            editor, "edit_mode",
            lambda v: isinstance(v, str) and v.lower() in ("overwrite", "insert"),
            lambda v: EditMode.INSERT if v.lower() == "insert" else EditMode.OVERWRITE,
        ),
        view_mode=_pick(
            editor, "view",
            lambda v: isinstance(v, str) and v.lower() in ("hex", "text"),
            lambda v: ViewMode.TEXT if v.lower() == "text" else ViewMode.HEX,
        ),
        clipboard=_pick(editor, "clipboard", lambda v: isinstance(v, bool)),
        log_level=_pick(
            logging_section, "level",
            lambda v: isinstance(v, str) and v.upper() in LOG_LEVELS,
            lambda v: v.upper(),
        ),
        log_file=_pick(logging_section, "file", lambda v: isinstance(v, str) and bool(v)),
        log_max_bytes=_pick(logging_section, "max_bytes", lambda v: isinstance(v, int) and v > 0),
        log_backup_count=_pick(logging_section, "backup_count", lambda v: isinstance(v, int) and v >= 0),
    )


def load_config(path: Optional[str] = None) -> EditorConfig:
    """
    Load the editor configuration.

    Args:
        path: Optional explicit config file path

    Returns:
        The resolved EditorConfig; defaults when the file is absent or broken
    """

    config_path = resolve_config_path(path)
    user: Dict[str, Any] = {}

    if os.path.isfile(config_path):
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                user = toml.loads(f.read())
            logger.debug("Loaded config from %s", config_path)
        except toml.TomlDecodeError as e:
            logger.error("TOML syntax error in %s: %s, using defaults", config_path, e)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Could not read %s: %s, using defaults", config_path, e)
    else:
        logger.debug("No config at %s, using defaults", config_path)

    return build_config(merge_config(DEFAULTS, user))
