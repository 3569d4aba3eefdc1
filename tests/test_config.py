from __future__ import annotations

import logging
from pathlib import Path

import pytest

from hxedit.app.modes import EditMode, ViewMode
from hxedit.config import (
    CONFIG_ENV_VAR,
    DEFAULTS,
    EditorConfig,
    load_config,
    merge_config,
    resolve_config_path,
)
from hxedit.core.encoding import CharEncoding


@pytest.fixture(autouse=True)
def _propagate_hxedit_logs():
    logger = logging.getLogger("hxedit")
    previous = logger.propagate
    logger.propagate = True
    yield
    logger.propagate = previous


def _write(tmp_path: Path, text: str) -> str:
    path = tmp_path / "config.toml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    assert load_config(str(tmp_path / "absent.toml")) == EditorConfig()


def test_values_are_read(tmp_path: Path) -> None:
    path = _write(tmp_path, """
[editor]
bytes_per_row = 8
encoding = "shift_jis"
edit_mode = "Insert"
view = "text"
clipboard = false

[logging]
level = "debug"
file = "/tmp/hx.log"
max_bytes = 2048
backup_count = 0
""")

    config = load_config(path)

    assert config.bytes_per_row == 8
    assert config.encoding is CharEncoding.SHIFT_JIS
    assert config.edit_mode is EditMode.INSERT
    assert config.view_mode is ViewMode.TEXT
    assert config.clipboard is False
    assert config.log_level == "DEBUG"
    assert config.log_file == "/tmp/hx.log"
    assert config.log_max_bytes == 2048
    assert config.log_backup_count == 0


def test_invalid_values_fall_back(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = _write(tmp_path, """
[editor]
bytes_per_row = 100
encoding = "klingon"
view = 3

[logging]
level = "LOUD"
""")

    with caplog.at_level(logging.WARNING, logger="hxedit.config"):
        config = load_config(path)

    assert config.bytes_per_row == 16
    assert config.encoding is CharEncoding.UTF8
    assert config.view_mode is ViewMode.HEX
    assert config.log_level == "INFO"
    assert "bytes_per_row=100" in caplog.text


def test_malformed_toml_gives_defaults(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = _write(tmp_path, "[editor\nbytes_per_row = ")

    with caplog.at_level(logging.ERROR, logger="hxedit.config"):
        config = load_config(path)

    assert config == EditorConfig()
    assert "TOML syntax error" in caplog.text


def test_unknown_and_malformed_sections_are_ignored(tmp_path: Path) -> None:
    path = _write(tmp_path, 'editor = 5\n[colors]\nbg = "red"\n')

    assert load_config(path) == EditorConfig()


def test_merge_config_keeps_defaults_untouched() -> None:
    merged = merge_config(DEFAULTS, {"editor": {"bytes_per_row": 8}})

    assert merged["editor"]["bytes_per_row"] == 8
    assert merged["editor"]["encoding"] == "UTF-8"
    assert DEFAULTS["editor"]["bytes_per_row"] == 16


def test_config_path_resolution(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "env.toml"))
    assert resolve_config_path("/explicit.toml") == "/explicit.toml"
    assert resolve_config_path() == str(tmp_path / "env.toml")

    monkeypatch.delenv(CONFIG_ENV_VAR)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert resolve_config_path() == str(tmp_path / ".config" / "hxedit" / "config.toml")


def test_env_config_is_loaded(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(CONFIG_ENV_VAR, _write(tmp_path, "[editor]\nbytes_per_row = 32\n"))

    assert load_config().bytes_per_row == 32
