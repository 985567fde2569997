"""Tests for configuration loading (config.py).

Files are written under ``tmp_path`` — the real home directory is never
read.

Coverage:
* Missing / empty files fall back to defaults.
* Mode parsing and validation.
* Value normalisation (timeout, binary path, presets).
* Malformed YAML and wrong types raise ``ConfigError``.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from chezit.config import (
    AppConfig,
    config_from_mapping,
    default_config_path,
    load_config,
    parse_mode,
)
from chezit.core.models import Mode
from chezit.exceptions import ConfigError
from chezit.infra.chezmoi_client import DEFAULT_TIMEOUT


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# parse_mode
# ---------------------------------------------------------------------------

class TestParseMode:
    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_blank_is_write(self, raw: str | None) -> None:
        assert parse_mode(raw) is Mode.WRITE

    def test_read_only(self) -> None:
        assert parse_mode(" read_only ") is Mode.READ_ONLY

    def test_invalid(self) -> None:
        with pytest.raises(ConfigError, match="invalid mode 'readonly'"):
            parse_mode("readonly")


# ---------------------------------------------------------------------------
# load_config
# ---------------------------------------------------------------------------

class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "nope.yaml") == AppConfig()

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_config(_write(tmp_path, "")) == AppConfig()

    def test_full_file(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            "mode: read_only\n"
            "binary_path: /opt/bin/chezmoi\n"
            "timeout: 12\n"
            "editor: nvim\n"
            "commit_presets:\n"
            "  - update dotfiles\n"
            "  - sync\n",
        )
        config = load_config(path)
        assert config.mode is Mode.READ_ONLY
        assert config.binary_path == "/opt/bin/chezmoi"
        assert config.timeout == 12.0
        assert config.editor == "nvim"
        assert config.commit_presets == ("update dotfiles", "sync")

    def test_default_path_under_home(self, fake_home: Path) -> None:
        assert default_config_path() == fake_home / ".config" / "chezit" / "config.yaml"

    def test_default_path_missing_file(self, fake_home: Path) -> None:
        assert load_config() == AppConfig()

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="parsing config"):
            load_config(_write(tmp_path, "mode: [write\n"))

    def test_non_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config(_write(tmp_path, "- write\n- read_only\n"))

    def test_directory_is_unreadable(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="reading config"):
            load_config(tmp_path)


# ---------------------------------------------------------------------------
# config_from_mapping
# ---------------------------------------------------------------------------

class TestConfigFromMapping:
    def test_defaults(self) -> None:
        config = config_from_mapping({})
        assert config.mode is Mode.WRITE
        assert config.timeout == DEFAULT_TIMEOUT
        assert config.commit_presets == ()

    def test_binary_path_expands_home(self, fake_home: Path) -> None:
        config = config_from_mapping({"binary_path": "~/bin/chezmoi"})
        assert config.binary_path == os.path.join(str(fake_home), "bin", "chezmoi")

    def test_float_timeout(self) -> None:
        assert config_from_mapping({"timeout": 2.5}).timeout == 2.5

    @pytest.mark.parametrize("value", [0, -1, True, "30"])
    def test_invalid_timeout(self, value: object) -> None:
        with pytest.raises(ConfigError, match="timeout"):
            config_from_mapping({"timeout": value})

    def test_mode_must_be_string(self) -> None:
        with pytest.raises(ConfigError, match="'mode' must be a string"):
            config_from_mapping({"mode": 1})

    def test_presets_deduplicated(self) -> None:
        config = config_from_mapping({"commit_presets": ["sync", " sync ", "", "wip"]})
        assert config.commit_presets == ("sync", "wip")

    def test_presets_must_be_list(self) -> None:
        with pytest.raises(ConfigError, match="commit_presets"):
            config_from_mapping({"commit_presets": "sync"})


class TestClientKwargs:
    def test_blank_values_become_none(self) -> None:
        assert AppConfig().client_kwargs() == {
            "binary_path": None,
            "timeout": DEFAULT_TIMEOUT,
            "editor": None,
        }

    def test_values_forwarded(self) -> None:
        kwargs = AppConfig(binary_path="/opt/chezmoi", timeout=3.0, editor="vim").client_kwargs()
        assert kwargs == {"binary_path": "/opt/chezmoi", "timeout": 3.0, "editor": "vim"}
