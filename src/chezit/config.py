"""YAML configuration loading for chezit.

The configuration file lives at ``~/.config/chezit/config.yaml``.  A
missing file is not an error — defaults apply.  Every other problem
(unreadable file, malformed YAML, invalid values) raises
:class:`~chezit.exceptions.ConfigError`.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from chezit.core.models import Mode
from chezit.exceptions import ConfigError
from chezit.infra.chezmoi_client import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


CONFIG_FILENAME = "config.yaml"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Fully validated configuration."""

    mode: Mode = Mode.WRITE
    binary_path: str = ""
    timeout: float = DEFAULT_TIMEOUT
    editor: str = ""
    commit_presets: tuple[str, ...] = field(default_factory=tuple)

    def client_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for :class:`~chezit.infra.chezmoi_client.ChezmoiClient`."""
        return {
            "binary_path": self.binary_path or None,
            "timeout": self.timeout,
            "editor": self.editor or None,
        }


def default_config_path() -> Path:
    return Path.home() / ".config" / "chezit" / CONFIG_FILENAME


def parse_mode(raw: str | None) -> Mode:
    """Parse a mode string; blank means :attr:`Mode.WRITE`."""
    text = (raw or "").strip()
    if not text:
        return Mode.WRITE
    try:
        return Mode(text)
    except ValueError:
        raise ConfigError(
            f"invalid mode {text!r} (valid: write, read_only)",
        ) from None


def load_config(path: Path | None = None) -> AppConfig:
    """Load and validate the configuration file.

    Args:
        path: Optional path to the YAML file. Defaults to
            :func:`default_config_path`.
    """
    config_path = Path(path) if path is not None else default_config_path()

    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("no config at %s, using defaults", config_path)
        return AppConfig()
    except OSError as exc:
        raise ConfigError(f"reading config: {exc}") from exc

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"parsing config {config_path}: {exc}") from exc

    if raw is None:
        return AppConfig()
    if not isinstance(raw, Mapping):
        raise ConfigError(f"config {config_path} must be a mapping, got {type(raw).__name__}")

    return config_from_mapping(raw)


def config_from_mapping(raw: Mapping[str, Any]) -> AppConfig:
    """Normalise and validate a parsed configuration mapping."""
    mode = parse_mode(_optional_str(raw, "mode"))

    binary_path = (_optional_str(raw, "binary_path") or "").strip()
    if binary_path:
        binary_path = _expand_home(binary_path)

    timeout = _parse_timeout(raw.get("timeout"))
    editor = (_optional_str(raw, "editor") or "").strip()

    presets_raw = raw.get("commit_presets") or []
    if not isinstance(presets_raw, list):
        raise ConfigError("'commit_presets' must be a list of strings")

    return AppConfig(
        mode=mode,
        binary_path=binary_path,
        timeout=timeout,
        editor=editor,
        commit_presets=_normalize_string_list(presets_raw),
    )


def _optional_str(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string")
    return value


def _parse_timeout(value: Any) -> float:
    if value is None:
        return DEFAULT_TIMEOUT
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError("'timeout' must be a number of seconds")
    if value <= 0:
        raise ConfigError("'timeout' must be positive")
    return float(value)


def _expand_home(path: str) -> str:
    if path.startswith("~"):
        return os.path.expanduser(path)
    return path


def _normalize_string_list(items: list[Any]) -> tuple[str, ...]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        text = str(item).strip()
        if not text or text in seen:
            continue
        seen.add(text)
        out.append(text)
    return tuple(out)
