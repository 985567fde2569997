"""Infrastructure: chezmoi binary detection and platform guidance.

This module is responsible for locating the chezmoi binary (on the
system PATH or at an explicit location), reading the version it
reports, and providing platform-specific installation guidance when it
is missing.

Rules
-----
* A configured path containing a separator is checked as given; a bare
  name is looked up with :func:`shutil.which`.
* The only subprocess is ``chezmoi --version``; it never raises.
* No automatic installation.
* No ``print()`` — callers handle user-facing output.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from chezit.exceptions import BinaryNotFoundError

logger = logging.getLogger(__name__)


DEFAULT_BINARY = "chezmoi"
VERSION_TIMEOUT = 5.0


# ---------------------------------------------------------------------------
# Detection result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class BinaryStatus:
    """Result of looking up the chezmoi binary.

    Attributes
    ----------
    found : bool
        Whether the binary was located.
    path : Path | None
        Absolute path to the binary, or ``None``.
    version_hint : str
        Human-readable status string (e.g. ``"found at …"`` or ``"not found"``).
    install_commands : tuple[str, ...]
        Suggested shell commands for installing chezmoi on the current
        platform.  Empty when the binary is already present.
    """

    found: bool
    path: Path | None
    version_hint: str
    install_commands: tuple[str, ...]


# ---------------------------------------------------------------------------
# Detection logic
# ---------------------------------------------------------------------------

def detect_chezmoi(binary: str | None = None) -> BinaryStatus:
    """Look up the chezmoi binary.

    *binary* may be a bare name (looked up on PATH) or an explicit path.
    Returns a :class:`BinaryStatus` regardless of the outcome — the
    caller decides whether to abort or merely warn.
    """
    name = (binary or "").strip() or DEFAULT_BINARY
    result = _resolve_explicit(name) if _is_explicit_path(name) else shutil.which(name)

    if result is not None:
        resolved = Path(result).resolve()
        return BinaryStatus(
            found=True,
            path=resolved,
            version_hint=f"found at {resolved}",
            install_commands=(),
        )

    return BinaryStatus(
        found=False,
        path=None,
        version_hint="not found",
        install_commands=_platform_install_commands(),
    )


def _is_explicit_path(name: str) -> bool:
    return os.sep in name or (os.altsep is not None and os.altsep in name) or name.startswith("~")


def _resolve_explicit(name: str) -> str | None:
    """Return *name* when it points at an executable file, else ``None``."""
    candidate = Path(name).expanduser()
    if candidate.is_file() and os.access(candidate, os.X_OK):
        return str(candidate)
    return None


def chezmoi_version(path: Path | str) -> str:
    """Return the first line of ``chezmoi --version``, or ``""`` on failure."""
    try:
        completed = subprocess.run(
            [str(path), "--version"],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=VERSION_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("chezmoi --version failed: %s", exc)
        return ""
    if completed.returncode != 0:
        logger.debug("chezmoi --version exited %d", completed.returncode)
        return ""
    lines = completed.stdout.strip().splitlines()
    return lines[0].strip() if lines else ""


def require_chezmoi(binary: str | None = None) -> Path:
    """Locate chezmoi or raise :class:`BinaryNotFoundError`."""
    status = detect_chezmoi(binary)
    if not status.found or status.path is None:
        hint_lines: list[str] = []
        if status.install_commands:
            hint_lines.append("Install chezmoi using one of:")
            hint_lines.extend(f"  {cmd}" for cmd in status.install_commands)
        raise BinaryNotFoundError(
            f"chezmoi is not installed or not on PATH ({binary or DEFAULT_BINARY}).",
            hint="\n".join(hint_lines) if hint_lines else None,
        )
    return status.path


# ---------------------------------------------------------------------------
# Platform-specific install guidance
# ---------------------------------------------------------------------------

def _platform_install_commands() -> tuple[str, ...]:
    """Return install commands appropriate for the current OS."""
    system = platform.system().lower()
    if system == "windows":
        return (
            "winget install twpayne.chezmoi",
            "choco install chezmoi",
        )
    if system == "linux":
        return (
            'sh -c "$(curl -fsLS get.chezmoi.io)"',
            "sudo pacman -S chezmoi",
            "sudo snap install chezmoi --classic",
        )
    if system == "darwin":
        return ("brew install chezmoi",)
    return ("See https://www.chezmoi.io/install/",)
