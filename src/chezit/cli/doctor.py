"""``chezit doctor`` — environment diagnostics command.

Gathers system information and renders a Rich table summarising
whether the runtime environment satisfies chezit's requirements.
This is distinct from ``chezmoi doctor`` (``chezit info --view doctor``),
which diagnoses chezmoi itself.

This module lives in the CLI layer — it may import from ``infra``
and ``core``, and it renders via Rich.
"""

from __future__ import annotations

import platform
import sys

from chezit.cli import exit_codes
from chezit.cli.console import console
from chezit.config import AppConfig
from chezit.core.models import Mode
from chezit.infra.binary_detector import BinaryStatus, chezmoi_version, detect_chezmoi
from chezit.version import __version__


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _python_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    ok = sys.version_info[:2] >= (3, 10)
    status = "[green]OK[/green]" if ok else "[red]FAIL (>=3.10 required)[/red]"
    return "Python", version, status


def _chezmoi_check(binary: BinaryStatus) -> tuple[str, str, str]:
    """Return (label, value, status) for the chezmoi binary row.

    The value carries the first line of ``chezmoi --version`` when the
    binary answers it.
    """
    if binary.found and binary.path is not None:
        version = chezmoi_version(binary.path)
        value = f"{binary.path} ({version})" if version else str(binary.path)
        return "chezmoi", value, "[green]OK[/green]"
    return "chezmoi", "not found", "[red]FAIL[/red]"


def _mode_check(mode: Mode) -> tuple[str, str, str]:
    """Return (label, value, status) for the mutation-mode row."""
    if mode is Mode.READ_ONLY:
        return "Mode", mode.value, "[yellow]READ-ONLY[/yellow]"
    return "Mode", mode.value, "[green]OK[/green]"


def _os_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the OS row."""
    system_raw = platform.system()
    system_display = {
        "Windows": "Windows",
        "Linux": "Linux",
        "Darwin": "macOS",
    }.get(system_raw, system_raw)
    value = f"{system_display} {platform.release()} ({platform.machine()})"
    return "OS", value, "[green]OK[/green]"


def _chezit_version_check() -> tuple[str, str, str]:
    return "chezit", __version__, "[green]OK[/green]"


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor(config: AppConfig) -> int:
    """Execute all diagnostic checks and render a Rich summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when all critical checks pass,
        :data:`exit_codes.GENERAL_ERROR` if a critical check fails.
    """
    from rich.table import Table

    binary_status = detect_chezmoi(config.binary_path)
    checks = [
        _chezit_version_check(),
        _python_version_check(),
        _chezmoi_check(binary_status),
        _mode_check(config.mode),
        _os_check(),
    ]
    has_failure = any("FAIL" in status for _, _, status in checks)

    table = Table(
        title="chezit doctor",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Component", style="bold", min_width=12)
    table.add_column("Value", min_width=20)
    table.add_column("Status", justify="center", min_width=8)
    for label, value, status in checks:
        table.add_row(label, value, status)

    console.print()
    console.print(table)
    console.print()

    if not binary_status.found and binary_status.install_commands:
        console.print("[yellow]chezmoi is not installed.[/yellow]")
        console.print("Install using one of the following commands:\n")
        for cmd in binary_status.install_commands:
            console.print(f"  [bold]{cmd}[/bold]")
        console.print()

    if has_failure:
        console.print("[bold red]Some checks failed.[/bold red]")
        return exit_codes.GENERAL_ERROR

    console.print("[bold green]All checks passed.[/bold green]")
    return exit_codes.SUCCESS
