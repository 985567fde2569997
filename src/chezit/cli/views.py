"""Rich rendering for service snapshots.

All display-related logic lives here — no business logic and no
process execution.  Every function takes an already-loaded snapshot.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from chezit.cli.console import console, out
from chezit.core.models import (
    CommandAvailability,
    FilesSnapshot,
    GitFile,
    GitInfo,
    InfoSnapshot,
    StatusSnapshot,
)
from chezit.exceptions import ChezitError


def _import_rich_table() -> type[Any]:
    """Import rich table lazily for snapshot rendering."""
    try:
        from rich.table import Table
    except ModuleNotFoundError as exc:
        raise ChezitError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Table


_SIDE_STYLES: dict[str, str] = {
    "diverged": "red",
    "pending apply": "yellow",
    "pending script run": "magenta",
    "target changed": "cyan",
}

_GIT_CODE_LABELS: dict[str, str] = {
    "M": "modified",
    "A": "added",
    "D": "deleted",
    "R": "renamed",
    "C": "copied",
    "U": "untracked",
}


# ---------------------------------------------------------------------------
# Presentation helpers (pure transforms)
# ---------------------------------------------------------------------------

def format_branch_line(info: GitInfo) -> str:
    """Render ``main → origin  ↑2 ↓1``; empty when no branch is known."""
    if not info.branch:
        return ""
    parts = [info.branch]
    if info.remote:
        parts.append(f"→ {info.remote}")
    if info.ahead:
        parts.append(f"↑{info.ahead}")
    if info.behind:
        parts.append(f"↓{info.behind}")
    return "  ".join(parts)


def git_code_label(code: str) -> str:
    return _GIT_CODE_LABELS.get(code, code)


# ---------------------------------------------------------------------------
# Snapshot renderers
# ---------------------------------------------------------------------------

def render_status(snapshot: StatusSnapshot, *, read_only: bool) -> None:
    table_class = _import_rich_table()

    table = table_class(
        title="chezmoi status",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("Src", justify="center", width=3)
    table.add_column("Dst", justify="center", width=3)
    table.add_column("Path", overflow="fold")
    table.add_column("Change")

    for entry in snapshot.files:
        label = entry.side_label
        style = _SIDE_STYLES.get(label, "white")
        table.add_row(
            entry.source_status,
            entry.dest_status,
            entry.path,
            f"[{style}]{label}[/{style}]" if label else "",
        )

    console.print()
    if snapshot.files:
        console.print(table)
    else:
        console.print("[green]Nothing to apply — destination matches source.[/green]")

    if read_only:
        console.print("[dim]Read-only mode: git state hidden.[/dim]")
        return

    branch = format_branch_line(snapshot.git_info)
    if branch:
        console.print(f"[bold cyan]Branch:[/bold cyan] {branch}")
    _render_git_files("Staged", snapshot.staged, "green")
    _render_git_files("Unstaged", snapshot.unstaged, "yellow")


def _render_git_files(title: str, files: Sequence[GitFile], style: str) -> None:
    if not files:
        return
    console.print(f"[bold]{title}[/bold]")
    for entry in files:
        console.print(f"  [{style}]{git_code_label(entry.status_code):<10}[/{style}] {entry.path}")


def render_files(snapshot: FilesSnapshot) -> None:
    for path in snapshot.files:
        out.print(path, markup=False, highlight=False)
    console.print(f"[dim]{len(snapshot.files)} {snapshot.kind.value} entries[/dim]")


def render_info(snapshot: InfoSnapshot) -> None:
    out.print(snapshot.content.rstrip("\n"), markup=False, highlight=False)


def render_text(text: str) -> None:
    out.print(text.rstrip("\n"), markup=False, highlight=False)


def render_commands(commands: Sequence[CommandAvailability]) -> None:
    table_class = _import_rich_table()

    table = table_class(
        title="Available commands",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("Category", style="dim")
    table.add_column("Command", style="bold")
    table.add_column("Description")
    table.add_column("Dry run", justify="center")

    for cmd in commands:
        table.add_row(
            cmd.category.value,
            cmd.label,
            cmd.description,
            "✓" if cmd.supports_dry_run else "",
        )

    console.print()
    console.print(table)
    console.print()
