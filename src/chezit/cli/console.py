"""CLI console helpers.

Rich is imported lazily so bootstrap paths (``--help``, ``--version``)
never pay for it.  All output goes to stderr except command payloads
(diffs, dumps), which the CLI writes to stdout so they can be piped.
"""

from __future__ import annotations

from typing import Any

from chezit.exceptions import ChezitError


def _load_rich_console_class() -> type[Any]:
    """Return ``rich.console.Console`` class or raise ``ChezitError``."""
    try:
        from rich.console import Console
    except ModuleNotFoundError as exc:
        raise ChezitError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Console


def get_rich_console(*, stderr: bool = True) -> Any:
    """Create a Rich console instance (stderr by default)."""
    console_class = _load_rich_console_class()
    return console_class(stderr=stderr)


class _ConsoleProxy:
    """Minimal ``print``-compatible proxy creating the Rich console on first use."""

    def __init__(self, *, stderr: bool) -> None:
        self._stderr = stderr
        self._console: Any = None

    def print(self, *objects: object, **kwargs: Any) -> None:
        if self._console is None:
            self._console = get_rich_console(stderr=self._stderr)
        self._console.print(*objects, **kwargs)


console = _ConsoleProxy(stderr=True)
"""Status, tables and errors."""

out = _ConsoleProxy(stderr=False)
"""Command payloads (diffs, dumps, listings)."""
