"""CLI application entry point and command routing for chezit.

This module is the **sole error boundary** for the entire application.
It catches :class:`~chezit.exceptions.ChezitError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering user-friendly messages via Rich
and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here — all work is delegated to the core/service
  and infrastructure layers.
* This is the only place that loads the config, resolves the chezmoi
  target root, and constructs the :class:`ChezmoiService`.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from chezit.cli import exit_codes
from chezit.cli.console import console
from chezit.config import AppConfig, load_config
from chezit.core.models import EntryFilter, EntryType, FileKind, InfoFormat, InfoView
from chezit.core.service import ChezmoiService
from chezit.exceptions import ChezitError
from chezit.version import __version__

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    * ``chezit [status]``  — status snapshot (default)
    * ``chezit files``     — managed / ignored / unmanaged listings
    * ``chezit info``      — config, data and chezmoi doctor dumps
    * ``chezit commands``  — interactive command picker
    * ``chezit commit``    — commit staged source changes
    * ``chezit archive``   — write a target-state archive
    * ``chezit doctor``    — environment diagnostics
    """
    parser = argparse.ArgumentParser(
        prog="chezit",
        description="Policy-aware front end for chezmoi dotfile management.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.yaml (default: ~/.config/chezit/config.yaml).",
    )

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("status", help="Show chezmoi and source-repo status.")

    entry_types = [t.value for t in EntryType]
    files = sub.add_parser("files", help="List managed, ignored or unmanaged files.")
    files.add_argument(
        "--kind",
        choices=[k.value for k in FileKind],
        default=FileKind.MANAGED.value,
    )
    files.add_argument("--include", action="append", choices=entry_types, default=[])
    files.add_argument("--exclude", action="append", choices=entry_types, default=[])

    info = sub.add_parser("info", help="Show configuration, template data or chezmoi doctor.")
    info.add_argument("--view", choices=[v.value for v in InfoView], default=InfoView.CONFIG.value)
    info.add_argument("--format", choices=[f.value for f in InfoFormat], default=InfoFormat.YAML.value)

    sub.add_parser("commands", help="Pick and run an available chezmoi command.")

    commit = sub.add_parser("commit", help="Commit staged changes in the source repository.")
    commit.add_argument(
        "-m",
        "--message",
        default=None,
        help="Commit message (prompted from the configured presets if omitted).",
    )

    sub.add_parser("archive", help="Create a backup archive of the target state.")
    sub.add_parser("doctor", help="Check the chezit runtime environment.")
    return parser


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------

def build_service(config: AppConfig) -> ChezmoiService:
    """Construct the client and service for one process run."""
    from chezit.infra.binary_detector import require_chezmoi
    from chezit.infra.chezmoi_client import ChezmoiClient

    client = ChezmoiClient(**config.client_kwargs())
    require_chezmoi(client.binary_path)
    target = client.target_path()
    logger.debug("chezmoi target path: %s (mode=%s)", target, config.mode.value)
    return ChezmoiService(client, config.mode, target)


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_status(service: ChezmoiService) -> int:
    from chezit.cli.views import render_status

    snapshot = service.load_status()
    render_status(snapshot, read_only=service.is_read_only())
    return exit_codes.SUCCESS


def _handle_files(service: ChezmoiService, args: argparse.Namespace) -> int:
    from chezit.cli.views import render_files
    from chezit.core.models import LoadFilesRequest

    entry_filter = EntryFilter(
        include=frozenset(EntryType(v) for v in args.include),
        exclude=frozenset(EntryType(v) for v in args.exclude),
    )
    snapshot = service.load_files(LoadFilesRequest(kind=FileKind(args.kind), entry_filter=entry_filter))
    render_files(snapshot)
    return exit_codes.SUCCESS


def _handle_info(service: ChezmoiService, args: argparse.Namespace) -> int:
    from chezit.cli.views import render_info
    from chezit.core.models import LoadInfoRequest

    request = LoadInfoRequest(view=InfoView(args.view), format=InfoFormat(args.format))
    render_info(service.load_info(request))
    return exit_codes.SUCCESS


def _handle_commands(service: ChezmoiService) -> int:
    from chezit.cli.command_prompt import prompt_command

    return prompt_command(service)


def _handle_commit(service: ChezmoiService, args: argparse.Namespace, config: AppConfig) -> int:
    from chezit.cli.command_prompt import run_commit

    return run_commit(service, config.commit_presets, args.message)


def _handle_archive(service: ChezmoiService) -> int:
    path = service.archive()
    console.print(f"[bold green]Archive written:[/bold green] {path}")
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the chezit CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    from chezit.utils.debug_log import configure_debug_log

    configure_debug_log()
    config = load_config(args.config)

    if args.command == "doctor":
        from chezit.cli.doctor import run_doctor

        return run_doctor(config)

    service = build_service(config)

    if args.command in (None, "status"):
        return _handle_status(service)
    if args.command == "files":
        return _handle_files(service, args)
    if args.command == "info":
        return _handle_info(service, args)
    if args.command == "commands":
        return _handle_commands(service)
    if args.command == "commit":
        return _handle_commit(service, args, config)
    if args.command == "archive":
        return _handle_archive(service)

    parser.print_help()
    return exit_codes.GENERAL_ERROR


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except ChezitError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        logger.exception("unexpected error")
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
