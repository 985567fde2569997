"""Interactive command picker for the CLI layer.

This module is responsible for:

* Prompting the user to pick one of the policy-approved commands via
  questionary arrow keys.
* Running the chosen command — attached to the terminal for
  interactive handles, or through the service for info commands.
* Prompting for a commit message from the configured presets.

No policy decisions are made here: the menu comes from
:meth:`ChezmoiService.available_commands` and every action goes
through the service, which re-checks the policy.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Sequence
from typing import Any

from chezit.cli import exit_codes
from chezit.cli.console import console
from chezit.cli.views import render_commands, render_text
from chezit.core.models import ActionKind, ActionRequest, CommandAvailability, InteractiveCommand
from chezit.core.service import ChezmoiService
from chezit.exceptions import ChezitError

logger = logging.getLogger(__name__)


def _import_questionary() -> Any:
    """Import questionary lazily for interactive selection."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise ChezitError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


# ---------------------------------------------------------------------------
# Running interactive handles
# ---------------------------------------------------------------------------

def run_interactive(command: InteractiveCommand | None) -> int:
    """Run *command* attached to the current terminal.

    Returns the child's exit code.  A ``None`` handle means the action
    is unavailable under the current policy.
    """
    if command is None:
        raise ChezitError(
            "This command is not available in read-only mode.",
            hint="Set 'mode: write' in the chezit config to enable it.",
        )
    logger.debug("running interactive command: %s", command)
    try:
        completed = subprocess.run(list(command.argv), env=command.env(), check=False)
    except OSError as exc:
        raise ChezitError(f"failed to start {command.argv[0]}: {exc}") from exc
    return completed.returncode


# ---------------------------------------------------------------------------
# Label → action dispatch
# ---------------------------------------------------------------------------

def _print_and_succeed(text: str) -> int:
    render_text(text)
    return exit_codes.SUCCESS


def _verify(service: ChezmoiService) -> int:
    service.verify()
    console.print("[bold green]Destination matches source state.[/bold green]")
    return exit_codes.SUCCESS


def _archive(service: ChezmoiService) -> int:
    path = service.archive()
    console.print(f"[bold green]Archive written:[/bold green] {path}")
    return exit_codes.SUCCESS


def _action_table(service: ChezmoiService) -> dict[str, Callable[[], int]]:
    return {
        "Apply": lambda: run_interactive(service.apply_all_cmd()),
        "Update": lambda: run_interactive(service.update_cmd()),
        "Refresh Externals": lambda: run_interactive(service.apply_refresh_cmd()),
        "Re-Add All": lambda: _print_and_succeed(service.re_add_all()),
        "Init": lambda: run_interactive(service.init_cmd()),
        "Status": lambda: _print_and_succeed(service.status_text()),
        "Diff All": lambda: _print_and_succeed(service.diff_all()),
        "Doctor": lambda: _print_and_succeed(service.doctor()),
        "Verify": lambda: _verify(service),
        "Data": lambda: _print_and_succeed(service.data()),
        "Cat Config": lambda: _print_and_succeed(service.cat_config()),
        "Git Log": lambda: _print_and_succeed(service.git_log()),
        "Archive": lambda: _archive(service),
        "Edit Source": lambda: run_interactive(service.edit_source_cmd()),
        "Edit Config": lambda: run_interactive(service.edit_config_cmd()),
        "Edit Config Template": lambda: run_interactive(service.edit_config_template_cmd()),
    }


_DRY_RUN_BUILDERS: dict[str, Callable[[ChezmoiService], InteractiveCommand]] = {
    "Apply": ChezmoiService.apply_dry_run_cmd,
    "Refresh Externals": ChezmoiService.apply_refresh_dry_run_cmd,
}


def execute_command(
    service: ChezmoiService,
    command: CommandAvailability,
    *,
    dry_run: bool = False,
) -> int:
    """Run the catalogue entry *command* through *service*."""
    if dry_run:
        builder = _DRY_RUN_BUILDERS.get(command.label)
        if builder is None:
            raise ChezitError(f"{command.label} does not support a dry run.")
        return run_interactive(builder(service))

    action = _action_table(service).get(command.label)
    if action is None:
        raise ChezitError(f"Unknown command: {command.label}")
    return action()


# ---------------------------------------------------------------------------
# Public prompt function
# ---------------------------------------------------------------------------

def prompt_command(service: ChezmoiService) -> int:
    """Display the command menu, prompt for a choice, and run it.

    Raises
    ------
    ChezitError
        If the user cancels the prompt (Esc / None return).
    """
    questionary = _import_questionary()

    commands: Sequence[CommandAvailability] = service.available_commands()
    render_commands(commands)

    choices = [
        questionary.Choice(
            title=f"{cmd.label:<22} {cmd.command}",
            value=cmd,
        )
        for cmd in commands
    ]
    selected: CommandAvailability | None = questionary.select(
        "Select a command to run:",
        choices=choices,
        use_arrow_keys=True,
        use_shortcuts=False,
    ).ask()

    if selected is None:
        raise ChezitError(
            "No command selected.",
            hint="Use arrow keys to pick a command, then press Enter.",
        )

    dry_run = False
    if selected.supports_dry_run:
        dry_run = bool(questionary.confirm("Preview with --dry-run first?", default=True).ask())

    return execute_command(service, selected, dry_run=dry_run)


# ---------------------------------------------------------------------------
# Commit message prompt
# ---------------------------------------------------------------------------

DEFAULT_COMMIT_PRESETS: tuple[str, ...] = (
    "update dotfiles",
    "chore: update dotfiles",
    "feat: add new config",
    "fix: fix configuration",
    "chore: sync changes",
)

_COMPOSE_CHOICE = "__compose__"


def prompt_commit_message(presets: Sequence[str]) -> str:
    """Pick a preset message or compose one; empty *presets* use the defaults."""
    questionary = _import_questionary()

    options = list(presets) or list(DEFAULT_COMMIT_PRESETS)
    choices = [questionary.Choice(title=p, value=p) for p in options]
    choices.append(questionary.Choice(title="Compose...", value=_COMPOSE_CHOICE))

    selected: str | None = questionary.select(
        "Commit message:",
        choices=choices,
        use_arrow_keys=True,
        use_shortcuts=False,
    ).ask()
    if selected is None:
        raise ChezitError("No commit message selected.")
    if selected != _COMPOSE_CHOICE:
        return selected

    composed: str | None = questionary.text("Enter commit message:").ask()
    message = (composed or "").strip()
    if not message:
        raise ChezitError("Commit message must not be empty.")
    return message


def run_commit(
    service: ChezmoiService,
    presets: Sequence[str],
    message: str | None = None,
) -> int:
    """Commit staged source-repo changes with *message* or a prompted one."""
    # Fail on read-only before asking for a message.
    service.policy.check_mutation()
    if message is None:
        message = prompt_commit_message(presets)
    elif not message.strip():
        raise ChezitError("Commit message must not be empty.")

    result = service.run_action(ActionRequest(kind=ActionKind.GIT_COMMIT, commit_message=message.strip()))
    console.print(f"[bold green]{result.message}:[/bold green] {message.strip()}")
    return exit_codes.SUCCESS
