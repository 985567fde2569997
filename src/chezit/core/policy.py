"""Mutation guards and target-path validation.

:class:`Policy` is a pure decision component over the process mode and
the absolute target root.  It performs no I/O and never touches the
filesystem — path checks are purely lexical.
"""

from __future__ import annotations

import os

from chezit.core.models import CommandAvailability, CommandCategory, Mode
from chezit.exceptions import (
    OutsideTargetError,
    PathEmptyError,
    PathNotAbsError,
    ReadOnlyError,
)


class Policy:
    """Decides whether mutations are allowed and which commands are offered.

    Parameters
    ----------
    mode:
        :attr:`Mode.WRITE` or :attr:`Mode.READ_ONLY`.
    target_path:
        Absolute root of the managed tree.  An empty value means no root
        is configured and every path is rejected as outside the target.
    """

    __slots__ = ("_mode", "_target_path")

    def __init__(self, mode: Mode, target_path: str = "") -> None:
        self._mode: Mode = mode
        self._target_path: str = target_path

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def target_path(self) -> str:
        return self._target_path

    # ------------------------------------------------------------------
    # Mutation gate
    # ------------------------------------------------------------------

    def is_read_only(self) -> bool:
        return self._mode is Mode.READ_ONLY

    def check_mutation(self) -> None:
        """Raise :class:`ReadOnlyError` when mutations are disabled."""
        if self.is_read_only():
            raise ReadOnlyError(
                hint="Set 'mode: write' in the chezit config to enable changes.",
            )

    # ------------------------------------------------------------------
    # Path containment
    # ------------------------------------------------------------------

    def validate_target_path(self, path: str) -> None:
        """Reject empty, relative, or out-of-tree paths.

        Containment is separator-bounded: with a target of ``/home/user``
        the path ``/home/username`` is rejected.

        Raises
        ------
        PathEmptyError
        PathNotAbsError
        OutsideTargetError
        """
        if not path:
            raise PathEmptyError()
        if not os.path.isabs(path):
            raise PathNotAbsError(f"path must be absolute: {path}")
        if not self._target_path:
            raise OutsideTargetError("no target directory configured")

        clean_path = os.path.normpath(path)
        clean_target = os.path.normpath(self._target_path)
        if clean_path == clean_target:
            return
        prefix = clean_target if clean_target.endswith(os.sep) else clean_target + os.sep
        if clean_path.startswith(prefix):
            return
        raise OutsideTargetError(f"{path} is outside target directory {clean_target}")

    # ------------------------------------------------------------------
    # Command catalogue
    # ------------------------------------------------------------------

    def available_commands(
        self,
        has_edit_source: bool,
        has_edit_config: bool,
    ) -> list[CommandAvailability]:
        """Build the ordered command menu for the current mode.

        Order: apply category (write mode only), info category (always),
        then edit category.  Edit Source needs write mode; Edit Config is
        not gated by mode because it changes chezmoi's own configuration,
        not the managed dotfiles.
        """
        read_only = self.is_read_only()
        cmds: list[CommandAvailability] = []

        if not read_only:
            cmds.extend(_APPLY_COMMANDS)

        cmds.extend(_INFO_COMMANDS)

        if not read_only and has_edit_source:
            cmds.append(_EDIT_SOURCE)
        if has_edit_config:
            cmds.append(_EDIT_CONFIG)
        cmds.append(_EDIT_CONFIG_TEMPLATE)
        return cmds


# ---------------------------------------------------------------------------
# Catalogue rows
# ---------------------------------------------------------------------------

_APPLY_COMMANDS: tuple[CommandAvailability, ...] = (
    CommandAvailability(
        label="Apply",
        description="Apply source state to destination",
        command="chezmoi apply",
        category=CommandCategory.APPLY,
        supports_dry_run=True,
    ),
    CommandAvailability(
        label="Update",
        description="Pull from remote and apply",
        command="chezmoi update",
        category=CommandCategory.APPLY,
    ),
    CommandAvailability(
        label="Refresh Externals",
        description="Re-download external files and apply",
        command="chezmoi apply --refresh-externals",
        category=CommandCategory.APPLY,
        supports_dry_run=True,
    ),
    CommandAvailability(
        label="Re-Add All",
        description="Re-add all files from destination to source",
        command="chezmoi re-add",
        category=CommandCategory.APPLY,
    ),
    CommandAvailability(
        label="Init",
        description="Interactive chezmoi init",
        command="chezmoi init",
        category=CommandCategory.APPLY,
    ),
)

_INFO_COMMANDS: tuple[CommandAvailability, ...] = (
    CommandAvailability(
        label="Status",
        description="Show file status summary",
        command="chezmoi status",
        category=CommandCategory.INFO,
    ),
    CommandAvailability(
        label="Diff All",
        description="Show combined diff for all files",
        command="chezmoi diff",
        category=CommandCategory.INFO,
    ),
    CommandAvailability(
        label="Doctor",
        description="Run diagnostics and check configuration",
        command="chezmoi doctor",
        category=CommandCategory.INFO,
    ),
    CommandAvailability(
        label="Verify",
        description="Check if destination matches source",
        command="chezmoi verify",
        category=CommandCategory.INFO,
    ),
    CommandAvailability(
        label="Data",
        description="View template data (for debugging)",
        command="chezmoi data --format=yaml",
        category=CommandCategory.INFO,
    ),
    CommandAvailability(
        label="Cat Config",
        description="Show resolved configuration",
        command="chezmoi cat-config",
        category=CommandCategory.INFO,
    ),
    CommandAvailability(
        label="Git Log",
        description="View recent source repo commits",
        command="git log --oneline -20",
        category=CommandCategory.INFO,
    ),
    CommandAvailability(
        label="Archive",
        description="Create backup archive of target state",
        command="chezmoi archive --output=<path>",
        category=CommandCategory.INFO,
    ),
)

_EDIT_SOURCE = CommandAvailability(
    label="Edit Source",
    description="Open source directory in $EDITOR",
    command="chezmoi edit",
    category=CommandCategory.EDIT,
)

_EDIT_CONFIG = CommandAvailability(
    label="Edit Config",
    description="Edit local config (changes lost on init if template exists)",
    command="chezmoi edit-config",
    category=CommandCategory.EDIT,
)

_EDIT_CONFIG_TEMPLATE = CommandAvailability(
    label="Edit Config Template",
    description="Edit config template (version-controlled)",
    command="chezmoi edit-config-template",
    category=CommandCategory.EDIT,
)
