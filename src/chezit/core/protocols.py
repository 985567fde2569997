"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
implementations — preserving the dependency inversion principle.
"""

from __future__ import annotations

from typing import Protocol

from chezit.core.models import (
    AddOptions,
    EntryFilter,
    FileStatus,
    GitFile,
    GitInfo,
    InfoFormat,
    InteractiveCommand,
)


class ChezmoiBackend(Protocol):
    """Contract for chezmoi execution backends.

    Any object that implements these methods satisfies the protocol
    structurally (no explicit inheritance required).  Implementations
    carry **no** policy logic and must map every process-level failure
    to a :class:`~chezit.exceptions.ChezitError` subclass.

    Read methods return parsed records or raw text; mutating methods
    return ``None`` (or the tool's textual report where one exists);
    ``*_cmd`` builders return an unexecuted :class:`InteractiveCommand`,
    or ``None`` when the capability is unavailable.
    """

    # --- chezmoi reads --------------------------------------------------

    def status(self) -> list[FileStatus]: ...  # pragma: no cover
    def status_text(self) -> str: ...  # pragma: no cover
    def diff(self, path: str) -> str: ...  # pragma: no cover
    def diff_all(self) -> str: ...  # pragma: no cover
    def managed_with_filter(self, entry_filter: EntryFilter) -> list[str]: ...  # pragma: no cover
    def ignored(self, entry_filter: EntryFilter | None = None) -> list[str]: ...  # pragma: no cover
    def unmanaged(self, entry_filter: EntryFilter | None = None) -> list[str]: ...  # pragma: no cover
    def cat_target(self, path: str) -> str: ...  # pragma: no cover
    def cat_config(self) -> str: ...  # pragma: no cover
    def dump_config(self, fmt: InfoFormat = InfoFormat.YAML) -> str: ...  # pragma: no cover
    def data(self, fmt: InfoFormat = InfoFormat.YAML) -> str: ...  # pragma: no cover
    def doctor(self) -> str: ...  # pragma: no cover
    def verify(self) -> None: ...  # pragma: no cover
    def source_dir(self) -> str: ...  # pragma: no cover
    def target_path(self) -> str: ...  # pragma: no cover
    def archive(self, output_path: str) -> None: ...  # pragma: no cover

    # --- chezmoi mutations ----------------------------------------------

    def re_add(self, path: str) -> None: ...  # pragma: no cover
    def re_add_all(self) -> str: ...  # pragma: no cover
    def forget(self, path: str) -> None: ...  # pragma: no cover
    def add_with_options(self, path: str, options: AddOptions) -> None: ...  # pragma: no cover

    # --- git reads ------------------------------------------------------

    def git_status_files(self) -> tuple[list[GitFile], list[GitFile]]: ...  # pragma: no cover
    def git_branch_info(self) -> GitInfo: ...  # pragma: no cover
    def git_diff(self, path: str, staged: bool = False) -> str: ...  # pragma: no cover
    def git_log(self) -> str: ...  # pragma: no cover
    def git_log_unpushed(self) -> str: ...  # pragma: no cover
    def git_log_incoming(self) -> str: ...  # pragma: no cover
    def git_show(self, commit_hash: str) -> str: ...  # pragma: no cover
    def git_fetch(self) -> None: ...  # pragma: no cover

    # --- git mutations --------------------------------------------------

    def git_add(self, path: str) -> None: ...  # pragma: no cover
    def git_add_all(self) -> None: ...  # pragma: no cover
    def git_reset(self, path: str) -> None: ...  # pragma: no cover
    def git_reset_all(self) -> None: ...  # pragma: no cover
    def git_checkout_file(self, path: str) -> None: ...  # pragma: no cover
    def git_soft_reset(self) -> None: ...  # pragma: no cover
    def commit(self, message: str) -> None: ...  # pragma: no cover
    def push(self) -> None: ...  # pragma: no cover
    def git_pull(self) -> None: ...  # pragma: no cover

    # --- interactive builders -------------------------------------------

    def apply_cmd(self, path: str) -> InteractiveCommand: ...  # pragma: no cover
    def apply_all_cmd(self) -> InteractiveCommand: ...  # pragma: no cover
    def apply_refresh_cmd(self) -> InteractiveCommand: ...  # pragma: no cover
    def apply_dry_run_cmd(self) -> InteractiveCommand: ...  # pragma: no cover
    def apply_refresh_dry_run_cmd(self) -> InteractiveCommand: ...  # pragma: no cover
    def update_cmd(self) -> InteractiveCommand: ...  # pragma: no cover
    def init_cmd(self) -> InteractiveCommand: ...  # pragma: no cover
    def edit_cmd(self, path: str) -> InteractiveCommand: ...  # pragma: no cover
    def edit_source_cmd(self) -> InteractiveCommand | None: ...  # pragma: no cover
    def edit_config_cmd(self) -> InteractiveCommand | None: ...  # pragma: no cover
    def edit_config_template_cmd(self) -> InteractiveCommand: ...  # pragma: no cover
