"""Core chezmoi service — policy-gated façade and snapshot aggregation.

This is the central service class consumed by the CLI layer.  It
depends on a :class:`~chezit.core.protocols.ChezmoiBackend` injected at
construction time (dependency inversion) and owns a
:class:`~chezit.core.policy.Policy` for its lifetime.

Guarantees
----------
* Read-style methods delegate to the backend without policy checks.
* Every mutating method calls :meth:`Policy.check_mutation` first; a
  policy failure is raised before any process is spawned.
* Interactive accessors return ``None`` when the action is unavailable
  under the current policy.
* No retries — every failure surfaces once, to the caller.
"""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from chezit.core.models import (
    ActionKind,
    ActionRequest,
    ActionResult,
    AddOptions,
    CommandAvailability,
    EntryFilter,
    FileKind,
    FileStatus,
    FilesSnapshot,
    GitCommit,
    GitFile,
    GitInfo,
    InfoFormat,
    InfoSnapshot,
    InfoView,
    InteractiveCommand,
    LoadFilesRequest,
    LoadInfoRequest,
    Mode,
    StatusSnapshot,
)
from chezit.core.parsers import parse_git_log_oneline
from chezit.core.policy import Policy
from chezit.core.protocols import ChezmoiBackend
from chezit.exceptions import ChezitError

logger = logging.getLogger(__name__)


APP_NAME = "chezit"
ARCHIVE_PREFIX = "chezmoi-archive-"
ARCHIVE_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


class ChezmoiService:
    """Use-case façade over a chezmoi backend.

    Parameters
    ----------
    backend:
        Any object satisfying the :class:`ChezmoiBackend` protocol.
    mode:
        Mutation mode for the lifetime of the service.
    target_path:
        Absolute root of the managed tree (``chezmoi target-path``).
    """

    def __init__(self, backend: ChezmoiBackend, mode: Mode, target_path: str = "") -> None:
        self._backend: ChezmoiBackend = backend
        self._policy: Policy = Policy(mode, target_path)

    @property
    def policy(self) -> Policy:
        return self._policy

    def is_read_only(self) -> bool:
        return self._policy.is_read_only()

    @property
    def target_path(self) -> str:
        return self._policy.target_path

    # ------------------------------------------------------------------
    # Read operations (ungated)
    # ------------------------------------------------------------------

    def status(self) -> list[FileStatus]:
        return self._backend.status()

    def status_text(self) -> str:
        return self._backend.status_text()

    def diff(self, path: str) -> str:
        return self._backend.diff(path)

    def diff_all(self) -> str:
        return self._backend.diff_all()

    def managed_files(self, entry_filter: EntryFilter | None = None) -> list[str]:
        return self._backend.managed_with_filter(entry_filter or EntryFilter())

    def ignored_files(self, entry_filter: EntryFilter | None = None) -> list[str]:
        return self._backend.ignored(entry_filter)

    def unmanaged_files(self, entry_filter: EntryFilter | None = None) -> list[str]:
        return self._backend.unmanaged(entry_filter)

    def cat_target(self, path: str) -> str:
        return self._backend.cat_target(path)

    def cat_config(self) -> str:
        return self._backend.cat_config()

    def dump_config(self, fmt: InfoFormat = InfoFormat.YAML) -> str:
        return self._backend.dump_config(fmt)

    def data(self, fmt: InfoFormat = InfoFormat.YAML) -> str:
        return self._backend.data(fmt)

    def doctor(self) -> str:
        return self._backend.doctor()

    def verify(self) -> None:
        self._backend.verify()

    def source_dir(self) -> str:
        return self._backend.source_dir()

    def git_branch_info(self) -> GitInfo:
        return self._backend.git_branch_info()

    def git_status(self) -> tuple[list[GitFile], list[GitFile]]:
        return self._backend.git_status_files()

    def git_diff(self, path: str, staged: bool = False) -> str:
        return self._backend.git_diff(path, staged)

    def git_log(self) -> str:
        return self._backend.git_log()

    def git_log_commits(self) -> list[GitCommit]:
        return parse_git_log_oneline(self._backend.git_log())

    def git_log_unpushed(self) -> str:
        return self._backend.git_log_unpushed()

    def git_log_incoming(self) -> str:
        return self._backend.git_log_incoming()

    def git_show(self, commit_hash: str) -> str:
        return self._backend.git_show(commit_hash)

    def git_fetch(self) -> None:
        """Allowed in read-only mode: fetch only updates remote-tracking refs."""
        self._backend.git_fetch()

    # ------------------------------------------------------------------
    # Aggregated reads
    # ------------------------------------------------------------------

    def load_status(self) -> StatusSnapshot:
        """Combine chezmoi status with git state of the source repo.

        The git section is filled only in write mode and only when
        ``git status`` succeeds; a branch-info failure leaves
        :class:`GitInfo` at its zero value.
        """
        files = tuple(self._backend.status())
        if self._policy.is_read_only():
            return StatusSnapshot(files=files)

        try:
            staged, unstaged = self._backend.git_status_files()
        except ChezitError as exc:
            logger.debug("git status unavailable, returning chezmoi status only: %s", exc)
            return StatusSnapshot(files=files)

        try:
            info = self._backend.git_branch_info()
        except ChezitError as exc:
            logger.debug("git branch info unavailable: %s", exc)
            info = GitInfo()

        return StatusSnapshot(
            files=files,
            staged=tuple(staged),
            unstaged=tuple(unstaged),
            git_info=info,
        )

    def load_files(self, request: LoadFilesRequest) -> FilesSnapshot:
        entry_filter = request.entry_filter
        if request.kind is FileKind.MANAGED:
            files = self._backend.managed_with_filter(entry_filter)
        elif request.kind is FileKind.IGNORED:
            files = self._backend.ignored(None if entry_filter.is_empty else entry_filter)
        elif request.kind is FileKind.UNMANAGED:
            files = self._backend.unmanaged(None if entry_filter.is_empty else entry_filter)
        else:
            files = []
        return FilesSnapshot(kind=request.kind, files=tuple(files))

    def load_info(self, request: LoadInfoRequest) -> InfoSnapshot:
        """Load one configuration / diagnostics view.

        ``FULL`` and ``DATA`` honour the request format; ``CONFIG`` and
        ``DOCTOR`` ignore it.  An unrecognised view yields empty content
        without calling the backend.
        """
        if request.view is InfoView.CONFIG:
            content = self._backend.cat_config()
        elif request.view is InfoView.FULL:
            content = self._backend.dump_config(request.format)
        elif request.view is InfoView.DATA:
            content = self._backend.data(request.format)
        elif request.view is InfoView.DOCTOR:
            content = self._backend.doctor()
        else:
            content = ""
        return InfoSnapshot(view=request.view, content=content)

    # ------------------------------------------------------------------
    # Mutations (policy-gated)
    # ------------------------------------------------------------------

    def re_add(self, path: str) -> None:
        self._policy.check_mutation()
        self._backend.re_add(path)

    def re_add_all(self) -> str:
        self._policy.check_mutation()
        return self._backend.re_add_all()

    def forget(self, path: str) -> None:
        self._policy.check_mutation()
        self._backend.forget(path)

    def add(self, path: str, options: AddOptions | None = None) -> None:
        """Add *path*, which must lie inside the target directory."""
        self._policy.check_mutation()
        self._policy.validate_target_path(path)
        self._backend.add_with_options(path, options or AddOptions())

    def git_add(self, path: str) -> None:
        self._policy.check_mutation()
        self._backend.git_add(path)

    def git_add_all(self) -> None:
        self._policy.check_mutation()
        self._backend.git_add_all()

    def git_reset(self, path: str) -> None:
        self._policy.check_mutation()
        self._backend.git_reset(path)

    def git_reset_all(self) -> None:
        self._policy.check_mutation()
        self._backend.git_reset_all()

    def git_checkout_file(self, path: str) -> None:
        self._policy.check_mutation()
        self._backend.git_checkout_file(path)

    def git_soft_reset(self) -> None:
        self._policy.check_mutation()
        self._backend.git_soft_reset()

    def git_commit(self, message: str) -> None:
        self._policy.check_mutation()
        self._backend.commit(message)

    def git_push(self) -> None:
        self._policy.check_mutation()
        self._backend.push()

    def git_pull(self) -> None:
        self._policy.check_mutation()
        self._backend.git_pull()

    def run_action(self, request: ActionRequest) -> ActionResult:
        """Dispatch a mutating :class:`ActionRequest` to its gated method."""
        kind = request.kind
        path = request.path
        if kind is ActionKind.RE_ADD:
            self.re_add(path)
            message = f"Re-added {path}"
        elif kind is ActionKind.RE_ADD_ALL:
            output = self.re_add_all().strip()
            message = output or "Re-added all managed files"
        elif kind is ActionKind.FORGET:
            self.forget(path)
            message = f"Forgot {path}"
        elif kind is ActionKind.ADD:
            self.add(path, request.add_options)
            message = f"Added {path}"
        elif kind is ActionKind.GIT_ADD:
            self.git_add(path)
            message = f"Staged {path}"
        elif kind is ActionKind.GIT_ADD_ALL:
            self.git_add_all()
            message = "Staged all changes"
        elif kind is ActionKind.GIT_RESET:
            self.git_reset(path)
            message = f"Unstaged {path}"
        elif kind is ActionKind.GIT_RESET_ALL:
            self.git_reset_all()
            message = "Unstaged all changes"
        elif kind is ActionKind.GIT_COMMIT:
            self.git_commit(request.commit_message)
            message = "Committed"
        elif kind is ActionKind.GIT_PUSH:
            self.git_push()
            message = "Pushed"
        else:
            raise ChezitError(f"unsupported action: {kind!r}")
        return ActionResult(kind=kind, message=message)

    # ------------------------------------------------------------------
    # Interactive commands (None when unavailable)
    # ------------------------------------------------------------------

    def apply_cmd(self, path: str) -> InteractiveCommand | None:
        if self._policy.is_read_only():
            return None
        return self._backend.apply_cmd(path)

    def apply_all_cmd(self) -> InteractiveCommand | None:
        if self._policy.is_read_only():
            return None
        return self._backend.apply_all_cmd()

    def apply_refresh_cmd(self) -> InteractiveCommand | None:
        if self._policy.is_read_only():
            return None
        return self._backend.apply_refresh_cmd()

    def apply_dry_run_cmd(self) -> InteractiveCommand:
        return self._backend.apply_dry_run_cmd()

    def apply_refresh_dry_run_cmd(self) -> InteractiveCommand:
        return self._backend.apply_refresh_dry_run_cmd()

    def update_cmd(self) -> InteractiveCommand | None:
        if self._policy.is_read_only():
            return None
        return self._backend.update_cmd()

    def init_cmd(self) -> InteractiveCommand | None:
        if self._policy.is_read_only():
            return None
        return self._backend.init_cmd()

    def edit_cmd(self, path: str) -> InteractiveCommand | None:
        if self._policy.is_read_only():
            return None
        return self._backend.edit_cmd(path)

    def edit_source_cmd(self) -> InteractiveCommand | None:
        if self._policy.is_read_only():
            return None
        return self._backend.edit_source_cmd()

    def edit_config_cmd(self) -> InteractiveCommand | None:
        """Not gated: read-only protects dotfiles, not chezmoi's own config."""
        return self._backend.edit_config_cmd()

    def edit_config_template_cmd(self) -> InteractiveCommand:
        return self._backend.edit_config_template_cmd()

    # ------------------------------------------------------------------
    # Archive
    # ------------------------------------------------------------------

    def archive(self) -> str:
        """Write a timestamped ``.tar.gz`` of the target state.

        Not gated by read-only: archiving reads the destination state.
        Returns the output path.
        """
        output_path = self._archive_output_path()
        self._backend.archive(output_path)
        return output_path

    def archive_output_dir(self) -> str:
        try:
            base = str(Path.home())
        except RuntimeError:
            base = tempfile.gettempdir()
        return os.path.join(base, ".local", "share", APP_NAME, "archives")

    def _archive_output_path(self) -> str:
        directory = self.archive_output_dir()
        try:
            os.makedirs(directory, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise ChezitError(f"create archive directory: {exc}") from exc
        stamp = datetime.now().strftime(ARCHIVE_TIMESTAMP_FORMAT)
        return os.path.join(directory, f"{ARCHIVE_PREFIX}{stamp}.tar.gz")

    # ------------------------------------------------------------------
    # Command catalogue
    # ------------------------------------------------------------------

    def available_commands(self) -> list[CommandAvailability]:
        return self._policy.available_commands(
            self._backend.edit_source_cmd() is not None,
            self._backend.edit_config_cmd() is not None,
        )
