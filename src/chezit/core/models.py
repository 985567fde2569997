"""Domain models for chezit.

All models are **frozen** dataclasses — immutable value objects created
fresh per call.  Sequences are stored as tuples so that nothing can be
mutated after construction.  The only behaviour carried here is derived,
side-effect-free classification (e.g. :meth:`FileStatus.side_label`).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum


SCRIPT_DIR_NAME = ".chezmoiscripts"
"""Reserved source directory holding chezmoi run scripts."""


# ---------------------------------------------------------------------------
# Mode
# ---------------------------------------------------------------------------

class Mode(str, Enum):
    """Mutation mode, fixed for the lifetime of the process."""

    WRITE = "write"
    READ_ONLY = "read_only"


# ---------------------------------------------------------------------------
# chezmoi status
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FileStatus:
    """One line of ``chezmoi status`` output."""

    path: str
    """Absolute destination path."""

    source_status: str = " "
    """First status column (source state vs. last written state)."""

    dest_status: str = " "
    """Second status column (destination vs. last written state)."""

    @property
    def is_modified(self) -> bool:
        return self.source_status != " " or self.dest_status != " "

    @property
    def is_script(self) -> bool:
        if not self.path:
            return False
        normalized = self.path.replace("\\", "/")
        return f"/{SCRIPT_DIR_NAME}/" in normalized or normalized.startswith(f"{SCRIPT_DIR_NAME}/")

    @property
    def side_label(self) -> str:
        """Classify which side changed.

        Returns one of ``"diverged"``, ``"pending apply"``,
        ``"pending script run"``, ``"target changed"`` or ``""``.
        """
        src = self.source_status != " "
        dest = self.dest_status != " "
        if self.is_script and self.source_status == "R" and not dest:
            return "pending script run"
        if src and dest:
            return "diverged"
        if src:
            return "pending apply"
        if dest:
            return "target changed"
        return ""


# ---------------------------------------------------------------------------
# git passthrough
# ---------------------------------------------------------------------------

UNTRACKED_CODE = "U"
"""Synthetic status code used for untracked (``??``) porcelain entries."""


@dataclass(frozen=True, slots=True)
class GitFile:
    """A single entry from ``git status --porcelain``."""

    path: str
    status_code: str


@dataclass(frozen=True, slots=True)
class GitInfo:
    """Branch / upstream divergence summary.

    Fields stay at their zero values when no upstream is configured.
    """

    branch: str = ""
    remote: str = ""
    ahead: int = 0
    behind: int = 0


@dataclass(frozen=True, slots=True)
class GitCommit:
    """One parsed ``git log --oneline`` line."""

    hash: str
    message: str = ""


# ---------------------------------------------------------------------------
# Entry filtering
# ---------------------------------------------------------------------------

class EntryType(str, Enum):
    """Values accepted by chezmoi ``--include`` / ``--exclude``."""

    DIRS = "dirs"
    FILES = "files"
    TEMPLATES = "templates"
    ENCRYPTED = "encrypted"
    EXTERNALS = "externals"
    SCRIPTS = "scripts"
    SYMLINKS = "symlinks"
    ALWAYS = "always"


@dataclass(frozen=True, slots=True)
class EntryFilter:
    """Include / exclude sets passed to listing subcommands.

    An empty filter means "no restriction".  Ordering of the emitted
    flags follows :class:`EntryType` declaration order so that command
    lines are deterministic.
    """

    include: frozenset[EntryType] = frozenset()
    exclude: frozenset[EntryType] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.include and not self.exclude

    def with_default_dirs_excluded(self) -> EntryFilter:
        """Return a filter that excludes ``dirs`` unless the caller mentioned it."""
        if EntryType.DIRS in self.include or EntryType.DIRS in self.exclude:
            return self
        return EntryFilter(include=self.include, exclude=self.exclude | {EntryType.DIRS})

    def to_args(self) -> list[str]:
        args = [f"--include={t.value}" for t in EntryType if t in self.include]
        args.extend(f"--exclude={t.value}" for t in EntryType if t in self.exclude)
        return args


# ---------------------------------------------------------------------------
# chezmoi add options
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class AddOptions:
    """Flags for ``chezmoi add``.

    At most one of ``encrypt``, ``template`` and ``auto_template`` may
    be set; see :meth:`conflicts`.
    """

    encrypt: bool = False
    template: bool = False
    auto_template: bool = False
    exact: bool = False
    """Directories only."""

    no_recursive: bool = False
    """Directories only."""

    def conflicts(self) -> bool:
        return sum((self.encrypt, self.template, self.auto_template)) > 1

    def to_args(self) -> list[str]:
        flags: list[str] = []
        if self.encrypt:
            flags.append("--encrypt")
        if self.template:
            flags.append("--template")
        if self.auto_template:
            flags.append("--autotemplate")
        if self.exact:
            flags.append("--exact")
        if self.no_recursive:
            flags.append("--recursive=false")
        return flags


# ---------------------------------------------------------------------------
# Interactive process handle
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class InteractiveCommand:
    """An unexecuted invocation that needs an attached terminal.

    The caller owns execution, standard-stream attachment and cleanup.
    ``env_overrides`` accepts a mapping and is stored as sorted
    ``(name, value)`` pairs so the handle stays hashable.
    """

    argv: tuple[str, ...]
    env_overrides: tuple[tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        overrides = self.env_overrides
        if isinstance(overrides, Mapping):
            overrides = overrides.items()
        object.__setattr__(self, "env_overrides", tuple(sorted(overrides)))
        object.__setattr__(self, "argv", tuple(self.argv))

    def env(self) -> dict[str, str] | None:
        """Environment for the child, or ``None`` to inherit unchanged."""
        if not self.env_overrides:
            return None
        merged = dict(os.environ)
        merged.update(self.env_overrides)
        return merged

    def __str__(self) -> str:
        return " ".join(self.argv)


# ---------------------------------------------------------------------------
# Service-level snapshots and requests
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class StatusSnapshot:
    """chezmoi status plus (optionally) git state of the source repo.

    The git fields are empty whenever the policy is read-only or the git
    status call failed.
    """

    files: tuple[FileStatus, ...] = ()
    staged: tuple[GitFile, ...] = ()
    unstaged: tuple[GitFile, ...] = ()
    git_info: GitInfo = field(default_factory=GitInfo)


class FileKind(Enum):
    MANAGED = "managed"
    IGNORED = "ignored"
    UNMANAGED = "unmanaged"


@dataclass(frozen=True, slots=True)
class LoadFilesRequest:
    kind: FileKind = FileKind.MANAGED
    entry_filter: EntryFilter = field(default_factory=EntryFilter)


@dataclass(frozen=True, slots=True)
class FilesSnapshot:
    kind: FileKind
    files: tuple[str, ...] = ()


class InfoView(Enum):
    """Which configuration / diagnostics dump to load."""

    CONFIG = "config"
    """``chezmoi cat-config``"""

    FULL = "full"
    """``chezmoi dump-config``"""

    DATA = "data"
    """Template data."""

    DOCTOR = "doctor"
    """Health check."""


class InfoFormat(str, Enum):
    YAML = "yaml"
    JSON = "json"


@dataclass(frozen=True, slots=True)
class LoadInfoRequest:
    view: InfoView
    format: InfoFormat = InfoFormat.YAML


@dataclass(frozen=True, slots=True)
class InfoSnapshot:
    view: InfoView
    content: str = ""


class ActionKind(Enum):
    """Mutating actions dispatched through :meth:`ChezmoiService.run_action`."""

    RE_ADD = "re-add"
    RE_ADD_ALL = "re-add-all"
    FORGET = "forget"
    ADD = "add"
    GIT_ADD = "git-add"
    GIT_ADD_ALL = "git-add-all"
    GIT_RESET = "git-reset"
    GIT_RESET_ALL = "git-reset-all"
    GIT_COMMIT = "git-commit"
    GIT_PUSH = "git-push"


@dataclass(frozen=True, slots=True)
class ActionRequest:
    kind: ActionKind
    path: str = ""
    add_options: AddOptions = field(default_factory=AddOptions)
    commit_message: str = ""


@dataclass(frozen=True, slots=True)
class ActionResult:
    kind: ActionKind
    message: str = ""


# ---------------------------------------------------------------------------
# Command catalogue
# ---------------------------------------------------------------------------

class CommandCategory(str, Enum):
    APPLY = "apply"
    INFO = "info"
    EDIT = "edit"


@dataclass(frozen=True, slots=True)
class CommandAvailability:
    """One row of the derived, read-only command menu."""

    label: str
    description: str
    command: str
    category: CommandCategory
    available: bool = True
    supports_dry_run: bool = False
