"""``subprocess``-backed implementation of :class:`~chezit.core.protocols.ChezmoiBackend`.

This module is the **only** place in the codebase that spawns the
chezmoi binary.  Every ``subprocess`` / ``OSError`` failure is caught
here and re-raised as a typed :class:`~chezit.exceptions.ChezitError`
subclass — nothing raw escapes the infrastructure boundary.

Output handling
---------------
stdout and stderr are merged into a single buffer, because chezmoi
writes diagnostics to either stream depending on the exit status.  A
non-zero exit is *not* always a failure: ``diff``, ``git diff``,
``git show`` and ``doctor`` can exit non-zero while still producing
valid output, and ``commit`` / ``log`` have known benign failure texts.
"""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass

from chezit.core.models import (
    AddOptions,
    EntryFilter,
    FileStatus,
    GitFile,
    GitInfo,
    InfoFormat,
    InteractiveCommand,
)
from chezit.core.parsers import (
    is_valid_git_hash,
    parse_git_porcelain,
    parse_lines,
    parse_lines_relative_to,
    parse_status,
)
from chezit.exceptions import (
    BinaryNotFoundError,
    ChezitError,
    CommandFailedError,
    CommandTimeoutError,
    InvalidAddOptionsError,
    InvalidHashError,
    NotTrackedError,
)
from chezit.infra.binary_detector import DEFAULT_BINARY, detect_chezmoi

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT: float = 30.0
"""Seconds before a non-interactive invocation is killed."""

BASE_FLAGS: tuple[str, ...] = (
    "--no-tty",
    "--color=false",
    "--no-pager",
    "--progress=false",
    "--use-builtin-diff",
)
"""Injected into every non-interactive invocation, ahead of caller args."""

_NO_UPSTREAM_SIGNALS: tuple[str, ...] = ("no upstream", "unknown revision")
_NOTHING_TO_COMMIT = "nothing to commit"


@dataclass(frozen=True, slots=True)
class _Completed:
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ChezmoiClient:
    """Concrete :class:`ChezmoiBackend` driving the chezmoi CLI.

    Usage::

        client = ChezmoiClient()
        files = client.status()

    Parameters
    ----------
    binary_path:
        Binary name or path.  Blank / ``None`` resolves to ``chezmoi``
        on the search path.
    timeout:
        Per-call deadline in seconds.
    editor:
        Overrides ``$EDITOR`` for the edit command builders.
    """

    def __init__(
        self,
        binary_path: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        editor: str | None = None,
    ) -> None:
        self._binary: str = (binary_path or "").strip() or DEFAULT_BINARY
        self._timeout: float = timeout
        self._editor: str = (editor or "").strip()

    @property
    def binary_path(self) -> str:
        return self._binary

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def editor(self) -> str:
        return self._editor

    def is_available(self) -> bool:
        return detect_chezmoi(self._binary).found

    # ------------------------------------------------------------------
    # Process execution
    # ------------------------------------------------------------------

    def _argv(self, args: tuple[str, ...]) -> list[str]:
        return [self._binary, *BASE_FLAGS, *args]

    def _execute(self, label: str, *args: str) -> _Completed:
        """Run chezmoi with the baseline flags and capture combined output."""
        argv = self._argv(args)
        started = time.monotonic()
        try:
            proc = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            logger.debug("chezmoi %s timed out after %ss: %s", label, self._timeout, argv)
            raise CommandTimeoutError(label, self._timeout) from exc
        except FileNotFoundError as exc:
            raise BinaryNotFoundError(
                f"chezmoi binary not found: {self._binary}",
                hint="Install chezmoi or set 'binary_path' in the chezit config.",
            ) from exc
        except OSError as exc:
            raise CommandFailedError(label, str(exc)) from exc

        logger.debug(
            "chezmoi %s exited %d in %.3fs: %s",
            label,
            proc.returncode,
            time.monotonic() - started,
            argv,
        )
        return _Completed(returncode=proc.returncode, output=proc.stdout or "")

    def _run(self, label: str, *args: str) -> str:
        """Run and return output, raising on any non-zero exit."""
        result = self._execute(label, *args)
        if not result.ok:
            raise CommandFailedError(label, result.output, returncode=result.returncode)
        return result.output

    def _run_tolerant(self, label: str, *args: str, allow_error_prefix: bool = False) -> str:
        """Run and accept non-empty output as success even on a non-zero exit.

        Unless *allow_error_prefix* is set, output starting with
        ``error:`` is still treated as a failure.
        """
        result = self._execute(label, *args)
        if result.ok:
            return result.output
        out = result.output
        if out and (allow_error_prefix or not out.startswith("error:")):
            logger.debug("chezmoi %s exited %d with output; treating as success", label, result.returncode)
            return out
        raise CommandFailedError(label, out, returncode=result.returncode)

    def _interactive(self, *args: str, with_editor: bool = False) -> InteractiveCommand:
        env: tuple[tuple[str, str], ...] = ()
        if with_editor and self._editor:
            env = (("EDITOR", self._editor),)
        return InteractiveCommand(argv=(self._binary, *args), env_overrides=env)

    # ------------------------------------------------------------------
    # chezmoi reads
    # ------------------------------------------------------------------

    def is_tracked(self, path: str) -> bool:
        """Return ``True`` when ``chezmoi source-path <path>`` succeeds.

        Only a non-zero exit means "not tracked".  A timeout or a missing
        binary is not an answer and propagates as
        :class:`CommandTimeoutError` or :class:`BinaryNotFoundError`.
        """
        return self._execute("source-path", "source-path", path).ok

    def status(self) -> list[FileStatus]:
        return parse_status(self._run("status", "status", "--path-style=absolute"))

    def status_text(self) -> str:
        return self._run("status", "status")

    def diff(self, path: str) -> str:
        return self._run_tolerant("diff", "diff", path)

    def diff_all(self) -> str:
        return self._run_tolerant("diff", "diff", allow_error_prefix=True)

    def managed(self) -> list[str]:
        return self.managed_with_filter(EntryFilter())

    def managed_with_filter(self, entry_filter: EntryFilter) -> list[str]:
        """List managed entries; ``dirs`` is excluded unless mentioned."""
        args = entry_filter.with_default_dirs_excluded().to_args()
        return parse_lines(self._run("managed", "managed", "--path-style=absolute", *args))

    def ignored(self, entry_filter: EntryFilter | None = None) -> list[str]:
        """List ignored entries as absolute paths under the target root."""
        args = entry_filter.to_args() if entry_filter is not None else []
        output = self._run("ignored", "ignored", *args)
        target = self.target_path()
        return parse_lines_relative_to(output, target)

    def unmanaged(self, entry_filter: EntryFilter | None = None) -> list[str]:
        args = entry_filter.to_args() if entry_filter is not None else []
        return parse_lines(self._run("unmanaged", "unmanaged", "--path-style=absolute", *args))

    def source_dir(self) -> str:
        return self._run("source-path", "source-path").strip()

    def target_path(self) -> str:
        return self._run("target-path", "target-path").strip()

    def cat_target(self, path: str) -> str:
        return self._run("cat", "cat", path)

    def cat_config(self) -> str:
        return self._run("cat-config", "cat-config")

    def dump_config(self, fmt: InfoFormat = InfoFormat.YAML) -> str:
        return self._run("dump-config", "dump-config", f"--format={fmt.value}")

    def data(self, fmt: InfoFormat = InfoFormat.YAML) -> str:
        return self._run("data", "data", f"--format={fmt.value}")

    def doctor(self) -> str:
        """Run ``chezmoi doctor``; reported issues exit non-zero but are output."""
        return self._run_tolerant("doctor", "doctor", allow_error_prefix=True)

    def verify(self) -> None:
        """Raise :class:`CommandFailedError` when the destination is out of date."""
        self._run("verify", "verify")

    def archive(self, output_path: str) -> None:
        """Format is inferred by chezmoi from the output extension."""
        self._run("archive", "archive", f"--output={output_path}")

    # ------------------------------------------------------------------
    # chezmoi mutations
    # ------------------------------------------------------------------

    def add(self, path: str) -> None:
        self._run("add", "add", "--force", path)

    def add_with_options(self, path: str, options: AddOptions) -> None:
        if not path.strip():
            raise InvalidAddOptionsError("chezmoi add: path must not be empty")
        if options.conflicts():
            raise InvalidAddOptionsError(
                "invalid add options: only one of --encrypt, --template, --autotemplate may be specified",
            )
        self._run("add", "add", "--force", *options.to_args(), "--", path)

    def re_add(self, path: str) -> None:
        """Re-add a tracked file; fail fast without mutating if untracked.

        Raises :class:`NotTrackedError` when the tracking check exits
        non-zero.  Errors from the check itself (timeout, missing binary)
        propagate unchanged and ``re-add`` is never run.
        """
        if not self.is_tracked(path):
            raise NotTrackedError(
                f"file not tracked by chezmoi: {path}",
                hint=f"run: chezmoi add {path}",
            )
        self._run("re-add", "re-add", "--force", path)

    def re_add_all(self) -> str:
        return self._run("re-add", "re-add", "--force")

    def forget(self, path: str) -> None:
        self._run("forget", "forget", "--force", path)

    # ------------------------------------------------------------------
    # git reads
    # ------------------------------------------------------------------

    def _git(self, label: str, *args: str) -> str:
        return self._run(f"git {label}", "git", "--", *args)

    def git_root(self) -> str:
        return self._git("rev-parse", "rev-parse", "--show-toplevel").strip()

    def git_status_files(self) -> tuple[list[GitFile], list[GitFile]]:
        return parse_git_porcelain(self._git("status", "status", "--porcelain", "-u"))

    def git_branch_info(self) -> GitInfo:
        """Branch name is required; remote and ahead/behind are best-effort."""
        branch = self._git("branch", "rev-parse", "--abbrev-ref", "HEAD").strip()

        remote = ""
        try:
            remote = self._git("remote", "remote").strip().split("\n")[0].strip()
        except ChezitError as exc:
            logger.debug("git remote lookup failed: %s", exc)

        ahead = behind = 0
        try:
            counts = self._git(
                "rev-list", "rev-list", "--left-right", "--count", "@{upstream}...HEAD"
            ).split()
        except ChezitError as exc:
            logger.debug("git ahead/behind lookup failed: %s", exc)
        else:
            if len(counts) == 2:
                behind = _to_int(counts[0])
                ahead = _to_int(counts[1])

        return GitInfo(branch=branch, remote=remote, ahead=ahead, behind=behind)

    def git_diff(self, path: str, staged: bool = False) -> str:
        args = ["git", "--", "diff"]
        if staged:
            args.append("--cached")
        args.extend(["--", path])
        return self._run_tolerant("git diff", *args)

    def git_log(self) -> str:
        return self._git("log", "log", "--oneline", "-20")

    def git_log_unpushed(self) -> str:
        """Commits ahead of upstream; empty when no upstream is configured."""
        return self._git_log_range("log unpushed", "@{upstream}..HEAD")

    def git_log_incoming(self) -> str:
        """Commits behind upstream; empty when no upstream is configured."""
        return self._git_log_range("log incoming", "HEAD..@{upstream}")

    def _git_log_range(self, label: str, revision_range: str) -> str:
        result = self._execute(f"git {label}", "git", "--", "log", revision_range, "--oneline")
        if result.ok:
            return result.output
        out = result.output.strip()
        if any(signal in out for signal in _NO_UPSTREAM_SIGNALS):
            return ""
        raise CommandFailedError(f"git {label}", out, returncode=result.returncode)

    def git_show(self, commit_hash: str) -> str:
        """Show a commit; *commit_hash* must be 4–64 hex characters."""
        if not is_valid_git_hash(commit_hash):
            raise InvalidHashError(f"invalid git commit hash: {commit_hash!r}")
        return self._run_tolerant("git show", "git", "--", "show", "--format=fuller", commit_hash)

    def git_fetch(self) -> None:
        self._git("fetch", "fetch")

    # ------------------------------------------------------------------
    # git mutations
    # ------------------------------------------------------------------

    def git_add(self, path: str) -> None:
        self._git("add", "add", "--", path)

    def git_add_all(self) -> None:
        self._git("add -A", "add", "-A")

    def git_reset(self, path: str) -> None:
        self._git("reset", "reset", "HEAD", "--", path)

    def git_reset_all(self) -> None:
        self._git("reset", "reset", "HEAD")

    def git_checkout_file(self, path: str) -> None:
        self._git("checkout", "checkout", "--", path)

    def git_soft_reset(self) -> None:
        self._git("reset --soft", "reset", "--soft", "HEAD~1")

    def commit(self, message: str) -> None:
        """Commit staged changes; nothing staged is a no-op."""
        result = self._execute("git commit", "git", "--", "commit", "-m", message)
        if result.ok or _NOTHING_TO_COMMIT in result.output:
            return
        raise CommandFailedError("git commit", result.output, returncode=result.returncode)

    def push(self) -> None:
        self._git("push", "push")

    def git_pull(self) -> None:
        self._git("pull", "pull")

    # ------------------------------------------------------------------
    # Interactive builders (TTY-attached; no baseline flags)
    # ------------------------------------------------------------------

    def apply_cmd(self, path: str) -> InteractiveCommand:
        return self._interactive("apply", path)

    def apply_all_cmd(self) -> InteractiveCommand:
        return self._interactive("apply")

    def apply_refresh_cmd(self) -> InteractiveCommand:
        return self._interactive("apply", "--refresh-externals")

    def apply_dry_run_cmd(self) -> InteractiveCommand:
        return self._interactive("apply", "--dry-run", "-v")

    def apply_refresh_dry_run_cmd(self) -> InteractiveCommand:
        return self._interactive("apply", "--refresh-externals", "--dry-run", "-v")

    def update_cmd(self) -> InteractiveCommand:
        return self._interactive("update")

    def init_cmd(self) -> InteractiveCommand:
        return self._interactive("init")

    def edit_cmd(self, path: str) -> InteractiveCommand:
        return self._interactive("edit", path, with_editor=True)

    def edit_source_cmd(self) -> InteractiveCommand | None:
        return self._interactive("edit", with_editor=True)

    def edit_config_cmd(self) -> InteractiveCommand | None:
        return self._interactive("edit-config", with_editor=True)

    def edit_config_template_cmd(self) -> InteractiveCommand:
        """chezmoi creates the template from the current config if absent."""
        return self._interactive("edit-config-template", with_editor=True)


def _to_int(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0
