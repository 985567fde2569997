"""Pure text-to-record transforms for chezmoi and git output.

Every function in this module is a **pure** transformation — no I/O,
no side effects, fully deterministic, and trivially unit-testable.
"""

from __future__ import annotations

import os
import re

from chezit.core.models import UNTRACKED_CODE, FileStatus, GitCommit, GitFile


_GIT_HASH_RE = re.compile(r"[0-9a-fA-F]{4,64}")
_RENAME_ARROW = " -> "


# ---------------------------------------------------------------------------
# chezmoi status
# ---------------------------------------------------------------------------

def parse_status(output: str) -> list[FileStatus]:
    """Parse ``chezmoi status`` output.

    Column 0 is the source status, column 1 the destination status,
    column 2 a separator and the remainder the path.  Lines shorter than
    four characters are skipped.
    """
    files: list[FileStatus] = []
    for line in output.split("\n"):
        if len(line) < 4:
            continue
        files.append(
            FileStatus(
                path=line[3:],
                source_status=line[0],
                dest_status=line[1],
            )
        )
    return files


# ---------------------------------------------------------------------------
# git status --porcelain
# ---------------------------------------------------------------------------

def _unquote(raw: str) -> str:
    if len(raw) >= 2 and raw[0] == '"' and raw[-1] == '"':
        return raw[1:-1]
    return raw


def _porcelain_path(raw: str) -> str:
    """Unwrap a porcelain path; a rename yields its destination side."""
    _, arrow, renamed = raw.partition(_RENAME_ARROW)
    return _unquote(renamed if arrow else raw)


def parse_git_porcelain(output: str) -> tuple[list[GitFile], list[GitFile]]:
    """Split ``git status --porcelain`` output into ``(staged, unstaged)``.

    * ``X`` (index column) other than blank / ``?`` → staged record.
    * ``Y`` (worktree column) non-blank → unstaged record; ``??`` is
      reported with the synthetic code ``"U"``.
    * Quoted paths are unwrapped and renames keep the new path.
    """
    staged: list[GitFile] = []
    unstaged: list[GitFile] = []
    for line in output.split("\n"):
        if len(line) < 4:
            continue
        x, y = line[0], line[1]
        path = _porcelain_path(line[3:])

        if x not in (" ", "?"):
            staged.append(GitFile(path=path, status_code=x))

        if y != " ":
            code = UNTRACKED_CODE if x == "?" and y == "?" else y
            unstaged.append(GitFile(path=path, status_code=code))
    return staged, unstaged


# ---------------------------------------------------------------------------
# git log --oneline
# ---------------------------------------------------------------------------

def parse_git_log_oneline(output: str) -> list[GitCommit]:
    commits: list[GitCommit] = []
    for line in output.replace("\r\n", "\n").split("\n"):
        line = line.strip()
        if not line:
            continue
        hash_, _, message = line.partition(" ")
        commits.append(GitCommit(hash=hash_, message=message))
    return commits


def is_valid_git_hash(value: str) -> bool:
    """Return ``True`` for 4–64 hex characters and nothing else.

    Flag-shaped input such as ``--help`` is rejected because ``-`` is not
    a hex digit.
    """
    return _GIT_HASH_RE.fullmatch(value) is not None


# ---------------------------------------------------------------------------
# Path listings
# ---------------------------------------------------------------------------

def parse_lines(output: str) -> list[str]:
    """Return the trimmed, non-blank lines of *output*."""
    return [line.strip() for line in output.split("\n") if line.strip()]


def parse_lines_relative_to(output: str, root: str) -> list[str]:
    """Like :func:`parse_lines`, joining every entry onto *root*."""
    return [os.path.join(root, line) for line in parse_lines(output)]
