"""Core / service layer — parsing, policy and use-case orchestration.

Rules
-----
* No ``print()`` calls.
* No process execution — chezmoi is reached only through
  :class:`~chezit.core.protocols.ChezmoiBackend`.
* No imports from ``cli`` or ``infra``.
"""

from chezit.core.models import (
    AddOptions,
    CommandAvailability,
    EntryFilter,
    EntryType,
    FileStatus,
    GitCommit,
    GitFile,
    GitInfo,
    InteractiveCommand,
    Mode,
    StatusSnapshot,
)
from chezit.core.policy import Policy
from chezit.core.protocols import ChezmoiBackend
from chezit.core.service import ChezmoiService

__all__: list[str] = [
    "AddOptions",
    "ChezmoiBackend",
    "ChezmoiService",
    "CommandAvailability",
    "EntryFilter",
    "EntryType",
    "FileStatus",
    "GitCommit",
    "GitFile",
    "GitInfo",
    "InteractiveCommand",
    "Mode",
    "Policy",
    "StatusSnapshot",
]
