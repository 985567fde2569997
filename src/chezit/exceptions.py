"""Custom exception hierarchy for chezit.

All exceptions that cross layer boundaries must inherit from
:class:`ChezitError`.  Raw ``subprocess`` / ``OSError`` exceptions must
NEVER propagate beyond the infrastructure layer — they must be caught
and re-raised as a typed subclass defined here.

Hierarchy
---------
ChezitError
├── PolicyError
│   ├── ReadOnlyError
│   ├── OutsideTargetError
│   ├── PathEmptyError
│   └── PathNotAbsError
├── InvalidHashError
├── InvalidAddOptionsError
├── NotTrackedError
├── CommandFailedError
│   └── CommandTimeoutError
├── BinaryNotFoundError
└── ConfigError
"""

from __future__ import annotations


class ChezitError(Exception):
    """Base exception for all chezit errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Policy ----------------------------------------------------------------

class PolicyError(ChezitError):
    """Raised when a request is rejected before any process is spawned."""


class ReadOnlyError(PolicyError):
    """Raised when a mutation is attempted while the policy is read-only."""

    def __init__(self, message: str = "chezmoi manager is read-only", *, hint: str | None = None) -> None:
        super().__init__(message, hint=hint)


class OutsideTargetError(PolicyError):
    """Raised when a path lies outside the managed target directory."""

    def __init__(self, message: str = "path is outside target directory", *, hint: str | None = None) -> None:
        super().__init__(message, hint=hint)


class PathEmptyError(PolicyError):
    """Raised when an empty path is supplied."""

    def __init__(self, message: str = "path is empty", *, hint: str | None = None) -> None:
        super().__init__(message, hint=hint)


class PathNotAbsError(PolicyError):
    """Raised when a relative path is supplied where an absolute one is required."""

    def __init__(self, message: str = "path must be absolute", *, hint: str | None = None) -> None:
        super().__init__(message, hint=hint)


# --- Argument validation ---------------------------------------------------

class InvalidHashError(ChezitError):
    """Raised when a git object reference fails hash validation."""


class InvalidAddOptionsError(ChezitError):
    """Raised when ``chezmoi add`` is requested with conflicting flags."""


class NotTrackedError(ChezitError):
    """Raised when re-adding a file chezmoi does not manage."""


# --- External process ------------------------------------------------------

class CommandFailedError(ChezitError):
    """Raised when a chezmoi invocation exits unsuccessfully.

    The failing subcommand and the trimmed combined output are kept as
    attributes so callers can inspect the underlying cause.
    """

    def __init__(
        self,
        subcommand: str,
        output: str = "",
        *,
        returncode: int | None = None,
        hint: str | None = None,
    ) -> None:
        self.subcommand: str = subcommand
        self.output: str = output.strip()
        self.returncode: int | None = returncode
        message = f"chezmoi {subcommand}"
        if self.output:
            message = f"{message}: {self.output}"
        super().__init__(message, hint=hint)


class CommandTimeoutError(CommandFailedError):
    """Raised when a chezmoi invocation exceeds its deadline and is killed."""

    def __init__(self, subcommand: str, timeout: float, output: str = "") -> None:
        self.timeout: float = timeout
        super().__init__(
            subcommand,
            output or f"timed out after {timeout:g}s",
            hint="Increase 'timeout' in the chezit config if the repository is large.",
        )


# --- Environment / tooling -------------------------------------------------

class BinaryNotFoundError(ChezitError):
    """Raised when the chezmoi binary cannot be located."""


class ConfigError(ChezitError):
    """Raised when the configuration file cannot be read or validated."""
