"""Infrastructure layer — external system integration.

This layer wraps all interaction with the chezmoi binary and the
operating system.  Every raw ``subprocess`` / ``OSError`` exception
must be caught here and re-raised as a
:class:`~chezit.exceptions.ChezitError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* No policy decisions.
"""

from chezit.infra.binary_detector import BinaryStatus, chezmoi_version, detect_chezmoi, require_chezmoi
from chezit.infra.chezmoi_client import BASE_FLAGS, ChezmoiClient

__all__: list[str] = [
    "BASE_FLAGS",
    "BinaryStatus",
    "ChezmoiClient",
    "chezmoi_version",
    "detect_chezmoi",
    "require_chezmoi",
]
