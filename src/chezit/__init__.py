"""chezit — policy-aware orchestration layer over the chezmoi CLI.

Built as three layers: ``infra`` runs chezmoi, ``core`` parses, gates
and aggregates, and ``cli`` renders.
"""

from chezit.version import __version__

__all__: list[str] = ["__version__"]
