"""Allow ``python -m chezit`` invocation.

Delegates to the CLI error-boundary entry point so that
``python -m chezit`` behaves identically to the ``chezit`` console
script.
"""

from __future__ import annotations

from chezit.cli.app import cli

if __name__ == "__main__":
    cli()
