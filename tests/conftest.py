"""Shared pytest fixtures and configuration for the chezit test suite.

Guidelines
----------
* No real chezmoi or git invocation in any test.
* ``subprocess.run`` is mocked at the infra boundary.
* Core tests use a ``MagicMock`` backend — no side effects.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from chezit.core.models import InteractiveCommand


@pytest.fixture(autouse=True)
def _no_debug_log(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CHEZIT_DEBUG", raising=False)


@pytest.fixture
def fake_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home


@pytest.fixture
def backend() -> MagicMock:
    """A mock :class:`ChezmoiBackend` with sensible empty results."""
    mock = MagicMock()
    mock.status.return_value = []
    mock.git_status_files.return_value = ([], [])
    mock.edit_source_cmd.return_value = InteractiveCommand(argv=("chezmoi", "edit"))
    mock.edit_config_cmd.return_value = InteractiveCommand(argv=("chezmoi", "edit-config"))
    return mock


