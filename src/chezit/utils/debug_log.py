"""Opt-in debug log file.

Library modules only create loggers; nothing is emitted until the host
process calls :func:`configure_debug_log`.  The CLI does so when
``CHEZIT_DEBUG`` names a file path.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path

from chezit.exceptions import ChezitError

DEBUG_ENV_VAR = "CHEZIT_DEBUG"


class JsonLineFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_debug_log(environ: Mapping[str, str] | None = None) -> Path | None:
    """Attach a DEBUG file handler to the ``chezit`` logger if requested.

    The file is truncated on open and created with mode ``0600``.
    Returns the log path, or ``None`` when debugging is disabled.
    """
    env = os.environ if environ is None else environ
    raw = env.get(DEBUG_ENV_VAR, "").strip()
    if not raw:
        return None

    path = Path(os.path.normpath(raw))
    try:
        fd = os.open(path, os.O_CREAT | os.O_TRUNC | os.O_WRONLY, 0o600)
    except OSError as exc:
        raise ChezitError(f"opening debug log {path}: {exc}") from exc
    os.close(fd)

    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(JsonLineFormatter())

    root = logging.getLogger("chezit")
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)
    return path
