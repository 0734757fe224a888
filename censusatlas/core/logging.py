"""
Census Atlas — Logging setup.

``configure_logging()`` is called once by ``censusatlas.app``.  Besides the
shared format and level it attaches a filter that masks the Census API key:
the key travels in the query string, so any logged request URL would
otherwise carry it.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Iterable, Optional, Tuple

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
MASK = "***"

# One line per Census partition request at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

_configured = False


def redact(text: str, secret: str) -> str:
    """Replace ``secret`` in ``text`` so credentials never reach the logs."""
    if not secret:
        return text
    return text.replace(secret, MASK)


class RedactingFilter(logging.Filter):
    """Masks every configured secret in the rendered log message."""

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        self.secrets: Tuple[str, ...] = tuple(s for s in secrets if s)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        for secret in self.secrets:
            message = redact(message, secret)
        record.msg = message
        record.args = None
        return True


def resolve_level(level: Optional[str] = None) -> int:
    """``level`` or ``$LOG_LEVEL`` as a logging constant; INFO if unrecognised."""
    name = (level or os.environ.get("LOG_LEVEL") or "INFO").strip().upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(
    level: Optional[str] = None,
    secrets: Iterable[str] = (),
    fmt: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
) -> None:
    """Configure the root logger exactly once.

    A stdout handler is added only when nothing (uvicorn, pytest) installed
    one first; the redacting filter goes on every root handler either way.
    """
    global _configured
    if _configured:
        return

    root = logging.getLogger()
    root.setLevel(resolve_level(level))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))
        root.addHandler(handler)

    redactor = RedactingFilter(secrets)
    for handler in root.handlers:
        handler.addFilter(redactor)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
