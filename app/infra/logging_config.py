"""Stdout logging for the API process.

Records may carry a ``context`` dict via ``extra={"context": {...}}``; the
formatter appends it as ``key=value`` pairs.
"""

from __future__ import annotations

import logging
import os
import sys

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class ContextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = getattr(record, "context", None)
        if not isinstance(context, dict) or not context:
            return message
        suffix = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{message} {suffix}"


def configure_logging(level: str | None = None) -> None:
    """Install a single stdout handler on the root logger.

    Existing root handlers are replaced so repeated calls do not duplicate
    output.
    """
    resolved = (level or LOG_LEVEL).upper()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(resolved)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(resolved)
    handler.setFormatter(ContextFormatter())
    root.addHandler(handler)
