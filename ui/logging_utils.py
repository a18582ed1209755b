"""Logging set-up shared by the API and the scripts."""
from __future__ import annotations

import logging
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _handlers(log_file: str) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    return handlers


def setup_logging() -> None:
    """Console logging plus an optional file; an empty MATERIALSEARCH_LOG_FILE disables the file."""
    root = logging.getLogger()
    if root.handlers:
        return

    level = logging.getLevelName(os.getenv("MATERIALSEARCH_LOG_LEVEL", "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in _handlers(os.getenv("MATERIALSEARCH_LOG_FILE", "materialsearch.log")):
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)
