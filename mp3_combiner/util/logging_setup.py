from __future__ import annotations

import logging
import os

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str | None = None, *, force: bool = False) -> None:
    """Configure the package logger once; LOG_LEVEL overrides the given level."""

    root = logging.getLogger("mp3_combiner")
    if getattr(setup_logging, "_configured", False) and not force:
        return
    if force:
        for h in list(root.handlers):
            root.removeHandler(h)

    level_name = (os.getenv("LOG_LEVEL") or level or "INFO").upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    root.addHandler(console)
    setup_logging._configured = True  # type: ignore[attr-defined]
