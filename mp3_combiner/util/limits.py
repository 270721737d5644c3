from __future__ import annotations

"""Input limits for a single combine/convert selection.

These mirror what the upload form accepts; they are enforced by the CLI
before anything is decoded.
"""

from pathlib import PurePath
from typing import Sequence

from mp3_combiner.model.types import RawFile

MAX_FILES = 20
MAX_FILE_SIZE = 50 * 1024 * 1024
MAX_TOTAL_SIZE = 200 * 1024 * 1024

SUPPORTED_EXTENSIONS = (".mp3", ".wav", ".ogg", ".m4a", ".flac")


def extension(name: str) -> str:
    return PurePath(name).suffix.lower()


def validate_files(files: Sequence[RawFile]) -> tuple[list[RawFile], list[tuple[str, str]]]:
    """Split a selection into accepted files and (name, reason) rejections."""

    accepted: list[RawFile] = []
    rejected: list[tuple[str, str]] = []
    if len(files) > MAX_FILES:
        return accepted, [(f.name, f"more than {MAX_FILES} files selected") for f in files]
    seen: set[tuple[str, int]] = set()

    for f in files:
        if extension(f.name) not in SUPPORTED_EXTENSIONS:
            rejected.append((f.name, "unsupported format"))
            continue
        if f.size > MAX_FILE_SIZE:
            rejected.append((f.name, f"larger than {MAX_FILE_SIZE // (1024 * 1024)}MB"))
            continue
        key = (f.name, f.size)
        if key in seen:
            rejected.append((f.name, "already added"))
            continue
        seen.add(key)
        accepted.append(f)

    total = sum(f.size for f in accepted)
    if total > MAX_TOTAL_SIZE:
        rejected.append(("*", f"total size exceeds {MAX_TOTAL_SIZE // (1024 * 1024)}MB"))

    return accepted, rejected
