from __future__ import annotations

import os
import shutil


def find_ffmpeg(path: str | None = None) -> str | None:
    """Locate the ffmpeg binary: explicit path, then MP3_COMBINER_FFMPEG, then PATH."""

    tool = path or os.environ.get("MP3_COMBINER_FFMPEG") or "ffmpeg"
    return shutil.which(os.path.expanduser(tool))


def base_cmd(ffmpeg: str) -> list[str]:
    return [ffmpeg, "-y", "-hide_banner", "-loglevel", "error"]
