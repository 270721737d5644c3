from __future__ import annotations

import math


def format_time(seconds: float | None) -> str:
    if not seconds or math.isnan(seconds):
        return "0:00"
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins}:{secs:02d}"


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    i = min(int(math.floor(math.log(size) / math.log(1024))), len(units) - 1)
    txt = f"{size / (1024**i):.2f}".rstrip("0").rstrip(".")
    return f"{txt} {units[i]}"
