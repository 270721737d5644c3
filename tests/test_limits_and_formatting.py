from __future__ import annotations

import pytest

from mp3_combiner.model.types import RawFile
from mp3_combiner.util import limits
from mp3_combiner.util.formatting import format_file_size, format_time
from mp3_combiner.util.limits import validate_files


def test_validate_rejects_format_size_and_duplicates(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(limits, "MAX_FILE_SIZE", 8)
    files = [
        RawFile("a.mp3", b"1234"),
        RawFile("notes.txt", b"hi"),
        RawFile("big.wav", b"x" * 9),
        RawFile("a.mp3", b"1234"),
        RawFile("B.FLAC", b"12"),
    ]
    accepted, rejected = validate_files(files)
    assert [f.name for f in accepted] == ["a.mp3", "B.FLAC"]
    assert [name for name, _ in rejected] == ["notes.txt", "big.wav", "a.mp3"]


def test_validate_rejects_oversized_selection(monkeypatch: pytest.MonkeyPatch) -> None:
    too_many = [RawFile(f"{i}.wav", b"x") for i in range(limits.MAX_FILES + 1)]
    accepted, rejected = validate_files(too_many)
    assert accepted == []
    assert len(rejected) == limits.MAX_FILES + 1

    monkeypatch.setattr(limits, "MAX_TOTAL_SIZE", 3)
    accepted, rejected = validate_files([RawFile("a.wav", b"xx"), RawFile("b.wav", b"yy")])
    assert len(accepted) == 2
    assert rejected[-1][0] == "*"


def test_format_time() -> None:
    assert format_time(0) == "0:00"
    assert format_time(None) == "0:00"
    assert format_time(float("nan")) == "0:00"
    assert format_time(65.9) == "1:05"
    assert format_time(3600) == "60:00"


def test_format_file_size() -> None:
    assert format_file_size(0) == "0 Bytes"
    assert format_file_size(500) == "500 Bytes"
    assert format_file_size(1024) == "1 KB"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(5 * 1024 * 1024) == "5 MB"
    assert format_file_size(3 * 1024**3 + 1024**3 // 4) == "3.25 GB"
