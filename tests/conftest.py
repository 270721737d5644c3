from __future__ import annotations

from pathlib import Path

import pytest

from mp3_combiner.util import logging_setup


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep config/event log out of $HOME and make ffmpeg deterministically absent.
    monkeypatch.setenv("MP3_COMBINER_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("MP3_COMBINER_FFMPEG", str(tmp_path / "no-such-ffmpeg"))
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    # Leave log handling to pytest's caplog instead of a console handler.
    monkeypatch.setattr(logging_setup.setup_logging, "_configured", True, raising=False)
