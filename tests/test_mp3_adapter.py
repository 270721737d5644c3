from __future__ import annotations

import subprocess
from types import SimpleNamespace

import pytest

from mp3_combiner.audio import encode as encode_mod
from mp3_combiner.audio.encode import (
    MP3_BLOCK_SIZE,
    FfmpegMp3Capability,
    FfmpegMp3Session,
    NullMp3Capability,
    wav_to_mp3,
)
from mp3_combiner.audio.wav import encode_wav
from mp3_combiner.errors import EncodingDegraded
from mp3_combiner.model.types import AudioTrack


class RecordingSession:
    def __init__(self, *, fail: bool = False) -> None:
        self.blocks: list[tuple[int, int | None]] = []
        self.fail = fail

    def encode_block(self, left, right=None) -> bytes:
        if self.fail:
            raise OSError("encoder crashed")
        self.blocks.append((len(left), None if right is None else len(right)))
        # first block yields nothing, like a real encoder filling its reservoir
        return b"" if len(self.blocks) == 1 else b"B%d" % len(self.blocks)

    def flush(self) -> bytes:
        return b"END"


class FakeMp3:
    def __init__(self, *, available: bool = True, fail: bool = False) -> None:
        self.available = available
        self.session = RecordingSession(fail=fail)
        self.opened: list[tuple[int, int, int]] = []

    def is_available(self) -> bool:
        return self.available

    def open(self, channels: int, sample_rate: int, bitrate_kbps: int) -> RecordingSession:
        self.opened.append((channels, sample_rate, bitrate_kbps))
        return self.session


def _wav(frames: int, channels: int, rate: int = 44100):
    return encode_wav(AudioTrack.from_channels([[0.1] * frames for _ in range(channels)], rate))


def test_unavailable_capability_passes_wav_through() -> None:
    wav = _wav(100, 2)
    out = wav_to_mp3(wav, NullMp3Capability())
    assert out.artifact is wav
    assert out.degraded
    assert isinstance(out.warnings[0], EncodingDegraded)


def test_stereo_is_fed_in_1152_frame_blocks() -> None:
    mp3 = FakeMp3()
    out = wav_to_mp3(_wav(2500, 2, rate=48000), mp3, 128)

    assert mp3.opened == [(2, 48000, 128)]
    assert mp3.session.blocks == [(1152, 1152), (1152, 1152), (2500 - 2 * MP3_BLOCK_SIZE, 196)]
    assert not out.degraded
    assert out.artifact.format == "mp3"
    assert out.artifact.data == b"B2B3END"


def test_mono_sends_left_only() -> None:
    mp3 = FakeMp3()
    wav_to_mp3(_wav(10, 1), mp3)
    assert mp3.opened == [(1, 44100, 192)]
    assert mp3.session.blocks == [(10, None)]


def test_more_than_two_channels_encode_as_stereo() -> None:
    mp3 = FakeMp3()
    wav_to_mp3(_wav(5, 4), mp3)
    assert mp3.opened[0][0] == 2
    assert mp3.session.blocks == [(5, 5)]


def test_encoder_failure_degrades_to_wav() -> None:
    wav = _wav(100, 1)
    out = wav_to_mp3(wav, FakeMp3(fail=True))
    assert out.artifact is wav
    assert "encoder crashed" in str(out.warnings[0])


def test_ffmpeg_session_buffers_interleaved_pcm(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[list[str], bytes]] = []

    def fake_run(cmd, input=None, capture_output=False, check=False):
        calls.append((cmd, input))
        return SimpleNamespace(stdout=b"\xff\xfbmp3", returncode=0)

    monkeypatch.setattr(encode_mod.subprocess, "run", fake_run)

    s = FfmpegMp3Session("ffmpeg", channels=2, sample_rate=44100, bitrate_kbps=192)
    assert s.encode_block([1, 2], [3, 4]) == b""
    assert s.flush() == b"\xff\xfbmp3"

    cmd, pcm = calls[0]
    assert "libmp3lame" in cmd
    assert "192k" in cmd
    assert cmd[cmd.index("-ac") + 1] == "2"
    assert pcm == b"\x01\x00\x03\x00\x02\x00\x04\x00"


def test_ffmpeg_capability_absent_when_binary_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    assert FfmpegMp3Capability().is_available() is False

    def boom(*_a, **_k):
        raise subprocess.CalledProcessError(1, ["ffmpeg"])

    monkeypatch.setattr(encode_mod.subprocess, "run", boom)
    monkeypatch.setattr(encode_mod, "find_ffmpeg", lambda _p=None: "/usr/bin/ffmpeg")
    wav = _wav(10, 2)
    out = wav_to_mp3(wav, FfmpegMp3Capability())
    assert out.artifact is wav
    assert out.degraded


class ExplodingSession:
    def __init__(self, where: str) -> None:
        self.where = where

    def encode_block(self, left, right=None) -> bytes:
        if self.where == "block":
            raise RuntimeError("lame internal error")
        return b"x"

    def flush(self) -> bytes:
        raise RuntimeError("lame internal error")


@pytest.mark.parametrize("where", ["block", "flush"])
def test_any_encoder_exception_degrades_to_wav(where: str) -> None:
    mp3 = FakeMp3()
    mp3.session = ExplodingSession(where)  # type: ignore[assignment]
    wav = _wav(2000, 2)
    out = wav_to_mp3(wav, mp3)
    assert out.artifact is wav
    assert isinstance(out.warnings[0], EncodingDegraded)
    assert "lame internal error" in str(out.warnings[0])
