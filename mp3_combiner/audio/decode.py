from __future__ import annotations

import logging
import subprocess
from typing import Protocol

from mp3_combiner.audio.wav import read_wav_bytes
from mp3_combiner.errors import DecodeFailure
from mp3_combiner.model.types import AudioInfo, AudioTrack, RawFile
from mp3_combiner.util.ffmpeg import base_cmd, find_ffmpeg

logger = logging.getLogger(__name__)


class Decoder(Protocol):
    def decode(self, data: bytes) -> AudioTrack: ...


def is_wav(data: bytes) -> bool:
    return len(data) >= 12 and data[0:4] in {b"RIFF", b"RIFX"} and data[8:12] == b"WAVE"


class WavDecoder:
    """In-process RIFF/WAVE decoder."""

    def decode(self, data: bytes) -> AudioTrack:
        if not is_wav(data):
            raise DecodeFailure("not a WAV file")
        try:
            return read_wav_bytes(data)
        except DecodeFailure:
            raise
        except (ValueError, IndexError) as e:
            raise DecodeFailure(f"corrupt WAV data: {e}") from e


class FfmpegDecoder:
    """Decode any container ffmpeg understands by piping it through to a float WAV."""

    def __init__(self, ffmpeg: str | None = None) -> None:
        self.ffmpeg = ffmpeg

    def _binary(self) -> str | None:
        return find_ffmpeg(self.ffmpeg)

    def is_available(self) -> bool:
        return self._binary() is not None

    def decode(self, data: bytes) -> AudioTrack:
        exe = self._binary()
        if exe is None:
            raise DecodeFailure("ffmpeg not found; only WAV input can be decoded")
        if not data:
            raise DecodeFailure("empty input")

        cmd = base_cmd(exe) + ["-i", "pipe:0", "-vn", "-codec:a", "pcm_f32le", "-f", "wav", "pipe:1"]
        logger.debug("decoding %d bytes via ffmpeg", len(data))
        try:
            proc = subprocess.run(cmd, input=data, capture_output=True, check=False)
        except OSError as e:
            raise DecodeFailure(f"could not run ffmpeg: {e}") from e
        if proc.returncode != 0 or not proc.stdout:
            err = proc.stderr.decode("utf-8", errors="ignore").strip()
            raise DecodeFailure(f"ffmpeg could not decode input: {err or f'exit {proc.returncode}'}")
        return WavDecoder().decode(proc.stdout)


class AutoDecoder:
    """WAV in-process, everything else through ffmpeg."""

    def __init__(self, ffmpeg: str | None = None) -> None:
        self.wav = WavDecoder()
        self.ffmpeg = FfmpegDecoder(ffmpeg)

    def decode(self, data: bytes) -> AudioTrack:
        if is_wav(data):
            try:
                return self.wav.decode(data)
            except DecodeFailure as e:
                # e.g. ADPCM or other non-PCM WAV payloads
                if not self.ffmpeg.is_available():
                    raise
                logger.debug("in-process WAV decode failed (%s); retrying with ffmpeg", e)
        return self.ffmpeg.decode(data)


def probe(file: RawFile, decoder: Decoder) -> AudioInfo:
    """Decode a file just to report its duration, sample rate and channel count."""

    return decoder.decode(file.data).info()
