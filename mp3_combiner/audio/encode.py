from __future__ import annotations

import logging
import subprocess
import sys
from array import array
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

from mp3_combiner.audio.wav import read_pcm16_channels
from mp3_combiner.errors import CombinerError, EncodingDegraded
from mp3_combiner.model.types import EncodedArtifact
from mp3_combiner.util.ffmpeg import base_cmd, find_ffmpeg

logger = logging.getLogger(__name__)

MP3_BLOCK_SIZE = 1152
DEFAULT_BITRATE_KBPS = 192


class Mp3EncoderSession(Protocol):
    def encode_block(self, left: Sequence[int], right: Optional[Sequence[int]] = None) -> bytes: ...

    def flush(self) -> bytes: ...


class Mp3Capability(Protocol):
    def is_available(self) -> bool: ...

    def open(self, channels: int, sample_rate: int, bitrate_kbps: int) -> Mp3EncoderSession: ...


class NullMp3Capability:
    """No MP3 encoder; every MP3 request degrades to WAV."""

    def is_available(self) -> bool:
        return False

    def open(self, channels: int, sample_rate: int, bitrate_kbps: int) -> Mp3EncoderSession:
        raise CombinerError("no MP3 encoder available")


class FfmpegMp3Session:
    """Collects PCM16 blocks and runs libmp3lame once on flush()."""

    def __init__(self, ffmpeg: str, *, channels: int, sample_rate: int, bitrate_kbps: int) -> None:
        self.ffmpeg = ffmpeg
        self.channels = channels
        self.sample_rate = sample_rate
        self.bitrate_kbps = bitrate_kbps
        self._pcm = bytearray()

    def encode_block(self, left: Sequence[int], right: Optional[Sequence[int]] = None) -> bytes:
        if self.channels == 2:
            r = right if right is not None else left
            frame = array("h", [0]) * (2 * len(left))
            frame[0::2] = array("h", left)
            frame[1::2] = array("h", r)
        else:
            frame = array("h", left)
        if sys.byteorder != "little":
            frame.byteswap()
        self._pcm += frame.tobytes()
        return b""

    def command(self) -> list[str]:
        return base_cmd(self.ffmpeg) + [
            "-f",
            "s16le",
            "-ar",
            str(int(self.sample_rate)),
            "-ac",
            str(int(self.channels)),
            "-i",
            "pipe:0",
            "-codec:a",
            "libmp3lame",
            "-b:a",
            f"{int(self.bitrate_kbps)}k",
            "-f",
            "mp3",
            "pipe:1",
        ]

    def flush(self) -> bytes:
        pcm = bytes(self._pcm)
        self._pcm = bytearray()
        proc = subprocess.run(self.command(), input=pcm, capture_output=True, check=True)
        return proc.stdout


class FfmpegMp3Capability:
    def __init__(self, ffmpeg: str | None = None) -> None:
        self.ffmpeg = ffmpeg

    def is_available(self) -> bool:
        return find_ffmpeg(self.ffmpeg) is not None

    def open(self, channels: int, sample_rate: int, bitrate_kbps: int) -> Mp3EncoderSession:
        exe = find_ffmpeg(self.ffmpeg)
        if exe is None:
            raise CombinerError("ffmpeg not found")
        return FfmpegMp3Session(exe, channels=channels, sample_rate=sample_rate, bitrate_kbps=bitrate_kbps)


@dataclass
class Mp3Outcome:
    artifact: EncodedArtifact
    warnings: list[EncodingDegraded] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)


def _degrade(wav: EncodedArtifact, reason: str) -> Mp3Outcome:
    logger.warning("MP3 encoding degraded, using WAV: %s", reason)
    return Mp3Outcome(artifact=wav, warnings=[EncodingDegraded(reason)])


def wav_to_mp3(
    wav: EncodedArtifact,
    capability: Mp3Capability,
    bitrate_kbps: int = DEFAULT_BITRATE_KBPS,
) -> Mp3Outcome:
    """Re-encode a PCM16 WAV artifact to MP3 in 1152-frame blocks.

    Falls back to the WAV artifact (with an EncodingDegraded warning) when the
    capability is missing or the encoder fails.
    """

    if not capability.is_available():
        return _degrade(wav, "MP3 encoder not available")

    hdr, pcm = read_pcm16_channels(wav.data)
    channels = min(hdr.channels, 2)
    if hdr.channels > 2:
        logger.info("MP3 encoder takes at most 2 channels; dropping %d", hdr.channels - 2)

    left = pcm[0]
    right = pcm[1] if channels == 2 else None
    chunks: list[bytes] = []
    try:
        session = capability.open(channels, hdr.sample_rate, int(bitrate_kbps))
        for i in range(0, len(left), MP3_BLOCK_SIZE):
            block_l = left[i : i + MP3_BLOCK_SIZE]
            block_r = right[i : i + MP3_BLOCK_SIZE] if right is not None else None
            buf = session.encode_block(block_l, block_r) if block_r is not None else session.encode_block(block_l)
            if buf:
                chunks.append(bytes(buf))
        tail = session.flush()
        if tail:
            chunks.append(bytes(tail))
    except Exception as e:
        # any encoder error is non-fatal: fall back to the WAV artifact
        return _degrade(wav, f"MP3 encoder failed: {e}")

    return Mp3Outcome(artifact=EncodedArtifact(data=b"".join(chunks), format="mp3"))
