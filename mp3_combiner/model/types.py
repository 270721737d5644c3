from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Union

ArtifactFormat = Literal["wav", "mp3"]


@dataclass(frozen=True)
class AudioTrack:
    """Decoded PCM audio.

    channels holds one list of float samples in [-1, 1] per channel. Every
    channel must have the same length (the frame count).
    """

    channels: tuple[list[float], ...]
    sample_rate: int

    def __post_init__(self) -> None:
        if int(self.sample_rate) <= 0:
            raise ValueError(f"sample_rate must be > 0: {self.sample_rate}")
        if not self.channels:
            raise ValueError("track must have at least one channel")
        n = len(self.channels[0])
        for i, ch in enumerate(self.channels):
            if len(ch) != n:
                raise ValueError(f"channel {i} has {len(ch)} frames, expected {n}")

    @staticmethod
    def from_channels(channels: list[list[float]], sample_rate: int) -> "AudioTrack":
        return AudioTrack(channels=tuple(channels), sample_rate=int(sample_rate))

    @staticmethod
    def silence(seconds: float, *, sample_rate: int, channels: int = 1) -> "AudioTrack":
        n = int(seconds * sample_rate)
        return AudioTrack(channels=tuple([0.0] * n for _ in range(channels)), sample_rate=int(sample_rate))

    @property
    def channel_count(self) -> int:
        return len(self.channels)

    @property
    def frame_count(self) -> int:
        return len(self.channels[0])

    @property
    def duration(self) -> float:
        return self.frame_count / float(self.sample_rate)

    def info(self) -> "AudioInfo":
        return AudioInfo(duration=self.duration, sample_rate=self.sample_rate, channels=self.channel_count)


@dataclass(frozen=True)
class AudioInfo:
    duration: float
    sample_rate: int
    channels: int


@dataclass(frozen=True)
class RawFile:
    """Undecoded input bytes plus the name they arrived under."""

    name: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @staticmethod
    def from_path(path: str | Path) -> "RawFile":
        p = Path(path).expanduser()
        return RawFile(name=p.name, data=p.read_bytes())


@dataclass(frozen=True)
class EncodedArtifact:
    data: bytes
    format: ArtifactFormat

    @property
    def size(self) -> int:
        return len(self.data)

    def save(self, path: str | Path) -> str:
        out = Path(path).expanduser()
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(self.data)
        return str(out)


@dataclass(frozen=True)
class ConversionSuccess:
    original_name: str
    new_filename: str
    duration: float
    size: int
    artifact: EncodedArtifact
    warnings: tuple[str, ...] = ()

    ok = True

    def to_dict(self) -> dict:
        return {
            "ok": True,
            "original_name": self.original_name,
            "new_filename": self.new_filename,
            "duration": round(self.duration, 3),
            "size": self.size,
            "format": self.artifact.format,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class ConversionFailure:
    original_name: str
    error_message: str

    ok = False

    def to_dict(self) -> dict:
        return {"ok": False, "original_name": self.original_name, "error": self.error_message}


ConversionResult = Union[ConversionSuccess, ConversionFailure]


@dataclass
class CombineResult:
    """Outcome of one combine operation.

    The caller owns it: nothing else keeps a reference, and release() drops
    the buffers once the artifact has been consumed.
    """

    track: AudioTrack | None
    artifact: EncodedArtifact | None
    filename: str
    input_count: int
    warnings: list[str] = field(default_factory=list)

    @property
    def duration(self) -> float:
        return self.track.duration if self.track is not None else 0.0

    @property
    def size(self) -> int:
        return self.artifact.size if self.artifact is not None else 0

    def save(self, path: str | Path | None = None) -> str:
        if self.artifact is None:
            raise RuntimeError("combine result has been released")
        return self.artifact.save(path or self.filename)

    def release(self) -> None:
        self.track = None
        self.artifact = None
