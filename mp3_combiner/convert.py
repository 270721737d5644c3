from __future__ import annotations

import logging
from datetime import datetime
from pathlib import PurePath
from typing import Optional, Sequence

from mp3_combiner.audio.decode import AutoDecoder, Decoder, probe
from mp3_combiner.audio.encode import DEFAULT_BITRATE_KBPS, FfmpegMp3Capability, Mp3Capability, wav_to_mp3
from mp3_combiner.audio.merge import merge_tracks
from mp3_combiner.audio.progress import MonotonicProgress, ProgressFn, scaled
from mp3_combiner.audio.resample import resample_linear
from mp3_combiner.audio.wav import encode_wav
from mp3_combiner.errors import UnsupportedTargetFormat
from mp3_combiner.model.types import (
    AudioInfo,
    AudioTrack,
    CombineResult,
    ConversionFailure,
    ConversionResult,
    ConversionSuccess,
    EncodedArtifact,
    RawFile,
)

logger = logging.getLogger(__name__)

COMBINE_FORMATS = ("mp3", "wav")
CONVERT_FORMATS = ("mp3", "wav", "ogg")

# combine pipeline stage boundaries (percent)
LOAD_END = 50.0
MERGE_END = 90.0


def output_filename(original_name: str, fmt: str) -> str:
    """Swap the extension of original_name for fmt."""

    stem = PurePath(original_name).name
    if "." in stem.lstrip("."):
        stem = stem[: stem.rfind(".")]
    return f"{stem}.{fmt}"


def combined_filename(fmt: str, *, now: datetime | None = None) -> str:
    ts = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"combined_{ts}.{fmt}"


def resample_track(track: AudioTrack, sample_rate: int) -> AudioTrack:
    if track.sample_rate == sample_rate:
        return track
    chans = [resample_linear(ch, track.sample_rate, sample_rate) for ch in track.channels]
    return AudioTrack.from_channels(chans, sample_rate)


class Combiner:
    """Decode, merge and export a list of files as one track.

    Capabilities are injected; nothing is cached between calls, each
    combine() returns its own CombineResult.
    """

    def __init__(self, decoder: Decoder | None = None, mp3: Mp3Capability | None = None) -> None:
        self.decoder = decoder or AutoDecoder()
        self.mp3 = mp3 or FfmpegMp3Capability()

    def info(self, file: RawFile) -> AudioInfo:
        return probe(file, self.decoder)

    def load(self, files: Sequence[RawFile], on_progress: Optional[ProgressFn] = None) -> list[AudioTrack]:
        tracks: list[AudioTrack] = []
        for i, f in enumerate(files):
            logger.debug("decoding %s (%d bytes)", f.name, f.size)
            tracks.append(self.decoder.decode(f.data))
            if on_progress is not None:
                on_progress((i + 1) / len(files) * 100.0)
        return tracks

    def export(
        self,
        track: AudioTrack,
        fmt: str = "mp3",
        bitrate_kbps: int = DEFAULT_BITRATE_KBPS,
    ) -> tuple[EncodedArtifact, list[str]]:
        if fmt not in COMBINE_FORMATS:
            raise ValueError(f"output format must be one of: {'|'.join(COMBINE_FORMATS)}")
        wav = encode_wav(track)
        if fmt == "wav":
            return wav, []
        outcome = wav_to_mp3(wav, self.mp3, bitrate_kbps)
        return outcome.artifact, [str(w) for w in outcome.warnings]

    def combine(
        self,
        files: Sequence[RawFile],
        *,
        gap_seconds: float = 0.0,
        output_format: str = "mp3",
        bitrate_kbps: int = DEFAULT_BITRATE_KBPS,
        on_progress: Optional[ProgressFn] = None,
    ) -> CombineResult:
        if output_format not in COMBINE_FORMATS:
            raise ValueError(f"output format must be one of: {'|'.join(COMBINE_FORMATS)}")
        progress = MonotonicProgress(on_progress)
        progress(0.0)

        tracks = self.load(files, scaled(progress, 0.0, LOAD_END))
        combined = merge_tracks(tracks, gap_seconds, on_progress=scaled(progress, LOAD_END, MERGE_END))
        del tracks

        artifact, warnings = self.export(combined, output_format, bitrate_kbps)
        progress(100.0)

        logger.info(
            "combined %d files: %.2fs, %d channels @ %d Hz, %d bytes %s",
            len(files),
            combined.duration,
            combined.channel_count,
            combined.sample_rate,
            artifact.size,
            artifact.format,
        )
        return CombineResult(
            track=combined,
            artifact=artifact,
            filename=combined_filename(output_format),
            input_count=len(files),
            warnings=warnings,
        )


class BatchConverter:
    """Convert files one at a time; a failing file never stops the batch."""

    def __init__(self, decoder: Decoder | None = None, mp3: Mp3Capability | None = None) -> None:
        self.decoder = decoder or AutoDecoder()
        self.mp3 = mp3 or FfmpegMp3Capability()

    def convert_file(
        self,
        file: RawFile,
        target_format: str = "mp3",
        bitrate_kbps: int = DEFAULT_BITRATE_KBPS,
        sample_rate: int = 44100,
    ) -> ConversionSuccess:
        if target_format not in CONVERT_FORMATS:
            raise ValueError(f"target format must be one of: {'|'.join(CONVERT_FORMATS)}")

        track = self.decoder.decode(file.data)
        track = resample_track(track, int(sample_rate))
        wav = encode_wav(track)

        warnings: list[str] = []
        if target_format == "mp3":
            outcome = wav_to_mp3(wav, self.mp3, bitrate_kbps)
            artifact = outcome.artifact
            warnings.extend(str(w) for w in outcome.warnings)
        elif target_format == "ogg":
            w = UnsupportedTargetFormat("OGG encoding not supported, using WAV")
            logger.warning("%s: %s", file.name, w)
            artifact = wav
            warnings.append(str(w))
        else:
            artifact = wav

        return ConversionSuccess(
            original_name=file.name,
            new_filename=output_filename(file.name, target_format),
            duration=track.duration,
            size=artifact.size,
            artifact=artifact,
            warnings=tuple(warnings),
        )

    def convert_all(
        self,
        files: Sequence[RawFile],
        target_format: str = "mp3",
        bitrate_kbps: int = DEFAULT_BITRATE_KBPS,
        sample_rate: int = 44100,
        on_progress: Optional[ProgressFn] = None,
    ) -> list[ConversionResult]:
        results: list[ConversionResult] = []
        total = len(files)
        for i, f in enumerate(files):
            try:
                results.append(self.convert_file(f, target_format, bitrate_kbps, sample_rate))
            except Exception as e:
                logger.error("error converting %s: %s", f.name, e)
                results.append(ConversionFailure(original_name=f.name, error_message=str(e) or type(e).__name__))
            if on_progress is not None:
                on_progress((i + 1) / total * 100.0)
        return results
