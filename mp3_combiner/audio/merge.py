from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from mp3_combiner.audio.progress import ProgressFn
from mp3_combiner.audio.resample import resample_linear
from mp3_combiner.errors import EmptyInputError
from mp3_combiner.model.types import AudioTrack

logger = logging.getLogger(__name__)


def gap_frames(gap_seconds: float, sample_rate: int) -> int:
    if gap_seconds <= 0:
        return 0
    return int(math.floor(gap_seconds * sample_rate))


def merge_tracks(
    tracks: Sequence[AudioTrack],
    gap_seconds: float = 0.0,
    *,
    on_progress: Optional[ProgressFn] = None,
) -> AudioTrack:
    """Concatenate tracks into one, with optional silence between them.

    The first track fixes the output sample rate. The output has as many
    channels as the widest input; narrower inputs fill the missing channels
    with a copy of their first channel. Tracks at another rate are linearly
    resampled, but the write offset still advances by the source frame count,
    and samples falling past the end of the output are dropped.

    on_progress receives 0..100 after each track.
    """

    if not tracks:
        raise EmptyInputError("no audio to merge")

    target_rate = tracks[0].sample_rate
    target_channels = max(t.channel_count for t in tracks)
    gap = gap_frames(gap_seconds, target_rate)

    total = sum(t.frame_count for t in tracks) + gap * (len(tracks) - 1)
    out: list[list[float]] = [[0.0] * total for _ in range(target_channels)]

    logger.debug(
        "merging %d tracks: rate=%d channels=%d gap_frames=%d total_frames=%d",
        len(tracks),
        target_rate,
        target_channels,
        gap,
        total,
    )

    offset = 0
    for idx, track in enumerate(tracks):
        resampled: dict[int, list[float]] = {}
        for c in range(target_channels):
            src_c = c if c < track.channel_count else 0
            src = track.channels[src_c]
            if track.sample_rate != target_rate:
                if src_c not in resampled:
                    resampled[src_c] = resample_linear(src, track.sample_rate, target_rate)
                src = resampled[src_c]
            n = min(len(src), total - offset)
            if n > 0:
                out[c][offset : offset + n] = src[:n]

        offset += track.frame_count
        if idx < len(tracks) - 1:
            offset += gap

        if on_progress is not None:
            on_progress((idx + 1) / len(tracks) * 100.0)

    return AudioTrack.from_channels(out, target_rate)
