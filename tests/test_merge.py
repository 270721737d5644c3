from __future__ import annotations

import pytest

from mp3_combiner.audio.merge import gap_frames, merge_tracks
from mp3_combiner.errors import EmptyInputError
from mp3_combiner.model.types import AudioTrack


def _mono(samples: list[float], rate: int = 8) -> AudioTrack:
    return AudioTrack.from_channels([samples], rate)


def test_merge_empty_list_fails() -> None:
    with pytest.raises(EmptyInputError):
        merge_tracks([], 1.0)


def test_two_silent_seconds_with_one_second_gap() -> None:
    a = AudioTrack.silence(1.0, sample_rate=44100)
    b = AudioTrack.silence(1.0, sample_rate=44100)
    out = merge_tracks([a, b], 1.0)
    assert out.channel_count == 1
    assert out.frame_count == 132300
    assert out.duration == pytest.approx(3.0)


def test_gap_only_between_tracks() -> None:
    tracks = [_mono([1.0] * 4), _mono([0.5] * 2), _mono([-1.0] * 3)]
    out = merge_tracks(tracks, 0.25)  # 2 frames at 8 Hz
    ch = out.channels[0]
    assert ch == [1.0] * 4 + [0.0] * 2 + [0.5] * 2 + [0.0] * 2 + [-1.0] * 3
    assert out.duration == pytest.approx(sum(t.duration for t in tracks) + 0.25 * 2)


def test_no_gap_when_gap_not_positive() -> None:
    out = merge_tracks([_mono([1.0] * 3), _mono([0.5] * 3)], -1.0)
    assert out.channels[0] == [1.0] * 3 + [0.5] * 3
    assert gap_frames(0.0, 44100) == 0
    assert gap_frames(0.5, 44100) == 22050


def test_single_track_has_no_gap() -> None:
    out = merge_tracks([_mono([0.25] * 5)], 2.0)
    assert out.frame_count == 5


def test_channel_count_is_max_and_mono_is_duplicated() -> None:
    mono = _mono([0.5] * 3)
    stereo = AudioTrack.from_channels([[0.1] * 2, [0.2] * 2], 8)
    out = merge_tracks([mono, stereo])
    assert out.channel_count == 2
    assert out.channels[0] == [0.5, 0.5, 0.5, 0.1, 0.1]
    # missing channel copies channel 0, it is not an average
    assert out.channels[1] == [0.5, 0.5, 0.5, 0.2, 0.2]


def test_other_rates_follow_first_track() -> None:
    first = _mono([1.0] * 4, rate=4)
    second = _mono([0.5] * 4, rate=8)  # resampled to 2 frames
    out = merge_tracks([first, second])
    assert out.sample_rate == 4
    # offset still advances by the source frame count; the remainder stays silent
    assert out.frame_count == 8
    assert out.channels[0] == [1.0] * 4 + [0.5, 0.5, 0.0, 0.0]


def test_upsampled_overflow_is_dropped_at_the_end() -> None:
    first = _mono([0.0] * 2, rate=8)
    second = _mono([1.0] * 2, rate=4)  # becomes 4 frames, only 2 fit
    out = merge_tracks([first, second])
    assert out.frame_count == 4
    assert out.channels[0] == [0.0, 0.0, 1.0, 1.0]


def test_merge_reports_progress_per_track() -> None:
    seen: list[float] = []
    merge_tracks([_mono([0.0]), _mono([0.0]), _mono([0.0]), _mono([0.0])], on_progress=seen.append)
    assert seen == [25.0, 50.0, 75.0, 100.0]
