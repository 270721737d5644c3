from __future__ import annotations


class CombinerError(Exception):
    """Base class for fatal engine errors."""


class DecodeFailure(CombinerError):
    """Input bytes could not be decoded into PCM (corrupt or unsupported container)."""


class EmptyInputError(CombinerError, ValueError):
    """A merge was requested with no tracks."""


class EncodingDegraded(UserWarning):
    """MP3 encoding was unavailable or failed; the WAV artifact was used instead."""


class UnsupportedTargetFormat(UserWarning):
    """The requested container cannot be produced; the WAV artifact was used instead."""
