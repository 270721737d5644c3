from __future__ import annotations

import math
import struct
import sys
from array import array
from dataclasses import dataclass

from mp3_combiner.errors import DecodeFailure
from mp3_combiner.model.types import AudioTrack, EncodedArtifact

WAV_HEADER_SIZE = 44

# RIFF size fields written by encoders that cannot seek back (e.g. ffmpeg on a pipe).
_UNKNOWN_SIZES = {0, 0xFFFFFFFF}


@dataclass(frozen=True)
class WavHeader:
    audio_format: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_offset: int
    data_size: int

    @property
    def frame_count(self) -> int:
        return self.data_size // self.block_align if self.block_align else 0


def quantize_i16(x: float) -> int:
    """Clamp to [-1, 1] and scale asymmetrically so both ends hit the int16 limits."""

    v = max(-1.0, min(1.0, float(x)))
    scaled = v * 32768.0 if v < 0 else v * 32767.0
    # exact .5 ties always round up
    return int(math.floor(scaled + 0.5))


def _pcm16_bytes(track: AudioTrack) -> bytes:
    nc = track.channel_count
    n = track.frame_count
    if nc == 1:
        ints = [quantize_i16(x) for x in track.channels[0]]
    else:
        ints = [0] * (n * nc)
        for c, ch in enumerate(track.channels):
            ints[c::nc] = [quantize_i16(x) for x in ch]
    arr = array("h", ints)
    if sys.byteorder != "little":
        arr.byteswap()
    return arr.tobytes()


def wav_header_bytes(*, channels: int, sample_rate: int, data_size: int, bits_per_sample: int = 16) -> bytes:
    block_align = channels * (bits_per_sample // 8)
    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        1,
        channels,
        sample_rate,
        sample_rate * block_align,
        block_align,
        bits_per_sample,
        b"data",
        data_size,
    )


def encode_wav(track: AudioTrack, bit_depth: int = 16) -> EncodedArtifact:
    """Serialize a track as a canonical 44-byte-header PCM16 RIFF/WAVE stream."""

    if bit_depth != 16:
        raise ValueError(f"unsupported WAV bit depth: {bit_depth} (only 16 is supported)")
    pcm = _pcm16_bytes(track)
    header = wav_header_bytes(channels=track.channel_count, sample_rate=track.sample_rate, data_size=len(pcm))
    return EncodedArtifact(data=header + pcm, format="wav")


def _chunks(data: bytes, *, little: bool):
    pos = 12
    end = len(data)
    fmt = "<I" if little else ">I"
    while pos + 8 <= end:
        cid = data[pos : pos + 4]
        size = struct.unpack(fmt, data[pos + 4 : pos + 8])[0]
        start = pos + 8
        if cid == b"data" and (size in _UNKNOWN_SIZES or start + size > end):
            size = end - start
        yield cid, start, size
        # chunks are padded to even sizes
        pos = start + size + (size % 2)


def parse_wav_header(data: bytes) -> WavHeader:
    if len(data) < 12 or data[8:12] != b"WAVE":
        raise DecodeFailure("invalid WAV header")
    if data[0:4] == b"RIFF":
        little = True
    elif data[0:4] == b"RIFX":
        little = False
    else:
        raise DecodeFailure("invalid WAV container")

    fmt_chunk: bytes | None = None
    data_offset = data_size = -1
    for cid, start, size in _chunks(data, little=little):
        if cid == b"fmt ":
            fmt_chunk = data[start : start + size]
        elif cid == b"data":
            data_offset, data_size = start, size

    if fmt_chunk is None or data_offset < 0:
        raise DecodeFailure("missing fmt/data chunk in WAV")
    if len(fmt_chunk) < 16:
        raise DecodeFailure("invalid fmt chunk in WAV")

    fmt_tag, ch, sr, byte_rate, block_align, bits = struct.unpack(
        "<HHIIHH" if little else ">HHIIHH", fmt_chunk[:16]
    )
    if fmt_tag == 0xFFFE and len(fmt_chunk) >= 26:
        # WAVE_FORMAT_EXTENSIBLE: the real tag is the first field of the subformat GUID.
        fmt_tag = struct.unpack("<H" if little else ">H", fmt_chunk[24:26])[0]
    if ch <= 0 or sr <= 0:
        raise DecodeFailure(f"invalid WAV format: channels={ch} sample_rate={sr}")
    return WavHeader(
        audio_format=int(fmt_tag),
        channels=int(ch),
        sample_rate=int(sr),
        byte_rate=int(byte_rate),
        block_align=int(block_align) or int(ch) * max(1, bits // 8),
        bits_per_sample=int(bits),
        data_offset=data_offset,
        data_size=data_size,
    )


def _pcm_to_floats(payload: bytes, *, bits: int, little: bool) -> list[float]:
    if bits == 8:
        # 8-bit WAV is unsigned: 0..255 with 128 as zero.
        return [(b - 128) / 128.0 for b in payload]
    if bits == 24:
        order = "little" if little else "big"
        return [
            int.from_bytes(payload[i : i + 3], order, signed=True) / 8388608.0
            for i in range(0, len(payload) - len(payload) % 3, 3)
        ]
    if bits == 16:
        arr = array("h")
        scale = 32768.0
    elif bits == 32:
        arr = array("i")
        scale = 2147483648.0
    else:
        raise DecodeFailure(f"unsupported PCM WAV bit depth: {bits}")
    arr.frombytes(payload[: len(payload) - len(payload) % arr.itemsize])
    if (sys.byteorder == "little") != little:
        arr.byteswap()
    return [v / scale for v in arr]


def _float_to_floats(payload: bytes, *, bits: int, little: bool) -> list[float]:
    if bits not in {32, 64}:
        raise DecodeFailure(f"unsupported float WAV bit depth: {bits}")
    arr = array("f") if bits == 32 else array("d")
    arr.frombytes(payload[: len(payload) - len(payload) % arr.itemsize])
    if (sys.byteorder == "little") != little:
        arr.byteswap()
    return [float(x) for x in arr]


def read_wav_bytes(data: bytes) -> AudioTrack:
    """Decode a RIFF/RIFX WAVE stream (integer PCM or IEEE float) into a track."""

    hdr = parse_wav_header(data)
    little = data[0:4] == b"RIFF"
    payload = data[hdr.data_offset : hdr.data_offset + hdr.data_size]
    ch = hdr.channels
    payload = payload[: len(payload) - len(payload) % hdr.block_align]

    if hdr.audio_format == 1:
        samples = _pcm_to_floats(payload, bits=hdr.bits_per_sample, little=little)
    elif hdr.audio_format == 3:
        samples = _float_to_floats(payload, bits=hdr.bits_per_sample, little=little)
    else:
        raise DecodeFailure(f"unsupported WAV format tag: {hdr.audio_format}")

    if ch == 1:
        return AudioTrack.from_channels([samples], hdr.sample_rate)
    return AudioTrack.from_channels([samples[c::ch] for c in range(ch)], hdr.sample_rate)


def read_pcm16_channels(data: bytes) -> tuple[WavHeader, list[array]]:
    """Split a PCM16 WAV into per-channel int16 arrays."""

    hdr = parse_wav_header(data)
    if hdr.audio_format != 1 or hdr.bits_per_sample != 16:
        raise DecodeFailure(f"expected PCM16 WAV, got format={hdr.audio_format} bits={hdr.bits_per_sample}")
    payload = data[hdr.data_offset : hdr.data_offset + hdr.data_size]
    arr = array("h")
    arr.frombytes(payload[: len(payload) - len(payload) % 2])
    if (sys.byteorder == "little") != (data[0:4] == b"RIFF"):
        arr.byteswap()
    ch = hdr.channels
    frames = len(arr) // ch
    return hdr, [arr[c : frames * ch : ch] for c in range(ch)]
