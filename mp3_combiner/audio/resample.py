from __future__ import annotations

import math


def resample_linear(samples: list[float], src_rate: int, dst_rate: int) -> list[float]:
    """Resample one channel with linear interpolation.

    No band-limiting is applied, so downsampling aliases. Equal rates return an
    exact copy.
    """

    if src_rate <= 0 or dst_rate <= 0:
        raise ValueError("sample rates must be > 0")
    if src_rate == dst_rate:
        return list(samples)
    n = len(samples)
    if n == 0:
        return []

    ratio = src_rate / float(dst_rate)
    out_len = int(math.floor(n / ratio))
    last = n - 1
    out = [0.0] * out_len
    for i in range(out_len):
        pos = i * ratio
        lo = int(pos)
        hi = min(lo + 1, last)
        t = pos - lo
        out[i] = samples[lo] * (1.0 - t) + samples[hi] * t
    return out
