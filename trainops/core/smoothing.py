from __future__ import annotations

from typing import List, Sequence

from .buffers import Sample


def moving_average(values: Sequence[float], window: int) -> List[float]:
    """Trailing mean over at most `window` points, same length as `values`.

    Early points average over the shorter prefix that exists; there is no
    padding and no look-ahead. Each point is a direct mean of its slice.
    """
    if window < 1:
        raise ValueError("window must be a positive integer")
    out: List[float] = []
    for i in range(len(values)):
        chunk = values[max(0, i - window + 1): i + 1]
        out.append(sum(chunk) / len(chunk))
    return out


def smooth_samples(samples: Sequence[Sample], window: int) -> List[Sample]:
    ys = moving_average([s.value for s in samples], window)
    return [Sample(timestamp=s.timestamp, value=y, extras=s.extras) for s, y in zip(samples, ys)]
