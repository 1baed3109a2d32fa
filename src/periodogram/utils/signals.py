"""Signal processing helpers."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np


def normalize(values: Sequence[float] | np.ndarray, lo: float, hi: float) -> np.ndarray:
    """Map *values* from ``[lo, hi]`` onto ``[0, 1]``.

    ``ValueError`` is raised unless ``lo < hi``.
    """

    if not lo < hi:
        raise ValueError("range must satisfy lo < hi")
    return (np.asarray(values, dtype=float) - lo) / (hi - lo)


def denormalize(values: Sequence[float] | np.ndarray, lo: float, hi: float) -> np.ndarray:
    """Inverse of :func:`normalize`."""

    if not lo < hi:
        raise ValueError("range must satisfy lo < hi")
    return np.asarray(values, dtype=float) * (hi - lo) + lo


def rms(data: Sequence[float]) -> float:
    """Return the root-mean-square of *data*.

    ``ValueError`` is raised for empty sequences.
    """

    if len(data) == 0:
        raise ValueError("data must not be empty")
    return math.sqrt(sum(float(x) * float(x) for x in data) / len(data))
