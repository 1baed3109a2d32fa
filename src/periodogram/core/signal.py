"""Stochastic synthesis of a jittered, noisy sinusoid.

Each sample is drawn at a uniformly random instant inside the capture
duration, so the resulting readings are irregularly spaced in time.  The
carrier is ``amplitude * sin(2*pi*freq*t)`` with additive uniform noise whose
half-width is ``amplitude * noise_fraction``.  Values are clamped either into
``[-amplitude, amplitude]`` or, for rectified signals, into
``[0, amplitude]`` after taking the absolute value.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone

import numpy as np

from ..errors import DataError
from ..types import Reading

logger = logging.getLogger(__name__)


def _require_finite(**values: float) -> None:
    for name, value in values.items():
        if not math.isfinite(value):
            raise DataError(f"{name} must be finite, got {value!r}")


def generate(
    amplitude: float,
    freq: float,
    noise_fraction: float,
    duration: float,
    sample_count: int,
    rectified: bool = False,
    *,
    base_time: datetime | None = None,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
) -> tuple[Reading, ...]:
    """Generate ``sample_count`` time-tagged readings of a noisy sinusoid.

    Parameters
    ----------
    amplitude:
        Peak carrier amplitude.  Also the clamp bound.
    freq:
        Carrier frequency in Hz.
    noise_fraction:
        Noise half-width as a fraction of ``amplitude``.
    duration:
        Length of the capture window in seconds.  ``0`` is accepted and puts
        every sample at ``base_time``.
    sample_count:
        Number of independent draws.  ``0`` yields an empty tuple.
    rectified:
        Select the rectified clamp policy (``|value|`` clamped into
        ``[0, amplitude]``) instead of the signed one.
    base_time:
        Absolute time of the start of the capture window.  Defaults to the
        current UTC time.
    seed, rng:
        Source of randomness.  An explicit ``rng`` takes precedence over
        ``seed``.

    Returns
    -------
    tuple of Reading
        Readings sorted by timestamp.  Equal timestamps keep draw order.
    """

    _require_finite(
        amplitude=amplitude,
        freq=freq,
        noise_fraction=noise_fraction,
        duration=duration,
    )
    if isinstance(sample_count, bool) or int(sample_count) != sample_count:
        raise DataError(f"sample_count must be an integer, got {sample_count!r}")
    sample_count = int(sample_count)
    if sample_count < 0:
        raise DataError("sample_count must not be negative")
    if amplitude < 0:
        raise DataError("amplitude must not be negative")
    if noise_fraction < 0:
        raise DataError("noise_fraction must not be negative")
    if duration < 0:
        raise DataError("duration must not be negative")
    if duration == 0 and sample_count:
        logger.warning("zero duration: all %d samples share one timestamp", sample_count)

    if base_time is None:
        base_time = datetime.now(timezone.utc)
    if rng is None:
        rng = np.random.default_rng(seed)

    noise_amplitude = amplitude * noise_fraction
    _require_finite(noise_span=2.0 * noise_amplitude)
    times = rng.uniform(0.0, duration, size=sample_count)
    carrier = amplitude * np.sin(2.0 * np.pi * freq * times)
    noise = rng.uniform(-noise_amplitude, noise_amplitude, size=sample_count)
    values = carrier + noise
    if rectified:
        values = np.clip(np.abs(values), 0.0, amplitude)
    else:
        values = np.clip(values, -amplitude, amplitude)

    # Sort on the microsecond-resolution timestamps so readings that share a
    # `when` stay in draw order.
    whens = [base_time + timedelta(seconds=float(t)) for t in times]
    order = sorted(range(sample_count), key=whens.__getitem__)
    readings = tuple(Reading(value=float(values[i]), when=whens[i]) for i in order)
    logger.debug(
        "generated %d readings over %.6fs (freq=%.3fHz, rectified=%s)",
        len(readings),
        duration,
        freq,
        rectified,
    )
    return readings
