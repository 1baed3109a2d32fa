"""Utility helpers for plotting readings."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np

from ..types import Reading


def elapsed_seconds(readings: Sequence[Reading], origin: datetime | None = None) -> np.ndarray:
    """Return the time of each reading in seconds since ``origin``.

    ``origin`` defaults to the timestamp of the first reading.
    """
    if not readings:
        return np.empty(0, dtype=float)
    if origin is None:
        origin = readings[0].when
    return np.array([(r.when - origin).total_seconds() for r in readings], dtype=float)


def plot_readings(
    ax: plt.Axes,
    readings: Sequence[Reading],
    label: str | None = None,
    origin: datetime | None = None,
    **kwargs,
) -> None:
    """Plot ``readings`` against elapsed time on ``ax`` with an optional label."""
    t = elapsed_seconds(readings, origin)
    ax.plot(t, [r.value for r in readings], label=label, **kwargs)
    if label:
        ax.legend()


def save_or_show(fig: plt.Figure, save: str | Path | None = None, show: bool = False) -> None:
    """Save ``fig`` to ``save`` and/or display it interactively.

    The figure is closed afterwards unless it was shown.
    """
    if save:
        fig.savefig(save, bbox_inches="tight")
    if show:
        plt.show()
    else:
        plt.close(fig)
