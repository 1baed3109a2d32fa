"""Plot a generated signal next to its truncated-DCT reconstruction."""

from __future__ import annotations

from typing import Sequence

import matplotlib.pyplot as plt

from ..core.codec import DctCodec
from ..types import Reading
from .helpers import plot_readings
from .styles import apply_style


def plot_reconstruction(
    readings: Sequence[Reading],
    codec: DctCodec,
    amplitude_range: tuple[float, float],
    title: str = "DCT reconstruction",
) -> plt.Figure:
    """Return a figure with the signal, the window and its reconstruction.

    The upper axes show every reading, the lower axes the transformed window
    overlaid with the codec output and the residual.
    """

    apply_style()
    fig, (ax1, ax2) = plt.subplots(2, 1)
    origin = readings[0].when if readings else None

    plot_readings(ax1, readings, label="signal", origin=origin, marker=".", linestyle="-")
    ax1.set_ylim(*amplitude_range)
    ax1.set_ylabel("Value")
    ax1.set_title(title)

    window = list(readings[codec.window.start : codec.window.end])
    restored = list(codec.output_readings())
    params = codec.params
    plot_readings(ax2, window, label="window", origin=origin, marker=".", linestyle="-")
    plot_readings(
        ax2,
        restored,
        label=f"{params.coeffs_count}/{params.outputs_count} coefficients",
        origin=origin,
    )
    residual = [
        Reading(value=r.value - w.value, when=w.when) for w, r in zip(window, restored)
    ]
    plot_readings(ax2, residual, label="residual", origin=origin, linestyle=":")
    ax2.set_xlabel("Time [s]")
    ax2.set_ylabel("Value")

    fig.tight_layout()
    return fig
