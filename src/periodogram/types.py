"""Common data containers for periodogram.

The structures are intentionally minimal.  Readings produced by the signal
generator are frozen so that one tuple of them can be shared between the
codec and any presentation layer without copying.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Reading:
    """A single scalar observation tagged with an absolute timestamp."""

    value: float
    when: datetime


@dataclass(frozen=True)
class DctParams:
    """Window size and number of retained low-frequency coefficients."""

    outputs_count: int
    coeffs_count: int

    @classmethod
    def empty(cls) -> "DctParams":
        """Return the parameter set requesting an empty window."""

        return cls(outputs_count=0, coeffs_count=0)

    @property
    def is_empty(self) -> bool:
        return self.outputs_count == 0 and self.coeffs_count == 0


@dataclass(frozen=True)
class Window:
    """Index based window used for segmenting sequences."""

    start: int
    end: int

    @property
    def width(self) -> int:
        """Return the number of elements covered by the window."""

        return self.end - self.start
