from __future__ import annotations

"""Key driven parameter adjustment for a :class:`DctCodec`.

The controller owns the codec handle together with the readings it works on
and translates single-key commands into bounds-checked adjustments.  Every
command yields an :class:`AdjustOutcome` carrying either the new output
snapshot or the reason the adjustment was refused.
"""

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple
import logging

import numpy as np

from .core.codec import DctCodec
from .errors import PeriodogramError
from .types import DctParams, Reading

logger = logging.getLogger(__name__)

QUIT_KEY = "q"

KEY_BINDINGS: Dict[str, Tuple[str, int]] = {
    "s": ("outputs_count", +1),
    "a": ("outputs_count", -1),
    "x": ("coeffs_count", +1),
    "z": ("coeffs_count", -1),
}


@dataclass(frozen=True)
class AdjustOutcome:
    """Result of handling one key.

    Attributes
    ----------
    accepted:
        Whether the adjustment was applied.
    params:
        Codec parameters after handling the key.
    outputs:
        Read-only output snapshot after handling the key.  Unchanged from the
        previous snapshot when ``accepted`` is ``False``.
    error:
        Reason for a refusal, ``None`` otherwise.
    """

    accepted: bool
    params: DctParams
    outputs: np.ndarray
    error: str | None = None


class Controller:
    """Drive ``codec`` over a fixed reading sequence."""

    def __init__(
        self,
        codec: DctCodec,
        readings: Sequence[Reading],
        amplitude_range: tuple[float, float],
    ) -> None:
        self.codec = codec
        self.readings = tuple(readings)
        self.amplitude_range = amplitude_range
        codec.apply(self.readings, amplitude_range)

    def handle(self, key: str) -> AdjustOutcome:
        """Apply the adjustment bound to ``key``."""

        binding = KEY_BINDINGS.get(key.strip().lower())
        if binding is None:
            return AdjustOutcome(False, self.codec.params, self.codec.outputs(), f"unknown key {key!r}")
        field, delta = binding
        try:
            outputs = self.codec.adjust(field, delta)
        except PeriodogramError as exc:
            logger.info("key %r refused: %s", key, exc)
            return AdjustOutcome(False, self.codec.params, self.codec.outputs(), str(exc))
        return AdjustOutcome(True, self.codec.params, outputs)
