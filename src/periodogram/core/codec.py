from __future__ import annotations

"""Lossy DCT compression and reconstruction of a reading window.

:class:`DctCodec` takes the leading ``outputs_count`` readings of a
time-ordered sequence, normalizes them into ``[0, 1]`` using a fixed
amplitude range, computes the DCT-II, keeps only the ``coeffs_count`` lowest
frequency coefficients, applies the DCT-III and maps the result back to the
original range.

The codec owns its parameters and working buffers.  A recomputation builds
fresh arrays and swaps them in only once the whole pipeline has succeeded,
so a rejected request always leaves the previous result observable.
"""

import dataclasses
import logging
import math
import operator
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..errors import ConfigurationError, DataError
from ..types import DctParams, Reading, Window
from ..utils.signals import denormalize, normalize
from .transforms import TransformProvider, get_provider

logger = logging.getLogger(__name__)

DEFAULT_MAX_COEFFS = 16
DEFAULT_MAX_OUTPUTS = 256
ADJUSTABLE_FIELDS = ("outputs_count", "coeffs_count")


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


def _require_count(name: str, value: object) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    try:
        return operator.index(value)
    except TypeError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


def validate_params(
    params: DctParams,
    *,
    max_coeffs: int = DEFAULT_MAX_COEFFS,
    max_outputs: int | None = DEFAULT_MAX_OUTPUTS,
    available: int | None = None,
) -> None:
    """Raise :class:`ConfigurationError` if ``params`` violates an invariant.

    ``available`` is the number of readings the window is taken from; it is
    skipped when unknown.
    """

    outputs = _require_count("outputs_count", params.outputs_count)
    coeffs = _require_count("coeffs_count", params.coeffs_count)
    if outputs == 0 and coeffs == 0:
        return
    if outputs < 1:
        raise ConfigurationError(f"outputs_count must be at least 1, got {outputs}")
    if coeffs < 1:
        raise ConfigurationError(f"coeffs_count must be at least 1, got {coeffs}")
    if coeffs > outputs:
        raise ConfigurationError(
            f"coeffs_count ({coeffs}) must not exceed outputs_count ({outputs})"
        )
    if coeffs > max_coeffs:
        raise ConfigurationError(f"coeffs_count ({coeffs}) exceeds the cap of {max_coeffs}")
    if max_outputs is not None and outputs > max_outputs:
        raise ConfigurationError(f"outputs_count ({outputs}) exceeds the cap of {max_outputs}")
    if available is not None and outputs > available:
        raise ConfigurationError(
            f"outputs_count ({outputs}) exceeds the {available} available readings"
        )


@dataclass(frozen=True)
class _Result:
    window: Window
    normalized: np.ndarray
    coefficients: np.ndarray
    outputs: np.ndarray


class DctCodec:
    """Truncated DCT-II/DCT-III codec over a prefix window of readings.

    Parameters
    ----------
    params:
        Initial :class:`~periodogram.types.DctParams`.
    provider:
        Transform provider instance or registered provider name.
    max_coeffs:
        Cap on ``coeffs_count``, independent of the window size.
    max_outputs:
        Optional cap on ``outputs_count``.  ``None`` leaves it bounded only
        by the number of readings.
    """

    def __init__(
        self,
        params: DctParams,
        *,
        provider: TransformProvider | str = "scipy",
        max_coeffs: int = DEFAULT_MAX_COEFFS,
        max_outputs: int | None = DEFAULT_MAX_OUTPUTS,
    ) -> None:
        if max_coeffs < 1:
            raise ConfigurationError("max_coeffs must be at least 1")
        if max_outputs is not None and max_outputs < 1:
            raise ConfigurationError("max_outputs must be at least 1")
        validate_params(params, max_coeffs=max_coeffs, max_outputs=max_outputs)
        self._provider = get_provider(provider) if isinstance(provider, str) else provider
        self._params = params
        self._max_coeffs = max_coeffs
        self._max_outputs = max_outputs
        empty = _frozen(np.empty(0, dtype=float))
        self._result = _Result(Window(0, 0), empty, empty, empty)
        self._readings: tuple[Reading, ...] | None = None
        self._amplitude_range: tuple[float, float] | None = None
        self._stale = True

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def params(self) -> DctParams:
        return self._params

    @property
    def provider(self) -> TransformProvider:
        return self._provider

    @property
    def max_coeffs(self) -> int:
        return self._max_coeffs

    @property
    def max_outputs(self) -> int | None:
        return self._max_outputs

    @property
    def stale(self) -> bool:
        """``True`` while the buffers do not reflect the current params."""
        return self._stale

    @property
    def window(self) -> Window:
        return self._result.window

    def outputs(self) -> np.ndarray:
        """Return the read-only reconstructed values of the last ``apply``."""
        return self._result.outputs

    def normalized(self) -> np.ndarray:
        """Return the read-only normalized input of the last ``apply``."""
        return self._result.normalized

    def coefficients(self) -> np.ndarray:
        """Return the read-only truncated DCT-II coefficients."""
        return self._result.coefficients

    def output_readings(self) -> tuple[Reading, ...]:
        """Pair the reconstructed values with the timestamps of the window."""
        if self._readings is None:
            return ()
        window = self._readings[self.window.start : self.window.end]
        return tuple(
            Reading(value=float(value), when=reading.when)
            for reading, value in zip(window, self._result.outputs)
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def apply(
        self,
        readings: Sequence[Reading],
        amplitude_range: tuple[float, float],
    ) -> np.ndarray:
        """Recompute the reconstruction of ``readings`` under the current params.

        Raises
        ------
        ConfigurationError
            If the window does not fit into ``readings``.
        DataError
            If ``readings`` is empty while a window was requested, the
            amplitude range is not an increasing pair, or non-finite values
            appear.
        """

        readings = tuple(readings)
        try:
            lo, hi = amplitude_range
            amplitude_range = (float(lo), float(hi))
        except (TypeError, ValueError):
            raise DataError(
                f"amplitude range must be a (low, high) pair, got {amplitude_range!r}"
            ) from None
        result = self._compute(self._params, readings, amplitude_range)
        self._commit(self._params, result, readings, amplitude_range)
        return result.outputs

    def adjust(self, field: str, delta: int) -> np.ndarray:
        """Change ``field`` by ``delta`` (``+1`` or ``-1``) and recompute.

        The change is rejected with :class:`ConfigurationError` when it would
        break an invariant; params and outputs then remain as they were.
        Returns the output snapshot for the new params.
        """

        if field not in ADJUSTABLE_FIELDS:
            raise ConfigurationError(
                f"unknown parameter {field!r}; expected one of {', '.join(ADJUSTABLE_FIELDS)}"
            )
        if isinstance(delta, bool) or delta not in (1, -1):
            raise ConfigurationError(f"delta must be +1 or -1, got {delta!r}")

        current = getattr(self._params, field)
        candidate = dataclasses.replace(self._params, **{field: current + delta})
        return self._update(candidate, f"{field} {delta:+d}")

    def set_params(self, params: DctParams) -> np.ndarray:
        """Replace both parameters at once, with the same guarantees as :meth:`adjust`."""

        return self._update(params, f"params {params}")

    def _update(self, candidate: DctParams, request: str) -> np.ndarray:
        try:
            if self._readings is None:
                validate_params(
                    candidate,
                    max_coeffs=self._max_coeffs,
                    max_outputs=self._max_outputs,
                )
            else:
                result = self._compute(candidate, self._readings, self._amplitude_range)
        except ConfigurationError as exc:
            logger.info("rejected %s: %s", request, exc)
            raise

        if self._readings is None:
            self._params = candidate
            self._stale = True
            return self._result.outputs
        self._commit(candidate, result, self._readings, self._amplitude_range)
        return result.outputs

    def _compute(
        self,
        params: DctParams,
        readings: tuple[Reading, ...],
        amplitude_range: tuple[float, float],
    ) -> _Result:
        validate_params(
            params,
            max_coeffs=self._max_coeffs,
            max_outputs=self._max_outputs,
            available=len(readings) if readings else None,
        )
        if params.is_empty:
            empty = _frozen(np.empty(0, dtype=float))
            return _Result(Window(0, 0), empty, empty, empty)
        if not readings:
            raise DataError(
                f"no readings available for a window of {params.outputs_count}"
            )
        lo, hi = amplitude_range
        if not (math.isfinite(lo) and math.isfinite(hi)):
            raise DataError(f"amplitude range must be finite, got {amplitude_range!r}")
        if not lo < hi:
            raise DataError(f"amplitude range must be increasing, got {amplitude_range!r}")

        n = params.outputs_count
        window = Window(0, n)
        values = np.array([r.value for r in readings[window.start : window.end]], dtype=float)
        if not np.all(np.isfinite(values)):
            raise DataError("non-finite value in the selected window")

        normalized = normalize(values, lo, hi)
        coeffs = np.array(self._provider.forward(normalized), dtype=float)
        coeffs[params.coeffs_count :] = 0.0
        restored = self._provider.inverse(coeffs) * self._provider.scale(n)
        outputs = denormalize(restored, lo, hi)
        if not np.all(np.isfinite(outputs)):
            raise DataError("transform produced non-finite values")
        return _Result(window, _frozen(normalized), _frozen(coeffs), _frozen(outputs))

    def _commit(
        self,
        params: DctParams,
        result: _Result,
        readings: tuple[Reading, ...],
        amplitude_range: tuple[float, float],
    ) -> None:
        self._params = params
        self._result = result
        self._readings = readings
        self._amplitude_range = amplitude_range
        self._stale = False
        logger.debug(
            "reconstructed %d outputs from %d coefficients (%s)",
            params.outputs_count,
            params.coeffs_count,
            self._provider.name,
        )
