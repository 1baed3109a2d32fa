from __future__ import annotations

"""Transform provider protocol, registry and DCT implementations.

All providers share one coefficient convention, the unnormalized DCT-II

.. math::

   X_k = \\sum_{n=0}^{N-1} x_n \\cos\\left(\\frac{\\pi k (2n + 1)}{2N}\\right)

paired with the DCT-III

.. math::

   y_n = \\frac{X_0}{2} + \\sum_{k=1}^{N-1} X_k \\cos\\left(\\frac{\\pi k (2n + 1)}{2N}\\right)

so that ``inverse(forward(x)) * scale(N)`` reproduces ``x`` with
``scale(N) = 2 / N``.
"""

from functools import lru_cache
from typing import Dict, List, Protocol, runtime_checkable

import numpy as np
import scipy.fft

from ..errors import ConfigurationError


@runtime_checkable
class TransformProvider(Protocol):
    """Protocol describing a forward/inverse cosine transform pair.

    ``forward`` and ``inverse`` operate on one-dimensional
    :class:`numpy.ndarray` objects and return new arrays of the same length.
    ``scale`` returns the factor that turns ``inverse(forward(x))`` back into
    ``x`` for vectors of length ``n``.
    """

    name: str

    def forward(self, values: np.ndarray) -> np.ndarray:
        """Return the DCT-II coefficients of ``values``."""

    def inverse(self, coeffs: np.ndarray) -> np.ndarray:
        """Return the DCT-III of ``coeffs``."""

    def scale(self, n: int) -> float:
        """Return the round-trip rescale factor for size ``n``."""


_registry: Dict[str, TransformProvider] = {}


def register_provider(provider: TransformProvider) -> None:
    """Register ``provider`` in the global registry."""
    validate_provider(provider)
    _registry[provider.name] = provider


def get_provider(name: str) -> TransformProvider:
    """Retrieve a provider by ``name``."""
    try:
        return _registry[name]
    except KeyError:
        raise ConfigurationError(
            f"unknown transform provider {name!r}; available: {', '.join(available_providers())}"
        ) from None


def available_providers() -> List[str]:
    """Return the list of registered provider names."""
    return list(_registry)


def validate_provider(provider: TransformProvider) -> None:
    """Validate that ``provider`` satisfies the :class:`TransformProvider` protocol."""
    if not isinstance(provider, TransformProvider):
        raise TypeError("Provider does not implement the required protocol")


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class ScipyDct:
    """DCT pair backed by :func:`scipy.fft.dct`.

    SciPy's unnormalized type-2 and type-3 transforms are each twice the
    definitions above, hence the halving.
    """

    name = "scipy"

    def forward(self, values: np.ndarray) -> np.ndarray:
        return scipy.fft.dct(np.asarray(values, dtype=float), type=2) / 2.0

    def inverse(self, coeffs: np.ndarray) -> np.ndarray:
        return scipy.fft.dct(np.asarray(coeffs, dtype=float), type=3) / 2.0

    def scale(self, n: int) -> float:
        return 2.0 / n


@lru_cache(maxsize=32)
def _dct_matrix(N: int) -> np.ndarray:
    k = np.arange(N)
    m = np.arange(N)[:, None]
    basis = np.cos(np.pi * (k + 0.5) * m / N)
    basis.setflags(write=False)
    return basis


class MatrixDct:
    """DCT pair using an explicit cosine basis.

    Quadratic in the window size, which is fine for the few hundred samples
    handled interactively.
    """

    name = "matrix"

    def forward(self, values: np.ndarray) -> np.ndarray:
        values = np.asarray(values, dtype=float)
        return _dct_matrix(values.size) @ values

    def inverse(self, coeffs: np.ndarray) -> np.ndarray:
        weighted = np.array(coeffs, dtype=float)
        if weighted.size:
            weighted[0] *= 0.5
        return _dct_matrix(weighted.size).T @ weighted

    def scale(self, n: int) -> float:
        return 2.0 / n


def band_energy(coeffs: np.ndarray, start: int) -> float:
    """Return the energy held by coefficients at index ``start`` and above."""
    tail = np.asarray(coeffs, dtype=float)[start:]
    return float(np.sum(tail ** 2))


register_provider(ScipyDct())
register_provider(MatrixDct())
