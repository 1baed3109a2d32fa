"""Core algorithms and data structures for periodogram."""

from .codec import DctCodec, validate_params
from .signal import generate
from .transforms import (
    MatrixDct,
    ScipyDct,
    TransformProvider,
    available_providers,
    band_energy,
    get_provider,
    register_provider,
)

__all__ = [
    "DctCodec",
    "validate_params",
    "generate",
    "TransformProvider",
    "ScipyDct",
    "MatrixDct",
    "register_provider",
    "get_provider",
    "available_providers",
    "band_energy",
]
