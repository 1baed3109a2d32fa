"""Noisy signal synthesis and truncated-DCT reconstruction."""

from .core import DctCodec, generate
from .errors import ConfigurationError, DataError, PeriodogramError
from .types import DctParams, Reading, Window

__all__ = [
    "DctCodec",
    "generate",
    "ConfigurationError",
    "DataError",
    "PeriodogramError",
    "DctParams",
    "Reading",
    "Window",
]

__version__ = "0.1.0"
