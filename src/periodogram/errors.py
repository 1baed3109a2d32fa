"""Exception types raised by the periodogram core."""

from __future__ import annotations


class PeriodogramError(ValueError):
    """Base class for errors reported by the generator and the codec."""


class ConfigurationError(PeriodogramError):
    """Raised for an invalid parameter combination.

    The offending request is rejected before any state is mutated.
    """


class DataError(PeriodogramError):
    """Raised when degenerate or non-finite data reaches a numeric stage."""
