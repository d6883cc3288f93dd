"""Custom exceptions for the trailing trade indicator pipeline.

The scheduler decides what to do with each of these: malformed input and
insufficient data skip the symbol for the current tick, upstream failures
are retried on the next tick. The pipeline itself never retries.
"""


class TrailTradeError(Exception):
    """Base exception for all pipeline errors."""


class MalformedCandleError(TrailTradeError):
    """Raised when a candle is missing a required field or holds a non-numeric value."""


class InsufficientDataError(TrailTradeError):
    """Raised when the candle window is too small for RSI or pattern detection."""


class MalformedSymbolInfoError(TrailTradeError):
    """Raised when exchange symbol metadata lacks a filter or has a non-positive tick/step size."""


class UpstreamUnavailableError(TrailTradeError):
    """Raised when an exchange, cache or store call fails."""
