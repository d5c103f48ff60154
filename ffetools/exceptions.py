"""
Exception types raised by ffetools.

All errors derive from ``EqualizerError`` so callers can catch every
validation failure of the equalizer with a single clause.

``InvalidAlgorithmType`` and ``InvalidTapCount`` are raised from inside
pydantic validators. They do not derive from ``ValueError``:
pydantic only wraps ``ValueError``/``AssertionError`` into a
``ValidationError``, so these propagate to the caller unchanged.
"""


class EqualizerError(Exception):
    """Base class for all equalizer errors."""


class InvalidArgumentCount(EqualizerError, TypeError):
    """Too few or too many positional arguments for ``linear_ff_equalize``."""


class InvalidAlgorithmType(EqualizerError):
    """The algorithm selector is neither ``"lms"`` nor ``"rls"``."""


class InvalidTapCount(EqualizerError):
    """The tap count is even or not positive."""


class DegenerateSignalError(EqualizerError, ValueError):
    """A signal has zero range, so min-max normalization would divide by zero."""


class SignalLengthMismatchError(EqualizerError, ValueError):
    """Input and training signals have different lengths."""
