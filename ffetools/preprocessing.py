"""
Signal preparation for the feed-forward equalizer.

This module turns raw input and training signals into the working arrays
consumed by the training loops:
- Min-max normalization to the range [0, 1] (normalize_minmax).
- Duplication into two sequential copies (duplicate).
- Symmetric zero padding by half the tap count (zero_pad).
- All of the above in one step (prepare_signals).
"""

from dataclasses import dataclass
from typing import Any

import numpy as np

from .exceptions import DegenerateSignalError, SignalLengthMismatchError
from .logger import logger


@dataclass
class WorkingSignals:
    """Arrays consumed by the training loops.

    Attributes
    ----------
    padded_input : ndarray
        Normalized input, duplicated and zero-padded with ``num_taps // 2``
        zeros on both ends. Length ``2 * num_samples + 2 * (num_taps // 2)``.
    training : ndarray
        Normalized training signal, duplicated. Length ``2 * num_samples``.
    num_samples : int
        Length of the signals before duplication.
    num_taps : int
        Filter length the padding was computed for.
    """

    padded_input: np.ndarray
    training: np.ndarray
    num_samples: int
    num_taps: int

    @property
    def num_windows(self) -> int:
        """Number of full ``num_taps`` windows over ``padded_input``."""
        return self.padded_input.shape[0] - self.num_taps + 1


def _as_real_signal(signal: Any, name: str) -> np.ndarray:
    x = np.ravel(np.asarray(signal))
    if x.size == 0:
        raise ValueError(f"{name} is empty.")
    if np.iscomplexobj(x):
        raise ValueError(f"{name} must be real-valued.")
    x = x.astype(np.float64)
    if not np.all(np.isfinite(x)):
        raise ValueError(f"{name} contains NaN or infinite samples.")
    return x


def normalize_minmax(signal: Any, name: str = "signal") -> np.ndarray:
    """
    Scale a signal linearly so that its minimum maps to 0 and its maximum to 1.

    Args:
        signal: Real-valued samples. Multi-dimensional input is flattened.
        name: Name used in error messages.

    Returns:
        Normalized float64 array.

    Raises:
        ValueError: If the signal is empty, complex-valued or not finite.
        DegenerateSignalError: If the signal is constant (max == min).
    """
    x = _as_real_signal(signal, name)
    lo, hi = np.min(x), np.max(x)
    if lo == hi:
        raise DegenerateSignalError(
            f"{name} is constant (value {lo!r}); min-max normalization is undefined."
        )
    with np.errstate(over="ignore"):
        span = hi - lo
    if not np.isfinite(span):
        # Range exceeds the float64 maximum; halving keeps every term finite.
        return (x / 2 - lo / 2) / (hi / 2 - lo / 2)
    return (x - lo) / span


def duplicate(signal: np.ndarray, copies: int = 2) -> np.ndarray:
    """Concatenate ``copies`` sequential copies of a 1-D signal."""
    return np.tile(signal, copies)


def zero_pad(signal: np.ndarray, num_taps: int) -> np.ndarray:
    """Prepend and append ``num_taps // 2`` zeros."""
    pad = num_taps // 2
    return np.pad(signal, (pad, pad))


def prepare_signals(
    input_signal: Any, training_signal: Any, num_taps: int
) -> WorkingSignals:
    """
    Normalize, duplicate and pad the input and training signals.

    The duplicated input is zero-padded so that the center of window ``i``
    aligns with sample ``i`` of the duplicated training signal.

    Args:
        input_signal: Distorted signal to be equalized.
        training_signal: Desired signal, same length as ``input_signal``.
        num_taps: Number of FFE taps.

    Returns:
        WorkingSignals container.

    Raises:
        SignalLengthMismatchError: If the signals differ in length.
        DegenerateSignalError: If either signal is constant.
    """
    x = _as_real_signal(input_signal, "InputSignal")
    d = _as_real_signal(training_signal, "TrainingSignal")
    if x.shape[0] != d.shape[0]:
        raise SignalLengthMismatchError(
            f"Inconsistent lengths: input({x.shape[0]}) != training({d.shape[0]})"
        )

    x = normalize_minmax(x, "InputSignal")
    d = normalize_minmax(d, "TrainingSignal")

    padded = zero_pad(duplicate(x), num_taps)
    logger.debug(
        f"Prepared signals: n_samples={x.shape[0]}, padded_len={padded.shape[0]}, "
        f"pad={num_taps // 2}"
    )
    return WorkingSignals(
        padded_input=padded,
        training=duplicate(d),
        num_samples=int(x.shape[0]),
        num_taps=int(num_taps),
    )
