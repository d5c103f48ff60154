"""
ffetools: adaptive feed-forward equalization of sampled signals.

This package provides tools for:
- Normalizing and preparing a distorted signal and its training signal.
- Training FFE tap weights with LMS or RLS over a fixed number of epochs.
- Applying the trained weights to produce the equalized signal.
- Running the training loop on NumPy, Numba or JAX.
- Plotting the convergence curve used to choose the learning rate.
"""

from . import plotting, preprocessing
from .config import (
    AlgorithmType,
    EqualizerConfig,
    clear_config,
    get_config,
    require_config,
    set_config,
)
from .equalizers import EqualizerResult, equalize, linear_ff_equalize
from .exceptions import (
    DegenerateSignalError,
    EqualizerError,
    InvalidAlgorithmType,
    InvalidArgumentCount,
    InvalidTapCount,
    SignalLengthMismatchError,
)
from .logger import set_log_level
from .plotting import apply_default_theme

__all__ = [
    "AlgorithmType",
    "EqualizerConfig",
    "EqualizerResult",
    "equalize",
    "linear_ff_equalize",
    "set_config",
    "get_config",
    "clear_config",
    "require_config",
    "EqualizerError",
    "InvalidArgumentCount",
    "InvalidAlgorithmType",
    "InvalidTapCount",
    "DegenerateSignalError",
    "SignalLengthMismatchError",
    "plotting",
    "preprocessing",
    "set_log_level",
]

apply_default_theme()
