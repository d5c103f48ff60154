"""
Execution backend management.

The adaptive training loops are inherently sequential, so they are run by
one of three interchangeable backends:

* ``"numpy"``: plain Python loop over NumPy arrays. Always available; the
  reference implementation.
* ``"numba"``: the loop compiled to native code with ``@njit``.
* ``"jax"``: the loop expressed as ``jax.lax.scan`` and compiled with XLA.

Numba and JAX are imported lazily on first use so that importing ffetools
stays cheap and neither compiler is touched unless requested.
"""

from typing import Any

import numpy as np

from .logger import logger

BACKENDS = ("numpy", "numba", "jax")

_NUMBA_CACHE: dict = {}
_JAX_CACHE: dict = {}


def _get_numba():
    """Lazy loader for Numba.

    Returns the ``numba`` module if installed, else ``None``.
    """
    if "numba" not in _NUMBA_CACHE:
        try:
            import numba  # noqa: PLC0415

            _NUMBA_CACHE["numba"] = numba
        except ImportError:
            logger.debug("Numba is not available.")
            _NUMBA_CACHE["numba"] = None
    return _NUMBA_CACHE.get("numba")


def _get_jax():
    """Lazy loader for JAX modules to avoid repeated import overhead."""
    if "jax" not in _JAX_CACHE:
        try:
            import jax
            import jax.numpy as jnp

            _JAX_CACHE["jax"] = jax
            _JAX_CACHE["jnp"] = jnp
        except ImportError:
            logger.debug("JAX is not available.")
            _JAX_CACHE["jax"] = None

    return _JAX_CACHE.get("jax"), _JAX_CACHE.get("jnp")


def is_available(backend: str) -> bool:
    """Returns True if the compiler behind ``backend`` can be imported."""
    backend = resolve_backend(backend)
    if backend == "numba":
        return _get_numba() is not None
    if backend == "jax":
        return _get_jax()[0] is not None
    return True


def resolve_backend(backend: str) -> str:
    """
    Normalizes and validates a backend name.

    Args:
        backend: One of 'numpy', 'numba' or 'jax' (case-insensitive).

    Returns:
        The lower-case backend name.

    Raises:
        ValueError: If the backend is unknown.
    """
    name = str(backend).lower()
    if name not in BACKENDS:
        raise ValueError(f"Unknown backend: {backend!r}. Expected one of {BACKENDS}.")
    return name


def to_jax(data: Any, dtype: str = "float32") -> Any:
    """
    Converts data to a JAX array.

    Args:
        data: Input data (NumPy array, list, scalar).
        dtype: Target dtype. JAX runs in single precision unless x64 mode
            is enabled globally.

    Returns:
        JAX array.

    Raises:
        ImportError: If JAX is not installed.
    """
    jax, jnp = _get_jax()
    if jax is None:
        raise ImportError("JAX is not installed.")
    return jnp.asarray(data, dtype=dtype)


def from_jax(data: Any) -> np.ndarray:
    """
    Converts a JAX array to a float64 NumPy array.

    ``np.asarray`` blocks until the asynchronous JAX computation finishes.
    """
    return np.asarray(data, dtype=np.float64)
