"""
Adaptive feed-forward equalization.

This module learns the tap weights of a real-valued FIR equalizer that maps
a distorted input signal onto a known training signal, then applies the
learned weights to produce the equalized output.

Two adaptive algorithms are provided:

* **LMS**: stochastic gradient descent on the squared error with a fixed
  learning rate. O(num_taps) work per sample.
* **RLS**: exponentially weighted recursive least squares with a forgetting
  factor and a rank-1 (Sherman-Morrison) update of the inverse input
  covariance. O(num_taps²) work per sample, faster convergence.

Both run over the duplicated, zero-padded input for a fixed number of
epochs. Each weight update depends on the previous one, so the loop is
strictly sequential; it is executed by one of three backends:

* **NumPy**: plain Python loop, float64. Reference implementation.
* **Numba**: the same loop compiled to native code via ``@njit``; float64.
* **JAX**: ``jax.lax.scan`` over window positions, compiled with XLA; runs
  in JAX's default float32 precision.

Functions
---------
equalize :
    Train on the training signal and return an ``EqualizerResult``.
linear_ff_equalize :
    Positional call form returning ``(output, w, costs)``.
init_weights :
    Center-tap identity weight vector.
apply_weights :
    Sliding-window FIR filtering with a fixed weight vector.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping, Optional, Union

import numpy as np

from .backend import _get_jax, _get_numba, from_jax, resolve_backend, to_jax
from .config import AlgorithmType, EqualizerConfig, get_config
from .exceptions import InvalidArgumentCount, InvalidTapCount
from .logger import logger
from .preprocessing import prepare_signals


# ============================================================================
# RESULT CONTAINER
# ============================================================================


@dataclass
class EqualizerResult:
    """Container for equalizer outputs.

    Iterating over a result yields ``(output, weights, costs)``, so it can be
    unpacked like a three-valued return.

    Attributes
    ----------
    output : ndarray
        Equalized signal. Same length as the input signal.
    weights : ndarray
        Final tap weights. Shape: ``(num_taps,)``.
    costs : ndarray
        Mean per-sample cost ``0.5 * e²`` of each epoch. Shape: ``(epoch,)``.
    error : ndarray
        A priori error ``d - y`` at every window of the last epoch.
        Shape: ``(2 * len(output),)``.
    weights_history : ndarray or None
        Weights after each epoch, shape ``(epoch, num_taps)``. Only populated
        when ``store_weights=True``.
    algorithm : str
        Algorithm that trained the weights ('lms' or 'rls').
    backend : str
        Backend that ran the training loop.
    """

    output: np.ndarray
    weights: np.ndarray
    costs: np.ndarray
    error: np.ndarray
    weights_history: Optional[np.ndarray] = None
    algorithm: str = AlgorithmType.LMS.value
    backend: str = "numpy"

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter((self.output, self.weights, self.costs))


# ============================================================================
# WEIGHT INITIALIZATION
# ============================================================================


def init_weights(num_taps: int) -> np.ndarray:
    """Build the center-tap identity weight vector.

    All taps are zero except ``w[num_taps // 2] = 1``, so before training
    the equalizer passes the input straight through.

    Raises
    ------
    InvalidTapCount
        If ``num_taps`` is even or not positive.
    """
    if num_taps <= 0 or num_taps % 2 == 0:
        raise InvalidTapCount(f"FFE taps must be positive and odd, got {num_taps}")
    w = np.zeros(num_taps, dtype=np.float64)
    w[num_taps // 2] = 1.0
    return w


# ============================================================================
# NUMPY REFERENCE LOOPS
# ============================================================================
#
# All trainers share one calling convention, whatever the backend:
#   x_padded      : (N_pad,)  float64, normalized, duplicated, zero-padded input
#   training      : (N_win,)  float64, normalized, duplicated training signal
#   w             : (T,)      float64, modified **in-place**
#   alpha         : float,     LMS learning rate / RLS forgetting factor
#   epochs        : int
#   store_weights : bool
#   costs_out     : (epochs,)             float64, pre-allocated
#   e_out         : (N_win,)              float64, last-epoch errors, pre-allocated
#   w_hist_out    : (epochs or 1, T)      float64, pre-allocated
# with N_win = N_pad - T + 1 (window i is centered on training[i]).


def _lms_numpy(
    x_padded, training, w, alpha, epochs, store_weights, costs_out, e_out, w_hist_out
):
    num_taps = w.shape[0]
    n_win = e_out.shape[0]
    for n in range(epochs):
        cost = 0.0
        for i in range(n_win):
            x = x_padded[i : i + num_taps]
            e = training[i] - np.dot(w, x)
            w += alpha * e * x
            e_out[i] = e
            cost += 0.5 * e * e
        costs_out[n] = cost / n_win
        if store_weights:
            w_hist_out[n] = w


def _rls_numpy(
    x_padded, training, w, alpha, epochs, store_weights, costs_out, e_out, w_hist_out
):
    num_taps = w.shape[0]
    n_win = e_out.shape[0]
    # Inverse input covariance; persists across epochs.
    S = np.eye(num_taps)
    inv_alpha = 1.0 / alpha
    for n in range(epochs):
        cost = 0.0
        for i in range(n_win):
            x = x_padded[i : i + num_taps]
            e = training[i] - np.dot(w, x)
            phi = S @ x
            S = inv_alpha * (S - np.outer(phi, phi) / (alpha + np.dot(phi, x)))
            w += e * (S @ x)
            e_out[i] = e
            cost += 0.5 * e * e
        costs_out[n] = cost / n_win
        if store_weights:
            w_hist_out[n] = w


# ============================================================================
# NUMBA KERNELS
# ============================================================================
#
# Each factory lazily compiles a @njit kernel on first call and caches it in
# _NUMBA_KERNELS. Kernels use explicit tap loops (no BLAS calls) and keep all
# temporaries pre-allocated outside the sample loop. No fastmath: results
# match the NumPy reference to rounding.

_NUMBA_KERNELS: dict = {}


def _get_numba_lms():
    """JIT-compile and cache the Numba LMS training kernel."""
    if "lms" not in _NUMBA_KERNELS:
        numba_mod = _get_numba()
        if numba_mod is None:
            raise ImportError("Numba is required for backend='numba'.")
        logger.debug("Compiling Numba LMS kernel.")

        @numba_mod.njit(cache=True, nogil=True)
        def lms_loop(
            x_padded,
            training,
            w,
            alpha,
            epochs,
            store_weights,
            costs_out,
            e_out,
            w_hist_out,
        ):
            num_taps = w.shape[0]
            n_win = e_out.shape[0]

            for n in range(epochs):
                cost = 0.0
                for i in range(n_win):
                    acc = 0.0
                    for t in range(num_taps):
                        acc += w[t] * x_padded[i + t]
                    e = training[i] - acc

                    for t in range(num_taps):
                        w[t] = w[t] + alpha * e * x_padded[i + t]

                    e_out[i] = e
                    cost += 0.5 * e * e
                costs_out[n] = cost / n_win

                if store_weights:
                    for t in range(num_taps):
                        w_hist_out[n, t] = w[t]

        _NUMBA_KERNELS["lms"] = lms_loop
    return _NUMBA_KERNELS["lms"]


def _get_numba_rls():
    """JIT-compile and cache the Numba RLS training kernel."""
    if "rls" not in _NUMBA_KERNELS:
        numba_mod = _get_numba()
        if numba_mod is None:
            raise ImportError("Numba is required for backend='numba'.")
        logger.debug("Compiling Numba RLS kernel.")

        @numba_mod.njit(cache=True, nogil=True)
        def rls_loop(
            x_padded,
            training,
            w,
            alpha,
            epochs,
            store_weights,
            costs_out,
            e_out,
            w_hist_out,
        ):
            num_taps = w.shape[0]
            n_win = e_out.shape[0]

            S = np.eye(num_taps)
            phi = np.empty(num_taps)
            Sx = np.empty(num_taps)
            inv_alpha = 1.0 / alpha

            for n in range(epochs):
                cost = 0.0
                for i in range(n_win):
                    acc = 0.0
                    for t in range(num_taps):
                        acc += w[t] * x_padded[i + t]
                    e = training[i] - acc

                    # phi = S x
                    denom = alpha
                    for r in range(num_taps):
                        s = 0.0
                        for c in range(num_taps):
                            s += S[r, c] * x_padded[i + c]
                        phi[r] = s
                    for r in range(num_taps):
                        denom += phi[r] * x_padded[i + r]

                    # S = (S - phi phi^T / (alpha + phi^T x)) / alpha
                    for r in range(num_taps):
                        for c in range(num_taps):
                            S[r, c] = inv_alpha * (S[r, c] - phi[r] * phi[c] / denom)

                    # w += e * S x, with the updated S
                    for r in range(num_taps):
                        s = 0.0
                        for c in range(num_taps):
                            s += S[r, c] * x_padded[i + c]
                        Sx[r] = s
                    for r in range(num_taps):
                        w[r] = w[r] + e * Sx[r]

                    e_out[i] = e
                    cost += 0.5 * e * e
                costs_out[n] = cost / n_win

                if store_weights:
                    for t in range(num_taps):
                        w_hist_out[n, t] = w[t]

        _NUMBA_KERNELS["rls"] = rls_loop
    return _NUMBA_KERNELS["rls"]


# ============================================================================
# JAX KERNELS
# ============================================================================
#
# Each factory JIT-compiles a single-epoch jax.lax.scan on first call and
# caches it in _JITTED_EQ keyed by num_taps (the window length must be static
# for lax.dynamic_slice). The epoch loop stays in Python and carries the
# weights (and, for RLS, the inverse covariance) between scans.

_JITTED_EQ: dict = {}


def _get_jax_lms(num_taps):
    """JIT-compile and cache one LMS epoch as a ``lax.scan``."""
    key = ("lms", num_taps)
    if key not in _JITTED_EQ:
        jax, jnp = _get_jax()
        if jax is None:
            raise ImportError("JAX is required for backend='jax'.")
        logger.debug(f"Tracing JAX LMS scan for num_taps={num_taps}.")

        @jax.jit
        def lms_epoch(x_padded, training, w_init, alpha):
            def step(w, idx):
                x = jax.lax.dynamic_slice(x_padded, (idx,), (num_taps,))
                e = training[idx] - jnp.dot(w, x)
                return w + alpha * e * x, e

            w_final, errors = jax.lax.scan(step, w_init, jnp.arange(training.shape[0]))
            return w_final, errors

        _JITTED_EQ[key] = lms_epoch
    return _JITTED_EQ[key]


def _get_jax_rls(num_taps):
    """JIT-compile and cache one RLS epoch as a ``lax.scan``."""
    key = ("rls", num_taps)
    if key not in _JITTED_EQ:
        jax, jnp = _get_jax()
        if jax is None:
            raise ImportError("JAX is required for backend='jax'.")
        logger.debug(f"Tracing JAX RLS scan for num_taps={num_taps}.")

        @jax.jit
        def rls_epoch(x_padded, training, w_init, S_init, alpha):
            def step(carry, idx):
                w, S = carry
                x = jax.lax.dynamic_slice(x_padded, (idx,), (num_taps,))
                e = training[idx] - jnp.dot(w, x)
                phi = S @ x
                S_new = (1.0 / alpha) * (
                    S - jnp.outer(phi, phi) / (alpha + jnp.dot(phi, x))
                )
                w_new = w + e * (S_new @ x)
                return (w_new, S_new), e

            (w_final, S_final), errors = jax.lax.scan(
                step, (w_init, S_init), jnp.arange(training.shape[0])
            )
            return w_final, S_final, errors

        _JITTED_EQ[key] = rls_epoch
    return _JITTED_EQ[key]


def _finish_epoch(n, w, errors, store_weights, costs_out, e_out, w_hist_out):
    e_out[:] = errors
    costs_out[n] = 0.5 * np.sum(errors * errors) / errors.shape[0]
    if store_weights:
        w_hist_out[n] = w


def _lms_jax(
    x_padded, training, w, alpha, epochs, store_weights, costs_out, e_out, w_hist_out
):
    epoch_fn = _get_jax_lms(w.shape[0])
    x_jax, d_jax = to_jax(x_padded), to_jax(training)
    alpha_jax = to_jax(alpha)
    w_jax = to_jax(w)
    for n in range(epochs):
        w_jax, errors = epoch_fn(x_jax, d_jax, w_jax, alpha_jax)
        w[:] = from_jax(w_jax)
        _finish_epoch(
            n, w, from_jax(errors), store_weights, costs_out, e_out, w_hist_out
        )


def _rls_jax(
    x_padded, training, w, alpha, epochs, store_weights, costs_out, e_out, w_hist_out
):
    num_taps = w.shape[0]
    epoch_fn = _get_jax_rls(num_taps)
    x_jax, d_jax = to_jax(x_padded), to_jax(training)
    alpha_jax = to_jax(alpha)
    w_jax = to_jax(w)
    S_jax = to_jax(np.eye(num_taps))
    for n in range(epochs):
        w_jax, S_jax, errors = epoch_fn(x_jax, d_jax, w_jax, S_jax, alpha_jax)
        w[:] = from_jax(w_jax)
        _finish_epoch(
            n, w, from_jax(errors), store_weights, costs_out, e_out, w_hist_out
        )


# ============================================================================
# TRAINER DISPATCH
# ============================================================================

_TRAINER_FACTORIES = {
    (AlgorithmType.LMS, "numpy"): lambda: _lms_numpy,
    (AlgorithmType.RLS, "numpy"): lambda: _rls_numpy,
    (AlgorithmType.LMS, "numba"): _get_numba_lms,
    (AlgorithmType.RLS, "numba"): _get_numba_rls,
    (AlgorithmType.LMS, "jax"): lambda: _lms_jax,
    (AlgorithmType.RLS, "jax"): lambda: _rls_jax,
}


def _get_trainer(alg_type: AlgorithmType, backend: str) -> Callable[..., None]:
    """Look up the training loop for an algorithm on a backend.

    Raises ``ImportError`` up front if the backend's compiler is missing.
    """
    if backend == "jax" and _get_jax()[0] is None:
        raise ImportError("JAX is required for backend='jax'.")
    return _TRAINER_FACTORIES[(alg_type, backend)]()


# ============================================================================
# EQUALIZATION
# ============================================================================


def apply_weights(padded_input: np.ndarray, weights: np.ndarray) -> np.ndarray:
    """Filter a padded signal with fixed weights.

    Output sample ``i`` is ``dot(weights, padded_input[i : i + num_taps])``.

    Returns
    -------
    y : ndarray
        Shape ``(len(padded_input) - num_taps + 1,)``.
    """
    padded_input = np.asarray(padded_input, dtype=np.float64)
    weights = np.asarray(weights, dtype=np.float64)
    num_taps = weights.shape[0]
    y = np.empty(padded_input.shape[0] - num_taps + 1, dtype=np.float64)
    windows = np.lib.stride_tricks.sliding_window_view(padded_input, num_taps)
    np.matmul(windows, weights, out=y)
    return y


def equalize(
    input_signal: Any,
    training_signal: Any,
    config: Optional[Union[EqualizerConfig, Mapping[str, Any]]] = None,
    *,
    backend: str = "numba",
    store_weights: bool = False,
    **options: Any,
) -> EqualizerResult:
    """
    Adaptive feed-forward equalization with LMS or RLS training.

    Both signals are min-max normalized to [0, 1] and duplicated; the input
    is zero-padded by ``ffe_taps // 2`` on each side. The weights start as a
    center-tap identity and are trained over the whole duplicated signal
    ``epoch`` times. The trained weights are then applied once to the padded
    input and the first half of the result is returned, so the output has
    the length of the input.

    Parameters
    ----------
    input_signal : array_like
        Real-valued signal to be equalized.
    training_signal : array_like
        Desired signal, same length as ``input_signal``.
    config : EqualizerConfig or mapping, optional
        Equalizer options. Defaults to the global configuration
        (``set_config``) or, when none is set, ``EqualizerConfig()``.
    backend : {'numba', 'numpy', 'jax'}, default 'numba'
        Execution backend for the training loop. ``'numba'`` compiles the loop
        with LLVM on first use. ``'numpy'`` is a plain Python loop and needs
        no compiler. ``'jax'`` uses ``jax.lax.scan`` in float32.
    store_weights : bool, default False
        If True, stores the weights after every epoch in ``weights_history``.
    **options
        Overrides for the config fields: ``alg_type``, ``ffe_taps``,
        ``alpha``, ``epoch``.

    Returns
    -------
    EqualizerResult
        Output, final weights, per-epoch costs and last-epoch errors.

    Raises
    ------
    InvalidAlgorithmType, InvalidTapCount
        For invalid ``alg_type`` / ``ffe_taps``.
    pydantic.ValidationError
        For other invalid options (negative alpha, epoch < 1, unknown name).
    SignalLengthMismatchError, DegenerateSignalError
        For unusable signals.
    ImportError
        If the requested backend's compiler is not installed.

    Notes
    -----
    ``alpha`` is not tuned: a learning rate that is too large for LMS makes
    the weights diverge, which shows up as large or NaN ``costs`` and
    ``output``. Use the cost curve to choose it.
    """
    if config is None:
        config = get_config() or EqualizerConfig()
    elif isinstance(config, Mapping):
        config = EqualizerConfig(**config)
    config = config.updated(**options)

    backend = resolve_backend(backend)
    alpha = float(config.resolved_alpha)
    num_taps = config.ffe_taps

    logger.info(
        f"FFE equalizer: alg_type={config.alg_type.value}, num_taps={num_taps}, "
        f"alpha={alpha}, epoch={config.epoch}, backend={backend}"
    )

    trainer = _get_trainer(config.alg_type, backend)
    signals = prepare_signals(input_signal, training_signal, num_taps)
    w = init_weights(num_taps)

    n_win = signals.num_windows
    costs = np.zeros(config.epoch, dtype=np.float64)
    e_out = np.zeros(n_win, dtype=np.float64)
    w_hist = np.zeros(
        (config.epoch if store_weights else 1, num_taps), dtype=np.float64
    )

    trainer(
        signals.padded_input,
        signals.training,
        w,
        alpha,
        int(config.epoch),
        bool(store_weights),
        costs,
        e_out,
        w_hist,
    )

    for n, cost in enumerate(costs):
        logger.debug(f"Epoch {n + 1}/{config.epoch}: cost={cost:.6e}")

    y = apply_weights(signals.padded_input, w)
    # The duplicated second half only served to warm up training.
    output = y[: signals.num_samples]

    return EqualizerResult(
        output=output,
        weights=w,
        costs=costs,
        error=e_out,
        weights_history=w_hist if store_weights else None,
        algorithm=config.alg_type.value,
        backend=backend,
    )


_POSITIONAL_OPTIONS = ("alg_type", "ffe_taps", "alpha", "epoch")


def linear_ff_equalize(*args: Any, backend: str = "numba"):
    """
    Positional form of ``equalize``.

    Call as ``linear_ff_equalize(input, training[, alg_type[, ffe_taps[,
    alpha[, epoch]]]])``. Omitted trailing options take their defaults; the
    global configuration is not consulted.

    Returns
    -------
    output, w, costs : ndarray
        Equalized signal, final weights and per-epoch costs.

    Raises
    ------
    InvalidArgumentCount
        If fewer than 2 or more than 6 positional arguments are given.
    """
    max_args = 2 + len(_POSITIONAL_OPTIONS)
    if not 2 <= len(args) <= max_args:
        raise InvalidArgumentCount(
            f"linear_ff_equalize expects 2 to {max_args} positional arguments, "
            f"got {len(args)}"
        )
    input_signal, training_signal, *values = args
    config = EqualizerConfig(**dict(zip(_POSITIONAL_OPTIONS, values)))
    result = equalize(input_signal, training_signal, config, backend=backend)
    return result.output, result.weights, result.costs
