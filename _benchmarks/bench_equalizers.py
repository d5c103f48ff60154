#!/usr/bin/env python3
"""
Benchmark: LMS and RLS feed-forward equalizers on every training backend.

Generates a 4-level PAM signal, passes it through a short ISI channel with
additive noise, then trains LMS and RLS equalizers on each available backend
with timing and quality metrics.

Timing notes
------------
The first call on the Numba and JAX backends compiles the training loop.
Warmup iterations absorb that cost so the timed runs measure the loop only.
JAX results are converted back to NumPy inside ``equalize``, which blocks
until the computation completes.

Usage
-----
    python _benchmarks/bench_equalizers.py
"""

import time

import matplotlib.pyplot as plt
import numpy as np

from ffetools import EqualizerConfig, equalize, set_log_level
from ffetools.backend import BACKENDS, is_available
from ffetools.plotting import apply_default_theme, convergence
from ffetools.preprocessing import normalize_minmax

# ── Configuration ──────────────────────────────────────────────────────────
NUM_SAMPLES = 2**12
LEVELS = 4  # PAM-4
CHANNEL = [0.2, 1.0, 0.4, -0.1]  # ISI channel impulse response
NOISE_STD = 0.02
NUM_TAPS = 11
EPOCHS = 5

N_WARMUP = 1  # JIT warmup iterations
N_BENCH = 5  # timed iterations

CONFIGS = {
    "LMS": EqualizerConfig(alg_type="lms", ffe_taps=NUM_TAPS, alpha=0.02, epoch=EPOCHS),
    "RLS": EqualizerConfig(alg_type="rls", ffe_taps=NUM_TAPS, alpha=0.999, epoch=EPOCHS),
}


def _make_impaired_signal(seed=42):
    """Generate PAM-4, apply ISI and AWGN.

    Returns
    -------
    received : ndarray (NUM_SAMPLES,)
    training : ndarray (NUM_SAMPLES,)
    """
    rng = np.random.default_rng(seed)
    training = rng.integers(0, LEVELS, size=NUM_SAMPLES).astype(np.float64)
    received = np.convolve(training, CHANNEL, mode="same")
    received += NOISE_STD * rng.standard_normal(NUM_SAMPLES)
    return received, training


def _run_equalizers(received, training, backend):
    """Run both algorithms, return dict of {name: (result, times)}."""
    results = {}
    for name, config in CONFIGS.items():
        # Warmup (JIT compilation happens here)
        for _ in range(N_WARMUP):
            equalize(received, training, config, backend=backend)

        times = []
        for _ in range(N_BENCH):
            t0 = time.perf_counter()
            result = equalize(received, training, config, backend=backend)
            t1 = time.perf_counter()
            times.append(t1 - t0)

        results[name] = (result, times)

    return results


def _compute_metrics(results, training):
    """Mean squared error and symbol error rate against the training signal."""
    reference = normalize_minmax(training)
    step = 1.0 / (LEVELS - 1)

    metrics = {}
    for name, (result, _) in results.items():
        decided = np.clip(np.round(result.output / step), 0, LEVELS - 1) * step
        metrics[name] = {
            "mse": float(np.mean((result.output - reference) ** 2)),
            "ser": float(np.mean(~np.isclose(decided, reference))),
        }
    return metrics


def _print_summary(label, results, metrics):
    """Print timing + quality table."""
    print(f"\n{'=' * 65}")
    print(f"  {label}")
    print(f"{'=' * 65}")
    print(
        f"  {'Equalizer':10s} {'Mean (ms)':>10s} {'Std (ms)':>10s} "
        f"{'Min (ms)':>10s} {'MSE':>10s} {'SER':>8s}"
    )
    print(f"  {'-' * 60}")
    for name, (_, times) in results.items():
        t_arr = np.array(times) * 1000
        m = metrics[name]
        print(
            f"  {name:10s} {t_arr.mean():10.2f} {t_arr.std():10.2f} "
            f"{t_arr.min():10.2f} {m['mse']:10.2e} {m['ser']:8.4f}"
        )
    print()


def _plot_results(all_results):
    """Convergence curves and a timing bar chart per backend."""
    apply_default_theme()

    fig, (ax_cost, ax_bar) = plt.subplots(1, 2, figsize=(11, 4))

    numpy_results = all_results.get("numpy") or next(iter(all_results.values()))
    for name, (result, _) in numpy_results.items():
        convergence(result.costs, ax=ax_cost, title="Convergence", label=name)
    ax_cost.legend()

    backends = list(all_results)
    names = list(CONFIGS)
    y = np.arange(len(backends))
    height = 0.8 / len(names)
    for i, name in enumerate(names):
        means = [np.mean(all_results[b][name][1]) * 1000 for b in backends]
        ax_bar.barh(y + i * height, means, height, label=name)

    ax_bar.set_yticks(y + height * (len(names) - 1) / 2)
    ax_bar.set_yticklabels(backends)
    ax_bar.set_xlabel("Time (ms)")
    ax_bar.set_title("Equalizer Execution Time")
    ax_bar.legend()
    ax_bar.invert_yaxis()

    fig.suptitle(
        f"FFE Benchmark, PAM-{LEVELS}, {NUM_SAMPLES} samples, "
        f"{NUM_TAPS} taps, {EPOCHS} epochs",
        fontsize=12,
    )
    plt.show()


def main():
    set_log_level("WARNING")

    print("=" * 65)
    print("  Equalizer Benchmark")
    print(f"  PAM-{LEVELS} | {NUM_SAMPLES} samples | {NUM_TAPS} taps | {EPOCHS} epochs")
    print(f"  Noise std: {NOISE_STD} | Warmup: {N_WARMUP} | Bench: {N_BENCH}")
    print("=" * 65)

    received, training = _make_impaired_signal()

    all_results = {}
    for backend in BACKENDS:
        if not is_available(backend):
            print(f"\n{backend} not available, skipping.")
            continue
        print(f"\nRunning {backend} equalizers...")
        results = _run_equalizers(received, training, backend)
        metrics = _compute_metrics(results, training)
        _print_summary(f"{backend} backend", results, metrics)
        all_results[backend] = results

    _plot_results(all_results)


if __name__ == "__main__":
    main()
