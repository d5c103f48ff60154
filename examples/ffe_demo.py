"""Demonstration of the feed-forward equalizer.

This example shows three different usage patterns:
1. Positional call - mirrors the classic linear_ff_equalize signature
2. Keyword call - options passed to equalize directly
3. Global config - set once (or load from YAML), use everywhere
"""

import matplotlib.pyplot as plt
import numpy as np

from ffetools import (
    EqualizerConfig,
    clear_config,
    equalize,
    linear_ff_equalize,
    plotting,
    set_config,
)


def make_channel_signals(num_samples=2000, seed=0):
    """PAM-4 training signal and its copy through a short ISI channel."""
    rng = np.random.default_rng(seed)
    training = rng.integers(0, 4, size=num_samples).astype(np.float64)
    received = np.convolve(training, [0.3, 1.0, 0.45], mode="same")
    received += 0.02 * rng.standard_normal(num_samples)
    return received, training


def demo_positional():
    """Pattern 1: Positional arguments"""
    print("\n" + "=" * 70)
    print("PATTERN 1: Positional Arguments")
    print("=" * 70)

    received, training = make_channel_signals()
    output, weights, costs = linear_ff_equalize(received, training, "lms", 7, 0.05, 4)

    print(f"Output: {output.shape[0]} samples")
    print(f"Weights: {np.round(weights, 3)}")
    print(f"Cost per epoch: {np.array2string(costs, precision=5)}")


def demo_keywords():
    """Pattern 2: Keyword options and the result object"""
    print("\n" + "=" * 70)
    print("PATTERN 2: Keyword Options")
    print("=" * 70)

    received, training = make_channel_signals()
    result = equalize(
        received, training, alg_type="rls", ffe_taps=7, epoch=4, store_weights=True
    )

    print(f"Algorithm: {result.algorithm} on {result.backend}")
    print(f"Final cost: {result.costs[-1]:.3e}")
    print(f"Weights history shape: {result.weights_history.shape}")

    fig, ax = plotting.equalization(
        result.output, reference=training, input_signal=received, num_samples=60
    )
    plotting.convergence(result.costs, title="RLS convergence")
    plt.show()


def demo_global_config():
    """Pattern 3: Global config"""
    print("\n" + "=" * 70)
    print("PATTERN 3: Global Config")
    print("=" * 70)

    # EqualizerConfig.from_yaml("ffe.yaml") works the same way.
    set_config(EqualizerConfig(alg_type="lms", ffe_taps=9, alpha=0.03, epoch=6))

    received, training = make_channel_signals(seed=1)
    result = equalize(received, training)
    print(f"LMS with global config, final cost: {result.costs[-1]:.3e}")

    # Per-call overrides win over the global config.
    result = equalize(received, training, epoch=1)
    print(f"Single epoch override, cost: {result.costs[-1]:.3e}")

    clear_config()


if __name__ == "__main__":
    demo_positional()
    demo_keywords()
    demo_global_config()
