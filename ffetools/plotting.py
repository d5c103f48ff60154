from typing import Any, Optional, Sequence, Tuple

import matplotlib as mpl
import matplotlib.font_manager as fm
import matplotlib.pyplot as plt
import numpy as np

from .logger import logger


def apply_default_theme() -> None:
    try:
        font_prop = fm.FontProperties(family="Roboto", weight="regular")
        fm.findfont(font_prop, fallback_to_default=False)
        font_name = "Roboto"
    except ValueError:
        font_name = "sans"
        logger.debug("Roboto font not found, falling back to default sans-serif.")

    mpl.rcParams.update(
        {
            "figure.figsize": (5, 3.5),
            "font.family": font_name,
            "font.size": 12,
            "lines.linewidth": 2,
            "axes.linewidth": 1,
            "axes.grid": True,
            "axes.titleweight": "bold",
            "figure.autolayout": True,
            "figure.facecolor": "white",
            "savefig.facecolor": "white",
            "savefig.dpi": 300,
            "xtick.direction": "in",
            "ytick.direction": "in",
            "xtick.top": True,
            "ytick.right": True,
        }
    )


def convergence(
    costs: Any,
    log_scale: bool = True,
    ax: Optional[Any] = None,
    title: Optional[str] = "Convergence",
    show: bool = False,
    **kwargs: Any,
) -> Optional[Tuple[Any, Any]]:
    """
    Plots the per-epoch training cost.

    The curve is the tool for choosing ``alpha``: a steadily falling cost
    means a stable learning rate, a rising or NaN cost means divergence.

    Args:
        costs: Cost of each epoch (``EqualizerResult.costs``).
        log_scale: Whether to use a logarithmic cost axis. Zero costs are
            not drawable on a log axis, so a linear axis is used when the
            costs are not all positive.
        ax: Optional matplotlib axis to plot on.
        title: Title of the plot. If None, no title is set.
        show: Whether to call plt.show() after plotting.
        **kwargs: Additional arguments passed to ax.plot.

    Returns:
        Tuple of (figure, axis) if show is False, else None.
    """
    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    costs = np.asarray(costs, dtype=np.float64)
    epochs = np.arange(1, costs.shape[0] + 1)

    kwargs.setdefault("marker", "o")
    ax.plot(epochs, costs, **kwargs)
    if log_scale and np.all(costs[np.isfinite(costs)] > 0):
        ax.set_yscale("log")
    ax.set_xlabel("Epoch")
    ax.set_ylabel("Cost")
    if title is not None:
        ax.set_title(title)

    if show:
        plt.show()
        return None
    return fig, ax


def equalization(
    output: Any,
    reference: Optional[Any] = None,
    input_signal: Optional[Any] = None,
    num_samples: Optional[int] = None,
    ax: Optional[Any] = None,
    title: Optional[str] = "Equalization",
    show: bool = False,
    labels: Sequence[str] = ("Input", "Reference", "Equalized"),
) -> Optional[Tuple[Any, Any]]:
    """
    Plots the equalized output against the reference and the input.

    ``reference`` and ``input_signal`` are drawn after min-max
    normalization, the scale the equalizer works in.

    Args:
        output: Equalized signal (``EqualizerResult.output``).
        reference: Optional training signal.
        input_signal: Optional raw input signal.
        num_samples: Number of leading samples to plot. Defaults to all.
        ax: Optional matplotlib axis to plot on.
        title: Title of the plot. If None, no title is set.
        show: Whether to call plt.show() after plotting.
        labels: Legend labels for input, reference and output.

    Returns:
        Tuple of (figure, axis) if show is False, else None.
    """
    from .preprocessing import normalize_minmax

    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    limit = slice(None, num_samples)
    output = np.asarray(output, dtype=np.float64)[limit]
    n = np.arange(output.shape[0])

    if input_signal is not None:
        x = normalize_minmax(input_signal, "InputSignal")[limit]
        ax.plot(n, x, color="0.6", linewidth=1, label=labels[0])
    if reference is not None:
        d = normalize_minmax(reference, "TrainingSignal")[limit]
        ax.plot(n, d, linestyle="--", label=labels[1])
    ax.plot(n, output, label=labels[2])

    ax.set_xlabel("Sample")
    ax.set_ylabel("Amplitude")
    ax.legend()
    if title is not None:
        ax.set_title(title)

    if show:
        plt.show()
        return None
    return fig, ax
