import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from ffetools import clear_config
from ffetools.backend import BACKENDS, is_available


def pytest_addoption(parser):
    parser.addoption(
        "--backend",
        action="store",
        default="all",
        help="Training backend to run tests on: numpy, numba, jax, or all",
    )


def pytest_generate_tests(metafunc):
    if "backend" in metafunc.fixturenames:
        backend_opt = metafunc.config.getoption("--backend")
        if backend_opt == "all":
            params = list(BACKENDS)
        elif backend_opt in BACKENDS:
            params = [backend_opt]
        else:
            params = ["numpy"]  # Default fallback

        metafunc.parametrize("backend", params, indirect=True)


@pytest.fixture
def backend(request):
    """
    Fixture that returns the training backend name.
    Skips backends whose compiler is not installed.
    """
    name = request.param
    if not is_available(name):
        pytest.skip(f"{name} not installed, skipping {name} backend tests")
    return name


@pytest.fixture
def tol(backend):
    """Comparison tolerances against the float64 NumPy reference."""
    if backend == "jax":
        return {"rtol": 1e-3, "atol": 1e-3}
    return {"rtol": 1e-7, "atol": 1e-9}


@pytest.fixture
def channel_signals():
    """A training signal and its copy through a short ISI channel."""
    rng = np.random.default_rng(7)
    tx = rng.choice([0.0, 1.0, 2.0, 3.0], size=200)
    rx = np.convolve(tx, [0.25, 1.0, 0.35], mode="same")
    rx = rx + 0.01 * rng.standard_normal(rx.shape[0])
    return rx, tx


@pytest.fixture(autouse=True)
def _reset_global_config():
    clear_config()
    yield
    clear_config()
