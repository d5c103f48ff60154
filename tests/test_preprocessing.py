import numpy as np
import pytest

from ffetools import preprocessing
from ffetools.exceptions import DegenerateSignalError, SignalLengthMismatchError


class TestNormalizeMinmax:
    """Tests for min-max normalization."""

    def test_ramp(self):
        norm = preprocessing.normalize_minmax([1, 2, 3, 4, 5])
        np.testing.assert_allclose(norm, [0.0, 0.25, 0.5, 0.75, 1.0])

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_range(self, seed):
        """Output lies in [0, 1] and hits both ends."""
        rng = np.random.default_rng(seed)
        x = 10 * rng.standard_normal(257) - 3
        norm = preprocessing.normalize_minmax(x)

        assert norm.min() == 0.0
        assert norm.max() == 1.0
        assert np.all((norm >= 0) & (norm <= 1))

    def test_flattens_column_vector(self):
        norm = preprocessing.normalize_minmax(np.array([[3.0], [1.0], [2.0]]))
        assert norm.shape == (3,)
        np.testing.assert_allclose(norm, [1.0, 0.0, 0.5])

    def test_range_beyond_float_max(self):
        """A span wider than the largest float still maps onto [0, 1]."""
        norm = preprocessing.normalize_minmax([-1e308, 0.0, 1e308])

        assert np.all(np.isfinite(norm))
        assert norm.min() == 0.0
        assert norm.max() == 1.0
        np.testing.assert_allclose(norm, [0.0, 0.5, 1.0])

    @pytest.mark.parametrize("bad", [np.nan, np.inf, -np.inf])
    def test_non_finite_signal(self, bad):
        with pytest.raises(ValueError, match="NaN or infinite"):
            preprocessing.normalize_minmax([0.0, bad, 1.0])

    def test_constant_signal(self):
        with pytest.raises(DegenerateSignalError, match="constant"):
            preprocessing.normalize_minmax([0.7, 0.7, 0.7])

    def test_empty_signal(self):
        with pytest.raises(ValueError, match="empty"):
            preprocessing.normalize_minmax([])

    def test_complex_signal(self):
        with pytest.raises(ValueError, match="real-valued"):
            preprocessing.normalize_minmax([1 + 1j, 2 - 1j])


class TestWorkingSignals:
    """Tests for duplication and zero padding."""

    def test_duplicate(self):
        np.testing.assert_array_equal(
            preprocessing.duplicate(np.array([1.0, 2.0])), [1.0, 2.0, 1.0, 2.0]
        )

    @pytest.mark.parametrize("num_taps,pad", [(1, 0), (3, 1), (5, 2), (9, 4)])
    def test_zero_pad(self, num_taps, pad):
        x = np.array([0.5, 1.0])
        padded = preprocessing.zero_pad(x, num_taps)

        assert padded.shape == (2 + 2 * pad,)
        np.testing.assert_array_equal(padded[pad : pad + 2], x)
        assert np.all(padded[:pad] == 0)
        assert np.all(padded[pad + 2 :] == 0)

    def test_prepare_signals(self):
        signals = preprocessing.prepare_signals([1, 2, 3, 4, 5], [5, 4, 3, 2, 1], 3)

        np.testing.assert_allclose(
            signals.padded_input,
            [0.0, 0.0, 0.25, 0.5, 0.75, 1.0, 0.0, 0.25, 0.5, 0.75, 1.0, 0.0],
        )
        np.testing.assert_allclose(
            signals.training,
            [1.0, 0.75, 0.5, 0.25, 0.0, 1.0, 0.75, 0.5, 0.25, 0.0],
        )
        assert signals.num_samples == 5
        assert signals.num_windows == 10

    def test_window_centers_align_with_training(self):
        """The center of window i is sample i of the duplicated input."""
        rng = np.random.default_rng(3)
        x = rng.standard_normal(20)
        signals = preprocessing.prepare_signals(x, x, 7)
        centers = signals.padded_input[3 : 3 + signals.num_windows]

        np.testing.assert_array_equal(centers, signals.training)

    def test_length_mismatch(self):
        with pytest.raises(SignalLengthMismatchError, match="Inconsistent lengths"):
            preprocessing.prepare_signals([1, 2, 3], [1, 2], 3)
