import numpy as np
import pytest

from core.diagnostics import DIVERGENT_SAMPLE, RunDiagnostics
from core.fourier import (
    FourierCoefficients,
    FourierTerm,
    compute_fourier_coefficients,
    fourier_series_value,
    sample_fourier_series,
)
from core.numeric_guard import NumericFault


def _triangle(x):
    return x if x < np.pi else 2 * np.pi - x


def test_triangle_wave_coefficients():
    coefficients = compute_fourier_coefficients(_triangle, np.pi, 10)
    terms = coefficients.terms
    assert len(terms) == 11
    assert terms[0].n == 0
    assert terms[0].a == pytest.approx(np.pi, abs=1e-3)
    for term in terms[1:]:
        expected = -4.0 / (np.pi * term.n ** 2) if term.n % 2 else 0.0
        assert term.a == pytest.approx(expected, abs=1e-3)
        assert term.b == pytest.approx(0.0, abs=1e-3)


def test_mean_squared_error_never_increases_with_more_terms():
    # Na grade da quadratura os coeficientes são projeções discretas exatas
    n_points = 1000
    coefficients = compute_fourier_coefficients(lambda x: x, np.pi, 10, n_points)
    xs = np.arange(n_points) * 2 * np.pi / n_points

    previous = np.inf
    for k in range(1, 11):
        series = np.array([fourier_series_value(coefficients, x, k)[0] for x in xs])
        mse = np.mean((xs - series) ** 2)
        assert mse <= previous
        previous = mse


def test_series_value_reconstructs_smooth_function():
    func = lambda x: 1.0 + 2.0 * np.cos(x) - 0.5 * np.sin(3 * x)
    coefficients = compute_fourier_coefficients(func, np.pi, 5)
    value, diverged = fourier_series_value(coefficients, 0.7)
    assert not diverged
    assert value == pytest.approx(func(0.7), abs=1e-9)


def test_divergent_sample_is_zeroed():
    coefficients = FourierCoefficients(np.pi, (FourierTerm(0, 0.0, 0.0), FourierTerm(1, 1e200, 0.0)))
    assert fourier_series_value(coefficients, 0.0) == (0.0, True)

    diagnostics = RunDiagnostics()
    samples = sample_fourier_series(lambda x: x, coefficients, 0.0, 1.0, 4, diagnostics=diagnostics)
    assert samples.divergent_count == 5
    assert np.all(samples.series == 0.0)
    assert np.allclose(samples.original, samples.xs)
    assert diagnostics.count(DIVERGENT_SAMPLE) == 5


def test_sample_grid_includes_both_ends():
    coefficients = compute_fourier_coefficients(_triangle, np.pi, 10)
    samples = sample_fourier_series(_triangle, coefficients, 0.0, 2 * np.pi, 500)
    assert len(samples.xs) == 501
    assert samples.xs[0] == 0.0
    assert samples.xs[-1] == pytest.approx(2 * np.pi)
    assert samples.divergent_count == 0
    assert np.max(np.abs(samples.original - samples.series)) < 0.1


def test_overflow_in_sums_is_fatal():
    with pytest.raises(NumericFault):
        compute_fourier_coefficients(lambda x: 1e60, np.pi, 3)


@pytest.mark.parametrize("kwargs", [{'half_period': 0.0}, {'n_terms': 0}, {'n_points': 0}])
def test_invalid_arguments(kwargs):
    with pytest.raises(ValueError):
        compute_fourier_coefficients(_triangle, **kwargs)
