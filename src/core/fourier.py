# fourier.py
from collections import namedtuple

import numpy as np

from .diagnostics import DIVERGENT_SAMPLE, RunDiagnostics
from .numeric_guard import NumericFault, guarded_call, is_valid, require_valid

SUM_LIMIT = 1e50
DEFAULT_TERMS = 10
DEFAULT_QUADRATURE_POINTS = 1000

FourierTerm = namedtuple('FourierTerm', ['n', 'a', 'b'])
FourierCoefficients = namedtuple('FourierCoefficients', ['half_period', 'terms'])
FourierSamples = namedtuple('FourierSamples', ['xs', 'original', 'series', 'divergent_count'])


def _accumulate(name, terms):
    """
    Soma com verificação de cada soma parcial (NaN/Inf e overflow acima de SUM_LIMIT).
    """
    partial_sums = np.cumsum(terms)
    if not is_valid(partial_sums, SUM_LIMIT):
        raise NumericFault(name, partial_sums, SUM_LIMIT, detail="overflow no cálculo dos coeficientes")
    return float(partial_sums[-1])


def compute_fourier_coefficients(func, half_period=np.pi, n_terms=DEFAULT_TERMS,
                                 n_points=DEFAULT_QUADRATURE_POINTS):
    """
    Calcula os coeficientes de Fourier por soma de Riemann em uma grade fixa.

    Para x_i = i*dx, dx = 2L/n_points, i = 0..n_points-1:
        a0  = (dx/L) * Σ f(x_i)
        a_n = (dx/L) * Σ f(x_i) cos(nπx_i/L)
        b_n = (dx/L) * Σ f(x_i) sin(nπx_i/L)

    Args:
        func (callable): Função periódica f(x) de período 2L.
        half_period (float, optional): Semiperíodo L.
        n_terms (int, optional): Número de harmônicos N.
        n_points (int, optional): Pontos da quadratura.

    Returns:
        FourierCoefficients: `terms` tem N + 1 entradas; terms[0] = (0, a0, 0.0).
    """
    if half_period <= 0:
        raise ValueError(f"L deve ser positivo (L = {half_period}).")
    if n_terms <= 0:
        raise ValueError(f"n_terms deve ser positivo ({n_terms}).")
    if n_points <= 0:
        raise ValueError(f"n_points deve ser positivo ({n_points}).")

    L = half_period
    dx = require_valid('dx', 2.0 * L / n_points)
    x = np.arange(n_points) * dx
    f_values = np.array([guarded_call('f(x)', func, xi) for xi in x], dtype=float)

    a0 = require_valid('a0', _accumulate('a0', f_values) * dx / L)
    terms = [FourierTerm(0, a0, 0.0)]

    for n in range(1, n_terms + 1):
        angle = n * np.pi * x / L
        a_n = require_valid(f'a{n}', _accumulate(f'a{n}', f_values * np.cos(angle)) * dx / L)
        b_n = require_valid(f'b{n}', _accumulate(f'b{n}', f_values * np.sin(angle)) * dx / L)
        terms.append(FourierTerm(n, a_n, b_n))

    return FourierCoefficients(L, tuple(terms))


def fourier_series_value(coefficients, x, n_terms=None):
    """
    Reconstrói a série a0/2 + Σ a_n cos(nπx/L) + b_n sin(nπx/L) em um ponto.

    Returns:
        tuple: (valor, divergiu). Se alguma soma parcial se tornar inválida, o
            valor da amostra é zerado e `divergiu` é True.
    """
    L = coefficients.half_period
    terms = coefficients.terms
    if n_terms is None:
        n_terms = len(terms) - 1

    total = terms[0].a / 2
    for term in terms[1:n_terms + 1]:
        angle = term.n * np.pi * x / L
        with np.errstate(over='ignore', invalid='ignore'):
            total += term.a * np.cos(angle) + term.b * np.sin(angle)
        if not is_valid(total):
            return 0.0, True
    return float(total), False


def sample_fourier_series(func, coefficients, start, end, n_points, n_terms=None, diagnostics=None):
    """
    Avalia a função original e a série em n_points + 1 pontos igualmente espaçados.

    Uma amostra divergente é zerada e contabilizada, sem interromper a execução.
    """
    if end <= start:
        raise ValueError("O fim do intervalo deve ser maior que o início.")
    if n_points <= 0:
        raise ValueError(f"n_points deve ser positivo ({n_points}).")
    if diagnostics is None:
        diagnostics = RunDiagnostics()

    dx = (end - start) / n_points
    xs = start + dx * np.arange(n_points + 1)
    original = np.empty(n_points + 1)
    series = np.empty(n_points + 1)
    divergent = 0

    for i, x in enumerate(xs):
        original[i] = guarded_call('f(x)', func, x)
        series[i], diverged = fourier_series_value(coefficients, x, n_terms)
        if diverged:
            divergent += 1
            diagnostics.warn(DIVERGENT_SAMPLE, f"Série divergente em x = {x:.3f}")

    return FourierSamples(xs, original, series, divergent)
