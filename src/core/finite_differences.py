# finite_differences.py
from collections import namedtuple

import numpy as np
import pandas as pd

from .diagnostics import (
    ASYMMETRY,
    INVALID_POINT,
    LARGE_VALUES,
    SMALL_DIFFERENCE,
    STEP_SIZE,
    RunDiagnostics,
)
from .numeric_guard import guarded_call, is_valid, require_valid

MAX_STEP = 1.0
MIN_STEP = 1e-10
DIFFERENCE_EPSILON = 1e-15
LARGE_VALUE = 1e50
SYMMETRY_TOLERANCE = 1e-6
MAX_ADJUSTMENTS = 10

DerivativeSamples = namedtuple('DerivativeSamples', ['xs', 'first', 'second', 'invalid_count'])


def validate_step(h, diagnostics=None):
    """
    Verifica o passo h das diferenças finitas.
    h <= 0 é erro; h muito grande ou muito pequeno gera aviso.
    """
    if h <= 0:
        raise ValueError(f"O passo h deve ser positivo (h = {h:.6f}).")
    if diagnostics is not None:
        if h > MAX_STEP:
            diagnostics.warn(STEP_SIZE, f"Passo h muito grande (h = {h:.6f}); as derivadas podem ser imprecisas")
        if h < MIN_STEP:
            diagnostics.warn(STEP_SIZE, f"Passo h muito pequeno (h = {h:.2e}); possível cancelamento numérico")
    return h


def first_derivative(func, x0, h, diagnostics=None):
    """Diferença central (f(x+h) - f(x-h)) / 2h."""
    f_plus = guarded_call('f(x+h)', func, x0 + h)
    f_minus = guarded_call('f(x-h)', func, x0 - h)
    if diagnostics is not None and abs(f_plus - f_minus) < DIFFERENCE_EPSILON:
        diagnostics.warn(SMALL_DIFFERENCE,
                         f"Diferença muito pequena na derivada primeira: {f_plus - f_minus:.2e}")
    return require_valid("f'(x)", (f_plus - f_minus) / (2 * h))


def second_derivative(func, x0, h, diagnostics=None):
    """(f(x+h) - 2f(x) + f(x-h)) / h²."""
    f_plus = guarded_call('f(x+h)', func, x0 + h)
    f_center = guarded_call('f(x)', func, x0)
    f_minus = guarded_call('f(x-h)', func, x0 - h)
    if diagnostics is not None and max(abs(f_plus), abs(f_center), abs(f_minus)) > LARGE_VALUE:
        diagnostics.warn(LARGE_VALUES, "Valores muito grandes na derivada segunda")
    return require_valid("f''(x)", (f_plus - 2 * f_center + f_minus) / (h * h))


def partial_x(func, x0, y0, h):
    f_plus = guarded_call('f(x+h,y)', func, x0 + h, y0)
    f_minus = guarded_call('f(x-h,y)', func, x0 - h, y0)
    return require_valid('df/dx', (f_plus - f_minus) / (2 * h))


def partial_y(func, x0, y0, h):
    f_plus = guarded_call('f(x,y+h)', func, x0, y0 + h)
    f_minus = guarded_call('f(x,y-h)', func, x0, y0 - h)
    return require_valid('df/dy', (f_plus - f_minus) / (2 * h))


def second_partial_x(func, x0, y0, h):
    f_plus = guarded_call('f(x+h,y)', func, x0 + h, y0)
    f_center = guarded_call('f(x,y)', func, x0, y0)
    f_minus = guarded_call('f(x-h,y)', func, x0 - h, y0)
    return require_valid('d2f/dx2', (f_plus - 2 * f_center + f_minus) / (h * h))


def second_partial_y(func, x0, y0, h):
    f_plus = guarded_call('f(x,y+h)', func, x0, y0 + h)
    f_center = guarded_call('f(x,y)', func, x0, y0)
    f_minus = guarded_call('f(x,y-h)', func, x0, y0 - h)
    return require_valid('d2f/dy2', (f_plus - 2 * f_center + f_minus) / (h * h))


def mixed_partial(func, x0, y0, h, diagnostics=None):
    """
    Derivada mista d²f/dxdy pela fórmula de quatro pontos.
    Registra aviso se f(x+h,y+h) e f(x-h,y-h) forem muito assimétricos.
    """
    f_pp = guarded_call('f(x+h,y+h)', func, x0 + h, y0 + h)
    f_pm = guarded_call('f(x+h,y-h)', func, x0 + h, y0 - h)
    f_mp = guarded_call('f(x-h,y+h)', func, x0 - h, y0 + h)
    f_mm = guarded_call('f(x-h,y-h)', func, x0 - h, y0 - h)

    if diagnostics is not None and abs(f_pp - f_mm) > SYMMETRY_TOLERANCE * max(abs(f_pp), abs(f_mm)):
        diagnostics.warn(ASYMMETRY, f"Assimetria na derivada mista: f(x+h,y+h) - f(x-h,y-h) = {f_pp - f_mm:.2e}")

    return require_valid('d2f/dxdy', (f_pp - f_pm - f_mp + f_mm) / (4 * h * h))


def third_partial_x(func, x0, y0, h):
    f_2h = guarded_call('f(x+2h,y)', func, x0 + 2 * h, y0)
    f_h = guarded_call('f(x+h,y)', func, x0 + h, y0)
    f_mh = guarded_call('f(x-h,y)', func, x0 - h, y0)
    f_m2h = guarded_call('f(x-2h,y)', func, x0 - 2 * h, y0)
    return require_valid('d3f/dx3', (f_2h - 2 * f_h + 2 * f_mh - f_m2h) / (2 * h ** 3))


def derivative_table(func_x, func_xy, x0, y0, h, diagnostics=None):
    """
    Calcula as oito derivadas numéricas de f(x) e f(x, y) no ponto (x0, y0).

    Returns:
        pd.DataFrame: Colunas 'Derivada' e 'Valor'.
    """
    validate_step(h, diagnostics)
    guarded_call('f(x0)', func_x, x0)
    guarded_call('f(x0,y0)', func_xy, x0, y0)

    rows = [
        ('a) D[f(x), x]', first_derivative(func_x, x0, h, diagnostics)),
        ('b) D[f(x), {x, 2}]', second_derivative(func_x, x0, h, diagnostics)),
        ('c) D[f(x,y), x]', partial_x(func_xy, x0, y0, h)),
        ('d) D[f(x,y), y]', partial_y(func_xy, x0, y0, h)),
        ('e) D[f(x,y), {x, 2}]', second_partial_x(func_xy, x0, y0, h)),
        ('f) D[f(x,y), {y, 2}]', second_partial_y(func_xy, x0, y0, h)),
        ('g) D[f(x,y), {x, y}]', mixed_partial(func_xy, x0, y0, h, diagnostics)),
        ('h) D[f(x,y), {x, 3}]', third_partial_x(func_xy, x0, y0, h)),
    ]
    return pd.DataFrame(rows, columns=['Derivada', 'Valor'])


def _central_pair(func, x, h):
    # Sem validação: o chamador decide se ajusta h ou descarta o ponto.
    try:
        with np.errstate(over='ignore', invalid='ignore', divide='ignore'):
            f_plus, f_center, f_minus = func(x + h), func(x), func(x - h)
            d1 = (f_plus - f_minus) / (2 * h)
            d2 = (f_plus - 2 * f_center + f_minus) / (h * h)
    except (ZeroDivisionError, OverflowError):
        return float('nan'), float('nan')
    return d1, d2


def sample_derivatives(func, start, end, n_points, h, max_adjustments=MAX_ADJUSTMENTS, diagnostics=None):
    """
    Amostra f'(x) e f''(x) em n_points + 1 pontos para gráficos.

    Se a derivada em um ponto for inválida, o passo é dobrado (até
    `max_adjustments` vezes) antes de descartar o ponto.

    Returns:
        DerivativeSamples: apenas os pontos válidos, e a contagem dos descartados.
    """
    if end <= start:
        raise ValueError("O fim do intervalo deve ser maior que o início.")
    if n_points <= 0:
        raise ValueError(f"n_points deve ser positivo ({n_points}).")
    validate_step(h, diagnostics)
    if diagnostics is None:
        diagnostics = RunDiagnostics()

    dx = (end - start) / n_points
    xs, first, second = [], [], []
    invalid = 0

    for i in range(n_points + 1):
        x = start + i * dx
        step = h
        d1, d2 = _central_pair(func, x, step)
        adjustments = 0
        while not (is_valid(d1) and is_valid(d2)) and adjustments < max_adjustments:
            step *= 2
            adjustments += 1
            diagnostics.warn(STEP_SIZE, f"Ajustando h para {step:.2e} em x = {x:.3f}")
            d1, d2 = _central_pair(func, x, step)

        if is_valid(d1) and is_valid(d2):
            xs.append(x)
            first.append(float(d1))
            second.append(float(d2))
        else:
            invalid += 1
            diagnostics.warn(INVALID_POINT, f"Derivada não pôde ser calculada em x = {x:.3f}")

    return DerivativeSamples(np.array(xs), np.array(first), np.array(second), invalid)
