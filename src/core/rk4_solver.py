# rk4_solver.py
from collections import namedtuple

import numpy as np

from .diagnostics import ENERGY_DRIFT, GROWTH, INSTABILITY
from .numeric_guard import guarded_call, is_valid, require_valid, NumericFault

INSTABILITY_THRESHOLD = 1e10
INSTABILITY_WARMUP = 10
GROWTH_FACTOR = 10.0
GROWTH_WARMUP = 5
ENERGY_TOLERANCE = 1e-3
ENERGY_WARMUP = 10

StepResult = namedtuple('StepResult', ['new_state', 'derivative_estimates', 'is_valid'])


def rk4_scalar_stages(func, x, y, h, step_index=0, diagnostics=None):
    """
    Calcula um passo de Runge-Kutta de quarta ordem para y' = f(x, y).

    Cada estágio k1..k4 e cada ordenada intermediária passam pela validação
    numérica (NumericFault em caso de NaN/Inf/overflow). O valor final y_next é
    apenas verificado: o campo is_valid do StepResult indica se ele é utilizável,
    para que a política de recuperação possa repetir o intervalo com passo menor.

    Args:
        func (callable): Lado direito f(x, y).
        x (float): Abscissa atual.
        y (float): Ordenada atual.
        h (float): Passo.
        step_index (int): Índice do passo (usado pela heurística de instabilidade).
        diagnostics (RunDiagnostics, optional): Acumulador de avisos.

    Returns:
        StepResult: (y_next, (k1, k2, k3, k4), is_valid).
    """
    k1 = guarded_call('k1', func, x, y)
    y2 = require_valid('y2', y + h * k1 / 2)
    k2 = guarded_call('k2', func, x + h / 2, y2)
    y3 = require_valid('y3', y + h * k2 / 2)
    k3 = guarded_call('k3', func, x + h / 2, y3)
    y4 = require_valid('y4', y + h * k3)
    k4 = guarded_call('k4', func, x + h, y4)

    y_next = y + h * (k1 + 2 * k2 + 2 * k3 + k4) / 6
    valid = is_valid(y_next)

    if valid and diagnostics is not None:
        if abs(y_next) > INSTABILITY_THRESHOLD and step_index > INSTABILITY_WARMUP:
            diagnostics.warn(INSTABILITY,
                             f"Passo {step_index}: possível instabilidade numérica, y = {y_next:.2e}")

    return StepResult(y_next, (k1, k2, k3, k4), valid)


def rk4_scalar_step(func, x, y, h, step_index=0, diagnostics=None):
    """Um passo RK4 escalar; retorna y_next finito ou levanta NumericFault."""
    result = rk4_scalar_stages(func, x, y, h, step_index, diagnostics)
    if not result.is_valid:
        raise NumericFault('y_next', result.new_state)
    return result.new_state


def rk4_system_stages(func, t, state, h, step_index=0, invariant=None, diagnostics=None,
                      energy_tolerance=ENERGY_TOLERANCE, energy_warmup=ENERGY_WARMUP):
    """
    Passo RK4 para um sistema de N equações acopladas dy/dt = f(t, y).

    Cada estágio usa o vetor de estado completo: k2 de qualquer componente
    depende de k1 de todos os componentes.

    Após o passo, se `invariant` for fornecido (ex.: energia x² + y²), compara o
    valor antes/depois e registra um aviso de deriva quando o desvio relativo
    excede `energy_tolerance` depois de `energy_warmup` passos. Um crescimento da
    norma do estado maior que 10x em um único passo também gera aviso.
    """
    state = np.asarray(state, dtype=float)

    k1 = np.asarray(guarded_call('k1', func, t, state), dtype=float)
    s2 = require_valid('estado_k2', state + h * k1 / 2)
    k2 = np.asarray(guarded_call('k2', func, t + h / 2, s2), dtype=float)
    s3 = require_valid('estado_k3', state + h * k2 / 2)
    k3 = np.asarray(guarded_call('k3', func, t + h / 2, s3), dtype=float)
    s4 = require_valid('estado_k4', state + h * k3)
    k4 = np.asarray(guarded_call('k4', func, t + h, s4), dtype=float)

    new_state = state + h * (k1 + 2 * k2 + 2 * k3 + k4) / 6.0
    valid = is_valid(new_state)

    if valid and diagnostics is not None:
        if invariant is not None:
            before = require_valid('energia_antes', invariant(state))
            after = require_valid('energia_depois', invariant(new_state))
            delta = abs(after - before)
            scale = abs(before) if abs(before) > 1e-300 else 1.0
            if delta / scale > energy_tolerance and step_index > energy_warmup:
                diagnostics.warn(ENERGY_DRIFT,
                                 f"Passo {step_index}: energia não se conserva, "
                                 f"dE = {delta:.2e}, E_antes = {before:.6f}, E_depois = {after:.6f}")

        norm_before = np.linalg.norm(state)
        norm_after = np.linalg.norm(new_state)
        if norm_before > 0 and norm_after > GROWTH_FACTOR * norm_before and step_index > GROWTH_WARMUP:
            diagnostics.warn(GROWTH,
                             f"Passo {step_index}: possível instabilidade, |y| cresceu de "
                             f"{norm_before:.2e} para {norm_after:.2e}")

    return StepResult(new_state, (k1, k2, k3, k4), valid)


def rk4_system_step(func, t, state, h, step_index=0, invariant=None, diagnostics=None,
                    energy_tolerance=ENERGY_TOLERANCE, energy_warmup=ENERGY_WARMUP):
    """Um passo RK4 de sistema; retorna o novo vetor de estado ou levanta NumericFault."""
    result = rk4_system_stages(func, t, state, h, step_index, invariant, diagnostics,
                               energy_tolerance, energy_warmup)
    if not result.is_valid:
        raise NumericFault('novo_estado', result.new_state)
    return result.new_state


def second_order_to_system(accel):
    """
    Reduz y'' = g(x, y, y') ao sistema de primeira ordem com estado (y, y').
    """
    def system(x, state):
        y, yp = state
        return np.array([yp, accel(x, y, yp)])
    return system


def harmonic_energy(state):
    """Invariante Σ estado² (x² + y² ou y² + y'²)."""
    state = np.asarray(state, dtype=float)
    return float(np.dot(state, state))
