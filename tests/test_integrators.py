import math

import numpy as np
import pytest
from scipy.integrate import solve_ivp

from core.diagnostics import ENERGY_DRIFT, INVALID_STEP, STEP_HALVED
from core.integrators import (
    COMPLETED,
    RECOVERY_FAILED,
    STEP_LIMIT,
    integrate_scalar_ode,
    integrate_second_order_ode,
    integrate_system,
)
from core.numeric_guard import NumericFault
from core.rk4_solver import harmonic_energy


def _linear(x, y):
    return x - y


def _linear_exact(x):
    return x - 1 + 2 * math.exp(-x)


def _oscillator(t, state):
    return np.array([state[1], -state[0]])


def test_scalar_ode_against_exact_solution():
    result = integrate_scalar_ode(_linear, 0.0, 1.0, 5.0, 0.1, exact_solution=_linear_exact)
    assert result.status == COMPLETED
    assert result.completed
    assert result.steps == 50
    assert len(result.xs) == 51
    assert result.xs[-1] == pytest.approx(5.0)
    assert np.max(result.errors) < 1e-5
    assert not result.diagnostics.has_warnings()


def test_scalar_error_scales_with_fourth_power_of_step():
    coarse = integrate_scalar_ode(_linear, 0.0, 1.0, 2.0, 0.2, exact_solution=_linear_exact)
    fine = integrate_scalar_ode(_linear, 0.0, 1.0, 2.0, 0.1, exact_solution=_linear_exact)
    ratio = np.max(coarse.errors) / np.max(fine.errors)
    assert 12.0 < ratio < 20.0


def test_samples_are_ordered_tuples():
    result = integrate_scalar_ode(_linear, 0.0, 1.0, 0.3, 0.1)
    samples = list(result.samples())
    assert len(samples) == 4
    assert samples[0] == (0.0, 1.0)
    assert [s[0] for s in samples] == sorted(s[0] for s in samples)


@pytest.mark.parametrize("x_end, h", [(1.0, 0.0), (1.0, -0.1), (0.0, 0.1), (-1.0, 0.1), (0.04, 0.1)])
def test_invalid_interval_is_rejected(x_end, h):
    with pytest.raises(ValueError):
        integrate_scalar_ode(_linear, 0.0, 1.0, x_end, h)


def test_stage_fault_aborts_run_without_retry():
    func = lambda x, y: float('nan') if x >= 0.3 else -y
    with pytest.raises(NumericFault):
        integrate_scalar_ode(func, 0.0, 1.0, 1.0, 0.1)


def test_unrecoverable_step_ends_run_early():
    # y_next excede o limite no passo completo e também no segundo meio-passo
    func = lambda x, y: 1e100 if x >= 6.0 else 0.0
    result = integrate_scalar_ode(func, 0.0, 9e99, 12.0, 6.0)
    assert result.status == RECOVERY_FAILED
    assert result.steps == 0
    assert len(result.xs) == 1
    assert result.failure_reason is not None
    assert result.diagnostics.count(INVALID_STEP) == 1
    assert result.diagnostics.count(STEP_HALVED) == 0


def test_step_limit_stops_run():
    result = integrate_scalar_ode(_linear, 0.0, 1.0, 1.0, 0.1, step_limit_factor=0)
    assert result.status == STEP_LIMIT
    assert result.steps == 1


def test_system_conserves_energy():
    result = integrate_system(_oscillator, 0.0, [1.0, 0.0], 10.0, 0.05, invariant=harmonic_energy,
                              exact_solution=lambda t: np.array([np.cos(t), -np.sin(t)]))
    assert result.status == COMPLETED
    assert result.states.shape == (201, 2)
    assert result.max_invariant_deviation() < 0.01
    assert np.max(result.errors) < 1e-5
    assert result.diagnostics.count(ENERGY_DRIFT) == 0


def test_system_matches_scipy_reference():
    pendulum = lambda t, s: np.array([s[1], -np.sin(s[0]) - 0.1 * s[1]])
    result = integrate_system(pendulum, 0.0, [1.0, 0.0], 10.0, 0.01)
    reference = solve_ivp(pendulum, (0.0, result.xs[-1]), [1.0, 0.0], t_eval=result.xs,
                          rtol=1e-10, atol=1e-12)
    assert reference.success
    assert np.max(np.abs(result.states - reference.y.T)) < 1e-6


def test_system_fault_is_fatal():
    func = lambda t, s: np.array([s[1], 1.0 / 0.0 if t > 0.5 else -s[0]])
    with pytest.raises(NumericFault):
        integrate_system(func, 0.0, [1.0, 0.0], 1.0, 0.1)


def test_system_rejects_empty_state():
    with pytest.raises(ValueError):
        integrate_system(_oscillator, 0.0, [], 1.0, 0.1)


def test_second_order_harmonic():
    result = integrate_second_order_ode(lambda x, y, yp: -y, 0.0, 0.0, 1.0, 4 * np.pi, 0.05,
                                        invariant=harmonic_energy, exact_solution=math.sin)
    assert result.errors.shape == result.xs.shape
    assert np.max(result.errors) < 1e-5
    assert result.max_invariant_deviation() < 0.01
    assert np.allclose(result.states[:, 1], np.cos(result.xs), atol=1e-5)


def test_damped_oscillator_reports_energy_drift():
    result = integrate_second_order_ode(lambda x, y, yp: -y - 0.5 * yp, 0.0, 1.0, 0.0, 10.0, 0.05,
                                        invariant=harmonic_energy)
    assert result.completed
    assert result.diagnostics.count(ENERGY_DRIFT) > 0


def test_overflowing_step_recovered_inside_integration():
    func = lambda x, y: 1e100 if x >= 6.0 else 0.0
    result = integrate_scalar_ode(func, 0.0, 4e99, 6.0, 6.0)
    assert result.status == COMPLETED
    assert result.final_state == pytest.approx(9e99)
    assert result.diagnostics.count(INVALID_STEP) == 1
    assert result.diagnostics.count(STEP_HALVED) == 1
    assert result.rk4_evaluations == 3
