import numpy as np
import pytest

from core.diagnostics import ENERGY_DRIFT, GROWTH, INSTABILITY, RunDiagnostics
from core.numeric_guard import NumericFault
from core.rk4_solver import (
    harmonic_energy,
    rk4_scalar_stages,
    rk4_scalar_step,
    rk4_system_stages,
    rk4_system_step,
    second_order_to_system,
)


def test_scalar_step_matches_taylor_polynomial():
    # Para y' = y, um passo RK4 reproduz 1 + h + h²/2 + h³/6 + h⁴/24
    h = 0.1
    expected = 1 + h + h ** 2 / 2 + h ** 3 / 6 + h ** 4 / 24
    assert rk4_scalar_step(lambda x, y: y, 0.0, 1.0, h) == pytest.approx(expected, rel=1e-14)


def test_scalar_stages_exposes_slopes():
    result = rk4_scalar_stages(lambda x, y: x - y, 0.0, 1.0, 0.1)
    k1, k2, k3, k4 = result.derivative_estimates
    assert result.is_valid
    assert k1 == pytest.approx(-1.0)
    assert k2 == pytest.approx(0.05 - (1.0 - 0.05))
    assert k3 == pytest.approx(-0.905)
    assert k4 == pytest.approx(-0.8095)


def test_stage_fault_is_raised():
    with pytest.raises(NumericFault) as excinfo:
        rk4_scalar_stages(lambda x, y: float('nan'), 0.0, 1.0, 0.1)
    assert excinfo.value.name == 'k1'


def test_invalid_final_value_is_flagged_not_raised():
    # Os três primeiros estágios são nulos e k4 = 1e100; apenas y_next excede o limite.
    func = lambda x, y: 1e100 if x >= 6.0 else 0.0
    result = rk4_scalar_stages(func, 0.0, 5e99, 6.0)
    assert not result.is_valid
    with pytest.raises(NumericFault):
        rk4_scalar_step(func, 0.0, 5e99, 6.0)


def test_instability_warning_after_warmup():
    diagnostics = RunDiagnostics()
    rk4_scalar_step(lambda x, y: y, 0.0, 2e10, 0.1, step_index=5, diagnostics=diagnostics)
    assert diagnostics.count(INSTABILITY) == 0
    rk4_scalar_step(lambda x, y: y, 0.0, 2e10, 0.1, step_index=11, diagnostics=diagnostics)
    assert diagnostics.count(INSTABILITY) == 1


def test_system_step_harmonic_oscillator():
    h = 0.05
    new_state = rk4_system_step(lambda t, s: np.array([s[1], -s[0]]), 0.0, np.array([1.0, 0.0]), h)
    assert np.allclose(new_state, [np.cos(h), -np.sin(h)], atol=1e-8)


def test_system_stages_use_full_state():
    # k2 de cada componente depende de k1 de todos os componentes
    func = lambda t, s: np.array([s[1], -s[0]])
    result = rk4_system_stages(func, 0.0, np.array([1.0, 0.0]), 0.1)
    k1, k2, _, _ = result.derivative_estimates
    assert np.allclose(k1, [0.0, -1.0])
    assert np.allclose(k2, [-0.05, -1.0])


def test_energy_drift_warning_respects_warmup():
    decay = lambda t, s: -s
    state = np.array([1.0, 0.0])
    diagnostics = RunDiagnostics()
    rk4_system_step(decay, 0.0, state, 0.1, step_index=5, invariant=harmonic_energy, diagnostics=diagnostics)
    assert diagnostics.count(ENERGY_DRIFT) == 0
    rk4_system_step(decay, 0.0, state, 0.1, step_index=20, invariant=harmonic_energy, diagnostics=diagnostics)
    assert diagnostics.count(ENERGY_DRIFT) == 1


def test_conserved_energy_does_not_warn():
    diagnostics = RunDiagnostics()
    rk4_system_step(lambda t, s: np.array([s[1], -s[0]]), 0.0, np.array([1.0, 0.0]), 0.05,
                    step_index=50, invariant=harmonic_energy, diagnostics=diagnostics)
    assert not diagnostics.has_warnings()


def test_growth_warning():
    diagnostics = RunDiagnostics()
    rk4_system_step(lambda t, s: 50.0 * s, 0.0, np.array([1.0, 1.0]), 0.1, step_index=6,
                    diagnostics=diagnostics)
    assert diagnostics.count(GROWTH) == 1


def test_system_fault_propagates():
    with pytest.raises(NumericFault):
        rk4_system_step(lambda t, s: np.array([np.inf, 0.0]), 0.0, np.array([1.0, 0.0]), 0.1)


def test_second_order_to_system():
    system = second_order_to_system(lambda x, y, yp: -y)
    assert np.allclose(system(0.0, np.array([1.0, 2.0])), [2.0, -1.0])


def test_harmonic_energy():
    assert harmonic_energy([3.0, 4.0]) == pytest.approx(25.0)
