import pytest

from core.diagnostics import STEP_HALVED, RunDiagnostics
from core.numeric_guard import NumericFault
from core.rk4_solver import rk4_scalar_step
from core.step_recovery import halve_and_retry


def test_stage_fault_in_half_step_is_not_recovered():
    diagnostics = RunDiagnostics()
    with pytest.raises(NumericFault):
        halve_and_retry(lambda x, y: float('nan'), 0.0, 1.0, 0.1, 3, diagnostics=diagnostics)
    assert diagnostics.count(STEP_HALVED) == 0


def test_halving_uses_two_sequential_half_steps():
    func = lambda x, y: y
    diagnostics = RunDiagnostics()
    outcome = halve_and_retry(func, 0.0, 1.0, 0.2, 0, diagnostics=diagnostics)

    expected = rk4_scalar_step(func, 0.1, rk4_scalar_step(func, 0.0, 1.0, 0.1), 0.1)
    assert outcome.recovered
    assert outcome.value == pytest.approx(expected, rel=1e-15)
    assert outcome.step == pytest.approx(0.1)
    assert outcome.evaluations == 2
    assert diagnostics.count(STEP_HALVED) == 1


def test_halving_failure_is_reported():
    # O segundo meio-passo ainda leva y_next a 9e99 + 5e99, acima do limite
    func = lambda x, y: 1e100 if x >= 6.0 else 0.0
    outcome = halve_and_retry(func, 0.0, 9e99, 6.0, 0)
    assert not outcome.recovered
    assert outcome.value is None
    assert outcome.evaluations == 2


def test_more_halving_levels():
    func = lambda x, y: -y
    outcome = halve_and_retry(func, 0.0, 1.0, 0.4, 0, max_halvings=3)
    # O primeiro nível já funciona; os níveis seguintes não são tentados
    assert outcome.recovered
    assert outcome.step == pytest.approx(0.2)


def test_zero_levels_never_recovers():
    outcome = halve_and_retry(lambda x, y: -y, 0.0, 1.0, 0.1, 0, max_halvings=0)
    assert not outcome.recovered
    assert outcome.evaluations == 0


def test_overflowing_full_step_is_recovered_by_half_steps():
    # Passo completo: y_next = 4e99 + 1e100 excede o limite; meios-passos chegam a 9e99.
    func = lambda x, y: 1e100 if x >= 6.0 else 0.0
    outcome = halve_and_retry(func, 0.0, 4e99, 6.0, 0)
    assert outcome.recovered
    assert outcome.value == pytest.approx(9e99)
