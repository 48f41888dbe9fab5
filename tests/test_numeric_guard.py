import math

import numpy as np
import pytest

from core.numeric_guard import (
    VALUE_LIMIT,
    NumericFault,
    guarded_call,
    is_valid,
    require_valid,
    require_valid_point,
)


def test_is_valid_scalars():
    assert is_valid(1.0)
    assert is_valid(-VALUE_LIMIT)
    assert is_valid(0.0)
    assert is_valid(1e99)
    assert is_valid(-1e99)
    assert not is_valid(float('nan'))
    assert not is_valid(float('inf'))
    assert not is_valid(-float('inf'))
    assert not is_valid(1e101)


def test_is_valid_arrays_and_custom_limit():
    assert is_valid(np.array([1.0, 2.0, 3.0]))
    assert not is_valid(np.array([1.0, np.nan]))
    assert is_valid(1e40, limit=1e50)
    assert not is_valid(1e60, limit=1e50)


def test_require_valid_returns_value():
    assert require_valid('x', 2.5) == 2.5


@pytest.mark.parametrize("value, fragment", [
    (float('nan'), "NaN"),
    (float('inf'), "Infinito"),
    (1e150, "excede o limite"),
])
def test_require_valid_raises_with_description(value, fragment):
    with pytest.raises(NumericFault) as excinfo:
        require_valid('k1', value)
    assert excinfo.value.name == 'k1'
    assert fragment in str(excinfo.value)


def test_numeric_fault_is_arithmetic_error():
    assert issubclass(NumericFault, ArithmeticError)


def test_require_valid_point():
    assert require_valid_point('ponto', 1.0, 2.0) == (1.0, 2.0)
    with pytest.raises(NumericFault) as excinfo:
        require_valid_point('novo ponto', 1.0, float('nan'))
    assert "ponto inválido" in str(excinfo.value)


def test_guarded_call_converts_python_errors():
    with pytest.raises(NumericFault):
        guarded_call('f', lambda x: 1.0 / x, 0.0)
    with pytest.raises(NumericFault) as excinfo:
        guarded_call('f', math.exp, 1000.0)
    assert "Infinito" in str(excinfo.value)


def test_guarded_call_catches_silent_numpy_results():
    with pytest.raises(NumericFault):
        guarded_call('log', np.log, 0.0)
    with pytest.raises(NumericFault):
        guarded_call('sqrt', np.sqrt, -1.0)


def test_guarded_call_passes_valid_results():
    assert guarded_call('f', lambda x, y: x + y, 1.0, 2.0) == 3.0
