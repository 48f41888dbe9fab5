"""
Módulo core - Integradores RK4, métodos de Newton, série de Fourier e validação numérica
"""

from .numeric_guard import NumericFault, is_valid, require_valid, require_valid_point, guarded_call
from .diagnostics import RunDiagnostics
from .rk4_solver import (
    rk4_scalar_step,
    rk4_scalar_stages,
    rk4_system_step,
    rk4_system_stages,
    second_order_to_system,
    harmonic_energy,
)
from .step_recovery import halve_and_retry
from .integrators import integrate_scalar_ode, integrate_system, integrate_second_order_ode
from .newton import newton_scalar, newton_system
from .fourier import compute_fourier_coefficients, fourier_series_value, sample_fourier_series
from .finite_differences import derivative_table, sample_derivatives

__all__ = [
    'NumericFault', 'is_valid', 'require_valid', 'require_valid_point', 'guarded_call',
    'RunDiagnostics',
    'rk4_scalar_step', 'rk4_scalar_stages', 'rk4_system_step', 'rk4_system_stages',
    'second_order_to_system', 'harmonic_energy',
    'halve_and_retry',
    'integrate_scalar_ode', 'integrate_system', 'integrate_second_order_ode',
    'newton_scalar', 'newton_system',
    'compute_fourier_coefficients', 'fourier_series_value', 'sample_fourier_series',
    'derivative_table', 'sample_derivatives',
]
