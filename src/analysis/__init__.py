"""
Módulo analysis - Análise de erro e ordem de convergência
"""

from .error_analysis import (
    error_statistics,
    precision_grade,
    conservation_grade,
    relative_variation_percent,
    relative_error_percent,
    mean_squared_error,
    rms_error,
    max_abs_error,
    complete_cycles,
)
from .convergence_order import estimate_convergence_order, export_convergence_table_to_csv

__all__ = [
    'error_statistics',
    'precision_grade',
    'conservation_grade',
    'relative_variation_percent',
    'relative_error_percent',
    'mean_squared_error',
    'rms_error',
    'max_abs_error',
    'complete_cycles',
    'estimate_convergence_order',
    'export_convergence_table_to_csv',
]
