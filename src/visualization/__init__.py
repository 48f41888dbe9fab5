"""
Módulo visualization - Arquivos de dados, tabelas e gráficos dos resultados
"""

from .report_sink import (
    DatFileSink,
    export_samples,
    records_to_dataframe,
    integration_to_dataframe,
    print_section,
    print_table,
    print_diagnostics,
)
from .solution_plots import (
    plot_and_save_solution,
    plot_and_save_timeseries_and_phase,
    plot_and_save_newton_scalar,
    plot_and_save_newton_system,
    plot_and_save_fourier,
    plot_and_save_derivatives,
)

__all__ = [
    'DatFileSink',
    'export_samples',
    'records_to_dataframe',
    'integration_to_dataframe',
    'print_section',
    'print_table',
    'print_diagnostics',
    'plot_and_save_solution',
    'plot_and_save_timeseries_and_phase',
    'plot_and_save_newton_scalar',
    'plot_and_save_newton_system',
    'plot_and_save_fourier',
    'plot_and_save_derivatives',
]
