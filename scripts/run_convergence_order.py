import sys
import os
import math
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from analysis.convergence_order import estimate_convergence_order, export_convergence_table_to_csv

step_sizes = [0.2, 0.1, 0.05, 0.025, 0.0125]

results = estimate_convergence_order(
    lambda x, y: x - y,                      # y' = x - y
    0.0,                                     # x0
    1.0,                                     # y(0)
    5.0,                                     # fim do intervalo
    lambda x: x - 1 + 2 * math.exp(-x),      # solução exata
    step_sizes=step_sizes,
)

if results is not None:
    # Mostra tabela no terminal
    print(results['table'].to_string(index=False, float_format=lambda v: "%.6e" % v))
    print(f"\nOrdem estimada: p = {results['order']:.4f} (R² = {results['r_squared']:.6f})")

    # Exporta tabela para CSV
    export_convergence_table_to_csv(results, filename="ordem_convergencia.csv")
