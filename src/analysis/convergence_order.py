# convergence_order.py
import numpy as np
import pandas as pd
from scipy.stats import linregress

from core.integrators import integrate_scalar_ode

DEFAULT_STEP_SIZES = (0.2, 0.1, 0.05, 0.025)


def estimate_convergence_order(func, x0, y0, x_end, exact_solution, step_sizes=DEFAULT_STEP_SIZES):
    """
    Estima a ordem de convergência empírica do RK4 para uma EDO com solução conhecida.

    Para cada passo h integra o problema no mesmo intervalo, mede o erro máximo
    contra a solução analítica e ajusta log(erro) = p*log(h) + c por regressão
    linear. Para RK4, espera-se p ≈ 4.

    Args:
        func (callable): Lado direito f(x, y).
        x0 (float): Início do intervalo.
        y0 (float): Condição inicial.
        x_end (float): Fim do intervalo.
        exact_solution (callable): Solução analítica y(x).
        step_sizes (sequence): Passos a testar (ao menos 2).

    Returns:
        dict: {'order': p, 'r_squared': r², 'table': pd.DataFrame}, ou None se não
              houver pontos suficientes para a regressão.
    """
    step_sizes = sorted(step_sizes, reverse=True)
    if len(step_sizes) < 2:
        print("São necessários ao menos dois passos para estimar a ordem de convergência.")
        return None

    max_errors = []
    for h in step_sizes:
        result = integrate_scalar_ode(func, x0, y0, x_end, h, exact_solution=exact_solution)
        if not result.completed:
            print(f"Integração com h = {h} não foi concluída: {result.failure_reason}")
            return None
        max_errors.append(float(np.max(result.errors)))

    max_errors = np.array(max_errors)
    hs = np.array(step_sizes, dtype=float)

    # Erros nulos (solução exata reproduzida) não entram no ajuste log-log
    usable = max_errors > 0
    if np.sum(usable) < 2:
        print("Erros insuficientes (não nulos) para o ajuste log-log.")
        return None

    slope, intercept, r_value, p_value, std_err = linregress(np.log(hs[usable]), np.log(max_errors[usable]))

    ratios = np.full(len(max_errors), np.nan)
    ratios[1:] = max_errors[:-1] / np.where(max_errors[1:] > 0, max_errors[1:], np.nan)

    table = pd.DataFrame({
        'h': hs,
        'erro_maximo': max_errors,
        'razao': ratios,
    })
    return {'order': float(slope), 'r_squared': float(r_value ** 2), 'table': table}


def export_convergence_table_to_csv(results, filename='ordem_convergencia.csv'):
    """
    Exporta a tabela de convergência para um arquivo CSV.

    Args:
        results (dict): Resultado de estimate_convergence_order.
        filename (str, optional): Nome do arquivo CSV.
    """
    df_table = results['table']
    df_table.to_csv(filename, index=False, float_format="%.6e")
    return df_table
