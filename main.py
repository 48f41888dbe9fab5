# main.py
import math
import os
import sys

import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src'))

from core.numeric_guard import NumericFault
from core.diagnostics import RunDiagnostics
from core.integrators import integrate_scalar_ode, integrate_system, integrate_second_order_ode
from core.rk4_solver import harmonic_energy
from core.newton import newton_scalar, newton_system
from core.fourier import compute_fourier_coefficients, sample_fourier_series
from core.finite_differences import derivative_table, sample_derivatives
from analysis.error_analysis import (
    error_statistics,
    precision_grade,
    conservation_grade,
    relative_variation_percent,
    relative_error_percent,
    rms_error,
    max_abs_error,
    complete_cycles,
)
from visualization.report_sink import (
    DatFileSink,
    export_samples,
    records_to_dataframe,
    integration_to_dataframe,
    print_section,
    print_table,
    print_diagnostics,
)
from visualization.solution_plots import (
    plot_and_save_solution,
    plot_and_save_timeseries_and_phase,
    plot_and_save_newton_scalar,
    plot_and_save_newton_system,
    plot_and_save_fourier,
    plot_and_save_derivatives,
)


def run_newton_scalar(output_folder):
    # --- Parâmetros ---
    func = lambda x: x ** 3 - 2 * x - 5
    derivative = lambda x: 3 * x ** 2 - 2
    x0 = 2.0
    tolerance = 1e-6
    max_iter = 100

    print_section("MÉTODO DE NEWTON-RAPHSON: f(x) = x³ - 2x - 5")
    print(f"  Valor inicial:    x0 = {x0:.1f}, f(x0) = {func(x0):.3f}")
    print(f"  Derivada inicial: f'(x0) = {derivative(x0):.3f}")
    print(f"  Tolerância:       {tolerance:.1e}")
    print(f"  Máx. iterações:   {max_iter}")

    result = newton_scalar(func, derivative, x0, tolerance=tolerance, max_iter=max_iter)
    df = records_to_dataframe(result.records)
    print_table(df)
    export_samples(os.path.join(output_folder, 'iteracoes.dat'), ['iter', 'x', 'f(x)', 'erro'],
                   [(r.iteration, r.state[0], r.residual[0], r.step_error) for r in result.records])

    if result.is_fatal:
        print(f"\nERRO CRÍTICO: derivada nula em x = {result.solution:.6f}; o método não pode continuar")
        return result

    with DatFileSink(os.path.join(output_folder, 'funcao.dat'), ['x', 'f(x)'], '%.3f') as sink:
        for x in np.arange(-3.0, 5.0 + 1e-9, 0.1):
            sink.write(x, func(x))
    plot_and_save_newton_scalar(func, result, output_folder)

    print("\nRESULTADOS FINAIS:")
    print(f"  Raiz aproximada:  x = {result.solution:.8f}")
    print(f"  f(raiz) =         {result.residual[0]:.2e}")
    print(f"  Iterações:        {result.iterations} de {max_iter}")
    print(f"  Erro final:       {result.error:.2e} (Tolerância: {tolerance:.2e})")
    print(f"  Estado:           {result.status}")
    print_diagnostics(result.diagnostics)
    return result


def run_newton_system(output_folder):
    # --- Parâmetros ---
    residual = lambda x, y: (x * x + y * y - 4, math.exp(x) + y - 1)
    jacobian = lambda x, y: [[2 * x, 2 * y], [math.exp(x), 1.0]]
    x0, y0 = 1.0, 1.0
    tolerance = 1e-6
    max_iter = 50

    print_section("SISTEMA DE EQUAÇÕES NÃO LINEARES (2D): x² + y² = 4, e^x + y = 1")
    result = newton_system(residual, jacobian, x0, y0, tolerance=tolerance, max_iter=max_iter)
    print_table(records_to_dataframe(result.records))

    export_samples(os.path.join(output_folder, 'sistema_iteracoes.dat'),
                   ['iter', 'x', 'y', 'f1', 'f2', 'det_j', 'erro'],
                   [(r.iteration, *r.state, *r.residual, r.jacobian_determinant, r.step_error)
                    for r in result.records])
    export_samples(os.path.join(output_folder, 'sistema_trajetoria.dat'), ['x', 'y'], result.trajectory)

    if result.is_fatal:
        x, y = result.solution
        print(f"\nERRO CRÍTICO: jacobiano singular em ({x:.6f}, {y:.6f})")
        return result

    t = np.linspace(0, 2 * np.pi, 201)
    xi = np.linspace(-3.0, 3.0, 201)
    curves = [(2 * np.cos(t), 2 * np.sin(t), 'x² + y² = 4'), (xi, 1 - np.exp(xi), 'e^x + y = 1')]
    plot_and_save_newton_system(curves, result, output_folder)

    x, y = result.solution
    print("\nRESULTADOS FINAIS:")
    print(f"  Solução:          x = {x:.8f}, y = {y:.8f}")
    print(f"  f1(x,y) =         {result.residual[0]:.2e}")
    print(f"  f2(x,y) =         {result.residual[1]:.2e}")
    print(f"  Iterações:        {result.iterations} de {max_iter}")
    print(f"  Estado:           {result.status}")
    print_diagnostics(result.diagnostics)
    return result


def run_fourier(output_folder):
    # --- Parâmetros ---
    L = np.pi
    triangle = lambda x: x if x < L else 2 * L - x
    n_terms = 10
    plot_points = 500

    print_section("SÉRIE DE FOURIER: função triangular em [0, 2π]")
    coefficients = compute_fourier_coefficients(triangle, half_period=L, n_terms=n_terms)
    print(f"  Coeficiente a0 = {coefficients.terms[0].a:.6f}")
    for term in coefficients.terms[1:6]:
        print(f"  a{term.n} = {term.a:9.6f}, b{term.n} = {term.b:9.6f}")

    diagnostics = RunDiagnostics()
    samples = sample_fourier_series(triangle, coefficients, 0.0, 2 * np.pi, plot_points,
                                    diagnostics=diagnostics)
    export_samples(os.path.join(output_folder, 'fourier_original.dat'), ['x', 'f(x)'],
                   zip(samples.xs, samples.original))
    export_samples(os.path.join(output_folder, 'fourier_serie.dat'), ['x', 'fourier(x)'],
                   zip(samples.xs, samples.series))
    plot_and_save_fourier(samples, n_terms, output_folder)

    print("\nANÁLISE DE ERRO:")
    print(f"  Erro quadrático médio: {rms_error(samples.original, samples.series):.6f}")
    print(f"  Erro máximo:           {max_abs_error(samples.original, samples.series):.6f}")
    print(f"  Amostras divergentes:  {samples.divergent_count}")
    print_diagnostics(diagnostics)
    return coefficients


def run_derivatives(output_folder):
    # --- Parâmetros ---
    func_x = lambda x: math.sin(x) + x * x
    func_xy = lambda x, y: x * x * math.sin(y) + math.exp(x * y)
    x0, y0 = 1.0, 0.5
    h = 0.0001

    print_section("8 DERIVADAS NUMÉRICAS: f(x) = sin(x) + x², f(x,y) = x²·sin(y) + e^(x·y)")
    diagnostics = RunDiagnostics()
    table = derivative_table(func_x, func_xy, x0, y0, h, diagnostics)
    print_table(table)

    samples = sample_derivatives(func_x, x0 - 2.0, x0 + 2.0, 100, h, diagnostics=diagnostics)
    export_samples(os.path.join(output_folder, 'derivadas.dat'), ['x', 'df/dx', 'd2f/dx2'],
                   zip(samples.xs, samples.first, samples.second))
    da, db = table['Valor'].iloc[0], table['Valor'].iloc[1]
    plot_and_save_derivatives(samples, x0, da, output_folder)

    print("\nANÁLISE DE ERRO (comparação com valores analíticos):")
    err_a, rel_a = relative_error_percent(da, math.cos(x0) + 2 * x0)
    err_b, rel_b = relative_error_percent(db, -math.sin(x0) + 2)
    print(f"  Primeira derivada: erro absoluto {err_a:.2e}, relativo {rel_a:.2e}%")
    print(f"  Segunda derivada:  erro absoluto {err_b:.2e}, relativo {rel_b:.2e}%")
    print(f"  Pontos para gráfico: {len(samples.xs)} válidos, {samples.invalid_count} descartados")
    print_diagnostics(diagnostics)
    return table


def run_scalar_ode(output_folder):
    # --- Parâmetros ---
    func = lambda x, y: x - y
    exact = lambda x: x - 1 + 2 * math.exp(-x)
    x0, x_end, y0, h = 0.0, 5.0, 1.0, 0.1

    print_section("EQUAÇÃO DIFERENCIAL: y' = x - y (RK4)")
    print(f"  Condição inicial: y({x0:.1f}) = {y0:.1f}")
    print(f"  Intervalo: [{x0:.1f}, {x_end:.1f}], passo h = {h:.3f}")

    result = integrate_scalar_ode(func, x0, y0, x_end, h, exact_solution=exact)
    print_table(integration_to_dataframe(result, ['x', 'y_RK4'], every=5), "%.5f")

    with DatFileSink(os.path.join(output_folder, 'rk4_solucao.dat'), ['x', 'y']) as solution_sink, \
            DatFileSink(os.path.join(output_folder, 'rk4_erro.dat'), ['x', 'erro']) as error_sink:
        for x, y, err in zip(result.xs, result.states, result.errors):
            solution_sink.write(x, y)
            error_sink.write(x, err)
    plot_and_save_solution(result.xs, result.states, output_folder, exact=result.exact, errors=result.errors,
                           title="Método de Runge-Kutta 4: y' = x - y")

    stats = error_statistics(result.errors)
    print("\nANÁLISE DE RESULTADOS:")
    print(f"  Estado:              {result.status}")
    if result.failure_reason:
        print(f"  Motivo:              {result.failure_reason}")
    print(f"  Passos completados:  {result.steps}")
    print(f"  Erro máximo:         {stats['max']:.6f}")
    print(f"  Erro médio:          {stats['mean']:.6f}")
    print(f"  Erro final:          {stats['final']:.6f}")
    print(f"  Precisão:            {precision_grade(stats['max'])}")
    print_diagnostics(result.diagnostics)
    return result


def run_second_order_ode(output_folder):
    # --- Parâmetros ---
    accel = lambda x, y, yp: -y
    exact = math.sin
    x0, x_end, y0, yp0, h = 0.0, 4 * np.pi, 0.0, 1.0, 0.05

    print_section("EQUAÇÃO DIFERENCIAL: y'' + y = 0 (RK4)")
    result = integrate_second_order_ode(accel, x0, y0, yp0, x_end, h, invariant=harmonic_energy,
                                        exact_solution=exact)
    print_table(integration_to_dataframe(result, ['x', 'y', "y'"], every=20), "%.5f")

    export_samples(os.path.join(output_folder, 'ypp_solucao.dat'), ['x', 'y'],
                   zip(result.xs, result.states[:, 0]))
    export_samples(os.path.join(output_folder, 'ypp_derivada.dat'), ['x', "y'"],
                   zip(result.xs, result.states[:, 1]))
    export_samples(os.path.join(output_folder, 'ypp_fase.dat'), ['y', "y'"], result.states)
    plot_and_save_timeseries_and_phase(result.xs, result.states, output_folder, labels=('y(x)', "y'(x)"),
                                       title="y'' + y = 0", filename="ypp_grafico.png")

    energy_variation = relative_variation_percent(result.invariant_values[0], result.invariant_values[-1])
    cycles, _ = complete_cycles(result.xs[-1] - x0)
    stats = error_statistics(result.errors)
    print("\nANÁLISE DE RESULTADOS:")
    print(f"  Passos completados:  {result.steps}")
    print(f"  Erro máximo:         {stats['max']:.6f}")
    print(f"  Energia inicial:     {result.invariant_values[0]:.6f}")
    print(f"  Energia final:       {result.invariant_values[-1]:.6f}")
    print(f"  Variação energia:    {energy_variation:.2e}% ({conservation_grade(energy_variation)})")
    print(f"  Ciclos completos:    {cycles}")
    print_diagnostics(result.diagnostics)
    return result


def run_linear_system(output_folder):
    # --- Parâmetros ---
    func = lambda t, state: np.array([state[1], -state[0]])
    exact = lambda t: np.array([np.cos(t), -np.sin(t)])
    t0, t_end, h = 0.0, 10.0, 0.05
    initial_state = np.array([1.0, 0.0])

    print_section("SISTEMA DE EQUAÇÕES: dx/dt = y, dy/dt = -x")
    result = integrate_system(func, t0, initial_state, t_end, h, invariant=harmonic_energy,
                              exact_solution=exact)
    print_table(integration_to_dataframe(result, ['t', 'x(t)', 'y(t)'], every=40), "%.5f")

    export_samples(os.path.join(output_folder, 'sistema_fase.dat'), ['x', 'y'], result.states)
    export_samples(os.path.join(output_folder, 'sistema_x.dat'), ['t', 'x'], zip(result.xs, result.states[:, 0]))
    export_samples(os.path.join(output_folder, 'sistema_y.dat'), ['t', 'y'], zip(result.xs, result.states[:, 1]))
    plot_and_save_timeseries_and_phase(result.xs, result.states, output_folder,
                                       title="dx/dt = y, dy/dt = -x", filename="sistema_fase.png")

    energy_variation = relative_variation_percent(result.invariant_values[0], result.invariant_values[-1])
    final_error = float(np.max(result.errors[-1]))
    print("\nANÁLISE DE RESULTADOS:")
    print(f"  Iterações:           {result.steps}")
    print(f"  Energia inicial:     {result.invariant_values[0]:.8f}")
    print(f"  Energia final:       {result.invariant_values[-1]:.8f}")
    print(f"  Variação energia:    {energy_variation:.4f}% "
          f"({conservation_grade(energy_variation, (0.01, 0.1, 1.0))})")
    print(f"  Erro final:          {final_error:.2e} ({precision_grade(final_error)})")
    print_diagnostics(result.diagnostics)
    return result


def main():
    output_plot_folder = "output_plots"
    runs = [
        ('newton', run_newton_scalar),
        ('newton_sistemas', run_newton_system),
        ('fourier', run_fourier),
        ('derivadas', run_derivatives),
        ('ecuacion1', run_scalar_ode),
        ('ecuacion2', run_second_order_ode),
        ('sistema_edos', run_linear_system),
    ]

    print("Iniciando cálculos e geração de gráficos...")
    failures = 0
    for folder_name, run in runs:
        folder = os.path.join(output_plot_folder, folder_name)
        if not os.path.exists(folder):
            os.makedirs(folder)
        try:
            run(folder)
        except NumericFault as exc:
            failures += 1
            print(f"\nERRO: execução interrompida por falha numérica: {exc}")

    print(f"\n--- Processo concluído ({len(runs) - failures}/{len(runs)} execuções sem falha numérica). ---")
    return failures


if __name__ == "__main__":
    sys.exit(1 if main() else 0)
