# solution_plots.py
import os

import matplotlib.pyplot as plt
import numpy as np


def _save_figure(fig, output_folder, filename, dpi=150):
    if not os.path.exists(output_folder):
        os.makedirs(output_folder)
    filepath = os.path.join(output_folder, filename)
    try:
        fig.savefig(filepath, dpi=dpi)
    finally:
        plt.close(fig)
    return filepath


def plot_and_save_solution(xs, ys, output_folder, exact=None, errors=None, title="Método de Runge-Kutta 4",
                           filename="rk4_grafico.png"):
    """
    Plota a solução numérica (e a exata, se houver) com o erro absoluto em um segundo eixo.
    """
    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(xs, ys, 'o-', color='#0066CC', markersize=3, label='Solução RK4')
    if exact is not None:
        ax.plot(xs, exact, color='#FF3333', linewidth=2, label='Solução exata')
    ax.set_xlabel('x')
    ax.set_ylabel('y(x)')
    ax.set_title(title)
    ax.grid(True)

    if errors is not None:
        ax_err = ax.twinx()
        ax_err.plot(xs, errors, color='#00AA00', linewidth=1, label='Erro')
        ax_err.set_ylabel('Erro absoluto')
        ax_err.legend(loc='upper right')
    ax.legend(loc='upper left')

    filepath = _save_figure(fig, output_folder, filename)
    print(f"Gráfico salvo em: {filepath}")
    return filepath


def plot_and_save_timeseries_and_phase(time_points, states, output_folder, labels=('x(t)', 'y(t)'),
                                       title="Sistema de EDOs", filename="sistema_grafico.png"):
    """
    Plota as séries temporais das duas variáveis de estado e o plano de fase.
    """
    fig, axs = plt.subplots(1, 2, figsize=(14, 6))
    fig.suptitle(title, fontsize=14)

    axs[0].plot(time_points, states[:, 0], label=labels[0])
    axs[0].plot(time_points, states[:, 1], label=labels[1])
    axs[0].set_xlabel('Tempo (t)')
    axs[0].legend()
    axs[0].grid(True)

    axs[1].plot(states[:, 0], states[:, 1], color='#CC0066', lw=1)
    axs[1].set_xlabel(labels[0])
    axs[1].set_ylabel(labels[1])
    axs[1].set_title('Plano de fase')
    axs[1].set_aspect('equal', adjustable='datalim')
    axs[1].grid(True)

    plt.tight_layout(rect=[0, 0, 1, 0.95])
    filepath = _save_figure(fig, output_folder, filename)
    print(f"Séries temporais e plano de fase salvos em: {filepath}")
    return filepath


def plot_and_save_newton_scalar(func, result, output_folder, x_range=(-3.0, 5.0), n_points=81,
                                title="Método de Newton-Raphson", filename="newton_grafico.png"):
    """
    Plota f(x), as iterações de Newton e a raiz encontrada.
    """
    xs = np.linspace(x_range[0], x_range[1], n_points)
    fx = np.array([func(x) for x in xs])
    iter_x = [r.state[0] for r in result.records]
    iter_f = [r.residual[0] for r in result.records]

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(xs, fx, color='blue', linewidth=2, label='f(x)')
    ax.axhline(0, color='black', linewidth=0.8)
    ax.plot(iter_x, iter_f, 'o', color='red', markersize=6, label='Iterações')
    ax.plot([result.solution], [0.0], 'D', color='green', markersize=8, label=f'Raiz: {result.solution:.6f}')
    ax.set_xlabel('x')
    ax.set_ylabel('f(x)')
    ax.set_title(title)
    ax.legend(loc='upper left')
    ax.grid(True)

    filepath = _save_figure(fig, output_folder, filename)
    print(f"Gráfico salvo em: {filepath}")
    return filepath


def plot_and_save_newton_system(curves, result, output_folder, limits=(-3.0, 3.0),
                                title="Sistema não linear", filename="sistema_newton_grafico.png"):
    """
    Plota as curvas f1 = 0 e f2 = 0, a trajetória de Newton e a solução.

    Args:
        curves (list): Lista de (xs, ys, rótulo) para cada curva.
        result (NewtonResult): Resultado de newton_system.
    """
    trajectory = np.array(result.trajectory)
    sol_x, sol_y = result.solution

    fig, ax = plt.subplots(figsize=(9, 7))
    for (cx, cy, label), color in zip(curves, ('#0066CC', '#CC0066')):
        ax.plot(cx, cy, color=color, linewidth=2, label=label)
    ax.plot(trajectory[:, 0], trajectory[:, 1], 'o-', color='#00AA00', markersize=4, label='Trajetória Newton')
    ax.plot([sol_x], [sol_y], 'D', color='black', markersize=8, label=f'Solução: ({sol_x:.4f}, {sol_y:.4f})')
    ax.set_xlim(limits)
    ax.set_ylim(limits)
    ax.set_aspect('equal')
    ax.set_xlabel('x')
    ax.set_ylabel('y')
    ax.set_title(title)
    ax.legend()
    ax.grid(True)

    filepath = _save_figure(fig, output_folder, filename)
    print(f"Gráfico salvo em: {filepath}")
    return filepath


def plot_and_save_fourier(samples, n_terms, output_folder, filename="fourier_grafico.png"):
    """Função original e aproximação de Fourier."""
    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(samples.xs, samples.original, color='#0066CC', linewidth=3, label='Função original')
    ax.plot(samples.xs, samples.series, '--', color='#FF3333', linewidth=2, label='Aproximação Fourier')
    ax.set_xlabel('x')
    ax.set_ylabel('f(x)')
    ax.set_title(f'Série de Fourier (N = {n_terms} termos)')
    ax.legend(loc='upper left')
    ax.grid(True)

    filepath = _save_figure(fig, output_folder, filename)
    print(f"Gráfico salvo em: {filepath}")
    return filepath


def plot_and_save_derivatives(samples, x0, d1_at_x0, output_folder, title="Derivadas numéricas",
                              filename="derivadas_grafico.png"):
    """Primeira e segunda derivadas amostradas, com o ponto de avaliação destacado."""
    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(samples.xs, samples.first, color='#0066CC', linewidth=2, label="Primeira derivada f'(x)")
    ax.plot(samples.xs, samples.second, '--', color='#FF3333', linewidth=2, label="Segunda derivada f''(x)")
    ax.plot([x0], [d1_at_x0], 'o', color='#00AA00', markersize=8, label=f'Ponto (x0, {d1_at_x0:.3f})')
    ax.set_xlabel('x')
    ax.set_ylabel('Valor da derivada')
    ax.set_title(title)
    ax.legend(loc='upper left')
    ax.grid(True)

    filepath = _save_figure(fig, output_folder, filename)
    print(f"Gráfico salvo em: {filepath}")
    return filepath
