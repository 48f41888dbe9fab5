# integrators.py
import numpy as np

from .diagnostics import INVALID_STEP, RunDiagnostics
from .numeric_guard import guarded_call, require_valid
from .rk4_solver import (
    ENERGY_TOLERANCE,
    ENERGY_WARMUP,
    rk4_scalar_stages,
    rk4_system_step,
    second_order_to_system,
)
from .step_recovery import MAX_HALVINGS, halve_and_retry

COMPLETED = 'completed'
RECOVERY_FAILED = 'recovery_failed'
STEP_LIMIT = 'step_limit'

STEP_LIMIT_FACTOR = 10


class IntegrationResult:
    """
    Resultado de uma integração de passo fixo.

    Attributes:
        xs (np.ndarray): Abscissas (ou tempos) das amostras.
        states (np.ndarray): Estados amostrados; 1D para EDOs escalares,
            (n_amostras, n_variaveis) para sistemas.
        status (str): 'completed', 'recovery_failed' ou 'step_limit'.
        steps (int): Passos aceitos.
        rk4_evaluations (int): Passos RK4 avaliados (inclui os meios-passos de recuperação).
        failure_reason (str or None): Motivo do encerramento antecipado.
        diagnostics (RunDiagnostics): Avisos não fatais acumulados.
        exact (np.ndarray or None): Solução analítica nas mesmas abscissas.
        errors (np.ndarray or None): Erro absoluto contra a solução analítica.
        invariant_values (np.ndarray or None): Invariante avaliado em cada amostra.
    """

    def __init__(self, xs, states, status, steps, rk4_evaluations, diagnostics,
                 failure_reason=None, exact=None, errors=None, invariant_values=None):
        self.xs = xs
        self.states = states
        self.status = status
        self.steps = steps
        self.rk4_evaluations = rk4_evaluations
        self.diagnostics = diagnostics
        self.failure_reason = failure_reason
        self.exact = exact
        self.errors = errors
        self.invariant_values = invariant_values

    @property
    def completed(self):
        return self.status == COMPLETED

    @property
    def final_state(self):
        return self.states[-1]

    def max_invariant_deviation(self):
        """Maior desvio relativo do invariante em relação ao valor inicial."""
        if self.invariant_values is None or len(self.invariant_values) == 0:
            return None
        initial = self.invariant_values[0]
        scale = abs(initial) if abs(initial) > 1e-300 else 1.0
        return float(np.max(np.abs(self.invariant_values - initial)) / scale)

    def samples(self):
        """Amostras ordenadas (x, estado...) prontas para o relatório."""
        for x, state in zip(self.xs, self.states):
            yield (x, *np.atleast_1d(state))


def _validate_interval(x0, x_end, h):
    if h <= 0:
        raise ValueError(f"O passo h deve ser positivo (h = {h}).")
    if x_end <= x0:
        raise ValueError(f"O final do intervalo deve ser maior que o início ({x0} >= {x_end}).")
    if x_end - x0 < h / 2:
        raise ValueError(f"O intervalo [{x0}, {x_end}] é menor que meio passo (h = {h}).")


def _count_steps(x0, x_end, h):
    # Amostras em x0 + i*h enquanto x <= x_end + h/2
    return int(np.floor((x_end - x0) / h + 0.5))


def _exact_errors(exact_solution, xs, states):
    exact = np.array([guarded_call('solucao_exata', exact_solution, x) for x in xs], dtype=float)
    return exact, np.abs(states - exact)


def integrate_scalar_ode(func, x0, y0, x_end, h, exact_solution=None, max_halvings=MAX_HALVINGS,
                         step_limit_factor=STEP_LIMIT_FACTOR, diagnostics=None):
    """
    Integra y' = f(x, y) com RK4 de passo fixo e recuperação por redução de passo.

    Quando o resultado de um passo (y_next) falha na validação numérica, o mesmo
    intervalo é refeito com dois meios-passos (veja step_recovery.halve_and_retry).
    Se a recuperação falhar, a execução termina antecipadamente com status
    'recovery_failed'. Uma NumericFault em um estágio (k1..k4 ou ordenada
    intermediária) interrompe a execução e se propaga ao chamador. O total de
    avaliações RK4 é limitado a `step_limit_factor` vezes a estimativa ingênua
    de passos.

    Args:
        func (callable): Lado direito f(x, y).
        x0 (float): Início do intervalo.
        y0 (float): Condição inicial y(x0).
        x_end (float): Fim do intervalo.
        h (float): Passo.
        exact_solution (callable, optional): Solução analítica y(x), para cálculo do erro.
        max_halvings (int, optional): Níveis de redução de passo permitidos.
        step_limit_factor (int, optional): Fator do limite global de passos.
        diagnostics (RunDiagnostics, optional): Acumulador de avisos.

    Returns:
        IntegrationResult
    """
    _validate_interval(x0, x_end, h)
    require_valid('y0', y0)
    if diagnostics is None:
        diagnostics = RunDiagnostics()

    n_steps = _count_steps(x0, x_end, h)
    step_limit = (int((x_end - x0) / h) + 1) * step_limit_factor

    xs = [x0]
    ys = [float(y0)]
    y = float(y0)
    status = COMPLETED
    failure_reason = None
    evaluations = 0
    steps = 0

    for step_index in range(n_steps):
        x = x0 + step_index * h
        result = rk4_scalar_stages(func, x, y, h, step_index, diagnostics)
        evaluations += 1

        if result.is_valid:
            y_next = result.new_state
        else:
            diagnostics.warn(INVALID_STEP,
                             f"Passo {step_index} (x = {x:.6f}): resultado inválido, y = {result.new_state:.3e}")
            outcome = halve_and_retry(func, x, y, h, step_index, max_halvings, diagnostics)
            evaluations += outcome.evaluations
            if not outcome.recovered:
                status = RECOVERY_FAILED
                failure_reason = (f"Não foi possível recuperar o passo {step_index} em x = {x:.6f} "
                                  f"com passo reduzido")
                break
            y_next = outcome.value

        y = y_next
        steps += 1
        xs.append(x0 + steps * h)
        ys.append(y)

        if evaluations > step_limit:
            status = STEP_LIMIT
            failure_reason = f"Demasiados passos ({evaluations}), possível laço infinito"
            break

    xs = np.array(xs)
    ys = np.array(ys)
    exact = errors = None
    if exact_solution is not None:
        exact, errors = _exact_errors(exact_solution, xs, ys)

    return IntegrationResult(xs, ys, status, steps, evaluations, diagnostics,
                             failure_reason=failure_reason, exact=exact, errors=errors)


def integrate_system(func, t0, state0, t_end, h, invariant=None, exact_solution=None,
                     energy_tolerance=ENERGY_TOLERANCE, energy_warmup=ENERGY_WARMUP, diagnostics=None):
    """
    Integra um sistema dy/dt = f(t, y) com RK4 de passo fixo.

    Uma NumericFault em qualquer estágio é fatal e se propaga ao chamador.

    Args:
        func (callable): Função f(t, estado) que retorna as derivadas.
        t0 (float): Tempo inicial.
        state0 (array-like): Vetor de estado inicial.
        t_end (float): Tempo final.
        h (float): Passo.
        invariant (callable, optional): Quantidade conservada I(estado), ex. energia.
        exact_solution (callable, optional): Solução analítica estado(t).
        energy_tolerance (float, optional): Desvio relativo por passo tolerado no invariante.
        energy_warmup (int, optional): Passos iniciais sem verificação de energia.
        diagnostics (RunDiagnostics, optional): Acumulador de avisos.

    Returns:
        IntegrationResult
    """
    _validate_interval(t0, t_end, h)
    state = np.array(state0, dtype=float)
    if state.ndim != 1 or state.size == 0:
        raise ValueError("state0 deve ser um vetor não vazio.")
    require_valid('estado_inicial', state)
    if diagnostics is None:
        diagnostics = RunDiagnostics()

    n_steps = _count_steps(t0, t_end, h)
    t_values = t0 + h * np.arange(n_steps + 1)
    y_values = np.zeros((n_steps + 1, state.size))
    y_values[0] = state

    for i in range(n_steps):
        state = rk4_system_step(func, t_values[i], state, h, i, invariant, diagnostics,
                                energy_tolerance, energy_warmup)
        y_values[i + 1] = state

    invariant_values = None
    if invariant is not None:
        invariant_values = np.array([invariant(s) for s in y_values], dtype=float)

    exact = errors = None
    if exact_solution is not None:
        exact = np.array([np.asarray(exact_solution(t), dtype=float) for t in t_values])
        require_valid('solucao_exata', exact)
        errors = np.abs(y_values - exact)

    return IntegrationResult(t_values, y_values, COMPLETED, n_steps, n_steps, diagnostics,
                             exact=exact, errors=errors, invariant_values=invariant_values)


def integrate_second_order_ode(accel, x0, y0, yp0, x_end, h, invariant=None, exact_solution=None,
                               energy_tolerance=ENERGY_TOLERANCE, energy_warmup=ENERGY_WARMUP,
                               diagnostics=None):
    """
    Integra y'' = g(x, y, y') reduzindo-a ao sistema (y, y').

    `exact_solution`, se fornecida, é y(x) apenas; o erro é calculado sobre y.
    """
    system = second_order_to_system(accel)
    result = integrate_system(system, x0, [y0, yp0], x_end, h, invariant=invariant,
                              energy_tolerance=energy_tolerance, energy_warmup=energy_warmup,
                              diagnostics=diagnostics)
    if exact_solution is not None:
        result.exact, result.errors = _exact_errors(exact_solution, result.xs, result.states[:, 0])
    return result
