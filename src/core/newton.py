# newton.py
from collections import namedtuple

import numpy as np

from .diagnostics import DIVERGENCE, INACCURATE_ROOT, RunDiagnostics
from .numeric_guard import NumericFault, guarded_call, require_valid, require_valid_point

ITERATING = 'iterating'
CONVERGED = 'converged'
DIVERGED = 'diverged'
DERIVATIVE_ZERO = 'derivative_zero'
SINGULAR_JACOBIAN = 'singular_jacobian'
MAX_ITER_EXCEEDED = 'max_iter_exceeded'

FATAL_STATES = (DERIVATIVE_ZERO, SINGULAR_JACOBIAN)

DEFAULT_TOLERANCE = 1e-6
SCALAR_MAX_ITER = 100
SYSTEM_MAX_ITER = 50
DERIVATIVE_EPSILON = 1e-15

# Os limiares de divergência diferem entre os dois métodos e são mantidos assim.
SCALAR_DIVERGENCE_THRESHOLD = 1e10
SCALAR_DIVERGENCE_WARMUP = 5
SYSTEM_DIVERGENCE_THRESHOLD = 1e5
SYSTEM_DIVERGENCE_WARMUP = 3

SCALAR_RESIDUAL_WARNING = 0.1
SYSTEM_RESIDUAL_WARNING = 0.01

ConvergenceRecord = namedtuple(
    'ConvergenceRecord',
    ['iteration', 'state', 'residual', 'jacobian_determinant', 'step_error'],
)


class NewtonResult:
    """
    Estado final de uma execução do método de Newton.

    Attributes:
        status (str): Estado terminal ('converged', 'diverged', 'derivative_zero',
            'singular_jacobian' ou 'max_iter_exceeded').
        solution (float or tuple): Último ponto aceito.
        iterations (int): Iterações concluídas.
        records (list[ConvergenceRecord]): Histórico, uma entrada por iteração.
        error (float or None): Último erro |x_{k+1} - x_k|.
        residual (tuple or None): Resíduo no ponto final (None nos estados fatais).
        diagnostics (RunDiagnostics): Avisos não fatais.
        initial_state (tuple): Ponto inicial.
    """

    def __init__(self, status, solution, iterations, records, error, residual, diagnostics,
                 initial_state):
        self.status = status
        self.solution = solution
        self.iterations = iterations
        self.records = records
        self.error = error
        self.residual = residual
        self.diagnostics = diagnostics
        self.initial_state = initial_state

    @property
    def converged(self):
        return self.status == CONVERGED

    @property
    def is_fatal(self):
        return self.status in FATAL_STATES

    @property
    def trajectory(self):
        """Pontos visitados, do inicial ao último aceito."""
        points = [record.state for record in self.records]
        final = self.solution if isinstance(self.solution, tuple) else (self.solution,)
        if not points or points[-1] != final:
            points.append(final)
        return points


def _validate_settings(tolerance, max_iter):
    if tolerance <= 0:
        raise ValueError(f"A tolerância deve ser positiva: {tolerance:e}")
    if max_iter <= 0:
        raise ValueError(f"max_iter deve ser positivo: {max_iter}")


def _final_residual(name, diagnostics, func, *args):
    """
    Resíduo no ponto final de um estado terminal não fatal. Um valor fora do
    limite (ou NaN/Inf) vira aviso em vez de NumericFault: o ponto já foi aceito.
    """
    try:
        return guarded_call(name, func, *args)
    except NumericFault as exc:
        diagnostics.warn(INACCURATE_ROOT, f"Resíduo no ponto final não é representável: {exc}")
        return exc.value


def newton_scalar(func, derivative, x0, tolerance=DEFAULT_TOLERANCE, max_iter=SCALAR_MAX_ITER,
                  diagnostics=None):
    """
    Método de Newton-Raphson para f(x) = 0 com validações.

    Máquina de estados: 'iterating' até um dos estados terminais
    'converged', 'diverged', 'derivative_zero' (fatal) ou 'max_iter_exceeded'.

    Args:
        func (callable): f(x).
        derivative (callable): Derivada analítica f'(x).
        x0 (float): Aproximação inicial.
        tolerance (float, optional): Tolerância em |x_{k+1} - x_k|.
        max_iter (int, optional): Número máximo de iterações.
        diagnostics (RunDiagnostics, optional): Acumulador de avisos.

    Returns:
        NewtonResult
    """
    _validate_settings(tolerance, max_iter)
    require_valid('x0', x0)
    if diagnostics is None:
        diagnostics = RunDiagnostics()

    x = float(x0)
    iteration = 0
    error = None
    records = []
    status = ITERATING

    while status == ITERATING:
        fx = guarded_call('f(x)', func, x)
        dfx = guarded_call("f'(x)", derivative, x)

        if abs(dfx) < DERIVATIVE_EPSILON:
            status = DERIVATIVE_ZERO
            break

        x_next = require_valid('x_novo', x - fx / dfx)
        error = require_valid('erro', abs(x_next - x))
        records.append(ConvergenceRecord(iteration, (x,), (fx,), dfx, error))

        if error > SCALAR_DIVERGENCE_THRESHOLD and iteration > SCALAR_DIVERGENCE_WARMUP:
            diagnostics.warn(DIVERGENCE, f"Possível divergência: erro crescente {error:.2e}")
            status = DIVERGED
            break

        x = x_next
        iteration += 1

        if error < tolerance:
            status = CONVERGED
        elif iteration >= max_iter:
            status = MAX_ITER_EXCEEDED

    residual = None
    if status not in FATAL_STATES:
        fx_final = float(_final_residual('f(raiz)', diagnostics, func, x))
        residual = (fx_final,)
        if abs(fx_final) > SCALAR_RESIDUAL_WARNING:
            diagnostics.warn(INACCURATE_ROOT,
                             f"Valor da função na raiz é alto: {fx_final:.2e}; a raiz pode não ser precisa")

    return NewtonResult(status, x, iteration, records, error, residual, diagnostics, (float(x0),))


def _jacobian(jacobian, x, y):
    matrix = np.asarray(jacobian(x, y), dtype=float)
    if matrix.shape != (2, 2):
        raise ValueError(f"O jacobiano deve ser 2x2, recebido {matrix.shape}.")
    names = (('df1_dx', 'df1_dy'), ('df2_dx', 'df2_dy'))
    for i in range(2):
        for j in range(2):
            require_valid(names[i][j], matrix[i, j])
    return matrix


def newton_system(residual, jacobian, x0, y0, tolerance=DEFAULT_TOLERANCE, max_iter=SYSTEM_MAX_ITER,
                  diagnostics=None):
    """
    Método de Newton para sistemas 2x2 com inversão explícita do jacobiano.

    det   = df1_dx*df2_dy - df1_dy*df2_dx
    dx    = (-f1*df2_dy + f2*df1_dy) / det
    dy    = (-df1_dx*f2 + f1*df2_dx) / det
    erro  = sqrt(dx² + dy²)

    Args:
        residual (callable): F(x, y) -> (f1, f2).
        jacobian (callable): J(x, y) -> [[df1/dx, df1/dy], [df2/dx, df2/dy]].
        x0, y0 (float): Ponto inicial.
        tolerance (float, optional): Tolerância no tamanho do passo.
        max_iter (int, optional): Número máximo de iterações.
        diagnostics (RunDiagnostics, optional): Acumulador de avisos.

    Returns:
        NewtonResult: `solution` é a tupla (x, y).
    """
    _validate_settings(tolerance, max_iter)
    require_valid_point('ponto inicial', x0, y0)
    if diagnostics is None:
        diagnostics = RunDiagnostics()

    x, y = float(x0), float(y0)
    iteration = 0
    error = None
    records = []
    status = ITERATING

    while status == ITERATING:
        f1, f2 = guarded_call('F(x, y)', residual, x, y)
        J = _jacobian(jacobian, x, y)
        df1_dx, df1_dy = J[0]
        df2_dx, df2_dy = J[1]

        det = require_valid('det', df1_dx * df2_dy - df1_dy * df2_dx)
        if abs(det) < DERIVATIVE_EPSILON:
            status = SINGULAR_JACOBIAN
            break

        dx = require_valid('dx', (-f1 * df2_dy + f2 * df1_dy) / det)
        dy = require_valid('dy', (-df1_dx * f2 + f1 * df2_dx) / det)
        error = require_valid('erro', float(np.sqrt(dx * dx + dy * dy)))

        records.append(ConvergenceRecord(iteration, (x, y), (float(f1), float(f2)), float(det), error))

        x_new, y_new = require_valid_point('novo ponto', x + dx, y + dy)
        x, y = float(x_new), float(y_new)
        iteration += 1

        if error > SYSTEM_DIVERGENCE_THRESHOLD and iteration > SYSTEM_DIVERGENCE_WARMUP:
            diagnostics.warn(DIVERGENCE, f"Possível divergência: erro crescente {error:.2e}")
            status = DIVERGED
        elif error < tolerance:
            status = CONVERGED
        elif iteration >= max_iter:
            status = MAX_ITER_EXCEEDED

    final_residual = None
    if status not in FATAL_STATES:
        f1, f2 = np.broadcast_to(np.asarray(_final_residual('F(solucao)', diagnostics, residual, x, y),
                                            dtype=float), (2,))
        final_residual = (float(f1), float(f2))
        if abs(f1) > SYSTEM_RESIDUAL_WARNING or abs(f2) > SYSTEM_RESIDUAL_WARNING:
            diagnostics.warn(INACCURATE_ROOT,
                             f"A solução não satisfaz bem as equações: f1 = {abs(f1):.2e}, f2 = {abs(f2):.2e}")

    return NewtonResult(status, (x, y), iteration, records, error, final_residual, diagnostics,
                        (float(x0), float(y0)))
