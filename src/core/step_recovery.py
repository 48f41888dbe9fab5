# step_recovery.py
from collections import namedtuple

from .diagnostics import STEP_HALVED
from .rk4_solver import rk4_scalar_stages

MAX_HALVINGS = 1

RecoveryOutcome = namedtuple('RecoveryOutcome', ['value', 'step', 'evaluations', 'recovered'])


def halve_and_retry(func, x, y, h, step_index, max_halvings=MAX_HALVINGS, diagnostics=None):
    """
    Refaz o intervalo [x, x + h] com passos reduzidos quando o resultado do passo
    completo (y_next) não passa na validação numérica.

    No nível 1 o intervalo é coberto por dois meios-passos h/2 sequenciais; cada
    nível seguinte divide o passo novamente (2**nivel sub-passos). O número de
    níveis é limitado por `max_halvings`, de modo que a recuperação nunca entra em
    laço infinito. Uma NumericFault em um estágio de qualquer sub-passo não é
    recuperável e se propaga ao chamador.

    Returns:
        RecoveryOutcome: (valor, passo usado, avaliações RK4, recuperado?).
            Se nenhum nível funcionar, `value` é None e `recovered` é False.
    """
    evaluations = 0
    sub_h = h
    for level in range(1, max_halvings + 1):
        sub_h = h / 2 ** level
        y_sub = y
        recovered = True
        for j in range(2 ** level):
            result = rk4_scalar_stages(func, x + j * sub_h, y_sub, sub_h, step_index, diagnostics)
            evaluations += 1
            if not result.is_valid:
                recovered = False
                break
            y_sub = result.new_state

        if recovered:
            if diagnostics is not None:
                diagnostics.warn(STEP_HALVED,
                                 f"Passo {step_index}: solucionado com passo reduzido h = {sub_h:.3e}")
            return RecoveryOutcome(y_sub, sub_h, evaluations, True)

    return RecoveryOutcome(None, sub_h, evaluations, False)
