# numeric_guard.py
import numpy as np

VALUE_LIMIT = 1e100


class NumericFault(ArithmeticError):
    """
    Falha numérica fatal: um valor intermediário é NaN, infinito ou excede o limite.
    Interrompe a execução corrente; nenhum resultado parcial é confiável.
    """

    def __init__(self, name, value, limit=VALUE_LIMIT, detail=None):
        self.name = name
        self.value = value
        self.limit = limit
        self.detail = detail
        super().__init__(self._describe())

    def _describe(self):
        value = _first_invalid(self.value, self.limit)
        if value is None:
            message = f"{self.name} = valor numérico inválido"
        elif np.isnan(value):
            message = f"{self.name} = NaN (operação matemática inválida)"
        elif np.isinf(value):
            message = f"{self.name} = Infinito (overflow numérico)"
        else:
            message = f"{self.name} = {value:.3e} excede o limite {self.limit:.0e}"
        if self.detail:
            message += f" [{self.detail}]"
        return message


def _first_invalid(value, limit):
    try:
        values = np.atleast_1d(np.asarray(value, dtype=float)).ravel()
    except (TypeError, ValueError):
        return None
    for v in values:
        if not np.isfinite(v) or abs(v) > limit:
            return float(v)
    return None


def is_valid(value, limit=VALUE_LIMIT):
    """
    Retorna False se o valor (escalar ou array) contém NaN, infinito ou |v| > limit.
    """
    arr = np.asarray(value, dtype=float)
    if not np.all(np.isfinite(arr)):
        return False
    return bool(np.all(np.abs(arr) <= limit))


def require_valid(name, value, limit=VALUE_LIMIT):
    """Retorna o valor se for válido; caso contrário levanta NumericFault."""
    if not is_valid(value, limit):
        raise NumericFault(name, value, limit)
    return value


def require_valid_point(context, *coords):
    """
    Valida todas as coordenadas de um ponto de uma vez.
    Ex.: require_valid_point("novo ponto", x, y)
    """
    if not is_valid(coords):
        point = ", ".join(f"{c:.6f}" for c in coords)
        raise NumericFault(context, coords, detail=f"ponto inválido ({point})")
    return coords


def guarded_call(name, func, *args):
    """
    Avalia uma função injetada e valida o resultado.

    Divisão por zero e overflow levantados pela própria função (ex.: math.exp)
    são convertidos em NumericFault, assim como resultados NaN/Inf produzidos
    silenciosamente pelo numpy.
    """
    try:
        with np.errstate(over='ignore', invalid='ignore', divide='ignore'):
            value = func(*args)
    except ZeroDivisionError as exc:
        raise NumericFault(name, float('nan'), detail=str(exc)) from exc
    except OverflowError as exc:
        raise NumericFault(name, float('inf'), detail=str(exc)) from exc
    return require_valid(name, value)
