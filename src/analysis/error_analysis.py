# error_analysis.py
import numpy as np

PRECISION_THRESHOLDS = (0.001, 0.01, 0.1)
ENERGY_THRESHOLDS_PERCENT = (0.1, 1.0, 5.0)
GRADES = ('excelente', 'boa', 'aceitável', 'pobre')


def error_statistics(errors):
    """
    Estatísticas do erro absoluto ao longo de uma integração.

    Returns:
        dict: {'max': ..., 'mean': ..., 'final': ...}, ou None se não houver erros.
    """
    if errors is None or len(errors) == 0:
        return None
    errors = np.asarray(errors, dtype=float)
    return {
        'max': float(np.max(errors)),
        'mean': float(np.mean(errors)),
        'final': float(errors[-1]),
    }


def grade(value, thresholds):
    """Classifica `value` em excelente/boa/aceitável/pobre segundo limiares crescentes."""
    for label, threshold in zip(GRADES, thresholds):
        if value < threshold:
            return label
    return GRADES[-1]


def precision_grade(max_error):
    return grade(max_error, PRECISION_THRESHOLDS)


def conservation_grade(variation_percent, thresholds=ENERGY_THRESHOLDS_PERCENT):
    return grade(variation_percent, thresholds)


def relative_variation_percent(initial, final):
    """Variação relativa |final - inicial| / |inicial| em porcentagem."""
    if initial == 0:
        return float('inf') if final != 0 else 0.0
    return 100.0 * abs(final - initial) / abs(initial)


def relative_error_percent(numeric, analytic):
    """Erro absoluto e relativo (%) de um valor numérico contra o analítico."""
    error_abs = abs(numeric - analytic)
    if analytic == 0:
        return error_abs, float('inf') if error_abs > 0 else 0.0
    return error_abs, 100.0 * error_abs / abs(analytic)


def mean_squared_error(reference, approximation):
    reference = np.asarray(reference, dtype=float)
    approximation = np.asarray(approximation, dtype=float)
    return float(np.mean((reference - approximation) ** 2))


def rms_error(reference, approximation):
    return float(np.sqrt(mean_squared_error(reference, approximation)))


def max_abs_error(reference, approximation):
    return float(np.max(np.abs(np.asarray(reference, dtype=float) - np.asarray(approximation, dtype=float))))


def complete_cycles(span, period=2 * np.pi):
    """Número de períodos completos em um intervalo e a fase restante."""
    return int(span // period), float(np.fmod(span, period))
