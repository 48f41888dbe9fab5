# diagnostics.py

INSTABILITY = 'instability'
ENERGY_DRIFT = 'energy_drift'
GROWTH = 'growth'
INVALID_STEP = 'invalid_step'
STEP_HALVED = 'step_halved'
DIVERGENCE = 'divergence'
DIVERGENT_SAMPLE = 'divergent_sample'
INACCURATE_ROOT = 'inaccurate_root'
STEP_SIZE = 'step_size'
SMALL_DIFFERENCE = 'small_difference'
LARGE_VALUES = 'large_values'
ASYMMETRY = 'asymmetry'
INVALID_POINT = 'invalid_point'


class RunDiagnostics:
    """
    Acumula os avisos não fatais de uma execução (instabilidade, deriva de energia,
    divergência, amostras descartadas...). Os avisos não alteram o cálculo; são
    apresentados apenas no relatório final.
    """

    def __init__(self):
        self.counters = {}
        self.messages = []

    def warn(self, kind, message):
        self.counters[kind] = self.counters.get(kind, 0) + 1
        self.messages.append((kind, message))

    def count(self, kind=None):
        if kind is None:
            return len(self.messages)
        return self.counters.get(kind, 0)

    def has_warnings(self):
        return bool(self.messages)

    def summary_lines(self, max_messages=10):
        lines = [f"{kind}: {n}" for kind, n in sorted(self.counters.items())]
        for kind, message in self.messages[:max_messages]:
            lines.append(f"  [{kind}] {message}")
        hidden = len(self.messages) - max_messages
        if hidden > 0:
            lines.append(f"  ... mais {hidden} aviso(s)")
        return lines
