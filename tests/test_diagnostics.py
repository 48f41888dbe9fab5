from core.diagnostics import DIVERGENCE, ENERGY_DRIFT, RunDiagnostics


def test_counts_per_kind():
    diagnostics = RunDiagnostics()
    assert not diagnostics.has_warnings()
    diagnostics.warn(ENERGY_DRIFT, "a")
    diagnostics.warn(ENERGY_DRIFT, "b")
    diagnostics.warn(DIVERGENCE, "c")
    assert diagnostics.has_warnings()
    assert diagnostics.count() == 3
    assert diagnostics.count(ENERGY_DRIFT) == 2
    assert diagnostics.count('desconhecido') == 0


def test_summary_lines_truncates_messages():
    diagnostics = RunDiagnostics()
    for i in range(15):
        diagnostics.warn(ENERGY_DRIFT, f"passo {i}")
    lines = diagnostics.summary_lines(max_messages=10)
    assert lines[0] == f"{ENERGY_DRIFT}: 15"
    assert lines[-1].endswith("mais 5 aviso(s)")
    assert len(lines) == 1 + 10 + 1
