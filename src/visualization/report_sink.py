# report_sink.py
import os

import pandas as pd


class DatFileSink:
    """
    Destino de amostras em texto delimitado por espaços (arquivos .dat).

    Recebe tuplas ordenadas (x, y, ...) e as grava uma por linha, com um cabeçalho
    '# coluna1 coluna2 ...'. O arquivo é sempre fechado ao sair do bloco `with`,
    inclusive quando a execução é interrompida por uma falha numérica.

        with DatFileSink("saida/rk4_solucao.dat", ["x", "y"]) as sink:
            for x, y in result.samples():
                sink.write(x, y)
    """

    def __init__(self, filepath, columns, float_format='%.6f'):
        self.filepath = filepath
        self.columns = list(columns)
        self.float_format = float_format
        self.rows_written = 0
        self._file = None

    def __enter__(self):
        folder = os.path.dirname(self.filepath)
        if folder and not os.path.exists(folder):
            os.makedirs(folder)
        self._file = open(self.filepath, 'w', encoding='utf-8')
        self._file.write('# ' + ' '.join(self.columns) + '\n')
        return self

    def write(self, *values):
        if len(values) != len(self.columns):
            raise ValueError(f"Esperados {len(self.columns)} valores, recebidos {len(values)}.")
        self._file.write(' '.join(self._format(v) for v in values) + '\n')
        self.rows_written += 1

    def _format(self, value):
        if isinstance(value, int):
            return str(value)
        return self.float_format % value

    def __exit__(self, exc_type, exc, tb):
        self._file.close()
        self._file = None
        return False


def export_samples(filepath, columns, rows, float_format='%.6f'):
    """Grava uma sequência de tuplas em um arquivo .dat e retorna o número de linhas."""
    with DatFileSink(filepath, columns, float_format) as sink:
        for row in rows:
            sink.write(*row)
    return sink.rows_written


def records_to_dataframe(records):
    """
    Converte o histórico de iterações de Newton (ConvergenceRecord) em DataFrame.
    """
    if records and len(records[0].state) == 2:
        rows = [(r.iteration, r.state[0], r.state[1], r.residual[0], r.residual[1],
                 r.jacobian_determinant, r.step_error) for r in records]
        columns = ['iter', 'x', 'y', 'f1', 'f2', 'det_J', 'erro']
    else:
        rows = [(r.iteration, r.state[0], r.residual[0], r.jacobian_determinant, r.step_error)
                for r in records]
        columns = ['iter', 'x', 'f(x)', "f'(x)", 'erro']
    return pd.DataFrame(rows, columns=columns)


def integration_to_dataframe(result, columns, every=1):
    """
    Tabela das amostras de uma integração (x, estado..., exata, erro), uma a cada `every`.
    """
    df = pd.DataFrame(list(result.samples()), columns=columns)
    if result.exact is not None and result.exact.ndim == 1:
        df['exata'] = result.exact
        df['erro'] = (df['exata'] - df[columns[1]]).abs()
    if result.invariant_values is not None:
        df['energia'] = result.invariant_values
    return df.iloc[::every]


def print_section(title):
    print(f"\n{title}")
    print("-" * 61)


def print_table(df, float_format="%.6f"):
    print(df.to_string(index=False, float_format=lambda v: float_format % v))


def print_diagnostics(diagnostics, title="AVISOS"):
    """Mostra os avisos acumulados durante a execução (somente no relatório final)."""
    if not diagnostics.has_warnings():
        print(f"  {title}: nenhum")
        return
    print(f"  {title}: {diagnostics.count()}")
    for line in diagnostics.summary_lines():
        print(f"    {line}")
