"""Truncation, rounding and naming of the printed report."""

from __future__ import annotations

from typing import Dict

import pandas as pd

from .assembler import AssembledReport
from .options import ReportOptions


def result_name(report: AssembledReport, options: ReportOptions) -> str:
    """``"SdFPCR"`` for single-measure reports, ``"Portfolio FPCR Non-Parametric"`` otherwise."""
    if report.portfolio_only:
        return f"Portfolio {report.decomp.value} {options.method_label}"
    return f"{report.risks[0].value}{report.decomp.value}"


def truncate(matrix: pd.DataFrame, n_row_print: int) -> pd.DataFrame:
    """First ``n_row_print`` rows; the Portfolio row counts as row 1."""
    return matrix.head(n_row_print)


def format_table(report: AssembledReport, options: ReportOptions) -> Dict[str, pd.DataFrame]:
    """
    Build the printed result.

    Truncation happens before rounding. The returned dict has exactly one entry.
    """
    table = truncate(report.matrix, options.n_row_print).round(options.rounding_digits)
    return {result_name(report, options): table}
