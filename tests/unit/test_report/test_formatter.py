#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""Tests for report.formatter - truncation, rounding and naming."""

import numpy as np
import pandas as pd

from factorrisk.constants import Decomposition, RiskMeasure
from factorrisk.report.assembler import AssembledReport
from factorrisk.report.dispatcher import ModeDispatcher
from factorrisk.report.formatter import format_table, result_name, truncate
from factorrisk.report.options import ReportOptions


def _report(matrix, decomp=Decomposition.FMCR, risks=(RiskMeasure.SD,), portfolio_only=False):
    return AssembledReport(matrix=matrix, decomp=decomp, risks=risks, portfolio_only=portfolio_only)


class TestResultName:

    def test_single_measure(self):
        report = _report(pd.DataFrame(), Decomposition.FPCR, (RiskMeasure.ES,))
        assert result_name(report, ReportOptions.from_args()) == "ESFPCR"

    def test_portfolio_only(self):
        report = _report(pd.DataFrame(), Decomposition.FCR, (RiskMeasure.VAR,), portfolio_only=True)
        assert result_name(report, ReportOptions.from_args(method="np")) == "Portfolio FCR Non-Parametric"
        assert result_name(report, ReportOptions.from_args(method="normal")) == "Portfolio FCR Parametric Normal"


class TestFormatTable:

    def test_single_entry(self, tsfm_fit):
        opts = ReportOptions.from_args(risk="Sd", decomp="FPCR")
        table = format_table(ModeDispatcher(tsfm_fit, opts).assemble(), opts)
        assert list(table) == ["SdFPCR"]
        assert table["SdFPCR"].shape == (5, 5)

    def test_default_rounding(self):
        matrix = pd.DataFrame({"F1": [1.23456, -0.98765]}, index=["Portfolio", "A1"])
        fpcr = format_table(_report(matrix, Decomposition.FPCR), ReportOptions.from_args(decomp="FPCR"))
        fcr = format_table(_report(matrix, Decomposition.FCR), ReportOptions.from_args(decomp="FCR"))
        assert list(fpcr["SdFPCR"]["F1"]) == [1.2, -1.0]
        assert list(fcr["SdFCR"]["F1"]) == [1.235, -0.988]

    def test_explicit_digits(self):
        matrix = pd.DataFrame({"F1": [1.23456]}, index=["Portfolio"])
        table = format_table(_report(matrix), ReportOptions.from_args(decomp="FMCR", digits=0))
        assert table["SdFMCR"].iloc[0, 0] == 1.0

    def test_truncation_counts_portfolio_row(self, large_tsfm_fit):
        opts = ReportOptions.from_args(risk="Sd", decomp="FCR", n_row_print=10)
        table = format_table(ModeDispatcher(large_tsfm_fit, opts).assemble(), opts)["SdFCR"]
        assert len(table) <= 11
        assert len(table) == 10
        assert table.index[0] == "Portfolio"
        assert list(table.index[1:]) == large_tsfm_fit.asset_names[:9]

    def test_row_limit_above_row_count(self, tsfm_fit):
        opts = ReportOptions.from_args(n_row_print=100)
        table = format_table(ModeDispatcher(tsfm_fit, opts).assemble(), opts)
        assert len(next(iter(table.values()))) == 5

    def test_truncation_before_rounding(self):
        matrix = pd.DataFrame({"F1": np.arange(5) + 0.26}, index=list("abcde"))
        table = format_table(_report(matrix), ReportOptions.from_args(decomp="FMCR", digits=1, n_row_print=2))
        assert list(table["SdFMCR"]["F1"]) == [0.3, 1.3]

    def test_input_untouched(self):
        matrix = pd.DataFrame({"F1": [1.23456]}, index=["Portfolio"])
        format_table(_report(matrix), ReportOptions.from_args(decomp="FMCR"))
        assert matrix.iloc[0, 0] == 1.23456

    def test_truncate(self):
        matrix = pd.DataFrame({"x": range(5)})
        assert len(truncate(matrix, 3)) == 3
