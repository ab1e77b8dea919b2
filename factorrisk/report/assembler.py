"""
Decomposition assembly

Stacks RiskDecomposition results into the report matrix:

- FMCR: marginal contributions, K+1 columns
- FCR:  ``RM`` column (the risk value) + K+1 component contributions
- FPCR: ``Total`` column (row sum, 100) + K+1 percent contributions

Single-measure reports have a ``Portfolio`` row followed by one row per
asset in model order; portfolio-only reports have one row per risk measure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import pandas as pd

from ..constants import (
    CANONICAL_RISK_ORDER,
    PORTFOLIO_ROW,
    RM_COLUMN,
    TOTAL_COLUMN,
    Decomposition,
    Method,
    RiskMeasure,
)
from ..risk.decomposer import RiskDecomposer, RiskDecomposition, WeightsLike

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssembledReport:
    """Unrounded, untruncated report matrix plus the labels needed to present it."""

    matrix: pd.DataFrame
    decomp: Decomposition
    risks: Tuple[RiskMeasure, ...]
    portfolio_only: bool

    @property
    def aggregate_column(self) -> Optional[str]:
        """Leading column holding the row total, if the mode has one."""
        if self.decomp == Decomposition.FCR:
            return RM_COLUMN
        if self.decomp == Decomposition.FPCR:
            return TOTAL_COLUMN
        return None

    @property
    def allocation(self) -> pd.DataFrame:
        """The K+1 factor / residual columns only."""
        column = self.aggregate_column
        return self.matrix.drop(columns=[column]) if column else self.matrix


def _layout_columns(decomp: Decomposition, parts: Sequence[RiskDecomposition]) -> pd.DataFrame:
    """Stack ``parts`` row-wise and apply the mode-specific column layout."""
    if decomp == Decomposition.FMCR:
        return pd.concat([d.marginal for d in parts], axis=0)

    if decomp == Decomposition.FCR:
        body = pd.concat([d.component for d in parts], axis=0)
        rm = pd.concat([d.total for d in parts], axis=0)
        body.insert(0, RM_COLUMN, rm.to_numpy())
        return body

    body = pd.concat([d.percent for d in parts], axis=0)
    body.insert(0, TOTAL_COLUMN, body.sum(axis=1).to_numpy())
    return body


class DecompositionAssembler:
    """Queries a RiskDecomposer and lays the figures out as one matrix."""

    def __init__(self, decomposer: RiskDecomposer):
        self.decomposer = decomposer

    def assemble_single(
        self,
        risk: RiskMeasure,
        decomp: Decomposition,
        weights: Optional[WeightsLike] = None,
        p: float = 0.05,
        method: Method = Method.NP,
        invert: bool = False,
    ) -> AssembledReport:
        """Portfolio row (weighted) above standalone per-asset rows."""
        port = self.decomposer.decompose(risk, weights=weights, p=p, method=method, invert=invert,
                                         portfolio=True)
        asset = self.decomposer.decompose(risk, p=p, method=method, invert=invert, portfolio=False)

        matrix = _layout_columns(decomp, [port, asset])
        labels = list(matrix.index)
        labels[0] = PORTFOLIO_ROW
        matrix.index = labels

        logger.debug(f"Assembled {risk.value} {decomp.value}: {matrix.shape[0]} rows x {matrix.shape[1]} columns")
        return AssembledReport(matrix=matrix, decomp=decomp, risks=(risk,), portfolio_only=False)

    def assemble_portfolio_only(
        self,
        risks: Sequence[RiskMeasure],
        decomp: Decomposition,
        weights: Optional[WeightsLike] = None,
        p: float = 0.05,
        method: Method = Method.NP,
        invert: bool = False,
    ) -> AssembledReport:
        """One portfolio row per requested measure, in Sd, VaR, ES order."""
        ordered = tuple(r for r in CANONICAL_RISK_ORDER if r in set(risks))
        parts = []
        for risk in ordered:
            port = self.decomposer.decompose(risk, weights=weights, p=p, method=method, invert=invert,
                                             portfolio=True)
            parts.append(port)

        matrix = _layout_columns(decomp, parts)
        matrix.index = [r.value for r in ordered]

        logger.debug(f"Assembled portfolio-only {decomp.value} for {[r.value for r in ordered]}")
        return AssembledReport(matrix=matrix, decomp=decomp, risks=ordered, portfolio_only=True)
