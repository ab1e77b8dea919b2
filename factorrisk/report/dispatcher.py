"""Routes a validated ReportOptions to the matching assembly path."""

from __future__ import annotations

import logging
from typing import Optional

from ..models.base import FactorModelFit
from ..risk.decomposer import RiskDecomposer, WeightsLike
from .assembler import AssembledReport, DecompositionAssembler
from .options import ReportOptions, validate_model

logger = logging.getLogger(__name__)


class ModeDispatcher:
    """
    Single-measure / portfolio-only routing.

    - ``portfolio_only=False``: first requested measure, Portfolio + asset rows
    - ``portfolio_only=True``: every requested measure, Portfolio figures only
    """

    def __init__(self, model: FactorModelFit, options: ReportOptions):
        self.model = validate_model(model)
        self.options = options
        self.assembler = DecompositionAssembler(RiskDecomposer(model, use=options.use))

    def assemble(self, weights: Optional[WeightsLike] = None) -> AssembledReport:
        opts = self.options
        if opts.portfolio_only:
            logger.debug(f"Portfolio-only path for {[r.value for r in opts.risks]}")
            return self.assembler.assemble_portfolio_only(
                opts.risks, opts.decomp, weights=weights, p=opts.p, method=opts.method, invert=opts.invert
            )

        logger.debug(f"Single-measure path for {opts.risk.value} on {self.model.model_type}")
        return self.assembler.assemble_single(
            opts.risk, opts.decomp, weights=weights, p=opts.p, method=opts.method, invert=opts.invert
        )
