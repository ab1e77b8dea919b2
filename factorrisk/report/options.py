"""
Report options

All option tokens are validated once, here, into closed enums. Everything
downstream of ``ReportOptions`` can assume a legal combination.
"""

from __future__ import annotations

import logging
from collections import abc
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple, Type, Union

from ..config_manager import REPORT_DEFAULTS
from ..constants import (
    CANONICAL_RISK_ORDER,
    COVARIANCE_USE_MODES,
    DEFAULT_DIGITS_OTHER,
    DEFAULT_DIGITS_PERCENT,
    METHOD_LABELS,
    Decomposition,
    Method,
    RiskMeasure,
    SliceBy,
)
from ..exceptions import InvalidArgument
from ..models import SUPPORTED_MODEL_TYPES
from ..models.base import FactorModelFit

logger = logging.getLogger(__name__)

TokenArg = Union[str, Sequence[str], None]


def validate_model(model: Any) -> FactorModelFit:
    """Fail unless ``model`` is a fitted tsfm / ffm object."""
    if not isinstance(model, SUPPORTED_MODEL_TYPES):
        raise InvalidArgument(
            "Invalid argument: Object should be of a supported fitted-model type "
            f"('tsfm' or 'ffm'), got {type(model).__name__}"
        )
    return model


def _tokens(value: TokenArg) -> list:
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, abc.Sequence):
        return [value]
    return list(value)


def _parse_one(value: TokenArg, enum_cls: Type, arg_name: str, legal: str):
    """First token of ``value`` as ``enum_cls``; extra tokens are ignored."""
    tokens = _tokens(value)
    if not tokens:
        raise InvalidArgument(f"Invalid args: {arg_name} must be {legal}")
    try:
        return enum_cls(tokens[0])
    except ValueError:
        raise InvalidArgument(f"Invalid args: {arg_name} must be {legal}, got {tokens[0]!r}") from None


def _parse_risks(value: TokenArg, portfolio_only: bool) -> Tuple[RiskMeasure, ...]:
    tokens = _tokens(value)
    if not tokens:
        raise InvalidArgument("Invalid args: risk must be 'Sd', 'VaR' or 'ES'")
    try:
        requested = [RiskMeasure(t) for t in tokens]
    except ValueError:
        raise InvalidArgument(f"Invalid args: risk must be 'Sd', 'VaR' or 'ES', got {tokens}") from None

    if not portfolio_only:
        if len(requested) > 1:
            logger.debug(f"Single-measure report, using {requested[0].value} and ignoring {tokens[1:]}")
        return (requested[0],)
    return tuple(r for r in CANONICAL_RISK_ORDER if r in requested)


def _int_option(value: Any, arg_name: str, minimum: int) -> int:
    if isinstance(value, bool):
        raise InvalidArgument(f"Invalid args: {arg_name} must be an integer >= {minimum}, got {value!r}")
    try:
        as_int = int(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"Invalid args: {arg_name} must be an integer >= {minimum}, got {value!r}") from None
    if as_int != value or as_int < minimum:
        raise InvalidArgument(f"Invalid args: {arg_name} must be an integer >= {minimum}, got {value!r}")
    return as_int


def _parse_layout(layout: Optional[Sequence[int]]) -> Optional[Tuple[int, ...]]:
    if layout is None:
        return None
    message = f"Invalid args: layout must be 2 or 3 positive integers (columns, rows[, pages]), got {layout}"
    if isinstance(layout, str) or not isinstance(layout, abc.Sequence):
        raise InvalidArgument(message)
    if any(isinstance(v, bool) for v in layout):
        raise InvalidArgument(message)
    try:
        values = tuple(int(v) for v in layout)
    except (TypeError, ValueError):
        raise InvalidArgument(message) from None
    if len(values) not in (2, 3) or any(v < 1 for v in values) or values != tuple(layout):
        raise InvalidArgument(message)
    return values


@dataclass(frozen=True)
class ReportOptions:
    """Validated option set for one report invocation."""

    risks: Tuple[RiskMeasure, ...]
    decomp: Decomposition
    method: Method
    p: float
    use: str
    n_row_print: int
    digits: Optional[int] = None
    sliceby: SliceBy = SliceBy.FACTOR
    invert: bool = False
    layout: Optional[Tuple[int, ...]] = None
    portfolio_only: bool = False
    is_print: bool = True
    is_plot: bool = False

    @property
    def risk(self) -> RiskMeasure:
        """The single honored measure outside portfolio-only mode."""
        return self.risks[0]

    @property
    def rounding_digits(self) -> int:
        if self.digits is not None:
            return self.digits
        if self.decomp == Decomposition.FPCR:
            return DEFAULT_DIGITS_PERCENT
        return DEFAULT_DIGITS_OTHER

    @property
    def method_label(self) -> str:
        return METHOD_LABELS[self.method]

    @classmethod
    def from_args(
        cls,
        risk: TokenArg = None,
        decomp: TokenArg = None,
        method: TokenArg = None,
        p: Optional[float] = None,
        use: Optional[str] = None,
        n_row_print: Optional[int] = None,
        digits: Optional[int] = None,
        sliceby: TokenArg = None,
        invert: bool = False,
        layout: Optional[Sequence[int]] = None,
        portfolio_only: bool = False,
        is_print: bool = True,
        is_plot: bool = False,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> "ReportOptions":
        """Validate raw arguments; ``None`` falls back to ``defaults`` then built-ins.

        Raises:
            InvalidArgument: an option token or value is not supported
        """
        defaults = {**REPORT_DEFAULTS, **(defaults or {})}

        # same precedence as the option list: method, risk, decomp
        method_ = _parse_one(
            method if method is not None else defaults["method"], Method, "type", "'np' or 'normal'"
        )
        risks = _parse_risks(risk if risk is not None else [r.value for r in CANONICAL_RISK_ORDER],
                             portfolio_only)
        decomp_ = _parse_one(
            decomp if decomp is not None else defaults["decomp"], Decomposition, "decomp",
            "'FMCR', 'FCR' or 'FPCR'"
        )
        sliceby_ = _parse_one(sliceby if sliceby is not None else SliceBy.FACTOR.value, SliceBy,
                              "sliceby", "'factor' or 'asset'")

        use_ = use if use is not None else defaults["use"]
        if use_ not in COVARIANCE_USE_MODES:
            raise InvalidArgument(
                f"Invalid args: use must be one of {', '.join(repr(u) for u in COVARIANCE_USE_MODES)}"
            )

        p_raw = p if p is not None else defaults["p"]
        try:
            p_ = float(p_raw)
        except (TypeError, ValueError):
            raise InvalidArgument(f"Invalid args: p must lie in (0, 1), got {p_raw!r}") from None
        if isinstance(p_raw, bool) or not 0 < p_ < 1:
            raise InvalidArgument(f"Invalid args: p must lie in (0, 1), got {p_}")

        n_row_print_ = _int_option(
            n_row_print if n_row_print is not None else defaults["n_row_print"], "nrowPrint", 1
        )

        digits_ = digits if digits is not None else defaults["digits"]
        if digits_ is not None:
            digits_ = _int_option(digits_, "digits", 0)

        if not is_print and not is_plot:
            logger.warning("Both is_print and is_plot are False, the report produces no output")

        return cls(
            risks=risks,
            decomp=decomp_,
            method=method_,
            p=p_,
            use=use_,
            n_row_print=n_row_print_,
            digits=digits_,
            sliceby=sliceby_,
            invert=bool(invert),
            layout=_parse_layout(layout),
            portfolio_only=bool(portfolio_only),
            is_print=bool(is_print),
            is_plot=bool(is_plot),
        )
