#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
factorrisk command line entry

Fits a factor model from CSV files and prints the risk decomposition report.
"""

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

import pandas as pd

from factorrisk.cli.exitcodes import FAILURE, INTERRUPTED, INVALID_ARGS, SUCCESS
from factorrisk.config_manager import get_config_manager
from factorrisk.constants import (
    CANONICAL_RISK_ORDER,
    COVARIANCE_USE_MODES,
    Decomposition,
    Method,
    SliceBy,
)
from factorrisk.exceptions import FactorRiskError, InvalidArgument
from factorrisk.logging_utils import setup_logging
from factorrisk.models import FactorModelFit, fit_ffm, fit_tsfm
from factorrisk.report import rep_risk

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="factorrisk",
        description="Factor risk decomposition reports (Sd / VaR / ES)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # time-series model, ES percent contributions, top 10 rows
  factorrisk report --asset-returns assets.csv --factor-returns factors.csv \\
      --risk ES --decomp FPCR --nrow-print 10

  # fundamental model, portfolio only, VaR and ES
  factorrisk report --panel stocks.csv --exposure-vars SECTOR ROE BP \\
      --date-var DATE --ret-var RETURN --asset-var TICKER \\
      --weights weights.csv --risk VaR --risk ES --portfolio-only
        """,
    )

    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="log level (default: WARNING)",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="output format (default: text)",
    )
    parser.add_argument("--config", help="explicit config file path")

    subparsers = parser.add_subparsers(dest="command", help="available commands")
    report = subparsers.add_parser("report", help="fit a factor model and report its risk decomposition")

    tsfm = report.add_argument_group("time-series model")
    tsfm.add_argument("--asset-returns", help="CSV of asset returns, dates in the first column")
    tsfm.add_argument("--factor-returns", help="CSV of factor returns, dates in the first column")
    tsfm.add_argument("--rf-column", help="risk-free column inside the factor returns CSV")

    ffm = report.add_argument_group("fundamental model")
    ffm.add_argument("--panel", help="long CSV, one row per (date, asset)")
    ffm.add_argument("--exposure-vars", nargs="+", help="exposure columns")
    ffm.add_argument("--date-var", default="DATE")
    ffm.add_argument("--ret-var", default="RETURN")
    ffm.add_argument("--asset-var", default="TICKER")
    ffm.add_argument("--weight-var", help="regression weight column (WLS)")
    ffm.add_argument("--z-score", action="store_true", help="standardize numeric exposures per date")

    opts = report.add_argument_group("report options")
    opts.add_argument("--weights", help="CSV with asset and weight columns")
    opts.add_argument("--risk", action="append", choices=[r.value for r in CANONICAL_RISK_ORDER],
                      help="risk measure, repeat with --portfolio-only")
    opts.add_argument("--decomp", choices=[d.value for d in Decomposition])
    opts.add_argument("--digits", type=int)
    opts.add_argument("--nrow-print", type=int)
    opts.add_argument("--p", type=float)
    opts.add_argument("--type", dest="method", choices=[m.value for m in Method])
    opts.add_argument("--use", choices=COVARIANCE_USE_MODES)
    opts.add_argument("--sliceby", choices=[s.value for s in SliceBy], default=SliceBy.FACTOR.value)
    opts.add_argument("--invert", action="store_true")
    opts.add_argument("--layout", type=int, nargs="+", metavar="N")
    opts.add_argument("--portfolio-only", action="store_true")
    opts.add_argument("--no-print", action="store_true", help="do not print the table")
    opts.add_argument("--plot", metavar="PATH", help="save the bar chart to PATH")
    report.set_defaults(func=run_report)

    return parser


def _read_returns(path: str) -> pd.DataFrame:
    return pd.read_csv(path, index_col=0, parse_dates=True)


def _read_weights(path: str) -> pd.Series:
    df = pd.read_csv(path)
    if df.shape[1] < 2:
        raise InvalidArgument(f"weights file {path} needs an asset column and a weight column")
    return pd.Series(df.iloc[:, 1].astype(float).to_numpy(), index=df.iloc[:, 0].astype(str))


def load_model(args: argparse.Namespace) -> FactorModelFit:
    """Fit the model described by the CLI arguments."""
    if args.panel:
        if not args.exposure_vars:
            raise InvalidArgument("--exposure-vars is required with --panel")
        data = pd.read_csv(args.panel)
        return fit_ffm(
            data,
            exposure_vars=args.exposure_vars,
            date_var=args.date_var,
            ret_var=args.ret_var,
            asset_var=args.asset_var,
            weight_var=args.weight_var,
            z_score=args.z_score,
        )

    if args.asset_returns and args.factor_returns:
        return fit_tsfm(
            _read_returns(args.asset_returns),
            _read_returns(args.factor_returns),
            rf=args.rf_column,
        )

    raise InvalidArgument("either --panel or both --asset-returns and --factor-returns are required")


def _print_tables(tables: Dict[str, pd.DataFrame], output_format: str) -> None:
    if output_format == "json":
        payload = {name: json.loads(table.to_json(orient="split")) for name, table in tables.items()}
        print(json.dumps(payload, indent=2))
        return
    for name, table in tables.items():
        print(f"${name}")
        print(table.to_string())
        print()


def run_report(args: argparse.Namespace) -> int:
    model = load_model(args)
    weights = _read_weights(args.weights) if args.weights else None

    tables = rep_risk(
        model,
        weights=weights,
        risk=args.risk,
        decomp=args.decomp,
        digits=args.digits,
        invert=args.invert,
        n_row_print=args.nrow_print,
        p=args.p,
        method=args.method,
        use=args.use,
        sliceby=args.sliceby,
        is_print=not args.no_print,
        is_plot=args.plot is not None,
        layout=args.layout,
        portfolio_only=args.portfolio_only,
        plot_path=args.plot,
    )
    if tables:
        _print_tables(tables, args.format)
    return SUCCESS


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI main function.

    Args:
        argv: argument list (for tests), ``sys.argv[1:]`` when None

    Returns:
        Exit code (0 = success)
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return int(e.code) if e.code is not None else SUCCESS

    setup_logging(args.log_level)
    logger.debug(f"Arguments: {args}")

    if not hasattr(args, "func"):
        parser.print_help()
        return INVALID_ARGS

    try:
        if args.config:
            get_config_manager(args.config)
        return int(args.func(args))

    except FactorRiskError as e:
        logger.error(f"{type(e).__name__}: {e.message}")
        print(f"error: {e.message}", file=sys.stderr)
        return e.exit_code

    except RuntimeError as e:
        logger.error(f"Configuration error: {e}")
        print(f"error: {e}", file=sys.stderr)
        return INVALID_ARGS

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return INTERRUPTED

    except Exception as e:
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return FAILURE


def main_sync() -> int:
    """Console-script entry point."""
    return main()


if __name__ == "__main__":
    sys.exit(main())
