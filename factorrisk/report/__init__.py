"""Report assembly, formatting and charting for factor risk decompositions."""

from .options import ReportOptions, validate_model
from .assembler import AssembledReport, DecompositionAssembler
from .dispatcher import ModeDispatcher
from .formatter import format_table, result_name
from .chart import ChartData, auto_layout, prepare_chart_data, render_barchart, plot_decomposition
from .rep_risk import rep_risk

__all__ = [
    "ReportOptions",
    "validate_model",
    "AssembledReport",
    "DecompositionAssembler",
    "ModeDispatcher",
    "format_table",
    "result_name",
    "ChartData",
    "auto_layout",
    "prepare_chart_data",
    "render_barchart",
    "plot_decomposition",
    "rep_risk",
]
