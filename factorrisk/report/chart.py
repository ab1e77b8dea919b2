"""
Bar chart of a decomposition report

``prepare_chart_data`` reshapes the assembled matrix into panels:

- the ``RM`` / ``Total`` column is dropped, only the K+1 allocations are drawn
- rows are truncated to ``n_row_print`` (independently of the printed table)
- ``sliceby="factor"``: one panel per factor, one bar per asset
- ``sliceby="asset"``: the matrix is transposed, one panel per asset
- rows are reversed so the first row is drawn on top

``render_barchart`` draws the panels with matplotlib, one figure per page.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.figure import Figure

from ..constants import MIN_LAYOUT_COLUMNS, SliceBy
from ..exceptions import RenderingFailure
from .assembler import AssembledReport
from .formatter import truncate
from .options import ReportOptions

logger = logging.getLogger(__name__)

PANEL_WIDTH = 3.2
PANEL_HEIGHT_PER_BAR = 0.28
MIN_PANEL_HEIGHT = 2.0
BAR_COLOR = "#2980b9"


@dataclass(frozen=True)
class ChartData:
    """Data handed to the renderer: one column per panel, one row per bar."""

    panels: pd.DataFrame
    layout: Tuple[int, ...]
    title: str


def auto_layout(n_panels: int) -> Tuple[int, int]:
    """Smallest column count >= 3 that does not leave a single panel on the last row."""
    if n_panels <= 1:
        return (1, 1)
    columns = MIN_LAYOUT_COLUMNS
    while n_panels % columns == 1:
        columns += 1
    return (columns, 1)


def chart_title(report: AssembledReport) -> str:
    return f"{report.decomp.value} of {', '.join(r.value for r in report.risks)}"


def prepare_chart_data(report: AssembledReport, options: ReportOptions) -> ChartData:
    data = truncate(report.allocation, options.n_row_print)
    if options.sliceby == SliceBy.ASSET:
        data = data.T

    layout = options.layout or auto_layout(data.shape[1])
    return ChartData(panels=data.iloc[::-1], layout=layout, title=chart_title(report))


def render_barchart(chart: ChartData) -> List[Figure]:
    """
    Draw one horizontal bar panel per column of ``chart.panels``.

    Layout is (columns, rows[, pages]); panels fill each page left to right,
    top to bottom, and spill onto further pages.

    Raises:
        RenderingFailure: matplotlib could not draw the chart
    """
    panels = chart.panels
    n_cols, n_rows = chart.layout[0], chart.layout[1]
    per_page = n_cols * n_rows
    n_pages = max(1, math.ceil(panels.shape[1] / per_page))
    if len(chart.layout) == 3:
        n_pages = min(n_pages, chart.layout[2])

    bar_labels = [str(i) for i in panels.index]
    height = max(MIN_PANEL_HEIGHT, PANEL_HEIGHT_PER_BAR * len(bar_labels))

    figures = []
    try:
        for page in range(n_pages):
            fig, axes = plt.subplots(
                n_rows, n_cols,
                figsize=(PANEL_WIDTH * n_cols, height * n_rows),
                sharex=False, sharey=True, squeeze=False,
            )
            page_columns = panels.columns[page * per_page:(page + 1) * per_page]
            for j, ax in enumerate(axes.flat):
                if j >= len(page_columns):
                    ax.set_visible(False)
                    continue
                column = page_columns[j]
                ax.barh(range(len(bar_labels)), panels[column].to_numpy(dtype=float), color=BAR_COLOR)
                ax.set_yticks(range(len(bar_labels)))
                ax.set_yticklabels(bar_labels, fontsize=8)
                ax.set_title(str(column), fontsize=10)
                ax.axvline(0, color="black", linewidth=0.5)
                ax.grid(True, axis="x", alpha=0.3)

            fig.suptitle(chart.title, fontsize=12, fontweight="bold")
            fig.tight_layout()
            figures.append(fig)
    except Exception as e:
        for fig in figures:
            plt.close(fig)
        raise RenderingFailure(f"Failed to render '{chart.title}': {e}") from e

    logger.debug(f"Rendered '{chart.title}': {panels.shape[1]} panels on {len(figures)} page(s)")
    return figures


def save_figures(figures: List[Figure], path: Union[str, Path]) -> List[Path]:
    """Save ``figures``; multiple pages become ``<stem>_<page><suffix>``."""
    path = Path(path)
    suffix = path.suffix or ".png"
    if len(figures) == 1:
        targets = [path.with_suffix(suffix)]
    else:
        targets = [path.with_name(f"{path.stem}_{i + 1}{suffix}") for i in range(len(figures))]

    try:
        for fig, target in zip(figures, targets):
            fig.savefig(target, bbox_inches="tight")
            logger.info(f"Chart saved to: {target}")
    except Exception as e:
        raise RenderingFailure(f"Failed to save chart to {path}: {e}") from e
    finally:
        for fig in figures:
            plt.close(fig)
    return targets


def plot_decomposition(
    report: AssembledReport,
    options: ReportOptions,
    save_path: Optional[Union[str, Path]] = None,
) -> List[Figure]:
    """Prepare, render and optionally save the chart; figures are closed once saved."""
    figures = render_barchart(prepare_chart_data(report, options))
    if save_path is not None:
        save_figures(figures, save_path)
    return figures
