"""Cohort reconstruction chart.

Stacked bars per class (survivors after removal, natural losses, catch)
with fishing mortality drawn as a line against a secondary axis. The bar
heights sum to the survivors entering each class.

matplotlib backend is forced to Agg (no display) on import.
"""

from __future__ import annotations

import matplotlib
matplotlib.use('Agg')

from typing import Optional, TYPE_CHECKING

import matplotlib.pyplot as plt
import numpy as np

from cohort_vpa.viz.style import (
    COMPONENT_COLORS,
    DARK_PANEL,
    GRID_COLOR,
    MORTALITY_COLOR,
    TEXT_COLOR,
    dark_figure,
    save_figure,
)

if TYPE_CHECKING:
    from cohort_vpa.output import CohortResult


def plot_cohort_analysis(
    result: 'CohortResult',
    label_every: int = 3,
    save_path: Optional[str] = None,
) -> plt.Figure:
    """Stacked survivors / natural losses / catch with an F line overlay.

    Args:
        result: CohortResult from run_cohort_analysis.
        label_every: Label every n-th class on the x-axis.
        save_path: Optional path to save the figure.

    Returns:
        matplotlib Figure.
    """
    data = result.plot_data
    summary = result.summary
    x = np.arange(len(data.midpoints))

    fig, ax = dark_figure()
    bottom = np.zeros(len(x))
    for name in summary.rows:
        heights = np.nan_to_num(summary.row(name))
        ax.bar(x, heights, bottom=bottom, width=0.8,
               color=COMPONENT_COLORS[name], edgecolor=DARK_PANEL,
               label=name.replace('_', ' '), zorder=2)
        bottom += heights

    top = np.nanmax(data.survivors) if np.any(np.isfinite(data.survivors)) else 1.0
    ax.set_ylim(0, top * (1 + 1 / 14))
    ax.set_xticks(x[::label_every])
    ax.set_xticklabels([f"{m:g}" for m in data.midpoints[::label_every]])
    ax.set_xlabel(data.x_label, fontsize=12)
    ax.set_ylabel('Population', fontsize=12)
    ax.set_title(data.title, fontsize=14, fontweight='bold')

    ax2 = ax.twinx()
    ax2.plot(x, data.F, color=MORTALITY_COLOR, linewidth=3,
             label='Fishing mortality', zorder=3)
    ax2.set_ylabel('Fishing mortality', fontsize=12, color=TEXT_COLOR)
    ax2.tick_params(colors=TEXT_COLOR)
    ax2.set_ylim(bottom=0)

    handles, labels = ax.get_legend_handles_labels()
    h2, l2 = ax2.get_legend_handles_labels()
    ax.legend(handles + h2, labels + l2, loc='upper right',
              facecolor=DARK_PANEL, edgecolor=GRID_COLOR,
              labelcolor=TEXT_COLOR, fontsize=10)

    if save_path:
        save_figure(fig, save_path)
    return fig
