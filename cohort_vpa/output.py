"""Result containers for a cohort reconstruction.

CohortResult carries:
  - table:     the full per-class COHORT_DTYPE record array
  - summary:   3 × n_classes matrix (survivors after removal, natural
               losses, corrected catch) shaped for a stacked bar chart
  - plot_data: the series a chart renderer needs (see cohort_vpa.viz)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np

from cohort_vpa.types import ClassFlag, DataType


SUMMARY_ROWS = ("survivors", "nat_losses", "catch")

X_LABELS = {
    DataType.AGE: "Age [yrs]",
    DataType.LENGTH: "Midlength [cm]",
}


@dataclass(frozen=True)
class SummaryMatrix:
    """Rows = SUMMARY_ROWS, columns = class midpoints."""
    rows: Tuple[str, ...]
    columns: np.ndarray
    values: np.ndarray            # (3, n_classes)

    def row(self, name: str) -> np.ndarray:
        return self.values[self.rows.index(name)]


@dataclass(frozen=True)
class CohortPlotData:
    """Series handed to a chart renderer."""
    midpoints: np.ndarray
    F: np.ndarray
    survivors: np.ndarray
    catch: np.ndarray
    survivors_after: np.ndarray
    natural_loss: np.ndarray
    x_label: str
    title: str


@dataclass
class CohortResult:
    """Results from one cohort reconstruction."""
    method: str
    data_type: DataType
    table: np.ndarray
    summary: SummaryMatrix
    plot_data: CohortPlotData
    last_sampled: int
    messages: List[str] = field(default_factory=list)
    parameters: Dict[str, object] = field(default_factory=dict)

    @property
    def midpoints(self) -> np.ndarray:
        return self.table['midpoint']

    @property
    def flagged(self) -> bool:
        """True if any class carries an anomaly flag."""
        return bool(np.any(self.table['flags'] != ClassFlag.NONE))

    def row(self, midpoint: float) -> np.void:
        """Record for the class with the given midpoint."""
        idx = np.flatnonzero(np.isclose(self.table['midpoint'], midpoint))
        if len(idx) == 0:
            raise KeyError(f"No class with midpoint {midpoint}")
        return self.table[idx[0]]

    def summary_text(self) -> str:
        """Plain-text rendering of the main per-class columns."""
        header = (f"{'class':>8} {'catch':>10} {'survivors':>12} "
                  f"{'F':>8} {'Z':>8} {'yield_t':>10} flags")
        lines = [f"{self.method} (terminal class index {self.last_sampled})",
                 header, "-" * len(header)]
        for rec in self.table:
            flag_text = flag_names(int(rec['flags']))
            lines.append(
                f"{rec['midpoint']:>8g} {rec['corrected_catch']:>10.4g} "
                f"{rec['survivors']:>12.6g} {rec['F']:>8.4f} {rec['Z']:>8.4f} "
                f"{rec['yield_tons']:>10.4g} {flag_text}"
            )
        return "\n".join(lines)


def flag_names(flags: int) -> str:
    """Names of the set ClassFlag bits joined by '|' (empty if none)."""
    return "|".join(f.name for f in ClassFlag if f.value and f.value & flags)


def build_summary(table: np.ndarray) -> SummaryMatrix:
    """Stack survivors after removal, natural losses and corrected catch."""
    values = np.vstack([
        table['survivors_after'],
        table['natural_loss'],
        table['corrected_catch'],
    ])
    return SummaryMatrix(
        rows=SUMMARY_ROWS,
        columns=table['midpoint'].copy(),
        values=values,
    )


def build_plot_data(table: np.ndarray, data_type: DataType, title: str) -> CohortPlotData:
    return CohortPlotData(
        midpoints=table['midpoint'].copy(),
        F=table['F'].copy(),
        survivors=table['survivors'].copy(),
        catch=table['corrected_catch'].copy(),
        survivors_after=table['survivors_after'].copy(),
        natural_loss=table['natural_loss'].copy(),
        x_label=X_LABELS[data_type],
        title=title,
    )


def assemble_result(
    table: np.ndarray,
    method: str,
    data_type: DataType,
    last_sampled: int,
    messages: List[str],
    parameters: Dict[str, object],
) -> CohortResult:
    """Package a reconstructed, metric-complete table for the caller."""
    return CohortResult(
        method=method,
        data_type=data_type,
        table=table,
        summary=build_summary(table),
        plot_data=build_plot_data(table, data_type, method),
        last_sampled=last_sampled,
        messages=list(messages),
        parameters=dict(parameters),
    )
