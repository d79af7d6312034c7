"""Backward cohort recurrences: classical VPA, Pope, Jones.

Each method walks a cohort from its terminal (last sampled) class back to
the first class. The terminal class is seeded from the catch and an
assumed terminal F; every earlier record is then a function of its
successor and its own corrected catch only.

  ClassicalVPA              — age data; exact catch equation, F by grid search
  PopeCohortAnalysis        — age data; Pope's mid-year catch approximation
  JonesLengthCohortAnalysis — length data; Pope's form with a VB-derived
                              natural survival factor H per length class

``select_method`` is the only place that maps (data type, analysis type,
catch shape) to a method; unsupported combinations raise
ConfigurationError.

References:
  - Gulland, J.A. 1965. Estimation of mortality rates. ICES C.M. 1965/3.
  - Pope, J.G. 1972. An investigation of the accuracy of virtual population
    analysis using cohort analysis. ICNAF Res. Bull. 9: 65-74.
  - Jones, R. 1984. Assessing the effects of changes in exploitation
    pattern using length composition data. FAO Fish. Tech. Pap. 256.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Sequence

import numpy as np

from cohort_vpa.config import DEFAULT_F_MAX, DEFAULT_SOLVER_STEPS
from cohort_vpa.errors import ConfigurationError
from cohort_vpa.normalize import NormalizedCohort
from cohort_vpa.solver import is_exhausted, solve_fishing_mortality
from cohort_vpa.types import AnalysisType, CatchShape, ClassFlag, DataType


# ═══════════════════════════════════════════════════════════════════════
# TERMINAL SEEDS
# ═══════════════════════════════════════════════════════════════════════

def terminal_survivors_age(catch: float, M: float, terminal_F: float) -> float:
    """N at the terminal age class from the Baranov catch equation."""
    Z = terminal_F + M
    return catch / ((terminal_F / Z) * -math.expm1(-Z))


def terminal_survivors_length(catch: float, M: float, terminal_F: float) -> float:
    """N entering the terminal length class, all of which eventually die."""
    return catch / (terminal_F / (terminal_F + M))


# ═══════════════════════════════════════════════════════════════════════
# METHOD BASE
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CohortMethod:
    """Common backward pass; subclasses supply the terminal seed and step."""

    label: ClassVar[str] = ""
    data_type: ClassVar[DataType] = DataType.AGE

    def validate(self, cohort: NormalizedCohort) -> None:
        """Raise ConfigurationError if this method cannot run on cohort."""

    def terminal_survivors(self, catch: float, M: float, terminal_F: float) -> float:
        raise NotImplementedError

    def step(self, record: np.ndarray, i: int, M: float,
             messages: List[str]) -> None:
        """Fill record[i] from record[i + 1]; append anomalies to messages."""
        raise NotImplementedError

    def finish(self, record: np.ndarray, last: int, M: float,
               terminal_F: float) -> None:
        """Hook run after the backward pass (default: nothing)."""

    def reconstruct(self, record: np.ndarray, last: int, M: float,
                    terminal_F: float) -> List[str]:
        """Run the backward pass over record[0 .. last] in place.

        Writes ``survivors``, ``survivors_after`` and ``F`` (plus any
        method-specific fields). Classes after ``last`` are left NaN.

        Args:
            record: COHORT_DTYPE array with ``corrected_catch`` filled.
            last: Index of the terminal (last sampled) class.
            M: Natural mortality.
            terminal_F: F assumed at the terminal class.

        Returns:
            Messages for anomalies found during the pass.
        """
        messages: List[str] = []
        with np.errstate(divide='ignore', invalid='ignore'):
            record['survivors'][last] = self.terminal_survivors(
                record['corrected_catch'][last], M, terminal_F)
            record['F'][last] = terminal_F
            for i in range(last - 1, -1, -1):
                self.step(record, i, M, messages)
            record['survivors_after'][:last] = record['survivors'][1:last + 1]
            record['survivors_after'][last] = 0.0
            self.finish(record, last, M, terminal_F)
        return messages


# ═══════════════════════════════════════════════════════════════════════
# CLASSICAL VPA
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ClassicalVPA(CohortMethod):
    """Age-based VPA with the exact catch equation.

    F_i solves F/(F+M) · (exp(F+M) − 1) = C_i / N_{i+1}; then
    N_i = N_{i+1} · exp(F_i + M).
    """

    label: ClassVar[str] = "Classical VPA"
    data_type: ClassVar[DataType] = DataType.AGE

    steps: Sequence[float] = field(default_factory=lambda: tuple(DEFAULT_SOLVER_STEPS))
    F_max: float = DEFAULT_F_MAX

    def terminal_survivors(self, catch, M, terminal_F):
        return terminal_survivors_age(catch, M, terminal_F)

    def step(self, record, i, M, messages):
        catch = record['corrected_catch'][i]
        n_next = record['survivors'][i + 1]
        target = catch / n_next
        if np.isnan(target):
            return
        F = solve_fishing_mortality(target, M, self.steps, self.F_max)
        if is_exhausted(F, self.F_max):
            record['flags'][i] |= int(ClassFlag.SOLVER_EXHAUSTED)
            messages.append(
                f"class {record['midpoint'][i]:g}: F search reached "
                f"F_max={self.F_max:g} (catch/next survivors = {target:.4g})"
            )
        record['F'][i] = F
        record['survivors'][i] = n_next * math.exp(F + M)


# ═══════════════════════════════════════════════════════════════════════
# POPE'S COHORT ANALYSIS
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PopeCohortAnalysis(CohortMethod):
    """Age-based cohort analysis, catch taken at mid-year.

    N_i = (N_{i+1} · e^{M/2} + C_i) · e^{M/2};  F_i = ln(N_i / N_{i+1}) − M.
    """

    label: ClassVar[str] = "Pope's Cohort Analysis"
    data_type: ClassVar[DataType] = DataType.AGE

    def terminal_survivors(self, catch, M, terminal_F):
        return terminal_survivors_age(catch, M, terminal_F)

    def step(self, record, i, M, messages):
        half = math.exp(M / 2.0)
        n_next = record['survivors'][i + 1]
        n_i = (n_next * half + record['corrected_catch'][i]) * half
        record['survivors'][i] = n_i
        record['F'][i] = np.log(n_i / n_next) - M


# ═══════════════════════════════════════════════════════════════════════
# JONES' LENGTH-BASED COHORT ANALYSIS
# ═══════════════════════════════════════════════════════════════════════

def relative_age(length, Linf: float, K: float, t0: float = 0.0):
    """Inverse von Bertalanffy: t(L) = t0 − ln(1 − L/Linf) / K.

    NaN for lengths at or beyond Linf.
    """
    length = np.asarray(length, dtype=np.float64)
    with np.errstate(divide='ignore', invalid='ignore'):
        t = t0 - np.log(1.0 - length / Linf) / K
    return np.where(length < Linf, t, np.nan)


def survival_factor(lower_bounds: np.ndarray, Linf: float, K: float,
                    M: float) -> np.ndarray:
    """H_i = ((Linf − L_i) / (Linf − L_{i+1}))^(M / 2K); NaN at the last class."""
    H = np.full(len(lower_bounds), np.nan)
    H[:-1] = ((Linf - lower_bounds[:-1]) / (Linf - lower_bounds[1:])) ** (M / (2.0 * K))
    return H


@dataclass(frozen=True)
class JonesLengthCohortAnalysis(CohortMethod):
    """Length-based cohort analysis with VB growth.

    N_i = (N_{i+1} · H_i + C_i) · H_i, then F/Z_i = C_i / (N_i − N_{i+1})
    and F_i = M · (F/Z) / (1 − F/Z).
    """

    label: ClassVar[str] = "Jones' Length-based Cohort Analysis"
    data_type: ClassVar[DataType] = DataType.LENGTH

    Linf: float = 0.0
    K: float = 0.0
    t0: float = 0.0

    def validate(self, cohort):
        series = cohort.series
        if series.n_classes < 2:
            raise ConfigurationError(
                "Length-based cohort analysis needs at least two classes "
                "to determine the class width"
            )
        lower = series.lower_bounds[cohort.last_sampled]
        if not self.Linf > lower:
            raise ConfigurationError(
                f"Linf ({self.Linf:g}) must exceed the lower bound of the "
                f"last sampled class ({lower:g})"
            )

    def terminal_survivors(self, catch, M, terminal_F):
        return terminal_survivors_length(catch, M, terminal_F)

    def reconstruct(self, record, last, M, terminal_F):
        # Growth transform first: the backward step reads H
        width = record['midpoint'][1] - record['midpoint'][0]
        lower = record['midpoint'] - width / 2.0
        t_lower = relative_age(lower, self.Linf, self.K, self.t0)
        record['lower_bound'] = lower
        record['t_lower'] = t_lower
        record['dt'][:-1] = np.diff(t_lower)
        record['t_mid'] = relative_age(record['midpoint'], self.Linf, self.K, self.t0)
        with np.errstate(divide='ignore', invalid='ignore'):
            record['H'] = survival_factor(lower, self.Linf, self.K, M)
        return super().reconstruct(record, last, M, terminal_F)

    def step(self, record, i, M, messages):
        H = record['H'][i]
        record['survivors'][i] = (
            record['survivors'][i + 1] * H + record['corrected_catch'][i]
        ) * H

    def finish(self, record, last, M, terminal_F):
        N = record['survivors']
        ratio = record['F_over_Z']
        ratio[:last] = record['corrected_catch'][:last] / (N[:last] - N[1:last + 1])
        ratio[last] = terminal_F / (terminal_F + M)
        record['F'][:last + 1] = M * ratio[:last + 1] / (1.0 - ratio[:last + 1])


# ═══════════════════════════════════════════════════════════════════════
# METHOD SELECTION
# ═══════════════════════════════════════════════════════════════════════

def select_method(
    data_type,
    analysis_type,
    shape,
    Linf: Optional[float] = None,
    K: Optional[float] = None,
    t0: float = 0.0,
    steps: Sequence[float] = DEFAULT_SOLVER_STEPS,
    F_max: float = DEFAULT_F_MAX,
) -> CohortMethod:
    """Map (data type, analysis type, catch shape) to a reconstruction method.

    | data   | analysis | catch  | method                     |
    |--------|----------|--------|----------------------------|
    | age    | VPA      | any    | ClassicalVPA               |
    | age    | CA       | any    | PopeCohortAnalysis         |
    | length | CA       | vector | JonesLengthCohortAnalysis  |
    | length | VPA      | any    | ConfigurationError         |
    | length | any      | matrix | ConfigurationError         |

    Raises:
        ConfigurationError: Unknown or unsupported combination, or missing
            growth parameters for the length-based method.
    """
    try:
        data_type = DataType(data_type)
        analysis_type = AnalysisType(analysis_type)
        shape = CatchShape(shape)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    if data_type is DataType.AGE:
        if analysis_type is AnalysisType.VPA:
            return ClassicalVPA(steps=tuple(steps), F_max=F_max)
        return PopeCohortAnalysis()

    if shape is CatchShape.MATRIX:
        raise ConfigurationError(
            "Length-based cohort analysis needs a single cohort: "
            "provide catch as a vector, not a matrix"
        )
    if analysis_type is AnalysisType.VPA:
        raise ConfigurationError(
            "analysis_type 'VPA' is not available for length data; "
            "use analysis_type 'CA'"
        )
    if Linf is None or K is None:
        raise ConfigurationError(
            "Linf and K are required for length-based cohort analysis"
        )
    if not (Linf > 0 and K > 0):
        raise ConfigurationError(
            f"Linf and K must be positive, got Linf={Linf}, K={K}"
        )
    return JonesLengthCohortAnalysis(Linf=Linf, K=K, t0=t0)
