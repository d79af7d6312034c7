"""Cohort reconstruction entry points.

One run reconstructs one cohort:
  1. Validate parameters (fail fast, ConfigurationError)
  2. Normalize classes and catch (normalize.py)
  3. Select the method for (data type, analysis type, catch shape)
  4. Backward pass from the terminal class (recurrence.py)
  5. Derived metrics (metrics.py)
  6. Domain checks (diagnostics.py)
  7. Assemble table, summary matrix and plot data (output.py)

Numerical anomalies in steps 4 and 6 are issued as SolverExhaustion /
DomainWarning warnings and recorded per class; they never abort the run.
Nothing is shared between runs.

Example:
    >>> result = run_cohort_analysis(
    ...     classes=[1, 2, 3, 4, "5+"], catch=[100, 80, 60, 40, 20],
    ...     data_type="age", analysis_type="CA",
    ...     M=0.2, terminal_F=0.3, a=0.01, b=3.0)
    >>> result.table['F']
"""

from __future__ import annotations

import warnings
from typing import Optional, Sequence

from cohort_vpa.config import (
    DEFAULT_F_MAX,
    DEFAULT_SOLVER_STEPS,
    AnalysisSection,
    CohortConfig,
    GrowthSection,
    LengthWeightSection,
    MortalitySection,
    OutputSection,
    SolverSection,
    validate_config,
)
from cohort_vpa.diagnostics import check_cohort
from cohort_vpa.errors import DomainWarning, SolverExhaustion
from cohort_vpa.metrics import compute_derived
from cohort_vpa.normalize import normalize_input
from cohort_vpa.output import CohortResult, assemble_result
from cohort_vpa.recurrence import select_method
from cohort_vpa.types import DataType, allocate_cohort


def run_cohort_analysis(
    classes: Sequence,
    catch,
    data_type: str,
    analysis_type: str,
    M: float,
    terminal_F: float,
    a: float,
    b: float,
    catch_correction_factor: Optional[float] = None,
    Linf: Optional[float] = None,
    K: Optional[float] = None,
    t0: float = 0.0,
    solver_steps: Optional[Sequence[float]] = None,
    F_max: float = DEFAULT_F_MAX,
    tons_divisor: float = 1000.0,
) -> CohortResult:
    """Reconstruct one cohort by VPA or cohort analysis.

    Args:
        classes: Ages or length midpoints; the last may end in '+'.
        catch: Cohort catch vector, or class × period catch matrix (the
            cohort is read along its main diagonal).
        data_type: 'age' or 'length'.
        analysis_type: 'VPA' (age only) or 'CA'.
        M: Natural mortality (yr⁻¹).
        terminal_F: Fishing mortality assumed at the last sampled class.
        a, b: Length–weight coefficients, W = a · L^b.
        catch_correction_factor: Optional multiplier for the catch.
        Linf, K, t0: Von Bertalanffy parameters (length data only).
        solver_steps: Grid-search step sizes for classical VPA.
        F_max: Upper bound for the classical-VPA F search.
        tons_divisor: Mass-unit conversion for biomass and yield.

    Returns:
        CohortResult with the per-class table, summary matrix and plot data.

    Raises:
        ConfigurationError: Invalid parameters, mismatched lengths, or an
            unsupported (data type, analysis type, catch shape) combination.
    """
    config = CohortConfig(
        analysis=AnalysisSection(data_type=data_type, analysis_type=analysis_type),
        mortality=MortalitySection(
            M=M, terminal_F=terminal_F,
            catch_correction_factor=catch_correction_factor,
        ),
        length_weight=LengthWeightSection(a=a, b=b),
        growth=GrowthSection(Linf=Linf, K=K, t0=t0),
        solver=SolverSection(
            steps=list(solver_steps if solver_steps is not None
                       else DEFAULT_SOLVER_STEPS),
            F_max=F_max,
        ),
        output=OutputSection(tons_divisor=tons_divisor),
    )
    return _reconstruct(config, classes, catch, stacklevel=3)


def run_from_config(config: CohortConfig, classes: Sequence, catch) -> CohortResult:
    """Reconstruct one cohort with parameters taken from a CohortConfig."""
    return _reconstruct(config, classes, catch, stacklevel=3)


def _reconstruct(config: CohortConfig, classes: Sequence, catch,
                 stacklevel: int) -> CohortResult:
    # stacklevel points warnings at the caller of the public entry point
    validate_config(config)
    mort = config.mortality

    cohort = normalize_input(classes, catch, mort.catch_correction_factor)
    method = select_method(
        config.analysis.data_type,
        config.analysis.analysis_type,
        cohort.shape,
        Linf=config.growth.Linf,
        K=config.growth.K,
        t0=config.growth.t0,
        steps=config.solver.steps,
        F_max=config.solver.F_max,
    )
    method.validate(cohort)

    record = allocate_cohort(cohort.n_classes)
    record['midpoint'] = cohort.series.midpoints
    record['plus_group'] = cohort.series.plus_group_mask
    record['catch'] = cohort.catch
    record['corrected_catch'] = cohort.corrected_catch
    last = cohort.last_sampled

    solver_messages = method.reconstruct(record, last, mort.M, mort.terminal_F)
    for msg in solver_messages:
        warnings.warn(msg, SolverExhaustion, stacklevel=stacklevel)

    compute_derived(
        record, last, mort.M,
        config.length_weight.a, config.length_weight.b,
        config.output.tons_divisor,
    )

    domain_messages = check_cohort(record, last)
    for msg in domain_messages:
        warnings.warn(msg, DomainWarning, stacklevel=stacklevel)

    return assemble_result(
        record,
        method=method.label,
        data_type=DataType(config.analysis.data_type),
        last_sampled=last,
        messages=solver_messages + domain_messages,
        parameters={
            'M': mort.M,
            'terminal_F': mort.terminal_F,
            'catch_correction_factor': mort.catch_correction_factor,
            'a': config.length_weight.a,
            'b': config.length_weight.b,
            'Linf': config.growth.Linf,
            'K': config.growth.K,
            't0': config.growth.t0,
        },
    )
