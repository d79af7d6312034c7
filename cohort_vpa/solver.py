"""Fishing-mortality root finder for classical VPA.

Backward VPA needs, for each class, the F that reproduces the ratio of
catch to next-class survivors under the Baranov catch equation:

    g(F) = F / (F + M) · (exp(F + M) − 1) = C_i / N_{i+1}

g is zero at F = 0 and strictly increasing for F ≥ 0, so the root is
unique. It is found by a forward sweep with shrinking step sizes: walk F
upward in steps of 0.1 until g(F) reaches the target, back off one step,
repeat with 0.01, and so on down to 1e-7.

References:
  - Gulland, J.A. 1965. Estimation of mortality rates. ICES C.M. 1965/3.
  - Sparre, P., Venema, S.C. 1998. Introduction to tropical fish stock
    assessment. FAO Fish. Tech. Pap. 306/1, §5.1.
"""

from __future__ import annotations

import math
from typing import Sequence

from cohort_vpa.config import DEFAULT_F_MAX, DEFAULT_SOLVER_STEPS


def baranov_ratio(F: float, M: float) -> float:
    """Catch over next-class survivors implied by F and M: g(F)."""
    Z = F + M
    return (F / Z) * math.expm1(Z)


def solve_fishing_mortality(
    target: float,
    M: float,
    steps: Sequence[float] = DEFAULT_SOLVER_STEPS,
    F_max: float = DEFAULT_F_MAX,
) -> float:
    """Find F ≥ 0 with g(F) = target by multi-resolution forward sweep.

    Pure and deterministic. The result lies within the finest step below
    the true root. If g(F_max) is still below the target the search is
    exhausted and exactly F_max is returned; callers detect this with
    ``is_exhausted``.

    Args:
        target: Catch / next-class survivors (≥ 0 for valid data).
        M: Natural mortality (> 0).
        steps: Strictly decreasing step sizes.
        F_max: Upper bound on F.

    Returns:
        Fishing mortality estimate in [0, F_max].
    """
    F = 0.0
    for step in steps:
        n_steps = int(math.floor((F_max - F) / step + 1e-9))
        for k in range(n_steps + 1):
            x = F + k * step
            if baranov_ratio(x, M) >= target:
                break
        else:
            # F_max may lie between grid points
            if baranov_ratio(F_max, M) < target:
                return F_max
            F = F + n_steps * step
            continue
        F = max(x - step, 0.0)
    return F


def is_exhausted(F: float, F_max: float = DEFAULT_F_MAX) -> bool:
    """True if a solver result sits on the upper bound."""
    return F >= F_max
