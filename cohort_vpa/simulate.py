"""Forward cohort projection for synthetic catch data.

Projects a cohort of known size through successive age classes under
given per-class F and constant M, and records the catch each class would
yield. The backward methods in recurrence.py invert this:
  - method="pope":    catch from Pope's approximation (inverted exactly by
                      PopeCohortAnalysis)
  - method="baranov": catch from the Baranov catch equation (inverted by
                      ClassicalVPA up to the solver resolution)

The last class always uses the Baranov equation, which is how both age
methods seed their terminal survivors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class SimulatedCohort:
    """Survivors at the start of each class and the catch taken in it."""
    survivors: np.ndarray
    catch: np.ndarray
    F: np.ndarray
    M: float


def baranov_catch(N: np.ndarray, F: np.ndarray, M: float) -> np.ndarray:
    """C = F / Z · N · (1 − e^{−Z})."""
    Z = F + M
    return F / Z * N * -np.expm1(-Z)


def simulate_cohort(
    recruits: float,
    F: Sequence[float],
    M: float,
    method: str = "pope",
) -> SimulatedCohort:
    """Project a cohort forward through len(F) classes.

    Args:
        recruits: Survivors at the start of the first class.
        F: Fishing mortality per class.
        M: Natural mortality.
        method: 'pope' or 'baranov' catch equation for non-terminal classes.

    Returns:
        SimulatedCohort.

    Raises:
        ValueError: Unknown method or empty F.
    """
    F = np.asarray(F, dtype=np.float64)
    if len(F) == 0:
        raise ValueError("F must contain at least one class")
    if method not in ("pope", "baranov"):
        raise ValueError(f"method must be 'pope' or 'baranov', got '{method}'")

    n = len(F)
    survivors = np.empty(n)
    survivors[0] = recruits
    for i in range(1, n):
        survivors[i] = survivors[i - 1] * np.exp(-(F[i - 1] + M))

    if method == "baranov":
        catch = baranov_catch(survivors, F, M)
    else:
        half = np.exp(M / 2.0)
        catch = np.empty(n)
        catch[:-1] = survivors[:-1] / half - survivors[1:] * half
        catch[-1] = baranov_catch(survivors[-1:], F[-1:], M)[0]

    return SimulatedCohort(survivors=survivors, catch=catch, F=F, M=M)
