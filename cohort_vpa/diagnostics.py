"""Post-reconstruction domain checks.

Flags classes whose inputs or estimates are outside the meaningful range
and returns one message per finding. Nothing here raises: upstream data
problems are common and the caller inspects the flagged table.
"""

from __future__ import annotations

from typing import List

import numpy as np

from cohort_vpa.types import ClassFlag


def _flag(record: np.ndarray, mask: np.ndarray, flag: ClassFlag) -> np.ndarray:
    record['flags'][mask] |= int(flag)
    return np.flatnonzero(mask)


def check_cohort(record: np.ndarray, last: int) -> List[str]:
    """Flag anomalies in record[0 .. last] and describe them.

    Checks:
      - Missing catch inside the sampled range
      - Corrected catch ≤ 0
      - Survivors ≤ 0
      - Survivors increasing from one class to the next

    Args:
        record: Reconstructed COHORT_DTYPE array (flags updated in place).
        last: Index of the terminal class.

    Returns:
        Messages, one per flagged class and condition.
    """
    sl = slice(0, last + 1)
    mids = record['midpoint']
    catch = record['corrected_catch'][sl]
    survivors = record['survivors'][sl]
    messages: List[str] = []

    in_range = np.zeros(len(record), dtype=bool)
    in_range[sl] = True

    missing = in_range.copy()
    missing[sl] = np.isnan(catch)
    for i in _flag(record, missing, ClassFlag.MISSING_CATCH):
        messages.append(f"class {mids[i]:g}: catch missing inside sampled range")

    nonpositive_catch = in_range.copy()
    nonpositive_catch[sl] = catch <= 0
    for i in _flag(record, nonpositive_catch, ClassFlag.NONPOSITIVE_CATCH):
        messages.append(f"class {mids[i]:g}: corrected catch {catch[i]:g} <= 0")

    nonpositive_n = in_range.copy()
    nonpositive_n[sl] = survivors <= 0
    for i in _flag(record, nonpositive_n, ClassFlag.NONPOSITIVE_SURVIVORS):
        messages.append(f"class {mids[i]:g}: survivors {survivors[i]:.4g} <= 0")

    increasing = np.zeros(len(record), dtype=bool)
    increasing[:last] = survivors[:-1] < survivors[1:]
    for i in _flag(record, increasing, ClassFlag.MONOTONICITY):
        messages.append(
            f"class {mids[i]:g}: survivors {survivors[i]:.4g} < next class "
            f"{survivors[i + 1]:.4g}"
        )
    return messages
