"""Core data types for cohort reconstruction.

This module is the SINGLE SOURCE OF TRUTH for:
  - COHORT_DTYPE: NumPy structured array dtype for per-class records
  - DataType, AnalysisType, CatchShape enumerations
  - ClassFlag bit flags for per-class anomalies
  - ClassSeries: parsed, immutable class definitions

All modules import these types from here. No other module defines record
fields.
"""

from dataclasses import dataclass
from enum import Enum, IntFlag
from typing import Tuple

import numpy as np


# ═══════════════════════════════════════════════════════════════════════
# ENUMERATIONS
# ═══════════════════════════════════════════════════════════════════════

class DataType(str, Enum):
    """Independent variable the classes are defined over."""
    AGE = "age"
    LENGTH = "length"


class AnalysisType(str, Enum):
    """Requested reconstruction method.

    VPA: classical virtual population analysis (Gulland 1965), exact
         catch equation solved numerically.
    CA:  cohort analysis, Pope's approximation for age data or Jones'
         length-based form for length data.
    """
    VPA = "VPA"
    CA = "CA"


class CatchShape(str, Enum):
    """Shape of the catch input."""
    VECTOR = "vector"   # one cohort's catch, one value per class
    MATRIX = "matrix"   # rows = classes, columns = sampling periods


class ClassFlag(IntFlag):
    """Per-class anomaly bits stored in the record's ``flags`` field."""
    NONE                  = 0
    SOLVER_EXHAUSTED      = 1    # F search reached F_max
    NONPOSITIVE_CATCH     = 2    # corrected catch <= 0
    NONPOSITIVE_SURVIVORS = 4    # survivors <= 0
    MONOTONICITY          = 8    # survivors_i < survivors_{i+1}
    MISSING_CATCH         = 16   # NaN catch inside the sampled range


PLUS_GROUP_MARKER = "+"


# ═══════════════════════════════════════════════════════════════════════
# COHORT_DTYPE — Canonical structured array for per-class records
# ═══════════════════════════════════════════════════════════════════════

COHORT_DTYPE = np.dtype([
    # --- Class definition (normalizer writes) ---
    ('midpoint',          np.float64),   # class midpoint (age in yr or length in cm)
    ('plus_group',        np.bool_),     # True only for an open-ended final class
    ('catch',             np.float64),   # cohort catch before correction (NaN = not sampled)
    ('corrected_catch',   np.float64),   # catch × correction factor

    # --- Recurrence (engine writes) ---
    ('survivors',         np.float64),   # N at start of class
    ('survivors_after',   np.float64),   # N at start of next class; 0 at terminal
    ('F',                 np.float64),   # fishing mortality
    ('F_over_Z',          np.float64),   # exploitation ratio (length-based only)

    # --- Growth transform (length-based only) ---
    ('lower_bound',       np.float64),   # class lower length limit
    ('t_lower',           np.float64),   # relative age at lower bound (yr)
    ('dt',                np.float64),   # time to grow through the class (yr)
    ('t_mid',             np.float64),   # relative age at midpoint (yr)
    ('H',                 np.float64),   # half-class natural survival factor

    # --- Derived metrics (metrics calculator writes) ---
    ('Z',                 np.float64),   # total mortality M + F
    ('mean_abundance',    np.float64),   # mean annual number present
    ('mean_body_weight',  np.float64),   # a · L^b
    ('mean_biomass',      np.float64),
    ('mean_biomass_tons', np.float64),
    ('yield',             np.float64),
    ('yield_tons',        np.float64),
    ('natural_loss',      np.float64),   # deaths from natural causes

    # --- Diagnostics ---
    ('flags',             np.int16),     # ClassFlag bits
])

_FLOAT_FIELDS = tuple(
    name for name in COHORT_DTYPE.names
    if COHORT_DTYPE[name] == np.dtype(np.float64)
)


def allocate_cohort(n_classes: int) -> np.ndarray:
    """Allocate a per-class record array.

    Float fields start as NaN ("not available"), flags as 0.

    Args:
        n_classes: Number of classes.

    Returns:
        Structured array of shape (n_classes,) with COHORT_DTYPE.
    """
    record = np.zeros(n_classes, dtype=COHORT_DTYPE)
    for name in _FLOAT_FIELDS:
        record[name] = np.nan
    return record


# ═══════════════════════════════════════════════════════════════════════
# CLASS SERIES
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ClassSeries:
    """Ordered, strictly increasing class midpoints.

    ``plus_group`` is True when the final label carried a trailing '+'.
    Built once by ``normalize.parse_classes`` and never modified.
    """
    labels: Tuple[str, ...]
    midpoints: np.ndarray
    plus_group: bool = False

    def __post_init__(self):
        self.midpoints.setflags(write=False)

    @property
    def n_classes(self) -> int:
        return len(self.midpoints)

    @property
    def plus_group_mask(self) -> np.ndarray:
        """Boolean per class; True only at the final class of a plus group."""
        mask = np.zeros(self.n_classes, dtype=bool)
        if self.plus_group and self.n_classes > 0:
            mask[-1] = True
        return mask

    @property
    def class_width(self) -> float:
        """Spacing of the first two midpoints (equal spacing assumed)."""
        return float(self.midpoints[1] - self.midpoints[0])

    @property
    def lower_bounds(self) -> np.ndarray:
        return self.midpoints - self.class_width / 2.0
