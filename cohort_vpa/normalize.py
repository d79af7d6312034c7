"""Input normalization: class labels, cohort catch, catch correction.

Turns the caller's raw inputs into a ClassSeries plus one cohort's
corrected catch trajectory:
  - Class labels are parsed to numeric midpoints; a trailing '+' on the
    last label marks a plus group.
  - Vector catch is taken as the cohort trajectory directly.
  - Matrix catch (rows = classes, columns = sampling periods) is reduced
    to the cohort on the main diagonal.
  - An optional multiplicative correction factor is applied.

Missing catch values ("not sampled") are NaN throughout.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from cohort_vpa.errors import ConfigurationError
from cohort_vpa.types import PLUS_GROUP_MARKER, CatchShape, ClassSeries


# ═══════════════════════════════════════════════════════════════════════
# CLASS LABELS
# ═══════════════════════════════════════════════════════════════════════

def parse_classes(classes: Sequence) -> ClassSeries:
    """Parse class labels into an immutable ClassSeries.

    Labels may be numbers or strings. Only the last label may carry the
    plus-group marker, e.g. ``[1, 2, 3, "4+"]``.

    Args:
        classes: Ordered class labels (ages or length midpoints).

    Returns:
        ClassSeries with strictly increasing midpoints.

    Raises:
        ConfigurationError: Empty input, non-numeric labels, or
            midpoints that are not strictly increasing.
    """
    labels = tuple(str(c).strip() for c in classes)
    if len(labels) == 0:
        raise ConfigurationError("classes must contain at least one class")

    plus_group = labels[-1].endswith(PLUS_GROUP_MARKER)
    numeric_labels = list(labels)
    if plus_group:
        numeric_labels[-1] = labels[-1][:-len(PLUS_GROUP_MARKER)].strip()

    try:
        midpoints = np.array([float(s) for s in numeric_labels], dtype=np.float64)
    except ValueError as e:
        raise ConfigurationError(f"Class labels must be numeric: {e}") from e

    if not np.all(np.isfinite(midpoints)):
        raise ConfigurationError(f"Class labels must be finite, got {labels}")
    if np.any(np.diff(midpoints) <= 0):
        raise ConfigurationError(
            f"Class midpoints must be strictly increasing, got {midpoints.tolist()}"
        )

    return ClassSeries(labels=labels, midpoints=midpoints, plus_group=plus_group)


# ═══════════════════════════════════════════════════════════════════════
# CATCH
# ═══════════════════════════════════════════════════════════════════════

def _as_float_array(catch) -> np.ndarray:
    try:
        return np.array(catch, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Catch must be numeric: {e}") from e


def catch_shape(catch) -> CatchShape:
    """Classify catch input as a single vector or a class × period matrix."""
    arr = _as_float_array(catch)
    if arr.ndim == 1:
        return CatchShape.VECTOR
    if arr.ndim == 2:
        return CatchShape.MATRIX
    raise ConfigurationError(
        f"Catch must be a vector or a 2-D matrix, got {arr.ndim} dimensions"
    )


def extract_cohort(catch, n_classes: int) -> np.ndarray:
    """Return one cohort's catch trajectory, one value per class.

    For a matrix, the cohort is read along the main diagonal starting at
    row 0 / column 0: entry [i, i] is the catch of the cohort in class i.
    Classes beyond the last diagonal entry are NaN. This assumes the
    cohort enters the fishery in the first class of the first sampling
    period; other alignments are not detected.

    Args:
        catch: Vector of length n_classes, or matrix with n_classes rows.
        n_classes: Number of classes in the ClassSeries.

    Returns:
        Float array of shape (n_classes,), NaN where not sampled.

    Raises:
        ConfigurationError: Length / row-count mismatch.
    """
    arr = _as_float_array(catch)
    shape = catch_shape(arr)

    if shape is CatchShape.VECTOR:
        if len(arr) != n_classes:
            raise ConfigurationError(
                f"Classes and catch do not have the same length: "
                f"{n_classes} classes, {len(arr)} catch values"
            )
        return arr

    if arr.shape[0] != n_classes:
        raise ConfigurationError(
            f"Catch matrix must have one row per class: "
            f"{n_classes} classes, {arr.shape[0]} rows"
        )
    cohort = np.full(n_classes, np.nan)
    diagonal = np.diagonal(arr)
    cohort[:len(diagonal)] = diagonal
    return cohort


def apply_correction(catch: np.ndarray, factor: Optional[float] = None) -> np.ndarray:
    """Scale catch by a correction factor (None leaves values unchanged).

    Used when the sample does not represent a full year / the whole
    fishing ground. NaN stays NaN.
    """
    corrected = np.array(catch, dtype=np.float64)
    if factor is not None:
        corrected = corrected * factor
    return corrected


def last_sampled_index(corrected_catch: np.ndarray) -> int:
    """Index of the last class with a non-missing catch.

    Raises:
        ConfigurationError: If every class is missing.
    """
    sampled = np.flatnonzero(~np.isnan(corrected_catch))
    if len(sampled) == 0:
        raise ConfigurationError("Catch contains no sampled classes")
    return int(sampled[-1])


# ═══════════════════════════════════════════════════════════════════════
# FULL NORMALIZATION
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class NormalizedCohort:
    """Normalized inputs for one reconstruction run."""
    series: ClassSeries
    shape: CatchShape
    catch: np.ndarray             # cohort catch before correction
    corrected_catch: np.ndarray   # cohort catch after correction
    last_sampled: int             # 0-based index of terminal class

    @property
    def n_classes(self) -> int:
        return self.series.n_classes


def normalize_input(
    classes: Sequence,
    catch,
    catch_correction_factor: Optional[float] = None,
) -> NormalizedCohort:
    """Parse classes, extract the cohort and apply the catch correction."""
    series = parse_classes(classes)
    shape = catch_shape(catch)
    cohort = extract_cohort(catch, series.n_classes)
    corrected = apply_correction(cohort, catch_correction_factor)
    return NormalizedCohort(
        series=series,
        shape=shape,
        catch=cohort,
        corrected_catch=corrected,
        last_sampled=last_sampled_index(corrected),
    )
