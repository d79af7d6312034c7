"""Derived per-class quantities, identical for every reconstruction method.

Only ``survivors`` and ``F`` differ between methods; everything here is a
function of those, the corrected catch and the length–weight relation.
"""

from __future__ import annotations

import numpy as np


def total_mortality(F: np.ndarray, M: float) -> np.ndarray:
    """Z = M + F."""
    return M + F


def mean_body_weight(midpoints: np.ndarray, a: float, b: float) -> np.ndarray:
    """W = a · L^b evaluated at class midpoints."""
    return a * np.asarray(midpoints, dtype=np.float64) ** b


def mean_annual_abundance(survivors: np.ndarray, Z: np.ndarray, last: int) -> np.ndarray:
    """(N_i − N_{i+1}) / Z_i for i < last; NaN from the terminal class on.

    The terminal class has no successor survivor count, so its mean
    abundance is not available.
    """
    abundance = np.full(len(survivors), np.nan)
    with np.errstate(divide='ignore', invalid='ignore'):
        abundance[:last] = (survivors[:last] - survivors[1:last + 1]) / Z[:last]
    return abundance


def natural_losses(survivors: np.ndarray, survivors_after: np.ndarray,
                   catch: np.ndarray) -> np.ndarray:
    """N_i − N_{i+1} − C_i, with N_{i+1} = 0 at the terminal class."""
    return survivors - survivors_after - catch


def compute_derived(
    record: np.ndarray,
    last: int,
    M: float,
    a: float,
    b: float,
    tons_divisor: float = 1000.0,
) -> np.ndarray:
    """Fill the derived-metric fields of a reconstructed record in place.

    Args:
        record: COHORT_DTYPE array after the backward pass.
        last: Index of the terminal class.
        M: Natural mortality.
        a, b: Length–weight coefficients.
        tons_divisor: Mass-unit conversion for the ``*_tons`` fields.

    Returns:
        The same record array.
    """
    sl = slice(0, last + 1)
    record['Z'][sl] = total_mortality(record['F'][sl], M)
    record['mean_abundance'] = mean_annual_abundance(
        record['survivors'], record['Z'], last)

    weight = mean_body_weight(record['midpoint'], a, b)
    record['mean_body_weight'] = weight
    record['mean_biomass'] = record['mean_abundance'] * weight
    record['mean_biomass_tons'] = record['mean_biomass'] / tons_divisor
    record['yield'] = record['corrected_catch'] * weight
    record['yield_tons'] = record['yield'] / tons_divisor

    record['natural_loss'][sl] = natural_losses(
        record['survivors'][sl],
        record['survivors_after'][sl],
        record['corrected_catch'][sl],
    )
    return record
