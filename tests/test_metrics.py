"""Tests for cohort_vpa.metrics and cohort_vpa.diagnostics."""

import numpy as np
import pytest

from cohort_vpa.diagnostics import check_cohort
from cohort_vpa.metrics import (
    compute_derived,
    mean_annual_abundance,
    mean_body_weight,
    natural_losses,
    total_mortality,
)
from cohort_vpa.types import ClassFlag, allocate_cohort


def _filled_record(survivors, F, catch, midpoints=None):
    n = len(survivors)
    record = allocate_cohort(n)
    record['midpoint'] = midpoints if midpoints is not None else np.arange(1.0, n + 1)
    record['survivors'] = survivors
    record['F'] = F
    record['corrected_catch'] = catch
    record['survivors_after'][:-1] = record['survivors'][1:]
    record['survivors_after'][-1] = 0.0
    return record


# ── Elementary quantities ────────────────────────────────────────────

class TestElementary:
    def test_total_mortality(self):
        np.testing.assert_allclose(total_mortality(np.array([0.1, 0.5]), 0.2), [0.3, 0.7])

    def test_mean_body_weight(self):
        np.testing.assert_allclose(mean_body_weight([10.0, 20.0], 0.01, 3.0), [10.0, 80.0])

    def test_mean_abundance_terminal_missing(self):
        N = np.array([1000.0, 600.0, 300.0])
        Z = np.array([0.5, 0.7, 0.9])
        abundance = mean_annual_abundance(N, Z, last=2)
        np.testing.assert_allclose(abundance[:2], [400.0 / 0.5, 300.0 / 0.7])
        assert np.isnan(abundance[2])

    def test_mean_abundance_nan_beyond_last(self):
        N = np.array([1000.0, 600.0, np.nan])
        Z = np.array([0.5, 0.7, np.nan])
        abundance = mean_annual_abundance(N, Z, last=1)
        assert np.isfinite(abundance[0])
        assert np.all(np.isnan(abundance[1:]))

    def test_natural_losses(self):
        loss = natural_losses(np.array([100.0, 60.0]), np.array([60.0, 0.0]),
                              np.array([25.0, 40.0]))
        np.testing.assert_allclose(loss, [15.0, 20.0])


# ── compute_derived ──────────────────────────────────────────────────

class TestComputeDerived:
    def _record(self):
        return _filled_record(
            survivors=[1000.0, 600.0, 300.0],
            F=[0.3, 0.5, 0.4],
            catch=[200.0, 150.0, 100.0],
            midpoints=[10.0, 20.0, 30.0],
        )

    def test_Z_is_M_plus_F(self):
        record = compute_derived(self._record(), last=2, M=0.2, a=0.01, b=3.0)
        np.testing.assert_allclose(record['Z'], record['F'] + 0.2)

    def test_mass_balance(self):
        """Survivors entering = survivors leaving + natural losses + catch."""
        record = compute_derived(self._record(), last=2, M=0.2, a=0.01, b=3.0)
        total = record['survivors_after'] + record['natural_loss'] + record['corrected_catch']
        np.testing.assert_allclose(total, record['survivors'])

    def test_yield_and_biomass(self):
        record = compute_derived(self._record(), last=2, M=0.2, a=0.01, b=3.0)
        W = 0.01 * np.array([10.0, 20.0, 30.0]) ** 3
        np.testing.assert_allclose(record['mean_body_weight'], W)
        np.testing.assert_allclose(record['yield'], record['corrected_catch'] * W)
        np.testing.assert_allclose(record['yield_tons'], record['yield'] / 1000.0)
        np.testing.assert_allclose(record['mean_biomass'][:2],
                                   record['mean_abundance'][:2] * W[:2])
        assert np.isnan(record['mean_biomass'][2])

    def test_tons_divisor(self):
        record = compute_derived(self._record(), last=2, M=0.2, a=0.01, b=3.0,
                                 tons_divisor=1e6)
        np.testing.assert_allclose(record['yield_tons'], record['yield'] / 1e6)

    def test_classes_beyond_last_not_computed(self):
        record = _filled_record(
            survivors=[1000.0, 600.0, np.nan],
            F=[0.3, 0.5, np.nan],
            catch=[200.0, 150.0, np.nan],
        )
        record['survivors_after'][1] = 0.0
        compute_derived(record, last=1, M=0.2, a=0.01, b=3.0)
        assert np.isnan(record['Z'][2])
        assert np.isnan(record['natural_loss'][2])
        assert np.isnan(record['yield'][2])
        assert np.isfinite(record['mean_body_weight'][2])


# ── check_cohort ─────────────────────────────────────────────────────

class TestCheckCohort:
    def test_clean_cohort(self):
        record = _filled_record([1000.0, 600.0, 300.0], [0.3, 0.5, 0.4],
                                [200.0, 150.0, 100.0])
        assert check_cohort(record, last=2) == []
        assert np.all(record['flags'] == 0)

    def test_nonpositive_catch(self):
        record = _filled_record([1000.0, 600.0, 300.0], [0.3, 0.5, 0.4],
                                [200.0, 0.0, 100.0])
        messages = check_cohort(record, last=2)
        assert record['flags'][1] == ClassFlag.NONPOSITIVE_CATCH
        assert len(messages) == 1
        assert "class 2" in messages[0]

    def test_increasing_survivors(self):
        record = _filled_record([500.0, 600.0, 300.0], [0.3, 0.5, 0.4],
                                [200.0, 150.0, 100.0])
        check_cohort(record, last=2)
        assert record['flags'][0] & ClassFlag.MONOTONICITY
        assert record['flags'][1] == 0

    def test_nonpositive_survivors(self):
        record = _filled_record([-5.0, 600.0, 300.0], [np.nan, 0.5, 0.4],
                                [200.0, 150.0, 100.0])
        check_cohort(record, last=2)
        assert record['flags'][0] & ClassFlag.NONPOSITIVE_SURVIVORS
        assert record['flags'][0] & ClassFlag.MONOTONICITY

    def test_missing_catch_inside_range(self):
        record = _filled_record([np.nan, np.nan, 300.0], [np.nan, np.nan, 0.4],
                                [200.0, np.nan, 100.0])
        check_cohort(record, last=2)
        assert record['flags'][1] & ClassFlag.MISSING_CATCH
        assert not record['flags'][0] & ClassFlag.MISSING_CATCH

    def test_tail_beyond_last_ignored(self):
        record = _filled_record([1000.0, 600.0, np.nan], [0.3, 0.5, np.nan],
                                [200.0, 150.0, np.nan])
        assert check_cohort(record, last=1) == []
        assert record['flags'][2] == 0

    def test_flags_accumulate(self):
        record = _filled_record([1000.0, 600.0, 300.0], [0.3, 0.5, 0.4],
                                [200.0, 150.0, 100.0])
        record['flags'][1] = int(ClassFlag.SOLVER_EXHAUSTED)
        record['corrected_catch'][1] = -1.0
        check_cohort(record, last=2)
        assert record['flags'][1] == ClassFlag.SOLVER_EXHAUSTED | ClassFlag.NONPOSITIVE_CATCH
