"""Tests for cohort_vpa.types — enums, record dtype, class series."""

import numpy as np
import pytest

from cohort_vpa.types import (
    COHORT_DTYPE,
    AnalysisType,
    CatchShape,
    ClassFlag,
    ClassSeries,
    DataType,
    allocate_cohort,
)


# ── Enum tests ────────────────────────────────────────────────────────

class TestEnums:
    def test_data_type_values(self):
        assert DataType("age") is DataType.AGE
        assert DataType("length") is DataType.LENGTH
        assert len(DataType) == 2

    def test_analysis_type_values(self):
        assert AnalysisType("VPA") is AnalysisType.VPA
        assert AnalysisType("CA") is AnalysisType.CA

    def test_string_compatible(self):
        """Enums compare equal to their config-file spelling."""
        assert DataType.AGE == "age"
        assert CatchShape.MATRIX == "matrix"

    def test_unknown_value_raises(self):
        with pytest.raises(ValueError):
            DataType("weight")


class TestClassFlag:
    def test_single_bits(self):
        values = [f.value for f in ClassFlag if f.value]
        for v in values:
            assert v & (v - 1) == 0

    def test_combine(self):
        combined = ClassFlag.NONPOSITIVE_CATCH | ClassFlag.MONOTONICITY
        assert ClassFlag.MONOTONICITY in combined
        assert ClassFlag.SOLVER_EXHAUSTED not in combined


# ── COHORT_DTYPE tests ────────────────────────────────────────────────

class TestCohortDtype:
    def test_required_fields(self):
        for name in ('midpoint', 'plus_group', 'catch', 'corrected_catch',
                     'survivors', 'survivors_after', 'F', 'Z',
                     'mean_abundance', 'mean_body_weight', 'mean_biomass',
                     'mean_biomass_tons', 'yield', 'yield_tons',
                     'natural_loss', 'flags'):
            assert name in COHORT_DTYPE.names

    def test_length_fields(self):
        for name in ('lower_bound', 't_lower', 'dt', 't_mid', 'H', 'F_over_Z'):
            assert name in COHORT_DTYPE.names


class TestAllocateCohort:
    def test_shape(self):
        record = allocate_cohort(7)
        assert record.shape == (7,)
        assert record.dtype == COHORT_DTYPE

    def test_floats_start_missing(self):
        record = allocate_cohort(3)
        assert np.all(np.isnan(record['survivors']))
        assert np.all(np.isnan(record['F']))
        assert np.all(np.isnan(record['yield']))

    def test_flags_start_clear(self):
        record = allocate_cohort(3)
        assert np.all(record['flags'] == 0)
        assert not np.any(record['plus_group'])

    def test_field_views_write_through(self):
        record = allocate_cohort(2)
        record['F'][1] = 0.4
        assert record[1]['F'] == pytest.approx(0.4)


# ── ClassSeries tests ─────────────────────────────────────────────────

class TestClassSeries:
    def _series(self, plus=False):
        return ClassSeries(labels=("10", "20", "30"),
                           midpoints=np.array([10.0, 20.0, 30.0]),
                           plus_group=plus)

    def test_midpoints_read_only(self):
        series = self._series()
        with pytest.raises(ValueError):
            series.midpoints[0] = 5.0

    def test_frozen(self):
        series = self._series()
        with pytest.raises(AttributeError):
            series.plus_group = True

    def test_plus_group_mask(self):
        assert self._series(plus=True).plus_group_mask.tolist() == [False, False, True]
        assert not np.any(self._series(plus=False).plus_group_mask)

    def test_class_width_and_lower_bounds(self):
        series = self._series()
        assert series.class_width == pytest.approx(10.0)
        np.testing.assert_allclose(series.lower_bounds, [5.0, 15.0, 25.0])
