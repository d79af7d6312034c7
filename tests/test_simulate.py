"""Tests for cohort_vpa.simulate — forward cohort projection."""

import numpy as np
import pytest

from cohort_vpa.simulate import baranov_catch, simulate_cohort


class TestBaranovCatch:
    def test_no_fishing_no_catch(self):
        assert baranov_catch(np.array([100.0]), np.array([0.0]), 0.2)[0] == 0.0

    def test_catch_share_of_deaths(self):
        N, F, M = np.array([1000.0]), np.array([0.6]), 0.2
        deaths = N * (1.0 - np.exp(-(F + M)))
        np.testing.assert_allclose(baranov_catch(N, F, M), deaths * 0.75)


class TestSimulateCohort:
    def test_survivors_decay(self):
        sim = simulate_cohort(1000.0, [0.3, 0.4, 0.5], 0.2)
        np.testing.assert_allclose(sim.survivors,
                                   [1000.0, 1000.0 * np.exp(-0.5),
                                    1000.0 * np.exp(-1.1)])

    def test_pope_catch(self):
        sim = simulate_cohort(1000.0, [0.3, 0.4, 0.5], 0.2, method="pope")
        half = np.exp(0.1)
        N = sim.survivors
        assert sim.catch[0] == pytest.approx(N[0] / half - N[1] * half)
        assert sim.catch[1] == pytest.approx(N[1] / half - N[2] * half)

    def test_last_class_baranov_in_both_methods(self):
        pope = simulate_cohort(1000.0, [0.3, 0.4, 0.5], 0.2, method="pope")
        baranov = simulate_cohort(1000.0, [0.3, 0.4, 0.5], 0.2, method="baranov")
        assert pope.catch[-1] == pytest.approx(baranov.catch[-1])

    def test_pope_close_to_baranov(self):
        pope = simulate_cohort(1000.0, [0.3, 0.4, 0.5], 0.2, method="pope")
        baranov = simulate_cohort(1000.0, [0.3, 0.4, 0.5], 0.2, method="baranov")
        np.testing.assert_allclose(pope.catch, baranov.catch, rtol=2e-2)

    def test_single_class(self):
        sim = simulate_cohort(500.0, [0.5], 0.2)
        assert sim.survivors.tolist() == [500.0]
        assert sim.catch[0] > 0

    def test_empty_F(self):
        with pytest.raises(ValueError, match="at least one"):
            simulate_cohort(1000.0, [], 0.2)

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="method"):
            simulate_cohort(1000.0, [0.3], 0.2, method="jones")
