"""
Tests for the Uniform Probability Density Analysis (UPDA) of site occupation.
"""

import numpy as np
import pytest

from sitescales.errors import (DataError, DegenerateComputationError)
from sitescales.utils.fnc_upda import (
	DEGENERATE_DENSITY,
	calc_overlap,
	calc_prior,
	calc_conditional,
	calc_posterior,
	calc_window,
	apportion_posterior,
	calc_occupation,
)


@pytest.fixture
def two_types():
	"""Type 1 AD 500-600 (10 sherds), type 2 AD 550-650 (5 sherds), both trusted."""
	return dict(
		counts=[10, 5],
		starts=[500, 550],
		ends=[600, 650],
		trusted=[True, True],
	)


class TestOverlap:
	"""Tests for calc_overlap."""

	def test_rows_sum_to_one(self):
		periods = np.array([[500, 550], [550, 600], [600, 650]])
		u, degenerate = calc_overlap([500, 550], [600, 650], periods)
		assert np.allclose(u, [[0.5, 0.5, 0], [0, 0.5, 0.5]])
		assert not degenerate.any()

	def test_single_year_type_is_degenerate(self):
		periods = np.array([[500, 550], [550, 600], [600, 650]])
		u, degenerate = calc_overlap([500, 600], [600, 600], periods)
		assert degenerate.tolist() == [False, True]
		assert (u[1] == 0).all()


class TestProbabilities:
	"""Tests for prior, conditional and posterior probabilities."""

	def test_prior_uses_trusted_types_only(self):
		uniform = np.array([[5, 5, 0], [0, 2.5, 2.5], [0, 0, 100]])
		prior = calc_prior(uniform, np.array([True, True, False]))
		assert np.allclose(prior, [1 / 3, 1 / 2, 1 / 6])

	def test_conditional_degenerate_density(self):
		u = np.array([[0.5, 0.5, 0], [0, 0.5, 0.5]])
		uniform = u * np.array([[10], [5]])
		conditional, likelihoods = calc_conditional(u, uniform)
		assert likelihoods[0, 0] == pytest.approx(DEGENERATE_DENSITY)
		assert np.isnan(likelihoods[1, 0])
		assert conditional.sum() == pytest.approx(1)
		assert conditional[0] == pytest.approx(conditional[2])
		assert conditional[1] > conditional[0]

	def test_posterior_falls_back_to_prior(self):
		prior = np.array([0.5, 0.5])
		posterior, fallback = calc_posterior(prior, np.zeros(2))
		assert fallback
		assert np.allclose(posterior, prior)

	def test_posterior_is_normalized(self):
		posterior, fallback = calc_posterior(np.array([0.2, 0.8]), np.array([0.6, 0.4]))
		assert not fallback
		assert posterior.sum() == pytest.approx(1)


class TestWindow:
	"""Tests for calc_window."""

	def test_window_excludes_low_periods(self):
		periods = np.array([[500, 550], [550, 600], [600, 650]])
		window, multimodal = calc_window(periods, np.array([0.05, 0.9, 0.05]), 0.1)
		assert window.tolist() == [False, True, False]
		assert not multimodal

	def test_multimodal_posterior_is_flagged(self):
		periods = np.array([[500, 550], [550, 600], [600, 650]])
		window, multimodal = calc_window(periods, np.array([0.5, 0.01, 0.49]), 0.1)
		assert window.tolist() == [True, True, True]
		assert multimodal


class TestApportionment:
	"""Tests for apportion_posterior."""

	def test_extra_counts_are_reallocated_into_window(self):
		uniform = np.array([[5, 5, 0], [0, 2.5, 2.5]])
		posterior = np.array([0.2, 0.6, 0.2])
		counts = np.array([10, 5])
		window = np.array([False, True, True])
		apportioned = apportion_posterior(uniform, posterior, counts, window)
		assert np.allclose(apportioned, [[0, 10, 0], [0, 3.75, 1.25]])
		assert np.allclose(apportioned.sum(axis=1), counts)


class TestOccupation:
	"""Tests for calc_occupation."""

	def test_overlapping_types(self, two_types):
		"""The overlap of both types gets the highest posterior."""
		result = calc_occupation(interval=25, min_period=25, cutoff=0.1, **two_types)
		assert result['periods'].tolist() == [[500, 550], [550, 600], [600, 650]]
		assert int(np.argmax(result['posterior'])) == 1
		assert result['prior'].sum() == pytest.approx(1)
		assert result['posterior'].sum() == pytest.approx(1)
		assert result['window'] == [500, 650]
		assert not result['fallback_to_prior']

	def test_apportionment_preserves_counts(self, two_types):
		result = calc_occupation(interval=25, min_period=25, **two_types)
		assert np.allclose(result['uniform'].sum(axis=1), [10, 5])
		assert np.allclose(result['posterior_counts'].sum(axis=1), [10, 5])

	def test_zero_counts_are_dropped(self, two_types):
		data = dict([(key, list(val) + [extra]) for (key, val), extra in
					 zip(two_types.items(), [0, 700, 800, True])])
		result = calc_occupation(interval=25, min_period=25, **data)
		assert result['retained'].tolist() == [0, 1]
		assert result['periods'][-1, 1] == 650

	def test_all_zero_counts_raise_data_error(self):
		with pytest.raises(DataError):
			calc_occupation([0, 0], [500, 550], [600, 650], [True, True])

	def test_no_trusted_types_raise_data_error(self, two_types):
		two_types['trusted'] = [False, False]
		with pytest.raises(DataError):
			calc_occupation(**two_types)

	def test_no_posterior_support_raises(self):
		"""The only trusted type spans a single year, so no period gets prior support."""
		with pytest.raises(DegenerateComputationError):
			calc_occupation([10, 5], [500, 600], [500, 700], [True, False], interval=25, min_period=25)

	def test_single_year_types_are_reported(self):
		result = calc_occupation([10, 5, 3], [500, 550, 600], [600, 650, 600], [True, True, False],
								 interval=25, min_period=25)
		assert result['degenerate'].tolist() == [2]
		assert (result['uniform'][2] == 0).all()

	def test_counts_without_posterior_support_are_reported(self):
		"""An untrusted type dated outside the trusted range gets no posterior weight and is reported."""
		result = calc_occupation([10, 50], [500, 800], [600, 900], [True, False], interval=25, min_period=25)
		assert result['window'] == [500, 600]
		assert np.allclose(result['posterior_counts'].sum(axis=1), [10, 0])
		assert result['unapportioned'].tolist() == [1]
		assert result['degenerate'].tolist() == []

	def test_no_unapportioned_types_when_counts_are_preserved(self, two_types):
		result = calc_occupation(interval=25, min_period=25, **two_types)
		assert result['unapportioned'].tolist() == []

	def test_deterministic(self, two_types):
		result1 = calc_occupation(**two_types)
		result2 = calc_occupation(**two_types)
		assert np.array_equal(result1['posterior_counts'], result2['posterior_counts'])
