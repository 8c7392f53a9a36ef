"""
Tests for the Brainerd-Robinson similarity of site assemblages and the distance matrix of sites.
"""

import numpy as np
import pytest

from sitescales.utils.fnc_similarity import (calc_similarity, calc_distance_matrix)


@pytest.fixture
def counts():
	rng = np.random.default_rng(7)
	return rng.integers(0, 50, size=(12, 5)) + 1


class TestSimilarity:
	"""Tests for calc_similarity."""

	def test_identical_proportions(self):
		"""Sites with the same composition are fully similar regardless of their size."""
		S = calc_similarity(np.array([[10, 20, 30], [1, 2, 3]]))
		assert S[0, 1] == 1.0

	def test_no_wares_in_common(self):
		S = calc_similarity(np.array([[10, 0], [0, 5]]))
		assert S[0, 1] == 0.0

	def test_partial_overlap(self):
		S = calc_similarity(np.array([[50, 50], [100, 0]]))
		assert S[0, 1] == pytest.approx(0.5)

	def test_matrix_properties(self, counts):
		S = calc_similarity(counts)
		assert S.shape == (12, 12)
		assert np.array_equal(S, S.T)
		assert (S >= 0).all() and (S <= 1).all()
		assert (np.diag(S) == 1).all()

	def test_rounded_to_three_decimals(self, counts):
		S = calc_similarity(counts)
		assert np.allclose(S, np.round(S, 3))


class TestDistanceMatrix:
	"""Tests for calc_distance_matrix."""

	def test_euclidean(self):
		D = calc_distance_matrix([[0, 0], [3, 4], [6, 8]])
		assert np.allclose(D, [[0, 5, 10], [5, 0, 5], [10, 5, 0]])

	def test_single_site(self):
		assert calc_distance_matrix([[1, 1]]).shape == (1, 1)
