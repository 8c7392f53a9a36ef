"""
Tests for the agglomerative energy-statistic change-point detection.
"""

import numpy as np
import pytest

from sitescales.utils.fnc_changepoint import (EnergyDivergence, e_agglo)


def block_matrix(sizes):
	"""Block-diagonal matrix of ones; each block is a regime of identical rows."""
	n = sum(sizes)
	X = np.zeros((n, n))
	i = 0
	for size in sizes:
		X[i:i + size, i:i + size] = 1
		i += size
	return X


class TestEnergyDivergence:
	"""Tests for EnergyDivergence."""

	def test_identical_segments(self):
		energy = EnergyDivergence(np.ones((10, 3)))
		assert energy.divergence(0, 5, 10) == pytest.approx(0)

	def test_distinct_segments(self):
		X = np.array([[0.0]] * 4 + [[2.0]] * 6)
		energy = EnergyDivergence(X)
		# m * n / (m + n) * 2 * |0 - 2|
		assert energy.divergence(0, 4, 10) == pytest.approx(4 * 6 / 10 * 4)


class TestEAgglo:
	"""Tests for e_agglo."""

	def test_constant_observations(self):
		"""Constant observations form a single segment."""
		result = e_agglo(np.ones((100, 100)))
		assert result['estimates'] == [1]

	def test_two_regimes(self):
		result = e_agglo(block_matrix([40, 60]))
		assert result['estimates'] == [1, 41]

	def test_three_regimes(self):
		result = e_agglo(block_matrix([10, 50, 40]))
		assert result['estimates'] == [1, 11, 61]

	def test_progression(self):
		result = e_agglo(block_matrix([3, 3]))
		assert result['progression'][0] == [1, 2, 3, 4, 5, 6]
		assert result['progression'][-1] == [1]
		assert len(result['fit']) == len(result['progression']) == 6

	def test_penalty_favours_fewer_segments(self):
		result = e_agglo(block_matrix([40, 60]), penalty=lambda cps: -1e6 * len(cps))
		assert result['estimates'] == [1]

	def test_single_observation(self):
		assert e_agglo(np.ones((1, 4)))['estimates'] == [1]
