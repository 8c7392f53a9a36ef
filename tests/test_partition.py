"""
Tests for the distance thresholds and the scale-constrained community detection.
"""

import numpy as np
import pytest

from sitescales.utils.fnc_partition import (calc_thresholds, calc_partition, calc_partitions)
from sitescales.utils.fnc_similarity import (calc_similarity, calc_distance_matrix)


@pytest.fixture
def two_groups():
	"""Two distant groups of three sites each, with opposite ware compositions."""
	counts = np.array([[100, 0]] * 3 + [[0, 100]] * 3)
	coords = np.array([
		[0, 0], [1000, 0], [0, 1000],
		[50000, 0], [51000, 0], [50000, 1000],
	])
	return calc_similarity(counts), calc_distance_matrix(coords)


class TestThresholds:
	"""Tests for calc_thresholds."""

	def test_last_threshold_is_max_distance(self, two_groups):
		_, D = two_groups
		thresholds = calc_thresholds(D, 100)
		assert len(thresholds) == 100
		assert thresholds[-1] == pytest.approx(D.max())

	def test_thresholds_are_non_decreasing(self, two_groups):
		_, D = two_groups
		thresholds = calc_thresholds(D, 100)
		assert (np.diff(thresholds) >= 0).all()
		assert thresholds[0] >= D[D > 0].min()

	def test_custom_number(self, two_groups):
		_, D = two_groups
		assert len(calc_thresholds(D, 10)) == 10


class TestPartition:
	"""Tests for calc_partition and calc_partitions."""

	def test_full_radius_separates_groups(self, two_groups):
		S, D = two_groups
		membership = calc_partition(S, D, D.max())
		assert membership.tolist() == [0, 0, 0, 1, 1, 1]

	def test_labels_ordered_by_first_site(self, two_groups):
		S, D = two_groups
		membership = calc_partition(S, D, 0)
		assert membership[0] == 0
		seen = []
		for label in membership:
			if label not in seen:
				seen.append(label)
		assert seen == sorted(seen)

	def test_membership_matrix(self, two_groups):
		S, D = two_groups
		thresholds = calc_thresholds(D, 100)
		memberships = calc_partitions(S, D, thresholds)
		assert memberships.shape == (100, 6)
		assert (memberships.max(axis=1) < 6).all()

	def test_deterministic_with_seed(self, two_groups):
		S, D = two_groups
		thresholds = calc_thresholds(D, 20)
		memberships1 = calc_partitions(S, D, thresholds, seed=42)
		memberships2 = calc_partitions(S, D, thresholds, seed=42)
		assert np.array_equal(memberships1, memberships2)
