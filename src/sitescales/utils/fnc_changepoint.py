from typing import List, Callable, Dict

import numpy as np
from scipy.spatial.distance import pdist, squareform


def _zero_penalty(cps: List[int]) -> float:
	return 0


class EnergyDivergence(object):
	"""
	Energy statistic divergence between contiguous segments of observations.

	:param X: Observations in format [observation, dimension]
	:type X: np.ndarray

	:param alpha: Exponent of the Euclidean distances in (0, 2]
	:type alpha: float
	"""

	def __init__(self, X: np.ndarray, alpha: float = 1.0):

		X = np.asarray(X, dtype=float)
		if X.ndim == 1:
			X = X[:, None]
		self.dist = squareform(pdist(X, metric='euclidean')) ** alpha if X.shape[0] > 1 else np.zeros((1, 1))
		self._cache = {}  # {(a0, a1, b1): divergence, ...}

	def _within(self, i0: int, i1: int) -> float:
		n = i1 - i0
		if n < 2:
			return 0
		return self.dist[i0:i1, i0:i1].sum() / (n * (n - 1))

	def divergence(self, a0: int, a1: int, b1: int) -> float:
		"""
		Scaled energy divergence between the adjacent segments [a0, a1) and [a1, b1).

		:return: m * n / (m + n) * (2 * mean(between) - mean(within a) - mean(within b))
		:rtype: float
		"""
		key = (a0, a1, b1)
		if key not in self._cache:
			m, n = a1 - a0, b1 - a1
			between = self.dist[a0:a1, a1:b1].mean()
			self._cache[key] = (m * n / (m + n)) * (2 * between - self._within(a0, a1) - self._within(a1, b1))
		return self._cache[key]


def e_agglo(X: np.ndarray, alpha: float = 1.0, penalty: Callable = None) -> Dict[str, object]:
	"""
	Agglomerative hierarchical estimation of multiple change points using energy statistics.

	Starting with every observation in its own segment, adjacent segments are merged one pair at a time,
	choosing the merge which maximizes the goodness-of-fit, i.e. the sum of divergences between adjacent
	segments. The segmentation with the highest goodness-of-fit plus penalty is returned. Ties are resolved
	in favour of fewer segments.

	Parameters:
	X (np.ndarray): Observations in format [observation, dimension].
	alpha (float): Exponent of the Euclidean distances in (0, 2]. Default is 1.
	penalty (Callable): Function of the list of change points returning a penalty added to the goodness-of-fit. Default is zero.

	Returns:
	dict: {
		estimates: 1-based indices of the first observation of each segment (always starting with 1),
		fit: goodness-of-fit after each merge,
		progression: change points after each merge,
	}
	"""
	if penalty is None:
		penalty = _zero_penalty
	X = np.asarray(X, dtype=float)
	n = X.shape[0]
	if n < 2:
		return dict(estimates=[1], fit=[0.0], progression=[[1]])

	energy = EnergyDivergence(X, alpha)
	bounds = list(range(n + 1))  # segment i = [bounds[i], bounds[i + 1])

	def _fit(bounds):
		return sum(energy.divergence(bounds[i], bounds[i + 1], bounds[i + 2]) for i in range(len(bounds) - 2))

	fit = [_fit(bounds)]
	progression = [[b + 1 for b in bounds[:-1]]]
	while len(bounds) > 2:
		current = fit[-1]
		best_fit, best_i = None, None
		for i in range(1, len(bounds) - 1):
			# merging segments i - 1 and i removes boundary bounds[i]
			new_fit = current
			if i > 1:
				new_fit -= energy.divergence(bounds[i - 2], bounds[i - 1], bounds[i])
				new_fit += energy.divergence(bounds[i - 2], bounds[i - 1], bounds[i + 1])
			new_fit -= energy.divergence(bounds[i - 1], bounds[i], bounds[i + 1])
			if i < len(bounds) - 2:
				new_fit -= energy.divergence(bounds[i], bounds[i + 1], bounds[i + 2])
				new_fit += energy.divergence(bounds[i - 1], bounds[i + 1], bounds[i + 2])
			if (best_fit is None) or (new_fit > best_fit):
				best_fit, best_i = new_fit, i
		del bounds[best_i]
		fit.append(best_fit)
		progression.append([b + 1 for b in bounds[:-1]])

	scores = np.array([f + penalty(cps) for f, cps in zip(fit, progression)])
	best = int(np.where(np.isclose(scores, scores.max()))[0].max())

	return dict(
		estimates=progression[best],
		fit=fit,
		progression=progression,
	)
