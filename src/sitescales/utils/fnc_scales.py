from itertools import combinations
from typing import List, Callable

import numpy as np
from sklearn.metrics import adjusted_rand_score

from sitescales.utils.fnc_changepoint import (e_agglo)


def calc_agreement_matrix(memberships: np.ndarray) -> np.ndarray:
	"""
	Calculate the matrix of pairwise agreement between partitions using the Adjusted Rand Index.

	Undefined comparisons are scored 0. A partition always agrees perfectly with itself.

	Parameters:
	memberships (np.ndarray): Membership matrix in format [partition, site].

	Returns:
	np.ndarray: Symmetric agreement matrix in format [partition, partition].
	"""
	n = memberships.shape[0]
	A = np.eye(n, dtype=float)
	for i, j in combinations(range(n), 2):
		ari = adjusted_rand_score(memberships[i], memberships[j])
		if not np.isfinite(ari):
			ari = 0
		A[i, j] = ari
		A[j, i] = ari

	return A


def find_breakpoints(A: np.ndarray, fine_n: int = 25, alpha: float = 1.0, fine_alpha: float = 1.5,
					 penalty: Callable = None) -> (List[int], List[int], List[int]):
	"""
	Find breakpoints between scale regimes in the agreement matrix.

	The change-point search is run over the full agreement matrix and separately over the first fine_n
	thresholds (the finest spatial scales) with a different energy exponent. The results are merged.

	Parameters:
	A (np.ndarray): Agreement matrix in format [partition, partition].
	fine_n (int): Number of thresholds of the fine-scale run. Default is 25.
	alpha (float): Energy exponent of the global run. Default is 1.
	fine_alpha (float): Energy exponent of the fine-scale run. Default is 1.5.
	penalty (Callable): Penalty function of the global run. Default is zero.

	Returns:
	(breakpoints, global_cps, fine_cps)
		- breakpoints: Merged 1-based indices of the first threshold of each regime.
		- global_cps: Change points found over the full matrix.
		- fine_cps: Change points found over the fine scales.
	"""
	global_cps = e_agglo(A, alpha=alpha, penalty=penalty)['estimates']
	fine_n = min(fine_n, A.shape[0])
	fine_cps = e_agglo(A[:fine_n, :fine_n], alpha=fine_alpha)['estimates']
	breakpoints = sorted(set(global_cps).union(fine_cps).union([1]))

	return breakpoints, global_cps, fine_cps


def find_prototypes(A: np.ndarray, breakpoints: List[int]) -> List[List[int]]:
	"""
	Find the prototypical partition of each scale regime.

	The prototype is the partition with the highest total agreement with all other partitions within the regime.

	Parameters:
	A (np.ndarray): Agreement matrix in format [partition, partition].
	breakpoints (List[int]): 1-based indices of the first threshold of each regime.

	Returns:
	List[List[int]]: [[first, last, prototype], ...] as 1-based indices.
	"""
	n = A.shape[0]
	bounds = list(breakpoints) + [n + 1]
	regimes = []
	for first, stop in zip(bounds[:-1], bounds[1:]):
		idxs = np.arange(first - 1, stop - 1)
		total = A[np.ix_(idxs, idxs)].sum(axis=1)
		regimes.append([first, stop - 1, int(idxs[np.argmax(total)]) + 1])

	return regimes
