from typing import List

import networkx as nx
import numpy as np


def calc_thresholds(D: np.ndarray, n: int = 100) -> np.ndarray:
	"""
	Calculate distance thresholds at n evenly spaced percentiles of the pairwise distances between sites.

	Threshold i (1-based) is the (i / n) quantile of the distances, so the last threshold equals the maximum distance.

	Parameters:
	D (np.ndarray): Distance matrix in format [site, site].
	n (int): Number of thresholds. Default is 100.

	Returns:
	np.ndarray: Distance thresholds in ascending order.
	"""
	d = D[np.triu_indices(D.shape[0], k=1)]
	if not d.size:
		return np.zeros(n, dtype=float)
	return np.quantile(d, np.arange(1, n + 1) / n)


def calc_partition(S: np.ndarray, D: np.ndarray, threshold: float, seed: int = 1234,
				   resolution: float = 1.0) -> np.ndarray:
	"""
	Partition sites into communities based on their similarity, considering only pairs of sites within a distance threshold.

	The similarity matrix is masked by D <= threshold (self-loops are retained) and partitioned using the
	Louvain method of modularity optimization.

	Parameters:
	S (np.ndarray): Similarity matrix in format [site, site].
	D (np.ndarray): Distance matrix in format [site, site].
	threshold (float): Maximum distance between connected sites.
	seed (int): Seed of the random number generator used by the Louvain method. Default is 1234.
	resolution (float): Resolution of the modularity. Default is 1.

	Returns:
	np.ndarray: Community label of each site. Labels are numbered from 0 in the order of the first site of each community.
	"""
	W = S * (D <= threshold)
	G = nx.from_numpy_array(W)
	communities = nx.community.louvain_communities(G, weight='weight', resolution=resolution, seed=seed)
	membership = np.zeros(S.shape[0], dtype=int)
	for label, community in enumerate(sorted(communities, key=min)):
		membership[list(community)] = label
	
	return membership


def calc_partitions(S: np.ndarray, D: np.ndarray, thresholds: np.ndarray | List[float], seed: int = 1234,
					resolution: float = 1.0) -> np.ndarray:
	"""
	Partition sites at each distance threshold.

	Returns:
	np.ndarray: Membership matrix in format [threshold, site].
	"""
	return np.array([calc_partition(S, D, threshold, seed, resolution) for threshold in thresholds], dtype=int)
