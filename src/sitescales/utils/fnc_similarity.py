import numpy as np
from scipy.spatial.distance import cdist, pdist, squareform


def calc_similarity(counts: np.ndarray) -> np.ndarray:
	"""
	Calculate the Brainerd-Robinson similarity matrix of sites based on their ware counts.

	The counts of each site are converted to percentages and the similarity of two sites is
	(200 - sum(|p_i - p_j|)) / 200, rounded to 3 decimals. The coefficient ranges from 0 (no wares in common)
	to 1 (identical composition) and does not depend on the total number of artifacts per site.

	Parameters:
	counts (np.ndarray): Counts in format [site, ware].

	Returns:
	np.ndarray: Symmetric similarity matrix in format [site, site].
	"""
	counts = np.asarray(counts, dtype=float)
	s = counts.sum(axis=1)[:, None]
	with np.errstate(divide='ignore', invalid='ignore'):
		percents = np.nan_to_num(100 * counts / s, nan=0, posinf=0, neginf=0)
	S = (200 - cdist(percents, percents, metric='cityblock')) / 200
	S = np.clip(np.round(S, 3), 0, 1)
	
	return S


def calc_distance_matrix(coords: np.ndarray) -> np.ndarray:
	"""
	Calculate the matrix of Euclidean distances between sites.

	Parameters:
	coords (np.ndarray): Coordinates of the sites in a projected coordinate system in format [[x, y], ...].

	Returns:
	np.ndarray: Symmetric distance matrix in format [site, site].
	"""
	coords = np.asarray(coords, dtype=float)
	if coords.shape[0] < 2:
		return np.zeros((coords.shape[0], coords.shape[0]), dtype=float)
	return squareform(pdist(coords, metric='euclidean'))
