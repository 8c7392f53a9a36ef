from typing import List

import numpy as np


def round_to_interval(values: np.ndarray | List[float], interval: int) -> np.ndarray:
	"""
	Round dates to the nearest multiple of the interval.

	Parameters:
	values (np.ndarray): Calendar dates.
	interval (int): Rounding granularity in years (e.g. 5).

	Returns:
	np.ndarray: Rounded dates as integers.
	"""
	values = np.asarray(values, dtype=float)
	return (np.round(values / interval) * interval).astype(int)


def build_periods(starts: np.ndarray | List[int], ends: np.ndarray | List[int], min_period: int) -> np.ndarray:
	"""
	Derive non-overlapping contiguous periods from a set of date ranges.

	All distinct start and end values are used as period boundaries. A period shorter than min_period
	is absorbed into the preceding period by dropping its start boundary. The first period has no
	predecessor and can therefore remain shorter than min_period.

	Parameters:
	starts (np.ndarray): Rounded start dates of the date ranges.
	ends (np.ndarray): Rounded end dates of the date ranges.
	min_period (int): Minimum length of a period in years.

	Returns:
	np.ndarray: Periods in chronological order in format [[t0, t1], ...].
	"""
	bounds = sorted(set(int(v) for v in starts).union(int(v) for v in ends))
	if len(bounds) < 2:
		return np.zeros((0, 2), dtype=int)
	if len(bounds) > 2:
		i = 1
		while i < len(bounds) - 1:
			if bounds[i + 1] - bounds[i] < min_period:
				del bounds[i]
			else:
				i += 1
	return np.array(list(zip(bounds[:-1], bounds[1:])), dtype=int)
