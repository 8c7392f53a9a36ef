from typing import List, Dict, Any

import numpy as np
from scipy.stats import norm

from sitescales.errors import (DataError, DegenerateComputationError)
from sitescales.utils.fnc_periods import (round_to_interval, build_periods)

# Density of N(1, 1) at 1; used where the null model collapses onto a certain period
DEGENERATE_DENSITY = float(norm(1, 1).pdf(1))


def _normalize(values: np.ndarray) -> np.ndarray:
	# Normalize to sum 1; all-zero (or undefined) input gives zeros
	values = np.nan_to_num(np.asarray(values, dtype=float), nan=0, posinf=0, neginf=0)
	s = values.sum()
	if s > 0:
		return values / s
	return np.zeros_like(values)


def _normalize_columns(values: np.ndarray) -> np.ndarray:
	s = values.sum(axis=0)
	with np.errstate(divide='ignore', invalid='ignore'):
		res = values / s
	return np.nan_to_num(res, nan=0, posinf=0, neginf=0)


def calc_overlap(starts: np.ndarray, ends: np.ndarray, periods: np.ndarray) -> (np.ndarray, np.ndarray):
	"""
	Calculate the uniform overlap scores of artifact types with periods.

	A type covers the integer years start..end and a period [t0, t1) the years t0..t1. The score is the
	fraction of the type's duration which falls within the period:
	u = max(0, (|years_type & years_period| - 1) / (|years_type| - 1))

	Parameters:
	starts (np.ndarray): Rounded start dates of the types.
	ends (np.ndarray): Rounded end dates of the types.
	periods (np.ndarray): Periods in format [[t0, t1], ...].

	Returns:
	(u, degenerate)
		- u: Overlap scores in format [type, period].
		- degenerate: Boolean mask of types spanning a single year (scores fall back to 0).
	"""
	starts = np.asarray(starts, dtype=int)[:, None]
	ends = np.asarray(ends, dtype=int)[:, None]
	t0 = periods[:, 0][None, :]
	t1 = periods[:, 1][None, :]
	intersect = np.maximum(0, np.minimum(ends, t1) - np.maximum(starts, t0) + 1)
	duration = (ends - starts).astype(float)
	with np.errstate(divide='ignore', invalid='ignore'):
		u = (intersect - 1) / duration
	u = np.nan_to_num(u, nan=0, posinf=0, neginf=0)
	u = np.maximum(0, u)

	return u, (duration[:, 0] <= 0)


def calc_prior(uniform: np.ndarray, trusted: np.ndarray) -> np.ndarray:
	"""
	Prior probability of occupation per period based on the trusted chronology subset.

	Parameters:
	uniform (np.ndarray): Uniform apportionment in format [type, period].
	trusted (np.ndarray): Boolean mask of types belonging to the trusted chronology.

	Returns:
	np.ndarray: Prior probabilities per period (sum 1, or all zero if there is no trusted evidence).
	"""
	return _normalize(uniform[trusted].sum(axis=0))


def calc_conditional(u: np.ndarray, uniform: np.ndarray) -> (np.ndarray, np.ndarray):
	"""
	Conditional probability of the observed apportionment per period under a uniform deposition model.

	pij = column-normalized uniform apportionment (observed)
	uij = column-normalized overlap scores (expected under uniform deposition)
	sd = sqrt(uij * (1 - uij) / ceil(column count))
	The likelihood of each type and period is the density of N(uij, sd) at pij. Where uij - sd == 1
	the density is substituted by the constant DEGENERATE_DENSITY. Undefined likelihoods are treated
	as missing values.

	Parameters:
	u (np.ndarray): Overlap scores in format [type, period].
	uniform (np.ndarray): Uniform apportionment in format [type, period].

	Returns:
	(conditional, likelihoods)
		- conditional: Conditional probability per period (sum 1, or all zero).
		- likelihoods: Likelihood matrix in format [type, period] with NaN for missing values.
	"""
	pij = _normalize_columns(uniform)
	uij = _normalize_columns(u)
	n = np.ceil(uniform.sum(axis=0))[None, :]
	with np.errstate(divide='ignore', invalid='ignore'):
		sd = np.sqrt(uij * (1 - uij) / n)
		likelihoods = norm(uij, sd).pdf(pij)
	likelihoods = np.asarray(likelihoods, dtype=float)
	likelihoods[np.isclose(uij - sd, 1)] = DEGENERATE_DENSITY
	likelihoods[~np.isfinite(likelihoods)] = np.nan

	conditional = np.zeros(u.shape[1], dtype=float)
	mask = ~np.isnan(likelihoods).all(axis=0)
	conditional[mask] = np.nanmean(likelihoods[:, mask], axis=0)

	return _normalize(conditional), likelihoods


def calc_posterior(prior: np.ndarray, conditional: np.ndarray) -> (np.ndarray, bool):
	"""
	Posterior probability of occupation per period.

	Falls back to the prior if the data carry no information (the conditional equals the prior or the
	product of prior and conditional sums to zero).

	Returns:
	(posterior, fallback)
		- posterior: Posterior probabilities per period.
		- fallback: True if the posterior fell back to the prior.
	"""
	posterior = _normalize(prior * conditional)
	if (not posterior.sum()) or np.allclose(conditional, prior):
		return prior.copy(), True
	return posterior, False


def calc_window(periods: np.ndarray, posterior: np.ndarray, cutoff: float) -> (np.ndarray, bool):
	"""
	Occupation window given by the periods whose posterior exceeds cutoff * max(posterior).

	Returns:
	(window, multimodal)
		- window: Boolean mask of periods within the window (contiguous from the first to the last
		  period exceeding the threshold).
		- multimodal: True if a period inside the window falls below the threshold.
	"""
	window = np.zeros(posterior.shape[0], dtype=bool)
	if not posterior.size or (posterior.max() <= 0):
		return window, False
	above = posterior > cutoff * posterior.max()
	if not above.any():
		above = posterior >= posterior.max()
	idxs = np.where(above)[0]
	window[idxs.min():idxs.max() + 1] = True
	multimodal = bool((~above[window]).any())

	return window, multimodal


def apportion_posterior(uniform: np.ndarray, posterior: np.ndarray, counts: np.ndarray,
						window: np.ndarray) -> np.ndarray:
	"""
	Apportion the counts of each type to periods according to the posterior.

	Each row of the uniform apportionment is weighted by the posterior, normalized and rescaled to the
	count of the type. Counts falling outside the occupation window are reallocated to the periods inside
	the window in proportion to their share.

	Parameters:
	uniform (np.ndarray): Uniform apportionment in format [type, period].
	posterior (np.ndarray): Posterior probabilities per period.
	counts (np.ndarray): Counts of the types.
	window (np.ndarray): Boolean mask of periods inside the occupation window.

	Returns:
	np.ndarray: Posterior apportionment in format [type, period].
	"""
	weighted = uniform * posterior[None, :]
	s = weighted.sum(axis=1)[:, None]
	with np.errstate(divide='ignore', invalid='ignore'):
		apportioned = weighted / s * counts[:, None]
	apportioned = np.nan_to_num(apportioned, nan=0, posinf=0, neginf=0)

	extra = apportioned[:, ~window].sum(axis=1)[:, None]
	inside = apportioned[:, window]
	s = inside.sum(axis=1)[:, None]
	with np.errstate(divide='ignore', invalid='ignore'):
		inside = np.nan_to_num(inside + extra * inside / s, nan=0, posinf=0, neginf=0)
	apportioned[:, window] = inside
	apportioned[:, ~window] = 0

	return apportioned


def calc_occupation(counts: np.ndarray | List[int], starts: np.ndarray | List[float],
					ends: np.ndarray | List[float], trusted: np.ndarray | List[bool],
					interval: int = 5, cutoff: float = 0.1, min_period: int = 25) -> Dict[str, Any]:
	"""
	Estimate the occupation of a site using Uniform Probability Density Analysis (UPDA).

	Parameters:
	counts (np.ndarray): Counts of the artifact types.
	starts (np.ndarray): Start dates of the artifact types.
	ends (np.ndarray): End dates of the artifact types.
	trusted (np.ndarray): Flags marking types of the trusted chronology subset.
	interval (int): Rounding granularity of the dates.
	cutoff (float): Occupation window threshold as a fraction of the peak posterior.
	min_period (int): Minimum length of a period.

	Returns:
	dict: {
		retained: indices of the retained types (count > 0),
		periods: [[t0, t1], ...],
		uniform: uniform apportionment [retained type, period],
		posterior_counts: posterior apportionment [retained type, period],
		prior, conditional, posterior: probabilities per period,
		window: [lower, upper],
		fallback_to_prior, multimodal: bool,
		degenerate: indices of retained types spanning a single year,
		unapportioned: indices of retained types (other than single-year types) with no posterior weight in any period,
	}

	Raises:
	DataError: If less than 2 types are retained or none of them belongs to the trusted chronology.
	DegenerateComputationError: If no period receives a non-zero posterior (e.g. all trusted types span a single year).
	"""
	counts = np.asarray(counts, dtype=float)
	trusted = np.asarray(trusted, dtype=bool)
	retained = np.where(counts > 0)[0]
	if retained.size < 2:
		raise DataError("Insufficient number of retained artifact types: %d" % (retained.size))
	if not trusted[retained].any():
		raise DataError("No retained artifact types of the trusted chronology")

	counts = counts[retained]
	trusted = trusted[retained]
	starts = round_to_interval(np.asarray(starts)[retained], interval)
	ends = round_to_interval(np.asarray(ends)[retained], interval)
	starts, ends = np.minimum(starts, ends), np.maximum(starts, ends)

	periods = build_periods(starts, ends, min_period)

	u, degenerate = calc_overlap(starts, ends, periods)
	uniform = u * counts[:, None]

	prior = calc_prior(uniform, trusted)
	conditional, _ = calc_conditional(u, uniform)
	posterior, fallback = calc_posterior(prior, conditional)
	window, multimodal = calc_window(periods, posterior, cutoff)
	if not window.any():
		raise DegenerateComputationError("No period with non-zero posterior probability")
	posterior_counts = apportion_posterior(uniform, posterior, counts, window)
	unapportioned = (posterior_counts.sum(axis=1) <= 0) & (~degenerate)

	lower = int(periods[window][0, 0])
	upper = int(periods[window][-1, 1])

	return dict(
		retained=retained,
		periods=periods,
		uniform=uniform,
		posterior_counts=posterior_counts,
		prior=prior,
		conditional=conditional,
		posterior=posterior,
		window=[lower, upper],
		fallback_to_prior=fallback,
		multimodal=multimodal,
		degenerate=retained[degenerate],
		unapportioned=retained[unapportioned],
	)
