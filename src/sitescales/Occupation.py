import copy
from collections import defaultdict
from typing import List, Dict

import numpy as np

from sitescales.utils.fnc_data import (dict_np_to_list, to_array)


class Occupation(object):
	"""
	A class representing the occupation estimate of a site calculated using UPDA.

	The estimate is immutable once created. Arrays returned by its properties are copies.

	:param site: Name of the site
	:type site: str

	:param type_labels: Labels of the artifact types retained for the estimate (count > 0)
	:type type_labels: List[str]

	:param periods: Periods in format [[t0, t1], ...]
	:type periods: np.ndarray

	:param uniform: Counts apportioned to periods assuming uniform deposition, in format [type, period]
	:type uniform: np.ndarray

	:param posterior_counts: Counts apportioned to periods according to the posterior, in format [type, period]
	:type posterior_counts: np.ndarray

	:param prior: Prior probability of occupation per period
	:type prior: np.ndarray

	:param conditional: Conditional probability of occupation per period
	:type conditional: np.ndarray

	:param posterior: Posterior probability of occupation per period
	:type posterior: np.ndarray

	:param window: Occupation window [lower, upper]
	:type window: List[int]

	:param fallback_to_prior: True if the posterior fell back to the prior
	:type fallback_to_prior: bool

	:param multimodal: True if the posterior is multimodal within the occupation window
	:type multimodal: bool

	:param degenerate: Labels of types spanning a single year
	:type degenerate: List[str]

	:param unapportioned: Labels of types with a count which received no posterior weight in any period
	:type unapportioned: List[str]
	"""

	def __init__(self, *args, **kwargs):

		def _from_arguments(site: str, type_labels: List[str], periods: np.ndarray, uniform: np.ndarray,
							posterior_counts: np.ndarray, prior: np.ndarray, conditional: np.ndarray,
							posterior: np.ndarray, window: List[int], fallback_to_prior: bool = False,
							multimodal: bool = False, degenerate: List[str] = None,
							unapportioned: List[str] = None) -> None:

			self._data = dict(
				site=site,
				type_labels=list(type_labels),
				periods=np.array(periods, dtype=int),
				uniform=np.array(uniform, dtype=np.float64),
				posterior_counts=np.array(posterior_counts, dtype=np.float64),
				prior=np.array(prior, dtype=np.float64),
				conditional=np.array(conditional, dtype=np.float64),
				posterior=np.array(posterior, dtype=np.float64),
				window=list(window),
				fallback_to_prior=bool(fallback_to_prior),
				multimodal=bool(multimodal),
				degenerate=list(degenerate or []),
				unapportioned=list(unapportioned or []),
			)

		self._data = {}
		if len(args) == 1 and isinstance(args[0], dict):
			self.from_dict(args[0])
		else:
			_from_arguments(*args, **kwargs)

	@classmethod
	def from_upda(cls, site: str, type_labels: List[str], result: dict) -> 'Occupation':
		"""
		Creates an occupation estimate from the output of calc_occupation.

		:param site: Name of the site.
		:type site: str
		:param type_labels: Labels of all observations of the site (before filtering zero counts).
		:type type_labels: List[str]
		:param result: Dictionary returned by calc_occupation.
		:type result: dict
		:return: A new Occupation instance.
		:rtype: Occupation
		"""

		return cls(
			site,
			[type_labels[idx] for idx in result['retained']],
			result['periods'],
			result['uniform'],
			result['posterior_counts'],
			result['prior'],
			result['conditional'],
			result['posterior'],
			result['window'],
			result['fallback_to_prior'],
			result['multimodal'],
			[type_labels[idx] for idx in result['degenerate']],
			[type_labels[idx] for idx in result['unapportioned']],
		)

	@property
	def site(self) -> str:
		return self._data['site']

	@property
	def type_labels(self) -> List[str]:
		return copy.copy(self._data['type_labels'])

	@property
	def periods(self) -> np.ndarray:
		"""
		Periods used for the estimate.

		:return: An array in format [[t0, t1], ...]
		:rtype: np.ndarray
		"""
		return self._data['periods'].copy()

	@property
	def uniform(self) -> np.ndarray:
		"""
		Uniform apportionment of type counts to periods.

		:return: An array in format [type, period]
		:rtype: np.ndarray
		"""
		return self._data['uniform'].copy()

	@property
	def posterior_counts(self) -> np.ndarray:
		"""
		Posterior apportionment of type counts to periods, restricted to the occupation window.

		:return: An array in format [type, period]
		:rtype: np.ndarray
		"""
		return self._data['posterior_counts'].copy()

	@property
	def prior(self) -> np.ndarray:
		return self._data['prior'].copy()

	@property
	def conditional(self) -> np.ndarray:
		return self._data['conditional'].copy()

	@property
	def posterior(self) -> np.ndarray:
		return self._data['posterior'].copy()

	@property
	def window(self) -> List[int]:
		"""
		Occupation window of the site.

		:return: [lower, upper] in calendar years; bounds of the first and last period within the window
		:rtype: List[int]
		"""
		return copy.copy(self._data['window'])

	@property
	def fallback_to_prior(self) -> bool:
		return self._data['fallback_to_prior']

	@property
	def multimodal(self) -> bool:
		return self._data['multimodal']

	@property
	def degenerate(self) -> List[str]:
		return copy.copy(self._data['degenerate'])

	@property
	def unapportioned(self) -> List[str]:
		"""
		Labels of types whose count could not be apportioned to any period because the posterior of all their
		periods is 0. Their posterior apportionment rows are 0.
		"""
		return copy.copy(self._data['unapportioned'])

	# Methods

	def pool(self, start: float, end: float, posterior: bool = True) -> Dict[str, float]:
		"""
		Pools the apportioned counts of each type falling within a time slice.

		Each period contributes the fraction of its length which lies within [start, end).

		:param start: Start of the time slice.
		:type start: float
		:param end: End of the time slice.
		:type end: float
		:param posterior: If True, use the posterior apportionment, otherwise the uniform apportionment. Defaults to True.
		:type posterior: bool, optional
		:return: {type_label: count, ...}
		:rtype: Dict[str, float]
		"""

		periods = self._data['periods']
		counts = self._data['posterior_counts'] if posterior else self._data['uniform']
		lengths = (periods[:, 1] - periods[:, 0]).astype(float)
		overlap = np.maximum(0, np.minimum(periods[:, 1], end) - np.maximum(periods[:, 0], start))
		with np.errstate(divide='ignore', invalid='ignore'):
			weights = np.nan_to_num(overlap / lengths, nan=0, posinf=0, neginf=0)
		pooled = defaultdict(float)
		for label, value in zip(self._data['type_labels'], (counts * weights[None, :]).sum(axis=1)):
			pooled[label] += float(value)
		return dict(pooled)

	def to_dict(self) -> dict:
		return dict_np_to_list(copy.deepcopy(self._data))

	def from_dict(self, data: dict) -> None:
		self._data = copy.deepcopy(data)
		self._data.setdefault('unapportioned', [])
		self._data['periods'] = to_array(self._data['periods'], int).reshape((-1, 2))
		for key in ['uniform', 'posterior_counts']:
			self._data[key] = to_array(self._data[key]).reshape((len(self._data['type_labels']), -1))
		for key in ['prior', 'conditional', 'posterior']:
			self._data[key] = to_array(self._data[key])

	def __repr__(self) -> str:
		return f"<Occupation '{self.site}': periods={len(self._data['periods'])}, window={self.window}, fallback_to_prior={self.fallback_to_prior}, multimodal={self.multimodal}>"
