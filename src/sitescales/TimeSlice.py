import copy
from typing import List

import numpy as np

from sitescales.Regime import Regime
from sitescales.utils.fnc_data import (dict_np_to_list, to_array, save_json, load_json)


class TimeSlice(object):
	"""
	A class representing an analysis time slice and the multi-scale community structure of the sites occupied in it.

	:param label: Name of the time slice
	:type label: str

	:param start: Start of the time slice in calendar years
	:type start: float

	:param end: End of the time slice in calendar years
	:type end: float
	"""

	def __init__(self, *args, **kwargs):

		def _from_arguments(label: str, start: float, end: float) -> None:

			self._data = self._empty()
			self._data.update(dict(
				label=str(label),
				start=float(start),
				end=float(end),
			))

		self._data = {}
		if len(args) == 1 and isinstance(args[0], dict):
			self.from_dict(args[0])
		else:
			_from_arguments(*args, **kwargs)

	def _empty(self) -> dict:
		return dict(
			label=None,
			start=None,
			end=None,

			sites=[],
			wares=[],
			counts=None,
			coordinates=None,

			similarity=None,
			distance=None,
			thresholds=None,
			memberships=None,
			agreement=None,
			global_cps=None,
			fine_cps=None,
			breakpoints=None,
			regimes=[],

			skipped=None,
		)

	@property
	def label(self) -> str:
		return self._data['label']

	@property
	def start(self) -> float:
		return self._data['start']

	@property
	def end(self) -> float:
		return self._data['end']

	@property
	def sites(self) -> List[str]:
		"""
		Names of the sites included in the time slice, in the order of the rows of all matrices.

		:return: A list of site names.
		:rtype: List[str]
		"""
		return copy.copy(self._data['sites'])

	@property
	def wares(self) -> List[str]:
		return copy.copy(self._data['wares'])

	@property
	def counts(self) -> np.ndarray | None:
		"""
		Pooled artifact counts in format [site, ware].
		"""
		if self._data['counts'] is None:
			return None
		return self._data['counts'].copy()

	@property
	def coordinates(self) -> np.ndarray | None:
		if self._data['coordinates'] is None:
			return None
		return self._data['coordinates'].copy()

	@property
	def similarity(self) -> np.ndarray | None:
		"""
		Brainerd-Robinson similarity matrix of the sites in format [site, site].
		"""
		if self._data['similarity'] is None:
			return None
		return self._data['similarity'].copy()

	@property
	def distance(self) -> np.ndarray | None:
		"""
		Distance matrix of the sites in format [site, site].
		"""
		if self._data['distance'] is None:
			return None
		return self._data['distance'].copy()

	@property
	def thresholds(self) -> np.ndarray | None:
		"""
		Distance thresholds in map units, one per partition.
		"""
		if self._data['thresholds'] is None:
			return None
		return self._data['thresholds'].copy()

	@property
	def memberships(self) -> np.ndarray | None:
		"""
		Community labels of the sites at each distance threshold.

		:return: An array in format [threshold, site]
		:rtype: np.ndarray or None
		"""
		if self._data['memberships'] is None:
			return None
		return self._data['memberships'].copy()

	@property
	def agreement(self) -> np.ndarray | None:
		"""
		Adjusted Rand Index agreement between all pairs of partitions in format [threshold, threshold].
		"""
		if self._data['agreement'] is None:
			return None
		return self._data['agreement'].copy()

	@property
	def global_cps(self) -> List[int] | None:
		return copy.copy(self._data['global_cps'])

	@property
	def fine_cps(self) -> List[int] | None:
		return copy.copy(self._data['fine_cps'])

	@property
	def breakpoints(self) -> List[int] | None:
		"""
		1-based indices of the first threshold of each scale regime.
		"""
		return copy.copy(self._data['breakpoints'])

	@property
	def breakpoint_distances(self) -> List[float] | None:
		"""
		Distance thresholds of the breakpoints in map units.
		"""
		if (self._data['breakpoints'] is None) or (self._data['thresholds'] is None):
			return None
		return [float(self._data['thresholds'][idx - 1]) for idx in self._data['breakpoints']]

	@property
	def regimes(self) -> List[Regime]:
		return copy.copy(self._data['regimes'])

	@property
	def has_data(self) -> bool:
		return self._data['counts'] is not None

	@property
	def is_processed(self) -> bool:
		return self._data['breakpoints'] is not None

	@property
	def skipped(self) -> str or None:
		"""
		Reason why the scale analysis of the time slice was skipped, or None.
		"""
		return self._data['skipped']

	# Methods

	def set_data(self, sites: List[str], wares: List[str], counts: np.ndarray, coordinates: np.ndarray) -> None:
		"""
		Sets the input data of the time slice and resets all calculated attributes.

		:param sites: Names of the sites.
		:type sites: List[str]
		:param wares: Names of the wares.
		:type wares: List[str]
		:param counts: Pooled artifact counts in format [site, ware].
		:type counts: np.ndarray
		:param coordinates: Coordinates of the sites in format [[x, y], ...].
		:type coordinates: np.ndarray
		"""

		label, start, end = self.label, self.start, self.end
		self._data = self._empty()
		self._data.update(dict(
			label=label,
			start=start,
			end=end,
			sites=list(sites),
			wares=list(wares),
			counts=np.array(counts, dtype=np.float64),
			coordinates=np.array(coordinates, dtype=np.float64),
		))

	def set_skipped(self, reason: str) -> None:
		"""
		Marks the time slice as skipped by the scale analysis.

		:param reason: Reason why the time slice could not be processed.
		:type reason: str
		"""
		self._data['skipped'] = str(reason)

	def set_results(self, similarity: np.ndarray, distance: np.ndarray, thresholds: np.ndarray,
					memberships: np.ndarray, agreement: np.ndarray, global_cps: List[int], fine_cps: List[int],
					breakpoints: List[int], regimes: List[List[int]]) -> None:
		"""
		Sets the results of the scale analysis.

		:param regimes: Scale regimes in format [[first, last, prototype], ...] (1-based threshold indices).
		:type regimes: List[List[int]]
		"""

		self._data.update(dict(
			similarity=np.array(similarity, dtype=np.float64),
			distance=np.array(distance, dtype=np.float64),
			thresholds=np.array(thresholds, dtype=np.float64),
			memberships=np.array(memberships, dtype=int),
			agreement=np.array(agreement, dtype=np.float64),
			global_cps=list(global_cps),
			fine_cps=list(fine_cps),
			breakpoints=list(breakpoints),
			regimes=[
				Regime(first, last, prototype, thresholds[prototype - 1], thresholds[first - 1])
				for first, last, prototype in regimes
			],
			skipped=None,
		))

	def to_dict(self) -> dict:
		data = copy.copy(self._data)
		data['regimes'] = [regime.to_dict() for regime in self._data['regimes']]
		return dict_np_to_list(data)

	def from_dict(self, data: dict) -> None:
		self._data = self._empty()
		self._data.update(copy.deepcopy(data))
		for key in ['counts', 'coordinates', 'similarity', 'distance', 'thresholds', 'agreement']:
			self._data[key] = to_array(self._data[key])
		self._data['memberships'] = to_array(self._data['memberships'], int)
		self._data['regimes'] = [Regime(regime) for regime in self._data['regimes']]

	def save(self, fname: str) -> None:
		"""
		Saves the time slice to a JSON file (gzipped if the file name ends with '.gz').
		"""
		save_json(self.to_dict(), fname)

	@classmethod
	def load(cls, fname: str) -> 'TimeSlice' or None:
		"""
		Loads a time slice from a JSON file.

		:return: A TimeSlice instance or None if the file does not exist.
		:rtype: TimeSlice or None
		"""
		data = load_json(fname)
		if data is None:
			return None
		return cls(data)

	def __repr__(self) -> str:
		return f"<TimeSlice '{self.label}': {self.start}-{self.end}, sites={len(self._data['sites'])}, breakpoints={self.breakpoints}>"
