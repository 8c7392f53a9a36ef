from collections import defaultdict
from typing import Dict, List

import numpy as np

from sitescales.TimeSlice import TimeSlice


class MRollup(object):
	"""
	A class implementing the pooling of apportioned type counts into ware counts per time slice

	:param model: The parent Model object
	:type model: Model
	"""
	def __init__(self, model: 'Model'):

		self.model = model

	def get_ware(self, type_label: str) -> str or None:
		# If no lookup is provided, each type is its own ware
		if not self.model.wares:
			return type_label
		return self.model.wares.get(type_label)

	def rollup(self, label: str, start: float, end: float) -> (TimeSlice, List[List[str]]):
		"""
		Pool the posterior apportionment of all estimated and located sites into ware counts for one time slice.

		Sites with a total count below Model.min_count are excluded.

		Parameters:
		label (str): Name of the time slice.
		start (float): Start of the time slice.
		end (float): End of the time slice.

		Returns:
		(time_slice, diagnostics)
			- time_slice: TimeSlice populated with sites, wares, counts and coordinates.
			- diagnostics = [[unit, reason], ...]; types missing in the ware lookup
		"""

		diagnostics = []
		missing = set()
		site_counts = {}  # {site: {ware: count, ...}, ...}
		for name, occupation in sorted(self.model.occupations.items()):
			site = self.model.sites[name]
			if not site.is_located:
				continue
			counts = defaultdict(float)
			for type_label, value in occupation.pool(start, end).items():
				ware = self.get_ware(type_label)
				if ware is None:
					missing.add(type_label)
					continue
				counts[ware] += value
			if sum(counts.values()) >= self.model.min_count:
				site_counts[name] = counts
		if missing:
			diagnostics.append([label, "Types not found in ware lookup: %s" % (", ".join(sorted(missing)))])

		sites = sorted(site_counts.keys())
		wares = sorted(set().union(*[site_counts[name].keys() for name in sites]))
		counts = np.zeros((len(sites), len(wares)), dtype=float)
		for i, name in enumerate(sites):
			for j, ware in enumerate(wares):
				counts[i, j] = site_counts[name].get(ware, 0)
		coordinates = np.array([self.model.sites[name].coordinates for name in sites], dtype=float).reshape((-1, 2))

		time_slice = TimeSlice(label, start, end)
		time_slice.set_data(sites, wares, counts, coordinates)

		return time_slice, diagnostics

	def process(self) -> (Dict[str, TimeSlice], List[List[str]]):
		"""
		Pool ware counts for all time slices of the model.

		Returns:
		(time_slices, diagnostics)
			- time_slices = {label: TimeSlice, ...}
			- diagnostics = [[unit, reason], ...]
		"""

		time_slices = {}
		diagnostics = []
		for label, start, end in self.model.time_slices:
			time_slices[label], diags = self.rollup(label, start, end)
			diagnostics += diags

		return time_slices, diagnostics
