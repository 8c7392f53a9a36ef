from typing import Any, Dict, List

import numpy as np
from tqdm import tqdm

from sitescales.TimeSlice import TimeSlice
from sitescales.errors import DataError
from sitescales.utils.fnc_mp import (process_mp)
from sitescales.utils.fnc_partition import (calc_thresholds, calc_partitions)
from sitescales.utils.fnc_scales import (calc_agreement_matrix, find_breakpoints, find_prototypes)
from sitescales.utils.fnc_similarity import (calc_similarity, calc_distance_matrix)


def calc_scales(counts: np.ndarray, coordinates: np.ndarray, thresholds_n: int = 100, fine_n: int = 25,
				alpha: float = 1.0, fine_alpha: float = 1.5, resolution: float = 1.0, seed: int = 1234) -> Dict[str, Any]:
	"""
	Find the critical spatial scales of the community structure of sites in one time slice.

	Parameters:
	counts (np.ndarray): Ware counts in format [site, ware].
	coordinates (np.ndarray): Site coordinates in format [[x, y], ...].
	thresholds_n (int): Number of distance thresholds. Default is 100.
	fine_n (int): Number of thresholds of the fine-scale change-point run. Default is 25.
	alpha (float): Energy exponent of the global change-point run. Default is 1.
	fine_alpha (float): Energy exponent of the fine-scale change-point run. Default is 1.5.
	resolution (float): Resolution of the modularity. Default is 1.
	seed (int): Seed of the community detection. Default is 1234.

	Returns:
	dict: Keyword arguments of TimeSlice.set_results.

	Raises:
	DataError: If less than 2 sites are available.
	"""
	if counts.shape[0] < 2:
		raise DataError("Insufficient number of sites: %d" % (counts.shape[0]))

	S = calc_similarity(counts)
	D = calc_distance_matrix(coordinates)
	thresholds = calc_thresholds(D, thresholds_n)
	memberships = calc_partitions(S, D, thresholds, seed, resolution)
	A = calc_agreement_matrix(memberships)
	breakpoints, global_cps, fine_cps = find_breakpoints(A, fine_n, alpha, fine_alpha)
	regimes = find_prototypes(A, breakpoints)

	return dict(
		similarity=S,
		distance=D,
		thresholds=thresholds,
		memberships=memberships,
		agreement=A,
		global_cps=global_cps,
		fine_cps=fine_cps,
		breakpoints=breakpoints,
		regimes=regimes,
	)


def scales_worker(params: Any, thresholds_n: int, fine_n: int, alpha: float, fine_alpha: float,
				  resolution: float, seed: int) -> (str, dict or None, str or None):
	# params = time slice data as dict
	time_slice = TimeSlice(params)
	try:
		results = calc_scales(time_slice.counts, time_slice.coordinates, thresholds_n, fine_n, alpha, fine_alpha,
							  resolution, seed)
	except DataError as e:
		return time_slice.label, None, str(e)
	except Exception as e:
		return time_slice.label, None, "Error: %s" % (e)
	time_slice.set_results(**results)
	return time_slice.label, time_slice.to_dict(), None


def scales_collect(data: Any, results: List, pbar: tqdm) -> None:
	# data = (label, time slice dict or None, reason or None)
	results.append(data)
	pbar.update(1)


class MScales(object):
	"""
	A class implementing the detection of critical spatial scales for all time slices of a model

	:param model: The parent Model object
	:type model: Model
	"""
	def __init__(self, model: 'Model'):

		self.model = model

	def process(self, max_cpus: int = -1, max_queue_size: int = -1) -> (Dict[str, TimeSlice], List[List[str]]):
		"""
		Process the scale analysis of all time slices with pooled data which have not been processed or skipped yet.

		Time slices are processed independently. A time slice which cannot be processed is skipped and
		reported, the remaining time slices are processed.

		Parameters:
		max_cpus (int): Maximum number of CPUs to use for multiprocessing. Default is -1 (use all available CPUs). Use 1 to process serially.
		max_queue_size (int): Maximum size of the queue for multiprocessing. Default is -1 (automatic).

		Returns:
		(time_slices, diagnostics)
			- time_slices = {label: TimeSlice, ...}; processed time slices and skipped time slices marked with the reason
			- diagnostics = [[label, reason], ...]; skipped time slices
		"""

		todo = [time_slice for time_slice in self.model.slices.values()
				if time_slice.has_data and not (time_slice.is_processed or time_slice.skipped)]
		args = [self.model.thresholds, self.model.fine_quartile, self.model.alpha, self.model.fine_alpha,
				self.model.resolution, self.model.seed]
		results = []
		with tqdm(total=len(todo)) as pbar:
			pbar.set_description("Scales")
			if (max_cpus != 1) and (len(todo) > 1):
				process_mp(scales_worker, [time_slice.to_dict() for time_slice in todo], args,
						   collect_fnc=scales_collect, collect_args=[results, pbar],
						   max_cpus=max_cpus, max_queue_size=max_queue_size)
			else:
				for time_slice in todo:
					scales_collect(scales_worker(time_slice.to_dict(), *args), results, pbar)

		time_slices = {}
		diagnostics = []
		for label, data, reason in results:
			if data is None:
				print("\nWarning: time slice %s skipped: %s" % (label, reason))
				diagnostics.append([label, reason])
				time_slices[label] = TimeSlice(self.model.slices[label].to_dict())
				time_slices[label].set_skipped(reason)
				continue
			time_slices[label] = TimeSlice(data)

		return time_slices, diagnostics
