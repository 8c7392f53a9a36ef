from typing import Any, Dict, List

from tqdm import tqdm

from sitescales.Occupation import Occupation
from sitescales.Site import Site
from sitescales.errors import (DataError, DegenerateComputationError)
from sitescales.utils.fnc_mp import (process_mp)
from sitescales.utils.fnc_upda import (calc_occupation)


def occupation_worker(params: Any, interval: int, cutoff: float, min_period: int) -> (str, dict or None, str or None):
	# params = site data as dict
	site = Site(params)
	type_labels, counts, starts, ends, trusted = site.to_arrays()
	try:
		result = calc_occupation(counts, starts, ends, trusted, interval, cutoff, min_period)
	except (DataError, DegenerateComputationError) as e:
		return site.name, None, str(e)
	except Exception as e:
		return site.name, None, "Error: %s" % (e)
	return site.name, Occupation.from_upda(site.name, type_labels, result).to_dict(), None


def occupation_collect(data: Any, results: List, pbar: tqdm) -> None:
	# data = (site name, occupation dict or None, reason or None)
	results.append(data)
	pbar.update(1)


class MOccupation(object):
	"""
	A class implementing the estimation of site occupation using UPDA for all sites of a model

	:param model: The parent Model object
	:type model: Model
	"""
	def __init__(self, model: 'Model'):

		self.model = model

	def process(self, max_cpus: int = -1, max_queue_size: int = -1) -> (Dict[str, Occupation], List[List[str]]):
		"""
		Estimate the occupation of all sites.

		Sites are processed independently. A site which cannot be estimated is skipped and reported,
		the remaining sites are processed.

		Parameters:
		max_cpus (int): Maximum number of CPUs to use for multiprocessing. Default is -1 (use all available CPUs). Use 1 to process serially.
		max_queue_size (int): Maximum size of the queue for multiprocessing. Default is -1 (automatic).

		Returns:
		(occupations, diagnostics)
			- occupations = {site name: Occupation, ...}
			- diagnostics = [[site name, reason], ...]; skipped sites and fallback-resolved estimates
		"""

		sites = self.model.sites
		args = [self.model.interval, self.model.cutoff, self.model.min_period]
		results = []
		with tqdm(total=len(sites)) as pbar:
			pbar.set_description("Occupation")
			if (max_cpus != 1) and (len(sites) > 50):
				process_mp(occupation_worker, [sites[name].to_dict() for name in sites], args,
						   collect_fnc=occupation_collect, collect_args=[results, pbar],
						   max_cpus=max_cpus, max_queue_size=max_queue_size)
			else:
				for name in sites:
					occupation_collect(occupation_worker(sites[name].to_dict(), *args), results, pbar)

		occupations = {}
		diagnostics = []
		for name, data, reason in sorted(results, key=lambda row: row[0]):
			if data is None:
				print("\nWarning: site %s skipped: %s" % (name, reason))
				diagnostics.append([name, reason])
				continue
			occupation = Occupation(data)
			occupations[name] = occupation
			if occupation.fallback_to_prior:
				diagnostics.append([name, "Posterior fell back to prior"])
			if occupation.multimodal:
				diagnostics.append([name, "Multimodal posterior within occupation window %d-%d" % tuple(occupation.window)])
			if occupation.degenerate:
				diagnostics.append([name, "Single-year types apportioned as 0: %s" % (", ".join(occupation.degenerate))])
			if occupation.unapportioned:
				diagnostics.append([name, "Types outside the occupation window apportioned as 0: %s" % (
					", ".join(occupation.unapportioned))])

		return occupations, diagnostics
