import copy
import os
from numbers import Real
from typing import List, Dict, Any

from sitescales.Occupation import Occupation
from sitescales.Site import Site
from sitescales.TimeSlice import TimeSlice
from sitescales.errors import ConfigurationError
from sitescales.mhelpers.MOccupation import MOccupation
from sitescales.mhelpers.MRollup import MRollup
from sitescales.mhelpers.MScales import MScales
from sitescales.utils.fnc_data import (save_json, load_json)
from sitescales.utils.fnc_load import (load_observations, load_coordinates, load_wares, load_time_slices)


class Model(object):
	"""
	A class representing the occupation of archaeological sites and the multi-scale community structure of their
	artifact assemblages over time.

	:param directory: Working directory for model data (default is "model").
	:type directory: str

	:param sites: List of sites as instances of the class Site
	:type sites: list

	:param wares: Lookup of artifact types to wares; if empty, each type is treated as a ware
	:type wares: dict

	:param time_slices: Analysis time slices in format [(label, start, end), ...]
	:type time_slices: list

	:param interval: Rounding granularity of type dates in years (default is 5).
	:type interval: int

	:param cutoff: Occupation window threshold as a fraction of the peak posterior (default is 0.1).
	:type cutoff: float

	:param min_period: Minimum length of a period in years (default is 25).
	:type min_period: int

	:param min_count: Minimum artifact count of a site in a time slice (default is 10).
	:type min_count: int

	:param thresholds: Number of distance thresholds (default is 100).
	:type thresholds: int

	:param fine_quartile: Number of the lowest distance thresholds searched separately for change points (default is 25).
	:type fine_quartile: int

	:param alpha: Energy exponent of the global change-point search in (0, 2] (default is 1).
	:type alpha: float

	:param fine_alpha: Energy exponent of the fine-scale change-point search in (0, 2] (default is 1.5).
	:type fine_alpha: float

	:param resolution: Resolution of the modularity used for community detection (default is 1).
	:type resolution: float

	:param seed: Seed of the random number generator used for community detection (default is 1234).
	:type seed: int

	:param overwrite: Flag indicating whether to overwrite existing data in the model directory (default is False).
	:type overwrite: bool
	"""

	def __init__(self, **kwargs):

		defaults = dict(
			directory='model',
			sites=[],
			wares={},
			time_slices=[],
			interval=5,
			cutoff=0.1,
			min_period=25,
			min_count=10,
			thresholds=100,
			fine_quartile=25,
			alpha=1.0,
			fine_alpha=1.5,
			resolution=1.0,
			seed=1234,
			overwrite=False,
		)

		# Check arguments
		for key in kwargs:
			if key not in defaults:
				raise ConfigurationError("Invalid argument: %s" % key)
			if not self._check_type(kwargs[key], defaults[key]):
				raise ConfigurationError("Invalid argument type for %s: %s" % (key, type(kwargs[key]).__name__))

		overwrite = kwargs.pop('overwrite', False)

		for site in kwargs.get('sites', []):
			if not isinstance(site, Site):
				raise ConfigurationError("Invalid site format: %s. Site expected." % (type(site).__name__))

		self._data = self._assigned()
		self._data.update(self._calculated())

		# Attempt to load data from directory
		if ('directory' in kwargs) and (not overwrite) and ('sites' not in kwargs):
			if self.load(kwargs['directory']):
				del kwargs['directory']
				self.update_params(**kwargs)
				return

		# Update missing keys in kwargs with defaults
		kwargs = dict([(key, kwargs[key] if key in kwargs else defaults[key]) for key in defaults if key != 'overwrite'])

		# Convert sites to dict
		names = [site.name for site in kwargs['sites']]
		if len(set(names)) < len(names):
			raise ConfigurationError("Duplicate site names found")
		kwargs['sites'] = dict([(site.name, site) for site in kwargs['sites']])
		kwargs['wares'] = dict(kwargs['wares'])
		kwargs['time_slices'] = [list(row) for row in kwargs['time_slices']]

		self.validate(kwargs)
		self._data.update(kwargs)

		# Create model directory if needed
		self._data['directory'] = self._create_dir(self.directory, overwrite)

	def _check_type(self, value: Any, default: Any) -> bool:
		if isinstance(default, bool):
			return isinstance(value, bool)
		if isinstance(default, float):
			return isinstance(value, Real) and not isinstance(value, bool)
		if isinstance(default, int):
			return isinstance(value, int) and not isinstance(value, bool)
		if isinstance(default, list):
			return isinstance(value, (list, tuple))
		return isinstance(value, type(default))

	def _assigned(self) -> Dict[str, Any]:
		return dict(
			directory=None,
			sites=None,
			wares=None,
			time_slices=None,
			interval=None,
			cutoff=None,
			min_period=None,
			min_count=None,
			thresholds=None,
			fine_quartile=None,
			alpha=None,
			fine_alpha=None,
			resolution=None,
			seed=None,
		)

	def _calculated(self) -> Dict[str, Any]:
		return dict(
			occupations=None,
			slices=None,
			diagnostics=None,
		)

	def _create_dir(self, directory: str, overwrite: bool) -> str:
		if os.path.isdir(directory) and (overwrite or (not os.listdir(directory))):
			return directory

		parent_dir = os.path.dirname(directory)
		if not parent_dir:
			parent_dir = "."
		n = None
		for d in os.listdir(parent_dir):
			if d == os.path.basename(directory):
				n = 0 if n is None else n
			elif d.startswith(os.path.basename(directory) + "_"):
				suffix = d.split("_")[-1]
				if suffix.isdigit():
					n = max(n or 0, int(suffix))
		if n is not None:
			n += 1
			directory = os.path.join(parent_dir, os.path.basename(directory) + "_" + str(n))
		os.makedirs(directory)
		return directory

	@staticmethod
	def validate(params: Dict[str, Any]) -> None:
		"""
		Validates model parameters.

		:param params: Dictionary of model parameters. Only the parameters present are checked.
		:type params: dict
		:raises ConfigurationError: If a parameter value is invalid.
		"""

		def _check(key, condition, message):
			if (key in params) and (params[key] is not None) and (not condition(params[key])):
				raise ConfigurationError("Invalid value of %s: %s (%s)" % (key, params[key], message))

		_check('interval', lambda v: v > 0, "must be > 0")
		_check('min_period', lambda v: v > 0, "must be > 0")
		_check('cutoff', lambda v: 0 < v <= 1, "must be in (0, 1]")
		_check('min_count', lambda v: v >= 0, "must be >= 0")
		_check('thresholds', lambda v: v >= 2, "must be >= 2")
		_check('alpha', lambda v: 0 < v <= 2, "must be in (0, 2]")
		_check('fine_alpha', lambda v: 0 < v <= 2, "must be in (0, 2]")
		_check('resolution', lambda v: v > 0, "must be > 0")
		if params.get('fine_quartile') is not None:
			thresholds = params.get('thresholds') or 100
			if not (2 <= params['fine_quartile'] <= thresholds):
				raise ConfigurationError("Invalid value of fine_quartile: %s (must be in [2, %d])" % (
					params['fine_quartile'], thresholds))

		labels = set()
		for row in (params.get('time_slices') or []):
			if len(row) != 3:
				raise ConfigurationError("Invalid time slice: %s (format (label, start, end) expected)" % (row,))
			label, start, end = row
			if not (isinstance(start, Real) and isinstance(end, Real)) or (start >= end):
				raise ConfigurationError("Invalid time slice boundaries: %s" % (row,))
			if label in labels:
				raise ConfigurationError("Duplicate time slice: %s" % (label))
			labels.add(label)

	# Assigned properties

	@property
	def directory(self) -> str:
		"""
		The directory where the model data is stored.

		:return: The directory where the model data is stored.
		:rtype: str
		"""
		return self._data['directory']

	@property
	def sites(self) -> Dict[str, Site]:
		"""
		A dictionary of sites associated with the model.

		:return: A dictionary where the keys are the site names and the values are Site objects.
		:rtype: Dict[str, Site]
		"""
		if self._data['sites'] is None:
			return {}
		return self._data['sites']

	@property
	def wares(self) -> Dict[str, str]:
		"""
		Lookup of artifact types to wares.

		:return: {type_label: ware, ...}
		:rtype: Dict[str, str]
		"""
		if self._data['wares'] is None:
			return {}
		return self._data['wares']

	@property
	def time_slices(self) -> List[List]:
		"""
		Analysis time slices.

		:return: [[label, start, end], ...]
		:rtype: List[List]
		"""
		if self._data['time_slices'] is None:
			return []
		return copy.deepcopy(self._data['time_slices'])

	@property
	def interval(self) -> int:
		return self._data['interval']

	@property
	def cutoff(self) -> float:
		"""
		Occupation window threshold as a fraction of the peak posterior.
		"""
		return self._data['cutoff']

	@property
	def min_period(self) -> int:
		return self._data['min_period']

	@property
	def min_count(self) -> int:
		"""
		Minimum artifact count of a site in a time slice for it to be included in the scale analysis.
		"""
		return self._data['min_count']

	@property
	def thresholds(self) -> int:
		return self._data['thresholds']

	@property
	def fine_quartile(self) -> int:
		return self._data['fine_quartile']

	@property
	def alpha(self) -> float:
		return self._data['alpha']

	@property
	def fine_alpha(self) -> float:
		return self._data['fine_alpha']

	@property
	def resolution(self) -> float:
		return self._data['resolution']

	@property
	def seed(self) -> int:
		"""
		Seed of the random number generator used for community detection.
		"""
		return self._data['seed']

	# Calculated properties

	@property
	def occupations(self) -> Dict[str, Occupation]:
		"""
		Occupation estimates of the sites.

		:return: {site name: Occupation, ...}; sites which could not be estimated are missing
		:rtype: Dict[str, Occupation]
		"""
		if self._data['occupations'] is None:
			return {}
		return dict(self._data['occupations'])

	@property
	def slices(self) -> Dict[str, TimeSlice]:
		"""
		Time slices with pooled ware counts and results of the scale analysis.

		:return: {label: TimeSlice, ...}
		:rtype: Dict[str, TimeSlice]
		"""
		if self._data['slices'] is None:
			return {}
		return dict(self._data['slices'])

	@property
	def diagnostics(self) -> List[List[str]]:
		"""
		Records of skipped units of work and of fallback-resolved computations.

		:return: [[unit, reason], ...]; unit = site name or time slice label
		:rtype: List[List[str]]
		"""
		if self._data['diagnostics'] is None:
			return []
		return copy.deepcopy(self._data['diagnostics'])

	@property
	def has_data(self) -> bool:
		return (len(self.sites) > 0)

	@property
	def is_estimated(self) -> bool:
		return self._data['occupations'] is not None

	@property
	def is_pooled(self) -> bool:
		return self._data['slices'] is not None

	@property
	def is_processed(self) -> bool:
		"""
		Checks if the scale analysis has been performed for all time slices which could be processed.
		"""
		if not self.is_pooled:
			return False
		for time_slice in self._data['slices'].values():
			if not (time_slice.is_processed or time_slice.skipped):
				return False
		return True

	# Methods

	def add_site(self, *args, **kwargs) -> None:
		"""
		Adds a site to the model.

		Accepts either a single argument of type Site or a set of arguments and keyword arguments to create a new Site instance.

		:param args: Either a single argument of type Site or multiple arguments to create a new Site instance.
		:param kwargs: Keyword arguments to create a new Site instance.
		:return: None
		"""

		self.reset_model()
		if len(args) == 1 and isinstance(args[0], Site):
			site = args[0].copy()
		else:
			site = Site(*args, **kwargs)
		self._data['sites'][site.name] = site

	def del_site(self, name: str) -> None:
		"""
		Deletes a site from the model.

		:param name: The name of the site to be deleted.
		:type name: str
		:return: None
		"""

		if name in self._data['sites']:
			del self._data['sites'][name]
			self.reset_model()

	def import_csv(self, fobservations: str, fcoordinates: str = None, fwares: str = None,
				   ftime_slices: str = None) -> None:
		"""
		Loads sites and parameters from semicolon-separated CSV files with one header line.

		- fobservations: Site; Type; Count; Start; End; Trusted
		- fcoordinates: Site; X; Y
		- fwares: Type; Ware
		- ftime_slices: Label; Start; End

		:param fobservations: File path of the artifact type observations.
		:type fobservations: str
		:param fcoordinates: File path of the site coordinates.
		:type fcoordinates: str, optional
		:param fwares: File path of the lookup of types to wares.
		:type fwares: str, optional
		:param ftime_slices: File path of the time slices.
		:type ftime_slices: str, optional
		:raises DataError: If an input file does not exist or is not formatted correctly.
		:raises ConfigurationError: If the time slices are invalid.
		:return: None
		"""

		observations = load_observations(fobservations)
		coordinates = {}
		if fcoordinates is not None:
			coordinates = load_coordinates(fcoordinates)
		params = {}
		if fwares is not None:
			params['wares'] = load_wares(fwares)
		if ftime_slices is not None:
			params['time_slices'] = [list(row) for row in load_time_slices(ftime_slices)]
		self.validate(params)

		self._data['sites'] = {}
		for name in sorted(set(observations.keys()).union(coordinates.keys())):
			x, y = coordinates.get(name, (None, None))
			self._data['sites'][name] = Site(name, x, y)
			for row in observations.get(name, []):
				self._data['sites'][name].add_observation(*row)
		self._data.update(params)
		self.reset_model()

	def _reset_slices(self) -> None:
		# Time slices are pooled again; drop them together with their diagnostics
		labels = set(self._data['slices'] or {})
		if self._data['diagnostics'] is not None:
			self._data['diagnostics'] = [row for row in self._data['diagnostics'] if row[0] not in labels]
		self._data['slices'] = None

	def reset_model(self) -> None:
		"""
		Resets all calculated properties of the model to their initial state.

		:return: None
		"""
		self._data.update(self._calculated())

	def update_params(self, **kwargs) -> (Dict[str, List], set):
		"""
		Updates the model parameters and resets calculated attributes if necessary.

		:param kwargs: Keyword arguments corresponding to the model parameters.
		:type kwargs: dict
		:return: (reset_assigned, reset_calculated);
			reset_assigned: {parameter: [old value, new value], ...}; parameters and their values that have been updated;
			reset_calculated: {attribute, ...}; calculated attributes that have been reset
		:rtype: (Dict[str, List], set)
		:raises ConfigurationError: If a parameter value is invalid.
		"""

		assigned_full = ['sites', 'interval', 'cutoff', 'min_period']
		assigned_pooling = ['wares', 'time_slices', 'min_count']
		assigned_scales = ['thresholds', 'fine_quartile', 'alpha', 'fine_alpha', 'resolution', 'seed']

		if 'sites' in kwargs and isinstance(kwargs['sites'], list):
			kwargs['sites'] = dict([(site.name, site) for site in kwargs['sites']])
		if 'time_slices' in kwargs and kwargs['time_slices'] is not None:
			kwargs['time_slices'] = [list(row) for row in kwargs['time_slices']]
		params = dict(
			[(key, self._data[key]) for key in self._assigned()] +
			[(key, kwargs[key]) for key in kwargs if key in self._assigned() and kwargs[key] is not None]
		)
		self.validate(params)

		reset_assigned = {}
		for key in self._assigned():
			if key not in kwargs:
				continue
			if kwargs[key] is None:
				continue
			if kwargs[key] != self._data[key]:
				if self._data[key] is not None:
					if key == 'sites':
						reset_assigned[key] = ["N: %d" % (len(self._data[key])), "N: %d" % (len(kwargs[key]))]
					else:
						reset_assigned[key] = [self._data[key], kwargs[key]]
				self._data[key] = kwargs[key]
		if reset_assigned:
			print("\nThe following model parameters have changed:")
			for key in reset_assigned:
				old_val, new_val = reset_assigned[key]
				print("\t%s: %s -> %s" % (key, old_val, new_val))
			print()

		reset_assigned_ = set(reset_assigned.keys())
		reset_calculated = set()
		if reset_assigned_.intersection(assigned_full):
			reset_calculated = {'occupations', 'slices', 'diagnostics'}
		elif reset_assigned_.intersection(assigned_pooling + assigned_scales):
			reset_calculated = {'slices'}
		if reset_calculated == {'slices'}:
			self._reset_slices()
		for key in reset_calculated:
			self._data[key] = None

		if reset_calculated:
			print("\nThe following model attributes have been reset:")
			for key in sorted(reset_calculated):
				print("\t%s" % (key))
			print()
		return reset_assigned, reset_calculated

	def save(self, zipped: bool = True) -> None:
		"""
		Saves the model to a JSON file in the model directory. Each time slice is saved to a separate file.

		:param zipped: If True, the files are gzipped. Defaults to True.
		:type zipped: bool
		:return: None
		"""

		ext = '.json.gz' if zipped else '.json'
		data = dict([(key, copy.deepcopy(self._data[key])) for key in self._assigned()])
		data['sites'] = dict([(name, self.sites[name].to_dict()) for name in self.sites])
		data['occupations'] = None
		if self.is_estimated:
			data['occupations'] = dict([(name, occupation.to_dict()) for name, occupation in self.occupations.items()])
		data['diagnostics'] = self._data['diagnostics']
		data['slices'] = None
		if self.is_pooled:
			data['slices'] = {}
			for i, (label, time_slice) in enumerate(self.slices.items()):
				fslice = 'slice_%03d%s' % (i + 1, ext)
				time_slice.save(os.path.join(self.directory, fslice))
				data['slices'][label] = fslice
		save_json(data, os.path.join(self.directory, 'model' + ext))

	def load(self, directory: str = None) -> bool:
		"""
		Loads the model from a JSON file.

		Supports both regular and zipped JSON files.

		:param directory: The directory from where the model data should be loaded. If None, the model's current directory is used.
		:type directory: str, optional
		:return: True if the model data was successfully loaded, False otherwise.
		:rtype: bool
		"""

		if directory is None:
			directory = self.directory

		data = None
		for fname in ['model.json', 'model.json.gz']:
			data = load_json(os.path.join(directory, fname))
			if data is not None:
				break
		if data is None:
			return False

		# Check data structure
		for key in list(self._assigned().keys()) + list(self._calculated().keys()):
			if key not in data:
				return False

		data['sites'] = dict([(name, Site(data['sites'][name])) for name in data['sites']])
		if data['occupations'] is not None:
			data['occupations'] = dict(
				[(name, Occupation(data['occupations'][name])) for name in data['occupations']])
		if data['slices'] is not None:
			slices = {}
			for label, fslice in data['slices'].items():
				time_slice = TimeSlice.load(os.path.join(directory, fslice))
				if time_slice is None:
					return False
				slices[label] = time_slice
			data['slices'] = slices

		self._data = data
		self._data['directory'] = directory
		return True

	def process_occupation(self, max_cpus: int = -1, max_queue_size: int = -1) -> None:
		"""
		Estimates the occupation of all sites using Uniform Probability Density Analysis (UPDA).

		Sites which cannot be estimated are skipped and recorded in Model.diagnostics.

		:param max_cpus: Maximum number of CPUs to use for parallel processing. If -1, all available CPUs are used. Defaults to -1.
		:type max_cpus: int, optional
		:param max_queue_size: Maximum queue size for parallel processing. If -1, the queue size is automatic. Defaults to -1.
		:type max_queue_size: int, optional
		:return: None
		"""

		self._data['occupations'], diagnostics = MOccupation(self).process(max_cpus=max_cpus,
																		   max_queue_size=max_queue_size)
		self._data['diagnostics'] = diagnostics
		self._data['slices'] = None

	def process_pooling(self) -> None:
		"""
		Pools the posterior apportionment of site assemblages into ware counts per time slice.

		:return: None
		"""

		if not self.is_estimated:
			raise Exception("Occupation of sites has not been estimated")
		self._reset_slices()
		self._data['slices'], diagnostics = MRollup(self).process()
		self._data['diagnostics'] = self.diagnostics + diagnostics

	def process_scales(self, max_cpus: int = -1, max_queue_size: int = -1) -> None:
		"""
		Detects critical spatial scales of the community structure of sites in all time slices.

		Time slices which cannot be processed are skipped and recorded in Model.diagnostics.

		:param max_cpus: Maximum number of CPUs to use for parallel processing. If -1, all available CPUs are used. Defaults to -1.
		:type max_cpus: int, optional
		:param max_queue_size: Maximum queue size for parallel processing. If -1, the queue size is automatic. Defaults to -1.
		:type max_queue_size: int, optional
		:return: None
		"""

		if not self.is_pooled:
			raise Exception("Time slices have not been pooled")
		processed, diagnostics = MScales(self).process(max_cpus=max_cpus, max_queue_size=max_queue_size)
		self._data['slices'].update(processed)
		self._data['diagnostics'] = self.diagnostics + diagnostics

	def process(self, max_cpus: int = -1, max_queue_size: int = -1, save: bool = False) -> None:
		"""
		Processes the complete model.

		Performs the following steps:
		1. Estimating the occupation of sites
		2. Pooling ware counts per time slice
		3. Detecting critical spatial scales per time slice

		:param max_cpus: Maximum number of CPUs to use for parallel processing. If -1, all available CPUs are used. Defaults to -1.
		:type max_cpus: int, optional
		:param max_queue_size: Maximum queue size for parallel processing. If -1, the queue size is automatic. Defaults to -1.
		:type max_queue_size: int, optional
		:param save: If True, the model is saved after each step. Defaults to False.
		:type save: bool, optional
		:return: None
		"""

		if not self.is_estimated:
			print("\nEstimating occupation of sites\n")
			self.process_occupation(max_cpus=max_cpus, max_queue_size=max_queue_size)
			if save:
				self.save()
		if not self.is_pooled:
			print("\nPooling ware counts per time slice\n")
			self.process_pooling()
			if save:
				self.save()
		if not self.is_processed:
			print("\nDetecting critical spatial scales\n")
			self.process_scales(max_cpus=max_cpus, max_queue_size=max_queue_size)
			if save:
				self.save()

	def __repr__(self) -> str:
		return f"<Model '{self.directory}': sites={len(self.sites)}, estimated={len(self.occupations)}, time_slices={len(self.time_slices)}>"
