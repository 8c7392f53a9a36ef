class SiteScalesError(Exception):
	"""
	Base class of all errors raised by SiteScales.
	"""
	pass


class DataError(SiteScalesError):
	"""
	Malformed or empty input of a single unit of work (site or time slice).
	
	The unit is skipped and recorded in the diagnostics of the model.
	"""
	pass


class DegenerateComputationError(SiteScalesError):
	"""
	Arithmetic degeneracy which no fallback value can resolve, e.g. a site whose posterior is 0 in every period.
	
	Milder degeneracies (zero column sums, single-year types, single-cluster partitions) are resolved locally
	by fallback values. When this error is raised, the unit is skipped and recorded in the diagnostics of the model.
	"""
	pass


class ConfigurationError(SiteScalesError):
	"""
	Invalid model parameters. Fatal, raised before any computation starts.
	"""
	pass
