import copy


class Observation(object):
	"""
	A class representing the count of one artifact type found at a site.

	The constructor accepts a single dictionary argument or multiple arguments to initialize the object with the provided data.

	:param type_label: Artifact type label (required)
	:type type_label: str

	:param count: Number of artifacts of the type (required, non-negative)
	:type count: int

	:param start: Start of the production date range of the type in calendar years AD (required)
	:type start: float

	:param end: End of the production date range of the type in calendar years AD (required)
	:type end: float

	:param trusted: True if the type belongs to the trusted (high-confidence) chronology subset
	:type trusted: bool, optional
	"""

	def __init__(self, *args, **kwargs):

		def _from_arguments(type_label: str, count: int, start: float, end: float, trusted: bool = False) -> None:

			if count < 0:
				raise ValueError("Negative count of type %s: %s" % (type_label, count))
			self._data = dict(
				type_label=str(type_label),
				count=int(count),
				start=float(start),
				end=float(end),
				trusted=bool(trusted),
			)

		self._data = {}
		if len(args) == 1 and isinstance(args[0], dict):
			self.from_dict(args[0])
		else:
			_from_arguments(*args, **kwargs)

	@property
	def type_label(self) -> str:
		"""
		Label of the artifact type.
		"""
		return self._data['type_label']

	@property
	def count(self) -> int:
		"""
		Number of artifacts of the type.
		"""
		return self._data['count']

	@property
	def start(self) -> float:
		"""
		Start of the date range of the type.
		"""
		return self._data['start']

	@property
	def end(self) -> float:
		"""
		End of the date range of the type.
		"""
		return self._data['end']

	@property
	def trusted(self) -> bool:
		"""
		True if the type belongs to the trusted chronology subset.
		"""
		return self._data['trusted']

	def to_dict(self) -> dict:
		return copy.deepcopy(self._data)

	def from_dict(self, data: dict) -> None:
		self._data = dict(
			type_label=None,
			count=0,
			start=None,
			end=None,
			trusted=False,
		)
		self._data.update(data)

	def __repr__(self) -> str:
		return f"<Observation '{self.type_label}': count={self.count}, start={self.start}, end={self.end}, trusted={self.trusted}>"
