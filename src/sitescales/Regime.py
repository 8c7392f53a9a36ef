import copy


class Regime(object):
	"""
	A class representing a scale regime, a contiguous block of distance thresholds over which the community
	partitions of sites are consistent.

	:param first: 1-based index of the first threshold of the regime
	:type first: int

	:param last: 1-based index of the last threshold of the regime
	:type last: int

	:param prototype: 1-based index of the prototypical threshold (highest total agreement within the regime)
	:type prototype: int

	:param distance: Prototypical distance (distance threshold of the prototype) in map units
	:type distance: float

	:param first_distance: Distance threshold of the first threshold of the regime in map units
	:type first_distance: float
	"""

	def __init__(self, *args, **kwargs):

		def _from_arguments(first: int, last: int, prototype: int, distance: float, first_distance: float) -> None:

			self._data = dict(
				first=int(first),
				last=int(last),
				prototype=int(prototype),
				distance=float(distance),
				first_distance=float(first_distance),
			)

		self._data = {}
		if len(args) == 1 and isinstance(args[0], dict):
			self._data = copy.deepcopy(args[0])
		else:
			_from_arguments(*args, **kwargs)

	@property
	def first(self) -> int:
		return self._data['first']

	@property
	def last(self) -> int:
		return self._data['last']

	@property
	def prototype(self) -> int:
		return self._data['prototype']

	@property
	def distance(self) -> float:
		"""
		Prototypical distance of the regime in map units.
		"""
		return self._data['distance']

	@property
	def first_distance(self) -> float:
		return self._data['first_distance']

	def to_dict(self) -> dict:
		return copy.deepcopy(self._data)

	def __repr__(self) -> str:
		return f"<Regime {self.first}-{self.last}: prototype={self.prototype}, distance={self.distance:0.1f}>"
