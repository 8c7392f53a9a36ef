import copy
from typing import List

import numpy as np

from sitescales.Observation import Observation


class Site(object):
	"""
	A class representing an archaeological site with its artifact assemblage.

	The constructor accepts a single dictionary argument or multiple arguments to initialize the object with the provided data.

	Parameters:
	:param name: Site ID (required, unique identifier)
	:type name: str

	:param x: X coordinate of the site in a projected coordinate system
	:type x: float, optional

	:param y: Y coordinate of the site in a projected coordinate system
	:type y: float, optional

	:param observations: List of artifact type counts as instances of the class Observation
	:type observations: List[Observation], optional
	"""

	def __init__(self, *args, **kwargs):

		def _from_arguments(name: str, x: float = None, y: float = None,
							observations: List[Observation] = None) -> None:

			self._data = dict(
				name=str(name),
				x=None if x is None else float(x),
				y=None if y is None else float(y),
				observations=[],
			)
			for obs in (observations or []):
				self.add_observation(obs)

		self._data = {}
		if len(args) == 1 and isinstance(args[0], dict):
			self.from_dict(args[0])
		else:
			_from_arguments(*args, **kwargs)

	@property
	def name(self) -> str:
		"""
		Gets the unique identifier (ID) of the site.

		:return: The unique identifier of the site.
		:rtype: str
		"""
		return self._data['name']

	@property
	def x(self) -> float | None:
		return self._data['x']

	@property
	def y(self) -> float | None:
		return self._data['y']

	@property
	def coordinates(self) -> np.ndarray | None:
		"""
		Coordinates of the site.

		:return: An array [x, y] or None if the site has not been located.
		:rtype: np.ndarray or None
		"""
		if None in [self.x, self.y]:
			return None
		return np.array([self.x, self.y], dtype=float)

	@property
	def observations(self) -> List[Observation]:
		"""
		Artifact type counts found at the site.

		:return: A list of Observation objects.
		:rtype: List[Observation]
		"""
		return copy.copy(self._data['observations'])

	@property
	def is_located(self) -> bool:
		return self.coordinates is not None

	# Methods

	def add_observation(self, *args, **kwargs) -> None:
		"""
		Adds an artifact type count to the site.

		Accepts either a single argument of type Observation or a set of arguments and keyword arguments to create a new Observation instance.

		:param args: Either a single argument of type Observation or multiple arguments to create a new Observation instance.
		:param kwargs: Keyword arguments to create a new Observation instance.
		"""

		if len(args) == 1 and isinstance(args[0], Observation):
			self._data['observations'].append(args[0])
		else:
			self._data['observations'].append(Observation(*args, **kwargs))

	def to_arrays(self) -> (List[str], np.ndarray, np.ndarray, np.ndarray, np.ndarray):
		"""
		Converts the observations to arrays used by the occupation estimate.

		:return: (type_labels, counts, starts, ends, trusted)
		:rtype: tuple
		"""

		observations = self._data['observations']
		return (
			[obs.type_label for obs in observations],
			np.array([obs.count for obs in observations], dtype=float),
			np.array([obs.start for obs in observations], dtype=float),
			np.array([obs.end for obs in observations], dtype=float),
			np.array([obs.trusted for obs in observations], dtype=bool),
		)

	def to_dict(self) -> dict:
		"""
		Converts the site data to a dictionary for JSON serialization.

		:return: A dictionary containing the site data.
		:rtype: dict
		"""

		data = copy.deepcopy(self._data)
		data['observations'] = [obs.to_dict() for obs in self._data['observations']]
		return data

	def from_dict(self, data: dict) -> None:
		self._data = dict(
			name=None,
			x=None,
			y=None,
			observations=[],
		)
		self._data.update(data)
		self._data['observations'] = [Observation(obs) for obs in data.get('observations', [])]

	def copy(self) -> 'Site':
		return Site(self.to_dict())

	def __repr__(self) -> str:
		return f"<Site '{self.name}': x={self.x}, y={self.y}, observations={len(self._data['observations'])}>"
