import gzip
import json
import os
from typing import Union, Any

import numpy as np


def dict_np_to_list(data: Union[dict, list, Any]) -> Union[dict, list, Any]:
	"""
	Convert all numpy arrays and numpy scalars in a dictionary or list to native Python types.

	This function is useful when preparing data for serialization, as numpy arrays cannot be serialized directly.
	The function works recursively, so it will convert values in any nested dictionaries, lists or tuples as well.

	Parameters:
	data: The input data. It can be a dictionary, a list, a tuple or a single value.

	Returns:
	A copy of the input data with all numpy arrays converted to lists and numpy scalars to int / float / bool.
	"""
	if isinstance(data, dict):
		return dict([(key, dict_np_to_list(val)) for key, val in data.items()])
	if isinstance(data, (list, tuple)):
		return [dict_np_to_list(val) for val in data]
	if isinstance(data, np.ndarray):
		return dict_np_to_list(data.tolist())
	if isinstance(data, np.generic):
		return data.item()
	return data


def save_json(data: dict, fname: str) -> None:
	"""
	Save a dictionary to a JSON file. The file is gzipped if its name ends with '.gz'.

	Parameters:
	data (dict): Data to save. Numpy arrays are converted to lists.
	fname (str): Path to the target file.
	"""
	data = dict_np_to_list(data)
	if fname.endswith('.gz'):
		with gzip.open(fname, 'wt') as file:
			json.dump(data, file)
	else:
		with open(fname, 'w') as file:
			json.dump(data, file)


def load_json(fname: str) -> dict or None:
	"""
	Load a dictionary from a (optionally gzipped) JSON file.

	Parameters:
	fname (str): Path to the file.

	Returns:
	dict: The loaded data, or None if the file does not exist.
	"""
	if not os.path.isfile(fname):
		return None
	if fname.endswith('.gz'):
		with gzip.open(fname, 'rt') as file:
			return json.load(file)
	with open(fname, 'r') as file:
		return json.load(file)


def to_array(values: Any, dtype: type = np.float64) -> np.ndarray or None:
	# None-preserving conversion of lists loaded from JSON
	if values is None:
		return None
	return np.array(values, dtype=dtype)
