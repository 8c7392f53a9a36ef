import os
from collections import defaultdict
from typing import List, Dict, Tuple

from sitescales.errors import DataError, ConfigurationError


def _read_lines(fname: str, n_fields: int) -> List[List[str]]:
	# Read a semicolon-separated file with a header line; returns stripped fields of non-empty lines
	if not os.path.isfile(fname):
		raise DataError("Input file %s not found" % fname)
	rows = []
	with open(fname, "r", encoding="utf-8") as file:
		next(file, None)  # Skip header
		for line in file:
			line = line.strip()
			if not line:
				continue
			elements = [element.strip() for element in line.split(";")]
			if len(elements) != n_fields:
				raise DataError(f"Incorrect data format in line: {line}")
			rows.append(elements)
	return rows


def load_observations(fname: str) -> Dict[str, List[Tuple[str, int, float, float, bool]]]:
	"""
	Load artifact type observations from a file.

	The file should be in the following format:
	- Data fields are separated by semicolons.
	- The first line is a header and is skipped.
	- Each line should have 6 fields: Site, Type, Count, Start, End, Trusted.
	- Count is converted to an integer, Start and End to floats and Trusted to an integer and then to boolean.

	Parameters:
	fname (str): The name of the file to load.

	Returns:
	{site: [(type_label, count, start, end, trusted), ...], ...}

	Raises:
	DataError: If the file does not exist, a line does not have exactly 6 fields, or a field cannot be converted to the required type.
	"""
	observations = defaultdict(list)
	for elements in _read_lines(fname, 6):
		site, type_label, count, start, end, trusted = elements
		try:
			count = int(float(count))
			start = float(start)
			end = float(end)
			trusted = bool(int(trusted)) if trusted else False
		except ValueError:
			raise DataError(f"Incorrect data format in line: {';'.join(elements)}")
		if count < 0:
			raise DataError(f"Negative count in line: {';'.join(elements)}")
		observations[site].append((type_label, count, start, end, trusted))
	return dict(observations)


def load_coordinates(fname: str) -> Dict[str, Tuple[float, float]]:
	"""
	Load site coordinates from a file with 3 semicolon-separated fields per line: Site, X, Y.

	Returns:
	{site: (x, y), ...}

	Raises:
	DataError: If the file does not exist, the format is incorrect or a site is listed twice.
	"""
	coordinates = {}
	for elements in _read_lines(fname, 3):
		site, x, y = elements
		if site in coordinates:
			raise DataError("Duplicate site: %s" % (site))
		try:
			coordinates[site] = (float(x), float(y))
		except ValueError:
			raise DataError(f"Incorrect data format in line: {';'.join(elements)}")
	return coordinates


def load_wares(fname: str) -> Dict[str, str]:
	"""
	Load the lookup of artifact types to wares from a file with 2 semicolon-separated fields per line: Type, Ware.

	Returns:
	{type_label: ware, ...}
	"""
	return dict([(type_label, ware) for type_label, ware in _read_lines(fname, 2)])


def load_time_slices(fname: str) -> List[Tuple[str, float, float]]:
	"""
	Load time slice boundaries from a file with 3 semicolon-separated fields per line: Label, Start, End.

	Returns:
	[(label, start, end), ...]

	Raises:
	ConfigurationError: If the format of a line is incorrect.
	"""
	time_slices = []
	try:
		rows = _read_lines(fname, 3)
	except DataError as e:
		raise ConfigurationError(str(e))
	for label, start, end in rows:
		try:
			time_slices.append((label, float(start), float(end)))
		except ValueError:
			raise ConfigurationError(f"Incorrect time slice format: {label};{start};{end}")
	return time_slices
