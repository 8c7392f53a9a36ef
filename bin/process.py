#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
**SiteScales**

Occupation of archaeological sites and critical spatial scales of their community structure

"""

from sitescales import Model
from sitescales import __version__

import multiprocessing
import argparse
import sys

DESCRIPTION = "SiteScales v%s - Occupation of archaeological sites and critical spatial scales of their community structure" % (__version__)


def parse_arguments(args):

	parser = argparse.ArgumentParser(description=DESCRIPTION, formatter_class=argparse.ArgumentDefaultsHelpFormatter)

	parser.add_argument('-input', type=str, required=False,
		help="File path to load artifact type counts in semicolon-separated CSV format (Site;Type;Count;Start;End;Trusted)")
	parser.add_argument('-coordinates', type=str, required=False,
		help="File path to load site coordinates in semicolon-separated CSV format (Site;X;Y)")
	parser.add_argument('-wares', type=str, required=False,
		help="File path to load the lookup of types to wares in semicolon-separated CSV format (Type;Ware)")
	parser.add_argument('-time_slices', type=str, required=False,
		help="File path to load time slices in semicolon-separated CSV format (Label;Start;End)")
	parser.add_argument('-directory', type=str, default="model", required=False,
		help="Working directory for model data")
	parser.add_argument('-interval', type=int, default=5, required=False,
		help="Rounding granularity of type dates in years")
	parser.add_argument('-cutoff', type=float, default=0.1, required=False,
		help="Occupation window threshold as a fraction of the peak posterior")
	parser.add_argument('-min_period', type=int, default=25, required=False,
		help="Minimum length of a period in years")
	parser.add_argument('-min_count', type=int, default=10, required=False,
		help="Minimum artifact count of a site in a time slice")
	parser.add_argument('-thresholds', type=int, default=100, required=False,
		help="Number of distance thresholds")
	parser.add_argument('-fine_quartile', type=int, default=25, required=False,
		help="Number of the lowest distance thresholds searched separately for change points")
	parser.add_argument('-alpha', type=float, default=1.0, required=False,
		help="Energy exponent of the global change-point search")
	parser.add_argument('-fine_alpha', type=float, default=1.5, required=False,
		help="Energy exponent of the fine-scale change-point search")
	parser.add_argument('-resolution', type=float, default=1.0, required=False,
		help="Resolution of the modularity used for community detection")
	parser.add_argument('-seed', type=int, default=1234, required=False,
		help="Seed of the random number generator used for community detection")
	parser.add_argument('-max_cpus', type=int, default=-1, required=False,
		help="Maximum number of CPUs to use for parallel processing (-1 = all available)")
	parser.add_argument('-max_queue_size', type=int, default=-1, required=False,
		help="Maximum queue size for parallel processing (-1 = automatic)")
	parser.add_argument('-overwrite', type=int, default=0, required=False,
		help="Flag indicating whether to overwrite an existing model")

	parsed_args = parser.parse_args(args)
	return vars(parsed_args)  # Directly return parsed arguments as a dictionary


if __name__ == '__main__':
	multiprocessing.freeze_support()  # Needed for PyInstaller

	arguments = parse_arguments(sys.argv[1:])

	arguments['overwrite'] = bool(arguments['overwrite'])

	finput = arguments.pop('input', None)
	fcoordinates = arguments.pop('coordinates', None)
	fwares = arguments.pop('wares', None)
	ftime_slices = arguments.pop('time_slices', None)
	max_cpus = arguments.pop('max_cpus', -1)
	max_queue_size = arguments.pop('max_queue_size', -1)

	model = Model(**arguments)
	if finput is not None:
		model.import_csv(finput, fcoordinates, fwares, ftime_slices)

	if not model.has_data:
		print("\nNo data available")
		sys.exit(1)

	model.process(max_cpus=max_cpus, max_queue_size=max_queue_size, save=True)

	print("\nSkipped units and fallbacks:")
	for unit, reason in model.diagnostics:
		print("\t%s: %s" % (unit, reason))

	for label, time_slice in model.slices.items():
		if not time_slice.is_processed:
			continue
		print("\nTime slice %s (%s - %s), %d sites" % (label, time_slice.start, time_slice.end, len(time_slice.sites)))
		for regime in time_slice.regimes:
			print("\tThresholds %d-%d: prototypical distance %0.1f" % (regime.first, regime.last, regime.distance))
