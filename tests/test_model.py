"""
Tests for the Model: configuration, occupation estimates, pooling per time slice and the scale analysis.
"""

import os

import numpy as np
import pytest

from sitescales import Model, Site, Observation
from sitescales.errors import ConfigurationError


def make_site(name, x, y, major, minor):
	return Site(name, x, y, [
		Observation(major, 40, 500, 600, True),
		Observation(minor, 5, 500, 600, True),
	])


@pytest.fixture
def sites():
	"""Two distant groups of sites, dominated by opposite types."""
	return [
		make_site("a1", 0, 0, "A1", "B1"),
		make_site("a2", 1000, 0, "A1", "B1"),
		make_site("a3", 0, 1000, "A2", "B1"),
		make_site("b1", 50000, 0, "B1", "A1"),
		make_site("b2", 51000, 0, "B1", "A2"),
		make_site("b3", 50000, 1000, "B1", "A1"),
	]


@pytest.fixture
def model(tmp_path, sites):
	return Model(
		directory=str(tmp_path / "model"),
		sites=sites,
		wares={"A1": "A", "A2": "A", "B1": "B"},
		time_slices=[("S1", 500, 600)],
	)


# ---------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------

class TestConfiguration:
	"""Tests for the validation of model parameters."""

	def test_defaults(self, tmp_path):
		model = Model(directory=str(tmp_path / "model"))
		assert model.interval == 5
		assert model.cutoff == 0.1
		assert model.min_period == 25
		assert model.min_count == 10
		assert model.thresholds == 100
		assert model.fine_quartile == 25
		assert model.alpha == 1.0
		assert model.fine_alpha == 1.5
		assert model.seed == 1234
		assert not model.has_data
		assert os.path.isdir(model.directory)

	def test_unknown_argument(self, tmp_path):
		with pytest.raises(ConfigurationError):
			Model(directory=str(tmp_path / "model"), foo=1)

	@pytest.mark.parametrize("params", [
		dict(cutoff=1.5),
		dict(cutoff=0),
		dict(interval=0),
		dict(min_period=-5),
		dict(thresholds=1),
		dict(fine_quartile=200),
		dict(alpha=2.5),
		dict(resolution=0),
		dict(time_slices=[("S1", 600, 500)]),
		dict(time_slices=[("S1", 500, 600), ("S1", 600, 700)]),
		dict(interval="5"),
	])
	def test_invalid_values(self, tmp_path, params):
		with pytest.raises(ConfigurationError):
			Model(directory=str(tmp_path / "model"), **params)

	def test_duplicate_sites(self, tmp_path):
		with pytest.raises(ConfigurationError):
			Model(directory=str(tmp_path / "model"), sites=[Site("a", 0, 0), Site("a", 1, 1)])

	def test_parameter_change_resets_results(self, model):
		model.process_occupation(max_cpus=1)
		assert model.is_estimated
		model.update_params(cutoff=0.2)
		assert not model.is_estimated


# ---------------------------------------------------------------------
# Processing
# ---------------------------------------------------------------------

class TestProcessing:
	"""Tests for the processing steps of the model."""

	def test_occupation(self, model):
		model.process_occupation(max_cpus=1)
		assert sorted(model.occupations.keys()) == ["a1", "a2", "a3", "b1", "b2", "b3"]
		occupation = model.occupations["a1"]
		assert occupation.window == [500, 600]
		assert np.allclose(occupation.posterior_counts.sum(axis=1), [40, 5])

	def test_skipped_site_is_recorded(self, model):
		model.add_site(Site("empty", 10, 10, [
			Observation("A1", 0, 500, 600, True),
			Observation("B1", 0, 500, 600, True),
		]))
		model.process_occupation(max_cpus=1)
		assert "empty" not in model.occupations
		assert "empty" in [unit for unit, _ in model.diagnostics]
		assert len(model.occupations) == 6

	def test_pooling(self, model):
		model.process_occupation(max_cpus=1)
		model.process_pooling()
		time_slice = model.slices["S1"]
		assert time_slice.sites == ["a1", "a2", "a3", "b1", "b2", "b3"]
		assert time_slice.wares == ["A", "B"]
		assert np.allclose(time_slice.counts[0], [40, 5])
		assert np.allclose(time_slice.counts[3], [5, 40])
		assert time_slice.coordinates.shape == (6, 2)

	def test_pooling_excludes_small_and_unlocated_sites(self, model):
		model.add_site(Site("small", 10, 10, [
			Observation("A1", 3, 500, 600, True),
			Observation("B1", 2, 500, 600, True),
		]))
		model.add_site(Site("nowhere", None, None, [
			Observation("A1", 30, 500, 600, True),
			Observation("B1", 20, 500, 600, True),
		]))
		model.process_occupation(max_cpus=1)
		assert "small" in model.occupations
		assert "nowhere" in model.occupations
		model.process_pooling()
		assert "small" not in model.slices["S1"].sites
		assert "nowhere" not in model.slices["S1"].sites

	def test_missing_ware_is_recorded(self, model):
		model.update_params(wares={"A1": "A", "B1": "B"})
		model.process_occupation(max_cpus=1)
		model.process_pooling()
		reasons = [reason for unit, reason in model.diagnostics if unit == "S1"]
		assert any("A2" in reason for reason in reasons)

	def test_full_process(self, model):
		model.process(max_cpus=1)
		assert model.is_processed
		time_slice = model.slices["S1"]
		assert time_slice.similarity.shape == (6, 6)
		assert time_slice.memberships.shape == (100, 6)
		assert time_slice.memberships[-1].tolist() == [0, 0, 0, 1, 1, 1]
		assert np.allclose(np.diag(time_slice.agreement), 1)
		assert time_slice.breakpoints[0] == 1
		assert time_slice.regimes[0].first == 1
		assert time_slice.regimes[-1].last == 100
		for regime in time_slice.regimes:
			assert regime.distance == pytest.approx(time_slice.thresholds[regime.prototype - 1])
		assert len(time_slice.breakpoint_distances) == len(time_slice.breakpoints)

	def test_slice_without_enough_sites_is_skipped(self, model):
		model.update_params(time_slices=[("S1", 500, 600), ("S2", 800, 900)])
		model.process(max_cpus=1)
		assert model.slices["S1"].is_processed
		assert not model.slices["S2"].is_processed
		assert model.slices["S2"].skipped
		assert model.is_processed
		assert "S2" in [unit for unit, _ in model.diagnostics]

	def test_unapportioned_types_are_recorded(self, model):
		model.add_site(Site("late", 10, 10, [
			Observation("A1", 10, 500, 600, True),
			Observation("B1", 50, 800, 900, False),
		]))
		model.process_occupation(max_cpus=1)
		assert model.occupations["late"].unapportioned == ["B1"]
		reasons = [reason for unit, reason in model.diagnostics if unit == "late"]
		assert any("B1" in reason for reason in reasons)

	def test_failing_site_does_not_stop_batch(self, model, monkeypatch):
		def failing(*args, **kwargs):
			raise RuntimeError("unexpected")

		monkeypatch.setattr("sitescales.mhelpers.MOccupation.calc_occupation", failing)
		model.process_occupation(max_cpus=1)
		assert model.occupations == {}
		assert len(model.diagnostics) == 6
		assert all("unexpected" in reason for _, reason in model.diagnostics)

	def test_failing_slice_is_skipped(self, model, monkeypatch):
		def failing(*args, **kwargs):
			raise RuntimeError("unexpected")

		monkeypatch.setattr("sitescales.mhelpers.MScales.calc_scales", failing)
		model.process(max_cpus=1)
		assert model.slices["S1"].skipped == "Error: unexpected"
		assert model.is_processed


# ---------------------------------------------------------------------
# Repeated processing
# ---------------------------------------------------------------------

class TestRepeatedProcessing:
	"""Tests for running the model more than once."""

	@pytest.fixture
	def two_slices(self, model):
		model.update_params(time_slices=[("S1", 500, 600), ("S2", 800, 900)])
		return model

	def test_process_twice_keeps_diagnostics(self, two_slices):
		two_slices.process(max_cpus=1)
		diagnostics = two_slices.diagnostics
		breakpoints = two_slices.slices["S1"].breakpoints
		two_slices.process(max_cpus=1)
		assert two_slices.diagnostics == diagnostics
		assert two_slices.slices["S1"].breakpoints == breakpoints

	def test_reloaded_model_is_not_processed_again(self, two_slices):
		two_slices.process(max_cpus=1)
		two_slices.save()
		loaded = Model(directory=two_slices.directory)
		assert loaded.is_processed
		loaded.process(max_cpus=1)
		assert loaded.diagnostics == two_slices.diagnostics

	def test_parameter_change_replaces_slice_diagnostics(self, two_slices):
		two_slices.process(max_cpus=1)
		two_slices.update_params(min_count=5)
		assert "S2" not in [unit for unit, _ in two_slices.diagnostics]
		two_slices.process(max_cpus=1)
		assert [unit for unit, _ in two_slices.diagnostics].count("S2") == 1

	def test_pooling_twice_keeps_diagnostics(self, two_slices):
		two_slices.update_params(wares={"A1": "A", "B1": "B"})
		two_slices.process_occupation(max_cpus=1)
		two_slices.process_pooling()
		diagnostics = two_slices.diagnostics
		two_slices.process_pooling()
		assert two_slices.diagnostics == diagnostics


# ---------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------

class TestPersistence:
	"""Tests for saving and loading the model."""

	def test_save_and_load(self, model):
		model.process(max_cpus=1)
		model.save()
		assert os.path.isfile(os.path.join(model.directory, "model.json.gz"))

		loaded = Model(directory=model.directory)
		assert sorted(loaded.sites.keys()) == sorted(model.sites.keys())
		assert sorted(loaded.occupations.keys()) == sorted(model.occupations.keys())
		assert loaded.is_processed
		assert loaded.slices["S1"].breakpoints == model.slices["S1"].breakpoints
		assert np.allclose(loaded.slices["S1"].agreement, model.slices["S1"].agreement)
		assert np.allclose(loaded.occupations["a1"].posterior, model.occupations["a1"].posterior)

	def test_existing_directory_is_not_overwritten(self, model, sites):
		model.save()
		other = Model(directory=model.directory, sites=sites)
		assert other.directory != model.directory
