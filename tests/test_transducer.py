"""
Unit tests for the linear-array pressure field model.

Tests verify:
- Geometry and focusing delays
- Output shape and determinism
- Thread count does not change results
- Focal gain on axis
- Integration with the batched evaluator
"""

import numpy as np
import pytest
from scipy import signal

from strata_field import (
    BatchConfig,
    ExcitationPulse,
    LensCorrection,
    LinearArray,
    NodeSet,
    PressureField,
    evaluate,
)


@pytest.fixture
def small_array():
    return LinearArray(num_elements=8, pitch=0.3e-3, center_frequency=5e6, focus=(0.0, 0.0, 0.01))


class TestExcitationPulse:
    def test_peak_at_center(self):
        pulse = ExcitationPulse(center_frequency=5e6)
        t = np.array([pulse.duration / 2.0])
        assert pulse.waveform(t)[0] == pytest.approx(1.0)

    def test_decays_at_edges(self):
        pulse = ExcitationPulse(center_frequency=5e6, amplitude=2.0)
        edges = pulse.waveform(np.array([0.0, pulse.duration]))
        assert np.all(np.abs(edges) < 2.0 * 1e-2)

    def test_invalid(self):
        with pytest.raises(ValueError):
            ExcitationPulse(center_frequency=0.0)
        with pytest.raises(ValueError):
            ExcitationPulse(center_frequency=1e6, fractional_bandwidth=0.0)

    def test_cutoff_solved_once(self, monkeypatch):
        pulse = ExcitationPulse(center_frequency=5e6)
        cutoff_calls = []
        gausspulse = signal.gausspulse

        def counting(t, *args, **kwargs):
            if isinstance(t, str):
                cutoff_calls.append(t)
            return gausspulse(t, *args, **kwargs)

        monkeypatch.setattr(signal, "gausspulse", counting)
        t = np.linspace(0.0, pulse.duration, 64)
        for _ in range(5):
            pulse.waveform(t)

        assert cutoff_calls == []


class TestLinearArrayGeometry:
    def test_elements_centered(self, small_array):
        x = small_array.element_positions[:, 0]
        assert len(x) == 8
        assert np.mean(x) == pytest.approx(0.0, abs=1e-15)
        np.testing.assert_allclose(np.diff(x), 0.3e-3)

    def test_outer_elements_fire_first(self, small_array):
        delays = small_array.focus_delays
        assert delays.min() == pytest.approx(0.0)
        # Outermost elements are farthest from an on-axis focus
        assert delays[0] == pytest.approx(0.0)
        assert delays[-1] == pytest.approx(0.0)
        assert delays[3] > delays[0]

    def test_hann_apodization(self):
        field = LinearArray(num_elements=16, apodization="hann")
        assert field.weights.max() <= 1.0
        assert field.weights[0] < field.weights[8]
        assert np.all(field.weights > 0)

    @pytest.mark.parametrize("kwargs", [
        {"num_elements": 0},
        {"pitch": 0.0},
        {"c": -1.0},
        {"sample_rate": 5e6},
        {"attenuation": -0.1},
        {"apodization": "tukey"},
        {"num_threads": 0},
    ])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            LinearArray(**kwargs)

    def test_implements_pressure_field(self, small_array):
        assert isinstance(small_array, PressureField)


class TestCalcPressure:
    def test_output_shape(self, small_array):
        points = np.array([[0.0, 0.0, 0.01], [1e-3, 0.0, 0.02], [0.0, 1e-3, 0.015]])
        pressure = small_array.calc_pressure(points)
        assert pressure.shape == (3, small_array.num_samples)

    def test_bad_points_shape(self, small_array):
        with pytest.raises(ValueError, match="shape"):
            small_array.calc_pressure(np.zeros((4, 2)))

    def test_deterministic(self, small_array):
        points = np.array([[0.0, 0.0, 0.01], [2e-3, 0.0, 0.012]])
        np.testing.assert_array_equal(
            small_array.calc_pressure(points), small_array.calc_pressure(points)
        )

    def test_threads_do_not_change_result(self, random_nodes):
        field = LinearArray(num_elements=8, focus=(0.0, 0.0, 0.015))
        coords = np.repeat(random_nodes.coords, 5, axis=0)  # > CHUNK_SIZE points

        field.set_num_threads(1)
        serial = field.calc_pressure(coords)
        field.set_num_threads(4)
        threaded = field.calc_pressure(coords)

        np.testing.assert_allclose(threaded, serial, rtol=1e-12, atol=0)

    def test_focus_brighter_than_off_axis(self, small_array):
        points = np.array([[0.0, 0.0, 0.01], [3e-3, 0.0, 0.01]])
        pressure = small_array.calc_pressure(points)
        energy = np.sum(pressure**2, axis=1)
        assert energy[0] > energy[1]

    def test_set_num_threads_invalid(self, small_array):
        with pytest.raises(ValueError):
            small_array.set_num_threads(0)

    def test_describe(self, small_array):
        meta = small_array.describe()
        assert meta["model"] == "LinearArray"
        assert meta["num_elements"] == 8
        assert meta["focus"] == [0.0, 0.0, 0.01]
        assert meta["num_samples"] == small_array.num_samples


class TestEvaluateWithLinearArray:
    def test_evaluator_sets_threads(self, random_nodes):
        field = LinearArray(num_elements=8, focus=(0.0, 0.0, 0.015))
        evaluate(random_nodes, LensCorrection(), BatchConfig(step_size=100, threads=3), field)
        assert field.num_threads == 3

    def test_batch_size_independent(self, random_nodes):
        field = LinearArray(num_elements=8, focus=(0.0, 0.0, 0.015))
        correction = LensCorrection.along_z(-1e-3)

        one = evaluate(random_nodes, correction, BatchConfig(step_size=len(random_nodes)), field)
        many = evaluate(random_nodes, correction, BatchConfig(step_size=17, threads=2), field)

        np.testing.assert_allclose(many.intensity, one.intensity, rtol=1e-10)

    def test_focus_brighter_than_far_field_and_side(self):
        coords = np.array([
            [0.0, 0.0, 0.012],   # focus
            [0.0, 0.0, 0.028],   # beyond focus
            [4e-3, 0.0, 0.012],  # lateral at focal depth
        ])
        nodes = NodeSet(node_ids=[1, 2, 3], coords=coords)

        field = LinearArray(num_elements=32, focus=(0.0, 0.0, 0.012), attenuation=0.0)
        result = evaluate(nodes, LensCorrection(), BatchConfig(step_size=2), field)

        assert result.peak()[0] == 1
        assert result[0] > 2 * result[1]
        assert result[0] > 2 * result[2]
