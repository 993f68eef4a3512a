"""Shared fixtures for the strata-field test suite."""

import numpy as np
import pytest

from strata_field import NodeSet


class RecordingField:
    """Deterministic pressure field that records every call.

    Returns the (corrected) z coordinate of each point as a one-sample
    waveform, so the expected intensity is z**2.
    """

    def __init__(self, fail_on_call: int | None = None):
        self.calls: list[np.ndarray] = []
        self.thread_calls: list[int] = []
        self.fail_on_call = fail_on_call

    def set_num_threads(self, num_threads: int) -> None:
        self.thread_calls.append(num_threads)

    def calc_pressure(self, points):
        self.calls.append(np.array(points, copy=True))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise RuntimeError("field engine crashed")
        return points[:, 2:3].copy()

    @property
    def seen_points(self) -> np.ndarray:
        return np.concatenate(self.calls) if self.calls else np.empty((0, 3))


@pytest.fixture
def recording_field():
    return RecordingField()


@pytest.fixture
def field_factory():
    """Build RecordingField instances, e.g. ``field_factory(fail_on_call=3)``."""
    return RecordingField


@pytest.fixture
def axis_nodes():
    """Five nodes on the z axis at z = 0..4."""
    coords = np.column_stack([np.zeros(5), np.zeros(5), np.arange(5.0)])
    return NodeSet(node_ids=np.arange(1, 6), coords=coords)


@pytest.fixture
def random_nodes():
    rng = np.random.default_rng(1234)
    coords = rng.uniform([-4e-3, -2e-3, 5e-3], [4e-3, 2e-3, 30e-3], size=(257, 3))
    return NodeSet(node_ids=np.arange(100, 357), coords=coords)
