"""Tests for HDF5 intensity result files."""

import h5py
import numpy as np
import pytest

from strata_field import (
    BatchConfig,
    IntensityResultReader,
    IntensityResultWriter,
    LensCorrection,
    LinearArray,
    evaluate,
)


@pytest.fixture
def result(axis_nodes, recording_field):
    return evaluate(axis_nodes, LensCorrection(0, 0, 1), BatchConfig(step_size=2), recording_field)


def test_writer_structure(tmp_path, result):
    path = tmp_path / "intensity.h5"
    config = BatchConfig(step_size=2, threads=4)

    with IntensityResultWriter(path) as writer:
        writer.write(
            result,
            config,
            LensCorrection(0, 0, 1),
            field_metadata={"model": "test", "focus": [0.0, 0.0, 0.02]},
            script_content="# script",
            node_file="nodes.dyn",
        )

    with h5py.File(path, "r") as f:
        assert "intensity" in f
        assert "node_ids" in f
        np.testing.assert_allclose(f["intensity"][:], [1, 4, 9, 16, 25])
        np.testing.assert_array_equal(f["node_ids"][:], [1, 2, 3, 4, 5])

        assert f["metadata"].attrs["script_content"] == "# script"
        assert len(f["metadata"].attrs["script_hash"]) == 64
        assert f["metadata"].attrs["node_file"] == "nodes.dyn"
        assert f["config"].attrs["step_size"] == 2
        assert f["config"].attrs["threads"] == 4
        assert f["config"].attrs["num_batches"] == 3
        assert f["correction"].attrs["dz"] == 1.0
        assert f["field"].attrs["model"] == "test"


def test_reader_round_trip(tmp_path, result):
    path = tmp_path / "intensity.h5"
    with IntensityResultWriter(path, compression=None) as writer:
        writer.write(result, BatchConfig(step_size=2), LensCorrection(0, 0, 1))

    with IntensityResultReader(path) as reader:
        loaded = reader.load_result()
        correction = reader.load_correction()
        metadata = reader.get_metadata()

    np.testing.assert_allclose(loaded.intensity, result.intensity)
    np.testing.assert_array_equal(loaded.node_ids, result.node_ids)
    assert loaded.num_batches == 3
    assert correction == LensCorrection(0.0, 0.0, 1.0)
    assert set(metadata) == {"metadata", "config", "correction", "field"}
    assert "created_at" in metadata["metadata"]


def test_linear_array_metadata(tmp_path, result):
    field = LinearArray(num_elements=4)
    path = tmp_path / "intensity.h5"
    with IntensityResultWriter(path) as writer:
        writer.write(result, BatchConfig(), LensCorrection(), field_metadata=field.describe())

    with IntensityResultReader(path) as reader:
        field_attrs = reader.get_metadata()["field"]

    assert field_attrs["num_elements"] == 4
    assert field_attrs["apodization"] == "rect"
    np.testing.assert_allclose(field_attrs["focus"], [0.0, 0.0, 0.02])


def test_reader_missing_dataset(tmp_path):
    path = tmp_path / "empty.h5"
    with h5py.File(path, "w"):
        pass

    with IntensityResultReader(path) as reader:
        with pytest.raises(ValueError, match="No intensity"):
            reader.load_intensity()
