"""HDF5 output format for intensity results.

Layout:
    /intensity        float64 (N,)  per-node intensity
    /node_ids         int64 (N,)    node identifiers, same order
    /metadata         attrs: created_at, version, runtime, script hash/content
    /config           attrs: step_size, threads, num_batches
    /correction       attrs: dx, dy, dz
    /field            attrs: pressure-field model parameters
"""

import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import h5py
import numpy as np
from numpy.typing import NDArray

from strata_field.core.config import BatchConfig
from strata_field.core.evaluator import IntensityResult
from strata_field.core.points import LensCorrection


def _attr_value(value: Any) -> Any:
    if value is None:
        return "None"
    if isinstance(value, dict):
        return json.dumps(value)
    return value


class IntensityResultWriter:
    """Writer for a completed intensity run.

    Example:
        >>> with IntensityResultWriter("intensity.h5") as writer:
        ...     writer.write(result, config, correction, field.describe())
    """

    def __init__(
        self,
        filename: str | Path,
        compression: str | None = "gzip",
        compression_level: int = 4,
    ):
        """Initialize HDF5 writer.

        Args:
            filename: Output file path
            compression: Compression algorithm ('gzip', 'lzf', None)
            compression_level: Compression level (0-9 for gzip)
        """
        self.filename = Path(filename)
        self.file = h5py.File(filename, "w")
        self.compression = compression
        self.compression_opts = compression_level if compression == "gzip" else None

    def write(
        self,
        result: IntensityResult,
        config: BatchConfig,
        correction: LensCorrection,
        field_metadata: dict[str, Any] | None = None,
        script_content: str | None = None,
        **extra_metadata,
    ) -> None:
        """Write one result with its run parameters."""
        from strata_field import __version__

        self.file.create_dataset(
            "intensity",
            data=np.asarray(result.intensity, dtype=np.float64),
            compression=self.compression,
            compression_opts=self.compression_opts,
        )
        self.file.create_dataset(
            "node_ids",
            data=np.asarray(result.node_ids, dtype=np.int64),
            compression=self.compression,
            compression_opts=self.compression_opts,
        )

        meta = self.file.create_group("metadata")
        meta.attrs["created_at"] = datetime.now(timezone.utc).isoformat()
        meta.attrs["version"] = __version__
        meta.attrs["runtime_seconds"] = result.runtime
        if script_content:
            meta.attrs["script_hash"] = hashlib.sha256(script_content.encode()).hexdigest()
            meta.attrs["script_content"] = script_content
        for key, value in extra_metadata.items():
            meta.attrs[key] = _attr_value(value)

        cfg = self.file.create_group("config")
        cfg.attrs["step_size"] = config.step_size
        cfg.attrs["threads"] = config.threads
        cfg.attrs["num_batches"] = result.num_batches

        corr = self.file.create_group("correction")
        corr.attrs["dx"] = correction.dx
        corr.attrs["dy"] = correction.dy
        corr.attrs["dz"] = correction.dz

        field_group = self.file.create_group("field")
        for key, value in (field_metadata or {}).items():
            field_group.attrs[key] = _attr_value(value)

    def close(self):
        if self.file:
            self.file.flush()
            self.file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class IntensityResultReader:
    """Reader for intensity result files.

    Example:
        >>> with IntensityResultReader("intensity.h5") as reader:
        ...     result = reader.load_result()
    """

    def __init__(self, filename: str | Path):
        self.filename = Path(filename)
        self.file = h5py.File(filename, "r")

    def get_metadata(self) -> dict[str, Any]:
        """Return attributes of every metadata group."""
        metadata = {}
        for group in ("metadata", "config", "correction", "field"):
            if group in self.file:
                metadata[group] = dict(self.file[group].attrs)
        return metadata

    def load_intensity(self) -> NDArray[np.float64]:
        if "intensity" not in self.file:
            raise ValueError(f"No intensity data in {self.filename}")
        return self.file["intensity"][:]

    def load_node_ids(self) -> NDArray[np.int64]:
        if "node_ids" not in self.file:
            raise ValueError(f"No node ids in {self.filename}")
        return self.file["node_ids"][:]

    def load_correction(self) -> LensCorrection:
        attrs = self.file["correction"].attrs
        return LensCorrection(float(attrs["dx"]), float(attrs["dy"]), float(attrs["dz"]))

    def load_result(self) -> IntensityResult:
        num_batches = int(self.file["config"].attrs["num_batches"]) if "config" in self.file else 0
        runtime = float(self.file["metadata"].attrs.get("runtime_seconds", 0.0)) if "metadata" in self.file else 0.0
        return IntensityResult(
            intensity=self.load_intensity(),
            node_ids=self.load_node_ids(),
            num_batches=num_batches,
            runtime=runtime,
        )

    def close(self):
        if self.file:
            self.file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
