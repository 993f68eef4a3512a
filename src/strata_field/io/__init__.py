"""I/O for mesh nodes and intensity results."""

from strata_field.io.hdf5 import IntensityResultReader, IntensityResultWriter
from strata_field.io.nodes import read_nodes, write_nodes

__all__ = [
    "read_nodes",
    "write_nodes",
    "IntensityResultWriter",
    "IntensityResultReader",
]
