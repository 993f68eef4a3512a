"""
Strata Field - batched acoustic intensity evaluation over mesh nodes.

Main exports:
- evaluate: Batched, progress-reporting intensity evaluator
- BatchConfig: Batch size and thread-count configuration
- SamplePoint, NodeSet: Evaluation locations
- LensCorrection: Constant offset applied to every point
- LinearArray: Focused linear-array pressure-field model
- read_nodes: LS-DYNA / NumPy / CSV node file reader
"""

__version__ = "0.1.0"

from strata_field.analysis import focal_region, intensity_to_db, normalize_intensity
from strata_field.core.config import BatchConfig
from strata_field.core.errors import EvaluationFailed, FieldError, InvalidConfig
from strata_field.core.evaluator import (
    Batch,
    BatchProgress,
    IntensityResult,
    PressureField,
    evaluate,
    iter_batches,
    pressure_to_intensity,
)
from strata_field.core.points import LensCorrection, NodeSet, SamplePoint, as_node_set
from strata_field.core.transducer import ExcitationPulse, LinearArray
from strata_field.io import (
    IntensityResultReader,
    IntensityResultWriter,
    read_nodes,
    write_nodes,
)

# Submodules for more specific imports
from . import analysis, core, io

__all__ = [
    # Evaluator
    "evaluate",
    "iter_batches",
    "pressure_to_intensity",
    "Batch",
    "BatchProgress",
    "BatchConfig",
    "IntensityResult",
    "PressureField",
    # Points
    "SamplePoint",
    "NodeSet",
    "LensCorrection",
    "as_node_set",
    # Field model
    "LinearArray",
    "ExcitationPulse",
    # Errors
    "FieldError",
    "InvalidConfig",
    "EvaluationFailed",
    # I/O
    "read_nodes",
    "write_nodes",
    "IntensityResultWriter",
    "IntensityResultReader",
    # Analysis
    "normalize_intensity",
    "intensity_to_db",
    "focal_region",
    # Submodules
    "analysis",
    "core",
    "io",
]
