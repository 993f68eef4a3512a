"""Core intensity evaluation components."""

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

__all__ = [
    "evaluate",
    "iter_batches",
    "pressure_to_intensity",
    "Batch",
    "BatchProgress",
    "BatchConfig",
    "IntensityResult",
    "PressureField",
    "SamplePoint",
    "LensCorrection",
    "NodeSet",
    "as_node_set",
    "LinearArray",
    "ExcitationPulse",
    "FieldError",
    "InvalidConfig",
    "EvaluationFailed",
]
