"""Batch configuration for the intensity evaluator."""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass

from .errors import InvalidConfig


@dataclass(frozen=True)
class BatchConfig:
    """Batching and threading parameters for one evaluation run.

    Args:
        step_size: Number of points passed to the pressure-field primitive
            per call (default: 1000)
        threads: Worker threads requested from the primitive (default: 1).
            Forwarded once, before the first batch.

    Raises:
        InvalidConfig: If either value is not a positive integer
    """

    step_size: int = 1000
    threads: int = 1

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        for name in ("step_size", "threads"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise InvalidConfig(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise InvalidConfig(f"{name} must be >= 1, got {value}")

    def num_batches(self, num_nodes: int) -> int:
        """Number of batches needed to cover ``num_nodes`` points."""
        return math.ceil(num_nodes / self.step_size)
