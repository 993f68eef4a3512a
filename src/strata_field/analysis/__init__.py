"""Post-processing of intensity results."""

from strata_field.analysis.intensity import (
    focal_region,
    intensity_to_db,
    normalize_intensity,
)

__all__ = [
    "normalize_intensity",
    "intensity_to_db",
    "focal_region",
]
