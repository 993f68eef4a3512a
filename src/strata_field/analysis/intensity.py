"""Intensity normalization and level calculations.

Intensity here is the sum of squared pressure samples at a point, a
relative measure of acoustic energy. Levels are expressed in dB relative to
the field peak:

    L = 10 * log10(I / I_ref)
"""

from __future__ import annotations

import warnings

import numpy as np
from numpy.typing import ArrayLike, NDArray


def normalize_intensity(intensity: ArrayLike) -> NDArray[np.float64]:
    """Scale intensities so the peak is 1.

    An all-zero field is returned unchanged, with a warning.
    """
    values = np.asarray(intensity, dtype=np.float64)
    peak = values.max() if values.size else 0.0
    if peak <= 0:
        warnings.warn("Intensity field has no positive values", UserWarning, stacklevel=2)
        return values.copy()
    return values / peak


def intensity_to_db(
    intensity: ArrayLike,
    reference: float | None = None,
) -> NDArray[np.float64]:
    """Convert intensity to dB.

    Args:
        intensity: Intensity values
        reference: Reference intensity (default: the peak value)

    Returns:
        Level in dB; zero intensity maps to -inf
    """
    values = np.asarray(intensity, dtype=np.float64)
    ref = values.max() if reference is None else reference
    if ref <= 0:
        raise ValueError("Reference intensity must be positive")

    with np.errstate(divide="ignore"):
        return 10.0 * np.log10(values / ref)


def focal_region(intensity: ArrayLike, threshold_db: float = -6.0) -> NDArray[np.bool_]:
    """Mask of points within ``threshold_db`` of the peak intensity."""
    if threshold_db > 0:
        raise ValueError("threshold_db must be <= 0")
    return intensity_to_db(intensity) >= threshold_db
