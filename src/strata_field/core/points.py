"""Sample points and lens correction.

A sample point is one spatial location (typically a mesh node) at which the
acoustic intensity is evaluated. Large meshes are handled in bulk through
:class:`NodeSet`, which stores ids and coordinates as contiguous arrays.

Example:
    >>> from strata_field import LensCorrection, NodeSet
    >>> nodes = NodeSet(node_ids=[1, 2], coords=[[0, 0, 0.01], [0, 0, 0.02]])
    >>> corrected = LensCorrection.along_z(-0.002).apply(nodes.coords)
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray


@dataclass(frozen=True)
class SamplePoint:
    """A single evaluation location.

    Args:
        node_id: Mesh node identifier
        x, y, z: Coordinates in meters
    """

    node_id: int
    x: float
    y: float
    z: float

    @property
    def coords(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class LensCorrection:
    """Constant 3-D offset applied to every point before evaluation.

    Models the focal shift introduced by the transducer lens. The same
    offset is applied to every point of a run, exactly once.

    Args:
        dx, dy, dz: Offset components in meters
    """

    dx: float = 0.0
    dy: float = 0.0
    dz: float = 0.0

    @classmethod
    def along_z(cls, offset: float) -> LensCorrection:
        """Correction along the beam axis only."""
        return cls(0.0, 0.0, offset)

    @property
    def vector(self) -> NDArray[np.float64]:
        return np.array([self.dx, self.dy, self.dz], dtype=np.float64)

    def apply(self, coords: ArrayLike) -> NDArray[np.float64]:
        """Return corrected copies of ``coords``.

        Args:
            coords: Array of shape (N, 3)

        Returns:
            New float64 array of shape (N, 3); the input is not modified
        """
        arr = np.asarray(coords, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[1] != 3:
            raise ValueError(f"Expected coordinates of shape (N, 3), got {arr.shape}")
        return arr + self.vector


@dataclass(frozen=True, eq=False)
class NodeSet:
    """Bulk set of sample points.

    Args:
        node_ids: Integer identifiers, shape (N,)
        coords: Coordinates in meters, shape (N, 3)
    """

    node_ids: NDArray[np.int64]
    coords: NDArray[np.float64]

    def __post_init__(self):
        ids = np.asarray(self.node_ids, dtype=np.int64).reshape(-1)
        coords = np.asarray(self.coords, dtype=np.float64)
        if coords.size == 0:
            coords = coords.reshape(0, 3)
        if coords.ndim != 2 or coords.shape[1] != 3:
            raise ValueError(f"coords must have shape (N, 3), got {coords.shape}")
        if len(ids) != len(coords):
            raise ValueError(
                f"node_ids has {len(ids)} entries but coords has {len(coords)} rows"
            )
        object.__setattr__(self, "node_ids", ids)
        object.__setattr__(self, "coords", coords)

    @classmethod
    def from_points(cls, points: Sequence[SamplePoint]) -> NodeSet:
        ids = np.fromiter((p.node_id for p in points), dtype=np.int64, count=len(points))
        coords = np.array([p.coords for p in points], dtype=np.float64).reshape(-1, 3)
        return cls(node_ids=ids, coords=coords)

    def scaled(self, factor: float) -> NodeSet:
        """Return a copy with coordinates multiplied by ``factor``.

        Used for unit conversion, e.g. ``scaled(1e-2)`` for a mesh in cm.
        """
        return NodeSet(node_ids=self.node_ids.copy(), coords=self.coords * factor)

    def __len__(self) -> int:
        return len(self.node_ids)

    def __iter__(self) -> Iterator[SamplePoint]:
        for nid, (x, y, z) in zip(self.node_ids, self.coords):
            yield SamplePoint(int(nid), float(x), float(y), float(z))


def as_node_set(points: NodeSet | Sequence[SamplePoint] | ArrayLike) -> NodeSet:
    """Coerce supported point containers to a :class:`NodeSet`.

    Accepts a NodeSet, a sequence of SamplePoint, or an (N, 3) coordinate
    array (ids are then assigned as 0..N-1). A single (3,) point becomes a
    one-point set.
    """
    if isinstance(points, NodeSet):
        return points
    if isinstance(points, Sequence) and len(points) > 0 and isinstance(points[0], SamplePoint):
        return NodeSet.from_points(points)

    coords = np.asarray(points, dtype=np.float64)
    if coords.size == 0:
        return NodeSet(node_ids=np.empty(0, dtype=np.int64), coords=np.empty((0, 3)))
    coords = np.atleast_2d(coords)
    return NodeSet(node_ids=np.arange(len(coords), dtype=np.int64), coords=coords)
