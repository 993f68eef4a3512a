"""Mesh node file input/output.

Supported formats:
    - LS-DYNA keyword (``*NODE`` block, any other suffix): rows of
      ``nid, x, y, z`` separated by commas or whitespace; ``$`` starts a
      comment line; the block ends at the next ``*`` keyword
    - NumPy ``.npy`` / ``.npz`` (array named ``nodes``): shape (N, 4) with ids
      in the first column, or (N, 3) coordinates only
    - CSV ``.csv``: same column layout as the NumPy formats, ``#`` comments
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
from numpy.typing import NDArray

from strata_field.core.points import NodeSet


def _from_table(table: NDArray, source: Path) -> NodeSet:
    table = np.atleast_2d(np.asarray(table, dtype=np.float64))
    if table.size == 0:
        raise ValueError(f"No nodes found in {source}")
    if table.shape[1] == 4:
        ids = table[:, 0]
        if not np.all(ids == np.round(ids)):
            raise ValueError(f"Non-integer node ids in {source}")
        return NodeSet(node_ids=ids.astype(np.int64), coords=table[:, 1:])
    if table.shape[1] == 3:
        return NodeSet(node_ids=np.arange(len(table), dtype=np.int64), coords=table)
    raise ValueError(
        f"Expected 3 or 4 columns in {source}, got {table.shape[1]}"
    )


def _read_keyword(path: Path) -> NodeSet:
    ids: list[int] = []
    coords: list[tuple[float, float, float]] = []
    in_block = False

    with path.open() as f:
        for lineno, raw in enumerate(f, start=1):
            line = raw.strip()
            if not line or line.startswith("$"):
                continue
            if line.startswith("*"):
                in_block = line.upper().startswith("*NODE")
                continue
            if not in_block:
                continue

            fields = line.replace(",", " ").split()
            if len(fields) < 4:
                raise ValueError(f"{path}:{lineno}: expected 'nid, x, y, z', got {line!r}")
            try:
                nid = int(fields[0])
                x, y, z = (float(v) for v in fields[1:4])
            except ValueError as e:
                raise ValueError(f"{path}:{lineno}: malformed node row {line!r}") from e
            ids.append(nid)
            coords.append((x, y, z))

    if not ids:
        raise ValueError(f"No *NODE entries found in {path}")

    return NodeSet(node_ids=np.array(ids, dtype=np.int64), coords=np.array(coords))


def read_nodes(path: str | Path) -> NodeSet:
    """Load sample points from a node file.

    Args:
        path: Node file path; format is chosen by suffix

    Returns:
        NodeSet in file order

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is malformed or contains no nodes
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Node file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".npy":
        return _from_table(np.load(path), path)
    if suffix == ".npz":
        with np.load(path) as data:
            if "nodes" not in data:
                raise ValueError(f"{path} has no 'nodes' array")
            return _from_table(data["nodes"], path)
    if suffix == ".csv":
        return _from_table(np.loadtxt(path, delimiter=",", comments="#", ndmin=2), path)
    return _read_keyword(path)


def write_nodes(path: str | Path, nodes: NodeSet) -> Path:
    """Write nodes in LS-DYNA keyword format.

    Returns:
        Path to the written file
    """
    path = Path(path)
    with path.open("w") as f:
        f.write("*NODE\n")
        for nid, (x, y, z) in zip(nodes.node_ids, nodes.coords):
            f.write(f"{int(nid)},{x:.9e},{y:.9e},{z:.9e}\n")
        f.write("*END\n")
    return path
