from __future__ import annotations

"""
N-dimensional cell lattice: coordinate <-> index mapping and neighbor tables.

Cells are numbered in row-major (C) order over `dims`, and that linear index is
also the Existon id. Neighbor lookups are precomputed once per lattice as an
(n_cells, k) index array so that the tick can gather every neighborhood with a
single fancy-index per column.

Boundary policies:
- "wrap":  periodic (torus); coordinates are taken modulo the extent.
- "clamp": coordinates are clipped to the edge, so a border cell sees itself in
           place of the missing neighbor.
"""

import itertools
import operator
from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple

import networkx as nx
import numpy as np

from .config import BOUNDARIES, NEIGHBORHOODS
from .errors import InvalidDimensions, OutOfBounds


Coord = Tuple[int, ...]


def neighbor_offsets(ndim: int, neighborhood: str) -> np.ndarray:
    """Offsets as an (k, ndim) int array in a fixed order."""
    if neighborhood == "von_neumann":
        rows: List[Tuple[int, ...]] = []
        for axis in range(ndim):
            for step in (-1, 1):
                off = [0] * ndim
                off[axis] = step
                rows.append(tuple(off))
    elif neighborhood == "moore":
        rows = [off for off in itertools.product((-1, 0, 1), repeat=ndim) if any(off)]
    else:
        raise ValueError(f"Unknown neighborhood={neighborhood!r} (use one of {NEIGHBORHOODS})")
    return np.array(rows, dtype=np.int64).reshape(len(rows), ndim)


def validate_dims(dims: Sequence[int]) -> Tuple[int, ...]:
    if isinstance(dims, (str, bytes)):
        raise InvalidDimensions(f"dims must be a sequence of positive integers, got {dims!r}")
    try:
        out = tuple(operator.index(d) for d in dims)
    except TypeError as exc:
        raise InvalidDimensions(f"dims must be a sequence of positive integers, got {dims!r}") from exc
    if len(out) == 0:
        raise InvalidDimensions("grid needs at least one dimension")
    if any(d < 1 for d in out):
        raise InvalidDimensions(f"every dimension must be positive, got {out}")
    return out


@dataclass(frozen=True)
class Lattice:
    dims: Tuple[int, ...]
    boundary: str
    neighborhood: str
    neighbors: np.ndarray  # (n_cells, k) neighbor indices, column order = neighbor_offsets

    @classmethod
    def build(cls, dims: Sequence[int], *, boundary: str = "wrap", neighborhood: str = "von_neumann") -> "Lattice":
        dims = validate_dims(dims)
        if boundary not in BOUNDARIES:
            raise ValueError(f"Unknown boundary={boundary!r} (use one of {BOUNDARIES})")
        mode = "wrap" if boundary == "wrap" else "clip"

        offsets = neighbor_offsets(len(dims), neighborhood)
        coords = np.indices(dims).reshape(len(dims), -1)
        cols = [
            np.ravel_multi_index(tuple(coords + off[:, None]), dims, mode=mode)
            for off in offsets
        ]
        neighbors = np.stack(cols, axis=1).astype(np.int64)
        neighbors.setflags(write=False)
        return cls(dims=dims, boundary=boundary, neighborhood=neighborhood, neighbors=neighbors)

    @property
    def ndim(self) -> int:
        return len(self.dims)

    @property
    def size(self) -> int:
        return int(np.prod(self.dims))

    def contains(self, coord: Sequence[int]) -> bool:
        if len(coord) != self.ndim:
            return False
        return all(0 <= int(c) < d for c, d in zip(coord, self.dims))

    def index(self, coord: Sequence[int]) -> int:
        coord = tuple(int(c) for c in coord)
        if not self.contains(coord):
            raise OutOfBounds(f"coordinate {coord} outside grid {self.dims}")
        return int(np.ravel_multi_index(coord, self.dims))

    def coord(self, index: int) -> Coord:
        if not 0 <= int(index) < self.size:
            raise OutOfBounds(f"cell index {index} outside grid of {self.size} cells")
        return tuple(int(c) for c in np.unravel_index(int(index), self.dims))

    def coords(self) -> Iterator[Coord]:
        return itertools.product(*(range(d) for d in self.dims))

    def neighbors_of(self, coord: Sequence[int]) -> List[Coord]:
        return [self.coord(int(j)) for j in self.neighbors[self.index(coord)]]

    def to_graph(self) -> nx.Graph:
        """Undirected adjacency graph on cell indices (self-neighbors from clamping dropped)."""
        G = nx.Graph()
        G.add_nodes_from(range(self.size))
        for i, row in enumerate(self.neighbors):
            for j in row:
                j = int(j)
                if j != i:
                    G.add_edge(i, j)
        return G
