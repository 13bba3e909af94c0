from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

import numpy as np

from .errors import EntanglementError, OutOfBounds


UNPAIRED = -1


class EntanglementTable:
    """Symmetric one-to-one pairing of cell indices.

    Stored as a partner array: partner[i] == j and partner[j] == i for every
    pair, UNPAIRED elsewhere. Because pairing is one-to-one, collapse forcing
    never chains and the order in which pairs are visited does not matter.
    """

    def __init__(self, n_cells: int, partner: np.ndarray | None = None):
        self.n_cells = int(n_cells)
        if partner is None:
            partner = np.full(self.n_cells, UNPAIRED, dtype=np.int64)
        self.partner = np.asarray(partner, dtype=np.int64).copy()

    @classmethod
    def build(cls, n_cells: int, fraction: float, rng: np.random.Generator) -> "EntanglementTable":
        """Pair floor(fraction * n_cells) randomly chosen cells, rounded down to an even count."""
        table = cls(n_cells)
        k = int(np.floor(float(fraction) * n_cells + 1e-9))
        k -= k % 2
        if k == 0:
            return table
        chosen = rng.permutation(n_cells)[:k]
        for a, b in chosen.reshape(-1, 2):
            table.partner[a] = b
            table.partner[b] = a
        return table

    @classmethod
    def from_pairs(cls, n_cells: int, pairs: Iterable[Tuple[int, int]]) -> "EntanglementTable":
        table = cls(n_cells)
        for a, b in pairs:
            table.pair(a, b)
        return table

    def _check_index(self, i: int) -> int:
        i = int(i)
        if not 0 <= i < self.n_cells:
            raise OutOfBounds(f"cell index {i} outside grid of {self.n_cells} cells")
        return i

    def pair(self, a: int, b: int) -> None:
        a = self._check_index(a)
        b = self._check_index(b)
        if a == b:
            raise EntanglementError(f"cell {a} cannot be entangled with itself")
        for i in (a, b):
            if self.partner[i] != UNPAIRED:
                raise EntanglementError(f"cell {i} is already entangled with {int(self.partner[i])}")
        self.partner[a] = b
        self.partner[b] = a

    def partner_of(self, i: int) -> int | None:
        p = int(self.partner[self._check_index(i)])
        return None if p == UNPAIRED else p

    def partners_of(self, indices: np.ndarray) -> np.ndarray:
        """Partners of the given cells, unpaired ones dropped."""
        p = self.partner[np.asarray(indices, dtype=np.int64)]
        return p[p != UNPAIRED]

    def pairs(self) -> List[Tuple[int, int]]:
        idx = np.flatnonzero(self.partner > np.arange(self.n_cells))
        return [(int(i), int(self.partner[i])) for i in idx]

    def as_dict(self) -> Dict[int, int]:
        idx = np.flatnonzero(self.partner != UNPAIRED)
        return {int(i): int(self.partner[i]) for i in idx}

    @property
    def paired_fraction(self) -> float:
        if self.n_cells == 0:
            return 0.0
        return float(np.count_nonzero(self.partner != UNPAIRED) / self.n_cells)

    def __len__(self) -> int:
        return int(np.count_nonzero(self.partner != UNPAIRED) // 2)

    def validate(self, n_cells: int) -> None:
        """Raise EntanglementError unless this is a symmetric one-to-one pairing of real cells."""
        if self.partner.shape != (int(n_cells),):
            raise EntanglementError(f"table covers {self.partner.shape[0]} cells, grid has {n_cells}")
        paired = np.flatnonzero(self.partner != UNPAIRED)
        p = self.partner[paired]
        if np.any((p < 0) | (p >= n_cells)):
            raise EntanglementError("entanglement partner outside the grid")
        if np.any(p == paired):
            raise EntanglementError("cell entangled with itself")
        if np.any(self.partner[p] != paired):
            raise EntanglementError("entanglement table is not symmetric")
