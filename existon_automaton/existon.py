from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

import numpy as np

from .errors import DimensionMismatch
from .multivector import Multivector


class Classification(IntEnum):
    """Reality status of a cell. Integer codes are what the universe arena stores."""
    POTENTIAL = 0  # superposed, free to evolve
    OBSERVED = 1   # collapsed
    OPERATOR = 2   # user-fixed, frozen


@dataclass
class Existon:
    """One cell: identity, algebraic state and classification.

    The universe keeps its cells in packed arrays and hands out Existons as
    snapshots; `update` is the only write path and always replaces both the
    classification and the state.
    """

    id: int
    state: Multivector
    classification: Classification = Classification.POTENTIAL

    @classmethod
    def random(cls, id: int, order: int, rng: np.random.Generator) -> "Existon":
        return cls(id=int(id), state=Multivector.random(order, rng), classification=Classification.POTENTIAL)

    @classmethod
    def operator(cls, id: int, state: Multivector) -> "Existon":
        return cls(id=int(id), state=state, classification=Classification.OPERATOR)

    @property
    def order(self) -> int:
        return self.state.order

    def update(self, classification: Classification, state: Multivector) -> None:
        if state.order != self.state.order:
            raise DimensionMismatch(f"cell {self.id} holds order {self.state.order}, got order {state.order}")
        self.classification = Classification(classification)
        self.state = state
