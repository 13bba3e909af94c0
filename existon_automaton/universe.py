from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .config import ENTANGLEMENT_CYCLE, CollapseConfig, RateKind, Rates, UniverseConfig
from .entanglement import EntanglementTable
from .errors import DimensionMismatch, InvalidDimensions
from .existon import Classification, Existon
from .lattice import Coord, Lattice, validate_dims
from .multivector import Multivector, blade_count, combine_batch, geometric_product_batch, random_coefficients
from .rng import universe_rng
from .tristate import coefficient_entropy


POTENTIAL = np.int8(Classification.POTENTIAL)
OBSERVED = np.int8(Classification.OBSERVED)
OPERATOR = np.int8(Classification.OPERATOR)


@dataclass(frozen=True)
class CellView:
    """Read-only cell snapshot for display layers."""
    classification: Classification
    coefficients: Tuple[int, ...]


@dataclass(frozen=True)
class TickReport:
    tick: int
    observed: int          # Potential -> Observed by local observation
    decayed: int           # Observed -> Potential
    fluctuated: int        # Potential cells whose state was re-randomised
    entangled: int         # partners forced to Observed that were not already Observed
    counts: Dict[str, int]
    mean_scalar: float = 0.0   # mean grade-0 coefficient over all cells
    entropy_bits: float = 0.0  # entropy of the pooled coefficient values

    def to_row(self) -> Dict[str, Any]:
        row = {
            "tick": self.tick,
            "newly_observed": self.observed,
            "decayed": self.decayed,
            "fluctuated": self.fluctuated,
            "entangled_collapses": self.entangled,
            "mean_scalar": self.mean_scalar,
            "entropy_bits": self.entropy_bits,
        }
        row.update({f"n_{k}": v for k, v in self.counts.items()})
        return row


@dataclass
class _Generation:
    """Everything rebuilt by construction/reset. Swapped in as a whole."""
    lattice: Lattice
    order: int
    states: np.ndarray        # (n_cells, 2**order) int8
    classes: np.ndarray       # (n_cells,) int8 Classification codes
    entanglement: EntanglementTable
    rng: np.random.Generator


def local_operators(states: np.ndarray, neighbors: np.ndarray, order: int) -> np.ndarray:
    """Combine every cell's neighbor states into one local operator per cell."""
    op = np.zeros_like(states)
    for col in range(neighbors.shape[1]):
        op = combine_batch(op, states[neighbors[:, col]], order)
    return op


class Universe:
    """N-dimensional grid of Existons advanced one synchronous tick at a time.

    Cell data is held as packed arrays (an arena). A tick reads only the
    committed arrays, computes the next arrays in full and swaps them in, so no
    decision in a tick depends on another cell's update from the same tick.
    A re-entrant lock serialises ticks against setters and operator painting,
    which therefore always land between ticks.
    """

    def __init__(
        self,
        dims: Sequence[int],
        order: int,
        rates: Rates | None = None,
        *,
        seed: int = 0,
        boundary: str = "wrap",
        neighborhood: str = "von_neumann",
        collapse: CollapseConfig | None = None,
    ):
        self.seed = int(seed)
        self.boundary = boundary
        self.neighborhood = neighborhood
        self.rates = rates if rates is not None else Rates()
        self.collapse = collapse if collapse is not None else CollapseConfig()
        self.generation = 0
        self.tick_count = 0
        self._lock = threading.RLock()
        self._g = self._build(dims, order, self.rates.entanglement_fraction, generation=0)

    @classmethod
    def from_config(cls, cfg: UniverseConfig) -> "Universe":
        return cls(
            cfg.dims,
            cfg.order,
            cfg.rates,
            seed=cfg.seed,
            boundary=cfg.boundary,
            neighborhood=cfg.neighborhood,
            collapse=cfg.collapse,
        )

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------

    def _build(self, dims: Sequence[int], order: int, fraction: float, *, generation: int) -> _Generation:
        dims = validate_dims(dims)
        order = int(order)
        if order < 1:
            raise InvalidDimensions(f"algebra order must be positive, got {order}")
        lattice = Lattice.build(dims, boundary=self.boundary, neighborhood=self.neighborhood)
        rng = universe_rng(self.seed, generation)
        states = random_coefficients(rng, lattice.size, order)
        classes = np.full(lattice.size, POTENTIAL, dtype=np.int8)
        entanglement = EntanglementTable.build(lattice.size, fraction, rng)
        return _Generation(lattice=lattice, order=order, states=states, classes=classes,
                           entanglement=entanglement, rng=rng)

    def reset(self, dims: Sequence[int] | None = None, order: int | None = None) -> None:
        """Rebuild all cells and the entanglement table with the current rates.

        Invalid dims/order raise before anything is replaced.
        """
        with self._lock:
            new = self._build(
                self.dims if dims is None else dims,
                self.order if order is None else order,
                self.rates.entanglement_fraction,
                generation=self.generation + 1,
            )
            self._g = new
            self.generation += 1
            self.tick_count = 0

    # ------------------------------------------------------------------
    # read access
    # ------------------------------------------------------------------

    @property
    def lattice(self) -> Lattice:
        return self._g.lattice

    @property
    def dims(self) -> Tuple[int, ...]:
        return self._g.lattice.dims

    @property
    def order(self) -> int:
        return self._g.order

    @property
    def size(self) -> int:
        return self._g.lattice.size

    @property
    def entanglement(self) -> EntanglementTable:
        return self._g.entanglement

    @property
    def states(self) -> np.ndarray:
        view = self._g.states.view()
        view.setflags(write=False)
        return view

    @property
    def classes(self) -> np.ndarray:
        view = self._g.classes.view()
        view.setflags(write=False)
        return view

    def get_cell(self, coord: Sequence[int]) -> CellView:
        with self._lock:
            i = self._g.lattice.index(coord)
            return CellView(
                classification=Classification(int(self._g.classes[i])),
                coefficients=tuple(int(c) for c in self._g.states[i]),
            )

    def existon(self, coord: Sequence[int]) -> Existon:
        """Snapshot of the cell at `coord` as an Existon."""
        with self._lock:
            i = self._g.lattice.index(coord)
            return self._existon_at(i)

    def _existon_at(self, i: int, g: _Generation | None = None) -> Existon:
        g = self._g if g is None else g
        return Existon(
            id=i,
            state=Multivector(g.order, g.states[i]),
            classification=Classification(int(g.classes[i])),
        )

    def existons(self) -> List[Existon]:
        """Snapshot of every cell, taken from one committed generation."""
        with self._lock:
            g = self._g
            return [self._existon_at(i, g) for i in range(g.lattice.size)]

    def _store(self, cell: Existon) -> None:
        if cell.order != self._g.order:
            raise DimensionMismatch(f"universe has order {self._g.order}, cell {cell.id} has {cell.order}")
        self._g.states[cell.id] = cell.state.to_array()
        self._g.classes[cell.id] = np.int8(cell.classification)

    def counts(self) -> Dict[str, int]:
        codes = np.bincount(self._g.classes, minlength=len(Classification))
        return {c.name.lower(): int(codes[c.value]) for c in Classification}

    # ------------------------------------------------------------------
    # mutation between ticks
    # ------------------------------------------------------------------

    def set_rate(self, which: RateKind | str, value: float) -> None:
        with self._lock:
            self.rates = self.rates.with_rate(which, value)

    def set_entanglement_fraction(self, fraction: float) -> None:
        """Set the entanglement fraction and rebuild the pairing (cells untouched)."""
        with self._lock:
            rates = replace(self.rates, entanglement_fraction=fraction)
            self._g.entanglement = EntanglementTable.build(self.size, rates.entanglement_fraction, self._g.rng)
            self.rates = rates

    def cycle_entanglement(self) -> float:
        """Advance the entanglement fraction through 1%, 5%, 10%, 20% and rebuild the table."""
        with self._lock:
            current = self.rates.entanglement_fraction
            nxt = ENTANGLEMENT_CYCLE[0]
            for k, frac in enumerate(ENTANGLEMENT_CYCLE):
                if np.isclose(frac, current):
                    nxt = ENTANGLEMENT_CYCLE[(k + 1) % len(ENTANGLEMENT_CYCLE)]
                    break
            self.set_entanglement_fraction(nxt)
            return nxt

    def entangle(self, a: Sequence[int], b: Sequence[int]) -> None:
        """Explicitly pair two coordinates (both must be unpaired)."""
        with self._lock:
            lat = self._g.lattice
            self._g.entanglement.pair(lat.index(a), lat.index(b))

    def set_entanglement(self, pairs: Iterable[Tuple[Sequence[int], Sequence[int]]]) -> None:
        """Replace the whole pairing with the given coordinate pairs."""
        with self._lock:
            lat = self._g.lattice
            table = EntanglementTable.from_pairs(lat.size, ((lat.index(a), lat.index(b)) for a, b in pairs))
            self._g.entanglement = table

    def partner(self, coord: Sequence[int]) -> Optional[Coord]:
        with self._lock:
            lat = self._g.lattice
            p = self._g.entanglement.partner_of(lat.index(coord))
            return None if p is None else lat.coord(p)

    def place_operator(self, coord: Sequence[int], multivector: Multivector) -> None:
        with self._lock:
            cell = self.existon(coord)
            cell.update(Classification.OPERATOR, multivector)
            self._store(cell)

    def erase_operator(self, coord: Sequence[int]) -> None:
        """Return the cell to Potential with a fresh random state."""
        with self._lock:
            cell = self.existon(coord)
            cell.update(Classification.POTENTIAL, Multivector.random(self._g.order, self._g.rng))
            self._store(cell)

    def observe(self, coord: Sequence[int]) -> bool:
        """Measure one cell now: Potential -> Observed, collapsing its partner too.

        Returns False (and changes nothing) unless the cell was Potential.
        """
        with self._lock:
            g = self._g
            i = g.lattice.index(coord)
            if g.classes[i] != POTENTIAL:
                return False
            states = g.states.copy()
            classes = g.classes.copy()
            newly = np.array([i], dtype=np.int64)
            classes[newly] = OBSERVED
            if self.collapse.project_on_observe:
                states[newly, -1] = 0
            self._force_partners(newly, states, classes)
            g.states, g.classes = states, classes
            return True

    # ------------------------------------------------------------------
    # tick
    # ------------------------------------------------------------------

    def _force_partners(self, newly_observed: np.ndarray, states: np.ndarray, classes: np.ndarray) -> int:
        """Force the partners of newly observed cells to Observed in the shadow buffers."""
        partners = self._g.entanglement.partners_of(newly_observed)
        partners = partners[classes[partners] != OPERATOR]
        flipped = partners[classes[partners] != OBSERVED]
        if self.collapse.invert_partner and flipped.size:
            minus_one = Multivector.scalar(self._g.order, -1).to_array()
            states[flipped] = geometric_product_batch(states[flipped], minus_one[None, :], self._g.order)
        classes[partners] = OBSERVED
        return int(flipped.size)

    def tick(self) -> TickReport:
        """Advance the whole grid by one step and commit it atomically."""
        with self._lock:
            g = self._g
            g.entanglement.validate(g.lattice.size)
            rates = self.rates
            n = g.lattice.size
            rng = g.rng

            prev_states = g.states
            prev_classes = g.classes
            active = prev_classes != OPERATOR
            potential = prev_classes == POTENTIAL
            observed = prev_classes == OBSERVED

            # local interaction: S' = S * (sum of neighbor states)
            operator = local_operators(prev_states, g.lattice.neighbors, g.order)
            candidate = geometric_product_batch(prev_states, operator, g.order)
            states = np.where(active[:, None], candidate, prev_states).astype(np.int8)

            # the three stochastic processes, decided from the previous classifications
            u_observe = rng.random(n)
            u_decay = rng.random(n)
            u_fluct = rng.random(n)
            becomes_observed = potential & (u_observe < rates.observation)
            decays = observed & (u_decay < rates.decay)
            fluctuates = potential & (u_fluct < rates.fluctuation)

            n_fluct = int(np.count_nonzero(fluctuates))
            if n_fluct:
                states[fluctuates] = random_coefficients(rng, n_fluct, g.order)

            classes = prev_classes.copy()
            classes[becomes_observed] = OBSERVED
            classes[decays] = POTENTIAL

            if self.collapse.project_on_observe:
                states[becomes_observed, blade_count(g.order) - 1] = 0
            n_decay = int(np.count_nonzero(decays))
            if self.collapse.randomize_on_decay and n_decay:
                states[decays] = random_coefficients(rng, n_decay, g.order)

            # entanglement: instantaneous collapse of partners
            newly = np.flatnonzero(becomes_observed)
            n_entangled = self._force_partners(newly, states, classes)

            g.states, g.classes = states, classes
            self.tick_count += 1
            return TickReport(
                tick=self.tick_count,
                observed=int(newly.size),
                decayed=n_decay,
                fluctuated=n_fluct,
                entangled=n_entangled,
                counts=self.counts(),
                mean_scalar=float(states[:, 0].mean()),
                entropy_bits=coefficient_entropy(states),
            )

    def run(self, ticks: int) -> List[TickReport]:
        return [self.tick() for _ in range(int(ticks))]


# ----------------------------------------------------------------------
# functional interface for render/input layers
# ----------------------------------------------------------------------

def new_grid(
    dims: Sequence[int],
    p: int,
    rates: Rates | Dict[str, float] | None = None,
    **kwargs,
) -> Universe:
    if isinstance(rates, dict):
        rates = Rates(**rates)
    return Universe(dims, p, rates, **kwargs)


def tick(grid: Universe) -> TickReport:
    return grid.tick()


def reset(grid: Universe) -> None:
    grid.reset()


def set_rate(grid: Universe, which: RateKind | str, value: float) -> None:
    grid.set_rate(which, value)


def cycle_entanglement(grid: Universe) -> float:
    return grid.cycle_entanglement()


def place_operator(grid: Universe, coord: Sequence[int], multivector: Multivector) -> None:
    grid.place_operator(coord, multivector)


def erase_operator(grid: Universe, coord: Sequence[int]) -> None:
    grid.erase_operator(coord)


def get_cell(grid: Universe, coord: Sequence[int]) -> CellView:
    return grid.get_cell(coord)
