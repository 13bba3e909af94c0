"""Existon automaton: a cellular automaton over tristate Clifford-algebra states.

Core components:

- **tristate**: the {-1, 0, 1} coefficient ring (wrapping combine, signed scale).
- **multivector**: order-p multivectors and the generalized geometric product of Cl(p,0).
- **existon**: a cell (id, multivector state, Potential/Observed/Operator classification).
- **universe**: the N-dimensional grid and its tick engine (local interaction,
  observation, decay, fluctuation and entangled collapse).

See:
- `configs/default.yaml`
- `python -m existon_automaton.run --help`
"""

__all__ = [
    "errors",
    "tristate",
    "multivector",
    "existon",
    "config",
    "rng",
    "lattice",
    "entanglement",
    "universe",
    "observables",
    "export",
    "plots",
    "repro",
]
