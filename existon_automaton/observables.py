from __future__ import annotations

from typing import Any, Dict, List

import networkx as nx
import numpy as np

from .existon import Classification
from .multivector import blade_labels
from .tristate import coefficient_entropy
from .universe import Universe


def blade_means(states: np.ndarray, order: int) -> Dict[str, float]:
    means = np.asarray(states, dtype=float).mean(axis=0) if len(states) else np.zeros(1 << order)
    return {label: float(m) for label, m in zip(blade_labels(order), means)}


def observed_cluster_sizes(universe: Universe) -> List[int]:
    """Sizes of connected Observed regions on the lattice graph, largest first."""
    observed = np.flatnonzero(universe.classes == np.int8(Classification.OBSERVED))
    if observed.size == 0:
        return []
    G = universe.lattice.to_graph()
    sub = G.subgraph(int(i) for i in observed)
    return sorted((len(c) for c in nx.connected_components(sub)), reverse=True)


def summarize(universe: Universe) -> Dict[str, Any]:
    counts = universe.counts()
    n = universe.size
    clusters = observed_cluster_sizes(universe)
    return {
        "tick": int(universe.tick_count),
        "dims": list(universe.dims),
        "order": int(universe.order),
        "n_cells": int(n),
        "counts": counts,
        "observed_fraction": float(counts["observed"] / n) if n else 0.0,
        "entangled_pairs": len(universe.entanglement),
        "entangled_fraction": universe.entanglement.paired_fraction,
        "rates": universe.rates.to_dict(),
        "coefficients": {
            "entropy_bits": coefficient_entropy(universe.states),
            "blade_means": blade_means(universe.states, universe.order),
        },
        "observed_clusters": {
            "count": len(clusters),
            "largest": int(clusters[0]) if clusters else 0,
            "mean": float(np.mean(clusters)) if clusters else 0.0,
        },
    }
