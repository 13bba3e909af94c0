from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap
import numpy as np
import pandas as pd


def plot_population(history: pd.DataFrame, out_path: Path, title: str) -> None:
    plt.figure()
    for col in ("n_potential", "n_observed", "n_operator"):
        if col in history.columns:
            plt.plot(history["tick"], history[col], label=col[2:])
    plt.xlabel("tick")
    plt.ylabel("# cells")
    plt.title(title)
    plt.legend()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    plt.savefig(out_path, dpi=200)
    plt.close()


def plot_transitions(history: pd.DataFrame, out_path: Path, title: str) -> None:
    plt.figure()
    for col in ("newly_observed", "decayed", "entangled_collapses"):
        plt.plot(history["tick"], history[col], label=col)
    plt.xlabel("tick")
    plt.ylabel("# transitions")
    plt.title(title)
    plt.legend()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    plt.savefig(out_path, dpi=200)
    plt.close()


def plot_cluster_sizes(sizes: List[int], out_path: Path, title: str) -> None:
    plt.figure()
    if sizes:
        plt.hist(np.asarray(sizes), bins=min(30, max(sizes)))
    else:
        plt.text(0.5, 0.5, "no observed cells", ha="center", va="center", transform=plt.gca().transAxes)
    plt.xlabel("observed cluster size (cells)")
    plt.ylabel("count")
    plt.title(title)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    plt.savefig(out_path, dpi=200)
    plt.close()


def classification_slice(classes: np.ndarray, dims: Sequence[int]) -> np.ndarray:
    """2-D view of the classification codes: first two axes, index 0 on the rest."""
    grid = np.asarray(classes).reshape(tuple(dims))
    if grid.ndim == 1:
        return grid.reshape(1, -1)
    return grid[(slice(None), slice(None)) + (0,) * (grid.ndim - 2)]


def plot_classification_snapshot(classes: np.ndarray, dims: Sequence[int], out_path: Path, title: str) -> None:
    cmap = ListedColormap(["#1b1b3a", "#ffe680", "#d62728"])  # potential, observed, operator
    plt.figure()
    # axis 0 runs along x so a (W, H) grid looks like the original window
    plt.imshow(classification_slice(classes, dims).T, cmap=cmap, vmin=0, vmax=2,
               origin="lower", interpolation="nearest")
    plt.xlabel("axis 0")
    plt.ylabel("axis 1")
    plt.title(title)
    cbar = plt.colorbar(ticks=[0, 1, 2])
    cbar.ax.set_yticklabels(["potential", "observed", "operator"])
    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    plt.savefig(out_path, dpi=200)
    plt.close()
