from __future__ import annotations

"""
Tristate coefficient arithmetic.

The coefficient domain is {-1, 0, 1}. `combine` is addition in Z/3Z using the
balanced representatives, so the two extremes fold into each other instead of
saturating:

    combine(1, 1) = -1      combine(-1, -1) = 1      combine(1, -1) = 0

`scale` is ordinary signed multiplication, which is already closed on the domain.

Both functions work on plain ints and elementwise on numpy integer arrays; the
tick engine relies on the array form.
"""

from typing import Any

import numpy as np


TRISTATE_VALUES = (-1, 0, 1)


def wrap(x: Any) -> Any:
    """Fold an integer (or integer array) back into {-1, 0, 1} modulo 3."""
    return (x + 1) % 3 - 1


def combine(a: Any, b: Any) -> Any:
    """Wrapping tristate addition."""
    return wrap(a + b)


def scale(a: Any, b: Any) -> Any:
    """Tristate multiplication (0 annihilates, -1 negates, 1 is identity)."""
    return a * b


def is_tristate(x: Any) -> Any:
    """True where x lies in {-1, 0, 1}. Elementwise for arrays."""
    if isinstance(x, np.ndarray):
        return np.isin(x, TRISTATE_VALUES)
    return x in TRISTATE_VALUES


def to_tristate(x: Any) -> Any:
    """Normalise any integer to its sign, the only lossless embedding into the domain."""
    if isinstance(x, np.ndarray):
        return np.sign(x).astype(np.int8)
    return int(np.sign(int(x)))


def coefficient_entropy(values: Any) -> float:
    """Shannon entropy (bits) of the pooled distribution of tristate values."""
    x = np.asarray(values).reshape(-1)
    if x.size == 0:
        return 0.0
    counts = np.bincount(x.astype(np.int64) + 1, minlength=3).astype(float)
    p = counts / counts.sum()
    p = p[p > 0]
    return float(-(p * np.log2(p)).sum())
