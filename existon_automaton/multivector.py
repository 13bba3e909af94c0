"""Multivectors of Cl(p,0) over tristate coefficients.

Basis blades are indexed by bitmask: bit k of the blade index is set iff the
generator e_k is a factor. For p=3, blade 5 (0b101) is e0 e2. The coefficient
array of an order-p multivector therefore has 2**p entries, ordered by blade
index (scalar first, pseudoscalar last).

Sign convention: e_A e_B = s(A, B) e_{A xor B}, where s is (-1)**t and t is the
number of transpositions that bubble-sort the concatenated generator sequence of
A then B into ascending order. Every generator squares to +1.

Coefficients live in Z/3Z, which is a field, so the product below is the
Clifford algebra Cl(p,0) over GF(3) and is associative and bilinear.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from .errors import DimensionMismatch
from .tristate import combine, is_tristate, scale


def blade_count(order: int) -> int:
    return 1 << int(order)


def grade(blade: int) -> int:
    return bin(int(blade)).count("1")


def reordering_sign(a: int, b: int) -> int:
    """Sign picked up by e_a e_b when the generator sequence is sorted.

    Counts the pairs (x in a, y in b) with x > y: each such pair is one
    transposition needed to move e_y left past e_x.
    """
    a = int(a) >> 1
    swaps = 0
    while a:
        swaps += bin(a & int(b)).count("1")
        a >>= 1
    return -1 if swaps & 1 else 1


@lru_cache(maxsize=None)
def product_table(order: int) -> Tuple[Tuple[int, int, int, int], ...]:
    """All (i, j, i ^ j, sign) blade pairs in fixed row-major order."""
    n = blade_count(order)
    return tuple((i, j, i ^ j, reordering_sign(i, j)) for i in range(n) for j in range(n))


def blade_labels(order: int) -> List[str]:
    labels = []
    for blade in range(blade_count(order)):
        if blade == 0:
            labels.append("1")
        else:
            labels.append("e" + "".join(str(k) for k in range(order) if (blade >> k) & 1))
    return labels


def _check_batch(a: np.ndarray, order: int, name: str) -> np.ndarray:
    a = np.asarray(a, dtype=np.int8)
    if a.shape[-1] != blade_count(order):
        raise DimensionMismatch(
            f"{name} has {a.shape[-1]} coefficients per row, order {order} needs {blade_count(order)}"
        )
    return a


def combine_batch(a: np.ndarray, b: np.ndarray, order: int) -> np.ndarray:
    """Coefficient-wise tristate combine on (..., 2**order) arrays."""
    a = _check_batch(a, order, "left operand")
    b = _check_batch(b, order, "right operand")
    return combine(a, b).astype(np.int8)


def geometric_product_batch(a: np.ndarray, b: np.ndarray, order: int) -> np.ndarray:
    """Geometric product applied row-by-row to (..., 2**order) coefficient arrays.

    Contributions are folded into each output blade with `combine` in the order
    given by `product_table`, so results are reproducible bit for bit.
    """
    a = _check_batch(a, order, "left operand")
    b = _check_batch(b, order, "right operand")
    out = np.zeros(np.broadcast_shapes(a.shape, b.shape), dtype=np.int8)
    for i, j, k, sign in product_table(order):
        term = scale(scale(a[..., i], b[..., j]), np.int8(sign))
        out[..., k] = combine(out[..., k], term)
    return out


def random_coefficients(rng: np.random.Generator, n: int, order: int) -> np.ndarray:
    """(n, 2**order) array of coefficients drawn uniformly from {-1, 0, 1}."""
    return rng.integers(-1, 2, size=(int(n), blade_count(order)), dtype=np.int8)


class Multivector:
    """Immutable order-p multivector with one tristate coefficient per basis blade."""

    __slots__ = ("_order", "_coeffs")

    def __init__(self, order: int, coefficients: Iterable[int]):
        order = int(order)
        if order < 0:
            raise ValueError(f"algebra order must be >= 0, got {order}")
        raw = np.asarray(list(coefficients) if not isinstance(coefficients, np.ndarray) else coefficients)
        if raw.ndim != 1 or raw.shape[0] != blade_count(order):
            raise DimensionMismatch(
                f"order {order} multivector needs {blade_count(order)} coefficients, got shape {raw.shape}"
            )
        if raw.size and not np.all(is_tristate(raw)):
            raise ValueError(f"coefficients must lie in {{-1, 0, 1}}, got {raw.tolist()}")
        coeffs = raw.astype(np.int8, copy=True)
        coeffs.setflags(write=False)
        self._order = order
        self._coeffs = coeffs

    @classmethod
    def zero(cls, order: int) -> "Multivector":
        return cls(order, np.zeros(blade_count(order), dtype=np.int8))

    @classmethod
    def scalar(cls, order: int, value: int = 1) -> "Multivector":
        coeffs = np.zeros(blade_count(order), dtype=np.int8)
        coeffs[0] = value
        return cls(order, coeffs)

    @classmethod
    def basis(cls, order: int, blade: int, value: int = 1) -> "Multivector":
        if not 0 <= int(blade) < blade_count(order):
            raise DimensionMismatch(f"blade {blade} does not exist in order {order}")
        coeffs = np.zeros(blade_count(order), dtype=np.int8)
        coeffs[int(blade)] = value
        return cls(order, coeffs)

    @classmethod
    def random(cls, order: int, rng: np.random.Generator) -> "Multivector":
        return cls(order, random_coefficients(rng, 1, order)[0])

    @property
    def order(self) -> int:
        return self._order

    @property
    def coefficients(self) -> Tuple[int, ...]:
        return tuple(int(c) for c in self._coeffs)

    def to_array(self) -> np.ndarray:
        """Writable int8 copy of the coefficient array."""
        return self._coeffs.copy()

    def grade_part(self, k: int) -> "Multivector":
        mask = np.array([grade(b) == int(k) for b in range(blade_count(self._order))], dtype=bool)
        return Multivector(self._order, np.where(mask, self._coeffs, 0))

    def _check_same_order(self, other: "Multivector") -> None:
        if not isinstance(other, Multivector):
            raise TypeError(f"expected Multivector, got {type(other).__name__}")
        if other._order != self._order:
            raise DimensionMismatch(f"order {self._order} vs order {other._order}")

    def __add__(self, other: "Multivector") -> "Multivector":
        self._check_same_order(other)
        return Multivector(self._order, combine_batch(self._coeffs, other._coeffs, self._order))

    def __mul__(self, other: "Multivector") -> "Multivector":
        self._check_same_order(other)
        out = geometric_product_batch(self._coeffs[None, :], other._coeffs[None, :], self._order)
        return Multivector(self._order, out[0])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Multivector):
            return NotImplemented
        return self._order == other._order and bool(np.array_equal(self._coeffs, other._coeffs))

    def __hash__(self) -> int:
        return hash((self._order, self.coefficients))

    def __len__(self) -> int:
        return int(self._coeffs.shape[0])

    def __repr__(self) -> str:
        return f"Multivector(order={self._order}, coefficients={list(self.coefficients)})"

    def __str__(self) -> str:
        terms = []
        for label, c in zip(blade_labels(self._order), self.coefficients):
            if c == 0:
                continue
            sign = "-" if c < 0 else "+"
            terms.append(f"{sign}{label}")
        if not terms:
            return "0"
        text = " ".join(terms)
        return text[1:] if text.startswith("+") else text


def sum_multivectors(items: Sequence[Multivector], order: int) -> Multivector:
    """Fold `combine` over a sequence; the empty sum is the zero multivector."""
    acc = Multivector.zero(order)
    for mv in items:
        acc = acc + mv
    return acc
