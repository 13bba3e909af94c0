from __future__ import annotations

import hashlib
from typing import Union

import numpy as np


SeedPart = Union[int, str]


def derive_seed(base_seed: int, *parts: SeedPart, modulo: int = 2**32 - 1) -> int:
    """Stable 32-bit seed for a named sub-stream of a run.

    Each part is rendered as text and separated with "|" so that
    (1, "reset", 2) and (1, "reset2") hash differently.
    """
    h = hashlib.blake2b(digest_size=8)
    h.update("|".join(str(p) for p in (int(base_seed), *parts)).encode("utf-8"))
    return int(int.from_bytes(h.digest(), "big", signed=False) % modulo)


def make_rng(seed: int) -> np.random.Generator:
    return np.random.default_rng(int(seed))


def universe_rng(base_seed: int, generation: int) -> np.random.Generator:
    """Generator for the `generation`-th build of a universe (0 = construction, n = n-th reset)."""
    if generation == 0:
        return make_rng(base_seed)
    return make_rng(derive_seed(base_seed, "reset", int(generation)))
