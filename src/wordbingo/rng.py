from __future__ import annotations

import hashlib
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass
class RandomSource:
    engine: str

    def randint(self, a: int, b: int) -> int:
        raise NotImplementedError

    def random(self) -> float:
        raise NotImplementedError

    def choice(self, seq: Sequence[T]) -> T:
        return seq[self.randint(0, len(seq) - 1)]


class PyRandomSource(RandomSource):
    """Mersenne Twister; unseeded instances draw their state from the OS."""

    def __init__(self, seed: Optional[int] = None):
        super().__init__(engine="py_random")
        self._rng = random.Random(seed)

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def random(self) -> float:
        return self._rng.random()


class SystemRandomSource(RandomSource):
    def __init__(self, seed: Optional[int] = None):
        super().__init__(engine="system")
        # SystemRandom ignores seeding; accepted only for a uniform factory signature.
        self._rng = random.SystemRandom()

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def random(self) -> float:
        return self._rng.random()


def create_rng(engine: str, seed: Optional[int] = None) -> RandomSource:
    engine = (engine or "py_random").strip().lower()
    if engine == "py_random":
        return PyRandomSource(seed)
    if engine == "system":
        if seed is not None:
            raise ValueError("The 'system' engine cannot be seeded; use 'py_random'")
        return SystemRandomSource()
    raise ValueError(f"Unsupported RNG engine: {engine}")


def fisher_yates(items: Sequence[T], rng: RandomSource) -> List[T]:
    """Uniform random permutation of a copy of ``items``."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def derive_card_seed(base_seed: int, index: int, purpose: str = "card") -> int:
    """Derive per-card seed from base seed, index, and purpose using sha256.

    Returns a 63-bit positive integer suitable for seeding common RNGs.
    """
    s = f"{base_seed}|{index}|{purpose}".encode("utf-8")
    digest = hashlib.sha256(s).digest()
    return int.from_bytes(digest[:8], byteorder="big") & ((1 << 63) - 1)
