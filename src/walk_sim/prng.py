"""
Deterministic 32-bit PRNG (mulberry32).

The single-draw step is a numba kernel so the compiled walk generators can
advance the same state as the Python-side `Mulberry32` wrapper.
"""

from __future__ import annotations

from typing import Iterator, Tuple

from numba import njit

UINT32_MASK = 0xFFFFFFFF
MULBERRY_INCREMENT = 0x6D2B79F5
TWO_POW_32 = 4294967296.0


@njit(cache=True)
def mulberry32_next(state: int) -> Tuple[int, float]:
    """
    Advance a mulberry32 state by one draw.

    Args:
        state: Current 32-bit state (non-negative int)

    Returns:
        (new_state, value) with value in [0, 1)
    """
    state = (state + MULBERRY_INCREMENT) & UINT32_MASK
    t = ((state ^ (state >> 15)) * (state | 1)) & UINT32_MASK
    t = (((t + (((t ^ (t >> 7)) * (t | 61)) & UINT32_MASK)) & UINT32_MASK) ^ t)
    t = (t ^ (t >> 14)) & UINT32_MASK
    return state, t / TWO_POW_32


def seed_state(seed: int) -> int:
    """Reduce an arbitrary integer seed to a 32-bit state."""
    return int(seed) & UINT32_MASK


class Mulberry32:
    """
    Seeded stream of floats in [0, 1).

    Not rewindable: construct a new instance with the same seed to replay.
    """

    def __init__(self, seed: int) -> None:
        self.seed = int(seed)
        self.state = seed_state(seed)

    def random(self) -> float:
        self.state, value = mulberry32_next(self.state)
        return float(value)

    def __iter__(self) -> Iterator[float]:
        return self

    def __next__(self) -> float:
        return self.random()

    def __repr__(self) -> str:
        return f"Mulberry32(seed={self.seed})"
