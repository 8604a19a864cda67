"""
Random-walk generators.

Four models are supported, all driven by a single mulberry32 stream seeded
from `WalkParams.seed`:

- isotropic: unit steps in a uniformly random direction
- lattice: unit steps along one of the four axis directions
- levy: isotropic direction with a truncated Pareto step length
- self-avoiding: lattice steps restricted to unvisited sites; stops early
  when trapped

The isotropic, lattice and levy kernels are compiled with numba. The
self-avoiding walk needs a growing visited set and stays in Python, using the
same PRNG step through `Mulberry32`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import List, Optional

import numpy as np
from numba import njit

from .prng import Mulberry32, mulberry32_next, seed_state

log = logging.getLogger(__name__)

WALK_TYPES = ("isotropic", "lattice", "levy", "self-avoiding")
DEFAULT_LEVY_ALPHA = 1.5
LEVY_MIN_UNIFORM = 0.01

# Order matters: index = floor(draw * 4)
LATTICE_DIRECTIONS = np.array(
    [
        [1, 0],
        [0, 1],
        [-1, 0],
        [0, -1],
    ],
    dtype=np.int64,
)


@dataclass(frozen=True)
class WalkParams:
    """Inputs that fully determine a walk."""

    seed: int = 42
    steps: int = 500
    step_length: float = 5.0
    walk_type: str = "isotropic"
    levy_alpha: Optional[float] = None

    def __post_init__(self) -> None:
        if self.steps < 0:
            raise ValueError(f"steps must be >= 0, got {self.steps}")
        if not self.step_length > 0:
            raise ValueError(f"step_length must be > 0, got {self.step_length}")
        if self.walk_type not in WALK_TYPES:
            raise ValueError(
                f"Unknown walk_type {self.walk_type!r}; expected one of {WALK_TYPES}"
            )
        if self.levy_alpha is not None and not self.levy_alpha > 0:
            raise ValueError(f"levy_alpha must be > 0, got {self.levy_alpha}")

    @property
    def alpha(self) -> float:
        """Levy exponent with the default applied."""
        return DEFAULT_LEVY_ALPHA if self.levy_alpha is None else self.levy_alpha


@dataclass(frozen=True, eq=False)
class Walk:
    """A generated walk. `points` has shape (params.steps + 1, 2) and is read-only."""

    params: WalkParams
    points: np.ndarray

    @property
    def num_points(self) -> int:
        return int(self.points.shape[0])

    @property
    def last_index(self) -> int:
        return self.num_points - 1


def _freeze(points: np.ndarray) -> np.ndarray:
    points.setflags(write=False)
    return points


###############################################################################
# Numba kernels
###############################################################################


@njit(cache=True)
def _isotropic_kernel(state: int, steps: int, step_length: float) -> np.ndarray:
    points = np.zeros((steps + 1, 2), dtype=np.float64)
    for i in range(steps):
        state, u = mulberry32_next(state)
        angle = u * math.pi * 2.0
        points[i + 1, 0] = points[i, 0] + math.cos(angle) * step_length
        points[i + 1, 1] = points[i, 1] + math.sin(angle) * step_length
    return points


@njit(cache=True)
def _lattice_kernel(state: int, steps: int, directions: np.ndarray) -> np.ndarray:
    """Integer lattice sites visited by a 4-neighbour walk."""
    sites = np.zeros((steps + 1, 2), dtype=np.int64)
    for i in range(steps):
        state, u = mulberry32_next(state)
        k = int(math.floor(u * 4.0))
        sites[i + 1, 0] = sites[i, 0] + directions[k, 0]
        sites[i + 1, 1] = sites[i, 1] + directions[k, 1]
    return sites


@njit(cache=True)
def _levy_kernel(
    state: int, steps: int, step_length: float, alpha: float, min_uniform: float
) -> np.ndarray:
    points = np.zeros((steps + 1, 2), dtype=np.float64)
    for i in range(steps):
        state, u_angle = mulberry32_next(state)
        angle = u_angle * math.pi * 2.0
        state, u_len = mulberry32_next(state)
        u = max(u_len, min_uniform)
        length = step_length * u ** (-1.0 / alpha)
        points[i + 1, 0] = points[i, 0] + math.cos(angle) * length
        points[i + 1, 1] = points[i, 1] + math.sin(angle) * length
    return points


###############################################################################
# Generators
###############################################################################


def _isotropic_walk(params: WalkParams) -> Walk:
    points = _isotropic_kernel(
        seed_state(params.seed), params.steps, float(params.step_length)
    )
    return Walk(params=params, points=_freeze(points))


def _lattice_walk(params: WalkParams) -> Walk:
    sites = _lattice_kernel(seed_state(params.seed), params.steps, LATTICE_DIRECTIONS)
    points = sites.astype(np.float64) * params.step_length
    return Walk(params=params, points=_freeze(points))


def _levy_walk(params: WalkParams) -> Walk:
    points = _levy_kernel(
        seed_state(params.seed),
        params.steps,
        float(params.step_length),
        float(params.alpha),
        LEVY_MIN_UNIFORM,
    )
    return Walk(params=params, points=_freeze(points))


def _self_avoiding_walk(params: WalkParams) -> Walk:
    """
    Lattice walk that never revisits a site.

    Sites are tracked as integer index pairs so the visited-set lookup is exact
    regardless of step_length.
    """
    rng = Mulberry32(params.seed)
    directions = [tuple(int(c) for c in d) for d in LATTICE_DIRECTIONS]
    x, y = 0, 0
    sites = [(0, 0)]
    visited = {(0, 0)}

    for _ in range(params.steps):
        candidates = [
            (x + dx, y + dy) for dx, dy in directions if (x + dx, y + dy) not in visited
        ]
        if not candidates:
            break
        x, y = candidates[int(math.floor(rng.random() * len(candidates)))]
        visited.add((x, y))
        sites.append((x, y))

    points = np.asarray(sites, dtype=np.float64).reshape(-1, 2) * params.step_length
    actual_steps = len(sites) - 1
    if actual_steps != params.steps:
        log.debug(
            "Self-avoiding walk (seed=%d) trapped after %d of %d steps",
            params.seed,
            actual_steps,
            params.steps,
        )
        params = replace(params, steps=actual_steps)
    return Walk(params=params, points=_freeze(points))


_GENERATORS = {
    "isotropic": _isotropic_walk,
    "lattice": _lattice_walk,
    "levy": _levy_walk,
    "self-avoiding": _self_avoiding_walk,
}


def generate_walk(params: WalkParams) -> Walk:
    """Generate one walk. Output depends only on the fields of `params`."""
    return _GENERATORS[params.walk_type](params)


def generate_walks(params: WalkParams, count: int) -> List[Walk]:
    """
    Generate `count` independent walks; walk i is seeded with `params.seed + i`.
    """
    if count < 1:
        raise ValueError(f"count must be >= 1, got {count}")
    return [generate_walk(replace(params, seed=params.seed + i)) for i in range(count)]
