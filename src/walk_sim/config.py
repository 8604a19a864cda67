"""
Session configuration: walk parameters, playback speed and heatmap options.

Values read from files or the command line go through
`SimulationConfig.from_dict`, which clamps them to RANGES.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from . import utils
from .walk import WALK_TYPES, WalkParams

# Accepted ranges for user-supplied values; out-of-range input is clamped
RANGES = {
    "seed": (1, 9999),
    "steps": (10, 5000),
    "step_length": (1.0, 20.0),
    "walk_count": (1, 100),
    "levy_alpha": (0.5, 3.0),
    "draw_speed": (1, 1000),
}
INTEGER_FIELDS = {"seed", "steps", "walk_count", "draw_speed"}


@dataclass
class SimulationConfig:
    """Walk parameters plus playback and heatmap settings for a session."""

    seed: int = 42
    steps: int = 500
    step_length: float = 5.0
    walk_type: str = "isotropic"
    levy_alpha: Optional[float] = None
    walk_count: int = 1
    draw_speed: int = 5
    heatmap: bool = False
    heatmap_all_walks: bool = False
    grid_cell_size: float = 5.0

    @property
    def heatmap_cell_size(self) -> float:
        return self.grid_cell_size * 2

    def walk_params(self) -> WalkParams:
        return WalkParams(
            seed=self.seed,
            steps=self.steps,
            step_length=self.step_length,
            walk_type=self.walk_type,
            levy_alpha=self.levy_alpha,
        )

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SimulationConfig":
        """
        Build a config from loosely-typed input.

        Unknown keys and non-finite numbers are ignored; numeric values are
        clamped to RANGES.
        """
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in raw.items():
            if key not in known:
                continue
            if key in RANGES:
                if value is None and key == "levy_alpha":
                    continue
                number = _finite_number(value)
                if number is None:
                    continue
                lo, hi = RANGES[key]
                number = min(max(number, lo), hi)
                values[key] = int(math.floor(number + 0.5)) if key in INTEGER_FIELDS else float(number)
            elif key == "walk_type":
                if value not in WALK_TYPES:
                    raise ValueError(
                        f"Unknown walk_type {value!r}; expected one of {WALK_TYPES}"
                    )
                values[key] = value
            elif key in {"heatmap", "heatmap_all_walks"}:
                values[key] = bool(value)
            elif key == "grid_cell_size":
                number = _finite_number(value)
                if number is not None and number > 0:
                    values[key] = number
        # The grid cell tracks the step length unless given explicitly
        values.setdefault("grid_cell_size", float(values.get("step_length", cls.step_length)))
        return cls(**values)


def _finite_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def load_config(path: str | os.PathLike[str]) -> SimulationConfig:
    """Read a JSON or TOML parameter file into a SimulationConfig."""
    return SimulationConfig.from_dict(utils.load_params(path))
