"""Running path statistics for the primary walk at the current step."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from .walk import Walk

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScalarStats:
    current_step: int
    total_steps: int
    distance_from_origin: float
    max_distance: float
    total_path_length: float


class StatsAccumulator:
    """
    Running path length and max distance over a single walk's visible prefix.

    Moving the cursor forward only processes the new segments; moving it back
    re-baselines from step 0.
    """

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.last_step = 0
        self.max_distance = 0.0
        self.total_path_length = 0.0

    def compute(self, walk: Walk, current_step: int) -> ScalarStats:
        points = walk.points
        if current_step < self.last_step:
            log.debug("Stats cursor moved back %d -> %d, re-baselining", self.last_step, current_step)
            self.reset()

        end = min(current_step, walk.last_index)
        if end > self.last_step:
            segment = points[self.last_step : end + 1]
            self.total_path_length += float(
                np.hypot(*np.diff(segment, axis=0).T).sum()
            )
            reached = float(np.hypot(segment[1:, 0], segment[1:, 1]).max())
            self.max_distance = max(self.max_distance, reached)

        self.last_step = max(current_step, 0)

        x, y = points[max(0, min(current_step, walk.last_index))]
        return ScalarStats(
            current_step=current_step,
            total_steps=walk.params.steps,
            distance_from_origin=math.hypot(x, y),
            max_distance=self.max_distance,
            total_path_length=self.total_path_length,
        )
