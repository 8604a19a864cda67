"""
Playback session: a walk set plus the accumulators that follow its cursor.

The session owns one StatsAccumulator (primary walk), one
AnalyticsAccumulator (whole walk set) and one HeatmapTracker. Every cursor
change goes through `_frame`, which lets each accumulator decide between
extending and re-baselining.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterator, List, Optional

from .analytics import AnalyticsAccumulator, EnsembleAnalytics
from .config import SimulationConfig
from .heatmap import HeatmapTracker, VisitationGrid
from .stats import ScalarStats, StatsAccumulator
from .walk import Walk, WalkParams, generate_walks

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame:
    step: int
    done: bool
    stats: ScalarStats
    analytics: EnsembleAnalytics
    heatmap: Optional[VisitationGrid] = None


class PlaybackSession:
    def __init__(self, config: SimulationConfig | None = None) -> None:
        self.config = config or SimulationConfig()
        self.stats = StatsAccumulator()
        self.analytics = AnalyticsAccumulator()
        self.heatmap = HeatmapTracker()
        self.current_step = 0
        self.walks: List[Walk] = generate_walks(
            self.config.walk_params(), self.config.walk_count
        )

    @property
    def primary(self) -> Walk:
        return self.walks[0]

    @property
    def max_steps(self) -> int:
        return max(w.params.steps for w in self.walks)

    @property
    def done(self) -> bool:
        return self.current_step >= self.max_steps

    def regenerate(
        self, params: WalkParams | None = None, walk_count: int | None = None
    ) -> None:
        """Replace the walk set and start over from step 0."""
        if params is not None:
            self.config = replace(
                self.config,
                seed=params.seed,
                steps=params.steps,
                step_length=params.step_length,
                walk_type=params.walk_type,
                levy_alpha=params.levy_alpha,
                grid_cell_size=params.step_length,
            )
        if walk_count is not None:
            self.config = replace(self.config, walk_count=walk_count)
        self.walks = generate_walks(self.config.walk_params(), self.config.walk_count)
        log.debug(
            "Regenerated %d %s walk(s) from seed %d",
            len(self.walks),
            self.config.walk_type,
            self.config.seed,
        )
        self.reset()

    def reset(self) -> None:
        self.current_step = 0
        self.stats.reset()
        self.analytics.reset()
        self.heatmap.reset()

    def seek(self, step: int) -> Frame:
        self.current_step = min(max(int(step), 0), self.max_steps)
        return self._frame()

    def advance(self) -> Frame:
        return self.seek(self.current_step + self.config.draw_speed)

    def play(self) -> Iterator[Frame]:
        """Yield one frame per tick until the end of the longest walk."""
        if self.done:
            self.reset()
        while True:
            frame = self.advance()
            yield frame
            if frame.done:
                return

    def _frame(self) -> Frame:
        step = self.current_step
        grid = None
        if self.config.heatmap:
            grid = self.heatmap.update(
                self.walks,
                step,
                self.config.heatmap_cell_size,
                all_walks=self.config.heatmap_all_walks,
            )
        return Frame(
            step=step,
            done=self.done,
            stats=self.stats.compute(self.primary, min(step, self.primary.params.steps)),
            analytics=self.analytics.compute(self.walks, step),
            heatmap=grid,
        )
