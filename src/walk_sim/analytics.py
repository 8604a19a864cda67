"""
Ensemble analytics over one or more walks sharing a step cursor.

- Mean-squared displacement (MSD) sampled on a log-spaced time grid
- Diffusion exponent from a log-log least-squares fit of MSD(t) ~ t^alpha
- Step-length histogram (log-binned for Levy flights, linear otherwise)
- End-distance histogram across the walk set

Only the step-length sample of the primary walk is accumulated
incrementally; everything else is recomputed on each call.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence

import numpy as np
from scipy.stats import linregress

from .walk import Walk

log = logging.getLogger(__name__)

MAX_MSD_SAMPLES = 200
HIST_BINS = 30
MIN_POINTS_FOR_EXPONENT = 10
DEGENERATE_DENOMINATOR = 1e-12


class MSDPoint(NamedTuple):
    t: int
    msd: float


class HistogramBin(NamedTuple):
    lo: float
    hi: float
    count: int


class DiffusionFit(NamedTuple):
    exponent: float
    intercept: float
    r_squared: float


@dataclass(frozen=True)
class EnsembleAnalytics:
    msd_curve: List[MSDPoint]
    diffusion_exponent: Optional[float]
    step_length_histogram: List[HistogramBin]
    end_distance_histogram: List[HistogramBin]
    walk_type: str
    walk_count: int
    levy_alpha: Optional[float] = None
    diffusion_r_squared: Optional[float] = None


###############################################################################
# Sampling and MSD
###############################################################################


def log_spaced_indices(max_t: int, count: int = MAX_MSD_SAMPLES) -> List[int]:
    """
    Sorted, unique time indices in [1, max_t], logarithmically spaced.

    Every integer is returned when max_t <= count.
    """
    if max_t <= 0:
        return []
    if max_t <= count:
        return list(range(1, max_t + 1))
    exponents = np.arange(count) / (count - 1) * math.log(max_t)
    ts = np.floor(np.exp(exponents) + 0.5).astype(np.int64)
    ts = np.clip(ts, 1, max_t)
    return [int(t) for t in np.unique(ts)]


def compute_msd(walks: Sequence[Walk], current_step: int) -> List[MSDPoint]:
    """
    Average x(t)^2 + y(t)^2 across the walks that have reached index t.

    Walks start at the origin, so this is the squared displacement.
    """
    if current_step <= 0:
        return []
    ts = np.asarray(log_spaced_indices(current_step), dtype=np.int64)
    total = np.zeros(ts.shape[0], dtype=np.float64)
    contributors = np.zeros(ts.shape[0], dtype=np.int64)
    for walk in walks:
        reached = ts < walk.num_points
        pts = walk.points[ts[reached]]
        total[reached] += pts[:, 0] ** 2 + pts[:, 1] ** 2
        contributors[reached] += 1
    msd = np.divide(
        total, contributors, out=np.zeros_like(total), where=contributors > 0
    )
    return [MSDPoint(int(t), float(m)) for t, m in zip(ts, msd)]


###############################################################################
# Diffusion exponent
###############################################################################


def fit_diffusion_exponent(msd_curve: Sequence[MSDPoint]) -> Optional[DiffusionFit]:
    """
    Least-squares fit of log(msd) = alpha * log(t) + c.

    Returns None with fewer than MIN_POINTS_FOR_EXPONENT usable points or when
    log(t) has no spread.
    """
    valid = [(p.t, p.msd) for p in msd_curve if p.t > 0 and p.msd > 0]
    if len(valid) < MIN_POINTS_FOR_EXPONENT:
        return None

    arr = np.asarray(valid, dtype=np.float64)
    log_t = np.log(arr[:, 0])
    log_msd = np.log(arr[:, 1])

    n = log_t.shape[0]
    denom = n * np.sum(log_t * log_t) - np.sum(log_t) ** 2
    if abs(denom) < DEGENERATE_DENOMINATOR:
        return None

    slope, intercept, r_value, _, _ = linregress(log_t, log_msd)
    return DiffusionFit(float(slope), float(intercept), float(r_value) ** 2)


def compute_diffusion_exponent(msd_curve: Sequence[MSDPoint]) -> Optional[float]:
    fit = fit_diffusion_exponent(msd_curve)
    return None if fit is None else fit.exponent


###############################################################################
# Histograms
###############################################################################


def _bin_counts(values: np.ndarray, lo: float, width: float, bin_count: int) -> np.ndarray:
    # Values at the top edge land in the last bin
    idx = np.minimum(np.floor((values - lo) / width).astype(np.int64), bin_count - 1)
    return np.bincount(idx, minlength=bin_count)


def build_histogram(values: Sequence[float], bin_count: int = HIST_BINS) -> List[HistogramBin]:
    """Equal-width bins spanning [min(values), max(values)]."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return []
    lo = float(arr.min())
    hi = float(arr.max())
    if lo == hi:
        return [HistogramBin(lo, lo + 1.0, int(arr.size))]

    width = (hi - lo) / bin_count
    counts = _bin_counts(arr, lo, width, bin_count)
    return [
        HistogramBin(lo + i * width, lo + (i + 1) * width, int(counts[i]))
        for i in range(bin_count)
    ]


def build_log_histogram(values: Sequence[float], bin_count: int = HIST_BINS) -> List[HistogramBin]:
    """Geometrically spaced bins over the positive values; others are dropped."""
    arr = np.asarray(values, dtype=np.float64)
    positive = arr[arr > 0]
    if positive.size == 0:
        return []
    log_values = np.log(positive)
    log_lo = float(log_values.min())
    log_hi = float(log_values.max())
    if log_lo == log_hi:
        first = float(positive[0])
        return [HistogramBin(first, first + 1.0, int(positive.size))]

    log_width = (log_hi - log_lo) / bin_count
    counts = _bin_counts(log_values, log_lo, log_width, bin_count)
    return [
        HistogramBin(
            math.exp(log_lo + i * log_width),
            math.exp(log_lo + (i + 1) * log_width),
            int(counts[i]),
        )
        for i in range(bin_count)
    ]


###############################################################################
# Accumulator
###############################################################################


class AnalyticsAccumulator:
    """
    Ensemble analytics for a walk set driven by a shared step cursor.

    Step lengths of the primary (first) walk are appended incrementally; a
    backward cursor move discards them and starts again from step 0.
    """

    def __init__(self) -> None:
        self.last_step = 0
        self.step_lengths: List[float] = []

    def reset(self) -> None:
        self.last_step = 0
        self.step_lengths = []

    def compute(self, walks: Sequence[Walk], current_step: int) -> EnsembleAnalytics:
        primary = walks[0]
        walk_type = primary.params.walk_type
        is_levy = walk_type == "levy"
        levy_alpha = primary.params.alpha if is_levy else None

        if current_step <= 0:
            return EnsembleAnalytics(
                msd_curve=[],
                diffusion_exponent=None,
                step_length_histogram=[],
                end_distance_histogram=[],
                walk_type=walk_type,
                walk_count=len(walks),
                levy_alpha=levy_alpha,
            )

        if current_step < self.last_step:
            log.debug("Analytics cursor moved back %d -> %d, re-baselining", self.last_step, current_step)
            self.step_lengths = []
            self.last_step = 0

        max_idx = min(current_step, primary.last_index)
        if max_idx > self.last_step:
            deltas = np.diff(primary.points[self.last_step : max_idx + 1], axis=0)
            self.step_lengths.extend(np.hypot(deltas[:, 0], deltas[:, 1]).tolist())
        self.last_step = max_idx

        msd_curve = compute_msd(walks, current_step)
        fit = fit_diffusion_exponent(msd_curve)

        if is_levy:
            step_hist = build_log_histogram(self.step_lengths, HIST_BINS)
        else:
            step_hist = build_histogram(self.step_lengths, HIST_BINS)

        end_distances = []
        for walk in walks:
            x, y = walk.points[min(current_step, walk.last_index)]
            end_distances.append(math.hypot(x, y))
        end_hist = build_histogram(end_distances, HIST_BINS)

        return EnsembleAnalytics(
            msd_curve=msd_curve,
            diffusion_exponent=None if fit is None else fit.exponent,
            step_length_histogram=step_hist,
            end_distance_histogram=end_hist,
            walk_type=walk_type,
            walk_count=len(walks),
            levy_alpha=levy_alpha,
            diffusion_r_squared=None if fit is None else fit.r_squared,
        )
