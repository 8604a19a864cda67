"""
Random Walk Simulation Library

Deterministic 2D random-walk generators and incremental analytics:
- generate_walk / generate_walks: isotropic, lattice, Levy and self-avoiding walks
- heatmap: DDA visitation grids with in-place extension
- StatsAccumulator: path length and max distance over a growing prefix
- AnalyticsAccumulator: MSD curve, diffusion exponent, histograms
- PlaybackSession: step-cursor driver tying the accumulators together
"""

from .prng import Mulberry32
from .walk import WALK_TYPES, Walk, WalkParams, generate_walk, generate_walks
from .heatmap import (
    HeatmapTracker,
    VisitationGrid,
    compute_heatmap_grid,
    compute_multi_walk_heatmap_grid,
    extend_heatmap_grid,
)
from .stats import ScalarStats, StatsAccumulator
from .analytics import (
    AnalyticsAccumulator,
    EnsembleAnalytics,
    HistogramBin,
    MSDPoint,
    build_histogram,
    build_log_histogram,
    compute_diffusion_exponent,
    compute_msd,
)
from .config import SimulationConfig, load_config
from .session import Frame, PlaybackSession
from . import utils

__all__ = [
    # Generation
    "Mulberry32",
    "WALK_TYPES",
    "Walk",
    "WalkParams",
    "generate_walk",
    "generate_walks",
    # Heatmap
    "HeatmapTracker",
    "VisitationGrid",
    "compute_heatmap_grid",
    "compute_multi_walk_heatmap_grid",
    "extend_heatmap_grid",
    # Statistics
    "ScalarStats",
    "StatsAccumulator",
    "AnalyticsAccumulator",
    "EnsembleAnalytics",
    "HistogramBin",
    "MSDPoint",
    "build_histogram",
    "build_log_histogram",
    "compute_diffusion_exponent",
    "compute_msd",
    # Session
    "SimulationConfig",
    "load_config",
    "Frame",
    "PlaybackSession",
    # Utilities
    "utils",
]
