"""
Diffusion Analysis Script for Saved Walk Sets.

Recomputes ensemble analytics for a walk set written by `run_walk.py --out`:
1. MSD curve and log-log fit of the diffusion exponent
2. Step-length and end-distance histograms
3. Visitation heatmap over all walks
"""
from __future__ import annotations

import argparse
from pathlib import Path

import matplotlib.colors as mcolors
import numpy as np
from matplotlib import pyplot as plt

from walk_sim import AnalyticsAccumulator, compute_multi_walk_heatmap_grid, utils
from walk_sim.analytics import fit_diffusion_exponent


def _plot_histogram(ax, bins, title: str, log_x: bool = False) -> None:
    if not bins:
        ax.set_title(f"{title} (no data)")
        return
    lo = np.array([b.lo for b in bins])
    hi = np.array([b.hi for b in bins])
    counts = np.array([b.count for b in bins])
    ax.bar(lo, counts, width=hi - lo, align="edge", color="steelblue", edgecolor="black", linewidth=0.3)
    if log_x:
        ax.set_xscale("log")
    ax.set_title(title)
    ax.set_ylabel("Count")
    ax.grid(True, linestyle="--", alpha=0.4)


def analyze_walks(
    npz_path: str | Path,
    output_path: str | Path | None = None,
    cell_size: float | None = None,
    show_plot: bool = False,
) -> None:
    """
    Print the diffusion summary for a saved walk set and write a 2x2 figure.

    Args:
        npz_path: Path to input .npz file
        output_path: Optional path to save output image
        cell_size: Heatmap cell size (default: 2 * step_length)
        show_plot: Whether to display plot interactively
    """
    npz_path = Path(npz_path)
    print(f"Loading {npz_path}...")
    walks = utils.load_walks(npz_path)
    primary = walks[0]
    final_step = max(w.params.steps for w in walks)
    print(f"Walks found: {len(walks)} ({primary.params.walk_type}, {final_step} steps)")

    analytics = AnalyticsAccumulator().compute(walks, final_step)
    fit = fit_diffusion_exponent(analytics.msd_curve)

    print("\n" + "=" * 60)
    print("DIFFUSION")
    print("=" * 60)
    if fit is None:
        print("Diffusion exponent: n/a (too few MSD samples)")
    else:
        print(f"Diffusion exponent (alpha): {fit.exponent:.5f}")
        print(f"R² (Linearity): {fit.r_squared:.6f}")
    if analytics.levy_alpha is not None:
        print(f"Levy alpha: {analytics.levy_alpha}")
    print("=" * 60)

    if cell_size is None:
        cell_size = primary.params.step_length * 2
    grid = compute_multi_walk_heatmap_grid(walks, cell_size, final_step)

    fig, axes = plt.subplots(2, 2, figsize=(12, 11))
    ax_path, ax_heat, ax_msd, ax_hist = axes.ravel()

    for walk in walks:
        ax_path.plot(walk.points[:, 0], walk.points[:, 1], linewidth=0.5, alpha=0.8)
    ax_path.plot(0, 0, "ko", markersize=3)
    ax_path.set_aspect("equal")
    ax_path.set_title(f"{len(walks)} {primary.params.walk_type} walk(s)")

    extent = (
        grid.origin_x,
        grid.origin_x + grid.cols * grid.cell_size,
        grid.origin_y,
        grid.origin_y + grid.rows * grid.cell_size,
    )
    masked = np.ma.masked_equal(grid.counts, 0)
    ax_heat.imshow(
        masked,
        origin="lower",
        extent=extent,
        cmap="inferno",
        norm=mcolors.LogNorm(vmin=1, vmax=max(grid.max_count, 1)),
        interpolation="nearest",
    )
    ax_heat.set_title(f"Visitation heatmap (max {grid.max_count})")

    ts = np.array([p.t for p in analytics.msd_curve], dtype=np.float64)
    msd = np.array([p.msd for p in analytics.msd_curve], dtype=np.float64)
    valid = msd > 0
    ax_msd.loglog(ts[valid], msd[valid], "k.", markersize=3, label="MSD")
    if fit is not None:
        fit_curve = np.exp(fit.intercept) * ts[valid] ** fit.exponent
        ax_msd.loglog(
            ts[valid], fit_curve, "r--", linewidth=2,
            label=rf"Fit: $\alpha = {fit.exponent:.3f}$",
        )
    ax_msd.set_xlabel(r"$t$")
    ax_msd.set_ylabel(r"$\langle r^2(t) \rangle$")
    ax_msd.set_title("Mean-squared displacement")
    ax_msd.legend()
    ax_msd.grid(True, which="both", linestyle="--", alpha=0.4)

    _plot_histogram(
        ax_hist,
        analytics.step_length_histogram,
        "Step lengths (primary walk)",
        log_x=primary.params.walk_type == "levy",
    )

    plt.tight_layout()

    if output_path is None:
        output_path = npz_path.with_name(npz_path.stem + "_analysis.png")
    else:
        output_path = Path(output_path)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    print(f"\nFigure saved to: {output_path}")

    if len(walks) > 1:
        end_path = output_path.with_name(output_path.stem + "_end_distance.png")
        fig2, ax = plt.subplots(figsize=(6, 4))
        _plot_histogram(ax, analytics.end_distance_histogram, "End distance")
        fig2.savefig(end_path, dpi=150, bbox_inches="tight")
        print(f"End-distance histogram saved to: {end_path}")

    if show_plot:
        plt.show()
    else:
        plt.close("all")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Perform diffusion analysis on a saved walk set."
    )
    parser.add_argument("file", help="Path to the .npz file")
    parser.add_argument(
        "--out",
        type=str,
        help="Output path for the analysis figure (default: <input>_analysis.png)"
    )
    parser.add_argument("--cell-size", type=float, default=None, help="Heatmap cell size")
    parser.add_argument(
        "--show",
        action="store_true",
        help="Display plot interactively"
    )
    args = parser.parse_args()

    analyze_walks(args.file, output_path=args.out, cell_size=args.cell_size, show_plot=args.show)


if __name__ == "__main__":
    main()
