#!/usr/bin/env python3
"""
Random Walk Playback Runner

Generates a walk set, plays it forward frame by frame (or jumps to a given
step) and prints the scalar statistics and ensemble analytics at the end.
"""

import argparse
import sys
import time
from pathlib import Path

from walk_sim import PlaybackSession, SimulationConfig, WALK_TYPES, utils


def build_config(args: argparse.Namespace) -> SimulationConfig:
    raw = utils.load_params(args.config) if args.config else {}
    overrides = {
        "seed": args.seed,
        "steps": args.steps,
        "step_length": args.step_length,
        "walk_type": args.walk_type,
        "levy_alpha": args.levy_alpha,
        "walk_count": args.walks,
        "draw_speed": args.speed,
    }
    raw.update({k: v for k, v in overrides.items() if v is not None})
    if args.heatmap:
        raw["heatmap"] = True
    if args.all_walks:
        raw["heatmap_all_walks"] = True
    return SimulationConfig.from_dict(raw)


def main():
    parser = argparse.ArgumentParser(
        description="Generate and play back 2D random walks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=str, default=None, help="JSON/TOML parameter file")
    parser.add_argument("--walk-type", choices=WALK_TYPES, default=None, help="Walk model")
    parser.add_argument("--seed", type=int, default=None, help="Base random seed")
    parser.add_argument("--steps", type=int, default=None, help="Steps per walk")
    parser.add_argument("--step-length", type=float, default=None, help="Step length")
    parser.add_argument("--levy-alpha", type=float, default=None, help="Levy tail exponent")
    parser.add_argument("--walks", type=int, default=None, help="Number of walks (seed+i each)")
    parser.add_argument("--speed", type=int, default=None, help="Steps per frame")
    parser.add_argument(
        "--step",
        type=int,
        default=None,
        help="Jump straight to this step instead of playing frame by frame",
    )
    parser.add_argument("--heatmap", action="store_true", help="Maintain the visitation grid")
    parser.add_argument("--all-walks", action="store_true", help="Heatmap over every walk")
    parser.add_argument(
        "--out",
        type=str,
        default=None,
        help="Save the walk set to this .npz file",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Save the walk set under results/ with a timestamped name (ignored with --out)",
    )

    args = parser.parse_args()
    config = build_config(args)

    print(
        f"Running {config.walk_type} walk(s): count={config.walk_count}, "
        f"steps={config.steps}, seed={config.seed}"
    )
    start_time = time.time()

    session = PlaybackSession(config)
    if args.step is not None:
        frame = session.seek(args.step)
        frames = 1
    else:
        frames = 0
        for frame in session.play():
            frames += 1

    elapsed_time = time.time() - start_time

    stats = frame.stats
    analytics = frame.analytics
    print(f"\nStep {frame.step}/{session.max_steps} ({frames} frame(s), {elapsed_time:.2f}s)")
    print(f"   Distance from origin: {stats.distance_from_origin:.3f}")
    print(f"   Max distance:         {stats.max_distance:.3f}")
    print(f"   Path length:          {stats.total_path_length:.3f}")
    if analytics.diffusion_exponent is None:
        print("   Diffusion exponent:   n/a")
    else:
        print(
            f"   Diffusion exponent:   {analytics.diffusion_exponent:.4f} "
            f"(R² = {analytics.diffusion_r_squared:.4f})"
        )
    if frame.heatmap is not None:
        print(
            f"   Heatmap:              {frame.heatmap.cols}x{frame.heatmap.rows} cells, "
            f"max count {frame.heatmap.max_count}"
        )

    if args.out is None and args.save:
        args.out = str(
            utils.default_walks_path(config.walk_type, config.walk_count, config.seed)
        )

    if args.out:
        out = Path(args.out)
        utils.save_walks(out, session.walks)
        print(f"   Walks saved to: {out}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
