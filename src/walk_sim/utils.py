# src/walk_sim/utils.py
from __future__ import annotations

import json
import os
import time
import tomllib
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Sequence

import numpy as np

from .walk import Walk, WalkParams


def now_str() -> str:
    return time.strftime("%Y%m%d-%H%M%S")


def default_walks_path(
    walk_type: str, walk_count: int, seed: int, out_dir: str | os.PathLike[str] = "results"
) -> Path:
    """Timestamped .npz path for a walk set, e.g. `results/levy_W4_S42_20250101-120000.npz`."""
    return Path(out_dir) / f"{walk_type}_W{walk_count}_S{seed}_{now_str()}.npz"


def save_walks(
    path: str | os.PathLike[str], walks: Sequence[Walk], *, overwrite: bool = True
) -> None:
    """
    Serialize a walk set to a compressed .npz.

    Points are stored as `points_<i>` arrays; parameters go in `meta`.
    """
    out_dir = Path(path).parent
    out_dir.mkdir(parents=True, exist_ok=True)
    if not overwrite and Path(path).exists():
        raise FileExistsError(f"{path} already exists")

    out: Dict[str, Any] = {}
    for i, walk in enumerate(walks):
        out[f"points_{i}"] = np.asarray(walk.points, dtype=np.float64)
    out["meta"] = {
        "walk_count": len(walks),
        "params": [asdict(w.params) for w in walks],
    }
    np.savez_compressed(path, **out)


def load_walks(path: str | os.PathLike[str]) -> List[Walk]:
    """Load a walk set written by `save_walks`."""
    data = np.load(path, allow_pickle=True)
    meta = data["meta"].item()
    walks = []
    for i, raw_params in enumerate(meta["params"]):
        points = np.array(data[f"points_{i}"], dtype=np.float64)
        points.setflags(write=False)
        walks.append(Walk(params=WalkParams(**raw_params), points=points))
    return walks


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Read a session parameter file into a plain dict.

    `.json` (or no suffix) and `.toml` files are accepted; the result is meant
    for `SimulationConfig.from_dict`, which does the clamping.
    """
    path = str(path)
    with open(path, "rb") as fh:
        data = fh.read()
    suffix = Path(path).suffix.lower()
    if suffix in {".json", ""}:
        return json.loads(data.decode("utf-8"))
    if suffix in {".toml", ".tml"}:
        return tomllib.loads(data.decode("utf-8"))
    raise ValueError(f"Unsupported parameter file format: {suffix}")
