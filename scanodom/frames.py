"""Point cloud frames: raw sensor scans and preprocessed scans."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np


def _points_array(values, name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return np.zeros((0, 4))
    if arr.ndim != 2 or arr.shape[1] != 4:
        raise ValueError(f"{name} must have shape (N, 4), got {arr.shape}")
    return arr


def _flat_array(values, dtype=float) -> np.ndarray:
    return np.asarray(values, dtype=dtype).ravel()


@dataclass
class RawPoints:
    """A raw scan: stamp of the first point, per-point relative times and homogeneous points."""

    stamp: float = 0.0
    times: np.ndarray = field(default_factory=lambda: np.zeros(0))
    intensities: np.ndarray = field(default_factory=lambda: np.zeros(0))
    points: np.ndarray = field(default_factory=lambda: np.zeros((0, 4)))
    colors: np.ndarray = field(default_factory=lambda: np.zeros((0, 4)))

    def __post_init__(self) -> None:
        self.times = _flat_array(self.times)
        self.intensities = _flat_array(self.intensities)
        self.points = _points_array(self.points, "points")
        self.colors = _points_array(self.colors, "colors")

    def __len__(self) -> int:
        return len(self.points)


@dataclass
class PreprocessedFrame:
    """A filtered, time-sorted scan with the k nearest neighbors of each point."""

    stamp: float = 0.0
    scan_end_time: float = 0.0
    times: np.ndarray = field(default_factory=lambda: np.zeros(0))
    intensities: np.ndarray = field(default_factory=lambda: np.zeros(0))
    points: np.ndarray = field(default_factory=lambda: np.zeros((0, 4)))
    k_neighbors: int = 0
    neighbors: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=int))
    raw_points: Optional[RawPoints] = None

    def __post_init__(self) -> None:
        self.times = _flat_array(self.times)
        self.intensities = _flat_array(self.intensities)
        self.points = _points_array(self.points, "points")
        self.neighbors = _flat_array(self.neighbors, dtype=int)

    def __len__(self) -> int:
        return len(self.points)