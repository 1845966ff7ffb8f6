"""Point cloud preprocessing: downsampling, range filtering, outlier removal and k-NN search."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.spatial import cKDTree

from scanodom.config import Config, GlobalConfig, ParamKind
from scanodom.frames import PreprocessedFrame, RawPoints

_logger = logging.getLogger("scanodom.preprocess")

Cloud = tuple[np.ndarray, np.ndarray, Optional[np.ndarray]]


@dataclass
class CloudPreprocessorParams:
    """Preprocessing parameters."""

    distance_near_thresh: float = 1.0
    distance_far_thresh: float = 100.0
    global_shutter: bool = False
    use_random_grid_downsampling: bool = False
    downsample_resolution: float = 0.15
    downsample_target: int = 0
    downsample_rate: float = 0.3
    enable_outlier_removal: bool = False
    outlier_removal_k: int = 10
    outlier_std_mul_factor: float = 2.0
    k_correspondences: int = 8
    num_threads: int = 10

    @classmethod
    def from_config(cls) -> "CloudPreprocessorParams":
        """Read the parameters from the preprocess and sensor configuration files."""
        config = Config(GlobalConfig.get_config_path("config_preprocess"))
        sensor_config = Config(GlobalConfig.get_config_path("config_sensors"))
        d = cls()
        return cls(
            global_shutter=sensor_config.param_or("sensors", "global_shutter_lidar", d.global_shutter, ParamKind.BOOL),
            distance_near_thresh=config.param_or("preprocess", "distance_near_thresh", d.distance_near_thresh, ParamKind.FLOAT),
            distance_far_thresh=config.param_or("preprocess", "distance_far_thresh", d.distance_far_thresh, ParamKind.FLOAT),
            use_random_grid_downsampling=config.param_or(
                "preprocess", "use_random_grid_downsampling", d.use_random_grid_downsampling, ParamKind.BOOL
            ),
            downsample_resolution=config.param_or("preprocess", "downsample_resolution", d.downsample_resolution, ParamKind.FLOAT),
            downsample_target=config.param_or("preprocess", "random_downsample_target", d.downsample_target, ParamKind.INT),
            downsample_rate=config.param_or("preprocess", "random_downsample_rate", d.downsample_rate, ParamKind.FLOAT),
            enable_outlier_removal=config.param_or(
                "preprocess", "enable_outlier_removal", d.enable_outlier_removal, ParamKind.BOOL
            ),
            outlier_removal_k=config.param_or("preprocess", "outlier_removal_k", d.outlier_removal_k, ParamKind.INT),
            outlier_std_mul_factor=config.param_or(
                "preprocess", "outlier_std_mul_factor", d.outlier_std_mul_factor, ParamKind.FLOAT
            ),
            k_correspondences=config.param_or("preprocess", "k_correspondences", d.k_correspondences, ParamKind.INT),
            num_threads=config.param_or("preprocess", "num_threads", d.num_threads, ParamKind.INT),
        )


def _as_cloud(points, times, intensities) -> Cloud:
    pts = np.asarray(points, dtype=float).reshape(-1, 4)
    t = np.zeros(len(pts)) if times is None else np.asarray(times, dtype=float).ravel()
    if t.size != len(pts):
        raise ValueError(f"expected {len(pts)} times, got {t.size}")
    inten = None
    if intensities is not None:
        inten = np.asarray(intensities, dtype=float).ravel()
        if inten.size != len(pts):
            raise ValueError(f"expected {len(pts)} intensities, got {inten.size}")
    return pts, t, inten


def _select(cloud: Cloud, index) -> Cloud:
    pts, t, inten = cloud
    return pts[index], t[index], None if inten is None else inten[index]


def _voxel_indices(points: np.ndarray, resolution: float) -> tuple[np.ndarray, int]:
    if resolution <= 0.0:
        raise ValueError(f"resolution must be positive, got {resolution}")
    coords = np.floor(points[:, :3] / resolution).astype(np.int64)
    unique, inverse = np.unique(coords, axis=0, return_inverse=True)
    return np.asarray(inverse).ravel(), len(unique)


def voxelgrid_sampling(points, times, intensities, resolution: float) -> Cloud:
    """Replace the points of each voxel by their mean (times and intensities too).

    Non-finite points are dropped. Returns ``(points, times, intensities)``.
    """
    cloud = _as_cloud(points, times, intensities)
    cloud = _select(cloud, np.isfinite(cloud[0]).all(axis=1))
    pts, t, inten = cloud
    if not len(pts):
        return cloud

    inverse, num_voxels = _voxel_indices(pts, resolution)
    counts = np.bincount(inverse, minlength=num_voxels).astype(float)

    def mean(values: np.ndarray) -> np.ndarray:
        sums = np.zeros((num_voxels,) + values.shape[1:])
        np.add.at(sums, inverse, values)
        return sums / counts.reshape((-1,) + (1,) * (values.ndim - 1))

    return mean(pts), mean(t), None if inten is None else mean(inten)


def randomgrid_sampling(
    points, times, intensities, resolution: float, rate: float, rng: Optional[np.random.Generator] = None
) -> Cloud:
    """Randomly keep about ``rate`` of the points, spread evenly over voxels.

    Returns ``(points, times, intensities)`` with the kept points in input order.
    """
    cloud = _as_cloud(points, times, intensities)
    if rate >= 0.99:
        return _select(cloud, slice(None))
    rng = rng if rng is not None else np.random.default_rng()

    cloud = _select(cloud, np.isfinite(cloud[0]).all(axis=1))
    num_points = len(cloud[0])
    if not num_points:
        return cloud

    inverse, num_voxels = _voxel_indices(cloud[0], resolution)
    target = int(rate * num_points)
    per_voxel = math.ceil(rate * num_points / num_voxels)

    order = np.argsort(inverse, kind="stable")
    groups = np.split(order, np.cumsum(np.bincount(inverse, minlength=num_voxels))[:-1])
    selected = np.concatenate(
        [group if len(group) <= per_voxel else rng.choice(group, per_voxel, replace=False) for group in groups]
    )
    if len(selected) > target:
        selected = rng.choice(selected, target, replace=False)
    return _select(cloud, np.sort(selected))


def remove_outliers(points, k: int, std_mul_factor: float) -> np.ndarray:
    """Indices of the points whose mean k-NN distance is within mean + factor * std."""
    pts = np.asarray(points, dtype=float).reshape(-1, 4)[:, :3]
    num_points = len(pts)
    if num_points <= 1 or k <= 0:
        return np.arange(num_points)

    k_query = min(k + 1, num_points)
    dists, _ = cKDTree(pts).query(pts, k=k_query)
    dists = np.asarray(dists).reshape(num_points, k_query)[:, 1:]
    mean_dists = dists.mean(axis=1)
    threshold = mean_dists.mean() + std_mul_factor * mean_dists.std()
    return np.flatnonzero(mean_dists <= threshold)


def find_neighbors(points, k: int) -> np.ndarray:
    """Flat array of the k nearest neighbors of every point (self included)."""
    pts = np.asarray(points, dtype=float).reshape(-1, 4)[:, :3]
    num_points = len(pts)
    if num_points == 0 or k <= 0:
        return np.zeros(0, dtype=int)

    k_query = min(k, num_points)
    _, indices = cKDTree(pts).query(pts, k=k_query)
    indices = np.asarray(indices).reshape(num_points, k_query)
    if k_query < k:
        padding = np.repeat(indices[:, -1:], k - k_query, axis=1)
        indices = np.hstack([indices, padding])
    return indices.ravel().astype(int)


class CloudPreprocessor:
    """Turns raw scans into filtered, time-sorted frames with neighbor lists."""

    def __init__(self, params: Optional[CloudPreprocessorParams] = None, seed: Optional[int] = None) -> None:
        self.params = params if params is not None else CloudPreprocessorParams()
        self._rng = np.random.default_rng(seed)

    def preprocess(self, raw_points: RawPoints) -> PreprocessedFrame:
        """Downsample, filter, sort by time and find neighbors."""
        p = self.params
        num_raw = len(raw_points)
        _logger.debug("preprocessing input: %d points", num_raw)

        times = raw_points.times if len(raw_points.times) == num_raw else np.zeros(num_raw)
        intensities = raw_points.intensities if num_raw and len(raw_points.intensities) == num_raw else None

        if p.use_random_grid_downsampling:
            rate = p.downsample_target / num_raw if p.downsample_target > 0 and num_raw else p.downsample_rate
            cloud = randomgrid_sampling(raw_points.points, times, intensities, p.downsample_resolution, rate, self._rng)
        else:
            cloud = voxelgrid_sampling(raw_points.points, times, intensities, p.downsample_resolution)

        if len(cloud[0]) < 100:
            _logger.warning("too few points in the downsampled cloud (%d points)", len(cloud[0]))

        pts = cloud[0]
        finite = np.isfinite(pts).all(axis=1)
        with np.errstate(invalid="ignore"):
            dist = np.linalg.norm(np.where(finite[:, None], pts[:, :3], 0.0), axis=1)
            keep = finite & (dist > p.distance_near_thresh) & (dist < p.distance_far_thresh)
        indices = np.flatnonzero(keep)

        if len(indices) < 100:
            _logger.warning("too few points in the filtered cloud (%d points)", len(indices))

        indices = indices[np.argsort(cloud[1][indices], kind="stable")]
        pts, t, inten = _select(cloud, indices)

        if p.global_shutter:
            t = np.zeros_like(t)

        if p.enable_outlier_removal:
            pts, t, inten = _select((pts, t, inten), remove_outliers(pts, p.outlier_removal_k, p.outlier_std_mul_factor))

        frame = PreprocessedFrame(
            stamp=raw_points.stamp,
            scan_end_time=raw_points.stamp + t[-1] if len(t) else raw_points.stamp,
            times=t,
            intensities=inten if inten is not None else np.zeros(0),
            points=pts,
            k_neighbors=p.k_correspondences,
            neighbors=find_neighbors(pts, p.k_correspondences),
        )
        _logger.debug("preprocessed: %d -> %d points", num_raw, len(frame))
        return frame