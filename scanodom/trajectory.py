"""Tracking of the odometry-to-world anchor and the latest sensor pose."""

from __future__ import annotations

import bisect

import numpy as np


def _inverse(pose: np.ndarray) -> np.ndarray:
    rotation = pose[:3, :3]
    inv = np.eye(4)
    inv[:3, :3] = rotation.T
    inv[:3, 3] = -rotation.T @ pose[:3, 3]
    return inv


class TrajectoryManager:
    """Chains odometry poses onto the latest world-frame anchor."""

    def __init__(self) -> None:
        self._odom_stamps: list[float] = [0.0]
        self._T_odom_sensor: list[np.ndarray] = [np.eye(4)]
        self._T_world_odom = np.eye(4)

    def add_odom(self, stamp: float, T_odom_sensor: np.ndarray) -> None:
        """Record a new odometry pose."""
        self._odom_stamps.append(stamp)
        self._T_odom_sensor.append(np.array(T_odom_sensor, dtype=float))

    def update_anchor(self, stamp: float, T_world_sensor: np.ndarray) -> None:
        """Align odometry to a world-frame pose estimated at ``stamp``."""
        idx = bisect.bisect_left(self._odom_stamps, stamp)
        if idx >= len(self._T_odom_sensor):
            raise IndexError(f"no odometry pose at or after stamp {stamp}")
        world = np.asarray(T_world_sensor, dtype=float)
        self._T_world_odom = world @ _inverse(self._T_odom_sensor[idx])

        if idx > 1:
            del self._odom_stamps[: idx - 1]
            del self._T_odom_sensor[: idx - 1]

    def current_pose(self) -> np.ndarray:
        """World-frame pose of the latest odometry frame."""
        return self._T_world_odom @ self._T_odom_sensor[-1]

    def odom2world_pose(self, pose: np.ndarray) -> np.ndarray:
        """Map an odometry-frame pose into the world frame."""
        return self._T_world_odom @ np.asarray(pose, dtype=float)

    def odom2world_point(self, point) -> np.ndarray:
        """Map an odometry-frame 3D point into the world frame."""
        p = np.asarray(point, dtype=float)
        return self._T_world_odom[:3, :3] @ p + self._T_world_odom[:3, 3]

    def T_world_odom(self) -> np.ndarray:
        """Current odometry-to-world transform."""
        return self._T_world_odom.copy()