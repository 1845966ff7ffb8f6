"""Estimated sensor state attached to a point cloud frame."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Optional

import numpy as np

from scanodom.frames import PreprocessedFrame


class FrameID(enum.Enum):
    """Coordinate frame that a frame's points are expressed in."""

    WORLD = "world"
    LIDAR = "lidar"
    IMU = "imu"


def _inverse_isometry(pose: np.ndarray) -> np.ndarray:
    rotation = pose[:3, :3]
    inv = np.eye(4)
    inv[:3, :3] = rotation.T
    inv[:3, 3] = -rotation.T @ pose[:3, 3]
    return inv


@dataclass
class EstimationFrame:
    """Sensor poses, velocity and IMU bias estimated for one scan."""

    id: int = 0
    stamp: float = 0.0
    T_lidar_imu: np.ndarray = field(default_factory=lambda: np.eye(4))
    T_world_lidar: np.ndarray = field(default_factory=lambda: np.eye(4))
    T_world_imu: np.ndarray = field(default_factory=lambda: np.eye(4))
    v_world_imu: np.ndarray = field(default_factory=lambda: np.zeros(3))
    imu_bias: np.ndarray = field(default_factory=lambda: np.zeros(6))
    imu_rate_trajectory: np.ndarray = field(default_factory=lambda: np.zeros((8, 0)))
    frame_id: FrameID = FrameID.LIDAR
    raw_frame: Optional[PreprocessedFrame] = None
    frame: Any = None
    voxelmaps: list = field(default_factory=list)

    def clone(self) -> "EstimationFrame":
        """Copy of the estimated state; the point data is shared."""
        return replace(
            self,
            T_lidar_imu=np.array(self.T_lidar_imu, dtype=float),
            T_world_lidar=np.array(self.T_world_lidar, dtype=float),
            T_world_imu=np.array(self.T_world_imu, dtype=float),
            v_world_imu=np.array(self.v_world_imu, dtype=float),
            imu_bias=np.array(self.imu_bias, dtype=float),
            imu_rate_trajectory=np.array(self.imu_rate_trajectory, dtype=float),
            voxelmaps=list(self.voxelmaps),
        )

    def clone_wo_points(self) -> "EstimationFrame":
        """Copy of the estimated state without raw points, points or voxel maps."""
        return replace(self.clone(), raw_frame=None, frame=None, voxelmaps=[])

    def T_world_sensor(self) -> np.ndarray:
        """Pose of the frame the points are expressed in."""
        if self.frame_id is FrameID.LIDAR:
            return np.array(self.T_world_lidar, dtype=float)
        if self.frame_id is FrameID.IMU:
            return np.array(self.T_world_imu, dtype=float)
        return np.eye(4)

    def set_T_world_sensor(self, frame_id: FrameID, T: np.ndarray) -> None:
        """Set the LiDAR or IMU pose and derive the other through ``T_lidar_imu``."""
        pose = np.array(T, dtype=float)
        if frame_id is FrameID.LIDAR:
            self.T_world_lidar = pose
            self.T_world_imu = pose @ self.T_lidar_imu
        elif frame_id is FrameID.IMU:
            self.T_world_imu = pose
            self.T_world_lidar = pose @ _inverse_isometry(np.asarray(self.T_lidar_imu, dtype=float))
        else:
            raise ValueError("frame_id must be either of LIDAR or IMU")