"""Initial IMU state estimation from averaged accelerometer readings."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from scanodom.estimation_frame import EstimationFrame, FrameID
from scanodom.frames import PreprocessedFrame
from scanodom.log import create_module_logger

_UNIT_Z = np.array([0.0, 0.0, 1.0])


def _angle_axis(angle: float, axis: np.ndarray) -> np.ndarray:
    x, y, z = axis
    skew = np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])
    return np.eye(3) + np.sin(angle) * skew + (1.0 - np.cos(angle)) * (skew @ skew)


class NaiveInitialStateEstimation:
    """Assumes the sensor is at rest and aligns the mean acceleration with gravity."""

    def __init__(self, T_lidar_imu: Optional[np.ndarray] = None, imu_bias: Optional[Sequence[float]] = None) -> None:
        self._logger = create_module_logger("odom")
        self._stamp = 0.0
        self._sum_acc = np.zeros(3)
        self._imu_bias = np.zeros(6) if imu_bias is None else np.array(imu_bias, dtype=float)
        self._T_lidar_imu = np.eye(4) if T_lidar_imu is None else np.array(T_lidar_imu, dtype=float)
        self._force_init = False
        self._init_T_world_imu = np.eye(4)
        self._init_v_world_imu = np.zeros(3)
        self._num_frames = 0

    def set_init_state(self, init_T_world_imu: np.ndarray, init_v_world_imu: Sequence[float]) -> None:
        """Use the given pose and velocity instead of estimating them."""
        self._force_init = True
        self._init_T_world_imu = np.array(init_T_world_imu, dtype=float)
        self._init_v_world_imu = np.array(init_v_world_imu, dtype=float)

    def insert_imu(self, stamp: float, linear_acc: Sequence[float], angular_vel: Sequence[float]) -> None:
        """Accumulate an accelerometer reading."""
        acc = np.asarray(linear_acc, dtype=float)
        norm = float(np.linalg.norm(acc))
        if norm < 5.0 or norm > 15.0:
            self._logger.warning("too large or small acc found (%s[m/s^2])", norm)
        self._stamp = stamp
        self._sum_acc = self._sum_acc + acc

    def insert_frame(self, raw_frame: PreprocessedFrame) -> None:
        """Count a point frame; its points play no part in this estimate."""
        self._num_frames += 1
        self._logger.debug(
            "frame %d at %s received while waiting for IMU data", self._num_frames, raw_frame.stamp
        )

    def initial_pose(self) -> Optional[EstimationFrame]:
        """The estimated initial state, or None while too little IMU data is in."""
        if not self._force_init and float(self._sum_acc @ self._sum_acc) < 10.0:
            return None

        estimated = EstimationFrame(
            id=-1,
            stamp=self._stamp,
            T_lidar_imu=self._T_lidar_imu.copy(),
            v_world_imu=np.zeros(3),
            imu_bias=self._imu_bias.copy(),
        )

        if self._force_init:
            estimated.v_world_imu = self._init_v_world_imu.copy()
            T_world_imu = self._init_T_world_imu.copy()
        else:
            acc_dir = self._sum_acc / np.linalg.norm(self._sum_acc)
            T_world_imu = np.eye(4)
            cos_angle = float(acc_dir @ _UNIT_Z)
            if cos_angle < 0.999:
                axis = np.cross(_UNIT_Z, acc_dir)
                axis = axis / np.linalg.norm(axis)
                angle = float(np.arccos(np.clip(cos_angle, -1.0, 1.0)))
                T_world_imu[:3, :3] = _angle_axis(-angle, axis)

        estimated.set_T_world_sensor(FrameID.IMU, T_world_imu)
        self._logger.info("initial IMU state estimation done")
        return estimated