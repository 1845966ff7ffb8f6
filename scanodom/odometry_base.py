"""Base odometry estimator that only forwards its inputs to the callbacks."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from scanodom.estimation_frame import EstimationFrame
from scanodom.frames import PreprocessedFrame
from scanodom.log import create_module_logger
from scanodom.odometry_callbacks import OdometryEstimationCallbacks


class OdometryEstimationBase:
    """Odometry estimator interface; subclasses do the estimation."""

    def __init__(self) -> None:
        self.logger = create_module_logger("odom")

    def insert_image(self, stamp: float, image: Any) -> None:
        """Feed a camera image."""
        OdometryEstimationCallbacks.on_insert_image(stamp, image)

    def insert_imu(self, stamp: float, linear_acc: Sequence[float], angular_vel: Sequence[float]) -> None:
        """Feed an IMU sample."""
        OdometryEstimationCallbacks.on_insert_imu(stamp, linear_acc, angular_vel)

    def insert_twist(self, stamp: float, linear_vel: float) -> None:
        """Feed a linear velocity measurement."""
        OdometryEstimationCallbacks.on_insert_twist(stamp, linear_vel)

    def insert_frame(self, frame: PreprocessedFrame) -> tuple[Optional[EstimationFrame], list[EstimationFrame]]:
        """Feed a point cloud frame.

        Returns the estimated state of the frame (None if not available) and
        the frames that left the estimation window.
        """
        OdometryEstimationCallbacks.on_insert_frame(frame)
        return None, []

    def get_remaining_frames(self) -> list[EstimationFrame]:
        """Frames still in the estimation window at the end of the sequence."""
        return []