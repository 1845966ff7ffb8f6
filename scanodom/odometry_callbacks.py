"""Process-wide callback slots fired by the odometry estimation stages."""

from __future__ import annotations

from typing import ClassVar

from scanodom.callback_slot import CallbackSlot


class IMUStateInitializationCallbacks:
    """Callbacks of the initial IMU state estimation.

    ``on_updated(points, T_odom_lidar)`` fires when a frame was aligned,
    ``on_finished(estimated_frame)`` when the initial state is known.
    """

    on_updated: ClassVar[CallbackSlot] = CallbackSlot()
    on_finished: ClassVar[CallbackSlot] = CallbackSlot()


class OdometryEstimationCallbacks:
    """Callbacks of the odometry estimation.

    Insertion slots receive the inserted data; frame slots receive an
    estimation frame or a list of them; smoother slots receive the smoother
    and its update; ``on_smoother_corruption`` receives the time it happened.
    """

    on_insert_image: ClassVar[CallbackSlot] = CallbackSlot()
    on_insert_imu: ClassVar[CallbackSlot] = CallbackSlot()
    on_insert_twist: ClassVar[CallbackSlot] = CallbackSlot()
    on_insert_frame: ClassVar[CallbackSlot] = CallbackSlot()

    on_new_frame: ClassVar[CallbackSlot] = CallbackSlot()

    on_marginalized_frames: ClassVar[CallbackSlot] = CallbackSlot()
    on_marginalized_keyframes: ClassVar[CallbackSlot] = CallbackSlot()

    on_update_frames: ClassVar[CallbackSlot] = CallbackSlot()
    on_update_keyframes: ClassVar[CallbackSlot] = CallbackSlot()

    on_smoother_update: ClassVar[CallbackSlot] = CallbackSlot()
    on_smoother_update_finish: ClassVar[CallbackSlot] = CallbackSlot()
    on_smoother_corruption: ClassVar[CallbackSlot] = CallbackSlot()