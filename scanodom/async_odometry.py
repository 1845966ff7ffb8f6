"""Runs an odometry estimator on a worker thread fed through queues."""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from typing import Any, Sequence

import numpy as np

from scanodom.concurrent import ConcurrentVector
from scanodom.estimation_frame import EstimationFrame
from scanodom.frames import PreprocessedFrame
from scanodom.log import create_module_logger
from scanodom.odometry_base import OdometryEstimationBase


class AsyncOdometryEstimation:
    """Feeds inputs to an estimator in the background, holding frames back until IMU data covers them."""

    def __init__(self, odometry_estimation: OdometryEstimationBase, enable_imu: bool = True) -> None:
        self._odometry_estimation = odometry_estimation
        self._enable_imu = enable_imu
        self._logger = create_module_logger("odom")

        self._kill_switch = threading.Event()
        self._end_of_sequence = threading.Event()
        self._internal_frame_queue_size = 0

        self._input_image_queue = ConcurrentVector()
        self._input_imu_queue = ConcurrentVector()
        self._input_twist_queue = ConcurrentVector()
        self._input_frame_queue = ConcurrentVector()

        self._output_estimation_results = ConcurrentVector()
        self._output_marginalized_frames = ConcurrentVector()

        self._thread = threading.Thread(target=self._run, name="async-odometry", daemon=True)
        self._thread.start()

    def insert_image(self, stamp: float, image: Any) -> None:
        """Queue a camera image."""
        self._input_image_queue.push_back((stamp, image))

    def insert_imu(self, stamp: float, linear_acc: Sequence[float], angular_vel: Sequence[float]) -> None:
        """Queue an IMU sample."""
        self._input_imu_queue.push_back(
            (stamp, np.array(linear_acc, dtype=float), np.array(angular_vel, dtype=float))
        )

    def insert_twist(self, stamp: float, linear_vel: float) -> None:
        """Queue a linear velocity measurement."""
        self._input_twist_queue.push_back((stamp, linear_vel))

    def insert_frame(self, frame: PreprocessedFrame) -> None:
        """Queue a point cloud frame."""
        self._input_frame_queue.push_back(frame)

    def join(self) -> None:
        """Signal the end of the sequence and wait until every queued input is processed."""
        self._end_of_sequence.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join()

    def close(self) -> None:
        """Stop the worker as soon as possible, dropping unprocessed inputs."""
        self._kill_switch.set()
        self.join()

    def workload(self) -> int:
        """Number of frames waiting to be processed."""
        return len(self._input_frame_queue) + self._internal_frame_queue_size

    def get_results(self) -> tuple[list[EstimationFrame], list[EstimationFrame]]:
        """Take the estimation results and the marginalized frames produced so far."""
        return (
            self._output_estimation_results.get_all_and_clear(),
            self._output_marginalized_frames.get_all_and_clear(),
        )

    def __enter__(self) -> "AsyncOdometryEstimation":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.join()
        else:
            self.close()

    def _run(self) -> None:
        estimator = self._odometry_estimation
        last_imu_time = 0.0 if self._enable_imu else math.inf
        images: deque = deque()
        raw_frames: deque = deque()

        while not self._kill_switch.is_set():
            imu_frames = self._input_imu_queue.get_all_and_clear()
            twist_frames = self._input_twist_queue.get_all_and_clear()
            images.extend(self._input_image_queue.get_all_and_clear())
            raw_frames.extend(self._input_frame_queue.get_all_and_clear())
            self._internal_frame_queue_size = len(raw_frames)

            if not (images or imu_frames or twist_frames or raw_frames):
                if self._end_of_sequence.is_set():
                    break
                time.sleep(0.001)
                continue

            for stamp, linear_acc, angular_vel in imu_frames:
                estimator.insert_imu(stamp, linear_acc, angular_vel)
                last_imu_time = stamp

            for stamp, linear_vel in twist_frames:
                estimator.insert_twist(stamp, linear_vel)

            while images:
                stamp, image = images[0]
                if not self._end_of_sequence.is_set() and stamp > last_imu_time:
                    self._logger.debug(
                        "waiting for IMU data (image_time=%.6f, last_imu_time=%.6f)", stamp, last_imu_time
                    )
                    time.sleep(0.01)
                    break
                estimator.insert_image(stamp, image)
                images.popleft()

            while raw_frames:
                frame = raw_frames[0]
                if not self._end_of_sequence.is_set() and frame.scan_end_time > last_imu_time:
                    self._logger.debug(
                        "waiting for IMU data (scan_end_time=%.6f, last_imu_time=%.6f)",
                        frame.scan_end_time,
                        last_imu_time,
                    )
                    time.sleep(0.01)
                    break
                state, marginalized = estimator.insert_frame(frame)
                self._output_estimation_results.push_back(state)
                self._output_marginalized_frames.insert(marginalized)
                raw_frames.popleft()
                self._internal_frame_queue_size = len(raw_frames)

        self._output_marginalized_frames.insert(estimator.get_remaining_frames())