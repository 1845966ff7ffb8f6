"""Normalization of scan and point timestamps, with sanity checks on IMU stamps."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from scanodom.frames import RawPoints

_logger = logging.getLogger("scanodom.time_keeper")

_SCAN_DURATION_SAMPLES = 1000


@dataclass(frozen=True)
class AbsPointTimeParams:
    """How absolute per-point timestamps are turned into relative ones."""

    replace_frame_timestamp: bool = True
    wrt_first_frame_timestamp: bool = True


class TimeKeeper:
    """Makes frame stamps mark the first point and point times relative to it."""

    def __init__(self, abs_params: AbsPointTimeParams = AbsPointTimeParams()) -> None:
        self._abs_params = abs_params
        self._first_warning = True
        self._last_points_stamp = -1.0
        self._last_imu_stamp = -1.0
        self._num_scans = 0
        self._first_points_stamp = 0.0
        self._estimated_scan_duration = -1.0
        self._point_time_offset = 0.0

    def validate_imu_stamp(self, imu_stamp: float) -> bool:
        """Check an IMU stamp; False means the sample went back in time and should be skipped."""
        imu_diff = imu_stamp - self._last_imu_stamp
        if self._last_imu_stamp < 0.0:
            pass
        elif imu_stamp < self._last_imu_stamp:
            _logger.warning("IMU timestamp rewind detected!!")
            _logger.warning("current=%.6f last=%.6f diff=%.6f", imu_stamp, self._last_imu_stamp, imu_diff)
            return False
        elif imu_diff > 0.1:
            _logger.warning("large time gap between consecutive IMU data!!")
            _logger.warning("current=%.6f last=%.6f diff=%.6f", imu_stamp, self._last_imu_stamp, imu_diff)
        self._last_imu_stamp = imu_stamp

        points_diff = imu_stamp - self._last_points_stamp
        if self._last_points_stamp > 0.0 and abs(points_diff) > 1.0:
            _logger.warning("large time difference between points and imu!!")
            _logger.warning("points=%.6f imu=%.6f diff=%.6f", self._last_points_stamp, imu_stamp, points_diff)

        return True

    def process(self, points: RawPoints) -> None:
        """Rewrite the frame stamp and point times of ``points`` in place."""
        self._replace_points_stamp(points)

        time_diff = points.stamp - self._last_points_stamp
        if self._last_points_stamp < 0.0:
            pass
        elif time_diff < 0.0:
            _logger.warning("point timestamp rewind detected!!")
            _logger.warning("current=%.6f last=%.6f diff=%.6f", points.stamp, self._last_points_stamp, time_diff)
        elif time_diff > 0.5:
            _logger.warning("large time gap between consecutive LiDAR frames!!")
            _logger.warning("current=%.6f last=%.6f diff=%.6f", points.stamp, self._last_points_stamp, time_diff)

        self._last_points_stamp = points.stamp

    def _replace_points_stamp(self, points: RawPoints) -> None:
        num_points = len(points)
        times = np.asarray(points.times, dtype=float)

        if times.size == 0:
            if self._first_warning:
                _logger.warning("per-point timestamps are not given!!")
                _logger.warning("use pseudo per-point timestamps based on the order of points")
                self._first_warning = False

            points.times = np.zeros(num_points)
            scan_duration = self._estimate_scan_duration(points.stamp)
            if scan_duration > 0.0 and num_points:
                points.times = scan_duration * np.arange(num_points, dtype=float) / num_points
            return

        if times.size != num_points:
            _logger.warning("# of timestamps and # of points mismatch!!")
            resized = np.zeros(num_points)
            count = min(num_points, times.size)
            resized[:count] = times[:count]
            points.times = resized
            return

        if times[0] < 0.0 or times[-1] < 0.0:
            _logger.warning("negative per-point timestamp is found!!")
            _logger.warning("front=%.6f back=%.6f", times[0], times[-1])

        if times[0] < 1.0:
            self._first_warning = False
            return

        if self._first_warning:
            _logger.warning("large point timestamp (%.6f > 1.0) found!!", times[-1])
            _logger.warning("assume that point times are absolute and convert them to relative")
            _logger.warning(
                "replace_frame_stamp=%s wrt_first_frame_timestamp=%s",
                self._abs_params.replace_frame_timestamp,
                self._abs_params.wrt_first_frame_timestamp,
            )

        if times[0] > 1e16:
            if self._first_warning:
                _logger.warning("too large point timestamp (%.6f > 1e16) found!!", times[0])
                _logger.warning("maybe using a Livox LiDAR that use FLOAT64 nanosec per-point timestamps")
                _logger.warning("convert per-point timestamps from nanosec to sec")
            times = times * 1e-9

        if self._abs_params.replace_frame_timestamp:
            first = times[0]
            if not self._abs_params.wrt_first_frame_timestamp or abs(points.stamp - first) < 1.0:
                if self._first_warning:
                    _logger.warning("use first point timestamp as frame timestamp")
                    _logger.warning("frame=%.6f point=%.6f", points.stamp, first)
                self._point_time_offset = 0.0
                points.stamp = float(first)
            else:
                if self._first_warning:
                    _logger.warning("point timestamp is too apart from frame timestamp!!")
                    _logger.warning("use time offset w.r.t. the first frame timestamp")
                    _logger.warning(
                        "frame=%.6f point=%.6f diff=%.6f", points.stamp, first, points.stamp - first
                    )
                    self._point_time_offset = points.stamp - first
                points.stamp = float(first + self._point_time_offset)

            times = times - first

        points.times = times
        self._first_warning = False

    def _estimate_scan_duration(self, stamp: float) -> float:
        if self._estimated_scan_duration > 0.0:
            return self._estimated_scan_duration

        self._num_scans += 1
        if self._num_scans == 1:
            self._first_points_stamp = stamp
            return -1.0

        scan_duration = (stamp - self._first_points_stamp) / (self._num_scans - 1)
        if self._num_scans == _SCAN_DURATION_SAMPLES:
            _logger.info("estimated scan duration: %s", scan_duration)
            self._estimated_scan_duration = scan_duration
        return scan_duration