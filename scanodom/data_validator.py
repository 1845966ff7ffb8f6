"""Sanity checks on incoming IMU and point cloud streams."""

from __future__ import annotations

import logging
import sys
import time
from typing import Optional, Sequence

import numpy as np

from scanodom.formatting import convert_to_string
from scanodom.frames import RawPoints
from scanodom.log import set_default_logger
from scanodom.time_keeper import TimeKeeper

_LOGGER_NAME = "scanodom.validator"
_FORMAT = "[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s"


class _DuplicateFilter(logging.Filter):
    """Drops a message identical to the previous one within a time window."""

    def __init__(self, max_skip_duration: float = 10.0) -> None:
        super().__init__()
        self._max_skip_duration = max_skip_duration
        self._last_message: Optional[str] = None
        self._last_time = 0.0

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        now = time.monotonic()
        if message == self._last_message and now - self._last_time < self._max_skip_duration:
            return False
        self._last_message = message
        self._last_time = now
        return True


def _setup_logger(debug: bool) -> logging.Logger:
    logger = logging.getLogger(_LOGGER_NAME)
    for old in [f for f in logger.filters if isinstance(f, _DuplicateFilter)]:
        logger.removeFilter(old)
    logger.addFilter(_DuplicateFilter(10.0))
    if not any(getattr(h, "_scanodom_validator", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._scanodom_validator = True
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    return logger


class DataValidator:
    """Warns about missing data, time rewinds, time gaps and invalid points."""

    def __init__(self, debug: bool = False) -> None:
        self._logger = _setup_logger(debug)
        set_default_logger(self._logger)
        self._logger.info("Starting data validator")

        self._last_imu_time = time.monotonic()
        self._last_points_time = time.monotonic()
        self._last_imu_stamp = -1.0
        self._last_points_stamp = -1.0
        self._time_keeper = TimeKeeper()

    def timer_callback(self) -> None:
        """Warn if no IMU data or no points arrived in the last second."""
        t1 = time.perf_counter()
        self._logger.debug("timer_callback")

        now = time.monotonic()
        if now - self._last_imu_time > 1.0:
            self._logger.warning("No IMU data received in last 1 second")
        if now - self._last_points_time > 1.0:
            self._logger.warning("No points received in last 1 second")

        self._logger.debug("timer_callback done (elapsed=%.3f[msec])", (time.perf_counter() - t1) * 1e3)

    def imu_callback(self, stamp: float, linear_acc: Sequence[float], angular_vel: Sequence[float]) -> None:
        """Check an IMU sample's stamp against the previous one."""
        self._logger.debug("imu_callback (stamp=%.6f)", stamp)
        self._last_imu_time = time.monotonic()

        if self._last_imu_stamp >= 0.0:
            if stamp < self._last_imu_stamp:
                self._logger.warning(
                    "IMU timestamp rewind detected!! (last=%.6f current=%.6f)", self._last_imu_stamp, stamp
                )
            elif stamp - self._last_imu_stamp > 0.1:
                self._logger.warning(
                    "A large time gap between consecutive IMU data!! (last=%.6f current=%.6f diff=%.6f)",
                    self._last_imu_stamp,
                    stamp,
                    stamp - self._last_imu_stamp,
                )

        self._last_imu_stamp = stamp

    def points_callback(self, stamp: float, raw_points: RawPoints) -> None:
        """Normalize the scan's timestamps in place and check stamps, times and points."""
        t1 = time.perf_counter()
        self._logger.debug("points_callback (stamp=%.6f)", stamp)
        self._last_points_time = time.monotonic()

        if self._last_points_stamp >= 0.0:
            if stamp < self._last_points_stamp:
                self._logger.warning(
                    "Point cloud timestamp rewind detected!! (last=%.6f current=%.6f)", self._last_points_stamp, stamp
                )
            elif stamp - self._last_points_stamp > 1.0:
                self._logger.warning(
                    "A large time gap between consecutive point clouds!! (last=%.6f current=%.6f diff=%.6f)",
                    self._last_points_stamp,
                    stamp,
                    stamp - self._last_points_stamp,
                )

        if self._last_imu_stamp >= 0.0 and abs(self._last_imu_stamp - stamp) > 1.0:
            self._logger.warning(
                "Too large time gap between points and IMU timestamps!! (IMU=%.6f points=%.6f)",
                self._last_imu_stamp,
                stamp,
            )

        self._time_keeper.process(raw_points)

        times = np.asarray(raw_points.times, dtype=float)
        if times.size:
            self._logger.debug(
                "points size=%d stamp=%.6f times=%.3f~%.3f", len(raw_points), raw_points.stamp, times[0], times[-1]
            )
            if np.any(times < 0.0):
                self._logger.warning("A negative per-point timestamp found!! (t=%.6f)", times.min())
            if np.any(times > 1.0):
                self._logger.warning("A large per-point timestamp found!! (t=%.6f)", times.max())

        points = np.asarray(raw_points.points, dtype=float)
        invalid = np.flatnonzero(~np.isfinite(points).all(axis=1))
        if invalid.size:
            self._logger.warning("An invalid point found!! (pt=%s)", convert_to_string(points[invalid[0]]))

        self._last_points_stamp = stamp
        self._logger.debug("points_callback done (elapsed=%.3f[msec])", (time.perf_counter() - t1) * 1e3)