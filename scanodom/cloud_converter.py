"""Conversion between PointCloud2-style binary messages and raw point frames."""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from scanodom.frames import RawPoints

_logger = logging.getLogger("scanodom.cloud_converter")


class FieldType(enum.IntEnum):
    """Data type codes of point fields."""

    INT8 = 1
    UINT8 = 2
    INT16 = 3
    UINT16 = 4
    INT32 = 5
    UINT32 = 6
    FLOAT32 = 7
    FLOAT64 = 8


_DTYPES = {
    FieldType.INT8: "i1",
    FieldType.UINT8: "u1",
    FieldType.INT16: "i2",
    FieldType.UINT16: "u2",
    FieldType.INT32: "i4",
    FieldType.UINT32: "u4",
    FieldType.FLOAT32: "f4",
    FieldType.FLOAT64: "f8",
}

_COORD_TYPES = (FieldType.FLOAT32, FieldType.FLOAT64)
_TIME_TYPES = (FieldType.UINT32, FieldType.FLOAT32, FieldType.FLOAT64)
_INTENSITY_TYPES = (FieldType.UINT8, FieldType.UINT16, FieldType.UINT32, FieldType.FLOAT32, FieldType.FLOAT64)


@dataclass
class PointField:
    """One named field inside each point record."""

    name: str
    offset: int
    datatype: int
    count: int = 1


@dataclass
class PointCloud2:
    """A point cloud message: fixed-size point records packed into ``data``."""

    frame_id: str = ""
    sec: int = 0
    nanosec: int = 0
    height: int = 1
    width: int = 0
    fields: list[PointField] = field(default_factory=list)
    is_bigendian: bool = False
    point_step: int = 0
    row_step: int = 0
    data: bytes = b""


def to_sec(sec: int, nanosec: int) -> float:
    """Seconds from a (sec, nanosec) stamp."""
    return sec + nanosec / 1e9


def from_sec(time: float) -> tuple[int, int]:
    """Split seconds into a (sec, nanosec) stamp."""
    sec = math.floor(time)
    return sec, int((time - sec) * 1e9)


def _read_field(msg: PointCloud2, offset: int, datatype: int, num_points: int, count: int = 1) -> np.ndarray:
    dtype = np.dtype(_DTYPES[FieldType(datatype)]).newbyteorder(">" if msg.is_bigendian else "<")
    shape = (num_points,) if count == 1 else (num_points, count)
    if num_points == 0:
        return np.zeros(shape)
    needed = msg.point_step * (num_points - 1) + offset + dtype.itemsize * count
    if len(msg.data) < needed:
        raise ValueError(f"point data too short: {len(msg.data)} bytes, need {needed}")
    strides = (msg.point_step,) if count == 1 else (msg.point_step, dtype.itemsize)
    view = np.ndarray(shape, dtype=dtype, buffer=bytes(msg.data), offset=offset, strides=strides)
    return view.astype(float)


def extract_raw_points(points_msg: PointCloud2, intensity_channel: str = "intensity") -> RawPoints:
    """Decode the coordinates, times, intensities and colors of a point cloud message.

    Raises ValueError when coordinates are missing or a field has an unsupported type.
    """
    num_points = points_msg.width * points_msg.height

    roles = {"x": "x", "y": "y", "z": "z", "t": "time", "time": "time", "time_stamp": "time", "timestamp": "time"}
    roles[intensity_channel] = "intensity"
    roles["rgba"] = "color"

    found: dict[str, PointField] = {}
    for point_field in points_msg.fields:
        role = roles.get(point_field.name)
        if role is not None:
            found[role] = point_field

    if not all(axis in found for axis in ("x", "y", "z")):
        raise ValueError("missing point coordinate fields")

    x_type = found["x"].datatype
    if x_type not in _COORD_TYPES or found["y"].datatype != x_type or found["z"].datatype != x_type:
        raise ValueError("unsupported points type")

    xyz = [_read_field(points_msg, found[axis].offset, x_type, num_points) for axis in ("x", "y", "z")]
    points = np.column_stack(xyz + [np.ones(num_points)]) if num_points else np.zeros((0, 4))

    times = np.zeros(0)
    if "time" in found:
        time_field = found["time"]
        if time_field.datatype not in _TIME_TYPES:
            raise ValueError(f"unsupported time type {time_field.datatype}")
        times = _read_field(points_msg, time_field.offset, time_field.datatype, num_points)
        if time_field.datatype == FieldType.UINT32:
            times = times / 1e9

    intensities = np.zeros(0)
    if "intensity" in found:
        intensity_field = found["intensity"]
        if intensity_field.datatype not in _INTENSITY_TYPES:
            raise ValueError(f"unsupported intensity type {intensity_field.datatype}")
        intensities = _read_field(points_msg, intensity_field.offset, intensity_field.datatype, num_points)

    colors = np.zeros((0, 4))
    if "color" in found:
        color_field = found["color"]
        if color_field.datatype != FieldType.UINT32:
            _logger.warning("unsupported color type %s", color_field.datatype)
        else:
            colors = _read_field(points_msg, color_field.offset, FieldType.UINT8, num_points, count=4) / 255.0

    return RawPoints(
        stamp=to_sec(points_msg.sec, points_msg.nanosec),
        times=times,
        intensities=intensities,
        points=points,
        colors=colors,
    )


def frame_to_pointcloud2(frame_id: str, stamp: float, points, times: Optional[np.ndarray] = None) -> PointCloud2:
    """Pack points (and optional per-point times) into a float32 point cloud message."""
    pts = np.asarray(points, dtype=float)
    if pts.size == 0:
        pts = np.zeros((0, 3))
    if pts.ndim != 2 or pts.shape[1] < 3:
        raise ValueError(f"points must have shape (N, 3) or (N, 4), got {pts.shape}")
    num_points = len(pts)

    names = ["x", "y", "z"]
    columns = [pts[:, 0], pts[:, 1], pts[:, 2]]
    if times is not None:
        t = np.asarray(times, dtype=float).ravel()
        if t.size != num_points:
            raise ValueError(f"expected {num_points} times, got {t.size}")
        names.append("t")
        columns.append(t)

    itemsize = np.dtype("<f4").itemsize
    num_fields = len(names)
    records = np.column_stack(columns).astype("<f4") if num_points else np.zeros((0, num_fields), dtype="<f4")
    sec, nanosec = from_sec(stamp)

    return PointCloud2(
        frame_id=frame_id,
        sec=sec,
        nanosec=nanosec,
        height=1,
        width=num_points,
        fields=[PointField(name, itemsize * i, FieldType.FLOAT32, 1) for i, name in enumerate(names)],
        is_bigendian=False,
        point_step=itemsize * num_fields,
        row_step=itemsize * num_fields * num_points,
        data=records.tobytes(),
    )