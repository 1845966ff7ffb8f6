import logging

import numpy as np
import pytest

from scanodom.cloud_converter import (
    FieldType,
    PointCloud2,
    PointField,
    extract_raw_points,
    frame_to_pointcloud2,
    from_sec,
    to_sec,
)


def _message(records, names_types, sec=3, nanosec=250000000):
    fields = [
        PointField(name, records.dtype.fields[name][1], int(ftype), 1) for name, ftype in names_types
    ]
    return PointCloud2(
        frame_id="lidar",
        sec=sec,
        nanosec=nanosec,
        height=1,
        width=len(records),
        fields=fields,
        point_step=records.dtype.itemsize,
        row_step=records.dtype.itemsize * len(records),
        data=records.tobytes(),
    )


def test_from_sec_splits_stamp():
    assert from_sec(1.5) == (1, 500000000)
    sec, nanosec = from_sec(1234.25)
    assert to_sec(sec, nanosec) == pytest.approx(1234.25)


def test_round_trip_with_times():
    pts = np.array([[1.5, -2.25, 3.0, 1.0], [0.5, 0.25, -8.0, 1.0], [4.0, 4.5, 5.0, 1.0]])
    times = np.array([0.0, 0.03125, 0.0625])
    msg = frame_to_pointcloud2("lidar", 12.25, pts, times)
    raw = extract_raw_points(msg)
    assert len(raw) == 3
    assert np.allclose(raw.points[:, :3], pts[:, :3])
    assert np.all(raw.points[:, 3] == 1.0)
    assert np.allclose(raw.times, times)
    assert raw.stamp == pytest.approx(12.25)
    assert len(raw.intensities) == 0


def test_message_layout():
    pts = np.zeros((5, 4))
    with_times = frame_to_pointcloud2("map", 0.0, pts, np.zeros(5))
    assert [f.name for f in with_times.fields] == ["x", "y", "z", "t"]
    assert [f.offset for f in with_times.fields] == [0, 4, 8, 12]
    assert all(f.datatype == FieldType.FLOAT32 for f in with_times.fields)
    assert with_times.point_step == 16
    assert len(with_times.data) == with_times.point_step * 5
    assert with_times.row_step == len(with_times.data)
    assert (with_times.width, with_times.height) == (5, 1)

    without_times = frame_to_pointcloud2("map", 0.0, pts)
    assert [f.name for f in without_times.fields] == ["x", "y", "z"]
    assert len(without_times.data) == without_times.point_step * 5
    assert len(extract_raw_points(without_times).times) == 0


def test_frame_to_pointcloud2_rejects_mismatched_times():
    with pytest.raises(ValueError):
        frame_to_pointcloud2("map", 0.0, np.zeros((3, 4)), np.zeros(2))


def test_non_contiguous_doubles_and_extra_fields():
    dtype = np.dtype(
        [("x", "<f8"), ("pad", "<f4"), ("y", "<f8"), ("z", "<f8"), ("intensity", "<u2"), ("time", "<u4"), ("rgba", "u1", 4)]
    )
    records = np.zeros(2, dtype=dtype)
    records["x"] = [1.0, -1.0]
    records["y"] = [2.0, -2.0]
    records["z"] = [3.0, -3.0]
    records["intensity"] = [7, 300]
    records["time"] = [0, 50000000]
    records["rgba"] = [[255, 0, 0, 255], [0, 255, 0, 0]]
    msg = _message(
        records,
        [
            ("x", FieldType.FLOAT64),
            ("y", FieldType.FLOAT64),
            ("z", FieldType.FLOAT64),
            ("intensity", FieldType.UINT16),
            ("time", FieldType.UINT32),
            ("rgba", FieldType.UINT32),
        ],
    )
    raw = extract_raw_points(msg)
    assert np.array_equal(raw.points[:, 0], records["x"])
    assert np.array_equal(raw.points[:, 2], records["z"])
    assert np.array_equal(raw.intensities, records["intensity"].astype(float))
    assert np.allclose(raw.times, records["time"] / 1e9)
    assert raw.colors[0, 0] == 1.0
    assert raw.colors[0, 1] == 0.0
    assert raw.stamp == pytest.approx(to_sec(3, 250000000))


def test_custom_intensity_channel():
    dtype = np.dtype([("x", "<f4"), ("y", "<f4"), ("z", "<f4"), ("reflectivity", "<f4")])
    records = np.zeros(3, dtype=dtype)
    records["reflectivity"] = [1.0, 2.0, 4.0]
    names = [("x", FieldType.FLOAT32), ("y", FieldType.FLOAT32), ("z", FieldType.FLOAT32), ("reflectivity", FieldType.FLOAT32)]
    raw = extract_raw_points(_message(records, names), intensity_channel="reflectivity")
    assert np.array_equal(raw.intensities, records["reflectivity"].astype(float))
    assert len(extract_raw_points(_message(records, names)).intensities) == 0


def test_missing_coordinate_raises():
    dtype = np.dtype([("x", "<f4"), ("y", "<f4")])
    msg = _message(np.zeros(2, dtype=dtype), [("x", FieldType.FLOAT32), ("y", FieldType.FLOAT32)])
    with pytest.raises(ValueError, match="missing point coordinate fields"):
        extract_raw_points(msg)


def test_unsupported_coordinate_type_raises():
    dtype = np.dtype([("x", "u1"), ("y", "u1"), ("z", "u1")])
    msg = _message(np.zeros(2, dtype=dtype), [("x", FieldType.UINT8), ("y", FieldType.UINT8), ("z", FieldType.UINT8)])
    with pytest.raises(ValueError, match="unsupported points type"):
        extract_raw_points(msg)


def test_unsupported_intensity_and_time_types_raise():
    dtype = np.dtype([("x", "<f4"), ("y", "<f4"), ("z", "<f4"), ("intensity", "i1"), ("t", "i1")])
    coords = [("x", FieldType.FLOAT32), ("y", FieldType.FLOAT32), ("z", FieldType.FLOAT32)]
    records = np.zeros(2, dtype=dtype)
    with pytest.raises(ValueError, match="unsupported intensity type"):
        extract_raw_points(_message(records, coords + [("intensity", FieldType.INT8)]))
    with pytest.raises(ValueError, match="unsupported time type"):
        extract_raw_points(_message(records, coords + [("t", FieldType.INT8)]))


def test_unsupported_color_type_only_warns(caplog):
    dtype = np.dtype([("x", "<f4"), ("y", "<f4"), ("z", "<f4"), ("rgba", "<f4")])
    coords = [("x", FieldType.FLOAT32), ("y", FieldType.FLOAT32), ("z", FieldType.FLOAT32)]
    with caplog.at_level(logging.WARNING):
        raw = extract_raw_points(_message(np.zeros(2, dtype=dtype), coords + [("rgba", FieldType.FLOAT32)]))
    assert len(raw) == 2
    assert len(raw.colors) == 0
    assert any("unsupported color type" in r.getMessage() for r in caplog.records)


def test_short_data_raises():
    msg = frame_to_pointcloud2("map", 0.0, np.zeros((4, 4)))
    msg.data = msg.data[:-4]
    with pytest.raises(ValueError):
        extract_raw_points(msg)