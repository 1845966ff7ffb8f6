"""Conversions between flat parameter vectors, quaternions and rigid transforms.

Quaternions are stored as numpy arrays in ``(x, y, z, w)`` order and rigid
transforms as 4x4 homogeneous matrices.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

_POSE_SIZE = 7


def _as_float_array(values: Iterable[float]) -> np.ndarray:
    return np.asarray(list(values), dtype=float)


def quaternion_from_vector(values: Sequence[float]) -> np.ndarray:
    """Build a normalized quaternion from ``[x, y, z, w]``."""
    data = _as_float_array(values)
    if data.shape != (4,):
        raise ValueError(f"a quaternion needs 4 values, got {data.size}")
    return data / np.linalg.norm(data)


def quaternion_to_vector(quat: Sequence[float]) -> list[float]:
    """Return the quaternion components as ``[x, y, z, w]``."""
    data = _as_float_array(quat)
    if data.shape != (4,):
        raise ValueError(f"a quaternion needs 4 values, got {data.size}")
    return [float(v) for v in data]


def quaternion_to_rotation(quat: Sequence[float]) -> np.ndarray:
    """Rotation matrix of a quaternion given as ``[x, y, z, w]`` (normalized first)."""
    x, y, z, w = quaternion_from_vector(quat)
    return np.array(
        [
            [1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - z * w), 2.0 * (x * z + y * w)],
            [2.0 * (x * y + z * w), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - x * w)],
            [2.0 * (x * z - y * w), 2.0 * (y * z + x * w), 1.0 - 2.0 * (x * x + y * y)],
        ]
    )


def rotation_to_quaternion(rotation: np.ndarray) -> np.ndarray:
    """Quaternion ``[x, y, z, w]`` of a 3x3 rotation matrix."""
    m = np.asarray(rotation, dtype=float)
    if m.shape != (3, 3):
        raise ValueError(f"a rotation matrix must be 3x3, got {m.shape}")

    quat = np.zeros(4)
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > 0.0:
        t = np.sqrt(trace + 1.0)
        quat[3] = 0.5 * t
        t = 0.5 / t
        quat[0] = (m[2, 1] - m[1, 2]) * t
        quat[1] = (m[0, 2] - m[2, 0]) * t
        quat[2] = (m[1, 0] - m[0, 1]) * t
        return quat

    i = 0
    if m[1, 1] > m[0, 0]:
        i = 1
    if m[2, 2] > m[i, i]:
        i = 2
    j = (i + 1) % 3
    k = (j + 1) % 3

    t = np.sqrt(m[i, i] - m[j, j] - m[k, k] + 1.0)
    quat[i] = 0.5 * t
    t = 0.5 / t
    quat[3] = (m[k, j] - m[j, k]) * t
    quat[j] = (m[j, i] + m[i, j]) * t
    quat[k] = (m[k, i] + m[i, k]) * t
    return quat


def isometry_from_vector(values: Sequence[float]) -> np.ndarray:
    """Build a 4x4 transform from ``[tx, ty, tz, qx, qy, qz, qw]``."""
    data = _as_float_array(values)
    if data.shape != (_POSE_SIZE,):
        raise ValueError(f"a pose needs {_POSE_SIZE} values, got {data.size}")
    pose = np.eye(4)
    pose[:3, 3] = data[:3]
    pose[:3, :3] = quaternion_to_rotation(data[3:])
    return pose


def isometry_to_vector(pose: np.ndarray) -> list[float]:
    """Flatten a 4x4 transform into ``[tx, ty, tz, qx, qy, qz, qw]``."""
    matrix = np.asarray(pose, dtype=float)
    if matrix.shape != (4, 4):
        raise ValueError(f"a pose must be 4x4, got {matrix.shape}")
    quat = rotation_to_quaternion(matrix[:3, :3])
    return [float(v) for v in matrix[:3, 3]] + [float(v) for v in quat]


def isometries_from_vector(values: Sequence[float]) -> list[np.ndarray]:
    """Split a flat list of 7-value poses into 4x4 transforms."""
    data = _as_float_array(values)
    if data.size % _POSE_SIZE:
        raise ValueError(f"pose list length must be a multiple of {_POSE_SIZE}, got {data.size}")
    return [isometry_from_vector(chunk) for chunk in data.reshape(-1, _POSE_SIZE)]


def isometries_to_vector(poses: Iterable[np.ndarray]) -> list[float]:
    """Flatten 4x4 transforms into one list of 7-value poses."""
    return [value for pose in poses for value in isometry_to_vector(pose)]