"""Human-readable rendering of parameter values for log messages."""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from scanodom.transforms import rotation_to_quaternion


def _fixed(values: Sequence[float]) -> str:
    return ",".join(f"{float(v):.6f}" for v in values)


def _format_float(value: float) -> str:
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def format_vector(values: Sequence[float]) -> str:
    """Render a vector as ``vec(a,b,...)`` with six decimals."""
    return f"vec({_fixed(np.asarray(values, dtype=float).ravel())})"


def format_quaternion(quat: Sequence[float]) -> str:
    """Render a quaternion ``[x, y, z, w]`` as ``quat(x,y,z,w)``."""
    return f"quat({_fixed(quat)})"


def format_isometry(pose: np.ndarray) -> str:
    """Render a 4x4 transform as ``se3(tx,ty,tz,qx,qy,qz,qw)``."""
    matrix = np.asarray(pose, dtype=float)
    quat = rotation_to_quaternion(matrix[:3, :3])
    return f"se3({_fixed(list(matrix[:3, 3]) + list(quat))})"


def convert_to_string(value: Any) -> str:
    """Render a parameter value the way it appears in log messages."""
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, (float, np.floating)):
        return _format_float(value)
    if isinstance(value, str):
        return value
    if isinstance(value, np.ndarray):
        if value.shape == (4, 4):
            return format_isometry(value)
        if value.ndim == 1:
            return format_vector(value)
        return convert_to_string(value.tolist())
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(convert_to_string(v) for v in value) + "]"
    return str(value)