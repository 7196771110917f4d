"""Homogeneous 4x4 transforms in a right-handed, column-vector convention.

Matrices are ``numpy`` arrays of shape ``(4, 4)`` that act on column vectors
(``matrix @ point``).  Every function returns a new matrix and leaves its
arguments untouched.
"""

from __future__ import annotations

import math
from typing import Sequence, Union

import numpy as np

_DTYPE = np.float32

VectorLike = Union[Sequence[float], np.ndarray]


def _vec3(vector: VectorLike, what: str = "vector") -> np.ndarray:
    arr = np.asarray(vector, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"{what} must have 3 components, got shape {arr.shape}")
    return arr


def _mat4(matrix: np.ndarray) -> np.ndarray:
    arr = np.asarray(matrix, dtype=np.float64)
    if arr.shape != (4, 4):
        raise ValueError(f"matrix must have shape (4, 4), got {arr.shape}")
    return arr


def _normalize(vector: np.ndarray, what: str) -> np.ndarray:
    length = float(np.linalg.norm(vector))
    if length == 0.0 or not math.isfinite(length):
        raise ValueError(f"{what} must be a non-zero finite vector")
    return vector / length


def identity() -> np.ndarray:
    """Return the 4x4 identity matrix."""
    return np.identity(4, dtype=_DTYPE)


def perspective(fovy: float, aspect: float, near: float, far: float) -> np.ndarray:
    """Return a perspective projection mapping depth [-near, -far] to [-1, 1]."""
    if aspect == 0:
        raise ValueError("aspect ratio must not be zero")
    if near == far:
        raise ValueError("near and far planes must differ")
    tan_half = math.tan(fovy / 2.0)
    if tan_half == 0:
        raise ValueError("field of view must not be zero")
    result = np.zeros((4, 4), dtype=np.float64)
    result[0, 0] = 1.0 / (aspect * tan_half)
    result[1, 1] = 1.0 / tan_half
    result[2, 2] = -(far + near) / (far - near)
    result[2, 3] = -(2.0 * far * near) / (far - near)
    result[3, 2] = -1.0
    return result.astype(_DTYPE)


def look_at(eye: VectorLike, center: VectorLike, up: VectorLike) -> np.ndarray:
    """Return a view matrix placing the camera at ``eye`` looking at ``center``."""
    eye_v = _vec3(eye, "eye")
    forward = _normalize(_vec3(center, "center") - eye_v, "view direction")
    side = _normalize(np.cross(forward, _vec3(up, "up")), "side vector")
    true_up = np.cross(side, forward)
    result = np.identity(4, dtype=np.float64)
    result[0, :3] = side
    result[1, :3] = true_up
    result[2, :3] = -forward
    result[0, 3] = -float(side @ eye_v)
    result[1, 3] = -float(true_up @ eye_v)
    result[2, 3] = float(forward @ eye_v)
    return result.astype(_DTYPE)


def scale(matrix: np.ndarray, vector: VectorLike) -> np.ndarray:
    """Return ``matrix`` followed by a scale along each axis."""
    factors = np.append(_vec3(vector), 1.0)
    return (_mat4(matrix) @ np.diag(factors)).astype(_DTYPE)


def translate(matrix: np.ndarray, vector: VectorLike) -> np.ndarray:
    """Return ``matrix`` followed by a translation by ``vector``."""
    step = np.identity(4, dtype=np.float64)
    step[:3, 3] = _vec3(vector)
    return (_mat4(matrix) @ step).astype(_DTYPE)


def rotate(matrix: np.ndarray, angle: float, axis: VectorLike) -> np.ndarray:
    """Return ``matrix`` followed by a rotation of ``angle`` radians about ``axis``."""
    a = _normalize(_vec3(axis, "axis"), "rotation axis")
    c = math.cos(angle)
    s = math.sin(angle)
    cross = np.array(
        [
            [0.0, -a[2], a[1]],
            [a[2], 0.0, -a[0]],
            [-a[1], a[0], 0.0],
        ]
    )
    step = np.identity(4, dtype=np.float64)
    step[:3, :3] = c * np.identity(3) + (1.0 - c) * np.outer(a, a) + s * cross
    return (_mat4(matrix) @ step).astype(_DTYPE)