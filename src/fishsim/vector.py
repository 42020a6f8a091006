"""
Small vector helpers used by the force computations.

All functions take array-likes of length 3 and return numpy values.
"""

import numpy as np

from fishsim.types import VEC3

EPSILON = 1e-12


def length(v: VEC3) -> float:
    return float(np.sqrt(np.dot(v, v)))


def normalize(v: VEC3) -> VEC3:
    """Unit vector along `v`, or the zero vector when `v` has no length."""
    v = np.asarray(v, dtype=np.float64)
    n = length(v)
    if n < EPSILON:
        return np.zeros(3)
    return v / n


def projection_on_plane(v: VEC3, normal: VEC3) -> VEC3:
    """Remove the component of `v` along the unit vector `normal`."""
    v = np.asarray(v, dtype=np.float64)
    normal = np.asarray(normal, dtype=np.float64)
    return v - np.dot(v, normal) * normal


def projection_on_vector(v: VEC3, onto: VEC3) -> float:
    """Signed length of the projection of `v` onto `onto`."""
    return float(np.dot(onto, v)) / length(onto)


def cos_angle(a: VEC3, b: VEC3) -> float:
    denom = np.sqrt(np.dot(a, a) * np.dot(b, b))
    if denom < EPSILON:
        return 0.0
    return float(np.clip(np.dot(a, b) / denom, -1.0, 1.0))


def angle(a: VEC3, b: VEC3) -> float:
    """Angle between `a` and `b` in degrees."""
    return float(np.degrees(np.arccos(cos_angle(a, b))))


def normal(a: VEC3, b: VEC3) -> VEC3:
    """Unit normal of the plane spanned by `a` and `b` (right-handed)."""
    return normalize(np.cross(a, b))
