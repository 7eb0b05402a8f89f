"""Numeric traits and small index/angle helpers shared by all kernels.

The scalar type, the tolerance constants and the polygon capacity are taken
from :data:`dgal.config.SETTINGS` and become compile-time constants of every
Taichi function that reads them.

Tolerances:
    EPS: Sign threshold for cross products and bridge tests. Depends on the
        scalar width (f32: 3e-7, f64: 6e-15).
    CLIP_EPS: Distance dead zone used when clipping and when comparing
        support points. Points closer than this to a line count as on it.

Example:
    >>> import taichi as ti
    >>> from dgal.core.numeric import cross3, mod_inc, vec2
    >>> @ti.kernel
    ... def turn() -> ti.f32:
    ...     return cross3(vec2(0, 0), vec2(1, 0), vec2(1, 1))  # 1.0, left turn
"""

import math

import numpy as np
import taichi as ti

from dgal.config import SETTINGS

EPSILON = {"f32": 3e-7, "f64": 6e-15}
CLIP_EPSILON = {"f32": 1e-5, "f64": 1e-10}

real = SETTINGS.taichi_dtype
NP_REAL = np.float64 if SETTINGS.precision == "f64" else np.float32
EPS = EPSILON[SETTINGS.precision]
CLIP_EPS = CLIP_EPSILON[SETTINGS.precision]

MAX_VERTICES = SETTINGS.max_vertices

PI = math.pi
INF = float("inf")

# Type alias for 2D points in the configured precision
vec2 = ti.types.vector(2, real)


# =============================================================================
# Cyclic indices
# =============================================================================


@ti.func
def mod_inc(i, n):
    """Next index on a cycle of length n."""
    result = i + 1
    if result >= n:
        result = 0
    return result


@ti.func
def mod_dec(i, n):
    """Previous index on a cycle of length n."""
    result = i - 1
    if result < 0:
        result = n - 1
    return result


# =============================================================================
# Orientation and angles
# =============================================================================


@ti.func
def cross3(p1: vec2, p2: vec2, t: vec2) -> real:
    """Cross product of (p2 - p1) and (t - p2).

    Positive when the path p1 -> p2 -> t turns left, negative when it turns
    right. For a counter-clockwise edge p1 -> p2 the magnitude is the edge
    length times the distance of t from the edge line.
    """
    return (p2[0] - p1[0]) * (t[1] - p2[1]) - (p2[1] - p1[1]) * (t[0] - p2[0])


@ti.func
def slope(p1: vec2, p2: vec2) -> real:
    """Direction angle of p1 -> p2 in [-pi, pi).

    EPS is subtracted from the y component so a leftward horizontal edge
    reports -pi instead of pi, which is where every sweep starts.
    """
    return ti.atan2(p2[1] - p1[1] - EPS, p2[0] - p1[0])


# =============================================================================
# Provenance flags
# =============================================================================
# A flag packs (index << 1) | operand, operand 1 being the first polygon.


@ti.func
def make_flag(index, from_first):
    """Pack a vertex/edge index and its operand bit."""
    return (index << 1) | from_first


@ti.func
def flag_index(flag):
    """Vertex/edge index stored in a flag."""
    return flag >> 1


@ti.func
def flag_operand(flag):
    """1 if the flag refers to the first operand, 0 for the second."""
    return flag & 1
