"""Core numeric module.

Components:
    numeric: Scalar type, epsilon tables, cyclic index and angle helpers,
        provenance flag packing

Everything here is consumed as named constants or inlined ``@ti.func``
helpers by the geometry, algebra and grad subpackages.
"""

from .numeric import (
    CLIP_EPS,
    EPS,
    EPSILON,
    MAX_VERTICES,
    NP_REAL,
    cross3,
    flag_index,
    flag_operand,
    make_flag,
    mod_dec,
    mod_inc,
    real,
    slope,
    vec2,
)

__all__ = [
    "CLIP_EPS",
    "EPS",
    "EPSILON",
    "MAX_VERTICES",
    "NP_REAL",
    "cross3",
    "flag_index",
    "flag_operand",
    "make_flag",
    "mod_dec",
    "mod_inc",
    "real",
    "slope",
    "vec2",
]
