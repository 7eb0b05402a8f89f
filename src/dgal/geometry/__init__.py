"""Geometry module.

Components:
    primitives: Line2, Segment2, AABox2 and Polygon dataclasses, constructors
        and containment predicates
    metrics: Areas, diameters, centers and signed distances
"""

from .metrics import (
    aabox_area,
    aabox_center,
    aabox_centroid,
    aabox_dimension,
    area,
    center,
    centroid,
    dimension,
    distance_lp,
    distance_polygon_point,
    distance_pp,
    distance_sp,
)
from .primitives import (
    AABox2,
    FlagArray,
    Line2,
    Polygon,
    Segment2,
    aabox2_contains,
    aabox2_from_poly2,
    empty_aabox2,
    empty_polygon,
    get_vertex,
    line2_from_pp,
    line2_from_segment2,
    line2_from_xyxy,
    poly2_from_aabox2,
    poly2_from_xywhr,
    polygon_contains,
    segment2_from_pp,
    set_vertex,
)

__all__ = [
    "AABox2",
    "FlagArray",
    "Line2",
    "Polygon",
    "Segment2",
    "aabox2_contains",
    "aabox2_from_poly2",
    "aabox_area",
    "aabox_center",
    "aabox_centroid",
    "aabox_dimension",
    "area",
    "center",
    "centroid",
    "dimension",
    "distance_lp",
    "distance_polygon_point",
    "distance_pp",
    "distance_sp",
    "empty_aabox2",
    "empty_polygon",
    "get_vertex",
    "line2_from_pp",
    "line2_from_segment2",
    "line2_from_xyxy",
    "poly2_from_aabox2",
    "poly2_from_xywhr",
    "polygon_contains",
    "segment2_from_pp",
    "set_vertex",
]
