"""Algebra module.

Components:
    intersection: Line, box and convex polygon intersection (rotating caliper
        and Sutherland-Hodgeman) with provenance flags
    merge: Convex hull of two polygons, box merge, maximum distance
    overlap: IoU, GIoU and DIoU for polygons and boxes
"""

from .intersection import (
    Algorithm,
    intersect_aabox2,
    intersect_lines,
    intersect_polygons,
    intersect_polygons_checked,
    intersect_polygons_with,
    intersect_rotating_caliper,
    intersect_rotating_caliper_checked,
    intersect_sutherland_hodgeman,
    is_degenerate_pair,
)
from .merge import aabox_max_distance, max_distance, merge_aabox2, merge_polygons
from .overlap import (
    aabox_diou,
    aabox_giou,
    aabox_iou,
    diou,
    diou_with,
    giou,
    giou_with,
    iou,
    iou_with,
)

__all__ = [
    "Algorithm",
    "aabox_diou",
    "aabox_giou",
    "aabox_iou",
    "aabox_max_distance",
    "diou",
    "diou_with",
    "giou",
    "giou_with",
    "intersect_aabox2",
    "intersect_lines",
    "intersect_polygons",
    "intersect_polygons_checked",
    "intersect_polygons_with",
    "intersect_rotating_caliper",
    "intersect_rotating_caliper_checked",
    "intersect_sutherland_hodgeman",
    "iou",
    "iou_with",
    "is_degenerate_pair",
    "max_distance",
    "merge_aabox2",
    "merge_polygons",
]
