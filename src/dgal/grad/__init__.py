"""Adjoint module.

One reverse-mode function per forward function. Every adjoint adds into
caller-zeroed accumulators passed as ``ti.template()`` arguments.

Components:
    primitives_grad: Constructor adjoints
    metrics_grad: Area, distance, diameter and center adjoints
    intersection_grad: Line, box and polygon intersection adjoints
    merge_grad: Hull merge and maximum distance adjoints
    overlap_grad: IoU, GIoU and DIoU adjoints
"""

from .intersection_grad import (
    construct_intersection,
    intersect_aabox2_grad,
    intersect_lines_grad,
    intersect_polygons_grad,
)
from .merge_grad import (
    aabox_max_distance_grad,
    construct_merged_hull,
    max_distance_grad,
    merge_aabox2_grad,
    merge_polygons_grad,
)
from .metrics_grad import (
    aabox_area_grad,
    aabox_center_grad,
    aabox_centroid_grad,
    aabox_dimension_grad,
    area_grad,
    center_grad,
    centroid_grad,
    dimension_grad,
    distance_lp_grad,
    distance_polygon_point_grad,
    distance_pp_grad,
    distance_sp_grad,
)
from .overlap_grad import (
    aabox_diou_grad,
    aabox_giou_grad,
    aabox_iou_grad,
    diou_grad,
    giou_grad,
    iou_grad,
)
from .primitives_grad import (
    aabox2_from_poly2_grad,
    line2_from_pp_grad,
    line2_from_segment2_grad,
    line2_from_xyxy_grad,
    poly2_from_aabox2_grad,
    poly2_from_xywhr_grad,
    segment2_from_pp_grad,
)

__all__ = [
    "aabox2_from_poly2_grad",
    "aabox_area_grad",
    "aabox_center_grad",
    "aabox_centroid_grad",
    "aabox_dimension_grad",
    "aabox_diou_grad",
    "aabox_giou_grad",
    "aabox_iou_grad",
    "aabox_max_distance_grad",
    "area_grad",
    "center_grad",
    "centroid_grad",
    "construct_intersection",
    "construct_merged_hull",
    "dimension_grad",
    "diou_grad",
    "distance_lp_grad",
    "distance_polygon_point_grad",
    "distance_pp_grad",
    "distance_sp_grad",
    "giou_grad",
    "intersect_aabox2_grad",
    "intersect_lines_grad",
    "intersect_polygons_grad",
    "iou_grad",
    "line2_from_pp_grad",
    "line2_from_segment2_grad",
    "line2_from_xyxy_grad",
    "max_distance_grad",
    "merge_aabox2_grad",
    "merge_polygons_grad",
    "poly2_from_aabox2_grad",
    "poly2_from_xywhr_grad",
    "segment2_from_pp_grad",
]
