"""Overlap metrics between two shapes: IoU, GIoU and DIoU.

    iou  = area(I) / area(U)
    giou = iou + area(U) / area(M) - 1
    diou = iou - |c1 - c2|^2 / diameter(M)^2

where I is the intersection, U the union (area(P1) + area(P2) - area(I)), M
the merged convex hull and c1, c2 the vertex centroids. Both extensions are
bounded above by iou.

The polygon versions also return the provenance data that the matching
adjoint in :mod:`dgal.grad.overlap_grad` consumes, so the backward pass never
repeats the geometric search. Zero denominators are not guarded.
"""

import taichi as ti

from dgal.algebra.intersection import Algorithm, intersect_aabox2, intersect_polygons_with
from dgal.algebra.merge import merge_aabox2, merge_polygons
from dgal.geometry.metrics import (
    aabox_area,
    aabox_centroid,
    aabox_dimension,
    area,
    centroid,
    dimension,
    distance_pp,
)
from dgal.geometry.primitives import AABox2, Polygon


# =============================================================================
# Polygons
# =============================================================================


@ti.func
def iou_with(p1: Polygon, p2: Polygon, algorithm: ti.template()):
    """Intersection over union of two convex polygons.

    Args:
        p1: First polygon.
        p2: Second polygon.
        algorithm: Intersection :class:`Algorithm` (compile-time constant).

    Returns:
        Tuple of (iou, nx, xflags) with the vertex count and flags of the
        intersection polygon.
    """
    pi, xflags = intersect_polygons_with(p1, p2, algorithm)
    area_i = area(pi)
    area_u = area(p1) + area(p2) - area_i
    return area_i / area_u, pi.nvertices, xflags


@ti.func
def iou(p1: Polygon, p2: Polygon):
    """Intersection over union with the default intersection algorithm."""
    return iou_with(p1, p2, Algorithm.DEFAULT)


@ti.func
def giou_with(p1: Polygon, p2: Polygon, algorithm: ti.template()):
    """Generalized IoU of two convex polygons.

    Returns:
        Tuple of (giou, nx, xflags, nm, mflags) with the intersection and
        merged hull provenance.
    """
    pi, xflags = intersect_polygons_with(p1, p2, algorithm)
    pm, mflags = merge_polygons(p1, p2)
    area_i = area(pi)
    area_m = area(pm)
    area_u = area(p1) + area(p2) - area_i
    return area_i / area_u + area_u / area_m - 1, pi.nvertices, xflags, pm.nvertices, mflags


@ti.func
def giou(p1: Polygon, p2: Polygon):
    """Generalized IoU with the default intersection algorithm."""
    return giou_with(p1, p2, Algorithm.DEFAULT)


@ti.func
def diou_with(p1: Polygon, p2: Polygon, algorithm: ti.template()):
    """Distance IoU of two convex polygons.

    The diameter of the merged hull normalises the squared centroid distance.

    Returns:
        Tuple of (diou, nx, xflags, dflag1, dflag2) where dflag1 and dflag2
        are the merge flags of the two hull vertices realising the diameter.
    """
    value, nx, xflags = iou_with(p1, p2, algorithm)
    cd = distance_pp(centroid(p1), centroid(p2))
    pm, mflags = merge_polygons(p1, p2)
    maxd, idx1, idx2 = dimension(pm)
    return value - (cd * cd) / (maxd * maxd), nx, xflags, mflags[idx1], mflags[idx2]


@ti.func
def diou(p1: Polygon, p2: Polygon):
    """Distance IoU with the default intersection algorithm."""
    return diou_with(p1, p2, Algorithm.DEFAULT)


# =============================================================================
# Boxes
# =============================================================================


@ti.func
def aabox_iou(a1: AABox2, a2: AABox2):
    """Intersection over union of two boxes."""
    area_i = aabox_area(intersect_aabox2(a1, a2))
    area_u = aabox_area(a1) + aabox_area(a2) - area_i
    return area_i / area_u


@ti.func
def aabox_giou(a1: AABox2, a2: AABox2):
    """Generalized IoU of two boxes."""
    area_i = aabox_area(intersect_aabox2(a1, a2))
    area_m = aabox_area(merge_aabox2(a1, a2))
    area_u = aabox_area(a1) + aabox_area(a2) - area_i
    return area_i / area_u + area_u / area_m - 1


@ti.func
def aabox_diou(a1: AABox2, a2: AABox2):
    """Distance IoU of two boxes."""
    maxd = aabox_dimension(merge_aabox2(a1, a2))
    cd = distance_pp(aabox_centroid(a1), aabox_centroid(a2))
    return aabox_iou(a1, a2) - (cd * cd) / (maxd * maxd)
