"""Adjoints of the composite overlap metrics.

Each adjoint splits the upstream gradient into gradients of the areas and
distances that make up the forward formula, rebuilds the intersection and
merged hull from the saved flags, and hands those partial gradients to the
area, centroid, distance, intersection and merge adjoints.

Example:
    >>> import taichi as ti
    >>> from dgal.algebra.overlap import giou
    >>> from dgal.geometry.primitives import empty_polygon, poly2_from_xywhr
    >>> from dgal.grad.overlap_grad import giou_grad
    >>> @ti.kernel
    ... def step(out: ti.types.ndarray()):
    ...     for _ in range(1):
    ...         a = poly2_from_xywhr(0.0, 0.0, 2.0, 1.0, 0.1)
    ...         b = poly2_from_xywhr(0.5, 0.2, 1.5, 1.0, -0.3)
    ...         value, nx, xflags, nm, mflags = giou(a, b)
    ...         ga = empty_polygon()
    ...         gb = empty_polygon()
    ...         giou_grad(a, b, 1.0, nx, xflags, nm, mflags, ga, gb)
    ...         out[0] = ga.vertices[0, 0]
"""

import taichi as ti

from dgal.algebra.intersection import intersect_aabox2
from dgal.algebra.merge import merge_aabox2
from dgal.core.numeric import real, vec2
from dgal.geometry.metrics import (
    aabox_area,
    aabox_centroid,
    aabox_dimension,
    area,
    centroid,
    distance_pp,
)
from dgal.geometry.primitives import AABox2, Polygon, empty_aabox2, empty_polygon
from dgal.grad.intersection_grad import construct_intersection, intersect_aabox2_grad, intersect_polygons_grad
from dgal.grad.merge_grad import (
    add_to_flagged_vertex,
    construct_merged_hull,
    flagged_vertex,
    merge_aabox2_grad,
    merge_polygons_grad,
)
from dgal.grad.metrics_grad import (
    aabox_area_grad,
    aabox_centroid_grad,
    aabox_dimension_grad,
    area_grad,
    centroid_grad,
    distance_pp_grad,
)


# =============================================================================
# Polygons
# =============================================================================


@ti.func
def _intersection_area_grad(
    p1: Polygon, p2: Polygon, grad: real, nx: ti.i32, xflags: ti.template(), grad_p1: ti.template(), grad_p2: ti.template()
):
    """Push a gradient of area(intersection) back to both operands."""
    pi = construct_intersection(p1, p2, nx, xflags)
    grad_pi = empty_polygon()
    grad_pi.nvertices = nx
    area_grad(pi, grad, grad_pi)
    intersect_polygons_grad(p1, p2, grad_pi, xflags, grad_p1, grad_p2)


@ti.func
def iou_grad(
    p1: Polygon, p2: Polygon, grad: real, nx: ti.i32, xflags: ti.template(), grad_p1: ti.template(), grad_p2: ti.template()
):
    """Adjoint of iou.

    Args:
        p1: First forward operand.
        p2: Second forward operand.
        grad: Upstream gradient of the iou value.
        nx: Intersection vertex count returned by the forward call.
        xflags: Intersection flags returned by the forward call.
        grad_p1: Accumulator shaped like p1.
        grad_p2: Accumulator shaped like p2.
    """
    area_i = area(construct_intersection(p1, p2, nx, xflags))
    area_u = area(p1) + area(p2) - area_i

    # iou = ai / (a1 + a2 - ai)
    grad_i = grad / area_u
    grad_u = -grad_i * area_i / area_u
    grad_i -= grad_u

    area_grad(p1, grad_u, grad_p1)
    area_grad(p2, grad_u, grad_p2)
    _intersection_area_grad(p1, p2, grad_i, nx, xflags, grad_p1, grad_p2)


@ti.func
def giou_grad(
    p1: Polygon,
    p2: Polygon,
    grad: real,
    nx: ti.i32,
    xflags: ti.template(),
    nm: ti.i32,
    mflags: ti.template(),
    grad_p1: ti.template(),
    grad_p2: ti.template(),
):
    """Adjoint of giou, given the intersection and hull flags."""
    pm = construct_merged_hull(p1, p2, nm, mflags)
    area_i = area(construct_intersection(p1, p2, nx, xflags))
    area_m = area(pm)
    area_u = area(p1) + area(p2) - area_i

    # giou = ai / au + au / am - 1 with au = a1 + a2 - ai
    grad_u = grad * (1 / area_m - area_i / (area_u * area_u))
    grad_i = grad / area_u - grad_u
    grad_m = -grad * area_u / (area_m * area_m)

    area_grad(p1, grad_u, grad_p1)
    area_grad(p2, grad_u, grad_p2)
    _intersection_area_grad(p1, p2, grad_i, nx, xflags, grad_p1, grad_p2)

    grad_pm = empty_polygon()
    grad_pm.nvertices = nm
    area_grad(pm, grad_m, grad_pm)
    merge_polygons_grad(p1, p2, grad_pm, mflags, grad_p1, grad_p2)


@ti.func
def diou_grad(
    p1: Polygon,
    p2: Polygon,
    grad: real,
    nx: ti.i32,
    xflags: ti.template(),
    dflag1: ti.i32,
    dflag2: ti.i32,
    grad_p1: ti.template(),
    grad_p2: ti.template(),
):
    """Adjoint of diou.

    The penalty cd^2 / maxd^2 is differentiated through the squared
    centroid distance, so coincident centroids contribute a zero gradient.
    The diameter gradient reaches only the two hull vertices named by
    dflag1 and dflag2.
    """
    iou_grad(p1, p2, grad, nx, xflags, grad_p1, grad_p2)

    c1 = centroid(p1)
    c2 = centroid(p2)
    d = c1 - c2
    cd2 = d.dot(d)
    v1 = flagged_vertex(p1, p2, dflag1)
    v2 = flagged_vertex(p1, p2, dflag2)
    maxd = distance_pp(v1, v2)
    maxd2 = maxd * maxd

    grad_c = -2 * grad * d / maxd2
    centroid_grad(p1, grad_c, grad_p1)
    centroid_grad(p2, -grad_c, grad_p2)

    grad_v1 = vec2(0.0, 0.0)
    grad_v2 = vec2(0.0, 0.0)
    distance_pp_grad(v1, v2, 2 * grad * cd2 / (maxd2 * maxd), grad_v1, grad_v2)
    add_to_flagged_vertex(grad_p1, grad_p2, dflag1, grad_v1)
    add_to_flagged_vertex(grad_p1, grad_p2, dflag2, grad_v2)


# =============================================================================
# Boxes
# =============================================================================


@ti.func
def aabox_iou_grad(a1: AABox2, a2: AABox2, grad: real, grad_a1: ti.template(), grad_a2: ti.template()):
    """Adjoint of aabox_iou."""
    ai = intersect_aabox2(a1, a2)
    area_i = aabox_area(ai)
    area_u = aabox_area(a1) + aabox_area(a2) - area_i

    grad_i = grad / area_u
    grad_u = -grad_i * area_i / area_u
    grad_i -= grad_u

    aabox_area_grad(a1, grad_u, grad_a1)
    aabox_area_grad(a2, grad_u, grad_a2)
    grad_ai = empty_aabox2()
    aabox_area_grad(ai, grad_i, grad_ai)
    intersect_aabox2_grad(a1, a2, grad_ai, grad_a1, grad_a2)


@ti.func
def aabox_giou_grad(a1: AABox2, a2: AABox2, grad: real, grad_a1: ti.template(), grad_a2: ti.template()):
    """Adjoint of aabox_giou."""
    ai = intersect_aabox2(a1, a2)
    am = merge_aabox2(a1, a2)
    area_i = aabox_area(ai)
    area_m = aabox_area(am)
    area_u = aabox_area(a1) + aabox_area(a2) - area_i

    grad_u = grad * (1 / area_m - area_i / (area_u * area_u))
    grad_i = grad / area_u - grad_u
    grad_m = -grad * area_u / (area_m * area_m)

    aabox_area_grad(a1, grad_u, grad_a1)
    aabox_area_grad(a2, grad_u, grad_a2)
    grad_ai = empty_aabox2()
    aabox_area_grad(ai, grad_i, grad_ai)
    intersect_aabox2_grad(a1, a2, grad_ai, grad_a1, grad_a2)
    grad_am = empty_aabox2()
    aabox_area_grad(am, grad_m, grad_am)
    merge_aabox2_grad(a1, a2, grad_am, grad_a1, grad_a2)


@ti.func
def aabox_diou_grad(a1: AABox2, a2: AABox2, grad: real, grad_a1: ti.template(), grad_a2: ti.template()):
    """Adjoint of aabox_diou."""
    aabox_iou_grad(a1, a2, grad, grad_a1, grad_a2)

    am = merge_aabox2(a1, a2)
    d = aabox_centroid(a1) - aabox_centroid(a2)
    cd2 = d.dot(d)
    maxd = aabox_dimension(am)
    maxd2 = maxd * maxd

    grad_c = -2 * grad * d / maxd2
    aabox_centroid_grad(a1, grad_c, grad_a1)
    aabox_centroid_grad(a2, -grad_c, grad_a2)

    grad_am = empty_aabox2()
    aabox_dimension_grad(am, 2 * grad * cd2 / (maxd2 * maxd), grad_am)
    merge_aabox2_grad(a1, a2, grad_am, grad_a1, grad_a2)
