"""Adjoints of the scalar metrics in :mod:`dgal.geometry.metrics`.

Each ``*_grad`` function receives the forward inputs, any index side data the
forward function returned, and the upstream gradient, and adds the resulting
contributions into ``ti.template()`` accumulators.

Example:
    >>> import taichi as ti
    >>> from dgal.geometry.primitives import empty_polygon, poly2_from_xywhr
    >>> from dgal.grad.metrics_grad import area_grad
    >>> @ti.kernel
    ... def corner_grad(out: ti.types.ndarray()):
    ...     for b in range(out.shape[0]):
    ...         box = poly2_from_xywhr(0.0, 0.0, 2.0, 2.0, 0.0)
    ...         grad = empty_polygon()
    ...         area_grad(box, 1.0, grad)
    ...         out[b] = grad.vertices[2, 0]  # 1.0, d(area)/d(x of top right)
"""

import taichi as ti

from dgal.core.numeric import mod_inc, real, vec2
from dgal.geometry.metrics import REGION_END, REGION_INTERIOR, segment_region
from dgal.geometry.primitives import (
    AABox2,
    Line2,
    Polygon,
    Segment2,
    aabox2_from_poly2,
    add_to_vertex,
    empty_aabox2,
    get_vertex,
    line2_from_segment2,
    segment2_from_pp,
)
from dgal.grad.primitives_grad import add_segment_grad, aabox2_from_poly2_grad, line2_from_segment2_grad


# =============================================================================
# Areas
# =============================================================================


@ti.func
def area_grad(p: Polygon, grad: real, grad_poly: ti.template()):
    """Adjoint of area.

    Every shoelace term x[i-1]*y[i] - x[i]*y[i-1] is linear in each of its
    four coordinates.
    """
    n = p.nvertices
    if n > 2:
        hg = grad / 2
        for k in range(n):
            i = mod_inc(k, n)
            grad_poly.vertices[i, 0] -= hg * p.vertices[k, 1]
            grad_poly.vertices[i, 1] += hg * p.vertices[k, 0]
            grad_poly.vertices[k, 0] += hg * p.vertices[i, 1]
            grad_poly.vertices[k, 1] -= hg * p.vertices[i, 0]


@ti.func
def aabox_area_grad(a: AABox2, grad: real, grad_box: ti.template()):
    """Adjoint of aabox_area."""
    w = a.max_x - a.min_x
    h = a.max_y - a.min_y
    grad_box.max_x += grad * h
    grad_box.min_x -= grad * h
    grad_box.max_y += grad * w
    grad_box.min_y -= grad * w


# =============================================================================
# Distances
# =============================================================================


@ti.func
def distance_pp_grad(p1: vec2, p2: vec2, grad: real, grad_p1: ti.template(), grad_p2: ti.template()):
    """Adjoint of distance_pp: the gradient runs along the unit direction."""
    d = p1 - p2
    u = d / d.norm()
    grad_p1[0] += grad * u[0]
    grad_p1[1] += grad * u[1]
    grad_p2[0] -= grad * u[0]
    grad_p2[1] -= grad * u[1]


@ti.func
def distance_lp_grad(l: Line2, p: vec2, grad: real, grad_l: ti.template(), grad_p: ti.template()):
    """Adjoint of distance_lp.

    With s = a*x + b*y + c and h = |(a, b)| the distance is s / h, so the
    line coefficients also receive the derivative of the normalisation.
    """
    s = l.a * p[0] + l.b * p[1] + l.c
    h2 = l.a * l.a + l.b * l.b
    h = ti.sqrt(h2)
    gh = grad / h
    grad_p[0] += gh * l.a
    grad_p[1] += gh * l.b
    grad_l.a += gh * (p[0] - s * l.a / h2)
    grad_l.b += gh * (p[1] - s * l.b / h2)
    grad_l.c += gh


@ti.func
def distance_sp_grad(s: Segment2, p: vec2, grad: real, grad_s: ti.template(), grad_p: ti.template()):
    """Adjoint of distance_sp.

    Follows the same branch as the forward function: through the supporting
    line when p projects inside the segment, else through the nearer
    endpoint with the side sign applied.
    """
    region = segment_region(s, p)
    if region == REGION_INTERIOR:
        l = line2_from_segment2(s)
        grad_l = Line2(a=0.0, b=0.0, c=0.0)
        distance_lp_grad(l, p, grad, grad_l, grad_p)
        line2_from_segment2_grad(s, grad_l, grad_s)
    else:
        l = line2_from_segment2(s)
        side = l.a * p[0] + l.b * p[1] + l.c
        g = grad
        if side <= 0:
            g = -grad
        endpoint = vec2(s.x1, s.y1)
        if region == REGION_END:
            endpoint = vec2(s.x2, s.y2)
        grad_end = vec2(0.0, 0.0)
        distance_pp_grad(p, endpoint, g, grad_p, grad_end)
        if region == REGION_END:
            grad_s.x2 += grad_end[0]
            grad_s.y2 += grad_end[1]
        else:
            grad_s.x1 += grad_end[0]
            grad_s.y1 += grad_end[1]


@ti.func
def distance_polygon_point_grad(
    poly: Polygon, p: vec2, grad: real, edge: ti.i32, grad_poly: ti.template(), grad_p: ti.template()
):
    """Adjoint of distance_polygon_point.

    Args:
        poly: Forward polygon.
        p: Forward query point.
        grad: Upstream gradient of the distance.
        edge: Nearest edge index returned by the forward call.
        grad_poly: Polygon accumulator.
        grad_p: Point accumulator.
    """
    enext = mod_inc(edge, poly.nvertices)
    s = segment2_from_pp(get_vertex(poly, edge), get_vertex(poly, enext))
    grad_s = Segment2(x1=0.0, y1=0.0, x2=0.0, y2=0.0)
    distance_sp_grad(s, p, -grad, grad_s, grad_p)
    add_segment_grad(grad_poly, edge, enext, grad_s)


# =============================================================================
# Diameter
# =============================================================================


@ti.func
def dimension_grad(p: Polygon, grad: real, flag1: ti.i32, flag2: ti.i32, grad_poly: ti.template()):
    """Adjoint of dimension, routed only to the two diameter vertices."""
    if flag1 != flag2:
        g1 = vec2(0.0, 0.0)
        g2 = vec2(0.0, 0.0)
        distance_pp_grad(get_vertex(p, flag1), get_vertex(p, flag2), grad, g1, g2)
        add_to_vertex(grad_poly, flag1, g1)
        add_to_vertex(grad_poly, flag2, g2)


@ti.func
def aabox_dimension_grad(a: AABox2, grad: real, grad_box: ti.template()):
    """Adjoint of aabox_dimension."""
    w = a.max_x - a.min_x
    h = a.max_y - a.min_y
    d = ti.sqrt(w * w + h * h)
    gw = grad * w / d
    gh = grad * h / d
    grad_box.max_x += gw
    grad_box.min_x -= gw
    grad_box.max_y += gh
    grad_box.min_y -= gh


# =============================================================================
# Centers
# =============================================================================


@ti.func
def aabox_center_grad(a: AABox2, grad: vec2, grad_box: ti.template()):
    """Adjoint of aabox_center."""
    grad_box.min_x += grad[0] / 2
    grad_box.max_x += grad[0] / 2
    grad_box.min_y += grad[1] / 2
    grad_box.max_y += grad[1] / 2


@ti.func
def aabox_centroid_grad(a: AABox2, grad: vec2, grad_box: ti.template()):
    """Adjoint of aabox_centroid."""
    aabox_center_grad(a, grad, grad_box)


@ti.func
def center_grad(p: Polygon, grad: vec2, grad_poly: ti.template()):
    """Adjoint of center, through the bounding box."""
    grad_box = empty_aabox2()
    aabox_center_grad(aabox2_from_poly2(p), grad, grad_box)
    aabox2_from_poly2_grad(p, grad_box, grad_poly)


@ti.func
def centroid_grad(p: Polygon, grad: vec2, grad_poly: ti.template()):
    """Adjoint of centroid: every vertex receives grad / n."""
    g = grad / p.nvertices
    for i in range(p.nvertices):
        add_to_vertex(grad_poly, i, g)
