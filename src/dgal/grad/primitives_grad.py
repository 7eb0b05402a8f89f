"""Adjoints of the primitive constructors.

Every function takes the forward inputs, the upstream gradient of the
constructed value, and accumulators shaped like the inputs. Accumulators are
passed by reference (``ti.template()``) and are only ever added to, so the
caller zeroes them once before a backward pass.
"""

import taichi as ti

from dgal.core.numeric import real, vec2
from dgal.geometry.primitives import AABox2, Line2, Polygon, Segment2, add_to_vertex, get_vertex


@ti.func
def line2_from_xyxy_grad(
    x1: real, y1: real, x2: real, y2: real, grad: Line2, grad_p1: ti.template(), grad_p2: ti.template()
):
    """Adjoint of line2_from_xyxy.

    With a = y2 - y1, b = x1 - x2 and c = x2*y1 - x1*y2 the gradient of
    (x1, y1) goes to grad_p1 and the gradient of (x2, y2) to grad_p2.
    """
    grad_p1[0] += grad.b - y2 * grad.c
    grad_p1[1] += -grad.a + x2 * grad.c
    grad_p2[0] += -grad.b + y1 * grad.c
    grad_p2[1] += grad.a - x1 * grad.c


@ti.func
def line2_from_pp_grad(p1: vec2, p2: vec2, grad: Line2, grad_p1: ti.template(), grad_p2: ti.template()):
    """Adjoint of line2_from_pp."""
    line2_from_xyxy_grad(p1[0], p1[1], p2[0], p2[1], grad, grad_p1, grad_p2)


@ti.func
def segment2_from_pp_grad(p1: vec2, p2: vec2, grad: Segment2, grad_p1: ti.template(), grad_p2: ti.template()):
    """Adjoint of segment2_from_pp."""
    grad_p1[0] += grad.x1
    grad_p1[1] += grad.y1
    grad_p2[0] += grad.x2
    grad_p2[1] += grad.y2


@ti.func
def line2_from_segment2_grad(s: Segment2, grad: Line2, grad_s: ti.template()):
    """Adjoint of line2_from_segment2."""
    g1 = vec2(0.0, 0.0)
    g2 = vec2(0.0, 0.0)
    line2_from_xyxy_grad(s.x1, s.y1, s.x2, s.y2, grad, g1, g2)
    grad_s.x1 += g1[0]
    grad_s.y1 += g1[1]
    grad_s.x2 += g2[0]
    grad_s.y2 += g2[1]


@ti.func
def poly2_from_aabox2_grad(a: AABox2, grad: Polygon, grad_box: ti.template()):
    """Adjoint of poly2_from_aabox2.

    Each bound collects the gradient of the two corners it appears in.
    """
    grad_box.min_x += grad.vertices[0, 0] + grad.vertices[3, 0]
    grad_box.max_x += grad.vertices[1, 0] + grad.vertices[2, 0]
    grad_box.min_y += grad.vertices[0, 1] + grad.vertices[1, 1]
    grad_box.max_y += grad.vertices[2, 1] + grad.vertices[3, 1]


@ti.func
def aabox2_from_poly2_grad(p: Polygon, grad: AABox2, grad_poly: ti.template()):
    """Adjoint of aabox2_from_poly2.

    Each bound routes its gradient to the first vertex realising it, the same
    vertex the forward min/max scan keeps.
    """
    imin_x = 0
    imax_x = 0
    imin_y = 0
    imax_y = 0
    for i in range(1, p.nvertices):
        if p.vertices[i, 0] < p.vertices[imin_x, 0]:
            imin_x = i
        if p.vertices[i, 0] > p.vertices[imax_x, 0]:
            imax_x = i
        if p.vertices[i, 1] < p.vertices[imin_y, 1]:
            imin_y = i
        if p.vertices[i, 1] > p.vertices[imax_y, 1]:
            imax_y = i

    grad_poly.vertices[imin_x, 0] += grad.min_x
    grad_poly.vertices[imax_x, 0] += grad.max_x
    grad_poly.vertices[imin_y, 1] += grad.min_y
    grad_poly.vertices[imax_y, 1] += grad.max_y


@ti.func
def poly2_from_xywhr_grad(x: real, y: real, w: real, h: real, r: real, grad: Polygon, grad_xywhr: ti.template()):
    """Adjoint of poly2_from_xywhr.

    Args:
        x, y, w, h, r: Forward parameters.
        grad: Upstream gradient of the four corners.
        grad_xywhr: 5-vector accumulator for (x, y, w, h, r).
    """
    g0 = get_vertex(grad, 0)
    g1 = get_vertex(grad, 1)
    g2 = get_vertex(grad, 2)
    g3 = get_vertex(grad, 3)

    # Gradients of the four half-extent products
    g_dxsin = -g0[1] + g1[1] + g2[1] - g3[1]
    g_dxcos = -g0[0] + g1[0] + g2[0] - g3[0]
    g_dysin = g0[0] + g1[0] - g2[0] - g3[0]
    g_dycos = -g0[1] - g1[1] + g2[1] + g3[1]

    sin_r = ti.sin(r)
    cos_r = ti.cos(r)
    grad_xywhr[0] += g0[0] + g1[0] + g2[0] + g3[0]
    grad_xywhr[1] += g0[1] + g1[1] + g2[1] + g3[1]
    grad_xywhr[2] += (g_dxsin * sin_r + g_dxcos * cos_r) / 2
    grad_xywhr[3] += (g_dysin * sin_r + g_dycos * cos_r) / 2
    grad_xywhr[4] += (
        g_dxsin * w * cos_r - g_dxcos * w * sin_r + g_dysin * h * cos_r - g_dycos * h * sin_r
    ) / 2


@ti.func
def add_segment_grad(grad_poly: ti.template(), i, j, grad: Segment2):
    """Accumulate a segment gradient into two vertices of a polygon."""
    add_to_vertex(grad_poly, i, vec2(grad.x1, grad.y1))
    add_to_vertex(grad_poly, j, vec2(grad.x2, grad.y2))
