"""Adjoints of the intersection engine.

The polygon adjoint is algorithm agnostic: it only replays the edge flags
returned by :func:`dgal.algebra.intersection.intersect_polygons`. An output
vertex whose neighbouring flags share an operand is a copy of that operand's
vertex and passes its gradient straight through. Any other output vertex is
the crossing of one edge line of each polygon; its gradient goes through the
closed-form derivative of Cramer's rule and then through both edge lines to
their four endpoints.
"""

import taichi as ti

from dgal.algebra.intersection import intersect_lines
from dgal.core.numeric import flag_index, flag_operand, mod_dec, mod_inc, vec2
from dgal.geometry.primitives import (
    AABox2,
    Line2,
    Polygon,
    add_to_vertex,
    empty_polygon,
    get_vertex,
    line2_from_pp,
    set_vertex,
)
from dgal.grad.primitives_grad import line2_from_pp_grad


@ti.func
def intersect_lines_grad(l1: Line2, l2: Line2, grad: vec2, grad_l1: ti.template(), grad_l2: ti.template()):
    """Adjoint of intersect_lines.

    The crossing is (wbc / w, wca / w) with wbc = b1*c2 - b2*c1,
    wca = c1*a2 - c2*a1 and w = a1*b2 - a2*b1.
    """
    w = l1.a * l2.b - l2.a * l1.b
    wbc = l1.b * l2.c - l2.b * l1.c
    wca = l1.c * l2.a - l2.c * l1.a

    g_wbc = grad[0] / w
    g_wca = grad[1] / w
    g_w = -(wbc * g_wbc + wca * g_wca) / w

    grad_l1.a += -l2.c * g_wca + l2.b * g_w
    grad_l1.b += l2.c * g_wbc - l2.a * g_w
    grad_l1.c += l2.a * g_wca - l2.b * g_wbc
    grad_l2.a += l1.c * g_wca - l1.b * g_w
    grad_l2.b += -l1.c * g_wbc + l1.a * g_w
    grad_l2.c += l1.b * g_wbc - l1.a * g_wca


@ti.func
def intersect_aabox2_grad(a1: AABox2, a2: AABox2, grad: AABox2, grad_a1: ti.template(), grad_a2: ti.template()):
    """Adjoint of intersect_aabox2.

    Each bound of the overlap is the max or min of two input bounds; the
    gradient goes to the one that won. Disjoint boxes get nothing.
    """
    if a1.max_x > a2.min_x and a1.min_x < a2.max_x and a1.max_y > a2.min_y and a1.min_y < a2.max_y:
        if a1.min_x > a2.min_x:
            grad_a1.min_x += grad.min_x
        else:
            grad_a2.min_x += grad.min_x
        if a1.max_x < a2.max_x:
            grad_a1.max_x += grad.max_x
        else:
            grad_a2.max_x += grad.max_x
        if a1.min_y > a2.min_y:
            grad_a1.min_y += grad.min_y
        else:
            grad_a2.min_y += grad.min_y
        if a1.max_y < a2.max_y:
            grad_a1.max_y += grad.max_y
        else:
            grad_a2.max_y += grad.max_y


@ti.func
def _edge_line(p: ti.template(), i) -> Line2:
    return line2_from_pp(get_vertex(p, i), get_vertex(p, mod_inc(i, p.nvertices)))


@ti.func
def construct_intersection(p1: Polygon, p2: Polygon, nx: ti.i32, flags: ti.template()) -> Polygon:
    """Rebuild an intersection polygon from its edge flags.

    Args:
        p1: First forward operand.
        p2: Second forward operand.
        nx: Number of output vertices.
        flags: Edge flags returned by the forward intersection.

    Returns:
        The intersection polygon, equal to the forward result up to rounding.
    """
    result = empty_polygon()
    for i in range(nx):
        prev = flags[mod_dec(i, nx)]
        cur = flags[i]
        v = vec2(0.0, 0.0)
        if flag_operand(prev) == flag_operand(cur):
            if flag_operand(cur) == 1:
                v = get_vertex(p1, flag_index(cur))
            else:
                v = get_vertex(p2, flag_index(cur))
        else:
            e1 = flag_index(cur)
            e2 = flag_index(prev)
            if flag_operand(cur) == 0:
                e1 = flag_index(prev)
                e2 = flag_index(cur)
            v = intersect_lines(_edge_line(p1, e1), _edge_line(p2, e2))
        set_vertex(result, i, v)
    result.nvertices = nx
    return result


@ti.func
def _edge_line_grad(p: ti.template(), i, grad: Line2, grad_p: ti.template()):
    """Push an edge line gradient back to the edge endpoints."""
    j = mod_inc(i, p.nvertices)
    ga = vec2(0.0, 0.0)
    gb = vec2(0.0, 0.0)
    line2_from_pp_grad(get_vertex(p, i), get_vertex(p, j), grad, ga, gb)
    add_to_vertex(grad_p, i, ga)
    add_to_vertex(grad_p, j, gb)


@ti.func
def intersect_polygons_grad(
    p1: Polygon, p2: Polygon, grad: Polygon, flags: ti.template(), grad_p1: ti.template(), grad_p2: ti.template()
):
    """Adjoint of intersect_polygons (either algorithm).

    Args:
        p1: First forward operand.
        p2: Second forward operand.
        grad: Upstream gradient per output vertex; ``grad.nvertices`` is the
            forward output vertex count.
        flags: Edge flags returned by the forward intersection.
        grad_p1: Accumulator shaped like p1.
        grad_p2: Accumulator shaped like p2.
    """
    nx = grad.nvertices
    for i in range(nx):
        prev = flags[mod_dec(i, nx)]
        cur = flags[i]
        g = get_vertex(grad, i)
        if flag_operand(prev) == flag_operand(cur):
            if flag_operand(cur) == 1:
                add_to_vertex(grad_p1, flag_index(cur), g)
            else:
                add_to_vertex(grad_p2, flag_index(cur), g)
        else:
            e1 = flag_index(cur)
            e2 = flag_index(prev)
            if flag_operand(cur) == 0:
                e1 = flag_index(prev)
                e2 = flag_index(cur)
            grad_l1 = Line2(a=0.0, b=0.0, c=0.0)
            grad_l2 = Line2(a=0.0, b=0.0, c=0.0)
            intersect_lines_grad(_edge_line(p1, e1), _edge_line(p2, e2), g, grad_l1, grad_l2)
            _edge_line_grad(p1, e1, grad_l1, grad_p1)
            _edge_line_grad(p2, e2, grad_l2, grad_p2)
