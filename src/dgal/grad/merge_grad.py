"""Adjoints of the merge engine.

Merge flags only name copied vertices, so the hull adjoint is a plain
scatter of per-vertex gradients back to the operand each vertex came from.
"""

import taichi as ti

from dgal.algebra.merge import merge_aabox2
from dgal.core.numeric import flag_index, flag_operand, real, vec2
from dgal.geometry.primitives import AABox2, Polygon, add_to_vertex, empty_aabox2, empty_polygon, get_vertex, set_vertex
from dgal.grad.metrics_grad import aabox_dimension_grad, distance_pp_grad


@ti.func
def flagged_vertex(p1: ti.template(), p2: ti.template(), flag) -> vec2:
    """The operand vertex named by a vertex flag."""
    v = get_vertex(p2, flag_index(flag))
    if flag_operand(flag) == 1:
        v = get_vertex(p1, flag_index(flag))
    return v


@ti.func
def add_to_flagged_vertex(grad_p1: ti.template(), grad_p2: ti.template(), flag, g: vec2):
    """Accumulate g into the operand accumulator named by a vertex flag."""
    if flag_operand(flag) == 1:
        add_to_vertex(grad_p1, flag_index(flag), g)
    else:
        add_to_vertex(grad_p2, flag_index(flag), g)


@ti.func
def construct_merged_hull(p1: Polygon, p2: Polygon, nm: ti.i32, flags: ti.template()) -> Polygon:
    """Rebuild a merged hull from its vertex flags."""
    result = empty_polygon()
    for i in range(nm):
        set_vertex(result, i, flagged_vertex(p1, p2, flags[i]))
    result.nvertices = nm
    return result


@ti.func
def merge_polygons_grad(
    p1: Polygon, p2: Polygon, grad: Polygon, flags: ti.template(), grad_p1: ti.template(), grad_p2: ti.template()
):
    """Adjoint of merge_polygons.

    Args:
        p1: First forward operand.
        p2: Second forward operand.
        grad: Upstream gradient per hull vertex; ``grad.nvertices`` is the
            hull vertex count.
        flags: Vertex flags returned by the forward merge.
        grad_p1: Accumulator shaped like p1.
        grad_p2: Accumulator shaped like p2.
    """
    for i in range(grad.nvertices):
        add_to_flagged_vertex(grad_p1, grad_p2, flags[i], get_vertex(grad, i))


@ti.func
def merge_aabox2_grad(a1: AABox2, a2: AABox2, grad: AABox2, grad_a1: ti.template(), grad_a2: ti.template()):
    """Adjoint of merge_aabox2, routing each bound to the box that won."""
    if a1.min_x < a2.min_x:
        grad_a1.min_x += grad.min_x
    else:
        grad_a2.min_x += grad.min_x
    if a1.max_x > a2.max_x:
        grad_a1.max_x += grad.max_x
    else:
        grad_a2.max_x += grad.max_x
    if a1.min_y < a2.min_y:
        grad_a1.min_y += grad.min_y
    else:
        grad_a2.min_y += grad.min_y
    if a1.max_y > a2.max_y:
        grad_a1.max_y += grad.max_y
    else:
        grad_a2.max_y += grad.max_y


@ti.func
def max_distance_grad(
    p1: Polygon, p2: Polygon, grad: real, i: ti.i32, j: ti.i32, grad_p1: ti.template(), grad_p2: ti.template()
):
    """Adjoint of max_distance, given the vertex pair it returned."""
    g1 = vec2(0.0, 0.0)
    g2 = vec2(0.0, 0.0)
    distance_pp_grad(get_vertex(p1, i), get_vertex(p2, j), grad, g1, g2)
    add_to_vertex(grad_p1, i, g1)
    add_to_vertex(grad_p2, j, g2)


@ti.func
def aabox_max_distance_grad(a1: AABox2, a2: AABox2, grad: real, grad_a1: ti.template(), grad_a2: ti.template()):
    """Adjoint of aabox_max_distance."""
    grad_merged = empty_aabox2()
    aabox_dimension_grad(merge_aabox2(a1, a2), grad, grad_merged)
    merge_aabox2_grad(a1, a2, grad_merged, grad_a1, grad_a2)
