"""Convex hull merge of two shapes and maximum distance between polygons.

The polygon merge uses the same rotating-caliper sweep as the intersection
engine: both polygons start at their topmost vertex and their edges are
visited in increasing direction angle. Between two consecutive edge events
each polygon has one fixed support vertex. The hull follows whichever
support vertex lies farther along the outward sweep normal; where that
comparison changes sign a bridge connects the two boundaries and the active
operand toggles. Ties within CLIP_EPS keep the current operand, so shared
edges and identical inputs do not flip back and forth.

This replaces the four-neighbour bridge test that the intersection engine
uses (check_valid_bridge) and its starting-bridge adjustment. The support
comparison finds the same bridges in general position and has no
degenerate case, so merging never fails on collinear neighbours.

Every hull vertex is a copy of an input vertex, so merge flags only encode
(index << 1) | operand.

Example:
    >>> import taichi as ti
    >>> from dgal.algebra.merge import merge_polygons
    >>> from dgal.geometry.metrics import area
    >>> from dgal.geometry.primitives import poly2_from_xywhr
    >>> @ti.kernel
    ... def hull_area(out: ti.types.ndarray()):
    ...     for b in range(out.shape[0]):
    ...         p1 = poly2_from_xywhr(0.0, 0.0, 1.0, 1.0, 0.0)
    ...         p2 = poly2_from_xywhr(2.0, 0.0, 1.0, 1.0, 0.0)
    ...         hull, flags = merge_polygons(p1, p2)
    ...         out[b] = area(hull)  # 3.0
"""

import taichi as ti

from dgal.algebra.intersection import (
    advance_first,
    find_bottom_vertex,
    find_top_vertex,
    push_vertex,
)
from dgal.core.numeric import CLIP_EPS, PI, make_flag, mod_inc, slope, vec2
from dgal.geometry.metrics import aabox_dimension, distance_pp
from dgal.geometry.primitives import (
    AABox2,
    Polygon,
    empty_flags,
    empty_polygon,
    get_vertex,
)


@ti.func
def merge_aabox2(a1: AABox2, a2: AABox2) -> AABox2:
    """Smallest box containing both boxes."""
    return AABox2(
        min_x=ti.min(a1.min_x, a2.min_x),
        max_x=ti.max(a1.max_x, a2.max_x),
        min_y=ti.min(a1.min_y, a2.min_y),
        max_y=ti.max(a1.max_y, a2.max_y),
    )


@ti.func
def _outward_normal(angle) -> vec2:
    """Outward normal of a counter-clockwise edge with the given direction."""
    return vec2(ti.sin(angle), -ti.cos(angle))


@ti.func
def _outer_operand(v1: vec2, v2: vec2, angle, current) -> ti.i32:
    """Which support vertex is outermost for the sweep direction.

    Returns 1 for v1, 0 for v2, or ``current`` when both lie within CLIP_EPS
    of the same support line.
    """
    s = _outward_normal(angle).dot(v1 - v2)
    result = current
    if s > CLIP_EPS:
        result = 1
    elif s < -CLIP_EPS:
        result = 0
    return result


@ti.func
def _push_hull_vertex(hull: ti.template(), flags: ti.template(), p1: ti.template(), i1, p2: ti.template(), i2, operand):
    """Append the support vertex of ``operand`` unless it was just added."""
    flag = make_flag(i2, 0)
    p = get_vertex(p2, i2)
    if operand == 1:
        flag = make_flag(i1, 1)
        p = get_vertex(p1, i1)
    last = -1
    if hull.nvertices > 0:
        last = flags[hull.nvertices - 1]
    if last != flag:
        push_vertex(hull, flags, p, flag)


@ti.func
def merge_polygons(p1: Polygon, p2: Polygon):
    """Convex hull of the union of two convex polygons.

    Args:
        p1: First counter-clockwise convex polygon.
        p2: Second counter-clockwise convex polygon.

    Returns:
        Tuple of (hull, flags). Each flag is the vertex flag of the input
        vertex copied into the hull.
    """
    n1 = p1.nvertices
    n2 = p2.nvertices
    i1 = find_top_vertex(p1)
    i2 = find_top_vertex(p2)

    hull = empty_polygon()
    flags = empty_flags()

    # Start on the higher polygon, the first one on ties
    active = 1
    if p2.vertices[i2, 1] > p1.vertices[i1, 1] + CLIP_EPS:
        active = 0

    start_angle = -PI
    s1 = 0
    s2 = 0
    for _step in range(n1 + n2 + 1):
        # Direction interval [start_angle, end_angle] with supports i1, i2
        move1 = 0
        end_angle = PI
        if s1 < n1 or s2 < n2:
            move1 = advance_first(p1, i1, s1, p2, i2, s2)
            if move1 == 1:
                end_angle = slope(get_vertex(p1, i1), get_vertex(p1, mod_inc(i1, n1)))
            else:
                end_angle = slope(get_vertex(p2, i2), get_vertex(p2, mod_inc(i2, n2)))

        v1 = get_vertex(p1, i1)
        v2 = get_vertex(p2, i2)
        active = _outer_operand(v1, v2, start_angle, active)
        _push_hull_vertex(hull, flags, p1, i1, p2, i2, active)

        # A bridge inside the interval switches the outer boundary
        active = _outer_operand(v1, v2, end_angle, active)
        _push_hull_vertex(hull, flags, p1, i1, p2, i2, active)

        if s1 < n1 or s2 < n2:
            if move1 == 1:
                i1 = mod_inc(i1, n1)
                s1 += 1
            else:
                i2 = mod_inc(i2, n2)
                s2 += 1
            start_angle = end_angle

    # The sweep ends where it started
    if hull.nvertices > 1:
        if flags[hull.nvertices - 1] == flags[0]:
            hull.nvertices -= 1
    return hull, flags


@ti.func
def max_distance(p1: Polygon, p2: Polygon):
    """Largest distance between a vertex of p1 and a vertex of p2.

    An antipodal sweep: p1 starts at its topmost vertex with its edges in
    increasing angle, p2 at its bottommost vertex with its reversed edges, so
    both pointers always face opposite directions.

    Returns:
        Tuple of (distance, i, j) with i a vertex of p1 and j a vertex of p2.
    """
    n1 = p1.nvertices
    n2 = p2.nvertices
    i1 = find_top_vertex(p1)
    i2 = find_bottom_vertex(p2)

    dmax = distance_pp(get_vertex(p1, i1), get_vertex(p2, i2))
    flag1 = i1
    flag2 = i2
    s1 = 0
    s2 = 0
    for _step in range(n1 + n2):
        j1 = mod_inc(i1, n1)
        j2 = mod_inc(i2, n2)
        move1 = 0
        if s1 < n1:
            if s2 >= n2:
                move1 = 1
            elif slope(get_vertex(p1, i1), get_vertex(p1, j1)) <= slope(get_vertex(p2, j2), get_vertex(p2, i2)):
                move1 = 1
        if move1 == 1:
            i1 = j1
            s1 += 1
        else:
            i2 = j2
            s2 += 1

        d = distance_pp(get_vertex(p1, i1), get_vertex(p2, i2))
        if d > dmax:
            dmax = d
            flag1 = i1
            flag2 = i2
    return dmax, flag1, flag2


@ti.func
def aabox_max_distance(a1: AABox2, a2: AABox2):
    """Largest distance between points of two boxes."""
    return aabox_dimension(merge_aabox2(a1, a2))
