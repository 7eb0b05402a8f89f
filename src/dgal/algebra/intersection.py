"""Intersection of lines, boxes and convex polygons.

This module provides the intersection engine. Two interchangeable polygon
algorithms are available:

- Rotating caliper: an O(n1 + n2) angular sweep. At every co-podal pair a
  candidate bridge between the polygons is tested; each valid bridge hides
  one boundary crossing, found by walking both boundaries away from the
  bridge. Requires polygons in general position; a bridge whose
  neighbours are all collinear with it is reported as a degenerate pair.
- Sutherland-Hodgeman: an O(n1 * n2) clip of the first polygon by every
  edge of the second. A distance dead zone keeps vertices lying on a
  clipping line, which makes it tolerant to shared edges and coincident
  vertices. This is the default.

Both return the intersection polygon together with a provenance array. Each
flag packs (index << 1) | operand (operand 1 = first polygon) and names the
input edge that starts at that output vertex. Output vertex i is a copy of
an input vertex when flags i-1 and i belong to the same operand, and the
crossing of the two flagged edges otherwise. The adjoint engine replays
these flags instead of repeating the search.

Example:
    >>> import taichi as ti
    >>> from dgal.algebra.intersection import intersect_polygons
    >>> from dgal.geometry.metrics import area
    >>> from dgal.geometry.primitives import poly2_from_xywhr
    >>> @ti.kernel
    ... def overlap(out: ti.types.ndarray()):
    ...     for b in range(out.shape[0]):
    ...         p1 = poly2_from_xywhr(0.0, 0.0, 2.0, 2.0, 0.0)
    ...         p2 = poly2_from_xywhr(1.0, 1.0, 2.0, 2.0, 0.2)
    ...         result, flags = intersect_polygons(p1, p2)
    ...         out[b] = area(result)
"""

from enum import IntEnum

import taichi as ti

from dgal.core.numeric import (
    CLIP_EPS,
    EPS,
    INF,
    MAX_VERTICES,
    cross3,
    make_flag,
    mod_dec,
    mod_inc,
    real,
    slope,
    vec2,
)
from dgal.geometry.metrics import area, distance_lp
from dgal.geometry.primitives import (
    AABox2,
    Line2,
    Polygon,
    empty_aabox2,
    empty_flags,
    empty_polygon,
    get_vertex,
    line2_from_pp,
    set_vertex,
)


class Algorithm(IntEnum):
    """Polygon intersection algorithm, resolved at kernel compile time."""

    DEFAULT = 0
    ROTATING_CALIPER = 1
    SUTHERLAND_HODGEMAN = 2


# =============================================================================
# Lines and boxes
# =============================================================================


@ti.func
def intersect_lines(l1: Line2, l2: Line2) -> vec2:
    """Crossing point of two lines by Cramer's rule.

    Parallel lines divide by zero and yield non-finite coordinates.
    """
    w = l1.a * l2.b - l2.a * l1.b
    return vec2((l1.b * l2.c - l2.b * l1.c) / w, (l1.c * l2.a - l2.c * l1.a) / w)


@ti.func
def intersect_aabox2(a1: AABox2, a2: AABox2) -> AABox2:
    """Overlap of two boxes, or the all-zero box if they do not overlap."""
    result = empty_aabox2()
    if a1.max_x > a2.min_x and a1.min_x < a2.max_x and a1.max_y > a2.min_y and a1.min_y < a2.max_y:
        result = AABox2(
            min_x=ti.max(a1.min_x, a2.min_x),
            max_x=ti.min(a1.max_x, a2.max_x),
            min_y=ti.max(a1.min_y, a2.min_y),
            max_y=ti.min(a1.max_y, a2.max_y),
        )
    return result


# =============================================================================
# Sweep helpers (shared with the merge engine)
# =============================================================================


@ti.func
def push_vertex(poly: ti.template(), flags: ti.template(), p: vec2, flag):
    """Append a vertex and its provenance flag to an output polygon."""
    assert poly.nvertices < MAX_VERTICES, "Output polygon capacity exceeded"
    if poly.nvertices < MAX_VERTICES:
        set_vertex(poly, poly.nvertices, p)
        flags[poly.nvertices] = flag
        poly.nvertices += 1


@ti.func
def find_top_vertex(p: ti.template()) -> ti.i32:
    """Index of the topmost vertex, the rightmost one on ties.

    From this vertex the edge angles of a counter-clockwise polygon increase
    monotonically over [-pi, pi).
    """
    idx = 0
    for i in range(1, p.nvertices):
        if p.vertices[i, 1] > p.vertices[idx, 1] or (
            p.vertices[i, 1] == p.vertices[idx, 1] and p.vertices[i, 0] > p.vertices[idx, 0]
        ):
            idx = i
    return idx


@ti.func
def find_bottom_vertex(p: ti.template()) -> ti.i32:
    """Index of the bottommost vertex, the leftmost one on ties."""
    idx = 0
    for i in range(1, p.nvertices):
        if p.vertices[i, 1] < p.vertices[idx, 1] or (
            p.vertices[i, 1] == p.vertices[idx, 1] and p.vertices[i, 0] < p.vertices[idx, 0]
        ):
            idx = i
    return idx


@ti.func
def advance_first(p1: ti.template(), i1, s1, p2: ti.template(), i2, s2) -> ti.i32:
    """Decide which polygon the sweep advances next.

    Each polygon has exactly n edges to traverse. The one whose current edge
    has the smaller direction angle goes first; ties go to the first
    polygon.

    Args:
        p1: First polygon.
        i1: Current vertex of p1.
        s1: Number of p1 edges already swept.
        p2: Second polygon.
        i2: Current vertex of p2.
        s2: Number of p2 edges already swept.

    Returns:
        1 to advance p1, 0 to advance p2.
    """
    result = 0
    if s1 < p1.nvertices:
        if s2 >= p2.nvertices:
            result = 1
        else:
            angle1 = slope(get_vertex(p1, i1), get_vertex(p1, mod_inc(i1, p1.nvertices)))
            angle2 = slope(get_vertex(p2, i2), get_vertex(p2, mod_inc(i2, p2.nvertices)))
            if angle1 <= angle2:
                result = 1
    return result


@ti.func
def check_valid_bridge(p1: ti.template(), p2: ti.template(), idx1, idx2):
    """Test whether p1[idx1] -> p2[idx2] is a common tangent of both polygons.

    The four neighbours of the two bridge points must lie on one side of the
    bridge line. Tests within EPS of zero are ignored; if all four are, the
    configuration is degenerate and the bridge is not valid.

    Returns:
        Tuple of (valid, reverse, degenerate), reverse being 1 when the
        polygons lie to the right of the bridge.
    """
    a = get_vertex(p1, idx1)
    b = get_vertex(p2, idx2)
    tests = ti.Vector([
        cross3(a, b, get_vertex(p1, mod_dec(idx1, p1.nvertices))),
        cross3(a, b, get_vertex(p1, mod_inc(idx1, p1.nvertices))),
        cross3(a, b, get_vertex(p2, mod_dec(idx2, p2.nvertices))),
        cross3(a, b, get_vertex(p2, mod_inc(idx2, p2.nvertices))),
    ])

    found = 0
    reverse = 0
    valid = 1
    for k in ti.static(range(4)):
        if ti.abs(tests[k]) > EPS:
            side = 0
            if tests[k] < 0:
                side = 1
            if found == 0:
                found = 1
                reverse = side
            elif side != reverse:
                valid = 0

    degenerate = 1 - found
    if degenerate == 1:
        valid = 0
    return valid, reverse, degenerate


@ti.func
def find_crossing_under_bridge(p1: ti.template(), p2: ti.template(), idx1, idx2):
    """Locate the boundary crossing hidden under a bridge.

    p1 is walked clockwise from idx1 and p2 counter-clockwise from idx2,
    alternately, until neither walk moves. The cross product of the moving
    vertex against the other polygon's current edge plays the role of a
    distance and must grow monotonically; if it shrinks the polygons
    separate and there is no crossing.

    Returns:
        Tuple of (found, edge1, edge2) with the indices of the crossing
        edges of p1 and p2 (an edge is indexed by its starting vertex).
    """
    n1 = p1.nvertices
    n2 = p2.nvertices
    i1 = idx1
    i2 = idx2
    found = 1
    finished = 0

    for _round in range(n1 + n2):
        if finished == 0 and found == 1:
            finished = 1

            # Walk p2 forward below the p1 edge ending at i1
            a = get_vertex(p1, mod_dec(i1, n1))
            b = get_vertex(p1, i1)
            last = -INF
            walking = 1
            for _k2 in range(n2):
                if walking == 1:
                    d = cross3(a, b, get_vertex(p2, mod_inc(i2, n2)))
                    if d < last:
                        found = 0
                        walking = 0
                    elif d > -EPS:
                        walking = 0
                    else:
                        i2 = mod_inc(i2, n2)
                        last = d
                        finished = 0

            # Walk p1 backward below the p2 edge starting at i2
            if found == 1:
                c = get_vertex(p2, i2)
                e = get_vertex(p2, mod_inc(i2, n2))
                last = -INF
                walking = 1
                for _k1 in range(n1):
                    if walking == 1:
                        d = cross3(c, e, get_vertex(p1, mod_dec(i1, n1)))
                        if d < last:
                            found = 0
                            walking = 0
                        elif d > -EPS:
                            walking = 0
                        else:
                            i1 = mod_dec(i1, n1)
                            last = d
                            finished = 0

    return found, mod_dec(i1, n1), i2


# =============================================================================
# Rotating caliper
# =============================================================================


@ti.func
def intersect_rotating_caliper_checked(p1: Polygon, p2: Polygon):
    """Intersect two convex polygons with a rotating-caliper sweep.

    The sweep starts at both topmost vertices (edge angle -pi) and advances
    n1 + n2 edges in angle order. Every valid bridge yields one crossing.
    Without any crossing one polygon contains the other and the smaller one
    is returned verbatim.

    Args:
        p1: First counter-clockwise convex polygon.
        p2: Second counter-clockwise convex polygon.

    A candidate bridge whose four neighbour tests all vanish leaves the
    sweep without a defined answer. The sweep then stops and reports the
    pair as degenerate with an empty result; callers must treat this as an
    error.

    Returns:
        Tuple of (polygon, flags, degenerate) with the intersection, its
        edge flags and 1 for a degenerate pair. Disjoint polygons give an
        empty polygon.
    """
    n1 = p1.nvertices
    n2 = p2.nvertices
    i1 = find_top_vertex(p1)
    i2 = find_top_vertex(p2)

    # Crossing edges, one slot extra for the wrap-around sentinel
    xedges1 = ti.Vector.zero(ti.i32, MAX_VERTICES + 1)
    xedges2 = ti.Vector.zero(ti.i32, MAX_VERTICES + 1)
    nx = 0
    first_active = 0  # 1 if p1 forms the boundary after the first crossing
    disjoint = 0
    degenerate = 0
    s1 = 0
    s2 = 0

    for _step in range(n1 + n2):
        if disjoint == 0 and degenerate == 0:
            j1 = mod_inc(i1, n1)
            j2 = mod_inc(i2, n2)
            move1 = advance_first(p1, i1, s1, p2, i2, s2)
            c1 = i1
            c2 = i2
            if move1 == 1:
                c1 = j1
            else:
                c2 = j2

            valid, reverse, flat = check_valid_bridge(p1, p2, c1, c2)
            if flat == 1:
                degenerate = 1
            if valid == 1:
                found = 0
                e1 = 0
                e2 = 0
                if reverse == 1:
                    f, a, b = find_crossing_under_bridge(p1, p2, c1, c2)
                    found = f
                    e1 = a
                    e2 = b
                else:
                    f, b, a = find_crossing_under_bridge(p2, p1, c2, c1)
                    found = f
                    e1 = a
                    e2 = b

                if found == 0:
                    disjoint = 1
                elif nx < MAX_VERTICES:
                    if nx == 0:
                        first_active = 1 - reverse
                    xedges1[nx] = e1
                    xedges2[nx] = e2
                    nx += 1

            if move1 == 1:
                i1 = j1
                s1 += 1
            else:
                i2 = j2
                s2 += 1

    result = empty_polygon()
    flags = empty_flags()
    if disjoint == 0 and degenerate == 0:
        if nx == 0:
            # Containment: the smaller polygon is the intersection
            if area(p1) > area(p2):
                result = p2
                for i in range(n2):
                    flags[i] = make_flag(i, 0)
            else:
                result = p1
                for i in range(n1):
                    flags[i] = make_flag(i, 1)
        else:
            xedges1[nx] = xedges1[0]
            xedges2[nx] = xedges2[0]
            active = first_active
            for i in range(nx):
                l1 = line2_from_pp(get_vertex(p1, xedges1[i]), get_vertex(p1, mod_inc(xedges1[i], n1)))
                l2 = line2_from_pp(get_vertex(p2, xedges2[i]), get_vertex(p2, mod_inc(xedges2[i], n2)))
                flag = make_flag(xedges2[i], 0)
                if active == 1:
                    flag = make_flag(xedges1[i], 1)
                push_vertex(result, flags, intersect_lines(l1, l2), flag)

                # Vertices of the active polygon up to the next crossing
                if active == 1:
                    stop = xedges1[i + 1]
                    if stop < xedges1[i]:
                        stop += n1
                    for j in range(xedges1[i] + 1, stop + 1):
                        jmod = j
                        if jmod >= n1:
                            jmod -= n1
                        push_vertex(result, flags, get_vertex(p1, jmod), make_flag(jmod, 1))
                else:
                    stop = xedges2[i + 1]
                    if stop < xedges2[i]:
                        stop += n2
                    for j in range(xedges2[i] + 1, stop + 1):
                        jmod = j
                        if jmod >= n2:
                            jmod -= n2
                        push_vertex(result, flags, get_vertex(p2, jmod), make_flag(jmod, 0))
                active = 1 - active
    return result, flags, degenerate


@ti.func
def intersect_rotating_caliper(p1: Polygon, p2: Polygon):
    """Rotating-caliper intersection without the degenerate status.

    Returns:
        Tuple of (polygon, flags). A degenerate pair gives an empty polygon;
        use intersect_rotating_caliper_checked to tell it from a disjoint one.
    """
    result, flags, _degenerate = intersect_rotating_caliper_checked(p1, p2)
    return result, flags


# =============================================================================
# Sutherland-Hodgeman
# =============================================================================


@ti.func
def intersect_sutherland_hodgeman(p1: Polygon, p2: Polygon):
    """Intersect two convex polygons by clipping p1 with every edge of p2.

    Signed distances to the clipping line below CLIP_EPS count as inside, so
    vertices on the line are kept with their flag. A crossing is emitted
    only between vertices strictly on opposite sides of the dead zone. It is
    tagged with the clipping edge when the boundary leaves the half plane
    and with the clipped edge when it enters.

    Args:
        p1: Polygon to clip.
        p2: Clipping polygon.

    Returns:
        Tuple of (polygon, flags) with the intersection and its edge flags.
    """
    cut = p1
    cut_flags = empty_flags()
    for i in range(p1.nvertices):
        cut_flags[i] = make_flag(i, 1)

    n2 = p2.nvertices
    for j in range(n2):
        edge = line2_from_pp(get_vertex(p2, j), get_vertex(p2, mod_inc(j, n2)))
        n = cut.nvertices
        signs = ti.Vector.zero(real, MAX_VERTICES)
        for i in range(n):
            signs[i] = distance_lp(edge, get_vertex(cut, i))

        cur = empty_polygon()
        cur_flags = empty_flags()
        for i in range(n):
            inext = mod_inc(i, n)
            if signs[i] < CLIP_EPS:
                push_vertex(cur, cur_flags, get_vertex(cut, i), cut_flags[i])

            crossing = 0
            flag = cut_flags[i]
            if signs[i] < -CLIP_EPS and signs[inext] > CLIP_EPS:
                crossing = 1
                flag = make_flag(j, 0)
            elif signs[i] > CLIP_EPS and signs[inext] < -CLIP_EPS:
                crossing = 1
            if crossing == 1:
                clipped = line2_from_pp(get_vertex(cut, i), get_vertex(cut, inext))
                push_vertex(cur, cur_flags, intersect_lines(edge, clipped), flag)

        cut = cur
        cut_flags = cur_flags
    return cut, cut_flags


# =============================================================================
# Selection
# =============================================================================


@ti.func
def intersect_polygons(p1: Polygon, p2: Polygon):
    """Intersect two convex polygons with the default algorithm.

    Returns:
        Tuple of (polygon, flags).
    """
    return intersect_sutherland_hodgeman(p1, p2)


@ti.func
def intersect_polygons_checked(p1: Polygon, p2: Polygon, algorithm: ti.template()):
    """Intersect two convex polygons and report whether the pair is degenerate.

    Only the rotating caliper can fail this way; the Sutherland-Hodgeman
    status is always 0.

    Args:
        p1: First polygon.
        p2: Second polygon.
        algorithm: An :class:`Algorithm` value (compile-time constant).

    Returns:
        Tuple of (polygon, flags, degenerate).
    """
    result = empty_polygon()
    flags = empty_flags()
    degenerate = 0
    if ti.static(algorithm == Algorithm.ROTATING_CALIPER):
        poly, poly_flags, status = intersect_rotating_caliper_checked(p1, p2)
        result = poly
        flags = poly_flags
        degenerate = status
    else:
        poly, poly_flags = intersect_sutherland_hodgeman(p1, p2)
        result = poly
        flags = poly_flags
    return result, flags, degenerate


@ti.func
def intersect_polygons_with(p1: Polygon, p2: Polygon, algorithm: ti.template()):
    """Intersect two convex polygons with an explicitly chosen algorithm.

    Args:
        p1: First polygon.
        p2: Second polygon.
        algorithm: An :class:`Algorithm` value (compile-time constant).

    Returns:
        Tuple of (polygon, flags).
    """
    result, flags, _degenerate = intersect_polygons_checked(p1, p2, algorithm)
    return result, flags


@ti.func
def is_degenerate_pair(p1: Polygon, p2: Polygon, algorithm: ti.template()) -> ti.i32:
    """1 if the chosen algorithm cannot intersect this pair, else 0."""
    degenerate = 0
    if ti.static(algorithm == Algorithm.ROTATING_CALIPER):
        _result, _flags, status = intersect_rotating_caliper_checked(p1, p2)
        degenerate = status
    return degenerate
