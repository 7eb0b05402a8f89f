"""Scalar metrics of primitive shapes.

This module provides areas, diameters, centers and signed distances. All of
them are Taichi functions (@ti.func) meant to be called inside kernels.

Sign conventions:
- distance_lp / distance_sp: negative when the point is left of the line or
  segment direction.
- distance_polygon_point: positive inside a counter-clockwise polygon.

Functions whose adjoint needs to know which vertices realised the result
(dimension, distance_polygon_point) also return those indices.

Example:
    >>> import taichi as ti
    >>> from dgal.geometry.metrics import area
    >>> from dgal.geometry.primitives import poly2_from_xywhr
    >>> @ti.kernel
    ... def box_area() -> ti.f32:
    ...     return area(poly2_from_xywhr(0.0, 0.0, 2.0, 3.0, 0.5))  # 6.0
"""

import taichi as ti

from dgal.core.numeric import cross3, mod_inc, real, vec2
from dgal.geometry.primitives import (
    AABox2,
    Line2,
    Polygon,
    Segment2,
    aabox2_from_poly2,
    get_vertex,
    line2_from_segment2,
    segment2_from_pp,
)

# Which part of a segment is nearest to a point, see segment_region
REGION_INTERIOR = 0
REGION_START = 1
REGION_END = 2


# =============================================================================
# Areas
# =============================================================================


@ti.func
def area(p: Polygon) -> real:
    """Shoelace area of a polygon.

    Positive for counter-clockwise winding. Polygons with fewer than three
    vertices have zero area.
    """
    result = 0.0
    n = p.nvertices
    if n > 2:
        total = p.vertices[n - 1, 0] * p.vertices[0, 1] - p.vertices[n - 1, 1] * p.vertices[0, 0]
        for i in range(1, n):
            total += p.vertices[i - 1, 0] * p.vertices[i, 1] - p.vertices[i, 0] * p.vertices[i - 1, 1]
        result = total / 2
    return result


@ti.func
def aabox_area(a: AABox2) -> real:
    """Area of a box."""
    return (a.max_x - a.min_x) * (a.max_y - a.min_y)


# =============================================================================
# Distances
# =============================================================================


@ti.func
def distance_pp(p1: vec2, p2: vec2) -> real:
    """Euclidean distance between two points."""
    return (p1 - p2).norm()


@ti.func
def distance_lp(l: Line2, p: vec2) -> real:
    """Signed distance from a point to a line.

    Negative when the point is left of the line direction.
    """
    return (l.a * p[0] + l.b * p[1] + l.c) / ti.sqrt(l.a * l.a + l.b * l.b)


@ti.func
def segment_region(s: Segment2, p: vec2) -> ti.i32:
    """Locate the projection of p relative to a segment.

    Returns:
        REGION_START if the projection falls before (x1, y1), REGION_END if
        it falls past (x2, y2), REGION_INTERIOR otherwise.
    """
    d = vec2(s.x2 - s.x1, s.y2 - s.y1)
    t = (p - vec2(s.x1, s.y1)).dot(d)
    region = REGION_INTERIOR
    if t < 0:
        region = REGION_START
    elif t > d.dot(d):
        region = REGION_END
    return region


@ti.func
def distance_sp(s: Segment2, p: vec2) -> real:
    """Signed distance from a point to a segment.

    Equal to the line distance when the point projects inside the segment.
    Otherwise it is the distance to the nearer endpoint, carrying the sign
    of the side of the supporting line (points on the line count as left).

    Args:
        s: The directed segment.
        p: The query point.

    Returns:
        Signed distance, negative left of the segment direction.
    """
    l = line2_from_segment2(s)
    side = l.a * p[0] + l.b * p[1] + l.c
    region = segment_region(s, p)

    result = 0.0
    if region == REGION_INTERIOR:
        result = distance_lp(l, p)
    else:
        endpoint = vec2(s.x1, s.y1)
        if region == REGION_END:
            endpoint = vec2(s.x2, s.y2)
        result = distance_pp(p, endpoint)
        if side <= 0:
            result = -result
    return result


@ti.func
def distance_polygon_point(poly: Polygon, p: vec2):
    """Signed distance from a point to a polygon boundary.

    The minimum-magnitude segment distance over all edges, negated so that
    interior points are positive.

    Args:
        poly: Counter-clockwise convex polygon.
        p: The query point.

    Returns:
        Tuple of (distance, edge) where edge is the index of the starting
        vertex of the nearest edge.
    """
    n = poly.nvertices
    edge = n - 1
    dmin = -distance_sp(segment2_from_pp(get_vertex(poly, n - 1), get_vertex(poly, 0)), p)
    for i in range(1, n):
        d = -distance_sp(segment2_from_pp(get_vertex(poly, i - 1), get_vertex(poly, i)), p)
        if ti.abs(d) < ti.abs(dmin):
            dmin = d
            edge = i - 1
    return dmin, edge


# =============================================================================
# Diameter
# =============================================================================


@ti.func
def dimension(p: Polygon):
    """Diameter of a polygon by rotating calipers.

    For every edge u -> u+1 the antipodal pointer v advances while the next
    vertex is at least as far from the edge line, then both edge endpoints
    are tested against v. Runs in O(n).

    Args:
        p: Counter-clockwise convex polygon.

    Returns:
        Tuple of (diameter, i, j) with i, j the vertex indices realising it.
        A polygon with fewer than two vertices has diameter 0.
    """
    n = p.nvertices
    dmax = 0.0
    flag1 = 0
    flag2 = 0
    if n == 2:
        dmax = distance_pp(get_vertex(p, 0), get_vertex(p, 1))
        flag2 = 1
    elif n > 2:
        v = 1
        vnext = 2
        for u in range(n):
            unext = mod_inc(u, n)
            pu = get_vertex(p, u)
            pun = get_vertex(p, unext)

            # Advance to the vertex farthest from the current edge
            advancing = 1
            for _ in range(n):
                if advancing == 1:
                    if cross3(pu, pun, get_vertex(p, v)) <= cross3(pu, pun, get_vertex(p, vnext)):
                        v = vnext
                        vnext = mod_inc(v, n)
                    else:
                        advancing = 0

            pv = get_vertex(p, v)
            d = distance_pp(pu, pv)
            if d > dmax:
                dmax = d
                flag1 = u
                flag2 = v
            d = distance_pp(pun, pv)
            if d > dmax:
                dmax = d
                flag1 = unext
                flag2 = v
    return dmax, flag1, flag2


@ti.func
def aabox_dimension(a: AABox2) -> real:
    """Diagonal length of a box."""
    w = a.max_x - a.min_x
    h = a.max_y - a.min_y
    return ti.sqrt(w * w + h * h)


# =============================================================================
# Centers
# =============================================================================


@ti.func
def aabox_center(a: AABox2) -> vec2:
    """Center of a box."""
    return vec2((a.max_x + a.min_x) / 2, (a.max_y + a.min_y) / 2)


@ti.func
def aabox_centroid(a: AABox2) -> vec2:
    """Centroid of a box, which is its center."""
    return aabox_center(a)


@ti.func
def center(p: Polygon) -> vec2:
    """Center of the bounding box of a polygon."""
    return aabox_center(aabox2_from_poly2(p))


@ti.func
def centroid(p: Polygon) -> vec2:
    """Average of the polygon vertices (not the area centroid)."""
    total = vec2(0.0, 0.0)
    for i in range(p.nvertices):
        total += get_vertex(p, i)
    return total / p.nvertices
