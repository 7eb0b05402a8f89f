"""Primitive 2D shapes and their constructors.

This module provides the value types every geometric kernel operates on,
all declared as Taichi dataclasses so they can live in registers inside
kernels:

- vec2: A point (x, y)
- Line2: Implicit line a*x + b*y + c = 0, oriented by the two points it was
  built from (the left side has negative signed distance)
- Segment2: Ordered segment (x1, y1) -> (x2, y2)
- AABox2: Axis-aligned box (min_x, max_x, min_y, max_y)
- Polygon: Fixed-capacity convex polygon with counter-clockwise vertices

A Polygon always reserves MAX_VERTICES rows; only the first ``nvertices`` are
meaningful. Edge i connects vertex i to vertex (i + 1) mod n.

Example:
    >>> import taichi as ti
    >>> from dgal.geometry.primitives import poly2_from_xywhr
    >>> @ti.kernel
    ... def corners() -> ti.i32:
    ...     box = poly2_from_xywhr(0.0, 0.0, 2.0, 1.0, 0.3)
    ...     return box.nvertices  # 4
"""

import taichi as ti

from dgal.core.numeric import EPS, MAX_VERTICES, cross3, mod_inc, real, vec2

# Vertex storage of a polygon: one row per vertex
PolygonVertices = ti.types.matrix(MAX_VERTICES, 2, real)

# One provenance flag per output vertex of intersection/merge
FlagArray = ti.types.vector(MAX_VERTICES, ti.i32)


@ti.dataclass
class Line2:
    """A directed line in implicit form a*x + b*y + c = 0.

    Attributes:
        a: Coefficient of x.
        b: Coefficient of y.
        c: Constant term.
    """

    a: real
    b: real
    c: real


@ti.dataclass
class Segment2:
    """A directed segment from (x1, y1) to (x2, y2).

    Attributes:
        x1: Start point x.
        y1: Start point y.
        x2: End point x.
        y2: End point y.
    """

    x1: real
    y1: real
    x2: real
    y2: real


@ti.dataclass
class AABox2:
    """An axis-aligned box.

    An all-zero box is the sentinel for an empty intersection.

    Attributes:
        min_x: Left bound.
        max_x: Right bound (>= min_x).
        min_y: Bottom bound.
        max_y: Top bound (>= min_y).
    """

    min_x: real
    max_x: real
    min_y: real
    max_y: real


@ti.dataclass
class Polygon:
    """A convex polygon with counter-clockwise vertices.

    Attributes:
        vertices: (MAX_VERTICES, 2) matrix, row i holds vertex i.
        nvertices: Number of valid rows.
    """

    vertices: PolygonVertices
    nvertices: ti.i32


# =============================================================================
# Vertex access
# =============================================================================


@ti.func
def get_vertex(poly: ti.template(), i) -> vec2:
    """Read vertex i of a polygon."""
    return vec2(poly.vertices[i, 0], poly.vertices[i, 1])


@ti.func
def set_vertex(poly: ti.template(), i, p: vec2):
    """Overwrite vertex i of a polygon in place."""
    poly.vertices[i, 0] = p[0]
    poly.vertices[i, 1] = p[1]


@ti.func
def add_to_vertex(poly: ti.template(), i, g: vec2):
    """Accumulate g into vertex i of a polygon in place.

    Used by the adjoint functions, whose accumulators are polygons.
    """
    poly.vertices[i, 0] += g[0]
    poly.vertices[i, 1] += g[1]


@ti.func
def empty_polygon() -> Polygon:
    """A polygon with no vertices."""
    return Polygon(vertices=ti.Matrix.zero(real, MAX_VERTICES, 2), nvertices=0)


@ti.func
def empty_aabox2() -> AABox2:
    """The all-zero box."""
    return AABox2(min_x=0.0, max_x=0.0, min_y=0.0, max_y=0.0)


@ti.func
def empty_flags() -> FlagArray:
    """A zeroed flag array."""
    return ti.Vector.zero(ti.i32, MAX_VERTICES)


# =============================================================================
# Constructors
# =============================================================================


@ti.func
def line2_from_xyxy(x1: real, y1: real, x2: real, y2: real) -> Line2:
    """Line through (x1, y1) and (x2, y2), directed from the first point.

    Points left of the direction get a negative signed distance.
    """
    return Line2(a=y2 - y1, b=x1 - x2, c=x2 * y1 - x1 * y2)


@ti.func
def line2_from_pp(p1: vec2, p2: vec2) -> Line2:
    """Line through two points, directed from p1 to p2."""
    return line2_from_xyxy(p1[0], p1[1], p2[0], p2[1])


@ti.func
def segment2_from_pp(p1: vec2, p2: vec2) -> Segment2:
    """Segment from p1 to p2."""
    return Segment2(x1=p1[0], y1=p1[1], x2=p2[0], y2=p2[1])


@ti.func
def line2_from_segment2(s: Segment2) -> Line2:
    """Supporting line of a segment, with the same direction."""
    return line2_from_xyxy(s.x1, s.y1, s.x2, s.y2)


@ti.func
def poly2_from_aabox2(a: AABox2) -> Polygon:
    """Four-vertex counter-clockwise polygon of a box.

    Vertices start at (min_x, min_y) and go counter-clockwise.
    """
    result = empty_polygon()
    set_vertex(result, 0, vec2(a.min_x, a.min_y))
    set_vertex(result, 1, vec2(a.max_x, a.min_y))
    set_vertex(result, 2, vec2(a.max_x, a.max_y))
    set_vertex(result, 3, vec2(a.min_x, a.max_y))
    result.nvertices = 4
    return result


@ti.func
def aabox2_from_poly2(p: Polygon) -> AABox2:
    """Bounding box of a polygon."""
    result = AABox2(
        min_x=p.vertices[0, 0],
        max_x=p.vertices[0, 0],
        min_y=p.vertices[0, 1],
        max_y=p.vertices[0, 1],
    )
    for i in range(1, p.nvertices):
        result.min_x = ti.min(result.min_x, p.vertices[i, 0])
        result.max_x = ti.max(result.max_x, p.vertices[i, 0])
        result.min_y = ti.min(result.min_y, p.vertices[i, 1])
        result.max_y = ti.max(result.max_y, p.vertices[i, 1])
    return result


@ti.func
def poly2_from_xywhr(x: real, y: real, w: real, h: real, r: real) -> Polygon:
    """Rotated rectangle from center, size and rotation.

    Args:
        x: Center x.
        y: Center y.
        w: Width (along the rotated x axis).
        h: Height (along the rotated y axis).
        r: Counter-clockwise rotation in radians.

    Returns:
        Four-vertex counter-clockwise polygon. Vertex 0 is the corner at
        (-w/2, -h/2) in the box frame.
    """
    dxsin = w * ti.sin(r) / 2
    dxcos = w * ti.cos(r) / 2
    dysin = h * ti.sin(r) / 2
    dycos = h * ti.cos(r) / 2

    result = empty_polygon()
    set_vertex(result, 0, vec2(x - dxcos + dysin, y - dxsin - dycos))
    set_vertex(result, 1, vec2(x + dxcos + dysin, y + dxsin - dycos))
    set_vertex(result, 2, vec2(x + dxcos - dysin, y + dxsin + dycos))
    set_vertex(result, 3, vec2(x - dxcos - dysin, y - dxsin + dycos))
    result.nvertices = 4
    return result


# =============================================================================
# Predicates
# =============================================================================


@ti.func
def aabox2_contains(a: AABox2, p: vec2) -> ti.i32:
    """1 if the point lies inside or on the box, else 0."""
    result = 0
    if a.min_x <= p[0] and p[0] <= a.max_x and a.min_y <= p[1] and p[1] <= a.max_y:
        result = 1
    return result


@ti.func
def polygon_contains(poly: Polygon, p: vec2) -> ti.i32:
    """1 if the point lies inside or on a convex polygon, else 0.

    A point is inside when it is not strictly right of any edge.
    """
    inside = 1
    if poly.nvertices < 3:
        inside = 0
    for i in range(poly.nvertices):
        j = mod_inc(i, poly.nvertices)
        if cross3(get_vertex(poly, i), get_vertex(poly, j), p) < -EPS:
            inside = 0
    return inside
