"""Taichi kernels that run the geometry functions over batches.

Every kernel takes numpy-compatible ndarrays in the :class:`PolygonBatch`
layout and processes one shape (or shape pair) per iteration of its
outermost loop, which Taichi parallelises. Polygons are loaded into
registers, the pure ``@ti.func`` is called, and results are written back.

Array conventions:
    verts:  (B, MAX_VERTICES, 2) float
    counts: (B,) int32
    flags:  (B, MAX_VERTICES) uint8 provenance flags
    status: (B,) int32, 1 where the algorithm met a degenerate pair
    boxes:  (B, 4) float rows of (min_x, max_x, min_y, max_y)
"""

import taichi as ti

from dgal.algebra.intersection import intersect_polygons_checked, is_degenerate_pair
from dgal.algebra.merge import max_distance, merge_polygons
from dgal.algebra.overlap import aabox_diou, aabox_giou, aabox_iou, diou_with, giou_with, iou_with
from dgal.core.numeric import MAX_VERTICES, real, vec2
from dgal.geometry.metrics import area, center, centroid, dimension, distance_polygon_point
from dgal.geometry.primitives import (
    AABox2,
    empty_aabox2,
    empty_flags,
    empty_polygon,
    poly2_from_xywhr,
    set_vertex,
)
from dgal.grad.intersection_grad import intersect_polygons_grad
from dgal.grad.merge_grad import merge_polygons_grad
from dgal.grad.metrics_grad import area_grad, centroid_grad, dimension_grad
from dgal.grad.overlap_grad import (
    aabox_diou_grad,
    aabox_giou_grad,
    aabox_iou_grad,
    diou_grad,
    giou_grad,
    iou_grad,
)
from dgal.grad.primitives_grad import poly2_from_xywhr_grad

# Box metric selectors for box_metric_kernel / box_metric_grad_kernel
METRIC_IOU = 0
METRIC_GIOU = 1
METRIC_DIOU = 2


# =============================================================================
# Load / store helpers
# =============================================================================


@ti.func
def load_polygon(verts: ti.template(), counts: ti.template(), b):
    result = empty_polygon()
    n = counts[b]
    for i in range(n):
        set_vertex(result, i, vec2(verts[b, i, 0], verts[b, i, 1]))
    result.nvertices = n
    return result


@ti.func
def load_grad_polygon(grads: ti.template(), n, b):
    """Per-vertex upstream gradients with ``n`` meaningful rows."""
    result = empty_polygon()
    for i in range(n):
        set_vertex(result, i, vec2(grads[b, i, 0], grads[b, i, 1]))
    result.nvertices = n
    return result


@ti.func
def store_polygon(poly: ti.template(), verts: ti.template(), counts: ti.template(), b):
    for i in range(MAX_VERTICES):
        verts[b, i, 0] = poly.vertices[i, 0]
        verts[b, i, 1] = poly.vertices[i, 1]
    counts[b] = poly.nvertices


@ti.func
def store_grad(poly: ti.template(), out: ti.template(), b):
    for i in range(MAX_VERTICES):
        out[b, i, 0] = poly.vertices[i, 0]
        out[b, i, 1] = poly.vertices[i, 1]


@ti.func
def load_flags(flags_in: ti.template(), b):
    flags = empty_flags()
    for i in range(MAX_VERTICES):
        flags[i] = ti.cast(flags_in[b, i], ti.i32)
    return flags


@ti.func
def store_flags(flags: ti.template(), flags_out: ti.template(), b):
    for i in range(MAX_VERTICES):
        flags_out[b, i] = ti.cast(flags[i], ti.u8)


@ti.func
def load_box(boxes: ti.template(), b) -> AABox2:
    return AABox2(min_x=boxes[b, 0], max_x=boxes[b, 1], min_y=boxes[b, 2], max_y=boxes[b, 3])


@ti.func
def store_box(box: ti.template(), out: ti.template(), b):
    out[b, 0] = box.min_x
    out[b, 1] = box.max_x
    out[b, 2] = box.min_y
    out[b, 3] = box.max_y


# =============================================================================
# Single polygon metrics
# =============================================================================


@ti.kernel
def area_kernel(verts: ti.types.ndarray(), counts: ti.types.ndarray(), out: ti.types.ndarray()):
    for b in range(verts.shape[0]):
        out[b] = area(load_polygon(verts, counts, b))


@ti.kernel
def dimension_kernel(
    verts: ti.types.ndarray(), counts: ti.types.ndarray(), out: ti.types.ndarray(), indices: ti.types.ndarray()
):
    for b in range(verts.shape[0]):
        d, i, j = dimension(load_polygon(verts, counts, b))
        out[b] = d
        indices[b, 0] = i
        indices[b, 1] = j


@ti.kernel
def center_kernel(verts: ti.types.ndarray(), counts: ti.types.ndarray(), out: ti.types.ndarray()):
    for b in range(verts.shape[0]):
        c = center(load_polygon(verts, counts, b))
        out[b, 0] = c[0]
        out[b, 1] = c[1]


@ti.kernel
def centroid_kernel(verts: ti.types.ndarray(), counts: ti.types.ndarray(), out: ti.types.ndarray()):
    for b in range(verts.shape[0]):
        c = centroid(load_polygon(verts, counts, b))
        out[b, 0] = c[0]
        out[b, 1] = c[1]


@ti.kernel
def distance_kernel(
    verts: ti.types.ndarray(),
    counts: ti.types.ndarray(),
    points: ti.types.ndarray(),
    out: ti.types.ndarray(),
    edges: ti.types.ndarray(),
):
    for b in range(verts.shape[0]):
        d, edge = distance_polygon_point(load_polygon(verts, counts, b), vec2(points[b, 0], points[b, 1]))
        out[b] = d
        edges[b] = edge


@ti.kernel
def xywhr_kernel(params: ti.types.ndarray(), verts: ti.types.ndarray(), counts: ti.types.ndarray()):
    for b in range(params.shape[0]):
        poly = poly2_from_xywhr(params[b, 0], params[b, 1], params[b, 2], params[b, 3], params[b, 4])
        store_polygon(poly, verts, counts, b)


# =============================================================================
# Pairwise operations
# =============================================================================


@ti.kernel
def intersect_kernel(
    verts1: ti.types.ndarray(),
    counts1: ti.types.ndarray(),
    verts2: ti.types.ndarray(),
    counts2: ti.types.ndarray(),
    out_verts: ti.types.ndarray(),
    out_counts: ti.types.ndarray(),
    out_flags: ti.types.ndarray(),
    status: ti.types.ndarray(),
    algorithm: ti.template(),
):
    for b in range(verts1.shape[0]):
        p1 = load_polygon(verts1, counts1, b)
        p2 = load_polygon(verts2, counts2, b)
        poly, flags, degenerate = intersect_polygons_checked(p1, p2, algorithm)
        status[b] = degenerate
        store_polygon(poly, out_verts, out_counts, b)
        store_flags(flags, out_flags, b)


@ti.kernel
def merge_kernel(
    verts1: ti.types.ndarray(),
    counts1: ti.types.ndarray(),
    verts2: ti.types.ndarray(),
    counts2: ti.types.ndarray(),
    out_verts: ti.types.ndarray(),
    out_counts: ti.types.ndarray(),
    out_flags: ti.types.ndarray(),
):
    for b in range(verts1.shape[0]):
        p1 = load_polygon(verts1, counts1, b)
        p2 = load_polygon(verts2, counts2, b)
        poly, flags = merge_polygons(p1, p2)
        store_polygon(poly, out_verts, out_counts, b)
        store_flags(flags, out_flags, b)


@ti.kernel
def max_distance_kernel(
    verts1: ti.types.ndarray(),
    counts1: ti.types.ndarray(),
    verts2: ti.types.ndarray(),
    counts2: ti.types.ndarray(),
    out: ti.types.ndarray(),
    indices: ti.types.ndarray(),
):
    for b in range(verts1.shape[0]):
        d, i, j = max_distance(load_polygon(verts1, counts1, b), load_polygon(verts2, counts2, b))
        out[b] = d
        indices[b, 0] = i
        indices[b, 1] = j


@ti.kernel
def iou_kernel(
    verts1: ti.types.ndarray(),
    counts1: ti.types.ndarray(),
    verts2: ti.types.ndarray(),
    counts2: ti.types.ndarray(),
    values: ti.types.ndarray(),
    nx: ti.types.ndarray(),
    xflags: ti.types.ndarray(),
    status: ti.types.ndarray(),
    algorithm: ti.template(),
):
    for b in range(verts1.shape[0]):
        p1 = load_polygon(verts1, counts1, b)
        p2 = load_polygon(verts2, counts2, b)
        status[b] = is_degenerate_pair(p1, p2, algorithm)
        value, n, flags = iou_with(p1, p2, algorithm)
        values[b] = value
        nx[b] = n
        store_flags(flags, xflags, b)


@ti.kernel
def giou_kernel(
    verts1: ti.types.ndarray(),
    counts1: ti.types.ndarray(),
    verts2: ti.types.ndarray(),
    counts2: ti.types.ndarray(),
    values: ti.types.ndarray(),
    nx: ti.types.ndarray(),
    xflags: ti.types.ndarray(),
    nm: ti.types.ndarray(),
    mflags: ti.types.ndarray(),
    status: ti.types.ndarray(),
    algorithm: ti.template(),
):
    for b in range(verts1.shape[0]):
        p1 = load_polygon(verts1, counts1, b)
        p2 = load_polygon(verts2, counts2, b)
        status[b] = is_degenerate_pair(p1, p2, algorithm)
        value, n, flags, m, hull_flags = giou_with(p1, p2, algorithm)
        values[b] = value
        nx[b] = n
        nm[b] = m
        store_flags(flags, xflags, b)
        store_flags(hull_flags, mflags, b)


@ti.kernel
def diou_kernel(
    verts1: ti.types.ndarray(),
    counts1: ti.types.ndarray(),
    verts2: ti.types.ndarray(),
    counts2: ti.types.ndarray(),
    values: ti.types.ndarray(),
    nx: ti.types.ndarray(),
    xflags: ti.types.ndarray(),
    dflags: ti.types.ndarray(),
    status: ti.types.ndarray(),
    algorithm: ti.template(),
):
    for b in range(verts1.shape[0]):
        p1 = load_polygon(verts1, counts1, b)
        p2 = load_polygon(verts2, counts2, b)
        status[b] = is_degenerate_pair(p1, p2, algorithm)
        value, n, flags, dflag1, dflag2 = diou_with(p1, p2, algorithm)
        values[b] = value
        nx[b] = n
        store_flags(flags, xflags, b)
        dflags[b, 0] = ti.cast(dflag1, ti.u8)
        dflags[b, 1] = ti.cast(dflag2, ti.u8)


@ti.kernel
def box_metric_kernel(
    boxes1: ti.types.ndarray(), boxes2: ti.types.ndarray(), out: ti.types.ndarray(), metric: ti.template()
):
    for b in range(boxes1.shape[0]):
        a1 = load_box(boxes1, b)
        a2 = load_box(boxes2, b)
        if ti.static(metric == METRIC_IOU):
            out[b] = aabox_iou(a1, a2)
        elif ti.static(metric == METRIC_GIOU):
            out[b] = aabox_giou(a1, a2)
        else:
            out[b] = aabox_diou(a1, a2)


# =============================================================================
# Adjoints
# =============================================================================


@ti.kernel
def area_grad_kernel(
    verts: ti.types.ndarray(), counts: ti.types.ndarray(), grad: ti.types.ndarray(), out: ti.types.ndarray()
):
    for b in range(verts.shape[0]):
        p = load_polygon(verts, counts, b)
        grad_p = empty_polygon()
        area_grad(p, grad[b], grad_p)
        store_grad(grad_p, out, b)


@ti.kernel
def dimension_grad_kernel(
    verts: ti.types.ndarray(),
    counts: ti.types.ndarray(),
    grad: ti.types.ndarray(),
    indices: ti.types.ndarray(),
    out: ti.types.ndarray(),
):
    for b in range(verts.shape[0]):
        p = load_polygon(verts, counts, b)
        grad_p = empty_polygon()
        dimension_grad(p, grad[b], indices[b, 0], indices[b, 1], grad_p)
        store_grad(grad_p, out, b)


@ti.kernel
def centroid_grad_kernel(
    verts: ti.types.ndarray(), counts: ti.types.ndarray(), grad: ti.types.ndarray(), out: ti.types.ndarray()
):
    for b in range(verts.shape[0]):
        p = load_polygon(verts, counts, b)
        grad_p = empty_polygon()
        centroid_grad(p, vec2(grad[b, 0], grad[b, 1]), grad_p)
        store_grad(grad_p, out, b)


@ti.kernel
def xywhr_grad_kernel(params: ti.types.ndarray(), grad: ti.types.ndarray(), out: ti.types.ndarray()):
    for b in range(params.shape[0]):
        grad_poly = load_grad_polygon(grad, 4, b)
        grad_params = ti.Vector.zero(real, 5)
        poly2_from_xywhr_grad(params[b, 0], params[b, 1], params[b, 2], params[b, 3], params[b, 4], grad_poly, grad_params)
        for k in ti.static(range(5)):
            out[b, k] = grad_params[k]


@ti.kernel
def intersect_grad_kernel(
    verts1: ti.types.ndarray(),
    counts1: ti.types.ndarray(),
    verts2: ti.types.ndarray(),
    counts2: ti.types.ndarray(),
    grad: ti.types.ndarray(),
    nx: ti.types.ndarray(),
    xflags: ti.types.ndarray(),
    out1: ti.types.ndarray(),
    out2: ti.types.ndarray(),
):
    for b in range(verts1.shape[0]):
        p1 = load_polygon(verts1, counts1, b)
        p2 = load_polygon(verts2, counts2, b)
        flags = load_flags(xflags, b)
        grad_p1 = empty_polygon()
        grad_p2 = empty_polygon()
        intersect_polygons_grad(p1, p2, load_grad_polygon(grad, nx[b], b), flags, grad_p1, grad_p2)
        store_grad(grad_p1, out1, b)
        store_grad(grad_p2, out2, b)


@ti.kernel
def merge_grad_kernel(
    verts1: ti.types.ndarray(),
    counts1: ti.types.ndarray(),
    verts2: ti.types.ndarray(),
    counts2: ti.types.ndarray(),
    grad: ti.types.ndarray(),
    nm: ti.types.ndarray(),
    mflags: ti.types.ndarray(),
    out1: ti.types.ndarray(),
    out2: ti.types.ndarray(),
):
    for b in range(verts1.shape[0]):
        p1 = load_polygon(verts1, counts1, b)
        p2 = load_polygon(verts2, counts2, b)
        flags = load_flags(mflags, b)
        grad_p1 = empty_polygon()
        grad_p2 = empty_polygon()
        merge_polygons_grad(p1, p2, load_grad_polygon(grad, nm[b], b), flags, grad_p1, grad_p2)
        store_grad(grad_p1, out1, b)
        store_grad(grad_p2, out2, b)


@ti.kernel
def iou_grad_kernel(
    verts1: ti.types.ndarray(),
    counts1: ti.types.ndarray(),
    verts2: ti.types.ndarray(),
    counts2: ti.types.ndarray(),
    grad: ti.types.ndarray(),
    nx: ti.types.ndarray(),
    xflags: ti.types.ndarray(),
    out1: ti.types.ndarray(),
    out2: ti.types.ndarray(),
):
    for b in range(verts1.shape[0]):
        p1 = load_polygon(verts1, counts1, b)
        p2 = load_polygon(verts2, counts2, b)
        flags = load_flags(xflags, b)
        grad_p1 = empty_polygon()
        grad_p2 = empty_polygon()
        iou_grad(p1, p2, grad[b], nx[b], flags, grad_p1, grad_p2)
        store_grad(grad_p1, out1, b)
        store_grad(grad_p2, out2, b)


@ti.kernel
def giou_grad_kernel(
    verts1: ti.types.ndarray(),
    counts1: ti.types.ndarray(),
    verts2: ti.types.ndarray(),
    counts2: ti.types.ndarray(),
    grad: ti.types.ndarray(),
    nx: ti.types.ndarray(),
    xflags: ti.types.ndarray(),
    nm: ti.types.ndarray(),
    mflags: ti.types.ndarray(),
    out1: ti.types.ndarray(),
    out2: ti.types.ndarray(),
):
    for b in range(verts1.shape[0]):
        p1 = load_polygon(verts1, counts1, b)
        p2 = load_polygon(verts2, counts2, b)
        flags = load_flags(xflags, b)
        hull_flags = load_flags(mflags, b)
        grad_p1 = empty_polygon()
        grad_p2 = empty_polygon()
        giou_grad(p1, p2, grad[b], nx[b], flags, nm[b], hull_flags, grad_p1, grad_p2)
        store_grad(grad_p1, out1, b)
        store_grad(grad_p2, out2, b)


@ti.kernel
def diou_grad_kernel(
    verts1: ti.types.ndarray(),
    counts1: ti.types.ndarray(),
    verts2: ti.types.ndarray(),
    counts2: ti.types.ndarray(),
    grad: ti.types.ndarray(),
    nx: ti.types.ndarray(),
    xflags: ti.types.ndarray(),
    dflags: ti.types.ndarray(),
    out1: ti.types.ndarray(),
    out2: ti.types.ndarray(),
):
    for b in range(verts1.shape[0]):
        p1 = load_polygon(verts1, counts1, b)
        p2 = load_polygon(verts2, counts2, b)
        flags = load_flags(xflags, b)
        grad_p1 = empty_polygon()
        grad_p2 = empty_polygon()
        diou_grad(
            p1,
            p2,
            grad[b],
            nx[b],
            flags,
            ti.cast(dflags[b, 0], ti.i32),
            ti.cast(dflags[b, 1], ti.i32),
            grad_p1,
            grad_p2,
        )
        store_grad(grad_p1, out1, b)
        store_grad(grad_p2, out2, b)


@ti.kernel
def box_metric_grad_kernel(
    boxes1: ti.types.ndarray(),
    boxes2: ti.types.ndarray(),
    grad: ti.types.ndarray(),
    out1: ti.types.ndarray(),
    out2: ti.types.ndarray(),
    metric: ti.template(),
):
    for b in range(boxes1.shape[0]):
        a1 = load_box(boxes1, b)
        a2 = load_box(boxes2, b)
        grad_a1 = empty_aabox2()
        grad_a2 = empty_aabox2()
        if ti.static(metric == METRIC_IOU):
            aabox_iou_grad(a1, a2, grad[b], grad_a1, grad_a2)
        elif ti.static(metric == METRIC_GIOU):
            aabox_giou_grad(a1, a2, grad[b], grad_a1, grad_a2)
        else:
            aabox_diou_grad(a1, a2, grad[b], grad_a1, grad_a2)
        store_box(grad_a1, out1, b)
        store_box(grad_a2, out2, b)
