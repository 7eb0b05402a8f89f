"""Unit tests for the hand-written adjoints.

Every analytic gradient is compared against a central finite difference of
the forward function in double precision. Inputs are rotated rectangles and
random convex polygons in general position, so the combinatorial structure
(intersection vertices, hull vertices, diameter ends) is stable under the
perturbation.

Tests cover:
- Area, diameter, centroid and point distance gradients
- Rotated rectangle parameter gradients
- Intersection and merge vertex gradients for both algorithms
- IoU, GIoU and DIoU gradients for polygons and boxes
- Composite gradients on convex polygons with 3 to 7 vertices
- Accumulation into caller-provided gradients
"""

import numpy as np
import pytest
import taichi as ti

STEP = 1e-6
TOLERANCE = 1e-6


def rotated_pairs(rng, size, spread=0.3):
    """Overlapping rotated rectangles in general position."""
    def draw():
        return np.column_stack(
            [
                rng.uniform(-spread, spread, size),
                rng.uniform(-spread, spread, size),
                rng.uniform(1.0, 2.0, size),
                rng.uniform(1.0, 2.0, size),
                rng.uniform(-np.pi, np.pi, size),
            ]
        )

    return draw(), draw()


def convex_pairs(rng, size, spread=0.3):
    """Convex polygons with 3 to 7 vertices, jittered around random circles."""
    from dgal.batch.polygons import PolygonBatch

    def draw():
        polygons = []
        for _ in range(size):
            n = int(rng.integers(3, 8))
            angles = rng.uniform(0.0, 2 * np.pi) + 2 * np.pi * (np.arange(n) + rng.uniform(0.0, 0.6, n)) / n
            radius = rng.uniform(0.8, 1.5)
            cx, cy = rng.uniform(-spread, spread, 2)
            polygons.append(np.column_stack([cx + radius * np.cos(angles), cy + radius * np.sin(angles)]))
        return PolygonBatch.from_list(polygons)

    return draw(), draw()


def numeric_vertex_grad(func, batch, rows=4):
    """Central differences of a batched scalar function over vertex coordinates.

    Pairs in a batch are independent, so one coordinate is perturbed in all
    of them at once.
    """
    from dgal.batch.polygons import PolygonBatch

    grad = np.zeros_like(batch.vertices)
    for i in range(rows):
        for k in range(2):
            plus = batch.vertices.copy()
            minus = batch.vertices.copy()
            plus[:, i, k] += STEP
            minus[:, i, k] -= STEP
            f_plus = func(PolygonBatch(vertices=plus, counts=batch.counts))
            f_minus = func(PolygonBatch(vertices=minus, counts=batch.counts))
            grad[:, i, k] = (f_plus - f_minus) / (2 * STEP)
    return grad


def numeric_array_grad(func, array):
    grad = np.zeros_like(array)
    for idx in np.ndindex(array.shape[1:]):
        plus = array.copy()
        minus = array.copy()
        plus[(slice(None),) + idx] += STEP
        minus[(slice(None),) + idx] -= STEP
        grad[(slice(None),) + idx] = (func(plus) - func(minus)) / (2 * STEP)
    return grad


class TestMetricGradients:
    """Gradients of single polygon metrics."""

    def test_area_grad(self, rng):
        """d(area) matches finite differences, with a per-pair upstream gradient."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        params, _ = rotated_pairs(rng, 8)
        batch = PolygonBatch.from_xywhr(params)
        upstream = rng.uniform(-2.0, 2.0, len(batch))
        analytic = api.area_grad(batch, upstream)
        numeric = numeric_vertex_grad(lambda b: upstream * api.area(b), batch)
        assert np.allclose(analytic, numeric, atol=TOLERANCE)

    def test_area_grad_of_square(self):
        """Moving a square corner outward grows the area by half the diagonal."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        batch = PolygonBatch.from_xywhr([[0.0, 0.0, 2.0, 2.0, 0.0]])
        grad = api.area_grad(batch, 1.0)
        assert np.allclose(grad[0, 2], (1.0, 1.0))
        assert np.allclose(grad[0, 0], (-1.0, -1.0))
        assert np.all(grad[0, 4:] == 0)

    def test_dimension_grad(self, rng):
        """Only the two diameter ends receive a gradient."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        polygons = []
        for _ in range(6):
            angles = np.sort(rng.uniform(0, 2 * np.pi, 7))
            polygons.append(np.stack([np.cos(angles), 0.6 * np.sin(angles)], axis=-1))
        batch = PolygonBatch.from_list(polygons)
        result = api.dimension(batch)
        analytic = api.dimension_grad(batch, 1.0, result)
        numeric = numeric_vertex_grad(lambda b: api.dimension(b).values, batch, rows=7)
        assert np.allclose(analytic, numeric, atol=TOLERANCE)
        assert np.count_nonzero(np.any(analytic[0] != 0, axis=-1)) == 2

    def test_centroid_grad(self, rng):
        """The vertex centroid spreads its gradient evenly."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        batch = PolygonBatch.from_list([[(0.0, 0.0), (2.0, 0.0), (1.0, 1.0)], [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]])
        grad = api.centroid_grad(batch, [(3.0, -6.0), (4.0, 8.0)])
        assert np.allclose(grad[0, :3], (1.0, -2.0))
        assert np.allclose(grad[1, :4], (1.0, 2.0))
        assert np.all(grad[0, 3:] == 0)

    def test_point_distance_grad(self, rng):
        """Signed polygon distance, differentiated for vertices and point."""
        from dgal.batch import api
        from dgal.batch.kernels import load_polygon, store_grad
        from dgal.batch.polygons import PolygonBatch
        from dgal.core.numeric import vec2
        from dgal.geometry.primitives import empty_polygon
        from dgal.grad.metrics_grad import distance_polygon_point_grad

        @ti.kernel
        def backward(
            verts: ti.types.ndarray(),
            counts: ti.types.ndarray(),
            points: ti.types.ndarray(),
            edges: ti.types.ndarray(),
            grad_verts: ti.types.ndarray(),
            grad_points: ti.types.ndarray(),
        ):
            for b in range(verts.shape[0]):
                poly = load_polygon(verts, counts, b)
                grad_poly = empty_polygon()
                grad_p = vec2(0.0, 0.0)
                distance_polygon_point_grad(poly, vec2(points[b, 0], points[b, 1]), 1.0, edges[b], grad_poly, grad_p)
                store_grad(grad_poly, grad_verts, b)
                grad_points[b, 0] = grad_p[0]
                grad_points[b, 1] = grad_p[1]

        params, _ = rotated_pairs(rng, 16)
        batch = PolygonBatch.from_xywhr(params)
        points = rng.uniform(-2.0, 2.0, (16, 2))
        result = api.distance_to_points(batch, points)

        grad_verts = np.zeros_like(batch.vertices)
        grad_points = np.zeros_like(points)
        backward(batch.vertices, batch.counts, points, result.edges, grad_verts, grad_points)

        numeric = numeric_vertex_grad(lambda b: api.distance_to_points(b, points).values, batch)
        numeric_points = numeric_array_grad(lambda p: api.distance_to_points(batch, p).values, points)
        assert np.allclose(grad_verts, numeric, atol=TOLERANCE)
        assert np.allclose(grad_points, numeric_points, atol=TOLERANCE)


class TestConstructionGradients:
    """Gradients of polygon constructors."""

    def test_xywhr_grad(self, rng):
        """Box parameter gradients match finite differences of the corners."""
        from dgal.batch import api

        params, _ = rotated_pairs(rng, 8)
        upstream = rng.uniform(-1.0, 1.0, (8, 4, 2))

        def forward(p):
            return np.sum(upstream * api.xywhr_to_polygons(p).vertices[:, :4], axis=(1, 2))

        analytic = api.xywhr_grad(params, upstream)
        numeric = numeric_array_grad(forward, params)
        assert np.allclose(analytic, numeric, atol=TOLERANCE)

    def test_xywhr_matches_host_construction(self, rng):
        """Device and numpy rectangle constructors agree."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        params, _ = rotated_pairs(rng, 8)
        device = api.xywhr_to_polygons(params)
        host = PolygonBatch.from_xywhr(params)
        assert np.array_equal(device.counts, host.counts)
        assert np.allclose(device.vertices, host.vertices, atol=1e-12)


@pytest.mark.parametrize("algorithm", ["rotating_caliper", "sutherland_hodgeman"])
class TestShapeGradients:
    """Gradients of intersection and merge vertices."""

    def test_intersect_grad(self, rng, algorithm):
        """Replayed intersection vertices differentiate like the forward pass."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        params1, params2 = rotated_pairs(rng, 8)
        a = PolygonBatch.from_xywhr(params1)
        b = PolygonBatch.from_xywhr(params2)
        result = api.intersect(a, b, algorithm)
        upstream = rng.uniform(-1.0, 1.0, a.vertices.shape)
        mask = np.arange(upstream.shape[1])[None, :] < result.polygons.counts[:, None]
        upstream[~mask] = 0

        def forward1(batch):
            return np.sum(upstream * api.intersect(batch, b, algorithm).polygons.vertices, axis=(1, 2))

        def forward2(batch):
            return np.sum(upstream * api.intersect(a, batch, algorithm).polygons.vertices, axis=(1, 2))

        grad1, grad2 = api.intersect_grad(a, b, upstream, result)
        assert np.allclose(grad1, numeric_vertex_grad(forward1, a), atol=TOLERANCE)
        assert np.allclose(grad2, numeric_vertex_grad(forward2, b), atol=TOLERANCE)

    def test_iou_grad(self, rng, algorithm):
        """IoU gradients reach both operands."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        params1, params2 = rotated_pairs(rng, 8)
        a = PolygonBatch.from_xywhr(params1)
        b = PolygonBatch.from_xywhr(params2)
        result = api.iou(a, b, algorithm)
        grad1, grad2 = api.iou_grad(a, b, 1.0, result)
        assert np.allclose(grad1, numeric_vertex_grad(lambda x: api.iou(x, b, algorithm).values, a), atol=TOLERANCE)
        assert np.allclose(grad2, numeric_vertex_grad(lambda x: api.iou(a, x, algorithm).values, b), atol=TOLERANCE)


class TestOverlapGradients:
    """Gradients of the composite metrics."""

    def test_merge_grad(self, rng):
        """Hull vertex gradients go to the copied input vertices."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        params1, params2 = rotated_pairs(rng, 8, spread=1.0)
        a = PolygonBatch.from_xywhr(params1)
        b = PolygonBatch.from_xywhr(params2)
        result = api.merge(a, b)
        upstream = rng.uniform(-1.0, 1.0, a.vertices.shape)
        mask = np.arange(upstream.shape[1])[None, :] < result.polygons.counts[:, None]
        upstream[~mask] = 0

        grad1, grad2 = api.merge_grad(a, b, upstream, result)
        numeric1 = numeric_vertex_grad(lambda x: np.sum(upstream * api.merge(x, b).polygons.vertices, axis=(1, 2)), a)
        numeric2 = numeric_vertex_grad(lambda x: np.sum(upstream * api.merge(a, x).polygons.vertices, axis=(1, 2)), b)
        assert np.allclose(grad1, numeric1, atol=TOLERANCE)
        assert np.allclose(grad2, numeric2, atol=TOLERANCE)

    def test_giou_grad(self, rng):
        """GIoU gradients include the hull area term."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        params1, params2 = rotated_pairs(rng, 8, spread=1.0)
        a = PolygonBatch.from_xywhr(params1)
        b = PolygonBatch.from_xywhr(params2)
        upstream = rng.uniform(0.5, 1.5, len(a))
        result = api.giou(a, b)
        grad1, grad2 = api.giou_grad(a, b, upstream, result)
        numeric1 = numeric_vertex_grad(lambda x: upstream * api.giou(x, b).values, a)
        numeric2 = numeric_vertex_grad(lambda x: upstream * api.giou(a, x).values, b)
        assert np.allclose(grad1, numeric1, atol=TOLERANCE)
        assert np.allclose(grad2, numeric2, atol=TOLERANCE)

    def test_diou_grad(self, rng):
        """DIoU gradients include the centroid and diameter terms."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        params1, params2 = rotated_pairs(rng, 8, spread=1.0)
        a = PolygonBatch.from_xywhr(params1)
        b = PolygonBatch.from_xywhr(params2)
        result = api.diou(a, b)
        grad1, grad2 = api.diou_grad(a, b, 1.0, result)
        numeric1 = numeric_vertex_grad(lambda x: api.diou(x, b).values, a)
        numeric2 = numeric_vertex_grad(lambda x: api.diou(a, x).values, b)
        assert np.allclose(grad1, numeric1, atol=TOLERANCE)
        assert np.allclose(grad2, numeric2, atol=TOLERANCE)

    def test_diou_grad_with_coincident_centroids(self):
        """Concentric inputs give a finite gradient."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        a = PolygonBatch.from_xywhr([[0.0, 0.0, 2.0, 1.0, 0.0]])
        b = PolygonBatch.from_xywhr([[0.0, 0.0, 1.0, 2.0, 0.3]])
        grad1, grad2 = api.diou_grad(a, b, 1.0, api.diou(a, b))
        assert np.all(np.isfinite(grad1))
        assert np.all(np.isfinite(grad2))

    @pytest.mark.parametrize("metric", ["iou", "giou", "diou"])
    def test_box_metric_grad(self, rng, metric):
        """Box metric gradients with respect to all four bounds."""
        from dgal.batch import api

        size = 8
        lo1 = rng.uniform(-0.5, 0.5, (size, 2))
        lo2 = rng.uniform(-0.5, 0.5, (size, 2))
        boxes1 = np.column_stack([lo1[:, 0], lo1[:, 0] + rng.uniform(1.0, 2.0, size),
                                  lo1[:, 1], lo1[:, 1] + rng.uniform(1.0, 2.0, size)])
        boxes2 = np.column_stack([lo2[:, 0], lo2[:, 0] + rng.uniform(1.0, 2.0, size),
                                  lo2[:, 1], lo2[:, 1] + rng.uniform(1.0, 2.0, size)])
        forward = getattr(api, f"box_{metric}")
        backward = getattr(api, f"box_{metric}_grad")

        grad1, grad2 = backward(boxes1, boxes2, 1.0)
        assert np.allclose(grad1, numeric_array_grad(lambda x: forward(x, boxes2), boxes1), atol=TOLERANCE)
        assert np.allclose(grad2, numeric_array_grad(lambda x: forward(boxes1, x), boxes2), atol=TOLERANCE)


@pytest.mark.parametrize("algorithm", ["rotating_caliper", "sutherland_hodgeman"])
class TestConvexPolygonGradients:
    """Composite gradients on polygons with varying vertex counts."""

    def test_intersect_grad(self, rng, algorithm):
        """Vertex replay holds when crossings land on 3 to 7 vertex polygons."""
        from dgal.batch import api
        from dgal.core.numeric import MAX_VERTICES

        a, b = convex_pairs(rng, 8)
        result = api.intersect(a, b, algorithm)
        upstream = rng.uniform(-1.0, 1.0, a.vertices.shape)
        mask = np.arange(MAX_VERTICES)[None, :] < result.polygons.counts[:, None]
        upstream[~mask] = 0

        grad1, grad2 = api.intersect_grad(a, b, upstream, result)
        numeric1 = numeric_vertex_grad(
            lambda x: np.sum(upstream * api.intersect(x, b, algorithm).polygons.vertices, axis=(1, 2)), a, rows=7
        )
        numeric2 = numeric_vertex_grad(
            lambda x: np.sum(upstream * api.intersect(a, x, algorithm).polygons.vertices, axis=(1, 2)), b, rows=7
        )
        assert np.allclose(grad1, numeric1, atol=TOLERANCE)
        assert np.allclose(grad2, numeric2, atol=TOLERANCE)

    @pytest.mark.parametrize("metric", ["iou", "giou", "diou"])
    def test_metric_grad(self, rng, algorithm, metric):
        """iou, giou and diou gradients match finite differences."""
        from dgal.batch import api

        forward = getattr(api, metric)
        backward = getattr(api, f"{metric}_grad")
        a, b = convex_pairs(rng, 8)
        grad1, grad2 = backward(a, b, 1.0, forward(a, b, algorithm))
        numeric1 = numeric_vertex_grad(lambda x: forward(x, b, algorithm).values, a, rows=7)
        numeric2 = numeric_vertex_grad(lambda x: forward(a, x, algorithm).values, b, rows=7)
        assert np.allclose(grad1, numeric1, atol=TOLERANCE)
        assert np.allclose(grad2, numeric2, atol=TOLERANCE)


class TestAccumulation:
    """Adjoints add into their accumulators instead of overwriting."""

    def test_gradients_accumulate(self):
        """Calling an adjoint twice doubles the accumulated gradient."""
        from dgal.core.numeric import real
        from dgal.geometry.primitives import empty_polygon, poly2_from_xywhr
        from dgal.grad.metrics_grad import area_grad

        result = ti.field(dtype=real, shape=(2, 2))

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                box = poly2_from_xywhr(0.0, 0.0, 2.0, 2.0, 0.0)
                once = empty_polygon()
                twice = empty_polygon()
                area_grad(box, 1.0, once)
                area_grad(box, 1.0, twice)
                area_grad(box, 1.0, twice)
                result[0, 0] = once.vertices[2, 0]
                result[0, 1] = once.vertices[2, 1]
                result[1, 0] = twice.vertices[2, 0]
                result[1, 1] = twice.vertices[2, 1]

        test_kernel()
        assert abs(result[0, 0] - 1.0) < 1e-12
        assert abs(result[1, 0] - 2 * result[0, 0]) < 1e-12
        assert abs(result[1, 1] - 2 * result[0, 1]) < 1e-12



class TestSmallAdjoints:
    """Closed-form checks of adjoints without a batch entry point."""

    def test_intersect_lines_grad(self):
        """Cramer's rule derivative matches finite differences."""
        from dgal.core.numeric import real, vec2
        from dgal.geometry.primitives import Line2
        from dgal.grad.intersection_grad import intersect_lines_grad

        coeffs = np.array([0.8, -0.3, 0.2, 0.1, 0.9, -0.5])
        upstream = np.array([0.7, -1.2])
        result = ti.field(dtype=real, shape=6)

        @ti.kernel
        def test_kernel(c: ti.types.ndarray(), g: ti.types.ndarray()):
            for _ in range(1):
                l1 = Line2(a=c[0], b=c[1], c=c[2])
                l2 = Line2(a=c[3], b=c[4], c=c[5])
                grad_l1 = Line2(a=0.0, b=0.0, c=0.0)
                grad_l2 = Line2(a=0.0, b=0.0, c=0.0)
                intersect_lines_grad(l1, l2, vec2(g[0], g[1]), grad_l1, grad_l2)
                result[0] = grad_l1.a
                result[1] = grad_l1.b
                result[2] = grad_l1.c
                result[3] = grad_l2.a
                result[4] = grad_l2.b
                result[5] = grad_l2.c

        def forward(c):
            w = c[0] * c[4] - c[3] * c[1]
            x = (c[1] * c[5] - c[4] * c[2]) / w
            y = (c[2] * c[3] - c[5] * c[0]) / w
            return upstream[0] * x + upstream[1] * y

        test_kernel(coeffs, upstream)
        for k in range(6):
            plus = coeffs.copy()
            minus = coeffs.copy()
            plus[k] += STEP
            minus[k] -= STEP
            numeric = (forward(plus) - forward(minus)) / (2 * STEP)
            assert abs(result[k] - numeric) < 1e-5 * max(1.0, abs(numeric))

    def test_poly2_from_aabox2_grad(self):
        """Each bound collects the gradients of its two corners."""
        from dgal.core.numeric import real, vec2
        from dgal.geometry.primitives import AABox2, empty_aabox2, empty_polygon, set_vertex
        from dgal.grad.primitives_grad import poly2_from_aabox2_grad

        result = ti.field(dtype=real, shape=4)

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                grad = empty_polygon()
                for i in range(4):
                    set_vertex(grad, i, vec2(i + 1.0, 10.0 * (i + 1)))
                grad.nvertices = 4
                grad_box = empty_aabox2()
                poly2_from_aabox2_grad(AABox2(min_x=0.0, max_x=1.0, min_y=0.0, max_y=1.0), grad, grad_box)
                result[0] = grad_box.min_x
                result[1] = grad_box.max_x
                result[2] = grad_box.min_y
                result[3] = grad_box.max_y

        test_kernel()
        assert [result[k] for k in range(4)] == [5.0, 5.0, 30.0, 70.0]

    def test_center_grad_routes_to_extreme_vertices(self):
        """The box center gradient reaches the first vertex on each bound."""
        from dgal.core.numeric import real, vec2
        from dgal.geometry.primitives import empty_polygon, set_vertex
        from dgal.grad.metrics_grad import center_grad

        result = ti.field(dtype=real, shape=(3, 2))

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                tri = empty_polygon()
                set_vertex(tri, 0, vec2(0.0, 0.0))
                set_vertex(tri, 1, vec2(3.0, 0.0))
                set_vertex(tri, 2, vec2(0.0, 3.0))
                tri.nvertices = 3
                grad = empty_polygon()
                center_grad(tri, vec2(1.0, 1.0), grad)
                for i in range(3):
                    result[i, 0] = grad.vertices[i, 0]
                    result[i, 1] = grad.vertices[i, 1]

        test_kernel()
        assert np.allclose(result.to_numpy(), [[0.5, 0.5], [0.5, 0.0], [0.0, 0.5]])

    def test_max_distance_grad(self):
        """The gradient pushes the two farthest vertices apart."""
        import math

        from dgal.algebra.merge import max_distance
        from dgal.core.numeric import real
        from dgal.geometry.primitives import empty_polygon, poly2_from_xywhr
        from dgal.grad.merge_grad import max_distance_grad

        result = ti.field(dtype=real, shape=(2, 2))

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                p1 = poly2_from_xywhr(0.5, 0.5, 1.0, 1.0, 0.0)
                p2 = poly2_from_xywhr(3.5, 0.5, 1.0, 1.0, 0.0)
                d, i, j = max_distance(p1, p2)
                grad_p1 = empty_polygon()
                grad_p2 = empty_polygon()
                max_distance_grad(p1, p2, 1.0, i, j, grad_p1, grad_p2)
                for k in range(4):
                    result[0, 0] += grad_p1.vertices[k, 0]
                    result[0, 1] += grad_p1.vertices[k, 1]
                    result[1, 0] += grad_p2.vertices[k, 0]
                    result[1, 1] += grad_p2.vertices[k, 1]

        test_kernel()
        g = result.to_numpy()
        assert abs(np.linalg.norm(g[0]) - 1.0) < 1e-12
        assert np.allclose(g[0], -g[1])
        assert abs(abs(g[0, 0]) - 4.0 / math.sqrt(17.0)) < 1e-12

    def test_aabox_max_distance_grad(self):
        """Bounds of the merged box route to the box that realised them."""
        from dgal.core.numeric import real
        from dgal.geometry.primitives import AABox2, empty_aabox2
        from dgal.grad.merge_grad import aabox_max_distance_grad

        result = ti.field(dtype=real, shape=(2, 4))

        @ti.kernel
        def test_kernel():
            a1 = AABox2(min_x=0.0, max_x=1.0, min_y=0.0, max_y=1.0)
            a2 = AABox2(min_x=3.0, max_x=4.0, min_y=0.0, max_y=3.0)
            g1 = empty_aabox2()
            g2 = empty_aabox2()
            aabox_max_distance_grad(a1, a2, 1.0, g1, g2)
            result[0, 0] = g1.min_x
            result[0, 1] = g1.max_x
            result[0, 2] = g1.min_y
            result[0, 3] = g1.max_y
            result[1, 0] = g2.min_x
            result[1, 1] = g2.max_x
            result[1, 2] = g2.min_y
            result[1, 3] = g2.max_y

        test_kernel()
        assert np.allclose(result.to_numpy(), [[-0.8, 0.0, 0.0, 0.0], [0.0, 0.8, -0.6, 0.6]])
