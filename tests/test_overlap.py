"""Unit tests for the IoU, GIoU and DIoU metrics.

Tests cover:
- Closed-form values for simple polygon pairs
- Identity and symmetry
- Upper bounds of the extended metrics
- Axis-aligned box metrics and their agreement with polygons
"""

import math

import numpy as np
import pytest

UNIT_SQUARE = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
SHIFTED_SQUARE = [(0.5, 0.0), (1.5, 0.0), (1.5, 1.0), (0.5, 1.0)]


def rotated_pairs(rng, size):
    def draw():
        return np.column_stack(
            [
                rng.uniform(-1.0, 1.0, size),
                rng.uniform(-1.0, 1.0, size),
                rng.uniform(0.5, 2.0, size),
                rng.uniform(0.5, 2.0, size),
                rng.uniform(-np.pi, np.pi, size),
            ]
        )

    return draw(), draw()


def random_boxes(rng, size):
    lo = rng.uniform(-1.0, 1.0, (size, 2))
    hi = lo + rng.uniform(0.5, 2.0, (size, 2))
    return np.column_stack([lo[:, 0], hi[:, 0], lo[:, 1], hi[:, 1]])


class TestPolygonMetrics:
    """Tests for the polygon metrics."""

    def test_shifted_squares(self):
        """Closed-form values for two half-overlapping squares."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        a = PolygonBatch.from_list([UNIT_SQUARE])
        b = PolygonBatch.from_list([SHIFTED_SQUARE])
        assert abs(api.iou(a, b).values[0] - 1.0 / 3.0) < 1e-12
        # The hull equals the union, so the penalty vanishes
        assert abs(api.giou(a, b).values[0] - 1.0 / 3.0) < 1e-12
        assert abs(api.diou(a, b).values[0] - (1.0 / 3.0 - 0.25 / 3.25)) < 1e-12

    @pytest.mark.parametrize("metric", ["iou", "giou", "diou"])
    def test_identical_polygons(self, metric):
        """Every metric is 1 for identical inputs."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        a = PolygonBatch.from_xywhr([[0.3, -0.2, 2.0, 1.0, 0.4], [0.0, 0.0, 1.0, 1.0, 0.0]])
        values = getattr(api, metric)(a, a).values
        assert np.allclose(values, 1.0, atol=1e-12)

    def test_disjoint_polygons(self):
        """Disjoint inputs have zero iou and negative extensions."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        a = PolygonBatch.from_xywhr([[0.0, 0.0, 1.0, 1.0, 0.2]])
        b = PolygonBatch.from_xywhr([[4.0, 1.0, 1.0, 1.0, -0.4]])
        assert api.iou(a, b).values[0] == 0
        assert api.iou(a, b).nx[0] == 0
        assert -1.0 < api.giou(a, b).values[0] < 0
        assert -1.0 < api.diou(a, b).values[0] < 0

    @pytest.mark.parametrize("algorithm", ["rotating_caliper", "sutherland_hodgeman"])
    def test_extensions_bounded_by_iou(self, rng, algorithm):
        """giou <= iou and diou <= iou for any pair."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        params1, params2 = rotated_pairs(rng, 32)
        a = PolygonBatch.from_xywhr(params1)
        b = PolygonBatch.from_xywhr(params2)
        iou = api.iou(a, b, algorithm).values
        assert np.all((iou >= 0) & (iou <= 1 + 1e-12))
        assert np.all(api.giou(a, b, algorithm).values <= iou + 1e-12)
        assert np.all(api.diou(a, b, algorithm).values <= iou + 1e-12)

    def test_symmetry(self, rng):
        """Swapping the operands does not change any metric."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        params1, params2 = rotated_pairs(rng, 16)
        a = PolygonBatch.from_xywhr(params1)
        b = PolygonBatch.from_xywhr(params2)
        for metric in (api.iou, api.giou, api.diou):
            assert np.allclose(metric(a, b).values, metric(b, a).values, atol=1e-9)

    def test_algorithms_agree(self, rng):
        """The choice of intersection algorithm does not change iou."""
        from dgal.algebra.intersection import Algorithm
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        params1, params2 = rotated_pairs(rng, 16)
        a = PolygonBatch.from_xywhr(params1)
        b = PolygonBatch.from_xywhr(params2)
        caliper = api.iou(a, b, Algorithm.ROTATING_CALIPER).values
        default = api.iou(a, b).values
        assert np.allclose(caliper, default, atol=1e-9)

    def test_diou_flags_name_the_hull_diameter(self, rng):
        """The saved diameter flags point at two vertices the right distance apart."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        params1, params2 = rotated_pairs(rng, 8)
        a = PolygonBatch.from_xywhr(params1)
        b = PolygonBatch.from_xywhr(params2)
        result = api.diou(a, b)
        for k in range(len(a)):
            ends = []
            for flag in result.dflags[k]:
                source = a if int(flag) & 1 else b
                ends.append(source.vertices[k, int(flag) >> 1])
            points = np.concatenate([a.to_list()[k], b.to_list()[k]])
            expected = np.max(np.linalg.norm(points[:, None] - points[None], axis=-1))
            assert abs(np.linalg.norm(ends[0] - ends[1]) - expected) < 1e-9


class TestBoxMetrics:
    """Tests for the axis-aligned box metrics."""

    def test_overlapping_boxes(self):
        """Closed-form values for two overlapping boxes."""
        from dgal.batch import api

        a = [[0.0, 2.0, 0.0, 2.0]]
        b = [[1.0, 3.0, 0.0, 2.0]]
        assert abs(api.box_iou(a, b)[0] - 1.0 / 3.0) < 1e-12
        assert abs(api.box_giou(a, b)[0] - 1.0 / 3.0) < 1e-12
        assert abs(api.box_diou(a, b)[0] - (1.0 / 3.0 - 1.0 / 13.0)) < 1e-12

    def test_disjoint_boxes(self):
        """Separated boxes keep a useful negative signal."""
        from dgal.batch import api

        a = [[0.0, 1.0, 0.0, 1.0]]
        b = [[2.0, 3.0, 0.0, 1.0]]
        assert api.box_iou(a, b)[0] == 0
        assert abs(api.box_giou(a, b)[0] + 1.0 / 3.0) < 1e-12
        assert abs(api.box_diou(a, b)[0] + 0.4) < 1e-12

    def test_identical_boxes(self):
        """Every box metric is 1 for identical inputs."""
        from dgal.batch import api

        a = [[-1.0, 1.0, 0.0, 0.5]]
        for metric in (api.box_iou, api.box_giou, api.box_diou):
            assert abs(metric(a, a)[0] - 1.0) < 1e-12

    def test_iou_matches_polygons(self, rng):
        """Box iou equals the polygon iou of the same boxes."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        boxes1 = random_boxes(rng, 32)
        boxes2 = random_boxes(rng, 32)
        polygon = api.iou(PolygonBatch.from_aabox(boxes1), PolygonBatch.from_aabox(boxes2)).values
        assert np.allclose(api.box_iou(boxes1, boxes2), polygon, atol=1e-9)

    def test_box_giou_is_below_polygon_giou(self, rng):
        """The enclosing box is never smaller than the convex hull."""
        from dgal.batch import api
        from dgal.batch.polygons import PolygonBatch

        boxes1 = random_boxes(rng, 32)
        boxes2 = random_boxes(rng, 32)
        polygon = api.giou(PolygonBatch.from_aabox(boxes1), PolygonBatch.from_aabox(boxes2)).values
        assert np.all(api.box_giou(boxes1, boxes2) <= polygon + 1e-9)

    def test_invalid_boxes(self):
        """Inverted bounds and mismatched batches are rejected."""
        from dgal.batch import api

        with pytest.raises(ValueError, match="max_x >= min_x"):
            api.box_iou([[1.0, 0.0, 0.0, 1.0]], [[0.0, 1.0, 0.0, 1.0]])
        with pytest.raises(ValueError, match="batch sizes"):
            api.box_iou([[0.0, 1.0, 0.0, 1.0]], [[0.0, 1.0, 0.0, 1.0]] * 2)


def test_diou_penalty_uses_squared_distances():
    """DIoU subtracts the squared centroid distance over the squared diameter."""
    from dgal.batch import api
    from dgal.batch.polygons import PolygonBatch

    a = PolygonBatch.from_xywhr([[0.0, 0.0, 2.0, 2.0, 0.0]])
    b = PolygonBatch.from_xywhr([[0.0, 0.0, 1.0, 1.0, math.pi / 4]])
    # Concentric: no penalty
    assert abs(api.diou(a, b).values[0] - api.iou(a, b).values[0]) < 1e-12
