"""numpy-facing batch interface.

Each function validates its inputs, allocates the output arrays, launches
one kernel from :mod:`dgal.batch.kernels` over the whole batch and returns
plain numpy arrays. Forward functions that the adjoints need side data from
return small result dataclasses; passing such a result back to the matching
``*_grad`` function replays the saved provenance instead of repeating the
geometric search.

Gradient functions allocate fresh zeroed accumulators per call, so their
outputs are the gradient of ``sum(grad * f(x))`` with respect to the inputs.

Pairwise calls need n1 + n2 <= MAX_VERTICES for every pair. The capacity
defaults to 16 and is fixed at import; set DGAL_MAX_VERTICES (up to 128)
before importing dgal to work with larger polygons.

Example:
    >>> import dgal.config
    >>> dgal.config.init()
    >>> from dgal.batch import api
    >>> from dgal.batch.polygons import PolygonBatch
    >>> a = PolygonBatch.from_xywhr([[0, 0, 1, 1, 0]])
    >>> b = PolygonBatch.from_xywhr([[0.5, 0, 1, 1, 0]])
    >>> result = api.iou(a, b)
    >>> result.values  # array([0.33333334])
    >>> grad_a, grad_b = api.iou_grad(a, b, 1.0, result)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np
import numpy.typing as npt

from dgal.algebra.intersection import Algorithm
from dgal.batch import kernels
from dgal.batch.polygons import PolygonBatch, check_pair
from dgal.core.numeric import MAX_VERTICES, NP_REAL

logger = logging.getLogger(__name__)

GradLike = Union[float, npt.ArrayLike]


@dataclass
class IndexedResult:
    """Distances together with the vertex pair realising them.

    Attributes:
        values: (B,) distances.
        indices: (B, 2) vertex indices.
    """

    values: npt.NDArray
    indices: npt.NDArray


@dataclass
class DistanceResult:
    """Signed point-to-polygon distances.

    Attributes:
        values: (B,) distances, positive inside.
        edges: (B,) index of the nearest edge.
    """

    values: npt.NDArray
    edges: npt.NDArray


@dataclass
class ShapeResult:
    """Output polygons of an intersection or merge with their flags.

    Attributes:
        polygons: Resulting polygons.
        flags: (B, MAX_VERTICES) uint8 provenance flags.
    """

    polygons: PolygonBatch
    flags: npt.NDArray


@dataclass
class IoUResult:
    values: npt.NDArray
    nx: npt.NDArray
    xflags: npt.NDArray


@dataclass
class GIoUResult:
    values: npt.NDArray
    nx: npt.NDArray
    xflags: npt.NDArray
    nm: npt.NDArray
    mflags: npt.NDArray


@dataclass
class DIoUResult:
    """DIoU values and side data.

    Attributes:
        values: (B,) diou.
        nx: (B,) intersection vertex counts.
        xflags: (B, MAX_VERTICES) intersection flags.
        dflags: (B, 2) merge flags of the two hull diameter vertices.
    """

    values: npt.NDArray
    nx: npt.NDArray
    xflags: npt.NDArray
    dflags: npt.NDArray


# =============================================================================
# Helpers
# =============================================================================


def _resolve_algorithm(algorithm: Union[Algorithm, int, str]) -> int:
    if isinstance(algorithm, str):
        try:
            return int(Algorithm[algorithm.upper()])
        except KeyError:
            raise ValueError(f"Unknown intersection algorithm: {algorithm!r}") from None
    try:
        return int(Algorithm(algorithm))
    except ValueError:
        raise ValueError(f"Unknown intersection algorithm: {algorithm!r}") from None


def _scalar_grad(grad: GradLike, size: int) -> npt.NDArray:
    return np.ascontiguousarray(np.broadcast_to(np.asarray(grad, dtype=NP_REAL), (size,)))


def _vertex_grad(grad: npt.ArrayLike, size: int) -> npt.NDArray:
    """Pad a per-vertex gradient to (B, MAX_VERTICES, 2)."""
    dense = np.asarray(grad, dtype=NP_REAL)
    if dense.ndim != 3 or dense.shape[0] != size or dense.shape[2] != 2 or dense.shape[1] > MAX_VERTICES:
        raise ValueError(f"vertex gradient must have shape ({size}, N<={MAX_VERTICES}, 2), got {dense.shape}")
    padded = np.zeros((size, MAX_VERTICES, 2), dtype=NP_REAL)
    padded[:, : dense.shape[1]] = dense
    return padded


def _boxes(boxes: npt.ArrayLike) -> npt.NDArray:
    array = np.ascontiguousarray(np.asarray(boxes, dtype=NP_REAL).reshape(-1, 4))
    if np.any(array[:, 1] < array[:, 0]) or np.any(array[:, 3] < array[:, 2]):
        raise ValueError("boxes must satisfy max_x >= min_x and max_y >= min_y")
    return array


def _box_pair(boxes1: npt.ArrayLike, boxes2: npt.ArrayLike) -> Tuple[npt.NDArray, npt.NDArray]:
    a1 = _boxes(boxes1)
    a2 = _boxes(boxes2)
    if a1.shape != a2.shape:
        raise ValueError(f"box batch sizes differ: {len(a1)} vs {len(a2)}")
    return a1, a2


def _zeros_like_vertices(size: int) -> npt.NDArray:
    return np.zeros((size, MAX_VERTICES, 2), dtype=NP_REAL)


def _flags(size: int) -> npt.NDArray:
    return np.zeros((size, MAX_VERTICES), dtype=np.uint8)


def _status(size: int) -> npt.NDArray:
    return np.zeros(size, dtype=np.int32)


def _check_status(status: npt.NDArray, algo: int) -> None:
    """Raise if the intersection algorithm failed on any pair."""
    bad = np.flatnonzero(status)
    if len(bad):
        raise RuntimeError(
            f"Degenerate bridge in {Algorithm(algo).name} for pairs {bad.tolist()}: "
            "all neighbouring vertices are collinear, use SUTHERLAND_HODGEMAN"
        )


# =============================================================================
# Single polygon metrics
# =============================================================================


def area(batch: PolygonBatch) -> npt.NDArray:
    """Signed area of every polygon."""
    out = np.zeros(len(batch), dtype=NP_REAL)
    logger.debug("area: batch=%d", len(batch))
    kernels.area_kernel(batch.vertices, batch.counts, out)
    return out


def dimension(batch: PolygonBatch) -> IndexedResult:
    """Diameter of every polygon and the vertex pair realising it."""
    out = np.zeros(len(batch), dtype=NP_REAL)
    indices = np.zeros((len(batch), 2), dtype=np.int32)
    logger.debug("dimension: batch=%d", len(batch))
    kernels.dimension_kernel(batch.vertices, batch.counts, out, indices)
    return IndexedResult(values=out, indices=indices)


def center(batch: PolygonBatch) -> npt.NDArray:
    """Bounding box center of every polygon, shape (B, 2)."""
    out = np.zeros((len(batch), 2), dtype=NP_REAL)
    logger.debug("center: batch=%d", len(batch))
    kernels.center_kernel(batch.vertices, batch.counts, out)
    return out


def centroid(batch: PolygonBatch) -> npt.NDArray:
    """Vertex average of every polygon, shape (B, 2)."""
    out = np.zeros((len(batch), 2), dtype=NP_REAL)
    logger.debug("centroid: batch=%d", len(batch))
    kernels.centroid_kernel(batch.vertices, batch.counts, out)
    return out


def distance_to_points(batch: PolygonBatch, points: npt.ArrayLike) -> DistanceResult:
    """Signed distance from one point per polygon to its boundary.

    Raises:
        ValueError: If points is not of shape (B, 2).
    """
    pts = np.ascontiguousarray(np.asarray(points, dtype=NP_REAL))
    if pts.shape != (len(batch), 2):
        raise ValueError(f"points must have shape ({len(batch)}, 2), got {pts.shape}")
    out = np.zeros(len(batch), dtype=NP_REAL)
    edges = np.zeros(len(batch), dtype=np.int32)
    logger.debug("distance_to_points: batch=%d", len(batch))
    kernels.distance_kernel(batch.vertices, batch.counts, pts, out, edges)
    return DistanceResult(values=out, edges=edges)


def xywhr_to_polygons(params: npt.ArrayLike) -> PolygonBatch:
    """Rotated rectangles from (x, y, w, h, r) rows, built on the device."""
    array = np.ascontiguousarray(np.asarray(params, dtype=NP_REAL).reshape(-1, 5))
    result = PolygonBatch.empty(len(array))
    logger.debug("xywhr_to_polygons: batch=%d", len(array))
    kernels.xywhr_kernel(array, result.vertices, result.counts)
    return result


# =============================================================================
# Pairwise operations
# =============================================================================


def intersect(
    batch1: PolygonBatch, batch2: PolygonBatch, algorithm: Union[Algorithm, int, str] = Algorithm.DEFAULT
) -> ShapeResult:
    """Pairwise intersection polygons and their edge flags.

    Raises:
        ValueError: On mismatched batches or an unknown algorithm.
        RuntimeError: If a pair exceeds the output capacity (n1 + n2 >
            MAX_VERTICES, 16 by default, so two 9-gons need
            DGAL_MAX_VERTICES raised before import) or the rotating caliper
            meets a degenerate bridge.
    """
    check_pair(batch1, batch2)
    algo = _resolve_algorithm(algorithm)
    result = PolygonBatch.empty(len(batch1))
    flags = _flags(len(batch1))
    status = _status(len(batch1))
    logger.debug("intersect: batch=%d algorithm=%s", len(batch1), Algorithm(algo).name)
    kernels.intersect_kernel(
        batch1.vertices, batch1.counts, batch2.vertices, batch2.counts,
        result.vertices, result.counts, flags, status, algo,
    )
    _check_status(status, algo)
    return ShapeResult(polygons=result, flags=flags)


def merge(batch1: PolygonBatch, batch2: PolygonBatch) -> ShapeResult:
    """Pairwise convex hulls and their vertex flags."""
    check_pair(batch1, batch2)
    result = PolygonBatch.empty(len(batch1))
    flags = _flags(len(batch1))
    logger.debug("merge: batch=%d", len(batch1))
    kernels.merge_kernel(
        batch1.vertices, batch1.counts, batch2.vertices, batch2.counts,
        result.vertices, result.counts, flags,
    )
    return ShapeResult(polygons=result, flags=flags)


def max_distance(batch1: PolygonBatch, batch2: PolygonBatch) -> IndexedResult:
    """Largest vertex distance between paired polygons."""
    check_pair(batch1, batch2)
    out = np.zeros(len(batch1), dtype=NP_REAL)
    indices = np.zeros((len(batch1), 2), dtype=np.int32)
    logger.debug("max_distance: batch=%d", len(batch1))
    kernels.max_distance_kernel(batch1.vertices, batch1.counts, batch2.vertices, batch2.counts, out, indices)
    return IndexedResult(values=out, indices=indices)


def iou(
    batch1: PolygonBatch, batch2: PolygonBatch, algorithm: Union[Algorithm, int, str] = Algorithm.DEFAULT
) -> IoUResult:
    """Pairwise intersection over union.

    Raises:
        ValueError: On mismatched batches or an unknown algorithm.
        RuntimeError: On capacity overflow or a degenerate rotating-caliper
            pair, as in :func:`intersect`.
    """
    check_pair(batch1, batch2)
    algo = _resolve_algorithm(algorithm)
    size = len(batch1)
    result = IoUResult(
        values=np.zeros(size, dtype=NP_REAL), nx=np.zeros(size, dtype=np.int32), xflags=_flags(size)
    )
    status = _status(size)
    logger.debug("iou: batch=%d algorithm=%s", size, Algorithm(algo).name)
    kernels.iou_kernel(
        batch1.vertices, batch1.counts, batch2.vertices, batch2.counts,
        result.values, result.nx, result.xflags, status, algo,
    )
    _check_status(status, algo)
    return result


def giou(
    batch1: PolygonBatch, batch2: PolygonBatch, algorithm: Union[Algorithm, int, str] = Algorithm.DEFAULT
) -> GIoUResult:
    """Pairwise generalized intersection over union.

    Raises:
        RuntimeError: As in :func:`intersect`.
    """
    check_pair(batch1, batch2)
    algo = _resolve_algorithm(algorithm)
    size = len(batch1)
    result = GIoUResult(
        values=np.zeros(size, dtype=NP_REAL),
        nx=np.zeros(size, dtype=np.int32),
        xflags=_flags(size),
        nm=np.zeros(size, dtype=np.int32),
        mflags=_flags(size),
    )
    status = _status(size)
    logger.debug("giou: batch=%d algorithm=%s", size, Algorithm(algo).name)
    kernels.giou_kernel(
        batch1.vertices, batch1.counts, batch2.vertices, batch2.counts,
        result.values, result.nx, result.xflags, result.nm, result.mflags, status, algo,
    )
    _check_status(status, algo)
    return result


def diou(
    batch1: PolygonBatch, batch2: PolygonBatch, algorithm: Union[Algorithm, int, str] = Algorithm.DEFAULT
) -> DIoUResult:
    """Pairwise distance intersection over union.

    Raises:
        RuntimeError: As in :func:`intersect`.
    """
    check_pair(batch1, batch2)
    algo = _resolve_algorithm(algorithm)
    size = len(batch1)
    result = DIoUResult(
        values=np.zeros(size, dtype=NP_REAL),
        nx=np.zeros(size, dtype=np.int32),
        xflags=_flags(size),
        dflags=np.zeros((size, 2), dtype=np.uint8),
    )
    status = _status(size)
    logger.debug("diou: batch=%d algorithm=%s", size, Algorithm(algo).name)
    kernels.diou_kernel(
        batch1.vertices, batch1.counts, batch2.vertices, batch2.counts,
        result.values, result.nx, result.xflags, result.dflags, status, algo,
    )
    _check_status(status, algo)
    return result


def _box_metric(boxes1: npt.ArrayLike, boxes2: npt.ArrayLike, metric: int, name: str) -> npt.NDArray:
    a1, a2 = _box_pair(boxes1, boxes2)
    out = np.zeros(len(a1), dtype=NP_REAL)
    logger.debug("%s: batch=%d", name, len(a1))
    kernels.box_metric_kernel(a1, a2, out, metric)
    return out


def box_iou(boxes1: npt.ArrayLike, boxes2: npt.ArrayLike) -> npt.NDArray:
    """IoU of paired (min_x, max_x, min_y, max_y) boxes."""
    return _box_metric(boxes1, boxes2, kernels.METRIC_IOU, "box_iou")


def box_giou(boxes1: npt.ArrayLike, boxes2: npt.ArrayLike) -> npt.NDArray:
    """GIoU of paired boxes."""
    return _box_metric(boxes1, boxes2, kernels.METRIC_GIOU, "box_giou")


def box_diou(boxes1: npt.ArrayLike, boxes2: npt.ArrayLike) -> npt.NDArray:
    """DIoU of paired boxes."""
    return _box_metric(boxes1, boxes2, kernels.METRIC_DIOU, "box_diou")


# =============================================================================
# Adjoints
# =============================================================================


def area_grad(batch: PolygonBatch, grad: GradLike) -> npt.NDArray:
    """Gradient of the areas with respect to the vertices."""
    out = _zeros_like_vertices(len(batch))
    logger.debug("area_grad: batch=%d", len(batch))
    kernels.area_grad_kernel(batch.vertices, batch.counts, _scalar_grad(grad, len(batch)), out)
    return out


def dimension_grad(batch: PolygonBatch, grad: GradLike, result: IndexedResult) -> npt.NDArray:
    """Gradient of the diameters, given the result of :func:`dimension`."""
    out = _zeros_like_vertices(len(batch))
    logger.debug("dimension_grad: batch=%d", len(batch))
    kernels.dimension_grad_kernel(
        batch.vertices, batch.counts, _scalar_grad(grad, len(batch)), result.indices, out
    )
    return out


def centroid_grad(batch: PolygonBatch, grad: npt.ArrayLike) -> npt.NDArray:
    """Gradient of the centroids for an upstream gradient of shape (B, 2)."""
    g = np.ascontiguousarray(np.broadcast_to(np.asarray(grad, dtype=NP_REAL), (len(batch), 2)))
    out = _zeros_like_vertices(len(batch))
    logger.debug("centroid_grad: batch=%d", len(batch))
    kernels.centroid_grad_kernel(batch.vertices, batch.counts, g, out)
    return out


def xywhr_grad(params: npt.ArrayLike, grad: npt.ArrayLike) -> npt.NDArray:
    """Gradient of rotated rectangle corners with respect to (x, y, w, h, r)."""
    array = np.ascontiguousarray(np.asarray(params, dtype=NP_REAL).reshape(-1, 5))
    out = np.zeros((len(array), 5), dtype=NP_REAL)
    logger.debug("xywhr_grad: batch=%d", len(array))
    kernels.xywhr_grad_kernel(array, _vertex_grad(grad, len(array)), out)
    return out


def intersect_grad(
    batch1: PolygonBatch, batch2: PolygonBatch, grad: npt.ArrayLike, result: ShapeResult
) -> Tuple[npt.NDArray, npt.NDArray]:
    """Gradient of the intersection vertices, replayed from the saved flags.

    Args:
        batch1: First operands.
        batch2: Second operands.
        grad: Per-vertex upstream gradient of the intersection polygons.
        result: Return value of :func:`intersect` for the same inputs.
    """
    check_pair(batch1, batch2)
    size = len(batch1)
    out1 = _zeros_like_vertices(size)
    out2 = _zeros_like_vertices(size)
    logger.debug("intersect_grad: batch=%d", size)
    kernels.intersect_grad_kernel(
        batch1.vertices, batch1.counts, batch2.vertices, batch2.counts,
        _vertex_grad(grad, size), result.polygons.counts, result.flags, out1, out2,
    )
    return out1, out2


def merge_grad(
    batch1: PolygonBatch, batch2: PolygonBatch, grad: npt.ArrayLike, result: ShapeResult
) -> Tuple[npt.NDArray, npt.NDArray]:
    """Gradient of the merged hull vertices, replayed from the saved flags."""
    check_pair(batch1, batch2)
    size = len(batch1)
    out1 = _zeros_like_vertices(size)
    out2 = _zeros_like_vertices(size)
    logger.debug("merge_grad: batch=%d", size)
    kernels.merge_grad_kernel(
        batch1.vertices, batch1.counts, batch2.vertices, batch2.counts,
        _vertex_grad(grad, size), result.polygons.counts, result.flags, out1, out2,
    )
    return out1, out2


def iou_grad(
    batch1: PolygonBatch, batch2: PolygonBatch, grad: GradLike, result: IoUResult
) -> Tuple[npt.NDArray, npt.NDArray]:
    """Gradient of iou, given the result of :func:`iou`."""
    check_pair(batch1, batch2)
    size = len(batch1)
    out1 = _zeros_like_vertices(size)
    out2 = _zeros_like_vertices(size)
    logger.debug("iou_grad: batch=%d", size)
    kernels.iou_grad_kernel(
        batch1.vertices, batch1.counts, batch2.vertices, batch2.counts,
        _scalar_grad(grad, size), result.nx, result.xflags, out1, out2,
    )
    return out1, out2


def giou_grad(
    batch1: PolygonBatch, batch2: PolygonBatch, grad: GradLike, result: GIoUResult
) -> Tuple[npt.NDArray, npt.NDArray]:
    """Gradient of giou, given the result of :func:`giou`."""
    check_pair(batch1, batch2)
    size = len(batch1)
    out1 = _zeros_like_vertices(size)
    out2 = _zeros_like_vertices(size)
    logger.debug("giou_grad: batch=%d", size)
    kernels.giou_grad_kernel(
        batch1.vertices, batch1.counts, batch2.vertices, batch2.counts,
        _scalar_grad(grad, size), result.nx, result.xflags, result.nm, result.mflags, out1, out2,
    )
    return out1, out2


def diou_grad(
    batch1: PolygonBatch, batch2: PolygonBatch, grad: GradLike, result: DIoUResult
) -> Tuple[npt.NDArray, npt.NDArray]:
    """Gradient of diou, given the result of :func:`diou`."""
    check_pair(batch1, batch2)
    size = len(batch1)
    out1 = _zeros_like_vertices(size)
    out2 = _zeros_like_vertices(size)
    logger.debug("diou_grad: batch=%d", size)
    kernels.diou_grad_kernel(
        batch1.vertices, batch1.counts, batch2.vertices, batch2.counts,
        _scalar_grad(grad, size), result.nx, result.xflags, result.dflags, out1, out2,
    )
    return out1, out2


def _box_metric_grad(
    boxes1: npt.ArrayLike, boxes2: npt.ArrayLike, grad: GradLike, metric: int, name: str
) -> Tuple[npt.NDArray, npt.NDArray]:
    a1, a2 = _box_pair(boxes1, boxes2)
    out1 = np.zeros_like(a1)
    out2 = np.zeros_like(a2)
    logger.debug("%s: batch=%d", name, len(a1))
    kernels.box_metric_grad_kernel(a1, a2, _scalar_grad(grad, len(a1)), out1, out2, metric)
    return out1, out2


def box_iou_grad(boxes1: npt.ArrayLike, boxes2: npt.ArrayLike, grad: GradLike) -> Tuple[npt.NDArray, npt.NDArray]:
    """Gradient of box_iou with respect to both box arrays."""
    return _box_metric_grad(boxes1, boxes2, grad, kernels.METRIC_IOU, "box_iou_grad")


def box_giou_grad(boxes1: npt.ArrayLike, boxes2: npt.ArrayLike, grad: GradLike) -> Tuple[npt.NDArray, npt.NDArray]:
    """Gradient of box_giou with respect to both box arrays."""
    return _box_metric_grad(boxes1, boxes2, grad, kernels.METRIC_GIOU, "box_giou_grad")


def box_diou_grad(boxes1: npt.ArrayLike, boxes2: npt.ArrayLike, grad: GradLike) -> Tuple[npt.NDArray, npt.NDArray]:
    """Gradient of box_diou with respect to both box arrays."""
    return _box_metric_grad(boxes1, boxes2, grad, kernels.METRIC_DIOU, "box_diou_grad")
