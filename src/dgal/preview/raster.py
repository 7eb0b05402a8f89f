"""Signed-distance rasterisation of polygon pairs.

Renders two polygons and their intersection into an RGB float image so that
the output of the intersection engine can be inspected by eye. Every pixel
evaluates the signed polygon distance of its center against the three
shapes: positive distances blend in the shape's fill color and distances
below ``line_width`` draw its outline.

Example:
    >>> from dgal.batch.polygons import PolygonBatch
    >>> from dgal.preview.raster import rasterize_pair
    >>> a = PolygonBatch.from_xywhr([[0, 0, 2, 1, 0.3]])
    >>> b = PolygonBatch.from_xywhr([[0.5, 0.2, 1, 2, -0.2]])
    >>> image = rasterize_pair(a, b, width=256, height=256)
    >>> image.shape
    (256, 256, 3)
"""

import logging
from typing import Optional, Tuple, Union

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from dgal.algebra.intersection import Algorithm
from dgal.batch import api
from dgal.batch.kernels import load_polygon
from dgal.batch.polygons import PolygonBatch
from dgal.core.numeric import NP_REAL, real, vec2
from dgal.geometry.metrics import distance_polygon_point

logger = logging.getLogger(__name__)

# Type alias for RGB colors
vec3 = tm.vec3

# First operand, second operand, intersection
PALETTE = ((0.85, 0.25, 0.2), (0.2, 0.4, 0.85), (0.15, 0.65, 0.3))
FILL_ALPHA = 0.35
BACKGROUND = (1.0, 1.0, 1.0)


@ti.func
def _rgb(c: ti.template()) -> vec3:
    return vec3(c[0], c[1], c[2])


@ti.kernel
def shade_kernel(
    verts: ti.types.ndarray(),
    counts: ti.types.ndarray(),
    extent: ti.types.ndarray(),
    line_width: real,
    image: ti.types.ndarray(),
):
    """Shade every pixel from its signed distance to the three shapes."""
    height = image.shape[0]
    width = image.shape[1]
    for row, col in ti.ndrange(height, width):
        x = extent[0] + (col + 0.5) / width * (extent[1] - extent[0])
        y = extent[3] - (row + 0.5) / height * (extent[3] - extent[2])
        color = _rgb(BACKGROUND)
        for k in ti.static(range(3)):
            poly = load_polygon(verts, counts, k)
            if poly.nvertices > 2:
                d, _edge = distance_polygon_point(poly, vec2(x, y))
                if d > 0:
                    color = color * (1 - FILL_ALPHA) + _rgb(PALETTE[k]) * FILL_ALPHA
                if ti.abs(d) < line_width:
                    color = _rgb(PALETTE[k]) * 0.6
        image[row, col, 0] = color[0]
        image[row, col, 1] = color[1]
        image[row, col, 2] = color[2]


def fit_extent(vertices: npt.NDArray, margin: float = 0.1) -> Tuple[float, float, float, float]:
    """Square (min_x, max_x, min_y, max_y) window around a set of points."""
    lo = vertices.min(axis=0)
    hi = vertices.max(axis=0)
    half = max(float((hi - lo).max()) / 2, 1e-6) * (1 + margin)
    mid = (lo + hi) / 2
    return (float(mid[0] - half), float(mid[0] + half), float(mid[1] - half), float(mid[1] + half))


def rasterize_pair(
    batch1: PolygonBatch,
    batch2: PolygonBatch,
    index: int = 0,
    *,
    width: int = 512,
    height: int = 512,
    extent: Optional[Tuple[float, float, float, float]] = None,
    line_width: Optional[float] = None,
    algorithm: Union[Algorithm, int, str] = Algorithm.DEFAULT,
) -> npt.NDArray[np.float32]:
    """Render one pair of a batch and its intersection.

    Args:
        batch1: First operands.
        batch2: Second operands.
        index: Which pair of the batches to draw.
        width: Image width in pixels.
        height: Image height in pixels.
        extent: World window (min_x, max_x, min_y, max_y); fitted to the
            two polygons when omitted.
        line_width: Outline half width in world units (defaults to 1.5
            pixels).
        algorithm: Intersection algorithm used for the overlap, as a member,
            value or name of :class:`Algorithm`.

    Returns:
        Float RGB image of shape (height, width, 3) in [0, 1].

    Raises:
        IndexError: If index is outside the batch.
        ValueError: If the image size is not positive.
    """
    if not 0 <= index < len(batch1):
        raise IndexError(f"pair index {index} out of range for batch of {len(batch1)}")
    if width <= 0 or height <= 0:
        raise ValueError(f"image size must be positive, got {width}x{height}")

    a = PolygonBatch(vertices=batch1.vertices[index : index + 1], counts=batch1.counts[index : index + 1])
    b = PolygonBatch(vertices=batch2.vertices[index : index + 1], counts=batch2.counts[index : index + 1])
    overlap = api.intersect(a, b, algorithm).polygons

    shapes = PolygonBatch(
        vertices=np.concatenate([a.vertices, b.vertices, overlap.vertices]),
        counts=np.concatenate([a.counts, b.counts, overlap.counts]),
    )
    if extent is None:
        extent = fit_extent(np.concatenate(a.to_list() + b.to_list()))
    if line_width is None:
        line_width = 1.5 * (extent[1] - extent[0]) / width

    image = np.zeros((height, width, 3), dtype=np.float32)
    logger.debug("rasterize_pair: index=%d size=%dx%d", index, width, height)
    shade_kernel(
        shapes.vertices, shapes.counts, np.asarray(extent, dtype=NP_REAL), line_width, image
    )
    return image
