"""Host-side container for batches of convex polygons.

A batch stores B polygons in fixed-capacity numpy arrays, the layout the
Taichi kernels read directly:

    vertices: (B, MAX_VERTICES, 2) array of the configured float type
    counts:   (B,) int32 array of valid vertex counts

Rows past ``counts[b]`` are padding and always zero. MAX_VERTICES is 16
unless DGAL_MAX_VERTICES is set before import, and pairwise operations need
n1 + n2 <= MAX_VERTICES.

Example:
    >>> from dgal.batch.polygons import PolygonBatch
    >>> boxes = PolygonBatch.from_xywhr([[0, 0, 2, 1, 0.3], [1, 1, 1, 1, 0]])
    >>> len(boxes)
    2
    >>> square = PolygonBatch.from_list([[(0, 0), (1, 0), (1, 1), (0, 1)]])
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
import numpy.typing as npt

from dgal.core.numeric import MAX_VERTICES, NP_REAL


@dataclass
class PolygonBatch:
    """A batch of counter-clockwise convex polygons.

    Attributes:
        vertices: Vertex storage of shape (B, MAX_VERTICES, 2).
        counts: Vertex count of every polygon, shape (B,).
    """

    vertices: npt.NDArray
    counts: npt.NDArray

    def __post_init__(self) -> None:
        self.vertices = np.ascontiguousarray(self.vertices, dtype=NP_REAL)
        self.counts = np.ascontiguousarray(self.counts, dtype=np.int32)
        if self.vertices.ndim != 3 or self.vertices.shape[1:] != (MAX_VERTICES, 2):
            raise ValueError(
                f"vertices must have shape (B, {MAX_VERTICES}, 2), got {self.vertices.shape}"
            )
        if self.counts.shape != (self.vertices.shape[0],):
            raise ValueError(
                f"counts must have shape ({self.vertices.shape[0]},), got {self.counts.shape}"
            )
        if np.any(self.counts < 0) or np.any(self.counts > MAX_VERTICES):
            raise ValueError(f"vertex counts must be in [0, {MAX_VERTICES}]")

    def __len__(self) -> int:
        return int(self.vertices.shape[0])

    @classmethod
    def empty(cls, size: int) -> PolygonBatch:
        """A batch of ``size`` polygons without vertices."""
        return cls(
            vertices=np.zeros((size, MAX_VERTICES, 2), dtype=NP_REAL),
            counts=np.zeros(size, dtype=np.int32),
        )

    @classmethod
    def from_arrays(cls, vertices: npt.ArrayLike, counts: Optional[npt.ArrayLike] = None) -> PolygonBatch:
        """Build a batch from a dense (B, N, 2) vertex array.

        Args:
            vertices: Vertices of shape (B, N, 2) with N <= MAX_VERTICES.
            counts: Vertex count per polygon (defaults to N for all).

        Returns:
            The padded batch.

        Raises:
            ValueError: If the shapes do not match or N exceeds the capacity.
        """
        dense = np.asarray(vertices, dtype=NP_REAL)
        if dense.ndim != 3 or dense.shape[2] != 2:
            raise ValueError(f"vertices must have shape (B, N, 2), got {dense.shape}")
        size, n = dense.shape[:2]
        if n > MAX_VERTICES:
            raise ValueError(f"polygons have {n} vertices, capacity is {MAX_VERTICES}")
        if counts is None:
            counts = np.full(size, n, dtype=np.int32)
        counts = np.asarray(counts, dtype=np.int32)
        if counts.shape != (size,):
            raise ValueError(f"counts must have shape ({size},), got {counts.shape}")
        if np.any(counts > n):
            raise ValueError("vertex counts exceed the provided vertices")

        batch = cls.empty(size)
        batch.vertices[:, :n] = dense
        batch.counts[:] = counts
        batch._clear_padding()
        return batch

    @classmethod
    def from_list(cls, polygons: Sequence[Sequence[Tuple[float, float]]]) -> PolygonBatch:
        """Build a batch from a list of vertex lists.

        Raises:
            ValueError: If a polygon exceeds the capacity.
        """
        batch = cls.empty(len(polygons))
        for b, polygon in enumerate(polygons):
            points = np.asarray(polygon, dtype=NP_REAL).reshape(-1, 2)
            if len(points) > MAX_VERTICES:
                raise ValueError(
                    f"polygon {b} has {len(points)} vertices, capacity is {MAX_VERTICES}"
                )
            batch.vertices[b, : len(points)] = points
            batch.counts[b] = len(points)
        return batch

    @classmethod
    def from_xywhr(cls, boxes: npt.ArrayLike) -> PolygonBatch:
        """Build rotated rectangles from (x, y, w, h, r) rows.

        Corner order matches the kernel constructor poly2_from_xywhr.
        """
        params = np.asarray(boxes, dtype=np.float64).reshape(-1, 5)
        x, y, w, h, r = params.T
        dxsin = w * np.sin(r) / 2
        dxcos = w * np.cos(r) / 2
        dysin = h * np.sin(r) / 2
        dycos = h * np.cos(r) / 2
        corners = np.stack(
            [
                np.stack([x - dxcos + dysin, y - dxsin - dycos], axis=-1),
                np.stack([x + dxcos + dysin, y + dxsin - dycos], axis=-1),
                np.stack([x + dxcos - dysin, y + dxsin + dycos], axis=-1),
                np.stack([x - dxcos - dysin, y - dxsin + dycos], axis=-1),
            ],
            axis=1,
        )
        return cls.from_arrays(corners)

    @classmethod
    def from_aabox(cls, boxes: npt.ArrayLike) -> PolygonBatch:
        """Build four-vertex polygons from (min_x, max_x, min_y, max_y) rows."""
        bounds = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
        min_x, max_x, min_y, max_y = bounds.T
        corners = np.stack(
            [
                np.stack([min_x, min_y], axis=-1),
                np.stack([max_x, min_y], axis=-1),
                np.stack([max_x, max_y], axis=-1),
                np.stack([min_x, max_y], axis=-1),
            ],
            axis=1,
        )
        return cls.from_arrays(corners)

    @classmethod
    def regular(cls, n: int, radius: float = 1.0, center: Tuple[float, float] = (0.0, 0.0),
                phase: float = 0.0) -> PolygonBatch:
        """A single regular n-gon, counter-clockwise."""
        if not 3 <= n <= MAX_VERTICES:
            raise ValueError(f"n must be in [3, {MAX_VERTICES}], got {n}")
        angles = phase + 2 * math.pi * np.arange(n) / n
        points = np.stack(
            [center[0] + radius * np.cos(angles), center[1] + radius * np.sin(angles)], axis=-1
        )
        return cls.from_arrays(points[None])

    def to_list(self) -> List[npt.NDArray]:
        """Per-polygon (n, 2) vertex arrays without padding."""
        return [self.vertices[b, : self.counts[b]].copy() for b in range(len(self))]

    def _clear_padding(self) -> None:
        mask = np.arange(MAX_VERTICES)[None, :] >= self.counts[:, None]
        self.vertices[mask] = 0


def check_pair(batch1: PolygonBatch, batch2: PolygonBatch) -> None:
    """Validate two batches for a pairwise operation.

    Raises:
        ValueError: If the batch sizes differ.
        RuntimeError: If a pair has more vertices than an output polygon
            can hold. With the default capacity of 16 this already rejects
            two 9-gons; raise DGAL_MAX_VERTICES before importing dgal.
    """
    if len(batch1) != len(batch2):
        raise ValueError(f"batch sizes differ: {len(batch1)} vs {len(batch2)}")
    total = batch1.counts + batch2.counts
    if len(total) and int(total.max()) > MAX_VERTICES:
        worst = int(np.argmax(total))
        raise RuntimeError(
            f"Output polygon capacity ({MAX_VERTICES}) exceeded: pair {worst} has "
            f"{int(total[worst])} vertices, raise DGAL_MAX_VERTICES"
        )
