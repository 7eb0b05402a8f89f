"""Batch module.

Components:
    polygons: PolygonBatch container and pair validation
    kernels: Taichi kernels over ndarray batches
    api: numpy in, numpy out forward and gradient functions
"""

from .polygons import PolygonBatch, check_pair

__all__ = ["PolygonBatch", "check_pair"]
