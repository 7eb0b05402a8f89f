"""Differentiable 2D convex geometry kernels built on Taichi.

This package provides allocation-free geometric primitives and algorithms that
run identically on CPU and GPU back ends, each paired with a hand-written
reverse-mode gradient:
- Convex polygon intersection (rotating caliper and Sutherland-Hodgeman)
- Convex hull merge of two polygons
- Overlap metrics (IoU, GIoU, DIoU) for polygons and axis-aligned boxes
- Areas, diameters, centroids and signed distances

Scalar precision and polygon capacity are fixed at import time, see
:mod:`dgal.config`.

Subpackages:
    core: Numeric traits (scalar type, epsilons, index helpers)
    geometry: Primitive types, constructors and scalar metrics
    algebra: Intersection and merge engines, composite overlap metrics
    grad: Adjoint (gradient) functions mirroring every forward function
    batch: numpy facing batch interface dispatching Taichi kernels
    preview: Rasterisation and PNG export for inspecting results
"""

__version__ = "0.1.0"
