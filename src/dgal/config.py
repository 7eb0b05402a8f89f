"""Runtime configuration for the geometry kernels.

Scalar precision and polygon capacity are baked into the Taichi types when
:mod:`dgal.geometry.primitives` is imported, so they are resolved once from
the environment at import time:

    DGAL_PRECISION      "f32" (default) or "f64"
    DGAL_MAX_VERTICES   polygon capacity, 3..128 (default 16)

Example:
    >>> import os
    >>> os.environ["DGAL_PRECISION"] = "f64"
    >>> from dgal.config import init
    >>> init()  # ti.init(arch=ti.cpu, default_fp=ti.f64)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import taichi as ti

logger = logging.getLogger(__name__)

PRECISION_ENV = "DGAL_PRECISION"
CAPACITY_ENV = "DGAL_MAX_VERTICES"

PRECISIONS = ("f32", "f64")

# Provenance flags keep 7 bits for the vertex index
MAX_CAPACITY = 128
MIN_CAPACITY = 3


@dataclass(frozen=True)
class GeometryConfig:
    """Compile-time parameters of the geometry kernels.

    Attributes:
        precision: Scalar width of all coordinates ("f32" or "f64").
        max_vertices: Vertex capacity of every polygon, including the
            outputs of intersection and merge.
    """

    precision: str = "f32"
    max_vertices: int = 16

    def __post_init__(self) -> None:
        if self.precision not in PRECISIONS:
            raise ValueError(
                f"precision must be one of {PRECISIONS}, got {self.precision!r}"
            )
        if not MIN_CAPACITY <= self.max_vertices <= MAX_CAPACITY:
            raise ValueError(
                f"max_vertices must be in [{MIN_CAPACITY}, {MAX_CAPACITY}], "
                f"got {self.max_vertices}"
            )

    @property
    def taichi_dtype(self) -> Any:
        """Taichi scalar type matching the precision."""
        return ti.f64 if self.precision == "f64" else ti.f32

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> GeometryConfig:
        """Build a configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``).

        Returns:
            The resolved configuration.

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        precision = env.get(PRECISION_ENV, cls.precision).strip().lower()
        capacity = env.get(CAPACITY_ENV)
        if capacity is None:
            return cls(precision=precision)
        try:
            max_vertices = int(capacity)
        except ValueError:
            raise ValueError(
                f"{CAPACITY_ENV} must be an integer, got {capacity!r}"
            ) from None
        return cls(precision=precision, max_vertices=max_vertices)


SETTINGS = GeometryConfig.from_env()


def init(arch: Any = None, *, debug: bool = False, **kwargs: Any) -> GeometryConfig:
    """Initialize Taichi for the configured precision.

    The default float type is set to the geometry precision so that untyped
    float locals inside kernels have the same width as the coordinates.

    Args:
        arch: Taichi back end (defaults to ``ti.cpu``).
        debug: Enable kernel assertions (output capacity).
        **kwargs: Forwarded to ``ti.init``.

    Returns:
        The active configuration.
    """
    if arch is None:
        arch = ti.cpu
    ti.init(arch=arch, default_fp=SETTINGS.taichi_dtype, debug=debug, **kwargs)
    logger.info(
        "Taichi initialised: precision=%s max_vertices=%d debug=%s",
        SETTINGS.precision,
        SETTINGS.max_vertices,
        debug,
    )
    return SETTINGS
