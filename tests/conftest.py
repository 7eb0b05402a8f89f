"""Pytest configuration for the geometry kernel tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.

The suite runs in double precision so that finite-difference gradient
checks are meaningful. Precision is fixed when ``dgal`` is first imported,
so the environment variable is set before any test module imports it.
"""

import os

os.environ.setdefault("DGAL_PRECISION", "f64")

import pytest  # noqa: E402
import taichi as ti  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    from dgal.config import init

    init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture
def rng():
    """Deterministic random generator for randomized geometric inputs."""
    import numpy as np

    return np.random.default_rng(1234)
