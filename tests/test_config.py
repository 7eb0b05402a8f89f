"""Unit tests for configuration and numeric traits.

Tests cover:
- GeometryConfig validation
- Environment overrides
- Precision dependent constants
"""

import pytest
import taichi as ti


class TestGeometryConfig:
    """Tests for the GeometryConfig dataclass."""

    def test_defaults(self):
        """Default configuration is single precision with 16 vertices."""
        from dgal.config import GeometryConfig

        config = GeometryConfig()
        assert config.precision == "f32"
        assert config.max_vertices == 16
        assert config.taichi_dtype == ti.f32

    def test_f64_dtype(self):
        """f64 precision maps to ti.f64."""
        from dgal.config import GeometryConfig

        assert GeometryConfig(precision="f64").taichi_dtype == ti.f64

    def test_invalid_precision_raises(self):
        """Unknown precision names are rejected."""
        from dgal.config import GeometryConfig

        with pytest.raises(ValueError, match="precision"):
            GeometryConfig(precision="f16")

    @pytest.mark.parametrize("capacity", [0, 2, 129, 1000])
    def test_invalid_capacity_raises(self, capacity):
        """Capacity must leave 7 bits for the flag index."""
        from dgal.config import GeometryConfig

        with pytest.raises(ValueError, match="max_vertices"):
            GeometryConfig(max_vertices=capacity)

    def test_config_is_frozen(self):
        """Configuration cannot change after creation."""
        import dataclasses

        from dgal.config import GeometryConfig

        config = GeometryConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.precision = "f64"


class TestFromEnv:
    """Tests for environment variable parsing."""

    def test_empty_environment(self):
        """Missing variables fall back to the defaults."""
        from dgal.config import GeometryConfig

        assert GeometryConfig.from_env({}) == GeometryConfig()

    def test_overrides(self):
        """Both variables are read, precision case-insensitively."""
        from dgal.config import GeometryConfig

        config = GeometryConfig.from_env({"DGAL_PRECISION": " F64 ", "DGAL_MAX_VERTICES": "32"})
        assert config.precision == "f64"
        assert config.max_vertices == 32

    def test_non_integer_capacity_raises(self):
        """A non-numeric capacity is a ValueError."""
        from dgal.config import GeometryConfig

        with pytest.raises(ValueError, match="DGAL_MAX_VERTICES"):
            GeometryConfig.from_env({"DGAL_MAX_VERTICES": "many"})


class TestNumericTraits:
    """Tests for the constants derived from the active configuration."""

    def test_session_runs_in_double_precision(self):
        """The test session configures f64 before importing dgal."""
        import numpy as np

        from dgal.config import SETTINGS
        from dgal.core.numeric import EPS, NP_REAL, real

        assert SETTINGS.precision == "f64"
        assert real == ti.f64
        assert NP_REAL == np.float64
        assert EPS == 6e-15

    def test_epsilon_tables(self):
        """Epsilon tables cover both precisions."""
        from dgal.core.numeric import CLIP_EPSILON, EPSILON

        assert EPSILON == {"f32": 3e-7, "f64": 6e-15}
        assert CLIP_EPSILON["f32"] > CLIP_EPSILON["f64"]

    def test_flag_helpers(self):
        """Flags pack the index above the operand bit."""
        from dgal.core.numeric import flag_index, flag_operand, make_flag

        result = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            flag = make_flag(5, 1)
            result[0] = flag
            result[1] = flag_index(flag)
            result[2] = flag_operand(flag)

        test_kernel()
        assert result[0] == 11
        assert result[1] == 5
        assert result[2] == 1

    def test_slope_of_leftward_edge_is_minus_pi(self):
        """A horizontal leftward edge starts the sweep at -pi."""
        import math

        from dgal.core.numeric import real, slope, vec2

        result = ti.field(dtype=real, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = slope(vec2(1.0, 0.0), vec2(0.0, 0.0))

        test_kernel()
        assert abs(result[None] + math.pi) < 1e-12
