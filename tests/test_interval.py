"""Unit tests for the interval module."""

import taichi as ti


class TestIntervalMembership:
    """Tests for contains (inclusive) versus surrounds (exclusive)."""

    def test_contains_includes_endpoints(self):
        from pathtrace.core.interval import Interval, interval_contains

        results = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            interval = Interval(lo=0.0, hi=1.0)
            results[0] = interval_contains(interval, 0.0)
            results[1] = interval_contains(interval, 1.0)
            results[2] = interval_contains(interval, 0.5)
            results[3] = interval_contains(interval, 1.5)

        test_kernel()
        assert results[0] == 1
        assert results[1] == 1
        assert results[2] == 1
        assert results[3] == 0

    def test_surrounds_excludes_endpoints(self):
        from pathtrace.core.interval import Interval, interval_surrounds

        results = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            interval = Interval(lo=0.0, hi=1.0)
            results[0] = interval_surrounds(interval, 0.0)
            results[1] = interval_surrounds(interval, 1.0)
            results[2] = interval_surrounds(interval, 0.5)

        test_kernel()
        assert results[0] == 0
        assert results[1] == 0
        assert results[2] == 1

    def test_empty_interval_contains_nothing(self):
        from pathtrace.core.interval import EMPTY, Interval, interval_contains, interval_size

        contains = ti.field(dtype=ti.i32, shape=())
        size = ti.field(dtype=ti.f32, shape=())
        lo, hi = EMPTY

        @ti.kernel
        def test_kernel():
            interval = Interval(lo=lo, hi=hi)
            contains[None] = interval_contains(interval, 0.0)
            size[None] = interval_size(interval)

        test_kernel()
        assert contains[None] == 0
        assert size[None] < 0.0

    def test_universe_surrounds_large_values(self):
        from pathtrace.core.interval import UNIVERSE, Interval, interval_surrounds

        result = ti.field(dtype=ti.i32, shape=())
        lo, hi = UNIVERSE

        @ti.kernel
        def test_kernel():
            result[None] = interval_surrounds(Interval(lo=lo, hi=hi), 1e30)

        test_kernel()
        assert result[None] == 1


class TestIntervalHelpers:
    def test_size(self):
        from pathtrace.core.interval import interval_size, make_interval

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = interval_size(make_interval(-1.5, 2.0))

        test_kernel()
        assert abs(result[None] - 3.5) < 1e-6

    def test_clamp(self):
        from pathtrace.core.interval import Interval, interval_clamp

        results = ti.field(dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            interval = Interval(lo=0.0, hi=0.999)
            results[0] = interval_clamp(interval, -0.5)
            results[1] = interval_clamp(interval, 0.25)
            results[2] = interval_clamp(interval, 3.0)

        test_kernel()
        assert abs(results[0] - 0.0) < 1e-6
        assert abs(results[1] - 0.25) < 1e-6
        assert abs(results[2] - 0.999) < 1e-6
