"""Closed real intervals over the ray parameter t.

An Interval bounds where along a ray an intersection may be accepted. The
scene search uses the exclusive `interval_surrounds` test so a scattered ray
leaving a surface does not immediately re-hit it at t ~ 0; pixel sinks use
`interval_clamp` to pull colors into range.

An interval with lo > hi is empty. Nothing checks for this at runtime, all
membership tests simply fail.
"""

import taichi as ti
import taichi.math as tm

INFINITY = tm.inf


@ti.dataclass
class Interval:
    """A closed range [lo, hi].

    Attributes:
        lo: Lower bound.
        hi: Upper bound.
    """

    lo: ti.f32
    hi: ti.f32


@ti.func
def make_interval(lo: ti.f32, hi: ti.f32) -> Interval:
    """Create an interval inside a kernel."""
    return Interval(lo=lo, hi=hi)


@ti.func
def interval_size(interval: Interval) -> ti.f32:
    return interval.hi - interval.lo


@ti.func
def interval_contains(interval: Interval, x: ti.f32) -> ti.i32:
    """Inclusive membership test: lo <= x <= hi."""
    return interval.lo <= x and x <= interval.hi


@ti.func
def interval_surrounds(interval: Interval, x: ti.f32) -> ti.i32:
    """Exclusive membership test: lo < x < hi."""
    return interval.lo < x and x < interval.hi


@ti.func
def interval_clamp(interval: Interval, x: ti.f32) -> ti.f32:
    return tm.clamp(x, interval.lo, interval.hi)


# Python-side (lo, hi) bounds
EMPTY = (INFINITY, -INFINITY)
UNIVERSE = (-INFINITY, INFINITY)
