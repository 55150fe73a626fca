"""Core rendering module.

Components:
    ray: Ray data structure, vector helpers and random sampling
    interval: Ranges of the ray parameter t
    integrator: Material dispatch, background and the path loop kernels
    renderer: Renderer driving the integrator over a scene and camera

All compute-intensive operations use Taichi kernels.
"""

from .interval import (
    EMPTY,
    INFINITY,
    UNIVERSE,
    Interval,
    interval_clamp,
    interval_contains,
    interval_size,
    interval_surrounds,
    make_interval,
)
from .ray import (
    Ray,
    length_squared,
    make_ray,
    near_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_range,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)

# Note: integrator and renderer are NOT imported here since they own Taichi
# fields and import the scene package. Import them directly when needed:
#   from pathtrace.core.renderer import Renderer, render

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length_squared",
    "near_zero",
    "reflect",
    "refract",
    "schlick_reflectance",
    "random_range",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "Interval",
    "INFINITY",
    "EMPTY",
    "UNIVERSE",
    "make_interval",
    "interval_size",
    "interval_contains",
    "interval_surrounds",
    "interval_clamp",
]
