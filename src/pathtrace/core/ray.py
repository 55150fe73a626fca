"""Ray data structure and sampling utilities for the path tracer.

This module provides the Ray dataclass together with the small set of vector
and random-sampling helpers that the camera and the material models share.
Everything here is a Taichi function so it can be inlined into kernels.

Ray directions are not normalized by the camera: a primary ray points from
the lens sample to the pixel sample, so its length varies across the image.
Helpers that need a unit vector normalize on their own.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def probe() -> vec3:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -2.0))
    ...     return ray_at(ray, 0.5)  # (0, 0, -1)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A half-line with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Squared Euclidean length of a vector."""
    return tm.dot(v, v)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Used to catch a degenerate diffuse scatter direction, which happens when
    the random unit vector lands almost exactly opposite the normal.

    Args:
        v: The vector to check.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a unit normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        incident - 2 * dot(incident, normal) * normal
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, eta_ratio: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface with Snell's law.

    The refracted ray is split into the components perpendicular and parallel
    to the normal. Callers must rule out total internal reflection first; in
    that case the parallel term is computed from the absolute value and the
    result is not physically meaningful.

    Args:
        unit_incident: The incoming direction (unit length).
        normal: The surface normal facing the incident ray (unit length).
        eta_ratio: Ratio of refractive indices, n_incident / n_transmitted.

    Returns:
        The refracted direction (unit length for valid inputs).
    """
    cos_theta = tm.min(tm.dot(-unit_incident, normal), 1.0)
    r_out_perp = eta_ratio * (unit_incident + cos_theta * normal)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, eta_ratio: ti.f32) -> ti.f32:
    """Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between the incident ray and the normal.
        eta_ratio: Ratio of refractive indices.

    Returns:
        The approximate reflectance in [0, 1].
    """
    r0 = ((1.0 - eta_ratio) / (1.0 + eta_ratio)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_range(lo: ti.f32, hi: ti.f32) -> ti.f32:
    """Uniform random float in [lo, hi)."""
    return lo + (hi - lo) * ti.random(ti.f32)


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point inside the unit sphere.

    Uses rejection sampling; the loop is capped so a kernel can never spin
    forever, which leaves a vanishingly small chance of returning the last
    rejected candidate.

    Returns:
        A random point with length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):
        if not found:
            p = vec3(
                random_range(-1.0, 1.0),
                random_range(-1.0, 1.0),
                random_range(-1.0, 1.0),
            )
            if length_squared(p) < 1.0:
                found = True
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere.

    Points too close to the origin are rejected before normalizing, so the
    result never carries a blown-up rounding error.
    """
    p = vec3(0.0, 0.0, 1.0)
    found = False
    for _ in range(100):
        if not found:
            candidate = random_in_unit_sphere()
            lensq = length_squared(candidate)
            if lensq > 1e-30:
                p = candidate / ti.sqrt(lensq)
                found = True
    return p


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used for sampling the camera's defocus disk.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):
        if not found:
            p = vec3(random_range(-1.0, 1.0), random_range(-1.0, 1.0), 0.0)
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    return p
