"""Lambertian (ideal diffuse) material implementation.

A diffuse surface scatters an incoming ray toward

    normal + random_unit_vector()

i.e. a point on the unit sphere tangent to the surface at the hit point.
The resulting directions cluster around the normal with a cos(theta)
distribution, so the albedo can be used directly as the attenuation without
an explicit BRDF / pdf weight.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_lambertian(albedo, point, normal)
"""

import taichi as ti
import taichi.math as tm

from pathtrace.core.ray import Ray, near_zero, random_unit_vector

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, hit_point: vec3, normal: vec3):
    """Scatter a ray off a diffuse surface.

    When the random unit vector lands almost exactly opposite the normal the
    sum is close to zero, which would produce a degenerate ray; the normal is
    used instead.

    Args:
        albedo: The diffuse reflectance color.
        hit_point: The intersection point, used as the new ray origin.
        normal: The unit surface normal facing the incident ray.

    Returns:
        A tuple of (scattered, attenuation, did_scatter). Diffuse surfaces
        never absorb, so did_scatter is always 1.
    """
    scatter_direction = normal + random_unit_vector()

    if near_zero(scatter_direction):
        scatter_direction = normal

    did_scatter = 1
    scattered = Ray(origin=hit_point, direction=scatter_direction)
    return scattered, albedo, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 1024

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials."""
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.
            Each component must be in [0, 1] so a bounce never adds energy.

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = [float(albedo[0]), float(albedo[1]), float(albedo[2])]
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, hit_point: vec3, normal: vec3):
    """Scatter off a registered Lambertian material, looked up by index."""
    return scatter_lambertian(get_lambertian_albedo(material_idx), hit_point, normal)
