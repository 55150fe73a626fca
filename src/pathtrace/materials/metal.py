"""Metal (specular reflective) material implementation.

Metals mirror the incoming ray about the surface normal. A fuzz parameter
jitters the mirrored direction by a random point inside a sphere of radius
`fuzz`, giving brushed or rough reflections:

    scattered = reflect(unit(d), n) + fuzz * random_in_unit_sphere()

When the jitter pushes the direction below the surface the ray is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_direction, point, normal
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtrace.core.ray import Ray, random_in_unit_sphere, reflect

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
):
    """Scatter a ray off a metal surface.

    Args:
        albedo: The reflective color.
        fuzz: Reflection jitter radius in [0, 1].
        incident_direction: The incoming ray direction (any length).
        hit_point: The intersection point, used as the new ray origin.
        normal: The unit surface normal facing the incident ray.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where did_scatter is
        0 when the fuzzed direction points into the surface.
    """
    reflected = reflect(tm.normalize(incident_direction), normal)
    scatter_direction = reflected + fuzz * random_in_unit_sphere()

    did_scatter = 1
    if tm.dot(scatter_direction, normal) <= 0.0:
        did_scatter = 0

    scattered = Ray(origin=hit_point, direction=scatter_direction)
    return scattered, albedo, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 1024

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials."""
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
            Each component must be in [0, 1].
        fuzz: Reflection jitter radius. Values outside [0, 1] are clamped.

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

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[idx] = [float(albedo[0]), float(albedo[1]), float(albedo[2])]
    metal_fuzzes[idx] = min(max(float(fuzz), 0.0), 1.0)
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
):
    """Scatter off a registered metal material, looked up by index."""
    return scatter_metal(
        get_metal_albedo(material_idx),
        get_metal_fuzz(material_idx),
        incident_direction,
        hit_point,
        normal,
    )
