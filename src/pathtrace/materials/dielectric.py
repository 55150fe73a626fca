"""Dielectric (glass/water) material implementation.

A dielectric either reflects or refracts each incoming ray:

    - Snell's law gives the refracted direction: n1 sin(theta1) = n2 sin(theta2)
    - When ratio * sin(theta) > 1 no refracted ray exists (total internal
      reflection) and the ray reflects
    - Otherwise Schlick's approximation gives the reflection probability,
      which climbs toward 1 at grazing angles

Clear glass absorbs nothing, so the attenuation is always white. A refractive
index below 1 models a pocket of thinner medium, e.g. an air bubble in water.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_direction, point, normal, front_face
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtrace.core.ray import Ray, reflect, refract, schlick_reflectance

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Ratio n_incident / n_transmitted for a ray entering or leaving."""
    ratio = ior
    if front_face == 1:
        ratio = 1.0 / ior
    return ratio


@ti.func
def cannot_refract(ior: ti.f32, incident_direction: vec3, normal: vec3, front_face: ti.i32) -> ti.i32:
    """Check whether the ray undergoes total internal reflection.

    Returns:
        1 if no refracted ray exists, 0 otherwise.
    """
    ratio = refraction_ratio(ior, front_face)
    unit_direction = tm.normalize(incident_direction)
    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))
    return ratio * sin_theta > 1.0


@ti.func
def fresnel_reflectance(ior: ti.f32, incident_direction: vec3, normal: vec3, front_face: ti.i32) -> ti.f32:
    """Schlick reflectance for the given incidence, in [0, 1]."""
    ratio = refraction_ratio(ior, front_face)
    cos_theta = tm.min(-tm.dot(tm.normalize(incident_direction), normal), 1.0)
    return schlick_reflectance(cos_theta, ratio)


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Scatter a ray through a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        hit_point: The intersection point, used as the new ray origin.
        normal: The unit surface normal facing the incident ray.
        front_face: 1 if the ray enters the material, 0 if it leaves it.

    Returns:
        A tuple of (scattered, attenuation, did_scatter). Dielectrics always
        scatter and never tint, so attenuation is (1, 1, 1).
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    ratio = refraction_ratio(ior, front_face)

    unit_direction = tm.normalize(incident_direction)
    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))

    direction = vec3(0.0, 0.0, 0.0)
    if ratio * sin_theta > 1.0 or schlick_reflectance(cos_theta, ratio) > ti.random(ti.f32):
        direction = reflect(unit_direction, normal)
    else:
        direction = refract(unit_direction, normal, ratio)

    did_scatter = 1
    scattered = Ray(origin=hit_point, direction=direction)
    return scattered, attenuation, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction relative to the enclosing medium. Default is
            1.5 (typical glass). Values below 1.0 are allowed and describe a
            thinner medium inside a denser one.

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is not positive.
    """
    if ior <= 0.0:
        raise ValueError(f"Index of refraction = {ior} must be positive.")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = float(ior)
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Scatter off a registered dielectric material, looked up by index."""
    return scatter_dielectric(
        get_dielectric_ior(material_idx), incident_direction, hit_point, normal, front_face
    )
