"""Materials module for light scattering models.

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Glass-like materials with refraction (Schlick reflectance)

Each material provides a scatter function returning
(scattered_ray, attenuation, did_scatter), and a registry of parameters in
Taichi fields addressed by a type-local index.
"""

from .dielectric import (
    add_dielectric_material,
    cannot_refract,
    clear_dielectric_materials,
    fresnel_reflectance,
    get_dielectric_ior,
    get_dielectric_material_count,
    refraction_ratio,
    scatter_dielectric,
    scatter_dielectric_by_id,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_albedo",
    "get_lambertian_material_count",
    # Metal
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_albedo",
    "get_metal_fuzz",
    "get_metal_material_count",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "refraction_ratio",
    "cannot_refract",
    "fresnel_reflectance",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_ior",
    "get_dielectric_material_count",
]
