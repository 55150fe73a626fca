"""Scene module for scene management and ray-scene queries.

Components:
    intersection: Sphere storage and nearest-hit queries
    manager: Scene coordinating spheres and the shared material table
    presets: Ready-made scenes with matching camera configurations

Scene data lives in Taichi fields laid out as structure of arrays, so only
one scene is active at a time; Scene.upload() makes a scene the active one.
"""

from .intersection import (
    MAX_SPHERES,
    SceneHit,
    add_sphere,
    clear_scene,
    get_sphere_count,
    hit_scene,
    intersect,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    Scene,
    SceneConfig,
    SphereInfo,
    get_material_type,
    get_material_type_index,
    load_scene,
    save_scene,
)
from .presets import PRESETS, create_random_scene, create_three_spheres_scene

__all__ = [
    # Intersection module
    "SceneHit",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "hit_scene",
    "intersect",
    "MAX_SPHERES",
    # Manager module
    "Scene",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "load_scene",
    "save_scene",
    # Presets module
    "PRESETS",
    "create_three_spheres_scene",
    "create_random_scene",
]
