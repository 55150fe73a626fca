"""Scene container coordinating spheres and their materials.

The Scene owns a single material table. Every material, whatever its type,
gets a unified material_id; spheres refer to materials by that id, so many
spheres can share one material for the lifetime of the scene. Internally each
id maps to (material_type, type_local_index) so the path tracer can dispatch
to the right scatter function and look up parameters in the per-type
registries.

The sphere and material storage are module-level Taichi fields shared by all
scenes; the Scene that last wrote them is the active one. Each Scene keeps its
own record of materials and spheres, and any operation that touches the
storage first re-uploads that record when another scene has taken over. Ids
and counts always come from the record, so several scenes can be built and
queried side by side.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.scene.manager import Scene
    >>> scene = Scene()
    >>> ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
    >>> scene.add_sphere(center=(0, -100.5, -1), radius=100, material_id=ground)
    >>> glass = scene.add_dielectric_material(ior=1.5)
    >>> scene.add_sphere(center=(-1, 0, -1), radius=0.5, material_id=glass)
"""

import json
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

import taichi as ti

from pathtrace.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from pathtrace.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from pathtrace.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from pathtrace.scene.intersection import (
    MAX_SPHERES,
    SceneHit,
    add_sphere,
    clear_scene,
    intersect,
)


class MaterialType(IntEnum):
    """Closed set of material models, used as the dispatch tag."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 3072

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g. if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a material ID inside a kernel.

    Returns:
        The MaterialType as an integer, or -1 for an unknown ID.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the index into the type-specific registry for a material ID.

    Returns:
        The type-local index, or -1 for an unknown ID.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material.
        type_index: The index within the type-specific material array.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center: The center of the sphere.
        radius: The radius of the sphere after clamping to >= 0.
        material_id: The material ID assigned to the sphere.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Serializable description of a scene.

    Attributes:
        materials: Material entries, each with a "type" key and parameters.
        spheres: Sphere entries with "center", "radius" and "material_id".
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


class Scene:
    """An ordered collection of spheres bound to a shared material table.

    Attributes:
        materials: MaterialInfo for all registered materials, indexed by id.
        spheres: SphereInfo for all spheres, in insertion order.

    Only one scene at a time is held in the Taichi fields; see upload().

    Example:
        >>> scene = Scene()
        >>> red = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, red)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
    """

    # The scene whose contents are currently in the Taichi fields
    _active_scene: "Scene | None" = None

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()
        Scene._active_scene = self

    def clear(self) -> None:
        """Remove every sphere and material."""
        self._clear_all()

    def upload(self) -> None:
        """Rewrite the shared Taichi storage from this scene's record.

        Material ids and sphere order are preserved. Afterwards this is the
        active scene.
        """
        self.from_config(self.to_config())

    def is_active(self) -> bool:
        """Whether the shared Taichi storage currently holds this scene."""
        return Scene._active_scene is self

    def _ensure_active(self) -> None:
        if not self.is_active():
            self.upload()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        material_id = len(self.materials)
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a Lambertian (diffuse) material.

        Args:
            albedo: The diffuse reflectance color as (R, G, B), each in [0, 1].

        Returns:
            The unified material ID.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        self._ensure_active()
        type_index = add_lambertian_material(albedo)
        return self._register_material(
            MaterialType.LAMBERTIAN, type_index, {"albedo": tuple(albedo)}
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal (specular reflective) material.

        Args:
            albedo: The reflective color as (R, G, B), each in [0, 1].
            fuzz: Reflection jitter radius, clamped to [0, 1].

        Returns:
            The unified material ID.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        self._ensure_active()
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL,
            type_index,
            {"albedo": tuple(albedo), "fuzz": min(max(float(fuzz), 0.0), 1.0)},
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material.

        Args:
            ior: Index of refraction. Default is 1.5 (glass).

        Returns:
            The unified material ID.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If IOR is not positive.
        """
        self._ensure_active()
        type_index = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": float(ior)})

    def get_material_count(self) -> int:
        return len(self.materials)

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Sphere Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere bound to an existing material.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius. Negative values are clamped to 0.
            material_id: A unified material ID from add_*_material().

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If material_id is not registered.
        """
        if not 0 <= material_id < len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")

        self._ensure_active()

        center = (float(center[0]), float(center[1]), float(center[2]))
        radius = max(0.0, float(radius))
        sphere_index = add_sphere(center, radius, material_id)

        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=center,
                radius=radius,
                material_id=material_id,
            )
        )
        return sphere_index

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new metal material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        """Add a sphere with a new dielectric material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        return len(self.spheres)

    def hit(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        t_min: float = 0.001,
        t_max: float = float("inf"),
    ) -> SceneHit | None:
        """Find the nearest sphere hit along a ray, from Python.

        Args:
            origin: Ray origin.
            direction: Ray direction (any non-zero length).
            t_min: Exclusive lower bound on t.
            t_max: Exclusive upper bound on t.

        Returns:
            A SceneHit for the nearest intersection, or None on a miss.
        """
        self._ensure_active()
        return intersect(origin, direction, t_min, t_max)

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()

        for mat in self.materials:
            mat_config: dict[str, Any] = {"type": mat.material_type.name.lower()}
            for key, value in mat.params.items():
                mat_config[key] = list(value) if isinstance(value, tuple) else value
            config.materials.append(mat_config)

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Replace the scene contents with a configuration.

        Raises:
            ValueError: If the configuration contains an unknown material type
                or invalid parameters.
        """
        self.clear()

        # Materials first so sphere material ids resolve
        for mat_config in config.materials:
            mat_type = str(mat_config.get("type", "")).lower()
            if mat_type == "lambertian":
                albedo = mat_config.get("albedo", [0.5, 0.5, 0.5])
                self.add_lambertian_material((albedo[0], albedo[1], albedo[2]))
            elif mat_type == "metal":
                albedo = mat_config.get("albedo", [0.8, 0.8, 0.8])
                self.add_metal_material((albedo[0], albedo[1], albedo[2]), mat_config.get("fuzz", 0.0))
            elif mat_type == "dielectric":
                self.add_dielectric_material(mat_config.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for sphere_config in config.spheres:
            center = sphere_config.get("center", [0.0, 0.0, 0.0])
            self.add_sphere(
                (center[0], center[1], center[2]),
                sphere_config.get("radius", 1.0),
                sphere_config.get("material_id", 0),
            )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a JSON-compatible dictionary."""
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with 'materials' and 'spheres' keys."""
        self.from_config(
            SceneConfig(
                materials=data.get("materials", []),
                spheres=data.get("spheres", []),
            )
        )

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS


def save_scene(scene: Scene, filepath: str | Path) -> None:
    """Write a scene to a JSON file."""
    Path(filepath).write_text(json.dumps(scene.to_dict(), indent=2))


def load_scene(filepath: str | Path) -> Scene:
    """Build a new Scene from a JSON file written by save_scene.

    Raises:
        ValueError: If the file contents describe an invalid scene.
    """
    data = json.loads(Path(filepath).read_text())
    scene = Scene()
    scene.from_dict(data)
    return scene
