"""Scene-level sphere storage and nearest-hit queries.

The scene keeps its spheres in Taichi fields laid out as structure of arrays.
`hit_scene` scans every sphere and keeps the closest intersection, shrinking
the upper bound of the search interval each time a nearer hit is found. No
acceleration structure is used; the cost is linear in the sphere count.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.scene.intersection import add_sphere, clear_scene, hit_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
    >>> # Use hit_scene within a Taichi kernel
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtrace.core.interval import Interval
from pathtrace.core.ray import Ray
from pathtrace.geometry.sphere import HitRecord, Sphere, hit_sphere, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres from the scene.

    Only the count is reset; stale field data is overwritten on the next add.
    """
    num_spheres[None] = 0


def add_sphere(
    center: tuple[float, float, float],
    radius: float,
    material_id: int = 0,
) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere. Negative values are clamped to 0.
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = [float(center[0]), float(center[1]), float(center[2])]
    sphere_radii[idx] = max(0.0, float(radius))
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_sphere(index: ti.i32) -> Sphere:
    return Sphere(
        center=sphere_centers[index],
        radius=sphere_radii[index],
        material_id=sphere_material_ids[index],
    )


@ti.func
def hit_scene(ray: Ray, ray_t: Interval) -> HitRecord:
    """Find the nearest intersection of a ray with any sphere in the scene.

    Each sphere is tested against [ray_t.lo, closest_so_far]. Because the
    bound only shrinks on a strictly nearer hit, equidistant spheres resolve
    to the first one stored.

    Args:
        ray: The ray to trace.
        ray_t: Open interval of acceptable t values.

    Returns:
        The closest HitRecord, or a miss record (hit == 0).
    """
    closest_so_far = ray_t.hi
    result = make_miss_record()

    for i in range(num_spheres[None]):
        rec = hit_sphere(ray, get_sphere(i), Interval(lo=ray_t.lo, hi=closest_so_far))
        if rec.hit == 1:
            closest_so_far = rec.t
            result = rec

    return result


# =============================================================================
# Python-side Queries
# =============================================================================


@dataclass
class SceneHit:
    """Host-side copy of a HitRecord returned by intersect()."""

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    front_face: bool
    material_id: int


_probe_record = HitRecord.field(shape=())


@ti.kernel
def _probe_kernel(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
):
    ray = Ray(origin=vec3(ox, oy, oz), direction=vec3(dx, dy, dz))
    _probe_record[None] = hit_scene(ray, Interval(lo=t_min, hi=t_max))


def intersect(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    t_min: float = 0.001,
    t_max: float = float("inf"),
) -> SceneHit | None:
    """Run hit_scene for a single ray from Python.

    Returns:
        The nearest hit inside (t_min, t_max), or None on a miss.
    """
    _probe_kernel(
        float(origin[0]),
        float(origin[1]),
        float(origin[2]),
        float(direction[0]),
        float(direction[1]),
        float(direction[2]),
        float(t_min),
        float(t_max),
    )
    rec = _probe_record[None]
    if rec.hit == 0:
        return None
    return SceneHit(
        t=float(rec.t),
        point=(float(rec.point[0]), float(rec.point[1]), float(rec.point[2])),
        normal=(float(rec.normal[0]), float(rec.normal[1]), float(rec.normal[2])),
        front_face=bool(rec.front_face),
        material_id=int(rec.material_id),
    )
