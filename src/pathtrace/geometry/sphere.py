"""Sphere primitive with ray-sphere intersection.

This module provides the Sphere and HitRecord dataclasses, the front-face
normal correction shared by primitives, and the intersection routine.

The intersection is solved in the half-b form. With oc pointing from the ray
origin to the sphere center:

    a = dot(d, d)
    h = dot(d, oc)
    c = dot(oc, oc) - r^2

the roots of a*t^2 - 2*h*t + c = 0 are (h -/+ sqrt(h^2 - a*c)) / a, which
drops the factors of 2 and 4 of the textbook quadratic.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtrace.core.interval import Interval, interval_surrounds
from pathtrace.core.ray import Ray, ray_at

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point, radius and material.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Clamped to >= 0 when the sphere is
            added to a scene.
        material_id: Index into the scene's material table.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
        point: The 3D point where the ray intersected the surface.
        normal: Unit surface normal, always facing against the incident ray.
        front_face: 1 if the ray arrived from outside the surface, 0 if it
            arrived from inside. Dielectrics use this to pick the index ratio.
        material_id: Material of the surface hit, -1 for a miss.

    Fields other than hit are only meaningful when hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a unit outward normal against the incident ray.

    Args:
        ray_direction: Direction of the incident ray.
        outward_normal: Geometric normal pointing out of the surface, unit
            length.

    Returns:
        A tuple (front_face, normal) where front_face is 1 when the ray hits
        the outside of the surface and normal always opposes the ray.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(ray_direction, outward_normal) >= 0.0:
        front_face = 0
        normal = -outward_normal
    return front_face, normal


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, ray_t: Interval) -> HitRecord:
    """Find the nearest intersection of a ray with a sphere inside ray_t.

    The smaller root is tried first; when it is not strictly inside ray_t the
    larger root is tried. A ray starting inside the sphere therefore reports
    the exit point, with front_face = 0.

    Args:
        ray: The incident ray.
        sphere: The sphere to test.
        ray_t: Open interval of acceptable t values.

    Returns:
        A HitRecord; check the hit field to see whether it is valid.
    """
    result = make_miss_record()

    oc = sphere.center - ray.origin
    a = tm.dot(ray.direction, ray.direction)
    h = tm.dot(ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    # Zero radius spheres have no surface to normalize against
    if discriminant >= 0.0 and sphere.radius > 0.0 and a > 0.0:
        sqrt_d = ti.sqrt(discriminant)

        root = (h - sqrt_d) / a
        valid = interval_surrounds(ray_t, root)
        if not valid:
            root = (h + sqrt_d) / a
            valid = interval_surrounds(ray_t, root)

        if valid:
            point = ray_at(ray, root)
            outward_normal = (point - sphere.center) / sphere.radius
            front_face, normal = set_face_normal(ray.direction, outward_normal)
            result = HitRecord(
                hit=1,
                t=root,
                point=point,
                normal=normal,
                front_face=front_face,
                material_id=sphere.material_id,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32, material_id: ti.i32) -> Sphere:
    """Create a sphere inside a kernel, clamping a negative radius to zero."""
    return Sphere(center=center, radius=tm.max(radius, 0.0), material_id=material_id)
