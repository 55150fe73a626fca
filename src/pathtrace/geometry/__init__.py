"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with ray-sphere intersection

All intersection routines are implemented as Taichi functions (@ti.func)
and report hits through a HitRecord whose normal always opposes the ray.
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_miss_record, make_sphere, set_face_normal

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "make_miss_record",
    "set_face_normal",
]
