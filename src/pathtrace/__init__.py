"""Taichi-based Monte Carlo path tracer for scenes of spheres.

This package renders spheres with diffuse, metal and glass materials through
a thin-lens camera, with support for:
- Anti-aliasing by jittered pixel sampling
- Depth of field through a defocus disk
- Scene presets and JSON scene files
- PPM and PNG output

Subpackages:
    core: Ray and interval types, the path integrator and the renderer
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambertian, metal and dielectric scattering models
    scene: Scene management, nearest-hit queries and presets
    camera: Thin-lens camera with ray generation
    preview: Image export and Matplotlib preview

Modules that own Taichi fields must be imported after ti.init().
"""

__version__ = "0.1.0"
