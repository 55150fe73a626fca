"""Ready-made scenes with matching camera configurations.

Two scenes are provided:

- The three-sphere scene: a large yellow-green ground sphere, a diffuse blue
  sphere in the middle, a hollow glass sphere on the left (a glass shell with
  an air bubble of index 1/1.5 inside) and a gold metal sphere on the right.
- The final random scene: a ground plane scattered with small spheres whose
  materials and colors are drawn from a seeded random generator, plus three
  large showcase spheres (glass, diffuse, polished metal).

Each factory clears the shared scene storage, builds a new Scene and returns
it together with a CameraConfig framing it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.scene.presets import create_three_spheres_scene
    >>>
    >>> scene, camera_config = create_three_spheres_scene()
    >>> scene.get_sphere_count()
    5
"""

import numpy as np

from pathtrace.camera.thin_lens import CameraConfig
from pathtrace.scene.manager import Scene

# =============================================================================
# Three-sphere scene
# =============================================================================


def create_three_spheres_scene(
    image_width: int = 400,
    samples_per_pixel: int = 100,
    max_depth: int = 50,
) -> tuple[Scene, CameraConfig]:
    """Create the ground, diffuse, glass and metal sphere arrangement.

    Args:
        image_width: Rendered image width in pixels.
        samples_per_pixel: Samples averaged per pixel.
        max_depth: Maximum number of bounces.

    Returns:
        Tuple of (scene, camera_config).
    """
    scene = Scene()

    ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
    center = scene.add_lambertian_material(albedo=(0.1, 0.2, 0.5))
    left = scene.add_dielectric_material(ior=1.5)
    bubble = scene.add_dielectric_material(ior=1.0 / 1.5)
    right = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=1.0)

    scene.add_sphere(center=(0.0, -100.5, -1.0), radius=100.0, material_id=ground)
    scene.add_sphere(center=(0.0, 0.0, -1.2), radius=0.5, material_id=center)
    scene.add_sphere(center=(-1.0, 0.0, -1.0), radius=0.5, material_id=left)
    scene.add_sphere(center=(-1.0, 0.0, -1.0), radius=0.4, material_id=bubble)
    scene.add_sphere(center=(1.0, 0.0, -1.0), radius=0.5, material_id=right)

    camera_config = CameraConfig(
        aspect_ratio=16.0 / 9.0,
        image_width=image_width,
        samples_per_pixel=samples_per_pixel,
        max_depth=max_depth,
        vfov=20.0,
        lookfrom=(-2.0, 2.0, 1.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        defocus_angle=10.0,
        focus_dist=3.4,
    )

    return scene, camera_config


# =============================================================================
# Final random scene
# =============================================================================

# Grid of small spheres spans a, b in [-GRID_HALF_EXTENT, GRID_HALF_EXTENT)
GRID_HALF_EXTENT = 11

# Cumulative probabilities for picking a small sphere's material
DIFFUSE_PROBABILITY = 0.8
METAL_PROBABILITY = 0.95


def create_random_scene(
    seed: int = 0,
    image_width: int = 1200,
    samples_per_pixel: int = 500,
    max_depth: int = 50,
    grid_half_extent: int = GRID_HALF_EXTENT,
) -> tuple[Scene, CameraConfig]:
    """Create the final scene of many random small spheres.

    The same seed always produces the same scene.

    Args:
        seed: Seed for the NumPy random generator choosing materials and
            positions.
        image_width: Rendered image width in pixels.
        samples_per_pixel: Samples averaged per pixel.
        max_depth: Maximum number of bounces.
        grid_half_extent: Half the side of the square grid of small spheres.

    Returns:
        Tuple of (scene, camera_config).
    """
    rng = np.random.default_rng(seed)
    scene = Scene()

    ground = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    scene.add_sphere(center=(0.0, -1000.0, 0.0), radius=1000.0, material_id=ground)

    # Small spheres must keep clear of the large metal showcase sphere
    keep_clear = np.array([4.0, 0.2, 0.0])

    for a in range(-grid_half_extent, grid_half_extent):
        for b in range(-grid_half_extent, grid_half_extent):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random()])

            if np.linalg.norm(center - keep_clear) <= 0.9:
                continue

            if choose_mat < DIFFUSE_PROBABILITY:
                albedo = rng.random(3) * rng.random(3)
                scene.add_lambertian_sphere(tuple(center), 0.2, tuple(albedo))
            elif choose_mat < METAL_PROBABILITY:
                albedo = rng.uniform(0.5, 1.0, 3)
                fuzz = rng.uniform(0.0, 0.5)
                scene.add_metal_sphere(tuple(center), 0.2, tuple(albedo), float(fuzz))
            else:
                scene.add_dielectric_sphere(tuple(center), 0.2, ior=1.5)

    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, ior=1.5)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), fuzz=0.0)

    camera_config = CameraConfig(
        aspect_ratio=16.0 / 9.0,
        image_width=image_width,
        samples_per_pixel=samples_per_pixel,
        max_depth=max_depth,
        vfov=20.0,
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        defocus_angle=0.6,
        focus_dist=10.0,
    )

    return scene, camera_config


PRESETS = {
    "spheres": create_three_spheres_scene,
    "random": create_random_scene,
}
