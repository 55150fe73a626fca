"""Thin-lens camera model for primary ray generation.

The camera maps pixel coordinates to world-space rays. It supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view in degrees
- Arbitrary aspect ratios via image width and aspect ratio
- Jittered sampling for anti-aliasing
- Depth of field through a defocus disk

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits on the focus plane, focus_dist in front of the camera.
Pixel (0, 0) is the top-left pixel and row indices grow downward, so the
vertical viewport edge runs along -v.

Derived geometry is computed once on the Python side with NumPy and uploaded
to Taichi fields, which `get_ray` reads inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.camera.thin_lens import CameraConfig, setup_camera, get_ray
    >>>
    >>> config = CameraConfig(
    ...     aspect_ratio=16.0 / 9.0,
    ...     image_width=400,
    ...     vfov=20.0,
    ...     lookfrom=(-2.0, 2.0, 1.0),
    ...     lookat=(0.0, 0.0, -1.0),
    ...     defocus_angle=10.0,
    ...     focus_dist=3.4,
    ... )
    >>> geometry = setup_camera(config)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0, 0)  # Jittered ray through the top-left pixel
"""

import math
from dataclasses import dataclass, replace

import numpy as np
import taichi as ti

from pathtrace.core.ray import Ray, make_ray, random_in_unit_disk, vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class CameraConfig:
    """Configuration for the thin-lens camera and the render loop.

    Attributes:
        aspect_ratio: Ratio of image width over height.
        image_width: Rendered image width in pixels.
        samples_per_pixel: Number of random samples averaged per pixel.
        max_depth: Maximum number of ray bounces into the scene.
        vfov: Vertical view angle (field of view) in degrees.
        lookfrom: Point the camera is looking from.
        lookat: Point the camera is looking at.
        vup: Camera-relative "up" direction.
        defocus_angle: Variation angle of rays through each pixel, in degrees.
            0 disables depth of field.
        focus_dist: Distance from lookfrom to the plane of perfect focus.
    """

    aspect_ratio: float = 1.0
    image_width: int = 100
    samples_per_pixel: int = 10
    max_depth: int = 10
    vfov: float = 90.0
    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    defocus_angle: float = 0.0
    focus_dist: float = 10.0

    @property
    def image_height(self) -> int:
        """Image height derived from width and aspect ratio, at least 1."""
        width = max(1, int(self.image_width))
        if self.aspect_ratio <= 0.0:
            return width
        return max(1, int(width / self.aspect_ratio))

    def normalized(self) -> "CameraConfig":
        """Return a copy with degenerate counts clamped to safe minimums.

        Width and samples per pixel become at least 1 and max_depth at
        least 0. Other fields are returned unchanged.
        """
        return replace(
            self,
            image_width=max(1, int(self.image_width)),
            samples_per_pixel=max(1, int(self.samples_per_pixel)),
            max_depth=max(0, int(self.max_depth)),
        )


@dataclass
class CameraGeometry:
    """Values derived from a CameraConfig, in world space.

    Attributes:
        image_width: Image width in pixels.
        image_height: Image height in pixels.
        pixel_samples_scale: Color scale factor for a sum of pixel samples.
        center: Camera center (lookfrom).
        u: Camera frame unit vector pointing right.
        v: Camera frame unit vector pointing up.
        w: Camera frame unit vector pointing opposite the view direction.
        pixel00_loc: Location of the center of pixel (0, 0).
        pixel_delta_u: Offset to the pixel to the right.
        pixel_delta_v: Offset to the pixel below.
        defocus_radius: Radius of the defocus disk.
        defocus_disk_u: Defocus disk horizontal radius vector.
        defocus_disk_v: Defocus disk vertical radius vector.
    """

    image_width: int
    image_height: int
    pixel_samples_scale: float
    center: np.ndarray
    u: np.ndarray
    v: np.ndarray
    w: np.ndarray
    pixel00_loc: np.ndarray
    pixel_delta_u: np.ndarray
    pixel_delta_v: np.ndarray
    defocus_radius: float
    defocus_disk_u: np.ndarray
    defocus_disk_v: np.ndarray


def _unit(vector: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(vector)
    if norm == 0.0:
        raise ValueError("Cannot build a camera basis from a zero-length vector")
    return vector / norm


def compute_camera_geometry(config: CameraConfig) -> CameraGeometry:
    """Derive the camera basis and viewport geometry from a configuration.

    This is a pure function of the configuration, so the same configuration
    always produces identical geometry.

    Args:
        config: Camera configuration. Degenerate counts are clamped first.

    Returns:
        The derived CameraGeometry.

    Raises:
        ValueError: If lookfrom equals lookat or vup is parallel to the view
            direction, since no camera basis exists.
    """
    config = config.normalized()
    image_width = config.image_width
    image_height = config.image_height

    center = np.array(config.lookfrom, dtype=np.float64)
    lookat = np.array(config.lookat, dtype=np.float64)
    vup = np.array(config.vup, dtype=np.float64)

    # Viewport dimensions on the focus plane
    theta = math.radians(config.vfov)
    h = math.tan(theta / 2.0)
    viewport_height = 2.0 * h * config.focus_dist
    viewport_width = viewport_height * (image_width / image_height)

    w = _unit(center - lookat)
    u = _unit(np.cross(vup, w))
    v = np.cross(w, u)

    # Vectors across the horizontal and down the vertical viewport edges
    viewport_u = viewport_width * u
    viewport_v = viewport_height * -v

    pixel_delta_u = viewport_u / image_width
    pixel_delta_v = viewport_v / image_height

    viewport_upper_left = center - config.focus_dist * w - viewport_u / 2.0 - viewport_v / 2.0
    pixel00_loc = viewport_upper_left + 0.5 * (pixel_delta_u + pixel_delta_v)

    defocus_radius = config.focus_dist * math.tan(math.radians(config.defocus_angle / 2.0))

    return CameraGeometry(
        image_width=image_width,
        image_height=image_height,
        pixel_samples_scale=1.0 / config.samples_per_pixel,
        center=center,
        u=u,
        v=v,
        w=w,
        pixel00_loc=pixel00_loc,
        pixel_delta_u=pixel_delta_u,
        pixel_delta_v=pixel_delta_v,
        defocus_radius=defocus_radius,
        defocus_disk_u=u * defocus_radius,
        defocus_disk_v=v * defocus_radius,
    )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_center = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel00_loc = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_delta_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_delta_v = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_disk_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_disk_v = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_angle = ti.field(dtype=ti.f32, shape=())


def setup_camera(config: CameraConfig) -> CameraGeometry:
    """Compute camera geometry and upload it for use inside kernels.

    Must be called before rendering, and again whenever the configuration
    changes.

    Args:
        config: Camera configuration.

    Returns:
        The derived geometry that was uploaded.
    """
    geometry = compute_camera_geometry(config)

    _camera_center[None] = geometry.center.tolist()
    _pixel00_loc[None] = geometry.pixel00_loc.tolist()
    _pixel_delta_u[None] = geometry.pixel_delta_u.tolist()
    _pixel_delta_v[None] = geometry.pixel_delta_v.tolist()
    _defocus_disk_u[None] = geometry.defocus_disk_u.tolist()
    _defocus_disk_v[None] = geometry.defocus_disk_v.tolist()
    _defocus_angle[None] = float(config.defocus_angle)

    return geometry


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def sample_square() -> vec3:
    """Random offset to a point in the [-0.5, 0.5] x [-0.5, 0.5] unit square.

    The z component is always 0.
    """
    return vec3(ti.random(ti.f32) - 0.5, ti.random(ti.f32) - 0.5, 0.0)


@ti.func
def defocus_disk_sample() -> vec3:
    """Random point on the camera defocus disk."""
    p = random_in_unit_disk()
    return _camera_center[None] + p[0] * _defocus_disk_u[None] + p[1] * _defocus_disk_v[None]


@ti.func
def get_ray(i: ti.i32, j: ti.i32) -> Ray:
    """Generate a sampled camera ray for pixel column i, row j.

    The ray originates from the defocus disk (or exactly the camera center
    when the defocus angle is 0) and is directed at a randomly sampled point
    around the pixel location. The direction is not normalized.

    Args:
        i: Pixel column (0 = left).
        j: Pixel row (0 = top).

    Returns:
        The sampled Ray.
    """
    offset = sample_square()
    pixel_sample = (
        _pixel00_loc[None]
        + (ti.cast(i, ti.f32) + offset.x) * _pixel_delta_u[None]
        + (ti.cast(j, ti.f32) + offset.y) * _pixel_delta_v[None]
    )

    ray_origin = _camera_center[None]
    if _defocus_angle[None] > 0.0:
        ray_origin = defocus_disk_sample()

    return make_ray(ray_origin, pixel_sample - ray_origin)


@ti.func
def get_center_ray(i: ti.i32, j: ti.i32) -> Ray:
    """Ray from the camera center through the exact center of pixel (i, j)."""
    origin = _camera_center[None]
    pixel_center = (
        _pixel00_loc[None]
        + ti.cast(i, ti.f32) * _pixel_delta_u[None]
        + ti.cast(j, ti.f32) * _pixel_delta_v[None]
    )
    return make_ray(origin, pixel_center - origin)


@ti.func
def get_camera_center() -> vec3:
    return _camera_center[None]


# =============================================================================
# Utility Functions
# =============================================================================

_sampled_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_sampled_direction = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _sample_ray_kernel(i: ti.i32, j: ti.i32, jitter: ti.i32):
    ray = get_center_ray(i, j)
    if jitter == 1:
        ray = get_ray(i, j)
    _sampled_origin[None] = ray.origin
    _sampled_direction[None] = ray.direction


def sample_ray(
    i: int, j: int, jitter: bool = True
) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """Generate one camera ray from Python, for inspection and debugging.

    Args:
        i: Pixel column.
        j: Pixel row.
        jitter: If False, return the un-jittered ray through the pixel center
            from the camera center.

    Returns:
        Tuple of (origin, direction).
    """
    _sample_ray_kernel(i, j, 1 if jitter else 0)
    o = _sampled_origin[None]
    d = _sampled_direction[None]
    return (
        (float(o[0]), float(o[1]), float(o[2])),
        (float(d[0]), float(d[1]), float(d[2])),
    )


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with center, pixel00_loc, pixel_delta_u, pixel_delta_v,
        defocus_disk_u and defocus_disk_v.
    """
    fields = {
        "center": _camera_center,
        "pixel00_loc": _pixel00_loc,
        "pixel_delta_u": _pixel_delta_u,
        "pixel_delta_v": _pixel_delta_v,
        "defocus_disk_u": _defocus_disk_u,
        "defocus_disk_v": _defocus_disk_v,
    }
    info = {}
    for name, field in fields.items():
        vec = field[None]
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    return info
