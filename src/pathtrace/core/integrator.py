"""Path tracing integrator for Monte Carlo light transport.

This module implements the rendering kernels: material dispatch, the sky
gradient background and the path loop that follows a camera ray through the
scene until it escapes, is absorbed, or runs out of bounces.

Light is gathered only from the background. Each bounce multiplies the path
throughput by the material attenuation, so the color of a path is

    attenuation_1 * attenuation_2 * ... * attenuation_k * background(d_k)

when the path escapes after k bounces, and black when it is absorbed or the
bounce budget is exhausted. This is the recursive definition unrolled into a
bounded loop, since Taichi functions cannot recurse.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.camera.thin_lens import CameraConfig, setup_camera
    >>> from pathtrace.core.integrator import RenderTarget, render_rows
    >>> config = CameraConfig(image_width=64)
    >>> geometry = setup_camera(config)
    >>> target = RenderTarget(geometry.image_width, geometry.image_height)
    >>> render_rows(0, target.height, samples_per_pixel=10, max_depth=10, target=target)
    >>> image = target.to_numpy()
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtrace.camera.thin_lens import get_ray
from pathtrace.core.interval import INFINITY, Interval
from pathtrace.core.ray import Ray
from pathtrace.materials.dielectric import scatter_dielectric_by_id
from pathtrace.materials.lambertian import scatter_lambertian_by_id
from pathtrace.materials.metal import scatter_metal_by_id
from pathtrace.scene.intersection import hit_scene
from pathtrace.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Smallest accepted hit distance; rejects re-hits of the surface a ray leaves
T_MIN = 0.001

# Sky gradient endpoints, blended by the ray's vertical direction
SKY_WHITE = vec3(1.0, 1.0, 1.0)
SKY_BLUE = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================


class RenderTarget:
    """An image buffer of averaged pixel colors, indexed [row, column].

    Row 0 is the top of the image. Each target owns its own storage, so
    rendering into one target never disturbs another. One compiled render
    kernel serves targets of any size.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        buffer: Taichi ndarray of vec3 with shape (height, width).
    """

    def __init__(self, width: int, height: int) -> None:
        self.width = max(1, int(width))
        self.height = max(1, int(height))
        self.buffer = ti.ndarray(dtype=vec3, shape=(self.height, self.width))
        self.clear()

    def clear(self) -> None:
        self.buffer.fill(0.0)

    def to_numpy(self) -> npt.NDArray[np.float32]:
        """Copy the buffer into a float32 array of shape (height, width, 3)."""
        return self.buffer.to_numpy().astype(np.float32)

    def __repr__(self) -> str:
        return f"RenderTarget(width={self.width}, height={self.height})"


# Target used when render_rows() or get_image_numpy() is called without one
_target: RenderTarget | None = None


def setup_render_target(width: int, height: int) -> RenderTarget:
    """Create a cleared default render target of the given size.

    Args:
        width: Image width in pixels, at least 1.
        height: Image height in pixels, at least 1.

    Returns:
        The new default target.
    """
    global _target
    _target = RenderTarget(width, height)
    return _target


def clear_render_target() -> None:
    _check_render_target_initialized()
    _target.clear()


def get_image_dimensions() -> tuple[int, int]:
    """Get the default render target dimensions as (width, height)."""
    _check_render_target_initialized()
    return _target.width, _target.height


def _check_render_target_initialized() -> None:
    if _target is None:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Dispatch to the scatter function for a material's type.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction (any length).
        hit_point: The intersection point on the surface.
        normal: The unit surface normal, facing against the incoming ray.
        front_face: 1 if the ray hit the outside of the surface, 0 otherwise.

    Returns:
        A tuple of (scattered, attenuation, did_scatter). Unknown material IDs
        absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_origin = hit_point
    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered, albedo, ok = scatter_lambertian_by_id(type_index, hit_point, normal)
        scattered_origin = scattered.origin
        scattered_direction = scattered.direction
        attenuation = albedo
        did_scatter = ok

    elif mat_type == int(MaterialType.METAL):
        scattered, albedo, ok = scatter_metal_by_id(
            type_index, incident_direction, hit_point, normal
        )
        scattered_origin = scattered.origin
        scattered_direction = scattered.direction
        attenuation = albedo
        did_scatter = ok

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered, albedo, ok = scatter_dielectric_by_id(
            type_index, incident_direction, hit_point, normal, front_face
        )
        scattered_origin = scattered.origin
        scattered_direction = scattered.direction
        attenuation = albedo
        did_scatter = ok

    return Ray(origin=scattered_origin, direction=scattered_direction), attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky gradient: white at the horizon blending to light blue overhead.

    Only the vertical component of the normalized direction matters.
    """
    unit_direction = tm.normalize(direction)
    a = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - a) * SKY_WHITE + a * SKY_BLUE


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32) -> vec3:
    """Estimate the light arriving along a ray.

    Args:
        ray: The ray to trace.
        max_depth: Number of scene intersections allowed. A path that needs
            more returns black; max_depth <= 0 always returns black.

    Returns:
        The linear RGB radiance estimate for this path.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    origin = ray.origin
    direction = ray.direction

    # Active flag for path continuation
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = hit_scene(Ray(origin=origin, direction=direction), Interval(lo=T_MIN, hi=INFINITY))

            if rec.hit == 0:
                # Ray escaped to the sky
                color = throughput * background_color(direction)
                active = 0
            else:
                scattered, attenuation, did_scatter = scatter_material(
                    rec.material_id, direction, rec.point, rec.normal, rec.front_face
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = scattered.origin
                    direction = scattered.direction

    return color


@ti.func
def render_sample_impl(i: ti.i32, j: ti.i32, max_depth: ti.i32) -> vec3:
    """Trace one jittered camera sample for pixel column i, row j."""
    return ray_color(get_ray(i, j), max_depth)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    target: ti.types.ndarray(dtype=vec3, ndim=2),
    row_start: ti.i32,
    row_end: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
):
    """Render pixel rows [row_start, row_end) and store the averaged colors."""
    width = target.shape[1]
    scale = 1.0 / ti.cast(samples_per_pixel, ti.f32)

    for j, i in ti.ndrange((row_start, row_end), (0, width)):
        pixel_color = vec3(0.0, 0.0, 0.0)
        for _ in range(samples_per_pixel):
            color = render_sample_impl(i, j, max_depth)

            # Drop NaN/Inf samples
            for c in ti.static(range(3)):
                if tm.isnan(color[c]) or tm.isinf(color[c]):
                    color[c] = 0.0

            pixel_color += color

        target[j, i] = pixel_color * scale


@ti.kernel
def _render_single_pixel(i: ti.i32, j: ti.i32, max_depth: ti.i32) -> vec3:
    return render_sample_impl(i, j, max_depth)


@ti.kernel
def _trace_single_ray(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    max_depth: ti.i32,
) -> vec3:
    return ray_color(Ray(origin=vec3(ox, oy, oz), direction=vec3(dx, dy, dz)), max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(
    row_start: int,
    row_end: int,
    samples_per_pixel: int,
    max_depth: int,
    target: RenderTarget | None = None,
) -> None:
    """Render a band of rows into a render target.

    Args:
        row_start: First row to render (0 = top).
        row_end: One past the last row to render, clipped to the image height.
        samples_per_pixel: Samples averaged per pixel, at least 1.
        max_depth: Maximum number of bounces, at least 0.
        target: Destination buffer. Defaults to the target created by
            setup_render_target().

    Raises:
        RuntimeError: If no target is given and none has been set up.
    """
    if target is None:
        _check_render_target_initialized()
        target = _target

    height = target.height
    row_start = max(0, int(row_start))
    row_end = min(height, int(row_end))
    if row_start >= row_end:
        return

    _render_rows(
        target.buffer,
        row_start,
        row_end,
        max(1, int(samples_per_pixel)),
        max(0, int(max_depth)),
    )


def render_sample(i: int, j: int, max_depth: int = 10) -> tuple[float, float, float]:
    """Render one jittered sample for pixel column i, row j.

    A Python-callable probe for testing and debugging single pixels.

    Returns:
        Tuple of (R, G, B) linear color values.
    """
    color = _render_single_pixel(i, j, max(0, int(max_depth)))
    return (float(color[0]), float(color[1]), float(color[2]))


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = 10,
) -> tuple[float, float, float]:
    """Evaluate ray_color for an arbitrary ray against the uploaded scene.

    Returns:
        Tuple of (R, G, B) linear color values.
    """
    color = _trace_single_ray(
        float(origin[0]),
        float(origin[1]),
        float(origin[2]),
        float(direction[0]),
        float(direction[1]),
        float(direction[2]),
        max(0, int(max_depth)),
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def get_image_numpy(target: RenderTarget | None = None) -> npt.NDArray[np.float32]:
    """Get a rendered image as a NumPy array.

    Args:
        target: Buffer to read. Defaults to the target created by
            setup_render_target().

    Returns:
        Linear colors of shape (height, width, 3), row 0 at the top.

    Raises:
        RuntimeError: If no target is given and none has been set up.
    """
    if target is None:
        _check_render_target_initialized()
        target = _target

    return target.to_numpy()
