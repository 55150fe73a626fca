"""Renderer driving the integrator over a scene and camera.

This module provides a convenient wrapper around the core integrator that
supports:
- Rendering a Scene through a CameraConfig in row bands
- Progress callbacks reporting the scanlines remaining
- Cooperative cancellation between bands
- Streaming the finished pixels in row-major order

The Renderer class encapsulates the camera and render target state and
provides a clean interface for scripts and the command line.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.core.renderer import Renderer
    >>> from pathtrace.scene.presets import create_three_spheres_scene
    >>>
    >>> scene, camera_config = create_three_spheres_scene()
    >>> renderer = Renderer(scene, camera_config)
    >>> renderer.render()
    >>> image = renderer.get_image_numpy()
"""

import logging
import threading
from collections.abc import Callable, Generator, Iterator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from pathtrace.camera.thin_lens import CameraConfig, CameraGeometry, setup_camera
from pathtrace.core.integrator import RenderTarget, render_rows
from pathtrace.scene.manager import Scene

logger = logging.getLogger(__name__)

# Callback receives (rows_remaining, total_rows)
ProgressCallback = Callable[[int, int], None]

Color = tuple[float, float, float]


class RenderCancelledError(RuntimeError):
    """Raised when a render is cancelled before all rows are finished."""


def _iter_pixels(image: npt.NDArray[np.float32]) -> Iterator[Color]:
    for row in image:
        for pixel in row:
            yield (float(pixel[0]), float(pixel[1]), float(pixel[2]))


class Renderer:
    """Renders a scene through a camera into an in-memory image.

    Each renderer owns its render target and keeps a copy of the finished
    image, so later renders never change it. The scene and camera are
    (re)uploaded at the start of every render.

    Attributes:
        scene: The scene being rendered.
        config: The normalized camera configuration.
        geometry: Camera geometry derived from the configuration.
        target: The image buffer this renderer writes into.
    """

    def __init__(
        self,
        scene: Scene,
        camera_config: CameraConfig,
        rows_per_band: int = 8,
    ) -> None:
        """Initialize the renderer.

        Args:
            scene: The scene to render.
            camera_config: Camera and render loop settings. Degenerate values
                are clamped.
            rows_per_band: Rows rendered per kernel launch. Progress and
                cancellation are checked between bands.

        Raises:
            ValueError: If the camera basis is degenerate.
        """
        self.scene = scene
        self.config = camera_config.normalized()
        self._rows_per_band = max(1, int(rows_per_band))
        self._image: npt.NDArray[np.float32] | None = None

        scene.upload()
        self.geometry: CameraGeometry = setup_camera(self.config)
        self.target = RenderTarget(self.width, self.height)

        logger.debug(
            "Renderer ready: %dx%d, %d spp, max depth %d, %d spheres",
            self.width,
            self.height,
            self.config.samples_per_pixel,
            self.config.max_depth,
            scene.get_sphere_count(),
        )

    @property
    def width(self) -> int:
        return self.geometry.image_width

    @property
    def height(self) -> int:
        return self.geometry.image_height

    @property
    def is_rendered(self) -> bool:
        """Whether every row of the image has been rendered."""
        return self._image is not None

    def render_progressive(
        self,
        cancel_event: threading.Event | None = None,
    ) -> Generator[tuple[int, int], None, None]:
        """Render the image band by band, yielding progress after each band.

        Args:
            cancel_event: When set, rendering stops before the next band.

        Yields:
            Tuple of (rows_remaining, total_rows).

        Raises:
            RenderCancelledError: If cancel_event is set before all rows are
                rendered.
        """
        self._image = None
        self.target.clear()
        self.scene.upload()
        setup_camera(self.config)
        total = self.height

        for row_start in range(0, total, self._rows_per_band):
            if cancel_event is not None and cancel_event.is_set():
                raise RenderCancelledError(
                    f"Render cancelled with {total - row_start} of {total} scanlines remaining"
                )

            row_end = min(total, row_start + self._rows_per_band)
            render_rows(
                row_start,
                row_end,
                self.config.samples_per_pixel,
                self.config.max_depth,
                target=self.target,
            )
            yield (total - row_end, total)

        self._image = self.target.to_numpy()

    def render(
        self,
        callback: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Render the whole image.

        Args:
            callback: Optional function called after each band with
                (rows_remaining, total_rows).
            cancel_event: When set, rendering stops before the next band.

        Raises:
            RenderCancelledError: If cancel_event is set before all rows are
                rendered.
        """
        for remaining, total in self.render_progressive(cancel_event):
            if callback is not None:
                callback(remaining, total)

        logger.debug("Render finished")

    def pixels(self) -> Iterator[Color]:
        """Iterate over the pixel colors, top row first, left to right.

        Renders first if needed. Yields exactly width * height linear RGB
        triples.
        """
        if self._image is None:
            self.render()

        return _iter_pixels(self._image.copy())

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the rendered image as a NumPy array.

        Before the render finishes this is the partially filled target.

        Returns:
            Linear colors of shape (height, width, 3) with dtype float32.
        """
        if self._image is not None:
            return self._image.copy()
        return self.target.to_numpy()

    def get_image_uint8(self, gamma: float = 2.0) -> npt.NDArray[np.uint8]:
        """Get the rendered image as an 8-bit NumPy array.

        Args:
            gamma: Gamma used for encoding. Default 2.0.

        Returns:
            NumPy array of shape (height, width, 3) with dtype uint8.
        """
        from pathtrace.preview.export import image_to_uint8

        return image_to_uint8(self.get_image_numpy(), gamma=gamma)

    def save_image(self, filepath: str | Path, gamma: float = 2.0) -> None:
        """Save the rendered image to a .ppm or Pillow-supported file.

        Args:
            filepath: Output path. The extension selects the format.
            gamma: Gamma used for encoding. Default 2.0.
        """
        from pathtrace.preview.export import save_image

        save_image(self.get_image_numpy(), filepath, gamma=gamma)

    def __repr__(self) -> str:
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"samples_per_pixel={self.config.samples_per_pixel}, "
            f"max_depth={self.config.max_depth})"
        )


def render(
    scene: Scene,
    camera_config: CameraConfig,
    callback: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> Iterator[Color]:
    """Render a scene and stream the pixel colors.

    Args:
        scene: The scene to render.
        camera_config: Camera and render loop settings.
        callback: Optional progress callback, see Renderer.render().
        cancel_event: Optional cancellation flag, see Renderer.render().

    Returns:
        An iterator over width * height linear RGB triples in row-major
        order, top row first.

    Raises:
        RenderCancelledError: If cancel_event is set before all rows are
            rendered.
    """
    renderer = Renderer(scene, camera_config)
    renderer.render(callback=callback, cancel_event=cancel_event)
    return _iter_pixels(renderer.get_image_numpy())
