"""Image export utilities for rendered images.

This module provides the pixel sink used to stream colors into a plain PPM
file, and functions for saving whole images with gamma correction.

Supported formats:
    - PPM (ASCII P3, one "r g b" line per pixel)
    - PNG and other 8-bit formats via Pillow

Example:
    >>> from pathtrace.preview.export import PPMWriter
    >>>
    >>> writer = PPMWriter(width=2, height=1)
    >>> writer.header()
    b'P3\\n2 1\\n255\\n'
    >>> writer.write_pixel((1.0, 0.5, 0.0))
    b'255 127 0\\n'
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import BinaryIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from pathtrace.preview.display import apply_gamma

# Gamma used when writing images for viewing
DEFAULT_GAMMA = 2.0


def _encode_component(value: float, gamma: float) -> int:
    # NaN compares false against both bounds, map it to black
    if not value > 0.0:
        return 0
    if gamma != 1.0:
        value = value ** (1.0 / gamma)
    return int(255.999 * min(value, 1.0))


class PPMWriter:
    """Encodes linear colors as an ASCII (P3) PPM image.

    The writer only produces bytes; it never touches the file system, so the
    caller decides where the header and pixels go.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        gamma: Gamma applied before quantizing. 1.0 writes linear values.
    """

    def __init__(self, width: int, height: int, gamma: float = 1.0) -> None:
        self.width = width
        self.height = height
        self.gamma = gamma

    def header(self) -> bytes:
        """The P3 header, written once before any pixel."""
        return f"P3\n{self.width} {self.height}\n255\n".encode("ascii")

    def write_pixel(self, color: Iterable[float]) -> bytes:
        """Encode one color as an "r g b" line.

        Each component is clamped to [0, 1] and mapped to an integer in
        [0, 255] with int(255.999 * c).
        """
        r, g, b = (_encode_component(float(c), self.gamma) for c in color)
        return f"{r} {g} {b}\n".encode("ascii")

    def write(self, stream: BinaryIO, pixels: Iterable[Iterable[float]]) -> int:
        """Write the header and every pixel to a binary stream.

        Returns:
            The number of pixels written.
        """
        stream.write(self.header())
        count = 0
        for color in pixels:
            stream.write(self.write_pixel(color))
            count += 1
        return count


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float32 image to uint8 for display/export.

    Uses the int(255.999 * c) quantization of PPMWriter.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma correction value.

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    image = np.nan_to_num(image, nan=0.0, posinf=1.0, neginf=0.0)
    processed = apply_gamma(np.clip(image, 0.0, 1.0), gamma)
    return (255.999 * processed).astype(np.uint8)


def save_ppm(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma: float = DEFAULT_GAMMA,
) -> None:
    """Save a linear image array as an ASCII PPM file."""
    height, width = image.shape[:2]
    writer = PPMWriter(width, height, gamma=gamma)
    with open(filepath, "wb") as f:
        writer.write(f, image.reshape(-1, 3))


def save_png_from_array(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma: float = DEFAULT_GAMMA,
) -> None:
    """Save a linear image array as an 8-bit file via Pillow.

    The format is chosen by Pillow from the file extension.
    """
    image_uint8 = image_to_uint8(image, gamma=gamma)
    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(filepath)


def save_image(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma: float = DEFAULT_GAMMA,
) -> None:
    """Save a linear image array, choosing PPM or Pillow by extension."""
    if Path(filepath).suffix.lower() == ".ppm":
        save_ppm(image, filepath, gamma=gamma)
    else:
        save_png_from_array(image, filepath, gamma=gamma)
