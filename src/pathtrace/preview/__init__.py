"""Preview module for output and visualization.

Components:
    display: Gamma encoding and Matplotlib-based preview
    export: PPM pixel sink and PNG export

Example:
    >>> from pathtrace.preview import PPMWriter, save_image
    >>> writer = PPMWriter(width, height)
    >>> data = writer.header() + b"".join(writer.write_pixel(c) for c in pixels)
    >>> save_image(image, "output.png")
"""

from pathtrace.preview.display import (
    apply_gamma,
    process_image_for_display,
    show_preview,
)
from pathtrace.preview.export import (
    DEFAULT_GAMMA,
    PPMWriter,
    image_to_uint8,
    save_image,
    save_png_from_array,
    save_ppm,
)

__all__ = [
    # Display functions
    "show_preview",
    "apply_gamma",
    "process_image_for_display",
    # Export functions
    "PPMWriter",
    "DEFAULT_GAMMA",
    "save_ppm",
    "save_png_from_array",
    "save_image",
    "image_to_uint8",
]
