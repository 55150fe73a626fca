"""Camera module for view and ray generation.

Components:
    thin_lens: Look-at camera with anti-aliasing jitter and depth of field

Camera responsibilities:
    - Derive the view basis and viewport geometry from a CameraConfig
    - Map pixel (column, row) coordinates to world-space rays
    - Jitter samples within the pixel square for anti-aliasing
    - Sample ray origins on the defocus disk for depth of field

Pixel (0, 0) is the top-left pixel; rows grow downward.
"""

from .thin_lens import (
    CameraConfig,
    CameraGeometry,
    compute_camera_geometry,
    get_camera_center,
    get_camera_info,
    get_center_ray,
    get_ray,
    sample_ray,
    setup_camera,
)

__all__ = [
    "CameraConfig",
    "CameraGeometry",
    "compute_camera_geometry",
    "setup_camera",
    "get_ray",
    "get_center_ray",
    "get_camera_center",
    "get_camera_info",
    "sample_ray",
]
