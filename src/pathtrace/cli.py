"""Command line entry point for rendering scenes.

Renders a preset scene or a JSON scene file and writes the result as a PPM
or PNG image.

Usage:
    pathtrace [options]

Example:
    pathtrace --scene spheres --width 400 --samples 50 --output spheres.png
    pathtrace --scene random --seed 7 --width 320 --samples 20 --output final.ppm
    pathtrace --scene-file my_scene.json --lookfrom 0 1 3 --lookat 0 0 -1
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

import taichi as ti

if TYPE_CHECKING:
    from pathtrace.camera.thin_lens import CameraConfig

logger = logging.getLogger(__name__)

ARCHES = ("cpu", "gpu", "cuda", "vulkan", "metal")

# Argument name -> CameraConfig field, for overrides applied on top of a preset
CAMERA_OVERRIDES = {
    "width": "image_width",
    "aspect_ratio": "aspect_ratio",
    "samples": "samples_per_pixel",
    "max_depth": "max_depth",
    "vfov": "vfov",
    "lookfrom": "lookfrom",
    "lookat": "lookat",
    "vup": "vup",
    "defocus_angle": "defocus_angle",
    "focus_dist": "focus_dist",
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="pathtrace",
        description="Render a scene of spheres with a Monte Carlo path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--scene",
        choices=("spheres", "random"),
        default="spheres",
        help="Preset scene to render (default: spheres)",
    )
    source.add_argument(
        "--scene-file",
        type=Path,
        help="JSON scene file written by save_scene; uses the default camera",
    )

    camera = parser.add_argument_group("camera")
    camera.add_argument("--width", type=int, help="Image width in pixels")
    camera.add_argument("--aspect-ratio", type=float, help="Image width over height")
    camera.add_argument("--samples", type=int, help="Samples per pixel")
    camera.add_argument("--max-depth", type=int, help="Maximum ray bounces")
    camera.add_argument("--vfov", type=float, help="Vertical field of view in degrees")
    camera.add_argument("--lookfrom", type=float, nargs=3, metavar=("X", "Y", "Z"))
    camera.add_argument("--lookat", type=float, nargs=3, metavar=("X", "Y", "Z"))
    camera.add_argument("--vup", type=float, nargs=3, metavar=("X", "Y", "Z"))
    camera.add_argument("--defocus-angle", type=float, help="Defocus cone angle in degrees")
    camera.add_argument("--focus-dist", type=float, help="Distance to the plane of focus")

    parser.add_argument(
        "--output",
        type=Path,
        default=Path("image.ppm"),
        help="Output file; .ppm or any Pillow format such as .png (default: image.ppm)",
    )
    parser.add_argument(
        "--gamma",
        type=float,
        default=1.0,
        help="Gamma used when writing the image; 1.0 writes linear values, "
        "2.0 gamma-encodes for display (default: 1.0)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for the random scene and the sampler (default: 0)",
    )
    parser.add_argument(
        "--arch",
        choices=ARCHES,
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Show the result in a Matplotlib window",
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--quiet", action="store_true", help="Only log errors")
    verbosity.add_argument("--verbose", action="store_true", help="Log debug output")

    return parser.parse_args(argv)


def apply_camera_overrides(config: CameraConfig, args: argparse.Namespace) -> CameraConfig:
    """Replace the CameraConfig fields given on the command line."""
    changes = {}
    for arg_name, field_name in CAMERA_OVERRIDES.items():
        value = getattr(args, arg_name, None)
        if value is None:
            continue
        if isinstance(value, list):
            value = tuple(value)
        changes[field_name] = value
    return replace(config, **changes)


def configure_logging(args: argparse.Namespace) -> None:
    level = logging.INFO
    if args.quiet:
        level = logging.ERROR
    elif args.verbose:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def run(args: argparse.Namespace) -> Path:
    """Build the scene, render it and save the image.

    Taichi must already be initialized.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so Taichi fields are created after ti.init
    from pathtrace.camera.thin_lens import CameraConfig
    from pathtrace.core.renderer import Renderer
    from pathtrace.scene.manager import load_scene
    from pathtrace.scene.presets import PRESETS, create_random_scene

    if args.scene_file is not None:
        logger.info("Loading scene from %s", args.scene_file)
        scene = load_scene(args.scene_file)
        camera_config = CameraConfig()
    elif args.scene == "random":
        scene, camera_config = create_random_scene(seed=args.seed)
    else:
        scene, camera_config = PRESETS[args.scene]()

    camera_config = apply_camera_overrides(camera_config, args)
    renderer = Renderer(scene, camera_config)
    logger.info(
        "Rendering %d spheres at %dx%d, %d spp, max depth %d",
        scene.get_sphere_count(),
        renderer.width,
        renderer.height,
        renderer.config.samples_per_pixel,
        renderer.config.max_depth,
    )

    start_time = time.time()

    def progress_callback(remaining: int, total: int) -> None:
        logger.info("Scanlines remaining: %d/%d", remaining, total)

    renderer.render(callback=progress_callback)
    logger.info("Done in %.2fs", time.time() - start_time)

    renderer.save_image(args.output, gamma=args.gamma)
    logger.info("Saved to %s", args.output.absolute())

    if args.show:
        from pathtrace.preview.display import show_preview

        show_preview(renderer, gamma=args.gamma)

    return args.output


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args)

    ti.init(arch=getattr(ti, args.arch), random_seed=args.seed)

    try:
        run(args)
        return 0
    except Exception:
        logger.exception("Render failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
