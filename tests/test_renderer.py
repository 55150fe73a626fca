"""Tests for the Renderer and the render() entry point.

Tests cover:
- Pixel stream length and ordering
- Exact sky gradient per pixel and a single-sphere image
- Results that survive later renders
- Progress callbacks
- Cancellation between bands
- Image export helpers
"""

import threading

import numpy as np
import pytest


def _small_config(**overrides):
    from pathtrace.camera.thin_lens import CameraConfig

    params = {"image_width": 6, "aspect_ratio": 2.0, "samples_per_pixel": 2, "max_depth": 4}
    params.update(overrides)
    return CameraConfig(**params)


class TestRender:
    def test_render_yields_every_pixel(self):
        from pathtrace.core.renderer import render
        from pathtrace.scene.manager import Scene

        pixels = list(render(Scene(), _small_config()))

        assert len(pixels) == 6 * 3
        assert all(len(color) == 3 for color in pixels)

    def test_empty_scene_rows_follow_sky_gradient(self):
        """Upper rows look further up, so they are bluer (less red) than lower rows."""
        from pathtrace.core.renderer import render
        from pathtrace.scene.manager import Scene

        pixels = list(render(Scene(), _small_config(samples_per_pixel=8)))
        rows = np.array(pixels).reshape(3, 6, 3)

        red_by_row = rows[:, :, 0].mean(axis=1)
        assert red_by_row[0] < red_by_row[1] < red_by_row[2]
        np.testing.assert_allclose(rows[:, :, 2], 1.0, atol=1e-5)

    def test_zero_depth_renders_black(self):
        from pathtrace.core.renderer import render
        from pathtrace.scene.manager import Scene

        pixels = list(render(Scene(), _small_config(max_depth=0)))
        assert all(color == (0.0, 0.0, 0.0) for color in pixels)

    def test_render_uses_given_scene(self):
        """Rendering re-uploads the scene even if the shared storage was cleared."""
        from pathtrace.core.renderer import render
        from pathtrace.scene.intersection import clear_scene
        from pathtrace.scene.manager import Scene

        scene = Scene()
        # A sphere enclosing the camera, black metal absorbs everything
        scene.add_metal_sphere((0.0, 0.0, 0.0), 50.0, albedo=(0.0, 0.0, 0.0))
        clear_scene()

        pixels = list(render(scene, _small_config()))
        assert all(color == (0.0, 0.0, 0.0) for color in pixels)


class TestRenderer:
    def test_dimensions_and_repr(self):
        from pathtrace.core.renderer import Renderer
        from pathtrace.scene.manager import Scene

        renderer = Renderer(Scene(), _small_config())

        assert renderer.width == 6
        assert renderer.height == 3
        assert not renderer.is_rendered
        assert "width=6" in repr(renderer)

    def test_progress_callback_counts_down(self):
        from pathtrace.core.renderer import Renderer
        from pathtrace.scene.manager import Scene

        renderer = Renderer(Scene(), _small_config(image_width=20, aspect_ratio=2.0), rows_per_band=4)
        calls = []
        renderer.render(callback=lambda remaining, total: calls.append((remaining, total)))

        assert calls == [(6, 10), (2, 10), (0, 10)]
        assert renderer.is_rendered

    def test_cancel_before_start(self):
        from pathtrace.core.renderer import Renderer, RenderCancelledError
        from pathtrace.scene.manager import Scene

        renderer = Renderer(Scene(), _small_config())
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(RenderCancelledError, match="3 of 3"):
            renderer.render(cancel_event=cancel)
        assert not renderer.is_rendered

    def test_cancel_between_bands(self):
        from pathtrace.core.renderer import Renderer, RenderCancelledError
        from pathtrace.scene.manager import Scene

        renderer = Renderer(Scene(), _small_config(image_width=20), rows_per_band=2)
        cancel = threading.Event()
        calls = []

        def on_progress(remaining, total):
            calls.append(remaining)
            cancel.set()

        with pytest.raises(RenderCancelledError):
            renderer.render(callback=on_progress, cancel_event=cancel)
        assert calls == [8]

    def test_pixels_renders_on_demand(self):
        from pathtrace.core.renderer import Renderer
        from pathtrace.scene.manager import Scene

        renderer = Renderer(Scene(), _small_config())
        pixels = list(renderer.pixels())

        assert renderer.is_rendered
        assert len(pixels) == renderer.width * renderer.height

    def test_image_uint8(self):
        from pathtrace.core.renderer import Renderer
        from pathtrace.scene.manager import Scene

        renderer = Renderer(Scene(), _small_config())
        renderer.render()
        image = renderer.get_image_uint8()

        assert image.shape == (3, 6, 3)
        assert image.dtype == np.uint8
        # Sky blue channel is 1.0 everywhere
        assert (image[:, :, 2] == 255).all()

    def test_save_image(self, tmp_path):
        from pathtrace.core.renderer import Renderer
        from pathtrace.scene.manager import Scene

        renderer = Renderer(Scene(), _small_config())
        renderer.render()
        path = tmp_path / "out.ppm"
        renderer.save_image(path)

        lines = path.read_text().splitlines()
        assert lines[:3] == ["P3", "6 3", "255"]
        assert len(lines) == 3 + 6 * 3


def _sky(direction):
    d = np.asarray(direction, dtype=np.float64)
    a = 0.5 * (d[..., 1] / np.linalg.norm(d, axis=-1) + 1.0)
    a = a[..., np.newaxis]
    return (1.0 - a) * np.array([1.0, 1.0, 1.0]) + a * np.array([0.5, 0.7, 1.0])


def _dark_scene():
    from pathtrace.scene.manager import Scene

    scene = Scene()
    # Black metal enclosing the camera, every path is absorbed
    scene.add_metal_sphere((0.0, 0.0, 0.0), 50.0, albedo=(0.0, 0.0, 0.0))
    return scene


class TestReferenceImages:
    def test_empty_scene_matches_gradient_per_pixel(self):
        """Every pixel is the sky color of the ray through its center."""
        from pathtrace.camera.thin_lens import get_camera_info
        from pathtrace.core.renderer import render
        from pathtrace.scene.manager import Scene

        config = _small_config(image_width=64, aspect_ratio=2.0, samples_per_pixel=4, max_depth=2)
        pixels = list(render(Scene(), config))
        image = np.array(pixels).reshape(32, 64, 3)

        info = get_camera_info()
        cols = np.arange(64)[np.newaxis, :, np.newaxis]
        rows = np.arange(32)[:, np.newaxis, np.newaxis]
        centers = (
            np.array(info["pixel00_loc"])
            + cols * np.array(info["pixel_delta_u"])
            + rows * np.array(info["pixel_delta_v"])
        )
        expected = _sky(centers - np.array(info["center"]))

        np.testing.assert_allclose(image, expected, atol=0.02)
        np.testing.assert_allclose(image[:, :, 2], 1.0, atol=1e-5)

    def test_single_sphere(self):
        """A diffuse sphere straight ahead with a one-bounce budget."""
        from pathtrace.camera.thin_lens import sample_ray
        from pathtrace.core.integrator import trace_ray
        from pathtrace.core.renderer import Renderer
        from pathtrace.scene.manager import Scene

        scene = Scene()
        scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.5, 0.5, 0.5))
        config = _small_config(image_width=21, aspect_ratio=1.0, samples_per_pixel=1, max_depth=1)

        renderer = Renderer(scene, config)
        renderer.render()
        image = renderer.get_image_numpy()

        assert image.shape == (21, 21, 3)
        # The center ray hits the sphere and has no bounces left
        np.testing.assert_array_equal(image[10, 10], (0.0, 0.0, 0.0))

        # The corner ray misses the sphere and sees the sky
        origin, direction = sample_ray(0, 0, jitter=False)
        np.testing.assert_allclose(image[0, 0], _sky(direction), atol=0.02)
        assert trace_ray(origin, direction, max_depth=1) == pytest.approx(
            tuple(_sky(direction)), abs=1e-5
        )


class TestRenderIsolation:
    def test_interleaved_render_calls(self):
        """A later render() does not change pixels returned by an earlier one."""
        from pathtrace.core.renderer import render
        from pathtrace.scene.manager import Scene

        first = render(_dark_scene(), _small_config(image_width=4, aspect_ratio=1.0))
        second = render(Scene(), _small_config(image_width=6, aspect_ratio=2.0))

        first_pixels = list(first)
        second_pixels = list(second)

        assert len(first_pixels) == 16
        assert all(color == (0.0, 0.0, 0.0) for color in first_pixels)
        assert len(second_pixels) == 18
        assert all(color[2] == pytest.approx(1.0, abs=1e-5) for color in second_pixels)

    def test_renderer_keeps_its_own_image(self):
        from pathtrace.core.renderer import Renderer
        from pathtrace.scene.manager import Scene

        dark = Renderer(_dark_scene(), _small_config(image_width=4, aspect_ratio=1.0))
        dark.render()
        pending = dark.pixels()

        sky = Renderer(Scene(), _small_config(image_width=6, aspect_ratio=2.0))
        sky.render()

        image = dark.get_image_numpy()
        assert image.shape == (4, 4, 3)
        assert (image == 0.0).all()
        assert list(pending) == [(0.0, 0.0, 0.0)] * 16
        assert (sky.get_image_numpy()[:, :, 2] > 0.99).all()

    def test_rendering_again_uses_own_scene(self):
        """Re-rendering after another renderer ran re-uploads this renderer's scene."""
        from pathtrace.core.renderer import Renderer
        from pathtrace.scene.manager import Scene

        dark = Renderer(_dark_scene(), _small_config(image_width=4, aspect_ratio=1.0))
        Renderer(Scene(), _small_config()).render()

        dark.render()
        assert (dark.get_image_numpy() == 0.0).all()

    def test_image_wider_than_2048(self):
        from pathtrace.camera.thin_lens import CameraConfig
        from pathtrace.core.renderer import Renderer
        from pathtrace.scene.manager import Scene

        config = CameraConfig(
            image_width=2400, aspect_ratio=16.0 / 9.0, samples_per_pixel=1, max_depth=1
        )
        renderer = Renderer(Scene(), config, rows_per_band=512)
        renderer.render()
        image = renderer.get_image_numpy()

        assert image.shape == (renderer.height, 2400, 3)
        assert renderer.height == config.image_height
        np.testing.assert_allclose(image[:, :, 2], 1.0, atol=1e-5)
