"""Tests for image export and display helpers.

Tests cover:
- PPM header and pixel encoding
- Clamping, NaN handling and 255.999 quantization
- Gamma encoding
- Saving PPM and PNG files
"""

import io

import numpy as np
import pytest
from PIL import Image

from pathtrace.preview.display import apply_gamma, process_image_for_display
from pathtrace.preview.export import (
    PPMWriter,
    image_to_uint8,
    save_image,
    save_png_from_array,
    save_ppm,
)


class TestPPMWriter:
    def test_header(self):
        assert PPMWriter(3, 2).header() == b"P3\n3 2\n255\n"

    @pytest.mark.parametrize(
        "color, expected",
        [
            ((0.0, 0.0, 0.0), b"0 0 0\n"),
            ((1.0, 1.0, 1.0), b"255 255 255\n"),
            ((0.5, 0.25, 0.999), b"127 63 255\n"),
            ((-0.2, 1.7, 0.5), b"0 255 127\n"),
        ],
    )
    def test_write_pixel_linear(self, color, expected):
        assert PPMWriter(1, 1).write_pixel(color) == expected

    def test_nan_and_infinity(self):
        writer = PPMWriter(1, 1)
        assert writer.write_pixel((float("nan"), float("inf"), float("-inf"))) == b"0 255 0\n"

    def test_gamma_two_takes_square_root(self):
        writer = PPMWriter(1, 1, gamma=2.0)
        # sqrt(0.25) = 0.5 -> 127
        assert writer.write_pixel((0.25, 0.0, 1.0)) == b"127 0 255\n"

    def test_write_stream(self):
        writer = PPMWriter(2, 1)
        stream = io.BytesIO()

        count = writer.write(stream, [(1.0, 0.0, 0.0), (0.0, 0.0, 1.0)])

        assert count == 2
        assert stream.getvalue() == b"P3\n2 1\n255\n255 0 0\n0 0 255\n"


class TestGamma:
    def test_apply_gamma_identity(self):
        image = np.array([[[0.25, 0.5, 1.0]]], dtype=np.float32)
        assert apply_gamma(image, 1.0) is image

    def test_apply_gamma_square_root(self):
        image = np.array([[[0.25, 0.0, 1.0]]], dtype=np.float32)
        np.testing.assert_allclose(apply_gamma(image, 2.0), [[[0.5, 0.0, 1.0]]], atol=1e-6)

    def test_process_image_clamps(self):
        image = np.array([[[-1.0, 4.0, 0.25]]], dtype=np.float32)
        np.testing.assert_allclose(process_image_for_display(image), [[[0.0, 1.0, 0.5]]], atol=1e-6)


class TestImageConversion:
    def test_image_to_uint8_matches_ppm_encoding(self):
        image = np.array([[[0.25, 0.5, 1.0], [float("nan"), 2.0, -1.0]]], dtype=np.float32)

        result = image_to_uint8(image, gamma=1.0)

        assert result.dtype == np.uint8
        np.testing.assert_array_equal(result, [[[63, 127, 255], [0, 255, 0]]])

    def test_save_ppm(self, tmp_path):
        image = np.zeros((2, 3, 3), dtype=np.float32)
        image[0, 0] = (1.0, 1.0, 1.0)
        path = tmp_path / "image.ppm"

        save_ppm(image, path, gamma=1.0)

        lines = path.read_text().splitlines()
        assert lines[:3] == ["P3", "3 2", "255"]
        assert lines[3] == "255 255 255"
        assert lines[4:] == ["0 0 0"] * 5

    def test_save_png(self, tmp_path):
        image = np.full((4, 5, 3), 0.25, dtype=np.float32)
        path = tmp_path / "image.png"

        save_png_from_array(image, path, gamma=2.0)

        with Image.open(path) as loaded:
            assert loaded.size == (5, 4)
            assert loaded.getpixel((0, 0)) == (127, 127, 127)

    def test_save_image_picks_format_by_extension(self, tmp_path):
        image = np.full((1, 1, 3), 1.0, dtype=np.float32)

        save_image(image, tmp_path / "a.PPM")
        save_image(image, tmp_path / "b.png")

        assert (tmp_path / "a.PPM").read_bytes().startswith(b"P3\n")
        assert (tmp_path / "b.png").read_bytes().startswith(b"\x89PNG")
