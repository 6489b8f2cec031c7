"""Tests for the preview module.

This module tests the preview/display and preview/export functionality including:
- PNG export with the shared tonemap
- Reading P3 files back
- RMSE computation
- Matplotlib preview and comparison figures

Note: Display tests run Matplotlib on the non-interactive Agg backend and
replace plt.show, so no window is ever opened.
"""

import numpy as np
import pytest
from PIL import Image as PILImage


def _gradient_image(width=8, height=4):
    from src.pathtracer.core.image import Image

    return Image.from_function(width, height, lambda x, y: (x / width, y / height, 0.5))


@pytest.fixture
def no_show(monkeypatch):
    """Use the Agg backend and record plt.show calls instead of opening windows."""
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    calls = []
    monkeypatch.setattr(plt, "show", lambda *args, **kwargs: calls.append(kwargs))
    yield calls
    plt.close("all")


class TestSavePng:
    """Test PNG export functionality."""

    def test_save_png_creates_file(self, tmp_path):
        """Test that save_png creates a valid RGB PNG file."""
        from src.pathtracer.preview.export import save_png

        filepath = tmp_path / "out.png"
        save_png(_gradient_image(), str(filepath))

        img = PILImage.open(filepath)
        assert img.size == (8, 4)
        assert img.mode == "RGB"

    def test_png_levels_match_tonemap(self, tmp_path):
        """Test the PNG holds exactly the tonemapped levels."""
        from src.pathtracer.preview.export import save_png

        image = _gradient_image()
        filepath = tmp_path / "out.png"
        save_png(image, str(filepath))

        assert np.array_equal(np.array(PILImage.open(filepath)), image.to_uint8())

    def test_save_png_bad_directory_raises(self, tmp_path):
        """Test writing into a missing directory raises OSError."""
        from src.pathtracer.preview.export import save_png

        with pytest.raises(OSError):
            save_png(_gradient_image(), str(tmp_path / "missing" / "out.png"))


class TestReadPpm:
    """Test reading P3 files."""

    def test_round_trip_with_image_write(self, tmp_path):
        """Test read_ppm returns the levels written by Image.write."""
        from src.pathtracer.preview.export import read_ppm

        image = _gradient_image(5, 3)
        filepath = tmp_path / "out.ppm"
        image.write(str(filepath))

        levels = read_ppm(str(filepath))
        assert levels.shape == (3, 5, 3)
        assert levels.dtype == np.uint8
        assert np.array_equal(levels, image.to_uint8())

    def test_accepts_line_broken_pixels(self, tmp_path):
        """Test pixel triples may be split across lines."""
        from src.pathtracer.preview.export import read_ppm

        filepath = tmp_path / "in.ppm"
        filepath.write_text("P3\n2 1\n255\n0 128 255\n10 20 30\n", encoding="ascii")

        assert read_ppm(str(filepath)).tolist() == [[[0, 128, 255], [10, 20, 30]]]

    @pytest.mark.parametrize(
        "content",
        [
            "P6\n1 1\n255\n0 0 0 ",
            "P3\n1 1\n",
            "P3\n1 1\n65535\n0 0 0 ",
            "P3\n2 1\n255\n0 0 0 ",
        ],
    )
    def test_malformed_files_raise(self, tmp_path, content):
        """Test wrong magic, short header, max value and pixel count are rejected."""
        from src.pathtracer.preview.export import read_ppm

        filepath = tmp_path / "bad.ppm"
        filepath.write_text(content, encoding="ascii")

        with pytest.raises(ValueError):
            read_ppm(str(filepath))


class TestComputeRmse:
    """Test RMSE computation."""

    def test_rmse_identical_images(self):
        """Test RMSE of identical images is zero."""
        from src.pathtracer.preview.export import compute_rmse

        image = np.random.rand(10, 10, 3).astype(np.float32)
        assert np.isclose(compute_rmse(image, image), 0.0)

    def test_rmse_different_images(self):
        """Test RMSE should be 1.0 for all zeros vs all ones."""
        from src.pathtracer.preview.export import compute_rmse

        image_a = np.zeros((10, 10, 3), dtype=np.float32)
        image_b = np.ones((10, 10, 3), dtype=np.float32)
        assert np.isclose(compute_rmse(image_a, image_b), 1.0)

    def test_rmse_accepts_image_objects(self):
        """Test RMSE works on Image instances."""
        from src.pathtracer.core.image import Image
        from src.pathtracer.preview.export import compute_rmse

        black = Image(4, 4)
        grey = Image(4, 4, np.full((4, 4, 3), 0.5))
        assert np.isclose(compute_rmse(black, grey), 0.5)

    def test_rmse_shape_mismatch_raises(self):
        """Test that RMSE raises for shape mismatch."""
        from src.pathtracer.preview.export import compute_rmse

        image_a = np.zeros((10, 10, 3), dtype=np.float32)
        image_b = np.zeros((20, 20, 3), dtype=np.float32)

        with pytest.raises(ValueError, match="shapes must match"):
            compute_rmse(image_a, image_b)


class TestDisplay:
    """Test the Matplotlib preview functions."""

    def test_show_preview(self, no_show):
        """Test show_preview draws the tonemapped image and shows it once."""
        import matplotlib.pyplot as plt

        from src.pathtracer.preview.display import show_preview

        image = _gradient_image()
        show_preview(image, title="Test", block=False)

        assert no_show == [{"block": False}]
        ax = plt.gcf().axes[0]
        assert ax.get_title() == "Test"
        assert np.array_equal(ax.images[0].get_array(), image.to_uint8())

    def test_show_preview_default_title(self, no_show):
        """Test the default title names the image size."""
        import matplotlib.pyplot as plt

        from src.pathtracer.preview.display import show_preview

        show_preview(_gradient_image(), block=False)
        assert plt.gcf().axes[0].get_title() == "Render Preview - 8x4"

    def test_show_comparison_returns_rmse(self, no_show):
        """Test show_comparison draws three panels and returns the display RMSE."""
        import matplotlib.pyplot as plt

        from src.pathtracer.core.image import Image
        from src.pathtracer.preview.display import show_comparison

        black = Image(4, 4)
        white = Image(4, 4, np.ones((4, 4, 3)))
        rmse = show_comparison(black, white, labels=("black", "white"), block=False)

        assert np.isclose(rmse, 1.0)
        assert len(plt.gcf().axes) == 3
        assert plt.gcf().axes[0].get_title() == "black"

    def test_show_comparison_same_image(self, no_show):
        """Test comparing an image with itself gives zero RMSE."""
        from src.pathtracer.preview.display import show_comparison

        image = _gradient_image()
        assert show_comparison(image, image, block=False) == 0.0


class TestModuleExports:
    """Test that all expected symbols are exported from the module."""

    def test_exports(self):
        """Test that display and export functions are exported."""
        from src.pathtracer.preview import (
            compute_rmse,
            read_ppm,
            save_png,
            show_comparison,
            show_preview,
        )

        assert callable(show_preview)
        assert callable(show_comparison)
        assert callable(save_png)
        assert callable(read_ppm)
        assert callable(compute_rmse)
