"""Tests for the path tracing integrator.

This module tests the radiance estimator and the render target:
- Direct lighting, shadowing and the first-light rule
- Depth cut-off and escaping rays
- The diffuse bounce term, weighted by the surface color
- Mirror and glass reflection without attenuation
- Render target setup, accumulation and errors

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run, so module-level
imports of modules containing ti.field() declarations would fail.
"""

import math

import numpy as np
import pytest
import taichi as ti


def _radiance(origin, direction, depth, seed=0):
    """Evaluate radiance() for one ray in a kernel and return RGB."""
    from src.pathtracer.core.integrator import radiance
    from src.pathtracer.core.ray import make_ray
    from src.pathtracer.core.sampling import seed_sampler

    ray_params = ti.Vector.field(3, dtype=ti.f32, shape=2)
    ray_params[0] = list(origin)
    ray_params[1] = list(direction)
    result = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(d: ti.i32, s: ti.i32):
        color, _state = radiance(make_ray(ray_params[0], ray_params[1]), d, seed_sampler(0, 0, s))
        result[None] = color

    test_kernel(depth, seed)
    return result.to_numpy()


def _direct(point, normal, color):
    """Evaluate compute_direct_lighting() in a kernel and return RGB."""
    from src.pathtracer.core.integrator import compute_direct_lighting

    params = ti.Vector.field(3, dtype=ti.f32, shape=3)
    params[0] = list(point)
    params[1] = list(normal)
    params[2] = list(color)
    result = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel():
        result[None] = compute_direct_lighting(params[0], params[1], params[2])

    test_kernel()
    return result.to_numpy()


@pytest.fixture
def scene():
    """Create a fresh SceneManager for each test."""
    from src.pathtracer.scene.manager import SceneManager

    manager = SceneManager()
    yield manager
    manager.clear()


class TestDirectLighting:
    """Tests for the shadow-ray direct lighting term."""

    def test_lit_diffuse_sphere_exact(self, scene):
        """Test direct light on a diffuse sphere matches color*E*cos/(pi d^2)."""
        from src.pathtracer.core.integrator import MAX_DEPTH

        color = (0.5, 0.25, 1.0)
        scene.add_diffuse_sphere(1.0, (0, 0, 0), color)
        scene.add_light((0, 0, 3), (100, 100, 100))

        # At the deepest level only the direct term contributes
        result = _radiance((0, 0, 5), (0, 0, -1), MAX_DEPTH)

        expected = np.array(color) * 100.0 / (math.pi * 4.0)
        assert np.allclose(result, expected, rtol=1e-4)

    def test_cosine_uses_absolute_value(self, scene):
        """Test the light contributes the same with either normal orientation."""
        scene.add_light((0, 0, 3), (100, 100, 100))

        up = _direct((0, 0, 1), (0, 0, 1), (1, 1, 1))
        down = _direct((0, 0, 1), (0, 0, -1), (1, 1, 1))
        assert np.allclose(up, down)
        assert np.allclose(up, 100.0 / (math.pi * 4.0), rtol=1e-4)

    def test_oblique_light(self, scene):
        """Test the cosine factor for a light at 60 degrees."""
        scene.add_light((math.sqrt(3.0), 0, 1.0), (10, 10, 10))

        result = _direct((0, 0, 0), (0, 0, 1), (1, 1, 1))
        # d = 2, cos = 0.5
        expected = 10.0 * 0.5 / (math.pi * 4.0)
        assert np.allclose(result, expected, rtol=1e-4)

    def test_no_light_gives_zero(self, scene):
        """Test a scene without lights has no direct term."""
        from src.pathtracer.core.integrator import MAX_DEPTH

        scene.add_diffuse_sphere(1.0, (0, 0, 0), (0.5, 0.5, 0.5))

        assert np.all(_direct((0, 0, 1), (0, 0, 1), (1, 1, 1)) == 0.0)
        assert np.all(_radiance((0, 0, 5), (0, 0, -1), MAX_DEPTH) == 0.0)

    def test_occluder_blocks_light(self, scene):
        """Test a sphere between point and light blocks it."""
        scene.add_light((0, 0, 3), (100, 100, 100))
        scene.add_diffuse_sphere(0.2, (0, 0, 2), (0.5, 0.5, 0.5))

        assert np.all(_direct((0, 0, 1), (0, 0, 1), (1, 1, 1)) == 0.0)

    def test_sphere_beyond_light_does_not_block(self, scene):
        """Test a sphere behind the light is not an occluder."""
        scene.add_light((0, 0, 3), (100, 100, 100))
        scene.add_diffuse_sphere(0.2, (0, 0, 5), (0.5, 0.5, 0.5))

        result = _direct((0, 0, 1), (0, 0, 1), (1, 1, 1))
        assert np.allclose(result, 100.0 / (math.pi * 4.0), rtol=1e-4)

    def test_only_first_light_used(self, scene):
        """Test additional lights never contribute."""
        scene.add_light((0, 0, 3), (100, 100, 100))
        scene.add_light((0, 0, 1.5), (1e6, 1e6, 1e6))

        result = _direct((0, 0, 1), (0, 0, 1), (1, 1, 1))
        assert np.allclose(result, 100.0 / (math.pi * 4.0), rtol=1e-4)


class TestTermination:
    """Tests for escaping rays and the depth limit."""

    def test_miss_is_black(self, scene):
        """Test a ray that hits nothing returns zero."""
        scene.add_diffuse_sphere(1.0, (0, 0, 0), (0.5, 0.5, 0.5))
        scene.add_light((0, 5, 0), (100, 100, 100))

        assert np.all(_radiance((0, 0, 5), (0, 0, 1), 0) == 0.0)

    def test_beyond_max_depth_is_black(self, scene):
        """Test depth > MAX_DEPTH returns zero without tracing."""
        from src.pathtracer.core.integrator import MAX_DEPTH

        scene.add_diffuse_sphere(1.0, (0, 0, 0), (0.5, 0.5, 0.5))
        scene.add_light((0, 0, 3), (100, 100, 100))

        assert np.all(_radiance((0, 0, 5), (0, 0, -1), MAX_DEPTH + 1) == 0.0)

    def test_facing_mirrors_terminate(self, scene):
        """Test a ray trapped between two mirrors ends with a finite result."""
        scene.add_mirror_sphere(1.0, (0, 0, 0), (0.9, 0.9, 0.9))
        scene.add_mirror_sphere(1.0, (0, 0, 10), (0.9, 0.9, 0.9))
        scene.add_light((5, 5, 5), (100, 100, 100))

        result = _radiance((0, 0, 5), (0, 0, -1), 0)
        assert np.all(np.isfinite(result))
        assert np.all(result == 0.0)

    def test_radiance_non_negative(self, scene):
        """Test full-depth estimates inside a closed room are non-negative."""
        scene.add_diffuse_sphere(100.0, (0, 0, 0), (0.75, 0.75, 0.75))
        scene.add_diffuse_sphere(2.0, (0, -5, 0), (0.5, 0.2, 0.2))
        scene.add_light((0, 20, 0), (1000, 1000, 1000))

        for seed in range(8):
            result = _radiance((0, 0, 30), (0, -0.6, -0.8), 0, seed=seed)
            assert np.all(np.isfinite(result))
            assert np.all(result >= 0.0)
            assert result.sum() > 0.0


class TestIndirect:
    """Tests for the diffuse bounce term.

    Inside a single diffuse sphere with the light at its center every
    surface point receives the same direct term D = color * E / (pi R^2),
    whichever way the bounce goes. A path of k diffuse vertices therefore
    returns D * (1 + color + ... + color^(k-1)) for any seed.
    """

    RADIUS = 10.0
    COLOR = (0.5, 0.25, 1.0)
    EMISSION = 100.0

    def _room(self, scene):
        scene.add_diffuse_sphere(self.RADIUS, (0, 0, 0), self.COLOR)
        scene.add_light((0, 0, 0), (self.EMISSION,) * 3)

    def _expected(self, vertices):
        color = np.array(self.COLOR)
        direct = color * self.EMISSION / (math.pi * self.RADIUS**2)
        return direct * sum(color**k for k in range(vertices))

    @pytest.mark.parametrize("seed", [0, 1, 7, 123])
    def test_one_bounce_scaled_by_color(self, scene, seed):
        """Test radiance = direct + color * direct at the bounce hit."""
        from src.pathtracer.core.integrator import MAX_DEPTH

        self._room(scene)
        result = _radiance((0, 0, 0), (0, 0, -1), MAX_DEPTH - 1, seed=seed)

        assert np.allclose(result, self._expected(2), rtol=1e-3)

    @pytest.mark.parametrize("seed", [0, 5])
    def test_full_path_geometric_series(self, scene, seed):
        """Test a camera ray collects MAX_DEPTH + 1 diffuse vertices."""
        from src.pathtracer.core.integrator import MAX_DEPTH

        self._room(scene)
        result = _radiance((3, 1, -2), (0.6, 0.0, 0.8), 0, seed=seed)

        assert np.allclose(result, self._expected(MAX_DEPTH + 1), rtol=1e-3)

    def test_indirect_not_unit_weighted(self, scene):
        """Test the bounce is filtered by the color, not added at full weight."""
        from src.pathtracer.core.integrator import MAX_DEPTH

        self._room(scene)
        result = _radiance((0, 0, 0), (0, 0, -1), MAX_DEPTH - 1, seed=3)
        direct = np.array(self.COLOR) * self.EMISSION / (math.pi * self.RADIUS**2)

        # The green channel (color 0.25) separates color weighting from none
        assert not np.isclose(result[1], 2.0 * direct[1], rtol=1e-2)


class TestSpecular:
    """Tests for mirror and glass reflection."""

    def _mirror_scene(self, scene, material, mirror_color=(0.1, 0.2, 0.3)):
        # Mirror at the origin reflects the camera ray back up the z axis
        # into a diffuse target sitting behind the ray origin
        scene.add_sphere(1.0, (0, 0, 0), mirror_color, material)
        scene.add_diffuse_sphere(1.0, (0, 0, 8), (0.5, 0.5, 0.5))
        scene.add_light((0, 0, 4), (100, 100, 100))

    def test_mirror_reflects_without_attenuation(self, scene):
        """Test the mirror color does not scale reflected radiance."""
        from src.pathtracer.core.integrator import MAX_DEPTH

        self._mirror_scene(scene, "mirror")
        result = _radiance((0, 0, 5), (0, 0, -1), MAX_DEPTH - 1)

        # Target hit at (0, 0, 7), light 3 units away straight along the normal
        expected = 0.5 * 100.0 / (math.pi * 9.0)
        assert np.allclose(result, expected, rtol=1e-3)

    def test_mirror_color_irrelevant(self, scene):
        """Test two mirror colors give identical radiance."""
        from src.pathtracer.core.integrator import MAX_DEPTH

        self._mirror_scene(scene, "mirror", mirror_color=(1.0, 1.0, 1.0))
        bright = _radiance((0, 0, 5), (0, 0, -1), MAX_DEPTH - 1)
        scene.clear()
        self._mirror_scene(scene, "mirror", mirror_color=(0.0, 0.0, 0.0))
        dark = _radiance((0, 0, 5), (0, 0, -1), MAX_DEPTH - 1)

        assert np.allclose(bright, dark)

    def test_glass_equals_mirror(self, scene):
        """Test glass and mirror give the same estimate for the same seed."""
        self._mirror_scene(scene, "mirror")
        mirror = _radiance((0, 0, 5), (0, 0, -1), 0, seed=11)
        scene.clear()
        self._mirror_scene(scene, "glass")
        glass = _radiance((0, 0, 5), (0, 0, -1), 0, seed=11)

        assert np.allclose(mirror, glass, rtol=1e-6, atol=1e-7)
        assert mirror.sum() > 0.0


class TestRenderTarget:
    """Tests for render target management."""

    def test_setup_and_dimensions(self):
        """Test setup_render_target records the size and clears counters."""
        from src.pathtracer.core.integrator import (
            get_image_dimensions,
            get_total_samples,
            setup_render_target,
        )

        setup_render_target(64, 48)
        assert get_image_dimensions() == (64, 48)
        assert get_total_samples() == 0

    @pytest.mark.parametrize("size", [(0, 10), (10, -1), (4096, 16), (16, 4096)])
    def test_invalid_size(self, size):
        """Test invalid dimensions raise ValueError."""
        from src.pathtracer.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(*size)

    def test_render_without_setup_raises(self):
        """Test rendering before setup raises RuntimeError."""
        from src.pathtracer.core.integrator import get_image_numpy, render_image, render_pixel

        with pytest.raises(RuntimeError, match="Render target not set up"):
            render_image(1)
        with pytest.raises(RuntimeError, match="Render target not set up"):
            render_pixel(0, 0)
        with pytest.raises(RuntimeError, match="Render target not set up"):
            get_image_numpy()

    def test_accumulation_and_average(self, scene):
        """Test samples accumulate and the image is their average."""
        from src.pathtracer.camera.raster import RasterCamera, setup_camera
        from src.pathtracer.core.integrator import (
            get_image_numpy,
            get_total_samples,
            render_image,
            render_pixel,
            setup_render_target,
        )

        scene.add_diffuse_sphere(1000.0, (50, 40, 0), (0.75, 0.75, 0.75))
        scene.add_light((50, 40, 100), (5000, 5000, 5000))
        setup_camera(RasterCamera())
        setup_render_target(8, 6)

        render_image(num_samples=3, seed=5)
        assert get_total_samples() == 3

        image = get_image_numpy()
        assert image.shape == (6, 8, 3)
        assert image.dtype == np.float32

        # Pixel (3, 2) is the mean of its three samples
        samples = np.array([render_pixel(3, 2, sample_index=i, seed=5) for i in range(3)])
        assert np.allclose(image[2, 3], samples.mean(axis=0), rtol=1e-4, atol=1e-6)

    def test_clear_resets_buffers(self, scene):
        """Test clear_render_target zeroes the image and sample count."""
        from src.pathtracer.camera.raster import RasterCamera, setup_camera
        from src.pathtracer.core.integrator import (
            clear_render_target,
            get_image_numpy,
            get_total_samples,
            render_image,
            setup_render_target,
        )

        scene.add_diffuse_sphere(1000.0, (50, 40, 0), (0.75, 0.75, 0.75))
        scene.add_light((50, 40, 100), (5000, 5000, 5000))
        setup_camera(RasterCamera())
        setup_render_target(4, 4)
        render_image(2)
        assert get_image_numpy().sum() > 0.0

        clear_render_target()
        assert get_total_samples() == 0
        assert get_image_numpy().sum() == 0.0


class TestConstants:
    """Tests for the integrator constants."""

    def test_constants(self):
        """Test the depth limit and ray offset."""
        from src.pathtracer.core.integrator import MAX_DEPTH, RAY_EPSILON

        assert MAX_DEPTH == 3
        assert RAY_EPSILON == 0.01
