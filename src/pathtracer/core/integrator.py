"""Path tracing integrator for Monte Carlo light transport.

This module estimates the radiance arriving along a ray and drives the
per-pixel rendering kernels.

The estimator at a surface hit depends on the sphere's material:
    - Diffuse: direct lighting from the first point light through a shadow
      ray, plus the surface color times the radiance of one cosine-weighted
      bounce ray.
    - Mirror and Glass: the radiance along the perfect reflection, without
      attenuation by the surface color.

Paths stop after MAX_DEPTH bounces, when a ray escapes the scene, or never
for any other reason (no Russian roulette). Taichi functions cannot
recurse, so the recursion is unrolled into a loop: a throughput carries the
product of the diffuse colors seen so far, and every diffuse vertex adds
throughput * direct to the result.

Random numbers come from a private generator per pixel sample (see
core.sampling), so rendering the same scene with the same seed gives the
same image regardless of how pixels are scheduled.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.integrator import (
    ...     render_image, setup_render_target, get_image_numpy
    ... )
    >>> from src.pathtracer.scene.cornell_box import create_cornell_box_scene
    >>> from src.pathtracer.camera.raster import setup_camera
    >>>
    >>> scene, camera = create_cornell_box_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(256, 256)
    >>> render_image(num_samples=10, seed=0)
    >>> pixels = get_image_numpy()
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from src.pathtracer.camera.raster import get_ray
from src.pathtracer.core.ray import Ray, make_ray, ray_at, reflect
from src.pathtracer.core.sampling import (
    branchless_onb,
    flip_normal,
    local_to_world,
    sample_cosine_hemisphere,
    seed_sampler,
    uniform_2d,
)
from src.pathtracer.core.vector import add, dot, length2, mul, mulf, normalize, sub
from src.pathtracer.geometry.sphere import MaterialType
from src.pathtracer.scene.intersection import get_sphere, intersect_scene
from src.pathtracer.scene.lights import get_primary_light, has_light

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Deepest bounce that still contributes; depth > MAX_DEPTH is black
MAX_DEPTH = 3

# Offset applied along the outgoing direction to escape the surface
RAY_EPSILON = 0.01


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Radiance sum per pixel, indexed [x, y] with y = 0 the top row
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Number of full passes rendered; the next pass uses it as its sample index
_passes_rendered = ti.field(dtype=ti.i32, shape=())

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers. The buffers are
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_sum.fill(0.0)
    _sample_count.fill(0)
    _passes_rendered[None] = 0


def reset_render_target() -> None:
    """Clear the buffers and mark the render target as not set up."""
    clear_render_target()
    _render_target_initialized[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Radiance Estimation
# =============================================================================


@ti.func
def compute_direct_lighting(point: vec3, normal: vec3, color: vec3) -> vec3:
    """Direct illumination of a diffuse point by the first light.

    A shadow ray leaves from point + L * RAY_EPSILON toward the light. The
    light is blocked when any sphere is hit at t < d, the distance from the
    point to the light. An unblocked light contributes

        color * |n . L| / (pi * d^2) * emission

    Args:
        point: The shaded surface point.
        normal: The unit surface normal (either orientation).
        color: The surface reflectance.

    Returns:
        The reflected direct radiance, zero when the scene has no light or
        the light is occluded.
    """
    result = vec3(0.0, 0.0, 0.0)

    if has_light() == 1:
        light_position, light_emission = get_primary_light()
        to_light = sub(light_position, point)
        dist2 = length2(to_light)
        dist = ti.sqrt(dist2)
        light_dir = mulf(to_light, 1.0 / dist)

        shadow_ray = make_ray(add(point, mulf(light_dir, RAY_EPSILON)), light_dir)
        blocker = intersect_scene(shadow_ray)

        visible = 1
        if blocker.hit == 1:
            if blocker.t < dist:
                visible = 0

        if visible == 1:
            cos_term = ti.abs(dot(normal, light_dir))
            result = mulf(mul(color, light_emission), cos_term / (tm.pi * dist2))

    return result


@ti.func
def sample_indirect_direction(ray_direction: vec3, normal: vec3, state: ti.u32):
    """Sample a cosine-weighted bounce direction above a diffuse surface.

    The normal is first flipped to face the incoming ray, so the bounce
    always leaves on the side the ray came from.

    Args:
        ray_direction: Direction of the incoming ray.
        normal: The unit geometric normal.
        state: The sampler state.

    Returns:
        A tuple of (direction, new_state).
    """
    n = flip_normal(ray_direction, normal)
    b1, b2 = branchless_onb(n)
    uv, new_state = uniform_2d(state)
    local_dir, _pdf = sample_cosine_hemisphere(uv.x, uv.y)
    return local_to_world(local_dir, b1, b2, n), new_state


@ti.func
def radiance(ray: Ray, depth: ti.i32, state: ti.u32):
    """Estimate the radiance arriving along a ray.

    Args:
        ray: The ray to trace.
        depth: Bounce depth of this ray (0 for camera rays).
        state: The sampler state of this pixel sample.

    Returns:
        A tuple of (radiance, new_state).
    """
    result = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray
    current_depth = depth
    rng = state

    # Active flag for path continuation (Taichi doesn't support break in ti.func loops)
    active = 1

    for _ in range(MAX_DEPTH + 1):
        if active == 1:
            if current_depth > MAX_DEPTH:
                active = 0
            else:
                rec = intersect_scene(current)
                if rec.hit == 0:
                    active = 0
                else:
                    sphere = get_sphere(rec.sphere_index)
                    point = ray_at(current, rec.t)
                    normal = normalize(sub(point, sphere.center))

                    if sphere.material == int(MaterialType.DIFFUSE):
                        direct = compute_direct_lighting(point, normal, sphere.color)
                        result = add(result, mul(throughput, direct))

                        bounce_dir, rng = sample_indirect_direction(current.direction, normal, rng)
                        throughput = mul(throughput, sphere.color)
                        current = make_ray(add(point, mulf(bounce_dir, RAY_EPSILON)), bounce_dir)
                    else:
                        # Mirror and Glass
                        mirror_dir = reflect(current.direction, normal)
                        current = make_ray(add(point, mulf(mirror_dir, RAY_EPSILON)), mirror_dir)

                    current_depth += 1

    return result, rng


@ti.func
def render_sample_impl(
    pixel_x: ti.i32,
    pixel_y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_index: ti.i32,
    seed: ti.i32,
) -> vec3:
    """Render one sample of one pixel.

    Args:
        pixel_x: Pixel column (0 = left).
        pixel_y: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.
        sample_index: Index of this sample within the pixel.
        seed: Render-wide seed.

    Returns:
        The estimated radiance (RGB) for this sample.
    """
    state = seed_sampler(pixel_x + pixel_y * width, sample_index, seed)
    ray = get_ray(pixel_x, pixel_y, width, height)
    color, _state = radiance(ray, 0, state)
    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, sample_index: ti.i32, seed: ti.i32):
    """Render one sample per pixel and add it to the radiance sum.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        sample_index: Sample index shared by every pixel in this pass.
        seed: Render-wide seed.
    """
    for x, y in ti.ndrange(width, height):
        _color_sum[x, y] += render_sample_impl(x, y, width, height, sample_index, seed)
        _sample_count[x, y] += 1


@ti.kernel
def _render_single_pixel(
    pixel_x: ti.i32,
    pixel_y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    sample_index: ti.i32,
    seed: ti.i32,
) -> vec3:
    """Render a single sample for a specific pixel without accumulating.

    Used for testing and debugging individual pixel rendering.
    """
    return render_sample_impl(pixel_x, pixel_y, width, height, sample_index, seed)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_pixel(
    pixel_x: int, pixel_y: int, sample_index: int = 0, seed: int = 0
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    The result equals what render_image adds to that pixel for the same
    sample index and seed.

    Args:
        pixel_x: Pixel column (0 = left).
        pixel_y: Pixel row (0 = top).
        sample_index: Index of the sample within the pixel.
        seed: Render-wide seed.

    Returns:
        Tuple of (R, G, B) radiance values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _render_single_pixel(pixel_x, pixel_y, width, height, sample_index, seed)

    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1, seed: int = 0) -> None:
    """Render the image with the specified number of samples per pixel.

    Adds samples to the buffers; calling it again continues with the next
    sample indices, so two calls of 5 samples equal one call of 10.

    Args:
        num_samples: Number of samples to render per pixel.
        seed: Render-wide seed.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    for _ in range(num_samples):
        sample_index = int(_passes_rendered[None])
        _render_one_spp(width, height, sample_index, seed)
        _passes_rendered[None] = sample_index + 1


def get_total_samples() -> int:
    """Get the number of samples per pixel rendered so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_passes_rendered[None])


def get_image_numpy() -> np.ndarray:
    """Get the averaged radiance as a NumPy array.

    Each pixel is its radiance sum divided by its sample count; pixels
    without samples are zero. Values are not clamped.

    Returns:
        NumPy float32 array of shape (height, width, 3), row 0 on top.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    color_sum = _color_sum.to_numpy()[:width, :height, :]
    counts = _sample_count.to_numpy()[:width, :height]

    image = color_sum / np.maximum(counts, 1)[:, :, np.newaxis]

    # Transpose from (width, height, 3) to (height, width, 3); y = 0 is already the top row
    image = np.transpose(image, (1, 0, 2))

    return image.astype(np.float32)
