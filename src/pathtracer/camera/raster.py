"""Raster camera mapping pixels to primary rays.

The camera is a simple projective mapping rather than a look-at pinhole.
For pixel (x, y) of a width x height image, with y = 0 on the top row:

    rx = S * (x / width - 0.5)
    ry = S * ((height - y) / height - 0.5)
    p0 = (rx, ry, D)
    p1 = (k * rx, k * ry, 0)

The ray leaves from p0 + offset in direction normalize(p1 - p0). S scales
the image plane, k spreads the rays (k > 1 widens the view) and D places
the image plane along +z. Rays are traced through the pixel corner, with no
sub-pixel jitter.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.camera.raster import RasterCamera, setup_camera, get_ray
    >>> setup_camera(RasterCamera())
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0, 0, 768, 768)  # Ray through the top-left pixel
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import Ray, make_ray
from src.pathtracer.core.vector import add, normalize, sub

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class RasterCamera:
    """Configuration for the raster camera.

    Attributes:
        plane_size: Extent S of the image plane in world units.
        spread: Ratio k between the far and near plane coordinates.
        plane_distance: z coordinate D of the near plane.
        offset: Translation applied to every ray origin.
    """

    plane_size: float = 100.0
    spread: float = 1.3
    plane_distance: float = 150.0
    offset: tuple[float, float, float] = (50.0, 40.0, 0.0)


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_plane_size = ti.field(dtype=ti.f32, shape=())
_spread = ti.field(dtype=ti.f32, shape=())
_plane_distance = ti.field(dtype=ti.f32, shape=())
_offset = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_camera(camera: RasterCamera) -> None:
    """Copy the camera configuration into Taichi fields.

    Must be called from Python before rendering.

    Args:
        camera: The camera configuration.

    Raises:
        ValueError: If plane_size is not positive.
    """
    if camera.plane_size <= 0.0:
        raise ValueError(f"Camera plane_size must be positive, got {camera.plane_size}")

    _plane_size[None] = camera.plane_size
    _spread[None] = camera.spread
    _plane_distance[None] = camera.plane_distance
    _offset[None] = list(camera.offset)


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def get_ray(pixel_x: ti.i32, pixel_y: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate the primary ray of a pixel.

    Args:
        pixel_x: Pixel column (0 = left).
        pixel_y: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        The primary ray with a unit direction.
    """
    w = ti.cast(width, ti.f32)
    h = ti.cast(height, ti.f32)
    size = _plane_size[None]
    k = _spread[None]

    rx = size * (ti.cast(pixel_x, ti.f32) / w - 0.5)
    ry = size * ((h - ti.cast(pixel_y, ti.f32)) / h - 0.5)
    p0 = vec3(rx, ry, _plane_distance[None])
    p1 = vec3(k * rx, k * ry, 0.0)

    return make_ray(add(p0, _offset[None]), normalize(sub(p1, p0)))


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, float | tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with plane_size, spread, plane_distance and offset.
    """
    offset = _offset[None]
    return {
        "plane_size": float(_plane_size[None]),
        "spread": float(_spread[None]),
        "plane_distance": float(_plane_distance[None]),
        "offset": (float(offset[0]), float(offset[1]), float(offset[2])),
    }
