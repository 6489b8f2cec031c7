"""Camera module for primary ray generation.

Components:
    raster: Projective raster camera mapping pixel (x, y) to a world ray

Pixel coordinates follow image convention: x grows to the right and
y = 0 is the top row.
"""

from .raster import RasterCamera, get_camera_info, get_ray, setup_camera

__all__ = [
    "RasterCamera",
    "setup_camera",
    "get_ray",
    "get_camera_info",
]
