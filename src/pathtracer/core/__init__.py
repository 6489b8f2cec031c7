"""Core rendering module.

Components:
    vector: 3-component vector algebra (points, directions and colors)
    ray: Ray data structure and mirror reflection
    sampling: Per-sample random state, hemisphere sampling and local frames
    integrator: Radiance estimation and the per-pixel rendering kernels
    image: Radiance image buffer, tonemap and P3 writer
    progressive: Batch renderer and the render_scene driver

All compute-intensive operations use Taichi kernels.
"""

from .image import Image, tonemap, tonemap_array
from .ray import Ray, make_ray, ray_at, reflect
from .vector import add, dot, length2, mul, mulf, normalize, sub, vec3

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from src.pathtracer.core.integrator or src.pathtracer.core.progressive.

__all__ = [
    "Image",
    "tonemap",
    "tonemap_array",
    "Ray",
    "make_ray",
    "ray_at",
    "reflect",
    "add",
    "sub",
    "mul",
    "mulf",
    "dot",
    "length2",
    "normalize",
    "vec3",
]
