"""Scene sphere storage and nearest-hit queries.

Spheres are kept in module-level Taichi fields (Structure of Arrays) so
kernels can read them directly. The scene is an ordered list: insertion
order is the order intersect_scene visits spheres, and the first sphere
wins when two hits are at exactly the same distance.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.scene.intersection import (
    ...     add_sphere, clear_scene, intersect_scene
    ... )
    >>> clear_scene()
    >>> add_sphere(3.0, vec3(10, 0, 0), vec3(0, 0, 0), vec3(0.75, 0.75, 0.75), 0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import Ray
from src.pathtracer.geometry.sphere import Intersect, Sphere, intersect_sphere, make_miss

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout for GPU efficiency
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_emissions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_materials = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres from the scene.

    Resets the sphere count to zero. The field data is not cleared but will
    be overwritten when new spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(radius: float, center: vec3, emission: vec3, color: vec3, material: int) -> int:
    """Append a sphere to the scene.

    No validation happens here; SceneManager checks radius and color
    ranges before calling this.

    Args:
        radius: The radius of the sphere.
        center: The center point of the sphere.
        emission: Emitted radiance (stored, not used for shading).
        color: Reflectance per channel.
        material: A MaterialType value.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_radii[idx] = radius
    sphere_centers[idx] = center
    sphere_emissions[idx] = emission
    sphere_colors[idx] = color
    sphere_materials[idx] = material
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_sphere(index: ti.i32) -> Sphere:
    """Load the sphere stored at index."""
    return Sphere(
        radius=sphere_radii[index],
        center=sphere_centers[index],
        emission=sphere_emissions[index],
        color=sphere_colors[index],
        material=sphere_materials[index],
    )


@ti.func
def intersect_scene(ray: Ray) -> Intersect:
    """Find the nearest sphere hit along a ray.

    Tests every sphere in insertion order and keeps a hit only when its t
    is strictly smaller than the best so far.

    Args:
        ray: The ray to trace.

    Returns:
        The nearest Intersect with sphere_index set, or a miss when no
        sphere is hit.
    """
    result = make_miss()

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        rec = intersect_sphere(get_sphere(i), ray)
        if rec.hit == 1:
            if result.hit == 0 or rec.t < result.t:
                result = Intersect(hit=1, t=rec.t, sphere_index=i)

    return result
