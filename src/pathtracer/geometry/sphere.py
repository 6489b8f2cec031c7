"""Sphere primitive and ray-sphere intersection.

Spheres are the only primitive in the scene. Each sphere carries its
reflectance color and a material tag that selects how the integrator
scatters light off it.

The intersection solves the quadratic

    |O + t*D - C|^2 = r^2

with a = |D|^2, b = -2 D.(C - O), c = |C - O|^2 - r^2 and keeps the nearest
root that is not behind the ray origin. A ray starting inside a sphere
therefore reports the exit point.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.geometry.sphere import Sphere, MaterialType
    >>> sphere = Sphere(
    ...     radius=3.0,
    ...     center=ti.math.vec3(10, 0, 0),
    ...     color=ti.math.vec3(0.75, 0.75, 0.75),
    ...     material=int(MaterialType.DIFFUSE),
    ... )
    >>> # Use intersect_sphere within a Taichi kernel
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import Ray
from src.pathtracer.core.vector import dot, length2, sub

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


class MaterialType(IntEnum):
    """Surface response of a sphere.

    Stored in Taichi fields as i32. GLASS has no refraction and is shaded
    exactly like MIRROR.
    """

    DIFFUSE = 0
    MIRROR = 1
    GLASS = 2


@ti.dataclass
class Sphere:
    """A sphere with surface properties.

    Attributes:
        radius: The radius of the sphere (positive).
        center: The center point of the sphere.
        emission: Emitted radiance. Stored with the sphere but not used by
            the integrator; only point lights emit.
        color: Reflectance per RGB channel, each in [0, 1].
        material: A MaterialType value.
    """

    radius: ti.f32
    center: vec3
    emission: vec3
    color: vec3
    material: ti.i32


@ti.dataclass
class Intersect:
    """Result of a ray query against a sphere or the whole scene.

    Attributes:
        hit: 1 if the ray hit something, 0 on a miss.
        t: Distance along the ray to the hit point. Only valid if hit == 1.
        sphere_index: Index of the hit sphere in the scene storage, -1 when
            the query was made against a standalone sphere or missed.
    """

    hit: ti.i32
    t: ti.f32
    sphere_index: ti.i32


@ti.func
def make_miss() -> Intersect:
    """Create an Intersect describing a miss."""
    return Intersect(hit=0, t=0.0, sphere_index=-1)


@ti.func
def intersect_sphere(sphere: Sphere, ray: Ray) -> Intersect:
    """Find where a ray first meets a sphere.

    Args:
        sphere: The sphere to test.
        ray: The ray to trace. Its direction need not be unit length.

    Returns:
        An Intersect with hit == 1 and the smallest non-negative root if one
        exists. The smaller root wins when it is >= 0; otherwise the larger
        root is used when it is >= 0 (origin inside the sphere). Otherwise
        a miss.
    """
    oc = sub(sphere.center, ray.origin)
    a = length2(ray.direction)
    b = -2.0 * dot(ray.direction, oc)
    c = length2(oc) - sphere.radius * sphere.radius
    discriminant = b * b - 4.0 * a * c

    result = make_miss()
    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0 = (-b - sqrt_d) / (2.0 * a)
        t1 = (-b + sqrt_d) / (2.0 * a)
        if t0 >= 0.0:
            result = Intersect(hit=1, t=t0, sphere_index=-1)
        elif t1 >= 0.0:
            result = Intersect(hit=1, t=t1, sphere_index=-1)

    return result


@ti.func
def make_sphere(radius: ti.f32, center: vec3, color: vec3, material: ti.i32) -> Sphere:
    """Create a non-emissive sphere within a Taichi kernel.

    Args:
        radius: The radius of the sphere (should be positive).
        center: The center point of the sphere.
        color: Reflectance per channel.
        material: A MaterialType value.

    Returns:
        A new Sphere instance.
    """
    return Sphere(
        radius=radius,
        center=center,
        emission=vec3(0.0, 0.0, 0.0),
        color=color,
        material=material,
    )
