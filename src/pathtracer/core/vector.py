"""Vector algebra for 3-component vectors.

All functions operate on ``ti.math.vec3`` values and are usable from Taichi
kernels. The same vector type doubles as a point, a direction and an RGB
color. Every operation is pure and returns a new value.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.vector import add, normalize, vec3
    >>> @ti.kernel
    ... def demo() -> ti.f32:
    ...     return normalize(add(vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))).x
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.func
def add(a: vec3, b: vec3) -> vec3:
    """Component-wise sum a + b."""
    return vec3(a.x + b.x, a.y + b.y, a.z + b.z)


@ti.func
def sub(a: vec3, b: vec3) -> vec3:
    """Component-wise difference a - b."""
    return vec3(a.x - b.x, a.y - b.y, a.z - b.z)


@ti.func
def mul(a: vec3, b: vec3) -> vec3:
    """Component-wise product, used to filter a color by a reflectance."""
    return vec3(a.x * b.x, a.y * b.y, a.z * b.z)


@ti.func
def mulf(v: vec3, f: ti.f32) -> vec3:
    """Scale a vector by a scalar."""
    return vec3(v.x * f, v.y * f, v.z * f)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Dot product a . b."""
    m = mul(a, b)
    return m.x + m.y + m.z


@ti.func
def length2(v: vec3) -> ti.f32:
    """Squared length of a vector.

    Cheaper than the length when only comparisons or ratios are needed,
    as it avoids the square root.
    """
    return v.x * v.x + v.y * v.y + v.z * v.z


@ti.func
def normalize(v: vec3) -> vec3:
    """Scale a vector to unit length.

    The input must be non-zero. A zero vector divides by zero and yields
    inf/NaN components; callers guarantee non-degenerate input (for example
    never normalizing the difference of two coincident points).

    Args:
        v: The input vector.

    Returns:
        A unit vector with the direction of v.
    """
    return mulf(v, 1.0 / ti.sqrt(length2(v)))
