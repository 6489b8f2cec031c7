"""Random sampling utilities for Monte Carlo integration.

Each pixel sample owns a private 32-bit generator state instead of sharing
a global random source. The state is seeded from the pixel index, the sample
index and a render seed, then advanced with xorshift32 on every draw. The
value a pixel computes therefore depends only on its coordinates, its sample
index and the seed, never on the order in which Taichi schedules pixels.

Most formulas follow the Global Illumination Compendium (Dutre) and
"Building an Orthonormal Basis, Revisited" (Duff et al., JCGT 2017).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.sampling import (
    ...     seed_sampler, uniform_2d, sample_cosine_hemisphere
    ... )
    >>> # Use within a Taichi kernel:
    >>> # state = seed_sampler(pixel_index, sample_index, seed)
    >>> # uv, state = uniform_2d(state)
    >>> # direction, pdf = sample_cosine_hemisphere(uv.x, uv.y)
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.vector import add, dot, mulf

# Type aliases for vectors
vec2 = tm.vec2
vec3 = tm.vec3

# 1 / 2^24: maps the top 24 bits of a draw onto [0, 1)
_INV_2_POW_24 = 1.0 / 16777216.0


# =============================================================================
# Per-sample Random State
# =============================================================================


@ti.func
def wang_hash(key: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer (Thomas Wang's integer hash).

    Used to turn structured seeds (consecutive pixel indices) into
    well-spread generator states.
    """
    h = (key ^ ti.u32(61)) ^ (key >> ti.u32(16))
    h = h * ti.u32(9)
    h = h ^ (h >> ti.u32(4))
    h = h * ti.u32(0x27D4EB2D)
    h = h ^ (h >> ti.u32(15))
    return h


@ti.func
def xorshift32(state: ti.u32) -> ti.u32:
    """Advance a xorshift32 generator by one step.

    The state must be non-zero; zero is a fixed point of the generator.
    """
    x = state
    x = x ^ (x << ti.u32(13))
    x = x ^ (x >> ti.u32(17))
    x = x ^ (x << ti.u32(5))
    return x


@ti.func
def seed_sampler(pixel_index: ti.i32, sample_index: ti.i32, seed: ti.i32) -> ti.u32:
    """Derive the private generator state of one pixel sample.

    Args:
        pixel_index: Linear pixel index (x + y * width).
        sample_index: Index of the sample within the pixel.
        seed: Render-wide seed.

    Returns:
        A non-zero generator state.
    """
    h = wang_hash(ti.cast(seed, ti.u32))
    h = wang_hash(h ^ ti.cast(pixel_index, ti.u32))
    h = wang_hash(h ^ ti.cast(sample_index, ti.u32))
    if h == ti.u32(0):
        h = ti.u32(1)
    return h


@ti.func
def next_random(state: ti.u32):
    """Draw one uniform value in [0, 1).

    Args:
        state: The current generator state.

    Returns:
        A tuple of (value, new_state).
    """
    new_state = xorshift32(state)
    value = ti.cast(new_state >> ti.u32(8), ti.f32) * _INV_2_POW_24
    return value, new_state


@ti.func
def uniform_2d(state: ti.u32):
    """Draw two independent uniform values in [0, 1).

    Args:
        state: The current generator state.

    Returns:
        A tuple of (sample, new_state) where sample is a vec2 (u, v).
    """
    u, s1 = next_random(state)
    v, s2 = next_random(s1)
    return vec2(u, v), s2


# =============================================================================
# Hemisphere Sampling and Local Frames
# =============================================================================


@ti.func
def sample_cosine_hemisphere(u: ti.f32, v: ti.f32):
    """Map a 2D uniform sample to a cosine-weighted direction around +z.

    Uses phi = 2*pi*u, cos(theta) = sqrt(v), sin(theta) = sqrt(1 - v).
    The density is cos(theta) / pi, which exactly cancels the cosine
    term of a Lambertian reflection, so the estimator only has to multiply
    by the surface color.

    Args:
        u: First uniform value in [0, 1).
        v: Second uniform value in [0, 1).

    Returns:
        A tuple of (direction, pdf) where direction is a unit vector in the
        local frame (z-up) and pdf = cos(theta) / pi.
    """
    phi = 2.0 * tm.pi * u
    cos_theta = ti.sqrt(v)
    sin_theta = ti.sqrt(1.0 - v)
    direction = vec3(ti.cos(phi) * sin_theta, ti.sin(phi) * sin_theta, cos_theta)
    pdf = cos_theta / tm.pi
    return direction, pdf


@ti.func
def branchless_onb(n: vec3):
    """Build two tangent vectors completing an orthonormal basis around n.

    Duff et al.'s construction: the sign of n.z selects the branch of the
    formula, so no special case is needed at the poles n = (0, 0, +-1) and
    the denominator s + n.z never vanishes.

    Args:
        n: A unit normal.

    Returns:
        A tuple (b1, b2) such that (b1, b2, n) is orthonormal.
    """
    sign = ti.select(n.z < 0.0, -1.0, 1.0)
    a = -1.0 / (sign + n.z)
    b = n.x * n.y * a
    b1 = vec3(1.0 + sign * n.x * n.x * a, sign * b, -sign * n.x)
    b2 = vec3(b, sign + n.y * n.y * a, -n.y)
    return b1, b2


@ti.func
def local_to_world(local_dir: vec3, b1: vec3, b2: vec3, n: vec3) -> vec3:
    """Transform a direction from a z-up local frame to world space.

    Args:
        local_dir: Direction in local coordinates (z along n).
        b1: The x-axis of the local frame in world coordinates.
        b2: The y-axis of the local frame in world coordinates.
        n: The z-axis of the local frame in world coordinates.

    Returns:
        The direction in world coordinates.
    """
    return add(add(mulf(b1, local_dir.x), mulf(b2, local_dir.y)), mulf(n, local_dir.z))


@ti.func
def flip_normal(ray_direction: vec3, n: vec3) -> vec3:
    """Orient a normal to face back toward the incoming ray.

    Args:
        ray_direction: Direction of the ray that hit the surface.
        n: The geometric normal.

    Returns:
        -n if n points into the same hemisphere as ray_direction, else n.
    """
    result = n
    if dot(n, ray_direction) > 0.0:
        result = mulf(n, -1.0)
    return result
