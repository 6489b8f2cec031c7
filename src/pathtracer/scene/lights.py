"""Point light storage.

Lights live in Taichi fields next to the sphere storage. Lights are
invisible to camera and bounce rays; they only contribute through shadow
rays in direct lighting, and only the first light is sampled.
"""

import logging

import taichi as ti
import taichi.math as tm

logger = logging.getLogger(__name__)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Maximum number of lights stored in the scene
MAX_LIGHTS = 16

light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_emissions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_lights() -> None:
    """Remove all lights from the scene."""
    num_lights[None] = 0


def add_light(position: vec3, emission: vec3) -> int:
    """Append a point light.

    Args:
        position: World-space position of the light.
        emission: Radiant intensity per RGB channel.

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    if idx >= 1:
        logger.warning(
            "Scene has %d lights; only the first is used for direct lighting", idx + 1
        )
    light_positions[idx] = position
    light_emissions[idx] = emission
    num_lights[None] = idx + 1
    return idx


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])


@ti.func
def has_light() -> ti.i32:
    """1 if the scene holds at least one light, else 0."""
    return ti.select(num_lights[None] > 0, 1, 0)


@ti.func
def get_primary_light():
    """Return (position, emission) of the first light.

    Only meaningful when has_light() is 1.
    """
    return light_positions[0], light_emissions[0]
