"""Scene manager for building and locking sphere scenes.

This module provides the high-level scene API on top of the raw Taichi
storage in scene.intersection and scene.lights. The SceneManager validates
every sphere before it reaches the GPU fields, keeps a Python-side record
of what was added (for queries and serialization), and can lock the scene
while a render is running.

The SceneManager maintains:
- Validated sphere and light records in insertion order
- A frozen state that rejects mutation during rendering
- Scene serialization to and from plain dictionaries

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.scene.manager import SceneManager
    >>> from src.pathtracer.geometry.sphere import MaterialType
    >>> scene = SceneManager()
    >>> scene.add_sphere(16.5, (27, 16.5, 47), (0.99, 0.99, 0.99), MaterialType.MIRROR)
    >>> scene.add_light((50, 65.2, 81.6), (5000, 5000, 5000))
    >>> with scene.frozen():
    ...     pass  # render here
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import taichi.math as tm

from src.pathtracer.geometry.sphere import MaterialType
from src.pathtracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)
from src.pathtracer.scene.lights import (
    MAX_LIGHTS,
    add_light,
    clear_lights,
    get_light_count,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        radius: The radius of the sphere.
        center: The center of the sphere.
        emission: The stored emission of the sphere.
        color: The reflectance of the sphere.
        material: The material of the sphere.
    """

    sphere_index: int
    radius: float
    center: tuple[float, float, float]
    emission: tuple[float, float, float]
    color: tuple[float, float, float]
    material: MaterialType


@dataclass
class LightInfo:
    """Information about a point light in the scene.

    Attributes:
        light_index: The index in the light storage arrays.
        position: The light position.
        emission: The light intensity per channel.
    """

    light_index: int
    position: tuple[float, float, float]
    emission: tuple[float, float, float]


def _as_triple(value: Any, name: str) -> tuple[float, float, float]:
    """Convert a 3-element sequence to a float tuple.

    Raises:
        ValueError: If value does not have exactly three components.
    """
    values = tuple(float(v) for v in value)
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    return values[0], values[1], values[2]


def _parse_material(material: Any) -> MaterialType:
    """Accept a MaterialType, its integer value or its case-insensitive name."""
    if isinstance(material, str):
        try:
            return MaterialType[material.upper()]
        except KeyError:
            raise ValueError(f"Unknown material: {material}") from None
    try:
        return MaterialType(int(material))
    except ValueError:
        raise ValueError(f"Unknown material: {material}") from None


class SceneManager:
    """Builder and owner of the sphere scene.

    All spheres and lights are pushed into module-level Taichi fields, so
    only one scene is active at a time; creating a SceneManager clears
    whatever was loaded before.

    Attributes:
        spheres: List of SphereInfo for all spheres in insertion order.
        lights: List of LightInfo for all lights in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> scene.add_sphere(1.0, (0, 0, 0), (0.75, 0.25, 0.25), MaterialType.DIFFUSE)
        >>> scene.add_sphere(0.5, (2, 0, 0), (0.99, 0.99, 0.99), "glass")
        >>> scene.add_light((0, 5, 0), (100, 100, 100))
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.spheres: list[SphereInfo] = []
        self.lights: list[LightInfo] = []
        self._frozen = False
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_lights()
        self.spheres.clear()
        self.lights.clear()

    def _check_mutable(self) -> None:
        """Raise if the scene is locked by a running render."""
        if self._frozen:
            raise RuntimeError("Scene is frozen while rendering and cannot be modified")

    def clear(self) -> None:
        """Clear the entire scene (spheres and lights).

        Raises:
            RuntimeError: If the scene is frozen.
        """
        self._check_mutable()
        self._clear_all()

    # =========================================================================
    # Render Lock
    # =========================================================================

    @property
    def is_frozen(self) -> bool:
        """Whether the scene is currently locked."""
        return self._frozen

    @contextmanager
    def frozen(self) -> Iterator["SceneManager"]:
        """Lock the scene for the duration of a render.

        Nested use is allowed; the scene unlocks when the outermost block
        exits.

        Yields:
            This SceneManager.
        """
        was_frozen = self._frozen
        self._frozen = True
        try:
            yield self
        finally:
            self._frozen = was_frozen

    # =========================================================================
    # Sphere and Light Management
    # =========================================================================

    def add_sphere(
        self,
        radius: float,
        center: tuple[float, float, float],
        color: tuple[float, float, float],
        material: MaterialType | int | str = MaterialType.DIFFUSE,
        emission: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> int:
        """Add a sphere to the scene.

        Args:
            radius: The radius of the sphere (must be positive).
            center: The center point as (x, y, z).
            color: Reflectance per channel, each in [0, 1].
            material: A MaterialType, its value or its name.
            emission: Stored emission. Not used for shading.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the scene is frozen or full.
            ValueError: If radius, color or material is invalid.
        """
        self._check_mutable()

        radius = float(radius)
        if not radius > 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")

        center_t = _as_triple(center, "center")
        color_t = _as_triple(color, "color")
        emission_t = _as_triple(emission, "emission")
        if any(c < 0.0 or c > 1.0 for c in color_t):
            raise ValueError(f"Sphere color components must be in [0, 1], got {color_t}")
        material_t = _parse_material(material)

        sphere_index = add_sphere(
            radius,
            vec3(*center_t),
            vec3(*emission_t),
            vec3(*color_t),
            int(material_t),
        )

        info = SphereInfo(
            sphere_index=sphere_index,
            radius=radius,
            center=center_t,
            emission=emission_t,
            color=color_t,
            material=material_t,
        )
        self.spheres.append(info)
        logger.debug("Added %s sphere %d: r=%g c=%s", material_t.name, sphere_index, radius, center_t)

        return sphere_index

    def add_diffuse_sphere(self, radius: float, center, color) -> int:
        """Add a diffuse sphere. Convenience method."""
        return self.add_sphere(radius, center, color, MaterialType.DIFFUSE)

    def add_mirror_sphere(self, radius: float, center, color) -> int:
        """Add a mirror sphere. Convenience method."""
        return self.add_sphere(radius, center, color, MaterialType.MIRROR)

    def add_glass_sphere(self, radius: float, center, color) -> int:
        """Add a glass sphere (shaded as a mirror). Convenience method."""
        return self.add_sphere(radius, center, color, MaterialType.GLASS)

    def add_light(
        self,
        position: tuple[float, float, float],
        emission: tuple[float, float, float],
    ) -> int:
        """Add a point light to the scene.

        Only the first light contributes to direct lighting.

        Args:
            position: The light position as (x, y, z).
            emission: Intensity per channel (non-negative).

        Returns:
            The index of the added light.

        Raises:
            RuntimeError: If the scene is frozen or full.
            ValueError: If emission has negative components.
        """
        self._check_mutable()

        position_t = _as_triple(position, "position")
        emission_t = _as_triple(emission, "emission")
        if any(e < 0.0 for e in emission_t):
            raise ValueError(f"Light emission must be non-negative, got {emission_t}")

        light_index = add_light(vec3(*position_t), vec3(*emission_t))
        self.lights.append(
            LightInfo(light_index=light_index, position=position_t, emission=emission_t)
        )
        return light_index

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    def get_light_count(self) -> int:
        """Get the number of lights in the scene."""
        return get_light_count()

    def get_sphere_info(self, sphere_index: int) -> SphereInfo | None:
        """Get information about a sphere, or None for an unknown index."""
        if 0 <= sphere_index < len(self.spheres):
            return self.spheres[sphere_index]
        return None

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization).

        Returns:
            A dictionary with 'spheres' and 'lights' lists.
        """
        return {
            "spheres": [
                {
                    "radius": s.radius,
                    "center": list(s.center),
                    "emission": list(s.emission),
                    "color": list(s.color),
                    "material": s.material.name.lower(),
                }
                for s in self.spheres
            ],
            "lights": [
                {"position": list(light.position), "emission": list(light.emission)}
                for light in self.lights
            ],
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Clears the current scene first.

        Args:
            data: Dictionary with 'spheres' and 'lights' keys.

        Raises:
            RuntimeError: If the scene is frozen.
            ValueError: If the data contains invalid spheres or lights.
        """
        self.clear()

        for sphere_config in data.get("spheres", []):
            self.add_sphere(
                radius=sphere_config.get("radius", 1.0),
                center=sphere_config.get("center", [0.0, 0.0, 0.0]),
                color=sphere_config.get("color", [0.5, 0.5, 0.5]),
                material=sphere_config.get("material", "diffuse"),
                emission=sphere_config.get("emission", [0.0, 0.0, 0.0]),
            )

        for light_config in data.get("lights", []):
            self.add_light(
                position=light_config.get("position", [0.0, 0.0, 0.0]),
                emission=light_config.get("emission", [1.0, 1.0, 1.0]),
            )

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_lights() -> int:
        """Get the maximum number of lights supported."""
        return MAX_LIGHTS
