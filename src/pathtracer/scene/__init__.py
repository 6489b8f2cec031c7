"""Scene module for sphere storage, lights and scene building.

Components:
    intersection: Sphere storage in Taichi fields and nearest-hit queries
    lights: Point light storage
    manager: SceneManager with validation, locking and serialization
    cornell_box: The Cornell box of spheres reference scene

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for sphere data
    - Insertion order preserved (first sphere wins equal-distance hits)
"""

from .cornell_box import CornellBoxParams, create_cornell_box_scene
from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere,
    get_sphere_count,
    intersect_scene,
)
from .lights import MAX_LIGHTS, add_light, clear_lights, get_light_count
from .manager import LightInfo, SceneManager, SphereInfo

__all__ = [
    # Intersection module
    "add_sphere",
    "clear_scene",
    "get_sphere",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Lights module
    "add_light",
    "clear_lights",
    "get_light_count",
    "MAX_LIGHTS",
    # Manager module
    "SceneManager",
    "SphereInfo",
    "LightInfo",
    # Cornell box module
    "CornellBoxParams",
    "create_cornell_box_scene",
]
