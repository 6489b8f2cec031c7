"""Cornell box of spheres.

This module provides a factory for the reference scene: a closed box whose
six walls are huge diffuse spheres, with a mirror sphere and a glass sphere
resting on the floor and a single point light near the ceiling.

The walls are spheres of radius 1000 placed so that the visible part of
each is almost flat. Every wall sphere contains the box interior, so rays
see the inside of each wall. The interior spans roughly x in [1, 99],
y in [0, 81.6] and z in [0, 170]; the raster camera sends rays from
z = 150 toward the back wall at z = 0.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.scene.cornell_box import create_cornell_box_scene
    >>> from src.pathtracer.camera.raster import setup_camera
    >>>
    >>> scene, camera = create_cornell_box_scene()
    >>> setup_camera(camera)
    >>> # Now render using the scene and camera
"""

from dataclasses import dataclass

from src.pathtracer.camera.raster import RasterCamera
from src.pathtracer.geometry.sphere import MaterialType
from src.pathtracer.scene.manager import SceneManager

# =============================================================================
# Cornell Box Parameters
# =============================================================================


@dataclass
class CornellBoxParams:
    """Parameters for configuring the Cornell box scene.

    All parameters default to the reference scene.

    Attributes:
        light_position: Position of the point light.
        light_emission: RGB intensity of the point light.
        left_wall_color: Reflectance of the wall at x = 1.
        right_wall_color: Reflectance of the wall at x = 99.
        white_wall_color: Reflectance of the back wall, floor and ceiling.
        front_wall_color: Reflectance of the wall behind the camera.
        mirror_color: Color stored on the mirror sphere.
        glass_color: Color stored on the glass sphere.

    Example:
        >>> params = CornellBoxParams()
        >>> params.light_emission
        (5000.0, 5000.0, 5000.0)

        >>> # Dimmer, warmer light
        >>> custom = CornellBoxParams(light_emission=(3000.0, 2500.0, 2000.0))
    """

    light_position: tuple[float, float, float] = (50.0, 65.2, 81.6)
    light_emission: tuple[float, float, float] = (5000.0, 5000.0, 5000.0)
    left_wall_color: tuple[float, float, float] = (0.75, 0.25, 0.25)
    right_wall_color: tuple[float, float, float] = (0.25, 0.25, 0.75)
    white_wall_color: tuple[float, float, float] = (0.75, 0.75, 0.75)
    front_wall_color: tuple[float, float, float] = (0.0, 0.0, 0.0)
    mirror_color: tuple[float, float, float] = (0.99, 0.0, 0.99)
    glass_color: tuple[float, float, float] = (0.0, 0.99, 0.99)


# =============================================================================
# Cornell Box Constants
# =============================================================================

# Radius of the wall spheres
WALL_RADIUS = 1000.0

# Radius of the mirror and glass spheres
BALL_RADIUS = 16.5

# Sphere centers
LEFT_WALL_CENTER = (1001.0, 40.8, 81.6)
RIGHT_WALL_CENTER = (-901.0, 40.8, 81.6)
BACK_WALL_CENTER = (50.0, 40.8, 1000.0)
FRONT_WALL_CENTER = (50.0, 40.8, -830.0)
FLOOR_CENTER = (50.0, 1000.0, 81.6)
CEILING_CENTER = (50.0, -918.4, 81.6)
MIRROR_BALL_CENTER = (27.0, 16.5, 47.0)
GLASS_BALL_CENTER = (73.0, 16.5, 78.0)


# =============================================================================
# Cornell Box Factory
# =============================================================================


def create_cornell_box_scene(
    params: CornellBoxParams | None = None,
) -> tuple[SceneManager, RasterCamera]:
    """Create the Cornell box of spheres.

    Spheres are added in a fixed order (left, right, back, front, floor,
    ceiling walls, then the mirror and glass balls), which is also the
    tie-break order for equal-distance hits.

    Args:
        params: Optional overrides for light and colors. If None, uses
            default CornellBoxParams().

    Returns:
        A tuple of (SceneManager, RasterCamera).

    Example:
        >>> scene, camera = create_cornell_box_scene()
        >>> scene.get_sphere_count()
        8
    """
    if params is None:
        params = CornellBoxParams()

    scene = SceneManager()

    # =========================================================================
    # Walls (6 huge diffuse spheres)
    # =========================================================================

    scene.add_diffuse_sphere(WALL_RADIUS, LEFT_WALL_CENTER, params.left_wall_color)
    scene.add_diffuse_sphere(WALL_RADIUS, RIGHT_WALL_CENTER, params.right_wall_color)
    scene.add_diffuse_sphere(WALL_RADIUS, BACK_WALL_CENTER, params.white_wall_color)
    scene.add_diffuse_sphere(WALL_RADIUS, FRONT_WALL_CENTER, params.front_wall_color)
    scene.add_diffuse_sphere(WALL_RADIUS, FLOOR_CENTER, params.white_wall_color)
    scene.add_diffuse_sphere(WALL_RADIUS, CEILING_CENTER, params.white_wall_color)

    # =========================================================================
    # Balls
    # =========================================================================

    scene.add_sphere(BALL_RADIUS, MIRROR_BALL_CENTER, params.mirror_color, MaterialType.MIRROR)
    scene.add_sphere(BALL_RADIUS, GLASS_BALL_CENTER, params.glass_color, MaterialType.GLASS)

    # =========================================================================
    # Light
    # =========================================================================

    scene.add_light(params.light_position, params.light_emission)

    return scene, RasterCamera()
