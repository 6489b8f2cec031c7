"""Progressive renderer for iterative sample accumulation.

This module wraps the core integrator with:
- Batch rendering (multiple SPP per call) with progress callbacks
- A generator interface for step-by-step rendering
- Scene locking so the scene cannot change mid-render
- Conversion of the accumulated buffer into an Image

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.progressive import ProgressiveRenderer
    >>> from src.pathtracer.scene.cornell_box import create_cornell_box_scene
    >>> from src.pathtracer.camera.raster import setup_camera
    >>>
    >>> scene, camera = create_cornell_box_scene()
    >>> setup_camera(camera)
    >>>
    >>> renderer = ProgressiveRenderer(256, 256, seed=7, scene=scene)
    >>> renderer.render(10)
    >>> renderer.get_image().write("cornell.ppm")
"""

import logging
from collections.abc import Callable, Generator

from src.pathtracer.camera.raster import RasterCamera, setup_camera
from src.pathtracer.config import RenderSettings
from src.pathtracer.core.image import Image
from src.pathtracer.core.integrator import (
    clear_render_target,
    get_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from src.pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer delegates to the global integrator buffers (Taichi
    fields), so only one renderer should be active at a time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        seed: Render-wide seed passed to every sample.
        scene: Optional scene locked while batches are rendered.
    """

    def __init__(
        self,
        width: int,
        height: int,
        seed: int = 0,
        scene: SceneManager | None = None,
    ) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            seed: Render-wide seed.
            scene: Scene to lock while rendering.

        Raises:
            ValueError: If dimensions are not positive or exceed the maximum.
        """
        self._width = width
        self._height = height
        self.seed = seed
        self.scene = scene
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear the accumulated samples, keeping the image size."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset accumulator.

        Raises:
            ValueError: If dimensions are not positive or exceed the maximum.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def _render_batch(self, batch: int) -> None:
        if self.scene is None:
            render_image(batch, seed=self.seed)
        else:
            with self.scene.frozen():
                render_image(batch, seed=self.seed)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).
        """
        if num_samples <= 0:
            return

        batch_size = max(1, batch_size)
        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            self._render_batch(batch)
            remaining -= batch
            logger.debug("Rendered %d/%d samples per pixel", self.sample_count, target_samples)
            yield (self.sample_count, target_samples)

    def get_image(self) -> Image:
        """Get the averaged radiance as an Image."""
        return Image(self.width, self.height, get_image_numpy())

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count}, seed={self.seed})"
        )


def render_scene(
    settings: RenderSettings,
    scene: SceneManager,
    camera: RasterCamera,
    callback: ProgressCallback | None = None,
) -> Image:
    """Render a scene from start to finish.

    Validates the settings, configures the camera, renders
    settings.samples_per_pixel samples in batches and returns the averaged
    image. Writing the image is left to the caller.

    Args:
        settings: Image size, sample count, seed and batch size.
        scene: The scene to render; it is locked during rendering.
        camera: The raster camera.
        callback: Optional progress callback.

    Returns:
        The rendered Image.

    Raises:
        ValueError: If the settings are invalid.
    """
    settings.validate()
    setup_camera(camera)

    logger.info(
        "Rendering %dx%d, %d spp, seed %d (%d spheres, %d lights)",
        settings.width,
        settings.height,
        settings.samples_per_pixel,
        settings.seed,
        scene.get_sphere_count(),
        scene.get_light_count(),
    )

    renderer = ProgressiveRenderer(settings.width, settings.height, seed=settings.seed, scene=scene)
    for current, target in renderer.render_progressive(
        settings.samples_per_pixel, settings.batch_size
    ):
        logger.info("Progress: %d/%d samples", current, target)
        if callback is not None:
            callback(current, target)

    return renderer.get_image()
