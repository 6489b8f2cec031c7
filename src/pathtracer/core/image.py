"""Linear-radiance image buffer with tonemapping and P3 output.

An Image holds a width x height grid of RGB radiance values in a NumPy
float32 array of shape (height, width, 3). Row 0 is the top of the picture
and pixel (x, y) has linear index x + y * width.

Tonemapping clamps to [0, 1] and applies a 1/2.2 gamma before quantizing to
0..255. The writer produces a plain-text PPM (P3) file:

    P3
    <width> <height>
    255
    r g b r g b ...

with every pixel written as "r g b " (trailing space), row by row from the
top.

Example:
    >>> from src.pathtracer.core.image import Image, tonemap
    >>> image = Image.from_function(4, 2, lambda x, y: (x / 4, y / 2, 0.5))
    >>> tonemap(0.5)
    186
    >>> image.write("out.ppm")
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence

import numpy as np
import numpy.typing as npt

logger = logging.getLogger(__name__)

# Display gamma applied by the tonemap
GAMMA = 2.2

# Color = anything with three components
ColorLike = Sequence[float] | npt.NDArray[np.floating]


# =============================================================================
# Tonemapping
# =============================================================================


def tonemap(x: float) -> int:
    """Map a linear radiance value to a display level in 0..255.

    Args:
        x: Linear radiance of one channel.

    Returns:
        0 for x <= 0 or NaN, 255 for x >= 1, otherwise
        floor(x^(1/2.2) * 255).
    """
    if math.isnan(x) or x <= 0.0:
        return 0
    if x >= 1.0:
        return 255
    return int(math.pow(x, 1.0 / GAMMA) * 255.0)


def tonemap_array(values: npt.ArrayLike) -> npt.NDArray[np.int64]:
    """Vectorized tonemap, equal to tonemap() applied element-wise.

    Args:
        values: Array of linear radiance values, any shape.

    Returns:
        Integer array of the same shape with values in 0..255.
    """
    x = np.asarray(values, dtype=np.float64)
    x = np.nan_to_num(x, nan=0.0, posinf=1.0, neginf=0.0)
    x = np.clip(x, 0.0, 1.0)
    levels = np.power(x, 1.0 / GAMMA) * 255.0
    return np.floor(levels).astype(np.int64)


# =============================================================================
# Image Buffer
# =============================================================================


class Image:
    """A width x height grid of linear RGB radiance.

    Attributes:
        width: Number of columns.
        height: Number of rows.
        pixels: Float32 array of shape (height, width, 3).
    """

    def __init__(
        self,
        width: int,
        height: int,
        pixels: npt.ArrayLike | None = None,
    ) -> None:
        """Create an image, black unless pixels are given.

        Args:
            width: Number of columns (positive).
            height: Number of rows (positive).
            pixels: Optional initial data of shape (height, width, 3).

        Raises:
            ValueError: If the size is not positive or pixels has the
                wrong shape.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

        self.width = int(width)
        self.height = int(height)

        if pixels is None:
            self.pixels = np.zeros((self.height, self.width, 3), dtype=np.float32)
        else:
            data = np.asarray(pixels, dtype=np.float32)
            if data.shape != (self.height, self.width, 3):
                raise ValueError(
                    f"Pixel data shape {data.shape} does not match "
                    f"({self.height}, {self.width}, 3)"
                )
            self.pixels = data.copy()

    @classmethod
    def from_function(
        cls,
        width: int,
        height: int,
        pixel_fn: Callable[[int, int], ColorLike],
    ) -> Image:
        """Build an image by evaluating pixel_fn(x, y) for every pixel.

        Each cell is computed independently, so pixel_fn must not depend on
        evaluation order.
        """
        image = cls(width, height)
        for y in range(height):
            for x in range(width):
                image.set(x, y, pixel_fn(x, y))
        return image

    @classmethod
    def average(cls, images: Sequence[Image]) -> Image:
        """Average several images of the same size channel by channel.

        Raises:
            ValueError: If images is empty or the sizes differ.
        """
        if not images:
            raise ValueError("Cannot average an empty sequence of images")

        first = images[0]
        for image in images[1:]:
            if (image.width, image.height) != (first.width, first.height):
                raise ValueError(
                    f"Image sizes must match: {first.width}x{first.height} "
                    f"vs {image.width}x{image.height}"
                )

        stacked = np.stack([image.pixels for image in images]).astype(np.float64)
        return cls(first.width, first.height, stacked.mean(axis=0))

    def index(self, x: int, y: int) -> int:
        """Linear index of pixel (x, y) in row-major order."""
        return x + y * self.width

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")

    def get(self, x: int, y: int) -> tuple[float, float, float]:
        """Return the color of pixel (x, y)."""
        self._check_bounds(x, y)
        r, g, b = self.pixels[y, x]
        return float(r), float(g), float(b)

    def set(self, x: int, y: int, color: ColorLike) -> None:
        """Set the color of pixel (x, y)."""
        self._check_bounds(x, y)
        self.pixels[y, x] = np.asarray(color, dtype=np.float32)

    def to_uint8(self) -> npt.NDArray[np.uint8]:
        """Tonemapped copy of the pixels as a (height, width, 3) uint8 array."""
        return tonemap_array(self.pixels).astype(np.uint8)

    def write(self, filepath: str) -> None:
        """Write the tonemapped image as a plain-text P3 PPM file.

        Args:
            filepath: Destination path. An existing file is overwritten.

        Raises:
            OSError: If the file cannot be created or written.
        """
        levels = tonemap_array(self.pixels).reshape(-1, 3)
        header = f"P3\n{self.width} {self.height}\n255\n"
        body = "".join(f"{r} {g} {b} " for r, g, b in levels.tolist())

        try:
            with open(filepath, "w", encoding="ascii", newline="\n") as f:
                f.write(header)
                f.write(body)
        except OSError:
            logger.error("Failed to write image to %s", filepath)
            raise

        logger.info("Wrote %dx%d image to %s", self.width, self.height, filepath)
