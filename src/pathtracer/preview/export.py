"""Image export and comparison utilities.

Supported formats:
    - P3 PPM (plain text, written by Image.write, read back by read_ppm)
    - PNG (8-bit, via Pillow)

Both formats use the same tonemap, so a PNG and a PPM of one Image hold
identical 8-bit levels.

Example:
    >>> from src.pathtracer.preview.export import save_png
    >>> from src.pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(256, 256)
    >>> renderer.render(10)
    >>> save_png(renderer.get_image(), "output.png")
"""

from __future__ import annotations

import logging
from typing import Union

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.pathtracer.core.image import Image

logger = logging.getLogger(__name__)

ImageLike = Union[Image, npt.NDArray[np.floating]]


def _as_array(image: ImageLike) -> npt.NDArray[np.float64]:
    if isinstance(image, Image):
        return image.pixels.astype(np.float64)
    return np.asarray(image, dtype=np.float64)


def save_png(image: Image, filepath: str) -> None:
    """Save an Image as an 8-bit RGB PNG file.

    Args:
        image: The image to save.
        filepath: Output file path (should end in .png).

    Raises:
        OSError: If the file cannot be written.
    """
    pil_image = PILImage.fromarray(image.to_uint8())
    try:
        pil_image.save(filepath)
    except OSError:
        logger.error("Failed to write PNG to %s", filepath)
        raise
    logger.info("Wrote %dx%d PNG to %s", image.width, image.height, filepath)


def read_ppm(filepath: str) -> npt.NDArray[np.uint8]:
    """Read a plain-text P3 PPM file.

    Args:
        filepath: Path of the file to read.

    Returns:
        Array of shape (height, width, 3) with the 8-bit levels.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not a well-formed P3 image.
    """
    with open(filepath, encoding="ascii") as f:
        tokens = f.read().split()

    if not tokens or tokens[0] != "P3":
        raise ValueError(f"{filepath} is not a P3 PPM file")
    if len(tokens) < 4:
        raise ValueError(f"{filepath} has an incomplete header")

    width, height, max_value = int(tokens[1]), int(tokens[2]), int(tokens[3])
    if max_value != 255:
        raise ValueError(f"Unsupported max value {max_value} in {filepath}")

    values = tokens[4:]
    expected = width * height * 3
    if len(values) != expected:
        raise ValueError(f"{filepath} holds {len(values)} values, expected {expected}")

    return np.array(values, dtype=np.int64).astype(np.uint8).reshape(height, width, 3)


def compute_rmse(image_a: ImageLike, image_b: ImageLike) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image (Image or array).
        image_b: Second image (must have the same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    a = _as_array(image_a)
    b = _as_array(image_b)
    if a.shape != b.shape:
        raise ValueError(f"Image shapes must match: {a.shape} vs {b.shape}")

    diff = a - b
    return float(np.sqrt(np.mean(diff**2)))
