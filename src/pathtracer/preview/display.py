"""Matplotlib-based preview display for rendered images.

Images are shown with the same tonemap used for file output, so the
preview matches the written PPM.

Example:
    >>> from src.pathtracer.preview.display import show_preview
    >>> from src.pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(256, 256)
    >>> renderer.render(10)
    >>> show_preview(renderer.get_image(), title="10 SPP")
"""

from __future__ import annotations

import numpy as np

from src.pathtracer.core.image import Image
from src.pathtracer.preview.export import compute_rmse


def show_preview(
    image: Image,
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 8),
    block: bool = True,
) -> None:
    """Display an image as a Matplotlib figure.

    Args:
        image: The image to display.
        title: Custom title (default shows the image size).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(1, 1, figsize=figsize)

    ax.imshow(image.to_uint8())
    ax.axis("off")
    ax.set_title(title if title is not None else f"Render Preview - {image.width}x{image.height}")

    plt.tight_layout()
    plt.show(block=block)


def show_comparison(
    image_a: Image,
    image_b: Image,
    *,
    labels: tuple[str, str] = ("A", "B"),
    diff_scale: float = 10.0,
    figsize: tuple[float, float] = (16, 6),
    block: bool = True,
) -> float:
    """Display side-by-side comparison of two images with difference view.

    Args:
        image_a: First image.
        image_b: Second image, same size as image_a.
        labels: Labels for the two images.
        diff_scale: Scale factor for difference amplification.
        figsize: Figure size in inches.
        block: Whether to block execution until figure is closed.

    Returns:
        RMSE between the tonemapped images, on a [0, 1] scale.

    Raises:
        ValueError: If the image sizes differ.
    """
    import matplotlib.pyplot as plt

    display_a = image_a.to_uint8().astype(np.float64) / 255.0
    display_b = image_b.to_uint8().astype(np.float64) / 255.0
    rmse = compute_rmse(display_a, display_b)

    diff_amplified = np.clip(np.abs(display_a - display_b) * diff_scale, 0.0, 1.0)

    fig, axes = plt.subplots(1, 3, figsize=figsize)

    axes[0].imshow(display_a)
    axes[0].set_title(labels[0])
    axes[0].axis("off")

    axes[1].imshow(display_b)
    axes[1].set_title(labels[1])
    axes[1].axis("off")

    axes[2].imshow(diff_amplified)
    axes[2].set_title(f"Difference ({diff_scale}x) - RMSE: {rmse:.6f}")
    axes[2].axis("off")

    plt.tight_layout()
    plt.show(block=block)

    return rmse
