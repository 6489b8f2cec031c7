"""Preview module for output and visualization.

Components:
    display: Matplotlib-based preview and side-by-side comparison
    export: PNG export, PPM reading and image comparison

Example:
    >>> from src.pathtracer.preview import show_preview, save_png
    >>> image = renderer.get_image()
    >>> show_preview(image)
    >>> save_png(image, "output.png")
"""

from src.pathtracer.preview.display import show_comparison, show_preview
from src.pathtracer.preview.export import compute_rmse, read_ppm, save_png

__all__ = [
    # Display functions
    "show_preview",
    "show_comparison",
    # Export functions
    "save_png",
    "read_ppm",
    "compute_rmse",
]
