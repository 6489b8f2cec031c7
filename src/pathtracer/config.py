"""Render settings.

Example:
    >>> from src.pathtracer.config import RenderSettings
    >>> settings = RenderSettings(width=256, height=256, samples_per_pixel=4)
    >>> settings.validate()
"""

from dataclasses import asdict, dataclass
from typing import Any

# Largest image the preallocated render buffers can hold
MAX_IMAGE_SIZE = 2048


@dataclass
class RenderSettings:
    """Settings for one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of samples averaged per pixel.
        seed: Render-wide seed; equal seeds give identical images.
        batch_size: Samples rendered between progress reports.
        output: Path of the P3 image to write.
    """

    width: int = 768
    height: int = 768
    samples_per_pixel: int = 10
    seed: int = 0
    batch_size: int = 1
    output: str = "image.ppm"

    def validate(self) -> None:
        """Check that the settings describe a renderable image.

        Raises:
            ValueError: If any setting is out of range.
        """
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        if self.width > MAX_IMAGE_SIZE or self.height > MAX_IMAGE_SIZE:
            raise ValueError(
                f"Image size {self.width}x{self.height} exceeds maximum "
                f"{MAX_IMAGE_SIZE}x{MAX_IMAGE_SIZE}"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if not 0 <= self.seed < 2**31:
            raise ValueError(f"seed must be in [0, 2^31), got {self.seed}")
        if not self.output:
            raise ValueError("output path must not be empty")

    def to_dict(self) -> dict[str, Any]:
        """Export the settings as a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderSettings":
        """Create settings from a dictionary, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)
