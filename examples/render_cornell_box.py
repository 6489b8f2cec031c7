#!/usr/bin/env python3
"""Render the Cornell box of spheres to a P3 image.

This script builds the reference scene (or loads one from a JSON file),
sets up the raster camera and renders it with progressive refinement.

Usage:
    python -m examples.render_cornell_box [options]

Options:
    --width WIDTH       Image width in pixels (default: 768)
    --height HEIGHT     Image height in pixels (default: 768)
    --samples SAMPLES   Number of samples per pixel (default: 10)
    --seed SEED         Render seed (default: 0)
    --output OUTPUT     Output P3 file path (default: image.ppm)
    --png PATH          Also save a PNG copy
    --scene PATH        Load the scene from a JSON file instead
    --batch-size SIZE   Samples per progress update (default: 1)
    --cpu               Force the CPU backend
    --log-level LEVEL   Logging level (default: INFO)

Example:
    python -m examples.render_cornell_box --width 256 --height 256 --samples 50
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_cornell_box")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the Cornell box of spheres.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=768,
        help="Image width in pixels (default: 768)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=768,
        help="Image height in pixels (default: 768)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=10,
        help="Number of samples per pixel (default: 10)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Render seed; equal seeds give identical images (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.ppm",
        help="Output P3 file path (default: image.ppm)",
    )
    parser.add_argument(
        "--png",
        type=str,
        default=None,
        help="Also save a PNG copy to this path",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="JSON scene file (SceneManager.to_dict format) to render instead",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=1,
        help="Samples per progress update (default: 1)",
    )
    parser.add_argument(
        "--cpu",
        action="store_true",
        help="Force the CPU backend",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def render_cornell_box(
    width: int = 768,
    height: int = 768,
    num_samples: int = 10,
    seed: int = 0,
    output_path: str = "image.ppm",
    png_path: str | None = None,
    scene_path: str | None = None,
    batch_size: int = 1,
) -> Path:
    """Render the scene and write it to a P3 file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        num_samples: Number of samples per pixel.
        seed: Render seed.
        output_path: Output file path (P3 PPM).
        png_path: Optional PNG copy of the output.
        scene_path: Optional JSON scene to load instead of the Cornell box.
        batch_size: Number of samples to render between progress updates.

    Returns:
        Path to the written image file.

    Raises:
        ValueError: If the settings or the scene file are invalid.
        OSError: If the scene cannot be read or the image cannot be written.
    """
    # Lazy imports to allow Taichi initialization first
    from src.pathtracer.config import RenderSettings
    from src.pathtracer.core.progressive import render_scene
    from src.pathtracer.preview.export import save_png
    from src.pathtracer.scene.cornell_box import create_cornell_box_scene

    settings = RenderSettings(
        width=width,
        height=height,
        samples_per_pixel=num_samples,
        seed=seed,
        batch_size=batch_size,
        output=output_path,
    )
    settings.validate()

    scene, camera = create_cornell_box_scene()
    if scene_path is not None:
        logger.info("Loading scene from %s", scene_path)
        with open(scene_path, encoding="utf-8") as f:
            scene.from_dict(json.load(f))

    start_time = time.time()
    image = render_scene(settings, scene, camera)

    output_file = Path(settings.output)
    image.write(str(output_file))
    if png_path is not None:
        save_png(image, png_path)

    logger.info("Saved to: %s", output_file.absolute())
    logger.info("Total time: %.2fs", time.time() - start_time)

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Use GPU if available, fall back to CPU
    if args.cpu:
        ti.init(arch=ti.cpu)
        logger.info("Using CPU backend")
    else:
        try:
            ti.init(arch=ti.gpu)
            logger.info("Using GPU backend")
        except Exception:
            ti.init(arch=ti.cpu)
            logger.info("Using CPU backend")

    try:
        render_cornell_box(
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            seed=args.seed,
            output_path=args.output,
            png_path=args.png,
            scene_path=args.scene,
            batch_size=args.batch_size,
        )
        return 0
    except (ValueError, OSError) as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
