"""Taichi-based Monte Carlo path tracer for sphere scenes.

This package renders small scenes of spheres lit by a point light using a
recursive path-tracing estimator, with support for:
- Direct lighting through shadow rays
- Indirect lighting through cosine-weighted hemisphere sampling
- Mirror reflection (glass currently shares the mirror model)
- Deterministic per-pixel sampling and plain-text PPM output

Subpackages:
    core: Vector math, sampling, radiance integrator, image buffer and renderer
    geometry: Sphere primitive, materials and ray-sphere intersection
    scene: Scene storage, lights, scene manager and preset scenes
    camera: Raster camera for primary ray generation
    preview: PNG export and Matplotlib preview
"""

__version__ = "0.1.0"
