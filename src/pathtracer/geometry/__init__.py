"""Geometry module for ray-traceable primitives.

Components:
    sphere: Sphere primitive, material tags and ray-sphere intersection
"""

from .sphere import Intersect, MaterialType, Sphere, intersect_sphere, make_miss, make_sphere

__all__ = [
    "Intersect",
    "MaterialType",
    "Sphere",
    "intersect_sphere",
    "make_miss",
    "make_sphere",
]
