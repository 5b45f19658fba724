"""I/O utilities for loading robot models from robot description files.

This module parses standard robotics file formats into `LinkTree` objects.
"""

from .urdf_parser import load_urdf, load_urdf_string

__all__ = ["load_urdf", "load_urdf_string"]
