"""
Mesh Module

Immutable mesh buffer plus loading/saving through trimesh.
"""

from .buffer import AABB, Mesh
from .io import get_supported_formats, load_mesh, save_mesh

__all__ = [
    'AABB',
    'Mesh',
    'get_supported_formats',
    'load_mesh',
    'save_mesh'
]
