"""
Shared pytest fixtures for the meshwarp test suite.
"""

import numpy as np
import pytest

from meshwarp.document.model import Document, DocumentInput
from meshwarp.mesh.buffer import Mesh
from meshwarp.tps.types import LandmarkPair


@pytest.fixture
def triangle_mesh():
    """Single triangle (0,0,0), (1,0,0), (0,1,0)"""
    return Mesh([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]], [0, 1, 2])


@pytest.fixture
def cube_mesh():
    """Unit cube with 8 vertices and 12 triangles"""
    vertices = np.array([
        [0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0],
        [0, 0, 1], [1, 0, 1], [1, 1, 1], [0, 1, 1],
    ], dtype=float)
    faces = np.array([
        [0, 2, 1], [0, 3, 2],
        [4, 5, 6], [4, 6, 7],
        [0, 1, 5], [0, 5, 4],
        [1, 2, 6], [1, 6, 5],
        [2, 3, 7], [2, 7, 6],
        [3, 0, 4], [3, 4, 7],
    ])
    return Mesh(vertices, faces)


@pytest.fixture
def tetra_pairs():
    """Four non-coplanar landmark pairs with a non-rigid displacement"""
    sources = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)]
    destinations = [(0.1, -0.2, 0.0), (1.5, 0.1, 0.2), (-0.1, 1.2, 0.3), (0.2, 0.1, 0.8)]
    return [LandmarkPair(s, d) for s, d in zip(sources, destinations)]


@pytest.fixture
def landmark_document(cube_mesh, tetra_pairs):
    """Document with the cube as source mesh and the four tetra landmarks"""
    return Document(
        source=DocumentInput(mesh=cube_mesh, landmarks={i: p.src for i, p in enumerate(tetra_pairs)}),
        destination=DocumentInput(mesh=cube_mesh, landmarks={i: p.dst for i, p in enumerate(tetra_pairs)}),
        blend=0.5,
    )
