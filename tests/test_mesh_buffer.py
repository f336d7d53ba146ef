"""
tests/test_mesh_buffer.py: validation, value semantics and vertex transforms of `Mesh`.
"""

import copy

import numpy as np
import pytest

from meshwarp.errors import InvalidMeshData
from meshwarp.mesh.buffer import AABB, Mesh


def test_mesh_exposes_vertices_indices_and_bounds(cube_mesh):
    assert cube_mesh.num_vertices == 8
    assert cube_mesh.num_triangles == 12
    assert cube_mesh.indices().shape == (36,)
    assert cube_mesh.faces().shape == (12, 3)
    assert cube_mesh.bounds() == AABB((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
    assert cube_mesh.bounds().dimensions == (1.0, 1.0, 1.0)
    assert cube_mesh.bounds().midpoint == (0.5, 0.5, 0.5)


def test_mesh_arrays_are_read_only(triangle_mesh):
    with pytest.raises(ValueError):
        triangle_mesh.vertices()[0, 0] = 5.0
    with pytest.raises(ValueError):
        triangle_mesh.indices()[0] = 1


def test_mesh_accepts_flat_vertex_data():
    mesh = Mesh([0, 0, 0, 1, 0, 0, 0, 1, 0], [0, 1, 2])
    assert mesh.vertices().shape == (3, 3)


def test_empty_mesh_has_zero_bounds():
    mesh = Mesh.empty()
    assert mesh.is_empty()
    assert mesh.num_triangles == 0
    assert mesh.bounds() == AABB((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))


@pytest.mark.parametrize("vertices, indices", [
    ([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [0, 1]),           # index count not a multiple of 3
    ([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [0, 1, 3]),        # index out of range
    ([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [0, -1, 2]),       # negative index
    ([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [0.0, 1.0, 2.0]),  # non-integer indices
    ([[0, 0], [1, 0], [0, 1]], [0, 1, 2]),                 # 2D vertices
    ([0, 0, 0, 1], [0, 0, 0]),                             # flat data not a multiple of 3
    ([["a", "b", "c"]], [0, 0, 0]),                        # non-numeric vertices
])
def test_malformed_mesh_data_is_rejected(vertices, indices):
    with pytest.raises(InvalidMeshData):
        Mesh(vertices, indices)


def test_invalid_mesh_data_is_a_value_error():
    with pytest.raises(ValueError):
        Mesh([[0, 0, 0]], [0, 0, 1])


def test_meshes_with_equal_content_compare_equal(cube_mesh):
    other = Mesh(np.array(cube_mesh.vertices()), np.array(cube_mesh.indices()))
    assert other is not cube_mesh
    assert other == cube_mesh
    assert hash(other) == hash(cube_mesh)
    assert other.content_hash() == cube_mesh.content_hash()


def test_meshes_with_different_content_compare_unequal(triangle_mesh):
    moved = Mesh([[0, 0, 0], [1, 0, 0], [0, 1, 1e-9]], [0, 1, 2])
    reordered = Mesh(triangle_mesh.vertices(), [0, 2, 1])
    assert moved != triangle_mesh
    assert reordered != triangle_mesh
    assert triangle_mesh != "not a mesh"


def test_negative_zero_does_not_break_hash_consistency():
    a = Mesh([[0.0, 0.0, 0.0], [1, 0, 0], [0, 1, 0]], [0, 1, 2])
    b = Mesh([[-0.0, 0.0, -0.0], [1, 0, 0], [0, 1, 0]], [0, 1, 2])
    assert a == b
    assert a.content_hash() == b.content_hash()


def test_copies_share_the_immutable_mesh(cube_mesh):
    assert copy.copy(cube_mesh) is cube_mesh
    assert copy.deepcopy(cube_mesh) is cube_mesh


def test_with_transformed_vertices_applies_function_per_vertex(cube_mesh):
    scaled = cube_mesh.with_transformed_vertices(lambda v: v * 2.0 + 1.0)

    np.testing.assert_array_equal(scaled.vertices(), cube_mesh.vertices() * 2.0 + 1.0)
    assert scaled.indices() is cube_mesh.indices()
    assert scaled.bounds() == AABB((1.0, 1.0, 1.0), (3.0, 3.0, 3.0))
    # the original is untouched
    assert cube_mesh.bounds() == AABB((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))


def test_with_transformed_vertex_array_matches_per_vertex_transform(cube_mesh):
    shift = np.array([0.5, -1.0, 2.0])
    bulk = cube_mesh.with_transformed_vertex_array(lambda verts: verts + shift)
    single = cube_mesh.with_transformed_vertices(lambda v: v + shift)
    assert bulk == single
    assert bulk.indices() is cube_mesh.indices()


def test_with_transformed_vertex_array_rejects_shape_changes(cube_mesh):
    with pytest.raises(InvalidMeshData):
        cube_mesh.with_transformed_vertex_array(lambda verts: verts[:4])
