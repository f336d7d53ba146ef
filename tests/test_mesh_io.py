"""
tests/test_mesh_io.py: loading and saving meshes through trimesh.
"""

import numpy as np
import pytest

from meshwarp.errors import InvalidMeshData
from meshwarp.mesh.io import (
    get_supported_formats,
    is_supported_format,
    load_mesh,
    mesh_from_trimesh,
    mesh_to_trimesh,
    save_mesh,
)


def test_supported_formats():
    assert ".obj" in get_supported_formats()
    assert is_supported_format("model.STL")
    assert not is_supported_format("model.fbx")


def test_trimesh_conversion_preserves_order(cube_mesh):
    tm = mesh_to_trimesh(cube_mesh)
    np.testing.assert_array_equal(tm.vertices, cube_mesh.vertices())
    np.testing.assert_array_equal(tm.faces, cube_mesh.faces())
    assert mesh_from_trimesh(tm) == cube_mesh


@pytest.mark.parametrize("suffix", [".obj", ".stl", ".ply"])
def test_save_then_load_keeps_shape(cube_mesh, tmp_path, suffix):
    path = save_mesh(cube_mesh, tmp_path / f"cube{suffix}")
    loaded = load_mesh(path)

    assert loaded.num_triangles == cube_mesh.num_triangles
    bounds = loaded.bounds()
    np.testing.assert_allclose(bounds.min, (0.0, 0.0, 0.0))
    np.testing.assert_allclose(bounds.max, (1.0, 1.0, 1.0))


def test_load_from_bytes(cube_mesh, tmp_path):
    path = save_mesh(cube_mesh, tmp_path / "cube.obj")
    loaded = load_mesh(path.read_bytes(), file_type="obj")
    assert loaded.num_triangles == 12


def test_load_from_bytes_requires_file_type():
    with pytest.raises(InvalidMeshData):
        load_mesh(b"v 0 0 0\n")


def test_missing_file_is_reported(tmp_path):
    with pytest.raises(InvalidMeshData, match="not found"):
        load_mesh(tmp_path / "nope.obj")


def test_unsupported_extension_is_reported(tmp_path):
    path = tmp_path / "mesh.xyz"
    path.write_text("0 0 0\n")
    with pytest.raises(InvalidMeshData, match="Unsupported"):
        load_mesh(path)


def test_file_without_triangles_is_rejected(tmp_path):
    path = tmp_path / "broken.obj"
    path.write_text("this is not a mesh\n")
    with pytest.raises(InvalidMeshData):
        load_mesh(path)


def test_save_rejects_unknown_extension(cube_mesh, tmp_path):
    with pytest.raises(ValueError):
        save_mesh(cube_mesh, tmp_path / "cube.fbx")


def test_save_creates_parent_directories(triangle_mesh, tmp_path):
    path = save_mesh(triangle_mesh, tmp_path / "a" / "b" / "tri.obj")
    assert path.exists()
    assert "vn " not in path.read_text()
