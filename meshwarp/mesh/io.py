#!/usr/bin/env python3
"""
Mesh Loading and Saving

Loads on-disk (or in-memory) mesh files into `Mesh` buffers and writes warped
meshes back out. All format handling is delegated to trimesh.
"""

import io
import logging
import os
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
import trimesh

from ..errors import InvalidMeshData
from .buffer import Mesh

logger = logging.getLogger(__name__)


# Supported input formats (trimesh can load these)
SUPPORTED_FORMATS = {
    '.obj': 'Wavefront OBJ',
    '.ply': 'Polygon File Format',
    '.stl': 'STereoLithography',
    '.glb': 'glTF Binary',
    '.gltf': 'GL Transmission Format',
    '.off': 'Object File Format',
}

# Formats the warped result can be written to
EXPORT_FORMATS = {
    '.obj': 'Wavefront OBJ',
    '.stl': 'STereoLithography',
    '.ply': 'Polygon File Format',
}


def get_supported_formats() -> List[str]:
    """Return list of supported mesh file extensions."""
    return list(SUPPORTED_FORMATS.keys())


def is_supported_format(file_path: Union[str, Path]) -> bool:
    """Check if file format can be loaded."""
    ext = Path(file_path).suffix.lower()
    return ext in SUPPORTED_FORMATS


def mesh_from_trimesh(tm: trimesh.Trimesh) -> Mesh:
    """Convert a trimesh object into a `Mesh` buffer (vertex order preserved)."""
    return Mesh(np.asarray(tm.vertices, dtype=np.float64), np.asarray(tm.faces, dtype=np.int64))


def mesh_to_trimesh(mesh: Mesh) -> trimesh.Trimesh:
    """Convert a `Mesh` buffer into a trimesh object without reprocessing it."""
    return trimesh.Trimesh(
        vertices=np.array(mesh.vertices()),
        faces=np.array(mesh.faces()),
        process=False,
    )


def _flatten_loaded(loaded) -> trimesh.Trimesh:
    # Handle scene objects (e.g., from glTF files)
    if isinstance(loaded, trimesh.Scene):
        geometries = [g for g in loaded.geometry.values() if isinstance(g, trimesh.Trimesh)]
        if not geometries:
            raise InvalidMeshData("No triangle geometry found in the mesh file")
        if len(geometries) == 1:
            return geometries[0]
        return trimesh.util.concatenate(geometries)

    # Ensure we have a valid mesh
    if not hasattr(loaded, 'vertices') or not hasattr(loaded, 'faces'):
        raise InvalidMeshData("Invalid mesh: missing vertices or faces")
    return loaded


def load_mesh(source: Union[str, Path, bytes], file_type: Optional[str] = None) -> Mesh:
    """
    Load a triangle mesh from a file path or from raw bytes.

    Args:
        source: Path to the mesh file, or the file content as bytes
        file_type: Format hint such as 'obj' or 'stl' (required for bytes)

    Returns:
        Loaded mesh

    Raises:
        InvalidMeshData: if the file cannot be read or does not describe a triangle mesh
    """
    if isinstance(source, (bytes, bytearray)):
        if not file_type:
            raise InvalidMeshData("A file_type is required when loading a mesh from bytes")
        file_obj = io.BytesIO(bytes(source))
        description = f"<{len(source)} bytes of {file_type}>"
    else:
        path = Path(source)
        if not path.exists():
            raise InvalidMeshData(f"Mesh file not found: {path}")
        if file_type is None and not is_supported_format(path):
            raise InvalidMeshData(
                f"Unsupported mesh format: {path.suffix} "
                f"(supported: {', '.join(get_supported_formats())})"
            )
        file_obj = str(path)
        file_type = file_type or path.suffix.lower().lstrip('.')
        description = str(path)

    try:
        loaded = trimesh.load(file_obj, file_type=file_type, process=False)
    except InvalidMeshData:
        raise
    except Exception as e:
        raise InvalidMeshData(f"Failed to load mesh {description}: {e}") from e

    tm = _flatten_loaded(loaded)

    # Basic mesh validation
    if len(tm.vertices) == 0:
        raise InvalidMeshData(f"Mesh has no vertices: {description}")
    if len(tm.faces) == 0:
        raise InvalidMeshData(f"Mesh has no faces: {description}")

    mesh = mesh_from_trimesh(tm)
    logger.debug("Loaded %s: %d vertices, %d triangles", description, mesh.num_vertices, mesh.num_triangles)
    return mesh


def save_mesh(mesh: Mesh, output_file: Union[str, Path]) -> Path:
    """
    Export a mesh, choosing the format from the file extension.

    Normals are not written: warping invalidates them.

    Args:
        mesh: Mesh to write
        output_file: Destination path (.obj, .stl or .ply)

    Returns:
        Path that was written
    """
    output_file = Path(output_file)
    ext = output_file.suffix.lower()
    if ext not in EXPORT_FORMATS:
        raise ValueError(
            f"Unsupported export format: {ext} (supported: {', '.join(EXPORT_FORMATS)})"
        )

    # Create output directory if it doesn't exist
    os.makedirs(output_file.parent, exist_ok=True)

    tm = mesh_to_trimesh(mesh)
    if ext == '.obj':
        tm.export(str(output_file), file_type='obj', include_normals=False)
    else:
        tm.export(str(output_file), file_type=ext.lstrip('.'))

    if not output_file.exists():
        raise RuntimeError(f"Mesh export failed - file not created: {output_file}")

    logger.debug("Saved %d vertices to %s", mesh.num_vertices, output_file)
    return output_file
