"""
Mesh Buffer

Immutable triangle mesh used throughout the warping engine. Vertex and index
arrays are stored read-only so that meshes can be shared freely between
documents, history snapshots and the result cache.
"""

import hashlib
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from ..errors import InvalidMeshData

Vec3 = Tuple[float, float, float]


@dataclass(frozen=True)
class AABB:
    """Axis-aligned bounding box"""
    min: Vec3
    max: Vec3

    @property
    def dimensions(self) -> Vec3:
        return tuple(float(hi - lo) for lo, hi in zip(self.min, self.max))

    @property
    def midpoint(self) -> Vec3:
        return tuple(float(0.5 * (lo + hi)) for lo, hi in zip(self.min, self.max))


def _read_only(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


def _compute_bounds(vertices: np.ndarray) -> AABB:
    if len(vertices) == 0:
        return AABB((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))
    lo = vertices.min(axis=0)
    hi = vertices.max(axis=0)
    return AABB(tuple(float(v) for v in lo), tuple(float(v) for v in hi))


class Mesh:
    """
    Immutable triangle mesh with value semantics.

    Two meshes compare equal when their vertex and index sequences are
    elementwise equal. A content hash is computed lazily and used to reject
    unequal meshes quickly.
    """

    __slots__ = ('_vertices', '_indices', '_bounds', '_content_hash')

    def __init__(self, vertices: Optional[Sequence] = None, indices: Optional[Sequence] = None):
        """
        Build a mesh from vertex positions and triangle indices.

        Args:
            vertices: (V, 3) vertex positions (or a flat sequence of 3V floats)
            indices: flat sequence of vertex indices (length multiple of 3),
                or a (T, 3) face array

        Raises:
            InvalidMeshData: if the arrays are malformed or an index is out of range
        """
        verts = self._validate_vertices(vertices)
        idx = self._validate_indices(indices, len(verts))

        self._vertices = _read_only(verts)
        self._indices = _read_only(idx)
        self._bounds = _compute_bounds(verts)
        self._content_hash = None

    @staticmethod
    def _validate_vertices(vertices) -> np.ndarray:
        if vertices is None:
            return np.zeros((0, 3), dtype=np.float64)
        try:
            verts = np.array(vertices, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidMeshData(f"Vertices are not numeric: {e}")

        if verts.size == 0:
            return np.zeros((0, 3), dtype=np.float64)
        if verts.ndim == 1:
            if verts.size % 3 != 0:
                raise InvalidMeshData(f"Flat vertex data length {verts.size} is not a multiple of 3")
            verts = verts.reshape(-1, 3)
        if verts.ndim != 2 or verts.shape[1] != 3:
            raise InvalidMeshData(f"Vertices must have shape (V, 3), got {verts.shape}")
        return verts

    @staticmethod
    def _validate_indices(indices, num_vertices: int) -> np.ndarray:
        if indices is None:
            return np.zeros(0, dtype=np.int64)
        raw = np.asarray(indices)
        if raw.size == 0:
            return np.zeros(0, dtype=np.int64)
        if not np.issubdtype(raw.dtype, np.integer):
            raise InvalidMeshData(f"Indices must be integers, got dtype {raw.dtype}")

        idx = raw.astype(np.int64).ravel()
        if idx.size % 3 != 0:
            raise InvalidMeshData(f"Index count {idx.size} is not a multiple of 3")
        if idx.min() < 0 or idx.max() >= num_vertices:
            raise InvalidMeshData(
                f"Index out of range: indices span [{idx.min()}, {idx.max()}] "
                f"but the mesh has {num_vertices} vertices"
            )
        return idx

    @classmethod
    def _from_validated(cls, vertices: np.ndarray, indices: np.ndarray) -> 'Mesh':
        # indices are already validated and read-only: share them
        mesh = cls.__new__(cls)
        mesh._vertices = _read_only(vertices)
        mesh._indices = indices
        mesh._bounds = _compute_bounds(vertices)
        mesh._content_hash = None
        return mesh

    @classmethod
    def empty(cls) -> 'Mesh':
        return cls()

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------

    def vertices(self) -> np.ndarray:
        """Read-only (V, 3) array of vertex positions"""
        return self._vertices

    def indices(self) -> np.ndarray:
        """Read-only flat array of triangle indices"""
        return self._indices

    def faces(self) -> np.ndarray:
        """Read-only (T, 3) view of the triangle indices"""
        return self._indices.reshape(-1, 3)

    def bounds(self) -> AABB:
        return self._bounds

    @property
    def num_vertices(self) -> int:
        return len(self._vertices)

    @property
    def num_triangles(self) -> int:
        return len(self._indices) // 3

    def is_empty(self) -> bool:
        return len(self._vertices) == 0

    # ------------------------------------------------------------------
    # transformation
    # ------------------------------------------------------------------

    def with_transformed_vertices(self, f: Callable[[np.ndarray], Sequence[float]]) -> 'Mesh':
        """
        Return a new mesh with `f` applied to every vertex independently.

        Args:
            f: pure function mapping one vertex (length-3 array) to a new position

        Returns:
            New mesh sharing this mesh's indices, with recomputed bounds
        """
        transformed = np.empty_like(self._vertices)
        for i, vertex in enumerate(self._vertices):
            transformed[i] = f(vertex)
        return Mesh._from_validated(transformed, self._indices)

    def with_transformed_vertex_array(self, f: Callable[[np.ndarray], np.ndarray]) -> 'Mesh':
        """
        Bulk variant of `with_transformed_vertices`.

        Args:
            f: function mapping the (V, 3) vertex array to a new (V, 3) array.
                Each output row may only depend on the matching input row.

        Returns:
            New mesh sharing this mesh's indices, with recomputed bounds
        """
        transformed = np.array(f(self._vertices), dtype=np.float64)
        if transformed.shape != self._vertices.shape:
            raise InvalidMeshData(
                f"Vertex transform changed the vertex array shape from "
                f"{self._vertices.shape} to {transformed.shape}"
            )
        return Mesh._from_validated(transformed, self._indices)

    # ------------------------------------------------------------------
    # value semantics
    # ------------------------------------------------------------------

    def content_hash(self) -> str:
        """
        SHA-256 hash of the mesh content.

        Negative zeros are normalised so the hash agrees with elementwise
        equality.
        """
        if self._content_hash is None:
            hasher = hashlib.sha256()
            hasher.update(np.ascontiguousarray(self._vertices + 0.0).tobytes())
            hasher.update(b'|')
            hasher.update(np.ascontiguousarray(self._indices).tobytes())
            self._content_hash = hasher.hexdigest()
        return self._content_hash

    def __eq__(self, other) -> bool:
        if self is other:
            return True
        if not isinstance(other, Mesh):
            return NotImplemented
        if self._vertices.shape != other._vertices.shape or self._indices.shape != other._indices.shape:
            return False
        if self.content_hash() != other.content_hash():
            return False
        return bool(np.array_equal(self._vertices, other._vertices)
                    and np.array_equal(self._indices, other._indices))

    def __ne__(self, other) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        return int(self.content_hash()[:16], 16)

    def __copy__(self) -> 'Mesh':
        return self

    def __deepcopy__(self, memo) -> 'Mesh':
        return self

    def __repr__(self) -> str:
        return f"Mesh(num_vertices={self.num_vertices}, num_triangles={self.num_triangles})"
