"""
Error Types

Exceptions raised by the meshwarp core.
"""


class MeshWarpError(Exception):
    """Base class for all meshwarp errors"""


class InvalidMeshData(MeshWarpError, ValueError):
    """Raised when a mesh cannot be built from the supplied data"""


class IndexOutOfRange(MeshWarpError, IndexError):
    """Raised when a history or cache entry is requested outside its valid range"""
