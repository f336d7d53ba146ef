"""
meshwarp Source Modules

Thin-plate spline 3D mesh warping engine with undoable document semantics.
"""

from . import mesh
from . import tps
from . import document
from . import utils

from .document import Document, DocumentInput, InputIdentifier, UndoRedoStore
from .errors import IndexOutOfRange, InvalidMeshData, MeshWarpError
from .mesh import Mesh
from .tps import evaluate, evaluate_batch, solve
from .utils import ResultCache

__version__ = "1.0.0"
__all__ = [
    'mesh',
    'tps',
    'document',
    'utils',
    'Document',
    'DocumentInput',
    'InputIdentifier',
    'UndoRedoStore',
    'IndexOutOfRange',
    'InvalidMeshData',
    'MeshWarpError',
    'Mesh',
    'ResultCache',
    'evaluate',
    'evaluate_batch',
    'solve'
]
