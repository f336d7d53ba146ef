"""
Document Module

Editable TPS document, its undo/redo store and the user-level actions on it.
"""

from .model import (
    Document,
    DocumentInput,
    InputIdentifier,
    add_landmark,
    create_default_document,
    get_landmark_pairs,
)
from .undo_redo import Commit, UndoRedoStore
from . import actions

__all__ = [
    'Document',
    'DocumentInput',
    'InputIdentifier',
    'add_landmark',
    'create_default_document',
    'get_landmark_pairs',
    'Commit',
    'UndoRedoStore',
    'actions'
]
