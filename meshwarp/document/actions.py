"""
Document Actions

User-level edits of a TPS document held in an `UndoRedoStore`. Each action
mutates the scratch document and, where the edit is complete, commits it with
a descriptive message.
"""

import logging
from pathlib import Path
from typing import Iterable, Sequence, Tuple, Union

from ..mesh.buffer import Mesh
from ..mesh.io import load_mesh, save_mesh
from ..utils.landmarks_csv import (
    Landmark,
    read_landmarks_csv,
    write_landmarks_csv,
    write_paired_landmarks_csv,
)
from .model import (
    Document,
    InputIdentifier,
    add_landmark,
    create_default_document,
    get_input,
    get_landmark_pairs,
    remove_landmark,
    set_landmark_position,
)
from .undo_redo import UndoRedoStore

logger = logging.getLogger(__name__)

ElementID = Tuple[InputIdentifier, int]


def action_undo(store: UndoRedoStore[Document]) -> None:
    store.undo()


def action_redo(store: UndoRedoStore[Document]) -> None:
    store.redo()


def action_add_landmark(store: UndoRedoStore[Document], which: InputIdentifier,
                        position: Sequence[float]) -> int:
    """Add a landmark to the source or destination and commit. Returns its index."""
    index = add_landmark(store.scratch, which, position)
    store.commit_scratch("added landmark")
    return index


def action_set_landmark_position(store: UndoRedoStore[Document], which: InputIdentifier, index: int,
                                 position: Sequence[float], commit: bool = False) -> bool:
    """
    Move a landmark.

    While dragging, call with `commit=False` so only scratch changes; commit
    once the drag ends.
    """
    moved = set_landmark_position(store.scratch, which, index, position)
    if moved and commit:
        store.commit_scratch("moved landmark")
    return moved


def action_delete_landmarks(store: UndoRedoStore[Document], element_ids: Iterable[ElementID]) -> int:
    """
    Delete the given landmarks and commit.

    Args:
        store: Document store
        element_ids: (input, landmark index) pairs to delete

    Returns:
        Number of landmarks removed
    """
    element_ids = list(element_ids)
    if not element_ids:
        return 0

    removed = sum(remove_landmark(store.scratch, which, index) for which, index in element_ids)
    if removed:
        store.commit_scratch("deleted elements")
    return removed


def action_clear_all_landmarks(store: UndoRedoStore[Document]) -> None:
    store.scratch.source.landmarks.clear()
    store.scratch.destination.landmarks.clear()
    store.commit_scratch("cleared all landmarks")


def action_set_blend_factor(store: UndoRedoStore[Document], factor: float) -> None:
    """Set the blending factor (clamped to [0, 1]) without saving it to history"""
    store.scratch.blend = min(1.0, max(0.0, float(factor)))


def action_set_blend_factor_and_save(store: UndoRedoStore[Document], factor: float) -> None:
    action_set_blend_factor(store, factor)
    store.commit_scratch("changed blend factor")


def action_create_new_document(store: UndoRedoStore[Document], use_placeholder_meshes: bool = True) -> None:
    """Replace the document with a fresh one"""
    store.set_scratch(create_default_document() if use_placeholder_meshes else Document())
    store.commit_scratch("created new document")


def action_set_mesh(store: UndoRedoStore[Document], which: InputIdentifier, mesh: Mesh) -> None:
    get_input(store.scratch, which).mesh = mesh
    store.commit_scratch("changed mesh")


def action_load_mesh(store: UndoRedoStore[Document], which: InputIdentifier,
                     path: Union[str, Path]) -> Mesh:
    """
    Load a mesh file into the source or destination and commit.

    Raises:
        InvalidMeshData: if loading fails; the document is left unchanged
    """
    mesh = load_mesh(path)
    action_set_mesh(store, which, mesh)
    logger.info("Loaded %s mesh %s (%d vertices)", which.value, path, mesh.num_vertices)
    return mesh


def action_load_landmarks_csv(store: UndoRedoStore[Document], which: InputIdentifier,
                              path: Union[str, Path]) -> int:
    """
    Append the landmarks in a CSV file to the source or destination and commit.

    Returns:
        Number of landmarks loaded (0 means nothing was committed)
    """
    landmarks = read_landmarks_csv(path)
    if not landmarks:
        logger.warning("No landmarks found in %s", path)
        return 0

    for landmark in landmarks:
        add_landmark(store.scratch, which, landmark.position)
    store.commit_scratch("loaded landmarks")
    return len(landmarks)


def action_save_landmarks_csv(doc: Document, which: InputIdentifier, path: Union[str, Path]) -> int:
    """Write the landmarks of one input, ordered by index. Returns the number written."""
    landmarks = get_input(doc, which).landmarks
    rows = [Landmark(f"landmark_{k}", landmarks[k]) for k in sorted(landmarks)]
    write_landmarks_csv(path, rows)
    return len(rows)


def action_save_paired_landmarks_csv(doc: Document, path: Union[str, Path]) -> int:
    """Write all fully paired landmarks. Returns the number of pairs written."""
    pairs = get_landmark_pairs(doc)
    write_paired_landmarks_csv(path, pairs)
    return len(pairs)


def action_save_warped_mesh(mesh: Mesh, path: Union[str, Path]) -> Path:
    """Write the warped result mesh (.obj, .stl or .ply)"""
    return save_mesh(mesh, path)
