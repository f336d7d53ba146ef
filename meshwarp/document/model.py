"""
TPS Document Model

The editable state of a warping session: a source and a destination input
(mesh plus landmarks keyed by integer index) and a blending factor. Landmarks
with the same index on both inputs form a pair; indices present on only one
side are unpaired and ignored by the solver.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

import trimesh

from ..mesh.buffer import Mesh
from ..mesh.io import mesh_from_trimesh
from ..tps.types import LandmarkPair, Vec3, as_vec3


class InputIdentifier(Enum):
    """Identifies one of the two inputs of a document"""
    SOURCE = 'source'
    DESTINATION = 'destination'

    @property
    def other(self) -> 'InputIdentifier':
        if self is InputIdentifier.SOURCE:
            return InputIdentifier.DESTINATION
        return InputIdentifier.SOURCE


@dataclass
class DocumentInput:
    """One half of the document: a mesh and its landmarks"""
    mesh: Mesh = field(default_factory=Mesh.empty)
    landmarks: Dict[int, Vec3] = field(default_factory=dict)


@dataclass
class Document:
    """The whole document the user edits"""
    source: DocumentInput = field(default_factory=DocumentInput)
    destination: DocumentInput = field(default_factory=DocumentInput)
    blend: float = 1.0

    def copy(self) -> 'Document':
        # meshes are immutable, so a deep copy only duplicates the landmark maps
        return copy.deepcopy(self)


def create_default_document(blend: float = 1.0) -> Document:
    """
    Create a fresh document with placeholder meshes: a UV sphere as the source
    and a cylinder as the destination.
    """
    sphere = trimesh.creation.uv_sphere(radius=1.0, count=[16, 16])
    cylinder = trimesh.creation.cylinder(radius=1.0, height=2.0, sections=16)
    return Document(
        source=DocumentInput(mesh=mesh_from_trimesh(sphere)),
        destination=DocumentInput(mesh=mesh_from_trimesh(cylinder)),
        blend=blend,
    )


def get_input(doc: Document, which: InputIdentifier) -> DocumentInput:
    """Return the source or destination input of the document"""
    if which is InputIdentifier.SOURCE:
        return doc.source
    return doc.destination


def get_landmark_pairs(doc: Document) -> List[LandmarkPair]:
    """Return all fully paired landmarks, ordered by landmark index"""
    src = doc.source.landmarks
    dst = doc.destination.landmarks
    return [LandmarkPair(src[k], dst[k]) for k in sorted(src.keys() & dst.keys())]


def get_paired_indices(doc: Document) -> List[int]:
    return sorted(doc.source.landmarks.keys() & doc.destination.landmarks.keys())


def is_fully_paired(doc: Document, index: int) -> bool:
    return index in doc.source.landmarks and index in doc.destination.landmarks


def count_landmarks(doc: Document, which: InputIdentifier) -> int:
    return len(get_input(doc, which).landmarks)


def next_landmark_index(doc: Document) -> int:
    """Return an index not used by either input"""
    used = doc.source.landmarks.keys() | doc.destination.landmarks.keys()
    return max(used) + 1 if used else 0


def add_landmark(doc: Document, which: InputIdentifier, position: Sequence[float]) -> int:
    """
    Add a landmark to one input of the document.

    The landmark first fills the lowest index that already has a landmark on
    the other input but none on this one, so landmarks added in sequence pair
    up in sequence. Otherwise a new index is allocated.

    Args:
        doc: Document to modify
        which: Input receiving the landmark
        position: Landmark position

    Returns:
        Index assigned to the landmark
    """
    this_side = get_input(doc, which).landmarks
    other_side = get_input(doc, which.other).landmarks

    unpaired = sorted(k for k in other_side if k not in this_side)
    index = unpaired[0] if unpaired else next_landmark_index(doc)

    this_side[index] = as_vec3(position)
    return index


def set_landmark_position(doc: Document, which: InputIdentifier, index: int,
                          position: Sequence[float]) -> bool:
    """Move an existing landmark. Returns `False` if no such landmark exists."""
    landmarks = get_input(doc, which).landmarks
    if index not in landmarks:
        return False
    landmarks[index] = as_vec3(position)
    return True


def remove_landmark(doc: Document, which: InputIdentifier, index: int) -> bool:
    """Remove a landmark from one input. Returns `True` if something was removed."""
    return get_input(doc, which).landmarks.pop(index, None) is not None


def get_landmark(doc: Document, which: InputIdentifier, index: int) -> Optional[Vec3]:
    return get_input(doc, which).landmarks.get(index)
