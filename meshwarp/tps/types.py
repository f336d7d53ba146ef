"""
TPS Value Types

Landmark pairs, solver inputs and the solved coefficient bundle. All types are
frozen dataclasses over plain float tuples so equality is exact and
componentwise.
"""

from dataclasses import dataclass, field
from typing import Iterable, Sequence, Tuple

import numpy as np

Vec3 = Tuple[float, float, float]


def as_vec3(value: Iterable[float]) -> Vec3:
    """Convert any length-3 sequence (list, tuple, numpy array) into a Vec3."""
    x, y, z = value
    return (float(x), float(y), float(z))


def lerp(a: Vec3, b: Vec3, t: float) -> Vec3:
    return tuple(float(ai + t * (bi - ai)) for ai, bi in zip(a, b))


@dataclass(frozen=True)
class LandmarkPair:
    """A source landmark and its corresponding destination landmark"""
    src: Vec3
    dst: Vec3

    def __post_init__(self):
        object.__setattr__(self, 'src', as_vec3(self.src))
        object.__setattr__(self, 'dst', as_vec3(self.dst))


@dataclass(frozen=True)
class SolverInputs:
    """Ordered landmark pairs plus the blending factor handed to the solver"""
    pairs: Tuple[LandmarkPair, ...] = ()
    blend: float = 1.0

    def __post_init__(self):
        object.__setattr__(self, 'pairs', tuple(self.pairs))
        object.__setattr__(self, 'blend', float(self.blend))


@dataclass(frozen=True)
class NonAffineTerm:
    """Radial basis term: a weight vector attached to a source landmark"""
    weight: Vec3
    control_point: Vec3


IDENTITY_A1: Vec3 = (0.0, 0.0, 0.0)
IDENTITY_A2: Vec3 = (1.0, 0.0, 0.0)
IDENTITY_A3: Vec3 = (0.0, 1.0, 0.0)
IDENTITY_A4: Vec3 = (0.0, 0.0, 1.0)


@dataclass(frozen=True)
class Coefficients:
    """
    Solved TPS warp.

    f(p) = a1 + a2*px + a3*py + a4*pz + sum_i w_i * U(|c_i - p|)

    The default instance is the identity warp.
    """
    a1: Vec3 = IDENTITY_A1
    a2: Vec3 = IDENTITY_A2
    a3: Vec3 = IDENTITY_A3
    a4: Vec3 = IDENTITY_A4
    non_affine_terms: Tuple[NonAffineTerm, ...] = field(default_factory=tuple)

    def __post_init__(self):
        for name in ('a1', 'a2', 'a3', 'a4'):
            object.__setattr__(self, name, as_vec3(getattr(self, name)))
        object.__setattr__(self, 'non_affine_terms', tuple(self.non_affine_terms))

    @classmethod
    def identity(cls) -> 'Coefficients':
        return cls()

    def is_identity(self) -> bool:
        return self == Coefficients()

    def affine_matrix(self) -> np.ndarray:
        """(4, 3) matrix whose rows are a1..a4, so that [1, x, y, z] @ M is the affine part."""
        return np.array([self.a1, self.a2, self.a3, self.a4], dtype=np.float64)

    def weights(self) -> np.ndarray:
        """(N, 3) array of non-affine weights"""
        if not self.non_affine_terms:
            return np.zeros((0, 3), dtype=np.float64)
        return np.array([t.weight for t in self.non_affine_terms], dtype=np.float64)

    def control_points(self) -> np.ndarray:
        """(N, 3) array of control points"""
        if not self.non_affine_terms:
            return np.zeros((0, 3), dtype=np.float64)
        return np.array([t.control_point for t in self.non_affine_terms], dtype=np.float64)


def pairs_from_arrays(sources: Sequence, destinations: Sequence) -> Tuple[LandmarkPair, ...]:
    """Zip two (N, 3) point sequences into landmark pairs."""
    if len(sources) != len(destinations):
        raise ValueError(
            f"Source and destination landmark counts differ: {len(sources)} != {len(destinations)}"
        )
    return tuple(LandmarkPair(s, d) for s, d in zip(sources, destinations))
