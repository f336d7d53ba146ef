"""
Thin-Plate Spline Solver

Computes the TPS coefficient bundle for an ordered list of landmark pairs.

The warp is expressed per component as

    f(p) = a1 + a2*px + a3*py + a4*pz + sum_i w_i * U(|c_i - p|)

and the coefficients are found by solving

    | K   P | |  w |   | v |
    | P^T 0 | |  a | = | 0 |

where K[i, j] = U(|src_i - src_j|), P has rows [1, x_i, y_i, z_i] and v holds
the blended displacements lerp(src, dst, blend) - src. The identity is added to
a2..a4 afterwards, so fewer than four landmarks leave unconstrained directions
unwarped. The three components share the same matrix and are solved with a
single SVD-based least-squares call, which also copes with rank-deficient
configurations (coincident or collinear landmarks).
"""

import logging
from typing import Sequence

import numpy as np
from scipy.linalg import LinAlgError, lstsq
from scipy.spatial.distance import cdist

from .types import Coefficients, LandmarkPair, NonAffineTerm, SolverInputs, as_vec3

logger = logging.getLogger(__name__)

# smallest positive normal float: keeps U(0) non-zero so coincident landmarks
# do not drop the rank of K
KERNEL_ZERO_VALUE = np.finfo(np.float64).tiny


def rbf_kernel(r_squared: np.ndarray) -> np.ndarray:
    """
    TPS radial basis kernel U(r) = r^2 * log(r^2), evaluated on squared distances.

    Args:
        r_squared: array of squared distances

    Returns:
        Kernel values, with U(0) replaced by the smallest positive normal float
    """
    r_squared = np.asarray(r_squared, dtype=np.float64)
    out = np.full(r_squared.shape, KERNEL_ZERO_VALUE, dtype=np.float64)
    positive = r_squared > 0.0
    rs = r_squared[positive]
    out[positive] = rs * np.log(rs)
    return out


def _build_system(sources: np.ndarray, displacements: np.ndarray, regularization: float):
    num_pts = len(sources)

    # kernel matrix
    K = rbf_kernel(cdist(sources, sources, 'sqeuclidean'))
    if regularization > 0.0:
        K += np.eye(num_pts) * regularization

    # polynomial terms (1, x, y, z)
    P = np.ones((num_pts, 4))
    P[:, 1:] = sources

    L = np.zeros((num_pts + 4, num_pts + 4))
    L[:num_pts, :num_pts] = K
    L[:num_pts, num_pts:] = P
    L[num_pts:, :num_pts] = P.T

    V = np.zeros((num_pts + 4, 3))
    V[:num_pts] = displacements
    return L, V


def solve(pairs: Sequence[LandmarkPair], blend: float = 1.0, regularization: float = 0.0) -> Coefficients:
    """
    Solve for the TPS coefficients that map each source landmark onto
    lerp(src, dst, blend).

    Args:
        pairs: Ordered landmark pairs; their order defines the order of the
            returned non-affine terms
        blend: 0 keeps landmarks where they are, 1 maps them fully onto their
            destinations
        regularization: Optional ridge added to the kernel diagonal (0 for an
            exact interpolant)

    Returns:
        Coefficient bundle. Identity when `pairs` is empty or when the
        landmarks cannot produce a finite system.
    """
    pairs = tuple(pairs)
    if not pairs:
        return Coefficients.identity()

    sources = np.array([p.src for p in pairs], dtype=np.float64)
    destinations = np.array([p.dst for p in pairs], dtype=np.float64)

    # solve for the displacement and add the identity back afterwards, so
    # directions the landmarks do not constrain stay unwarped
    with np.errstate(over='ignore', invalid='ignore'):
        displacements = blend * (destinations - sources)
        L, V = _build_system(sources, displacements, regularization)

    if not (np.all(np.isfinite(L)) and np.all(np.isfinite(V))):
        logger.warning("TPS system for %d landmarks is not finite; using identity warp", len(pairs))
        return Coefficients.identity()

    # gelsd: SVD based, returns the least-norm solution for singular systems
    try:
        solution, _, rank, _ = lstsq(L, V, lapack_driver='gelsd', check_finite=False)
    except LinAlgError as e:
        logger.warning("TPS solve failed for %d landmarks (%s); using identity warp", len(pairs), e)
        return Coefficients.identity()

    if rank < L.shape[0]:
        logger.debug("TPS system is rank deficient (rank %d of %d): using least-squares solution",
                     rank, L.shape[0])

    if not np.all(np.isfinite(solution)):
        logger.warning("TPS solve produced non-finite coefficients for %d landmarks; using identity warp",
                       len(pairs))
        return Coefficients.identity()

    num_pts = len(pairs)
    weights = solution[:num_pts]
    affine = solution[num_pts:]
    affine[1:] += np.eye(3)

    terms = tuple(
        NonAffineTerm(weight=as_vec3(w), control_point=p.src)
        for w, p in zip(weights, pairs)
    )

    logger.debug("Solved TPS coefficients for %d landmark pairs (blend=%.3f)", num_pts, blend)
    return Coefficients(
        a1=as_vec3(affine[0]),
        a2=as_vec3(affine[1]),
        a3=as_vec3(affine[2]),
        a4=as_vec3(affine[3]),
        non_affine_terms=terms,
    )


def solve_inputs(inputs: SolverInputs, regularization: float = 0.0) -> Coefficients:
    """Solve from a bundled `SolverInputs` value."""
    return solve(inputs.pairs, inputs.blend, regularization=regularization)
