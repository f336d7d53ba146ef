"""
Thin-Plate Spline Evaluator

Applies a solved coefficient bundle to single points, point batches and whole
meshes. Batches are processed in chunks so the (chunk x landmarks) distance
matrix stays bounded; chunks only read the coefficients and write disjoint
output rows.
"""

import logging
from typing import Optional, Sequence

import numpy as np
from scipy.spatial.distance import cdist
from tqdm import tqdm

from ..mesh.buffer import Mesh
from .solver import KERNEL_ZERO_VALUE, rbf_kernel
from .types import Coefficients, Vec3, as_vec3

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4096


def evaluate(coefficients: Coefficients, point: Sequence[float]) -> Vec3:
    """
    Warp a single point.

    Args:
        coefficients: Solved TPS coefficients
        point: 3D point

    Returns:
        Warped point
    """
    p = np.asarray(point, dtype=np.float64).reshape(1, 3)
    return as_vec3(evaluate_batch(coefficients, p)[0])


def _evaluate_chunk_numpy(points: np.ndarray, affine: np.ndarray,
                          control_points: np.ndarray, weights: np.ndarray) -> np.ndarray:
    P = np.ones((len(points), 4))
    P[:, 1:] = points
    result = P @ affine
    if len(control_points):
        phi = rbf_kernel(cdist(points, control_points, 'sqeuclidean'))
        result += phi @ weights
    return result


class _TorchChunkEvaluator:
    """Evaluates chunks on a torch device (GPU when available)"""

    def __init__(self, affine: np.ndarray, control_points: np.ndarray, weights: np.ndarray, device: str):
        import torch
        self.torch = torch
        self.device = torch.device(device)
        self.affine = torch.as_tensor(affine, dtype=torch.float64, device=self.device)
        self.control_points = torch.as_tensor(control_points, dtype=torch.float64, device=self.device)
        self.weights = torch.as_tensor(weights, dtype=torch.float64, device=self.device)

    def __call__(self, points: np.ndarray) -> np.ndarray:
        torch = self.torch
        pts = torch.as_tensor(points, dtype=torch.float64, device=self.device)
        P = torch.ones((pts.shape[0], 4), dtype=torch.float64, device=self.device)
        P[:, 1:] = pts
        result = P @ self.affine
        if self.control_points.shape[0]:
            r2 = torch.cdist(pts, self.control_points).pow(2)
            phi = torch.where(
                r2 > 0,
                r2 * torch.log(torch.clamp(r2, min=KERNEL_ZERO_VALUE)),
                torch.full_like(r2, KERNEL_ZERO_VALUE),
            )
            result = result + phi @ self.weights
        return result.cpu().numpy()


def evaluate_batch(coefficients: Coefficients,
                   points: Sequence,
                   out: Optional[np.ndarray] = None,
                   chunk_size: int = DEFAULT_CHUNK_SIZE,
                   backend: str = 'numpy',
                   device: str = 'cpu',
                   show_progress: bool = False) -> np.ndarray:
    """
    Warp every point of a batch independently.

    Args:
        coefficients: Solved TPS coefficients (read only)
        points: (M, 3) points to warp
        out: Optional (M, 3) float array that receives the warped points
        chunk_size: Number of points evaluated per chunk
        backend: 'numpy' or 'torch'
        device: torch device used when backend is 'torch'
        show_progress: Show a tqdm progress bar over chunks

    Returns:
        (M, 3) array of warped points (`out` when it was supplied)
    """
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim == 1:
        pts = pts.reshape(-1, 3)
    if pts.ndim != 2 or pts.shape[1] != 3:
        raise ValueError(f"Points must have shape (M, 3), got {pts.shape}")

    if out is None:
        out = np.empty_like(pts)
    elif out.shape != pts.shape:
        raise ValueError(f"Output array shape {out.shape} does not match input shape {pts.shape}")

    # identity warp: copy verbatim so the result is exact
    if coefficients.is_identity():
        out[...] = pts
        return out

    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    affine = coefficients.affine_matrix()
    control_points = coefficients.control_points()
    weights = coefficients.weights()

    if backend == 'numpy':
        def evaluate_chunk(chunk):
            return _evaluate_chunk_numpy(chunk, affine, control_points, weights)
    elif backend == 'torch':
        evaluate_chunk = _TorchChunkEvaluator(affine, control_points, weights, device)
    else:
        raise ValueError(f"Unknown evaluation backend: {backend}")

    starts = range(0, len(pts), chunk_size)
    if show_progress:
        starts = tqdm(starts, desc="Warping vertices", unit="chunk", leave=False)

    for start in starts:
        stop = min(start + chunk_size, len(pts))
        out[start:stop] = evaluate_chunk(pts[start:stop])

    return out


def warp_mesh(coefficients: Coefficients, mesh: Mesh, **kwargs) -> Mesh:
    """
    Warp every vertex of a mesh.

    Args:
        coefficients: Solved TPS coefficients
        mesh: Mesh to warp
        **kwargs: Forwarded to `evaluate_batch`

    Returns:
        New mesh with warped vertices and the original triangles
    """
    logger.debug("Warping %d vertices against %d landmarks",
                 mesh.num_vertices, len(coefficients.non_affine_terms))
    return mesh.with_transformed_vertex_array(lambda verts: evaluate_batch(coefficients, verts, **kwargs))
