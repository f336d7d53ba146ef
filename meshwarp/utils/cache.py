#!/usr/bin/env python3
"""
meshwarp Result Cache

Keeps the warped source mesh for the current document and only recomputes the
parts whose inputs changed:

    landmark pairs + blend  ->  TPS coefficients  -+
                                                   +->  warped mesh
    source mesh  ----------------------------------+

Every level is compared by value, so returning to previously seen inputs
never forces redundant work.
"""

import logging
import time
from typing import Any, Dict, Optional

from ..document.model import Document, get_landmark_pairs
from ..mesh.buffer import Mesh
from ..tps.evaluator import warp_mesh
from ..tps.solver import solve
from ..tps.types import Coefficients, SolverInputs

logger = logging.getLogger(__name__)


class ResultCache:
    """Lookup-or-recompute cache for the warped source mesh"""

    def __init__(self, regularization: float = 0.0, evaluation_options: Optional[Dict[str, Any]] = None):
        """
        Initialize result cache

        Args:
            regularization: Ridge term forwarded to the TPS solver
            evaluation_options: Keyword arguments forwarded to `evaluate_batch`
                (chunk_size, backend, device, show_progress)
        """
        self.regularization = regularization
        self.evaluation_options = dict(evaluation_options or {})
        self._reset()

    def _reset(self) -> None:
        self._cached_inputs: Optional[SolverInputs] = None
        self._cached_coefficients: Coefficients = Coefficients.identity()
        self._cached_source_mesh: Optional[Mesh] = None
        self._cached_result_mesh: Mesh = Mesh.empty()
        self._stats = {
            'lookups': 0,
            'input_changes': 0,
            'solves': 0,
            'coefficient_changes': 0,
            'mesh_changes': 0,
            'warps': 0,
            'last_solve_seconds': 0.0,
            'last_warp_seconds': 0.0,
        }

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------

    def lookup(self, doc: Document) -> Mesh:
        """
        Lookup, or recompute, the warped source mesh for a document

        Args:
            doc: Current document state

        Returns:
            Warped source mesh
        """
        self._stats['lookups'] += 1
        self._update_result_mesh(doc)
        return self._cached_result_mesh

    @property
    def coefficients(self) -> Coefficients:
        """Coefficients used for the most recent result"""
        return self._cached_coefficients

    @property
    def inputs(self) -> Optional[SolverInputs]:
        """Solver inputs used for the most recent result"""
        return self._cached_inputs

    def clear(self) -> None:
        """Drop all cached values"""
        self._reset()

    def get_cache_stats(self) -> Dict[str, Any]:
        """Get cache statistics"""
        return dict(self._stats)

    # ------------------------------------------------------------------
    # dependency chain
    # ------------------------------------------------------------------

    def _update_result_mesh(self, doc: Document) -> bool:
        """Returns `True` if the cached result mesh was recomputed"""
        updated_coefficients = self._update_coefficients(doc)
        updated_mesh = self._update_source_mesh(doc)

        if not (updated_coefficients or updated_mesh):
            return False

        start = time.perf_counter()
        self._cached_result_mesh = warp_mesh(
            self._cached_coefficients,
            self._cached_source_mesh,
            **self.evaluation_options
        )
        self._stats['warps'] += 1
        self._stats['last_warp_seconds'] = time.perf_counter() - start
        logger.debug("Re-warped %d vertices in %.4fs",
                     self._cached_result_mesh.num_vertices, self._stats['last_warp_seconds'])
        return True

    def _update_coefficients(self, doc: Document) -> bool:
        """Returns `True` if the cached coefficients changed value"""
        first_solve = self._cached_inputs is None
        if not self._update_inputs(doc):
            # inputs unchanged, so the coefficients cannot change either
            return False

        start = time.perf_counter()
        new_coefficients = solve(
            self._cached_inputs.pairs,
            self._cached_inputs.blend,
            regularization=self.regularization,
        )
        self._stats['solves'] += 1
        self._stats['last_solve_seconds'] = time.perf_counter() - start

        if first_solve or new_coefficients != self._cached_coefficients:
            self._cached_coefficients = new_coefficients
            self._stats['coefficient_changes'] += 1
            return True
        return False

    def _update_source_mesh(self, doc: Document) -> bool:
        """Returns `True` if the source mesh changed value"""
        if self._cached_source_mesh is not None and self._cached_source_mesh == doc.source.mesh:
            return False
        self._cached_source_mesh = doc.source.mesh
        self._stats['mesh_changes'] += 1
        return True

    def _update_inputs(self, doc: Document) -> bool:
        """Returns `True` if the landmark pairs or blend factor changed value"""
        new_inputs = SolverInputs(tuple(get_landmark_pairs(doc)), doc.blend)
        if new_inputs == self._cached_inputs:
            return False

        logger.debug("Solver inputs changed: %d pairs, blend=%.3f", len(new_inputs.pairs), new_inputs.blend)
        self._cached_inputs = new_inputs
        self._stats['input_changes'] += 1
        return True
