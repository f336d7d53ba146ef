"""
tests/test_result_cache.py: lookup-or-recompute behaviour of `ResultCache`.
"""

import numpy as np
import pytest

from meshwarp.document.model import Document, DocumentInput
from meshwarp.mesh.buffer import Mesh
from meshwarp.tps.types import lerp
from meshwarp.utils import cache as cache_module
from meshwarp.utils.cache import ResultCache


@pytest.fixture
def solve_calls(monkeypatch):
    """Counts calls to the solver used by the cache"""
    calls = []
    real_solve = cache_module.solve

    def counting_solve(*args, **kwargs):
        calls.append((args, kwargs))
        return real_solve(*args, **kwargs)

    monkeypatch.setattr(cache_module, "solve", counting_solve)
    return calls


def test_document_without_landmarks_returns_source_vertices_exactly(triangle_mesh):
    doc = Document(DocumentInput(mesh=triangle_mesh), DocumentInput(mesh=triangle_mesh), blend=1.0)
    result = ResultCache().lookup(doc)

    np.testing.assert_array_equal(result.vertices(), triangle_mesh.vertices())
    np.testing.assert_array_equal(result.indices(), triangle_mesh.indices())


def test_repeated_lookup_solves_once(landmark_document, solve_calls):
    cache = ResultCache()
    first = cache.lookup(landmark_document)
    second = cache.lookup(landmark_document)

    assert len(solve_calls) == 1
    assert first == second
    assert second is first
    assert cache.get_cache_stats()["warps"] == 1


def test_blend_change_resolves_and_rewarps(landmark_document, solve_calls):
    cache = ResultCache()
    before = cache.lookup(landmark_document)

    landmark_document.blend = 0.6
    after = cache.lookup(landmark_document)

    assert len(solve_calls) == 2
    assert cache.get_cache_stats()["warps"] == 2
    assert after != before
    assert cache.inputs.blend == 0.6


def test_equal_copy_of_document_is_a_cache_hit(landmark_document, solve_calls):
    cache = ResultCache()
    cache.lookup(landmark_document)
    cache.lookup(landmark_document.copy())

    assert len(solve_calls) == 1
    assert cache.get_cache_stats()["warps"] == 1


def test_unpaired_landmark_does_not_trigger_solve(landmark_document, solve_calls):
    cache = ResultCache()
    cache.lookup(landmark_document)

    landmark_document.source.landmarks[42] = (9.0, 9.0, 9.0)
    cache.lookup(landmark_document)

    assert len(solve_calls) == 1
    assert cache.get_cache_stats()["warps"] == 1


def test_source_mesh_change_rewarps_without_solving(landmark_document, solve_calls):
    cache = ResultCache()
    cache.lookup(landmark_document)

    bigger = landmark_document.source.mesh.with_transformed_vertex_array(lambda v: v * 2.0)
    landmark_document.source.mesh = bigger
    result = cache.lookup(landmark_document)

    assert len(solve_calls) == 1
    stats = cache.get_cache_stats()
    assert stats["warps"] == 2
    assert stats["mesh_changes"] == 2
    assert result.num_vertices == bigger.num_vertices


def test_destination_mesh_change_is_ignored(landmark_document, triangle_mesh, solve_calls):
    cache = ResultCache()
    first = cache.lookup(landmark_document)

    landmark_document.destination.mesh = triangle_mesh
    assert cache.lookup(landmark_document) is first
    assert len(solve_calls) == 1


def test_landmark_vertices_land_on_blended_destinations(landmark_document, tetra_pairs):
    result = ResultCache().lookup(landmark_document)

    # cube vertices 0, 1, 3 and 4 coincide with the tetra landmarks
    for vertex, pair in zip([0, 1, 3, 4], tetra_pairs):
        expected = lerp(pair.src, pair.dst, 0.5)
        np.testing.assert_allclose(result.vertices()[vertex], expected, atol=1e-6)


def test_returning_to_previous_inputs_recomputes_by_value(landmark_document, solve_calls):
    cache = ResultCache()
    original = cache.lookup(landmark_document)

    landmark_document.blend = 0.9
    cache.lookup(landmark_document)
    landmark_document.blend = 0.5

    assert cache.lookup(landmark_document) == original
    assert len(solve_calls) == 3


def test_regularization_is_forwarded_to_solver(landmark_document, solve_calls):
    ResultCache(regularization=0.25).lookup(landmark_document)
    assert solve_calls[0][1]["regularization"] == 0.25


def test_clear_forces_recomputation(landmark_document, solve_calls):
    cache = ResultCache()
    cache.lookup(landmark_document)
    cache.clear()
    assert cache.get_cache_stats()["lookups"] == 0

    cache.lookup(landmark_document)
    assert len(solve_calls) == 2


def test_empty_document_lookup_returns_empty_mesh():
    result = ResultCache().lookup(Document())
    assert result == Mesh.empty()
    assert result.is_empty()
