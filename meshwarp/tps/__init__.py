"""
TPS Module

Thin-plate spline value types, coefficient solver and evaluator.
"""

from .evaluator import evaluate, evaluate_batch, warp_mesh
from .solver import rbf_kernel, solve, solve_inputs
from .types import Coefficients, LandmarkPair, NonAffineTerm, SolverInputs

__all__ = [
    'Coefficients',
    'LandmarkPair',
    'NonAffineTerm',
    'SolverInputs',
    'evaluate',
    'evaluate_batch',
    'rbf_kernel',
    'solve',
    'solve_inputs',
    'warp_mesh'
]
