"""Sparse state backend and partial-trace calculator."""

from .partial_trace import (
    partial_trace_parallel,
    partial_trace_sequential,
    reduced_density_matrix,
    rest_state_collisions,
)
from .sparse_state import RegisterView, SparseQuantumState

__all__ = [
    "SparseQuantumState",
    "RegisterView",
    "reduced_density_matrix",
    "partial_trace_sequential",
    "partial_trace_parallel",
    "rest_state_collisions",
]
