"""Diagnostics and debugging utilities for qsparse."""

from .core import (
    assert_hermitian,
    assert_normalized,
    bloch_vector_from_amplitudes,
    bloch_vector_from_density,
    fidelity,
    is_hermitian,
    is_zero_matrix,
    norm_squared,
)
from .debug_mode import (
    debug_context,
    debug_from_env,
    is_debug_enabled,
    set_debug_enabled,
)

__all__ = [
    "norm_squared",
    "assert_normalized",
    "is_hermitian",
    "assert_hermitian",
    "is_zero_matrix",
    "fidelity",
    "bloch_vector_from_density",
    "bloch_vector_from_amplitudes",
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
    "debug_from_env",
]
