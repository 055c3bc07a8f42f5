"""Process-wide switch for the normalisation check on every gate.

When the switch is on, :meth:`SparseQuantumState.apply` asserts after each
update that the amplitude map still has unit norm, which catches
non-unitary matrices and extension procedures that leak weight. The
initial value comes from the ``QSPARSE_DEBUG`` environment variable.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator, Mapping, Optional

DEBUG_ENV_VAR = "QSPARSE_DEBUG"
_TRUTHY = frozenset({"1", "true", "yes", "on"})


def debug_from_env(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Parse ``QSPARSE_DEBUG`` from `environ` (``os.environ`` by default)."""
    if environ is None:
        environ = os.environ
    return environ.get(DEBUG_ENV_VAR, "").strip().lower() in _TRUTHY


_debug_enabled: bool = debug_from_env()


def is_debug_enabled() -> bool:
    return _debug_enabled


def set_debug_enabled(enabled: bool) -> bool:
    """Turn the per-gate norm check on or off and return the previous setting."""
    global _debug_enabled
    previous = _debug_enabled
    _debug_enabled = bool(enabled)
    return previous


@contextmanager
def debug_context(enabled: bool = True) -> Iterator[None]:
    """
    Override the switch for the duration of a ``with`` block.

    >>> with debug_context(True):
    ...     state.apply(state.view(0), H())
    """
    previous = set_debug_enabled(enabled)
    try:
        yield
    finally:
        set_debug_enabled(previous)
