"""Exception types raised by the simulation engine."""

from __future__ import annotations


class QSparseError(Exception):
    """Base class for all qsparse errors."""


class DimensionMismatchError(QSparseError, ValueError):
    """A unitary's size does not match the number of targeted qubits."""

    def __init__(self, expected_dim: int, shape: tuple[int, ...]) -> None:
        self.expected_dim = expected_dim
        self.shape = tuple(shape)
        super().__init__(
            f"unitary of shape {self.shape} cannot act on a register view of "
            f"dimension {expected_dim} (expected ({expected_dim}, {expected_dim}))"
        )


class UnknownGateError(QSparseError, KeyError):
    """A placement names a gate that the gate library does not define."""

    def __init__(self, gate_name: str) -> None:
        self.gate_name = gate_name
        super().__init__(gate_name)

    def __str__(self) -> str:
        return f"unknown gate {self.gate_name!r}"


class NotPureStateError(QSparseError):
    """
    The addressed qubits are entangled with the rest of the register.

    This is a control signal rather than a failure: callers fall back to
    the reduced density matrix.
    """


class OverlappingPlacementError(QSparseError, ValueError):
    """Two placements of one step touch the same qubit."""


__all__ = [
    "QSparseError",
    "DimensionMismatchError",
    "UnknownGateError",
    "NotPureStateError",
    "OverlappingPlacementError",
]
