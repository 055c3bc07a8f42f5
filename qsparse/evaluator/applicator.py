"""Applies the placements of a circuit step to a sparse state."""

from __future__ import annotations

from typing import Optional

from qsparse.backend import SparseQuantumState
from qsparse.circuit import Placement, Step
from qsparse.errors import DimensionMismatchError
from qsparse.gates.library import COMPOSITE, EXTENSION, GateLibrary, default_library
from qsparse.gates.standard import adjoint


class GateApplicator:
    """
    Resolves each placement's gate through a library and applies it.

    Placements in one step touch disjoint qubits (enforced by
    :class:`~qsparse.circuit.Step`), so they are applied in listed order
    without affecting the result. Errors from the library or the state
    propagate unchanged.
    """

    def __init__(self, library: Optional[GateLibrary] = None) -> None:
        self._library = library if library is not None else default_library()

    @property
    def library(self) -> GateLibrary:
        return self._library

    def apply_step(self, state: SparseQuantumState, step: Step) -> None:
        """Apply every placement of `step`."""
        for placement in step:
            self.apply_placement(state, placement)

    def apply_step_inverse(self, state: SparseQuantumState, step: Step) -> None:
        """Undo `step` by applying each placement's inverse in reverse order."""
        for placement in reversed(step.placements):
            self.apply_placement(state, placement, inverse=True)

    def can_invert(self, step: Step) -> bool:
        """Whether every gate in `step` has an inverse form."""
        return all(self._library.is_invertible(p.gate) for p in step)

    def apply_placement(
        self,
        state: SparseQuantumState,
        placement: Placement,
        inverse: bool = False,
    ) -> None:
        """
        Apply one placement (or its inverse).

        Raises:
            UnknownGateError: If the gate is not in the library.
            DimensionMismatchError: If the gate's width differs from the
                number of targets.
        """
        definition = self._library.get(placement.gate)

        if definition.kind == COMPOSITE:
            self._check_width(definition.n_qubits, placement)
            self._apply_composite(state, placement, definition.placements, inverse)
            return

        if definition.kind == EXTENSION:
            self._check_width(definition.n_qubits, placement)
            if placement.controls:
                raise ValueError(
                    f"Extension gate {definition.name} cannot be controlled."
                )
            procedure = definition.inverse if inverse else definition.procedure
            if procedure is None:
                raise ValueError(f"Extension gate {definition.name} has no inverse.")
            procedure(state, state.view_of(placement.targets), placement.params or ())
            return

        matrix = definition.matrix_for(placement.params)
        if inverse:
            matrix = adjoint(matrix)
        state.apply(placement.targets, matrix, controls=placement.controls)

    @staticmethod
    def _check_width(n_qubits: int, placement: Placement) -> None:
        if n_qubits != len(placement.targets):
            dim = 1 << len(placement.targets)
            raise DimensionMismatchError(dim, (1 << n_qubits, 1 << n_qubits))

    def _apply_composite(
        self,
        state: SparseQuantumState,
        placement: Placement,
        body: tuple,
        inverse: bool,
    ) -> None:
        if placement.params:
            raise ValueError(f"Composite gate {placement.gate} takes no parameters.")
        mapping = placement.targets
        sequence = reversed(body) if inverse else body
        for sub in sequence:
            mapped = Placement(
                gate=sub.gate,
                targets=tuple(mapping[q] for q in sub.targets),
                controls=placement.controls + tuple(mapping[q] for q in sub.controls),
                params=sub.params,
            )
            self.apply_placement(state, mapped, inverse=inverse)
