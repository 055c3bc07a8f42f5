"""Tabular listing of the populated basis states."""

from __future__ import annotations

import cmath
from dataclasses import dataclass
from typing import List

from qsparse.backend import SparseQuantumState


@dataclass(frozen=True)
class BasisRow:
    index: int
    bitstring: str
    amplitude: complex
    probability: float

    @property
    def phase(self) -> float:
        """Argument of the amplitude in (-pi, pi]."""
        return cmath.phase(self.amplitude)


def basis_table(state: SparseQuantumState, min_probability: float = 0.0) -> List[BasisRow]:
    """
    Rows for every populated basis index, in ascending index order.

    Bitstrings are written with the highest qubit on the left, so qubit 0
    is the last character.
    """
    n = state.n_qubits
    rows = []
    amplitudes = state.read()
    for index in sorted(amplitudes):
        amp = amplitudes[index]
        probability = abs(amp) ** 2
        if probability < min_probability:
            continue
        rows.append(BasisRow(index, format(index, f"0{n}b"), amp, probability))
    return rows
