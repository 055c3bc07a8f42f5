"""Per-qubit state report for display layers.

A qubit that factors out of the register is reported by its amplitude pair;
an entangled qubit falls back to its reduced density matrix. Either way the
report carries the density matrix and Bloch vector. Degenerate input yields
``renderable=False`` and a message instead of an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import torch

from qsparse.backend import SparseQuantumState
from qsparse.diagnostics import (
    bloch_vector_from_amplitudes,
    bloch_vector_from_density,
    is_zero_matrix,
)
from qsparse.errors import NotPureStateError

NO_POPULATION = "No population on this qubit."


@dataclass(frozen=True)
class QubitReport:
    offset: int
    amplitudes: Optional[Tuple[complex, complex]]
    density_matrix: torch.Tensor
    bloch_vector: Tuple[float, float, float]
    renderable: bool = True
    message: Optional[str] = None

    @property
    def is_pure(self) -> bool:
        return self.amplitudes is not None

    def describe(self) -> str:
        """Short multi-line summary of the qubit state."""
        if not self.renderable:
            return self.message or NO_POPULATION
        if self.amplitudes is not None:
            alpha, beta = self.amplitudes
            return (
                f"α ≈ {_fmt(alpha.real)} + {_fmt(alpha.imag)}i\n"
                f"β ≈ {_fmt(beta.real)} + {_fmt(beta.imag)}i"
            )
        rho = self.density_matrix
        rho01 = complex(rho[0, 1].item())
        x, y, z = self.bloch_vector
        return (
            f"ρ₀₀ = {_fmt(rho[0, 0].real.item())}\n"
            f"ρ₁₁ = {_fmt(rho[1, 1].real.item())}\n"
            f"ρ₀₁ = {_fmt(rho01.real)} + {_fmt(rho01.imag)}i\n"
            f"Bloch Vector: (x={_fmt(x)}, y={_fmt(y)}, z={_fmt(z)})"
        )


def _fmt(value: float) -> str:
    # values that round to zero print as "0.00", never "-0.00"
    return f"{round(value, 2) + 0.0:.2f}"


def _pure_density(alpha: complex, beta: complex) -> torch.Tensor:
    return torch.tensor(
        [
            [alpha * alpha.conjugate(), alpha * beta.conjugate()],
            [beta * alpha.conjugate(), beta * beta.conjugate()],
        ],
        dtype=torch.complex128,
    )


def inspect_qubit(state: SparseQuantumState, offset: int) -> QubitReport:
    """
    Report the state of the qubit at `offset`.

    Raises:
        ValueError: If `offset` is outside the register.
    """
    view = state.view(offset)
    try:
        alpha, beta = state.amplitudes_of(view)
    except NotPureStateError:
        rho = state.reduced_density_matrix(view)
        if is_zero_matrix(rho, atol=state.config.epsilon):
            return QubitReport(offset, None, rho, (0.0, 0.0, 0.0), False, NO_POPULATION)
        return QubitReport(offset, None, rho, bloch_vector_from_density(rho))

    rho = _pure_density(alpha, beta)
    if alpha == 0 and beta == 0:
        return QubitReport(offset, None, rho, (0.0, 0.0, 0.0), False, NO_POPULATION)
    return QubitReport(
        offset,
        (alpha, beta),
        rho,
        bloch_vector_from_amplitudes(alpha, beta),
    )
