"""Standard quantum gate matrices.

Multi-qubit matrices use the register's LSB-first convention: row/column
bit j refers to the j-th qubit of the view the gate is applied to. For
example ``CNOT()`` applied to the view ``(c, t)`` uses qubit ``c`` as the
control and qubit ``t`` as the target.
"""

from __future__ import annotations

import cmath
import math
from typing import Sequence

import torch

_DEFAULT_DTYPE = torch.complex128


def _matrix(
    rows: Sequence[Sequence[complex]],
    dtype: torch.dtype | None,
    device: torch.device | None,
) -> torch.Tensor:
    if dtype is None:
        dtype = _DEFAULT_DTYPE
    if device is None:
        device = torch.device("cpu")
    return torch.tensor(rows, dtype=dtype, device=device)


def _angle(theta: torch.Tensor | float) -> float:
    if isinstance(theta, torch.Tensor):
        return float(theta.item())
    return float(theta)


def I(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Identity gate (single-qubit)."""
    return _matrix([[1.0, 0.0], [0.0, 1.0]], dtype, device)


def X(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Pauli-X gate (bit-flip, NOT gate)."""
    return _matrix([[0.0, 1.0], [1.0, 0.0]], dtype, device)


def Y(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Pauli-Y gate."""
    return _matrix([[0.0, -1.0j], [1.0j, 0.0]], dtype, device)


def Z(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Pauli-Z gate (phase-flip)."""
    return _matrix([[1.0, 0.0], [0.0, -1.0]], dtype, device)


def H(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Hadamard gate."""
    sqrt2_inv = 1.0 / math.sqrt(2.0)
    return _matrix([[sqrt2_inv, sqrt2_inv], [sqrt2_inv, -sqrt2_inv]], dtype, device)


def S(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """S gate (phase gate, sqrt(Z))."""
    return _matrix([[1.0, 0.0], [0.0, 1.0j]], dtype, device)


def SDG(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Adjoint of the S gate."""
    return _matrix([[1.0, 0.0], [0.0, -1.0j]], dtype, device)


def T(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """T gate (pi/8 gate, sqrt(S))."""
    return _matrix([[1.0, 0.0], [0.0, cmath.exp(1.0j * math.pi / 4.0)]], dtype, device)


def TDG(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Adjoint of the T gate."""
    return _matrix([[1.0, 0.0], [0.0, cmath.exp(-1.0j * math.pi / 4.0)]], dtype, device)


def SX(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Square root of X."""
    return _matrix(
        [[0.5 + 0.5j, 0.5 - 0.5j], [0.5 - 0.5j, 0.5 + 0.5j]], dtype, device
    )


def RX(
    theta: torch.Tensor | float,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """
    Rotation gate around X-axis: RX(theta) = exp(-i theta X / 2).

    Matrix form:
        [[cos(theta/2), -i sin(theta/2)],
         [-i sin(theta/2), cos(theta/2)]]
    """
    half_theta = _angle(theta) / 2.0
    cos_half = math.cos(half_theta)
    sin_half = math.sin(half_theta)
    return _matrix(
        [[cos_half, -1.0j * sin_half], [-1.0j * sin_half, cos_half]], dtype, device
    )


def RY(
    theta: torch.Tensor | float,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """
    Rotation gate around Y-axis: RY(theta) = exp(-i theta Y / 2).

    Matrix form:
        [[cos(theta/2), -sin(theta/2)],
         [sin(theta/2), cos(theta/2)]]
    """
    half_theta = _angle(theta) / 2.0
    cos_half = math.cos(half_theta)
    sin_half = math.sin(half_theta)
    return _matrix([[cos_half, -sin_half], [sin_half, cos_half]], dtype, device)


def RZ(
    theta: torch.Tensor | float,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """
    Rotation gate around Z-axis: RZ(theta) = exp(-i theta Z / 2).

    Matrix form:
        [[exp(-i theta/2), 0],
         [0, exp(i theta/2)]]
    """
    half_theta = _angle(theta) / 2.0
    return _matrix(
        [[cmath.exp(-1.0j * half_theta), 0.0], [0.0, cmath.exp(1.0j * half_theta)]],
        dtype,
        device,
    )


def PHASE(
    lam: torch.Tensor | float,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """Phase shift diag(1, exp(i lambda))."""
    return _matrix([[1.0, 0.0], [0.0, cmath.exp(1.0j * _angle(lam))]], dtype, device)


def U3(
    theta: torch.Tensor | float,
    phi: torch.Tensor | float,
    lam: torch.Tensor | float,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """
    Generic single-qubit rotation U3(theta, phi, lambda).

    Matrix form:
        [[cos(theta/2), -exp(i lambda) sin(theta/2)],
         [exp(i phi) sin(theta/2), exp(i (phi + lambda)) cos(theta/2)]]
    """
    theta_val, phi_val, lam_val = _angle(theta), _angle(phi), _angle(lam)
    cos_half = math.cos(theta_val / 2.0)
    sin_half = math.sin(theta_val / 2.0)
    return _matrix(
        [
            [cos_half, -cmath.exp(1.0j * lam_val) * sin_half],
            [
                cmath.exp(1.0j * phi_val) * sin_half,
                cmath.exp(1.0j * (phi_val + lam_val)) * cos_half,
            ],
        ],
        dtype,
        device,
    )


def CNOT(
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
    control_first: bool = True,
) -> torch.Tensor:
    """
    CNOT gate (controlled-NOT, controlled-X) on a two-qubit view.

    When control_first=True the first qubit of the view is the control and
    the second is the target; otherwise the roles are swapped.
    """
    if control_first:
        # control = bit 0: |01> <-> |11> in (bit1 bit0) notation
        rows = [
            [1.0, 0.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
            [0.0, 0.0, 1.0, 0.0],
            [0.0, 1.0, 0.0, 0.0],
        ]
    else:
        rows = [
            [1.0, 0.0, 0.0, 0.0],
            [0.0, 1.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
            [0.0, 0.0, 1.0, 0.0],
        ]
    return _matrix(rows, dtype, device)


def CZ(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Controlled-Z gate (symmetric in its two qubits)."""
    return _matrix(
        [
            [1.0, 0.0, 0.0, 0.0],
            [0.0, 1.0, 0.0, 0.0],
            [0.0, 0.0, 1.0, 0.0],
            [0.0, 0.0, 0.0, -1.0],
        ],
        dtype,
        device,
    )


def SWAP(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Swap the two qubits of a view."""
    return _matrix(
        [
            [1.0, 0.0, 0.0, 0.0],
            [0.0, 0.0, 1.0, 0.0],
            [0.0, 1.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ],
        dtype,
        device,
    )


def TOFFOLI(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """
    Toffoli (CCX) gate on a three-qubit view.

    The first two qubits of the view are controls, the third is the target.
    """
    mat = _matrix([[0.0] * 8 for _ in range(8)], dtype, device)
    for i in range(8):
        mat[i, i] = 1.0
    # |011> <-> |111>
    mat[3, 3] = 0.0
    mat[7, 7] = 0.0
    mat[3, 7] = 1.0
    mat[7, 3] = 1.0
    return mat


def adjoint(matrix: torch.Tensor) -> torch.Tensor:
    """Return the conjugate transpose of a gate matrix."""
    return matrix.conj().transpose(-1, -2).contiguous()


def is_unitary(matrix: torch.Tensor, atol: float = 1e-9) -> bool:
    """
    Check if a matrix is unitary within a given tolerance.

    A matrix U is unitary if U^dagger U = I.
    """
    if matrix.dim() < 2 or matrix.shape[-1] != matrix.shape[-2]:
        return False

    product = torch.matmul(adjoint(matrix), matrix)
    identity = torch.eye(matrix.shape[-1], dtype=matrix.dtype, device=matrix.device)
    if product.ndim > 2:
        identity = identity.expand(product.shape)

    diff = torch.abs(product - identity)
    return bool(torch.all(diff < atol).item())
