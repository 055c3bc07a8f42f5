"""Diagnostic helpers for sparse amplitude maps and 2x2 density matrices."""

from __future__ import annotations

import math
from typing import Mapping, Tuple

import torch


def norm_squared(amplitudes: Mapping[int, complex]) -> float:
    """
    Return the total probability sum(|amp|^2) of an amplitude map.

    Keys are visited in ascending order so the floating-point sum is
    reproducible.
    """
    total = 0.0
    for index in sorted(amplitudes):
        amp = amplitudes[index]
        total += amp.real * amp.real + amp.imag * amp.imag
    return total


def assert_normalized(
    amplitudes: Mapping[int, complex],
    atol: float = 1e-6,
) -> None:
    """
    Assert that an amplitude map has total probability ~1.

    Raises
    ------
    ValueError
        If the norm is not finite or differs from 1 by more than atol.
    """
    total = norm_squared(amplitudes)
    if not math.isfinite(total):
        raise ValueError("State norm contains non-finite values.")
    if abs(total - 1.0) > atol:
        raise ValueError(
            f"State is not normalized within tolerance {atol}. "
            f"Sum of probabilities: {total}"
        )


def is_hermitian(mat: torch.Tensor, atol: float = 1e-9) -> bool:
    """Check whether a square matrix equals its conjugate transpose."""
    if mat.dim() < 2 or mat.shape[-1] != mat.shape[-2]:
        return False

    diff = mat - mat.conj().transpose(-2, -1)
    max_dev = diff.abs().max()
    if not torch.isfinite(max_dev):
        return False

    return bool(max_dev <= atol)


def assert_hermitian(mat: torch.Tensor, atol: float = 1e-9) -> None:
    """
    Assert that a matrix is Hermitian.

    Raises
    ------
    ValueError
        If the matrix is not Hermitian within the tolerance.
    """
    if not is_hermitian(mat, atol=atol):
        raise ValueError(f"Matrix is not Hermitian within tolerance {atol}.")


def is_zero_matrix(mat: torch.Tensor, atol: float = 1e-9) -> bool:
    """
    Return True for the all-zero "no population" density matrix.

    The partial trace returns this matrix unchanged instead of raising when
    the traced state has no weight, so callers must test for it explicitly.
    """
    return bool(mat.abs().max() <= atol)


def fidelity(a: Mapping[int, complex], b: Mapping[int, complex]) -> float:
    """Return |<a|b>|^2 for two sparse pure states."""
    if len(b) < len(a):
        a, b = b, a
    inner = 0j
    for index in sorted(a):
        other = b.get(index)
        if other is not None:
            inner += a[index].conjugate() * other
    return abs(inner) ** 2


def bloch_vector_from_density(rho: torch.Tensor) -> Tuple[float, float, float]:
    """
    Bloch coordinates of a single-qubit density matrix.

        x = 2 Re(rho10), y = 2 Im(rho10), z = rho00 - rho11

    This agrees with :func:`bloch_vector_from_amplitudes` for pure states,
    where rho10 = conj(alpha) * beta.
    """
    if tuple(rho.shape) != (2, 2):
        raise ValueError(f"expected a (2, 2) density matrix, got {tuple(rho.shape)}")
    rho10 = complex(rho[1, 0].item())
    x = 2.0 * rho10.real
    y = 2.0 * rho10.imag
    z = float(rho[0, 0].real.item()) - float(rho[1, 1].real.item())
    # adding 0.0 maps -0.0 to 0.0
    return (x + 0.0, y + 0.0, z + 0.0)


def bloch_vector_from_amplitudes(
    alpha: complex,
    beta: complex,
) -> Tuple[float, float, float]:
    """
    Bloch coordinates of the pure state alpha|0> + beta|1>.

    The pair is normalised first; a zero pair maps to the origin.
    """
    magnitude = math.sqrt(abs(alpha) ** 2 + abs(beta) ** 2)
    if magnitude == 0.0:
        return (0.0, 0.0, 0.0)
    alpha = alpha / magnitude
    beta = beta / magnitude
    coherence = alpha.conjugate() * beta
    return (
        2.0 * coherence.real + 0.0,
        2.0 * coherence.imag + 0.0,
        abs(alpha) ** 2 - abs(beta) ** 2 + 0.0,
    )
