"""Pytest configuration and shared fixtures for qsparse tests.

This module provides:
- Deterministic RNG fixtures for numpy and torch
- A factory for random normalised sparse amplitude maps
"""

import os
from typing import Callable, Dict

import numpy as np
import pytest
import torch


def _seed() -> int:
    return int(os.environ.get("TEST_RNG_SEED", "0"))


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    """
    return np.random.default_rng(_seed())


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds() -> None:
    """Auto-use fixture to set global random seeds for reproducibility."""
    np.random.seed(_seed())
    torch.manual_seed(_seed())


@pytest.fixture(scope="function")
def random_amplitudes(rng: np.random.Generator) -> Callable[[int, int], Dict[int, complex]]:
    """Return a factory building normalised random amplitude maps.

    ``random_amplitudes(n_qubits, nnz)`` draws `nnz` distinct basis indices
    in [0, 2**n_qubits) with complex Gaussian amplitudes.
    """

    def factory(n_qubits: int, nnz: int) -> Dict[int, complex]:
        dim = 1 << n_qubits
        nnz = min(nnz, dim)
        indices = rng.choice(dim, size=nnz, replace=False)
        values = rng.normal(size=nnz) + 1j * rng.normal(size=nnz)
        values = values / np.linalg.norm(values)
        return {int(i): complex(v) for i, v in zip(indices, values)}

    return factory
