"""Tests for the single-qubit partial trace."""

import math

import numpy as np
import pytest
import torch

from qsparse.backend.partial_trace import (
    partial_trace_parallel,
    partial_trace_sequential,
    reduced_density_matrix,
    rest_state_collisions,
)
from qsparse.config import SimulationConfig
from qsparse.diagnostics import is_hermitian, is_zero_matrix

SQRT2_INV = 1.0 / math.sqrt(2.0)


def _dense_reference(amplitudes, n_qubits, target):
    psi = np.zeros(1 << n_qubits, dtype=np.complex128)
    for index, amp in amplitudes.items():
        psi[index] = amp
    psi = psi.reshape(1 << (n_qubits - 1 - target), 2, 1 << target)
    rho = np.einsum("abc,adc->bd", psi, psi.conj())
    return torch.tensor(rho / np.trace(rho).real, dtype=torch.complex128)


def _expected(rows):
    return torch.tensor(rows, dtype=torch.complex128)


class TestScenarios:
    """Fixed input/output pairs."""

    def test_ground_state(self):
        rho = reduced_density_matrix({0: 1 + 0j}, 1, 0)
        assert torch.allclose(rho, _expected([[1, 0], [0, 0]]))

    def test_plus_state(self):
        rho = reduced_density_matrix({0: SQRT2_INV + 0j, 1: SQRT2_INV + 0j}, 1, 0)
        assert torch.allclose(rho, _expected([[0.5, 0.5], [0.5, 0.5]]))

    def test_bell_state_is_maximally_mixed(self):
        amplitudes = {0: SQRT2_INV + 0j, 3: SQRT2_INV + 0j}
        for target in (0, 1):
            rho = reduced_density_matrix(amplitudes, 2, target)
            assert torch.allclose(rho, _expected([[0.5, 0], [0, 0.5]]))

    @pytest.mark.parametrize("n_qubits,target", [(1, 0), (3, 2), (16, 5)])
    def test_empty_map_returns_zero_matrix(self, n_qubits, target):
        rho = reduced_density_matrix({}, n_qubits, target)
        assert rho.shape == (2, 2)
        assert is_zero_matrix(rho)

    def test_output_dtype(self):
        rho = reduced_density_matrix({0: 1 + 0j}, 2, 1)
        assert rho.dtype == torch.complex128


class TestNormalisation:
    def test_unnormalised_input_is_rescaled(self):
        rho = reduced_density_matrix({0: 2 + 0j, 1: 2j}, 1, 0)
        assert torch.allclose(rho, _expected([[0.5, -0.5j], [0.5j, 0.5]]))

    def test_near_zero_trace_is_not_rescaled(self):
        rho = reduced_density_matrix({1: 1e-6 + 0j}, 1, 0)
        assert rho[1, 1].real.item() == pytest.approx(1e-12)
        assert is_zero_matrix(rho)

    def test_relative_phase_appears_in_coherence(self):
        # (|0> + i|1>)/sqrt(2): rho01 = alpha * conj(beta) = -i/2
        rho = reduced_density_matrix({0: SQRT2_INV + 0j, 1: 1j * SQRT2_INV}, 1, 0)
        assert rho[0, 1].item() == pytest.approx(-0.5j)
        assert rho[1, 0].item() == pytest.approx(0.5j)


class TestProperties:
    @pytest.mark.parametrize("n_qubits", [2, 4, 7])
    def test_matches_dense_reference(self, random_amplitudes, n_qubits):
        amplitudes = random_amplitudes(n_qubits, 3 * n_qubits)
        for target in range(n_qubits):
            rho = reduced_density_matrix(amplitudes, n_qubits, target)
            assert torch.allclose(rho, _dense_reference(amplitudes, n_qubits, target), atol=1e-12)

    @pytest.mark.parametrize("n_qubits", [3, 6, 10])
    def test_hermitian_with_unit_trace(self, random_amplitudes, n_qubits):
        amplitudes = random_amplitudes(n_qubits, 40)
        for target in range(n_qubits):
            rho = reduced_density_matrix(amplitudes, n_qubits, target)
            assert is_hermitian(rho, atol=1e-12)
            assert rho[0, 1].item() == pytest.approx(rho[1, 0].item().conjugate())
            trace = (rho[0, 0] + rho[1, 1]).real.item()
            assert trace == pytest.approx(1.0, abs=1e-9)
            assert rho[0, 0].imag.item() == 0.0
            assert rho[1, 1].imag.item() == 0.0

    def test_no_rest_state_collisions(self, rng, random_amplitudes):
        for _ in range(25):
            n_qubits = int(rng.integers(1, 12))
            target = int(rng.integers(0, n_qubits))
            amplitudes = random_amplitudes(n_qubits, int(rng.integers(1, 200)))
            assert rest_state_collisions(amplitudes, n_qubits, target) == 0


class TestDispatch:
    def test_widths_straddling_threshold_agree(self, random_amplitudes):
        amplitudes = random_amplitudes(13, 3000)
        config = SimulationConfig(parallel_threshold=14, max_workers=4, min_chunk_size=128)
        for target in (0, 6, 12):
            narrow = reduced_density_matrix(amplitudes, 13, target, config=config)
            wide = reduced_density_matrix(amplitudes, 14, target, config=config)
            assert torch.allclose(narrow, wide, atol=1e-9)

    @pytest.mark.parametrize("workers,chunk", [(1, 1), (3, 7), (8, 64)])
    def test_parallel_matches_sequential(self, random_amplitudes, workers, chunk):
        amplitudes = random_amplitudes(9, 300)
        config = SimulationConfig(max_workers=workers, min_chunk_size=chunk)
        for target in range(9):
            seq = partial_trace_sequential(amplitudes, 9, target, config=config)
            par = partial_trace_parallel(amplitudes, 9, target, config=config)
            assert torch.allclose(seq, par, atol=1e-9)

    def test_parallel_scenarios(self):
        config = SimulationConfig(max_workers=2, min_chunk_size=1)
        rho = partial_trace_parallel({0: SQRT2_INV + 0j, 3: SQRT2_INV + 0j}, 2, 0, config)
        assert torch.allclose(rho, _expected([[0.5, 0], [0, 0.5]]))
        assert is_zero_matrix(partial_trace_parallel({}, 2, 0, config))

    def test_input_is_not_modified(self, random_amplitudes):
        amplitudes = random_amplitudes(14, 500)
        before = dict(amplitudes)
        reduced_density_matrix(amplitudes, 14, 3)
        assert amplitudes == before


class TestValidation:
    def test_target_out_of_range(self):
        with pytest.raises(ValueError, match="out of range"):
            reduced_density_matrix({0: 1 + 0j}, 2, 2)
        with pytest.raises(ValueError, match="out of range"):
            reduced_density_matrix({0: 1 + 0j}, 2, -1)

    def test_index_out_of_range(self):
        with pytest.raises(ValueError, match="basis indices"):
            reduced_density_matrix({4: 1 + 0j}, 2, 0)
