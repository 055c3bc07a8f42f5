"""Tests for the per-qubit report and the basis-state table."""

import math

import pytest
import torch

import qsparse as qs
from qsparse.backend import SparseQuantumState
from qsparse.inspect import QubitReport, basis_table, inspect_qubit
from qsparse.inspect.qubit import NO_POPULATION

SQRT2_INV = 1.0 / math.sqrt(2.0)


class TestInspectQubit:
    def test_pure_qubit_reports_amplitudes(self):
        state = SparseQuantumState(2)
        state.apply(1, qs.H())
        report = inspect_qubit(state, 1)
        assert report.is_pure
        assert report.renderable
        assert report.amplitudes == pytest.approx((SQRT2_INV, SQRT2_INV))
        assert report.bloch_vector == pytest.approx((1.0, 0.0, 0.0))
        expected = torch.full((2, 2), 0.5, dtype=torch.complex128)
        assert torch.allclose(report.density_matrix, expected)

    def test_pure_description(self):
        state = SparseQuantumState(1)
        state.apply(0, qs.H())
        state.apply(0, qs.S())
        text = inspect_qubit(state, 0).describe()
        assert text == "α ≈ 0.71 + 0.00i\nβ ≈ 0.00 + 0.71i"

    def test_entangled_qubit_falls_back_to_density_matrix(self):
        state = SparseQuantumState(2)
        state.apply(0, qs.H())
        state.apply(1, qs.X(), controls=[0])
        report = inspect_qubit(state, 0)
        assert not report.is_pure
        assert report.renderable
        assert report.bloch_vector == pytest.approx((0.0, 0.0, 0.0))
        assert report.describe() == (
            "ρ₀₀ = 0.50\n"
            "ρ₁₁ = 0.50\n"
            "ρ₀₁ = 0.00 + 0.00i\n"
            "Bloch Vector: (x=0.00, y=0.00, z=0.00)"
        )

    def test_partially_entangled_bloch_vector(self):
        state = SparseQuantumState(2)
        state.apply(0, qs.RY(math.pi / 3))
        state.apply(1, qs.H(), controls=[0])
        report = inspect_qubit(state, 0)
        assert not report.is_pure
        x, y, z = report.bloch_vector
        assert z == pytest.approx(math.cos(math.pi / 3))
        assert x == pytest.approx(2 * math.cos(math.pi / 6) * math.sin(math.pi / 6) * SQRT2_INV)
        assert y == pytest.approx(0.0)

    def test_pure_and_mixed_paths_share_convention(self):
        state = SparseQuantumState(2)
        state.apply(0, qs.U3(0.9, 0.4, 0.0))
        pure = inspect_qubit(state, 0)
        from_rho = qs.bloch_vector_from_density(state.reduced_density_matrix(0))
        assert pure.bloch_vector == pytest.approx(from_rho)

    def test_no_population(self):
        state = SparseQuantumState(2)
        state.load({})
        report = inspect_qubit(state, 1)
        assert not report.renderable
        assert report.message == NO_POPULATION
        assert report.describe() == NO_POPULATION

    def test_offset_out_of_range(self):
        with pytest.raises(ValueError):
            inspect_qubit(SparseQuantumState(2), 2)


class TestBasisTable:
    def test_rows_sorted_with_msb_first_bitstrings(self):
        state = SparseQuantumState(3)
        state.apply(0, qs.H())
        state.apply(2, qs.X(), controls=[0])
        rows = basis_table(state)
        assert [r.index for r in rows] == [0, 5]
        assert [r.bitstring for r in rows] == ["000", "101"]
        assert rows[1].probability == pytest.approx(0.5)

    def test_phase_and_filter(self):
        state = SparseQuantumState(1)
        state.apply(0, qs.RY(0.2))
        state.apply(0, qs.Z())
        rows = basis_table(state)
        assert abs(rows[1].phase) == pytest.approx(math.pi)
        assert [r.index for r in basis_table(state, min_probability=0.5)] == [0]


def test_describe_never_prints_negative_zero():
    report = QubitReport(
        offset=0,
        amplitudes=(1 + 0j, complex(-1e-17, -0.0)),
        density_matrix=torch.tensor([[1, 0], [0, 0]], dtype=torch.complex128),
        bloch_vector=(0.0, 0.0, 1.0),
    )
    assert report.describe() == "α ≈ 1.00 + 0.00i\nβ ≈ 0.00 + 0.00i"
