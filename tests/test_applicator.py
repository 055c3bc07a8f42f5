"""Tests for GateApplicator."""

import math

import pytest

import qsparse as qs
from qsparse.backend import SparseQuantumState
from qsparse.circuit import Placement, Step
from qsparse.errors import DimensionMismatchError, UnknownGateError
from qsparse.evaluator import GateApplicator

SQRT2_INV = 1.0 / math.sqrt(2.0)


@pytest.fixture
def applicator() -> GateApplicator:
    return GateApplicator()


def test_bell_pair_from_steps(applicator):
    state = SparseQuantumState(2)
    applicator.apply_step(state, Step([Placement("H", (0,))]))
    applicator.apply_step(state, Step([Placement("CNOT", (0, 1))]))
    assert state.approx_equal({0: SQRT2_INV, 3: SQRT2_INV})


def test_parametric_and_controlled_placements(applicator):
    state = SparseQuantumState(2)
    applicator.apply_placement(state, Placement("X", (0,)))
    applicator.apply_placement(state, Placement("RY", (1,), controls=(0,), params=(math.pi,)))
    assert state.approx_equal({3: 1 + 0j})


def test_disjoint_placements_commute(applicator, rng):
    """The result of a step does not depend on the order of its placements."""
    placements = [
        Placement("H", (0,)),
        Placement("RX", (1,), params=(0.7,)),
        Placement("CNOT", (2, 4)),
        Placement("T", (3,), controls=(5,)),
    ]
    prep = Step([Placement("H", (q,)) for q in range(6)])

    reference = SparseQuantumState(6)
    applicator.apply_step(reference, prep)
    applicator.apply_step(reference, Step(placements))

    for _ in range(5):
        order = [placements[i] for i in rng.permutation(len(placements))]
        state = SparseQuantumState(6)
        applicator.apply_step(state, prep)
        applicator.apply_step(state, Step(order))
        assert state.approx_equal(reference, atol=1e-12)


def test_unknown_gate(applicator):
    state = SparseQuantumState(1)
    with pytest.raises(UnknownGateError):
        applicator.apply_placement(state, Placement("FOO", (0,)))
    assert dict(state.read()) == {0: 1 + 0j}


def test_width_mismatch(applicator):
    state = SparseQuantumState(2)
    with pytest.raises(DimensionMismatchError):
        applicator.apply_placement(state, Placement("CNOT", (0,)))
    with pytest.raises(DimensionMismatchError):
        applicator.apply_placement(state, Placement("H", (0, 1)))


def test_inverse_step_undoes_step(applicator):
    step = Step(
        [
            Placement("U3", (0,), params=(0.3, 1.1, -0.4)),
            Placement("CNOT", (1, 2)),
            Placement("S", (3,)),
        ]
    )
    state = SparseQuantumState(4)
    applicator.apply_step(state, Step([Placement("H", (q,)) for q in range(4)]))
    before = state.snapshot()

    applicator.apply_step(state, step)
    assert not state.approx_equal(before)
    applicator.apply_step_inverse(state, step)
    assert state.approx_equal(before, atol=1e-12)


class TestCompositeGates:
    @pytest.fixture
    def applicator(self) -> GateApplicator:
        library = qs.default_library()
        library.register_composite(
            "BELL", 2, [Placement("H", (0,)), Placement("CNOT", (0, 1))]
        )
        return GateApplicator(library)

    def test_composite_maps_local_qubits(self, applicator):
        state = SparseQuantumState(3)
        applicator.apply_placement(state, Placement("bell", (2, 0)))
        assert state.approx_equal({0: SQRT2_INV, 5: SQRT2_INV})

    def test_controlled_composite(self, applicator):
        state = SparseQuantumState(3)
        applicator.apply_placement(state, Placement("BELL", (0, 1), controls=(2,)))
        assert dict(state.read()) == {0: 1 + 0j}

        state.load({4: 1 + 0j})
        applicator.apply_placement(state, Placement("BELL", (0, 1), controls=(2,)))
        assert state.approx_equal({4: SQRT2_INV, 7: SQRT2_INV})

    def test_composite_inverse(self, applicator):
        state = SparseQuantumState(2)
        applicator.apply_placement(state, Placement("BELL", (0, 1)))
        applicator.apply_placement(state, Placement("BELL", (0, 1)), inverse=True)
        assert state.approx_equal({0: 1 + 0j})

    def test_composite_width_checked(self, applicator):
        state = SparseQuantumState(3)
        with pytest.raises(DimensionMismatchError):
            applicator.apply_placement(state, Placement("BELL", (0, 1, 2)))


class TestExtensionGates:
    def _library(self, with_inverse: bool):
        calls = []

        def shift(state, view, params):
            calls.append(("forward", view.offsets, params))
            state.apply(view, qs.X())

        def unshift(state, view, params):
            calls.append(("inverse", view.offsets, params))
            state.apply(view, qs.X())

        library = qs.default_library()
        library.register_extension("SHIFT", 1, shift, inverse=unshift if with_inverse else None)
        return library, calls

    def test_procedure_receives_view(self):
        library, calls = self._library(with_inverse=True)
        applicator = GateApplicator(library)
        state = SparseQuantumState(2)
        applicator.apply_placement(state, Placement("SHIFT", (1,), params=(2.0,)))
        assert dict(state.read()) == {2: 1 + 0j}
        assert calls == [("forward", (1,), (2.0,))]

        applicator.apply_placement(state, Placement("SHIFT", (1,)), inverse=True)
        assert dict(state.read()) == {0: 1 + 0j}
        assert calls[-1] == ("inverse", (1,), ())

    def test_missing_inverse(self):
        library, _ = self._library(with_inverse=False)
        applicator = GateApplicator(library)
        step = Step([Placement("SHIFT", (0,))])
        assert not applicator.can_invert(step)
        with pytest.raises(ValueError, match="no inverse"):
            applicator.apply_step_inverse(SparseQuantumState(1), step)

    def test_extension_cannot_be_controlled(self):
        library, _ = self._library(with_inverse=True)
        applicator = GateApplicator(library)
        with pytest.raises(ValueError, match="cannot be controlled"):
            applicator.apply_placement(
                SparseQuantumState(2), Placement("SHIFT", (0,), controls=(1,))
            )
