"""Sparse computational-basis state of a multi-qubit register.

The state is a map from basis index to complex amplitude. Bit i of a basis
index is the value of the qubit at offset i (qubit 0 is the least
significant bit). Indices absent from the map have amplitude exactly zero;
gate application drops entries whose magnitude falls to the prune
tolerance, so the key set only ever holds populated basis states.

Cost of a gate on k qubits is O(nnz * 2**k): amplitudes are grouped by the
bits outside the gate's view, each group is multiplied by the unitary, and
the results are scattered back into a fresh map.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import torch

from qsparse.config import SimulationConfig, default_config
from qsparse.diagnostics import assert_normalized, is_debug_enabled, norm_squared
from qsparse.errors import DimensionMismatchError, NotPureStateError
from qsparse.logging import get_logger

from .partial_trace import reduced_density_matrix as _partial_trace

logger = get_logger(__name__)

MatrixLike = Union[torch.Tensor, np.ndarray, Sequence[Sequence[complex]]]


@dataclass(frozen=True)
class RegisterView:
    """
    A non-owning reference to some qubits of a root state.

    A view is only a relation (root identity + ordered offsets); it never
    copies amplitudes. The first offset is the least significant bit of
    any matrix applied through the view.
    """

    root: "SparseQuantumState"
    offsets: Tuple[int, ...]

    @property
    def width(self) -> int:
        return len(self.offsets)

    def amplitudes(self) -> Tuple[complex, ...]:
        """Pure-state amplitudes of these qubits; see SparseQuantumState.amplitudes_of."""
        return self.root.amplitudes_of(self)

    def reduced_density_matrix(self) -> torch.Tensor:
        """Reduced density matrix of this (single-qubit) view."""
        return self.root.reduced_density_matrix(self)

    def is_entangled(self) -> bool:
        """True if these qubits cannot be given a pure state of their own."""
        try:
            self.root.amplitudes_of(self)
        except NotPureStateError:
            return True
        return False

    def __repr__(self) -> str:
        return f"RegisterView(offsets={self.offsets}, n_qubits={self.root.n_qubits})"


def _unitary_rows(unitary: MatrixLike, dim: int) -> List[List[complex]]:
    """Convert a matrix-like object to nested Python complex rows."""
    if isinstance(unitary, torch.Tensor):
        shape = tuple(unitary.shape)
        if shape != (dim, dim):
            raise DimensionMismatchError(dim, shape)
        return [[complex(v) for v in row] for row in unitary.detach().cpu().tolist()]

    array = np.asarray(unitary, dtype=np.complex128)
    if array.shape != (dim, dim):
        raise DimensionMismatchError(dim, array.shape)
    return [[complex(v) for v in row] for row in array.tolist()]


class SparseQuantumState:
    """
    Amplitude map of a root register of n_qubits, starting in |0...0>.

    This object is the single source of truth for the simulated
    wavefunction. It is mutated in place by :meth:`apply` and is not safe
    for concurrent mutation; readers that need a stable copy should use
    :meth:`snapshot`.
    """

    def __init__(
        self,
        n_qubits: int,
        config: Optional[SimulationConfig] = None,
    ) -> None:
        self._config = config if config is not None else default_config()
        self._n_qubits = 0
        self._amplitudes: Dict[int, complex] = {}
        self.reset(n_qubits)

    @property
    def n_qubits(self) -> int:
        """Register width W; valid basis indices lie in [0, 2**W)."""
        return self._n_qubits

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def nnz(self) -> int:
        """Number of stored (non-zero) amplitudes."""
        return len(self._amplitudes)

    def __len__(self) -> int:
        return len(self._amplitudes)

    def __repr__(self) -> str:
        return f"SparseQuantumState(n_qubits={self._n_qubits}, nnz={self.nnz})"

    def reset(self, n_qubits: Optional[int] = None) -> None:
        """Reinitialise to the all-zero basis state, optionally changing width."""
        if n_qubits is not None:
            if n_qubits < 1:
                raise ValueError(f"n_qubits must be >= 1, got {n_qubits}")
            self._n_qubits = int(n_qubits)
        self._replace({0: 1.0 + 0.0j})

    def _replace(self, amplitudes: Mapping[int, complex]) -> None:
        # in place, so proxies handed out by read() stay live
        self._amplitudes.clear()
        self._amplitudes.update(amplitudes)

    def read(self) -> Mapping[int, complex]:
        """Read-only live view of the amplitude map."""
        return MappingProxyType(self._amplitudes)

    def snapshot(self) -> Dict[int, complex]:
        """Independent copy of the amplitude map taken now."""
        return dict(self._amplitudes)

    def copy(self) -> "SparseQuantumState":
        """Return an independent state with the same width, config and amplitudes."""
        new = SparseQuantumState(self._n_qubits, config=self._config)
        new._amplitudes = dict(self._amplitudes)
        return new

    def load(self, amplitudes: Union[Mapping[int, complex], "SparseQuantumState"]) -> None:
        """
        Replace the amplitude map.

        Keys must be valid basis indices for this register. Zero entries
        are dropped; no normalisation is performed.
        """
        if isinstance(amplitudes, SparseQuantumState):
            if amplitudes is self:
                return
            if amplitudes.n_qubits != self._n_qubits:
                raise ValueError(
                    f"cannot load a {amplitudes.n_qubits}-qubit state into a "
                    f"{self._n_qubits}-qubit register"
                )
            self._replace(amplitudes._amplitudes)
            return

        limit = 1 << self._n_qubits
        loaded: Dict[int, complex] = {}
        for index, amp in amplitudes.items():
            index = int(index)
            if index < 0 or index >= limit:
                raise ValueError(
                    f"basis index {index} out of range [0, {limit}) for "
                    f"n_qubits={self._n_qubits}"
                )
            amp = complex(amp)
            if amp != 0:
                loaded[index] = amp
        self._replace(loaded)

    def view(self, offset: int, width: int = 1) -> RegisterView:
        """View of `width` consecutive qubits starting at `offset`."""
        return self.view_of(range(offset, offset + width))

    def view_of(self, offsets: Iterable[int]) -> RegisterView:
        """View of an arbitrary ordered list of qubit offsets."""
        offsets_t = tuple(int(o) for o in offsets)
        self._check_offsets(offsets_t, "view")
        return RegisterView(root=self, offsets=offsets_t)

    def _check_offsets(self, offsets: Tuple[int, ...], what: str) -> None:
        if what == "view" and not offsets:
            raise ValueError("a register view needs at least one qubit")
        if len(set(offsets)) != len(offsets):
            raise ValueError(f"{what} offsets must be distinct, got {offsets}")
        for o in offsets:
            if o < 0 or o >= self._n_qubits:
                raise ValueError(
                    f"qubit offset {o} out of range [0, {self._n_qubits})"
                )

    def _as_view(self, target: Union[RegisterView, int, Sequence[int]]) -> RegisterView:
        if isinstance(target, RegisterView):
            if target.root is not self:
                raise ValueError("register view belongs to a different state")
            # the root may have been narrowed by a reset or reload since
            self._check_offsets(target.offsets, "view")
            return target
        if isinstance(target, int):
            return self.view_of((target,))
        return self.view_of(target)

    def _group_by_rest(
        self, view: RegisterView, control_mask: int = 0
    ) -> Tuple[Dict[int, List[complex]], Dict[int, complex]]:
        """
        Split the map into per-rest-state columns of the view's sub-space.

        Returns (columns, untouched): columns maps the index with the view's
        bits cleared to a 2**k list of amplitudes indexed by the view's local
        value; untouched holds entries excluded by the control mask.
        """
        offsets = view.offsets
        dim = 1 << len(offsets)
        view_mask = 0
        for o in offsets:
            view_mask |= 1 << o

        columns: Dict[int, List[complex]] = {}
        untouched: Dict[int, complex] = {}
        for index, amp in self._amplitudes.items():
            if (index & control_mask) != control_mask:
                untouched[index] = amp
                continue
            local = 0
            for j, o in enumerate(offsets):
                if (index >> o) & 1:
                    local |= 1 << j
            rest = index & ~view_mask
            column = columns.get(rest)
            if column is None:
                column = [0j] * dim
                columns[rest] = column
            column[local] = amp
        return columns, untouched

    def apply(
        self,
        target: Union[RegisterView, int, Sequence[int]],
        unitary: MatrixLike,
        controls: Sequence[int] = (),
    ) -> None:
        """
        Multiply the amplitudes addressed by `target` by `unitary`.

        Args:
            target: A RegisterView of this state, a single offset, or a
                sequence of offsets.
            unitary: A (2**k, 2**k) matrix for a k-qubit target.
            controls: Offsets that must all be 1 for the gate to act.

        Raises:
            DimensionMismatchError: If the matrix size does not match the
                target width.
            ValueError: If offsets are out of range or overlap.
        """
        view = self._as_view(target)
        dim = 1 << view.width
        rows = _unitary_rows(unitary, dim)

        controls_t = tuple(int(c) for c in controls)
        self._check_offsets(controls_t, "control")
        if set(controls_t) & set(view.offsets):
            raise ValueError(
                f"control offsets {controls_t} overlap target offsets {view.offsets}"
            )
        control_mask = 0
        for c in controls_t:
            control_mask |= 1 << c

        columns, updated = self._group_by_rest(view, control_mask)

        # local value -> root bits, for scattering results back
        expand = []
        for local in range(dim):
            bits = 0
            for j, o in enumerate(view.offsets):
                if (local >> j) & 1:
                    bits |= 1 << o
            expand.append(bits)

        nnz_before = len(self._amplitudes)
        tol = self._config.prune_tolerance
        for rest, column in columns.items():
            populated = [(c, a) for c, a in enumerate(column) if a != 0]
            for r in range(dim):
                row = rows[r]
                value = 0j
                for c, a in populated:
                    value += row[c] * a
                if abs(value) > tol:
                    updated[rest | expand[r]] = value

        self._replace(updated)
        logger.debug(
            "applied %dx%d unitary on qubits %s (controls %s): nnz %d -> %d",
            dim, dim, view.offsets, controls_t, nnz_before, len(updated),
        )

        if is_debug_enabled():
            assert_normalized(self._amplitudes, atol=1e-6)

    def amplitudes_of(self, target: Union[RegisterView, int, Sequence[int]]) -> Tuple[complex, ...]:
        """
        Pure-state amplitudes of the addressed qubits.

        For a one-qubit view this is the pair (alpha, beta). The result is
        normalised and its global phase is fixed by the most populated
        rest-of-system state (lowest index on ties). An empty map yields
        all-zero amplitudes ("no population").

        Raises:
            NotPureStateError: If the qubits are entangled with the rest of
                the register.
        """
        view = self._as_view(target)
        dim = 1 << view.width
        columns, _ = self._group_by_rest(view)
        if not columns:
            return tuple([0j] * dim)

        reference_rest = None
        reference_weight = -1.0
        for rest in sorted(columns):
            weight = sum(abs(a) ** 2 for a in columns[rest])
            if weight > reference_weight:
                reference_rest, reference_weight = rest, weight
        reference = columns[reference_rest]
        pivot = max(range(dim), key=lambda c: abs(reference[c]))

        # tolerance scales with the reference column so unnormalised maps
        # are judged the same as their normalised counterparts
        tol = self._config.epsilon * math.sqrt(reference_weight)
        for rest, column in columns.items():
            ratio = column[pivot] / reference[pivot]
            for c in range(dim):
                if abs(column[c] - ratio * reference[c]) > tol:
                    raise NotPureStateError(
                        f"qubits {view.offsets} are entangled with the rest of "
                        "the register"
                    )

        scale = math.sqrt(reference_weight)
        return tuple(a / scale for a in reference)

    def reduced_density_matrix(
        self, target: Union[RegisterView, int, Sequence[int]]
    ) -> torch.Tensor:
        """
        2x2 reduced density matrix of a single qubit.

        Runs on a snapshot of the amplitude map, so it never observes a
        partially applied gate.
        """
        view = self._as_view(target)
        if view.width != 1:
            raise ValueError(
                f"reduced density matrix needs a single-qubit view, got {view.width} qubits"
            )
        return _partial_trace(
            self.snapshot(), self._n_qubits, view.offsets[0], config=self._config
        )

    def norm_squared(self) -> float:
        """Sum of |amplitude|^2 over the map."""
        return norm_squared(self._amplitudes)

    def probabilities(self) -> Dict[int, float]:
        """Probability of each populated basis index, in ascending index order."""
        return {i: abs(self._amplitudes[i]) ** 2 for i in sorted(self._amplitudes)}

    def approx_equal(
        self,
        other: Union["SparseQuantumState", Mapping[int, complex]],
        atol: Optional[float] = None,
    ) -> bool:
        """Compare amplitude maps entry-wise, treating absent keys as zero."""
        if atol is None:
            atol = self._config.epsilon
        theirs = other.read() if isinstance(other, SparseQuantumState) else other
        for index in set(self._amplitudes) | set(theirs):
            if abs(self._amplitudes.get(index, 0j) - theirs.get(index, 0j)) > atol:
                return False
        return True

    def to_dense(self, dtype: torch.dtype = torch.complex128) -> torch.Tensor:
        """Dense statevector of shape (2**n_qubits,), for small registers."""
        if self._n_qubits > 24:
            raise ValueError(
                f"refusing to densify a {self._n_qubits}-qubit state"
            )
        dense = torch.zeros(1 << self._n_qubits, dtype=dtype)
        for index, amp in self._amplitudes.items():
            dense[index] = amp
        return dense


__all__ = ["SparseQuantumState", "RegisterView"]
