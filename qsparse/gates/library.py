"""Gate library: resolves gate names to unitaries or procedures.

Four kinds of gate are supported:

* ``matrix``: a fixed unitary.
* ``parametric``: a factory ``f(*params) -> unitary`` (e.g. RX).
* ``composite``: a user-defined sub-circuit, a sequence of placements on
  the composite's own local qubits ``0..n_qubits-1``.
* ``extension``: a user-supplied procedure that mutates the state
  directly, optionally with an inverse procedure.

Names are case-insensitive.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import torch

from qsparse.circuit import Placement
from qsparse.errors import UnknownGateError

from . import standard as stdgates

if TYPE_CHECKING:
    from qsparse.backend import RegisterView, SparseQuantumState

MatrixFactory = Callable[..., torch.Tensor]
ExtensionProcedure = Callable[["SparseQuantumState", "RegisterView", Tuple[float, ...]], None]

MATRIX = "matrix"
PARAMETRIC = "parametric"
COMPOSITE = "composite"
EXTENSION = "extension"


@dataclass(frozen=True)
class GateDefinition:
    """
    Everything the applicator needs to know about one named gate.

    Attributes
    ----------
    name:
        Canonical (upper-case) gate name.
    n_qubits:
        Number of target qubits the gate acts on.
    kind:
        One of "matrix", "parametric", "composite", "extension".
    matrix:
        Unitary of a "matrix" gate.
    factory:
        Matrix generator of a "parametric" gate.
    n_params:
        Number of parameters a "parametric" gate expects.
    placements:
        Body of a "composite" gate, on local qubits 0..n_qubits-1.
    procedure, inverse:
        Forward and optional inverse procedure of an "extension" gate.
    user_defined:
        True for composite/extension gates and matrices registered by the
        caller rather than the built-in set.
    """

    name: str
    n_qubits: int
    kind: str
    matrix: Optional[torch.Tensor] = None
    factory: Optional[MatrixFactory] = None
    n_params: int = 0
    placements: Tuple[Placement, ...] = ()
    procedure: Optional[ExtensionProcedure] = None
    inverse: Optional[ExtensionProcedure] = None
    user_defined: bool = False

    def matrix_for(self, params: Optional[Sequence[float]] = None) -> torch.Tensor:
        """Unitary of a matrix or parametric gate for the given parameters."""
        params_t = tuple(params) if params else ()
        if self.kind == MATRIX:
            if params_t:
                raise ValueError(f"Gate {self.name} takes no parameters, got {params_t}.")
            return self.matrix
        if self.kind == PARAMETRIC:
            if len(params_t) != self.n_params:
                raise ValueError(
                    f"Gate {self.name} requires exactly {self.n_params} "
                    f"parameter(s), got {len(params_t)}."
                )
            return self.factory(*params_t)
        raise TypeError(f"Gate {self.name} is a {self.kind} gate and has no matrix form.")


def _check_matrix(name: str, matrix: torch.Tensor) -> int:
    if matrix.dim() != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError(f"Gate {name} matrix must be square, got {tuple(matrix.shape)}.")
    dim = matrix.shape[0]
    n_qubits = dim.bit_length() - 1
    if dim < 2 or (1 << n_qubits) != dim:
        raise ValueError(f"Gate {name} matrix dimension {dim} is not a power of 2.")
    if not stdgates.is_unitary(matrix, atol=1e-8):
        raise ValueError(f"Gate {name} matrix is not unitary.")
    return n_qubits


class GateLibrary:
    """
    Registry of gate definitions consulted by the gate applicator.

    Use :func:`default_library` for a library preloaded with the standard
    gates; user-defined composite and extension gates are added on top.
    """

    def __init__(self, definitions: Iterable[GateDefinition] = ()) -> None:
        self._gates: Dict[str, GateDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: GateDefinition, *aliases: str) -> GateDefinition:
        """
        Register a definition under its name and any aliases (replacing existing entries).

        Raises:
            ValueError: If a composite body reaches one of the new keys,
                directly or through other composites.
        """
        keys = [key.upper() for key in (definition.name, *aliases)]
        if definition.kind == COMPOSITE:
            for key in keys:
                if self._reaches(definition.placements, key, set()):
                    raise ValueError(
                        f"Composite {definition.name} refers to itself through {key}."
                    )
        for key in keys:
            self._gates[key] = definition
        return definition

    def _reaches(self, placements: Sequence[Placement], key: str, seen: set) -> bool:
        for placement in placements:
            name = placement.gate.upper()
            if name == key:
                return True
            if name in seen:
                continue
            seen.add(name)
            sub = self._gates.get(name)
            if sub is not None and sub.kind == COMPOSITE:
                if self._reaches(sub.placements, key, seen):
                    return True
        return False

    def register_matrix(
        self,
        name: str,
        matrix: torch.Tensor,
        *aliases: str,
        user_defined: bool = True,
    ) -> GateDefinition:
        """Register a fixed unitary."""
        matrix = torch.as_tensor(matrix, dtype=torch.complex128)
        n_qubits = _check_matrix(name, matrix)
        return self.register(
            GateDefinition(
                name=name.upper(),
                n_qubits=n_qubits,
                kind=MATRIX,
                matrix=matrix,
                user_defined=user_defined,
            ),
            *aliases,
        )

    def register_parametric(
        self,
        name: str,
        n_qubits: int,
        factory: MatrixFactory,
        n_params: int = 1,
        *aliases: str,
        user_defined: bool = True,
    ) -> GateDefinition:
        """Register a matrix generator taking `n_params` floats."""
        if n_qubits < 1:
            raise ValueError("n_qubits must be >= 1.")
        return self.register(
            GateDefinition(
                name=name.upper(),
                n_qubits=n_qubits,
                kind=PARAMETRIC,
                factory=factory,
                n_params=n_params,
                user_defined=user_defined,
            ),
            *aliases,
        )

    def register_composite(
        self,
        name: str,
        n_qubits: int,
        placements: Sequence[Placement],
    ) -> GateDefinition:
        """
        Register a sub-circuit as a named gate.

        Placements address the composite's local qubits 0..n_qubits-1 and
        run in order. Every gate they use must already be registered, and a
        redefinition whose body leads back to `name` is rejected.
        """
        if n_qubits < 1:
            raise ValueError("n_qubits must be >= 1.")
        body = tuple(placements)
        for placement in body:
            for q in placement.qubits:
                if q < 0 or q >= n_qubits:
                    raise ValueError(
                        f"Composite {name} uses local qubit {q}, outside [0, {n_qubits})."
                    )
            sub = self.get(placement.gate)
            if sub.n_qubits != len(placement.targets):
                raise ValueError(
                    f"Composite {name}: gate {sub.name} acts on {sub.n_qubits} "
                    f"qubit(s) but is placed on {len(placement.targets)}."
                )
        return self.register(
            GateDefinition(
                name=name.upper(),
                n_qubits=n_qubits,
                kind=COMPOSITE,
                placements=body,
                user_defined=True,
            )
        )

    def register_extension(
        self,
        name: str,
        n_qubits: int,
        procedure: ExtensionProcedure,
        inverse: Optional[ExtensionProcedure] = None,
    ) -> GateDefinition:
        """
        Register a procedure ``procedure(state, view, params)``.

        Without an `inverse`, steps using this gate can only be undone by
        replaying the circuit.
        """
        if n_qubits < 1:
            raise ValueError("n_qubits must be >= 1.")
        return self.register(
            GateDefinition(
                name=name.upper(),
                n_qubits=n_qubits,
                kind=EXTENSION,
                procedure=procedure,
                inverse=inverse,
                user_defined=True,
            )
        )

    def get(self, name: str) -> GateDefinition:
        """Look up a definition, raising UnknownGateError if absent."""
        try:
            return self._gates[name.upper()]
        except KeyError:
            raise UnknownGateError(name) from None

    def resolve(self, name: str, params: Optional[Sequence[float]] = None) -> torch.Tensor:
        """Unitary of a matrix or parametric gate."""
        return self.get(name).matrix_for(params)

    def is_invertible(self, name: str) -> bool:
        """
        Whether the gate has an inverse form.

        Matrix gates always do (their adjoint). Composites do when every
        gate in their body does; extensions only with an explicit inverse.
        """
        definition = self.get(name)
        if definition.kind in (MATRIX, PARAMETRIC):
            return True
        if definition.kind == EXTENSION:
            return definition.inverse is not None
        return all(self.is_invertible(p.gate) for p in definition.placements)

    def names(self) -> List[str]:
        """All registered names (including aliases), sorted."""
        return sorted(self._gates)

    def extension_gates(self) -> Dict[str, GateDefinition]:
        """User-defined gates (composites, extensions, custom matrices) by name."""
        return {
            key: definition
            for key, definition in sorted(self._gates.items())
            if definition.user_defined
        }

    def copy(self) -> "GateLibrary":
        new = GateLibrary()
        new._gates = dict(self._gates)
        return new

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.upper() in self._gates

    def __len__(self) -> int:
        return len(self._gates)


def default_library() -> GateLibrary:
    """A new library holding the standard gate set."""
    library = GateLibrary()
    for name, fn in (
        ("I", stdgates.I),
        ("X", stdgates.X),
        ("Y", stdgates.Y),
        ("Z", stdgates.Z),
        ("H", stdgates.H),
        ("S", stdgates.S),
        ("SDG", stdgates.SDG),
        ("T", stdgates.T),
        ("TDG", stdgates.TDG),
        ("SX", stdgates.SX),
        ("SWAP", stdgates.SWAP),
        ("CZ", stdgates.CZ),
    ):
        library.register_matrix(name, fn(), user_defined=False)
    library.register_matrix("CNOT", stdgates.CNOT(), "CX", user_defined=False)
    library.register_matrix("TOFFOLI", stdgates.TOFFOLI(), "CCX", user_defined=False)

    library.register_parametric("RX", 1, stdgates.RX, 1, user_defined=False)
    library.register_parametric("RY", 1, stdgates.RY, 1, user_defined=False)
    library.register_parametric("RZ", 1, stdgates.RZ, 1, user_defined=False)
    library.register_parametric("PHASE", 1, stdgates.PHASE, 1, "P", user_defined=False)
    library.register_parametric("U3", 1, stdgates.U3, 3, "U", user_defined=False)
    return library


__all__ = [
    "GateDefinition",
    "GateLibrary",
    "default_library",
    "MatrixFactory",
    "ExtensionProcedure",
]
