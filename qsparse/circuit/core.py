"""Circuit model: placements grouped into simultaneous steps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from qsparse.errors import OverlappingPlacementError


@dataclass(frozen=True)
class Placement:
    """
    A single gate application inside a step.

    Attributes
    ----------
    gate:
        Gate name as known to the gate library, e.g. "H", "CNOT", "RX" or
        a user-defined composite name. Matching is case-insensitive.
    targets:
        Qubit offsets the gate acts on, in the order the gate's matrix
        expects them (first offset = least significant matrix bit).
    controls:
        Optional control offsets. The gate only acts on basis states where
        every control qubit is 1.
    params:
        Optional numeric parameters, e.g. rotation angles.
    """

    gate: str
    targets: Tuple[int, ...]
    controls: Tuple[int, ...] = ()
    params: Optional[Tuple[float, ...]] = None

    def __post_init__(self) -> None:
        targets = tuple(int(q) for q in self.targets)
        controls = tuple(int(q) for q in self.controls)
        if not targets:
            raise ValueError("Placement must act on at least one qubit.")
        if len(set(targets)) != len(targets):
            raise ValueError(f"Placement {self.gate!r} repeats a target qubit: {targets}")
        if set(targets) & set(controls) or len(set(controls)) != len(controls):
            raise ValueError(
                f"Placement {self.gate!r} has overlapping targets {targets} "
                f"and controls {controls}"
            )
        object.__setattr__(self, "targets", targets)
        object.__setattr__(self, "controls", controls)
        if self.params is not None:
            object.__setattr__(self, "params", tuple(float(p) for p in self.params))

    @property
    def qubits(self) -> Tuple[int, ...]:
        """All qubits touched by this placement, controls first."""
        return self.controls + self.targets


class Step:
    """
    An unordered batch of placements applied simultaneously.

    Placements must touch disjoint qubits, which makes the result
    independent of the order they are applied in.
    """

    def __init__(self, placements: Iterable[Placement] = ()) -> None:
        self._placements: Tuple[Placement, ...] = tuple(placements)
        seen: Dict[int, Placement] = {}
        for placement in self._placements:
            for q in placement.qubits:
                if q in seen:
                    raise OverlappingPlacementError(
                        f"Qubit {q} is used by both {seen[q].gate!r} and "
                        f"{placement.gate!r} in the same step."
                    )
                seen[q] = placement

    @property
    def placements(self) -> Tuple[Placement, ...]:
        return self._placements

    def qubits(self) -> Tuple[int, ...]:
        """Sorted qubit offsets touched by this step."""
        return tuple(sorted(q for p in self._placements for q in p.qubits))

    def __iter__(self) -> Iterator[Placement]:
        return iter(self._placements)

    def __len__(self) -> int:
        return len(self._placements)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Step):
            return NotImplemented
        return self._placements == other._placements

    def __repr__(self) -> str:
        return f"Step({list(self._placements)!r})"


class Circuit:
    """
    An ordered sequence of steps on a register of n_qubits.

    This is the model the evaluator walks through; it is normally built by
    an editor or parser layer, but can be assembled directly.
    """

    def __init__(self, n_qubits: int, steps: Iterable[Step | Sequence[Placement]] = ()) -> None:
        if n_qubits <= 0:
            raise ValueError("Circuit requires n_qubits >= 1.")

        self._n_qubits = int(n_qubits)
        self._steps: List[Step] = []
        for step in steps:
            self.add_step(step)

    @property
    def n_qubits(self) -> int:
        """Return the number of qubits in this circuit."""
        return self._n_qubits

    @property
    def steps(self) -> Tuple[Step, ...]:
        """Return a read-only tuple of all steps."""
        return tuple(self._steps)

    def add_step(self, placements: Step | Iterable[Placement]) -> Step:
        """Append a step, validating qubit ranges and disjointness."""
        step = placements if isinstance(placements, Step) else Step(placements)
        for q in step.qubits():
            if q < 0 or q >= self._n_qubits:
                raise ValueError(
                    f"Qubit index {q} is out of range for this circuit "
                    f"(n_qubits={self._n_qubits})."
                )
        self._steps.append(step)
        return step

    def append(
        self,
        gate: str,
        targets: Sequence[int],
        controls: Sequence[int] = (),
        params: Optional[Sequence[float]] = None,
    ) -> Step:
        """Append a single placement as its own step."""
        placement = Placement(
            gate=gate,
            targets=tuple(targets),
            controls=tuple(controls),
            params=None if params is None else tuple(params),
        )
        return self.add_step([placement])

    def copy(self) -> "Circuit":
        """Return a copy of this circuit (steps are immutable and shared)."""
        new = Circuit(self._n_qubits)
        new._steps.extend(self._steps)
        return new

    def __len__(self) -> int:
        """Return the number of steps in this circuit."""
        return len(self._steps)

    def gate_counts(self) -> Dict[str, int]:
        """Return a dictionary mapping upper-cased gate names to their counts."""
        counts: Dict[str, int] = {}
        for step in self._steps:
            for placement in step:
                name = placement.gate.upper()
                counts[name] = counts.get(name, 0) + 1
        return counts

    def to_text_diagram(self) -> str:
        """
        Return a simple ASCII diagram with one column per step.

        Targets show the first letter of the gate name ('X' targets of a
        controlled gate are drawn as '⊕'), controls are drawn as '●'.
        """
        wire_segments: List[List[str]] = [[] for _ in range(self._n_qubits)]

        for step in self._steps:
            for q in range(self._n_qubits):
                wire_segments[q].append("───")
            for placement in step:
                name = placement.gate.upper()
                for q in placement.controls:
                    wire_segments[q][-1] = "─●─"
                if name in ("CNOT", "CX") and len(placement.targets) == 2:
                    control, target = placement.targets
                    wire_segments[control][-1] = "─●─"
                    wire_segments[target][-1] = "─⊕─"
                    continue
                for q in placement.targets:
                    if name == "X" and placement.controls:
                        wire_segments[q][-1] = "─⊕─"
                    else:
                        wire_segments[q][-1] = f"─{name[0]}─"

        lines = [f"q{q}: " + "".join(wire_segments[q]) for q in range(self._n_qubits)]
        return "\n".join(lines)
