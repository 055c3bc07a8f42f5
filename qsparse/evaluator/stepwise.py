"""Stepwise circuit evaluation with forward and backward navigation.

The evaluator owns one :class:`SparseQuantumState` and a cursor in
``[0, len(circuit)]`` counting the steps applied to it. Every transition is
computed on a copy of the state and committed only when it succeeds, so a
failing gate leaves both the cursor and the amplitudes untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from qsparse.backend import SparseQuantumState
from qsparse.circuit import Circuit, Step
from qsparse.config import SimulationConfig, default_config
from qsparse.gates import GateLibrary
from qsparse.logging import get_logger

from .applicator import GateApplicator

logger = get_logger(__name__)


@dataclass(frozen=True)
class StepResult:
    """
    Outcome of one evaluator transition, as sent to observers.

    Attributes
    ----------
    cursor:
        Number of steps applied after the transition.
    previous_cursor:
        Cursor before the transition.
    output_changed:
        False when the amplitude map is unchanged (within epsilon), so
        downstream density matrices and plots need no refresh.
    moved:
        False for no-op transitions such as stepping past the end.
    """

    cursor: int
    previous_cursor: int
    output_changed: bool
    moved: bool


Observer = Callable[[StepResult], None]


class StepwiseEvaluator:
    """
    Walks a circuit forwards and backwards over a sparse state.

    Example
    -------
    >>> circuit = Circuit(2)
    >>> circuit.append("H", [0])
    >>> circuit.append("CNOT", [0, 1])
    >>> evaluator = StepwiseEvaluator(circuit)
    >>> evaluator.run_to_end().cursor
    2
    """

    def __init__(
        self,
        circuit: Circuit,
        library: Optional[GateLibrary] = None,
        config: Optional[SimulationConfig] = None,
    ) -> None:
        self._config = config if config is not None else default_config()
        self._applicator = GateApplicator(library)
        self._observers: List[Observer] = []
        self._circuit = circuit
        self._state = SparseQuantumState(circuit.n_qubits, config=self._config)
        self._cursor = 0

    @property
    def circuit(self) -> Circuit:
        return self._circuit

    @property
    def state(self) -> SparseQuantumState:
        """The live state. Its identity is stable across transitions."""
        return self._state

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def n_steps(self) -> int:
        return len(self._circuit)

    @property
    def at_end(self) -> bool:
        return self._cursor >= len(self._circuit)

    @property
    def library(self) -> GateLibrary:
        return self._applicator.library

    @property
    def config(self) -> SimulationConfig:
        return self._config

    def subscribe(self, observer: Observer) -> None:
        """Call `observer` with the StepResult of every transition."""
        self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> None:
        self._observers.remove(observer)

    def load(self, circuit: Circuit) -> StepResult:
        """Switch to another circuit and restart."""
        self._circuit = circuit
        return self.restart()

    def restart(self) -> StepResult:
        """Return to cursor 0 and the all-zero basis state."""
        previous = self._cursor
        width_changed = self._state.n_qubits != self._circuit.n_qubits
        changed = width_changed or not self._state.approx_equal({0: 1.0 + 0.0j})
        self._state.reset(self._circuit.n_qubits)
        self._cursor = 0
        logger.debug("restart from step %d", previous)
        return self._notify(
            StepResult(cursor=0, previous_cursor=previous, output_changed=changed,
                       moved=previous != 0 or changed)
        )

    def next_step(self) -> StepResult:
        """Apply the step at the cursor; a no-op at the end of the circuit."""
        if self.at_end:
            logger.info(
                "next_step ignored: already at the end of the circuit (%d steps)",
                self.n_steps,
            )
            return self._notify(self._no_move())
        return self._transition(self._cursor + 1)

    def prev_step(self) -> StepResult:
        """Undo the last applied step; at cursor 0 this is a restart."""
        if self._cursor == 0:
            return self.restart()
        return self._transition(self._cursor - 1)

    def run_to_end(self) -> StepResult:
        """Apply every remaining step."""
        if self.at_end:
            return self._notify(self._no_move())
        return self._transition(self.n_steps)

    def goto(self, cursor: int) -> StepResult:
        """Move the cursor to any position in [0, n_steps]."""
        if cursor < 0 or cursor > self.n_steps:
            raise ValueError(f"cursor {cursor} out of range [0, {self.n_steps}]")
        if cursor == 0:
            return self.restart()
        if cursor == self._cursor:
            return self._notify(self._no_move())
        return self._transition(cursor)

    def _no_move(self) -> StepResult:
        return StepResult(
            cursor=self._cursor,
            previous_cursor=self._cursor,
            output_changed=False,
            moved=False,
        )

    def _transition(self, target: int) -> StepResult:
        previous = self._cursor
        steps = self._circuit.steps
        working = self._state.copy()

        try:
            if target > previous:
                for index in range(previous, target):
                    self._applicator.apply_step(working, steps[index])
            else:
                self._rewind(working, steps, previous, target)
        except Exception as exc:
            logger.warning(
                "transition from step %d to %d failed: %s", previous, target, exc
            )
            raise

        changed = not self._state.approx_equal(working)
        self._state.load(working)
        self._cursor = target
        logger.debug(
            "step %d -> %d (output changed: %s, nnz=%d)",
            previous, target, changed, working.nnz,
        )
        return self._notify(
            StepResult(cursor=target, previous_cursor=previous,
                       output_changed=changed, moved=True)
        )

    def _rewind(
        self,
        working: SparseQuantumState,
        steps: Sequence[Step],
        current: int,
        target: int,
    ) -> None:
        undo = steps[target:current]
        if self._config.step_back == "inverse" and all(
            self._applicator.can_invert(step) for step in undo
        ):
            for step in reversed(undo):
                self._applicator.apply_step_inverse(working, step)
            return

        working.reset()
        for step in steps[:target]:
            self._applicator.apply_step(working, step)

    def _notify(self, result: StepResult) -> StepResult:
        for observer in list(self._observers):
            observer(result)
        return result
