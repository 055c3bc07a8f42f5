"""Simulation configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace

_STEP_BACK_STRATEGIES = ("replay", "inverse")


def _default_workers() -> int:
    return min(8, os.cpu_count() or 1)


@dataclass(frozen=True)
class SimulationConfig:
    """
    Numerical and scheduling settings shared by the simulation engine.

    Args:
        epsilon: Tolerance for trace normalisation, output-change detection
            and pure-state factoring.
        prune_tolerance: Amplitudes with magnitude at or below this value
            are dropped from the sparse map after every gate application.
        parallel_threshold: Registers with at least this many qubits use the
            parallel partial-trace path.
        max_workers: Worker threads for the parallel partial trace.
        min_chunk_size: Smallest number of amplitudes handed to one worker.
        step_back: "replay" rebuilds the state from step 0 when stepping
            back; "inverse" applies the adjoint of the last step when every
            gate in it has an inverse form, replaying otherwise.
    """

    epsilon: float = 1e-9
    prune_tolerance: float = 1e-12
    parallel_threshold: int = 14
    max_workers: int = field(default_factory=_default_workers)
    min_chunk_size: int = 1024
    step_back: str = "replay"

    def __post_init__(self) -> None:
        if self.epsilon <= 0.0:
            raise ValueError("epsilon must be positive.")
        if self.prune_tolerance < 0.0:
            raise ValueError("prune_tolerance must be non-negative.")
        if self.parallel_threshold < 1:
            raise ValueError("parallel_threshold must be >= 1.")
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1.")
        if self.min_chunk_size < 1:
            raise ValueError("min_chunk_size must be >= 1.")
        if self.step_back not in _STEP_BACK_STRATEGIES:
            raise ValueError(
                f"step_back must be one of {_STEP_BACK_STRATEGIES}, "
                f"got {self.step_back!r}"
            )

    @classmethod
    def from_env(cls, **overrides) -> "SimulationConfig":
        """
        Build a config from ``QSPARSE_*`` environment variables.

        Recognised variables are QSPARSE_PARALLEL_THRESHOLD,
        QSPARSE_MAX_WORKERS and QSPARSE_STEP_BACK. Keyword overrides win
        over the environment.
        """
        values: dict = {}
        threshold = os.getenv("QSPARSE_PARALLEL_THRESHOLD")
        if threshold:
            values["parallel_threshold"] = int(threshold)
        workers = os.getenv("QSPARSE_MAX_WORKERS")
        if workers:
            values["max_workers"] = int(workers)
        step_back = os.getenv("QSPARSE_STEP_BACK")
        if step_back:
            values["step_back"] = step_back.strip().lower()
        values.update(overrides)
        return cls(**values)

    def with_options(self, **changes) -> "SimulationConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


def default_config() -> SimulationConfig:
    """Return the environment-derived default configuration."""
    return SimulationConfig.from_env()


__all__ = ["SimulationConfig", "default_config"]
