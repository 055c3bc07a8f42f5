"""Single-qubit reduced density matrix of a sparse pure state.

For a target qubit t, every basis index splits into the target bit and the
rest-state ``index & rest_mask``. The diagonal of the reduced matrix sums
|amp|^2 over each target-bit partition; the coherence rho01 sums
amp0 * conj(amp1) over rest-states populated in both partitions, where
amp0/amp1 are the amplitudes of ``rest`` and ``rest | target_mask``.

Registers narrower than ``SimulationConfig.parallel_threshold`` are reduced
sequentially in ascending key order. Wider registers fan out over a thread
pool: each worker reduces one sorted chunk into an immutable partial result
and the calling thread merges them in chunk order, so both paths sum the
same terms and agree to within rounding.
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import torch

from qsparse.config import SimulationConfig, default_config
from qsparse.logging import get_logger

logger = get_logger(__name__)

_Item = Tuple[int, complex]


@dataclass(frozen=True)
class _PartitionResult:
    """Diagonal sub-totals and rest-state buckets of one chunk."""

    rho00: float
    rho11: float
    rest0: Dict[int, complex]
    rest1: Dict[int, complex]


def _masks(n_qubits: int, target: int) -> Tuple[int, int]:
    target_mask = 1 << target
    rest_mask = ~target_mask & ((1 << n_qubits) - 1)
    return target_mask, rest_mask


def _validate(amplitudes: Mapping[int, complex], n_qubits: int, target: int) -> None:
    if n_qubits < 1:
        raise ValueError(f"n_qubits must be >= 1, got {n_qubits}")
    if target < 0 or target >= n_qubits:
        raise ValueError(f"target qubit {target} out of range [0, {n_qubits})")
    if amplitudes:
        low, high = min(amplitudes), max(amplitudes)
        if low < 0 or high >= (1 << n_qubits):
            raise ValueError(
                f"basis indices must lie in [0, {1 << n_qubits}); "
                f"found range [{low}, {high}]"
            )


def _partition(items: Sequence[_Item], target_mask: int, rest_mask: int) -> _PartitionResult:
    rho00 = 0.0
    rho11 = 0.0
    rest0: Dict[int, complex] = {}
    rest1: Dict[int, complex] = {}
    for index, amp in items:
        probability = amp.real * amp.real + amp.imag * amp.imag
        rest = index & rest_mask
        if index & target_mask:
            rho11 += probability
            rest1[rest] = amp
        else:
            rho00 += probability
            rest0[rest] = amp
    return _PartitionResult(rho00=rho00, rho11=rho11, rest0=rest0, rest1=rest1)


def _coherence(rest0_items: Sequence[_Item], rest1: Mapping[int, complex]) -> complex:
    rho01 = 0j
    for rest, amp0 in rest0_items:
        amp1 = rest1.get(rest)
        if amp1 is not None:
            rho01 += amp0 * amp1.conjugate()
    return rho01


def _assemble(rho00: float, rho11: float, rho01: complex, epsilon: float) -> torch.Tensor:
    """
    Build the 2x2 matrix and rescale it to unit trace.

    A trace within epsilon of zero is left alone: the zero matrix comes back
    as-is and callers must treat it as "no population".
    """
    rho10 = rho01.conjugate()
    entries = [complex(rho00), rho01, rho10, complex(rho11)]
    trace = rho00 + rho11
    if abs(trace - 1.0) > epsilon and abs(trace) > epsilon:
        inv_trace = 1.0 / trace
        entries = [e * inv_trace for e in entries]
    return torch.tensor(
        [[entries[0], entries[1]], [entries[2], entries[3]]],
        dtype=torch.complex128,
    )


def _chunks(items: Sequence[_Item], config: SimulationConfig) -> List[Sequence[_Item]]:
    size = max(config.min_chunk_size, math.ceil(len(items) / config.max_workers))
    return [items[i:i + size] for i in range(0, len(items), size)]


def partial_trace_sequential(
    amplitudes: Mapping[int, complex],
    n_qubits: int,
    target: int,
    config: Optional[SimulationConfig] = None,
) -> torch.Tensor:
    """Reduce on the calling thread, visiting keys in ascending order."""
    if config is None:
        config = default_config()
    _validate(amplitudes, n_qubits, target)
    target_mask, rest_mask = _masks(n_qubits, target)

    items = sorted(amplitudes.items())
    result = _partition(items, target_mask, rest_mask)
    rho01 = _coherence(list(result.rest0.items()), result.rest1)
    return _assemble(result.rho00, result.rho11, rho01, config.epsilon)


def partial_trace_parallel(
    amplitudes: Mapping[int, complex],
    n_qubits: int,
    target: int,
    config: Optional[SimulationConfig] = None,
) -> torch.Tensor:
    """
    Reduce with a fan-out over ``config.max_workers`` threads.

    The input map is only read. Phase one partitions sorted chunks into
    (rho00, rho11, rest0, rest1) results; phase two splits the merged rest0
    bucket into chunks and sums their coherence contributions. Merges run
    on the calling thread in chunk order.
    """
    if config is None:
        config = default_config()
    _validate(amplitudes, n_qubits, target)
    target_mask, rest_mask = _masks(n_qubits, target)

    items = sorted(amplitudes.items())
    if not items:
        return _assemble(0.0, 0.0, 0j, config.epsilon)

    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        partials = list(
            executor.map(
                lambda chunk: _partition(chunk, target_mask, rest_mask),
                _chunks(items, config),
            )
        )

        rho00 = 0.0
        rho11 = 0.0
        rest0: Dict[int, complex] = {}
        rest1: Dict[int, complex] = {}
        for partial in partials:
            rho00 += partial.rho00
            rho11 += partial.rho11
            rest0.update(partial.rest0)
            rest1.update(partial.rest1)

        coherences = list(
            executor.map(
                lambda chunk: _coherence(chunk, rest1),
                _chunks(list(rest0.items()), config),
            )
        )

    rho01 = 0j
    for contribution in coherences:
        rho01 += contribution

    logger.debug(
        "parallel partial trace: %d amplitudes in %d chunks, target %d",
        len(items), len(partials), target,
    )
    return _assemble(rho00, rho11, rho01, config.epsilon)


def reduced_density_matrix(
    amplitudes: Mapping[int, complex],
    n_qubits: int,
    target: int,
    config: Optional[SimulationConfig] = None,
) -> torch.Tensor:
    """
    Trace out every qubit except `target` from a sparse pure state.

    Args:
        amplitudes: Basis index -> amplitude map. Not modified.
        n_qubits: Register width W.
        target: Offset of the qubit to keep, 0 <= target < W.
        config: Supplies epsilon and the parallel dispatch settings.

    Returns:
        A (2, 2) complex128 tensor, Hermitian with trace 1, or the zero
        matrix when the map carries no weight.

    Raises:
        ValueError: If target or any basis index is out of range.
    """
    if config is None:
        config = default_config()
    if n_qubits < config.parallel_threshold:
        return partial_trace_sequential(amplitudes, n_qubits, target, config)
    return partial_trace_parallel(amplitudes, n_qubits, target, config)


def rest_state_collisions(
    amplitudes: Mapping[int, complex],
    n_qubits: int,
    target: int,
) -> int:
    """
    Count basis indices that share a rest-state with another index of the
    same target-bit partition. Always 0 for in-range indices.
    """
    _validate(amplitudes, n_qubits, target)
    target_mask, rest_mask = _masks(n_qubits, target)
    seen: Tuple[set, set] = (set(), set())
    collisions = 0
    for index in amplitudes:
        bucket = seen[1 if index & target_mask else 0]
        rest = index & rest_mask
        if rest in bucket:
            collisions += 1
        bucket.add(rest)
    return collisions


__all__ = [
    "reduced_density_matrix",
    "partial_trace_sequential",
    "partial_trace_parallel",
    "rest_state_collisions",
]
