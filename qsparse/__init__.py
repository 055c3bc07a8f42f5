"""qsparse - sparse quantum state simulation with stepwise circuit evaluation."""

__version__ = "0.1.0"

# Backend
from .backend import (
    RegisterView,
    SparseQuantumState,
    partial_trace_parallel,
    partial_trace_sequential,
    reduced_density_matrix,
    rest_state_collisions,
)

# Circuit model
from .circuit import Circuit, Placement, Step

# Configuration
from .config import SimulationConfig, default_config

# Diagnostics
from .diagnostics import (
    assert_hermitian,
    assert_normalized,
    bloch_vector_from_amplitudes,
    bloch_vector_from_density,
    debug_context,
    fidelity,
    is_debug_enabled,
    is_hermitian,
    is_zero_matrix,
    norm_squared,
    set_debug_enabled,
)

# Errors
from .errors import (
    DimensionMismatchError,
    NotPureStateError,
    OverlappingPlacementError,
    QSparseError,
    UnknownGateError,
)

# Evaluation
from .evaluator import GateApplicator, StepResult, StepwiseEvaluator

# Gates
from .gates import (
    CNOT,
    CZ,
    PHASE,
    RX,
    RY,
    RZ,
    SDG,
    SWAP,
    SX,
    TDG,
    TOFFOLI,
    U3,
    GateDefinition,
    GateLibrary,
    H,
    I,
    S,
    T,
    X,
    Y,
    Z,
    adjoint,
    default_library,
    is_unitary,
)

# Inspection
from .inspect import BasisRow, QubitReport, basis_table, inspect_qubit

__all__ = [
    # Version
    "__version__",
    # Backend
    "SparseQuantumState",
    "RegisterView",
    "reduced_density_matrix",
    "partial_trace_sequential",
    "partial_trace_parallel",
    "rest_state_collisions",
    # Circuit model
    "Circuit",
    "Placement",
    "Step",
    # Configuration
    "SimulationConfig",
    "default_config",
    # Diagnostics
    "norm_squared",
    "assert_normalized",
    "is_hermitian",
    "assert_hermitian",
    "is_zero_matrix",
    "fidelity",
    "bloch_vector_from_density",
    "bloch_vector_from_amplitudes",
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
    # Errors
    "QSparseError",
    "DimensionMismatchError",
    "UnknownGateError",
    "NotPureStateError",
    "OverlappingPlacementError",
    # Evaluation
    "GateApplicator",
    "StepwiseEvaluator",
    "StepResult",
    # Gates
    "I",
    "X",
    "Y",
    "Z",
    "H",
    "S",
    "SDG",
    "T",
    "TDG",
    "SX",
    "RX",
    "RY",
    "RZ",
    "PHASE",
    "U3",
    "CNOT",
    "CZ",
    "SWAP",
    "TOFFOLI",
    "adjoint",
    "is_unitary",
    "GateDefinition",
    "GateLibrary",
    "default_library",
    # Inspection
    "QubitReport",
    "inspect_qubit",
    "BasisRow",
    "basis_table",
]
