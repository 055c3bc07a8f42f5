"""Quantum gate matrices and the gate library."""

from .library import GateDefinition, GateLibrary, default_library
from .standard import (
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
    H,
    I,
    S,
    T,
    X,
    Y,
    Z,
    adjoint,
    is_unitary,
)

__all__ = [
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
]
