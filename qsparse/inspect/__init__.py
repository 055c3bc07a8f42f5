"""Read-only queries used by display layers."""

from .qubit import QubitReport, inspect_qubit
from .table import BasisRow, basis_table

__all__ = ["QubitReport", "inspect_qubit", "BasisRow", "basis_table"]
