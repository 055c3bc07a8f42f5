"""Circuit model consumed by the stepwise evaluator."""

from .core import Circuit, Placement, Step

__all__ = ["Circuit", "Placement", "Step"]
