"""Circuit evaluation: gate application and stepwise navigation."""

from .applicator import GateApplicator
from .stepwise import Observer, StepResult, StepwiseEvaluator

__all__ = ["GateApplicator", "StepwiseEvaluator", "StepResult", "Observer"]
