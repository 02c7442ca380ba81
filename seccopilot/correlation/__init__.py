"""Cross-domain correlation of findings into attack chains."""

from .engine import CorrelationEngine, CorrelationOutcome, heuristic_chain
from .reasoning_client import (
    CorrelationGroup,
    CorrelationResponse,
    DelegationResult,
    ReasoningClient,
)

__all__ = [
    "CorrelationEngine",
    "CorrelationGroup",
    "CorrelationOutcome",
    "CorrelationResponse",
    "DelegationResult",
    "ReasoningClient",
    "heuristic_chain",
]
