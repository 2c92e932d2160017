"""
Label Check Engine - Orchestrator Module

Routes classification requests between the LLM provider and the heuristic
classifier, normalizes provider output, and records JSONL audit events.
"""

from .hybrid_dispatcher import DispatchOutcome, HybridDispatcher
from .jsonl_logger import JSONLLogger
from .response_normalizer import MalformedResponseError, normalize_provider_response

__all__ = [
    "DispatchOutcome",
    "HybridDispatcher",
    "JSONLLogger",
    "MalformedResponseError",
    "normalize_provider_response",
]
