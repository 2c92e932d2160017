"""
Classifiers for Label Check Engine

Deterministic heuristic classification of food-label text.

Classifiers:
- LabelClassifier: Rule-based gluten / lactose classifier (fallback and canonical shape)
- LLM classification: Via llm.client.LLMClient, reconciled by orchestrator.hybrid_dispatcher

Environment Variables:
- LABELCHECK_DISABLE_LLM=1: Completely disable LLM calls (heuristic only)
"""

from .label_classifier import ClassificationResult, LabelClassifier, classify

__all__ = [
    "ClassificationResult",
    "LabelClassifier",
    "classify",
]
