"""Prompt classification: keyword, semantic and the hybrid combiner.

The keyword classifier is pure and synchronous. The semantic classifier
suspends on an external embedding backend. The hybrid combiner runs both
concurrently and merges their answers.
"""

from promptroute.classification.embedder import (
    Embedder,
    EmbeddingBackend,
    LiteLLMEmbeddingBackend,
)
from promptroute.classification.hybrid import HybridClassification, HybridClassifier
from promptroute.classification.keywords import KeywordClassifier
from promptroute.classification.references import ReferenceEmbeddings
from promptroute.classification.semantic import SemanticClassifier

__all__ = [
    "KeywordClassifier",
    "SemanticClassifier",
    "HybridClassifier",
    "HybridClassification",
    "ReferenceEmbeddings",
    "Embedder",
    "EmbeddingBackend",
    "LiteLLMEmbeddingBackend",
]
