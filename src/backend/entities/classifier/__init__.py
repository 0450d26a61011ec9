"""IntentClassifier: classifies chat turns with a single model call.

Usage:
    from entities.classifier import IntentClassifier

    classifier = IntentClassifier(completion, store)
"""

from .classifier import (
    CLASSIFICATION_MARKER,
    FALLBACK_REPLY,
    IntentClassifier,
    load_bamabot_prompt,
    parse_classification,
    split_completion,
)

__all__ = [
    "CLASSIFICATION_MARKER",
    "FALLBACK_REPLY",
    "IntentClassifier",
    "load_bamabot_prompt",
    "parse_classification",
    "split_completion",
]
