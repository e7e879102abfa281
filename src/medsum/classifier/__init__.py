"""Page classifier public API."""

from .page_classifier import PageClassifier
from .types import (
    ClassificationResult,
    ClassifierThresholds,
    ContentCheck,
    ImportantSection,
    PageClassification,
    ReferenceDetection,
    ReferenceSectionStart,
)

__all__ = [
    "ClassificationResult",
    "ClassifierThresholds",
    "ContentCheck",
    "ImportantSection",
    "PageClassification",
    "PageClassifier",
    "ReferenceDetection",
    "ReferenceSectionStart",
]
