"""Ensemble classification helpers."""

from .composite import CompositeClassifier

__all__ = ["CompositeClassifier"]
