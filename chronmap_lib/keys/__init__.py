"""Composite key extraction."""
from .extractor import KeyExtractor, SEPARATOR

__all__ = ["KeyExtractor", "SEPARATOR"]
