"""
Exceptions Module - Error hierarchy for the search engine.
==========================================================

Search-time failures inside a single strategy or partition are caught and
recorded; these exceptions surface only at construction time or from direct
catalog access.
"""

from typing import Optional


class CollegeFinderError(Exception):
    """Base class for all application errors."""


class ConfigurationError(CollegeFinderError):
    """Settings are unusable (e.g. a catalog database file is missing)."""


class CatalogError(CollegeFinderError):
    """A catalog read failed."""

    def __init__(self, message: str, partition: Optional[str] = None):
        super().__init__(message)
        self.partition = partition

    def __str__(self) -> str:
        base = super().__str__()
        if self.partition:
            return f"[{self.partition}] {base}"
        return base


class QueryValidationError(CollegeFinderError):
    """A search request failed validation."""
