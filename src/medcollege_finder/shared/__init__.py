"""
Shared Module - Common utilities, configuration, schemas, and logging.
======================================================================

This module provides foundational components used across all other modules:

- config: Configuration loading and management
- logging: Structured logging setup
- schemas: Pydantic data models
- exceptions: Error hierarchy
- utils: Normalization and field coercion helpers
"""

from medcollege_finder.shared.config import get_settings, Settings
from medcollege_finder.shared.logging import get_logger, setup_logging
from medcollege_finder.shared.exceptions import (
    CollegeFinderError,
    ConfigurationError,
    CatalogError,
    QueryValidationError,
)
from medcollege_finder.shared.schemas import (
    College,
    Course,
    CourseType,
    Stream,
    SearchFilters,
    Intent,
    ScoredResult,
    ResultGroup,
    Suggestion,
    SearchResponse,
    GroupedSearchResponse,
)
from medcollege_finder.shared.utils import (
    normalize_query,
    normalize_name,
    contains_pattern,
    safe_int,
    safe_str,
)

__all__ = [
    # Config
    "get_settings",
    "Settings",
    # Logging
    "get_logger",
    "setup_logging",
    # Exceptions
    "CollegeFinderError",
    "ConfigurationError",
    "CatalogError",
    "QueryValidationError",
    # Schemas
    "College",
    "Course",
    "CourseType",
    "Stream",
    "SearchFilters",
    "Intent",
    "ScoredResult",
    "ResultGroup",
    "Suggestion",
    "SearchResponse",
    "GroupedSearchResponse",
    # Utils
    "normalize_query",
    "normalize_name",
    "contains_pattern",
    "safe_int",
    "safe_str",
]
