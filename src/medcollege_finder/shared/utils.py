"""
Utilities Module - Common helper functions.
==========================================

Provides utility functions for:
- Query / name normalization
- SQL LIKE pattern construction
- Lenient coercion of catalog fields (nulls, JSON text columns)
"""

import json
import re
from typing import Any, Optional

from medcollege_finder.shared.logging import get_logger

logger = get_logger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_LIKE_SPECIALS_RE = re.compile(r"([\\%_])")

LIKE_ESCAPE = "\\"


# ─────────────────────────────────────────────────────────────────────────────
# Normalization
# ─────────────────────────────────────────────────────────────────────────────


def normalize_query(text: Optional[str]) -> str:
    """
    Normalize a raw query: upper-case, trimmed.

    Example:
        >>> normalize_query("  aj institute ")
        'AJ INSTITUTE'
    """
    if not text:
        return ""
    return text.upper().strip()


def collapse_whitespace(text: str) -> str:
    """
    Collapse runs of whitespace into single spaces and trim.

    Example:
        >>> collapse_whitespace("A  J ")
        'A J'
    """
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_name(text: Optional[str]) -> str:
    """
    Normalize a college name or state for identity comparisons.

    Example:
        >>> normalize_name(" A.J.  Institute of Medical Sciences")
        'A.J. INSTITUTE OF MEDICAL SCIENCES'
    """
    return collapse_whitespace(normalize_query(text))


# ─────────────────────────────────────────────────────────────────────────────
# SQL LIKE Patterns
# ─────────────────────────────────────────────────────────────────────────────


def escape_like(text: str) -> str:
    """
    Escape LIKE wildcards so user text matches literally.

    Use together with ``ESCAPE '\\'`` in the SQL.

    Example:
        >>> escape_like("50%_OFF")
        '50\\\\%\\\\_OFF'
    """
    return _LIKE_SPECIALS_RE.sub(r"\\\1", text)


def contains_pattern(text: str) -> str:
    """
    Build a substring LIKE pattern.

    Example:
        >>> contains_pattern("AJ")
        '%AJ%'
    """
    return f"%{escape_like(text)}%"


# ─────────────────────────────────────────────────────────────────────────────
# Field Coercion
# ─────────────────────────────────────────────────────────────────────────────


def safe_str(value: Any) -> str:
    """Coerce a possibly-null catalog value to a string."""
    if value is None:
        return ""
    return str(value)


def safe_int(value: Any, default: int = 0) -> int:
    """
    Coerce a possibly-null or textual catalog value to an int.

    Example:
        >>> safe_int("120")
        120
        >>> safe_int(None)
        0
    """
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def optional_int(value: Any) -> Optional[int]:
    """Coerce to int, keeping absent values as None."""
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def parse_json_field(value: Any) -> Any:
    """
    Decode a JSON text column, passing through anything else.

    Empty objects and blank strings become None.

    Example:
        >>> parse_json_field('{"general": 50}')
        {'general': 50}
        >>> parse_json_field("{}") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return value or None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        if stripped[0] in "{[":
            try:
                decoded = json.loads(stripped)
            except json.JSONDecodeError:
                logger.debug(f"Leaving non-JSON field as text: {stripped[:40]}")
                return stripped
            return decoded or None
        return stripped
    return value
