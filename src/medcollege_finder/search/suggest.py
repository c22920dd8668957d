"""
Suggest Module - Auto-complete over colleges, courses, cities and states.
=========================================================================

Runs one capped lookup per category concurrently against the aggregate
tables. A failing lookup is logged and contributes nothing; the others
still return.
"""

import re
from concurrent.futures import Executor, wait
from typing import Any, Callable, Optional

from medcollege_finder.catalog.store import Catalog
from medcollege_finder.search.query_analyzer import COURSE_TYPE_PATTERNS, QueryAnalyzer
from medcollege_finder.shared.config import SuggestConfig
from medcollege_finder.shared.logging import get_logger
from medcollege_finder.shared.schemas import CourseType, Stream, SuggestFilters, Suggestion
from medcollege_finder.shared.utils import collapse_whitespace, normalize_query, safe_str

logger = get_logger(__name__)

STREAM_LABELS = {
    Stream.MEDICAL.value: "Medical",
    Stream.DENTAL.value: "Dental",
    Stream.DNB.value: "DNB",
}

MIN_CITY_LENGTH = 3
_CITY_TRIM_RE = re.compile(r"^[,\s]+|[,\s]+$")

Lookup = Callable[[str, Optional[str], int], list[dict[str, Any]]]


def format_display(value: str, stream: Optional[str]) -> str:
    """
    Display text with the stream in parentheses.

    Example:
        >>> format_display("AJ Institute of Medical Sciences", "medical")
        'AJ Institute of Medical Sciences (Medical)'
    """
    if not stream:
        return value
    label = STREAM_LABELS.get(stream, stream.capitalize())
    return f"{value} ({label})"


class AutoCompleteSuggester:
    """
    Builds auto-complete suggestions.

    Example:
        >>> suggester = AutoCompleteSuggester(catalog, pool)
        >>> [s.display for s in suggester.suggest("aj")]
        ['AJ Institute of Dental Sciences (Dental)', 'AJ Institute of Medical Sciences (Medical)']
    """

    def __init__(
        self,
        catalog: Catalog,
        executor: Executor,
        analyzer: Optional[QueryAnalyzer] = None,
        config: Optional[SuggestConfig] = None,
        time_budget_seconds: float = 5.0,
    ):
        self._catalog = catalog
        self._executor = executor
        self._analyzer = analyzer or QueryAnalyzer()
        self.config = config or SuggestConfig()
        self._time_budget = time_budget_seconds

    def suggest(
        self, query: Optional[str], filters: Optional[SuggestFilters] = None
    ) -> list[Suggestion]:
        """
        Suggestions for a partial query.

        Args:
            query: Partial user input
            filters: Optional stream restriction and limit

        Returns:
            Up to `limit` suggestions ordered by category, then display text.
            Queries shorter than the minimum length return [] without
            touching the catalog.
        """
        filters = filters or SuggestFilters()
        normalized = normalize_query(query)
        if len(normalized) < self.config.min_query_length:
            return []

        limit = filters.limit or self.config.default_limit
        stream = filters.stream.value if filters.stream else None
        intent = self._analyzer.analyze(normalized)

        lookups: list[tuple[str, str, Lookup, str, Optional[str]]] = []
        if intent.course_type == CourseType.DNB:
            if stream in (None, Stream.DNB.value):
                hospital_text = collapse_whitespace(
                    COURSE_TYPE_PATTERNS[CourseType.DNB].sub(" ", normalized)
                )
                lookups.append(
                    (
                        "hospital",
                        "Hospital",
                        self._catalog.match_colleges,
                        hospital_text,
                        Stream.DNB.value,
                    )
                )
        else:
            lookups.append(("college", "College", self._catalog.match_colleges, normalized, stream))
        lookups.extend(
            [
                ("course", "Course", self._catalog.match_courses, normalized, stream),
                ("city", "City", self._catalog.match_cities, normalized, stream),
                ("state", "State", self._catalog.match_states, normalized, stream),
            ]
        )

        futures = [
            self._executor.submit(lookup, text, lookup_stream, limit)
            for _, _, lookup, text, lookup_stream in lookups
        ]
        _, not_done = wait(futures, timeout=self._time_budget)

        seen: set[tuple[str, str]] = set()
        suggestions: list[Suggestion] = []
        for (kind, category, _, _, _), future in zip(lookups, futures):
            if future in not_done:
                future.cancel()
                logger.warning(f"Suggestion lookup '{kind}' timed out")
                continue
            error = future.exception()
            if error is not None:
                logger.warning(f"Suggestion lookup '{kind}' failed: {error}")
                continue
            for row in future.result():
                suggestion = self._to_suggestion(kind, category, row)
                if suggestion is None:
                    continue
                key = (suggestion.type, suggestion.value)
                if key in seen:
                    continue
                seen.add(key)
                suggestions.append(suggestion)

        order = {kind: i for i, kind in enumerate(self.config.category_order)}
        suggestions.sort(key=lambda s: (order.get(s.type, len(order)), s.display.casefold()))
        return suggestions[:limit]

    @staticmethod
    def _to_suggestion(kind: str, category: str, row: dict[str, Any]) -> Optional[Suggestion]:
        value = safe_str(row.get("value")).strip()
        if kind == "city":
            value = _CITY_TRIM_RE.sub("", value)
            if len(value) < MIN_CITY_LENGTH:
                return None
        if not value:
            return None

        stream = safe_str(row.get("stream")) or None
        return Suggestion(
            type=kind,
            value=value,
            display=format_display(value, stream),
            category=category,
            stream=stream,
            state=safe_str(row.get("state")) or None,
        )
