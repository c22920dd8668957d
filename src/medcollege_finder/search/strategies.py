"""
Strategies Module - Retrieval strategies over catalog partitions.
=================================================================

Each strategy turns one query variant into one or more SQL predicates and
runs them against one partition:

- exact: substring match on college name, course name, state, city
- fuzzy: separator-tolerant patterns (dots, spaces, commas → wildcard)
- semantic: equality on course type, state or management; substring on
  course name or city
- abbreviation: broad substring on college name or city
- compound: "<course> in <location>" scoped to one stream and location

Rows come back as Candidate records tagged with the strategy, the variant
and the partition.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from medcollege_finder.catalog.store import CatalogPartition
from medcollege_finder.shared.config import SearchConfig
from medcollege_finder.shared.logging import get_logger
from medcollege_finder.shared.schemas import SearchFilters
from medcollege_finder.shared.utils import (
    LIKE_ESCAPE,
    contains_pattern,
    escape_like,
    normalize_name,
    optional_int,
    parse_json_field,
    safe_int,
    safe_str,
)

logger = get_logger(__name__)

_ESCAPE = f"ESCAPE '{LIKE_ESCAPE}'"
_SEPARATORS_RE = re.compile(r"[.,\s]")
_WHITESPACE_RE = re.compile(r"\s+")

Predicate = tuple[str, list[Any]]


# ─────────────────────────────────────────────────────────────────────────────
# Candidate
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Candidate:
    """One catalog row (college inlined with one course) found by a strategy."""

    id: int
    college_id: Optional[int]
    college_name: str
    state: str
    city: str
    establishment_year: Optional[int]
    management_type: str
    university: str
    course_name: str
    course_type: str
    seats: int
    quota_details: Any
    fees_structure: Any
    partition: str
    strategy: str
    variant: str

    @classmethod
    def from_row(
        cls, row: Mapping[str, Any], partition: str, strategy: str, variant: str
    ) -> "Candidate":
        return cls(
            id=safe_int(row.get("id")),
            college_id=optional_int(row.get("college_id")),
            college_name=safe_str(row.get("college_name")),
            state=safe_str(row.get("state")),
            city=safe_str(row.get("city")),
            establishment_year=optional_int(row.get("establishment_year")),
            management_type=safe_str(row.get("management_type")),
            university=safe_str(row.get("university")),
            course_name=safe_str(row.get("course_name")),
            course_type=safe_str(row.get("course_type")),
            seats=safe_int(row.get("total_seats")),
            quota_details=parse_json_field(row.get("quota_type")),
            fees_structure=parse_json_field(row.get("fee_structure")),
            partition=partition,
            strategy=strategy,
            variant=variant,
        )

    @property
    def college_key(self) -> tuple:
        """College identity: (type, id) when known, else (type, name, state)."""
        if self.college_id is not None:
            return (self.partition, self.college_id)
        return (self.partition, normalize_name(self.college_name), normalize_name(self.state))

    @property
    def dedup_key(self) -> tuple:
        return (self.college_key, self.id)


# ─────────────────────────────────────────────────────────────────────────────
# Abstract Base Class
# ─────────────────────────────────────────────────────────────────────────────


class RetrievalStrategy(ABC):
    """
    Abstract base class for retrieval strategies.

    Implementations must provide:
    - tag: Strategy identifier stored on every candidate
    - predicates(): SQL predicate(s) for one variant
    """

    tag: str = "unknown"

    def __init__(self, row_cap: int):
        self.row_cap = row_cap

    @abstractmethod
    def predicates(self, variant: str) -> list[Predicate]:
        """
        Build the predicate(s) for a variant.

        Args:
            variant: Normalized query variant

        Returns:
            (SQL boolean expression, params) pairs; each runs as its own
            capped query
        """
        pass

    def retrieve(
        self,
        partition: CatalogPartition,
        variant: str,
        filters: Optional[SearchFilters] = None,
    ) -> list[Candidate]:
        """
        Run the strategy for one variant against one partition.

        Raises:
            CatalogError: If the partition read fails
        """
        candidates: list[Candidate] = []
        seen: set[int] = set()
        for where, params in self.predicates(variant):
            for row in partition.select(where, params, filters, self.row_cap):
                candidate = Candidate.from_row(row, partition.name, self.tag, variant)
                if candidate.id in seen:
                    continue
                seen.add(candidate.id)
                candidates.append(candidate)
        return candidates

    def probe(self, partition: CatalogPartition, variant: str) -> bool:
        """Whether the strategy matches any row, ignoring every filter."""
        return any(partition.exists(where, params) for where, params in self.predicates(variant))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(row_cap={self.row_cap})"


def _text_columns_predicate(pattern: str) -> Predicate:
    return (
        f"college_name LIKE ? {_ESCAPE} OR course_name LIKE ? {_ESCAPE} "
        f"OR state LIKE ? {_ESCAPE} OR city LIKE ? {_ESCAPE}",
        [pattern] * 4,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Strategies
# ─────────────────────────────────────────────────────────────────────────────


class ExactStrategy(RetrievalStrategy):
    """Substring match on college name, course name, state and city."""

    tag = "exact"

    def predicates(self, variant: str) -> list[Predicate]:
        return [_text_columns_predicate(contains_pattern(variant))]


def fuzzy_patterns(variant: str) -> list[str]:
    """
    Separator-tolerant LIKE patterns for a variant.

    Example:
        >>> fuzzy_patterns("A.J. INST")
        ['%A.J. INST%', '%A%J% INST%', '%A.J.%INST%', '%A%J%%INST%']
    """
    escaped = escape_like(variant)
    patterns = [f"%{escaped}%"]
    if "." in escaped:
        patterns.append(f"%{escaped.replace('.', '%')}%")
    if " " in escaped:
        patterns.append(f"%{_WHITESPACE_RE.sub('%', escaped)}%")
    patterns.append(f"%{_SEPARATORS_RE.sub('%', escaped)}%")
    return list(dict.fromkeys(patterns))


class FuzzyStrategy(RetrievalStrategy):
    """Text-column match with dots, spaces and commas treated as wildcards."""

    tag = "fuzzy"

    def predicates(self, variant: str) -> list[Predicate]:
        return [_text_columns_predicate(pattern) for pattern in fuzzy_patterns(variant)]


class SemanticStrategy(RetrievalStrategy):
    """Attribute match: the variant names a course type, state or management type."""

    tag = "semantic"

    def predicates(self, variant: str) -> list[Predicate]:
        pattern = contains_pattern(variant)
        return [
            (
                "UPPER(course_type) = UPPER(?) OR UPPER(state) = UPPER(?) "
                "OR UPPER({management}) = UPPER(?) "
                f"OR course_name LIKE ? {_ESCAPE} OR city LIKE ? {_ESCAPE}",
                [variant, variant, variant, pattern, pattern],
            )
        ]


class AbbreviationStrategy(RetrievalStrategy):
    """Broad substring match on college name or city."""

    tag = "abbreviation"

    def predicates(self, variant: str) -> list[Predicate]:
        pattern = contains_pattern(variant)
        return [(f"college_name LIKE ? {_ESCAPE} OR city LIKE ? {_ESCAPE}", [pattern, pattern])]


class CompoundStrategy(RetrievalStrategy):
    """
    Location-scoped retrieval for "<course> in <location>" queries.

    The variant is the location text. Rows match when their state is one of
    the states the location names, or when state or city contains the
    location text. A city location therefore stays a city match.
    """

    tag = "compound"

    def __init__(self, row_cap: int, states: frozenset[str] = frozenset()):
        super().__init__(row_cap)
        self.states = tuple(sorted(states))

    def predicates(self, variant: str) -> list[Predicate]:
        pattern = contains_pattern(variant)
        where = f"state LIKE ? {_ESCAPE} OR city LIKE ? {_ESCAPE}"
        params: list[Any] = [pattern, pattern]
        if self.states:
            placeholders = ", ".join("?" for _ in self.states)
            where = f"UPPER(state) IN ({placeholders}) OR {where}"
            params = [*self.states, *params]
        return [(where, params)]


# ─────────────────────────────────────────────────────────────────────────────
# Factory
# ─────────────────────────────────────────────────────────────────────────────

DEFAULT_STRATEGY_ORDER: tuple[type[RetrievalStrategy], ...] = (
    ExactStrategy,
    FuzzyStrategy,
    SemanticStrategy,
    AbbreviationStrategy,
)


def create_strategies(config: Optional[SearchConfig] = None) -> list[RetrievalStrategy]:
    """
    Build the default strategy chain in execution order.

    Example:
        >>> [s.tag for s in create_strategies()]
        ['exact', 'fuzzy', 'semantic', 'abbreviation']
    """
    config = config or SearchConfig()
    caps = {
        ExactStrategy: config.exact_row_cap,
        FuzzyStrategy: config.fuzzy_row_cap,
        SemanticStrategy: config.semantic_row_cap,
        AbbreviationStrategy: config.abbreviation_row_cap,
    }
    return [strategy_cls(caps[strategy_cls]) for strategy_cls in DEFAULT_STRATEGY_ORDER]
