"""
Search Engine Module - Facade over the search pipeline.
=======================================================

Pipeline for one query:

    analyze → generate variations → retrieve (strategies × variants ×
    partitions, in parallel) → course-type filter → score → deduplicate
    → (optionally) group by college

"<course> in <location>" queries take a dedicated, location-scoped route
with a raised row ceiling instead of the variation pipeline.

Also exposes suggestions, catalog statistics, lookups by id/type/state and
cached reference lists.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, TypeVar

from pydantic import BaseModel, ValidationError

from medcollege_finder.catalog.reference import ReferenceData
from medcollege_finder.catalog.store import Catalog
from medcollege_finder.search.course_filter import filter_by_course_type
from medcollege_finder.search.grouping import deduplicate, group_by_college
from medcollege_finder.search.lexicon import Lexicon, default_lexicon
from medcollege_finder.search.query_analyzer import QueryAnalyzer, course_type_code
from medcollege_finder.search.retrieval import RetrievalOutcome, RetrievalRunner
from medcollege_finder.search.scoring import Scorer
from medcollege_finder.search.strategies import (
    CompoundStrategy,
    ExactStrategy,
    RetrievalStrategy,
    create_strategies,
)
from medcollege_finder.search.suggest import AutoCompleteSuggester
from medcollege_finder.search.variations import generate_variations
from medcollege_finder.shared.config import Settings, get_settings
from medcollege_finder.shared.exceptions import CatalogError, QueryValidationError
from medcollege_finder.shared.logging import get_logger
from medcollege_finder.shared.schemas import (
    CatalogStats,
    CollegeDetail,
    CompoundQuery,
    GroupedSearchResponse,
    Intent,
    ReferenceItem,
    ScoredResult,
    SearchFilters,
    SearchResponse,
    Stream,
    SuggestFilters,
    Suggestion,
)
from medcollege_finder.shared.utils import normalize_query

logger = get_logger(__name__)

QUERY_REQUIRED = "Query parameter is required"

FiltersT = TypeVar("FiltersT", bound=BaseModel)


@dataclass
class _PipelineResult:
    results: list[ScoredResult]
    limit: int
    intent: Intent
    variants: tuple[str, ...]
    warnings: list[str] = field(default_factory=list)
    partial: bool = False


def _format_validation_error(error: ValidationError) -> str:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'filters'}: {err['msg']}"
        for err in error.errors()
    )
    return f"Invalid filters: {problems}"


class SearchEngine:
    """
    Multi-strategy ranked search over the college catalog.

    Thread-safe: concurrent searches share the worker pool and the
    catalog handles.

    Example:
        >>> with SearchEngine.from_settings() as engine:
        ...     response = engine.search("AJ", {"stream": "medical"})
        ...     for hit in response.data[:3]:
        ...         print(hit.search_score, hit.name, hit.course)
    """

    def __init__(
        self,
        catalog: Catalog,
        settings: Optional[Settings] = None,
        lexicon: Optional[Lexicon] = None,
        strategies: Optional[Sequence[RetrievalStrategy]] = None,
    ):
        """
        Initialize the engine.

        Args:
            catalog: Catalog to search (the engine closes it on close())
            settings: Settings (uses global settings if None)
            lexicon: Abbreviation/state vocabulary (shared default if None)
            strategies: Strategy chain in execution order (default chain if None)
        """
        self._settings = settings or get_settings()
        search_cfg = self._settings.search

        self._catalog = catalog
        self._lexicon = lexicon or default_lexicon()
        self._analyzer = QueryAnalyzer(self._lexicon)
        self._executor = ThreadPoolExecutor(
            max_workers=search_cfg.max_workers, thread_name_prefix="collegefinder"
        )
        self._runner = RetrievalRunner(
            self._executor,
            strategies if strategies is not None else create_strategies(search_cfg),
            short_circuit=search_cfg.short_circuit,
            time_budget_seconds=search_cfg.time_budget_seconds,
        )
        self._scorer = Scorer(self._settings.scoring)
        self._suggester = AutoCompleteSuggester(
            catalog,
            self._executor,
            analyzer=self._analyzer,
            config=self._settings.suggest,
            time_budget_seconds=search_cfg.time_budget_seconds,
        )
        self._reference = ReferenceData(
            catalog,
            classify=course_type_code,
            ttl=self._settings.cache.ttl_seconds,
            max_size=self._settings.cache.max_entries,
        )
        self._closed = False

        logger.debug(
            f"SearchEngine initialized: partitions={catalog.partition_names}, "
            f"workers={search_cfg.max_workers}, budget={search_cfg.time_budget_seconds}s"
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SearchEngine":
        """
        Open the catalog from the configured database paths.

        Raises:
            ConfigurationError: If a database file is missing
        """
        settings = settings or get_settings()
        return cls(Catalog.from_paths(settings.catalog_paths), settings=settings)

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def analyzer(self) -> QueryAnalyzer:
        return self._analyzer

    @property
    def lexicon(self) -> Lexicon:
        return self._lexicon

    # ─────────────────────────────────────────────────────────────────────────
    # Search
    # ─────────────────────────────────────────────────────────────────────────

    @staticmethod
    def _coerce_filters(filters: Any, model: type[FiltersT]) -> FiltersT:
        """
        Validate request filters.

        Raises:
            QueryValidationError: If a filter value is invalid
        """
        if filters is None:
            return model()
        if isinstance(filters, model):
            return filters
        try:
            return model.model_validate(filters)
        except ValidationError as e:
            raise QueryValidationError(_format_validation_error(e)) from e

    def search(self, query: Optional[str], filters: Any = None) -> SearchResponse:
        """
        Ranked, deduplicated flat search.

        Args:
            query: Free-text query (college, abbreviation, course, place)
            filters: SearchFilters or a dict with stream/course/state/limit

        Returns:
            SearchResponse; failures are reported in `error`, never raised
        """
        raw_query = query or ""
        try:
            search_filters = self._coerce_filters(filters, SearchFilters)
        except QueryValidationError as e:
            return SearchResponse(query=raw_query, error=str(e))

        try:
            pipeline = self._run_pipeline(raw_query, search_filters)
            if pipeline is None:
                return SearchResponse(query=raw_query, error=QUERY_REQUIRED)

            data = pipeline.results[: pipeline.limit]
            course_type = pipeline.intent.course_type
            return SearchResponse(
                data=data,
                total=len(data),
                query=raw_query,
                course_type=course_type.value if course_type else None,
                variations=list(pipeline.variants),
                partial=pipeline.partial,
                warnings=pipeline.warnings,
            )
        except Exception as e:
            logger.exception(f"Search failed for '{raw_query}'")
            return SearchResponse(query=raw_query, error=str(e))

    def search_grouped(self, query: Optional[str], filters: Any = None) -> GroupedSearchResponse:
        """
        Search, then group results into one card per college.

        Groups are ordered by their best course score and truncated to the
        limit; `total` counts the flat results before grouping.
        """
        raw_query = query or ""
        try:
            search_filters = self._coerce_filters(filters, SearchFilters)
        except QueryValidationError as e:
            return GroupedSearchResponse(query=raw_query, error=str(e))

        try:
            pipeline = self._run_pipeline(raw_query, search_filters)
            if pipeline is None:
                return GroupedSearchResponse(query=raw_query, error=QUERY_REQUIRED)

            groups = group_by_college(pipeline.results)[: pipeline.limit]
            return GroupedSearchResponse(
                grouped_results=groups,
                total_groups=len(groups),
                total=len(pipeline.results),
                query=raw_query,
                partial=pipeline.partial,
                warnings=pipeline.warnings,
            )
        except Exception as e:
            logger.exception(f"Grouped search failed for '{raw_query}'")
            return GroupedSearchResponse(query=raw_query, error=str(e))

    def _run_pipeline(self, query: str, filters: SearchFilters) -> Optional[_PipelineResult]:
        """Run the full pipeline; None means the request was empty."""
        normalized = normalize_query(query)
        if not normalized and not filters.has_constraints:
            return None

        started = time.perf_counter()
        limit = filters.limit or self._settings.get_effective_limit()
        intent = self._analyzer.analyze(normalized)
        all_partitions = self._catalog.partitions_for(None)

        compound = self._analyzer.parse_compound(normalized)
        if compound.is_compound:
            outcome, variants, limit = self._retrieve_compound(compound, filters, limit)
            route = "compound"
        elif normalized:
            variants = generate_variations(normalized, self._lexicon)
            outcome = self._runner.run(
                variants,
                self._catalog.partitions_for(filters.stream_value()),
                all_partitions,
                filters,
            )
            route = "multi-strategy"
        else:
            variants = ("",)
            browse = ExactStrategy(max(self._settings.search.exact_row_cap, limit))
            outcome = self._runner.run(
                variants,
                self._catalog.partitions_for(filters.stream_value()),
                all_partitions,
                filters,
                strategies=[browse],
            )
            route = "browse"

        candidates = filter_by_course_type(outcome.candidates, intent.course_type)
        results = deduplicate(self._scorer.score_all(candidates, normalized))

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"Search '{normalized}' ({route}): {len(outcome.candidates)} candidates → "
            f"{len(results)} results in {elapsed_ms:.0f} ms"
            + (" [partial]" if outcome.partial else "")
        )

        return _PipelineResult(
            results=results,
            limit=limit,
            intent=intent,
            variants=tuple(variants),
            warnings=list(dict.fromkeys(outcome.warnings)),
            partial=outcome.partial,
        )

    def _retrieve_compound(
        self, compound: CompoundQuery, filters: SearchFilters, limit: int
    ) -> tuple[RetrievalOutcome, tuple[str, ...], int]:
        search_cfg = self._settings.search
        stream = compound.stream.value

        ceiling = max(limit, search_cfg.broad_search_limit)
        if stream == Stream.DNB.value:
            ceiling = max(ceiling, search_cfg.dnb_search_limit)

        requested = filters.stream_value()
        partitions = self._catalog.partitions_for(stream) if requested in (None, stream) else []

        strategy = CompoundStrategy(ceiling, self._analyzer.resolve_states(compound.location))
        variants = (compound.location,)
        logger.debug(
            f"Compound query: course={compound.course_keyword}, location={compound.location}, "
            f"stream={stream}, ceiling={ceiling}"
        )
        outcome = self._runner.run(variants, partitions, partitions, filters, strategies=[strategy])
        return outcome, variants, ceiling

    # ─────────────────────────────────────────────────────────────────────────
    # Suggestions
    # ─────────────────────────────────────────────────────────────────────────

    def suggest(self, query: Optional[str], filters: Any = None) -> list[Suggestion]:
        """Auto-complete suggestions; invalid filters or failures yield []."""
        try:
            suggest_filters = self._coerce_filters(filters, SuggestFilters)
        except QueryValidationError as e:
            logger.warning(str(e))
            return []

        try:
            return self._suggester.suggest(query, suggest_filters)
        except Exception:
            logger.exception(f"Suggestions failed for '{query}'")
            return []

    # ─────────────────────────────────────────────────────────────────────────
    # Catalog Lookups
    # ─────────────────────────────────────────────────────────────────────────

    def get_stats(self) -> CatalogStats:
        """Distinct colleges and seats per stream."""
        return self._catalog.stats()

    def get_college_by_id(self, college_id: int) -> Optional[CollegeDetail]:
        return self._catalog.get_college(college_id)

    def get_colleges_by_type(self, college_type: str, limit: int = 100) -> list[CollegeDetail]:
        return self._catalog.colleges_by_type(college_type, limit)

    def get_colleges_by_state(self, state: str, limit: int = 100) -> list[CollegeDetail]:
        return self._catalog.colleges_by_state(state, limit)

    def get_courses_by_stream(self, stream: Optional[str] = None) -> list[dict[str, str]]:
        return self._catalog.courses_by_stream(stream)

    def get_available_streams(self) -> list[ReferenceItem]:
        try:
            return self._reference.streams()
        except CatalogError as e:
            logger.warning(f"Streams unavailable: {e}")
            return []

    def get_available_states(self) -> list[ReferenceItem]:
        try:
            return self._reference.states()
        except CatalogError as e:
            logger.warning(f"States unavailable: {e}")
            return []

    def get_available_courses(self, stream: Optional[str] = None) -> list[ReferenceItem]:
        try:
            return self._reference.course_types(stream)
        except CatalogError as e:
            logger.warning(f"Course types unavailable: {e}")
            return []

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def close(self) -> None:
        """Stop the worker pool and close catalog handles. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=True, cancel_futures=True)
        self._catalog.close()
        logger.debug("SearchEngine closed")

    def __enter__(self) -> "SearchEngine":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        self.close()


# ─────────────────────────────────────────────────────────────────────────────
# Factory
# ─────────────────────────────────────────────────────────────────────────────


def create_engine(
    medical: Any = None,
    dental: Any = None,
    dnb: Any = None,
    colleges: Any = None,
    settings: Optional[Settings] = None,
    lexicon: Optional[Lexicon] = None,
) -> SearchEngine:
    """
    Create a search engine over already-open sqlite3 connections.

    Connections must allow use from worker threads
    (``check_same_thread=False``). Partitions left as None are not searched.

    Args:
        medical: Connection holding `medical_courses`
        dental: Connection holding `dental_courses`
        dnb: Connection holding `dnb_courses`
        colleges: Connection holding the aggregate `colleges`/`courses` tables
        settings: Settings (uses global settings if None)
        lexicon: Vocabulary override

    Returns:
        SearchEngine instance

    Example:
        >>> engine = create_engine(medical=med_conn, dental=den_conn, dnb=dnb_conn, colleges=agg_conn)
        >>> engine.search("DNB in Karnataka").total
        42
    """
    catalog = Catalog.from_connections(medical=medical, dental=dental, dnb=dnb, colleges=colleges)
    return SearchEngine(catalog, settings=settings, lexicon=lexicon)
