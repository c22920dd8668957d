"""
Search Module - Multi-strategy ranked search pipeline.
======================================================

- lexicon: Abbreviation and state-synonym vocabulary
- query_analyzer: Course type / location / college / stream intent
- variations: Query variant generation
- strategies: Exact, fuzzy, semantic, abbreviation and compound retrieval
- retrieval: Parallel strategy runner with a time budget
- course_filter: Course-type disambiguation
- scoring: Composite relevance score
- grouping: Deduplication and per-college grouping
- suggest: Auto-complete suggestions
- engine: SearchEngine facade

Search Flow:
    Query → Analyzer → Variations → Strategies × Partitions → Course Filter
          → Scorer → Deduplicator → (Grouper)
"""

from medcollege_finder.search.lexicon import Lexicon, default_lexicon
from medcollege_finder.search.query_analyzer import (
    QueryAnalyzer,
    detect_course_type,
    matches_course_type,
)
from medcollege_finder.search.variations import generate_variations
from medcollege_finder.search.strategies import (
    Candidate,
    RetrievalStrategy,
    ExactStrategy,
    FuzzyStrategy,
    SemanticStrategy,
    AbbreviationStrategy,
    CompoundStrategy,
    create_strategies,
)
from medcollege_finder.search.retrieval import RetrievalOutcome, RetrievalRunner
from medcollege_finder.search.course_filter import filter_by_course_type
from medcollege_finder.search.scoring import Scorer
from medcollege_finder.search.grouping import deduplicate, group_by_college
from medcollege_finder.search.suggest import AutoCompleteSuggester
from medcollege_finder.search.engine import SearchEngine, create_engine

__all__ = [
    # Vocabulary & analysis
    "Lexicon",
    "default_lexicon",
    "QueryAnalyzer",
    "detect_course_type",
    "matches_course_type",
    "generate_variations",
    # Retrieval
    "Candidate",
    "RetrievalStrategy",
    "ExactStrategy",
    "FuzzyStrategy",
    "SemanticStrategy",
    "AbbreviationStrategy",
    "CompoundStrategy",
    "create_strategies",
    "RetrievalOutcome",
    "RetrievalRunner",
    # Ranking
    "filter_by_course_type",
    "Scorer",
    "deduplicate",
    "group_by_college",
    # Suggestions
    "AutoCompleteSuggester",
    # Engine
    "SearchEngine",
    "create_engine",
]
