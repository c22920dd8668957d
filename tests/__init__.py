"""
Tests Package - Unit and integration tests for MedCollege Finder.
=================================================================

Test modules:
- test_lexicon: Vocabulary symmetry and query variations
- test_query: Course-type detection, intent and compound parsing
- test_catalog: Partition reads, lookups, statistics, reference lists
- test_retrieval: Strategies, parallel runner, course-type filter
- test_scoring: Scores, deduplication and grouping
- test_engine: End-to-end search behaviour
- test_suggest: Auto-complete
- test_config: Settings, filters and helpers
- test_cli: Typer commands

Run tests with:
    pytest tests/
    pytest tests/ -v --cov=src/medcollege_finder
"""
