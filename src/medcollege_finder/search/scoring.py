"""
Scoring Module - Composite integer relevance score.
===================================================

score = strategy weight
      + one name bonus (exact > name prefix > query prefix > contains > words)
      + field bonuses (state, course, management, city)
      + seats bonus (seats // 10, capped)

All comparisons are on upper-cased text; missing fields count as empty.
"""

from typing import Iterable, Optional

from medcollege_finder.search.strategies import Candidate
from medcollege_finder.shared.config import ScoringConfig
from medcollege_finder.shared.schemas import ScoredResult
from medcollege_finder.shared.utils import normalize_query


class Scorer:
    """
    Scores candidates against the original query.

    Example:
        >>> scorer = Scorer()
        >>> scorer.score(candidate, "AJ")  # exact strategy, name contains "AJ"
        1500
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    def strategy_weight(self, strategy: str) -> int:
        return self.config.strategy_weights.get(strategy, self.config.default_strategy_weight)

    def name_bonus(self, name: str, query: str) -> int:
        cfg = self.config
        if not query or not name:
            return 0
        if name == query:
            return cfg.exact_name_bonus
        if name.startswith(query):
            return cfg.name_prefix_bonus
        if query.startswith(name):
            return cfg.query_prefix_bonus
        if query in name:
            return cfg.name_contains_bonus
        return cfg.word_match_bonus * sum(1 for word in query.split() if word in name)

    def score(self, candidate: Candidate, query: str) -> int:
        """Score one candidate; never negative."""
        cfg = self.config
        query = normalize_query(query)

        total = self.strategy_weight(candidate.strategy)
        total += self.name_bonus(normalize_query(candidate.college_name), query)

        if query:
            if query in normalize_query(candidate.state):
                total += cfg.state_bonus
            if query in normalize_query(candidate.course_name):
                total += cfg.course_bonus
            if query in normalize_query(candidate.management_type):
                total += cfg.management_bonus
            if query in normalize_query(candidate.city):
                total += cfg.city_bonus

        total += min(max(candidate.seats, 0) // cfg.seats_divisor, cfg.seats_bonus_cap)
        return max(total, 0)

    def to_result(self, candidate: Candidate, query: str) -> ScoredResult:
        """Build the output record for a candidate."""
        return ScoredResult(
            id=candidate.id,
            course_id=candidate.id,
            college_id=candidate.college_id,
            name=candidate.college_name,
            type=candidate.partition,
            state=candidate.state,
            city=candidate.city,
            seats=candidate.seats,
            course=candidate.course_name,
            course_type=candidate.course_type,
            year_established=candidate.establishment_year,
            management_type=candidate.management_type,
            university=candidate.university,
            quota_details=candidate.quota_details,
            fees_structure=candidate.fees_structure,
            search_score=self.score(candidate, query),
            search_strategy=candidate.strategy,
            matched_variation=candidate.variant,
            college_key=candidate.college_key,
        )

    def score_all(self, candidates: Iterable[Candidate], query: str) -> list[ScoredResult]:
        return [self.to_result(candidate, query) for candidate in candidates]
