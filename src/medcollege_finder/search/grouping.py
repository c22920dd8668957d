"""
Grouping Module - Deduplicate scored results and group them by college.
=======================================================================
"""

from typing import Iterable

from medcollege_finder.shared.logging import get_logger
from medcollege_finder.shared.schemas import CourseEntry, ResultGroup, ScoredResult

logger = get_logger(__name__)


def deduplicate(results: Iterable[ScoredResult]) -> list[ScoredResult]:
    """
    Collapse results sharing a (college, course) key and rank them.

    The highest-scoring copy wins; on ties the first one seen is kept. The
    output is sorted by score descending, stable with respect to first
    appearance.

    Example:
        >>> [r.search_score for r in deduplicate([r80, r95, r80_dup])]
        [95, 80]
    """
    best: dict[tuple, ScoredResult] = {}
    for result in results:
        key = result.dedup_key
        current = best.get(key)
        if current is None:
            best[key] = result
        elif result.search_score > current.search_score:
            # Replace in place so the key keeps its first-seen position
            best[key] = result

    ranked = sorted(best.values(), key=lambda r: -r.search_score)
    logger.debug(f"Deduplicated to {len(ranked)} results")
    return ranked


def group_by_college(results: Iterable[ScoredResult]) -> list[ResultGroup]:
    """
    Group ranked results into one card per college.

    Courses keep the order of the input list. Groups are sorted by their
    best course score, descending; ties keep first-encountered order.
    """
    groups: dict[tuple, ResultGroup] = {}
    for result in results:
        group = groups.get(result.college_key)
        if group is None:
            group = ResultGroup(
                college_id=result.college_id,
                college_name=result.name,
                state=result.state,
                city=result.city,
                type=result.type,
                management_type=result.management_type,
                university=result.university,
                establishment_year=result.year_established,
            )
            groups[result.college_key] = group

        group.add_course(
            CourseEntry(
                course_id=result.course_id,
                course_name=result.course,
                course_type=result.course_type,
                seats=result.seats,
                quota_details=result.quota_details,
                cutoff_ranks=result.cutoff_ranks,
                fees_structure=result.fees_structure,
                search_score=result.search_score,
            )
        )

    return sorted(groups.values(), key=lambda g: -g.search_score)
