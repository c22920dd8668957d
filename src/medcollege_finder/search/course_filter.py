"""
Course Filter Module - Keep only candidates of the detected course type.
========================================================================

A query naming a course family ("MD General Medicine") should not return
courses of an overlapping family whose code contains the same letters
("MBBS", "MDS"). Each family lists the families it must not match.
"""

from typing import Iterable, Optional

from medcollege_finder.search.query_analyzer import matches_course_type
from medcollege_finder.search.strategies import Candidate
from medcollege_finder.shared.logging import get_logger
from medcollege_finder.shared.schemas import CourseType, Stream

logger = get_logger(__name__)

EXCLUDED_TYPES: dict[CourseType, tuple[CourseType, ...]] = {
    CourseType.MBBS: (),
    CourseType.BDS: (CourseType.DNB,),
    CourseType.MDS: (CourseType.DNB,),
    CourseType.MCH: (CourseType.DNB,),
    CourseType.DNB: (),
    CourseType.DM: (CourseType.MBBS, CourseType.DNB),
    CourseType.MD: (CourseType.MBBS, CourseType.MDS, CourseType.DNB),
    CourseType.MS: (CourseType.MBBS, CourseType.DNB),
}


def _is_dnb(candidate: Candidate) -> bool:
    return candidate.partition == Stream.DNB.value or matches_course_type(
        candidate.course_name, CourseType.DNB
    )


def candidate_matches(candidate: Candidate, course_type: CourseType) -> bool:
    """
    Whether a candidate's course belongs to a course family.

    Rows from the DNB partition always count as DNB.
    """
    if course_type == CourseType.DNB:
        return _is_dnb(candidate)

    if not matches_course_type(candidate.course_name, course_type):
        return False

    for excluded in EXCLUDED_TYPES[course_type]:
        if excluded == CourseType.DNB:
            if _is_dnb(candidate):
                return False
        elif matches_course_type(candidate.course_name, excluded):
            return False
    return True


def filter_by_course_type(
    candidates: Iterable[Candidate], course_type: Optional[CourseType]
) -> list[Candidate]:
    """
    Keep candidates of the given course family, preserving order.

    No course type means no filtering.
    """
    candidates = list(candidates)
    if course_type is None:
        return candidates

    kept = [c for c in candidates if candidate_matches(c, course_type)]
    logger.debug(f"Course filter {course_type.value}: kept {len(kept)}/{len(candidates)}")
    return kept
