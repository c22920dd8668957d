"""
Query Analyzer Module - Keyword/pattern intent extraction.
==========================================================

Detects what a query is about without touching the catalog:
- Course type (MBBS, BDS, MDS, MCh, DNB, DM, MD, MS) via ordered,
  word-bounded patterns; more specific codes are tried first
- Location hint (location keywords, known states or state synonyms)
- College hint (COLLEGE, INSTITUTE, HOSPITAL, ...)
- Compound queries of the form "<course> in|at|near <location>"
"""

import re
from typing import Optional

from medcollege_finder.search.lexicon import Lexicon, default_lexicon
from medcollege_finder.shared.logging import get_logger
from medcollege_finder.shared.schemas import CompoundQuery, CourseType, Intent, Stream
from medcollege_finder.shared.utils import collapse_whitespace, normalize_query

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Course-Type Patterns
# ─────────────────────────────────────────────────────────────────────────────

# Patterns run against upper-cased text.
COURSE_TYPE_PATTERNS: dict[CourseType, re.Pattern] = {
    CourseType.MBBS: re.compile(r"\bM\.?B\.?B\.?S\b|BACHELOR OF MEDICINE"),
    CourseType.BDS: re.compile(r"\bB\.?D\.?S\b|BACHELOR OF DENTAL"),
    CourseType.MDS: re.compile(r"\bM\.?D\.?S\b|MASTER OF DENTAL"),
    CourseType.MCH: re.compile(r"\bM\.?CH\b"),
    CourseType.DNB: re.compile(r"\bD\.?N\.?B\b|NATIONAL BOARD"),
    CourseType.DM: re.compile(r"\bD\.?M\b|DOCTORATE OF MEDICINE"),
    CourseType.MD: re.compile(r"\bM\.?D\b|DOCTOR OF MEDICINE"),
    CourseType.MS: re.compile(r"\bM\.?S\b|MASTER OF SURGERY"),
}

# Most specific first: MBBS before MD/MS, MDS before MD.
DETECTION_ORDER: tuple[CourseType, ...] = (
    CourseType.MBBS,
    CourseType.BDS,
    CourseType.MDS,
    CourseType.MCH,
    CourseType.DNB,
    CourseType.DM,
    CourseType.MD,
    CourseType.MS,
)

LOCATION_KEYWORDS = frozenset(
    {"IN", "AT", "NEAR", "CITY", "STATE", "DISTRICT", "VILLAGE", "TOWN", "AREA", "REGION"}
)

COLLEGE_KEYWORDS = frozenset(
    {
        "COLLEGE", "COLL", "INSTITUTE", "INST", "INSTITUTION", "HOSPITAL",
        "HOSP", "UNIVERSITY", "UNIV", "ACADEMY", "CENTRE", "CENTER",
    }
)

# Course keyword of a compound query → stream to search
COMPOUND_COURSE_KEYWORDS: dict[str, Stream] = {
    "MBBS": Stream.MEDICAL,
    "MD": Stream.MEDICAL,
    "MS": Stream.MEDICAL,
    "DM": Stream.MEDICAL,
    "MCH": Stream.MEDICAL,
    "MEDICAL": Stream.MEDICAL,
    "BDS": Stream.DENTAL,
    "MDS": Stream.DENTAL,
    "DENTAL": Stream.DENTAL,
    "DNB": Stream.DNB,
}

_COMPOUND_SEPARATOR_RE = re.compile(r"\s(?:IN|AT|NEAR)\s")
_TOKEN_STRIP_RE = re.compile(r"[^\w&]")
_MAX_PHRASE_WORDS = 4


def detect_course_type(text: Optional[str]) -> Optional[CourseType]:
    """
    Detect the course family mentioned in a text.

    Example:
        >>> detect_course_type("MD General Medicine")
        <CourseType.MD: 'MD'>
        >>> detect_course_type("M.D.S Orthodontics")
        <CourseType.MDS: 'MDS'>
        >>> detect_course_type("AJ Institute") is None
        True
    """
    normalized = normalize_query(text)
    if not normalized:
        return None
    for course_type in DETECTION_ORDER:
        if COURSE_TYPE_PATTERNS[course_type].search(normalized):
            return course_type
    return None


def course_type_code(text: Optional[str]) -> Optional[str]:
    """Detected course family as its display code ("MCh", "MD", ...)."""
    course_type = detect_course_type(text)
    return course_type.value if course_type else None


def matches_course_type(text: Optional[str], course_type: CourseType) -> bool:
    """Whether a text matches one course family's pattern."""
    normalized = normalize_query(text)
    return bool(normalized) and bool(COURSE_TYPE_PATTERNS[course_type].search(normalized))


def _tokens(text: str) -> list[str]:
    return [tok for tok in (_TOKEN_STRIP_RE.sub("", t) for t in text.split()) if tok]


def _is_college_word(token: str) -> bool:
    if token in COLLEGE_KEYWORDS:
        return True
    return token.endswith("S") and token[:-1] in COLLEGE_KEYWORDS


# ─────────────────────────────────────────────────────────────────────────────
# Query Analyzer
# ─────────────────────────────────────────────────────────────────────────────


class QueryAnalyzer:
    """
    Extracts intent from a raw query.

    Pure: the same query always yields the same Intent.

    Example:
        >>> analyzer = QueryAnalyzer()
        >>> intent = analyzer.analyze("MBBS colleges in Karnataka")
        >>> intent.course_type, intent.location_hint, intent.college_hint
        (<CourseType.MBBS: 'MBBS'>, True, True)
    """

    def __init__(self, lexicon: Optional[Lexicon] = None):
        self._lexicon = lexicon or default_lexicon()

    @property
    def lexicon(self) -> Lexicon:
        return self._lexicon

    def analyze(self, query: Optional[str]) -> Intent:
        """Analyze a query into an Intent."""
        normalized = normalize_query(query)
        if not normalized:
            return Intent()

        words = normalized.split()
        tokens = _tokens(normalized)

        intent = Intent(
            course_type=detect_course_type(normalized),
            location_hint=self._has_location(words, tokens),
            college_hint=any(_is_college_word(tok) for tok in tokens),
        )

        logger.debug(f"Intent for '{normalized}': {intent.model_dump(exclude_defaults=True)}")
        return intent

    def _has_location(self, words: list[str], tokens: list[str]) -> bool:
        if any(tok in LOCATION_KEYWORDS for tok in tokens):
            return True

        # Any phrase of up to a few words naming a state or a state synonym
        for size in range(1, min(_MAX_PHRASE_WORDS, len(words)) + 1):
            for start in range(len(words) - size + 1):
                phrase = " ".join(words[start:start + size])
                if self._lexicon.is_state_term(phrase):
                    return True
        return False

    def parse_compound(self, query: Optional[str]) -> CompoundQuery:
        """
        Split a "<course> in|at|near <location>" query.

        The course keyword must appear before the separator; the location is
        everything after the first separator.

        Example:
            >>> parts = QueryAnalyzer().parse_compound("DNB in Karnataka")
            >>> parts.course_keyword, parts.location, parts.stream
            ('DNB', 'KARNATAKA', <Stream.DNB: 'dnb'>)
        """
        normalized = collapse_whitespace(normalize_query(query))
        if not normalized:
            return CompoundQuery()

        match = _COMPOUND_SEPARATOR_RE.search(normalized)
        head = normalized[:match.start()] if match else normalized
        location = normalized[match.end():].strip() if match else ""

        keyword = next(
            (tok for tok in _tokens(head.replace(".", "")) if tok in COMPOUND_COURSE_KEYWORDS),
            None,
        )

        return CompoundQuery(
            course_keyword=keyword,
            location=location or None,
            stream=COMPOUND_COURSE_KEYWORDS[keyword] if keyword else None,
        )

    def resolve_states(self, location: Optional[str]) -> frozenset[str]:
        """States a location phrase names directly (empty for cities and unknown text)."""
        if not location:
            return frozenset()
        return self._lexicon.named_states(location)
