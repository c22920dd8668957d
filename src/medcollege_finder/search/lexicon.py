"""
Lexicon Module - Abbreviation and state-synonym dictionaries.
=============================================================

An immutable, bidirectional vocabulary used by the variation generator,
the query analyzer and the compound-query scoping:

- abbreviation → expansions (e.g. GOVT → GOVERNMENT, GOVT.)
- expansion → abbreviations (derived, so the two directions always agree)
- canonical state → aliases (e.g. KARNATAKA → KA) and cities (BENGALURU)
- alias or city → canonical states

The lexicon is built once and shared by every search; its mappings are
read-only views over frozensets.
"""

from collections import defaultdict
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional

from medcollege_finder.shared.utils import normalize_name

# ─────────────────────────────────────────────────────────────────────────────
# Default Vocabulary
# ─────────────────────────────────────────────────────────────────────────────

_AJ_FORMS = ["AJ", "A.J.", "A J", "AJ."]
_AJ_PHRASES = ["AJ INSTITUTE", "AJ COLLEGE", "AJ MEDICAL", "AJ DENTAL"]

DEFAULT_ABBREVIATIONS: dict[str, list[str]] = {
    **{
        form: [other for other in _AJ_FORMS if other != form] + _AJ_PHRASES
        for form in _AJ_FORMS
    },
    "DR": ["DR.", "DOCTOR", "DRS", "DR MEDICAL", "DR COLLEGE"],
    "DR.": ["DR", "DOCTOR", "DRS", "DR MEDICAL", "DR COLLEGE"],
    "DRS": ["DRS.", "DR.", "DOCTORS", "DRS MEDICAL", "DRS COLLEGE"],
    "GOVT": ["GOVT.", "GOVERNMENT", "GOVERNMENTAL", "GOVT MEDICAL", "GOVT COLLEGE"],
    "GOVT.": ["GOVT", "GOVERNMENT", "GOVERNMENTAL", "GOVT MEDICAL", "GOVT COLLEGE"],
    "INST": ["INST.", "INSTITUTE", "INSTITUTION", "INST MEDICAL", "INST DENTAL"],
    "INST.": ["INST", "INSTITUTE", "INSTITUTION", "INST MEDICAL", "INST DENTAL"],
    "COLL": ["COLL.", "COLLEGE", "COLL MEDICAL", "COLL DENTAL"],
    "COLL.": ["COLL", "COLLEGE", "COLL MEDICAL", "COLL DENTAL"],
    "HOSP": ["HOSP.", "HOSPITAL", "HOSP MEDICAL", "HOSP COLLEGE"],
    "HOSP.": ["HOSP", "HOSPITAL", "HOSP MEDICAL", "HOSP COLLEGE"],
    "UNIV": ["UNIV.", "UNIVERSITY", "UNIV MEDICAL", "UNIV COLLEGE"],
    "UNIV.": ["UNIV", "UNIVERSITY", "UNIV MEDICAL", "UNIV COLLEGE"],
    "RES": ["RES.", "RESEARCH", "RES MEDICAL", "RES COLLEGE"],
    "RES.": ["RES", "RESEARCH", "RES MEDICAL", "RES COLLEGE"],
    "SCI": ["SCI.", "SCIENCES", "SCIENCE", "SCI MEDICAL", "SCI COLLEGE"],
    "SCI.": ["SCI", "SCIENCES", "SCIENCE", "SCI MEDICAL", "SCI COLLEGE"],
    "TECH": ["TECH.", "TECHNOLOGY", "TECHNICAL", "TECH MEDICAL", "TECH COLLEGE"],
    "TECH.": ["TECH", "TECHNOLOGY", "TECHNICAL", "TECH MEDICAL", "TECH COLLEGE"],
    "MED": ["MED.", "MEDICAL", "MEDICINE", "MED COLLEGE", "MED INSTITUTE"],
    "MED.": ["MED", "MEDICAL", "MEDICINE", "MED COLLEGE", "MED INSTITUTE"],
    "DENT": ["DENT.", "DENTAL", "DENT COLLEGE", "DENT INSTITUTE"],
    "DENT.": ["DENT", "DENTAL", "DENT COLLEGE", "DENT INSTITUTE"],
    "MBBS": ["M.B.B.S", "MBBS.", "MEDICAL", "MBBS COURSE"],
    "BDS": ["B.D.S", "BDS.", "DENTAL", "BDS COURSE"],
    "MD": ["M.D", "MD.", "POST GRADUATE", "MD COURSE"],
    "MS": ["M.S", "MS.", "POST GRADUATE", "MS COURSE"],
    "DNB": ["D.N.B", "DNB.", "DIPLOMATE", "DNB COURSE"],
    "MDS": ["M.D.S", "MDS.", "POST GRADUATE DENTAL", "MDS COURSE"],
    "HUBBALLI": ["HUBLI", "HUBLI CITY", "HUBLI-DHARWAD", "HUBLI DHARWAD"],
    "HUBLI": ["HUBBALLI", "HUBLI CITY", "HUBLI-DHARWAD", "HUBLI DHARWAD"],
}

DEFAULT_STATE_SYNONYMS: dict[str, list[str]] = {
    "KARNATAKA": ["KAR", "KA"],
    "ANDHRA PRADESH": ["AP", "ANDHRA"],
    "TAMIL NADU": ["TN", "TAMILNADU"],
    "MAHARASHTRA": ["MH", "MAH"],
    "KERALA": ["KL", "KER"],
    "DELHI": ["DL", "DEL", "DELHI (NCT)"],
    "WEST BENGAL": ["WB", "BENGAL"],
    "UTTAR PRADESH": ["UP", "UTTAR"],
    "TELANGANA": ["TS", "TEL"],
    "GUJARAT": ["GJ", "GUJ"],
    "RAJASTHAN": ["RJ", "RAJ"],
    "MADHYA PRADESH": ["MP", "MADHYA"],
    "HARYANA": ["HR", "HAR"],
    "PUNJAB": ["PB", "PUN"],
    "BIHAR": ["BR", "BIH"],
    "ORISSA": ["OR", "ORI", "ODISHA"],
    "JHARKHAND": ["JH", "JHA"],
    "CHHATTISGARH": ["CG", "CHH"],
    "ASSAM": ["AS", "ASS"],
    "MANIPUR": ["MN", "MAN"],
    "MEGHALAYA": ["ML", "MEG"],
    "NAGALAND": ["NL", "NAG"],
    "TRIPURA": ["TR", "TRI"],
    "ARUNACHAL PRADESH": ["AR", "ARU"],
    "MIZORAM": ["MZ", "MIZ"],
    "SIKKIM": ["SK", "SIK"],
    "GOA": ["GA"],
    "UTTARAKHAND": ["UK", "UTT"],
    "HIMACHAL PRADESH": ["HP", "HIM"],
    "JAMMU AND KASHMIR": ["JK", "J&K"],
    "LADAKH": ["LA", "LAD"],
    "CHANDIGARH": ["CH", "CHA"],
    "DADRA AND NAGAR HAVELI": ["DN", "DNH"],
    "DAMAN AND DIU": ["DD", "DAM"],
    "LAKSHADWEEP": ["LD", "LAK"],
    "ANDAMAN AND NICOBAR": ["AN", "A&N"],
    "PUDUCHERRY": ["PY", "PUD", "PONDICHERRY", "PONDY"],
}

# Major cities per state; they widen text variants but never scope a location
DEFAULT_STATE_CITIES: dict[str, list[str]] = {
    "KARNATAKA": ["BANGALORE", "BENGALURU", "MANGALORE"],
    "ANDHRA PRADESH": ["VISAKHAPATNAM", "VIJAYAWADA"],
    "TAMIL NADU": ["CHENNAI", "MADRAS"],
    "MAHARASHTRA": ["MUMBAI", "BOMBAY", "PUNE"],
    "KERALA": ["THIRUVANANTHAPURAM", "TRIVANDRUM"],
    "DELHI": ["NEW DELHI"],
    "WEST BENGAL": ["KOLKATA", "CALCUTTA"],
    "UTTAR PRADESH": ["LUCKNOW", "KANPUR"],
    "TELANGANA": ["HYDERABAD", "SECUNDERABAD"],
    "GUJARAT": ["AHMEDABAD", "SURAT"],
    "RAJASTHAN": ["JAIPUR", "JODHPUR"],
    "MADHYA PRADESH": ["BHOPAL", "INDORE"],
    "HARYANA": ["CHANDIGARH", "GURGAON"],
    "PUNJAB": ["CHANDIGARH", "AMRITSAR"],
    "BIHAR": ["PATNA", "GAYA"],
    "ORISSA": ["BHUBANESWAR"],
    "JHARKHAND": ["RANCHI", "JAMSHEDPUR"],
    "CHHATTISGARH": ["RAIPUR", "BILASPUR"],
    "ASSAM": ["GUWAHATI", "DIBRUGARH"],
    "MANIPUR": ["IMPHAL", "THOUBAL"],
    "MEGHALAYA": ["SHILLONG", "TURA"],
    "NAGALAND": ["KOHIMA", "DIMAPUR"],
    "TRIPURA": ["AGARTALA", "UDAIPUR"],
    "ARUNACHAL PRADESH": ["ITANAGAR", "NAHARLAGUN"],
    "MIZORAM": ["AIZAWL", "LUNGLEI"],
    "SIKKIM": ["GANGTOK", "NAMCHI"],
    "GOA": ["PANAJI", "MARGAO"],
    "UTTARAKHAND": ["DEHRADUN", "HARIDWAR"],
    "HIMACHAL PRADESH": ["SHIMLA", "MANALI"],
    "JAMMU AND KASHMIR": ["SRINAGAR", "JAMMU"],
    "LADAKH": ["LEH", "KARGIL"],
    "DADRA AND NAGAR HAVELI": ["SILVASSA"],
    "DAMAN AND DIU": ["DAMAN", "DIU"],
    "LAKSHADWEEP": ["KAVARATTI"],
    "ANDAMAN AND NICOBAR": ["PORT BLAIR"],
}


def _freeze(mapping: Mapping[str, set[str]]) -> Mapping[str, frozenset[str]]:
    return MappingProxyType({key: frozenset(values) for key, values in mapping.items()})


# ─────────────────────────────────────────────────────────────────────────────
# Lexicon
# ─────────────────────────────────────────────────────────────────────────────


class Lexicon:
    """
    Immutable abbreviation and state-synonym vocabulary.

    All keys and values are normalized (upper-case, single-spaced). The
    reverse abbreviation index is derived from the forward one, so for every
    abbreviation A and expansion e of A, ``abbreviations_for(e)`` contains A.

    Example:
        >>> lexicon = default_lexicon()
        >>> "GOVERNMENT" in lexicon.expansions("GOVT")
        True
        >>> "GOVT" in lexicon.abbreviations_for("GOVERNMENT")
        True
        >>> sorted(lexicon.canonical_states("BENGALURU"))
        ['KARNATAKA']
    """

    __slots__ = ("_abbreviations", "_reverse", "_states", "_state_aliases", "_city_states")

    def __init__(
        self,
        abbreviations: Mapping[str, Iterable[str]],
        state_synonyms: Mapping[str, Iterable[str]],
        state_cities: Optional[Mapping[str, Iterable[str]]] = None,
    ):
        forward: dict[str, set[str]] = defaultdict(set)
        reverse: dict[str, set[str]] = defaultdict(set)

        for abbreviation, expansions in abbreviations.items():
            key = normalize_name(abbreviation)
            if not key:
                continue
            for expansion in expansions:
                value = normalize_name(expansion)
                if not value or value == key:
                    continue
                forward[key].add(value)
                reverse[value].add(key)

        states: dict[str, set[str]] = defaultdict(set)
        aliases: dict[str, set[str]] = defaultdict(set)
        cities: dict[str, set[str]] = defaultdict(set)

        for mapping, index in ((state_synonyms, aliases), (state_cities or {}, cities)):
            for state, synonyms in mapping.items():
                canonical = normalize_name(state)
                if not canonical:
                    continue
                states[canonical]
                for synonym in synonyms:
                    alias = normalize_name(synonym)
                    if not alias or alias == canonical:
                        continue
                    states[canonical].add(alias)
                    index[alias].add(canonical)

        self._abbreviations = _freeze(forward)
        self._reverse = _freeze(reverse)
        self._states = _freeze(states)
        self._state_aliases = _freeze(aliases)
        self._city_states = _freeze(cities)

    # ── Abbreviations ────────────────────────────────────────────────────────

    @property
    def abbreviations(self) -> Mapping[str, frozenset[str]]:
        """Read-only abbreviation → expansions mapping."""
        return self._abbreviations

    def expansions(self, term: str) -> frozenset[str]:
        """Expansions registered for an abbreviation (empty if unknown)."""
        return self._abbreviations.get(normalize_name(term), frozenset())

    def abbreviations_for(self, expansion: str) -> frozenset[str]:
        """Abbreviations having this expansion (empty if unknown)."""
        return self._reverse.get(normalize_name(expansion), frozenset())

    def is_abbreviation(self, term: str) -> bool:
        return normalize_name(term) in self._abbreviations

    def iter_pairs(self) -> Iterator[tuple[str, str]]:
        """Yield every (abbreviation, expansion) pair."""
        for abbreviation in sorted(self._abbreviations):
            for expansion in sorted(self._abbreviations[abbreviation]):
                yield abbreviation, expansion

    # ── States ───────────────────────────────────────────────────────────────

    @property
    def state_names(self) -> frozenset[str]:
        """Canonical state names."""
        return frozenset(self._states)

    @property
    def state_synonyms(self) -> Mapping[str, frozenset[str]]:
        """Read-only canonical state → aliases mapping, cities included."""
        return self._states

    def canonical_states(self, term: str) -> frozenset[str]:
        """
        Canonical states a term refers to.

        A canonical name maps to itself; an alias or a city maps to every
        state that lists it (CHANDIGARH is both a territory and a city of two
        states).
        """
        key = normalize_name(term)
        found = self._state_aliases.get(key, frozenset()) | self._city_states.get(key, frozenset())
        if key in self._states:
            found = found | {key}
        return frozenset(found)

    def named_states(self, term: str) -> frozenset[str]:
        """
        States a term names directly: a canonical name or a state-level alias.

        Cities are not resolved, so "MANGALORE" names no state while "KA" and
        "KARNATAKA" both name KARNATAKA.
        """
        key = normalize_name(term)
        if key in self._states:
            return frozenset({key})
        return self._state_aliases.get(key, frozenset())

    def is_state_term(self, term: str) -> bool:
        """Whether a term is a canonical state, one of its aliases or a listed city."""
        key = normalize_name(term)
        return key in self._states or key in self._state_aliases or key in self._city_states

    def __repr__(self) -> str:
        return (
            f"Lexicon(abbreviations={len(self._abbreviations)}, "
            f"states={len(self._states)})"
        )


@lru_cache(maxsize=1)
def default_lexicon() -> Lexicon:
    """Get the shared lexicon built from the default vocabulary."""
    return Lexicon(DEFAULT_ABBREVIATIONS, DEFAULT_STATE_SYNONYMS, DEFAULT_STATE_CITIES)
