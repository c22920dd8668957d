"""
Variations Module - Query variant generation.
=============================================

Expands a query into a deterministic, ordered set of alternative spellings
that retrieval runs in addition to the original. Never touches the catalog.
"""

from typing import Iterable, Optional

from medcollege_finder.search.lexicon import Lexicon, default_lexicon
from medcollege_finder.shared.utils import collapse_whitespace, normalize_query

WORD_SUFFIXES = ("S", "ES", "ING", "ED")
MIN_TRIM_LENGTH = 3
MIN_WORD_LENGTH = 3


class _OrderedVariants:
    """Insertion-ordered set of non-empty variants."""

    def __init__(self):
        self._items: dict[str, None] = {}

    def add(self, variant: str) -> None:
        variant = variant.strip()
        if variant:
            self._items.setdefault(variant, None)

    def extend(self, variants: Iterable[str]) -> None:
        for variant in variants:
            self.add(variant)

    def as_tuple(self) -> tuple[str, ...]:
        return tuple(self._items)


def generate_variations(query: Optional[str], lexicon: Optional[Lexicon] = None) -> tuple[str, ...]:
    """
    Generate search variants of a query.

    Rules, applied additively after the normalized query itself:

    1. Known abbreviation → its expansions
    2. Known expansion → its abbreviations and their other expansions
    3. State synonym → canonical state name(s)
    4. Longer than two characters → query minus last / first character
    5. Each word longer than two characters → the word, and the word + S/ES/ING/ED
    6. Dots → removed / replaced by spaces; spaces → removed / replaced by dots

    Lexicon lookups are iterated in sorted order so the output is stable.

    Args:
        query: Raw query text
        lexicon: Vocabulary to use (defaults to the shared lexicon)

    Returns:
        Deduplicated variants, normalized original first. Empty for a
        blank query.

    Example:
        >>> generate_variations("govt")[:3]
        ('GOVT', 'GOVERNMENT', 'GOVERNMENTAL')
    """
    lexicon = lexicon or default_lexicon()
    normalized = normalize_query(query)
    if not normalized:
        return ()

    variants = _OrderedVariants()
    variants.add(normalized)

    # 1. abbreviation → expansions
    variants.extend(sorted(lexicon.expansions(normalized)))

    # 2. expansion → abbreviations (+ sibling expansions)
    for abbreviation in sorted(lexicon.abbreviations_for(normalized)):
        variants.add(abbreviation)
        variants.extend(sorted(lexicon.expansions(abbreviation)))

    # 3. state synonym → canonical state
    variants.extend(sorted(lexicon.canonical_states(normalized)))

    # 4. edge trims
    if len(normalized) >= MIN_TRIM_LENGTH:
        variants.add(normalized[:-1])
        variants.add(normalized[1:])

    # 5. word forms
    for word in normalized.split():
        if len(word) >= MIN_WORD_LENGTH:
            variants.add(word)
            variants.extend(word + suffix for suffix in WORD_SUFFIXES)

    # 6. punctuation
    if "." in normalized:
        variants.add(normalized.replace(".", ""))
        variants.add(collapse_whitespace(normalized.replace(".", " ")))
    if " " in normalized:
        words = normalized.split()
        variants.add("".join(words))
        variants.add(".".join(words))

    return variants.as_tuple()
