"""
Reference Data Module - Cached filter drop-down lists.
======================================================

Streams, states and course types change only when the catalog is rebuilt,
so they are cached in a cachetools.TTLCache (default five minutes).

Concurrent refreshes are allowed; the last one to finish wins.
"""

import threading
from collections import Counter
from typing import Callable, Optional, TypeVar

from cachetools import TTLCache

from medcollege_finder.catalog.store import Catalog
from medcollege_finder.shared.logging import get_logger
from medcollege_finder.shared.schemas import ReferenceItem
from medcollege_finder.shared.utils import safe_int, safe_str

logger = get_logger(__name__)

T = TypeVar("T")


class ReferenceData:
    """
    Read-through cache over the catalog's reference lists.

    Example:
        >>> reference = ReferenceData(catalog, classify=course_type_code)
        >>> [item.value for item in reference.streams()]
        ['dental', 'dnb', 'medical']
    """

    def __init__(
        self,
        catalog: Catalog,
        classify: Callable[[str], Optional[str]],
        ttl: float = 300.0,
        max_size: int = 64,
    ):
        """
        Args:
            catalog: Catalog to read from
            classify: Maps a course name to its course-family code (or None)
            ttl: Seconds a list stays cached
            max_size: Maximum cached lists
        """
        self._catalog = catalog
        self._classify = classify
        self._cache: TTLCache[str, list[ReferenceItem]] = TTLCache(maxsize=max_size, ttl=ttl)
        self._lock = threading.Lock()

    def _get_or_fetch(self, key: str, fetch: Callable[[], T]) -> T:
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached

        value = fetch()
        with self._lock:
            self._cache[key] = value
        logger.debug(f"Refreshed reference list '{key}' ({len(value)} items)")
        return value

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def streams(self) -> list[ReferenceItem]:
        """Available streams with college counts, alphabetical."""

        def fetch() -> list[ReferenceItem]:
            return [
                ReferenceItem(
                    value=safe_str(row["value"]),
                    label=safe_str(row["value"]).upper(),
                    count=safe_int(row["count"]),
                )
                for row in self._catalog.stream_counts()
            ]

        return self._get_or_fetch("streams", fetch)

    def states(self) -> list[ReferenceItem]:
        """Available states with college counts, alphabetical, upper-case labels."""

        def fetch() -> list[ReferenceItem]:
            return [
                ReferenceItem(
                    value=safe_str(row["value"]),
                    label=safe_str(row["value"]).upper(),
                    count=safe_int(row["count"]),
                )
                for row in self._catalog.state_counts()
            ]

        return self._get_or_fetch("states", fetch)

    def course_types(self, stream: Optional[str] = None) -> list[ReferenceItem]:
        """
        Course families offered, counted by distinct course name.

        Course names with no recognizable family are left out.
        """

        def fetch() -> list[ReferenceItem]:
            counts: Counter[tuple[str, str]] = Counter()
            for course in self._catalog.courses_by_stream(stream):
                code = self._classify(course["name"])
                if code is not None:
                    counts[(code, course["stream"])] += 1
            return [
                ReferenceItem(value=value, label=value, count=count, stream=course_stream)
                for (value, course_stream), count in sorted(counts.items())
            ]

        return self._get_or_fetch(f"courses:{stream or '*'}", fetch)
