"""
Catalog Store Module - Read-only access to the college catalog.
===============================================================

Wraps the sqlite3 handles that make up the catalog:
- Three partition tables (medical, dental, DNB) with one row per
  (college, course), searched by the retrieval strategies
- The aggregate `colleges` / `courses` tables used for suggestions,
  lookups by id/type/state and reference lists

Each handle is opened once and shared across worker threads; every
statement runs under the handle's lock. sqlite3 errors are re-raised as
CatalogError carrying the partition name.
"""

import sqlite3
import threading
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from medcollege_finder.shared.exceptions import CatalogError, ConfigurationError
from medcollege_finder.shared.logging import get_logger
from medcollege_finder.shared.schemas import (
    CatalogStats,
    CollegeDetail,
    Course,
    SearchFilters,
    Stream,
    StreamStats,
)
from medcollege_finder.shared.utils import (
    LIKE_ESCAPE,
    contains_pattern,
    optional_int,
    parse_json_field,
    safe_int,
    safe_str,
)

logger = get_logger(__name__)

PARTITION_ORDER: tuple[str, ...] = (Stream.MEDICAL.value, Stream.DENTAL.value, Stream.DNB.value)

PARTITION_TABLES: dict[str, str] = {
    Stream.MEDICAL.value: "medical_courses",
    Stream.DENTAL.value: "dental_courses",
    Stream.DNB.value: "dnb_courses",
}

# DNB rows describe hospitals, whose ownership column is named differently
MANAGEMENT_COLUMNS: dict[str, str] = {
    Stream.MEDICAL.value: "management_type",
    Stream.DENTAL.value: "management_type",
    Stream.DNB.value: "hospital_type",
}

AGGREGATE = "colleges"

_ESCAPE_CLAUSE = f"ESCAPE '{LIKE_ESCAPE}'"


def _open_readonly(path: Path) -> sqlite3.Connection:
    return sqlite3.connect(f"file:{path}?mode=ro", uri=True, check_same_thread=False)


class _LockedConnection:
    """A sqlite3 connection whose statements are serialized by a lock."""

    def __init__(self, name: str, connection: sqlite3.Connection):
        self.name = name
        self._connection = connection
        self._lock = threading.Lock()

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        try:
            with self._lock:
                cursor = self._connection.cursor()
                cursor.row_factory = sqlite3.Row
                try:
                    rows = cursor.execute(sql, tuple(params)).fetchall()
                finally:
                    cursor.close()
        except sqlite3.Error as e:
            raise CatalogError(f"Query failed: {e}", partition=self.name) from e
        return [dict(row) for row in rows]

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[dict[str, Any]]:
        rows = self.fetch_all(sql, params)
        return rows[0] if rows else None

    def close(self) -> None:
        with self._lock:
            self._connection.close()


# ─────────────────────────────────────────────────────────────────────────────
# Partition
# ─────────────────────────────────────────────────────────────────────────────


class CatalogPartition:
    """
    One partition table (medical, dental or DNB).

    Rows are returned as dicts with uniform keys regardless of partition:
    id, college_id, college_name, state, city, establishment_year,
    management_type, university, course_name, course_type, total_seats,
    quota_type, fee_structure.
    """

    def __init__(self, name: str, connection: sqlite3.Connection):
        if name not in PARTITION_TABLES:
            raise ConfigurationError(f"Unknown catalog partition: {name}")
        self.name = name
        self.table = PARTITION_TABLES[name]
        self.management_column = MANAGEMENT_COLUMNS[name]
        self._db = _LockedConnection(name, connection)

    @property
    def select_columns(self) -> str:
        return (
            "id, college_id, college_name, state, city, establishment_year, "
            f"{self.management_column} AS management_type, university, "
            "course_name, course_type, total_seats, quota_type, fee_structure"
        )

    @staticmethod
    def narrowing_clause(filters: Optional[SearchFilters]) -> tuple[str, list[Any]]:
        """SQL fragment and params for the course/state AND constraints."""
        sql = ""
        params: list[Any] = []
        if filters is None:
            return sql, params
        if filters.course:
            sql += f" AND course_name LIKE ? {_ESCAPE_CLAUSE}"
            params.append(contains_pattern(filters.course))
        if filters.state:
            sql += " AND UPPER(state) = UPPER(?)"
            params.append(filters.state)
        return sql, params

    def select(
        self,
        where: str,
        params: Sequence[Any],
        filters: Optional[SearchFilters] = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """
        Select rows matching a strategy predicate plus the narrowing filters.

        Args:
            where: Boolean SQL predicate over partition columns (the
                management column may be referenced as `{management}`)
            params: Parameters for the predicate
            filters: Optional course/state narrowing
            limit: Row cap

        Returns:
            Rows in catalog id order
        """
        narrowing, narrowing_params = self.narrowing_clause(filters)
        predicate = where.format(management=self.management_column)
        sql = (
            f"SELECT {self.select_columns} FROM {self.table} "
            f"WHERE ({predicate}){narrowing} ORDER BY id LIMIT ?"
        )
        rows = self._db.fetch_all(sql, [*params, *narrowing_params, limit])
        logger.debug(f"[{self.name}] {len(rows)} rows (limit {limit})")
        return rows

    def exists(self, where: str, params: Sequence[Any]) -> bool:
        """Whether any row matches a predicate, ignoring narrowing filters."""
        predicate = where.format(management=self.management_column)
        sql = f"SELECT 1 FROM {self.table} WHERE ({predicate}) LIMIT 1"
        return self._db.fetch_one(sql, params) is not None

    def stats(self) -> StreamStats:
        row = self._db.fetch_one(
            f"SELECT COUNT(DISTINCT college_name) AS count, "
            f"COALESCE(SUM(total_seats), 0) AS seats FROM {self.table}"
        ) or {}
        return StreamStats(
            type=self.name,
            count=safe_int(row.get("count")),
            seats=safe_int(row.get("seats")),
        )

    def close(self) -> None:
        self._db.close()

    def __repr__(self) -> str:
        return f"CatalogPartition(name={self.name!r}, table={self.table!r})"


# ─────────────────────────────────────────────────────────────────────────────
# Catalog
# ─────────────────────────────────────────────────────────────────────────────


class Catalog:
    """
    The full catalog: partitions plus the aggregate college database.

    Example:
        >>> catalog = Catalog.from_connections(medical=med, dental=den, dnb=dnb, colleges=agg)
        >>> [p.name for p in catalog.partitions_for(None)]
        ['medical', 'dental', 'dnb']
    """

    def __init__(
        self,
        partitions: Mapping[str, CatalogPartition],
        colleges: Optional[sqlite3.Connection] = None,
    ):
        self._partitions = dict(partitions)
        self._colleges = _LockedConnection(AGGREGATE, colleges) if colleges is not None else None

    @classmethod
    def from_connections(
        cls,
        medical: Optional[sqlite3.Connection] = None,
        dental: Optional[sqlite3.Connection] = None,
        dnb: Optional[sqlite3.Connection] = None,
        colleges: Optional[sqlite3.Connection] = None,
    ) -> "Catalog":
        """Build a catalog from already-open connections."""
        handles = {"medical": medical, "dental": dental, "dnb": dnb}
        partitions = {
            name: CatalogPartition(name, conn) for name, conn in handles.items() if conn is not None
        }
        return cls(partitions, colleges)

    @classmethod
    def from_paths(cls, paths: Mapping[str, Path]) -> "Catalog":
        """
        Open the catalog read-only from database files.

        Raises:
            ConfigurationError: If any database file is missing
        """
        missing = [str(path) for path in paths.values() if not Path(path).exists()]
        if missing:
            raise ConfigurationError(f"Catalog database(s) not found: {', '.join(missing)}")

        connections = {name: _open_readonly(Path(path)) for name, path in paths.items()}
        logger.info(f"Opened catalog: {', '.join(sorted(connections))}")
        return cls.from_connections(**connections)

    # ── Partitions ───────────────────────────────────────────────────────────

    @property
    def partition_names(self) -> list[str]:
        return [name for name in PARTITION_ORDER if name in self._partitions]

    def partition(self, name: str) -> CatalogPartition:
        try:
            return self._partitions[name]
        except KeyError:
            raise CatalogError("Partition not configured", partition=name) from None

    def partitions_for(self, stream: Optional[str]) -> list[CatalogPartition]:
        """Partitions to search, in fixed order, narrowed by stream."""
        return [
            self._partitions[name]
            for name in PARTITION_ORDER
            if name in self._partitions and (stream is None or stream == name)
        ]

    # ── Aggregate tables ─────────────────────────────────────────────────────

    @property
    def has_aggregate(self) -> bool:
        return self._colleges is not None

    def _aggregate(self) -> _LockedConnection:
        if self._colleges is None:
            raise CatalogError("Aggregate college database not configured", partition=AGGREGATE)
        return self._colleges

    def _stream_clause(self, stream: Optional[str], alias: str = "c") -> tuple[str, list[Any]]:
        if not stream:
            return "", []
        return f" AND {alias}.type = ?", [stream]

    def match_colleges(
        self, text: str, stream: Optional[str], limit: int
    ) -> list[dict[str, Any]]:
        """Colleges whose name contains text: rows of value, state, stream."""
        stream_sql, stream_params = self._stream_clause(stream)
        return self._aggregate().fetch_all(
            "SELECT c.name AS value, c.state AS state, c.type AS stream "
            f"FROM colleges c WHERE c.name LIKE ? {_ESCAPE_CLAUSE}{stream_sql} "
            "ORDER BY c.name LIMIT ?",
            [contains_pattern(text), *stream_params, limit],
        )

    def match_courses(
        self, text: str, stream: Optional[str], limit: int
    ) -> list[dict[str, Any]]:
        """Distinct course names containing text."""
        stream_sql, stream_params = self._stream_clause(stream)
        return self._aggregate().fetch_all(
            "SELECT co.name AS value, MIN(c.state) AS state, MIN(c.type) AS stream "
            "FROM courses co JOIN colleges c ON c.id = co.college_id "
            f"WHERE co.name LIKE ? {_ESCAPE_CLAUSE}{stream_sql} "
            "GROUP BY co.name ORDER BY co.name LIMIT ?",
            [contains_pattern(text), *stream_params, limit],
        )

    def match_cities(
        self, text: str, stream: Optional[str], limit: int
    ) -> list[dict[str, Any]]:
        """Distinct cities containing text."""
        stream_sql, stream_params = self._stream_clause(stream)
        return self._aggregate().fetch_all(
            "SELECT c.city AS value, MIN(c.state) AS state, MIN(c.type) AS stream "
            f"FROM colleges c WHERE c.city LIKE ? {_ESCAPE_CLAUSE} AND c.city != ''{stream_sql} "
            "GROUP BY c.city ORDER BY c.city LIMIT ?",
            [contains_pattern(text), *stream_params, limit],
        )

    def match_states(
        self, text: str, stream: Optional[str], limit: int
    ) -> list[dict[str, Any]]:
        """Distinct states containing text."""
        stream_sql, stream_params = self._stream_clause(stream)
        return self._aggregate().fetch_all(
            "SELECT c.state AS value, c.state AS state, MIN(c.type) AS stream "
            f"FROM colleges c WHERE c.state LIKE ? {_ESCAPE_CLAUSE} AND c.state != ''{stream_sql} "
            "GROUP BY c.state ORDER BY c.state LIMIT ?",
            [contains_pattern(text), *stream_params, limit],
        )

    def get_college(self, college_id: int) -> Optional[CollegeDetail]:
        """A college with its courses, or None if the id is unknown."""
        row = self._aggregate().fetch_one("SELECT * FROM colleges WHERE id = ?", [college_id])
        if row is None:
            return None
        return self._attach_courses([row])[0]

    def colleges_by_type(self, college_type: str, limit: int = 100) -> list[CollegeDetail]:
        rows = self._aggregate().fetch_all(
            "SELECT * FROM colleges WHERE type = ? ORDER BY name, id LIMIT ?",
            [college_type, limit],
        )
        return self._attach_courses(rows)

    def colleges_by_state(self, state: str, limit: int = 100) -> list[CollegeDetail]:
        rows = self._aggregate().fetch_all(
            f"SELECT * FROM colleges WHERE state LIKE ? {_ESCAPE_CLAUSE} ORDER BY name, id LIMIT ?",
            [contains_pattern(state), limit],
        )
        return self._attach_courses(rows)

    def courses_by_stream(self, stream: Optional[str] = None) -> list[dict[str, str]]:
        """Distinct (course name, stream) pairs, optionally for one stream."""
        stream_sql, stream_params = self._stream_clause(stream)
        rows = self._aggregate().fetch_all(
            "SELECT DISTINCT co.name AS name, c.type AS stream "
            "FROM courses co JOIN colleges c ON c.id = co.college_id "
            f"WHERE co.name IS NOT NULL AND co.name != ''{stream_sql} "
            "ORDER BY c.type, co.name",
            stream_params,
        )
        return [{"name": safe_str(r["name"]), "stream": safe_str(r["stream"])} for r in rows]

    def stream_counts(self) -> list[dict[str, Any]]:
        return self._aggregate().fetch_all(
            "SELECT type AS value, COUNT(*) AS count FROM colleges GROUP BY type ORDER BY type"
        )

    def state_counts(self) -> list[dict[str, Any]]:
        return self._aggregate().fetch_all(
            "SELECT state AS value, COUNT(*) AS count FROM colleges "
            "WHERE state IS NOT NULL AND state != '' GROUP BY state ORDER BY state"
        )

    def _attach_courses(self, college_rows: list[dict[str, Any]]) -> list[CollegeDetail]:
        if not college_rows:
            return []

        ids = [row["id"] for row in college_rows]
        placeholders = ", ".join("?" for _ in ids)
        course_rows = self._aggregate().fetch_all(
            f"SELECT * FROM courses WHERE college_id IN ({placeholders}) ORDER BY college_id, id",
            ids,
        )

        courses_by_college: dict[int, list[Course]] = {}
        for row in course_rows:
            courses_by_college.setdefault(row["college_id"], []).append(
                Course(
                    id=row["id"],
                    college_id=row["college_id"],
                    name=safe_str(row.get("name")),
                    course_type=safe_str(row.get("course_type")),
                    seats=safe_int(row.get("seats")),
                    quota_details=parse_json_field(row.get("quota_details")),
                    cutoff_ranks=parse_json_field(row.get("cutoff_ranks")),
                    fees_structure=parse_json_field(row.get("fees_structure")),
                )
            )

        return [
            CollegeDetail(
                id=row["id"],
                name=safe_str(row.get("name")),
                normalized_name=safe_str(row.get("normalized_name")),
                state=safe_str(row.get("state")),
                city=safe_str(row.get("city")),
                type=row.get("type"),
                establishment_year=optional_int(row.get("establishment_year")),
                management_type=safe_str(row.get("management_type")),
                university=safe_str(row.get("university")),
                total_courses=safe_int(row.get("total_courses")),
                total_seats=safe_int(row.get("total_seats")),
                courses=courses_by_college.get(row["id"], []),
            )
            for row in college_rows
        ]

    # ── Statistics ───────────────────────────────────────────────────────────

    def stats(self) -> CatalogStats:
        """Distinct-college and seat totals per partition; failures become warnings."""
        by_type: list[StreamStats] = []
        warnings: list[str] = []

        for partition in self.partitions_for(None):
            try:
                by_type.append(partition.stats())
            except CatalogError as e:
                logger.warning(f"Stats unavailable: {e}")
                warnings.append(str(e))

        return CatalogStats(
            total_colleges=sum(s.count for s in by_type),
            total_seats=sum(s.seats for s in by_type),
            by_type=by_type,
            warnings=warnings,
        )

    def close(self) -> None:
        """Close every handle."""
        for partition in self._partitions.values():
            partition.close()
        if self._colleges is not None:
            self._colleges.close()
        logger.debug("Catalog closed")
