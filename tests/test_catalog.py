"""
Tests for catalog access.

Tests cover:
- Partition ordering and stream narrowing
- Narrowing filters and LIKE escaping
- Aggregate lookups (by id, type, state, stream)
- Statistics and error wrapping
- Reference-list caching
"""

import sqlite3
from unittest.mock import Mock

import pytest


class TestCatalogPartitions:
    """Tests for partition selection and reads."""

    def test_partition_order(self, catalog):
        """Test partitions come back in fixed medical, dental, dnb order."""
        assert [p.name for p in catalog.partitions_for(None)] == ["medical", "dental", "dnb"]
        assert [p.name for p in catalog.partitions_for("dnb")] == ["dnb"]
        assert catalog.partitions_for("veterinary") == []

    def test_unconfigured_partition(self, connections):
        """Test partitions left out are not searched."""
        from medcollege_finder.catalog.store import Catalog
        from medcollege_finder.shared.exceptions import CatalogError

        catalog = Catalog.from_connections(medical=connections["medical"])
        assert catalog.partition_names == ["medical"]
        assert not catalog.has_aggregate

        with pytest.raises(CatalogError):
            catalog.partition("dental")

    def test_unknown_partition_name(self):
        """Test only the three known partitions can be created."""
        from medcollege_finder.catalog.store import CatalogPartition
        from medcollege_finder.shared.exceptions import ConfigurationError

        with pytest.raises(ConfigurationError):
            CatalogPartition("veterinary", sqlite3.connect(":memory:"))

    def test_select_with_narrowing(self, catalog):
        """Test course and state filters AND onto the predicate."""
        from medcollege_finder.shared.schemas import SearchFilters

        medical = catalog.partition("medical")
        rows = medical.select("1 = 1", [], SearchFilters(state="karnataka", course="mbbs"))
        assert [row["id"] for row in rows] == [1, 3]

    def test_management_column_alias(self, catalog):
        """Test DNB hospital_type is exposed as management_type."""
        dnb = catalog.partition("dnb")
        rows = dnb.select("UPPER({management}) = ?", ["TRUST"])
        assert [row["college_name"] for row in rows] == ["Manipal Hospital"]
        assert rows[0]["management_type"] == "Trust"

    def test_row_cap(self, catalog):
        """Test the limit caps rows in id order."""
        rows = catalog.partition("medical").select("1 = 1", [], limit=2)
        assert [row["id"] for row in rows] == [1, 2]

    def test_exists(self, catalog):
        """Test existence probes."""
        medical = catalog.partition("medical")
        assert medical.exists("city = ?", ["Mangalore"])
        assert not medical.exists("city = ?", ["Chennai"])

    def test_missing_table_raises_catalog_error(self):
        """Test sqlite errors are wrapped with the partition name."""
        from medcollege_finder.catalog.store import CatalogPartition
        from medcollege_finder.shared.exceptions import CatalogError

        partition = CatalogPartition("dnb", sqlite3.connect(":memory:", check_same_thread=False))
        with pytest.raises(CatalogError) as excinfo:
            partition.select("1 = 1", [])

        assert excinfo.value.partition == "dnb"
        assert str(excinfo.value).startswith("[dnb]")


class TestCatalogLookups:
    """Tests for aggregate-table lookups."""

    def test_get_college(self, catalog):
        """Test a college comes back with its courses and parsed JSON fields."""
        detail = catalog.get_college(101)

        assert detail is not None
        assert detail.name == "AJ Institute of Medical Sciences"
        assert detail.type == "medical"
        assert [c.name for c in detail.courses] == ["MBBS", "MD General Medicine"]
        assert detail.courses[0].quota_details == {"general": 100, "management": 50}
        assert detail.courses[0].cutoff_ranks == {"round1": 1500}
        assert detail.courses[1].quota_details is None

    def test_get_college_unknown(self, catalog):
        """Test unknown ids return None."""
        assert catalog.get_college(999) is None

    def test_colleges_by_type(self, catalog):
        """Test colleges of one type, by name."""
        names = [c.name for c in catalog.colleges_by_type("dnb")]
        assert names == ["Apollo Hospitals", "Manipal Hospital", "Narayana Health City"]

    def test_colleges_by_state(self, catalog):
        """Test colleges of one state, by name."""
        names = [c.name for c in catalog.colleges_by_state("Kerala")]
        assert names == ["Government Dental College", "Government Medical College"]

    def test_courses_by_stream(self, catalog):
        """Test distinct course names per stream."""
        assert catalog.courses_by_stream("dental") == [
            {"name": "BDS", "stream": "dental"},
            {"name": "MDS Orthodontics", "stream": "dental"},
        ]
        assert len(catalog.courses_by_stream()) == 8

    def test_match_escapes_wildcards(self, catalog):
        """Test LIKE wildcards in user text match literally."""
        assert catalog.match_colleges("A_J", None, 10) == []
        assert catalog.match_colleges("%", None, 10) == []

    def test_aggregate_not_configured(self, connections):
        """Test lookups fail cleanly without the aggregate database."""
        from medcollege_finder.catalog.store import Catalog
        from medcollege_finder.shared.exceptions import CatalogError

        catalog = Catalog.from_connections(medical=connections["medical"])
        with pytest.raises(CatalogError):
            catalog.get_college(101)


class TestCatalogStats:
    """Tests for catalog statistics."""

    def test_stats(self, catalog):
        """Test distinct colleges and seats per partition."""
        stats = catalog.stats()
        by_type = {s.type: (s.count, s.seats) for s in stats.by_type}

        assert by_type == {"medical": (3, 640), "dental": (2, 156), "dnb": (3, 15)}
        assert stats.total_colleges == 8
        assert stats.total_seats == 811
        assert stats.warnings == []

    def test_failed_partition_becomes_warning(self, connections):
        """Test one broken partition does not break statistics."""
        from medcollege_finder.catalog.store import Catalog

        catalog = Catalog.from_connections(
            medical=connections["medical"],
            dnb=sqlite3.connect(":memory:", check_same_thread=False),
        )
        stats = catalog.stats()

        assert [s.type for s in stats.by_type] == ["medical"]
        assert stats.total_colleges == 3
        assert len(stats.warnings) == 1
        assert "dnb" in stats.warnings[0]


class TestCatalogFiles:
    """Tests for opening catalog database files."""

    def test_missing_files(self, temp_dir):
        """Test missing database files raise ConfigurationError."""
        from medcollege_finder.catalog.store import Catalog
        from medcollege_finder.shared.exceptions import ConfigurationError

        with pytest.raises(ConfigurationError, match="not found"):
            Catalog.from_paths({"medical": temp_dir / "missing.db"})

    def test_open_read_only(self, temp_dir):
        """Test database files open read-only and are searchable."""
        from medcollege_finder.catalog.store import Catalog
        from medcollege_finder.shared.exceptions import CatalogError

        path = temp_dir / "medical.db"
        conn = sqlite3.connect(path)
        conn.execute(
            "CREATE TABLE medical_courses (id INTEGER PRIMARY KEY, college_id INTEGER, "
            "college_name TEXT, state TEXT, city TEXT, establishment_year INTEGER, "
            "management_type TEXT, university TEXT, course_name TEXT, course_type TEXT, "
            "total_seats INTEGER, quota_type TEXT, fee_structure TEXT)"
        )
        conn.execute(
            "INSERT INTO medical_courses (id, college_name, course_name, total_seats) "
            "VALUES (1, 'Test Medical College', 'MBBS', 100)"
        )
        conn.commit()
        conn.close()

        catalog = Catalog.from_paths({"medical": path})
        try:
            partition = catalog.partition("medical")
            assert partition.stats().count == 1

            # Writes are rejected on a read-only handle
            with pytest.raises(CatalogError):
                partition._db.fetch_all("DELETE FROM medical_courses")
        finally:
            catalog.close()


class TestReferenceData:
    """Tests for cached reference lists."""

    def test_streams(self, catalog):
        """Test stream list with college counts."""
        from medcollege_finder.catalog.reference import ReferenceData
        from medcollege_finder.search.query_analyzer import course_type_code

        reference = ReferenceData(catalog, classify=course_type_code)
        items = reference.streams()

        assert [(i.value, i.label, i.count) for i in items] == [
            ("dental", "DENTAL", 2),
            ("dnb", "DNB", 3),
            ("medical", "MEDICAL", 3),
        ]

    def test_states(self, catalog):
        """Test state list with upper-case labels."""
        from medcollege_finder.catalog.reference import ReferenceData
        from medcollege_finder.search.query_analyzer import course_type_code

        reference = ReferenceData(catalog, classify=course_type_code)
        items = reference.states()

        assert [(i.value, i.label, i.count) for i in items] == [
            ("Karnataka", "KARNATAKA", 5),
            ("Kerala", "KERALA", 2),
            ("Tamil Nadu", "TAMIL NADU", 1),
        ]

    def test_course_types(self, catalog):
        """Test course families derived from course names."""
        from medcollege_finder.catalog.reference import ReferenceData
        from medcollege_finder.search.query_analyzer import course_type_code

        reference = ReferenceData(catalog, classify=course_type_code)

        assert [(i.value, i.stream, i.count) for i in reference.course_types()] == [
            ("BDS", "dental", 1),
            ("DNB", "dnb", 3),
            ("MBBS", "medical", 1),
            ("MD", "medical", 1),
            ("MDS", "dental", 1),
            ("MS", "medical", 1),
        ]
        assert [i.value for i in reference.course_types("dental")] == ["BDS", "MDS"]

    def test_cached_until_cleared(self):
        """Test lists are fetched once within the TTL."""
        from medcollege_finder.catalog.reference import ReferenceData

        catalog = Mock()
        catalog.stream_counts.return_value = [{"value": "medical", "count": 3}]
        reference = ReferenceData(catalog, classify=lambda name: None)

        reference.streams()
        reference.streams()
        assert catalog.stream_counts.call_count == 1

        reference.clear()
        reference.streams()
        assert catalog.stream_counts.call_count == 2

    def test_failed_fetch_not_cached(self):
        """Test a failing fetch propagates and is retried next time."""
        from medcollege_finder.catalog.reference import ReferenceData
        from medcollege_finder.shared.exceptions import CatalogError

        catalog = Mock()
        catalog.state_counts.side_effect = [
            CatalogError("boom", partition="colleges"),
            [{"value": "Kerala", "count": 2}],
        ]
        reference = ReferenceData(catalog, classify=lambda name: None)

        with pytest.raises(CatalogError):
            reference.states()
        assert [i.value for i in reference.states()] == ["Kerala"]
