"""
Pytest Configuration and Fixtures.
===================================

Shared fixtures for all test modules:
- In-memory sqlite catalog (medical, dental, DNB partitions + aggregate tables)
- Engines over the catalog (default, no short-circuit, failing partition)
- Candidate / ScoredResult factories
- Configuration overrides
"""

import sqlite3
import tempfile
from pathlib import Path
from typing import Generator

import pytest


# ─────────────────────────────────────────────────────────────────────────────
# Catalog Data
# ─────────────────────────────────────────────────────────────────────────────

PARTITION_SCHEMA = """
CREATE TABLE {table} (
    id INTEGER PRIMARY KEY,
    college_id INTEGER,
    college_name TEXT,
    state TEXT,
    city TEXT,
    establishment_year INTEGER,
    {management} TEXT,
    university TEXT,
    course_name TEXT,
    course_type TEXT,
    total_seats INTEGER,
    quota_type TEXT,
    fee_structure TEXT
)
"""

# (id, college_id, college_name, state, city, year, management, university,
#  course_name, course_type, seats, quota, fees)
MEDICAL_ROWS = [
    (1, 101, "AJ Institute of Medical Sciences", "Karnataka", "Mangalore", 2002, "Private",
     "RGUHS", "MBBS", "UG", 150, '{"general": 100, "management": 50}', '{"annual": 1200000}'),
    (2, 101, "AJ Institute of Medical Sciences", "Karnataka", "Mangalore", 2002, "Private",
     "RGUHS", "MD General Medicine", "PG", 8, None, None),
    (3, 102, "Bangalore Medical College", "Karnataka", "Bangalore", 1955, "Government",
     "RGUHS", "MBBS", "UG", 250, None, None),
    (4, 102, "Bangalore Medical College", "Karnataka", "Bangalore", 1955, "Government",
     "RGUHS", "MS General Surgery", "PG", 20, None, None),
    (5, 103, "Government Medical College", "Kerala", "Thiruvananthapuram", 1951, "Government",
     "KUHS", "MBBS", "UG", 200, None, None),
    (6, 103, "Government Medical College", "Kerala", "Thiruvananthapuram", 1951, "Government",
     "KUHS", "MD General Medicine", "PG", 12, None, None),
]

DENTAL_ROWS = [
    (1, 201, "A.J. Institute of Dental Sciences", "Karnataka", "Mangalore", 2005, "Private",
     "RGUHS", "BDS", "UG", 100, None, None),
    (2, 201, "A.J. Institute of Dental Sciences", "Karnataka", "Mangalore", 2005, "Private",
     "RGUHS", "MDS Orthodontics", "PG", 6, None, None),
    (3, 202, "Government Dental College", "Kerala", "Kozhikode", 1975, "Government",
     "KUHS", "BDS", "UG", 50, None, None),
]

DNB_ROWS = [
    (1, 301, "Narayana Health City", "Karnataka", "Bangalore", 2001, "Private",
     "NBEMS", "DNB General Medicine", "PG", 4, None, None),
    (2, 301, "Narayana Health City", "Karnataka", "Bangalore", 2001, "Private",
     "NBEMS", "DNB Orthopaedics", "PG", 2, None, None),
    (3, 302, "Apollo Hospitals", "Tamil Nadu", "Chennai", 1983, "Private",
     "NBEMS", "DNB General Medicine", "PG", 6, None, None),
    (4, 303, "Manipal Hospital", "Karnataka", "Bangalore", 1991, "Trust",
     "NBEMS", "DNB Family Medicine", "PG", 3, None, None),
]

AGGREGATE_SCHEMA = """
CREATE TABLE colleges (
    id INTEGER PRIMARY KEY,
    name TEXT,
    normalized_name TEXT,
    state TEXT,
    city TEXT,
    type TEXT,
    establishment_year INTEGER,
    management_type TEXT,
    university TEXT,
    total_courses INTEGER,
    total_seats INTEGER
);
CREATE TABLE courses (
    id INTEGER PRIMARY KEY,
    college_id INTEGER REFERENCES colleges(id),
    name TEXT,
    course_type TEXT,
    seats INTEGER,
    quota_details TEXT,
    cutoff_ranks TEXT,
    fees_structure TEXT
);
"""


def _partition_connection(table: str, management: str, rows: list) -> sqlite3.Connection:
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.execute(PARTITION_SCHEMA.format(table=table, management=management))
    conn.executemany(f"INSERT INTO {table} VALUES ({', '.join('?' * 13)})", rows)
    conn.commit()
    return conn


def _aggregate_connection(with_courses: bool = True) -> sqlite3.Connection:
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.executescript(AGGREGATE_SCHEMA)

    partitions = (("medical", MEDICAL_ROWS), ("dental", DENTAL_ROWS), ("dnb", DNB_ROWS))
    colleges: dict[int, list] = {}
    course_id = 0
    for stream, rows in partitions:
        for row in rows:
            college_id, name, state, city, year, management, university = row[1:8]
            entry = colleges.setdefault(
                college_id,
                [college_id, name, name.upper(), state, city, stream, year, management,
                 university, 0, 0],
            )
            entry[9] += 1
            entry[10] += row[10]
            course_id += 1
            conn.execute(
                "INSERT INTO courses VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (course_id, college_id, row[8], row[9], row[10], row[11],
                 '{"round1": 1500}' if row[8] == "MBBS" else None, row[12]),
            )
    conn.executemany(f"INSERT INTO colleges VALUES ({', '.join('?' * 11)})", colleges.values())
    if not with_courses:
        conn.execute("DROP TABLE courses")
    conn.commit()
    return conn


# ─────────────────────────────────────────────────────────────────────────────
# Connection & Catalog Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def connections() -> dict[str, sqlite3.Connection]:
    """Fresh in-memory connections for every catalog database."""
    return {
        "medical": _partition_connection("medical_courses", "management_type", MEDICAL_ROWS),
        "dental": _partition_connection("dental_courses", "management_type", DENTAL_ROWS),
        "dnb": _partition_connection("dnb_courses", "hospital_type", DNB_ROWS),
        "colleges": _aggregate_connection(),
    }


@pytest.fixture
def catalog(connections):
    """Catalog over the in-memory connections."""
    from medcollege_finder.catalog.store import Catalog

    cat = Catalog.from_connections(**connections)
    yield cat
    cat.close()


@pytest.fixture
def test_settings():
    """Settings independent of config/settings.yaml."""
    from medcollege_finder.shared.config import Settings

    return Settings(search={"max_workers": 4, "time_budget_seconds": 10.0})


def _make_engine(connections, settings):
    from medcollege_finder.search.engine import create_engine

    return create_engine(settings=settings, **connections)


@pytest.fixture
def engine(connections, test_settings):
    """Search engine over the full in-memory catalog."""
    eng = _make_engine(connections, test_settings)
    yield eng
    eng.close()


@pytest.fixture
def engine_no_short_circuit(connections):
    """Engine that runs every strategy for every variant."""
    from medcollege_finder.shared.config import Settings

    settings = Settings(
        search={"max_workers": 4, "time_budget_seconds": 10.0, "short_circuit": False}
    )
    eng = _make_engine(connections, settings)
    yield eng
    eng.close()


@pytest.fixture
def broken_dnb_engine(connections, test_settings):
    """Engine whose DNB database has no dnb_courses table."""
    connections["dnb"].close()
    connections["dnb"] = sqlite3.connect(":memory:", check_same_thread=False)
    eng = _make_engine(connections, test_settings)
    yield eng
    eng.close()


@pytest.fixture
def broken_courses_engine(connections, test_settings):
    """Engine whose aggregate database lacks the courses table."""
    connections["colleges"].close()
    connections["colleges"] = _aggregate_connection(with_courses=False)
    eng = _make_engine(connections, test_settings)
    yield eng
    eng.close()


# ─────────────────────────────────────────────────────────────────────────────
# Sample Data Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def make_candidate():
    """Factory for Candidate records with sensible defaults."""
    from medcollege_finder.search.strategies import Candidate

    def factory(**overrides) -> Candidate:
        fields = {
            "id": 1,
            "college_id": 101,
            "college_name": "AJ Institute of Medical Sciences",
            "state": "Karnataka",
            "city": "Mangalore",
            "establishment_year": 2002,
            "management_type": "Private",
            "university": "RGUHS",
            "course_name": "MBBS",
            "course_type": "UG",
            "seats": 150,
            "quota_details": None,
            "fees_structure": None,
            "partition": "medical",
            "strategy": "exact",
            "variant": "AJ",
        }
        fields.update(overrides)
        return Candidate(**fields)

    return factory


@pytest.fixture
def make_result():
    """Factory for ScoredResult records."""
    from medcollege_finder.shared.schemas import ScoredResult

    def factory(college: str, course_id: int, score: int, seats: int = 10, **overrides):
        fields = {
            "id": course_id,
            "course_id": course_id,
            "name": college,
            "type": "medical",
            "state": "Karnataka",
            "seats": seats,
            "course": f"Course {course_id}",
            "search_score": score,
            "search_strategy": "exact",
            "college_key": ("medical", college.upper(), "KARNATAKA"),
        }
        fields.update(overrides)
        return ScoredResult(**fields)

    return factory


# ─────────────────────────────────────────────────────────────────────────────
# Path Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_path(project_root: Path) -> Path:
    """Get the config file path."""
    return project_root / "config" / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached settings between tests."""
    from medcollege_finder.shared.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
