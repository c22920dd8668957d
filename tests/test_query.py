"""
Tests for query analysis.

Tests cover:
- Course-type detection and ordering
- Intent hints (location, college, stream)
- Compound "<course> in <location>" parsing
"""

import pytest


class TestCourseTypeDetection:
    """Tests for detect_course_type."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("MBBS", "MBBS"),
            ("M.B.B.S", "MBBS"),
            ("Bachelor of Dental Surgery", "BDS"),
            ("MDS Orthodontics", "MDS"),
            ("M.D.S", "MDS"),
            ("MCh Neurosurgery", "MCh"),
            ("DNB General Medicine", "DNB"),
            ("DM Cardiology", "DM"),
            ("MD General Medicine", "MD"),
            ("M.D. Paediatrics", "MD"),
            ("MS Orthopaedics", "MS"),
        ],
    )
    def test_detects_family(self, text, expected):
        """Test each course family is recognized."""
        from medcollege_finder.search.query_analyzer import course_type_code

        assert course_type_code(text) == expected

    def test_no_course_type(self):
        """Test plain names have no course type."""
        from medcollege_finder.search.query_analyzer import detect_course_type

        assert detect_course_type("AJ Institute") is None
        assert detect_course_type("Medical") is None
        assert detect_course_type("") is None
        assert detect_course_type(None) is None

    def test_specific_codes_win(self):
        """Test MBBS is not read as MD/MS and MDS is not read as MD."""
        from medcollege_finder.search.query_analyzer import matches_course_type
        from medcollege_finder.shared.schemas import CourseType

        assert not matches_course_type("MBBS", CourseType.MD)
        assert not matches_course_type("MBBS", CourseType.MS)
        assert not matches_course_type("MDS Orthodontics", CourseType.MD)
        assert matches_course_type("MD General Medicine", CourseType.MD)


class TestQueryAnalyzer:
    """Tests for QueryAnalyzer.analyze."""

    def test_empty_query(self):
        """Test empty input yields an empty intent."""
        from medcollege_finder.search.query_analyzer import QueryAnalyzer
        from medcollege_finder.shared.schemas import Intent

        assert QueryAnalyzer().analyze("") == Intent()

    def test_college_name(self):
        """Test a college name sets only the college hint."""
        from medcollege_finder.search.query_analyzer import QueryAnalyzer

        intent = QueryAnalyzer().analyze("AJ Institute")
        assert intent.college_hint
        assert not intent.location_hint
        assert intent.course_type is None

    def test_location_keyword(self):
        """Test location keywords and plural college words."""
        from medcollege_finder.search.query_analyzer import QueryAnalyzer

        intent = QueryAnalyzer().analyze("Hospitals in Bangalore")
        assert intent.location_hint
        assert intent.college_hint

    def test_state_name(self):
        """Test known states and multi-word state names set the location hint."""
        from medcollege_finder.search.query_analyzer import QueryAnalyzer

        analyzer = QueryAnalyzer()
        assert analyzer.analyze("Karnataka").location_hint
        assert analyzer.analyze("colleges tamil nadu").location_hint

    def test_pure(self):
        """Test repeated analysis gives equal intents."""
        from medcollege_finder.search.query_analyzer import QueryAnalyzer

        analyzer = QueryAnalyzer()
        assert analyzer.analyze("MBBS colleges in Karnataka") == analyzer.analyze(
            "mbbs colleges in karnataka"
        )


class TestCompoundParsing:
    """Tests for QueryAnalyzer.parse_compound."""

    def test_dnb_in_state(self):
        """Test the canonical compound query."""
        from medcollege_finder.search.query_analyzer import QueryAnalyzer
        from medcollege_finder.shared.schemas import Stream

        parts = QueryAnalyzer().parse_compound("DNB in Karnataka")
        assert parts.is_compound
        assert parts.course_keyword == "DNB"
        assert parts.location == "KARNATAKA"
        assert parts.stream == Stream.DNB

    def test_dotted_keyword_and_at(self):
        """Test dotted course codes and the AT separator."""
        from medcollege_finder.search.query_analyzer import QueryAnalyzer
        from medcollege_finder.shared.schemas import Stream

        parts = QueryAnalyzer().parse_compound("M.B.B.S. colleges at Mangalore")
        assert parts.course_keyword == "MBBS"
        assert parts.location == "MANGALORE"
        assert parts.stream == Stream.MEDICAL

    def test_multi_word_location(self):
        """Test everything after the separator is the location."""
        from medcollege_finder.search.query_analyzer import QueryAnalyzer
        from medcollege_finder.shared.schemas import Stream

        parts = QueryAnalyzer().parse_compound("Dental colleges near Tamil Nadu")
        assert parts.location == "TAMIL NADU"
        assert parts.stream == Stream.DENTAL

    def test_not_compound(self):
        """Test queries missing a keyword or a location."""
        from medcollege_finder.search.query_analyzer import QueryAnalyzer

        analyzer = QueryAnalyzer()

        no_keyword = analyzer.parse_compound("Colleges in Kerala")
        assert not no_keyword.is_compound
        assert no_keyword.location == "KERALA"

        no_location = analyzer.parse_compound("AJ Institute")
        assert not no_location.is_compound
        assert no_location.location is None

        assert not analyzer.parse_compound("").is_compound

    def test_keyword_must_precede_separator(self):
        """Test a course keyword inside the location does not count."""
        from medcollege_finder.search.query_analyzer import QueryAnalyzer

        parts = QueryAnalyzer().parse_compound("colleges in MBBS nagar")
        assert not parts.is_compound

    def test_resolve_states(self):
        """Test only state names and state-level aliases resolve."""
        from medcollege_finder.search.query_analyzer import QueryAnalyzer

        analyzer = QueryAnalyzer()
        assert analyzer.resolve_states("KA") == frozenset({"KARNATAKA"})
        assert analyzer.resolve_states("tamilnadu") == frozenset({"TAMIL NADU"})
        assert analyzer.resolve_states("BENGALURU") == frozenset()
        assert analyzer.resolve_states("MANGALURU") == frozenset()
        assert analyzer.resolve_states(None) == frozenset()
