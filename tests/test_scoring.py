"""
Tests for scoring, deduplication and grouping.

Tests cover:
- Composite score components
- Deduplication keeps the best copy and ranks by score
- Grouping by college with seat totals
"""


class TestScorer:
    """Tests for Scorer."""

    def test_name_prefix(self, make_candidate):
        """Test strategy weight + name prefix + seats."""
        from medcollege_finder.search.scoring import Scorer

        # 1000 exact + 800 name prefix + 150 // 10 seats
        assert Scorer().score(make_candidate(), "aj") == 1815

    def test_exact_name(self, make_candidate):
        """Test an exact name match."""
        from medcollege_finder.search.scoring import Scorer

        candidate = make_candidate(college_name="AJ", seats=0)
        assert Scorer().score(candidate, "AJ") == 2000

    def test_query_prefix(self, make_candidate):
        """Test the query starting with the name."""
        from medcollege_finder.search.scoring import Scorer

        candidate = make_candidate(college_name="AJ", seats=0)
        assert Scorer().score(candidate, "AJ INSTITUTE") == 1700

    def test_name_contains(self, make_candidate):
        """Test the name containing the query."""
        from medcollege_finder.search.scoring import Scorer

        candidate = make_candidate(college_name="Government Medical College", seats=0)
        assert Scorer().score(candidate, "MEDICAL") == 1500

    def test_word_matches(self, make_candidate):
        """Test per-word bonus when the whole query is not in the name."""
        from medcollege_finder.search.scoring import Scorer

        candidate = make_candidate(
            college_name="Government Medical College", state="Kerala", seats=0
        )
        assert Scorer().score(candidate, "MEDICAL COLLEGE KOCHI") == 1400

    def test_field_bonuses(self, make_candidate):
        """Test state, course, management and city bonuses."""
        from medcollege_finder.search.scoring import Scorer

        scorer = Scorer()
        assert scorer.score(make_candidate(seats=0), "KARNATAKA") == 1300
        assert scorer.score(make_candidate(seats=0), "MBBS") == 1250
        assert scorer.score(make_candidate(seats=0), "PRIVATE") == 1200
        assert scorer.score(make_candidate(seats=0), "MANGALORE") == 1150

    def test_seats_capped(self, make_candidate):
        """Test the seats bonus cap."""
        from medcollege_finder.search.scoring import Scorer

        candidate = make_candidate(college_name="X", seats=5000)
        assert Scorer().score(candidate, "ZZZ") == 1100

    def test_strategy_weights(self, make_candidate):
        """Test exact outranks abbreviation for the same row."""
        from medcollege_finder.search.scoring import Scorer

        scorer = Scorer()
        exact = scorer.score(make_candidate(strategy="exact"), "AJ")
        abbreviation = scorer.score(make_candidate(strategy="abbreviation"), "AJ")
        unknown = scorer.score(make_candidate(strategy="other"), "AJ")

        assert exact - abbreviation == 200
        assert unknown == 500 + 800 + 15

    def test_missing_fields(self, make_candidate):
        """Test empty fields score as empty and never go negative."""
        from medcollege_finder.search.scoring import Scorer
        from medcollege_finder.shared.config import ScoringConfig

        bare = make_candidate(
            college_name="", state="", city="", management_type="", course_name="", seats=0
        )
        assert Scorer().score(bare, "AJ") == 1000

        negative = Scorer(ScoringConfig(strategy_weights={"exact": -5000}))
        assert negative.score(bare, "AJ") == 0

    def test_to_result(self, make_candidate):
        """Test the output record mirrors the candidate."""
        from medcollege_finder.search.scoring import Scorer

        result = Scorer().to_result(make_candidate(variant="A.J."), "AJ")

        assert result.id == 1
        assert result.course_id == 1
        assert result.name == "AJ Institute of Medical Sciences"
        assert result.type == "medical"
        assert result.course == "MBBS"
        assert result.search_score == 1815
        assert result.search_strategy == "exact"
        assert result.matched_variation == "A.J."
        assert result.college_key == ("medical", 101)


class TestDeduplicate:
    """Tests for deduplicate."""

    def test_keeps_highest(self, make_result):
        """Test the best-scoring copy of a key wins."""
        from medcollege_finder.search.grouping import deduplicate

        results = deduplicate(
            [
                make_result("A", 1, 700, search_strategy="fuzzy"),
                make_result("A", 1, 1000, search_strategy="exact"),
            ]
        )

        assert len(results) == 1
        assert results[0].search_strategy == "exact"

    def test_tie_keeps_first(self, make_result):
        """Test ties keep the first copy."""
        from medcollege_finder.search.grouping import deduplicate

        results = deduplicate(
            [
                make_result("A", 1, 900, matched_variation="first"),
                make_result("A", 1, 900, matched_variation="second"),
            ]
        )
        assert [r.matched_variation for r in results] == ["first"]

    def test_sorted_stable(self, make_result):
        """Test score-descending order, stable on ties."""
        from medcollege_finder.search.grouping import deduplicate

        results = deduplicate(
            [
                make_result("A", 1, 800),
                make_result("B", 2, 950),
                make_result("C", 3, 800),
            ]
        )
        assert [r.name for r in results] == ["B", "A", "C"]

    def test_same_course_id_different_college(self, make_result):
        """Test the key includes the college."""
        from medcollege_finder.search.grouping import deduplicate

        results = deduplicate([make_result("A", 1, 800), make_result("B", 1, 800)])
        assert len(results) == 2


class TestGroupByCollege:
    """Tests for group_by_college."""

    def test_groups_ordered_by_best_score(self, make_result):
        """Test a 95-point college ranks above an 80-point one."""
        from medcollege_finder.search.grouping import group_by_college

        groups = group_by_college(
            [
                make_result("Eighty College", 1, 80),
                make_result("Ninety-Five College", 2, 95),
                make_result("Eighty College", 3, 40),
            ]
        )

        assert [g.college_name for g in groups] == ["Ninety-Five College", "Eighty College"]
        assert groups[1].search_score == 80
        assert groups[1].course_count == 2

    def test_seat_totals(self, make_result):
        """Test group seats equal the sum of their course seats."""
        from medcollege_finder.search.grouping import group_by_college

        groups = group_by_college(
            [
                make_result("A", 1, 900, seats=150),
                make_result("A", 2, 850, seats=8),
                make_result("B", 3, 700, seats=100),
            ]
        )

        for group in groups:
            assert group.total_seats == sum(c.seats for c in group.courses)
        assert groups[0].total_seats == 158

    def test_courses_keep_input_order(self, make_result):
        """Test course order inside a group follows the input."""
        from medcollege_finder.search.grouping import group_by_college

        groups = group_by_college(
            [make_result("A", 5, 900), make_result("A", 2, 850), make_result("A", 9, 800)]
        )
        assert [c.course_id for c in groups[0].courses] == [5, 2, 9]

    def test_serialized_aliases(self, make_result):
        """Test group payload keys."""
        from medcollege_finder.search.grouping import group_by_college

        group = group_by_college([make_result("A", 1, 900, seats=20)])[0]
        payload = group.model_dump(by_alias=True)

        assert payload["totalSeats"] == 20
        assert payload["courseCount"] == 1
        assert payload["searchScore"] == 900
