"""
Unit tests for field comparators
Tests name/address part similarity, date of birth and identifier matching
"""

import pytest
from datetime import date

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from comparators import (
    compare_name_part, compare_address_part, parse_date, match_dob, match_identifier
)
from models import Identifier


class TestNamePartComparator:
    """Tests for name part comparison"""

    def test_case_and_punctuation_ignored(self):
        assert compare_name_part("O'Brien", "obrien ") < 1.0
        assert compare_name_part("O'Brien", "o brien") == 1.0
        assert compare_name_part("JOHN", "john") == 1.0

    def test_absent_side_is_not_a_match(self):
        """Test that a missing part never counts as a match"""
        assert compare_name_part("", "Smith") == 0.0
        assert compare_name_part(None, "Smith") == 0.0
        assert compare_name_part("Smith", None) == 0.0

    def test_punctuation_only_is_empty(self):
        """Test both sides empty after normalization score 0"""
        assert compare_name_part("!!!", "---") == 0.0

    def test_similar_names(self):
        assert compare_name_part("Jon", "John") == pytest.approx(0.9333, abs=1e-3)

    def test_address_part_uses_same_logic(self):
        assert compare_address_part("Tehran", "TEHRAN") == 1.0
        assert compare_address_part("Tehran", "") == 0.0


class TestParseDate:
    """Tests for date of birth parsing"""

    @pytest.mark.parametrize("text", [
        "1980-05-12",
        "1980/05/12",
        "05/12/1980",
        "5/12/1980",
        "12 May 1980",
        "May 12, 1980",
        "1980-05-12T00:00:00",
    ])
    def test_formats(self, text):
        assert parse_date(text) == date(1980, 5, 12)

    @pytest.mark.parametrize("text", ["1980", "May 1980", "1980-05"])
    def test_partial_dates_not_parsed(self, text):
        """Test a year or month alone is not padded to a full date"""
        assert parse_date(text) is None

    @pytest.mark.parametrize("text", ["", None, "unknown", "1980-02-30", "circa 1980"])
    def test_unparseable(self, text):
        assert parse_date(text) is None


class TestMatchDOB:
    """Tests for date of birth matching"""

    def test_different_formats_same_day(self):
        """Test US numeric format matches ISO"""
        assert match_dob("1980-05-12", "05/12/1980") is True

    def test_same_digits(self):
        assert match_dob("1980-05-12", "1980/05/12") is True
        assert match_dob("1980.05.12", "19800512") is True

    def test_textual_month(self):
        assert match_dob("12 May 1980", "1980-05-12") is True

    def test_different_day(self):
        assert match_dob("1980-05-12", "1980-05-13") is False

    def test_no_partial_credit_for_year(self):
        assert match_dob("1980-05-12", "1980-06-12") is False

    def test_year_only_does_not_match_january_first(self):
        """Test placeholder Jan 1 dates get no credit against a bare year"""
        assert match_dob("1980", "1980-01-01") is False
        assert match_dob("1980-01-01", "1980") is False
        assert match_dob("Jan 1980", "1980-01-01") is False

    def test_year_only_on_both_sides(self):
        assert match_dob("1980", "1980") is True

    def test_missing_side(self):
        assert match_dob("", "1980-05-12") is False
        assert match_dob("1980-05-12", None) is False

    def test_unparseable_is_no_match(self):
        """Test malformed dates fail quietly"""
        assert match_dob("1980-05-12", "garbage") is False
        assert match_dob("unknown", "n/a") is False


class TestMatchIdentifier:
    """Tests for identifier matching"""

    @pytest.fixture
    def identifiers(self):
        return [
            Identifier(kind="Passport", number="X 999"),
            Identifier(kind="National ID", number="123456"),
            Identifier(kind="Tax ID", number="123-456"),
        ]

    def test_first_digit_match_wins(self, identifiers):
        """Test scan order decides between equal digit forms"""
        match = match_identifier("A-123-456", identifiers)
        assert match is not None
        assert match.kind == "National ID"

    def test_no_match(self, identifiers):
        assert match_identifier("777", identifiers) is None

    def test_query_without_digits(self, identifiers):
        assert match_identifier("ABC", identifiers) is None
        assert match_identifier(None, identifiers) is None

    def test_missing_candidate_number(self):
        assert match_identifier("123", [Identifier(kind="ID", number=None)]) is None

    def test_empty_identifier_list(self):
        assert match_identifier("123", []) is None
