"""
Unit tests for match scoring
Tests name/address weighting rules, overall score composition and reasons
"""

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config_manager import ScoringWeights
from models import Name, Address, Identifier, Query, CandidateRecord
from scorer import (
    calculate_name_similarity, calculate_address_similarity,
    calculate_match_score, MatchScorer, round_score
)


@pytest.fixture
def full_record():
    """Watchlist record with every field populated"""
    return CandidateRecord(
        uid="SDN-1",
        name=Name(first="John", last="Smith"),
        display_name="SMITH, John",
        category="Individual",
        date_of_birth="1975-01-01",
        address=Address(street="12 Main Street", city="Tehran", state="Tehran Province", country="Iran"),
        identifiers=[Identifier(kind="Passport", number="P-1234567")],
        programs=["SDGT"]
    )


class TestRoundScore:
    """Tests for half-up rounding"""

    def test_half_rounds_up(self):
        assert round_score(2.5) == 3
        assert round_score(58.5) == 59

    def test_below_half(self):
        assert round_score(78.2) == 78


class TestNameSimilarity:
    """Tests for weighted name similarity"""

    def test_identical_first_last_no_middle(self):
        """Test identical names without middle names score 100"""
        assert calculate_name_similarity(
            Name(first="John", last="Smith"), Name(first="John", last="Smith")
        ) == 100

    def test_middle_missing_on_one_side_not_penalized(self):
        assert calculate_name_similarity(
            Name(first="John", middle="Quincy", last="Smith"),
            Name(first="John", last="Smith")
        ) == 100

    def test_middle_compared_when_both_present(self):
        """Test Quincy vs Q: middle similarity 0.75 at weight 0.15"""
        assert calculate_name_similarity(
            Name(first="John", middle="Quincy", last="Smith"),
            Name(first="John", middle="Q", last="Smith")
        ) == 96

    def test_query_part_absent_is_excluded(self):
        """Test a part missing from the query does not count"""
        assert calculate_name_similarity(
            Name(last="Smith"), Name(first="John", last="Smith")
        ) == 100

    def test_record_part_absent_counts_against(self):
        """Test a part missing from the record scores 0 but keeps its weight"""
        # (1.0 * 0.5 + 0 * 0.35) / 0.85 = 58.8
        assert calculate_name_similarity(
            Name(first="John", last="Smith"), Name(last="Smith")
        ) == 59

    def test_fuzzy_first_name(self):
        """Test Jon vs John on the first name"""
        assert calculate_name_similarity(
            Name(first="John", last="Smith"), Name(first="Jon", last="Smith")
        ) == 97

    def test_empty_query_name(self):
        assert calculate_name_similarity(Name(), Name(first="John", last="Smith")) == 0

    def test_custom_weights(self):
        """Test last-name-only weighting ignores the first name"""
        weights = ScoringWeights(name_parts={'last': 1.0, 'first': 0.0, 'middle': 0.0})
        assert calculate_name_similarity(
            Name(first="Zed", last="Smith"), Name(first="John", last="Smith"), weights
        ) == 100


class TestAddressSimilarity:
    """Tests for weighted address similarity"""

    def test_full_match(self, full_record):
        assert calculate_address_similarity(full_record.address, full_record.address) == 100

    def test_partial_address_not_renormalized(self):
        """Test country + city only reach 40 + 25"""
        assert calculate_address_similarity(
            Address(city="Tehran", country="Iran"),
            Address(city="Tehran", country="Iran", state="Tehran Province")
        ) == 65

    def test_part_missing_on_record(self):
        assert calculate_address_similarity(
            Address(city="Tehran", country="Iran"), Address(country="Iran")
        ) == 40

    def test_nothing_compared(self):
        assert calculate_address_similarity(Address(city="Tehran"), Address(country="Iran")) == 0
        assert calculate_address_similarity(None, Address(country="Iran")) == 0


class TestMatchScorer:
    """Tests for overall score composition"""

    def test_everything_matches(self, full_record):
        query = Query(
            name=Name(first="John", last="Smith"),
            date_of_birth="01/01/1975",
            address=full_record.address,
            identifier_number="1234567"
        )
        result = calculate_match_score(query, full_record)

        assert result.score == 100
        assert result.name_score.value == 100
        assert result.name_score.weight == 0.6
        assert result.address_score.value == 100
        assert result.dob_match is True
        assert result.id_match is True
        assert result.reasons == ["Date of birth matches", "ID number matches (Passport)"]
        assert result.matched_name == "SMITH, John"

    def test_name_and_dob_only(self, full_record):
        """Test name 97 and DOB give 97 * 0.6 + 20 = 78"""
        query = Query(name=Name(first="Jon", last="Smith"), date_of_birth="1975-01-01")
        result = calculate_match_score(query, full_record)

        assert result.score == 78
        assert result.dob_match is True
        assert result.reasons == ["Date of birth matches"]

    def test_name_only(self, full_record):
        result = calculate_match_score(Query(name=Name(first="John", last="Smith")), full_record)
        assert result.score == 60
        assert result.reasons == []

    def test_street_only_address_not_scored(self, full_record):
        """Test address scoring needs country, city or state on the query"""
        query = Query(
            name=Name(first="John", last="Smith"),
            address=Address(street="12 Main Street")
        )
        result = calculate_match_score(query, full_record)
        assert result.address_score.value == 0

    def test_identifier_bonus(self, full_record):
        query = Query(name=Name(first="John", last="Smith"), identifier_number="P1234567")
        result = calculate_match_score(query, full_record)
        assert result.score == 65
        assert result.reasons == ["ID number matches (Passport)"]

    def test_empty_query(self, full_record):
        """Test a query with no usable fields scores 0"""
        result = calculate_match_score(Query(), full_record)
        assert result.score == 0
        assert result.dob_match is False
        assert result.id_match is False

    def test_malformed_record_fields_do_not_raise(self):
        """Test odd record contents degrade to low scores"""
        record = CandidateRecord(
            uid="X",
            name=Name(first="!!!", last=""),
            date_of_birth="not a date",
            identifiers=[Identifier(kind="ID", number=None)]
        )
        query = Query(
            name=Name(first="John", last="Smith"),
            date_of_birth="1975-01-01",
            address=Address(country="Iran"),
            identifier_number="123"
        )
        result = calculate_match_score(query, record)
        assert result.score == 0

    def test_score_capped_at_100(self, full_record):
        weights = ScoringWeights(dob_bonus=50, identifier_bonus=50)
        query = Query(
            name=Name(first="John", last="Smith"),
            date_of_birth="1975-01-01",
            identifier_number="1234567"
        )
        result = MatchScorer(weights=weights).score(query, full_record)
        assert result.score == 100


class TestAliasMatching:
    """Tests for opt-in alias name matching"""

    @pytest.fixture
    def aliased_record(self):
        return CandidateRecord(
            uid="SDN-2",
            name=Name(first="Ivan", last="Petrov"),
            display_name="PETROV, Ivan",
            aliases=[Name(first="John", last="Smith")]
        )

    def test_aliases_ignored_by_default(self, aliased_record):
        result = MatchScorer().score(Query(name=Name(first="John", last="Smith")), aliased_record)
        assert result.name_score.value < 100
        assert result.matched_name == "PETROV, Ivan"

    def test_best_alias_used_when_enabled(self, aliased_record):
        query = Query(name=Name(first="John", last="Smith"), date_of_birth="1975-01-01")
        result = MatchScorer(match_aliases=True).score(query, aliased_record)

        assert result.name_score.value == 100
        assert result.matched_name == "John Smith"
        assert result.reasons == ["Matched alias: John Smith"]
