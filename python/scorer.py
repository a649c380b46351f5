"""
Match scoring for sanctions screening

Combines the field comparators into one confidence score per candidate:

- Name (primary signal): weighted last / first / middle name similarity
- Date of birth: flat bonus when the dates denote the same day
- Address: weighted country / city / state / street similarity
- Identifier: flat bonus when an ID number matches exactly

Weights come from ScoringWeights so that the policy can be audited and
swapped without touching the comparators.
"""

import logging
import math
from typing import Optional, Tuple

from comparators import (
    compare_name_part, compare_address_part, match_dob, match_identifier
)
from config_manager import ConfigManager, ScoringWeights
from models import (
    Name, Address, Query, CandidateRecord, FieldScore, MatchResult
)
from similarity import DEFAULT_PREFIX_SCALE, MAX_PREFIX_LENGTH
from text_utils import normalize_text

logger = logging.getLogger(__name__)

ADDRESS_PARTS = ('country', 'state', 'city', 'street')


def round_score(value: float) -> int:
    """Round half up (2.5 -> 3), unlike Python's banker's rounding"""
    return int(math.floor(value + 0.5))


def calculate_name_similarity(search_name: Name, record_name: Name,
                              weights: Optional[ScoringWeights] = None,
                              prefix_scale: float = DEFAULT_PREFIX_SCALE,
                              max_prefix: int = MAX_PREFIX_LENGTH) -> int:
    """Calculate similarity between two full names

    Last and first name count whenever the search side supplies them (a
    missing record part scores 0). Middle name counts only when both sides
    have one, so its absence never penalizes.

    Args:
        search_name: Name from the query
        record_name: Name from the watchlist record
        weights: Weighting policy (defaults to ScoringWeights())

    Returns:
        Combined similarity score (0-100)
    """
    part_weights = (weights or ScoringWeights()).name_parts

    search = {
        'first': normalize_text(search_name.first),
        'middle': normalize_text(search_name.middle),
        'last': normalize_text(search_name.last),
    }
    record = {
        'first': normalize_text(record_name.first),
        'middle': normalize_text(record_name.middle),
        'last': normalize_text(record_name.last),
    }

    weighted_score = 0.0
    total_weight = 0.0

    for part in ('last', 'first'):
        if not search[part]:
            continue
        similarity = compare_name_part(search[part], record[part], prefix_scale, max_prefix)
        weighted_score += similarity * part_weights[part]
        total_weight += part_weights[part]

    if search['middle'] and record['middle']:
        similarity = compare_name_part(search['middle'], record['middle'], prefix_scale, max_prefix)
        weighted_score += similarity * part_weights['middle']
        total_weight += part_weights['middle']

    if total_weight <= 0:
        return 0
    return round_score(weighted_score / total_weight * 100)


def calculate_address_similarity(search_addr: Optional[Address], record_addr: Optional[Address],
                                 weights: Optional[ScoringWeights] = None,
                                 prefix_scale: float = DEFAULT_PREFIX_SCALE,
                                 max_prefix: int = MAX_PREFIX_LENGTH) -> int:
    """Calculate address similarity (0-100)

    A part contributes only when both sides supply it. Contributions are
    not renormalized, so a partial address scores lower than a full one.
    """
    if search_addr is None or record_addr is None:
        return 0

    part_weights = (weights or ScoringWeights()).address_parts
    total_score = 0.0
    fields = 0

    for part in ADDRESS_PARTS:
        search_value = getattr(search_addr, part)
        record_value = getattr(record_addr, part)
        if not search_value or not record_value:
            continue
        total_score += compare_address_part(search_value, record_value, prefix_scale, max_prefix) * part_weights[part]
        fields += 1

    return round_score(total_score) if fields > 0 else 0


class MatchScorer:
    """Scores a query against one candidate record"""

    def __init__(self, weights: Optional[ScoringWeights] = None,
                 prefix_scale: float = DEFAULT_PREFIX_SCALE,
                 max_prefix_length: int = MAX_PREFIX_LENGTH,
                 match_aliases: bool = False):
        self.weights = weights or ScoringWeights()
        self.prefix_scale = prefix_scale
        self.max_prefix_length = max_prefix_length
        self.match_aliases = match_aliases

    @classmethod
    def from_config(cls, config: ConfigManager) -> 'MatchScorer':
        matching = config.matching
        return cls(
            weights=matching.weights,
            prefix_scale=matching.prefix_scale,
            max_prefix_length=matching.max_prefix_length,
            match_aliases=matching.match_aliases
        )

    def _best_name_score(self, search_name: Name, record: CandidateRecord) -> Tuple[int, Optional[Name]]:
        """Name score against the primary name, or the best alias if enabled

        Returns:
            Tuple of (score, winning alias or None when the primary name won)
        """
        best = calculate_name_similarity(
            search_name, record.name, self.weights,
            self.prefix_scale, self.max_prefix_length
        )
        best_alias = None

        if self.match_aliases:
            for alias in record.aliases:
                score = calculate_name_similarity(
                    search_name, alias, self.weights,
                    self.prefix_scale, self.max_prefix_length
                )
                if score > best:
                    best = score
                    best_alias = alias

        return best, best_alias

    def score(self, query: Query, record: CandidateRecord) -> MatchResult:
        """Calculate overall match score between a query and a record

        Overall = name * 0.6 + 20 (DOB) + address * 0.15 + 5 (ID), capped
        at 100 with the default weights. Reasons are appended in evaluation
        order: alias, date of birth, identifier.
        """
        weights = self.weights
        reasons = []

        name_score, alias = self._best_name_score(query.name, record)
        matched_name = record.display_name or record.name.full_name()
        if alias is not None:
            matched_name = alias.full_name()
            reasons.append(f"Matched alias: {matched_name}")

        dob_match = False
        if query.date_of_birth:
            dob_match = match_dob(query.date_of_birth, record.date_of_birth)
            if dob_match:
                reasons.append("Date of birth matches")

        address_score = 0
        search_addr = query.address
        if search_addr is not None and (search_addr.country or search_addr.city or search_addr.state):
            address_score = calculate_address_similarity(
                search_addr, record.address, weights,
                self.prefix_scale, self.max_prefix_length
            )

        id_match = False
        if query.identifier_number and record.identifiers:
            matched_id = match_identifier(query.identifier_number, record.identifiers)
            if matched_id is not None:
                id_match = True
                reasons.append(f"ID number matches ({matched_id.kind})")

        overall = name_score * weights.overall['name']
        if dob_match:
            overall += weights.dob_bonus
        overall += address_score * weights.overall['address']
        if id_match:
            overall += weights.identifier_bonus

        return MatchResult(
            record=record,
            score=round_score(min(100.0, max(0.0, overall))),
            name_score=FieldScore(value=name_score, weight=weights.overall['name']),
            address_score=FieldScore(value=address_score, weight=weights.overall['address']),
            dob_match=dob_match,
            id_match=id_match,
            reasons=reasons,
            matched_name=matched_name
        )


def calculate_match_score(query: Query, record: CandidateRecord,
                          weights: Optional[ScoringWeights] = None) -> MatchResult:
    """Score one record with the given (or default) weighting policy"""
    return MatchScorer(weights=weights).score(query, record)
