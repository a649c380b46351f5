"""
Field comparators for sanctions screening

Name and address parts are compared approximately (normalize, then
Jaro-Winkler). Dates of birth and identifier numbers are compared exactly
on their digits, with a calendar-date fallback for dates written in
different formats.
"""

import logging
from datetime import datetime, date
from typing import Iterable, Optional

from models import Identifier
from similarity import jaro_winkler, DEFAULT_PREFIX_SCALE, MAX_PREFIX_LENGTH
from text_utils import normalize_text, digits_only

logger = logging.getLogger(__name__)

# Tried in order; US month/day order wins for ambiguous numeric dates.
# Full dates only: a year or month alone never parses.
DATE_FORMATS = (
    '%Y-%m-%d',
    '%Y/%m/%d',
    '%Y.%m.%d',
    '%m/%d/%Y',
    '%m-%d-%Y',
    '%d %b %Y',
    '%d %B %Y',
    '%b %d %Y',
    '%B %d %Y',
    '%b %d, %Y',
    '%B %d, %Y',
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%dT%H:%M:%SZ',
    '%Y%m%d',
)


def compare_name_part(search_part: Optional[str], record_part: Optional[str],
                      prefix_scale: float = DEFAULT_PREFIX_SCALE,
                      max_prefix: int = MAX_PREFIX_LENGTH) -> float:
    """Similarity in [0, 1] of two name parts after normalization

    Absence is not a match: returns 0.0 when either side is empty once
    normalized.
    """
    left = normalize_text(search_part)
    right = normalize_text(record_part)
    if not left or not right:
        return 0.0
    return jaro_winkler(left, right, prefix_scale, max_prefix)


def compare_address_part(search_part: Optional[str], record_part: Optional[str],
                         prefix_scale: float = DEFAULT_PREFIX_SCALE,
                         max_prefix: int = MAX_PREFIX_LENGTH) -> float:
    """Similarity in [0, 1] of one address component (street, city, ...)"""
    return compare_name_part(search_part, record_part, prefix_scale, max_prefix)


def parse_date(text: Optional[str]) -> Optional[date]:
    """Parse a date of birth written in any of DATE_FORMATS

    Partial dates such as "1980" or "May 1980" are not padded to a day.

    Returns:
        The calendar date, or None when the text is empty or unparseable
    """
    if not text:
        return None
    candidate = ' '.join(str(text).split())
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(candidate, fmt).date()
        except (ValueError, OverflowError):
            continue
    return None


def match_dob(search_dob: Optional[str], record_dob: Optional[str]) -> bool:
    """Check if two dates of birth denote the same day

    Digit sequences are compared first ("1980-05-12" == "1980/05/12"),
    then both strings are parsed and year, month and day compared. There
    is no partial credit for a matching year alone.
    """
    if not search_dob or not record_dob:
        return False

    search_digits = digits_only(search_dob)
    if search_digits and search_digits == digits_only(record_dob):
        return True

    search_date = parse_date(search_dob)
    record_date = parse_date(record_dob)
    if search_date is None or record_date is None:
        return False

    return (
        search_date.year == record_date.year
        and search_date.month == record_date.month
        and search_date.day == record_date.day
    )


def match_identifier(search_number: Optional[str],
                     identifiers: Iterable[Identifier]) -> Optional[Identifier]:
    """Find the first record identifier whose digits equal the query's

    Scans in storage order; the first exact hit wins.

    Returns:
        The matching Identifier, or None
    """
    search_digits = digits_only(search_number)
    if not search_digits:
        return None

    for identifier in identifiers or ():
        if digits_only(identifier.number) == search_digits:
            return identifier
    return None
