"""
Shared text utilities for the Sanctions Screening Engine

This module contains the canonicalization helpers used by the comparators
and the log sanitizer used by every component that logs user input.

SECURITY: User input must pass through sanitize_for_logging before it is
written to any log.
"""

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

_NON_ALNUM_PATTERN = re.compile(r'[^a-z0-9\s]')
_WHITESPACE_PATTERN = re.compile(r'\s+')
_NON_DIGIT_PATTERN = re.compile(r'\D')
_CONTROL_CHAR_PATTERN = re.compile(r'[\r\n\x00-\x1f\x7f-\x9f]')


def normalize_text(text: Optional[str]) -> str:
    """Canonicalize free text into a comparable token form

    Lower-cases, replaces every character that is not an ASCII letter,
    digit or whitespace with a space, collapses whitespace runs and trims.

    Args:
        text: Free text (name part, city, ...). None is accepted.

    Returns:
        Canonical text, empty string for absent or empty input

    Example:
        >>> normalize_text("O'Brien-Smith  Jr.")
        'o brien smith jr'
    """
    if not text:
        return ''
    canonical = _NON_ALNUM_PATTERN.sub(' ', str(text).lower())
    return _WHITESPACE_PATTERN.sub(' ', canonical).strip()


def digits_only(value: Optional[str]) -> str:
    """Strip every non-digit character (identifier numbers, dates)"""
    if not value:
        return ''
    return _NON_DIGIT_PATTERN.sub('', str(value))


def sanitize_for_logging(text: Optional[str]) -> str:
    """Sanitize user input for safe logging, preventing log injection

    Removes newlines, carriage returns, and other control characters
    that could be used to inject fake log entries.

    Args:
        text: User input text

    Returns:
        Sanitized text safe for logging
    """
    if not text:
        return ''
    sanitized = _CONTROL_CHAR_PATTERN.sub(' ', str(text))
    sanitized = _WHITESPACE_PATTERN.sub(' ', sanitized).strip()
    return sanitized[:500] if len(sanitized) > 500 else sanitized
