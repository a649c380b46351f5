"""
String similarity for sanctions name matching

Jaro similarity with the Winkler common-prefix boost. Watchlist names are
transliterated and misspelled relative to user input ("Mohammed" vs
"Mohamed"), so agreement at the start of a name is rewarded more than an
unanchored edit distance would.

All scores are floats in [0.0, 1.0]. Comparison is case-insensitive.
"""

from rapidfuzz.distance import Prefix

DEFAULT_PREFIX_SCALE = 0.1
MAX_PREFIX_LENGTH = 4


def jaro_similarity(s1: str, s2: str) -> float:
    """Calculate base Jaro similarity between two strings

    Characters match when equal and no further apart than
    ``max(len1, len2) // 2 - 1`` positions. For strings of length one the
    window formula goes negative; it is clipped to 0 so that only
    same-position characters can match.

    Args:
        s1: First string
        s2: Second string

    Returns:
        Similarity score between 0 and 1
    """
    str1 = (s1 or '').lower()
    str2 = (s2 or '').lower()

    if str1 == str2:
        return 1.0
    if not str1 or not str2:
        return 0.0

    len1 = len(str1)
    len2 = len(str2)

    match_distance = max(len1, len2) // 2 - 1
    if match_distance < 0:
        match_distance = 0

    s1_matches = [False] * len1
    s2_matches = [False] * len2
    matches = 0

    for i in range(len1):
        start = max(0, i - match_distance)
        end = min(i + match_distance + 1, len2)
        for j in range(start, end):
            if s2_matches[j] or str1[i] != str2[j]:
                continue
            s1_matches[i] = True
            s2_matches[j] = True
            matches += 1
            break

    if matches == 0:
        return 0.0

    # Half-transpositions: matched characters that differ in order
    transpositions = 0
    k = 0
    for i in range(len1):
        if not s1_matches[i]:
            continue
        while not s2_matches[k]:
            k += 1
        if str1[i] != str2[k]:
            transpositions += 1
        k += 1

    return (
        matches / len1
        + matches / len2
        + (matches - transpositions / 2) / matches
    ) / 3


def common_prefix_length(s1: str, s2: str, max_length: int = MAX_PREFIX_LENGTH) -> int:
    """Length of the shared leading substring, capped at ``max_length``"""
    if not s1 or not s2:
        return 0
    return min(max_length, int(Prefix.similarity(s1.lower(), s2.lower())))


def jaro_winkler(s1: str, s2: str, p: float = DEFAULT_PREFIX_SCALE,
                 max_prefix: int = MAX_PREFIX_LENGTH) -> float:
    """Calculate Jaro-Winkler similarity between two strings

    Gives higher scores to strings that match from the beginning:
    ``jaro + prefix * p * (1 - jaro)``. The boost is applied whenever a
    common prefix exists, with no minimum Jaro score.

    Args:
        s1: First string
        s2: Second string
        p: Prefix scaling factor (default 0.1; conventionally at most 0.25,
           which is enforced by the configuration layer, not here)
        max_prefix: Maximum prefix length rewarded (default 4)

    Returns:
        Similarity score between 0 and 1
    """
    str1 = (s1 or '').lower()
    str2 = (s2 or '').lower()

    if str1 == str2:
        return 1.0
    if not str1 or not str2:
        return 0.0

    jaro_score = jaro_similarity(str1, str2)
    prefix = common_prefix_length(str1, str2, max_prefix)

    return min(1.0, jaro_score + prefix * p * (1 - jaro_score))
