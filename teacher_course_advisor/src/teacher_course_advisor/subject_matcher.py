"""
Subject Area Autocomplete

Ranks the fixed subject catalog against free-text input from the profile form.
Uses Levenshtein edit distance for typo tolerance, with substring and prefix
matches ranked ahead of pure similarity.
"""

from dataclasses import dataclass
from typing import List, Sequence


SUBJECT_CATALOG: tuple = (
    "מתמטיקה",
    "אנגלית",
    "עברית",
    "ערבית",
    "פיזיקה",
    "כימיה",
    "ביולוגיה",
    "היסטוריה",
    "גיאוגרפיה",
    "חינוך גופני",
    "מורה בכיתה",
    "חינוך מיוחד",
    "מדעי המחשב",
)

BROWSE_LIMIT = 10  # Entries shown for an empty query
MAX_SUGGESTIONS = 8
SIMILARITY_THRESHOLD = 0.3


@dataclass(frozen=True)
class MatchCandidate:
    """A scored catalog label for a single query."""
    label: str
    similarity: float
    is_substring_match: bool
    is_prefix_match: bool


def edit_distance(source: str, target: str) -> int:
    """
    Classic Levenshtein distance (insert, delete, substitute all cost 1).

    Operates on code points, so Hebrew and Latin text are handled the same way.
    """
    rows = len(target) + 1
    cols = len(source) + 1
    matrix = [[0] * cols for _ in range(rows)]

    for i in range(cols):
        matrix[0][i] = i
    for j in range(rows):
        matrix[j][0] = j

    for j in range(1, rows):
        for i in range(1, cols):
            indicator = 0 if source[i - 1] == target[j - 1] else 1
            matrix[j][i] = min(
                matrix[j][i - 1] + 1,
                matrix[j - 1][i] + 1,
                matrix[j - 1][i - 1] + indicator,
            )

    return matrix[rows - 1][cols - 1]


def calculate_similarity(query: str, label: str) -> float:
    """
    Normalized similarity in [0, 1], computed on lowercased strings.

    The longer string's length is the denominator, so a query longer than the
    label still scores sensibly.
    """
    longer, shorter = (query, label) if len(query) > len(label) else (label, query)
    if not longer:
        return 1.0
    distance = edit_distance(longer.lower(), shorter.lower())
    return (len(longer) - distance) / len(longer)


def score_subjects(query: str, catalog: Sequence[str] = SUBJECT_CATALOG) -> List[MatchCandidate]:
    """
    Score, filter and order every catalog label against a non-empty query.

    Substring and prefix checks use the original casing while similarity is
    case-insensitive. Sorting is stable, so ties keep catalog order.
    """
    candidates = [
        MatchCandidate(
            label=label,
            similarity=calculate_similarity(query, label),
            is_substring_match=query in label,
            is_prefix_match=label.startswith(query),
        )
        for label in catalog
    ]

    matches = [
        c for c in candidates
        if c.similarity > SIMILARITY_THRESHOLD or c.is_substring_match
    ]
    matches.sort(key=lambda c: (not c.is_substring_match, not c.is_prefix_match, -c.similarity))
    return matches


def rank_subjects(query: str, catalog: Sequence[str] = SUBJECT_CATALOG) -> List[str]:
    """
    Autocomplete suggestions for the subject-area field.

    Args:
        query: Raw text typed by the teacher (may be empty or misspelled)
        catalog: Ordered subject labels

    Returns:
        Up to 8 labels best-first, or the first 10 catalog labels for an empty query
    """
    if not query.strip():
        return list(catalog[:BROWSE_LIMIT])

    return [c.label for c in score_subjects(query, catalog)[:MAX_SUGGESTIONS]]


def is_valid_subject(value: str, catalog: Sequence[str] = SUBJECT_CATALOG) -> bool:
    """Only an exact catalog label is accepted as a subject area."""
    return value in catalog
