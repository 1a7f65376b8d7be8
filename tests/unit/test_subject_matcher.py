"""
Unit Tests for Subject Matcher

Tests fuzzy autocomplete ranking for the subject-area field.
"""

import pytest
import sys
import os

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "teacher_course_advisor", "src"))

from teacher_course_advisor.subject_matcher import (
    SUBJECT_CATALOG,
    calculate_similarity,
    edit_distance,
    is_valid_subject,
    rank_subjects,
    score_subjects,
)


class TestEditDistance:
    """Test suite for Levenshtein distance."""

    def test_classic_example(self):
        assert edit_distance("kitten", "sitting") == 3

    def test_empty_strings(self):
        assert edit_distance("", "abc") == 3
        assert edit_distance("abc", "") == 3
        assert edit_distance("", "") == 0

    def test_hebrew_single_substitution(self):
        assert edit_distance("מתמטיקה", "מתמטיקא") == 1

    def test_similarity_bounds(self):
        assert calculate_similarity("", "") == 1.0
        assert calculate_similarity("abc", "abc") == 1.0
        assert calculate_similarity("xyz", "abc") == 0.0

    def test_similarity_ignores_case(self):
        assert calculate_similarity("MATH", "math") == 1.0


class TestRankSubjects:
    """Test suite for rank_subjects."""

    def test_empty_query_returns_first_ten(self):
        assert rank_subjects("") == list(SUBJECT_CATALOG[:10])

    def test_whitespace_query_treated_as_empty(self):
        assert rank_subjects("   ") == list(SUBJECT_CATALOG[:10])

    def test_exact_match_first(self):
        assert rank_subjects("מתמטיקה")[0] == "מתמטיקה"

    def test_typo_tolerance(self):
        """A misspelled subject still ranks the intended subject first."""
        assert rank_subjects("מתמטיקא")[0] == "מתמטיקה"

    def test_prefix_matches_keep_catalog_order(self):
        results = rank_subjects("חינוך")
        assert results[:2] == ["חינוך גופני", "חינוך מיוחד"]

    def test_substring_ranked_by_similarity(self):
        """Non-prefix substring matches are ordered by similarity, ties in catalog order."""
        results = rank_subjects("ית")
        assert results[:4] == ["עברית", "ערבית", "אנגלית", "מורה בכיתה"]

    def test_substring_kept_below_threshold(self):
        candidates = {c.label: c for c in score_subjects("ית")}
        assert candidates["מורה בכיתה"].similarity < 0.3
        assert candidates["מורה בכיתה"].is_substring_match

    def test_prefix_beats_other_substrings(self):
        assert rank_subjects("ה")[0] == "היסטוריה"

    def test_result_limit(self):
        assert len(rank_subjects("ה")) <= 8
        assert len(rank_subjects("י")) <= 8

    def test_no_match(self):
        assert rank_subjects("xyz") == []

    def test_substring_check_is_case_sensitive(self):
        """Similarity ignores case but substring/prefix checks do not."""
        catalog = ("mathematics", "Mathematics Lab")
        assert rank_subjects("Math", catalog) == ["Mathematics Lab", "mathematics"]
        # Not a substring under case-sensitive matching and too dissimilar to pass the threshold
        assert rank_subjects("math", catalog) == ["mathematics"]

    def test_partial_query_small_catalog(self):
        assert rank_subjects("מתמט", ["מתמטיקה", "אנגלית", "עברית"])[0] == "מתמטיקה"

    def test_exact_query_has_full_similarity(self):
        first = score_subjects("ביולוגיה")[0]
        assert first.label == "ביולוגיה"
        assert first.similarity == 1.0

    def test_empty_catalog(self):
        assert rank_subjects("", []) == []
        assert rank_subjects("מתמטיקה", []) == []

    def test_idempotent(self):
        assert rank_subjects("כימ") == rank_subjects("כימ")

    def test_every_result_passes_filter(self):
        for candidate in score_subjects("גאוגרפיה"):
            assert candidate.similarity > 0.3 or candidate.is_substring_match

    def test_results_come_from_catalog(self):
        for query in ("בי", "פיז", "מדע", "אנגלית"):
            assert set(rank_subjects(query)) <= set(SUBJECT_CATALOG)

    def test_is_valid_subject_requires_exact_label(self):
        assert is_valid_subject("מדעי המחשב")
        assert not is_valid_subject("מדעי")
        assert not is_valid_subject("")
