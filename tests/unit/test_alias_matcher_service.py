"""
Unit tests for AliasMatcher.

Run: pytest tests/unit/test_alias_matcher_service.py -v
"""

import pytest

from services.alias_matcher_service import AliasMatcher, get_alias_matcher
from services.exercise_catalog_service import StaticExerciseCatalog
from models.exercise import AliasMatchSource


@pytest.fixture
def alias_matcher(catalog) -> AliasMatcher:
    return AliasMatcher(catalog)


class TestExactMatches:
    """Normalized exact hits score 1.0"""

    def test_alias(self, alias_matcher):
        match = alias_matcher.best_alias_match("bench")

        assert match.catalog_id == "bench-press"
        assert match.score == 1.0
        assert match.matched_by == AliasMatchSource.ALIAS

    def test_name_ignores_case_and_spacing(self, alias_matcher):
        match = alias_matcher.best_alias_match("  BENCH   press ")

        assert match.catalog_id == "bench-press"
        assert match.score == 1.0
        assert match.matched_by == AliasMatchSource.NAME

    def test_hyphenated_name(self, alias_matcher):
        match = alias_matcher.best_alias_match("Push-Up")

        assert match.catalog_id == "push-up"
        assert match.score == 1.0

    def test_accents_removed(self, alias_matcher):
        match = alias_matcher.best_alias_match("Plánk")

        assert match.catalog_id == "plank"
        assert match.score == 1.0

    def test_multi_word_alias(self, alias_matcher):
        match = alias_matcher.best_alias_match("db row")

        assert match.catalog_id == "dumbbell-row"
        assert match.alias == "db row"


class TestFuzzyMatches:
    """Non-exact text goes through token_sort_ratio"""

    def test_typo_scores_high(self, alias_matcher):
        match = alias_matcher.best_alias_match("benchpres")

        assert match.catalog_id == "bench-press"
        assert match.matched_by == AliasMatchSource.FUZZY
        assert 0.85 <= match.score < 1.0

    def test_word_order_ignored(self, alias_matcher):
        match = alias_matcher.best_alias_match("row dumbbell")

        assert match.catalog_id == "dumbbell-row"
        assert match.matched_by == AliasMatchSource.FUZZY
        assert match.score == 1.0

    def test_unrelated_text_scores_low(self, alias_matcher):
        match = alias_matcher.best_alias_match("zottman curl")

        assert match is not None
        assert match.score <= 0.7


class TestEmptyInput:
    """Empty text never matches"""

    @pytest.mark.parametrize("text", ["", "   ", "!!!", None])
    def test_returns_none(self, alias_matcher, text):
        assert alias_matcher.best_alias_match(text) is None

    def test_empty_catalog(self):
        matcher = AliasMatcher(StaticExerciseCatalog([]))

        assert matcher.best_alias_match("bench") is None


class TestDuplicateSpellings:
    """The first record to claim a spelling keeps it"""

    def test_first_claim_wins(self):
        catalog = StaticExerciseCatalog.from_dicts([
            {"id": "bench-press", "name": "Bench Press", "aliases": ["chest press"]},
            {"id": "machine-chest-press", "name": "Machine Chest Press", "aliases": ["chest press"]},
        ])
        matcher = AliasMatcher(catalog)

        assert matcher.best_alias_match("chest press").catalog_id == "bench-press"


def test_cached_matcher():
    assert get_alias_matcher() is get_alias_matcher()
