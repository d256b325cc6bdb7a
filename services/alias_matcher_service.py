"""
Alias matcher: scores free text against every catalog name and alias.

Exact hits (after normalization) score 1.0. Everything else goes through
rapidfuzz token_sort_ratio, so word order does not matter:
"row dumbbell" scores the same as "dumbbell row".
"""

from functools import lru_cache
from typing import Optional
import structlog
from rapidfuzz import fuzz, process

from models.exercise import AliasMatch, AliasMatchSource
from services.exercise_catalog_service import StaticExerciseCatalog, get_exercise_catalog
from utils.text_utils import normalize_for_matching

logger = structlog.get_logger(__name__)


class AliasMatcher:
    """Best-alias lookup over a StaticExerciseCatalog."""

    def __init__(self, catalog: StaticExerciseCatalog):
        # normalized text -> (catalog_id, original alias, source)
        self._exact: dict[str, tuple[str, str, AliasMatchSource]] = {}
        self._choices: list[str] = []
        self._entries: list[tuple[str, str]] = []

        for record in catalog.all():
            candidates = [(record.name, AliasMatchSource.NAME), (record.id, AliasMatchSource.NAME)]
            candidates += [(alias, AliasMatchSource.ALIAS) for alias in record.aliases]

            for text, source in candidates:
                normalized = normalize_for_matching(text)
                if not normalized:
                    continue
                # First record to claim a spelling keeps it
                if normalized not in self._exact:
                    self._exact[normalized] = (record.id, text, source)
                    self._choices.append(normalized)
                    self._entries.append((record.id, text))

    def best_alias_match(self, text: str) -> Optional[AliasMatch]:
        """
        Find the catalog alias closest to text.

        Args:
            text: Free-text exercise name

        Returns:
            AliasMatch with score in [0, 1], or None for empty text
        """
        normalized = normalize_for_matching(text)
        if not normalized or not self._choices:
            return None

        exact = self._exact.get(normalized)
        if exact:
            catalog_id, alias, source = exact
            return AliasMatch(catalog_id=catalog_id, alias=alias, matched_by=source, score=1.0)

        best = process.extractOne(normalized, self._choices, scorer=fuzz.token_sort_ratio)
        if best is None:
            return None

        _, score, index = best
        catalog_id, alias = self._entries[index]

        logger.debug("alias_fuzzy_match", text=normalized, alias=alias, score=score)
        return AliasMatch(
            catalog_id=catalog_id,
            alias=alias,
            matched_by=AliasMatchSource.FUZZY,
            score=round(score / 100.0, 4),
        )


@lru_cache()
def get_alias_matcher() -> AliasMatcher:
    """Get the cached matcher over the default catalog."""
    return AliasMatcher(get_exercise_catalog())
