"""
Alternative generator: secondary candidates offered next to a resolution.

Candidates come from three places, in this order:
1. The alias matcher's best hit (its own score)
2. Catalog keyword search (fixed confidence)
3. Popular exercises, only for exhaustive lists that are still short
"""

from typing import Optional, Protocol
import structlog

from config.mapping import (
    KEYWORD_ALTERNATIVE_CONFIDENCE,
    KEYWORD_ALTERNATIVES_LIMIT,
    KEYWORD_ALTERNATIVES_EXHAUSTIVE_LIMIT,
    POPULAR_ALTERNATIVE_CONFIDENCE,
    POPULAR_EXERCISE_IDS,
    MIN_EXHAUSTIVE_ALTERNATIVES,
    MAX_EXHAUSTIVE_ALTERNATIVES,
)
from models.exercise import AliasMatch
from models.exercise_mapping import Alternative
from services.exercise_catalog_service import ExerciseCatalog
from utils.text_utils import tokenize

logger = structlog.get_logger(__name__)


class SimilarityMatcher(Protocol):
    """Scores free text against catalog aliases."""

    def best_alias_match(self, text: str) -> Optional[AliasMatch]:
        ...


class AlternativeGenerator:
    """Builds ranked, de-duplicated alternative lists."""

    def __init__(self, catalog: ExerciseCatalog, matcher: SimilarityMatcher):
        self.catalog = catalog
        self.matcher = matcher

    def generate(
        self,
        query: str,
        exclude_exercise_id: Optional[str] = None,
        exhaustive: bool = False
    ) -> list[Alternative]:
        """
        Generate alternatives for query.

        Args:
            query: Free-text exercise name
            exclude_exercise_id: Exercise already chosen as the primary result
            exhaustive: Return more keyword hits and backfill with popular exercises

        Returns:
            Alternatives sorted by confidence, highest first
        """
        alternatives: list[Alternative] = []
        seen: set[str] = set()

        def add(exercise_id: str, confidence: float, reason: str) -> None:
            if exercise_id in seen or exercise_id == exclude_exercise_id:
                return
            exercise = self.catalog.get_by_id(exercise_id)
            if exercise is None:
                return
            seen.add(exercise_id)
            alternatives.append(Alternative(
                exercise_id=exercise_id,
                exercise=exercise,
                confidence=confidence,
                reason=reason,
            ))

        match = self.matcher.best_alias_match(query) if query else None
        if match:
            add(match.catalog_id, match.score, f"Similarity match: {match.alias}")

        limit = KEYWORD_ALTERNATIVES_EXHAUSTIVE_LIMIT if exhaustive else KEYWORD_ALTERNATIVES_LIMIT
        keyword_hits = [
            exercise for exercise in self.catalog.search_by_keywords(tokenize(query))
            if exercise.id != exclude_exercise_id and exercise.id not in seen
        ][:limit]
        for exercise in keyword_hits:
            add(exercise.id, KEYWORD_ALTERNATIVE_CONFIDENCE, "Keyword match")

        if exhaustive and len(alternatives) < MIN_EXHAUSTIVE_ALTERNATIVES:
            for exercise_id in POPULAR_EXERCISE_IDS:
                if len(alternatives) >= MAX_EXHAUSTIVE_ALTERNATIVES:
                    break
                add(exercise_id, POPULAR_ALTERNATIVE_CONFIDENCE, "Popular alternative")

        alternatives.sort(key=lambda alt: alt.confidence, reverse=True)

        logger.debug(
            "alternatives_generated",
            query=query,
            excluded=exclude_exercise_id,
            count=len(alternatives)
        )
        return alternatives
