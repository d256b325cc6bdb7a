"""
Exercise mapping service: resolves free-text exercise names to catalog ids.

Resolution runs these stages in order and the first hit wins:
1. User mapping     stored binding for the normalized query
2. Similarity       alias matcher score above SIMILARITY_MIN_SCORE
3. Contextual       keyword search over query + context tokens
4. Semantic         movement-pattern group default
5. Generic          fixed fallback exercise, query recorded as unmapped

Every result points at an exercise that exists in the catalog. Stages whose
exercise id no longer resolves are treated as misses.
"""

import json
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Optional, Union
import structlog
from pydantic import ValidationError as PydanticValidationError

from config.mapping import (
    SIMILARITY_MIN_SCORE,
    SIMILARITY_EXACT_SCORE,
    SIMILARITY_REVIEW_SCORE,
    USER_MAPPING_BOOST,
    USER_MAPPING_MAX_CONFIDENCE,
    CONTEXTUAL_CONFIDENCE,
    FALLBACK_CONFIDENCE,
    CORRECTION_CONFIDENCE,
    FALLBACK_EXERCISE_ID,
    MIN_CONTEXT_TOKEN_LENGTH,
    CONTEXT_STOP_WORDS,
)
from models.exercise_mapping import (
    MappingSource,
    MatchType,
    UserMapping,
    UnmappedObservation,
    SuggestedAlternative,
    MappingStatistics,
    Alternative,
    ResolutionResult,
    BatchResolution,
    WorkoutResolution,
    MappingExport,
)
from services.mapping_store import MappingStore
from services.mapping_storage import get_mapping_storage
from services.exercise_catalog_service import ExerciseCatalog, get_exercise_catalog
from services.alias_matcher_service import get_alias_matcher
from services.alternative_service import AlternativeGenerator, SimilarityMatcher
from services.semantic_group_service import SemanticGrouper
from parsers.workout_text_parser import extract_exercise_candidates
from exceptions import ExerciseNotFoundError, InvalidMappingImportError
from utils.text_utils import normalize_query, tokenize

logger = structlog.get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def context_keywords(query: str, context: str) -> list[str]:
    """
    Meaningful keywords from a query and its context.

    Drops short tokens and stop words, keeps first-seen order.
    - ("db press", "Upper Body Workout") → ["upper", "body", "press"]
    """
    keywords: list[str] = []
    for token in tokenize(context) + tokenize(query):
        if len(token) < MIN_CONTEXT_TOKEN_LENGTH or token in CONTEXT_STOP_WORDS:
            continue
        if token not in keywords:
            keywords.append(token)
    return keywords


class ExerciseMappingService:
    """
    Exercise name resolution and mapping feedback loop.

    Handles:
        - Staged resolution with confidence and review flags
        - User mappings and corrections
        - Unmapped-exercise tracking and statistics
        - Export / import of learned state
    """

    def __init__(
        self,
        store: MappingStore,
        catalog: ExerciseCatalog,
        matcher: SimilarityMatcher,
        alternatives: Optional[AlternativeGenerator] = None,
        grouper: Optional[SemanticGrouper] = None
    ):
        if catalog.get_by_id(FALLBACK_EXERCISE_ID) is None:
            raise ExerciseNotFoundError(FALLBACK_EXERCISE_ID)

        self.store = store
        self.catalog = catalog
        self.matcher = matcher
        self.alternatives = alternatives or AlternativeGenerator(catalog, matcher)
        self.grouper = grouper or SemanticGrouper()

    # ===================
    # RESOLUTION
    # ===================

    def resolve(self, query: str, context: Optional[str] = None) -> ResolutionResult:
        """
        Resolve a free-text exercise name.

        Never raises: a failing stage is logged and skipped, and the generic
        fallback always produces a result.

        Args:
            query: Exercise name as written by the generator or user
            context: Optional surrounding text, e.g. the workout title

        Returns:
            ResolutionResult from the first stage that matched
        """
        query = query or ""
        normalized = normalize_query(query)

        self.store.increment_statistics(total_attempts=1)
        logger.info("resolving_exercise", query=query, context=context)

        stages = (
            ("user_mapping", self._match_user_mapping),
            ("similarity", self._match_similarity),
            ("contextual", self._match_contextual),
            ("semantic", self._match_semantic),
        )

        for stage, match in stages:
            try:
                result = match(query, normalized, context)
            except Exception as e:
                logger.error(
                    "resolution_stage_failed",
                    stage=stage,
                    query=query,
                    error=str(e),
                    error_type=type(e).__name__
                )
                continue

            if result is not None:
                self.store.increment_statistics(successful_matches=1)
                logger.info(
                    "exercise_resolved",
                    query=query,
                    exercise_id=result.exercise_id,
                    match_type=result.match_type.value,
                    confidence=result.confidence
                )
                return result

        return self._fallback(query, normalized, context)

    def _match_user_mapping(
        self, query: str, normalized: str, context: Optional[str]
    ) -> Optional[ResolutionResult]:
        mapping = self.store.get_user_mapping(normalized)
        if mapping is None:
            return None

        exercise = self.catalog.get_by_id(mapping.exercise_id)
        if exercise is None:
            logger.warning(
                "user_mapping_dangling",
                query=normalized,
                exercise_id=mapping.exercise_id
            )
            return None

        used = self.store.touch_user_mapping(normalized) or mapping

        return ResolutionResult(
            exercise_id=exercise.id,
            exercise=exercise,
            confidence=min(USER_MAPPING_MAX_CONFIDENCE, mapping.confidence + USER_MAPPING_BOOST),
            match_type=MatchType.USER_MAPPING,
            match_reason=f"User-defined mapping (used {used.usage_count} times)",
            alternatives=[],
            needs_review=False,
        )

    def _match_similarity(
        self, query: str, normalized: str, context: Optional[str]
    ) -> Optional[ResolutionResult]:
        match = self.matcher.best_alias_match(query)
        if match is None or match.score <= SIMILARITY_MIN_SCORE:
            return None

        exercise = self.catalog.get_by_id(match.catalog_id)
        if exercise is None:
            return None

        return ResolutionResult(
            exercise_id=exercise.id,
            exercise=exercise,
            confidence=match.score,
            match_type=MatchType.EXACT if match.score > SIMILARITY_EXACT_SCORE else MatchType.FUZZY,
            match_reason=f'{match.matched_by.value} match: "{match.alias}" (score: {match.score:.2f})',
            alternatives=self._safe_alternatives(query, exercise.id),
            needs_review=match.score < SIMILARITY_REVIEW_SCORE,
        )

    def _match_contextual(
        self, query: str, normalized: str, context: Optional[str]
    ) -> Optional[ResolutionResult]:
        if not context:
            return None

        keywords = context_keywords(query, context)
        if not keywords:
            return None

        hits = self.catalog.search_by_keywords(keywords)
        if not hits:
            return None

        exercise = hits[0]
        return ResolutionResult(
            exercise_id=exercise.id,
            exercise=exercise,
            confidence=CONTEXTUAL_CONFIDENCE,
            match_type=MatchType.CONTEXTUAL,
            match_reason="Contextual match based on workout context",
            alternatives=self._safe_alternatives(query, exercise.id),
            needs_review=True,
        )

    def _match_semantic(
        self, query: str, normalized: str, context: Optional[str]
    ) -> Optional[ResolutionResult]:
        classified = self.grouper.classify(query)
        if classified is None:
            return None

        exercise_id, confidence = classified
        exercise = self.catalog.get_by_id(exercise_id)
        if exercise is None:
            logger.warning("semantic_default_missing", exercise_id=exercise_id)
            return None

        return ResolutionResult(
            exercise_id=exercise.id,
            exercise=exercise,
            confidence=confidence,
            match_type=MatchType.SEMANTIC,
            match_reason="Semantic similarity match",
            alternatives=self._safe_alternatives(query, exercise.id),
            needs_review=True,
        )

    def _fallback(self, query: str, normalized: str, context: Optional[str]) -> ResolutionResult:
        exercise = self.catalog.get_by_id(FALLBACK_EXERCISE_ID)

        alternatives = self._safe_alternatives(query, FALLBACK_EXERCISE_ID, exhaustive=True)

        if normalized:
            self.store.record_unmapped(
                normalized,
                context,
                suggest=lambda: [
                    SuggestedAlternative(
                        exercise_id=alt.exercise_id,
                        confidence=alt.confidence,
                        reason=alt.reason,
                    )
                    for alt in self._safe_alternatives(query, None, exhaustive=True)
                ],
            )

        logger.warning("exercise_unresolved", query=query, context=context)

        return ResolutionResult(
            exercise_id=exercise.id,
            exercise=exercise,
            confidence=FALLBACK_CONFIDENCE,
            match_type=MatchType.GENERIC,
            match_reason=f'No match found. Using generic exercise. Original: "{query}"',
            alternatives=alternatives,
            needs_review=True,
        )

    def _safe_alternatives(
        self, query: str, exclude_exercise_id: Optional[str], exhaustive: bool = False
    ) -> list[Alternative]:
        try:
            return self.alternatives.generate(query, exclude_exercise_id, exhaustive=exhaustive)
        except Exception as e:
            logger.error(
                "alternatives_failed",
                query=query,
                error=str(e),
                error_type=type(e).__name__
            )
            return []

    # ===================
    # BATCH
    # ===================

    def resolve_all(self, queries: list[str], context: Optional[str] = None) -> list[ResolutionResult]:
        """Resolve each query in order. Empty input gives an empty list."""
        return [self.resolve(query, context) for query in queries]

    def resolve_batch(self, queries: list[str], context: Optional[str] = None) -> BatchResolution:
        """Resolve queries and flag the batch if any result needs review."""
        results = self.resolve_all(queries, context)
        return BatchResolution(
            results=results,
            needs_review=any(r.needs_review for r in results),
        )

    def resolve_workout(self, title: str, description: str = "") -> WorkoutResolution:
        """
        Resolve every candidate exercise name found in a workout.

        The workout title is used as context for each candidate.
        """
        candidates = extract_exercise_candidates(title, description)
        results = self.resolve_all(candidates, title)

        logger.info(
            "workout_resolved",
            title=title,
            candidates=len(candidates),
            needs_review=sum(1 for r in results if r.needs_review)
        )

        return WorkoutResolution(
            candidates=candidates,
            results=results,
            needs_review=any(r.needs_review for r in results),
        )

    # ===================
    # LEARNING
    # ===================

    def create_user_mapping(
        self,
        query: str,
        exercise_id: str,
        confidence: float = 1.0,
        source: MappingSource = MappingSource.MANUAL
    ) -> bool:
        """
        Bind a query to an exercise.

        Replaces any existing mapping for the query and clears its unmapped
        observation.

        Args:
            query: Exercise name (normalized before storing)
            exercise_id: Catalog id to bind to
            confidence: Clamped to [0, 1]
            source: Who asserted the mapping

        Returns:
            False if the exercise id is unknown or the query is empty
        """
        normalized = normalize_query(query)

        if self.catalog.get_by_id(exercise_id) is None:
            logger.warning("user_mapping_rejected", query=normalized, exercise_id=exercise_id, reason="unknown_exercise")
            return False

        if not normalized:
            logger.warning("user_mapping_rejected", exercise_id=exercise_id, reason="empty_query")
            return False

        now = _now()
        self.store.upsert_user_mapping(UserMapping(
            query=normalized,
            exercise_id=exercise_id,
            confidence=max(0.0, min(1.0, confidence)),
            created_at=now,
            last_used_at=now,
            usage_count=0,
            source=source,
        ))

        self.store.remove_unmapped(normalized)

        if source == MappingSource.CORRECTION:
            self.store.increment_statistics(user_corrections=1)

        logger.info(
            "user_mapping_created",
            query=normalized,
            exercise_id=exercise_id,
            source=source.value
        )
        return True

    def learn_from_correction(self, query: str, corrected_exercise_id: str) -> bool:
        """
        Record a user correction.

        The resulting mapping wins over every other stage for this query
        until it is removed.
        """
        return self.create_user_mapping(
            query,
            corrected_exercise_id,
            confidence=CORRECTION_CONFIDENCE,
            source=MappingSource.CORRECTION,
        )

    def remove_user_mapping(self, query: str) -> bool:
        return self.store.remove_user_mapping(query)

    def get_user_mapping(self, query: str) -> Optional[UserMapping]:
        return self.store.get_user_mapping(query)

    def list_user_mappings(self) -> list[UserMapping]:
        return self.store.list_user_mappings()

    def list_unmapped(self) -> list[UnmappedObservation]:
        return self.store.list_unmapped()

    def get_statistics(self) -> MappingStatistics:
        return self.store.get_statistics()

    def clear_all_data(self) -> None:
        self.store.clear_all()
        logger.info("exercise_mapping_data_cleared")

    # ===================
    # EXPORT / IMPORT
    # ===================

    def export_all(self) -> str:
        """Serialize all learned state into one JSON document."""
        snapshot = MappingExport(
            user_mappings=self.store.list_user_mappings(),
            unmapped=self.store.list_unmapped(),
            statistics=self.store.get_statistics(),
            exported_at=_now(),
        )
        return snapshot.model_dump_json(indent=2)

    def import_all(self, snapshot: Union[str, bytes, dict[str, Any]]) -> bool:
        """
        Restore state from an export document.

        Each family present in the document replaces the current one;
        absent families are left untouched. Nothing changes if the document
        is malformed.

        Returns:
            True if the document was applied
        """
        try:
            document = self._parse_snapshot(snapshot)
        except InvalidMappingImportError as e:
            logger.error("mapping_import_failed", error=e.message, details=e.details)
            return False

        if document.user_mappings is not None:
            self.store.replace_user_mappings(document.user_mappings)

        if document.unmapped is not None:
            self.store.replace_unmapped(document.unmapped)

        if document.statistics is not None:
            unmapped_count = len(self.store.list_unmapped())
            self.store.replace_statistics(
                document.statistics.model_copy(update={"unmapped_count": unmapped_count})
            )

        logger.info(
            "mapping_import_complete",
            user_mappings=len(document.user_mappings or []),
            unmapped=len(document.unmapped or []),
            statistics=document.statistics is not None
        )
        return True

    @staticmethod
    def _parse_snapshot(snapshot: Union[str, bytes, dict[str, Any]]) -> MappingExport:
        """
        Validate an export document.

        Raises:
            InvalidMappingImportError: If it is not JSON, fails validation, or
                contains none of the three families
        """
        if isinstance(snapshot, (str, bytes)):
            try:
                snapshot = json.loads(snapshot)
            except ValueError as e:
                raise InvalidMappingImportError(f"Import document is not valid JSON: {e}")

        if not isinstance(snapshot, dict):
            raise InvalidMappingImportError("Import document must be a JSON object")

        try:
            document = MappingExport.model_validate(snapshot)
        except PydanticValidationError as e:
            raise InvalidMappingImportError(
                "Import document failed validation",
                details={"errors": e.error_count()}
            )

        if document.user_mappings is None and document.unmapped is None and document.statistics is None:
            raise InvalidMappingImportError("Import document contains no mapping data")

        stats = document.statistics
        if stats is not None and stats.successful_matches > stats.total_attempts:
            raise InvalidMappingImportError(
                "Import statistics report more successful matches than attempts",
                details={
                    "total_attempts": stats.total_attempts,
                    "successful_matches": stats.successful_matches,
                }
            )

        return document


@lru_cache()
def get_exercise_mapping_service() -> ExerciseMappingService:
    """
    Build the production service wiring.

    Used as a FastAPI dependency; tests override it or construct
    ExerciseMappingService directly.
    """
    return ExerciseMappingService(
        store=MappingStore(get_mapping_storage()),
        catalog=get_exercise_catalog(),
        matcher=get_alias_matcher(),
    )
