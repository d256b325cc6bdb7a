"""
Exercise catalog: read-only dictionary of canonical exercises.

The mapping service only needs lookup by id and keyword search, so any
object with those two methods can stand in for StaticExerciseCatalog.
"""

from functools import lru_cache
from typing import Iterable, Optional, Protocol
import structlog

from models.exercise import ExerciseRecord

logger = structlog.get_logger(__name__)


class ExerciseCatalog(Protocol):
    """What the mapping pipeline needs from a catalog."""

    def get_by_id(self, exercise_id: str) -> Optional[ExerciseRecord]:
        ...

    def search_by_keywords(self, keywords: list[str]) -> list[ExerciseRecord]:
        ...


# =============================================================================
# DEFAULT CATALOG
# =============================================================================
# Every id referenced by config.mapping (fallback, popular, semantic defaults)
# must be present here.

DEFAULT_EXERCISES: list[dict] = [
    {
        "id": "push-up",
        "name": "Push-Up",
        "description": "Upper body press from a plank position.",
        "primary_muscles": ["chest", "shoulders", "triceps"],
        "equipment": ["bodyweight"],
        "aliases": ["push up", "pushup", "pushups", "press up", "press-up"],
    },
    {
        "id": "squat",
        "name": "Bodyweight Squat",
        "description": "Fundamental lower body squat pattern.",
        "primary_muscles": ["legs", "glutes"],
        "equipment": ["bodyweight"],
        "aliases": ["squat", "squats", "air squat", "back squat", "goblet squat"],
    },
    {
        "id": "plank",
        "name": "Plank",
        "description": "Isometric core hold on forearms and toes.",
        "primary_muscles": ["core"],
        "equipment": ["bodyweight", "yoga-mat"],
        "aliases": ["front plank", "forearm plank", "plank hold"],
    },
    {
        "id": "bench-press",
        "name": "Bench Press",
        "description": "Horizontal barbell press lying on a flat bench.",
        "primary_muscles": ["chest", "triceps", "shoulders"],
        "equipment": ["barbell", "bench"],
        "aliases": ["bench", "barbell bench", "flat bench press", "chest press", "bb bench", "db bench"],
    },
    {
        "id": "deadlift",
        "name": "Deadlift",
        "description": "Hip hinge lifting a loaded barbell from the floor.",
        "primary_muscles": ["back", "glutes", "legs"],
        "equipment": ["barbell"],
        "aliases": ["deadlifts", "conventional deadlift", "barbell deadlift"],
    },
    {
        "id": "overhead-press",
        "name": "Overhead Press",
        "description": "Standing vertical press from shoulders to lockout.",
        "primary_muscles": ["shoulders", "triceps"],
        "equipment": ["barbell"],
        "aliases": ["ohp", "shoulder press", "military press", "strict press"],
    },
    {
        "id": "dumbbell-row",
        "name": "Dumbbell Row",
        "description": "Single-arm row supported on a bench.",
        "primary_muscles": ["back", "biceps"],
        "equipment": ["dumbbells", "bench"],
        "aliases": ["db row", "one arm row", "single arm row", "bent over row"],
    },
    {
        "id": "lunge",
        "name": "Lunge",
        "description": "Split-stance step with both knees bending.",
        "primary_muscles": ["legs", "glutes"],
        "equipment": ["bodyweight"],
        "aliases": ["lunges", "forward lunge", "reverse lunge", "walking lunge"],
    },
    {
        "id": "jumping-jacks",
        "name": "Jumping Jacks",
        "description": "Full body jumping warm-up.",
        "primary_muscles": ["cardio"],
        "equipment": ["bodyweight"],
        "aliases": ["jumping jack", "star jumps"],
    },
    {
        "id": "mountain-climbers",
        "name": "Mountain Climbers",
        "description": "Alternating knee drives from a high plank.",
        "primary_muscles": ["core", "cardio"],
        "equipment": ["bodyweight"],
        "aliases": ["mountain climber"],
    },
    {
        "id": "burpee",
        "name": "Burpee",
        "description": "Squat thrust, push-up and jump in one movement.",
        "primary_muscles": ["full-body", "cardio"],
        "equipment": ["bodyweight"],
        "aliases": ["burpees"],
    },
]


class StaticExerciseCatalog:
    """
    In-memory catalog built from a fixed list of records.

    Records keep their input order; keyword search ties fall back to it.
    """

    def __init__(self, records: Iterable[ExerciseRecord]):
        self._records: list[ExerciseRecord] = list(records)
        self._by_id: dict[str, ExerciseRecord] = {r.id: r for r in self._records}
        self._haystacks: dict[str, str] = {
            r.id: " ".join([r.id, r.name, *r.aliases, *r.primary_muscles]).lower()
            for r in self._records
        }

    @classmethod
    def from_dicts(cls, rows: Iterable[dict]) -> "StaticExerciseCatalog":
        return cls(ExerciseRecord(**row) for row in rows)

    def __len__(self) -> int:
        return len(self._records)

    def all(self) -> list[ExerciseRecord]:
        return list(self._records)

    def get_by_id(self, exercise_id: str) -> Optional[ExerciseRecord]:
        if not exercise_id:
            return None
        return self._by_id.get(exercise_id)

    def search_by_keywords(self, keywords: list[str]) -> list[ExerciseRecord]:
        """
        Rank records by how many keywords they contain.

        A keyword hits a record when it appears anywhere in the record's
        id, name, aliases or muscles. Records with no hits are excluded.

        Args:
            keywords: Search terms (case-insensitive)

        Returns:
            Matching records, most hits first
        """
        terms = [k.lower().strip() for k in keywords if k and k.strip()]
        if not terms:
            return []

        scored = []
        for record in self._records:
            haystack = self._haystacks[record.id]
            hits = sum(1 for term in terms if term in haystack)
            if hits:
                scored.append((hits, record))

        # sorted() is stable, so equal hit counts keep catalog order
        scored.sort(key=lambda pair: pair[0], reverse=True)

        logger.debug("catalog_keyword_search", keywords=terms, matches=len(scored))
        return [record for _, record in scored]


@lru_cache()
def get_exercise_catalog() -> StaticExerciseCatalog:
    """Get the cached default catalog."""
    return StaticExerciseCatalog.from_dicts(DEFAULT_EXERCISES)
