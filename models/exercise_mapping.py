"""
Exercise mapping schemas.

Three persisted record families (user mappings, unmapped observations,
statistics) plus the transient resolution results and API payloads.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import Field

from models.base import BaseSchema
from models.exercise import ExerciseRecord


class MappingSource(str, Enum):
    """Who asserted a user mapping."""

    MANUAL = "manual"
    CORRECTION = "correction"
    AUTO_LEARNED = "auto-learned"


class MatchType(str, Enum):
    """Pipeline stage that produced a resolution."""

    EXACT = "exact"
    FUZZY = "fuzzy"
    USER_MAPPING = "user_mapping"
    CONTEXTUAL = "contextual"
    SEMANTIC = "semantic"
    GENERIC = "generic"


# ===================
# PERSISTED RECORDS
# ===================

class UserMapping(BaseSchema):
    """Binding from a normalized query to a catalog exercise."""

    query: str = Field(..., description="Normalized query (lower-cased, trimmed)")
    exercise_id: str
    confidence: float = Field(..., ge=0, le=1)
    created_at: datetime
    last_used_at: datetime
    usage_count: int = Field(0, ge=0)
    source: MappingSource = MappingSource.MANUAL


class SuggestedAlternative(BaseSchema):
    """Candidate stored with an unmapped observation."""

    exercise_id: str
    confidence: float
    reason: str


class UnmappedObservation(BaseSchema):
    """A query the pipeline could not resolve confidently."""

    query: str
    occurrence_count: int = Field(1, ge=1)
    first_seen_at: datetime
    last_seen_at: datetime
    contexts: list[str] = Field(default_factory=list)
    suggested_alternatives: list[SuggestedAlternative] = Field(default_factory=list)


class MappingStatistics(BaseSchema):
    """Process-wide resolution counters."""

    total_attempts: int = Field(0, ge=0)
    successful_matches: int = Field(0, ge=0)
    user_corrections: int = Field(0, ge=0)
    unmapped_count: int = Field(0, ge=0)
    last_updated_at: datetime


# ===================
# RESOLUTION RESULTS
# ===================

class Alternative(BaseSchema):
    """Secondary candidate offered for manual correction."""

    exercise_id: str
    exercise: ExerciseRecord
    confidence: float
    reason: str


class ResolutionResult(BaseSchema):
    """Outcome of resolving one free-text exercise name."""

    exercise_id: str
    exercise: ExerciseRecord
    confidence: float = Field(..., ge=0, le=1)
    match_type: MatchType
    match_reason: str
    alternatives: list[Alternative] = Field(default_factory=list)
    needs_review: bool


class BatchResolution(BaseSchema):
    """Results for several queries, in input order."""

    results: list[ResolutionResult]
    needs_review: bool


class WorkoutResolution(BatchResolution):
    """Batch resolution of the candidates extracted from a workout."""

    candidates: list[str] = Field(default_factory=list)


# ===================
# REQUESTS
# ===================

class ResolveRequest(BaseSchema):
    """Resolve a single exercise name."""

    query: str = Field(..., max_length=500)
    context: Optional[str] = Field(None, max_length=1000, description="e.g. originating workout title")


class BatchResolveRequest(BaseSchema):
    """Resolve several exercise names sharing one context."""

    queries: list[str]
    context: Optional[str] = Field(None, max_length=1000)


class WorkoutResolveRequest(BaseSchema):
    """Resolve every exercise name found in a workout description."""

    title: str = Field(..., max_length=200)
    description: str = ""


class UserMappingCreate(BaseSchema):
    """
    Create or replace a user mapping.

    Confidence is clamped to [0, 1] by the service rather than rejected.
    """

    query: str = Field(..., min_length=1, max_length=500)
    exercise_id: str = Field(..., min_length=1)
    confidence: float = 1.0
    source: MappingSource = MappingSource.MANUAL


class CorrectionCreate(BaseSchema):
    """User corrected a resolution."""

    query: str = Field(..., min_length=1, max_length=500)
    exercise_id: str = Field(..., min_length=1)


# ===================
# EXPORT / IMPORT
# ===================

class MappingExport(BaseSchema):
    """
    Snapshot of all persisted mapping state.

    Families left as None are untouched on import.
    """

    user_mappings: Optional[list[UserMapping]] = None
    unmapped: Optional[list[UnmappedObservation]] = None
    statistics: Optional[MappingStatistics] = None
    exported_at: Optional[datetime] = None


class ImportResponse(BaseSchema):
    """Result of an import request."""

    imported: bool
