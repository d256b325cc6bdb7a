"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.exercise import (
    ExerciseRecord,
    AliasMatch,
    AliasMatchSource,
)
from models.exercise_mapping import (
    MappingSource,
    MatchType,
    UserMapping,
    SuggestedAlternative,
    UnmappedObservation,
    MappingStatistics,
    Alternative,
    ResolutionResult,
    BatchResolution,
    WorkoutResolution,
    ResolveRequest,
    BatchResolveRequest,
    WorkoutResolveRequest,
    UserMappingCreate,
    CorrectionCreate,
    MappingExport,
    ImportResponse,
)

__all__ = [
    # Base
    "BaseSchema",

    # Exercise catalog
    "ExerciseRecord",
    "AliasMatch",
    "AliasMatchSource",

    # Exercise mapping
    "MappingSource",
    "MatchType",
    "UserMapping",
    "SuggestedAlternative",
    "UnmappedObservation",
    "MappingStatistics",
    "Alternative",
    "ResolutionResult",
    "BatchResolution",
    "WorkoutResolution",
    "ResolveRequest",
    "BatchResolveRequest",
    "WorkoutResolveRequest",
    "UserMappingCreate",
    "CorrectionCreate",
    "MappingExport",
    "ImportResponse",
]
