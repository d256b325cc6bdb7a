"""
Business logic services.

Each service handles one part of exercise name resolution.
"""

from services.exercise_catalog_service import (
    ExerciseCatalog,
    StaticExerciseCatalog,
    get_exercise_catalog,
)
from services.alias_matcher_service import AliasMatcher, get_alias_matcher
from services.mapping_storage import (
    KeyValueStorage,
    InMemoryStorage,
    JsonFileStorage,
    SupabaseKeyValueStorage,
    get_mapping_storage,
)
from services.mapping_store import MappingStore
from services.exercise_mapping_service import (
    ExerciseMappingService,
    get_exercise_mapping_service,
)

__all__ = [
    "ExerciseCatalog",
    "StaticExerciseCatalog",
    "get_exercise_catalog",
    "AliasMatcher",
    "get_alias_matcher",
    "KeyValueStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    "SupabaseKeyValueStorage",
    "get_mapping_storage",
    "MappingStore",
    "ExerciseMappingService",
    "get_exercise_mapping_service",
]
