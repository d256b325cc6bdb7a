"""
Mapping store: owns the persisted exercise mapping state.

Three record families live in memory and are mirrored to a KeyValueStorage:
- user mappings, keyed by normalized query
- unmapped observations, keyed by normalized query
- one statistics record

In-memory state is authoritative. Durable writes are best-effort: a failed
write is logged and the store keeps serving from memory.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Optional
import structlog
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from config.mapping import (
    STORAGE_KEY_USER_MAPPINGS,
    STORAGE_KEY_UNMAPPED,
    STORAGE_KEY_STATISTICS,
)
from models.exercise_mapping import (
    UserMapping,
    UnmappedObservation,
    SuggestedAlternative,
    MappingStatistics,
)
from services.mapping_storage import KeyValueStorage
from exceptions import MappingStorageError
from utils.text_utils import normalize_query

logger = structlog.get_logger(__name__)

STATISTICS_COUNTERS = ("total_attempts", "successful_matches", "user_corrections")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _empty_statistics() -> MappingStatistics:
    return MappingStatistics(last_updated_at=_now())


class MappingStore:
    """
    Persistence for user mappings, unmapped observations and statistics.

    Loading is lazy and happens once: every public method triggers it, and
    concurrent first callers wait on the same load instead of starting a
    second one.
    """

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage
        self._user_mappings: dict[str, UserMapping] = {}
        self._unmapped: dict[str, UnmappedObservation] = {}
        self._statistics: MappingStatistics = _empty_statistics()
        self._loaded = False
        self._load_lock = threading.Lock()
        self._lock = threading.RLock()

    # ===================
    # LOADING
    # ===================

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def load(self) -> None:
        """
        Read all three families from storage.

        Safe to call repeatedly; only the first call touches storage.
        A missing or corrupt family starts empty without affecting the others.
        """
        if self._loaded:
            return

        with self._load_lock:
            if self._loaded:
                return

            mappings = self._read_family(STORAGE_KEY_USER_MAPPINGS, list[UserMapping]) or []
            unmapped = self._read_family(STORAGE_KEY_UNMAPPED, list[UnmappedObservation]) or []
            statistics = self._read_family(STORAGE_KEY_STATISTICS, MappingStatistics)

            with self._lock:
                self._user_mappings = {normalize_query(m.query): m for m in mappings}
                self._unmapped = {normalize_query(u.query): u for u in unmapped}
                self._statistics = statistics or _empty_statistics()
                self._statistics.unmapped_count = len(self._unmapped)

            self._loaded = True

            logger.info(
                "mapping_store_loaded",
                backend=self.storage.name,
                user_mappings=len(self._user_mappings),
                unmapped=len(self._unmapped),
                total_attempts=self._statistics.total_attempts
            )

    def _ensure_loaded(self):
        if not self._loaded:
            self.load()

    def _read_family(self, key: str, schema: Any) -> Optional[Any]:
        """Read and validate one family. Returns None if missing or unusable."""
        try:
            raw = self.storage.read(key)
        except MappingStorageError as e:
            logger.error(
                "mapping_family_read_failed",
                key=key,
                error=str(e),
                error_type=type(e).__name__
            )
            return None

        if raw is None:
            logger.debug("mapping_family_missing", key=key)
            return None

        try:
            return TypeAdapter(schema).validate_python(raw)
        except PydanticValidationError as e:
            logger.warning(
                "mapping_family_corrupt",
                key=key,
                errors=e.error_count()
            )
            return None

    # ===================
    # PERSISTENCE
    # ===================

    def _persist(self, key: str, value: Any) -> None:
        try:
            self.storage.write(key, value)
        except MappingStorageError as e:
            logger.error(
                "mapping_family_write_failed",
                key=key,
                error=str(e),
                error_type=type(e).__name__
            )

    def _save_user_mappings(self):
        self._persist(
            STORAGE_KEY_USER_MAPPINGS,
            [m.model_dump(mode="json") for m in self._user_mappings.values()]
        )

    def _save_unmapped(self):
        self._persist(
            STORAGE_KEY_UNMAPPED,
            [u.model_dump(mode="json") for u in self._unmapped.values()]
        )

    def _save_statistics(self):
        self._persist(STORAGE_KEY_STATISTICS, self._statistics.model_dump(mode="json"))

    # ===================
    # USER MAPPINGS
    # ===================

    def get_user_mapping(self, query: str) -> Optional[UserMapping]:
        self._ensure_loaded()
        mapping = self._user_mappings.get(normalize_query(query))
        return mapping.model_copy(deep=True) if mapping else None

    def upsert_user_mapping(self, mapping: UserMapping) -> UserMapping:
        """Insert or replace the mapping for mapping.query (last write wins)."""
        self._ensure_loaded()
        key = normalize_query(mapping.query)
        stored = mapping.model_copy(update={"query": key}, deep=True)

        with self._lock:
            self._user_mappings[key] = stored
            self._save_user_mappings()

        return stored.model_copy(deep=True)

    def touch_user_mapping(self, query: str) -> Optional[UserMapping]:
        """Record one more use of a mapping. Returns the updated mapping."""
        self._ensure_loaded()
        key = normalize_query(query)

        with self._lock:
            mapping = self._user_mappings.get(key)
            if mapping is None:
                return None
            mapping.usage_count += 1
            mapping.last_used_at = _now()
            self._save_user_mappings()
            return mapping.model_copy(deep=True)

    def remove_user_mapping(self, query: str) -> bool:
        """Returns True if a mapping existed and was removed."""
        self._ensure_loaded()
        key = normalize_query(query)

        with self._lock:
            if self._user_mappings.pop(key, None) is None:
                return False
            self._save_user_mappings()

        logger.info("user_mapping_removed", query=key)
        return True

    def list_user_mappings(self) -> list[UserMapping]:
        """All user mappings, most used first."""
        self._ensure_loaded()
        return [
            m.model_copy(deep=True)
            for m in sorted(self._user_mappings.values(), key=lambda m: m.usage_count, reverse=True)
        ]

    def replace_user_mappings(self, mappings: list[UserMapping]) -> None:
        self._ensure_loaded()
        with self._lock:
            self._user_mappings = {
                normalize_query(m.query): m.model_copy(update={"query": normalize_query(m.query)}, deep=True)
                for m in mappings
            }
            self._save_user_mappings()

    # ===================
    # UNMAPPED OBSERVATIONS
    # ===================

    def get_unmapped(self, query: str) -> Optional[UnmappedObservation]:
        self._ensure_loaded()
        observation = self._unmapped.get(normalize_query(query))
        return observation.model_copy(deep=True) if observation else None

    def record_unmapped(
        self,
        query: str,
        context: Optional[str] = None,
        suggest: Optional[Callable[[], list[SuggestedAlternative]]] = None
    ) -> UnmappedObservation:
        """
        Create or update the observation for query.

        Args:
            query: Query that failed to resolve confidently
            context: Where it appeared; kept once per distinct value
            suggest: Called only when the observation is first created

        Returns:
            The updated observation
        """
        self._ensure_loaded()
        key = normalize_query(query)
        now = _now()
        context = (context or "").strip()

        with self._lock:
            observation = self._unmapped.get(key)
            if observation:
                observation.occurrence_count += 1
                observation.last_seen_at = now
                if context and context not in observation.contexts:
                    observation.contexts.append(context)
            else:
                observation = UnmappedObservation(
                    query=key,
                    occurrence_count=1,
                    first_seen_at=now,
                    last_seen_at=now,
                    contexts=[context] if context else [],
                    suggested_alternatives=suggest() if suggest else [],
                )
                self._unmapped[key] = observation

            self._statistics.unmapped_count = len(self._unmapped)
            self._statistics.last_updated_at = now
            self._save_unmapped()
            self._save_statistics()

            logger.info(
                "unmapped_exercise_recorded",
                query=key,
                occurrences=observation.occurrence_count
            )
            return observation.model_copy(deep=True)

    def remove_unmapped(self, query: str) -> bool:
        """Returns True if an observation existed and was removed."""
        self._ensure_loaded()
        key = normalize_query(query)

        with self._lock:
            if self._unmapped.pop(key, None) is None:
                return False
            self._statistics.unmapped_count = len(self._unmapped)
            self._statistics.last_updated_at = _now()
            self._save_unmapped()
            self._save_statistics()
            return True

    def list_unmapped(self) -> list[UnmappedObservation]:
        """All unmapped observations, most frequent first."""
        self._ensure_loaded()
        return [
            u.model_copy(deep=True)
            for u in sorted(self._unmapped.values(), key=lambda u: u.occurrence_count, reverse=True)
        ]

    def replace_unmapped(self, observations: list[UnmappedObservation]) -> None:
        self._ensure_loaded()
        with self._lock:
            self._unmapped = {
                normalize_query(u.query): u.model_copy(update={"query": normalize_query(u.query)}, deep=True)
                for u in observations
            }
            self._statistics.unmapped_count = len(self._unmapped)
            self._save_unmapped()
            self._save_statistics()

    # ===================
    # STATISTICS
    # ===================

    def get_statistics(self) -> MappingStatistics:
        self._ensure_loaded()
        return self._statistics.model_copy(deep=True)

    def increment_statistics(self, **increments: int) -> MappingStatistics:
        """
        Add to statistics counters and persist.

        Usage:
            store.increment_statistics(total_attempts=1)
        """
        self._ensure_loaded()
        unknown = set(increments) - set(STATISTICS_COUNTERS)
        if unknown:
            raise ValueError(f"Unknown statistics counters: {sorted(unknown)}")

        with self._lock:
            for field, amount in increments.items():
                setattr(self._statistics, field, getattr(self._statistics, field) + amount)
            self._statistics.last_updated_at = _now()
            self._save_statistics()
            return self._statistics.model_copy(deep=True)

    def replace_statistics(self, statistics: MappingStatistics) -> None:
        """Overwrite statistics as given (used by import)."""
        self._ensure_loaded()
        with self._lock:
            self._statistics = statistics.model_copy(deep=True)
            self._save_statistics()

    # ===================
    # RESET
    # ===================

    def clear_all(self) -> None:
        """Wipe all three families in memory and in storage."""
        self._ensure_loaded()

        with self._lock:
            self._user_mappings = {}
            self._unmapped = {}
            self._statistics = _empty_statistics()

            for key in (STORAGE_KEY_USER_MAPPINGS, STORAGE_KEY_UNMAPPED, STORAGE_KEY_STATISTICS):
                try:
                    self.storage.delete(key)
                except MappingStorageError as e:
                    logger.error("mapping_family_delete_failed", key=key, error=str(e))

        logger.info("mapping_store_cleared", backend=self.storage.name)
