"""
Durable key/value storage for exercise mapping state.

Each record family is stored under one key as a JSON-compatible value.
Backends raise MappingStorageError; callers decide whether that is fatal.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Protocol, Union
import structlog

from config import settings
from exceptions import MappingStorageError

logger = structlog.get_logger(__name__)


class KeyValueStorage(Protocol):
    """Whole-value read/write/delete by key."""

    name: str

    def read(self, key: str) -> Optional[Any]:
        ...

    def write(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class InMemoryStorage:
    """Dict-backed storage. State is lost with the process."""

    name = "memory"

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.write(key, value)

    def read(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def write(self, key: str, value: Any) -> None:
        # Round-trip through JSON so callers never share objects with storage
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """
    One JSON file per key inside a directory.

    Writes go to a temp file first and are moved into place, so a crash
    mid-write leaves the previous value intact.
    """

    name = "file"

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            raise MappingStorageError("read", key, f"Corrupt JSON: {e}") from e
        except OSError as e:
            raise MappingStorageError("read", key, str(e)) from e

    def write(self, key: str, value: Any) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.directory, prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(value, f, indent=2)
                os.replace(tmp_path, self._path(key))
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise MappingStorageError("write", key, str(e)) from e

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise MappingStorageError("delete", key, str(e)) from e


class SupabaseKeyValueStorage:
    """
    Rows of {key, value} in a Supabase table.

    Expected schema:
        key   text primary key
        value jsonb not null
    """

    name = "supabase"

    def __init__(self, client, table: str):
        self.db = client
        self.table = table

    def read(self, key: str) -> Optional[Any]:
        try:
            response = (
                self.db.table(self.table)
                .select("value")
                .eq("key", key)
                .execute()
            )
        except Exception as e:
            raise MappingStorageError("select", key, str(e)) from e

        if not response.data:
            return None

        value = response.data[0].get("value")
        if isinstance(value, str):
            # Tables created with a text column hand back the raw JSON
            try:
                return json.loads(value)
            except json.JSONDecodeError as e:
                raise MappingStorageError("select", key, f"Corrupt JSON: {e}") from e
        return value

    def write(self, key: str, value: Any) -> None:
        try:
            (
                self.db.table(self.table)
                .upsert({"key": key, "value": value}, on_conflict="key")
                .execute()
            )
        except Exception as e:
            raise MappingStorageError("upsert", key, str(e)) from e

    def delete(self, key: str) -> None:
        try:
            self.db.table(self.table).delete().eq("key", key).execute()
        except Exception as e:
            raise MappingStorageError("delete", key, str(e)) from e


def get_mapping_storage() -> KeyValueStorage:
    """
    Build the storage backend selected by STORAGE_BACKEND.

    Returns:
        Storage backend instance
    """
    backend = settings.storage_backend

    if backend == "supabase":
        from config import get_supabase_client
        storage = SupabaseKeyValueStorage(
            get_supabase_client(),
            settings.mapping_state_table
        )
    elif backend == "memory":
        storage = InMemoryStorage()
    else:
        storage = JsonFileStorage(settings.storage_dir)

    logger.info("mapping_storage_selected", backend=storage.name)
    return storage
