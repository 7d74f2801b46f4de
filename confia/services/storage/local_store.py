"""
Local Storage Implementation (demo mode)

DESIGN DECISION: Demo mode keeps each collection as one JSON array under
a fixed key, stored in a directory of JSON files on this device:
1. Works without any account or network
2. Survives restarts
3. Same data shape as the records the UI already renders

TRADEOFFS:
- Every write rewrites the whole collection (fine for small datasets)
- Writes are atomic file replaces, so a crash never leaves half a file
- Unparseable data is treated as an empty collection, never as an error
- OS-level read/write failures on create or delete surface as PersistenceError
"""

import os
import tempfile
from pathlib import Path
from typing import Optional
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError

from confia.audit import AuditLogger
from confia.config import get_settings
from confia.models.records import (
    RECORD_MODELS,
    EntityKind,
    Record,
    RecordCreate,
    StoreMode,
)
from confia.services.storage.interface import (
    MalformedLocalDataError,
    PersistenceError,
    RecordStoreInterface,
)


_LIST_ADAPTERS = {
    entity: TypeAdapter(list[model]) for entity, model in RECORD_MODELS.items()
}


class LocalKeyValueStore:
    """
    Persistent string key/value store scoped to this device.

    Each key maps to one file, `<data_dir>/<key>.json`.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        self._data_dir = Path(data_dir or get_settings().local_store.data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    def get_item(self, key: str) -> Optional[bytes]:
        """
        Return the stored value, or None when the key is absent.

        Bytes are returned undecoded; the caller validates the encoding.
        """
        try:
            return self._path(key).read_bytes()
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing the previous one atomically."""
        self._data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._data_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def remove_item(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        self._path(key).unlink(missing_ok=True)


class LocalRecordStore(RecordStoreInterface):
    """
    Local implementation of the record store.

    Every operation is a single synchronous read-modify-write with no
    await in between, so two operations never interleave on the event loop.
    """

    mode = StoreMode.LOCAL

    def __init__(
        self,
        kv_store: Optional[LocalKeyValueStore] = None,
        key_prefix: Optional[str] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._kv = kv_store or LocalKeyValueStore()
        self._key_prefix = key_prefix or get_settings().local_store.key_prefix
        self._audit_logger = audit_logger or AuditLogger()

    def storage_key(self, entity: EntityKind) -> str:
        """Fixed key of a collection, e.g. `confia_customers`."""
        return f"{self._key_prefix}{entity.value}"

    def _decode(self, entity: EntityKind, raw: bytes) -> list[Record]:
        """Parse a stored JSON array into records."""
        try:
            return _LIST_ADAPTERS[entity].validate_json(raw)
        except (ValidationError, UnicodeDecodeError) as e:
            raise MalformedLocalDataError(
                f"Invalid data under {self.storage_key(entity)}: {e}"
            ) from e

    def _encode(self, entity: EntityKind, records: list[Record]) -> str:
        return _LIST_ADAPTERS[entity].dump_json(records).decode("utf-8")

    def _read(self, entity: EntityKind, strict: bool = False) -> list[Record]:
        """
        Load a collection.

        Malformed data always reads as empty. A file that cannot be read
        at all reads as empty too, or raises PersistenceError when
        `strict`. Create and delete read strictly.
        """
        key = self.storage_key(entity)
        try:
            raw = self._kv.get_item(key)
        except OSError as e:
            if strict:
                raise PersistenceError(f"Cannot read {key}: {e}") from e
            self._audit_logger.log_malformed_local_data(entity.value, key, str(e))
            return []

        if raw is None:
            return []

        try:
            return self._decode(entity, raw)
        except MalformedLocalDataError as e:
            self._audit_logger.log_malformed_local_data(
                entity_type=entity.value,
                storage_key=key,
                error_message=str(e),
            )
            return []

    def _write(self, entity: EntityKind, records: list[Record]) -> None:
        key = self.storage_key(entity)
        try:
            self._kv.set_item(key, self._encode(entity, records))
        except OSError as e:
            raise PersistenceError(f"Cannot write {key}: {e}") from e

    async def list_records(self, entity: EntityKind) -> list[Record]:
        """Read a collection. Absent or unreadable data yields an empty list."""
        return self._read(entity)

    async def create_record(self, entity: EntityKind, fields: RecordCreate) -> Record:
        """
        Append a record with a fresh random id.

        Raises:
            PersistenceError: If the collection cannot be read or written
        """
        records = self._read(entity, strict=True)
        used_ids = {record.id for record in records}

        record_id = str(uuid4())
        while record_id in used_ids:
            record_id = str(uuid4())

        record = RECORD_MODELS[entity](id=record_id, **fields.model_dump())
        records.append(record)
        self._write(entity, records)
        return record

    async def delete_record(self, entity: EntityKind, record_id: str) -> None:
        """
        Remove the record with this id, if present.

        Raises:
            PersistenceError: If the collection cannot be read or written
        """
        records = self._read(entity, strict=True)
        remaining = [record for record in records if record.id != record_id]
        if len(remaining) != len(records):
            self._write(entity, remaining)

    def clear(self) -> None:
        """Wipe all demo data."""
        for entity in EntityKind:
            self._kv.remove_item(self.storage_key(entity))
