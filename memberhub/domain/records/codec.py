"""Decode/encode collection contents and upgrade legacy records on read."""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Iterable, Sequence

from pydantic import TypeAdapter, ValidationError

from .models import RECORD_TYPES, SCHEMA_VERSION, AnyRecord, RecordModel

logger = logging.getLogger(__name__)

_record_adapter: TypeAdapter[Any] = TypeAdapter(AnyRecord)

_KIND_BY_COLLECTION = {
    name: model.model_fields["kind"].default for name, model in RECORD_TYPES.items()
}

_LEGACY_CONSUMPTION_STATUS = {
    "已完成": "completed",
    "已取消": "cancelled",
    "进行中": "pending",
}


class RecordSchemaError(ValueError):
    """Raised when stored data cannot be read as the collection's record type."""

    def __init__(self, collection: str, message: str) -> None:
        super().__init__(f"{collection}: {message}")
        self.collection = collection


def _v1_to_v2(kind: str, raw: dict[str, Any]) -> dict[str, Any]:
    raw.setdefault("kind", kind)
    if "time" in raw and "timestamp" not in raw:
        raw["timestamp"] = raw.pop("time")

    if kind == "member":
        raw.setdefault("status", "active")
        if raw.get("balance") is None:
            raw["balance"] = 0
        card = raw.get("card")
        if isinstance(card, dict) and card.get("remainingCount") is None:
            card["remainingCount"] = int(card.get("totalCount", 0)) - int(card.get("usedCount", 0))
    elif kind == "consumption":
        status = raw.get("status")
        if status in _LEGACY_CONSUMPTION_STATUS:
            raw["status"] = _LEGACY_CONSUMPTION_STATUS[status]
    return raw


# Keyed by the version a migration upgrades *from*.
MIGRATIONS: dict[int, Callable[[str, dict[str, Any]], dict[str, Any]]] = {
    1: _v1_to_v2,
}


def migrate_record(kind: str, raw: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``raw`` upgraded to the current schema version."""
    record = copy.deepcopy(raw)
    version = int(record.get("schemaVersion") or 1)
    if version > SCHEMA_VERSION:
        raise ValueError(f"schema version {version} is newer than supported {SCHEMA_VERSION}")
    while version < SCHEMA_VERSION:
        record = MIGRATIONS[version](kind, record)
        version += 1
        record["schemaVersion"] = version
    return record


def is_typed(collection: str) -> bool:
    return collection in RECORD_TYPES


def decode_records(collection: str, data: Any) -> list[RecordModel]:
    """Turn a collection's raw list into typed records.

    Any record that fails validation aborts the decode; silently dropping it
    would delete it on the next write.
    """
    kind = _KIND_BY_COLLECTION.get(collection)
    if kind is None:
        raise RecordSchemaError(collection, "collection holds untyped data")
    if not data:
        return []
    if not isinstance(data, list):
        raise RecordSchemaError(collection, "expected a list of records")

    records: list[RecordModel] = []
    for index, raw in enumerate(data):
        if not isinstance(raw, dict):
            raise RecordSchemaError(collection, f"record #{index} is not an object")
        try:
            record = _record_adapter.validate_python(migrate_record(kind, raw))
        except (ValidationError, ValueError) as exc:
            raise RecordSchemaError(collection, f"record #{index} is invalid: {exc}") from exc
        if record.kind != kind:
            raise RecordSchemaError(collection, f"record #{index} has kind {record.kind!r}")
        records.append(record)
    return records


def encode_records(records: Iterable[RecordModel]) -> list[dict[str, Any]]:
    return [record.to_wire() for record in records]


def upgrade_collection(collection: str, data: Sequence[Any]) -> list[dict[str, Any]]:
    """Re-encode a typed collection at the current schema version."""
    upgraded = encode_records(decode_records(collection, list(data)))
    logger.debug("Upgraded %d %s records to schema v%d", len(upgraded), collection, SCHEMA_VERSION)
    return upgraded
