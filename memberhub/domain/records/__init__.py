"""Typed, versioned records held inside collections."""

from .codec import (
    MIGRATIONS,
    RecordSchemaError,
    decode_records,
    encode_records,
    is_typed,
    migrate_record,
    upgrade_collection,
)
from .models import (
    RECORD_TYPES,
    SCHEMA_VERSION,
    Account,
    AnyRecord,
    Card,
    CardType,
    ConsumptionRecord,
    Member,
    OperationLog,
    RechargeRecord,
    RecordModel,
)

__all__ = [
    "MIGRATIONS",
    "RECORD_TYPES",
    "SCHEMA_VERSION",
    "Account",
    "AnyRecord",
    "Card",
    "CardType",
    "ConsumptionRecord",
    "Member",
    "OperationLog",
    "RechargeRecord",
    "RecordModel",
    "RecordSchemaError",
    "decode_records",
    "encode_records",
    "is_typed",
    "migrate_record",
    "upgrade_collection",
]
