"""Domain models for the named-collection store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

KNOWN_COLLECTIONS: tuple[str, ...] = (
    "members",
    "recharges",
    "consumptions",
    "cardTypes",
    "systemSettings",
    "accounts",
    "operationLogs",
    "rolePermissions",
    "staffMembers",
    "teamGroups",
    "branchSettings",
)

# Decoded contents of one collection: normally a list of records, though
# settings-style collections may hold a single object.
CollectionData = Any


def is_registered(name: str) -> bool:
    return name in KNOWN_COLLECTIONS


@dataclass(slots=True)
class CollectionSnapshot:
    name: str
    data: CollectionData
    updated_at: datetime | None = None
