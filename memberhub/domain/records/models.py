"""Typed record models stored inside collections.

Every record carries a ``kind`` tag and a ``schemaVersion``. The wire format
is the camelCase JSON object the store has always held; attributes these
models do not declare are kept as extras so nothing is lost on re-encode.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

SCHEMA_VERSION = 2

MemberStatus = Literal["active", "inactive", "suspended"]


class RecordModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        validate_assignment=True,
    )

    schema_version: int = SCHEMA_VERSION

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Card(BaseModel):
    """A prepaid usage card attached to a member."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    type: str
    total_count: int = Field(ge=0)
    used_count: int = Field(default=0, ge=0)
    remaining_count: int = Field(ge=0)
    expiry_date: str
    purchase_date: Optional[str] = None
    price: Optional[float] = None
    status: Optional[str] = None

    @model_validator(mode="after")
    def _check_counts(self) -> "Card":
        if not self.is_consistent:
            raise ValueError(
                f"usedCount ({self.used_count}) + remainingCount ({self.remaining_count}) "
                f"must equal totalCount ({self.total_count})"
            )
        return self

    @property
    def is_consistent(self) -> bool:
        return self.used_count + self.remaining_count == self.total_count


class Member(RecordModel):
    kind: Literal["member"] = "member"
    id: str
    name: str
    phone: str
    join_date: str
    balance: float = 0.0
    card: Optional[Card] = None
    status: MemberStatus = "active"


class RechargeRecord(RecordModel):
    kind: Literal["recharge"] = "recharge"
    id: str
    member_id: str
    member_name: str = ""
    phone: str = ""
    amount: float
    balance: float
    payment_method: str = "cash"
    timestamp: str
    operator: str = ""
    notes: Optional[str] = None
    status: str = "completed"


class ConsumptionRecord(RecordModel):
    kind: Literal["consumption"] = "consumption"
    id: str
    member_id: str
    member_name: str = ""
    phone: str = ""
    amount: float = 0.0
    service: str = ""
    category: str = ""
    payment_method: str = "cash"
    used_card: bool = False
    status: str = "completed"
    timestamp: str
    operator: str = ""
    notes: Optional[str] = None


class CardType(RecordModel):
    kind: Literal["cardType"] = "cardType"
    id: str
    name: str
    description: str = ""
    price: float = 0.0
    count: int
    validity_days: int
    active: bool = True


class Account(RecordModel):
    kind: Literal["account"] = "account"
    id: str
    username: str
    password: str = Field(default="", repr=False)
    role: str = "staff"
    name: str = ""
    email: str = ""
    status: str = "active"
    created_at: Optional[str] = None


class OperationLog(RecordModel):
    kind: Literal["operationLog"] = "operationLog"
    id: str
    operator: str
    action: str
    module: str
    details: str = ""
    timestamp: str


AnyRecord = Annotated[
    Union[Member, RechargeRecord, ConsumptionRecord, CardType, Account, OperationLog],
    Field(discriminator="kind"),
]

# Collections whose contents are typed; everything else passes through as raw JSON.
RECORD_TYPES: dict[str, type[RecordModel]] = {
    "members": Member,
    "recharges": RechargeRecord,
    "consumptions": ConsumptionRecord,
    "cardTypes": CardType,
    "accounts": Account,
    "operationLogs": OperationLog,
}
