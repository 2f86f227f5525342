"""Input and summary models for business operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

PAYMENT_METHODS = frozenset({"cash", "card", "wechat", "alipay", "balance", "membercard", "other"})


@dataclass(slots=True)
class MemberCreateInput:
    name: str
    phone: str
    balance: float = 0.0
    status: str = "active"
    join_date: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class RechargeInput:
    member_id: str
    amount: float
    payment_method: str = "cash"
    notes: Optional[str] = None


@dataclass(slots=True)
class ConsumptionInput:
    member_id: str
    amount: float = 0.0
    service: str = ""
    category: str = ""
    payment_method: str = "cash"
    used_card: bool = False
    notes: Optional[str] = None


@dataclass(slots=True)
class CardTypeInput:
    name: str
    price: float
    count: int
    validity_days: int
    description: str = ""
    active: bool = True


@dataclass(slots=True)
class MemberStats:
    total: int
    active: int
    inactive: int
    with_cards: int
    total_balance: float
