"""Business operations for members, cards, recharges and consumptions."""

from .exceptions import MembershipError, NotFoundError, ValidationError
from .models import (
    PAYMENT_METHODS,
    CardTypeInput,
    ConsumptionInput,
    MemberCreateInput,
    MemberStats,
    RechargeInput,
)
from .service import DEFAULT_CARD_TYPES, MembershipService

__all__ = [
    "CardTypeInput",
    "ConsumptionInput",
    "DEFAULT_CARD_TYPES",
    "MemberCreateInput",
    "MemberStats",
    "MembershipError",
    "MembershipService",
    "NotFoundError",
    "PAYMENT_METHODS",
    "RechargeInput",
    "ValidationError",
]
