"""Member, card, recharge and consumption workflows over the sync cache.

Every operation reads the collections it needs, validates, builds the new
records and then hands all affected collections to ``SyncCache.write_many``
in one synchronous step. The persists that follow are independent per
collection: if ``members`` fails to persist after ``recharges`` succeeded,
the store is left inconsistent until the next successful write of
``members``; the failure is reported through the cache's error listeners.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Iterator, Optional

from pydantic import ValidationError as PydanticValidationError

from memberhub.client.cache import SyncCache
from memberhub.domain.records import (
    Card,
    CardType,
    ConsumptionRecord,
    Member,
    OperationLog,
    RechargeRecord,
    RecordModel,
    decode_records,
    encode_records,
)

from .exceptions import NotFoundError, ValidationError
from .models import (
    PAYMENT_METHODS,
    CardTypeInput,
    ConsumptionInput,
    MemberCreateInput,
    MemberStats,
    RechargeInput,
)

logger = logging.getLogger(__name__)

DEFAULT_CARD_TYPES = (
    CardTypeInput(name="月卡", description="30天内有效，不限次数", price=398, count=999, validity_days=30),
    CardTypeInput(name="10次卡", description="10次汗蒸服务", price=198, count=10, validity_days=90),
    CardTypeInput(name="20次卡", description="20次汗蒸服务", price=358, count=20, validity_days=180),
)


def _new_id(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:10].upper()}"


def _money(value: float) -> float:
    return round(float(value), 2)


class MembershipService:
    def __init__(
        self,
        cache: SyncCache,
        *,
        operator: str = "admin",
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._cache = cache
        self.operator = operator
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # -- helpers -------------------------------------------------------------------

    def _now(self) -> datetime:
        return self._clock()

    def _today(self) -> date:
        return self._now().date()

    def _load(self, collection: str) -> list[Any]:
        return decode_records(collection, self._cache.read(collection))

    def _log(self, action: str, module: str, details: str) -> list[dict[str, Any]]:
        """Return the operation log with a new entry prepended."""
        entry = OperationLog(
            id=_new_id("LOG"),
            operator=self.operator,
            action=action,
            module=module,
            details=details,
            timestamp=self._now().isoformat(),
        )
        logs = self._cache.read("operationLogs")
        return [entry.to_wire(), *(logs if isinstance(logs, list) else [])]

    @staticmethod
    def _index_of(records: list[RecordModel], record_id: str, entity: str) -> int:
        for index, record in enumerate(records):
            if record.id == record_id:
                return index
        raise NotFoundError(entity, record_id)

    @staticmethod
    def _check_payment_method(method: str) -> None:
        if method not in PAYMENT_METHODS:
            raise ValidationError(f"unsupported payment method: {method}")

    def _consume_card(self, member: Member, times: int) -> Card:
        """Return the member's card with ``times`` uses deducted, if it has them and is not expired."""
        card = member.card
        if card is None:
            raise ValidationError(f"member {member.id} has no card")
        if card.remaining_count < times:
            raise ValidationError(f"card {card.id} has only {card.remaining_count} uses left")
        try:
            expiry = date.fromisoformat(card.expiry_date[:10])
        except ValueError as exc:
            raise ValidationError(f"card {card.id} has an unreadable expiry date") from exc
        if expiry < self._today():
            raise ValidationError(f"card {card.id} expired on {card.expiry_date}")
        return card.model_copy(
            update={"used_count": card.used_count + times, "remaining_count": card.remaining_count - times}
        )

    # -- members -------------------------------------------------------------------

    def list_members(self) -> list[Member]:
        return self._load("members")

    def get_member(self, member_id: str) -> Member:
        members = self._load("members")
        return members[self._index_of(members, member_id, "member")]

    def find_member_by_phone(self, phone: str) -> Optional[Member]:
        return next((m for m in self._load("members") if m.phone == phone), None)

    def add_member(self, payload: MemberCreateInput) -> Member:
        name = payload.name.strip()
        phone = payload.phone.strip()
        if not name or not phone:
            raise ValidationError("member name and phone are required")
        if payload.balance < 0:
            raise ValidationError("initial balance cannot be negative")

        members = self._load("members")
        if any(m.phone == phone for m in members):
            raise ValidationError(f"phone {phone} is already registered")

        try:
            member = Member.model_validate(
                {
                    **payload.extra,
                    "id": _new_id("M"),
                    "name": name,
                    "phone": phone,
                    "join_date": payload.join_date or self._now().isoformat(),
                    "balance": _money(payload.balance),
                    "status": payload.status,
                }
            )
        except PydanticValidationError as exc:
            raise ValidationError(str(exc)) from exc

        self._cache.write_many(
            {
                "members": encode_records([member, *members]),
                "operationLogs": self._log("新增会员", "members", f"新增会员 {name}（{phone}）"),
            }
        )
        logger.info("Added member %s", member.id)
        return member

    def update_member(self, member_id: str, **changes: Any) -> Member:
        if "id" in changes:
            raise ValidationError("member id cannot be changed")
        members = self._load("members")
        index = self._index_of(members, member_id, "member")
        try:
            updated = Member.model_validate({**members[index].model_dump(), **changes})
        except PydanticValidationError as exc:
            raise ValidationError(str(exc)) from exc

        members[index] = updated
        self._cache.write_many(
            {
                "members": encode_records(members),
                "operationLogs": self._log("更新会员", "members", f"更新会员 {updated.name}"),
            }
        )
        return updated

    def delete_member(self, member_id: str) -> None:
        members = self._load("members")
        removed = members.pop(self._index_of(members, member_id, "member"))
        self._cache.write_many(
            {
                "members": encode_records(members),
                "operationLogs": self._log("删除会员", "members", f"删除会员 {removed.name}"),
            }
        )

    def search_members(self, keyword: str) -> Iterator[Member]:
        """Lazily yield members whose name contains ``keyword`` (any case) or whose phone contains it."""
        keyword = keyword.strip()
        if not keyword:
            return iter(())
        lowered = keyword.lower()
        return (m for m in self._load("members") if lowered in m.name.lower() or keyword in m.phone)

    def member_stats(self) -> MemberStats:
        members = self._load("members")
        return MemberStats(
            total=len(members),
            active=sum(1 for m in members if m.status == "active"),
            inactive=sum(1 for m in members if m.status == "inactive"),
            with_cards=sum(1 for m in members if m.card and m.card.remaining_count > 0),
            total_balance=_money(sum(m.balance for m in members)),
        )

    # -- recharges and consumptions ------------------------------------------------

    def list_recharges(self, member_id: Optional[str] = None) -> list[RechargeRecord]:
        records = self._load("recharges")
        return [r for r in records if member_id is None or r.member_id == member_id]

    def add_recharge(self, payload: RechargeInput) -> RechargeRecord:
        if payload.amount <= 0:
            raise ValidationError("recharge amount must be positive")
        self._check_payment_method(payload.payment_method)

        members = self._load("members")
        index = self._index_of(members, payload.member_id, "member")
        member = members[index]
        new_balance = _money(member.balance + payload.amount)

        record = RechargeRecord(
            id=_new_id("R"),
            member_id=member.id,
            member_name=member.name,
            phone=member.phone,
            amount=_money(payload.amount),
            balance=new_balance,
            payment_method=payload.payment_method,
            timestamp=self._now().isoformat(),
            operator=self.operator,
            notes=payload.notes,
        )
        members[index] = member.model_copy(update={"balance": new_balance})

        self._cache.write_many(
            {
                "recharges": encode_records([record, *self._load("recharges")]),
                "members": encode_records(members),
                "operationLogs": self._log(
                    "会员充值", "recharges", f"会员 {member.name} 充值 {record.amount}，余额 {new_balance}"
                ),
            }
        )
        logger.info("Recharged member %s by %s", member.id, record.amount)
        return record

    def list_consumptions(self, member_id: Optional[str] = None) -> list[ConsumptionRecord]:
        records = self._load("consumptions")
        return [r for r in records if member_id is None or r.member_id == member_id]

    def add_consumption(self, payload: ConsumptionInput) -> ConsumptionRecord:
        if payload.amount < 0:
            raise ValidationError("consumption amount cannot be negative")
        self._check_payment_method(payload.payment_method)

        members = self._load("members")
        index = self._index_of(members, payload.member_id, "member")
        member = members[index]
        updates: dict[str, Any] = {}

        if payload.used_card:
            updates["card"] = self._consume_card(member, 1)

        if payload.payment_method == "balance":
            if member.balance < payload.amount:
                raise ValidationError(f"member {member.id} balance {member.balance} is insufficient")
            updates["balance"] = _money(member.balance - payload.amount)

        record = ConsumptionRecord(
            id=_new_id("CR"),
            member_id=member.id,
            member_name=member.name,
            phone=member.phone,
            amount=_money(payload.amount),
            service=payload.service,
            category=payload.category,
            payment_method=payload.payment_method,
            used_card=payload.used_card,
            timestamp=self._now().isoformat(),
            operator=self.operator,
            notes=payload.notes,
        )

        changes: dict[str, Any] = {"consumptions": encode_records([record, *self._load("consumptions")])}
        if updates:
            members[index] = member.model_copy(update=updates)
            changes["members"] = encode_records(members)
        changes["operationLogs"] = self._log(
            "会员消费", "consumptions", f"会员 {member.name} 消费 {record.service or record.category} {record.amount}"
        )
        self._cache.write_many(changes)
        return record

    def update_consumption(self, record_id: str, **changes: Any) -> ConsumptionRecord:
        if "id" in changes:
            raise ValidationError("record id cannot be changed")
        records = self._load("consumptions")
        index = self._index_of(records, record_id, "consumption")
        try:
            updated = ConsumptionRecord.model_validate({**records[index].model_dump(), **changes})
        except PydanticValidationError as exc:
            raise ValidationError(str(exc)) from exc
        records[index] = updated
        self._cache.write_many(
            {
                "consumptions": encode_records(records),
                "operationLogs": self._log("更新消费记录", "consumptions", f"更新消费记录 {record_id}"),
            }
        )
        return updated

    def delete_consumption(self, record_id: str) -> None:
        records = self._load("consumptions")
        records.pop(self._index_of(records, record_id, "consumption"))
        self._cache.write_many(
            {
                "consumptions": encode_records(records),
                "operationLogs": self._log("删除消费记录", "consumptions", f"删除消费记录 {record_id}"),
            }
        )

    # -- cards ---------------------------------------------------------------------

    def list_card_types(self, active_only: bool = False) -> list[CardType]:
        return [ct for ct in self._load("cardTypes") if ct.active or not active_only]

    def get_card_type(self, card_type_id: str) -> CardType:
        card_types = self._load("cardTypes")
        return card_types[self._index_of(card_types, card_type_id, "card type")]

    def add_card_type(self, payload: CardTypeInput) -> CardType:
        if not payload.name.strip():
            raise ValidationError("card type name is required")
        if payload.count <= 0 or payload.validity_days <= 0 or payload.price < 0:
            raise ValidationError("card type count and validity must be positive, price non-negative")

        card_type = CardType(
            id=_new_id("CT"),
            name=payload.name.strip(),
            description=payload.description,
            price=_money(payload.price),
            count=payload.count,
            validity_days=payload.validity_days,
            active=payload.active,
        )
        self._cache.write_many(
            {
                "cardTypes": encode_records([*self._load("cardTypes"), card_type]),
                "operationLogs": self._log("新增次卡类型", "cardTypes", f"新增次卡类型 {card_type.name}"),
            }
        )
        return card_type

    def update_card_type(self, card_type_id: str, **changes: Any) -> CardType:
        if "id" in changes:
            raise ValidationError("card type id cannot be changed")
        card_types = self._load("cardTypes")
        index = self._index_of(card_types, card_type_id, "card type")
        try:
            updated = CardType.model_validate({**card_types[index].model_dump(), **changes})
        except PydanticValidationError as exc:
            raise ValidationError(str(exc)) from exc
        card_types[index] = updated
        self._cache.write_many(
            {
                "cardTypes": encode_records(card_types),
                "operationLogs": self._log("更新次卡类型", "cardTypes", f"更新次卡类型 {updated.name}"),
            }
        )
        return updated

    def ensure_default_card_types(self) -> list[CardType]:
        """Seed the standard catalog when no card type exists yet."""
        if self._load("cardTypes"):
            return []
        seeded = [
            CardType(
                id=f"CT{1001 + offset}",
                name=item.name,
                description=item.description,
                price=item.price,
                count=item.count,
                validity_days=item.validity_days,
                active=item.active,
            )
            for offset, item in enumerate(DEFAULT_CARD_TYPES)
        ]
        self._cache.write("cardTypes", encode_records(seeded))
        return seeded

    def issue_card(self, member_id: str, card_type_id: str) -> Card:
        members = self._load("members")
        index = self._index_of(members, member_id, "member")
        card_type = self.get_card_type(card_type_id)
        if not card_type.active:
            raise ValidationError(f"card type {card_type.name} is not active")

        today = self._today()
        card = Card(
            id=_new_id("C"),
            type=card_type.name,
            total_count=card_type.count,
            used_count=0,
            remaining_count=card_type.count,
            expiry_date=(today + timedelta(days=card_type.validity_days)).isoformat(),
            purchase_date=today.isoformat(),
            price=card_type.price,
            status="active",
        )
        member = members[index]
        members[index] = member.model_copy(update={"card": card})
        self._cache.write_many(
            {
                "members": encode_records(members),
                "operationLogs": self._log("办理次卡", "cards", f"会员 {member.name} 办理 {card_type.name}"),
            }
        )
        return card

    def use_card(self, member_id: str, times: int = 1) -> Card:
        if times <= 0:
            raise ValidationError("times must be positive")
        members = self._load("members")
        index = self._index_of(members, member_id, "member")
        member = members[index]
        card = self._consume_card(member, times)
        members[index] = member.model_copy(update={"card": card})
        self._cache.write_many(
            {
                "members": encode_records(members),
                "operationLogs": self._log("使用次卡", "cards", f"会员 {member.name} 使用次卡 {times} 次"),
            }
        )
        return card

    # -- audit ---------------------------------------------------------------------

    def operation_logs(self, limit: int = 50) -> list[OperationLog]:
        return self._load("operationLogs")[:limit]
