"""
Domain events for the billing engine.

Events are published after the store has accepted a write. They carry the
full object so subscribers (the local bill cache, UI adapters) never re-read
the store to learn what changed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ulid import ULID

from rentledger.constants import VN_TZ


def _now() -> datetime:
    return datetime.now(VN_TZ)


@dataclass(frozen=True, kw_only=True)
class BillingEvent:
    """Base class for all billing events."""

    event_id: str = field(default_factory=lambda: str(ULID()))
    occurred_at: datetime = field(default_factory=_now)


# Bill lifecycle


@dataclass(frozen=True, kw_only=True)
class BillCreated(BillingEvent):
    bill: Any = None

    @classmethod
    def create(cls, bill: Any) -> BillCreated:
        return cls(bill=bill)


@dataclass(frozen=True, kw_only=True)
class BillUpdated(BillingEvent):
    """Services, dates or due day of an unapproved bill changed."""

    bill: Any = None

    @classmethod
    def create(cls, bill: Any) -> BillUpdated:
        return cls(bill=bill)


@dataclass(frozen=True, kw_only=True)
class BillDeleted(BillingEvent):
    bill_id: int = 0

    @classmethod
    def create(cls, bill_id: int) -> BillDeleted:
        return cls(bill_id=bill_id)


@dataclass(frozen=True, kw_only=True)
class BillApproved(BillingEvent):
    bill: Any = None

    @classmethod
    def create(cls, bill: Any) -> BillApproved:
        return cls(bill=bill)


@dataclass(frozen=True, kw_only=True)
class BillUnapproved(BillingEvent):
    bill: Any = None

    @classmethod
    def create(cls, bill: Any) -> BillUnapproved:
        return cls(bill=bill)


# Payments


@dataclass(frozen=True, kw_only=True)
class PaymentCollected(BillingEvent):
    """Money was received against a bill, partial or final."""

    bill: Any = None
    transaction: Any = None
    amount: int = 0

    @classmethod
    def create(cls, bill: Any, transaction: Any, amount: int) -> PaymentCollected:
        return cls(bill=bill, transaction=transaction, amount=amount)


@dataclass(frozen=True, kw_only=True)
class PaymentReversed(BillingEvent):
    bill: Any = None
    transactions_removed: int = 0

    @classmethod
    def create(cls, bill: Any, transactions_removed: int) -> PaymentReversed:
        return cls(bill=bill, transactions_removed=transactions_removed)


# Contracts


@dataclass(frozen=True, kw_only=True)
class ContractStatusChanged(BillingEvent):
    contract: Any = None

    @classmethod
    def create(cls, contract: Any) -> ContractStatusChanged:
        return cls(contract=contract)


BILL_EVENTS = (
    BillCreated,
    BillUpdated,
    BillApproved,
    BillUnapproved,
    PaymentCollected,
    PaymentReversed,
)
