from __future__ import annotations

import logging

from rentledger.event_bus import EventBus
from rentledger.events import BILL_EVENTS, BillDeleted, BillingEvent
from rentledger.models.bill import Bill

logger = logging.getLogger(__name__)


class BillCache:
    """Local read mirror of bills, kept current from bus events.

    The store stays the source of truth. ``load`` seeds the cache from a
    query and every bill event after that overwrites the cached copy.
    """

    def __init__(self) -> None:
        self._bills: dict[int, Bill] = {}

    def attach(self, bus: EventBus) -> None:
        for event_cls in BILL_EVENTS:
            bus.subscribe(event_cls.__name__, self._on_bill_event)
        bus.subscribe(BillDeleted.__name__, self._on_bill_deleted)

    def load(self, bills: list[Bill]) -> None:
        self._bills = {b.id: b for b in bills if b.id is not None}
        logger.debug("Bill cache loaded with %d bills", len(self._bills))

    def get(self, bill_id: int) -> Bill | None:
        return self._bills.get(bill_id)

    def all(self) -> list[Bill]:
        return sorted(self._bills.values(), key=lambda b: (b.room, b.year, b.period))

    def upsert(self, bill: Bill) -> None:
        if bill.id is not None:
            self._bills[bill.id] = bill

    def remove(self, bill_id: int) -> None:
        self._bills.pop(bill_id, None)

    def __len__(self) -> int:
        return len(self._bills)

    def _on_bill_event(self, event: BillingEvent) -> None:
        self.upsert(event.bill)

    def _on_bill_deleted(self, event: BillingEvent) -> None:
        self.remove(event.bill_id)
