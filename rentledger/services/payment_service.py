"""Record payments against approved bills and book them in the cash ledger."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime

from rentledger.constants import DEFAULT_PAYER, TRANSACTION_TITLE, VN_TZ
from rentledger.errors import BillNotFound, InvalidPaymentAmount, PaymentInProgress
from rentledger.event_bus import EventBus
from rentledger.events import PaymentCollected, PaymentReversed
from rentledger.models import format_vnd
from rentledger.models.bill import Bill, BillStatus
from rentledger.models.transaction import LedgerTransaction
from rentledger.repositories.base import (
    BillRepository,
    BuildingRepository,
    CategoryRepository,
    CustomerRepository,
    TransactionRepository,
)
from rentledger.services.bill_state import ensure_can_uncollect
from rentledger.services.category_mapper import map_payment
from rentledger.services.notification_service import NotificationService
from rentledger.services.termination_service import today_local
from rentledger.settings import settings

logger = logging.getLogger(__name__)


def _transaction_code() -> str:
    return f"PT{int(datetime.now(VN_TZ).timestamp() * 1000)}"


def validate_payment_amount(bill: Bill, amount: int) -> None:
    """Raise InvalidPaymentAmount unless ``amount`` can be collected on ``bill``.

    Amounts below ``settings.min_payment_amount`` are refused unless they
    settle the whole remaining balance.
    """
    if not bill.approved:
        raise InvalidPaymentAmount(f"Bill {bill.id} must be approved before collecting")
    remaining = bill.remaining_amount
    if bill.status == BillStatus.PAID or remaining <= 0:
        raise InvalidPaymentAmount(f"Bill {bill.id} has nothing left to collect")
    if amount <= 0:
        raise InvalidPaymentAmount("Payment amount must be positive")
    if amount > remaining:
        raise InvalidPaymentAmount(
            f"Payment {format_vnd(amount)} exceeds the remaining {format_vnd(remaining)}"
        )
    if amount < settings.min_payment_amount and amount != remaining:
        raise InvalidPaymentAmount(f"Payment must be at least {format_vnd(settings.min_payment_amount)}")


class PaymentService:
    def __init__(
        self,
        bill_repo: BillRepository,
        transaction_repo: TransactionRepository,
        category_repo: CategoryRepository,
        building_repo: BuildingRepository,
        customer_repo: CustomerRepository,
        notifications: NotificationService,
        event_bus: EventBus | None = None,
    ) -> None:
        self.bill_repo = bill_repo
        self.transaction_repo = transaction_repo
        self.category_repo = category_repo
        self.building_repo = building_repo
        self.customer_repo = customer_repo
        self.notifications = notifications
        self.event_bus = event_bus

    def _publish(self, event) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event)

    def _require_bill(self, bill_id: int) -> Bill:
        bill = self.bill_repo.get_by_id(bill_id)
        if bill is None:
            raise BillNotFound(bill_id)
        return bill

    def collect(self, bill_id: int, amount: int, payment_date: date | None = None) -> Bill:
        bill = self._require_bill(bill_id)
        validate_payment_amount(bill, amount)
        payment_date = payment_date or today_local()

        building = self.building_repo.get_by_id(bill.building_id)
        customer = self.customer_repo.get_by_id(bill.customer_id) if bill.customer_id else None
        items = map_payment(bill, self.category_repo.list_all(), amount)

        transaction = self.transaction_repo.create(
            LedgerTransaction(
                type="income",
                code=_transaction_code(),
                building_id=bill.building_id,
                room=bill.room,
                customer_id=bill.customer_id,
                bill_id=bill_id,
                account_id=building.account_id if building else "",
                title=TRANSACTION_TITLE.format(
                    building_code=building.code if building else bill.building_id,
                    room=bill.room,
                    period=bill.period,
                ),
                payer=customer.name if customer else DEFAULT_PAYER,
                transaction_date=payment_date,
                items=items,
                approved=True,
                payment_method="cash",
            )
        )

        new_paid = bill.paid_amount + amount
        fully_paid = new_paid >= bill.total_amount
        partial: dict = {"paid_amount": new_paid}
        if fully_paid:
            partial["status"] = BillStatus.PAID
            partial["paid_date"] = payment_date
        updated = self.bill_repo.update(bill_id, partial)
        logger.info(
            "Payment collected: bill=%s, amount=%d, paid=%d/%d, transaction=%s",
            bill_id,
            amount,
            new_paid,
            bill.total_amount,
            transaction.code,
        )
        self._publish(PaymentCollected.create(updated, transaction, amount))

        if fully_paid:
            if building is not None and customer is not None:
                self.notifications.payment_collected(updated, building, customer)
            else:
                logger.warning("Skipping payment confirmation for bill %s: building or customer missing", bill_id)
        return updated

    def collect_full(self, bill_id: int, payment_date: date | None = None) -> Bill:
        bill = self._require_bill(bill_id)
        return self.collect(bill_id, bill.remaining_amount, payment_date)

    def uncollect(self, bill_id: int) -> Bill:
        bill = self._require_bill(bill_id)
        ensure_can_uncollect(bill)

        removed = self.transaction_repo.delete_by_bill_id(bill_id)
        self.notifications.retract_payment_collected(bill_id)
        updated = self.bill_repo.update(
            bill_id,
            {"paid_amount": 0, "status": BillStatus.UNPAID, "paid_date": None},
        )
        logger.info("Payment reversed: bill=%s, transactions removed=%d", bill_id, removed)
        self._publish(PaymentReversed.create(updated, removed))
        return updated

    def list_transactions(self, bill_id: int) -> list[LedgerTransaction]:
        return self.transaction_repo.list_by_bill_id(bill_id)


class PaymentSession:
    """Serializes payment confirmations coming from one interactive session."""

    def __init__(self, payments: PaymentService) -> None:
        self.payments = payments
        self.processing = False

    @contextmanager
    def _in_flight(self):
        if self.processing:
            raise PaymentInProgress("A payment is already being processed")
        self.processing = True
        try:
            yield
        finally:
            self.processing = False

    def confirm(self, bill_id: int, amount: int, payment_date: date | None = None) -> Bill:
        with self._in_flight():
            return self.payments.collect(bill_id, amount, payment_date)

    def confirm_full(self, bill_id: int, payment_date: date | None = None) -> Bill:
        with self._in_flight():
            return self.payments.collect_full(bill_id, payment_date)

    def uncollect(self, bill_id: int) -> Bill:
        with self._in_flight():
            return self.payments.uncollect(bill_id)
