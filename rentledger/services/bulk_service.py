"""Apply one bill operation to many bills, one at a time.

Bills already in the target state are skipped. The remaining bills are
processed in order. The first failure stops the batch: the failing bill is
reported in ``failed`` and every bill after it in ``not_attempted``. Bills
that already succeeded stay changed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date

from pydantic import BaseModel

from rentledger.errors import BillNotFound, CannotUnapprovePaidBill
from rentledger.models.bill import Bill, BillStatus
from rentledger.services.bill_service import BillService
from rentledger.services.bill_state import has_collected_money
from rentledger.services.payment_service import PaymentService

logger = logging.getLogger(__name__)


class BulkResult(BaseModel):
    operation: str
    succeeded: list[int] = []
    failed: list[int] = []
    skipped: list[int] = []
    not_attempted: list[int] = []
    error: str | None = None

    @property
    def aborted(self) -> bool:
        return bool(self.failed)


class BillSelection:
    """Bill ids picked for a bulk operation."""

    def __init__(self, bill_ids: Iterable[int] = ()) -> None:
        self._ids: list[int] = []
        for bill_id in bill_ids:
            self.add(bill_id)

    def add(self, bill_id: int) -> None:
        if bill_id not in self._ids:
            self._ids.append(bill_id)

    def remove(self, bill_id: int) -> None:
        if bill_id in self._ids:
            self._ids.remove(bill_id)

    def toggle(self, bill_id: int) -> None:
        if bill_id in self._ids:
            self._ids.remove(bill_id)
        else:
            self._ids.append(bill_id)

    def replace(self, bill_ids: Iterable[int]) -> None:
        self._ids = []
        for bill_id in bill_ids:
            self.add(bill_id)

    def clear(self) -> None:
        self._ids = []

    @property
    def ids(self) -> list[int]:
        return list(self._ids)

    def __contains__(self, bill_id: int) -> bool:
        return bill_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)


class BulkCoordinator:
    def __init__(
        self,
        bill_service: BillService,
        payment_service: PaymentService,
        selection: BillSelection | None = None,
    ) -> None:
        self.bill_service = bill_service
        self.payment_service = payment_service
        self.selection = selection if selection is not None else BillSelection()

    def _ids(self, bill_ids: Iterable[int] | None) -> list[int]:
        if bill_ids is None:
            return self.selection.ids
        return list(dict.fromkeys(bill_ids))

    def _load(self, bill_ids: list[int]) -> list[Bill]:
        bills = []
        for bill_id in bill_ids:
            bill = self.bill_service.get_bill(bill_id)
            if bill is None:
                raise BillNotFound(bill_id)
            bills.append(bill)
        return bills

    def _run(
        self,
        operation: str,
        bills: list[Bill],
        needs_action: Callable[[Bill], bool],
        action: Callable[[int], object],
    ) -> BulkResult:
        result = BulkResult(operation=operation)
        pending = []
        for bill in bills:
            if needs_action(bill):
                pending.append(bill.id)
            else:
                result.skipped.append(bill.id)

        for index, bill_id in enumerate(pending):
            try:
                action(bill_id)
            except Exception as exc:
                logger.exception("Bulk %s aborted at bill %s", operation, bill_id)
                result.failed.append(bill_id)
                result.not_attempted = pending[index + 1 :]
                result.error = str(exc)
                break
            result.succeeded.append(bill_id)

        if not result.aborted:
            self.selection.clear()
        logger.info(
            "Bulk %s: succeeded=%d failed=%d skipped=%d not_attempted=%d",
            operation,
            len(result.succeeded),
            len(result.failed),
            len(result.skipped),
            len(result.not_attempted),
        )
        return result

    def bulk_approve(self, bill_ids: Iterable[int] | None = None) -> BulkResult:
        bills = self._load(self._ids(bill_ids))
        return self._run("approve", bills, lambda b: not b.approved, self.bill_service.approve)

    def bulk_unapprove(self, bill_ids: Iterable[int] | None = None) -> BulkResult:
        """Unapprove the selected bills, or none at all if any has collected money."""
        bills = self._load(self._ids(bill_ids))
        blocked = [b.id for b in bills if has_collected_money(b)]
        if blocked:
            logger.warning("Bulk unapprove refused: bills with payments %s", blocked)
            raise CannotUnapprovePaidBill(
                f"{len(blocked)} selected bill(s) have collected payments; uncollect them first"
            )
        return self._run("unapprove", bills, lambda b: b.approved, self.bill_service.unapprove)

    def bulk_collect(self, bill_ids: Iterable[int] | None = None, payment_date: date | None = None) -> BulkResult:
        bills = self._load(self._ids(bill_ids))
        return self._run(
            "collect",
            bills,
            lambda b: not b.is_termination_bill and b.status != BillStatus.PAID,
            lambda bill_id: self.payment_service.collect_full(bill_id, payment_date),
        )

    def bulk_uncollect(self, bill_ids: Iterable[int] | None = None) -> BulkResult:
        bills = self._load(self._ids(bill_ids))
        return self._run("uncollect", bills, lambda b: b.status == BillStatus.PAID, self.payment_service.uncollect)

    def bulk_delete(self, bill_ids: Iterable[int] | None = None) -> BulkResult:
        bills = self._load(self._ids(bill_ids))
        return self._run("delete", bills, lambda b: True, self.bill_service.delete_bill)
