from __future__ import annotations

import logging
from datetime import date

from rentledger.errors import BillNotFound, BillValidationError
from rentledger.event_bus import EventBus
from rentledger.events import (
    BillApproved,
    BillCreated,
    BillDeleted,
    BillUnapproved,
    BillUpdated,
    ContractStatusChanged,
)
from rentledger.models.bill import Bill, BillFilter, BillStatus, BillSummary
from rentledger.models.lease import ContractStatus
from rentledger.models.line_item import LineItem, LineType
from rentledger.repositories.base import (
    BillRepository,
    BuildingRepository,
    ContractRepository,
    CustomerRepository,
)
from rentledger.services.bill_assembler import assemble_line_items, previous_period
from rentledger.services.bill_state import (
    ensure_can_approve,
    ensure_can_unapprove,
    ensure_editable,
)
from rentledger.services.bill_summary import filter_bills, summarize_bills
from rentledger.services.line_item_calculator import bill_total, price_lines
from rentledger.services.notification_service import NotificationService
from rentledger.services.termination_service import contract_status_from_end_date
from rentledger.settings import settings

logger = logging.getLogger(__name__)


def _validate_due_day(due_date: int) -> None:
    if not 1 <= due_date <= 31:
        raise BillValidationError(f"Due day must be between 1 and 31, got {due_date}")


def _validate_period(period: int, year: int) -> None:
    if not 1 <= period <= 12:
        raise BillValidationError(f"Period must be between 1 and 12, got {period}")
    if year < 2000:
        raise BillValidationError(f"Invalid year: {year}")


def _price_services(services: list[LineItem]) -> list[LineItem]:
    if any(line.type == LineType.TERMINATION for line in services):
        raise BillValidationError("Termination lines are only allowed on termination bills")
    return price_lines(services)


class BillService:
    def __init__(
        self,
        bill_repo: BillRepository,
        contract_repo: ContractRepository,
        building_repo: BuildingRepository,
        customer_repo: CustomerRepository,
        notifications: NotificationService,
        event_bus: EventBus | None = None,
    ) -> None:
        self.bill_repo = bill_repo
        self.contract_repo = contract_repo
        self.building_repo = building_repo
        self.customer_repo = customer_repo
        self.notifications = notifications
        self.event_bus = event_bus

    def _publish(self, event) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event)

    # ---- Queries ----

    def get_bill(self, bill_id: int) -> Bill | None:
        result = self.bill_repo.get_by_id(bill_id)
        logger.debug("get_bill id=%s found=%s", bill_id, result is not None)
        return result

    def require_bill(self, bill_id: int) -> Bill:
        bill = self.bill_repo.get_by_id(bill_id)
        if bill is None:
            raise BillNotFound(bill_id)
        return bill

    def get_bill_by_uuid(self, uuid: str) -> Bill | None:
        result = self.bill_repo.get_by_uuid(uuid)
        logger.debug("get_bill_by_uuid uuid=%s found=%s", uuid, result is not None)
        return result

    def list_bills(
        self,
        building_id: int,
        room: str | None = None,
        period: int | None = None,
        year: int | None = None,
        criteria: BillFilter | None = None,
    ) -> list[Bill]:
        result = self.bill_repo.list_by_building_room_period(building_id, room, period, year)
        if criteria is not None and criteria.is_active:
            building = self.building_repo.get_by_id(building_id)
            codes = {building_id: building.code} if building is not None else {}
            result = filter_bills(result, criteria, codes)
        logger.debug(
            "Listed %d bills for building=%s room=%s period=%s/%s", len(result), building_id, room, period, year
        )
        return result

    def summarize(self, bills: list[Bill]) -> BillSummary:
        return summarize_bills(bills)

    def find_previous_bill(self, building_id: int, room: str, period: int, year: int) -> Bill | None:
        """Regular bill of the same room for the month before ``period``/``year``."""
        prev_period, prev_year = previous_period(period, year)
        candidates = [
            b
            for b in self.bill_repo.list_by_building_room_period(building_id, room, prev_period, prev_year)
            if not b.is_termination_bill
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda b: b.id or 0)

    def draft_line_items(self, building_id: int, room: str, period: int, year: int) -> list[LineItem]:
        _validate_period(period, year)
        building = self.building_repo.get_by_id(building_id)
        if building is None:
            raise BillValidationError(f"Building {building_id} not found")
        contract = self.contract_repo.find_for_room(building_id, room)
        previous = self.find_previous_bill(building_id, room, period, year)
        lines = assemble_line_items(contract, building, previous, period, year)
        logger.debug(
            "Drafted %d lines for %s-%s %s/%s (contract=%s, previous=%s)",
            len(lines),
            building.code,
            room,
            period,
            year,
            contract.id if contract else None,
            previous.id if previous else None,
        )
        return lines

    # ---- Create / edit / delete ----

    def create_bill(
        self,
        *,
        building_id: int,
        room: str,
        customer_id: int | None,
        period: int,
        year: int,
        bill_date: date | None,
        services: list[LineItem],
        due_date: int | None = None,
    ) -> Bill:
        if not building_id:
            raise BillValidationError("Building is required")
        if not room:
            raise BillValidationError("Room is required")
        if not customer_id:
            raise BillValidationError("Customer is required")
        if bill_date is None:
            raise BillValidationError("Bill date is required")
        _validate_period(period, year)
        due_date = settings.default_due_day if due_date is None else due_date
        _validate_due_day(due_date)

        if self.building_repo.get_by_id(building_id) is None:
            raise BillValidationError(f"Building {building_id} not found")
        customer = self.customer_repo.get_by_id(customer_id)
        if customer is None:
            raise BillValidationError(f"Customer {customer_id} not found")

        priced = _price_services(services)
        total = bill_total(priced)
        if total <= 0:
            raise BillValidationError("Bill total must be greater than zero")

        contract = self.contract_repo.find_for_room(building_id, room)
        bill = Bill(
            building_id=building_id,
            room=room,
            customer_id=customer_id,
            customer_name=customer.name,
            period=period,
            year=year,
            bill_date=bill_date,
            due_date=due_date,
            services=priced,
            total_amount=total,
            contract_id=contract.id if contract else None,
        )
        bill = self.bill_repo.create(bill)
        logger.info(
            "Bill created: id=%s, building=%s, room=%s, period=%s/%s, total=%d",
            bill.id,
            building_id,
            room,
            period,
            year,
            total,
        )
        self._publish(BillCreated.create(bill))
        return bill

    def update_bill(
        self,
        bill_id: int,
        *,
        services: list[LineItem] | None = None,
        bill_date: date | None = None,
        due_date: int | None = None,
    ) -> Bill:
        bill = self.require_bill(bill_id)
        ensure_editable(bill)

        partial: dict = {}
        if services is not None:
            if bill.is_termination_bill:
                raise BillValidationError("Services of a termination bill cannot be changed")
            priced = _price_services(services)
            total = bill_total(priced)
            if total <= 0:
                raise BillValidationError("Bill total must be greater than zero")
            partial["services"] = priced
            partial["total_amount"] = total
        if bill_date is not None:
            partial["bill_date"] = bill_date
        if due_date is not None:
            _validate_due_day(due_date)
            partial["due_date"] = due_date
        if not partial:
            return bill

        updated = self.bill_repo.update(bill_id, partial)
        logger.info("Bill updated: id=%s, total=%d", updated.id, updated.total_amount)
        self._publish(BillUpdated.create(updated))
        return updated

    def delete_bill(self, bill_id: int, today: date | None = None) -> None:
        bill = self.require_bill(bill_id)
        ensure_editable(bill)

        self.bill_repo.delete(bill_id)
        logger.info("Bill %s soft-deleted", bill_id)
        self._publish(BillDeleted.create(bill_id))

        if bill.is_termination_bill and bill.contract_id is not None:
            self._restore_contract(bill, today)

    def _restore_contract(self, bill: Bill, today: date | None) -> None:
        contract = self.contract_repo.get_by_id(bill.contract_id)
        if contract is None:
            logger.warning("Termination bill %s points at missing contract %s", bill.id, bill.contract_id)
            return
        if contract.status != ContractStatus.TERMINATED:
            return
        status = contract_status_from_end_date(contract.end_date, today)
        contract = self.contract_repo.update_status(
            contract.id, status, terminated_at=None, termination_bill_id=None
        )
        logger.info(
            "Contract %s restored to %s after termination bill %s was deleted", contract.id, status.value, bill.id
        )
        self._publish(ContractStatusChanged.create(contract))

    # ---- Approval ----

    def approve(self, bill_id: int) -> Bill:
        bill = self.require_bill(bill_id)
        ensure_can_approve(bill)

        partial: dict = {"approved": True}
        if bill.is_termination_bill:
            partial["status"] = BillStatus.TERMINATED
        updated = self.bill_repo.update(bill_id, partial)
        logger.info("Bill %s approved", bill_id)

        building = self.building_repo.get_by_id(updated.building_id)
        customer = self.customer_repo.get_by_id(updated.customer_id) if updated.customer_id else None
        if building is not None and customer is not None:
            self.notifications.bill_approved(updated, building, customer)
        else:
            logger.warning("Skipping approval notification for bill %s: building or customer missing", bill_id)

        self._publish(BillApproved.create(updated))
        return updated

    def unapprove(self, bill_id: int) -> Bill:
        bill = self.require_bill(bill_id)
        ensure_can_unapprove(bill)

        partial: dict = {"approved": False}
        if bill.is_termination_bill:
            partial["status"] = BillStatus.UNPAID
        updated = self.bill_repo.update(bill_id, partial)
        logger.info("Bill %s unapproved", bill_id)

        self.notifications.retract_bill_approved(bill_id)
        self._publish(BillUnapproved.create(updated))
        return updated
