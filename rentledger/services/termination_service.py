"""Zero-amount termination bills issued when a lease ends early."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING

from rentledger.constants import TERMINATION_LINE_NAME, VN_TZ
from rentledger.errors import BillLocked, BillValidationError, ContractNotFound
from rentledger.event_bus import EventBus
from rentledger.events import BillCreated, ContractStatusChanged
from rentledger.models.bill import Bill, BillStatus
from rentledger.models.lease import Contract, ContractStatus
from rentledger.models.line_item import TerminationLine
from rentledger.repositories.base import (
    BillRepository,
    BuildingRepository,
    ContractRepository,
    CustomerRepository,
)
from rentledger.settings import settings

if TYPE_CHECKING:
    from rentledger.services.bill_service import BillService

logger = logging.getLogger(__name__)


def today_local() -> date:
    return datetime.now(VN_TZ).date()


def contract_status_from_end_date(end_date: date, today: date | None = None) -> ContractStatus:
    """Status a lease falls back to when its termination is undone."""
    today = today or today_local()
    days_left = (end_date - today).days
    if days_left < 0:
        return ContractStatus.EXPIRED
    if days_left <= settings.expiring_window_days:
        return ContractStatus.EXPIRING
    return ContractStatus.ACTIVE


class TerminationService:
    def __init__(
        self,
        bill_repo: BillRepository,
        contract_repo: ContractRepository,
        building_repo: BuildingRepository,
        customer_repo: CustomerRepository,
        bill_service: BillService,
        event_bus: EventBus | None = None,
    ) -> None:
        self.bill_repo = bill_repo
        self.contract_repo = contract_repo
        self.building_repo = building_repo
        self.customer_repo = customer_repo
        self.bill_service = bill_service
        self.event_bus = event_bus

    def _publish(self, event) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event)

    def create_termination_bill(self, contract: Contract, today: date | None = None) -> Bill:
        if contract.id is None:
            raise BillValidationError("Cannot issue a termination bill for a contract without an id")
        building = self.building_repo.get_by_id(contract.building_id)
        if building is None:
            raise BillValidationError(f"Building {contract.building_id} not found")
        customer = self.customer_repo.get_by_id(contract.customer_id)
        if customer is None:
            raise BillValidationError(f"Customer {contract.customer_id} not found")

        today = today or today_local()
        bill = Bill(
            building_id=contract.building_id,
            room=contract.room,
            customer_id=customer.id,
            customer_name=customer.name,
            period=today.month,
            year=today.year,
            bill_date=today,
            due_date=settings.default_due_day,
            services=[
                TerminationLine(
                    name=TERMINATION_LINE_NAME,
                    amount=0,
                    from_date=today,
                    to_date=today,
                )
            ],
            total_amount=0,
            paid_amount=0,
            status=BillStatus.UNPAID,
            approved=False,
            is_termination_bill=True,
            contract_id=contract.id,
        )
        bill = self.bill_repo.create(bill)
        logger.info(
            "Termination bill created: id=%s, contract=%s, room=%s-%s",
            bill.id,
            contract.id,
            building.code,
            contract.room,
        )
        self._publish(BillCreated.create(bill))
        return bill

    def terminate_contract(self, contract_id: int, today: date | None = None) -> tuple[Contract, Bill]:
        contract = self.contract_repo.get_by_id(contract_id)
        if contract is None:
            raise ContractNotFound(contract_id)
        if contract.status == ContractStatus.TERMINATED:
            raise BillValidationError(f"Contract {contract_id} is already terminated")

        bill = self.create_termination_bill(contract, today=today)
        contract = self.contract_repo.update_status(
            contract_id,
            ContractStatus.TERMINATED,
            terminated_at=datetime.now(VN_TZ),
            termination_bill_id=bill.id,
        )
        logger.info("Contract %s terminated, termination bill %s", contract_id, bill.id)
        self._publish(ContractStatusChanged.create(contract))
        return contract, bill

    def unterminate_contract(self, contract_id: int, today: date | None = None) -> Contract:
        """Undo a termination by removing its pending termination bill."""
        contract = self.contract_repo.get_by_id(contract_id)
        if contract is None:
            raise ContractNotFound(contract_id)
        if contract.status != ContractStatus.TERMINATED:
            raise BillValidationError(f"Contract {contract_id} is not terminated")

        bill = None
        if contract.termination_bill_id is not None:
            bill = self.bill_repo.get_by_id(contract.termination_bill_id)
        if bill is not None:
            if bill.approved:
                raise BillLocked(f"Termination bill {bill.id} is approved; unapprove it first")
            self.bill_service.delete_bill(bill.id, today=today)
            restored = self.contract_repo.get_by_id(contract_id)
            if restored is None:
                raise ContractNotFound(contract_id)
            return restored

        status = contract_status_from_end_date(contract.end_date, today)
        contract = self.contract_repo.update_status(
            contract_id, status, terminated_at=None, termination_bill_id=None
        )
        logger.info("Contract %s restored to %s (no termination bill on file)", contract_id, status.value)
        self._publish(ContractStatusChanged.create(contract))
        return contract
