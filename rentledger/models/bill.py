from __future__ import annotations

import calendar
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel

from rentledger.models.line_item import LineItem


class BillStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    TERMINATED = "terminated"


class Bill(BaseModel):
    id: int | None = None
    uuid: str = ""
    building_id: int
    room: str
    customer_id: int | None = None
    customer_name: str = ""
    period: int  # month, 1-12
    year: int
    bill_date: date
    due_date: int = 3  # day of month
    services: list[LineItem] = []
    total_amount: int = 0  # VND
    paid_amount: int = 0  # VND
    status: BillStatus = BillStatus.UNPAID
    approved: bool = False
    is_termination_bill: bool = False
    contract_id: int | None = None
    paid_date: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    @property
    def remaining_amount(self) -> int:
        return max(0, self.total_amount - self.paid_amount)

    @property
    def is_paid(self) -> bool:
        return self.status == BillStatus.PAID

    @property
    def bill_number(self) -> str:
        if not self.uuid:
            return ""
        return f"INV{self.uuid[-6:].upper()}"

    @property
    def payment_due_date(self) -> date:
        """Calendar date the bill falls due, clamped to the end of the month."""
        last_day = calendar.monthrange(self.year, self.period)[1]
        return date(self.year, self.period, min(max(self.due_date, 1), last_day))


class StatusFilter(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    TERMINATION = "termination"


class ApprovalFilter(str, Enum):
    APPROVED = "approved"
    UNAPPROVED = "unapproved"


class BillFilter(BaseModel):
    """Narrowing applied to a bill list.

    ``status`` matches regular bills by status, or only termination bills when
    set to ``termination``. ``search`` is a case-insensitive substring looked up
    in the bill number, customer name, building code and room.
    """

    status: StatusFilter | None = None
    approval: ApprovalFilter | None = None
    search: str = ""

    @property
    def is_active(self) -> bool:
        return self.status is not None or self.approval is not None or bool(self.search.strip())


class BillSummary(BaseModel):
    total: int = 0
    unpaid: int = 0
    partial: int = 0
    paid: int = 0
    termination: int = 0
    billed_amount: int = 0  # VND, termination bills excluded
    collected_amount: int = 0  # VND, partial payments included

    @property
    def pending_amount(self) -> int:
        return self.billed_amount - self.collected_amount
