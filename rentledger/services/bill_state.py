"""Approval and collection states of a bill, and the guards between them.

    Draft --approve--> Approved-Unpaid --collect(full)--> Approved-Paid
      ^                    |                                  |
      +----unapprove-------+<-------------uncollect-----------+

    Termination-Pending --approve--> Termination-Approved

Paid bills cannot be unapproved; approved bills cannot be edited or deleted.
"""

from __future__ import annotations

from enum import Enum

from rentledger.errors import (
    ApprovalBlocked,
    BillLocked,
    CannotUnapprovePaidBill,
    InvariantViolation,
    PaymentNotCollected,
)
from rentledger.models.bill import Bill, BillStatus
from rentledger.services.line_item_calculator import bill_total


class BillState(str, Enum):
    DRAFT = "draft"
    APPROVED_UNPAID = "approved_unpaid"
    APPROVED_PAID = "approved_paid"
    TERMINATION_PENDING = "termination_pending"
    TERMINATION_APPROVED = "termination_approved"


def state_of(bill: Bill) -> BillState:
    if bill.is_termination_bill:
        return BillState.TERMINATION_APPROVED if bill.approved else BillState.TERMINATION_PENDING
    if not bill.approved:
        return BillState.DRAFT
    if bill.status == BillStatus.PAID:
        return BillState.APPROVED_PAID
    return BillState.APPROVED_UNPAID


def has_collected_money(bill: Bill) -> bool:
    return bill.status == BillStatus.PAID or bill.paid_amount > 0


def ensure_can_approve(bill: Bill) -> None:
    if bill.approved:
        raise ApprovalBlocked(f"Bill {bill.id} is already approved")


def ensure_can_unapprove(bill: Bill) -> None:
    if has_collected_money(bill):
        raise CannotUnapprovePaidBill(f"Bill {bill.id} has collected payments; uncollect it first")
    if not bill.approved:
        raise ApprovalBlocked(f"Bill {bill.id} is not approved")


def ensure_editable(bill: Bill) -> None:
    if bill.approved:
        raise BillLocked(f"Bill {bill.id} is approved and can no longer be changed")


def ensure_can_uncollect(bill: Bill) -> None:
    if bill.status != BillStatus.PAID:
        raise PaymentNotCollected(f"Bill {bill.id} has not been fully collected")


def check_invariants(bill: Bill) -> None:
    """Raise InvariantViolation if the bill is in an impossible state."""
    expected_total = bill_total(bill.services)
    if bill.total_amount != expected_total:
        raise InvariantViolation(
            f"Bill {bill.id}: total_amount {bill.total_amount} != sum of services {expected_total}"
        )
    if not 0 <= bill.paid_amount <= bill.total_amount:
        raise InvariantViolation(
            f"Bill {bill.id}: paid_amount {bill.paid_amount} outside 0..{bill.total_amount}"
        )
    if not bill.approved and bill.paid_amount != 0:
        raise InvariantViolation(f"Bill {bill.id}: unapproved bill has paid_amount {bill.paid_amount}")
    if bill.status == BillStatus.PAID:
        if not bill.approved:
            raise InvariantViolation(f"Bill {bill.id}: paid bill is not approved")
        if bill.paid_amount != bill.total_amount:
            raise InvariantViolation(f"Bill {bill.id}: paid bill has paid_amount != total_amount")
    if bill.status == BillStatus.TERMINATED and not (bill.is_termination_bill and bill.approved):
        raise InvariantViolation(f"Bill {bill.id}: only approved termination bills can be terminated")
    if bill.is_termination_bill:
        if bill.total_amount != 0:
            raise InvariantViolation(f"Bill {bill.id}: termination bill has non-zero total")
        if bill.contract_id is None:
            raise InvariantViolation(f"Bill {bill.id}: termination bill has no contract")
