"""Serializers that convert models to dicts suitable for audit log state fields.

Dates and datetimes become ISO 8601 strings for JSON compatibility.
"""

from __future__ import annotations

from datetime import date

from rentledger.models.bill import Bill
from rentledger.models.lease import Contract
from rentledger.models.line_item import LineItem


def _iso(val: date | None) -> str | None:
    if val is None:
        return None
    return val.isoformat()


def serialize_line_item(line: LineItem) -> dict:
    return line.model_dump(mode="json", exclude={"id", "bill_id"})


def serialize_bill(bill: Bill) -> dict:
    """Serialize a Bill (with its services) for audit state."""
    return {
        "id": bill.id,
        "uuid": bill.uuid,
        "building_id": bill.building_id,
        "room": bill.room,
        "customer_id": bill.customer_id,
        "period": bill.period,
        "year": bill.year,
        "bill_date": _iso(bill.bill_date),
        "due_date": bill.due_date,
        "services": [serialize_line_item(line) for line in bill.services],
        "total_amount": bill.total_amount,
        "paid_amount": bill.paid_amount,
        "status": bill.status.value,
        "approved": bill.approved,
        "is_termination_bill": bill.is_termination_bill,
        "contract_id": bill.contract_id,
        "paid_date": _iso(bill.paid_date),
        "created_at": _iso(bill.created_at),
    }


def serialize_contract(contract: Contract) -> dict:
    return {
        "id": contract.id,
        "building_id": contract.building_id,
        "room": contract.room,
        "customer_id": contract.customer_id,
        "status": contract.status.value,
        "end_date": _iso(contract.end_date),
        "terminated_at": _iso(contract.terminated_at),
        "termination_bill_id": contract.termination_bill_id,
    }
