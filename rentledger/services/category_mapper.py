"""Split a bill payment into categorized ledger items."""

from __future__ import annotations

import logging

from rentledger.models.bill import Bill
from rentledger.models.line_item import LineType
from rentledger.models.transaction import Category, LedgerItem
from rentledger.services.line_item_calculator import round_half_up
from rentledger.settings import settings

logger = logging.getLogger(__name__)

BILL_ITEM_NAME = "Tiền hóa đơn"
ELECTRIC_CATEGORY = ("Tiền điện", "tien-dien")
WATER_CATEGORY = ("Tiền nước", "tien-nuoc")
RENT_AND_FEES_CATEGORY = ("Tiền thuê + phí dịch vụ", "tien-hoa-don")
FALLBACK_ITEM_NAME = "Thu tiền hóa đơn"


def resolve_bill_category(categories: list[Category]) -> str:
    """Id of the category bill income is booked under.

    The category named like ``settings.bill_category_name`` wins, then the
    first income category, then ``settings.default_category_id``.
    """
    for category in categories:
        if category.name == settings.bill_category_name:
            return category.id
    for category in categories:
        if category.type == "income":
            return category.id
    logger.warning("No income category found, booking under %s", settings.default_category_id)
    return settings.default_category_id


def _category_id(categories: list[Category], name: str, fallback_id: str) -> str:
    for category in categories:
        if category.name == name or category.id == fallback_id:
            return category.id
    return fallback_id


def to_ledger_items(bill: Bill, categories: list[Category]) -> list[LedgerItem]:
    return [
        LedgerItem(
            name=BILL_ITEM_NAME,
            amount=bill.total_amount,
            category_id=resolve_bill_category(categories),
        )
    ]


def split_by_service_type(bill: Bill, categories: list[Category]) -> list[LedgerItem]:
    """One item per metered service, everything else pooled into a single item."""
    items: list[LedgerItem] = []
    pooled = 0

    for line in bill.services:
        if line.amount <= 0:
            continue
        if line.type == LineType.ELECTRIC:
            name, fallback = ELECTRIC_CATEGORY
            items.append(
                LedgerItem(
                    name=f"{name} ({line.name})",
                    amount=line.amount,
                    category_id=_category_id(categories, name, fallback),
                )
            )
        elif line.type == LineType.WATER_METER:
            name, fallback = WATER_CATEGORY
            items.append(
                LedgerItem(
                    name=f"{name} ({line.name})",
                    amount=line.amount,
                    category_id=_category_id(categories, name, fallback),
                )
            )
        else:
            pooled += line.amount

    if pooled > 0:
        name, fallback = RENT_AND_FEES_CATEGORY
        items.insert(
            0,
            LedgerItem(name=name, amount=pooled, category_id=_category_id(categories, name, fallback)),
        )

    if not items:
        items.append(
            LedgerItem(
                name=FALLBACK_ITEM_NAME,
                amount=bill.total_amount,
                category_id=resolve_bill_category(categories),
            )
        )
    return items


def scale_items(items: list[LedgerItem], amount: int, total: int) -> list[LedgerItem]:
    """Scale ``items`` (which sum to ``total``) so they sum to ``amount``.

    Each item is rounded on its own; the rounding remainder goes to the first
    item.
    """
    if not items:
        return []
    if total <= 0:
        raise ValueError("Cannot scale ledger items of a zero-total bill")
    if amount == total:
        return [item.model_copy() for item in items]

    scaled = [item.model_copy(update={"amount": round_half_up(item.amount * amount, total)}) for item in items]
    remainder = amount - sum(item.amount for item in scaled)
    if remainder:
        scaled[0] = scaled[0].model_copy(update={"amount": scaled[0].amount + remainder})
    return scaled


MAPPERS = {
    "single": to_ledger_items,
    "by_service": split_by_service_type,
}


def map_payment(bill: Bill, categories: list[Category], amount: int) -> list[LedgerItem]:
    """Ledger items for a payment of ``amount`` against ``bill``, summing to ``amount``."""
    mapper = MAPPERS.get(settings.category_mapping)
    if mapper is None:
        raise ValueError(f"Unsupported category mapping: {settings.category_mapping}")
    items = mapper(bill, categories)
    return scale_items(items, amount, sum(item.amount for item in items))
