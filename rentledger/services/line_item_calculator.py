"""Amount rules for bill line items.

All arithmetic is done on integers. Prorated amounts round half up, so a
value exactly halfway between two VND rounds away from zero.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import date

from rentledger.models.line_item import (
    CustomLine,
    LineItem,
    MeteredLine,
    QuantityLine,
    RentLine,
    TerminationLine,
)


def round_half_up(numerator: int, denominator: int) -> int:
    """Round ``numerator / denominator`` to the nearest integer, halves up."""
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return (2 * numerator + denominator) // (2 * denominator)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def actual_days(from_date: date, to_date: date) -> int:
    """Inclusive day count between two dates, never negative."""
    return max(0, (to_date - from_date).days + 1)


def prorate(full_amount: int, from_date: date, to_date: date) -> int:
    """Share of ``full_amount`` for the days covered, relative to from_date's month."""
    days = actual_days(from_date, to_date)
    month_days = days_in_month(from_date.year, from_date.month)
    return round_half_up(full_amount * days, month_days)


def metered_quantity(old_reading: int, new_reading: int | None) -> int:
    if new_reading is None:
        return 0
    return max(0, new_reading - old_reading)


def compute_amount(line: LineItem) -> int:
    match line:
        case RentLine(from_date=date() as start, to_date=date() as end):
            return prorate(line.unit_price, start, end)
        case RentLine():
            return line.unit_price
        case MeteredLine():
            return metered_quantity(line.old_reading, line.new_reading) * line.unit_price
        case QuantityLine() | CustomLine():
            total = line.unit_price * line.quantity
            if line.from_date is not None and line.to_date is not None:
                return prorate(total, line.from_date, line.to_date)
            return total
        case TerminationLine():
            return 0
    raise TypeError(f"Unsupported line item: {type(line).__name__}")


def price_line(line: LineItem) -> LineItem:
    """Return a copy of ``line`` with ``amount`` (and metered ``quantity``) filled in."""
    update: dict = {"amount": compute_amount(line)}
    if isinstance(line, MeteredLine):
        update["quantity"] = metered_quantity(line.old_reading, line.new_reading)
    return line.model_copy(update=update)


def price_lines(lines: Iterable[LineItem]) -> list[LineItem]:
    priced = []
    for i, line in enumerate(lines):
        priced.append(price_line(line).model_copy(update={"sort_order": i}))
    return priced


def bill_total(lines: Iterable[LineItem]) -> int:
    return sum(line.amount for line in lines)
