"""Draft line items for a room's monthly bill.

The draft is built from the lease, the building's service catalog and the
previous month's bill for the same room. Readings and quantities carry over
from that bill so the user only types the new meter readings.
"""

from __future__ import annotations

import unicodedata
from datetime import date

from rentledger.constants import (
    ELECTRIC_KEYWORD,
    RENT_LINE_NAME,
    RENT_UNIT,
    VOLUMETRIC_UNITS,
    WATER_KEYWORD,
)
from rentledger.models.bill import Bill
from rentledger.models.lease import Building, CatalogService, Contract
from rentledger.models.line_item import LineItem, LineType, MeteredLine, QuantityLine, RentLine
from rentledger.services.line_item_calculator import days_in_month, price_lines


def _normalize(value: str) -> str:
    return unicodedata.normalize("NFC", value).lower()


def classify_service(service: CatalogService) -> str:
    name = _normalize(service.name)
    if ELECTRIC_KEYWORD in name:
        return LineType.ELECTRIC
    unit = _normalize(service.unit)
    if WATER_KEYWORD in name and (unit in VOLUMETRIC_UNITS or "m3" in unit):
        return LineType.WATER_METER
    return LineType.SERVICE


def service_order(service: CatalogService) -> int:
    name = _normalize(service.name)
    if ELECTRIC_KEYWORD in name:
        return 1
    if WATER_KEYWORD in name:
        return 2
    return 3


def previous_period(period: int, year: int) -> tuple[int, int]:
    if period == 1:
        return 12, year - 1
    return period - 1, year


def month_range(period: int, year: int) -> tuple[date, date]:
    return date(year, period, 1), date(year, period, days_in_month(year, period))


def _previous_line(previous_bill: Bill | None, service: CatalogService, line_type: str) -> LineItem | None:
    if previous_bill is None:
        return None
    for line in previous_bill.services:
        if line.service_id is not None and line.service_id == service.id:
            return line
    # Bills drafted before the catalog carried ids match on type instead.
    for line in previous_bill.services:
        if line.service_id is None and line.type == line_type and line.name == service.name:
            return line
    return None


def _opening_reading(previous: LineItem | None, contract: Contract | None, service: CatalogService) -> int:
    if isinstance(previous, MeteredLine):
        if previous.new_reading is not None:
            return previous.new_reading
        return previous.quantity
    if contract is not None:
        detail = contract.service_detail(service.id)
        if detail is not None:
            return detail.initial_reading
    return 0


def _quantity(previous: LineItem | None, contract: Contract | None, service: CatalogService) -> int:
    if contract is not None:
        detail = contract.service_detail(service.id)
        if detail is not None and detail.quantity:
            return detail.quantity
    previous_quantity = getattr(previous, "quantity", None)
    if previous_quantity:
        return previous_quantity
    return 1


def assemble_line_items(
    contract: Contract | None,
    building: Building,
    previous_bill: Bill | None,
    period: int,
    year: int,
) -> list[LineItem]:
    """Build the priced draft lines for ``period``/``year``.

    Without a lease every line is a zero-priced placeholder so the user can
    still see the catalog.
    """
    first_day, last_day = month_range(period, year)
    priced = contract is not None

    lines: list[LineItem] = [
        RentLine(
            name=RENT_LINE_NAME,
            unit=RENT_UNIT,
            unit_price=contract.rent_price if contract is not None else 0,
            from_date=first_day,
            to_date=last_day,
        )
    ]

    for service in sorted(building.services, key=service_order):
        line_type = classify_service(service)
        previous = _previous_line(previous_bill, service, line_type)
        unit_price = service.price if priced else 0

        if line_type in LineType.METERED:
            lines.append(
                MeteredLine(
                    type=line_type,
                    name=service.name,
                    service_id=service.id,
                    unit=service.unit,
                    unit_price=unit_price,
                    old_reading=_opening_reading(previous, contract, service),
                    new_reading=None,
                )
            )
        else:
            lines.append(
                QuantityLine(
                    name=service.name,
                    service_id=service.id,
                    unit=service.unit,
                    unit_price=unit_price,
                    quantity=_quantity(previous, contract, service),
                    from_date=first_day,
                    to_date=last_day,
                )
            )

    return price_lines(lines)
