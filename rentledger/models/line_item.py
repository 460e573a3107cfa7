from __future__ import annotations

from datetime import date
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class LineType:
    """String constants for the ``type`` discriminator of a line item."""

    RENT = "rent"
    ELECTRIC = "electric"
    WATER_METER = "water_meter"
    SERVICE = "service"
    CUSTOM = "custom"
    TERMINATION = "termination"

    METERED = (ELECTRIC, WATER_METER)


class _LineBase(BaseModel):
    id: int | None = None
    bill_id: int | None = None
    name: str
    service_id: str | None = None
    unit: str = ""
    unit_price: int = 0  # VND
    amount: int = 0  # VND
    sort_order: int = 0


class RentLine(_LineBase):
    type: Literal["rent"] = "rent"
    from_date: date | None = None
    to_date: date | None = None


class MeteredLine(_LineBase):
    type: Literal["electric", "water_meter"]
    old_reading: int = 0
    new_reading: int | None = None
    quantity: int = 0


class QuantityLine(_LineBase):
    type: Literal["service"] = "service"
    quantity: int = 1
    from_date: date | None = None
    to_date: date | None = None


class CustomLine(_LineBase):
    type: Literal["custom"] = "custom"
    quantity: int = 1
    from_date: date | None = None
    to_date: date | None = None


class TerminationLine(_LineBase):
    type: Literal["termination"] = "termination"
    from_date: date | None = None
    to_date: date | None = None


LineItem = Annotated[
    Union[RentLine, MeteredLine, QuantityLine, CustomLine, TerminationLine],
    Field(discriminator="type"),
]

_line_adapter: TypeAdapter[LineItem] = TypeAdapter(LineItem)


def parse_line_item(data: dict) -> LineItem:
    """Build the right line-item class from a plain dict keyed by ``type``."""
    return _line_adapter.validate_python(data)
