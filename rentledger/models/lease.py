from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel


class ContractStatus(str, Enum):
    ACTIVE = "active"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    TERMINATED = "terminated"


class CatalogService(BaseModel):
    id: str
    name: str
    unit: str = ""
    price: int = 0  # VND per unit


class Building(BaseModel):
    id: int | None = None
    code: str
    name: str = ""
    account_id: str = ""  # cash book receiving bill payments
    services: list[CatalogService] = []


class Customer(BaseModel):
    id: int | None = None
    name: str
    phone: str = ""


class ServiceDetail(BaseModel):
    service_id: str
    quantity: int = 1
    initial_reading: int = 0


class Contract(BaseModel):
    id: int | None = None
    building_id: int
    room: str
    customer_id: int
    rent_price: int = 0  # VND per month
    start_date: date
    end_date: date
    status: ContractStatus = ContractStatus.ACTIVE
    service_details: list[ServiceDetail] = []
    terminated_at: datetime | None = None
    termination_bill_id: int | None = None

    def service_detail(self, service_id: str) -> ServiceDetail | None:
        for detail in self.service_details:
            if detail.service_id == service_id:
                return detail
        return None
