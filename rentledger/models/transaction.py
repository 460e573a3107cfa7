from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel


class Category(BaseModel):
    id: str
    name: str
    type: str = "income"  # 'income' or 'expense'


class LedgerItem(BaseModel):
    name: str
    amount: int  # VND
    category_id: str


class LedgerTransaction(BaseModel):
    id: int | None = None
    uuid: str = ""
    type: str = "income"
    code: str = ""
    building_id: int
    room: str
    customer_id: int | None = None
    bill_id: int
    account_id: str = ""
    title: str
    payer: str = ""
    transaction_date: date
    items: list[LedgerItem] = []
    approved: bool = True
    payment_method: str = "cash"
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total(self) -> int:
        return sum(item.amount for item in self.items)
