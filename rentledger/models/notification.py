from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class NotificationType:
    BILL_APPROVED = "bill_approved"
    PAYMENT_COLLECTED = "payment_collected"


class AdminNotification(BaseModel):
    id: int | None = None
    uuid: str = ""
    type: str
    building_id: int
    room: str
    customer_id: int | None = None
    bill_id: int
    title: str
    message: str
    customer_message: str = ""
    amount: int = 0  # VND
    is_read: bool = False
    created_at: datetime | None = None
