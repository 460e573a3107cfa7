from __future__ import annotations

import logging

from rentledger.constants import (
    BILL_APPROVED_CUSTOMER_MESSAGE,
    BILL_APPROVED_MESSAGE,
    BILL_APPROVED_TITLE,
    PAYMENT_COLLECTED_CUSTOMER_MESSAGE,
    PAYMENT_COLLECTED_MESSAGE,
    PAYMENT_COLLECTED_TITLE,
    PAYMENT_CONFIRMED_PUSH_BODY,
    PAYMENT_CONFIRMED_PUSH_TITLE,
)
from rentledger.models import format_vnd
from rentledger.models.bill import Bill
from rentledger.models.lease import Building, Customer
from rentledger.models.notification import AdminNotification, NotificationType
from rentledger.push.base import PushSender
from rentledger.repositories.base import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, repo: NotificationRepository, push: PushSender) -> None:
        self.repo = repo
        self.push = push

    def bill_approved(self, bill: Bill, building: Building, customer: Customer | None) -> AdminNotification:
        if bill.id is None:
            raise ValueError("Cannot notify about a bill without an id")
        notification = AdminNotification(
            type=NotificationType.BILL_APPROVED,
            building_id=bill.building_id,
            room=bill.room,
            customer_id=customer.id if customer else bill.customer_id,
            bill_id=bill.id,
            title=BILL_APPROVED_TITLE,
            message=BILL_APPROVED_MESSAGE.format(
                period=bill.period, year=bill.year, building_code=building.code, room=bill.room
            ),
            customer_message=BILL_APPROVED_CUSTOMER_MESSAGE.format(period=bill.period, year=bill.year),
            amount=bill.total_amount,
            is_read=True,
        )
        result = self.repo.create(notification)
        logger.info("Approval notification created for bill %s", bill.id)
        return result

    def retract_bill_approved(self, bill_id: int) -> int:
        removed = self.repo.delete_by_bill_id_and_type(bill_id, NotificationType.BILL_APPROVED)
        logger.info("Removed %d approval notification(s) for bill %s", removed, bill_id)
        return removed

    def payment_collected(self, bill: Bill, building: Building, customer: Customer) -> AdminNotification:
        """Confirm a completed payment to the customer and to the admins."""
        if bill.id is None:
            raise ValueError("Cannot notify about a bill without an id")
        amount = format_vnd(bill.total_amount)

        if customer.id is not None:
            try:
                self.push.send(
                    customer.id,
                    PAYMENT_CONFIRMED_PUSH_TITLE,
                    PAYMENT_CONFIRMED_PUSH_BODY.format(period=bill.period, year=bill.year, amount=amount),
                    {
                        "type": "payment_confirmed",
                        "billId": bill.id,
                        "buildingCode": building.code,
                        "room": bill.room,
                        "amount": bill.total_amount,
                    },
                )
            except Exception:
                logger.exception("Failed to push payment confirmation for bill %s", bill.id)

        notification = AdminNotification(
            type=NotificationType.PAYMENT_COLLECTED,
            building_id=bill.building_id,
            room=bill.room,
            customer_id=customer.id,
            bill_id=bill.id,
            title=PAYMENT_COLLECTED_TITLE,
            message=PAYMENT_COLLECTED_MESSAGE.format(
                customer_name=customer.name,
                building_code=building.code,
                room=bill.room,
                period=bill.period,
                year=bill.year,
                amount=amount,
            ),
            customer_message=PAYMENT_COLLECTED_CUSTOMER_MESSAGE.format(customer_name=customer.name),
            amount=bill.total_amount,
            is_read=False,
        )
        result = self.repo.create(notification)
        logger.info("Payment notification created for bill %s", bill.id)
        return result

    def retract_payment_collected(self, bill_id: int) -> int:
        removed = self.repo.delete_by_bill_id_and_type(bill_id, NotificationType.PAYMENT_COLLECTED)
        logger.info("Removed %d payment notification(s) for bill %s", removed, bill_id)
        return removed

    def list_for_bill(self, bill_id: int) -> list[AdminNotification]:
        return self.repo.list_by_bill_id(bill_id)
