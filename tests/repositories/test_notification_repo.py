from rentledger.models.notification import AdminNotification, NotificationType
from rentledger.repositories.sqlalchemy import SQLAlchemyNotificationRepository


def _notification(notification_type: str, bill_id: int = 1) -> AdminNotification:
    return AdminNotification(
        type=notification_type,
        building_id=1,
        room="101",
        customer_id=1,
        bill_id=bill_id,
        title="Thông báo",
        message="Hóa đơn tháng 3-2025",
        amount=3275000,
        is_read=notification_type == NotificationType.BILL_APPROVED,
    )


class TestNotificationRepository:
    def test_create(self, notification_repo: SQLAlchemyNotificationRepository):
        created = notification_repo.create(_notification(NotificationType.BILL_APPROVED))

        assert created.id is not None
        assert created.is_read is True
        assert created.created_at is not None

    def test_delete_by_bill_and_type(self, notification_repo: SQLAlchemyNotificationRepository):
        notification_repo.create(_notification(NotificationType.BILL_APPROVED))
        notification_repo.create(_notification(NotificationType.PAYMENT_COLLECTED))
        notification_repo.create(_notification(NotificationType.BILL_APPROVED, bill_id=2))

        removed = notification_repo.delete_by_bill_id_and_type(1, NotificationType.BILL_APPROVED)

        assert removed == 1
        remaining = notification_repo.list_by_bill_id(1)
        assert [n.type for n in remaining] == [NotificationType.PAYMENT_COLLECTED]
        assert len(notification_repo.list_by_bill_id(2)) == 1
