import logging

from rentledger.push.base import PushSender

logger = logging.getLogger(__name__)


class LogPushSender(PushSender):
    """Writes notifications to the log instead of delivering them."""

    def __init__(self) -> None:
        self.sent: list[dict] = []

    def send(self, customer_id: int, title: str, body: str, data: dict | None = None) -> None:
        payload = {"customer_id": customer_id, "title": title, "body": body, "data": data or {}}
        self.sent.append(payload)
        logger.info("Push to customer=%s: %s | %s", customer_id, title, body)
