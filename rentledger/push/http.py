import json
import logging

import requests

from rentledger.push.base import PushSender

logger = logging.getLogger(__name__)


class HttpPushSender(PushSender):
    """POSTs notifications as JSON to the push gateway."""

    def __init__(self, url: str, api_key: str = "", timeout: float = 10.0) -> None:
        if not url:
            raise ValueError("Push URL is required for the http push backend")
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    def send(self, customer_id: int, title: str, body: str, data: dict | None = None) -> None:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        payload = {
            "customerId": customer_id,
            "title": title,
            "body": body,
            "data": data or {},
        }
        response = requests.post(
            self.url,
            headers=headers,
            data=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
            timeout=self.timeout,
        )
        response.raise_for_status()
        logger.info("Push sent to customer=%s status=%s", customer_id, response.status_code)
