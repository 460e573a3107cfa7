from abc import ABC, abstractmethod


class PushSender(ABC):
    @abstractmethod
    def send(self, customer_id: int, title: str, body: str, data: dict | None = None) -> None:
        """Deliver a push notification to every device of a customer."""
        ...
