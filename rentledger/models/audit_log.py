from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class AuditEventType(str, Enum):
    BILL_CREATE = "bill.create"
    BILL_UPDATE = "bill.update"
    BILL_DELETE = "bill.delete"
    BILL_APPROVE = "bill.approve"
    BILL_UNAPPROVE = "bill.unapprove"
    BILL_COLLECT = "bill.collect"
    BILL_UNCOLLECT = "bill.uncollect"
    BULK_OPERATION = "bulk.run"
    CONTRACT_TERMINATE = "contract.terminate"
    CONTRACT_UNTERMINATE = "contract.unterminate"


class AuditLog(BaseModel):
    """One recorded change to a bill or contract.

    ``previous_state`` is empty for creations and ``new_state`` is empty for
    deletions; both hold the snapshots produced by ``audit_serializers``.
    """

    id: int | None = None
    uuid: str = ""
    event_type: str
    actor_id: int | None = None
    actor_username: str = ""
    source: str = ""
    entity_type: str = ""
    entity_id: int | None = None
    entity_uuid: str = ""
    previous_state: dict | None = None
    new_state: dict | None = None
    metadata: dict = {}
    created_at: datetime | None = None

    def changed_fields(self) -> list[str]:
        before = self.previous_state or {}
        after = self.new_state or {}
        return sorted(key for key in before.keys() | after.keys() if before.get(key) != after.get(key))
