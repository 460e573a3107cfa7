from __future__ import annotations

import logging

from rentledger.models.audit_log import AuditEventType, AuditLog
from rentledger.models.bill import Bill
from rentledger.models.lease import Contract
from rentledger.repositories.base import AuditLogRepository
from rentledger.services.audit_serializers import serialize_bill, serialize_contract
from rentledger.services.bulk_service import BulkResult

logger = logging.getLogger(__name__)


class AuditService:
    """Writes the audit trail for bill, contract and bulk operations.

    ``source`` tags every entry with where the change came from ('cli' for the
    interactive menus).
    """

    def __init__(self, repo: AuditLogRepository, source: str = "cli") -> None:
        self.repo = repo
        self.source = source

    def log(
        self,
        event_type: str,
        *,
        entity_type: str = "",
        entity_id: int | None = None,
        entity_uuid: str = "",
        previous_state: dict | None = None,
        new_state: dict | None = None,
        metadata: dict | None = None,
        actor_username: str = "",
    ) -> AuditLog:
        """Create an audit log entry. Raises on failure."""
        entry = self.repo.create(
            AuditLog(
                event_type=event_type,
                actor_username=actor_username,
                source=self.source,
                entity_type=entity_type,
                entity_id=entity_id,
                entity_uuid=entity_uuid,
                previous_state=previous_state,
                new_state=new_state,
                metadata=metadata or {},
            )
        )
        logger.info(
            "Audit %s on %s/%s (changed: %s)",
            entry.event_type,
            entity_type or "-",
            entity_id,
            ", ".join(entry.changed_fields()) or "none",
        )
        return entry

    def safe_log(self, event_type: str, **kwargs) -> AuditLog | None:
        """Like ``log``, but a failed write is logged and ``None`` returned."""
        try:
            return self.log(event_type, **kwargs)
        except Exception:
            logger.exception("Could not record audit event %s", event_type)
            return None

    def record_bill(self, event_type: str, bill: Bill, previous: Bill | None = None) -> AuditLog | None:
        if event_type == AuditEventType.BILL_DELETE:
            before, after = serialize_bill(bill), None
        else:
            before = serialize_bill(previous) if previous is not None else None
            after = serialize_bill(bill)
        return self.safe_log(
            event_type,
            entity_type="bill",
            entity_id=bill.id,
            entity_uuid=bill.uuid,
            previous_state=before,
            new_state=after,
        )

    def record_contract(self, event_type: str, contract: Contract, previous: Contract) -> AuditLog | None:
        return self.safe_log(
            event_type,
            entity_type="contract",
            entity_id=contract.id,
            previous_state=serialize_contract(previous),
            new_state=serialize_contract(contract),
        )

    def record_bulk(self, result: BulkResult) -> AuditLog | None:
        return self.safe_log(AuditEventType.BULK_OPERATION, entity_type="bill", metadata=result.model_dump())

    def history(self, entity_type: str, entity_id: int) -> list[AuditLog]:
        return self.repo.list_by_entity(entity_type, entity_id)

    def list_recent(self, limit: int = 50) -> list[AuditLog]:
        return self.repo.list_recent(limit)
