from rentledger.models.audit_log import AuditEventType, AuditLog
from rentledger.repositories.sqlalchemy import SQLAlchemyAuditLogRepository


class TestAuditLogRepository:
    def test_create_round_trips_json(self, audit_log_repo: SQLAlchemyAuditLogRepository):
        created = audit_log_repo.create(
            AuditLog(
                event_type=AuditEventType.BILL_APPROVE,
                source="cli",
                entity_type="bill",
                entity_id=1,
                previous_state={"approved": False},
                new_state={"approved": True, "room": "101"},
                metadata={"note": "Tiền nhà"},
            )
        )

        assert created.id is not None
        assert len(created.uuid) == 26
        assert created.previous_state == {"approved": False}
        assert created.new_state == {"approved": True, "room": "101"}
        assert created.metadata == {"note": "Tiền nhà"}

    def test_create_without_states(self, audit_log_repo: SQLAlchemyAuditLogRepository):
        created = audit_log_repo.create(AuditLog(event_type=AuditEventType.BULK_OPERATION, source="cli"))
        assert created.previous_state is None
        assert created.new_state is None
        assert created.metadata == {}

    def test_list_by_entity(self, audit_log_repo: SQLAlchemyAuditLogRepository):
        audit_log_repo.create(
            AuditLog(event_type=AuditEventType.BILL_CREATE, source="cli", entity_type="bill", entity_id=1)
        )
        audit_log_repo.create(
            AuditLog(event_type=AuditEventType.BILL_APPROVE, source="cli", entity_type="bill", entity_id=1)
        )
        audit_log_repo.create(
            AuditLog(event_type=AuditEventType.BILL_CREATE, source="cli", entity_type="bill", entity_id=2)
        )

        logs = audit_log_repo.list_by_entity("bill", 1)
        assert len(logs) == 2
        assert {log.event_type for log in logs} == {AuditEventType.BILL_CREATE, AuditEventType.BILL_APPROVE}

    def test_list_recent_limit(self, audit_log_repo: SQLAlchemyAuditLogRepository):
        for _ in range(5):
            audit_log_repo.create(AuditLog(event_type=AuditEventType.BILL_CREATE, source="cli"))
        assert len(audit_log_repo.list_recent(limit=3)) == 3
