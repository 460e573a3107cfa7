from abc import ABC, abstractmethod

from rentledger.models.audit_log import AuditLog
from rentledger.models.bill import Bill
from rentledger.models.lease import Building, Contract, Customer
from rentledger.models.notification import AdminNotification
from rentledger.models.transaction import Category, LedgerTransaction


class BillRepository(ABC):
    @abstractmethod
    def create(self, bill: Bill) -> Bill: ...

    @abstractmethod
    def get_by_id(self, bill_id: int) -> Bill | None: ...

    @abstractmethod
    def get_by_uuid(self, uuid: str) -> Bill | None: ...

    @abstractmethod
    def list_by_building_room_period(
        self,
        building_id: int,
        room: str | None = None,
        period: int | None = None,
        year: int | None = None,
    ) -> list[Bill]: ...

    @abstractmethod
    def update(self, bill_id: int, partial: dict) -> Bill:
        """Merge ``partial`` into the stored bill and return the result.

        A ``services`` key replaces every line item of the bill.
        """
        ...

    @abstractmethod
    def delete(self, bill_id: int) -> None: ...


class TransactionRepository(ABC):
    @abstractmethod
    def create(self, transaction: LedgerTransaction) -> LedgerTransaction: ...

    @abstractmethod
    def list_by_bill_id(self, bill_id: int) -> list[LedgerTransaction]: ...

    @abstractmethod
    def delete_by_bill_id(self, bill_id: int) -> int: ...


class NotificationRepository(ABC):
    @abstractmethod
    def create(self, notification: AdminNotification) -> AdminNotification: ...

    @abstractmethod
    def list_by_bill_id(self, bill_id: int) -> list[AdminNotification]: ...

    @abstractmethod
    def delete_by_bill_id_and_type(self, bill_id: int, notification_type: str) -> int: ...


class CategoryRepository(ABC):
    @abstractmethod
    def create(self, category: Category) -> Category: ...

    @abstractmethod
    def list_all(self) -> list[Category]: ...


class BuildingRepository(ABC):
    @abstractmethod
    def create(self, building: Building) -> Building: ...

    @abstractmethod
    def get_by_id(self, building_id: int) -> Building | None: ...

    @abstractmethod
    def list_all(self) -> list[Building]: ...


class CustomerRepository(ABC):
    @abstractmethod
    def create(self, customer: Customer) -> Customer: ...

    @abstractmethod
    def get_by_id(self, customer_id: int) -> Customer | None: ...

    @abstractmethod
    def list_all(self) -> list[Customer]: ...


class ContractRepository(ABC):
    @abstractmethod
    def create(self, contract: Contract) -> Contract: ...

    @abstractmethod
    def get_by_id(self, contract_id: int) -> Contract | None: ...

    @abstractmethod
    def find_for_room(self, building_id: int, room: str) -> Contract | None:
        """Most recent lease on the room that has not been terminated."""
        ...

    @abstractmethod
    def list_all(self) -> list[Contract]: ...

    @abstractmethod
    def update_status(self, contract_id: int, status: str, **fields) -> Contract:
        """Set the lease status plus ``terminated_at`` / ``termination_bill_id``."""
        ...


class AuditLogRepository(ABC):
    @abstractmethod
    def create(self, audit_log: AuditLog) -> AuditLog: ...

    @abstractmethod
    def list_by_entity(self, entity_type: str, entity_id: int) -> list[AuditLog]: ...

    @abstractmethod
    def list_recent(self, limit: int = 50) -> list[AuditLog]: ...
