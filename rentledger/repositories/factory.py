from rentledger.repositories.base import (
    AuditLogRepository,
    BillRepository,
    BuildingRepository,
    CategoryRepository,
    ContractRepository,
    CustomerRepository,
    NotificationRepository,
    TransactionRepository,
)


def get_bill_repository() -> BillRepository:
    from rentledger.db import get_connection
    from rentledger.repositories.sqlalchemy import SQLAlchemyBillRepository

    return SQLAlchemyBillRepository(get_connection())


def get_transaction_repository() -> TransactionRepository:
    from rentledger.db import get_connection
    from rentledger.repositories.sqlalchemy import SQLAlchemyTransactionRepository

    return SQLAlchemyTransactionRepository(get_connection())


def get_notification_repository() -> NotificationRepository:
    from rentledger.db import get_connection
    from rentledger.repositories.sqlalchemy import SQLAlchemyNotificationRepository

    return SQLAlchemyNotificationRepository(get_connection())


def get_category_repository() -> CategoryRepository:
    from rentledger.db import get_connection
    from rentledger.repositories.sqlalchemy import SQLAlchemyCategoryRepository

    return SQLAlchemyCategoryRepository(get_connection())


def get_building_repository() -> BuildingRepository:
    from rentledger.db import get_connection
    from rentledger.repositories.sqlalchemy import SQLAlchemyBuildingRepository

    return SQLAlchemyBuildingRepository(get_connection())


def get_customer_repository() -> CustomerRepository:
    from rentledger.db import get_connection
    from rentledger.repositories.sqlalchemy import SQLAlchemyCustomerRepository

    return SQLAlchemyCustomerRepository(get_connection())


def get_contract_repository() -> ContractRepository:
    from rentledger.db import get_connection
    from rentledger.repositories.sqlalchemy import SQLAlchemyContractRepository

    return SQLAlchemyContractRepository(get_connection())


def get_audit_log_repository() -> AuditLogRepository:
    from rentledger.db import get_connection
    from rentledger.repositories.sqlalchemy import SQLAlchemyAuditLogRepository

    return SQLAlchemyAuditLogRepository(get_connection())
