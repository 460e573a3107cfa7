import pytest
from sqlalchemy import Connection

from rentledger.repositories.sqlalchemy import (
    SQLAlchemyAuditLogRepository,
    SQLAlchemyBillRepository,
    SQLAlchemyBuildingRepository,
    SQLAlchemyCategoryRepository,
    SQLAlchemyContractRepository,
    SQLAlchemyCustomerRepository,
    SQLAlchemyNotificationRepository,
    SQLAlchemyTransactionRepository,
)


@pytest.fixture()
def bill_repo(db_connection: Connection) -> SQLAlchemyBillRepository:
    return SQLAlchemyBillRepository(db_connection)


@pytest.fixture()
def transaction_repo(db_connection: Connection) -> SQLAlchemyTransactionRepository:
    return SQLAlchemyTransactionRepository(db_connection)


@pytest.fixture()
def notification_repo(db_connection: Connection) -> SQLAlchemyNotificationRepository:
    return SQLAlchemyNotificationRepository(db_connection)


@pytest.fixture()
def category_repo(db_connection: Connection) -> SQLAlchemyCategoryRepository:
    return SQLAlchemyCategoryRepository(db_connection)


@pytest.fixture()
def building_repo(db_connection: Connection) -> SQLAlchemyBuildingRepository:
    return SQLAlchemyBuildingRepository(db_connection)


@pytest.fixture()
def customer_repo(db_connection: Connection) -> SQLAlchemyCustomerRepository:
    return SQLAlchemyCustomerRepository(db_connection)


@pytest.fixture()
def contract_repo(db_connection: Connection) -> SQLAlchemyContractRepository:
    return SQLAlchemyContractRepository(db_connection)


@pytest.fixture()
def audit_log_repo(db_connection: Connection) -> SQLAlchemyAuditLogRepository:
    return SQLAlchemyAuditLogRepository(db_connection)
