"""In-memory SQLite engine and fixtures for the full schema."""

from __future__ import annotations

from datetime import date
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from sqlalchemy import Connection, create_engine, event, text
from sqlalchemy.engine import Engine

from rentledger.models.bill import Bill
from rentledger.models.lease import Building, CatalogService, Contract, Customer, ServiceDetail
from rentledger.models.line_item import MeteredLine, QuantityLine, RentLine
from rentledger.event_bus import EventBus
from rentledger.models.transaction import Category
from rentledger.push.base import PushSender
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
from rentledger.services.bill_service import BillService
from rentledger.services.bulk_service import BulkCoordinator
from rentledger.services.notification_service import NotificationService
from rentledger.services.payment_service import PaymentService
from rentledger.services.termination_service import TerminationService

# Matches Alembic head: 3c1f9a7e2b40 (initial schema)
SCHEMA_DDL = """
CREATE TABLE buildings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL DEFAULT '',
    account_id TEXT NOT NULL DEFAULT '',
    created_at DATETIME NOT NULL
);

CREATE TABLE building_services (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    building_id INTEGER NOT NULL REFERENCES buildings(id) ON DELETE CASCADE,
    service_key TEXT NOT NULL,
    name TEXT NOT NULL,
    unit TEXT NOT NULL DEFAULT '',
    price INTEGER NOT NULL DEFAULT 0,
    sort_order INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE customers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    phone TEXT NOT NULL DEFAULT '',
    created_at DATETIME NOT NULL
);

CREATE TABLE contracts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    building_id INTEGER NOT NULL,
    room TEXT NOT NULL,
    customer_id INTEGER NOT NULL,
    rent_price INTEGER NOT NULL DEFAULT 0,
    start_date TEXT NOT NULL,
    end_date TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'active',
    terminated_at DATETIME,
    termination_bill_id INTEGER,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
);

CREATE TABLE contract_services (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    contract_id INTEGER NOT NULL REFERENCES contracts(id) ON DELETE CASCADE,
    service_id TEXT NOT NULL,
    quantity INTEGER NOT NULL DEFAULT 1,
    initial_reading INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE bills (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    building_id INTEGER NOT NULL,
    room TEXT NOT NULL,
    customer_id INTEGER,
    customer_name TEXT NOT NULL DEFAULT '',
    period INTEGER NOT NULL,
    year INTEGER NOT NULL,
    bill_date TEXT NOT NULL,
    due_date INTEGER NOT NULL DEFAULT 3,
    total_amount INTEGER NOT NULL DEFAULT 0,
    paid_amount INTEGER NOT NULL DEFAULT 0,
    status TEXT NOT NULL DEFAULT 'unpaid',
    approved BOOLEAN NOT NULL DEFAULT 0,
    is_termination_bill BOOLEAN NOT NULL DEFAULT 0,
    contract_id INTEGER,
    paid_date TEXT,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL,
    deleted_at DATETIME
);

CREATE TABLE bill_line_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    bill_id INTEGER NOT NULL REFERENCES bills(id) ON DELETE CASCADE,
    type TEXT NOT NULL,
    name TEXT NOT NULL,
    service_id TEXT,
    unit TEXT NOT NULL DEFAULT '',
    unit_price INTEGER NOT NULL DEFAULT 0,
    quantity INTEGER,
    old_reading INTEGER,
    new_reading INTEGER,
    from_date TEXT,
    to_date TEXT,
    amount INTEGER NOT NULL DEFAULT 0,
    sort_order INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE categories (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    type TEXT NOT NULL DEFAULT 'income'
);

CREATE TABLE transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    type TEXT NOT NULL,
    code TEXT NOT NULL,
    building_id INTEGER NOT NULL,
    room TEXT NOT NULL,
    customer_id INTEGER,
    bill_id INTEGER NOT NULL,
    account_id TEXT NOT NULL DEFAULT '',
    title TEXT NOT NULL,
    payer TEXT NOT NULL DEFAULT '',
    transaction_date TEXT NOT NULL,
    approved BOOLEAN NOT NULL DEFAULT 1,
    payment_method TEXT NOT NULL DEFAULT 'cash',
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
);

CREATE TABLE transaction_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    transaction_id INTEGER NOT NULL REFERENCES transactions(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    amount INTEGER NOT NULL,
    category_id TEXT NOT NULL,
    sort_order INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE admin_notifications (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    type TEXT NOT NULL,
    building_id INTEGER NOT NULL,
    room TEXT NOT NULL,
    customer_id INTEGER,
    bill_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    message TEXT NOT NULL,
    customer_message TEXT NOT NULL DEFAULT '',
    amount INTEGER NOT NULL DEFAULT 0,
    is_read BOOLEAN NOT NULL DEFAULT 0,
    created_at DATETIME NOT NULL
);

CREATE TABLE audit_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    event_type VARCHAR(50) NOT NULL,
    actor_id INTEGER,
    actor_username VARCHAR(255) NOT NULL DEFAULT '',
    source VARCHAR(10) NOT NULL,
    entity_type VARCHAR(50) NOT NULL DEFAULT '',
    entity_id INTEGER,
    entity_uuid VARCHAR(26) NOT NULL DEFAULT '',
    previous_state TEXT,
    new_state TEXT,
    metadata TEXT NOT NULL DEFAULT '{}',
    created_at DATETIME NOT NULL
)
"""


@pytest.fixture()
def db_engine() -> Engine:
    engine = create_engine("sqlite:///:memory:")

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    return engine


@pytest.fixture()
def db_connection(db_engine: Engine) -> Connection:
    conn = db_engine.connect()
    for statement in SCHEMA_DDL.strip().split(";"):
        stmt = statement.strip()
        if stmt:
            conn.execute(text(stmt))
    conn.commit()
    yield conn
    conn.close()


def _sample_building(**overrides) -> Building:
    defaults = dict(
        code="A1",
        name="Tòa A1",
        account_id="cash-a1",
        services=[
            CatalogService(id="svc-water", name="Nước", unit="m³", price=15000),
            CatalogService(id="svc-elec", name="Điện", unit="kWh", price=3500),
            CatalogService(id="svc-net", name="Internet", unit="tháng", price=100000),
            CatalogService(id="svc-trash", name="Rác", unit="người", price=20000),
        ],
    )
    defaults.update(overrides)
    return Building(**defaults)


def _sample_customer(**overrides) -> Customer:
    defaults = dict(name="Nguyễn Văn A", phone="0900000000")
    defaults.update(overrides)
    return Customer(**defaults)


def _sample_contract(building_id: int = 1, customer_id: int = 1, **overrides) -> Contract:
    defaults = dict(
        building_id=building_id,
        room="101",
        customer_id=customer_id,
        rent_price=3000000,
        start_date=date(2025, 1, 1),
        end_date=date(2025, 12, 31),
        service_details=[
            ServiceDetail(service_id="svc-elec", initial_reading=100),
            ServiceDetail(service_id="svc-trash", quantity=2),
        ],
    )
    defaults.update(overrides)
    return Contract(**defaults)


def _sample_bill(building_id: int = 1, **overrides) -> Bill:
    defaults = dict(
        building_id=building_id,
        room="101",
        customer_id=1,
        customer_name="Nguyễn Văn A",
        period=3,
        year=2025,
        bill_date=date(2025, 3, 31),
        due_date=3,
        services=[
            RentLine(
                name="Tiền nhà",
                unit_price=3000000,
                from_date=date(2025, 3, 1),
                to_date=date(2025, 3, 31),
                amount=3000000,
            ),
            MeteredLine(
                type="electric",
                name="Điện",
                service_id="svc-elec",
                unit="kWh",
                unit_price=3500,
                old_reading=100,
                new_reading=150,
                quantity=50,
                amount=175000,
            ),
            QuantityLine(name="Internet", service_id="svc-net", unit_price=100000, quantity=1, amount=100000),
        ],
        total_amount=3275000,
    )
    defaults.update(overrides)
    return Bill(**defaults)


@pytest.fixture()
def sample_building():
    return _sample_building


@pytest.fixture()
def sample_customer():
    return _sample_customer


@pytest.fixture()
def sample_contract():
    return _sample_contract


@pytest.fixture()
def sample_bill():
    return _sample_bill


# Services wired against in-memory SQLite, with a mocked push sender.


@pytest.fixture()
def ledger(db_connection, sample_building, sample_customer, sample_contract):
    bill_repo = SQLAlchemyBillRepository(db_connection)
    transaction_repo = SQLAlchemyTransactionRepository(db_connection)
    notification_repo = SQLAlchemyNotificationRepository(db_connection)
    category_repo = SQLAlchemyCategoryRepository(db_connection)
    building_repo = SQLAlchemyBuildingRepository(db_connection)
    customer_repo = SQLAlchemyCustomerRepository(db_connection)
    contract_repo = SQLAlchemyContractRepository(db_connection)

    building = building_repo.create(sample_building())
    customer = customer_repo.create(sample_customer())
    contract = contract_repo.create(sample_contract(building_id=building.id, customer_id=customer.id))
    category_repo.create(Category(id="tien-hoa-don", name="Tiền hóa đơn", type="income"))
    category_repo.create(Category(id="sua-chua", name="Sửa chữa", type="expense"))

    push = MagicMock(spec=PushSender)
    bus = EventBus()
    notifications = NotificationService(notification_repo, push)
    bills = BillService(bill_repo, contract_repo, building_repo, customer_repo, notifications, bus)
    payments = PaymentService(
        bill_repo, transaction_repo, category_repo, building_repo, customer_repo, notifications, bus
    )
    terminations = TerminationService(bill_repo, contract_repo, building_repo, customer_repo, bills, bus)

    return SimpleNamespace(
        bill_repo=bill_repo,
        transaction_repo=transaction_repo,
        notification_repo=notification_repo,
        category_repo=category_repo,
        building_repo=building_repo,
        customer_repo=customer_repo,
        contract_repo=contract_repo,
        audit_log_repo=SQLAlchemyAuditLogRepository(db_connection),
        building=building,
        customer=customer,
        contract=contract,
        push=push,
        bus=bus,
        notifications=notifications,
        bills=bills,
        payments=payments,
        terminations=terminations,
        bulk=BulkCoordinator(bills, payments),
    )


@pytest.fixture()
def make_bill(ledger, sample_bill):
    """Create a March 2025 bill for room 101 through the service layer."""

    def _make(room: str = "101", approve: bool = False, **overrides):
        draft = sample_bill(building_id=ledger.building.id, room=room)
        params = dict(
            building_id=ledger.building.id,
            room=room,
            customer_id=ledger.customer.id,
            period=draft.period,
            year=draft.year,
            bill_date=draft.bill_date,
            services=draft.services,
        )
        params.update(overrides)
        bill = ledger.bills.create_bill(**params)
        if approve:
            bill = ledger.bills.approve(bill.id)
        return bill

    return _make


@pytest.fixture()
def recorded_events(ledger):
    """Names of every event published on the ledger's bus, in order."""
    seen: list = []
    names = (
        "BillCreated",
        "BillUpdated",
        "BillDeleted",
        "BillApproved",
        "BillUnapproved",
        "PaymentCollected",
        "PaymentReversed",
        "ContractStatusChanged",
    )
    for name in names:
        ledger.bus.subscribe(name, seen.append)
    return seen
