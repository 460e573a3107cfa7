from __future__ import annotations

import json
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Connection, text
from sqlalchemy.engine import RowMapping
from ulid import ULID

from rentledger.constants import VN_TZ
from rentledger.models.audit_log import AuditLog
from rentledger.models.bill import Bill
from rentledger.models.lease import Building, CatalogService, Contract, Customer, ServiceDetail
from rentledger.models.line_item import LineItem, parse_line_item
from rentledger.models.notification import AdminNotification
from rentledger.models.transaction import Category, LedgerItem, LedgerTransaction
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


def _now() -> datetime:
    return datetime.now(VN_TZ)


def _db_value(value):
    """Convert model values to something every DB driver accepts."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return value.isoformat()
    return value


def _in_clause(values: list, prefix: str = "id") -> tuple[str, dict]:
    placeholders = ", ".join(f":{prefix}{i}" for i in range(len(values)))
    params = {f"{prefix}{i}": value for i, value in enumerate(values)}
    return placeholders, params


class SQLAlchemyBillRepository(BillRepository):
    _UPDATABLE = (
        "customer_id",
        "customer_name",
        "bill_date",
        "due_date",
        "total_amount",
        "paid_amount",
        "status",
        "approved",
        "paid_date",
    )

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def _insert_line_items(self, bill_id: int, services: list[LineItem]) -> None:
        for i, line in enumerate(services):
            self.conn.execute(
                text(
                    "INSERT INTO bill_line_items (bill_id, type, name, service_id, unit, unit_price, "
                    "quantity, old_reading, new_reading, from_date, to_date, amount, sort_order) "
                    "VALUES (:bill_id, :type, :name, :service_id, :unit, :unit_price, "
                    ":quantity, :old_reading, :new_reading, :from_date, :to_date, :amount, :sort_order)"
                ),
                {
                    "bill_id": bill_id,
                    "type": line.type,
                    "name": line.name,
                    "service_id": line.service_id,
                    "unit": line.unit,
                    "unit_price": line.unit_price,
                    "quantity": getattr(line, "quantity", None),
                    "old_reading": getattr(line, "old_reading", None),
                    "new_reading": getattr(line, "new_reading", None),
                    "from_date": _db_value(getattr(line, "from_date", None)),
                    "to_date": _db_value(getattr(line, "to_date", None)),
                    "amount": line.amount,
                    "sort_order": i,
                },
            )

    def create(self, bill: Bill) -> Bill:
        bill_uuid = str(ULID())
        now = _now()
        result = self.conn.execute(
            text(
                "INSERT INTO bills (uuid, building_id, room, customer_id, customer_name, period, year, "
                "bill_date, due_date, total_amount, paid_amount, status, approved, is_termination_bill, "
                "contract_id, paid_date, created_at, updated_at) "
                "VALUES (:uuid, :building_id, :room, :customer_id, :customer_name, :period, :year, "
                ":bill_date, :due_date, :total_amount, :paid_amount, :status, :approved, :is_termination_bill, "
                ":contract_id, :paid_date, :created_at, :updated_at)"
            ),
            {
                "uuid": bill_uuid,
                "building_id": bill.building_id,
                "room": bill.room,
                "customer_id": bill.customer_id,
                "customer_name": bill.customer_name,
                "period": bill.period,
                "year": bill.year,
                "bill_date": _db_value(bill.bill_date),
                "due_date": bill.due_date,
                "total_amount": bill.total_amount,
                "paid_amount": bill.paid_amount,
                "status": bill.status.value,
                "approved": bill.approved,
                "is_termination_bill": bill.is_termination_bill,
                "contract_id": bill.contract_id,
                "paid_date": _db_value(bill.paid_date),
                "created_at": now,
                "updated_at": now,
            },
        )
        bill_id = result.lastrowid
        self._insert_line_items(bill_id, bill.services)
        self.conn.commit()
        created = self.get_by_id(bill_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve bill after create (id={bill_id})")
        return created

    @staticmethod
    def _build_line(item_row: RowMapping) -> LineItem:
        return parse_line_item({key: value for key, value in item_row.items() if value is not None})

    @classmethod
    def _build_bill(cls, row: RowMapping, item_rows: list[RowMapping]) -> Bill:
        return Bill(
            id=row["id"],
            uuid=row["uuid"],
            building_id=row["building_id"],
            room=row["room"],
            customer_id=row["customer_id"],
            customer_name=row["customer_name"],
            period=row["period"],
            year=row["year"],
            bill_date=row["bill_date"],
            due_date=row["due_date"],
            services=[cls._build_line(item_row) for item_row in item_rows],
            total_amount=row["total_amount"],
            paid_amount=row["paid_amount"],
            status=row["status"],
            approved=bool(row["approved"]),
            is_termination_bill=bool(row["is_termination_bill"]),
            contract_id=row["contract_id"],
            paid_date=row["paid_date"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            deleted_at=row["deleted_at"],
        )

    def _row_to_bill(self, row: RowMapping) -> Bill:
        items = (
            self.conn.execute(
                text("SELECT * FROM bill_line_items WHERE bill_id = :bill_id ORDER BY sort_order"),
                {"bill_id": row["id"]},
            )
            .mappings()
            .fetchall()
        )
        return self._build_bill(row, list(items))

    def get_by_id(self, bill_id: int) -> Bill | None:
        row = (
            self.conn.execute(
                text("SELECT * FROM bills WHERE id = :id AND deleted_at IS NULL"),
                {"id": bill_id},
            )
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._row_to_bill(row)

    def get_by_uuid(self, uuid: str) -> Bill | None:
        row = (
            self.conn.execute(
                text("SELECT * FROM bills WHERE uuid = :uuid AND deleted_at IS NULL"),
                {"uuid": uuid},
            )
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._row_to_bill(row)

    def list_by_building_room_period(
        self,
        building_id: int,
        room: str | None = None,
        period: int | None = None,
        year: int | None = None,
    ) -> list[Bill]:
        clauses = ["building_id = :building_id", "deleted_at IS NULL"]
        params: dict = {"building_id": building_id}
        if room is not None:
            clauses.append("room = :room")
            params["room"] = room
        if period is not None:
            clauses.append("period = :period")
            params["period"] = period
        if year is not None:
            clauses.append("year = :year")
            params["year"] = year
        rows = (
            self.conn.execute(
                text(f"SELECT * FROM bills WHERE {' AND '.join(clauses)} ORDER BY year DESC, period DESC, room"),
                params,
            )
            .mappings()
            .fetchall()
        )
        if not rows:
            return []
        placeholders, item_params = _in_clause([row["id"] for row in rows])
        all_items = (
            self.conn.execute(
                text(f"SELECT * FROM bill_line_items WHERE bill_id IN ({placeholders}) ORDER BY sort_order"),
                item_params,
            )
            .mappings()
            .fetchall()
        )
        items_by_bill: dict[int, list[RowMapping]] = {}
        for item_row in all_items:
            items_by_bill.setdefault(item_row["bill_id"], []).append(item_row)
        return [self._build_bill(row, items_by_bill.get(row["id"], [])) for row in rows]

    def update(self, bill_id: int, partial: dict) -> Bill:
        unknown = set(partial) - set(self._UPDATABLE) - {"services"}
        if unknown:
            raise ValueError(f"Cannot update bill fields: {', '.join(sorted(unknown))}")

        assignments = ["updated_at = :updated_at"]
        params: dict = {"id": bill_id, "updated_at": _now()}
        for column in self._UPDATABLE:
            if column in partial:
                assignments.append(f"{column} = :{column}")
                params[column] = _db_value(partial[column])
        self.conn.execute(
            text(f"UPDATE bills SET {', '.join(assignments)} WHERE id = :id AND deleted_at IS NULL"),
            params,
        )
        if "services" in partial:
            self.conn.execute(
                text("DELETE FROM bill_line_items WHERE bill_id = :bill_id"),
                {"bill_id": bill_id},
            )
            self._insert_line_items(bill_id, partial["services"])
        self.conn.commit()
        updated = self.get_by_id(bill_id)
        if updated is None:
            raise RuntimeError(f"Failed to retrieve bill after update (id={bill_id})")
        return updated

    def delete(self, bill_id: int) -> None:
        self.conn.execute(
            text("UPDATE bills SET deleted_at = :deleted_at WHERE id = :id"),
            {"deleted_at": _now(), "id": bill_id},
        )
        self.conn.commit()


class SQLAlchemyTransactionRepository(TransactionRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create(self, transaction: LedgerTransaction) -> LedgerTransaction:
        transaction_uuid = str(ULID())
        now = _now()
        result = self.conn.execute(
            text(
                "INSERT INTO transactions (uuid, type, code, building_id, room, customer_id, bill_id, "
                "account_id, title, payer, transaction_date, approved, payment_method, created_at, updated_at) "
                "VALUES (:uuid, :type, :code, :building_id, :room, :customer_id, :bill_id, "
                ":account_id, :title, :payer, :transaction_date, :approved, :payment_method, "
                ":created_at, :updated_at)"
            ),
            {
                "uuid": transaction_uuid,
                "type": transaction.type,
                "code": transaction.code,
                "building_id": transaction.building_id,
                "room": transaction.room,
                "customer_id": transaction.customer_id,
                "bill_id": transaction.bill_id,
                "account_id": transaction.account_id,
                "title": transaction.title,
                "payer": transaction.payer,
                "transaction_date": _db_value(transaction.transaction_date),
                "approved": transaction.approved,
                "payment_method": transaction.payment_method,
                "created_at": now,
                "updated_at": now,
            },
        )
        transaction_id = result.lastrowid
        for i, item in enumerate(transaction.items):
            self.conn.execute(
                text(
                    "INSERT INTO transaction_items (transaction_id, name, amount, category_id, sort_order) "
                    "VALUES (:transaction_id, :name, :amount, :category_id, :sort_order)"
                ),
                {
                    "transaction_id": transaction_id,
                    "name": item.name,
                    "amount": item.amount,
                    "category_id": item.category_id,
                    "sort_order": i,
                },
            )
        self.conn.commit()
        created = self._get_by_id(transaction_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve transaction after create (id={transaction_id})")
        return created

    @staticmethod
    def _build_transaction(row: RowMapping, item_rows: list[RowMapping]) -> LedgerTransaction:
        return LedgerTransaction(
            id=row["id"],
            uuid=row["uuid"],
            type=row["type"],
            code=row["code"],
            building_id=row["building_id"],
            room=row["room"],
            customer_id=row["customer_id"],
            bill_id=row["bill_id"],
            account_id=row["account_id"],
            title=row["title"],
            payer=row["payer"],
            transaction_date=row["transaction_date"],
            items=[
                LedgerItem(
                    name=item_row["name"],
                    amount=item_row["amount"],
                    category_id=item_row["category_id"],
                )
                for item_row in item_rows
            ],
            approved=bool(row["approved"]),
            payment_method=row["payment_method"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _items_for(self, transaction_ids: list[int]) -> dict[int, list[RowMapping]]:
        if not transaction_ids:
            return {}
        placeholders, params = _in_clause(transaction_ids)
        rows = (
            self.conn.execute(
                text(
                    f"SELECT * FROM transaction_items WHERE transaction_id IN ({placeholders}) ORDER BY sort_order"
                ),
                params,
            )
            .mappings()
            .fetchall()
        )
        items: dict[int, list[RowMapping]] = {}
        for row in rows:
            items.setdefault(row["transaction_id"], []).append(row)
        return items

    def _get_by_id(self, transaction_id: int) -> LedgerTransaction | None:
        row = (
            self.conn.execute(
                text("SELECT * FROM transactions WHERE id = :id"),
                {"id": transaction_id},
            )
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._build_transaction(row, self._items_for([transaction_id]).get(transaction_id, []))

    def list_by_bill_id(self, bill_id: int) -> list[LedgerTransaction]:
        rows = (
            self.conn.execute(
                text("SELECT * FROM transactions WHERE bill_id = :bill_id ORDER BY id"),
                {"bill_id": bill_id},
            )
            .mappings()
            .fetchall()
        )
        items = self._items_for([row["id"] for row in rows])
        return [self._build_transaction(row, items.get(row["id"], [])) for row in rows]

    def delete_by_bill_id(self, bill_id: int) -> int:
        ids = [
            row[0]
            for row in self.conn.execute(
                text("SELECT id FROM transactions WHERE bill_id = :bill_id"),
                {"bill_id": bill_id},
            ).fetchall()
        ]
        if not ids:
            return 0
        placeholders, params = _in_clause(ids)
        self.conn.execute(text(f"DELETE FROM transaction_items WHERE transaction_id IN ({placeholders})"), params)
        self.conn.execute(text(f"DELETE FROM transactions WHERE id IN ({placeholders})"), params)
        self.conn.commit()
        return len(ids)


class SQLAlchemyNotificationRepository(NotificationRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    @staticmethod
    def _row_to_notification(row: RowMapping) -> AdminNotification:
        return AdminNotification(
            id=row["id"],
            uuid=row["uuid"],
            type=row["type"],
            building_id=row["building_id"],
            room=row["room"],
            customer_id=row["customer_id"],
            bill_id=row["bill_id"],
            title=row["title"],
            message=row["message"],
            customer_message=row["customer_message"],
            amount=row["amount"],
            is_read=bool(row["is_read"]),
            created_at=row["created_at"],
        )

    def create(self, notification: AdminNotification) -> AdminNotification:
        notification_uuid = str(ULID())
        self.conn.execute(
            text(
                "INSERT INTO admin_notifications (uuid, type, building_id, room, customer_id, bill_id, "
                "title, message, customer_message, amount, is_read, created_at) "
                "VALUES (:uuid, :type, :building_id, :room, :customer_id, :bill_id, "
                ":title, :message, :customer_message, :amount, :is_read, :created_at)"
            ),
            {
                "uuid": notification_uuid,
                "type": notification.type,
                "building_id": notification.building_id,
                "room": notification.room,
                "customer_id": notification.customer_id,
                "bill_id": notification.bill_id,
                "title": notification.title,
                "message": notification.message,
                "customer_message": notification.customer_message,
                "amount": notification.amount,
                "is_read": notification.is_read,
                "created_at": _now(),
            },
        )
        self.conn.commit()
        row = (
            self.conn.execute(
                text("SELECT * FROM admin_notifications WHERE uuid = :uuid"),
                {"uuid": notification_uuid},
            )
            .mappings()
            .fetchone()
        )
        if row is None:
            raise RuntimeError(f"Failed to retrieve notification after create (uuid={notification_uuid})")
        return self._row_to_notification(row)

    def list_by_bill_id(self, bill_id: int) -> list[AdminNotification]:
        rows = (
            self.conn.execute(
                text("SELECT * FROM admin_notifications WHERE bill_id = :bill_id ORDER BY id"),
                {"bill_id": bill_id},
            )
            .mappings()
            .fetchall()
        )
        return [self._row_to_notification(row) for row in rows]

    def delete_by_bill_id_and_type(self, bill_id: int, notification_type: str) -> int:
        result = self.conn.execute(
            text("DELETE FROM admin_notifications WHERE bill_id = :bill_id AND type = :type"),
            {"bill_id": bill_id, "type": notification_type},
        )
        self.conn.commit()
        return result.rowcount


class SQLAlchemyCategoryRepository(CategoryRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create(self, category: Category) -> Category:
        self.conn.execute(
            text("INSERT INTO categories (id, name, type) VALUES (:id, :name, :type)"),
            {"id": category.id, "name": category.name, "type": category.type},
        )
        self.conn.commit()
        return category

    def list_all(self) -> list[Category]:
        rows = self.conn.execute(text("SELECT * FROM categories ORDER BY name")).mappings().fetchall()
        return [Category(id=row["id"], name=row["name"], type=row["type"]) for row in rows]


class SQLAlchemyBuildingRepository(BuildingRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create(self, building: Building) -> Building:
        result = self.conn.execute(
            text(
                "INSERT INTO buildings (code, name, account_id, created_at) "
                "VALUES (:code, :name, :account_id, :created_at)"
            ),
            {
                "code": building.code,
                "name": building.name,
                "account_id": building.account_id,
                "created_at": _now(),
            },
        )
        building_id = result.lastrowid
        for i, service in enumerate(building.services):
            self.conn.execute(
                text(
                    "INSERT INTO building_services (building_id, service_key, name, unit, price, sort_order) "
                    "VALUES (:building_id, :service_key, :name, :unit, :price, :sort_order)"
                ),
                {
                    "building_id": building_id,
                    "service_key": service.id,
                    "name": service.name,
                    "unit": service.unit,
                    "price": service.price,
                    "sort_order": i,
                },
            )
        self.conn.commit()
        created = self.get_by_id(building_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve building after create (id={building_id})")
        return created

    def _row_to_building(self, row: RowMapping) -> Building:
        service_rows = (
            self.conn.execute(
                text("SELECT * FROM building_services WHERE building_id = :building_id ORDER BY sort_order"),
                {"building_id": row["id"]},
            )
            .mappings()
            .fetchall()
        )
        return Building(
            id=row["id"],
            code=row["code"],
            name=row["name"],
            account_id=row["account_id"],
            services=[
                CatalogService(
                    id=service_row["service_key"],
                    name=service_row["name"],
                    unit=service_row["unit"],
                    price=service_row["price"],
                )
                for service_row in service_rows
            ],
        )

    def get_by_id(self, building_id: int) -> Building | None:
        row = (
            self.conn.execute(text("SELECT * FROM buildings WHERE id = :id"), {"id": building_id})
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._row_to_building(row)

    def list_all(self) -> list[Building]:
        rows = self.conn.execute(text("SELECT * FROM buildings ORDER BY code")).mappings().fetchall()
        return [self._row_to_building(row) for row in rows]


class SQLAlchemyCustomerRepository(CustomerRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    @staticmethod
    def _row_to_customer(row: RowMapping) -> Customer:
        return Customer(id=row["id"], name=row["name"], phone=row["phone"])

    def create(self, customer: Customer) -> Customer:
        result = self.conn.execute(
            text("INSERT INTO customers (name, phone, created_at) VALUES (:name, :phone, :created_at)"),
            {"name": customer.name, "phone": customer.phone, "created_at": _now()},
        )
        self.conn.commit()
        return customer.model_copy(update={"id": result.lastrowid})

    def get_by_id(self, customer_id: int) -> Customer | None:
        row = (
            self.conn.execute(text("SELECT * FROM customers WHERE id = :id"), {"id": customer_id})
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._row_to_customer(row)

    def list_all(self) -> list[Customer]:
        rows = self.conn.execute(text("SELECT * FROM customers ORDER BY name")).mappings().fetchall()
        return [self._row_to_customer(row) for row in rows]


class SQLAlchemyContractRepository(ContractRepository):
    _STATUS_FIELDS = ("terminated_at", "termination_bill_id")

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create(self, contract: Contract) -> Contract:
        now = _now()
        result = self.conn.execute(
            text(
                "INSERT INTO contracts (building_id, room, customer_id, rent_price, start_date, end_date, "
                "status, terminated_at, termination_bill_id, created_at, updated_at) "
                "VALUES (:building_id, :room, :customer_id, :rent_price, :start_date, :end_date, "
                ":status, :terminated_at, :termination_bill_id, :created_at, :updated_at)"
            ),
            {
                "building_id": contract.building_id,
                "room": contract.room,
                "customer_id": contract.customer_id,
                "rent_price": contract.rent_price,
                "start_date": _db_value(contract.start_date),
                "end_date": _db_value(contract.end_date),
                "status": contract.status.value,
                "terminated_at": contract.terminated_at,
                "termination_bill_id": contract.termination_bill_id,
                "created_at": now,
                "updated_at": now,
            },
        )
        contract_id = result.lastrowid
        for detail in contract.service_details:
            self.conn.execute(
                text(
                    "INSERT INTO contract_services (contract_id, service_id, quantity, initial_reading) "
                    "VALUES (:contract_id, :service_id, :quantity, :initial_reading)"
                ),
                {
                    "contract_id": contract_id,
                    "service_id": detail.service_id,
                    "quantity": detail.quantity,
                    "initial_reading": detail.initial_reading,
                },
            )
        self.conn.commit()
        created = self.get_by_id(contract_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve contract after create (id={contract_id})")
        return created

    def _row_to_contract(self, row: RowMapping) -> Contract:
        detail_rows = (
            self.conn.execute(
                text("SELECT * FROM contract_services WHERE contract_id = :contract_id ORDER BY id"),
                {"contract_id": row["id"]},
            )
            .mappings()
            .fetchall()
        )
        return Contract(
            id=row["id"],
            building_id=row["building_id"],
            room=row["room"],
            customer_id=row["customer_id"],
            rent_price=row["rent_price"],
            start_date=row["start_date"],
            end_date=row["end_date"],
            status=row["status"],
            service_details=[
                ServiceDetail(
                    service_id=detail_row["service_id"],
                    quantity=detail_row["quantity"],
                    initial_reading=detail_row["initial_reading"],
                )
                for detail_row in detail_rows
            ],
            terminated_at=row["terminated_at"],
            termination_bill_id=row["termination_bill_id"],
        )

    def get_by_id(self, contract_id: int) -> Contract | None:
        row = (
            self.conn.execute(text("SELECT * FROM contracts WHERE id = :id"), {"id": contract_id})
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._row_to_contract(row)

    def find_for_room(self, building_id: int, room: str) -> Contract | None:
        row = (
            self.conn.execute(
                text(
                    "SELECT * FROM contracts WHERE building_id = :building_id AND room = :room "
                    "AND status != 'terminated' ORDER BY start_date DESC, id DESC LIMIT 1"
                ),
                {"building_id": building_id, "room": room},
            )
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._row_to_contract(row)

    def list_all(self) -> list[Contract]:
        rows = (
            self.conn.execute(text("SELECT * FROM contracts ORDER BY building_id, room, start_date"))
            .mappings()
            .fetchall()
        )
        return [self._row_to_contract(row) for row in rows]

    def update_status(self, contract_id: int, status: str, **fields) -> Contract:
        unknown = set(fields) - set(self._STATUS_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update contract fields: {', '.join(sorted(unknown))}")
        assignments = ["status = :status", "updated_at = :updated_at"]
        params: dict = {"id": contract_id, "status": _db_value(status), "updated_at": _now()}
        for column in self._STATUS_FIELDS:
            if column in fields:
                assignments.append(f"{column} = :{column}")
                params[column] = _db_value(fields[column])
        self.conn.execute(text(f"UPDATE contracts SET {', '.join(assignments)} WHERE id = :id"), params)
        self.conn.commit()
        updated = self.get_by_id(contract_id)
        if updated is None:
            raise RuntimeError(f"Failed to retrieve contract after update (id={contract_id})")
        return updated


class SQLAlchemyAuditLogRepository(AuditLogRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    @staticmethod
    def _row_to_audit_log(row: RowMapping) -> AuditLog:
        previous_state = row["previous_state"]
        if isinstance(previous_state, str):
            previous_state = json.loads(previous_state)
        new_state = row["new_state"]
        if isinstance(new_state, str):
            new_state = json.loads(new_state)
        metadata = row["metadata"]
        if isinstance(metadata, str):
            metadata = json.loads(metadata)

        return AuditLog(
            id=row["id"],
            uuid=row["uuid"],
            event_type=row["event_type"],
            actor_id=row["actor_id"],
            actor_username=row["actor_username"],
            source=row["source"],
            entity_type=row["entity_type"],
            entity_id=row["entity_id"],
            entity_uuid=row["entity_uuid"],
            previous_state=previous_state,
            new_state=new_state,
            metadata=metadata,
            created_at=row["created_at"],
        )

    def create(self, audit_log: AuditLog) -> AuditLog:
        audit_uuid = str(ULID())
        self.conn.execute(
            text(
                "INSERT INTO audit_logs (uuid, event_type, actor_id, actor_username, "
                "source, entity_type, entity_id, entity_uuid, previous_state, "
                "new_state, metadata, created_at) "
                "VALUES (:uuid, :event_type, :actor_id, :actor_username, "
                ":source, :entity_type, :entity_id, :entity_uuid, :previous_state, "
                ":new_state, :metadata, :created_at)"
            ),
            {
                "uuid": audit_uuid,
                "event_type": audit_log.event_type,
                "actor_id": audit_log.actor_id,
                "actor_username": audit_log.actor_username,
                "source": audit_log.source,
                "entity_type": audit_log.entity_type,
                "entity_id": audit_log.entity_id,
                "entity_uuid": audit_log.entity_uuid,
                "previous_state": json.dumps(audit_log.previous_state, ensure_ascii=False)
                if audit_log.previous_state is not None
                else None,
                "new_state": json.dumps(audit_log.new_state, ensure_ascii=False)
                if audit_log.new_state is not None
                else None,
                "metadata": json.dumps(audit_log.metadata, ensure_ascii=False),
                "created_at": _now(),
            },
        )
        self.conn.commit()

        row = (
            self.conn.execute(
                text("SELECT * FROM audit_logs WHERE uuid = :uuid"),
                {"uuid": audit_uuid},
            )
            .mappings()
            .fetchone()
        )
        if row is None:
            raise RuntimeError(f"Failed to retrieve audit log after create (uuid={audit_uuid})")
        return self._row_to_audit_log(row)

    def list_by_entity(self, entity_type: str, entity_id: int) -> list[AuditLog]:
        rows = (
            self.conn.execute(
                text(
                    "SELECT * FROM audit_logs "
                    "WHERE entity_type = :entity_type AND entity_id = :entity_id "
                    "ORDER BY created_at DESC, id DESC"
                ),
                {"entity_type": entity_type, "entity_id": entity_id},
            )
            .mappings()
            .fetchall()
        )
        return [self._row_to_audit_log(row) for row in rows]

    def list_recent(self, limit: int = 50) -> list[AuditLog]:
        rows = (
            self.conn.execute(
                text("SELECT * FROM audit_logs ORDER BY created_at DESC, id DESC LIMIT :limit"),
                {"limit": limit},
            )
            .mappings()
            .fetchall()
        )
        return [self._row_to_audit_log(row) for row in rows]
