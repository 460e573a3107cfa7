"""initial schema

Revision ID: 3c1f9a7e2b40
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "3c1f9a7e2b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "buildings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(50), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("account_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )
    op.create_table(
        "building_services",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "building_id",
            sa.Integer,
            sa.ForeignKey("buildings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("service_key", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("unit", sa.String(50), nullable=False, server_default=""),
        sa.Column("price", sa.Integer, nullable=False, server_default="0"),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )
    op.create_table(
        "contracts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("building_id", sa.Integer, nullable=False),
        sa.Column("room", sa.String(50), nullable=False),
        sa.Column("customer_id", sa.Integer, nullable=False),
        sa.Column("rent_price", sa.Integer, nullable=False, server_default="0"),
        sa.Column("start_date", sa.String(10), nullable=False),
        sa.Column("end_date", sa.String(10), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("terminated_at", sa.DateTime, nullable=True),
        sa.Column("termination_bill_id", sa.Integer, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_contracts_room", "contracts", ["building_id", "room"])
    op.create_table(
        "contract_services",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "contract_id",
            sa.Integer,
            sa.ForeignKey("contracts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("service_id", sa.String(64), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("initial_reading", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_table(
        "bills",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.String(26), nullable=False, unique=True),
        sa.Column("building_id", sa.Integer, nullable=False),
        sa.Column("room", sa.String(50), nullable=False),
        sa.Column("customer_id", sa.Integer, nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("period", sa.Integer, nullable=False),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column("bill_date", sa.String(10), nullable=False),
        sa.Column("due_date", sa.Integer, nullable=False, server_default="3"),
        sa.Column("total_amount", sa.Integer, nullable=False, server_default="0"),
        sa.Column("paid_amount", sa.Integer, nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="unpaid"),
        sa.Column("approved", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_termination_bill", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("contract_id", sa.Integer, nullable=True),
        sa.Column("paid_date", sa.String(10), nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
        sa.Column("deleted_at", sa.DateTime, nullable=True),
    )
    op.create_index("ix_bills_room_period", "bills", ["building_id", "room", "year", "period"])
    op.create_table(
        "bill_line_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "bill_id",
            sa.Integer,
            sa.ForeignKey("bills.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("service_id", sa.String(64), nullable=True),
        sa.Column("unit", sa.String(50), nullable=False, server_default=""),
        sa.Column("unit_price", sa.Integer, nullable=False, server_default="0"),
        sa.Column("quantity", sa.Integer, nullable=True),
        sa.Column("old_reading", sa.Integer, nullable=True),
        sa.Column("new_reading", sa.Integer, nullable=True),
        sa.Column("from_date", sa.String(10), nullable=True),
        sa.Column("to_date", sa.String(10), nullable=True),
        sa.Column("amount", sa.Integer, nullable=False, server_default="0"),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_table(
        "categories",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default="income"),
    )
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.String(26), nullable=False, unique=True),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("building_id", sa.Integer, nullable=False),
        sa.Column("room", sa.String(50), nullable=False),
        sa.Column("customer_id", sa.Integer, nullable=True),
        sa.Column("bill_id", sa.Integer, nullable=False),
        sa.Column("account_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("payer", sa.String(255), nullable=False, server_default=""),
        sa.Column("transaction_date", sa.String(10), nullable=False),
        sa.Column("approved", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("payment_method", sa.String(20), nullable=False, server_default="cash"),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_transactions_bill_id", "transactions", ["bill_id"])
    op.create_table(
        "transaction_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "transaction_id",
            sa.Integer,
            sa.ForeignKey("transactions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("amount", sa.Integer, nullable=False),
        sa.Column("category_id", sa.String(64), nullable=False),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_table(
        "admin_notifications",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.String(26), nullable=False, unique=True),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("building_id", sa.Integer, nullable=False),
        sa.Column("room", sa.String(50), nullable=False),
        sa.Column("customer_id", sa.Integer, nullable=True),
        sa.Column("bill_id", sa.Integer, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("customer_message", sa.Text, nullable=False, server_default=""),
        sa.Column("amount", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_admin_notifications_bill", "admin_notifications", ["bill_id", "type"])
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.String(26), nullable=False, unique=True),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("actor_id", sa.Integer, nullable=True),
        sa.Column("actor_username", sa.String(255), nullable=False, server_default=""),
        sa.Column("source", sa.String(10), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False, server_default=""),
        sa.Column("entity_id", sa.Integer, nullable=True),
        sa.Column("entity_uuid", sa.String(26), nullable=False, server_default=""),
        sa.Column("previous_state", sa.Text, nullable=True),
        sa.Column("new_state", sa.Text, nullable=True),
        sa.Column("metadata", sa.Text, nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_created_at", table_name="audit_logs")
    op.drop_index("ix_audit_logs_entity", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_admin_notifications_bill", table_name="admin_notifications")
    op.drop_table("admin_notifications")
    op.drop_table("transaction_items")
    op.drop_index("ix_transactions_bill_id", table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("categories")
    op.drop_table("bill_line_items")
    op.drop_index("ix_bills_room_period", table_name="bills")
    op.drop_table("bills")
    op.drop_table("contract_services")
    op.drop_index("ix_contracts_room", table_name="contracts")
    op.drop_table("contracts")
    op.drop_table("customers")
    op.drop_table("building_services")
    op.drop_table("buildings")
