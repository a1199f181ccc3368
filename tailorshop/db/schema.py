# tailorshop/db/schema.py

from datetime import datetime, timezone

from sqlalchemy import (
    MetaData, Table, Column, Integer, String, Boolean,
    Date, DateTime, ForeignKey, CheckConstraint, Text, LargeBinary
)

metadata = MetaData()

# Largest integer a 64-bit INTEGER key column can hold.
MAX_ROW_ID = 2**63 - 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


customers = Table(
    "customers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False),
    Column("nickname", String, nullable=True),
    Column("email", String, nullable=True, unique=True),
    Column("phone", String, nullable=False),
    Column("address", Text, nullable=True),
    Column("paper_cutting", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    ),
)

employees = Table(
    "employees",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False),
    Column("email", String, nullable=False, unique=True),
    Column("phone", String, nullable=False),
    Column("role", String, nullable=False, default="EMPLOYEE"),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
)

orders = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # Shop-facing sequence number written on the paper slip; not unique.
    Column("order_number", Integer, nullable=True),
    Column("customer_id", Integer, ForeignKey("customers.id"), nullable=False),
    Column("employee_id", Integer, ForeignKey("employees.id"), nullable=True),
    Column("status", String, nullable=False, default="PENDING"),
    Column("payment_method", String, nullable=True),
    Column("total_amount", Integer, nullable=False, default=0),
    Column("advance_amount", Integer, nullable=False, default=0),
    Column("notes", Text, nullable=True),
    Column("due_date", Date, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
    CheckConstraint("total_amount >= 0", name="ck_orders_total_amount_nonneg"),
)

order_items = Table(
    "order_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "order_id",
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("description", Text, nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("price", Integer, nullable=False),
    Column("work_type", String, nullable=False, default="SIMPLE_WORK"),
    Column("item_notes", Text, nullable=True),
    Column("item_status", String, nullable=False, default="NOT_DONE"),
    CheckConstraint("quantity > 0", name="ck_order_items_quantity_pos"),
    CheckConstraint("price > 0", name="ck_order_items_price_pos"),
)

order_images = Table(
    "order_images",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "order_id",
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("image", LargeBinary, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
)

customer_images = Table(
    "customer_images",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "customer_id",
        Integer,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("image", LargeBinary, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
)

employee_payments = Table(
    "employee_payments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "employee_id",
        Integer,
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("amount", Integer, nullable=False),
    Column("type", String, nullable=False),
    Column("notes", Text, nullable=True),
    Column("payment_date", DateTime(timezone=True), nullable=False, default=_utcnow),
    CheckConstraint("amount > 0", name="ck_employee_payments_amount_pos"),
)
