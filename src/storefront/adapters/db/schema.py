"""Relational schema for the SQL-backed repositories.

| Table         | Notes                                                        |
|---------------|--------------------------------------------------------------|
| users         | UNIQUE(email); soft-deleted rows keep their email            |
| products      | CHECK(price > 0), CHECK(stock >= 0)                          |
| orders        | total is denormalised for reporting, always derived on write |
| order_items   | ordered by ``position`` within an order                      |
| audit_logs    | append-only; ids are ULIDs so they sort by creation time     |

The Alembic migration under ``alembic/versions`` creates the same tables.
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

from .sa_types import MONEY, PORTABLE_JSON, UTCDateTime

__all__ = [
    "audit_logs",
    "metadata",
    "order_items",
    "orders",
    "products",
    "users",
]

ID_LENGTH = 64

# Constraint names must not depend on generation order, otherwise Alembic
# autogenerate reports phantom drops and adds.
metadata = MetaData(
    naming_convention={
        "pk": "pk_%(table_name)s",
        "uq": "uq_%(table_name)s_%(column_0_N_name)s",
        "ix": "ix_%(table_name)s_%(column_0_N_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_N_name)s_%(referred_table_name)s",
    }
)


def _timestamps() -> list[Column]:
    return [
        Column("created_at", UTCDateTime(), nullable=False),
        Column("updated_at", UTCDateTime(), nullable=False),
        Column(
            "deleted_at",
            UTCDateTime(),
            nullable=True,
            comment="Soft-delete marker; NULL while the row is live.",
        ),
    ]


users = Table(
    "users",
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(255), nullable=False),
    Column("password", String(255), nullable=False, comment="Pre-hashed password."),
    *_timestamps(),
)

products = Table(
    "products",
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("name", String(255), nullable=False, index=True),
    Column("description", Text, nullable=False, server_default=""),
    Column("price", MONEY, nullable=False),
    Column("stock", Integer, nullable=False),
    *_timestamps(),
    CheckConstraint("price > 0", name="price_positive"),
    CheckConstraint("stock >= 0", name="stock_non_negative"),
)

orders = Table(
    "orders",
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column(
        "user_id",
        String(ID_LENGTH),
        nullable=False,
        index=True,
        comment="Owning user; no foreign key, users may live in another store.",
    ),
    Column("status", String(20), nullable=False),
    Column("total", MONEY, nullable=False),
    *_timestamps(),
)

order_items = Table(
    "order_items",
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column(
        "order_id",
        String(ID_LENGTH),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("position", Integer, nullable=False),
    Column("product_id", String(ID_LENGTH), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("price", MONEY, nullable=False),
    CheckConstraint("quantity > 0", name="quantity_positive"),
    CheckConstraint("price > 0", name="price_positive"),
)

audit_logs = Table(
    "audit_logs",
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("entity_type", String(50), nullable=False),
    Column("entity_id", String(ID_LENGTH), nullable=False),
    Column("action", String(50), nullable=False),
    Column("payload", PORTABLE_JSON, nullable=False),
    Column("timestamp", UTCDateTime(), nullable=False),
    Column("actor_id", String(ID_LENGTH), nullable=True),
    Index("ix_audit_logs_entity", "entity_type", "entity_id"),
)
