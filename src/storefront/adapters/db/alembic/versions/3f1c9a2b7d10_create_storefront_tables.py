"""Create users, products, orders, order_items and audit_logs tables

Revision ID: 3f1c9a2b7d10
Revises:
Create Date: 2026-10-17

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from storefront.adapters.db.sa_types import MONEY, PORTABLE_JSON, UTCDateTime

# pylint: disable=no-member

# revision identifiers, used by Alembic.
revision: str = "3f1c9a2b7d10"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.Column(
            "deleted_at",
            UTCDateTime(),
            nullable=True,
            comment="Soft-delete marker; NULL while the row is live.",
        ),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    dialect = op.get_context().dialect.name

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "password",
            sa.String(length=255),
            nullable=False,
            comment="Pre-hashed password.",
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
        sa.UniqueConstraint("email", name=op.f("uq_users_email")),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), server_default="", nullable=False),
        sa.Column("price", MONEY, nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("price > 0", name=op.f("ck_products_price_positive")),
        sa.CheckConstraint(
            "stock >= 0", name=op.f("ck_products_stock_non_negative")
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_products")),
    )
    op.create_index(
        op.f("ix_products_products_name"), "products", ["name"], unique=False
    )

    op.create_table(
        "orders",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column(
            "user_id",
            sa.String(length=64),
            nullable=False,
            comment="Owning user; no foreign key, users may live in another store.",
        ),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("total", MONEY, nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_orders")),
    )
    op.create_index(
        op.f("ix_orders_orders_user_id"), "orders", ["user_id"], unique=False
    )

    op.create_table(
        "order_items",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("order_id", sa.String(length=64), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.String(length=64), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", MONEY, nullable=False),
        sa.CheckConstraint(
            "quantity > 0", name=op.f("ck_order_items_quantity_positive")
        ),
        sa.CheckConstraint("price > 0", name=op.f("ck_order_items_price_positive")),
        sa.ForeignKeyConstraint(
            ["order_id"],
            ["orders.id"],
            name=op.f("fk_order_items_order_id_orders"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_order_items")),
    )
    op.create_index(
        op.f("ix_order_items_order_items_order_id"),
        "order_items",
        ["order_id"],
        unique=False,
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("payload", PORTABLE_JSON, nullable=False),
        sa.Column("timestamp", UTCDateTime(), nullable=False),
        sa.Column("actor_id", sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_audit_logs")),
    )
    op.create_index(
        "ix_audit_logs_entity",
        "audit_logs",
        ["entity_type", "entity_id"],
        unique=False,
    )

    # ---- APPEND-ONLY ENFORCEMENT FOR AUDIT LOGS ----
    if dialect == "postgresql":  # pylint: disable=magic-value-comparison
        op.execute(
            """
            CREATE OR REPLACE FUNCTION audit_logs_forbid_mod() RETURNS trigger
            LANGUAGE plpgsql AS $$
            BEGIN
              RAISE EXCEPTION 'audit_logs is append-only; % not allowed', TG_OP
              USING ERRCODE = '0A000';
            END;
            $$;
            """
        )
        op.execute(
            """
            CREATE TRIGGER tr_audit_logs_append_only
            BEFORE UPDATE OR DELETE ON audit_logs
            FOR EACH ROW
            EXECUTE FUNCTION audit_logs_forbid_mod();
            """
        )
    else:
        op.execute(
            """
            CREATE TRIGGER tr_audit_logs_no_update
            BEFORE UPDATE ON audit_logs
            BEGIN
              SELECT RAISE(ABORT, 'audit_logs is append-only; UPDATE not allowed');
            END;
            """
        )
        op.execute(
            """
            CREATE TRIGGER tr_audit_logs_no_delete
            BEFORE DELETE ON audit_logs
            BEGIN
              SELECT RAISE(ABORT, 'audit_logs is append-only; DELETE not allowed');
            END;
            """
        )


def downgrade() -> None:
    """Downgrade schema."""
    dialect = op.get_context().dialect.name

    if dialect == "postgresql":  # pylint: disable=magic-value-comparison
        op.execute("DROP TRIGGER IF EXISTS tr_audit_logs_append_only ON audit_logs;")
        op.execute("DROP FUNCTION IF EXISTS audit_logs_forbid_mod();")
    else:
        op.execute("DROP TRIGGER IF EXISTS tr_audit_logs_no_delete;")
        op.execute("DROP TRIGGER IF EXISTS tr_audit_logs_no_update;")

    op.drop_index("ix_audit_logs_entity", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index(op.f("ix_order_items_order_items_order_id"), table_name="order_items")
    op.drop_table("order_items")
    op.drop_index(op.f("ix_orders_orders_user_id"), table_name="orders")
    op.drop_table("orders")
    op.drop_index(op.f("ix_products_products_name"), table_name="products")
    op.drop_table("products")
    op.drop_table("users")
