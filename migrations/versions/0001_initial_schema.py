"""initial schema

Revision ID: 0001
Revises:
Create Date: 2024-01-01 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUM_VALUES = {
    "movement_type": ("ENTRADA", "SALIDA"),
    "sale_status": ("completada",),
    "invoice_status": ("pendiente", "generada"),
    "drawer_status": ("abierta", "cerrada"),
}


def _enum_types(bind):
    """
    En PostgreSQL los tipos se crean una sola vez (inventory_movements e
    inventory_log comparten movement_type); en otros motores son VARCHAR.
    """
    if bind.dialect.name == "postgresql":
        return {name: postgresql.ENUM(*values, name=name, create_type=False)
                for name, values in ENUM_VALUES.items()}
    return {name: sa.Enum(*values, name=name) for name, values in ENUM_VALUES.items()}


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    enums = _enum_types(bind)
    for enum_type in enums.values():
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("username", sa.String(60), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(30), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "permissions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(80), nullable=False, unique=True),
        sa.Column("description", sa.String(255), nullable=True),
    )

    op.create_table(
        "user_permissions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("permission_id", sa.Integer(), sa.ForeignKey("permissions.id"), nullable=False),
        sa.UniqueConstraint("user_id", "permission_id", name="uq_user_permission"),
    )
    op.create_index("ix_user_permissions_user_id", "user_permissions", ["user_id"])

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("barcode", sa.String(60), nullable=False),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id"), nullable=True),
        sa.Column("stock", sa.Integer(), nullable=False),
        sa.Column("stock_minimum", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("wholesale_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_products_barcode", "products", ["barcode"], unique=True)

    op.create_table(
        "inventory_movements",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("movement_type", enums["movement_type"], nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("reason", sa.String(255), nullable=True),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_inventory_movement_quantity_positive"),
    )
    op.create_index("ix_inventory_movements_product_id", "inventory_movements", ["product_id"])

    op.create_table(
        "inventory_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("movement_type", enums["movement_type"], nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("detail", sa.Text(), nullable=True),
        sa.Column("date", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_inventory_log_product_id", "inventory_log", ["product_id"])

    op.create_table(
        "inventory_alerts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("stock_at_creation", sa.Integer(), nullable=False),
        sa.Column("message", sa.String(255), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("attended", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_inventory_alerts_product_id", "inventory_alerts", ["product_id"])
    op.create_index("ix_inventory_alerts_attended", "inventory_alerts", ["attended"])

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("fixed_price", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_services_name", "services", ["name"])

    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("invoice_number", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("payment_method", sa.String(30), nullable=False),
        sa.Column("total", sa.Numeric(12, 2), nullable=False),
        sa.Column("final_total", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", enums["sale_status"], nullable=False),
        sa.Column("customer_name", sa.String(150), nullable=True),
        sa.Column("customer_rtn", sa.String(30), nullable=True),
        sa.Column("seller_name", sa.String(120), nullable=True),
        sa.Column("invoice_status", enums["invoice_status"], nullable=False),
        sa.Column("invoice_file", sa.String(255), nullable=True),
    )
    op.create_index("ix_sales_invoice_number", "sales", ["invoice_number"], unique=True)
    op.create_index("ix_sales_invoice_status", "sales", ["invoice_status"])

    op.create_table(
        "sale_details",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("sale_id", sa.Integer(), sa.ForeignKey("sales.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=True),
        sa.Column("item_code", sa.String(30), nullable=False),
        sa.Column("is_service", sa.Boolean(), nullable=False),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("line_total", sa.Numeric(12, 2), nullable=False),
    )
    op.create_index("ix_sale_details_sale_id", "sale_details", ["sale_id"])
    op.create_index("ix_sale_details_product_id", "sale_details", ["product_id"])

    op.create_table(
        "cash_drawer",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("opened_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("opened_at", sa.DateTime(), nullable=False),
        sa.Column("opening_float", sa.Numeric(12, 2), nullable=False),
        sa.Column("closed_at", sa.DateTime(), nullable=True),
        sa.Column("total_cash", sa.Numeric(12, 2), nullable=True),
        sa.Column("total_card", sa.Numeric(12, 2), nullable=True),
        sa.Column("total_transfer", sa.Numeric(12, 2), nullable=True),
        sa.Column("tigo_balance", sa.Numeric(12, 2), nullable=True),
        sa.Column("claro_balance", sa.Numeric(12, 2), nullable=True),
        sa.Column("shortage", sa.Numeric(12, 2), nullable=True),
        sa.Column("gross_sales", sa.Numeric(12, 2), nullable=True),
        sa.Column("shift", sa.Integer(), nullable=True),
        sa.Column("status", enums["drawer_status"], nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_cash_drawer_closed_at", "cash_drawer", ["closed_at"])
    # Una sola caja abierta a la vez
    op.create_index(
        "uq_cash_drawer_single_open", "cash_drawer", ["status"], unique=True,
        postgresql_where=sa.text("status = 'abierta'"),
        sqlite_where=sa.text("status = 'abierta'"),
    )

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("has_credit", sa.Boolean(), nullable=False),
        sa.Column("debt_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("credit_date", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_customers_name", "customers", ["name"])
    op.create_index("ix_customers_has_credit", "customers", ["has_credit"])

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_expenses_date", "expenses", ["date"])


def downgrade() -> None:
    for table in (
        "expenses", "customers", "cash_drawer", "sale_details", "sales", "services",
        "inventory_alerts", "inventory_log", "inventory_movements", "products",
        "categories", "user_permissions", "permissions", "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in _enum_types(bind).values():
        enum_type.drop(bind, checkfirst=True)
