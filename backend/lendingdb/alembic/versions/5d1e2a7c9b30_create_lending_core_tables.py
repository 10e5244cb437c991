"""Create users, items and loan_records tables.

Revision ID: 5d1e2a7c9b30
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "5d1e2a7c9b30"
down_revision = None
branch_labels = None
depends_on = None


ACCOUNT_ROLE_VALUES = ("admin", "staff")
ITEM_CONDITION_VALUES = ("good", "damaged", "needs_repair")
LOAN_STATUS_VALUES = ("borrowed", "returned", "overdue", "cancelled")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "role",
            sa.Enum(*ACCOUNT_ROLE_VALUES, name="account_role_enum", native_enum=False),
            nullable=False,
        ),
        sa.Column("hashed_password", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("idx_users_role_active", "users", ["role", "is_active"])

    op.create_table(
        "items",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=255), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column(
            "condition",
            sa.Enum(*ITEM_CONDITION_VALUES, name="item_condition_enum", native_enum=False),
            nullable=False,
        ),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("stock >= 0", name="ck_items_stock_non_negative"),
    )
    op.create_index("ix_items_id", "items", ["id"])
    op.create_index("ix_items_name", "items", ["name"])
    op.create_index("ix_items_category", "items", ["category"])
    op.create_index("ix_items_condition", "items", ["condition"])
    op.create_index("ix_items_category_name", "items", ["category", "name"])

    op.create_table(
        "loan_records",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "item_id",
            sa.String(length=36),
            sa.ForeignKey("items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("item_name", sa.String(length=255), nullable=False),
        sa.Column("borrower_name", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("borrow_date", sa.Date(), nullable=False),
        sa.Column("return_date", sa.Date(), nullable=False),
        sa.Column("actual_return_date", sa.Date(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*LOAN_STATUS_VALUES, name="loan_status_enum", native_enum=False),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_by",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "verified_by",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="ck_loan_records_quantity_positive"),
    )
    op.create_index("ix_loan_records_id", "loan_records", ["id"])
    op.create_index("ix_loan_records_item_id", "loan_records", ["item_id"])
    op.create_index("ix_loan_records_status", "loan_records", ["status"])
    op.create_index("ix_loan_records_created_at", "loan_records", ["created_at"])
    op.create_index("ix_loan_records_item_status", "loan_records", ["item_id", "status"])
    op.create_index("ix_loan_records_status_return_date", "loan_records", ["status", "return_date"])


def downgrade() -> None:
    op.drop_table("loan_records")
    op.drop_table("items")
    op.drop_table("users")
