"""customer debt ledger

Revision ID: 20261018_0003
Revises: 20261018_0002
Create Date: 2026-10-18 10:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261018_0003"
down_revision: Union[str, Sequence[str], None] = "20261018_0002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "debts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("customer_name", sa.String(length=160), nullable=False),
        sa.Column("customer_number", sa.String(length=10), nullable=False),
        sa.Column("total", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("credit", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_debts_created_at"), "debts", ["created_at"], unique=False)
    op.create_index(op.f("ix_debts_customer_name"), "debts", ["customer_name"], unique=False)
    op.create_index(op.f("ix_debts_customer_number"), "debts", ["customer_number"], unique=False)
    op.create_index(op.f("ix_debts_id"), "debts", ["id"], unique=False)
    op.create_index(op.f("ix_debts_owner_id"), "debts", ["owner_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_debts_owner_id"), table_name="debts")
    op.drop_index(op.f("ix_debts_id"), table_name="debts")
    op.drop_index(op.f("ix_debts_customer_number"), table_name="debts")
    op.drop_index(op.f("ix_debts_customer_name"), table_name="debts")
    op.drop_index(op.f("ix_debts_created_at"), table_name="debts")
    op.drop_table("debts")
