"""Soft delete columns on operators, examiners, exams and exam boards

Revision ID: 002
Revises: 001
Create Date: 2025-07-28

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SOFT_DELETE_TABLES = ("operators", "examiners", "exams", "exam_boards")


def upgrade() -> None:
    for table in SOFT_DELETE_TABLES:
        op.add_column(table, sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()))
        op.add_column(table, sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True))
        op.add_column(table, sa.Column("deleted_by_id", sa.Integer(), nullable=True))
        op.create_index(f"ix_{table}_is_deleted", table, ["is_deleted"], unique=False)
        op.create_foreign_key(
            f"fk_{table}_deleted_by_id_operators",
            table,
            "operators",
            ["deleted_by_id"],
            ["id"],
            ondelete="RESTRICT",
        )


def downgrade() -> None:
    for table in reversed(SOFT_DELETE_TABLES):
        op.drop_constraint(f"fk_{table}_deleted_by_id_operators", table, type_="foreignkey")
        op.drop_index(f"ix_{table}_is_deleted", table)
        op.drop_column(table, "deleted_by_id")
        op.drop_column(table, "deleted_at")
        op.drop_column(table, "is_deleted")
