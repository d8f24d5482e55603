"""File history: stored import/export/template/report files

Revision ID: 003
Revises: 002
Create Date: 2026-01-29

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "file_histories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("operator_id", sa.Integer(), nullable=False),
        sa.Column("file_name", sa.String(256), nullable=False),
        sa.Column("content_type", sa.String(256), nullable=False),
        sa.Column("file_size_in_bytes", sa.BigInteger(), nullable=False),
        sa.Column("file_content", sa.LargeBinary(), nullable=False),
        sa.Column("action", sa.String(32), nullable=False),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("related_entity_id", sa.Integer(), nullable=True),
        sa.Column("is_successful", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("processing_notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["operator_id"], ["operators.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_file_histories_operator_id", "file_histories", ["operator_id"], unique=False)
    op.create_index("ix_file_histories_created_at", "file_histories", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_file_histories_created_at", "file_histories")
    op.drop_index("ix_file_histories_operator_id", "file_histories")
    op.drop_table("file_histories")
