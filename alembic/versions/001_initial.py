"""Initial schema: operators, lookup tables, examiners, exams and exam boards

Revision ID: 001
Revises:
Create Date: 2025-07-23

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "operators",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_name", sa.String(256), nullable=False),
        sa.Column("password", sa.String(256), nullable=False),
        sa.Column("first_name", sa.String(256), nullable=False),
        sa.Column("last_name", sa.String(256), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("email", sa.String(256), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_operators_user_name", "operators", ["user_name"], unique=True)

    op.create_table(
        "exam_types",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("type_name", sa.String(256), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_exam_types_type_name", "exam_types", ["type_name"], unique=True)

    op.create_table(
        "professions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("keor_id", sa.String(256), nullable=False),
        sa.Column("profession_name", sa.String(256), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_professions_keor_id", "professions", ["keor_id"], unique=True)

    op.create_table(
        "institutions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("educational_id", sa.String(256), nullable=False),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("zip_code", sa.Integer(), nullable=False),
        sa.Column("town", sa.String(256), nullable=False),
        sa.Column("street", sa.String(256), nullable=False),
        sa.Column("number", sa.String(10), nullable=False),
        sa.Column("floor", sa.String(5), nullable=True),
        sa.Column("door", sa.String(5), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_institutions_educational_id", "institutions", ["educational_id"], unique=True)

    op.create_table(
        "examiners",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("first_name", sa.String(256), nullable=False),
        sa.Column("last_name", sa.String(256), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("email", sa.String(256), nullable=False),
        sa.Column("phone", sa.String(30), nullable=False),
        sa.Column("identity_card_number", sa.String(50), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_examiners_email", "examiners", ["email"], unique=True)
    op.create_index("ix_examiners_phone", "examiners", ["phone"], unique=True)
    op.create_index("ix_examiners_identity_card_number", "examiners", ["identity_card_number"], unique=True)

    op.create_table(
        "exams",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("exam_name", sa.String(256), nullable=False),
        sa.Column("exam_code", sa.String(256), nullable=False),
        sa.Column("exam_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("profession_id", sa.Integer(), nullable=False),
        sa.Column("institution_id", sa.Integer(), nullable=False),
        sa.Column("exam_type_id", sa.Integer(), nullable=False),
        sa.Column("operator_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["profession_id"], ["professions.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["institution_id"], ["institutions.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["exam_type_id"], ["exam_types.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["operator_id"], ["operators.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_exams_exam_code", "exams", ["exam_code"], unique=True)
    op.create_index("ix_exams_profession_id", "exams", ["profession_id"], unique=False)
    op.create_index("ix_exams_institution_id", "exams", ["institution_id"], unique=False)
    op.create_index("ix_exams_exam_type_id", "exams", ["exam_type_id"], unique=False)
    op.create_index("ix_exams_operator_id", "exams", ["operator_id"], unique=False)

    op.create_table(
        "exam_boards",
        sa.Column("exam_id", sa.Integer(), nullable=False),
        sa.Column("examiner_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(100), nullable=False),
        sa.ForeignKeyConstraint(["exam_id"], ["exams.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["examiner_id"], ["examiners.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("exam_id", "examiner_id"),
    )
    op.create_index("ix_exam_boards_examiner_id", "exam_boards", ["examiner_id"], unique=False)

    op.create_table(
        "password_resets",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("token", sa.String(256), nullable=False),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expired_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("operator_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["operator_id"], ["operators.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_password_resets_token", "password_resets", ["token"], unique=True)
    op.create_index("ix_password_resets_operator_id", "password_resets", ["operator_id"], unique=False)

    op.create_table(
        "backup_histories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("backup_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("file_name", sa.String(256), nullable=False),
        sa.Column("activity_type", sa.String(32), nullable=False),
        sa.Column("is_successful", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("operator_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["operator_id"], ["operators.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_backup_histories_file_name", "backup_histories", ["file_name"], unique=True)
    op.create_index("ix_backup_histories_operator_id", "backup_histories", ["operator_id"], unique=False)


def downgrade() -> None:
    op.drop_table("backup_histories")
    op.drop_table("password_resets")
    op.drop_table("exam_boards")
    op.drop_table("exams")
    op.drop_table("examiners")
    op.drop_table("institutions")
    op.drop_table("professions")
    op.drop_table("exam_types")
    op.drop_table("operators")
