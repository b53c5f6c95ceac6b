"""medication courses and dose ledger

Revision ID: 0001_medication_doses
Revises:
Create Date: 2026-10-18 09:00:00
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_medication_doses"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_table(
        "pets",
        sa.Column("pet_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("species", sa.String(), nullable=False),
        sa.Column("breed", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "medications",
        sa.Column("medication_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("pet_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("pets.pet_id", ondelete="CASCADE"), nullable=False),
        sa.Column("medication_name", sa.String(), nullable=False),
        sa.Column("dosage", sa.String(), nullable=True),
        sa.Column("frequency", sa.String(), nullable=True),
        sa.Column("reminder_times", sa.JSON(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("end_date IS NULL OR end_date >= start_date", name="ck_medications_date_order"),
    )
    op.create_table(
        "medication_doses",
        sa.Column("dose_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "medication_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("medications.medication_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("scheduled_time", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("given_time", sa.DateTime(), nullable=True),
        sa.Column("short_code", sa.String(), nullable=True),
        sa.Column("one_time_token", sa.String(), nullable=True),
        sa.Column("token_expires_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("status IN ('pending', 'given', 'skipped')", name="ck_medication_doses_status"),
        sa.UniqueConstraint("short_code", name="uq_medication_doses_short_code"),
        sa.UniqueConstraint("one_time_token", name="uq_medication_doses_one_time_token"),
    )
    op.create_index(
        "idx_medication_doses_medication_scheduled",
        "medication_doses",
        ["medication_id", "scheduled_time"],
    )
    op.create_index(
        "idx_medication_doses_status_scheduled",
        "medication_doses",
        ["status", "scheduled_time"],
    )


def downgrade() -> None:
    op.drop_index("idx_medication_doses_status_scheduled", table_name="medication_doses")
    op.drop_index("idx_medication_doses_medication_scheduled", table_name="medication_doses")
    op.drop_table("medication_doses")
    op.drop_table("medications")
    op.drop_table("pets")
    op.drop_table("users")
