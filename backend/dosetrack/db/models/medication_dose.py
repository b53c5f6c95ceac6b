"""Module: medication_dose."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dosetrack.db.base import Base

DOSE_PENDING = "pending"
DOSE_GIVEN = "given"
DOSE_SKIPPED = "skipped"

DOSE_STATUSES = {DOSE_PENDING, DOSE_GIVEN, DOSE_SKIPPED}
TERMINAL_STATUSES = {DOSE_GIVEN, DOSE_SKIPPED}


# One scheduled administration of a medication. Status leaves "pending" at most once.
class MedicationDose(Base):
    __tablename__ = "medication_doses"
    __table_args__ = (
        Index("idx_medication_doses_medication_scheduled", "medication_id", "scheduled_time"),
        Index("idx_medication_doses_status_scheduled", "status", "scheduled_time"),
        CheckConstraint("status IN ('pending', 'given', 'skipped')", name="ck_medication_doses_status"),
    )

    dose_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    medication_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("medications.medication_id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )

    # Local wall-clock time the dose is due.
    scheduled_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default=DOSE_PENDING)
    given_time: Mapped[datetime] = mapped_column(DateTime, nullable=True)

    # Login-free credentials embedded in reminder links.
    short_code: Mapped[str] = mapped_column(String, unique=True, nullable=True)
    one_time_token: Mapped[str] = mapped_column(String, unique=True, nullable=True)
    token_expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    medication = relationship("Medication", back_populates="doses")
