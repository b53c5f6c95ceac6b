"""Module: medication."""

import uuid
from datetime import date, datetime

from sqlalchemy import JSON, CheckConstraint, Date, DateTime, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dosetrack.db.base import Base


# One prescribed course for a pet: daily reminder times over an inclusive date window.
class Medication(Base):
    __tablename__ = "medications"
    __table_args__ = (
        CheckConstraint("end_date IS NULL OR end_date >= start_date", name="ck_medications_date_order"),
    )

    medication_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    pet_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("pets.pet_id", ondelete="CASCADE"),
        nullable=False,
    )
    medication_name: Mapped[str] = mapped_column(String, nullable=False)
    dosage: Mapped[str] = mapped_column(String, nullable=True)
    # Descriptive only ("2x daily"); reminder_times drives the schedule.
    frequency: Mapped[str] = mapped_column(String, nullable=True)
    # Ordered "HH:MM" strings, one per dose per day.
    reminder_times: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    # Null for an ongoing course.
    end_date: Mapped[date] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    pet = relationship("Pet", lazy="joined")
    doses = relationship(
        "MedicationDose",
        back_populates="medication",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="MedicationDose.scheduled_time",
    )
