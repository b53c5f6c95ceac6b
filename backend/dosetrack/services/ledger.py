"""Module: ledger.

Read/write access to medication_doses rows. The ledger does not decide which
status changes are legal; it only offers the conditional write that lets the
state machine make them safely.
"""

from __future__ import annotations

import logging
import secrets
import string
import uuid
from datetime import datetime, timedelta

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, aliased

from dosetrack.core.config import settings
from dosetrack.db.models.medication import Medication
from dosetrack.db.models.medication_dose import DOSE_GIVEN, DOSE_PENDING, MedicationDose

_LOGGER = logging.getLogger(__name__)

SHORT_CODE_ALPHABET = string.ascii_letters + string.digits
MAX_SHORT_CODE_ATTEMPTS = 5


def generate_short_code(length: int | None = None) -> str:
    length = length or settings.short_code_length
    return "".join(secrets.choice(SHORT_CODE_ALPHABET) for _ in range(length))


class DoseLedger:
    def __init__(self, db: Session):
        self.db = db

    # -------------------------
    # Reads
    # -------------------------
    def get(self, dose_id: uuid.UUID, refresh: bool = False) -> MedicationDose | None:
        stmt = select(MedicationDose).where(MedicationDose.dose_id == dose_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def by_short_code(self, code: str) -> MedicationDose | None:
        return self.db.execute(
            select(MedicationDose).where(MedicationDose.short_code == code)
        ).scalar_one_or_none()

    def by_token(self, token: str) -> MedicationDose | None:
        return self.db.execute(
            select(MedicationDose).where(MedicationDose.one_time_token == token)
        ).scalar_one_or_none()

    def for_medication(self, medication_id: uuid.UUID) -> list[MedicationDose]:
        return list(
            self.db.execute(
                select(MedicationDose)
                .where(MedicationDose.medication_id == medication_id)
                .order_by(MedicationDose.scheduled_time, MedicationDose.created_at)
                .execution_options(populate_existing=True)
            ).scalars()
        )

    def oldest_pending(self, medication_id: uuid.UUID) -> MedicationDose | None:
        return self.db.execute(
            select(MedicationDose)
            .where(
                MedicationDose.medication_id == medication_id,
                MedicationDose.status == DOSE_PENDING,
            )
            .order_by(MedicationDose.scheduled_time, MedicationDose.created_at)
            .limit(1)
        ).scalars().first()

    def count_given(self, medication_id: uuid.UUID) -> int:
        return int(
            self.db.execute(
                select(func.count())
                .select_from(MedicationDose)
                .where(
                    MedicationDose.medication_id == medication_id,
                    MedicationDose.status == DOSE_GIVEN,
                )
            ).scalar_one()
        )

    def stale_pending(self, cutoff: datetime) -> list[MedicationDose]:
        return list(
            self.db.execute(
                select(MedicationDose)
                .where(
                    MedicationDose.status == DOSE_PENDING,
                    MedicationDose.scheduled_time < cutoff,
                )
                .order_by(MedicationDose.scheduled_time)
            ).scalars()
        )

    def medication(self, medication_id: uuid.UUID) -> Medication | None:
        return self.db.execute(
            select(Medication).where(Medication.medication_id == medication_id)
        ).scalar_one_or_none()

    # -------------------------
    # Writes
    # -------------------------
    def conditional_update(
        self,
        dose_id: uuid.UUID,
        status: str,
        given_time: datetime,
        medication_id: uuid.UUID | None = None,
        max_given: int | None = None,
    ) -> bool:
        """Set status/given_time only while the row is still pending.

        Returns True when this call changed the row. Concurrent callers racing
        on the same dose see at most one True.

        With max_given, the write also requires the medication to have fewer
        than max_given doses already given. The medication row is locked first
        so concurrent "given" writes on different doses of one course count in
        turn.
        """
        stmt = update(MedicationDose).where(
            MedicationDose.dose_id == dose_id,
            MedicationDose.status == DOSE_PENDING,
        )

        if max_given is not None:
            if medication_id is None:
                raise ValueError("max_given needs the dose's medication_id")
            self.db.execute(
                select(Medication.medication_id)
                .where(Medication.medication_id == medication_id)
                .with_for_update()
            )
            already_given = aliased(MedicationDose)
            given_count = (
                select(func.count())
                .select_from(already_given)
                .where(
                    already_given.medication_id == medication_id,
                    already_given.status == DOSE_GIVEN,
                )
                .scalar_subquery()
            )
            stmt = stmt.where(given_count < max_given)

        result = self.db.execute(
            stmt.values(status=status, given_time=given_time).execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1

    def mint_pending_dose(
        self,
        medication: Medication,
        scheduled_time: datetime,
        now: datetime,
        with_short_code: bool = True,
        with_token: bool = True,
    ) -> MedicationDose:
        """Create a pending dose carrying fresh reminder-link credentials."""
        short_code = None
        if with_short_code:
            for _ in range(MAX_SHORT_CODE_ATTEMPTS):
                candidate = generate_short_code()
                if self.by_short_code(candidate) is None:
                    short_code = candidate
                    break
            else:
                raise RuntimeError("Could not mint a unique short code")

        dose = MedicationDose(
            medication_id=medication.medication_id,
            user_id=medication.user_id,
            scheduled_time=scheduled_time.replace(second=0, microsecond=0),
            status=DOSE_PENDING,
            short_code=short_code,
            one_time_token=str(uuid.uuid4()) if with_token else None,
            token_expires_at=now + timedelta(hours=settings.legacy_token_ttl_hours) if with_token else None,
        )
        self.db.add(dose)
        self.db.commit()
        self.db.refresh(dose)
        _LOGGER.info(
            "Minted pending dose %s for medication %s at %s",
            dose.dose_id,
            medication.medication_id,
            dose.scheduled_time.isoformat(),
        )
        return dose
