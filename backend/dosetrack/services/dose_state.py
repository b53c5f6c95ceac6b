"""Module: dose_state.

pending -> given and pending -> skipped, both terminal. The only code that
writes a dose's status or given_time.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from dosetrack.core.errors import AlreadyFinalized, CourseAlreadyComplete, DoseNotFound
from dosetrack.db.models.medication_dose import (
    DOSE_GIVEN,
    DOSE_SKIPPED,
    TERMINAL_STATUSES,
    MedicationDose,
)
from dosetrack.services.ledger import DoseLedger
from dosetrack.services.schedule import expected_total_for

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    applied: bool
    dose: MedicationDose

    @property
    def idempotent(self) -> bool:
        return not self.applied


def _settled(dose: MedicationDose, target_status: str) -> TransitionResult | None:
    # Same terminal status is success without a write; a different one is a conflict.
    if dose.status == target_status:
        _LOGGER.debug("Dose %s already %s", dose.dose_id, target_status)
        return TransitionResult(applied=False, dose=dose)
    if dose.status in TERMINAL_STATUSES:
        _LOGGER.warning(
            "Dose %s is %s, refusing transition to %s",
            dose.dose_id,
            dose.status,
            target_status,
        )
        raise AlreadyFinalized()
    return None


def _ensure_course_open(ledger: DoseLedger, dose: MedicationDose) -> int | None:
    """Fail fast on a full course and return the cap for the guarded write."""
    expected = expected_total_for(dose.medication)
    if expected is None:
        return None
    given = ledger.count_given(dose.medication_id)
    if given >= expected:
        _LOGGER.warning(
            "Medication %s already has %s of %s doses given",
            dose.medication_id,
            given,
            expected,
        )
        raise CourseAlreadyComplete()
    return expected


def apply_transition(
    ledger: DoseLedger,
    dose_id: uuid.UUID,
    target_status: str,
    now: datetime,
) -> TransitionResult:
    if target_status not in TERMINAL_STATUSES:
        raise ValueError(f"Cannot transition a dose to {target_status!r}")

    dose = ledger.get(dose_id, refresh=True)
    if dose is None:
        raise DoseNotFound()

    settled = _settled(dose, target_status)
    if settled is not None:
        return settled

    # Skipping never adds to the given count, so only "given" is checked against the course total.
    max_given = None
    if target_status == DOSE_GIVEN:
        max_given = _ensure_course_open(ledger, dose)

    changed = ledger.conditional_update(
        dose_id,
        target_status,
        now,
        medication_id=dose.medication_id,
        max_given=max_given,
    )
    dose = ledger.get(dose_id, refresh=True)
    if dose is None:
        raise DoseNotFound()

    if changed:
        _LOGGER.info("Dose %s marked %s at %s", dose.dose_id, target_status, now.isoformat())
        return TransitionResult(applied=True, dose=dose)

    # Another caller won the race; their result decides what this caller sees.
    settled = _settled(dose, target_status)
    if settled is not None:
        return settled
    if max_given is not None:
        # Still pending: the course filled up between the count and the write.
        _LOGGER.warning("Medication %s reached %s given doses during the write", dose.medication_id, max_given)
        raise CourseAlreadyComplete()
    raise RuntimeError(f"Dose {dose_id} stayed pending after a conditional update")


def skip_stale_doses(ledger: DoseLedger, now: datetime, max_age_hours: int) -> list[MedicationDose]:
    """Auto-skip pending doses scheduled more than max_age_hours ago."""
    cutoff = now - timedelta(hours=max_age_hours)
    skipped = []
    for dose in ledger.stale_pending(cutoff):
        if ledger.conditional_update(dose.dose_id, DOSE_SKIPPED, now):
            skipped.append(ledger.get(dose.dose_id, refresh=True))

    if skipped:
        _LOGGER.info("Auto-skipped %s pending doses scheduled before %s", len(skipped), cutoff.isoformat())
    return skipped
