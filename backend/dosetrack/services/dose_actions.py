"""Module: dose_actions.

One entry point for "the owner acted on a dose", whatever proof they used:
resolve the credential, run the state machine, then read progress under a
timeout and describe where the shell should navigate next.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from urllib.parse import urlencode

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from dosetrack.core.config import settings
from dosetrack.core.errors import MedicationNotFound
from dosetrack.core.local_dates import local_now
from dosetrack.db.models.medication import Medication
from dosetrack.db.models.medication_dose import DOSE_GIVEN, DOSE_PENDING, DOSE_SKIPPED, MedicationDose
from dosetrack.services.credentials import Credential, resolve
from dosetrack.services.dose_state import apply_transition
from dosetrack.services.ledger import DoseLedger
from dosetrack.services.progress import Progress, compute_progress

_LOGGER = logging.getLogger(__name__)

ACTION_GIVEN = "given"
ACTION_SKIP = "skip"


@dataclass(frozen=True)
class NavigationIntent:
    destination: str
    params: dict[str, str] = field(default_factory=dict)

    @property
    def url(self) -> str:
        if not self.params:
            return self.destination
        return f"{self.destination}?{urlencode(self.params)}"


@dataclass(frozen=True)
class DoseActionOutcome:
    applied: bool
    dose: dict
    medication_id: uuid.UUID
    pet_name: str
    medication_name: str
    progress: Progress
    intent: NavigationIntent

    @property
    def idempotent(self) -> bool:
        return not self.applied


def dose_payload(dose: MedicationDose) -> dict:
    return {
        "id": str(dose.dose_id),
        "medication_id": str(dose.medication_id),
        "scheduled_time": dose.scheduled_time,
        "status": dose.status,
        "given_time": dose.given_time,
        "short_code": dose.short_code,
    }


def medication_payload(medication: Medication) -> dict:
    return {
        "id": str(medication.medication_id),
        "pet_id": str(medication.pet_id),
        "medication_name": medication.medication_name,
        "dosage": medication.dosage,
        "frequency": medication.frequency,
        "reminder_times": list(medication.reminder_times or []),
        "start_date": medication.start_date,
        "end_date": medication.end_date,
    }


def pet_payload(medication: Medication) -> dict | None:
    pet = medication.pet
    if pet is None:
        return None
    return {"id": str(pet.pet_id), "name": pet.name, "species": pet.species}


def confirmation_intent(
    pet_name: str,
    medication_name: str,
    progress: Progress,
    target_status: str,
) -> NavigationIntent:
    params = {"pet": pet_name, "med": medication_name}
    # A degraded read has no trustworthy counts; the page then shows a plain confirmation.
    if not progress.degraded:
        params["count"] = str(progress.given_count)
        params["total"] = str(progress.total_count)
        if progress.next_dose is not None and not progress.is_complete:
            params["next"] = progress.next_dose.label
    if target_status == DOSE_SKIPPED:
        params["skipped"] = "1"
    return NavigationIntent(destination=settings.confirmation_path, params=params)


def target_status_for(action: str) -> str:
    if action in (ACTION_SKIP, DOSE_SKIPPED):
        return DOSE_SKIPPED
    if action in (ACTION_GIVEN, DOSE_GIVEN):
        return DOSE_GIVEN
    raise ValueError(f"Unknown dose action {action!r}")


def read_progress(session_factory: sessionmaker, medication_id: uuid.UUID, now: datetime) -> Progress:
    # Runs on an executor thread, so it owns its session.
    with session_factory() as db:
        ledger = DoseLedger(db)
        medication = ledger.medication(medication_id)
        if medication is None:
            raise MedicationNotFound()
        return compute_progress(medication, ledger.for_medication(medication_id), now)


def _transition(session_factory: sessionmaker, credential: Credential, target_status: str, now: datetime) -> dict:
    with session_factory() as db:
        ledger = DoseLedger(db)
        authorization = resolve(credential, ledger, now)
        result = apply_transition(ledger, authorization.dose.dose_id, target_status, now)
        medication = authorization.medication
        pet = medication.pet
        return {
            "applied": result.applied,
            "dose": dose_payload(result.dose),
            "medication_id": medication.medication_id,
            "pet_name": pet.name if pet is not None else "Your pet",
            "medication_name": medication.medication_name,
        }


async def record_dose_action(
    session_factory: sessionmaker,
    credential: Credential,
    target_status: str,
    now: datetime | None = None,
    timeout: float | None = None,
) -> DoseActionOutcome:
    now = now or local_now()
    timeout = settings.progress_timeout_seconds if timeout is None else timeout

    applied = await run_in_threadpool(_transition, session_factory, credential, target_status, now)

    # The transition is durable at this point; progress only decorates the confirmation.
    loop = asyncio.get_running_loop()
    try:
        progress = await asyncio.wait_for(
            loop.run_in_executor(None, partial(read_progress, session_factory, applied["medication_id"], now)),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        _LOGGER.warning(
            "Progress read for medication %s timed out after %ss",
            applied["medication_id"],
            timeout,
        )
        progress = Progress.minimal(target_status)
    except (SQLAlchemyError, MedicationNotFound):
        _LOGGER.warning("Progress read for medication %s failed", applied["medication_id"], exc_info=True)
        progress = Progress.minimal(target_status)

    return DoseActionOutcome(
        applied=applied["applied"],
        dose=applied["dose"],
        medication_id=applied["medication_id"],
        pet_name=applied["pet_name"],
        medication_name=applied["medication_name"],
        progress=progress,
        intent=confirmation_intent(applied["pet_name"], applied["medication_name"], progress, target_status),
    )


def load_dose_view(db: Session, credential: Credential, now: datetime | None = None) -> dict:
    """Everything the /dose/{code} page shows before the owner acts."""
    now = now or local_now()
    ledger = DoseLedger(db)
    authorization = resolve(credential, ledger, now)
    medication = authorization.medication
    progress = compute_progress(medication, ledger.for_medication(medication.medication_id), now)
    dose = authorization.dose

    return {
        "dose": dose_payload(dose),
        "medication": medication_payload(medication),
        "pet": pet_payload(medication),
        "progress": progress.as_dict(),
        "actions": [ACTION_GIVEN, ACTION_SKIP] if dose.status == DOSE_PENDING else [],
    }
