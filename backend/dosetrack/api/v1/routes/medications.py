"""Module: medications."""

from __future__ import annotations

import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from dosetrack.api.v1.routes.deps import get_db, get_now, parse_uuid
from dosetrack.core.config import settings
from dosetrack.core.errors import MedicationNotFound
from dosetrack.core.local_dates import parse_clock, to_local_naive
from dosetrack.db.models.medication import Medication
from dosetrack.db.models.pet import Pet
from dosetrack.services.dose_actions import dose_payload, medication_payload, pet_payload
from dosetrack.services.ledger import DoseLedger
from dosetrack.services.progress import compute_progress
from dosetrack.services.schedule import is_active_on

_LOGGER = logging.getLogger(__name__)

router = APIRouter()


class MedicationCreatePayload(BaseModel):
    user_id: str
    pet_id: str
    medication_name: str
    dosage: str | None = None
    frequency: str | None = None
    reminder_times: list[str] = []
    start_date: date
    end_date: date | None = None


class DoseMintPayload(BaseModel):
    scheduled_time: datetime
    with_short_code: bool = True
    with_token: bool = True


# -------------------------
# Helpers
# -------------------------


def _normalize_optional(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned if cleaned else None


def _normalize_reminder_times(values: list[str]) -> list[str]:
    out = []
    for value in values:
        try:
            clock = parse_clock(value)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid reminder time {value!r} (expected HH:MM)")
        formatted = f"{clock.hour:02d}:{clock.minute:02d}"
        if formatted not in out:
            out.append(formatted)
    return sorted(out)


def _get_owned_medication(db: Session, medication_id: str, user_id: str) -> Medication:
    mid = parse_uuid(medication_id, "medication_id")
    uid = parse_uuid(user_id, "user_id")
    medication = db.execute(select(Medication).where(Medication.medication_id == mid)).scalar_one_or_none()
    if medication is None or medication.user_id != uid:
        raise MedicationNotFound()
    return medication


# -------------------------
# Endpoints
# -------------------------


@router.post("", summary="Create a medication course")
def create_medication(payload: MedicationCreatePayload, db: Session = Depends(get_db)):
    uid = parse_uuid(payload.user_id, "user_id")
    pid = parse_uuid(payload.pet_id, "pet_id")

    pet = db.execute(select(Pet).where(Pet.pet_id == pid)).scalar_one_or_none()
    if not pet or pet.user_id != uid:
        raise HTTPException(status_code=404, detail="Pet not found")

    if payload.end_date is not None and payload.end_date < payload.start_date:
        raise HTTPException(status_code=400, detail="end_date must be on or after start_date")

    name = payload.medication_name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="medication_name is required")

    medication = Medication(
        user_id=uid,
        pet_id=pid,
        medication_name=name,
        dosage=_normalize_optional(payload.dosage),
        frequency=_normalize_optional(payload.frequency),
        reminder_times=_normalize_reminder_times(payload.reminder_times),
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    db.add(medication)
    db.commit()
    db.refresh(medication)

    _LOGGER.info("Created medication %s for pet %s", medication.medication_id, pid)
    return medication_payload(medication)


@router.get("/{medication_id}", summary="Get medication with progress")
def get_medication(
    medication_id: str,
    user_id: str = Query(...),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    medication = _get_owned_medication(db, medication_id, user_id)
    doses = DoseLedger(db).for_medication(medication.medication_id)

    return {
        **medication_payload(medication),
        "pet": pet_payload(medication),
        "progress": compute_progress(medication, doses, now).as_dict(),
    }


@router.get("/{medication_id}/progress", summary="Live progress statistics for a course")
def get_medication_progress(
    medication_id: str,
    user_id: str = Query(...),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    medication = _get_owned_medication(db, medication_id, user_id)
    doses = DoseLedger(db).for_medication(medication.medication_id)
    return compute_progress(medication, doses, now).as_dict()


@router.get("/{medication_id}/doses", summary="List ledger rows for a course")
def list_medication_doses(
    medication_id: str,
    user_id: str = Query(...),
    db: Session = Depends(get_db),
):
    medication = _get_owned_medication(db, medication_id, user_id)
    return [dose_payload(d) for d in DoseLedger(db).for_medication(medication.medication_id)]


@router.post("/{medication_id}/doses", summary="Mint a pending dose for a reminder")
def mint_medication_dose(
    medication_id: str,
    payload: DoseMintPayload,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    mid = parse_uuid(medication_id, "medication_id")
    ledger = DoseLedger(db)
    medication = ledger.medication(mid)
    if medication is None:
        raise MedicationNotFound()

    scheduled_time = to_local_naive(payload.scheduled_time)
    if not is_active_on(medication, scheduled_time.date()):
        raise HTTPException(status_code=400, detail="Medication is not active on that date")

    dose = ledger.mint_pending_dose(
        medication,
        scheduled_time,
        now,
        with_short_code=payload.with_short_code,
        with_token=payload.with_token,
    )

    return {
        **dose_payload(dose),
        "one_time_token": dose.one_time_token,
        "token_expires_at": dose.token_expires_at,
        "link": f"{settings.app_base_url.rstrip('/')}/dose/{dose.short_code}" if dose.short_code else None,
    }


@router.delete("/{medication_id}", summary="Delete a course and its doses")
def delete_medication(
    medication_id: str,
    user_id: str = Query(...),
    db: Session = Depends(get_db),
):
    medication = _get_owned_medication(db, medication_id, user_id)
    db.delete(medication)
    db.commit()

    _LOGGER.info("Deleted medication %s", medication_id)
    return {"id": medication_id, "deleted": True}
