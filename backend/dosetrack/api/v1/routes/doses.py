"""Module: doses."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session, sessionmaker

from dosetrack.api.v1.routes.deps import get_db, get_now, get_session_factory, parse_uuid
from dosetrack.core.config import settings
from dosetrack.services.credentials import ShortCodeCredential, credential_from_request
from dosetrack.services.dose_actions import dose_payload, load_dose_view, record_dose_action
from dosetrack.services.dose_state import skip_stale_doses
from dosetrack.services.ledger import DoseLedger
from dosetrack.services.progress import confirmation_view

router = APIRouter()


class TransitionPayload(BaseModel):
    short_code: str | None = None
    # Legacy one-time token from older reminder links.
    token: str | None = None
    # Authenticated session path.
    user_id: str | None = None
    medication_id: str | None = None
    status: Literal["given", "skipped"] = "given"


# Endpoint: apply a transition with any of the accepted proofs.
@router.post("/transition", summary="Mark a dose as given or skipped")
async def transition_dose(
    payload: TransitionPayload,
    session_factory: sessionmaker = Depends(get_session_factory),
    now: datetime = Depends(get_now),
):
    credential = credential_from_request(
        short_code=payload.short_code,
        token=payload.token,
        user_id=parse_uuid(payload.user_id, "user_id") if payload.user_id else None,
        medication_id=parse_uuid(payload.medication_id, "medication_id") if payload.medication_id else None,
    )

    outcome = await record_dose_action(session_factory, credential, payload.status, now=now)

    return {
        "applied": outcome.applied,
        "idempotent": outcome.idempotent,
        "dose": outcome.dose,
        "progress": outcome.progress.as_dict(),
        "redirect": outcome.intent.url,
        "navigation": {
            "destination": outcome.intent.destination,
            "params": outcome.intent.params,
        },
    }


# Endpoint: dose, medication and pet behind a reminder short code.
@router.get("/by-short-code/{short_code}", summary="Look up a dose by short code")
def get_dose_by_short_code(
    short_code: str,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return load_dose_view(db, ShortCodeCredential(short_code), now)


# Endpoint: stateless confirmation data, rendered only from the query string.
@router.get("/success", summary="Post-action confirmation view")
def dose_success(
    pet: str | None = Query(default=None),
    med: str | None = Query(default=None),
    count: int | None = Query(default=None, ge=0),
    total: int | None = Query(default=None, ge=0),
    next_label: str | None = Query(default=None, alias="next"),
    skipped: bool = Query(default=False),
):
    return confirmation_view(pet=pet, med=med, count=count, total=total, next_label=next_label, skipped=skipped)


# Endpoint: auto-skip reminders nobody answered.
@router.post("/maintenance/skip-stale", summary="Skip pending doses older than the stale threshold")
def skip_stale(
    max_age_hours: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    skipped = skip_stale_doses(DoseLedger(db), now, max_age_hours or settings.stale_dose_hours)
    return {"skipped": len(skipped), "doses": [dose_payload(d) for d in skipped]}
