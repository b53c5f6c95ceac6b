"""Module: dose_page.

Login-free surface behind reminder links: /dose/{short_code}.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Form, HTTPException
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session, sessionmaker

from dosetrack.api.v1.routes.deps import get_db, get_now, get_session_factory
from dosetrack.services.credentials import ShortCodeCredential
from dosetrack.services.dose_actions import load_dose_view, record_dose_action, target_status_for

router = APIRouter()


# Endpoint: pending dose with pet, medication and progress context.
@router.get("/{short_code}", summary="Reminder landing page")
def dose_page(
    short_code: str,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return load_dose_view(db, ShortCodeCredential(short_code), now)


# Endpoint: "mark given" / "skip" buttons; answers with the confirmation redirect.
@router.post("/{short_code}", summary="Act on a reminder")
async def dose_page_action(
    short_code: str,
    action: str = Form(...),
    session_factory: sessionmaker = Depends(get_session_factory),
    now: datetime = Depends(get_now),
):
    try:
        target_status = target_status_for(action)
    except ValueError:
        raise HTTPException(status_code=400, detail="Action must be 'given' or 'skip'")

    outcome = await record_dose_action(session_factory, ShortCodeCredential(short_code), target_status, now=now)
    return RedirectResponse(outcome.intent.url, status_code=303)
