"""Module: dose_api.

Async client for the dose transition endpoint, used by shells that sit across
a network boundary from the backend (reminder landing pages, bots).
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

import httpx

from dosetrack.core.config import settings
from dosetrack.core.errors import ERRORS_BY_CODE, DoseTrackingError

_LOGGER = logging.getLogger(__name__)

TRANSITION_PATH = "/api/v1/doses/transition"


class TransientBackendError(Exception):
    """Infrastructure failure; safe to retry once. Never implies the dose was recorded."""


class BackendTimeout(TransientBackendError):
    pass


class BackendUnavailable(TransientBackendError):
    pass


@dataclass(frozen=True)
class TransitionResponse:
    applied: bool
    dose: dict
    progress: dict
    redirect: str | None

    @property
    def idempotent(self) -> bool:
        return not self.applied


class DoseApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.backend_base_url).rstrip("/")
        self.timeout = settings.backend_timeout_seconds if timeout is None else timeout
        self._transport = transport

    async def mark_dose(
        self,
        *,
        token: str | None = None,
        short_code: str | None = None,
        user_id: uuid.UUID | str | None = None,
        medication_id: uuid.UUID | str | None = None,
        status: str = "given",
    ) -> TransitionResponse:
        payload = {"status": status}
        if short_code:
            payload["short_code"] = short_code
        if token:
            payload["token"] = token
        if user_id:
            payload["user_id"] = str(user_id)
        if medication_id:
            payload["medication_id"] = str(medication_id)

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                r = await client.post(TRANSITION_PATH, json=payload)
        except httpx.TimeoutException as exc:
            _LOGGER.warning("Dose transition timed out after %ss", self.timeout)
            raise BackendTimeout(f"Dose service did not answer within {self.timeout}s") from exc
        except httpx.TransportError as exc:
            _LOGGER.warning("Dose service unreachable: %s", exc.__class__.__name__)
            raise BackendUnavailable("Could not connect to the dose service") from exc

        return self._parse(r)

    def _parse(self, r: httpx.Response) -> TransitionResponse:
        if r.status_code >= 500:
            raise BackendUnavailable(f"Dose service error ({r.status_code})")

        try:
            body = r.json()
        except ValueError as exc:
            raise BackendUnavailable(f"Dose service returned an unreadable response ({r.status_code})") from exc

        # Lists or bare strings carry no code or confirmation.
        if not isinstance(body, dict):
            body = {}

        if r.is_error:
            error_cls = ERRORS_BY_CODE.get(body.get("code"), DoseTrackingError)
            detail = body.get("detail")
            raise error_cls(detail if isinstance(detail, str) else None)

        if "applied" not in body:
            raise BackendUnavailable("Dose service response did not confirm the transition")

        return TransitionResponse(
            applied=bool(body["applied"]),
            dose=body.get("dose") or {},
            progress=body.get("progress") or {},
            redirect=body.get("redirect"),
        )
