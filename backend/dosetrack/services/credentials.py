"""Module: credentials.

Identity proofs accepted for acting on a dose, and the resolver that turns
each one into the dose it authorizes.

- ShortCodeCredential: the 8-character code in /dose/{code} reminder links.
- LegacyTokenCredential: the UUID token carried by older reminder links.
- SessionCredential: a logged-in owner acting on one of their medications.

Short codes and tokens authorize exactly the one dose they were minted for.
A session authorizes the oldest pending dose of a medication the user owns.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Union

from dosetrack.core.config import settings
from dosetrack.core.errors import (
    InvalidOrExpiredLink,
    MedicationNotFound,
    NoPendingDose,
    Unauthenticated,
)
from dosetrack.core.logging_config import mask_secret
from dosetrack.db.models.medication import Medication
from dosetrack.db.models.medication_dose import MedicationDose
from dosetrack.services.ledger import DoseLedger

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShortCodeCredential:
    code: str


@dataclass(frozen=True)
class LegacyTokenCredential:
    token: str


@dataclass(frozen=True)
class SessionCredential:
    user_id: uuid.UUID
    medication_id: uuid.UUID | None = None


Credential = Union[ShortCodeCredential, LegacyTokenCredential, SessionCredential]


@dataclass(frozen=True)
class DoseAuthorization:
    dose: MedicationDose
    medication: Medication
    credential: Credential

    @property
    def via_link(self) -> bool:
        return not isinstance(self.credential, SessionCredential)


def is_short_code_shaped(value: str | None) -> bool:
    return bool(value) and len(value) == settings.short_code_length and value.isascii() and value.isalnum()


def credential_from_request(
    short_code: str | None = None,
    token: str | None = None,
    user_id: uuid.UUID | None = None,
    medication_id: uuid.UUID | None = None,
) -> Credential:
    """Pick the strongest proof supplied: short code, then legacy token, then session."""
    if short_code:
        return ShortCodeCredential(short_code.strip())
    if token:
        return LegacyTokenCredential(token.strip())
    if user_id:
        return SessionCredential(user_id=user_id, medication_id=medication_id)
    raise Unauthenticated()


# -------------------------
# Per-variant resolution
# -------------------------
def _resolve_short_code(credential: ShortCodeCredential, ledger: DoseLedger, now: datetime) -> DoseAuthorization:
    if not is_short_code_shaped(credential.code):
        _LOGGER.warning("Rejected malformed short code %s", mask_secret(credential.code))
        raise InvalidOrExpiredLink()

    dose = ledger.by_short_code(credential.code)
    if dose is None:
        _LOGGER.warning("Unknown short code %s", mask_secret(credential.code))
        raise InvalidOrExpiredLink()
    return DoseAuthorization(dose=dose, medication=dose.medication, credential=credential)


def _resolve_legacy_token(credential: LegacyTokenCredential, ledger: DoseLedger, now: datetime) -> DoseAuthorization:
    dose = ledger.by_token(credential.token)
    if dose is None:
        _LOGGER.warning("Unknown legacy token %s", mask_secret(credential.token))
        raise InvalidOrExpiredLink()
    if dose.token_expires_at is not None and now > dose.token_expires_at:
        _LOGGER.warning("Expired legacy token %s for dose %s", mask_secret(credential.token), dose.dose_id)
        raise InvalidOrExpiredLink()
    return DoseAuthorization(dose=dose, medication=dose.medication, credential=credential)


def _resolve_session(credential: SessionCredential, ledger: DoseLedger, now: datetime) -> DoseAuthorization:
    if credential.medication_id is None:
        raise MedicationNotFound()

    medication = ledger.medication(credential.medication_id)
    # A medication owned by someone else is reported exactly like a missing one.
    if medication is None or medication.user_id != credential.user_id:
        _LOGGER.warning(
            "User %s cannot act on medication %s",
            credential.user_id,
            credential.medication_id,
        )
        raise MedicationNotFound()

    dose = ledger.oldest_pending(medication.medication_id)
    if dose is None:
        raise NoPendingDose()
    return DoseAuthorization(dose=dose, medication=medication, credential=credential)


_RESOLVERS: dict[type, Callable[..., DoseAuthorization]] = {
    ShortCodeCredential: _resolve_short_code,
    LegacyTokenCredential: _resolve_legacy_token,
    SessionCredential: _resolve_session,
}


def resolve(credential: Credential, ledger: DoseLedger, now: datetime) -> DoseAuthorization:
    resolver = _RESOLVERS.get(type(credential))
    if resolver is None:
        raise Unauthenticated()
    return resolver(credential, ledger, now)
