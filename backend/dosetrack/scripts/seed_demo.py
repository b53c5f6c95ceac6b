"""Module: seed_demo."""

import random
from datetime import timedelta

from faker import Faker

from dosetrack.core.config import settings
from dosetrack.core.local_dates import local_now
from dosetrack.core.logging_config import configure_logging
from dosetrack.db.init_db import init_db
from dosetrack.db.models.medication import Medication
from dosetrack.db.models.pet import Pet
from dosetrack.db.models.user import User
from dosetrack.db.session import SessionLocal
from dosetrack.services.ledger import DoseLedger
from dosetrack.services.schedule import scheduled_times_on

fake = Faker()

MEDICATIONS = [
    ("Amoxicillin", "250 mg tablet", "2x daily", ["08:00", "20:00"]),
    ("Carprofen", "75 mg chewable", "1x daily", ["09:00"]),
    ("Metronidazole", "10 ml liquid", "3x daily", ["07:00", "14:00", "21:00"]),
]


# Build one owner with a pet on a short course, minting today's pending doses.
def seed_owner(session, ledger: DoseLedger, now) -> list:
    user = User(
        email=fake.unique.email(),
        full_name=fake.name(),
        phone=fake.phone_number(),
    )
    session.add(user)
    session.flush()

    pet = Pet(
        user_id=user.user_id,
        name=fake.first_name(),
        species=random.choice(["dog", "cat"]),
        breed=None,
    )
    session.add(pet)
    session.flush()

    name, dosage, frequency, times = random.choice(MEDICATIONS)
    medication = Medication(
        user_id=user.user_id,
        pet_id=pet.pet_id,
        medication_name=name,
        dosage=dosage,
        frequency=frequency,
        reminder_times=times,
        start_date=now.date() - timedelta(days=1),
        end_date=now.date() + timedelta(days=random.randint(3, 10)),
    )
    session.add(medication)
    session.commit()

    return [ledger.mint_pending_dose(medication, when, now) for when in scheduled_times_on(medication, now.date())]


if __name__ == "__main__":
    configure_logging()
    init_db()

    session = SessionLocal()
    try:
        now = local_now()
        ledger = DoseLedger(session)
        for _ in range(3):
            for dose in seed_owner(session, ledger, now):
                print(f"{dose.scheduled_time:%Y-%m-%d %H:%M}  {settings.app_base_url}/dose/{dose.short_code}")
    finally:
        session.close()
