"""Shared fixtures: a file-backed SQLite database per test, owners, courses, doses."""

# pylint: disable=redefined-outer-name

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOCAL_TIMEZONE", "America/Los_Angeles")

from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from dosetrack.api.v1.routes.deps import get_now, get_session_factory
from dosetrack.db.base import Base
from dosetrack.db.models.medication import Medication
from dosetrack.db.models.pet import Pet
from dosetrack.db.models.user import User
from dosetrack.db.session import build_engine
from dosetrack.main import app
from dosetrack.services.ledger import DoseLedger

# Tuesday morning, local wall-clock.
NOW = datetime(2026, 1, 6, 10, 0)
COURSE_START = date(2026, 1, 6)
COURSE_END = date(2026, 1, 7)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'doses.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def ledger(db):
    return DoseLedger(db)


@pytest.fixture
def owner(db):
    user = User(email="sam@example.com", full_name="Sam Rivera", phone="5550100")
    db.add(user)
    db.flush()
    pet = Pet(user_id=user.user_id, name="Biscuit", species="dog")
    db.add(pet)
    db.commit()
    return user, pet


@pytest.fixture
def other_owner(db):
    user = User(email="lee@example.com", full_name="Lee Chen")
    db.add(user)
    db.flush()
    pet = Pet(user_id=user.user_id, name="Mochi", species="cat")
    db.add(pet)
    db.commit()
    return user, pet


@pytest.fixture
def make_medication(db, owner):
    def _make(
        reminder_times=("08:00", "20:00"),
        start_date=COURSE_START,
        end_date=COURSE_END,
        frequency="2x daily",
        who=None,
    ):
        user, pet = who or owner
        medication = Medication(
            user_id=user.user_id,
            pet_id=pet.pet_id,
            medication_name="Amoxicillin",
            dosage="250 mg",
            frequency=frequency,
            reminder_times=list(reminder_times),
            start_date=start_date,
            end_date=end_date,
        )
        db.add(medication)
        db.commit()
        return medication

    return _make


@pytest.fixture
def course(make_medication, ledger):
    """Two-day, twice-daily course with all four doses minted."""
    medication = make_medication()
    doses = [
        ledger.mint_pending_dose(medication, datetime(2026, 1, 6, 8, 0), NOW),
        ledger.mint_pending_dose(medication, datetime(2026, 1, 6, 20, 0), NOW),
        ledger.mint_pending_dose(medication, datetime(2026, 1, 7, 8, 0), NOW),
        ledger.mint_pending_dose(medication, datetime(2026, 1, 7, 20, 0), NOW),
    ]
    return medication, doses


@pytest.fixture
def client(session_factory):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_now] = lambda: NOW
    yield TestClient(app)
    app.dependency_overrides.clear()
