from dosetrack.db.session import engine
from dosetrack.db.base import Base

# IMPORTANT: import models so they register with Base.metadata
import dosetrack.db.models  # noqa: F401


def init_db(bind=None) -> None:
    Base.metadata.create_all(bind=bind or engine)
