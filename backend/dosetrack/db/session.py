"""Module: session."""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from dosetrack.core.config import settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Request handlers and the progress executor share the engine across threads.
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)
    if database_url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


engine = build_engine(settings.database_url)

# expire_on_commit=False keeps loaded rows readable after the request commits.
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
