"""Module: base."""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Index/unique/foreign-key names follow the same pattern create_all and alembic produce.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


# Declarative base for users, pets, medication courses and dose ledger rows.
class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
