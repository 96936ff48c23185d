from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from subflow.config import settings

engine = create_engine(str(settings.SQLALCHEMY_DATABASE_URI))


def init_db(db_engine: Optional[Engine] = None) -> None:
    # Create tables if they don't exist (useful for SQLite)
    from subflow.plugins import models  # noqa: F401  register the plugin table

    SQLModel.metadata.create_all(db_engine or engine)
