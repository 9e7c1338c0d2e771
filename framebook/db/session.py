"""Database handle.

The engine is owned by a ``Database`` instance that the application opens at
startup and disposes at shutdown. Request handlers receive sessions through
the ``get_db`` dependency.
"""

from collections.abc import Iterator
from typing import Any

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from framebook.db import models  # noqa: F401
from framebook.db.base import Base


class Database:
    def __init__(self, url: str, **engine_options: Any) -> None:
        engine_options.setdefault("pool_pre_ping", True)
        self.engine = create_engine(url, **engine_options)
        self._session_factory = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    def session(self) -> Session:
        return self._session_factory()

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()


def is_postgresql_session(db: Session) -> bool:
    bind = db.get_bind()
    return bind is not None and bind.dialect.name == "postgresql"
