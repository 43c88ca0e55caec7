from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from graphport.adapters.sqlalchemy import (
    SqlAlchemyRecordFactory,
    SqlAlchemyRecordStore,
    SqlAlchemyUnitOfWork,
    shutdown,
    startup,
)
from graphport.domain.codec import GraphCodec
from tests.helpers.models import MODEL_CLASSES, metadata, start_mappers

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:")
    start_mappers()
    metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def record_factory() -> SqlAlchemyRecordFactory:
    start_mappers()
    return SqlAlchemyRecordFactory(MODEL_CLASSES)


@pytest.fixture
def record_store(
    sqlite_session: Session,
    record_factory: SqlAlchemyRecordFactory,
) -> SqlAlchemyRecordStore:
    return SqlAlchemyRecordStore(sqlite_session, record_factory)


@pytest.fixture
def codec(record_store: SqlAlchemyRecordStore) -> GraphCodec:
    return GraphCodec(record_store)


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
    record_factory: SqlAlchemyRecordFactory,
) -> Iterator[Callable[[], SqlAlchemyUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(record_factory)

    try:
        yield factory
    finally:
        shutdown()
