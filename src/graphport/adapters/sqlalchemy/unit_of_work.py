"""SQLAlchemy-backed unit of work for codec imports and exports."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from graphport.config.storage import get_database_config

from .store import SqlAlchemyRecordFactory, SqlAlchemyRecordStore

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from sqlalchemy import MetaData
    from sqlalchemy.engine import Engine

    from graphport.domain.types import TypeTag

    from .store import MorphDeclaration

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call graphport.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    metadata: MetaData | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine and session factory.

    When ``metadata`` is given, its tables are created if missing.
    """

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    if engine is not None:
        resolved_engine = engine
    else:
        config = get_database_config(uri=database_uri)
        resolved_engine = create_engine(config.uri, echo=config.echo)
    if metadata is not None:
        log.info("Creating missing tables")
        metadata.create_all(resolved_engine, checkfirst=True)

    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemyUnitOfWork:
    """Session scope exposing a record store over the given record factory."""

    def __init__(
        self,
        factory: SqlAlchemyRecordFactory,
        *,
        morphs: Mapping[TypeTag, MorphDeclaration] | None = None,
    ) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._factory = factory
        self._morphs = morphs
        self._session: Session | None = None
        self._store: SqlAlchemyRecordStore | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self.session = self.session_factory()
        self._store = SqlAlchemyRecordStore(self.session, self._factory, morphs=self._morphs)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        self._store = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def store(self) -> SqlAlchemyRecordStore:
        if self._store is None:
            raise StartupError("Unit of work session not initialised")
        return self._store

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


if TYPE_CHECKING:
    from graphport.domain.ports import CodecUnitOfWork

    _uow_check: CodecUnitOfWork = SqlAlchemyUnitOfWork(SqlAlchemyRecordFactory(()))
