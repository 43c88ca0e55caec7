"""SQLAlchemy adapter package for graphport."""

from __future__ import annotations

from .store import SqlAlchemyRecordFactory, SqlAlchemyRecordStore, mapped_classes
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyRecordFactory",
    "SqlAlchemyRecordStore",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "configured_engine",
    "is_started",
    "mapped_classes",
    "shutdown",
    "startup",
]
