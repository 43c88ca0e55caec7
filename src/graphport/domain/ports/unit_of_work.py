"""Unit-of-work boundary around a record store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from .store import RecordStore


@runtime_checkable
class CodecUnitOfWork(Protocol):
    """Transactional scope handing out the record store the codec runs against."""

    @property
    def store(self) -> RecordStore: ...

    def __enter__(self) -> CodecUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
