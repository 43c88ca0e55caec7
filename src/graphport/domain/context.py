"""Request-scoped traversal state for one serialize or deserialize call."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .types import ProgressCallback


@dataclass(slots=True)
class TraversalContext:
    """Current traversal path and progress, passed explicitly through the codec.

    The path only feeds log lines and error diagnostics; nothing branches on it.
    """

    progress_callback: ProgressCallback | None = None
    path: list[str] = field(default_factory=list[str])
    goal: int = 1
    done: int = 0

    @contextmanager
    def step(self, name: object) -> Iterator[None]:
        self.path.append(str(name))
        try:
            yield
        finally:
            self.path.pop()

    def describe(self) -> str:
        return " > ".join(self.path) or "<root>"

    def start_progress(self, goal: int) -> None:
        self.goal = max(goal, 1)
        self.done = 0

    def advance(self) -> None:
        self.done += 1
        if self.progress_callback is not None:
            self.progress_callback(self.done / self.goal)
