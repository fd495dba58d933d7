"""View lifetimes and the single user-facing error path."""
import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Deque, List, Optional, Set

from safeops.core.exceptions import (
    AuthenticationError,
    ConstraintError,
    InvalidTransitionError,
    NotFoundError,
    SafeOpsError,
    TransportError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class ViewClosed(Exception):
    """The view that started a request went away before the result arrived."""


class ViewScope:
    """Ties requests to the lifetime of one view.

    ``call`` runs a request as a task owned by the scope; ``close`` cancels what
    is still outstanding, and a result that arrives after close is discarded
    (``ViewClosed`` is raised instead of returning it).
    """

    def __init__(self, name: str = "view"):
        self.name = name
        self.closed = False
        self._tasks: Set[asyncio.Task] = set()
        self._cleanups: List[Callable[[], Any]] = []

    @property
    def outstanding(self) -> int:
        return len(self._tasks)

    def on_close(self, cleanup: Callable[[], Any]) -> None:
        self._cleanups.append(cleanup)

    async def call(self, request: Awaitable):
        if self.closed:
            if asyncio.iscoroutine(request):
                request.close()
            raise ViewClosed(self.name)
        task = asyncio.ensure_future(request)
        self._tasks.add(task)
        try:
            result = await task
        except asyncio.CancelledError:
            if self.closed and task.cancelled():
                raise ViewClosed(self.name) from None
            raise
        finally:
            self._tasks.discard(task)
        if self.closed:
            logger.debug("%s: dropping result that arrived after close", self.name)
            raise ViewClosed(self.name)
        return result

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        for task in list(self._tasks):
            task.cancel()
        for cleanup in reversed(self._cleanups):
            try:
                cleanup()
            except Exception:
                logger.exception("%s: cleanup failed", self.name)
        self._cleanups.clear()

    async def __aenter__(self) -> "ViewScope":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


@dataclass
class Report:
    message: str
    context: str
    error: BaseException
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def user_message(exc: BaseException) -> str:
    if isinstance(exc, (NotFoundError, ValidationError, InvalidTransitionError, AuthenticationError)):
        return str(exc)
    if isinstance(exc, ConstraintError):
        return "The change conflicts with existing data."
    if isinstance(exc, TransportError):
        return "The server could not be reached. Please try again."
    return "Something went wrong. Please try again."


class ErrorReporter:
    """Every UI action routes failures here: one log line, one history entry
    and one call per registered sink (toast, banner, ...)."""

    def __init__(self, limit: int = 50):
        self.history: Deque[Report] = deque(maxlen=limit)
        self._sinks: List[Callable[[Report], None]] = []

    def add_sink(self, sink: Callable[[Report], None]) -> Callable[[], None]:
        self._sinks.append(sink)
        return lambda: self._sinks.remove(sink) if sink in self._sinks else None

    @property
    def last(self) -> Optional[Report]:
        return self.history[-1] if self.history else None

    def report(self, exc: BaseException, context: str) -> Report:
        report = Report(message=user_message(exc), context=context, error=exc)
        if isinstance(exc, SafeOpsError):
            logger.warning("%s failed: %s", context, exc)
        else:
            logger.error("%s failed", context, exc_info=exc)
        self.history.append(report)
        for sink in list(self._sinks):
            try:
                sink(report)
            except Exception:
                logger.exception("error sink failed")
        return report
