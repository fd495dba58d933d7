import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Set

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


ALL_EVENTS: FrozenSet[ChangeKind] = frozenset(ChangeKind)


@dataclass(frozen=True)
class ChangeEvent:
    relation: str
    kind: ChangeKind
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None
    committed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def row(self) -> Optional[Dict[str, Any]]:
        return self.new if self.new is not None else self.old


class Subscription:
    """Handle returned by ``ChangeFeed.subscribe``."""

    def __init__(self, feed: "ChangeFeed", relation: str, callback: Callable, events: FrozenSet[ChangeKind]):
        self._feed = feed
        self.relation = relation
        self.callback = callback
        self.events = events
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._feed._remove(self)


class ChangeFeed:
    """In-process change feed. Writers publish committed row changes; subscribers
    registered per relation receive them. Async callbacks run as tasks."""

    def __init__(self):
        self._subs: Dict[str, List[Subscription]] = {}
        self._pending: Set[asyncio.Task] = set()

    def subscribe(self, relation: str, callback: Callable, events: Optional[Iterable[ChangeKind]] = None) -> Subscription:
        kinds = frozenset(ChangeKind(e) for e in events) if events else ALL_EVENTS
        sub = Subscription(self, relation, callback, kinds)
        self._subs.setdefault(relation, []).append(sub)
        logger.debug("subscribed to %s (%s)", relation, ",".join(sorted(k.value for k in kinds)))
        return sub

    def _remove(self, sub: Subscription) -> None:
        subs = self._subs.get(sub.relation, [])
        if sub in subs:
            subs.remove(sub)
        logger.debug("unsubscribed from %s", sub.relation)

    def subscriber_count(self, relation: str) -> int:
        return len(self._subs.get(relation, []))

    def publish(self, events: Iterable[ChangeEvent]) -> None:
        for event in events:
            # copy: callbacks may unsubscribe while we iterate
            for sub in list(self._subs.get(event.relation, [])):
                if sub.active and event.kind in sub.events:
                    self._dispatch(sub, event)

    def _dispatch(self, sub: Subscription, event: ChangeEvent) -> None:
        try:
            result = sub.callback(event)
        except Exception:
            logger.exception("change callback failed for %s %s", event.relation, event.kind.value)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._pending.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("async change callback failed", exc_info=task.exception())

    async def drain(self) -> None:
        """Wait until callbacks scheduled so far (and any they schedule) have finished."""
        while True:
            pending = [t for t in self._pending if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)
