"""Realtime reconciliation: keep a store in step with changes made elsewhere.

``reload`` ignores the event payload and refetches the whole collection, which
converges with the backend no matter what the payload holds. ``incremental``
applies the inserted/updated/deleted row to the store directly and suits large
collections.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from safeops.core.exceptions import ConfigurationError, PersistenceError
from safeops.gateway import ChangeEvent, ChangeKind, Subscription
from safeops.stores import EntityStore

logger = logging.getLogger(__name__)

RELOAD = "reload"
INCREMENTAL = "incremental"
STRATEGIES = (RELOAD, INCREMENTAL)

Loader = Callable[[], Awaitable[List[Dict[str, Any]]]]


class Reconciler:
    def __init__(self, gateway, relation: str, store: EntityStore, loader: Loader,
                 strategy: str = RELOAD, accept: Optional[Callable[[Dict[str, Any]], bool]] = None,
                 errors=None):
        if strategy not in STRATEGIES:
            raise ConfigurationError(f"unknown realtime strategy '{strategy}'")
        self.gateway = gateway
        self.relation = relation
        self.store = store
        self.loader = loader
        self.strategy = strategy
        self.accept = accept
        self.errors = errors
        self.closed = False
        self.reloads = 0
        self._subscription: Optional[Subscription] = None
        self._reloading = False
        self._dirty = False

    def start(self) -> "Reconciler":
        self._subscription = self.gateway.subscribe(self.relation, self._on_change)
        logger.debug("watching %s with %s strategy", self.relation, self.strategy)
        return self

    def close(self) -> None:
        self.closed = True
        sub, self._subscription = self._subscription, None
        if sub is None:
            return
        try:
            sub.unsubscribe()
        except Exception as exc:
            # teardown is not fatal
            logger.debug("unsubscribe from %s failed: %s", self.relation, exc)

    def _on_change(self, event: ChangeEvent):
        if self.closed:
            return None
        if self.strategy == INCREMENTAL:
            self._apply(event)
            return None
        return self._request_reload()

    def _apply(self, event: ChangeEvent) -> None:
        row = event.row
        if row is None:
            return
        item_id = row.get(self.store.key)
        if event.kind is ChangeKind.DELETE:
            self.store.remove(item_id)
            return
        if self.accept is not None and not self.accept(row):
            # moved out of this view's filter
            self.store.remove(item_id)
            return
        existing = self.store.get(item_id)
        # merge so view-only fields (e.g. venue_name) survive
        self.store.add({**existing, **row} if existing else row)

    async def _request_reload(self) -> None:
        # overlapping events coalesce into at most one follow-up reload
        if self._reloading:
            self._dirty = True
            return
        self._reloading = True
        try:
            while True:
                self._dirty = False
                await self._reload_once()
                if not self._dirty or self.closed:
                    break
        finally:
            self._reloading = False

    async def _reload_once(self) -> None:
        try:
            items = await self.loader()
        except PersistenceError as exc:
            if self.errors is not None:
                self.errors.report(exc, f"refreshing {self.relation}")
            else:
                logger.warning("reload of %s failed: %s", self.relation, exc)
            return
        if self.closed:
            logger.debug("discarding late reload of %s", self.relation)
            return
        self.reloads += 1
        self.store.replace_all(items)
