"""Client-side state containers.

A store holds the last fetched collection of one entity type plus a single
selected item. Mutations are synchronous and last-write-wins; they are applied
by UI actions after a service call succeeded and by realtime reconciliation.
Stores never see errors.
"""
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

Item = Dict[str, Any]
Listener = Callable[["EntityStore"], None]


class EntityStore:
    def __init__(self, name: str, key: str = "id"):
        self.name = name
        self.key = key
        self.items: List[Item] = []
        self.selected: Optional[Item] = None
        self.loading: bool = False
        self._listeners: List[Listener] = []

    def __len__(self) -> int:
        return len(self.items)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(store)`` after every mutation. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("%s store listener failed", self.name)

    def _index(self, item_id) -> int:
        for i, item in enumerate(self.items):
            if item.get(self.key) == item_id:
                return i
        return -1

    def get(self, item_id) -> Optional[Item]:
        i = self._index(item_id)
        return self.items[i] if i >= 0 else None

    def replace_all(self, items: Sequence[Mapping[str, Any]]) -> None:
        """Discard prior state and take ``items`` (already ordered newest-first).
        The selection is kept in step with the new collection."""
        self.items = [dict(i) for i in items]
        if self.selected is not None:
            fresh = self.get(self.selected.get(self.key))
            if fresh is not None:
                self.selected = {**self.selected, **fresh}
        self._changed()

    def add(self, item: Mapping[str, Any]) -> None:
        """Upsert: an item whose id is already present is replaced in place,
        anything else goes to the front."""
        item = dict(item)
        i = self._index(item.get(self.key))
        if i >= 0:
            self.items[i] = item
        else:
            self.items.insert(0, item)
        if self.selected is not None and self.selected.get(self.key) == item.get(self.key):
            self.selected = {**self.selected, **item}
        self._changed()

    def patch(self, item_id, partial: Mapping[str, Any]) -> None:
        """Shallow-merge ``partial`` into the item with ``item_id``; no-op when absent."""
        i = self._index(item_id)
        if i < 0:
            return
        self.items[i] = {**self.items[i], **partial}
        if self.selected is not None and self.selected.get(self.key) == item_id:
            self.selected = {**self.selected, **partial}
        self._changed()

    def remove(self, item_id) -> None:
        i = self._index(item_id)
        if i < 0:
            return
        del self.items[i]
        if self.selected is not None and self.selected.get(self.key) == item_id:
            self.selected = None
        self._changed()

    def select(self, item: Optional[Mapping[str, Any]]) -> None:
        self.selected = dict(item) if item is not None else None
        self._changed()

    def set_loading(self, loading: bool) -> None:
        self.loading = loading
        self._changed()
