"""UI actions: service call -> store mutation, inside a view scope.

Each action returns the service result, or ``None`` when it failed (the
failure has then been handed to the ErrorReporter) or when its view was closed
before the result arrived.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from safeops.core.exceptions import NotFoundError
from safeops.services import RAWService, VenueService
from safeops.services.common import as_values
from safeops.services.hazard_service import Payload
from safeops.stores import EntityStore, RAWStore, VenueStore
from safeops.views import ErrorReporter, ViewClosed, ViewScope

logger = logging.getLogger(__name__)


class _Actions:
    def __init__(self, store: EntityStore, errors: ErrorReporter, scope: ViewScope):
        self.store = store
        self.errors = errors
        self.scope = scope

    async def _perform(self, context: str, request: Awaitable, on_success: Optional[Callable[[Any], None]] = None,
                       loading: bool = False):
        if loading:
            self.store.set_loading(True)
        try:
            result = await self.scope.call(request)
        except ViewClosed:
            logger.debug("%s abandoned: view closed", context)
            return None
        except Exception as exc:
            self.errors.report(exc, context)
            return None
        finally:
            if loading:
                self.store.set_loading(False)
        if on_success is not None:
            on_success(result)
        return result

    async def _open(self, context: str, request: Awaitable, what: str) -> Optional[Dict[str, Any]]:
        def show(item):
            if item is None:
                self.errors.report(NotFoundError(f"{what} not found"), context)
            else:
                self.store.select(item)

        return await self._perform(context, request, show)


class VenueActions(_Actions):
    store: VenueStore

    def __init__(self, venues: VenueService, store: VenueStore, errors: ErrorReporter, scope: ViewScope):
        super().__init__(store, errors, scope)
        self.venues = venues

    async def load(self) -> Optional[List[Dict[str, Any]]]:
        return await self._perform("loading venues", self.venues.get_all(), self.store.replace_all, loading=True)

    async def search(self, query: str) -> Optional[List[Dict[str, Any]]]:
        return await self._perform("searching venues", self.venues.search(query), self.store.replace_all, loading=True)

    async def open(self, venue_id: int) -> Optional[Dict[str, Any]]:
        venue = await self._open("opening venue", self.venues.get_by_id(venue_id), f"venue {venue_id}")
        if venue is not None:
            await self.load_hazards(venue_id)
        return venue

    async def load_hazards(self, venue_id: int) -> Optional[List[Dict[str, Any]]]:
        return await self._perform("loading venue hazards", self.venues.get_hazards(venue_id),
                                   self.store.set_venue_hazards)

    async def create(self, data: Payload) -> Optional[Dict[str, Any]]:
        return await self._perform("creating venue", self.venues.create(data), self.store.add)

    async def update(self, venue_id: int, data: Payload) -> Optional[Dict[str, Any]]:
        return await self._perform("updating venue", self.venues.update(venue_id, data),
                                   lambda row: self.store.patch(venue_id, row))

    async def add_hazard(self, data: Payload) -> Optional[Dict[str, Any]]:
        hazard = await self._perform("adding hazard", self.venues.add_hazard(data))
        if hazard is not None:
            await self._after_hazard_change(hazard["venue_id"])
        return hazard

    async def set_hazard_status(self, hazard_id: int, status) -> Optional[Dict[str, Any]]:
        hazard = await self._perform("updating hazard status",
                                     self.venues.hazards.set_venue_hazard_status(hazard_id, status))
        if hazard is not None:
            await self._after_hazard_change(hazard["venue_id"])
        return hazard

    async def _after_hazard_change(self, venue_id: int) -> None:
        # the venue's derived status and critical count may have moved
        await self.load_hazards(venue_id)

        def refresh(row):
            if row is not None:
                self.store.patch(venue_id, row)

        await self._perform("refreshing venue", self.venues.get_by_id(venue_id), refresh)


class RAWActions(_Actions):
    store: RAWStore

    def __init__(self, raws: RAWService, store: RAWStore, errors: ErrorReporter, scope: ViewScope):
        super().__init__(store, errors, scope)
        self.raws = raws

    def _patch(self, raw_id: int) -> Callable[[Dict[str, Any]], None]:
        return lambda row: self.store.patch(raw_id, row)

    async def load(self, user_id: Optional[int] = None) -> Optional[List[Dict[str, Any]]]:
        return await self._perform("loading RAWs", self.raws.get_all(user_id), self.store.replace_all, loading=True)

    async def open(self, raw_id: int) -> Optional[Dict[str, Any]]:
        return await self._open("opening RAW", self.raws.get_by_id(raw_id), f"RAW {raw_id}")

    async def create(self, data: Payload) -> Optional[Dict[str, Any]]:
        return await self._perform("creating RAW", self.raws.create(data), self.store.add)

    async def update(self, raw_id: int, data: Payload) -> Optional[Dict[str, Any]]:
        moves_venue = "venue_id" in as_values(data)
        row = await self._perform("updating RAW", self.raws.update(raw_id, data), self._patch(raw_id))
        if row is not None and moves_venue:
            # venue_name is flattened from the venue row, so it has to be re-read
            def rename(view):
                if view is not None:
                    self.store.patch(raw_id, {"venue_name": view["venue_name"]})

            await self._perform("refreshing RAW", self.raws.get_by_id(raw_id), rename)
        return row

    async def submit(self, raw_id: int, user_id: int) -> Optional[Dict[str, Any]]:
        return await self._perform("submitting RAW", self.raws.submit(raw_id, user_id), self._patch(raw_id))

    async def approve(self, raw_id: int, approver_id: int) -> Optional[Dict[str, Any]]:
        return await self._perform("approving RAW", self.raws.approve(raw_id, approver_id), self._patch(raw_id))

    async def reject(self, raw_id: int, approver_id: int, comments: str) -> Optional[Dict[str, Any]]:
        return await self._perform("rejecting RAW", self.raws.reject(raw_id, approver_id, comments),
                                   self._patch(raw_id))

    async def request_changes(self, raw_id: int, approver_id: int, comments: str) -> Optional[Dict[str, Any]]:
        return await self._perform("requesting changes", self.raws.request_changes(raw_id, approver_id, comments),
                                   self._patch(raw_id))

    async def delete(self, raw_id: int) -> bool:
        deleted = False

        def forget(_):
            nonlocal deleted
            deleted = True
            self.store.remove(raw_id)

        await self._perform("deleting RAW", self.raws.delete(raw_id), forget)
        return deleted

    async def add_hazard(self, data: Payload) -> Optional[Dict[str, Any]]:
        hazard = await self._perform("adding hazard", self.raws.add_hazard(data))
        if hazard is not None and self.store.selected and self.store.selected.get("id") == hazard["raw_id"]:
            await self.open(hazard["raw_id"])
        return hazard
