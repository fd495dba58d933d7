"""Application wiring. Built once at startup and passed to whoever needs it;
nothing here is a module-level singleton."""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from safeops.actions import RAWActions, VenueActions
from safeops.core.config import Settings
from safeops.core.database import build_sessionmaker
from safeops.gateway import SqlGateway
from safeops.models import TABLE_MODELS
from safeops.realtime import Reconciler
from safeops.services import AuthService, HazardService, NotificationService, RAWService, RpnScale, VenueService
from safeops.stores import RAWStore, VenueStore
from safeops.views import ErrorReporter, ViewScope

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    settings: Settings
    engine: AsyncEngine
    gateway: SqlGateway
    hazards: HazardService
    venues: VenueService
    raws: RAWService
    notifications: NotificationService
    auth: AuthService
    venue_store: VenueStore
    raw_store: RAWStore
    errors: ErrorReporter

    def venue_actions(self, scope: ViewScope) -> VenueActions:
        return VenueActions(self.venues, self.venue_store, self.errors, scope)

    def raw_actions(self, scope: ViewScope) -> RAWActions:
        return RAWActions(self.raws, self.raw_store, self.errors, scope)

    def watch_venues(self, scope: ViewScope, strategy: Optional[str] = None) -> Reconciler:
        """Keep the venue store live while ``scope`` is open."""
        reconciler = Reconciler(
            self.gateway, "venues", self.venue_store, self.venues.get_all,
            strategy=strategy or self.settings.REALTIME_STRATEGY, errors=self.errors,
        ).start()
        scope.on_close(reconciler.close)
        return reconciler

    def watch_raws(self, scope: ViewScope, user_id: Optional[int] = None, strategy: Optional[str] = None) -> Reconciler:
        accept = (lambda row: row.get("user_id") == user_id) if user_id is not None else None
        reconciler = Reconciler(
            self.gateway, "raw_submissions", self.raw_store, lambda: self.raws.get_all(user_id),
            strategy=strategy or self.settings.REALTIME_STRATEGY, accept=accept, errors=self.errors,
        ).start()
        scope.on_close(reconciler.close)
        return reconciler

    async def close(self) -> None:
        await self.gateway.feed.drain()


def build_container(settings: Settings, engine: Optional[AsyncEngine] = None) -> AppContainer:
    if engine is None:
        from safeops.core.database import engine as default_engine
        engine = default_engine

    gateway = SqlGateway(build_sessionmaker(engine), TABLE_MODELS)
    scale = RpnScale.from_settings(settings)
    if scale is None:
        logger.warning("RPN scale not configured; hazards cannot be recorded until it is")

    hazards = HazardService(gateway, scale)
    notifications = NotificationService(gateway)
    return AppContainer(
        settings=settings,
        engine=engine,
        gateway=gateway,
        hazards=hazards,
        venues=VenueService(gateway, hazards),
        raws=RAWService(gateway, hazards, notifications),
        notifications=notifications,
        auth=AuthService(gateway, settings.SECRET_KEY, settings.ALGORITHM, settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        venue_store=VenueStore(),
        raw_store=RAWStore(),
        errors=ErrorReporter(settings.ERROR_HISTORY_LIMIT),
    )
