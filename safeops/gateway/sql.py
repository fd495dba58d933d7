import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Type, Union

from sqlalchemy import Table, delete, select, update
from sqlalchemy import exc as sa_exc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from safeops.core.exceptions import ConstraintError, GatewayError, PersistenceError, TransportError
from safeops.gateway.feed import ChangeEvent, ChangeFeed, ChangeKind, Subscription
from safeops.gateway.query import AnyOf, Embed, Filter, Order, column_of, compile_filters, compile_order

logger = logging.getLogger(__name__)

Columns = Union[str, Sequence[str]]
Filters = Sequence[Union[Filter, AnyOf]]


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _row_dict(row) -> Dict[str, Any]:
    return {k: _plain(v) for k, v in row._mapping.items()}


def _project(row: Dict[str, Any], columns: Columns) -> Dict[str, Any]:
    if columns == "*":
        return dict(row)
    return {c: row[c] for c in columns}


def _translate(exc: Exception) -> PersistenceError:
    if isinstance(exc, sa_exc.IntegrityError):
        return ConstraintError(str(exc.orig))
    if isinstance(exc, (sa_exc.OperationalError, sa_exc.InterfaceError, sa_exc.TimeoutError)):
        return TransportError(str(exc))
    if isinstance(exc, sa_exc.DBAPIError):
        return PersistenceError(str(exc.orig))
    if isinstance(exc, sa_exc.StatementError):
        # e.g. a value outside an enum column's members
        return ConstraintError(str(exc.orig or exc))
    return PersistenceError(str(exc))


class SqlGateway:
    """Data gateway over an async SQLAlchemy session factory.

    Every call runs in its own transaction; rows come back as plain dicts with
    enum members flattened to their values. Committed writes are published on
    ``feed`` so realtime subscribers see them.
    """

    def __init__(self, session_factory: sessionmaker, models: Iterable[Type[SQLModel]], feed: Optional[ChangeFeed] = None):
        self._session_factory = session_factory
        self._models: Dict[str, Type[SQLModel]] = {m.__tablename__: m for m in models}
        self.feed = feed or ChangeFeed()

    # -- helpers ---------------------------------------------------------

    def table(self, relation: str) -> Table:
        return self.model(relation).__table__

    def model(self, relation: str) -> Type[SQLModel]:
        try:
            return self._models[relation]
        except KeyError:
            raise GatewayError(f"unknown relation '{relation}'") from None

    @staticmethod
    def _pk(table: Table):
        cols = list(table.primary_key.columns)
        if len(cols) != 1:
            raise GatewayError(f"relation '{table.name}' needs a single-column primary key")
        return cols[0]

    @asynccontextmanager
    async def _transaction(self, relation: str, action: str):
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except PersistenceError:
            raise
        except sa_exc.SQLAlchemyError as exc:
            logger.warning("%s on %s failed: %s", action, relation, exc)
            raise _translate(exc) from exc

    async def _fetch(self, session: AsyncSession, table: Table, where=None, order: Sequence[Order] = (),
                     limit: Optional[int] = None, for_update: bool = False) -> List[Dict[str, Any]]:
        stmt = select(table)
        if where is not None:
            stmt = stmt.where(where)
        stmt = stmt.order_by(*compile_order(table, order))
        if limit is not None:
            stmt = stmt.limit(limit)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return [_row_dict(r) for r in result]

    def _check_columns(self, table: Table, row: Mapping[str, Any]) -> None:
        for name in row:
            column_of(table, name)

    # -- contract --------------------------------------------------------

    async def select(self, relation: str, columns: Columns = "*", filters: Filters = (),
                     order: Sequence[Order] = (), embed: Optional[Mapping[str, Union[Embed, Columns]]] = None,
                     limit: Optional[int] = None) -> List[Dict[str, Any]]:
        table = self.table(relation)
        if columns != "*":
            for c in columns:
                column_of(table, c)
        async with self._transaction(relation, "select") as session:
            rows = await self._fetch(session, table, compile_filters(table, filters), order, limit)
            nested = {}
            for name, spec in (embed or {}).items():
                if not isinstance(spec, Embed):
                    spec = Embed(columns=spec)
                nested[name] = await self._embed(session, table, rows, name, spec)
        out = []
        for i, row in enumerate(rows):
            shaped = _project(row, columns)
            for name, values in nested.items():
                shaped[name] = values[i]
            out.append(shaped)
        return out

    async def _embed(self, session: AsyncSession, base: Table, rows: List[Dict[str, Any]], relation: str, spec: Embed) -> List[Any]:
        target = self.table(relation)
        outgoing = [fk for fk in base.foreign_keys if fk.column.table is target]
        incoming = [fk for fk in target.foreign_keys if fk.column.table is base]
        if len(outgoing) + len(incoming) != 1:
            raise GatewayError(f"cannot embed '{relation}' in '{base.name}': need exactly one foreign key between them")

        if outgoing:
            fk = outgoing[0]
            keys = {r[fk.parent.name] for r in rows if r[fk.parent.name] is not None}
            found = {}
            if keys:
                for r in await self._fetch(session, target, fk.column.in_(list(keys))):
                    found[r[fk.column.name]] = _project(r, spec.columns)
            return [found.get(r[fk.parent.name]) for r in rows]

        fk = incoming[0]
        keys = {r[fk.column.name] for r in rows}
        grouped: Dict[Any, List[Dict[str, Any]]] = {k: [] for k in keys}
        if keys:
            for r in await self._fetch(session, target, fk.parent.in_(list(keys)), spec.order):
                grouped[r[fk.parent.name]].append(_project(r, spec.columns))
        return [grouped[r[fk.column.name]] for r in rows]

    async def insert(self, relation: str, rows: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        model = self.model(relation)
        table = model.__table__
        pk = self._pk(table)
        for row in rows:
            self._check_columns(table, row)
        async with self._transaction(relation, "insert") as session:
            objs = [model(**dict(row)) for row in rows]
            session.add_all(objs)
            await session.flush()
            ids = [getattr(o, pk.name) for o in objs]
            created = await self._fetch(session, table, pk.in_(ids))
        # keep the caller's order
        by_id = {r[pk.name]: r for r in created}
        created = [by_id[i] for i in ids]
        self.feed.publish(ChangeEvent(relation, ChangeKind.INSERT, new=r) for r in created)
        return created

    async def update(self, relation: str, values: Mapping[str, Any], filters: Filters) -> List[Dict[str, Any]]:
        table = self.table(relation)
        pk = self._pk(table)
        self._check_columns(table, values)
        if not values:
            raise GatewayError("update needs at least one column")
        where = compile_filters(table, filters)
        async with self._transaction(relation, "update") as session:
            before = await self._fetch(session, table, where, for_update=True)
            if not before:
                return []
            ids = [r[pk.name] for r in before]
            await session.execute(update(table).where(pk.in_(ids)).values(**dict(values)))
            after = await self._fetch(session, table, pk.in_(ids))
        old = {r[pk.name]: r for r in before}
        self.feed.publish(ChangeEvent(relation, ChangeKind.UPDATE, new=r, old=old.get(r[pk.name])) for r in after)
        return after

    async def delete(self, relation: str, filters: Filters) -> int:
        table = self.table(relation)
        pk = self._pk(table)
        if not filters:
            raise GatewayError("refusing to delete without a filter")
        where = compile_filters(table, filters)
        async with self._transaction(relation, "delete") as session:
            before = await self._fetch(session, table, where, for_update=True)
            if before:
                await session.execute(delete(table).where(pk.in_([r[pk.name] for r in before])))
        self.feed.publish(ChangeEvent(relation, ChangeKind.DELETE, old=r) for r in before)
        return len(before)

    def subscribe(self, relation: str, callback: Callable[[ChangeEvent], Any],
                  events: Optional[Iterable[ChangeKind]] = None) -> Subscription:
        self.table(relation)
        return self.feed.subscribe(relation, callback, events)
