"""Query shapes understood by the data gateway.

Services describe *what* they want (filters, ordering, nested relations) with
these small value objects; the gateway turns them into SQL.
"""
from dataclasses import dataclass, field
from typing import Any, Sequence, Tuple, Union

from sqlalchemy import and_, or_, Table

from safeops.core.exceptions import GatewayError

OPS = ("eq", "neq", "in", "ilike", "is_null")


@dataclass(frozen=True)
class Filter:
    column: str
    op: str = "eq"
    value: Any = None

    def __post_init__(self):
        if self.op not in OPS:
            raise GatewayError(f"unsupported filter operator '{self.op}'")


@dataclass(frozen=True)
class AnyOf:
    """OR-group of filters."""

    filters: Tuple[Filter, ...]

    def __init__(self, *filters: Filter):
        object.__setattr__(self, "filters", tuple(filters))


@dataclass(frozen=True)
class Order:
    column: str
    descending: bool = False


@dataclass(frozen=True)
class Embed:
    """A nested relation to fetch alongside each base row."""

    columns: Union[str, Sequence[str]] = "*"
    order: Tuple[Order, ...] = field(default_factory=tuple)


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def column_of(table: Table, name: str):
    try:
        return table.c[name]
    except KeyError:
        raise GatewayError(f"relation '{table.name}' has no column '{name}'") from None


def _compile_filter(table: Table, f: Filter):
    col = column_of(table, f.column)
    if f.op == "eq":
        return col == f.value
    if f.op == "neq":
        return col != f.value
    if f.op == "in":
        return col.in_(list(f.value))
    if f.op == "ilike":
        return col.ilike(f.value, escape="\\")
    return col.is_(None) if f.value in (None, True) else col.is_not(None)


def compile_filters(table: Table, filters: Sequence[Union[Filter, AnyOf]]):
    clauses = []
    for f in filters:
        if isinstance(f, AnyOf):
            clauses.append(or_(*[_compile_filter(table, sub) for sub in f.filters]))
        else:
            clauses.append(_compile_filter(table, f))
    return and_(*clauses) if clauses else None


def compile_order(table: Table, order: Sequence[Order]):
    """Order terms plus the primary key as the final tie-breaker (insertion order),
    running in the direction of the last explicit term."""
    terms = []
    for o in order:
        col = column_of(table, o.column)
        terms.append(col.desc() if o.descending else col.asc())
    descending = bool(order) and order[-1].descending
    for pk in table.primary_key.columns:
        if not any(o.column == pk.name for o in order):
            terms.append(pk.desc() if descending else pk.asc())
    return terms


def escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
