from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, func
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AwareDateTime(TypeDecorator):
    """UTC timestamps in and out.

    Naive values are refused on the way in. SQLite drops the offset on
    storage, so values read back without one are tagged as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"naive datetime {value!r}; timestamps must carry a timezone")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


def timestamp_column(nullable: bool = False, auto: bool = True, onupdate: bool = False) -> Column:
    """``auto`` stamps the row on insert; ``onupdate`` restamps it on every UPDATE."""
    return Column(
        AwareDateTime(),
        nullable=nullable,
        default=utcnow if auto else None,
        server_default=func.now() if auto else None,
        onupdate=utcnow if onupdate else None,
    )
