from .feed import ALL_EVENTS, ChangeEvent, ChangeFeed, ChangeKind, Subscription  # noqa: F401
from .query import AnyOf, Embed, Filter, Order, eq, escape_like  # noqa: F401
from .sql import SqlGateway  # noqa: F401
