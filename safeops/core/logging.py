import contextvars
import logging
import sys
from typing import Optional

correlation_id_ctx_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("correlation_id", default=None)

FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"

# third-party loggers that are chatty at DEBUG/INFO
QUIET = ("aiosqlite", "asyncio", "passlib", "sqlalchemy.engine")


def get_correlation_id() -> str:
    return correlation_id_ctx_var.get() or "none"


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once. ``level`` is a name such as "INFO" or "debug".

    Calling it again only makes sure every root handler carries the correlation-id
    filter, so it is safe to call from both the app and scripts.
    """
    root = logging.getLogger()
    if root.handlers:
        for h in root.handlers:
            if not any(isinstance(f, CorrelationIdFilter) for f in h.filters):
                h.addFilter(CorrelationIdFilter())
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(FORMAT))
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)
    root.setLevel((level or "INFO").upper())

    for name in QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)
