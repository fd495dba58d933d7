from starlette.types import ASGIApp, Message, Receive, Scope, Send
import uuid

from safeops.core.logging import correlation_id_ctx_var

HEADER = b"x-correlation-id"


class CorrelationIdMiddleware:
    """Attach or generate an X-Correlation-ID for each request and set it on a contextvar
    so log records can include it via CorrelationIdFilter.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        # Only act on HTTP requests
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        correlation_id = headers.get(HEADER) or str(uuid.uuid4()).encode()
        token = correlation_id_ctx_var.set(correlation_id.decode("latin-1"))

        async def send_with_header(message: Message) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = list(message.get("headers", [])) + [(HEADER, correlation_id)]
            await send(message)

        try:
            await self.app(scope, receive, send_with_header)
        finally:
            correlation_id_ctx_var.reset(token)
