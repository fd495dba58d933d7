import logging
from fastapi.exceptions import RequestValidationError
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SafeOpsError(Exception):
    """Base class for errors raised by SafeOps services and the gateway."""


class NotFoundError(SafeOpsError):
    pass


class ValidationError(SafeOpsError):
    pass


class InvalidTransitionError(SafeOpsError):
    """A lifecycle transition was requested from a status that does not allow it."""

    def __init__(self, entity_id, current: str, target: str):
        self.entity_id = entity_id
        self.current = current
        self.target = target
        super().__init__(f"cannot move {entity_id} from '{current}' to '{target}'")


class ConfigurationError(SafeOpsError):
    pass


class AuthenticationError(SafeOpsError):
    pass


class PersistenceError(SafeOpsError):
    """The backend rejected or failed a request."""


class GatewayError(PersistenceError):
    pass


class ConstraintError(PersistenceError):
    """Unique, foreign-key or not-null violation reported by the database."""


class TransportError(PersistenceError):
    """Connection or timeout failure talking to the database."""


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse({"error": str(exc), "type": type(exc).__name__}, status_code=status_code)


def register_exception_handlers(app):
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.info("HTTP exception", extra={"status_code": exc.status_code})
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info("Validation error", extra={"errors": exc.errors()})
        return JSONResponse({"error": "Validation error", "details": exc.errors()}, status_code=422)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error_response(404, exc)

    @app.exception_handler(ValidationError)
    async def domain_validation_handler(request: Request, exc: ValidationError):
        return _error_response(422, exc)

    @app.exception_handler(InvalidTransitionError)
    async def transition_handler(request: Request, exc: InvalidTransitionError):
        logger.info("Rejected transition: %s", exc)
        return _error_response(409, exc)

    @app.exception_handler(AuthenticationError)
    async def authentication_handler(request: Request, exc: AuthenticationError):
        return JSONResponse({"error": str(exc)}, status_code=401, headers={"WWW-Authenticate": "Bearer"})

    @app.exception_handler(ConstraintError)
    async def constraint_handler(request: Request, exc: ConstraintError):
        logger.info("Constraint violation: %s", exc)
        return _error_response(409, exc)

    @app.exception_handler(TransportError)
    async def transport_handler(request: Request, exc: TransportError):
        logger.error("Database unavailable: %s", exc)
        return _error_response(503, exc)

    @app.exception_handler(PersistenceError)
    async def persistence_handler(request: Request, exc: PersistenceError):
        logger.error("Persistence error: %s", exc)
        return _error_response(500, exc)

    @app.exception_handler(ConfigurationError)
    async def configuration_handler(request: Request, exc: ConfigurationError):
        logger.error("Configuration error: %s", exc)
        return _error_response(500, exc)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse({"error": "Internal server error"}, status_code=500)
