import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Each request gets its own isolated value, even under concurrent load.
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")
actor_role_var: ContextVar[str] = ContextVar("actor_role", default="-")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request ID and the acting role to every incoming request.

    Reads X-Request-ID from the request header if provided by the caller,
    otherwise generates a new UUID, and echoes it back on the response.
    X-Actor-Role is set by the authenticating proxy in front of the service;
    it is recorded here for logging only, authorization happens per route.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_var.set(request_id)
        actor_role_var.set(request.headers.get("X-Actor-Role", "-").strip().lower() or "-")

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class RequestContextLogFilter(logging.Filter):
    """Inject the current request ID and actor role into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        record.actor_role = actor_role_var.get()
        return True
