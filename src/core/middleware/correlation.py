import logging
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

CORRELATION_HEADER_NAME = "X-Correlation-ID"

logger = logging.getLogger(__name__)

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    """Correlation ID of the call being handled, None outside a request"""
    return _correlation_id.get()


def new_correlation_id() -> str:
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Makes sure every request carries an X-Correlation-ID.

    An incoming ID is kept as is, otherwise a new one is generated. The ID
    is echoed on the response, stamped on every log record written while
    the request runs and forwarded by the outbound API client.
    """

    async def dispatch(self, request: Request, call_next):
        cid = request.headers.get(CORRELATION_HEADER_NAME)
        if not cid:
            cid = new_correlation_id()
            logger.info(f"Request has no correlation header. Adding new correlation ID: {cid}")

        token = _correlation_id.set(cid)
        try:
            logger.info(f"Request correlation ID: {cid}")
            request.state.correlation_id = cid
            response = await call_next(request)
        finally:
            _correlation_id.reset(token)

        response.headers[CORRELATION_HEADER_NAME] = cid
        return response
