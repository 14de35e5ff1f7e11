import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


REQUEST_ID_HEADER = "X-Request-Id"


def new_request_id() -> str:
    return uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Echo the caller's X-Request-Id (or a fresh one) so build errors can be traced in the log."""

    async def dispatch(self, request: Request, call_next):
        rid = (request.headers.get(REQUEST_ID_HEADER) or "").strip() or new_request_id()
        request.state.request_id = rid

        response: Response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
