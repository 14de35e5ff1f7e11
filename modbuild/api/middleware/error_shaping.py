from __future__ import annotations

import logging
import traceback
from typing import Callable, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from modbuild.core.errors import BuildError, ConfigurationError, FetchError, ValidationError

log = logging.getLogger("modbuild.errors")

_STATUS_BY_ERROR = (
    (ConfigurationError, 400),
    (ValidationError, 422),
    (FetchError, 502),
)


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id")


def _payload(detail: str, rid: Optional[str]) -> Dict[str, str]:
    payload = {"detail": detail}
    if rid:
        payload["request_id"] = rid
    return payload


def status_for(exc: BuildError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


async def build_error_handler(request: Request, exc: BuildError) -> JSONResponse:
    """
    Map build failures raised by endpoints or their dependencies to a status
    code, keeping the message as the detail.
    """
    status = status_for(exc)
    rid = _request_id(request)
    if status >= 500:
        log.error("Build error: %s rid=%s path=%s", exc, rid, request.url.path)
        return JSONResponse(status_code=status, content=_payload("Internal Server Error", rid))
    log.info("Rejected %s with %d: %s rid=%s", request.url.path, status, exc, rid)
    return JSONResponse(status_code=status, content=_payload(str(exc), rid))


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """Anything that escapes the handlers becomes an opaque 500; the traceback stays in the log."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            rid = _request_id(request)
            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            return JSONResponse(status_code=500, content=_payload("Internal Server Error", rid))
