from __future__ import annotations

from fastapi import FastAPI

from modbuild.api.endpoints import health
from modbuild.api.endpoints.metrics_export import router as metrics_export_router
from modbuild.api.endpoints.modules import router as modules_router
from modbuild.api.middleware.error_shaping import SafeErrorMiddleware, build_error_handler
from modbuild.api.middleware.request_id import RequestIdMiddleware
from modbuild.core.errors import BuildError

app = FastAPI(
    title="Module Build API",
    version="0.1.0",
)

# ConfigurationError -> 400, ValidationError -> 422, FetchError -> 502
app.add_exception_handler(BuildError, build_error_handler)

# ------------------------------------------------------------
# Middleware stack (ORDER MATTERS)
# Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper.
# ------------------------------------------------------------
app.add_middleware(SafeErrorMiddleware)
app.add_middleware(RequestIdMiddleware)

app.include_router(health.router)
app.include_router(modules_router)
app.include_router(metrics_export_router)
