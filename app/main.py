# app/main.py
"""
Main FastAPI app: routers, error envelopes, request context and startup.
"""
import traceback
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import uuid4

import aiohttp
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.api.admin.health import router as health_router
from app.api.clients import router as clients_router
from app.api.data import router as data_router
from app.api.internal import router as internal_router
from app.api.providers import router as providers_router
from app.config import settings
from app.core.errors import BadRequest, GatewayError, internal_error_body
from app.db.session import init_models
from app.file_access.registry import build_registry
from app.monitoring.context import set_request_context
from app.monitoring.errors import record_error
from app.monitoring.logger import log


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()
    Path(settings.CACHE_DIR).mkdir(parents=True, exist_ok=True)
    session = aiohttp.ClientSession(headers={"Accept": "application/json"})
    app.state.registry = build_registry(settings, session=session)
    log("INFO", f"Files Gateway {__version__} started", module="main", providers=app.state.registry.enabled())
    try:
        yield
    finally:
        await session.close()
        log("INFO", "Files Gateway stopped", module="main")


app = FastAPI(title="Files Gateway", version=__version__, lifespan=lifespan)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    request.state.request_id = request_id
    set_request_context(request_id=request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    log(
        "WARNING" if exc.code < 500 else "ERROR",
        f"{exc.reason}: {exc.message}",
        module="main",
        status=exc.code,
        path=request.url.path,
    )
    return JSONResponse(status_code=exc.code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}" for error in exc.errors()
    )
    return await gateway_error_handler(request, BadRequest(f"Invalid request: {problems}"))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", None)
    await record_error(
        component="main",
        function=request.url.path,
        message=f"Unhandled exception: {exc}",
        details={"method": request.method},
        stacktrace=traceback.format_exc(),
        request_id=request_id,
        severity="CRITICAL",
    )
    return JSONResponse(status_code=500, content=internal_error_body(str(exc) or "An unexpected error occurred."))


# Mount routers
app.include_router(health_router)
app.include_router(providers_router)
app.include_router(clients_router)
app.include_router(internal_router)
app.include_router(data_router)
