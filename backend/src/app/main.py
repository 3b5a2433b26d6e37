"""FastAPI backend for LLM Compare."""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routes import compare as compare_routes
from .. import config
from ..engine import openrouter
from ..engine.errors import ConfigurationError, EndpointNotFound
from ..engine.orchestrator import QueryOrchestrator
from ..engine.registry import get_default_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    limits = httpx.Limits(
        max_connections=max(1, config.OPENROUTER_MAX_CONCURRENCY),
        max_keepalive_connections=max(1, config.OPENROUTER_MAX_CONCURRENCY),
    )
    timeout = httpx.Timeout(config.OPENROUTER_TIMEOUT_SECONDS)
    client = httpx.AsyncClient(timeout=timeout, limits=limits)
    openrouter.set_client(client)

    registry = get_default_registry()
    gateway = openrouter.OpenRouterGateway(registry, client=client)
    app.state.gateway = gateway
    app.state.orchestrator = QueryOrchestrator(registry, gateway)
    if not config.OPENROUTER_API_KEY:
        logger.warning("OPENROUTER_API_KEY is not set; queries will fail with a configuration error.")
    try:
        yield
    finally:
        openrouter.set_client(None)
        await client.aclose()


app = FastAPI(title="LLM Compare API", lifespan=lifespan)

_cors_origins = config.cors_allow_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=False if _cors_origins == ["*"] else True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _safe_detail(detail: object) -> str:
    if isinstance(detail, str):
        return detail
    return "Request failed"


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _error_response(request_id: str, status_code: int, detail: str, error_code: str | None) -> JSONResponse:
    payload: dict[str, object] = {"detail": detail, "request_id": request_id}
    if error_code:
        payload["error_code"] = error_code
    resp = JSONResponse(status_code=status_code, content=payload)
    resp.headers["X-Request-ID"] = request_id
    return resp


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "LLM Compare API"}


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    request_id = _request_id(request)
    detail = _safe_detail(exc.detail)
    logger.info("HTTPException %s request_id=%s detail=%s", exc.status_code, request_id, detail)
    return _error_response(request_id, exc.status_code, detail, None)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    request_id = _request_id(request)
    logger.error("configuration_error request_id=%s detail=%s", request_id, exc.message)
    return _error_response(request_id, 500, exc.message, exc.code)


@app.exception_handler(EndpointNotFound)
async def endpoint_not_found_handler(request: Request, exc: EndpointNotFound):
    request_id = _request_id(request)
    logger.info("invalid_model request_id=%s endpoint=%s", request_id, exc.endpoint_id)
    return _error_response(request_id, 400, "Invalid model ID", exc.code)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = _request_id(request)
    logger.exception("Unhandled exception request_id=%s", request_id)
    return _error_response(request_id, 500, "Internal server error", "internal_server_error")


app.include_router(compare_routes.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8001)
