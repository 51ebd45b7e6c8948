import time
from contextlib import asynccontextmanager
from os import environ
from uuid import uuid4

import logfire
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from granian import Granian
from livekit.api.twirp_client import TwirpError
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.api.v1.errors import app_error_handler, twirp_error_handler
from app.app_config import get_app_environ_config
from app.schemas.init_schemas import init_schema
from app.shared.api.health import router as health_router
from app.shared.api.utils import E_INVALID_PARAMS, api_failure, init_logger, load_routes
from app.shared.storage.mongo import get_mongo_manager
from app.utils.app_errors import AppError, AppErrorCode

cfg = get_app_environ_config()

REQUEST_ID_HEADER = "X-Request-ID"


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    """Access log with a short request id; unhandled errors become an E_INTERNAL_ERROR envelope."""

    async def dispatch(self, request: Request, call_next):  # type: ignore
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex[:8]
        started = time.perf_counter()

        with logger.contextualize(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception:
                elapsed_ms = (time.perf_counter() - started) * 1000
                logger.exception(
                    f"[{request_id}] {request.method} {request.url.path} failed after {elapsed_ms:.1f}ms"
                )
                failure = api_failure(
                    errcode=AppErrorCode.E_INTERNAL_ERROR.value,
                    errmesg=f"Internal server error (request_id: {request_id})",
                )
                return ORJSONResponse(
                    status_code=500,
                    content=failure.model_dump(),
                    headers={REQUEST_ID_HEADER: request_id},
                )

            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"[{request_id}] {request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms"
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(x) for x in error.get("loc", ()) if x != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)


async def app_validation_exception_handler(request: Request, exc: RequestValidationError):
    errmesg = _describe_validation_errors(exc)
    logger.warning("Validation error: {} {} {}", request.method, request.url.path, errmesg)

    failure = api_failure(E_INVALID_PARAMS, errmesg=errmesg)

    return ORJSONResponse(status_code=422, content=failure.model_dump())


def _init_logfire(server: FastAPI):
    logfire.configure(
        token=cfg.LOGFIRE_TOKEN,
        service_name="fitstream-api",
        service_version=environ.get("BUILD_COMMIT") or "dev",
    )
    logfire.instrument_fastapi(server, capture_headers=True)
    logfire.instrument_pymongo(capture_statement=cfg.DEBUG)
    logfire.instrument_pydantic()
    logger.info("Logfire instrumentation enabled")


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger()
    logger.info("FitStream API starting")

    await init_schema()
    load_routes(server, "/api")

    if cfg.LOGFIRE_ENABLE:
        _init_logfire(server)

    yield

    get_mongo_manager().close_all()
    logger.info("FitStream API stopped")


app = FastAPI(
    version="1.0",
    title="FitStream API",
    docs_url="/docs" if cfg.DEBUG else None,
    redoc_url=None,
    openapi_url="/openapi.json" if cfg.DEBUG else None,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.include_router(health_router)

app.add_middleware(HTTPLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,  # type: ignore
    allow_origins=cfg.API_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)
app.add_middleware(
    SessionMiddleware,
    secret_key=cfg.SESSION_SECRET,  # type: ignore
    same_site="lax",
    https_only=not cfg.DEBUG,
)

app.add_exception_handler(RequestValidationError, app_validation_exception_handler)  # type: ignore
app.add_exception_handler(AppError, app_error_handler)  # type: ignore
app.add_exception_handler(TwirpError, twirp_error_handler)  # type: ignore


if __name__ == "__main__":
    Granian(
        "app.main:app",
        interface="asgi",  # type: ignore[arg-type]
        address=cfg.API_HOST,
        port=cfg.API_PORT,
        workers=cfg.API_WORKERS,
        reload=cfg.DEBUG,
    ).serve()
