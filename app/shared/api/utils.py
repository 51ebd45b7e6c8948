import inspect
import sys
from importlib import import_module
from os import environ
from pathlib import Path
from traceback import TracebackException
from typing import Any, Literal
from uuid import uuid4

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from ..config import config

E_INTERNAL = "E_INTERNAL_ERROR"
E_INVALID_PARAMS = "E_INVALID_PARAMS"


def format_error(ex: BaseException) -> str:
    return "".join(TracebackException.from_exception(ex).format())


class ApiResponse(BaseModel):
    version: str | None = Field(default_factory=lambda: environ.get("BUILD_COMMIT", "dev"))


class ApiSuccess(ApiResponse):
    success: Literal[True] = True
    results: Any = "OK"


class ApiFailure(ApiResponse):
    success: Literal[False] = False
    errcode: str = E_INTERNAL
    erresid: str = Field(default_factory=lambda: uuid4().hex[:10])
    errmesg: str = "We are sorry, an error occurred."
    errtype: str | None = None


def api_failure(errcode: str | None = None, errmesg: Exception | str | None = None, *, trace: Any = None):
    if not errcode:
        errcode = str(ApiFailure.model_fields["errcode"].default)

    if isinstance(errmesg, Exception):
        errmesg = format_error(errmesg)

    if not errmesg:
        errmesg = str(ApiFailure.model_fields["errmesg"].default)

    failure = ApiFailure(errcode=errcode, errmesg=errmesg)

    caller_frame = inspect.stack()[1]
    module = inspect.getmodule(caller_frame.frame)
    module_name = module.__name__ if module and getattr(module, "__name__", None) else caller_frame.filename
    caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

    logger.warning(
        f"{failure.errcode} {failure.erresid}\n{failure.errmesg} caller={caller_info} trace={trace}"
    )

    return failure


def make_response(results: Any, *, status_code: int | None = None) -> ORJSONResponse:
    if isinstance(results, Exception):
        results = api_failure(errmesg=results)

    if isinstance(results, ApiFailure):
        if status_code is None:
            status_code = 500 if results.errcode == E_INTERNAL else 400
        content = results.model_dump(exclude_none=True)
    else:
        if status_code is None:
            status_code = 200
        content = results.model_dump(mode="json") if isinstance(results, BaseModel) else results

    return ORJSONResponse(status_code=status_code, content=content)


def init_logger():
    logger.remove()

    commit_id = environ.get("BUILD_COMMIT", "dev")

    if (config.get("DEBUG") or "").strip().lower() == "true":
        logger_level = "DEBUG"
        logger_format = (
            f"<yellow>fitstream:{commit_id}</yellow> | "
            "<green>{time:MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )
    else:
        logger_level = "INFO"
        logger_format = (
            f"fitstream:{commit_id} | "
            "{time:MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{name}:{function}:{line} | "
            "{message}"
        )
    logger.add(sys.stderr, level=logger_level, format=logger_format)


def load_routes(app: FastAPI, prefix: str, folder: Path | None = None):
    """Include the `router` of every module under `folder` (default: app/api/v1/routers)."""
    folder = folder or Path(__file__).parent.parent.parent / "api" / "v1" / "routers"
    disabled_routes = [x.strip() for x in (config.get("API_DISABLED") or "").split(",") if x.strip()]
    logger.debug("disabled routes: {}", disabled_routes)

    app_root = Path(__file__).parent.parent.parent.parent
    for x in sorted(folder.rglob("*.py")):
        if x.name == "__init__.py":
            continue

        name = ".".join(x.relative_to(app_root).with_suffix("").parts)
        if any(name.endswith(f".{disabled}") for disabled in disabled_routes):
            logger.warning("disabled route module {}", name)
            continue

        module = import_module(name)
        if hasattr(module, "router"):
            app.include_router(module.router, prefix=prefix)
            logger.info("Added routes in {}", name)

    for route_info in get_all_routes_info(app):
        methods = ",".join(sorted(route_info["methods"]))
        logger.info("Loaded route: {:<12} {:<60} {}", methods, route_info["path"], route_info["endpoint"])


def get_all_routes_info(app: FastAPI) -> list[dict[str, Any]]:
    routes_info = []
    for route in app.routes:
        if hasattr(route, "methods"):
            endpoint = getattr(route, "endpoint", None)
            routes_info.append(
                {
                    "path": getattr(route, "path", ""),
                    "methods": route.methods,
                    "endpoint": getattr(endpoint, "__name__", str(endpoint)),
                }
            )
    return routes_info
