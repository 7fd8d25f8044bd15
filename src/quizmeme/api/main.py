"""Quizmeme - FastAPI Application.

This module builds the FastAPI application, defines its routes, and provides
the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Configuration** is a :class:`~quizmeme.core.config.QuizmemeConfig`
  built by ``main()`` (or a test) and passed to :func:`create_app`.
- **Templates** are loaded once by :func:`create_app` into a read-only
  :class:`~quizmeme.core.registry.TemplateRegistry`.  Both objects live on
  ``app.state``; there is no module-level application instance.
- **Image generation** reads the payload, resolves the template, then hands
  the Pillow work to :mod:`quizmeme.core.compositor` in the threadpool.
- **Errors** raised by the pipeline are :class:`QuizmemeError` subclasses.
  A single exception handler turns them into ``500 {"error": "..."}``;
  nothing of the image is written once an error occurred.

Endpoints
---------
========  ================  ===========================================
Method    Path              Purpose
========  ================  ===========================================
GET       ``/``             Generate the PNG for a template
GET       ``/templates``    Registered template names and the default
GET       ``/health``       Liveness probe
========  ================  ===========================================

Unknown paths answer ``404`` and known paths with the wrong method answer
``405``, both with the same ``{"error": "..."}`` envelope.

Usage
-----
CLI (installed entry point)::

    quizmeme --bind localhost:8080 --descriptions ./descriptions.json

Direct invocation::

    python -m quizmeme.api.main
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
import uuid
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from quizmeme import __version__
from quizmeme.api.models import ErrorResponse, GenerateRequest, TemplatesResponse
from quizmeme.api.payload import read_payload
from quizmeme.core.compositor import compose, encode_png
from quizmeme.core.config import QuizmemeConfig
from quizmeme.core.errors import ConfigError, QuizmemeError
from quizmeme.core.registry import Description, TemplateRegistry

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

router = APIRouter()


# ---------------------------------------------------------------------------
# Application lifecycle.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log service startup and shutdown.

    The registry is already loaded by :func:`create_app`, so a bad
    descriptions file fails before the server ever binds its socket.
    """
    config: QuizmemeConfig = app.state.config
    logger.info(
        f"Serving {len(app.state.registry)} template(s), default {config.default_base!r}"
    )

    yield  # Application runs here.

    logger.info("Stopping server.")


# ---------------------------------------------------------------------------
# Error envelopes.
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


async def quizmeme_error_handler(request: Request, exc: QuizmemeError) -> JSONResponse:
    """Turn a pipeline error into ``500 {"error": "<message>"}``."""
    uid = getattr(request.state, "uid", "-")
    logger.warning(f"uid={uid} generation failed: {exc}")
    return _error(500, str(exc))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing errors with the same envelope as pipeline errors."""
    if exc.status_code == 404:
        message = f"endpoint {_quote(request.url.path)} not found"
    elif exc.status_code == 405:
        message = (
            f"method {_quote(request.method)} not allowed for endpoint {_quote(request.url.path)}"
        )
    else:
        message = str(exc.detail)
    return _error(exc.status_code, message)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for exceptions no other handler claimed."""
    uid = getattr(request.state, "uid", "-")
    logger.error(f"uid={uid} unhandled error: {exc}", exc_info=exc)
    return _error(500, "internal server error")


# ---------------------------------------------------------------------------
# Request logging.
# ---------------------------------------------------------------------------


async def log_requests(request: Request, call_next):
    """Tag the request with a unique id and log one line once it is served."""
    request.state.uid = uuid.uuid4().hex
    started_at = datetime.now(timezone.utc)
    start = time.perf_counter()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        return response
    finally:
        logger.info(
            f"request uid={request.state.uid} started_at={started_at.isoformat()} "
            f"duration={time.perf_counter() - start:.6f}s method={request.method} "
            f"path={request.url.path} status={status}"
        )


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


def _render(desc: Description, req: GenerateRequest, config: QuizmemeConfig) -> bytes:
    image = compose(desc, req.question, req.answers, font_path=config.font_path)
    return encode_png(image)


@router.get(
    "/",
    response_class=Response,
    responses={
        200: {"content": {"image/png": {}}, "description": "The generated image."},
        500: {"model": ErrorResponse, "description": "Generation failed."},
    },
)
async def generate(request: Request) -> Response:
    """Generate a quiz image.

    The parameters come from a JSON body, form fields or the query string
    (see :mod:`quizmeme.api.payload`).  This endpoint:

    1. Reads the payload and substitutes the default template when ``base``
       is empty.
    2. Resolves the template in the registry.
    3. Draws the question and answers on the base image.
    4. Returns the PNG.

    Raises:
        PayloadError: Malformed payload.
        UnknownBaseError: Template not registered.
        ImageError: Base image missing or undecodable.
        FontError: Font unusable.
    """
    config: QuizmemeConfig = request.app.state.config
    registry: TemplateRegistry = request.app.state.registry

    req = await read_payload(request)
    base = req.base or config.default_base
    desc = registry.lookup(base)

    logger.debug(
        f"uid={request.state.uid} base={base!r} answers={len(req.answers)}/{len(desc.answers)}"
    )
    png = await run_in_threadpool(_render, desc, req, config)
    return Response(content=png, media_type="image/png")


@router.get("/templates", response_model=TemplatesResponse)
async def list_templates(request: Request) -> TemplatesResponse:
    """Return the registered template names and the default template."""
    registry: TemplateRegistry = request.app.state.registry
    return TemplatesResponse(
        templates=registry.names(),
        default=request.app.state.config.default_base,
    )


@router.get("/health")
async def health() -> dict:
    """Liveness probe."""
    return {"status": "ok", "version": __version__}


# ---------------------------------------------------------------------------
# Application factory.
# ---------------------------------------------------------------------------


def create_app(
    config: QuizmemeConfig,
    registry: TemplateRegistry | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Service configuration.
        registry: Pre-built template registry.  When omitted, it is loaded
            from ``config.descriptions_path``.

    Returns:
        The configured application.

    Raises:
        ConfigError: If the descriptions file cannot be loaded.
    """
    if registry is None:
        registry = TemplateRegistry.from_file(config.descriptions_path)

    app = FastAPI(
        title="Quizmeme",
        description="Quiz-show meme images from named templates.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.registry = registry

    app.add_exception_handler(QuizmemeError, quizmeme_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Command line flags.  Unset flags fall back to ``QUIZMEME_*`` settings."""
    parser = argparse.ArgumentParser(
        prog="quizmeme",
        description="Serve quiz-show meme images over HTTP.",
    )
    parser.add_argument("--bind", help="address to listen to (default: localhost:8080)")
    parser.add_argument(
        "--descriptions",
        dest="descriptions_path",
        help="templates descriptions file (default: ./descriptions.json)",
    )
    parser.add_argument("--log-level", dest="log_level", help="log level (default: INFO)")
    return parser


def load_config(argv: Sequence[str] | None = None) -> QuizmemeConfig:
    """Build the configuration from flags and environment.

    Raises:
        ConfigError: If a value does not validate.
    """
    args = build_parser().parse_args(argv)
    overrides = {key: value for key, value in vars(args).items() if value is not None}
    try:
        return QuizmemeConfig(**overrides)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc


def main(argv: Sequence[str] | None = None) -> int:
    """Launch the uvicorn ASGI server.

    uvicorn handles SIGINT/SIGTERM itself and gives in-flight requests
    ``shutdown_timeout`` seconds to finish before closing.

    This function is registered as the ``quizmeme`` console script in
    ``pyproject.toml``.

    Returns:
        Process exit code: 1 if startup fails, 0 after a clean shutdown.
    """
    import uvicorn

    try:
        config = load_config(argv)
    except ConfigError as exc:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.critical(f"initializing: {exc}")
        return 1

    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)

    try:
        app = create_app(config)
    except ConfigError as exc:
        logger.critical(f"initializing: {exc}")
        return 1

    logger.debug(f"Starting server on {config.bind}")
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        timeout_graceful_shutdown=config.shutdown_timeout,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
