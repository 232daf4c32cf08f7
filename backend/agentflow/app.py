import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, load_env_file, load_settings
from .errors import AgentFlowError, GENERIC_ERROR
from .prompts import IntentClassifier, KeywordIntentClassifier, build_template_set
from .routes.generate import router as generate_router
from .routes.health import router as health_router
from .routes.proxy import router as proxy_router
from .routes.static import router as static_router
from .services.relay import build_client

logger = logging.getLogger(__name__)

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def create_app(
    settings: Optional[Settings] = None,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    classifier: Optional[IntentClassifier] = None,
) -> FastAPI:
    if settings is None:
        load_env_file()
        settings = load_settings()

    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set. Set it in your environment before starting the server.")

    # One client (and connection pool) for every upstream call the app makes
    llm_client = build_client(settings, http_client) if settings.openai_api_key else None

    @asynccontextmanager
    async def lifespan(app_fastapi: FastAPI):
        yield
        # An injected http_client belongs to the caller
        if llm_client is not None and http_client is None:
            logger.info("Closing upstream client")
            await llm_client.close()

    app = FastAPI(title="AgentFlow API proxy", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.templates = build_template_set(settings.prompts)
    app.state.http_client = http_client
    app.state.llm_client = llm_client
    app.state.classifier = classifier or KeywordIntentClassifier()

    # CORS
    cors_origins = settings.cors_allow_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins if cors_origins != ["*"] else ["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    # Registered after CORSMiddleware so it runs first: every OPTIONS gets a 204
    @app.middleware("http")
    async def preflight(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=PREFLIGHT_HEADERS)
        return await call_next(request)

    @app.exception_handler(AgentFlowError)
    async def agentflow_error_handler(request: Request, exc: AgentFlowError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # Wrong method on a known path is reported like an unknown path
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"error": "Not found"})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})

    # Routers
    app.include_router(health_router, prefix="/api")
    app.include_router(proxy_router, prefix="/api")
    app.include_router(generate_router, prefix="/api")
    app.include_router(static_router)

    return app
