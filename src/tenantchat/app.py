"""FastAPI application factory for tenantchat."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tenantchat.common.config import get_settings
from tenantchat.common.exceptions import DataIntegrityError, TenantChatError
from tenantchat.common.logging import setup_logging
from tenantchat.common.schemas import HealthResponse

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level, json_format=settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from tenantchat.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        yield
        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(TenantChatError)
    async def handle_tenantchat_error(request: Request, exc: TenantChatError):
        if isinstance(exc, DataIntegrityError):
            logger.error("Data integrity error on %s %s: %s", request.method, request.url.path, exc.message)
            return JSONResponse(status_code=exc.status_code, content={"error": exc.code})
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.code, "detail": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
        return JSONResponse(
            status_code=400,
            content={"error": "INVALID_INPUT", "detail": ", ".join(fields)},
        )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from tenantchat.accounts.router import router as accounts_router
    from tenantchat.tenants.router import router as tenants_router
    from tenantchat.blocking.router import router as blocking_router
    from tenantchat.chat.router import router as chat_router
    from tenantchat.analytics.router import router as analytics_router

    prefix = settings.api_prefix
    app.include_router(accounts_router, prefix=prefix)
    app.include_router(tenants_router, prefix=prefix)
    app.include_router(blocking_router, prefix=prefix)
    app.include_router(chat_router, prefix=prefix)
    app.include_router(analytics_router, prefix=prefix)

    return app
