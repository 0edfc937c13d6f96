from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from talentgate.api.admin import router as admin_router
from talentgate.api.auth import router as auth_router
from talentgate.api.routes import router as api_router
from talentgate.config import Settings, get_settings
from talentgate.db.init import init_database
from talentgate.db.session import Database
from talentgate.errors import PortalError
from talentgate.logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.database = database or Database.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def _startup() -> None:
        result = init_database(app.state.database, settings)
        logger.info("Database ready %s", result)

    @app.on_event("shutdown")
    def _shutdown() -> None:
        app.state.database.dispose()

    @app.exception_handler(PortalError)
    def _portal_error(request: Request, exc: PortalError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if not errors:
            return JSONResponse({"error": "Invalid request"}, status_code=400)
        error = errors[0]
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        return JSONResponse({"error": f"Invalid {location}: {error.get('msg', 'invalid')}"}, status_code=400)

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(auth_router)
    app.include_router(api_router)
    app.include_router(admin_router)

    app.mount("/uploads", StaticFiles(directory=str(settings.upload_dir), check_dir=False), name="uploads")
    return app
