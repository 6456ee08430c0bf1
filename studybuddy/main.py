import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from studybuddy.core.config import Settings, get_settings
from studybuddy.core.deps import Services, build_services
from studybuddy.core.errors import ErrorKind, StudyBuddyError, FileTooLargeError
from studybuddy.core.logging import setup_logging
from studybuddy.routers import system, files, ai, settings as settings_router

logger = logging.getLogger(__name__)

_STATUS_BY_KIND = {
    ErrorKind.not_found: 404,
    ErrorKind.io: 500,
    ErrorKind.network: 502,
    ErrorKind.missing_credential: 400,
    ErrorKind.invalid: 415,
}


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.services.close()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="API backend StudyBuddy (bibliothèque de documents, quiz, discussions IA)",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services or build_services(settings)

    # Middleware CORS
    origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],  # fallback si mal configuré
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StudyBuddyError)
    async def studybuddy_error_handler(request: Request, exc: StudyBuddyError):
        status = 413 if isinstance(exc, FileTooLargeError) else _STATUS_BY_KIND.get(exc.kind, 500)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status,
            content={"detail": exc.message or str(exc), "kind": exc.kind.value},
        )

    # Routers
    app.include_router(system.router)
    app.include_router(files.router)
    app.include_router(ai.router)
    app.include_router(settings_router.router)

    # Redirect root → docs
    @app.get("/", include_in_schema=False)
    async def root():
        return RedirectResponse(url="/docs")

    return app
