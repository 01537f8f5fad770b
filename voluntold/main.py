from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from voluntold.api import admin, auth, members
from voluntold.core.config import Settings
from voluntold.core.errors import InfrastructureError, Unauthorized, VoluntoldError
from voluntold.core.logging_config import configure_logging
from voluntold.core.rate_limit import RateLimiter
from voluntold.db.session import Base, build_engine, build_sessionmaker
from voluntold.services.email import EmailSender, ResendEmailSender
import voluntold.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger(__name__)


def _cors_headers(request: Request, settings: Settings) -> dict:
    origin = request.headers.get("origin")
    if origin and origin in settings.get_allowed_origins():
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
            "Access-Control-Allow-Methods": "*",
            "Access-Control-Allow-Headers": "*",
        }
    return {}


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(VoluntoldError)
    async def voluntold_error_handler(request: Request, exc: VoluntoldError):
        if exc.status_code >= 500:
            logger.error("request.failed", extra={"path": request.url.path, "error": exc.message})
        else:
            logger.info(
                "request.rejected",
                extra={"path": request.url.path, "status_code": exc.status_code, "error_type": type(exc).__name__},
            )
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            field = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
            message = f"{field}: {errors[0].get('msg')}" if field else errors[0].get("msg")
        else:
            message = "Invalid request"
        return JSONResponse(status_code=400, content={"detail": message})

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("request.database_error", extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"detail": InfrastructureError.public_message})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Ensure CORS headers are included even on unhandled exceptions"""
        logger.exception("request.unhandled_error", extra={"path": request.url.path})
        return JSONResponse(
            status_code=500,
            content={"detail": InfrastructureError.public_message},
            headers=_cors_headers(request, settings),
        )


def create_app(settings: Optional[Settings] = None, email_sender: Optional[EmailSender] = None) -> FastAPI:
    """
    Build the application. The engine, session factory, email sender and rate
    limiter are created on startup and kept on app.state.
    """
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = build_engine(settings.DATABASE_URL)
        if settings.AUTO_CREATE_TABLES:
            Base.metadata.create_all(bind=engine)
        app.state.engine = engine
        app.state.session_factory = build_sessionmaker(engine)
        owns_sender = email_sender is None
        app.state.email_sender = email_sender or ResendEmailSender.from_settings(settings)
        app.state.rate_limiter = RateLimiter()
        logger.info("app.startup", extra={"rate_limit_enabled": settings.RATE_LIMIT_ENABLED})
        try:
            yield
        finally:
            if owns_sender:
                app.state.email_sender.close()
            engine.dispose()
            logger.info("app.shutdown")

    app = FastAPI(title="Voluntold API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings

    # Note: CORS headers are added even on errors via exception handlers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_exception_handlers(app, settings)

    app.include_router(auth.router, prefix="/auth", tags=["auth"])
    app.include_router(admin.router, prefix="/admin", tags=["admin"])
    app.include_router(members.router, prefix="/members", tags=["members"])

    @app.get("/")
    async def root():
        return {"message": "Voluntold API", "version": "1.0.0"}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


app = create_app()
